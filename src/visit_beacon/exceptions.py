"""Exception hierarchy for the visit beacon."""

from typing import Optional


class BeaconError(Exception):
    """Base class for all beacon errors."""


class MissingConfigError(BeaconError):
    """Raised when no domain id is available for the page."""


class StorageError(BeaconError):
    """Raised by a storage backend when it cannot read or write."""


class GeolocationError(BeaconError):
    """Raised when the IP lookup service does not return a usable address."""


class BeaconSendError(BeaconError):
    """Base class for failures delivering a beacon to the collection endpoint."""


class BeaconTimeoutError(BeaconSendError):
    """The collection request did not complete within its timeout."""

    def __init__(self, timeout_secs: float):
        self.timeout_secs = timeout_secs
        super().__init__(f"Tracking request timed out after {timeout_secs:g} seconds")


class BeaconHttpError(BeaconSendError):
    """The collection endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason or ""
        super().__init__(f"HTTP Error: {status_code} - {self.reason}".rstrip(" -"))


class BeaconContentTypeError(BeaconSendError):
    """The collection endpoint answered 2xx but not with a JSON body."""

    def __init__(self, content_type: Optional[str], detail: Optional[str] = None):
        self.content_type = content_type
        message = f"Invalid content type: {content_type}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class BeaconNetworkError(BeaconSendError):
    """The collection request failed below the HTTP layer."""
