"""Public IP lookup for the visitor."""

import logging
from typing import Optional

import requests
from requests.exceptions import RequestException, Timeout

from .enums import NA
from .exceptions import GeolocationError

logger = logging.getLogger(__name__)

DEFAULT_IP_LOOKUP_URL = "https://api.ipify.org?format=json"


class IpLookup:
    """Client for an ipify-style lookup service returning {"ip": "..."}."""

    def __init__(
        self,
        url: str = DEFAULT_IP_LOOKUP_URL,
        timeout_secs: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout_secs = timeout_secs
        self.session = session or requests.Session()

    def lookup(self) -> str:
        """
        Query the lookup service.

        Returns:
            The visitor's public IP address

        Raises:
            GeolocationError: On timeout, transport failure, non-2xx status
                or a body without an ip field
        """
        try:
            response = self.session.get(self.url, timeout=self.timeout_secs)
        except Timeout as e:
            raise GeolocationError(f"IP lookup timed out after {self.timeout_secs:g} seconds") from e
        except RequestException as e:
            raise GeolocationError(f"IP lookup request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise GeolocationError(f"IP lookup returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise GeolocationError(f"IP lookup returned invalid JSON: {e}") from e

        ip = data.get("ip") if isinstance(data, dict) else None
        if not ip or not isinstance(ip, str):
            raise GeolocationError("IP lookup response has no ip field")
        return ip

    def fetch_ip(self) -> str:
        """Return the visitor's IP, or "NA" if it cannot be determined. Never raises."""
        try:
            ip = self.lookup()
        except GeolocationError as e:
            logger.warning(f"Failed to get IP address: {e}")
            return NA
        except Exception as e:
            logger.error(f"Unexpected error during IP lookup: {e}")
            return NA
        logger.debug(f"Resolved visitor IP {ip}")
        return ip

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
