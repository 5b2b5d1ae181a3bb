"""Enums and shared constants for the visit beacon."""

from enum import Enum

# Placeholder for a value the host could not provide
NA = "NA"

DEFAULT_ACTIVITY = "page_visit"


class DeviceType(str, Enum):
    """Device classes reported in a tracking record."""

    PHONE = "Phone"
    TABLET = "Tablet"
    PC = "PC"
    NA = "NA"


class Medium(str, Enum):
    """Traffic medium of an inbound visit."""

    SOCIAL = "social"
    ORGANIC = "organic"
    EMAIL = "email"
    REFERRAL = "referral"
    NONE = "none"


class BeaconStatus(str, Enum):
    """Outcome of a single beacon invocation."""

    SENT = "sent"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    ABORTED = "aborted"
    FAILED = "failed"
