"""Pydantic models for the beacon payload."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field  # type: ignore
from pydantic.alias_generators import to_camel  # type: ignore

from .enums import NA, DeviceType


class BeaconModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReferralInfo(BeaconModel):
    """Traffic attribution for a single visit."""

    referrer: str = Field(default="direct", description="Raw referrer or 'direct'")
    source: str = Field(default="direct", description="Traffic source")
    medium: str = Field(default="none", description="Traffic medium")
    campaign: str = Field(default="none", description="Campaign name")
    platform: str = Field(default="direct", description="Normalised platform name")
    utm_source: str = "none"
    utm_medium: str = "none"
    utm_campaign: str = "none"
    utm_content: str = "none"
    utm_term: str = "none"

    @classmethod
    def direct(cls) -> "ReferralInfo":
        """Attribution for a visit with no parameters and no referrer."""
        return cls()

    @classmethod
    def error(cls) -> "ReferralInfo":
        """Attribution used when the referrer could not be parsed."""
        return cls(referrer="error", source="error", medium="error", platform="error")


class TrackingRecord(BeaconModel):
    """The JSON document POSTed to the collection endpoint."""

    domain_id: str = Field(min_length=1, description="Site identifier from data-domain-id")
    url: str = NA
    referrer: str = ""
    title: str = ""
    user_agent: str = NA
    timestamp: str = Field(description="ISO-8601 UTC timestamp")
    ip: str = Field(default=NA, description="Visitor IP or 'NA'")
    device_type: DeviceType = DeviceType.NA
    screen_resolution: str = NA
    viewport_size: str = NA
    has_touch: bool = False
    language: str = NA
    platform: str = NA
    timezone: str = NA
    activity: str
    referral_info: ReferralInfo = Field(default_factory=ReferralInfo)
    t: Optional[str] = Field(default=None, description="Opaque passthrough of the 't' query parameter")

    def to_payload(self) -> Dict[str, Any]:
        """Return the camelCase, JSON-ready form of the record."""
        return self.model_dump(mode="json", by_alias=True)
