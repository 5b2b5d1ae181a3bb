"""The beacon flow for a single page load."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .attribution import resolve_referral
from .config import BeaconConfig
from .context import PageContext, extract_page_context
from .dedup import DedupStore, tracking_key
from .enums import BeaconStatus
from .exceptions import (
    BeaconContentTypeError,
    BeaconError,
    BeaconHttpError,
    BeaconNetworkError,
    BeaconSendError,
    BeaconTimeoutError,
    MissingConfigError,
)
from .geolocation import IpLookup
from .host import DOMAIN_ID_ATTRIBUTE, Host, safe_read
from .http_client import BeaconSender
from .schemas import TrackingRecord
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass
class BeaconOutcome:
    """Result of running the beacon flow once."""

    status: BeaconStatus
    record: Optional[TrackingRecord] = None
    response_json: Optional[Dict[str, Any]] = None
    error: Optional[BeaconError] = None
    dedup_key: Optional[str] = None
    ip: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.status == BeaconStatus.SENT


def iso_timestamp(epoch_secs: float) -> str:
    """Format epoch seconds as ISO-8601 UTC with millisecond precision."""
    moment = datetime.fromtimestamp(epoch_secs, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def log_send_failure(error: BeaconSendError) -> None:
    """Log a delivery failure according to its class."""
    if isinstance(error, BeaconTimeoutError):
        logger.error(str(error))
    elif isinstance(error, BeaconHttpError):
        logger.error(f"Server error: {error}")
    elif isinstance(error, BeaconNetworkError):
        logger.error(f"Network error - check internet connection: {error}")
    elif isinstance(error, BeaconContentTypeError):
        logger.error(f"Server returned invalid response format: {error}")
    else:
        logger.error(f"Tracking request failed: {error}")


class BeaconPipeline:
    """
    Runs the beacon stages in order for one page load.

    Stages: domain id check, dedup sweep, IP lookup, dedup check, record
    assembly, send, dedup write. Each network call has its own timeout and
    no stage runs concurrently with another. ``run()`` never raises.
    """

    def __init__(
        self,
        config: BeaconConfig,
        host: Host,
        storage: Optional[KeyValueStorage] = None,
        ip_lookup: Optional[IpLookup] = None,
        sender: Optional[BeaconSender] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Beacon configuration
            host: Accessors for the page
            storage: Persistent key-value storage, None when unavailable
            ip_lookup: IP lookup client (built from config if omitted)
            sender: Beacon sender (built from config if omitted)
            clock: Returns the current time in epoch seconds
        """
        self.config = config
        self.host = host
        self.clock = clock
        self.dedup = DedupStore(storage, clock=clock, ttl_secs=config.dedup_ttl_secs)
        self.ip_lookup = ip_lookup or IpLookup(config.ip_lookup_url, timeout_secs=config.ip_lookup_timeout_secs)
        self.sender = sender or BeaconSender(config.collection_url, timeout_secs=config.beacon_timeout_secs)

    def resolve_domain_id(self) -> str:
        """Domain id from config, else from the script tag attribute."""
        domain_id = self.config.domain_id or safe_read(
            lambda: self.host.script_attribute(DOMAIN_ID_ATTRIBUTE), None
        )
        if not domain_id or not isinstance(domain_id, str):
            raise MissingConfigError("No site ID provided in the script tag.")
        return domain_id

    def build_record(self, domain_id: str, ip: str, context: PageContext) -> TrackingRecord:
        """Assemble the tracking record from the page context."""
        return TrackingRecord(
            domain_id=domain_id,
            url=context.url,
            referrer=context.referrer,
            title=context.title,
            user_agent=context.user_agent,
            timestamp=iso_timestamp(self.clock()),
            ip=ip,
            device_type=context.device_type,
            screen_resolution=context.screen_resolution,
            viewport_size=context.viewport_size,
            has_touch=context.has_touch,
            language=context.language,
            platform=context.platform,
            timezone=context.timezone,
            activity=self.config.activity,
            referral_info=resolve_referral(context.query, context.referrer),
            t=context.query.get("t"),
        )

    def run(self) -> BeaconOutcome:
        """Run every stage once and report what happened."""
        try:
            domain_id = self.resolve_domain_id()
        except MissingConfigError as e:
            logger.error(str(e))
            return BeaconOutcome(status=BeaconStatus.ABORTED, error=e)

        try:
            return self._run_stages(domain_id)
        except Exception as e:
            logger.error(f"Tracking failed unexpectedly: {e}")
            return BeaconOutcome(
                status=BeaconStatus.FAILED,
                error=e if isinstance(e, BeaconError) else BeaconError(str(e)),
            )

    def _run_stages(self, domain_id: str) -> BeaconOutcome:
        # Sweep before anything is written by this run
        self.dedup.clean_expired_entries()

        ip = self.ip_lookup.fetch_ip()

        context = extract_page_context(self.host)
        key = tracking_key(ip, context.url, self.config.activity)
        if self.dedup.has_been_tracked(key):
            logger.info(f"Already tracked {context.url} for {ip}, skipping")
            return BeaconOutcome(status=BeaconStatus.SKIPPED_DUPLICATE, dedup_key=key, ip=ip)

        record = self.build_record(domain_id, ip, context)

        try:
            response_json = self.sender.send(record)
        except BeaconSendError as e:
            log_send_failure(e)
            return BeaconOutcome(status=BeaconStatus.FAILED, record=record, error=e, dedup_key=key, ip=ip)

        logger.info(f"Tracking successful: {response_json}")
        self.dedup.mark_as_tracked(key)
        return BeaconOutcome(
            status=BeaconStatus.SENT,
            record=record,
            response_json=response_json,
            dedup_key=key,
            ip=ip,
        )

    def close(self) -> None:
        """Release HTTP sessions."""
        self.ip_lookup.close()
        self.sender.close()
