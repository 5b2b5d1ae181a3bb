"""Duplicate suppression for beacons sent from the same IP, URL and activity."""

import logging
import time
from typing import Callable, Optional

from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

FLAG_PREFIX = "tracking_"
EXPIRY_PREFIX = "tracking_exp_"
TRACKED_VALUE = "true"
DEFAULT_TTL_SECS = 24 * 60 * 60


def tracking_key(ip: str, url: str, activity: str) -> str:
    """Build the flag key for an (ip, url, activity) tuple."""
    return f"{FLAG_PREFIX}{ip}_{url}_{activity}"


def expiry_key_for(key: str) -> str:
    """Companion expiry key of a flag key."""
    return EXPIRY_PREFIX + key[len(FLAG_PREFIX):]


def flag_key_for(expiry_key: str) -> str:
    """Flag key paired with an expiry key."""
    return FLAG_PREFIX + expiry_key[len(EXPIRY_PREFIX):]


class DedupStore:
    """
    Boolean flags with a TTL on top of a key-value storage.

    A flag is written only after a beacon has been accepted by the server.
    Reads fail open: when storage is unavailable or broken the beacon is
    sent rather than silently dropped. Storage errors are logged, never raised.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage],
        clock: Callable[[], float] = time.time,
        ttl_secs: float = DEFAULT_TTL_SECS,
    ):
        """
        Initialize the dedup store.

        Args:
            storage: Backing storage, or None when storage is unavailable
            clock: Returns the current time in epoch seconds
            ttl_secs: Lifetime of a flag in seconds
        """
        self.storage = storage
        self.clock = clock
        self.ttl_secs = ttl_secs

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get(self, key: str) -> bool:
        """True iff the flag for key is set."""
        if self.storage is None:
            return False
        try:
            return self.storage.get_item(key) == TRACKED_VALUE
        except Exception as e:
            logger.warning(f"Could not read dedup flag, tracking anyway: {e}")
            return False

    def put(self, key: str, ttl_secs: Optional[float] = None) -> None:
        """Set the flag for key and its expiry timestamp."""
        if self.storage is None:
            return
        ttl = self.ttl_secs if ttl_secs is None else ttl_secs
        expires_at = self._now_ms() + int(ttl * 1000)
        try:
            # Expiry first so a stored flag always has one
            self.storage.set_item(expiry_key_for(key), str(expires_at))
            self.storage.set_item(key, TRACKED_VALUE)
        except Exception as e:
            logger.warning(f"Could not persist dedup flag: {e}")
            self._discard_flag(key)

    def _discard_flag(self, key: str) -> None:
        try:
            self.storage.remove_item(key)
        except Exception as e:
            logger.debug(f"Could not remove partial dedup flag {key!r}: {e}")

    def sweep(self) -> int:
        """
        Remove every expired flag together with its expiry key.

        Flags left without an expiry key by an interrupted write are
        removed as well.

        Returns:
            Number of entries removed
        """
        if self.storage is None:
            return 0

        now = self._now_ms()
        removed = 0
        try:
            keys = self.storage.keys()
            present = set(keys)
            for key in keys:
                if key.startswith(EXPIRY_PREFIX):
                    raw = self.storage.get_item(key)
                    try:
                        expired = now > int(raw)
                    except (TypeError, ValueError):
                        # Unreadable expiry never becomes valid again
                        expired = True
                    if expired:
                        # Flag first; a leftover expiry key is swept next time
                        self.storage.remove_item(flag_key_for(key))
                        self.storage.remove_item(key)
                        removed += 1
                elif key.startswith(FLAG_PREFIX) and expiry_key_for(key) not in present:
                    self.storage.remove_item(key)
                    removed += 1
        except Exception as e:
            logger.warning(f"Dedup cleanup stopped early: {e}")

        if removed:
            logger.debug(f"Removed {removed} expired dedup entries")
        return removed

    # Names used by the beacon flow
    def has_been_tracked(self, key: str) -> bool:
        return self.get(key)

    def mark_as_tracked(self, key: str) -> None:
        self.put(key)

    def clean_expired_entries(self) -> int:
        return self.sweep()
