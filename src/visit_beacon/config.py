"""Configuration management for the visit beacon."""

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .dedup import DEFAULT_TTL_SECS
from .enums import DEFAULT_ACTIVITY
from .geolocation import DEFAULT_IP_LOOKUP_URL
from .http_client import DEFAULT_COLLECTION_URL

STORAGE_FILENAME = "storage.json"


@dataclass
class BeaconConfig:
    """Configuration for one beacon invocation."""

    collection_url: str = DEFAULT_COLLECTION_URL
    ip_lookup_url: str = DEFAULT_IP_LOOKUP_URL
    storage_path: Optional[Path] = None
    domain_id: Optional[str] = None
    activity: str = DEFAULT_ACTIVITY
    beacon_timeout_secs: float = 10.0
    ip_lookup_timeout_secs: float = 5.0
    dedup_ttl_secs: float = DEFAULT_TTL_SECS
    log_file: Optional[Path] = None
    dev: bool = False


def default_storage_path(dev: bool) -> Path:
    """Get the default storage file based on platform and dev mode."""
    if dev:
        # Development mode: use repo-local storage
        return Path(".visit_beacon") / STORAGE_FILENAME

    system = platform.system().lower()

    if system == "windows":
        # Windows: %LOCALAPPDATA%\VisitBeacon\storage.json
        local_app_data = os.getenv("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(local_app_data) / "VisitBeacon" / STORAGE_FILENAME

    # Linux/macOS: ~/.local/state/visit-beacon/storage.json
    # Fallback to ~/.local/share/visit-beacon if state doesn't exist
    home = Path.home()
    local_state = home / ".local" / "state"
    if local_state.exists():
        return local_state / "visit-beacon" / STORAGE_FILENAME
    return home / ".local" / "share" / "visit-beacon" / STORAGE_FILENAME


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


def read_from_env() -> BeaconConfig:
    """Read configuration from environment variables."""
    dev = os.getenv("VISIT_BEACON_DEV", "false").lower() == "true"

    storage_path_str = os.getenv("VISIT_BEACON_STORAGE_PATH")
    storage_path = Path(storage_path_str) if storage_path_str else default_storage_path(dev)

    log_file_str = os.getenv("VISIT_BEACON_LOG_FILE")

    return BeaconConfig(
        collection_url=os.getenv("VISIT_BEACON_COLLECTION_URL", DEFAULT_COLLECTION_URL),
        ip_lookup_url=os.getenv("VISIT_BEACON_IP_LOOKUP_URL", DEFAULT_IP_LOOKUP_URL),
        storage_path=storage_path,
        domain_id=os.getenv("VISIT_BEACON_DOMAIN_ID") or None,
        activity=os.getenv("VISIT_BEACON_ACTIVITY") or DEFAULT_ACTIVITY,
        beacon_timeout_secs=_env_float("VISIT_BEACON_TIMEOUT", 10.0),
        ip_lookup_timeout_secs=_env_float("VISIT_BEACON_IP_TIMEOUT", 5.0),
        dedup_ttl_secs=_env_float("VISIT_BEACON_DEDUP_TTL", DEFAULT_TTL_SECS),
        log_file=Path(log_file_str) if log_file_str else None,
        dev=dev,
    )


def get_config() -> BeaconConfig:
    """Get beacon configuration with precedence: environment -> defaults."""
    return read_from_env()
