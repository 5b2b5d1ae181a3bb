"""Command-line interface for the visit beacon."""

import argparse
import json
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import BeaconConfig, read_from_env
from .host import StaticHost, parse_size


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="visit-beacon",
        description="Visit Beacon - report one page visit to a collection endpoint"
    )

    # Page snapshot
    page = parser.add_argument_group("page snapshot")
    page.add_argument(
        "--host-file",
        type=Path,
        help="JSON file describing the page (url, referrer, userAgent, screen, ...)"
    )
    page.add_argument("--domain-id", help="Site identifier (the script tag's data-domain-id)")
    page.add_argument("--url", help="Full page URL including query string")
    page.add_argument("--referrer", help="Referrer of the page")
    page.add_argument("--title", help="Page title")
    page.add_argument("--user-agent", help="Browser user agent string")
    page.add_argument("--screen", help="Screen size as WxH (e.g. 1920x1080)")
    page.add_argument("--viewport", help="Viewport size as WxH")
    page.add_argument("--touch", action="store_true", default=None, help="Device supports touch")
    page.add_argument("--language", help="Browser language (e.g. en-US)")
    page.add_argument("--platform", help="Navigator platform (e.g. MacIntel)")
    page.add_argument("--timezone", help="IANA timezone (e.g. Europe/Berlin)")

    # Configuration overrides
    parser.add_argument("--collection-url", help="Collection endpoint URL")
    parser.add_argument("--ip-lookup-url", help="IP lookup service URL")
    parser.add_argument("--activity", help="Activity tag reported with the beacon (default: page_visit)")
    parser.add_argument("--storage-path", type=Path, help="Override dedup storage file path")
    parser.add_argument(
        "--no-storage",
        action="store_true",
        help="Run without persisted dedup state"
    )
    parser.add_argument("--beacon-timeout", type=float, help="Collection request timeout in seconds (default: 10.0)")
    parser.add_argument("--ip-timeout", type=float, help="IP lookup timeout in seconds (default: 5.0)")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Enable development mode (verbose logging, repo-local storage)"
    )

    return parser.parse_args(argv)


def build_config(ns: argparse.Namespace) -> BeaconConfig:
    """Build BeaconConfig from parsed arguments on top of environment variables."""
    cfg = read_from_env()

    overrides = {
        "collection_url": ns.collection_url,
        "ip_lookup_url": ns.ip_lookup_url,
        "activity": ns.activity,
        "storage_path": ns.storage_path,
        "beacon_timeout_secs": ns.beacon_timeout,
        "ip_lookup_timeout_secs": ns.ip_timeout,
        "log_file": ns.log_file,
    }
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})

    if ns.dev:
        cfg = replace(cfg, dev=True)
    if ns.no_storage:
        cfg = replace(cfg, storage_path=None)

    if cfg.beacon_timeout_secs <= 0 or cfg.ip_lookup_timeout_secs <= 0:
        raise ValueError("Timeouts must be positive")

    return cfg


def build_host(ns: argparse.Namespace) -> StaticHost:
    """Build the page snapshot from --host-file, then apply individual flags."""
    host = StaticHost()
    if ns.host_file:
        if not ns.host_file.is_file():
            raise ValueError(f"File not found: {ns.host_file}")
        with ns.host_file.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Host file must contain a JSON object: {ns.host_file}")
        host = StaticHost.from_dict(data)

    flags = {
        "domain_id": ns.domain_id,
        "url": ns.url,
        "referrer_url": ns.referrer,
        "page_title": ns.title,
        "ua": ns.user_agent,
        "screen": parse_size(ns.screen),
        "viewport": parse_size(ns.viewport),
        "touch": ns.touch,
        "lang": ns.language,
        "os_platform": ns.platform,
        "tz": ns.timezone,
    }
    return replace(host, **{k: v for k, v in flags.items() if v is not None})
