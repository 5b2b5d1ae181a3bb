"""Pytest configuration and shared fixtures."""

from typing import Any, Dict, Optional
from unittest.mock import Mock

import pytest

from visit_beacon.config import BeaconConfig
from visit_beacon.host import StaticHost
from visit_beacon.storage import MemoryStorage

DESKTOP_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


class FakeClock:
    """Controllable clock returning epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_response(
    status_code: int = 200,
    json_body: Optional[Any] = None,
    content_type: Optional[str] = "application/json",
    reason: str = "OK",
) -> Mock:
    """Build a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.headers = {"content-type": content_type} if content_type else {}
    response.json.return_value = json_body if json_body is not None else {}
    return response


@pytest.fixture
def clock():
    """Fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def storage():
    """Empty in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def config():
    """Test configuration."""
    return BeaconConfig(
        collection_url="http://collector.test/api/v1/service/track",
        ip_lookup_url="http://ip.test/?format=json",
    )


@pytest.fixture
def make_host():
    """Factory for page snapshots with sensible desktop defaults."""

    def _make(**overrides: Dict[str, Any]) -> StaticHost:
        values = dict(
            url="https://shop.example.com/products?id=42",
            referrer_url="",
            page_title="Products",
            ua=DESKTOP_UA,
            screen=(1920, 1080),
            viewport=(1440, 900),
            touch=False,
            lang="en-US",
            os_platform="MacIntel",
            tz="Europe/Berlin",
            domain_id="site-123",
        )
        values.update(overrides)
        return StaticHost(**values)

    return _make
