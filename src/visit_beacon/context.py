"""Page and environment signals read from the host."""

from dataclasses import dataclass, field
from typing import Dict, Tuple
from urllib.parse import parse_qs, urlsplit

from .device import detect_device_type
from .enums import NA, DeviceType
from .host import Host, read_size, safe_read


@dataclass
class PageContext:
    """Everything the beacon reports about the page and the device."""

    url: str = NA
    referrer: str = ""
    title: str = ""
    user_agent: str = NA
    screen: Tuple[int, int] = (0, 0)
    viewport: Tuple[int, int] = (0, 0)
    has_touch: bool = False
    language: str = NA
    platform: str = NA
    timezone: str = NA
    device_type: DeviceType = DeviceType.NA
    query: Dict[str, str] = field(default_factory=dict)

    @property
    def screen_resolution(self) -> str:
        return format_size(self.screen)

    @property
    def viewport_size(self) -> str:
        return format_size(self.viewport)


def format_size(size: Tuple[int, int]) -> str:
    """Render a size as 'WxH', or 'NA' when either dimension is unknown."""
    width, height = size
    if width > 0 and height > 0:
        return f"{width}x{height}"
    return NA


def query_params(url: str) -> Dict[str, str]:
    """First value of each query parameter of a URL; empty on malformed URLs."""
    try:
        query = urlsplit(url).query
    except ValueError:
        return {}
    return {key: values[0] for key, values in parse_qs(query, keep_blank_values=True).items()}


def _read_str(accessor, fallback: str) -> str:
    value = safe_read(accessor, fallback)
    return value if isinstance(value, str) else fallback


def extract_page_context(host: Host) -> PageContext:
    """Read every signal from the host, substituting fallbacks for failed reads."""
    url = _read_str(host.location_href, NA)
    user_agent = _read_str(host.user_agent, "")
    screen = read_size(host.screen_size)
    has_touch = bool(safe_read(host.has_touch, False))

    return PageContext(
        url=url,
        referrer=_read_str(host.referrer, ""),
        title=_read_str(host.title, ""),
        user_agent=user_agent or NA,
        screen=screen,
        viewport=read_size(host.viewport_size),
        has_touch=has_touch,
        language=_read_str(host.language, NA),
        platform=_read_str(host.platform, NA),
        timezone=_read_str(host.timezone, NA),
        device_type=detect_device_type(host),
        query=query_params(url) if url != NA else {},
    )
