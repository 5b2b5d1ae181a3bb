"""Host page accessors.

The beacon never talks to the page directly. Everything it reads about the
page and the visitor goes through a ``Host``, so an embedding application,
the CLI and the tests can each supply their own.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DOMAIN_ID_ATTRIBUTE = "data-domain-id"


def safe_read(accessor: Callable[[], Optional[T]], fallback: T) -> T:
    """
    Call a host accessor and degrade to a fallback value.

    Args:
        accessor: Zero-argument callable reading one host signal
        fallback: Value returned when the accessor raises or returns None

    Returns:
        The accessor's value, or the fallback
    """
    try:
        value = accessor()
    except Exception as e:
        logger.debug(f"Host accessor {getattr(accessor, '__name__', accessor)!r} failed: {e}")
        return fallback
    if value is None:
        return fallback
    return value


class Host(ABC):
    """Accessors for the page the beacon runs in. Any of them may raise or return None."""

    @abstractmethod
    def script_attribute(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    def location_href(self) -> Optional[str]:
        pass

    @abstractmethod
    def referrer(self) -> Optional[str]:
        pass

    @abstractmethod
    def title(self) -> Optional[str]:
        pass

    @abstractmethod
    def user_agent(self) -> Optional[str]:
        pass

    @abstractmethod
    def screen_size(self) -> Optional[Tuple[int, int]]:
        pass

    @abstractmethod
    def viewport_size(self) -> Optional[Tuple[int, int]]:
        pass

    @abstractmethod
    def has_touch(self) -> Optional[bool]:
        pass

    @abstractmethod
    def language(self) -> Optional[str]:
        pass

    @abstractmethod
    def platform(self) -> Optional[str]:
        pass

    @abstractmethod
    def timezone(self) -> Optional[str]:
        pass


def parse_size(value: Any) -> Optional[Tuple[int, int]]:
    """Parse a size given as 'WxH', a [w, h] pair or a {'width', 'height'} mapping."""
    if value is None:
        return None
    try:
        if isinstance(value, str):
            width, height = value.lower().split("x")
        elif isinstance(value, dict):
            width, height = value["width"], value["height"]
        else:
            width, height = value
        return int(width), int(height)
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid size {value!r} (expected WxH): {e}") from e


@dataclass
class StaticHost(Host):
    """A fixed snapshot of a page, e.g. loaded from JSON or built in tests."""

    url: Optional[str] = None
    referrer_url: Optional[str] = None
    page_title: Optional[str] = None
    ua: Optional[str] = None
    screen: Optional[Tuple[int, int]] = None
    viewport: Optional[Tuple[int, int]] = None
    touch: Optional[bool] = None
    lang: Optional[str] = None
    os_platform: Optional[str] = None
    tz: Optional[str] = None
    domain_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StaticHost":
        """Create a snapshot from a dict using either camelCase or snake_case keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return None

        touch = pick("hasTouch", "has_touch", "touch")
        return cls(
            url=pick("url", "href"),
            referrer_url=pick("referrer"),
            page_title=pick("title"),
            ua=pick("userAgent", "user_agent"),
            screen=parse_size(pick("screen", "screenResolution", "screen_resolution")),
            viewport=parse_size(pick("viewport", "viewportSize", "viewport_size")),
            touch=bool(touch) if touch is not None else None,
            lang=pick("language"),
            os_platform=pick("platform"),
            tz=pick("timezone"),
            domain_id=pick("domainId", "domain_id", DOMAIN_ID_ATTRIBUTE),
        )

    def script_attribute(self, name: str) -> Optional[str]:
        if name == DOMAIN_ID_ATTRIBUTE:
            return self.domain_id
        return None

    def location_href(self) -> Optional[str]:
        return self.url

    def referrer(self) -> Optional[str]:
        return self.referrer_url

    def title(self) -> Optional[str]:
        return self.page_title

    def user_agent(self) -> Optional[str]:
        return self.ua

    def screen_size(self) -> Optional[Tuple[int, int]]:
        return self.screen

    def viewport_size(self) -> Optional[Tuple[int, int]]:
        return self.viewport

    def has_touch(self) -> Optional[bool]:
        return self.touch

    def language(self) -> Optional[str]:
        return self.lang

    def platform(self) -> Optional[str]:
        return self.os_platform

    def timezone(self) -> Optional[str]:
        return self.tz


def read_size(accessor: Callable[[], Optional[Tuple[int, int]]]) -> Tuple[int, int]:
    """Read a (width, height) pair from a host accessor, with (0, 0) on any failure."""
    value = safe_read(accessor, (0, 0))
    try:
        width, height = value
        width, height = int(width), int(height)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring malformed size {value!r}")
        return 0, 0
    return max(width, 0), max(height, 0)
