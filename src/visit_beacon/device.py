"""Device type detection from user agent and screen size."""

import logging
import re
from typing import Optional

from .enums import DeviceType
from .host import Host, read_size, safe_read

logger = logging.getLogger(__name__)

MOBILE_PATTERN = re.compile(r"mobile|android|iphone|ipod|blackberry|iemobile|opera mini", re.IGNORECASE)
TABLET_PATTERN = re.compile(r"tablet|ipad|playbook|silk", re.IGNORECASE)

PHONE_MAX_DIMENSION = 768
TABLET_MAX_DIMENSION = 1024
TOUCH_TABLET_MAX_DIMENSION = 1366


def classify_device(
    user_agent: Optional[str],
    screen_width: int = 0,
    screen_height: int = 0,
    has_touch: bool = False,
) -> DeviceType:
    """
    Map user agent and screen dimensions to a device type.

    Args:
        user_agent: Raw user agent string, or None when unavailable
        screen_width: Screen width in CSS pixels (0 when unknown)
        screen_height: Screen height in CSS pixels (0 when unknown)
        has_touch: Whether the device reports touch support

    Returns:
        The first matching DeviceType
    """
    ua = (user_agent or "").lower()
    max_dimension = max(screen_width, screen_height, 0)
    min_dimension = min(screen_width, screen_height) if max_dimension > 0 else 0

    if not ua and max_dimension <= 0:
        return DeviceType.NA

    if MOBILE_PATTERN.search(ua):
        return DeviceType.PHONE

    if TABLET_PATTERN.search(ua):
        return DeviceType.TABLET

    # Android without "mobile" is a tablet; unreachable after the mobile check
    # but kept so the rule order stays explicit.
    if "android" in ua and "mobile" not in ua:
        return DeviceType.TABLET

    # Screen size rules only apply when the screen could be read
    if max_dimension > 0:
        if max_dimension <= PHONE_MAX_DIMENSION:
            return DeviceType.PHONE
        if max_dimension <= TABLET_MAX_DIMENSION and min_dimension <= PHONE_MAX_DIMENSION:
            return DeviceType.TABLET
        if has_touch and max_dimension <= TOUCH_TABLET_MAX_DIMENSION:
            return DeviceType.TABLET

    return DeviceType.PC


def detect_device_type(host: Host) -> DeviceType:
    """Classify the device behind a host. Never raises."""
    user_agent = safe_read(host.user_agent, None)
    if not isinstance(user_agent, str):
        user_agent = None
    width, height = read_size(host.screen_size)
    has_touch = bool(safe_read(host.has_touch, False))
    device = classify_device(user_agent, width, height, has_touch)
    logger.debug(f"Device classified as {device.value}")
    return device
