"""Traffic source attribution from query parameters and the referrer."""

import logging
import re
from typing import Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import parse_qs, urlsplit

from .enums import Medium
from .schemas import ReferralInfo

logger = logging.getLogger(__name__)

QueryLike = Union[str, Mapping[str, str], None]

# (keyword, platform); full names are tried before abbreviations so that
# e.g. "newsletter" never falls through to the two-letter "li".
SOURCE_KEYWORDS: List[Tuple[str, str]] = [
    ("facebook", "Facebook"),
    ("youtube", "YouTube"),
    ("linkedin", "LinkedIn"),
    ("twitter", "Twitter/X"),
    ("x.com", "Twitter/X"),
    ("instagram", "Instagram"),
    ("tiktok", "TikTok"),
    ("pinterest", "Pinterest"),
    ("snapchat", "Snapchat"),
    ("reddit", "Reddit"),
    ("whatsapp", "WhatsApp"),
    ("telegram", "Telegram"),
    ("google", "Google"),
    ("bing", "Bing"),
    ("yahoo", "Yahoo"),
    ("duckduckgo", "DuckDuckGo"),
    ("email", "Email"),
    ("newsletter", "Email"),
]

SOURCE_ABBREVIATIONS: List[Tuple[str, str]] = [
    ("fb", "Facebook"),
    ("yt", "YouTube"),
    ("li", "LinkedIn"),
    ("ig", "Instagram"),
]

# (domains, source, platform, medium); a domain matches itself and its subdomains
REFERRER_DOMAINS: List[Tuple[Tuple[str, ...], str, str, Medium]] = [
    (("facebook.com",), "facebook", "Facebook", Medium.SOCIAL),
    (("youtube.com", "youtu.be"), "youtube", "YouTube", Medium.SOCIAL),
    (("linkedin.com",), "linkedin", "LinkedIn", Medium.SOCIAL),
    (("twitter.com", "x.com"), "twitter", "Twitter/X", Medium.SOCIAL),
    (("instagram.com",), "instagram", "Instagram", Medium.SOCIAL),
    (("tiktok.com",), "tiktok", "TikTok", Medium.SOCIAL),
    (("pinterest.com",), "pinterest", "Pinterest", Medium.SOCIAL),
    (("reddit.com",), "reddit", "Reddit", Medium.SOCIAL),
    (("snapchat.com",), "snapchat", "Snapchat", Medium.SOCIAL),
    (("bing.com",), "bing", "Bing", Medium.ORGANIC),
    (("yahoo.com",), "yahoo", "Yahoo", Medium.ORGANIC),
    (("duckduckgo.com",), "duckduckgo", "DuckDuckGo", Medium.ORGANIC),
]

EMAIL_HOST_MARKERS = ("mail.", "outlook.", "gmail.")

# google.com, www.google.co.uk, news.google.de, ...
GOOGLE_HOST_PATTERN = re.compile(r"(^|\.)google\.[a-z.]+$")


def classify_source(source: str) -> str:
    """
    Map a free-form source value to a platform name.

    Args:
        source: Value of utm_source, ref or source

    Returns:
        Platform name, or the lowercased source when nothing matches
    """
    lowered = (source or "").lower()
    for keyword, platform in SOURCE_KEYWORDS:
        if keyword in lowered:
            return platform
    for keyword, platform in SOURCE_ABBREVIATIONS:
        if keyword in lowered:
            return platform
    return lowered


def _matches_domain(hostname: str, domain: str) -> bool:
    return hostname == domain or hostname.endswith("." + domain)


def classify_referrer_host(hostname: str) -> Tuple[str, str, str]:
    """
    Classify a referrer hostname.

    Returns:
        (source, medium, platform)
    """
    hostname = hostname.lower().rstrip(".")
    bare = hostname[4:] if hostname.startswith("www.") else hostname

    # Webmail before search engines so mail.google.com is not organic search
    if any(marker in hostname for marker in EMAIL_HOST_MARKERS):
        return "email", Medium.EMAIL.value, "Email"

    for domains, source, platform, medium in REFERRER_DOMAINS:
        if any(_matches_domain(hostname, domain) for domain in domains):
            return source, medium.value, platform

    if GOOGLE_HOST_PATTERN.search(hostname):
        return "google", Medium.ORGANIC.value, "Google"

    return bare, Medium.REFERRAL.value, bare.split(".")[0]


def parse_query(query: QueryLike) -> Dict[str, str]:
    """Flatten a query string or mapping to first-value-wins string parameters."""
    if not query:
        return {}
    if isinstance(query, Mapping):
        return {str(k): str(v) for k, v in query.items() if v is not None}
    parsed = parse_qs(query.lstrip("?"), keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def _referrer_hostname(referrer: str) -> str:
    parts = urlsplit(referrer)
    hostname = parts.hostname
    if not parts.scheme or not hostname:
        raise ValueError(f"Malformed referrer URL: {referrer!r}")
    return hostname


def resolve_referral(query: QueryLike, referrer: Optional[str]) -> ReferralInfo:
    """
    Resolve attribution for a visit.

    Precedence: utm_source, then ref, then source, then the referrer
    hostname, then direct. A malformed referrer yields ReferralInfo.error().

    Args:
        query: Page query string (with or without '?') or parsed mapping
        referrer: document.referrer of the page, may be empty

    Returns:
        ReferralInfo for the visit
    """
    params = parse_query(query)
    referrer = (referrer or "").strip()
    raw_referrer = referrer or "direct"

    try:
        utm_source = params.get("utm_source")
        if utm_source:
            return ReferralInfo(
                referrer=raw_referrer,
                source=utm_source,
                medium=params.get("utm_medium") or "unknown",
                campaign=params.get("utm_campaign") or "unknown",
                platform=classify_source(utm_source),
                utm_source=utm_source,
                utm_medium=params.get("utm_medium") or "none",
                utm_campaign=params.get("utm_campaign") or "none",
                utm_content=params.get("utm_content") or "none",
                utm_term=params.get("utm_term") or "none",
            )

        for name in ("ref", "source"):
            value = params.get(name)
            if value:
                return ReferralInfo(
                    referrer=raw_referrer,
                    source=value,
                    medium=Medium.REFERRAL.value,
                    platform=classify_source(value),
                )

        if referrer:
            source, medium, platform = classify_referrer_host(_referrer_hostname(referrer))
            return ReferralInfo(referrer=referrer, source=source, medium=medium, platform=platform)

    except ValueError as e:
        logger.warning(f"Could not parse referral info: {e}")
        return ReferralInfo.error()

    return ReferralInfo.direct()
