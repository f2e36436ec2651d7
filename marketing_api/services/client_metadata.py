"""
Coarse client metadata derived from the User-Agent header.

Substring matching only: good enough for the device/source breakdowns
on the analytics endpoint, not for feature detection.
"""

from dataclasses import dataclass
from typing import Optional

UNKNOWN = "unknown"

# First match wins; Edge and Opera UAs also contain "chrome",
# and Chrome UAs also contain "safari"
BROWSERS = (
    ("edg", "Edge"),
    ("opr", "Opera"),
    ("opera", "Opera"),
    ("firefox", "Firefox"),
    ("chrome", "Chrome"),
    ("safari", "Safari"),
)

# iOS UAs say "like Mac OS X" and Android UAs say "Linux"
OPERATING_SYSTEMS = (
    ("iphone", "iOS"),
    ("ipad", "iOS"),
    ("android", "Android"),
    ("windows", "Windows"),
    ("mac", "macOS"),
    ("linux", "Linux"),
)

TABLET_MARKERS = ("ipad", "tablet")
MOBILE_MARKERS = ("mobile", "iphone", "android")


@dataclass(frozen=True)
class ClientMetadata:
    browser: str = UNKNOWN
    os: str = UNKNOWN
    device: str = "desktop"


def _first_match(ua: str, table) -> str:
    for marker, label in table:
        if marker in ua:
            return label
    return UNKNOWN


def parse_user_agent(user_agent: Optional[str]) -> ClientMetadata:
    if not user_agent or user_agent == UNKNOWN:
        return ClientMetadata()

    ua = user_agent.lower()
    if any(marker in ua for marker in TABLET_MARKERS):
        device = "tablet"
    elif any(marker in ua for marker in MOBILE_MARKERS):
        device = "mobile"
    else:
        device = "desktop"

    return ClientMetadata(
        browser=_first_match(ua, BROWSERS),
        os=_first_match(ua, OPERATING_SYSTEMS),
        device=device,
    )
