from typing import List, Optional

from dashboard.core.properties import CLIENT_LIBRARY, EXPLICIT_PLATFORM, OPERATING_SYSTEM, UNKNOWN
from dashboard.models.events import Event

ALL_PLATFORMS = "all"
WEB = "web"
IOS = "iOS"
IPADOS = "iPadOS"
MACOS = "macOS"
VISIONOS = "visionOS"

MOBILE = "mobile"
PLATFORM_GROUPS = (MOBILE, MACOS, WEB)
SEGMENTS = (IOS, WEB, MACOS, VISIONOS, UNKNOWN)


def platform_of(event: Event) -> Optional[str]:
    """Resolve the single platform an event came from, or None when no signal is set."""
    properties = event.properties
    explicit = EXPLICIT_PLATFORM.read(properties)
    os_name = OPERATING_SYSTEM.read(properties)

    if CLIENT_LIBRARY.read(properties) == WEB or explicit == WEB:
        return WEB
    if os_name == IPADOS or explicit == IPADOS:
        return IPADOS
    if os_name == IOS or explicit == IOS:
        return IOS
    if os_name == MACOS or explicit == MACOS:
        return MACOS
    if os_name == VISIONOS or explicit == VISIONOS:
        return VISIONOS
    return None


def matches_platform(event: Event, platform: str) -> bool:
    resolved = platform_of(event)
    if resolved is None:
        return False
    if platform == IOS:
        return resolved in (IOS, IPADOS)
    return resolved == platform


def filter_by_platform(events: List[Event], platform: str) -> List[Event]:
    if platform == ALL_PLATFORMS:
        return events
    return [event for event in events if matches_platform(event, platform)]


def platform_group(event: Event) -> Optional[str]:
    resolved = platform_of(event)
    if resolved in (IOS, IPADOS, VISIONOS):
        return MOBILE
    return resolved


def platform_segment(event: Event) -> str:
    resolved = platform_of(event)
    if resolved is None:
        return UNKNOWN
    if resolved == IPADOS:
        return IOS
    return resolved
