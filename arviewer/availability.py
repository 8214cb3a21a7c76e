"""
AR availability resolution.

Decides, per catalog entry and browser, whether the AR button is live and
what it says.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from utils.formatting import encode_uri
from utils.validation import CatalogEntry

from .environment import CapabilityVector


class UnavailableReason(str, Enum):
    MISSING_IOS_ASSET = "missing_ios_asset"
    MISSING_ANDROID_ASSET = "missing_android_asset"
    IN_APP_BROWSER = "in_app_browser"
    UNSUPPORTED_BROWSER = "unsupported_browser"
    NO_ASSET = "no_asset"


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    label: str
    hint: Optional[str] = None
    fallback_href: Optional[str] = None
    reason: Optional[UnavailableReason] = None


def unavailable(reason: UnavailableReason, label: str, hint: str) -> AvailabilityResult:
    return AvailabilityResult(available=False, label=label, hint=hint, reason=reason)


def resolve_ios(entry: CatalogEntry, env: CapabilityVector) -> AvailabilityResult:
    if not entry.model_path:
        return unavailable(
            UnavailableReason.MISSING_IOS_ASSET,
            "Missing USDZ",
            "Add a .usdz file with the same name to model/ to open it on iOS.",
        )
    if not env.supports_quick_look:
        if env.in_app_browser:
            return unavailable(
                UnavailableReason.IN_APP_BROWSER,
                "Open in Safari",
                "The LINE in-app browser cannot start AR. Use the menu to open this page in Safari.",
            )
        return unavailable(
            UnavailableReason.UNSUPPORTED_BROWSER,
            "Quick Look unsupported",
            "Switch to Safari to use Apple Quick Look.",
        )
    return AvailabilityResult(
        available=True,
        label="Open AR (iOS)",
        fallback_href=encode_uri(entry.model_path),
    )


def resolve_android(entry: CatalogEntry, env: CapabilityVector) -> AvailabilityResult:
    if not entry.android_model_path:
        return unavailable(
            UnavailableReason.MISSING_ANDROID_ASSET,
            "Missing GLB",
            "Add a .glb file with the same name to support Android Scene Viewer.",
        )
    if not env.supports_scene_viewer:
        if env.in_app_browser:
            return unavailable(
                UnavailableReason.IN_APP_BROWSER,
                "Open in Chrome",
                "The LINE in-app browser cannot open Scene Viewer. Use the menu to open this page in Chrome.",
            )
        return unavailable(
            UnavailableReason.UNSUPPORTED_BROWSER,
            "Browser lacks AR",
            "Open this page in Chrome on Android (ARCore required).",
        )
    # The intent URL is built at launch time
    return AvailabilityResult(available=True, label="Open AR (Android)")


def resolve_other(entry: CatalogEntry) -> AvailabilityResult:
    fallback_path = entry.model_path or entry.android_model_path
    if not fallback_path:
        return unavailable(
            UnavailableReason.NO_ASSET,
            "No file available",
            "Add a USDZ or GLB file.",
        )
    return AvailabilityResult(
        available=True,
        label="Download model",
        fallback_href=encode_uri(fallback_path),
    )


def resolve_availability(entry: CatalogEntry, env: CapabilityVector) -> AvailabilityResult:
    """
    Resolve AR availability for one entry.

    The platform branch is chosen first, then asset presence, then viewer
    support. There is no partially available state.
    """
    if env.is_ios:
        return resolve_ios(entry, env)
    if env.is_android:
        return resolve_android(entry, env)
    return resolve_other(entry)
