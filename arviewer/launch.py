"""
AR launch targets.

Builds the navigation target for an entry whose AR availability has
already been resolved as available.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from utils.formatting import encode_uri, encode_uri_component, form_urlencode
from utils.validation import CatalogEntry

from .availability import AvailabilityResult
from .environment import CapabilityVector, Platform

SCENE_VIEWER_URL = "intent://arvr.google.com/scene-viewer/1.0"
SCENE_VIEWER_PACKAGE = "com.google.ar.core"


class LaunchError(Exception):
    """Error while building an AR launch target."""
    pass


class CallerContractViolation(LaunchError):
    """A launch was requested for an entry that is not available."""
    pass


@dataclass(frozen=True)
class LaunchTarget:
    """Where the page should navigate to start AR."""
    platform: Platform
    href: str
    target: str = "_self"
    features: Optional[str] = None


def build_scene_viewer_intent(model_path: str, page_url: str, title: Optional[str] = None) -> str:
    """
    Build an Android Scene Viewer intent URL.

    Args:
        model_path: GLB path, relative to the page
        page_url: Current page URL, used to absolutize the model and as the
                  browser fallback when ARCore is not installed
        title: Optional title shown by Scene Viewer

    Returns:
        intent:// URL
    """
    absolute_url = urljoin(page_url, encode_uri(model_path))
    params = [("file", absolute_url), ("mode", "ar_preferred")]
    if title:
        params.append(("title", title))

    return (
        f"{SCENE_VIEWER_URL}?{form_urlencode(params)}"
        f"#Intent;scheme=https;package={SCENE_VIEWER_PACKAGE};"
        f"action=android.intent.action.VIEW;"
        f"S.browser_fallback_url={encode_uri_component(page_url)};end;"
    )


def build_launch_target(
    result: AvailabilityResult,
    entry: CatalogEntry,
    env: CapabilityVector,
    page_url: str,
    title: Optional[str] = None,
) -> LaunchTarget:
    """
    Build the launch target for an available entry.

    Args:
        result: Output of resolve_availability for this entry and env
        entry: The catalog entry
        env: Session capability vector
        page_url: Current page URL
        title: Display title passed to Scene Viewer

    Returns:
        LaunchTarget for the platform
    """
    if not result.available:
        raise CallerContractViolation(
            f"Cannot launch {entry.id!r}: AR is not available ({result.label})"
        )

    if env.is_ios:
        if not entry.model_path:
            raise CallerContractViolation(f"Cannot launch {entry.id!r} on iOS without a USDZ file")
        return LaunchTarget(platform=Platform.IOS, href=encode_uri(entry.model_path))

    if env.is_android:
        if not entry.android_model_path:
            raise CallerContractViolation(f"Cannot launch {entry.id!r} on Android without a GLB file")
        return LaunchTarget(
            platform=Platform.ANDROID,
            href=build_scene_viewer_intent(entry.android_model_path, page_url, title),
        )

    path = entry.model_path or entry.android_model_path
    if not path:
        raise CallerContractViolation(f"Cannot launch {entry.id!r}: no model file")
    return LaunchTarget(
        platform=Platform.OTHER,
        href=encode_uri(path),
        target="_blank",
        features="noopener",
    )
