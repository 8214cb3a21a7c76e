"""Status line, badges and share links for the gallery page."""

from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional
from urllib.parse import parse_qsl, urlsplit, urlunsplit

from utils.formatting import form_urlencode, parse_iso_timestamp
from utils.validation import CatalogEntry

from .environment import CapabilityVector

UNKNOWN_DATE = "unknown"


@dataclass(frozen=True)
class StatusMessage:
    text: str
    tone: str = "default"


@dataclass(frozen=True)
class Badge:
    label: str
    tone: str


def format_date(value: Optional[str], tz: Optional[tzinfo] = None) -> str:
    """Format an ISO timestamp as "YYYY/MM/DD HH:MM" in tz (local time by default)."""
    parsed = parse_iso_timestamp(value)
    if parsed is None:
        return UNKNOWN_DATE
    return parsed.astimezone(tz).strftime("%Y/%m/%d %H:%M")


def environment_hint(env: CapabilityVector) -> str:
    """Hint appended to the status line when this browser cannot start AR."""
    if env.is_ios and env.in_app_browser:
        return "The LINE in-app browser cannot start AR, switch to Safari."
    if env.is_ios and not env.supports_quick_look:
        return "Use Safari on iOS to enable Quick Look."
    if env.is_android and env.in_app_browser:
        return "The LINE in-app browser cannot use AR, choose \"Open in Chrome\"."
    if env.is_android and not env.supports_scene_viewer:
        return "Use Chrome with ARCore Scene Viewer support."
    return ""


def build_status_message(
    total: int,
    generated_at: Optional[str],
    env: CapabilityVector,
    tz: Optional[tzinfo] = None,
) -> StatusMessage:
    base = f"{total} models. Last updated: {format_date(generated_at, tz)}"
    hint = environment_hint(env)
    return StatusMessage(f"{base} | {hint}" if hint else base)


def platform_badge(entry: CatalogEntry) -> Optional[Badge]:
    """Which platforms an entry covers, None if it covers neither."""
    if entry.model_path and entry.android_model_path:
        return Badge("iOS & Android", "info")
    if entry.model_path:
        return Badge("iOS / USDZ", "warning")
    if entry.android_model_path:
        return Badge("Android / GLB", "warning")
    return None


def build_share_url(page_url: str, model_id: str) -> str:
    """Page URL with the model query parameter set to model_id."""
    parts = urlsplit(page_url)
    params = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "model"]
    params.append(("model", model_id))
    return urlunsplit(parts._replace(query=form_urlencode(params)))


def focus_id_from_url(page_url: str) -> str:
    """The model id requested through ?model=, or an empty string."""
    for key, value in parse_qsl(urlsplit(page_url).query, keep_blank_values=True):
        if key == "model":
            return value
    return ""
