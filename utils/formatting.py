"""
Formatting helpers shared by the catalog builder and the AR viewer.

These mirror what browsers do for the same operations (encodeURI,
encodeURIComponent, URLSearchParams, Date.toISOString) so that paths and
URLs written at build time match what the gallery page produces at run time.
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from datetime import datetime, timezone
from typing import Iterable, Optional, Tuple
from urllib.parse import quote, quote_plus

SIZE_UNITS = ["B", "KB", "MB", "GB"]

# Characters encodeURI leaves alone on top of quote()'s always-safe set
URI_SAFE = ";,/?:@&=+$!*'()#"
URI_COMPONENT_SAFE = "!*'()"


def format_file_size(num_bytes: int) -> str:
    """
    Format a byte count for display.

    Uses base 1024 up to GB. Values of 10 or more (and plain bytes) are
    shown without decimals, smaller values with one decimal.

    Args:
        num_bytes: Size in bytes

    Returns:
        Human readable size such as "2 KB" or "1.5 MB"
    """
    if num_bytes <= 0:
        return "0 B"

    exponent = min(int(math.floor(math.log(num_bytes) / math.log(1024))), len(SIZE_UNITS) - 1)
    value = num_bytes / 1024 ** exponent
    # Ties round up, like JS toFixed()
    if value >= 10 or exponent == 0:
        text = str(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    else:
        text = str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
    return f"{text} {SIZE_UNITS[exponent]}"


def prettify_name(base_name: str) -> str:
    """Turn a file base name like "red_office-chair" into "Red Office Chair"."""
    name = re.sub(r"[-_]+", " ", base_name)
    name = re.sub(r"\s+", " ", name).strip()
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), name, flags=re.ASCII)


def to_iso_timestamp(value: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def timestamp_from_mtime(mtime: float) -> str:
    return to_iso_timestamp(datetime.fromtimestamp(mtime, tz=timezone.utc))


def parse_iso_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a timestamp written by to_iso_timestamp, None if unparseable."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def encode_uri(value: str) -> str:
    """Percent-encode a path the way encodeURI does."""
    return quote(value, safe=URI_SAFE)


def encode_uri_component(value: str) -> str:
    """Percent-encode a value the way encodeURIComponent does."""
    return quote(value, safe=URI_COMPONENT_SAFE)


def form_urlencode(pairs: Iterable[Tuple[str, str]]) -> str:
    """
    Serialize query parameters the way URLSearchParams.toString() does.

    Spaces become "+", "*" stays literal and "~" is escaped, which is where
    the form-urlencoded serializer differs from quote_plus().
    """
    def _encode(text: str) -> str:
        return quote_plus(text, safe="*").replace("~", "%7E")

    return "&".join(f"{_encode(key)}={_encode(value)}" for key, value in pairs)
