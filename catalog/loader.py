"""
Catalog loading for the gallery page.

Fetches the published models.json over HTTP.
"""

import json
import time
from typing import Optional
import httpx
from pydantic import ValidationError

from utils.validation import Catalog

DEFAULT_MANIFEST_URL = "data/models.json"


class CatalogFetchFailure(Exception):
    """The catalog could not be fetched or parsed."""
    pass


def cache_busted(url: str, now_ms: Optional[int] = None) -> str:
    """Append a ?v=<epoch-ms> query so a reload bypasses caches."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}v={stamp}"


async def fetch_catalog(
    client: httpx.AsyncClient,
    url: str = DEFAULT_MANIFEST_URL,
    force_reload: bool = False,
) -> Catalog:
    """
    Fetch and parse the catalog.

    Args:
        client: HTTP client (its base_url resolves relative manifest URLs)
        url: Manifest URL
        force_reload: Add a cache-busting query parameter

    Returns:
        Parsed Catalog
    """
    target = cache_busted(url) if force_reload else url
    try:
        response = await client.get(target)
    except httpx.HTTPError as e:
        raise CatalogFetchFailure(f"Request failed: {e}") from e

    if response.status_code >= 400:
        raise CatalogFetchFailure(f"HTTP {response.status_code}")

    try:
        return Catalog.model_validate(response.json())
    except (json.JSONDecodeError, ValidationError) as e:
        raise CatalogFetchFailure(f"Invalid catalog: {e}") from e
