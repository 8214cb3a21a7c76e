"""
Manifest Assembly Stage

Turns scanned model groups into sorted catalog entries.
"""

from datetime import datetime, timezone
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Tuple
import icu

from utils.formatting import prettify_name, to_iso_timestamp
from utils.validation import Catalog, CatalogEntry, Variants

from .scan import ModelGroup


@lru_cache(maxsize=1)
def get_collator() -> icu.Collator:
    # Traditional Chinese stroke-order collation
    return icu.Collator.createInstance(icu.Locale("zh_Hant@collation=stroke"))


def collation_key(entry: CatalogEntry) -> tuple:
    """
    Sort key for catalog entries.

    Stroke-order collation on the display name (Han characters sort by
    stroke count), then the id so the order is total.
    """
    return (get_collator().getSortKey(entry.display_name), entry.id)


def has_platform_asset(group: ModelGroup) -> bool:
    return group.ios is not None or group.android is not None


def split_incomplete(groups: Iterable[ModelGroup]) -> Tuple[List[ModelGroup], List[ModelGroup]]:
    """
    Separate groups that can be published from those without any model file.

    Returns:
        Tuple of (kept, discarded)
    """
    kept, discarded = [], []
    for group in groups:
        (kept if has_platform_asset(group) else discarded).append(group)
    return kept, discarded


def build_entry(group: ModelGroup, path_prefix: str = "model") -> CatalogEntry:
    """
    Build a catalog entry from a complete group.

    The iOS asset is the primary descriptor when both platforms exist.
    """
    primary = group.ios or group.android
    thumbnail_path = None
    if group.thumbnail:
        thumbnail_path = str(PurePosixPath(path_prefix) / group.thumbnail)

    return CatalogEntry(
        id=group.base_name,
        display_name=prettify_name(group.base_name),
        file_name=primary.file_name,
        model_path=group.ios.path if group.ios else None,
        android_model_path=group.android.path if group.android else None,
        thumbnail_path=thumbnail_path,
        size=primary.size,
        updated_at=primary.updated_at,
        variants=Variants(ios=group.ios, android=group.android),
    )


def collect_warnings(kept: List[ModelGroup], discarded: List[ModelGroup]) -> List[str]:
    warnings = []
    for group in discarded:
        for thumbnail in group.thumbnail_candidates:
            warnings.append(f"Thumbnail {thumbnail} has no matching .usdz or .glb, skipped")
    for group in kept:
        primary = group.ios or group.android
        if not group.thumbnail:
            warnings.append(f"No thumbnail found for {primary.file_name}, a placeholder will be shown")
        elif len(group.thumbnail_candidates) > 1:
            others = ", ".join(c for c in group.thumbnail_candidates if c != group.thumbnail)
            warnings.append(f"Several thumbnails for {group.base_name}: using {group.thumbnail}, ignoring {others}")
    return warnings


def assemble_catalog(
    groups: Dict[str, ModelGroup],
    generated_at: Optional[datetime] = None,
    path_prefix: str = "model",
) -> Tuple[Catalog, List[str]]:
    """
    Assemble the catalog from scanned groups.

    Args:
        groups: Output of scan_model_directory
        generated_at: Generation time (defaults to now, UTC)
        path_prefix: Prefix used for thumbnail paths

    Returns:
        Tuple of (catalog, list_of_warnings)
    """
    kept, discarded = split_incomplete(groups.values())
    warnings = collect_warnings(kept, discarded)

    entries = sorted((build_entry(group, path_prefix) for group in kept), key=collation_key)

    catalog = Catalog(
        generated_at=to_iso_timestamp(generated_at or datetime.now(timezone.utc)),
        total=len(entries),
        items=entries,
    )
    return catalog, warnings
