"""
Asset Scanning Stage

Walks the model directory and groups USDZ, GLB and thumbnail files that
share a base name.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional
from rich.console import Console

from utils.formatting import format_file_size, timestamp_from_mtime
from utils.validation import AssetDescriptor, FileSize

console = Console()

IOS_EXTENSION = ".usdz"
ANDROID_EXTENSION = ".glb"
# Order is the tie-break priority when one id has several thumbnails
THUMBNAIL_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".avif")


class ScanError(Exception):
    """Error while scanning the model directory."""
    pass


class DirectoryNotFound(ScanError):
    """The model directory does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Model directory not found: {path}")


@dataclass
class ModelGroup:
    """Files sharing one base name, collected while scanning."""
    base_name: str
    ios: Optional[AssetDescriptor] = None
    android: Optional[AssetDescriptor] = None
    thumbnail: Optional[str] = None
    thumbnail_candidates: List[str] = field(default_factory=list)

    def add_thumbnail(self, file_name: str):
        self.thumbnail_candidates.append(file_name)
        self.thumbnail = min(self.thumbnail_candidates, key=thumbnail_priority)


def classify_file(file_name: str) -> Optional[str]:
    """
    Classify a file by extension.

    Returns:
        "ios", "android", "thumbnail" or None for files we ignore
    """
    suffix = Path(file_name).suffix.lower()
    if suffix == IOS_EXTENSION:
        return "ios"
    if suffix == ANDROID_EXTENSION:
        return "android"
    if suffix in THUMBNAIL_EXTENSIONS:
        return "thumbnail"
    return None


def thumbnail_priority(file_name: str) -> tuple:
    suffix = Path(file_name).suffix.lower()
    return (THUMBNAIL_EXTENSIONS.index(suffix), file_name)


def describe_asset(file_path: Path, path_prefix: str) -> AssetDescriptor:
    """Build an AssetDescriptor from filesystem metadata."""
    stats = file_path.stat()
    return AssetDescriptor(
        file_name=file_path.name,
        path=str(PurePosixPath(path_prefix) / file_path.name),
        size=FileSize(byte_count=stats.st_size, human_readable=format_file_size(stats.st_size)),
        updated_at=timestamp_from_mtime(stats.st_mtime),
    )


def list_files(model_dir: Path) -> List[Path]:
    """List regular files in the model directory, sorted by name."""
    if not model_dir.exists():
        raise DirectoryNotFound(model_dir)
    try:
        entries = list(model_dir.iterdir())
    except FileNotFoundError:
        raise DirectoryNotFound(model_dir)
    return sorted((p for p in entries if p.is_file()), key=lambda p: p.name)


def scan_model_directory(
    model_dir: Path,
    path_prefix: str = "model",
) -> Dict[str, ModelGroup]:
    """
    Scan a flat model directory into groups keyed by base name.

    Args:
        model_dir: Directory holding <id>.usdz, <id>.glb and <id>.<image> files
        path_prefix: Prefix for the relative paths written to the catalog

    Returns:
        Dictionary of base name -> ModelGroup, in name order
    """
    groups: Dict[str, ModelGroup] = {}

    for file_path in list_files(model_dir):
        role = classify_file(file_path.name)
        if role is None:
            continue

        base_name = file_path.stem
        group = groups.setdefault(base_name, ModelGroup(base_name=base_name))

        if role == "thumbnail":
            group.add_thumbnail(file_path.name)
        elif role == "ios":
            group.ios = describe_asset(file_path, path_prefix)
        else:
            group.android = describe_asset(file_path, path_prefix)

    console.print(f"[blue]Scanned {model_dir}: {len(groups)} candidate models[/blue]")
    return groups
