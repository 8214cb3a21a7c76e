"""Catalog schema and validation utilities."""

import json
from pathlib import Path
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from PIL import Image, UnidentifiedImageError


# Pydantic models for the published catalog (data/models.json)


class FileSize(BaseModel):
    byte_count: int = Field(..., ge=0, alias="bytes")
    human_readable: str = Field(..., alias="humanReadable")

    model_config = {"populate_by_name": True, "frozen": True}


class AssetDescriptor(BaseModel):
    """Facts about one model file on disk."""

    file_name: str = Field(..., alias="fileName")
    path: str
    size: FileSize
    updated_at: str = Field(..., alias="updatedAt")

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("path")
    @classmethod
    def validate_relative_path(cls, v):
        if not v or v.startswith("/") or "\\" in v:
            raise ValueError(f"Asset path must be a relative POSIX path: {v!r}")
        return v


class Variants(BaseModel):
    ios: Optional[AssetDescriptor] = None
    android: Optional[AssetDescriptor] = None

    model_config = {"frozen": True}


class CatalogEntry(BaseModel):
    """One published model. At least one of the platform paths is set."""

    id: str = Field(..., min_length=1)
    display_name: str = Field(..., alias="displayName")
    file_name: str = Field(..., alias="fileName")
    model_path: Optional[str] = Field(default=None, alias="modelPath")
    android_model_path: Optional[str] = Field(default=None, alias="androidModelPath")
    thumbnail_path: Optional[str] = Field(default=None, alias="thumbnailPath")
    size: FileSize
    updated_at: str = Field(..., alias="updatedAt")
    variants: Variants = Field(default_factory=Variants)

    model_config = {"populate_by_name": True, "frozen": True, "protected_namespaces": ()}

    @model_validator(mode="after")
    def validate_platform_paths(self):
        if not self.model_path and not self.android_model_path:
            raise ValueError(f"Model {self.id!r} has neither a USDZ nor a GLB path")
        return self

    @property
    def primary_path(self) -> Optional[str]:
        return self.model_path or self.android_model_path


class Catalog(BaseModel):
    """Pydantic model for the whole catalog document."""

    generated_at: Optional[str] = Field(default=None, alias="generatedAt")
    total: int = Field(default=0, ge=0)
    items: List[CatalogEntry] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "frozen": True}

    @field_validator("items", mode="before")
    @classmethod
    def coerce_items(cls, v):
        # Older or hand-edited manifests may carry a non-list here
        if not isinstance(v, list):
            return []
        return v

    def find(self, model_id: str) -> Optional[CatalogEntry]:
        return next((item for item in self.items if item.id == model_id), None)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, mode="json"), indent=2, ensure_ascii=False)


def load_catalog(catalog_path: Path) -> Catalog:
    """Read and parse a catalog file. Raises OSError, ValueError or ValidationError."""
    with open(catalog_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return Catalog.model_validate(data)


def validate_catalog_file(
    catalog_path: Path,
    site_root: Optional[Path] = None,
) -> Tuple[bool, Optional[Catalog], List[str]]:
    """
    Validate a catalog JSON file and the files it references.

    Checks:
    - JSON parses and matches the catalog schema
    - `total` equals the number of items
    - ids are unique
    - every referenced model and thumbnail exists under site_root
    - thumbnails are decodable images

    Args:
        catalog_path: Path to models.json
        site_root: Directory the relative paths resolve against
                   (defaults to the parent of the catalog's directory)

    Returns:
        Tuple of (is_valid, parsed_catalog, list_of_errors)
    """
    if not catalog_path.exists():
        return False, None, ["Catalog file does not exist"]

    try:
        catalog = load_catalog(catalog_path)
    except json.JSONDecodeError as e:
        return False, None, [f"Invalid JSON: {e}"]
    except ValidationError as e:
        return False, None, [str(e)]

    errors = []
    root = site_root or catalog_path.parent.parent

    if catalog.total != len(catalog.items):
        errors.append(f"Catalog total is {catalog.total} but it lists {len(catalog.items)} items")

    seen = set()
    for item in catalog.items:
        if item.id in seen:
            errors.append(f"Duplicate model id: {item.id}")
        seen.add(item.id)

        for rel_path in (item.model_path, item.android_model_path):
            if rel_path and not (root / rel_path).is_file():
                errors.append(f"{item.id}: missing model file {rel_path}")

        if item.thumbnail_path:
            thumbnail = root / item.thumbnail_path
            if not thumbnail.is_file():
                errors.append(f"{item.id}: missing thumbnail {item.thumbnail_path}")
            else:
                try:
                    with Image.open(thumbnail) as img:
                        img.verify()
                except (UnidentifiedImageError, OSError) as e:
                    errors.append(f"{item.id}: unreadable thumbnail {item.thumbnail_path} ({e})")

    return len(errors) == 0, catalog, errors
