"""Utility functions for the WaytoAR gallery."""

from .formatting import (
    format_file_size,
    prettify_name,
    encode_uri,
    encode_uri_component,
    form_urlencode,
)
from .validation import (
    AssetDescriptor,
    Catalog,
    CatalogEntry,
    FileSize,
    Variants,
    load_catalog,
    validate_catalog_file,
)

__all__ = [
    "format_file_size",
    "prettify_name",
    "encode_uri",
    "encode_uri_component",
    "form_urlencode",
    "AssetDescriptor",
    "Catalog",
    "CatalogEntry",
    "FileSize",
    "Variants",
    "load_catalog",
    "validate_catalog_file",
]
