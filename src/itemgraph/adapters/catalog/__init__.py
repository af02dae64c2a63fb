"""Public interface for the catalog file adapter."""

from __future__ import annotations

from .reader import (
    CATALOG_CANDIDATES,
    UNKNOWN_ITEM_NAME,
    CatalogFormatError,
    CatalogNotFoundError,
    locate_catalog,
    parse_catalog_line,
    parse_json_catalog,
    parse_text_catalog,
    read_catalog,
)
from .schema import CatalogItemPayload

__all__ = [
    "CATALOG_CANDIDATES",
    "UNKNOWN_ITEM_NAME",
    "CatalogFormatError",
    "CatalogItemPayload",
    "CatalogNotFoundError",
    "locate_catalog",
    "parse_catalog_line",
    "parse_json_catalog",
    "parse_text_catalog",
    "read_catalog",
]
