"""Catalog file discovery and parsing.

Two formats are understood. ``items.json`` is a list of objects carrying a
``UniqueName`` and a ``LocalizedNames`` map. Text catalogs hold one item per
line, either ``index: ID : Name`` or the legacy ``ID|Name|category|tier|sub``.
"""

from __future__ import annotations

import json
import re
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from pydantic import ValidationError

from itemgraph.domain.model import CatalogEntry

from .schema import CatalogItemPayload

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)

CATALOG_CANDIDATES: Final = ("items.json", "items.txt", "item.txt")
UNKNOWN_ITEM_NAME: Final = "Unknown Item"
DEFAULT_LOCALE: Final = "EN-US"

_MODERN_LINE: Final = re.compile(
    r"^\s*\d+:\s*(?P<identifier>[^\s:]+)(?:\s+:\s*(?P<name>.*?))?\s*$"
)
_LEGACY_MIN_FIELDS: Final = 5


class CatalogNotFoundError(FileNotFoundError):
    """Raised when none of the catalog candidates exist."""


class CatalogFormatError(RuntimeError):
    """Raised when a structured catalog cannot be decoded at all."""


def locate_catalog(search_dir: Path) -> Path:
    """Return the first existing catalog candidate under ``search_dir``."""

    for name in CATALOG_CANDIDATES:
        candidate = search_dir / name
        if candidate.is_file():
            return candidate
    tried = ", ".join(str(search_dir / name) for name in CATALOG_CANDIDATES)
    raise CatalogNotFoundError(f"No catalog file found (tried {tried})")


def read_catalog(
    path: Path | None = None,
    *,
    search_dir: Path | None = None,
    locale: str = DEFAULT_LOCALE,
) -> list[CatalogEntry]:
    if path is None:
        path = locate_catalog(search_dir or Path.cwd())
    elif not path.is_file():
        raise CatalogNotFoundError(f"Catalog file not found: {path}")

    text = path.read_text(encoding="utf-8-sig")
    if path.suffix.lower() == ".json":
        log.info("Parsing structured catalog %s", path)
        entries = parse_json_catalog(text, locale=locale, source=str(path))
    else:
        log.info("Parsing text catalog %s", path)
        entries = parse_text_catalog(text.splitlines(), source=str(path))
    log.info("Parsed %s catalog entries from %s", len(entries), path)
    return entries


def parse_json_catalog(
    text: str,
    *,
    locale: str = DEFAULT_LOCALE,
    source: str = "<json>",
) -> list[CatalogEntry]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogFormatError(f"{source}: invalid JSON ({exc})") from exc
    if not isinstance(document, list):
        raise CatalogFormatError(f"{source}: expected a JSON list of items")

    entries: list[CatalogEntry] = []
    for position, raw in enumerate(document):
        try:
            payload = CatalogItemPayload.model_validate(raw)
        except ValidationError as exc:
            log.warning("%s: skipping entry %s (%s)", source, position, exc.errors()[0]["msg"])
            continue
        if payload.unique_name is None:
            log.warning("%s: skipping entry %s without UniqueName", source, position)
            continue
        entries.append(
            CatalogEntry(
                identifier=payload.unique_name,
                display_name=payload.display_name(locale) or UNKNOWN_ITEM_NAME,
            )
        )
    return entries


def parse_text_catalog(lines: Iterable[str], *, source: str = "<text>") -> list[CatalogEntry]:
    entries: list[CatalogEntry] = []
    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        entry = parse_catalog_line(stripped)
        if entry is None:
            log.warning("%s:%s: skipping malformed line %r", source, line_number, stripped)
            continue
        entries.append(entry)
    return entries


def parse_catalog_line(line: str) -> CatalogEntry | None:
    """Parse one non-blank catalog line, or return ``None`` if it is malformed."""

    match = _MODERN_LINE.match(line)
    if match is None:
        return _parse_legacy_line(line) if "|" in line else None
    return CatalogEntry(
        identifier=match.group("identifier"),
        display_name=match.group("name") or UNKNOWN_ITEM_NAME,
    )


def _parse_legacy_line(line: str) -> CatalogEntry | None:
    parts = [part.strip() for part in line.split("|")]
    if len(parts) < _LEGACY_MIN_FIELDS:
        return None
    identifier, name, category, tier_text, subcategory = parts[:_LEGACY_MIN_FIELDS]
    if not (identifier and name and category):
        return None
    try:
        tier = int(tier_text)
    except ValueError:
        return None
    return CatalogEntry(
        identifier=identifier,
        display_name=name,
        category=category,
        tier=tier,
        subcategory=subcategory or None,
    )
