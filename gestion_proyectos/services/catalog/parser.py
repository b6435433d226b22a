"""Turn raw spreadsheet rows into catalog candidates.

Two layouts are understood:

* Header mode: one of the first rows holds recognisable column names
  (Categoría, Descripción, Artículo, ...). Every following row is mapped by
  column name.
* Positional mode: no header row. A row with a single non-empty cell opens a
  section (the current category); other rows are read as
  ``[subcategory/category, description, ..., source]``.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Iterator, Sequence

HEADER_SCAN_ROWS = 10
MAX_SALVAGED_TITLE = 160

HEADER_TOKENS = frozenset(
    {
        "codigo",
        "titulo",
        "nombre",
        "norma",
        "descripcion",
        "categoria",
        "seccion",
        "subcategoria",
        "incumplimiento",
        "hallazgo",
        "severidad",
        "nivel",
        "etiquetas",
        "tags",
        "fuente",
        "origen",
        "articulo",
    }
)
# Section rows that only label the sheet itself.
IGNORED_SECTIONS = frozenset({"incumplimientos_electricos", "articulo"})

_NUMBERED_RE = re.compile(r"^\s*([0-9IVXLCDM]+)[.)\-\s]+(.+)?$")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

# Candidate field -> header names that feed it, first match wins.
_FIELD_SOURCES: dict[str, tuple[str, ...]] = {
    "codigo": ("codigo",),
    "descripcion": ("descripcion", "incumplimiento", "hallazgo"),
    "categoria": ("categoria", "seccion"),
    "subcategoria": ("subcategoria",),
    "incumplimiento": ("incumplimiento", "hallazgo"),
    "severidad": ("severidad", "nivel"),
    "etiquetas": ("etiquetas", "tags"),
    "fuente": ("articulo", "fuente", "origen"),
}
_TITLE_SOURCES = ("titulo", "nombre", "norma", "descripcion", "incumplimiento", "hallazgo")


def normalize_header(value: Any) -> str:
    """``"Categoría / Sección"`` -> ``"categoria_seccion"``."""
    text = unicodedata.normalize("NFD", str(value if value is not None else "").lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub("_", text).strip("_")


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


@dataclass
class CatalogCandidate:
    """One parsed row, ready for upsert."""

    titulo: str
    codigo: str | None = None
    descripcion: str | None = None
    categoria: str | None = None
    subcategoria: str | None = None
    incumplimiento: str | None = None
    severidad: str | None = None
    etiquetas: str | None = None
    fuente: str | None = None
    source_row: int = 0

    def fields(self) -> dict[str, str]:
        data = asdict(self)
        data.pop("source_row")
        return {k: v for k, v in data.items() if v}


def find_header_row(rows: Sequence[Sequence[Any]]) -> int | None:
    """Index of the first row (within the first few) that names a known column."""
    for index, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        names = {normalize_header(cell) for cell in row if cell_text(cell)}
        known = names & HEADER_TOKENS
        if known:
            return index
    return None


def split_numbered(text: str) -> tuple[str | None, str]:
    """``"III. Tableros"`` -> ``("III", "Tableros")``; unnumbered text passes through."""
    match = _NUMBERED_RE.match(text)
    if not match or not match.group(2):
        return None, text
    return match.group(1), match.group(2).strip()


def _salvage_title(cells: list[str]) -> str:
    non_empty = [c for c in cells if c]
    return " - ".join(non_empty[:2])[:MAX_SALVAGED_TITLE]


def parse_with_headers(
    header: Sequence[Any], rows: Iterable[Sequence[Any]], first_row: int = 0
) -> Iterator[CatalogCandidate]:
    names = [normalize_header(h) for h in header]
    for offset, raw in enumerate(rows):
        cells = [cell_text(c) for c in raw]
        if not any(cells):
            continue
        record: dict[str, str] = {}
        for name, value in zip(names, cells):
            if name and value:
                record.setdefault(name, value)

        values = {
            field: next((record[s] for s in sources if s in record), None)
            for field, sources in _FIELD_SOURCES.items()
        }
        titulo = next((record[s] for s in _TITLE_SOURCES if s in record), None)
        if not titulo:
            titulo = _salvage_title(cells)
        yield CatalogCandidate(titulo=titulo, source_row=first_row + offset, **values)


def _is_header_like(cells: list[str]) -> bool:
    return all(normalize_header(c) in HEADER_TOKENS for c in cells)


def parse_positional(rows: Iterable[Sequence[Any]]) -> Iterator[CatalogCandidate]:
    current_section: str | None = None
    for index, raw in enumerate(rows):
        cells = [c for c in (cell_text(v) for v in raw) if c]
        if not cells:
            continue
        if len(cells) == 1:
            normalized = normalize_header(cells[0])
            if normalized in IGNORED_SECTIONS or normalized in HEADER_TOKENS:
                continue
            current_section = cells[0]
            continue
        if _is_header_like(cells):
            continue

        first, description = cells[0], cells[1]
        fuente = cells[-1] if len(cells) >= 3 else None
        _, name = split_numbered(first)
        if current_section:
            categoria, subcategoria = current_section, name
        else:
            categoria, subcategoria = first, None
        yield CatalogCandidate(
            titulo=description,
            descripcion=description,
            categoria=categoria,
            subcategoria=subcategoria,
            fuente=fuente,
            source_row=index,
        )


def parse_rows(rows: Sequence[Sequence[Any]]) -> Iterator[CatalogCandidate]:
    """Candidates for every usable row of a sheet."""
    header_index = find_header_row(rows)
    if header_index is None:
        return parse_positional(rows)
    return parse_with_headers(rows[header_index], rows[header_index + 1 :], header_index + 1)
