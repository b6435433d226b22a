"""Norma catalog: spreadsheet parsing, import and queries."""

from gestion_proyectos.services.catalog.images import (
    CatalogEntryNotFoundError,
    ReferenceImageError,
    add_reference_image,
    delete_reference_image,
    list_reference_images,
)
from gestion_proyectos.services.catalog.importer import EmptySheetError, ImportResult, import_catalog
from gestion_proyectos.services.catalog.parser import CatalogCandidate, normalize_header, parse_rows
from gestion_proyectos.services.catalog.repository import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    create_norma,
    delete_norma,
    get_norma,
    list_normas,
    normas_for_report,
    parse_ids,
    resolve_limit,
    update_norma,
    upsert_norma,
)
from gestion_proyectos.services.catalog.tables import UnsupportedTableError, read_table

__all__ = [
    "CatalogCandidate",
    "CatalogEntryNotFoundError",
    "DEFAULT_LIMIT",
    "EmptySheetError",
    "ImportResult",
    "MAX_LIMIT",
    "ReferenceImageError",
    "UnsupportedTableError",
    "add_reference_image",
    "create_norma",
    "delete_norma",
    "delete_reference_image",
    "get_norma",
    "import_catalog",
    "list_normas",
    "list_reference_images",
    "normalize_header",
    "normas_for_report",
    "parse_ids",
    "parse_rows",
    "read_table",
    "resolve_limit",
    "update_norma",
    "upsert_norma",
]
