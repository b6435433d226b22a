"""Bulk catalog import from spreadsheet rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gestion_proyectos.services.batch import BatchResult
from gestion_proyectos.services.catalog.parser import cell_text, parse_rows
from gestion_proyectos.services.catalog.repository import upsert_norma

logger = logging.getLogger(__name__)


class EmptySheetError(ValueError):
    """Raised when the uploaded sheet has no non-empty cell."""

    pass


@dataclass
class ImportResult:
    created: int = 0
    updated: int = 0
    errors: int = 0
    total: int = 0
    rows: BatchResult = field(default_factory=lambda: BatchResult(operation="catalog import"))


def import_catalog(db: Session, rows: Sequence[Sequence[Any]]) -> ImportResult:
    """Upsert every parsed row. Each row commits on its own; failures are counted."""
    if not any(cell_text(cell) for row in rows for cell in row):
        raise EmptySheetError("La hoja está vacía")

    result = ImportResult()
    for candidate in parse_rows(rows):
        result.total += 1
        try:
            _, created = upsert_norma(db, candidate.fields())
            db.commit()
        except (SQLAlchemyError, ValueError) as e:
            db.rollback()
            result.errors += 1
            result.rows.failure(candidate.source_row, e)
            continue
        result.rows.success(candidate.source_row)
        if created:
            result.created += 1
        else:
            result.updated += 1

    logger.info(
        "Catalog import: %d rows, %d created, %d updated, %d errors",
        result.total,
        result.created,
        result.updated,
        result.errors,
    )
    return result
