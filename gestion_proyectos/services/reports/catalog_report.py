"""Tabular PDF of the norma catalog."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import Iterable, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from gestion_proyectos.models import NormaRepo
from gestion_proyectos.services.reports.cancellation import CancellationToken, GuardedCanvas

logger = logging.getLogger(__name__)

TITLE = "Catálogo de Normas / Incumplimientos"
MARGIN = 40
COLUMN_WIDTHS = (170, 275, 70)
COLUMN_TITLES = ("Categoría", "Descripción", "Artículo")
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
FONT_SIZE = 8
LINE_HEIGHT = 10
CELL_PADDING = 3
MIN_ROW_HEIGHT = 16
HEADER_HEIGHT = 18
TITLE_BLOCK_HEIGHT = 60
LOGO_SIZE = (90, 40)


@dataclass
class PlacedRow:
    y: float
    height: float
    lines: list[list[str]]


@dataclass
class CatalogPage:
    number: int
    header_y: float
    rows: list[PlacedRow] = field(default_factory=list)


def catalog_cells(norma: NormaRepo) -> tuple[str, str, str]:
    return (norma.categoria or "", norma.descripcion or norma.titulo or "", norma.fuente or "")


def wrap_cells(cells: Sequence[str]) -> list[list[str]]:
    return [
        simpleSplit(text or "", FONT, FONT_SIZE, width - 2 * CELL_PADDING) or [""]
        for text, width in zip(cells, COLUMN_WIDTHS)
    ]


def layout_catalog_rows(
    rows: Iterable[Sequence[str]], page_size: tuple[float, float] = A4, margin: float = MARGIN
) -> list[CatalogPage]:
    """Place every row on a page. No drawing happens here.

    Each page starts with the column header; the first page also leaves room
    for the title block. A row that would cross the bottom margin moves to a
    new page.
    """
    _, height = page_size
    bottom = margin + 10
    pages = [CatalogPage(number=1, header_y=height - margin - TITLE_BLOCK_HEIGHT)]
    y = pages[0].header_y - HEADER_HEIGHT
    for cells in rows:
        lines = wrap_cells(cells)
        row_height = max(MIN_ROW_HEIGHT, max(len(l) for l in lines) * LINE_HEIGHT + 6)
        if y - row_height < bottom and pages[-1].rows:
            pages.append(CatalogPage(number=len(pages) + 1, header_y=height - margin))
            y = pages[-1].header_y - HEADER_HEIGHT
        pages[-1].rows.append(PlacedRow(y=y, height=row_height, lines=lines))
        y -= row_height
    return pages


def _draw_title(pdf: GuardedCanvas, total: int, logo_path: str | None, generated_at: datetime) -> None:
    _, height = A4
    top = height - MARGIN
    if logo_path and os.path.isfile(logo_path):
        try:
            pdf.drawImage(
                logo_path,
                A4[0] - MARGIN - LOGO_SIZE[0],
                top - LOGO_SIZE[1],
                width=LOGO_SIZE[0],
                height=LOGO_SIZE[1],
                preserveAspectRatio=True,
                mask="auto",
            )
        except OSError as e:
            logger.warning("Could not draw logo %s: %s", logo_path, e)
    pdf.setFillColor(colors.black)
    pdf.setFont(FONT_BOLD, 14)
    pdf.drawString(MARGIN, top - 18, TITLE)
    pdf.setFont(FONT, 9)
    pdf.drawString(MARGIN, top - 36, f"Total: {total}")
    pdf.drawString(MARGIN, top - 50, f"Generado: {generated_at:%d/%m/%Y %H:%M}")


def _draw_header(pdf: GuardedCanvas, y: float) -> None:
    x = MARGIN
    pdf.setFont(FONT_BOLD, 9)
    for title, width in zip(COLUMN_TITLES, COLUMN_WIDTHS):
        pdf.setFillColor(colors.HexColor("#E0E0E0"))
        pdf.rect(x, y - HEADER_HEIGHT, width, HEADER_HEIGHT, stroke=1, fill=1)
        pdf.setFillColor(colors.black)
        pdf.drawString(x + CELL_PADDING, y - HEADER_HEIGHT + 6, title)
        x += width


def _draw_row(pdf: GuardedCanvas, row: PlacedRow) -> None:
    x = MARGIN
    pdf.setFont(FONT, FONT_SIZE)
    for lines, width in zip(row.lines, COLUMN_WIDTHS):
        pdf.rect(x, row.y - row.height, width, row.height, stroke=1, fill=0)
        text_y = row.y - CELL_PADDING - FONT_SIZE
        for line in lines:
            pdf.drawString(x + CELL_PADDING, text_y, line)
            text_y -= LINE_HEIGHT
        x += width


def render_catalog_pdf(
    normas: Sequence[NormaRepo],
    token: CancellationToken,
    logo_path: str | None = None,
) -> bytes:
    """Render the catalog table. Raises ReportCancelled if the token fires."""
    rows = [catalog_cells(n) for n in normas]
    pages = layout_catalog_rows(rows)
    buffer = BytesIO()
    pdf = GuardedCanvas(canvas.Canvas(buffer, pagesize=A4), token)
    pdf.setTitle(TITLE)
    pdf.setStrokeColor(colors.HexColor("#9E9E9E"))

    for page in pages:
        token.raise_if_cancelled()
        if page.number == 1:
            _draw_title(pdf, len(rows), logo_path, datetime.now())
        pdf.setStrokeColor(colors.HexColor("#9E9E9E"))
        _draw_header(pdf, page.header_y)
        for row in page.rows:
            _draw_row(pdf, row)
        pdf.showPage()

    token.raise_if_cancelled()
    pdf.save()
    logger.info("Catalog PDF rendered: %d rows, %d pages", len(rows), len(pages))
    return buffer.getvalue()
