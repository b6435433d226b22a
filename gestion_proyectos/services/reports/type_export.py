"""Export of one project's evidence of a single type: header line, comment, photo."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from gestion_proyectos.models import Evidence
from gestion_proyectos.services import storage
from gestion_proyectos.services.reports.cancellation import CancellationToken, GuardedCanvas

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 40
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
IMAGE_BOX = (500, 300)
COMMENT_WIDTH = 500
COMMENT_SIZE = 10
COMMENT_LEADING = 12
HEADING_LEADING = 16
ROW_GAP = 18


@dataclass
class TypeExportRow:
    id: int
    tarea_id: int | None
    comentario: str
    image_path: str | None


def load_type_export(db: Session, proyecto_id: int, tipo: str) -> list[TypeExportRow]:
    """Evidence of one type in a project, oldest first."""
    rows = (
        db.query(Evidence)
        .filter(Evidence.proyecto_id == proyecto_id, Evidence.evidence_type == tipo)
        .order_by(Evidence.created_at.asc(), Evidence.id.asc())
        .all()
    )
    return [
        TypeExportRow(
            id=e.id,
            tarea_id=e.tarea_id,
            comentario=(e.comentario or "").strip(),
            image_path=storage.absolute_path(e.image_path) if e.image_path else None,
        )
        for e in rows
    ]


def fitted_size(path: str | None, box: tuple[int, int] = IMAGE_BOX) -> tuple[float, float] | None:
    """Size of the image scaled down to fit ``box``; None when it cannot be read."""
    if not path or not os.path.isfile(path):
        return None
    try:
        width, height = ImageReader(path).getSize()
    except (OSError, ValueError) as e:
        logger.warning("Could not read image %s: %s", path, e)
        return None
    if not width or not height:
        return None
    scale = min(box[0] / width, box[1] / height, 1)
    return width * scale, height * scale


def _comment_lines(row: TypeExportRow) -> list[str]:
    if not row.comentario:
        return []
    return simpleSplit(row.comentario, FONT, COMMENT_SIZE, COMMENT_WIDTH)


def row_height(row: TypeExportRow, image: tuple[float, float] | None) -> float:
    height = HEADING_LEADING + len(_comment_lines(row)) * COMMENT_LEADING
    if image is not None:
        height += image[1] + 6
    return height


def _draw_title(pdf: GuardedCanvas, tipo: str) -> float:
    title = f"Reporte de evidencias: {tipo}"
    y = PAGE_HEIGHT - MARGIN - 18
    pdf.setFont(FONT_BOLD, 18)
    pdf.drawString(MARGIN, y, title)
    pdf.setLineWidth(1)
    pdf.line(MARGIN, y - 3, MARGIN + stringWidth(title, FONT_BOLD, 18), y - 3)
    return y - 30


def _draw_row(
    pdf: GuardedCanvas, row: TypeExportRow, image: tuple[float, float] | None, top: float
) -> None:
    y = top - 12
    pdf.setFillColor(colors.black)
    pdf.setFont(FONT, 12)
    pdf.drawString(MARGIN, y, f"ID {row.id} · Tarea: {row.tarea_id or '—'}")
    y -= HEADING_LEADING
    pdf.setFont(FONT, COMMENT_SIZE)
    for line in _comment_lines(row):
        pdf.drawString(MARGIN, y, line)
        y -= COMMENT_LEADING
    if image is None:
        return
    width, height = image
    x = MARGIN + (IMAGE_BOX[0] - width) / 2
    try:
        pdf.drawImage(row.image_path, x, y - height + 6, width=width, height=height, mask="auto")
    except OSError as e:
        logger.warning("Could not draw image %s: %s", row.image_path, e)


def render_type_export_pdf(tipo: str, rows: list[TypeExportRow], token: CancellationToken) -> bytes:
    """Render the export. Raises ReportCancelled if the token fires."""
    buffer = BytesIO()
    pdf = GuardedCanvas(canvas.Canvas(buffer, pagesize=A4), token)
    pdf.setTitle(f"Evidencias {tipo}")

    y = _draw_title(pdf, tipo)
    top = PAGE_HEIGHT - MARGIN
    for row in rows:
        token.raise_if_cancelled()
        image = fitted_size(row.image_path)
        height = row_height(row, image)
        if y - height < MARGIN and y < top:
            pdf.showPage()
            y = top
        _draw_row(pdf, row, image, y)
        y -= height + ROW_GAP

    token.raise_if_cancelled()
    pdf.showPage()
    pdf.save()
    logger.info("Evidence export %s rendered: %d rows", tipo, len(rows))
    return buffer.getvalue()
