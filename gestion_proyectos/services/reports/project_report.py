"""Photographic project report: cover page, then one block per evidence."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from io import BytesIO
from typing import Any, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from gestion_proyectos.models import Evidence, EvidenceNormaLink, NormaRepo, Project, Task
from gestion_proyectos.services import storage
from gestion_proyectos.services.grouping import is_institutional
from gestion_proyectos.services.reports.cancellation import CancellationToken, GuardedCanvas
from gestion_proyectos.services.reports.formatting import format_cedula, spanish_long_date
from gestion_proyectos.services.severity import DEFAULT_LINK_SEVERITY, Severity

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 40
ACCENT = colors.HexColor("#93C01F")
SEVERITY_COLORS = {
    Severity.OK: colors.HexColor("#388E3C"),
    Severity.LEVE: colors.HexColor("#FFA000"),
    Severity.CRITICO: colors.HexColor("#D32F2F"),
}
SEVERITY_LABELS = {
    Severity.OK: "Cumple",
    Severity.LEVE: "Incumplimiento leve",
    Severity.CRITICO: "Incumplimiento crítico",
}
IMAGE_SIZE = (200, 115)
IMAGE_GAP = 15
MAX_NORMAS_PER_BLOCK = 6
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
TEXT_SIZE = 9
LINE_HEIGHT = 11
BLOCK_GAP = 18
FOOTER_HEIGHT = 30
COVER_PHOTO_SIZE = (360, 240)


@dataclass
class LinkedEntry:
    text: str
    severity: Severity


@dataclass
class EvidenceBlock:
    number: int
    tarea: str | None
    comentario: str
    image_path: str | None
    normas: list[LinkedEntry] = field(default_factory=list)


@dataclass
class ProjectReportData:
    codigo: str
    nombre: str
    razon_social: str
    cedula: str
    fecha_verificacion: date | None
    fecha_reporte: date
    cover_image: str | None
    blocks: list[EvidenceBlock]


# ── Data ─────────────────────────────────────────────────────────────


def _is_institutional(evidence: Evidence) -> bool:
    return evidence.evidence_type in ("INSTITUCIONAL", "PORTADA") or is_institutional(
        evidence.comentario
    )


def choose_cover(evidences: Sequence[Evidence]) -> Evidence | None:
    """PORTADA first, then any institutional photo, then the first evidence."""
    for evidence in evidences:
        if evidence.evidence_type == "PORTADA":
            return evidence
    for evidence in evidences:
        if _is_institutional(evidence):
            return evidence
    return evidences[0] if evidences else None


def load_project_report(
    db: Session, project_id: int, categoria: Severity | None = None
) -> ProjectReportData | None:
    """Collect everything the renderer needs. None when the project does not exist."""
    project = db.query(Project).filter(Project.id == project_id).first()
    if project is None:
        return None
    evidences = (
        db.query(Evidence)
        .filter(Evidence.proyecto_id == project_id)
        .order_by(Evidence.created_at.asc(), Evidence.id.asc())
        .all()
    )
    cover = choose_cover(evidences)
    body = [e for e in evidences if not _is_institutional(e)]
    if categoria is not None:
        body = [e for e in body if e.categoria == categoria.value]

    task_names = {
        t.id: t.nombre for t in db.query(Task).filter(Task.proyecto_id == project_id).all()
    }
    links: dict[int, list[LinkedEntry]] = {}
    if body:
        rows = (
            db.query(EvidenceNormaLink, NormaRepo)
            .join(NormaRepo, NormaRepo.id == EvidenceNormaLink.norma_repo_id)
            .filter(EvidenceNormaLink.evidencia_id.in_([e.id for e in body]))
            .order_by(NormaRepo.categoria, NormaRepo.titulo)
            .all()
        )
        for link, norma in rows:
            text = norma.titulo if not norma.fuente else f"{norma.titulo} — {norma.fuente}"
            links.setdefault(link.evidencia_id, []).append(
                LinkedEntry(text, Severity.parse(link.clasificacion, DEFAULT_LINK_SEVERITY))
            )

    blocks = [
        EvidenceBlock(
            number=index,
            tarea=task_names.get(e.tarea_id) if e.tarea_id else None,
            comentario=(e.comentario or "").strip(),
            image_path=storage.absolute_path(e.image_path) if e.image_path else None,
            normas=links.get(e.id, [])[:MAX_NORMAS_PER_BLOCK],
        )
        for index, e in enumerate(body, start=1)
    ]
    return ProjectReportData(
        codigo=project.codigo,
        nombre=project.nombre,
        razon_social=project.cliente or "",
        cedula=format_cedula(project.cedula_juridica),
        fecha_verificacion=project.fecha_verificacion,
        fecha_reporte=date.today(),
        cover_image=storage.absolute_path(cover.image_path) if cover is not None else None,
        blocks=blocks,
    )


# ── Rendering ────────────────────────────────────────────────────────


class NumberedCanvas(canvas.Canvas):
    """Canvas that buffers pages so the footer can say "Página X de Y"."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._saved_page_states: list[dict] = []

    def showPage(self) -> None:
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_page_number(total)
            super().showPage()
        super().save()

    def _draw_page_number(self, total: int) -> None:
        self.setFont(FONT, 8)
        self.setFillColor(colors.grey)
        self.drawCentredString(PAGE_WIDTH / 2, MARGIN / 2, f"Página {self._pageNumber} de {total}")


def _draw_image(pdf: GuardedCanvas, path: str | None, x: float, y: float, size: tuple[int, int]) -> None:
    width, height = size
    if path and os.path.isfile(path):
        try:
            pdf.drawImage(
                path, x, y, width=width, height=height, preserveAspectRatio=True, anchor="c", mask="auto"
            )
            return
        except OSError as e:
            logger.warning("Could not draw image %s: %s", path, e)
    pdf.setStrokeColor(colors.lightgrey)
    pdf.rect(x, y, width, height, stroke=1, fill=0)
    pdf.setFont(FONT, 8)
    pdf.setFillColor(colors.grey)
    pdf.drawCentredString(x + width / 2, y + height / 2, "Imagen no disponible")
    pdf.setFillColor(colors.black)


def _draw_cover(pdf: GuardedCanvas, data: ProjectReportData, logo_path: str | None) -> None:
    top = PAGE_HEIGHT - MARGIN
    if logo_path and os.path.isfile(logo_path):
        try:
            pdf.drawImage(logo_path, MARGIN, top - 45, width=110, height=45, preserveAspectRatio=True, mask="auto")
        except OSError as e:
            logger.warning("Could not draw logo %s: %s", logo_path, e)
    pdf.setStrokeColor(ACCENT)
    pdf.setLineWidth(3)
    pdf.line(MARGIN, top - 55, PAGE_WIDTH - MARGIN, top - 55)
    pdf.setLineWidth(1)

    pdf.setFillColor(colors.black)
    pdf.setFont(FONT_BOLD, 20)
    pdf.drawCentredString(PAGE_WIDTH / 2, top - 95, "REPORTE FOTOGRÁFICO")

    y = top - 135
    for label, value in (
        ("NOMBRE DE ESTABLECIMIENTO:", data.nombre),
        ("RAZON SOCIAL:", data.razon_social),
        ("CEDULA JURIDICA:", data.cedula),
        ("FECHA DE VERIFICACIÓN:", spanish_long_date(data.fecha_verificacion)),
        ("FECHA DEL REPORTE:", spanish_long_date(data.fecha_reporte)),
    ):
        pdf.setFont(FONT_BOLD, 10)
        pdf.drawString(MARGIN, y, label)
        pdf.setFont(FONT, 10)
        pdf.drawString(MARGIN + 180, y, value or "")
        y -= 18

    photo_w, photo_h = COVER_PHOTO_SIZE
    y -= photo_h + 10
    _draw_image(pdf, data.cover_image, (PAGE_WIDTH - photo_w) / 2, y, COVER_PHOTO_SIZE)

    y -= 30
    pdf.setFont(FONT_BOLD, 10)
    pdf.setFillColor(colors.black)
    pdf.drawString(MARGIN, y, "Leyenda de clasificación:")
    for severity in Severity:
        y -= 16
        pdf.setFillColor(SEVERITY_COLORS[severity])
        pdf.rect(MARGIN, y - 1, 10, 10, stroke=0, fill=1)
        pdf.setFillColor(colors.black)
        pdf.setFont(FONT, 9)
        pdf.drawString(MARGIN + 16, y, f"{severity.value}: {SEVERITY_LABELS[severity]}")


def _block_lines(block: EvidenceBlock, width: float) -> list[tuple[str, str, Severity | None]]:
    """Lines of the text column as (font, text, bullet severity)."""
    lines: list[tuple[str, str, Severity | None]] = [
        (FONT_BOLD, f"{block.number}. Evidencia e Incumplimiento:", None)
    ]
    if block.tarea:
        for text in simpleSplit(f"Tarea: {block.tarea}", FONT, TEXT_SIZE, width):
            lines.append((FONT, text, None))
    for entry in block.normas:
        wrapped = simpleSplit(entry.text, FONT, TEXT_SIZE, width - 12) or [""]
        lines.append((FONT, wrapped[0], entry.severity))
        lines.extend((FONT, text, None) for text in wrapped[1:])
    lines.append((FONT_BOLD, "Comentario:", None))
    for text in simpleSplit(block.comentario or "Sin comentario", FONT, TEXT_SIZE, width) or [""]:
        lines.append((FONT, text, None))
    return lines


def block_height(block: EvidenceBlock) -> float:
    text_width = PAGE_WIDTH - 2 * MARGIN - IMAGE_SIZE[0] - IMAGE_GAP
    return max(IMAGE_SIZE[1], len(_block_lines(block, text_width)) * LINE_HEIGHT)


def _draw_block(pdf: GuardedCanvas, block: EvidenceBlock, top: float) -> None:
    text_width = PAGE_WIDTH - 2 * MARGIN - IMAGE_SIZE[0] - IMAGE_GAP
    y = top - TEXT_SIZE
    for font, text, severity in _block_lines(block, text_width):
        pdf.setFont(font, TEXT_SIZE)
        x = MARGIN
        if severity is not None:
            pdf.setFillColor(SEVERITY_COLORS[severity])
            pdf.circle(MARGIN + 3, y + 3, 3, stroke=0, fill=1)
            x += 12
        pdf.setFillColor(colors.black)
        pdf.drawString(x, y, text)
        y -= LINE_HEIGHT
    _draw_image(
        pdf,
        block.image_path,
        PAGE_WIDTH - MARGIN - IMAGE_SIZE[0],
        top - IMAGE_SIZE[1],
        IMAGE_SIZE,
    )


def render_project_pdf(
    data: ProjectReportData, token: CancellationToken, logo_path: str | None = None
) -> bytes:
    """Render the report. Raises ReportCancelled if the token fires."""
    buffer = BytesIO()
    pdf = GuardedCanvas(NumberedCanvas(buffer, pagesize=A4), token)
    pdf.setTitle(f"Reporte fotográfico {data.codigo}")

    _draw_cover(pdf, data, logo_path)
    pdf.showPage()

    top = PAGE_HEIGHT - MARGIN
    bottom = MARGIN + FOOTER_HEIGHT
    y = top
    for block in data.blocks:
        token.raise_if_cancelled()
        height = block_height(block)
        if y - height < bottom and y < top:
            pdf.showPage()
            y = top
        _draw_block(pdf, block, y)
        y -= height + BLOCK_GAP
    if data.blocks:
        pdf.showPage()

    token.raise_if_cancelled()
    pdf.save()
    logger.info("Project report %s rendered: %d evidence blocks", data.codigo, len(data.blocks))
    return buffer.getvalue()
