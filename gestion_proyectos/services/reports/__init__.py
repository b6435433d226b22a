"""PDF reports rendered with reportlab."""

from gestion_proyectos.services.reports.cancellation import (
    CancellationToken,
    GuardedCanvas,
    ReportCancelled,
)
from gestion_proyectos.services.reports.catalog_report import layout_catalog_rows, render_catalog_pdf
from gestion_proyectos.services.reports.project_report import load_project_report, render_project_pdf
from gestion_proyectos.services.reports.type_export import load_type_export, render_type_export_pdf

__all__ = [
    "CancellationToken",
    "GuardedCanvas",
    "ReportCancelled",
    "layout_catalog_rows",
    "load_project_report",
    "load_type_export",
    "render_catalog_pdf",
    "render_project_pdf",
    "render_type_export_pdf",
]
