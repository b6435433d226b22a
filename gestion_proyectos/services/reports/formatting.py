"""Spanish text helpers for reports."""

from __future__ import annotations

import re
from datetime import date, datetime

WEEKDAYS = ("Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo")
MONTHS = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)

_NON_DIGIT_RE = re.compile(r"\D+")
_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def spanish_long_date(value: date | datetime | None) -> str:
    """``date(2025, 10, 23)`` -> ``"Jueves 23 de Octubre del 2025."``"""
    if value is None:
        return "No indicada"
    return f"{WEEKDAYS[value.weekday()]} {value.day} de {MONTHS[value.month - 1]} del {value.year}."


def format_cedula(value: str | None) -> str:
    """Format a Costa Rican cédula jurídica/física; unknown shapes pass through."""
    if not value:
        return ""
    digits = _NON_DIGIT_RE.sub("", value)
    if len(digits) == 10:
        return f"{digits[0]}-{digits[1:4]}-{digits[4:]}"
    if len(digits) == 9:
        return f"{digits[0]}-{digits[1:3]}-{digits[3:]}"
    return value.strip()


def safe_filename(value: str | None, fallback: str) -> str:
    cleaned = _UNSAFE_FILENAME_RE.sub("_", (value or "").strip()).strip("._")
    return f"{cleaned}.pdf" if cleaned else fallback
