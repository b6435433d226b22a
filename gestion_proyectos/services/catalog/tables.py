"""Read the first sheet of an uploaded .xlsx or .csv file into plain rows."""

from __future__ import annotations

import csv
import io
import logging
import os
import zipfile
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx", ".csv")
CSV_DELIMITERS = ",;\t|"


class UnsupportedTableError(ValueError):
    """Raised when an upload is not a readable .xlsx/.csv table."""

    pass


def _detect_delimiter(sample: str) -> str:
    try:
        return csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS).delimiter
    except csv.Error:
        return ";" if sample.count(";") > sample.count(",") else ","


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("CSV is not UTF-8, falling back to latin-1")
        return content.decode("latin-1")


def read_csv_rows(content: bytes) -> list[list[Any]]:
    text = _decode(content)
    delimiter = _detect_delimiter(text[:4096])
    return [row for row in csv.reader(io.StringIO(text), delimiter=delimiter)]


def read_xlsx_rows(content: bytes) -> list[list[Any]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as e:
        raise UnsupportedTableError("No se pudo leer el archivo Excel") from e
    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_table(filename: str, content: bytes) -> list[list[Any]]:
    """Rows of the first sheet. Raises UnsupportedTableError for other file types."""
    extension = os.path.splitext((filename or "").lower())[1]
    if extension == ".xlsx":
        return read_xlsx_rows(content)
    if extension == ".csv":
        return read_csv_rows(content)
    raise UnsupportedTableError("Formato no soportado. Use .xlsx o .csv")
