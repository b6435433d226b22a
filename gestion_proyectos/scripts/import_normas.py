"""Load the norma catalog from a spreadsheet on disk.

Usage:
    python -m gestion_proyectos.scripts.import_normas path/to/catalogo.xlsx
"""

from __future__ import annotations

import argparse
import os
import sys

from gestion_proyectos.db.session import SessionLocal
from gestion_proyectos.services.catalog import (
    EmptySheetError,
    UnsupportedTableError,
    import_catalog,
    read_table,
)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Import norma catalog rows (.xlsx or .csv)")
    parser.add_argument("path", help="Spreadsheet to import")
    args = parser.parse_args(argv)

    with open(args.path, "rb") as fh:
        content = fh.read()

    db = SessionLocal()
    try:
        rows = read_table(os.path.basename(args.path), content)
        result = import_catalog(db, rows)
    except (UnsupportedTableError, EmptySheetError) as e:
        print(f"Import failed: {e}")
        sys.exit(1)
    finally:
        db.close()

    print(
        f"Imported {result.total} rows: {result.created} created, "
        f"{result.updated} updated, {result.errors} errors."
    )
    for item in result.rows.failed_items:
        print(f"  row {item} failed")


if __name__ == "__main__":
    main()
