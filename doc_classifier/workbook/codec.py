"""Spreadsheet codec: first sheet rows <-> DocumentRow."""

import io
import zipfile
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.cell.cell import Cell
from openpyxl.styles import Font
from openpyxl.utils.exceptions import InvalidFileException

from doc_classifier.logging.logger import Log
from doc_classifier.processor.models import DocumentRow
from doc_classifier.workbook.exceptions import WorkbookError

COLUMNS = (
    ("customer", "Customer"),
    ("file", "File"),
    ("expected_output", "Expected Output"),
    ("actual_output", "Actual Output"),
    ("output_result", "Result"),
    ("expected_group", "Expected Group"),
    ("actual_group", "Actual Group"),
    # Trailing space keeps the two result headers distinct.
    ("group_result", "Result "),
)
SHEET_TITLE = "Sheet1"


def parse_workbook(source: Path | bytes) -> list[DocumentRow]:
    """Parse the first sheet into rows.

    Row 0 is the header. Rows with an empty customer cell are dropped; ids are
    "row-{n}" with n the sheet row ordinal.

    Raises:
        WorkbookError: if the workbook cannot be opened.
    """
    handle = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        workbook = openpyxl.load_workbook(handle, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
        raise WorkbookError(f"Failed to read workbook: {exc}") from exc

    try:
        sheet = workbook.worksheets[0]
        rows: list[DocumentRow] = []
        for row_index, values in enumerate(sheet.iter_rows(values_only=True)):
            if row_index == 0:
                continue
            cells = [_cell_text(value) for value in values[: len(COLUMNS)]]
            cells += [""] * (len(COLUMNS) - len(cells))
            if not cells[0]:
                continue
            fields = {name: cells[i] for i, (name, _header) in enumerate(COLUMNS)}
            rows.append(DocumentRow(id=f"row-{row_index}", row_index=row_index, **fields))
    finally:
        workbook.close()

    Log.info(f"Parsed {len(rows)} rows from workbook")
    return rows


def export_workbook(rows: list[DocumentRow], path: Path) -> Path:
    """Write rows to a single-sheet workbook with human-readable headers."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE
    sheet.append([header for _name, header in COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append([getattr(row, name) for name, _header in COLUMNS])
        for cell in sheet[sheet.max_row]:
            _store_as_text(cell)
    try:
        workbook.save(path)
    except OSError as exc:
        raise WorkbookError(f"Failed to write workbook {path}: {exc}") from exc
    Log.info(f"Exported {len(rows)} rows to {path}")
    return path


def _store_as_text(cell: Cell) -> None:
    # openpyxl treats any string starting with "=" as a formula.
    if isinstance(cell.value, str) and cell.value.startswith("="):
        cell.data_type = "s"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
