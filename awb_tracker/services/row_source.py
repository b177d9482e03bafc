# services/row_source.py

"""
Row source - turns an uploaded CSV or spreadsheet into ordered rows
"""

import csv
import io
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from openpyxl import load_workbook
from python_calamine import CalamineWorkbook

from awb_tracker.core.config import settings
from awb_tracker.core.errors import RowSourceError

logger = logging.getLogger(__name__)

Row = Dict[str, str]


def _cell_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        # Numeric MAWBs come back from spreadsheets as floats
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def find_identifier_column(headers: Iterable[str], hint: str) -> Optional[str]:
    """Return the first header containing the hint, case-insensitively"""
    needle = hint.upper()
    for header in headers:
        if header and needle in header.upper():
            return header
    return None


class RowSource:
    """Materialized, restartable sequence of rows from one uploaded file"""

    def __init__(self, headers: Sequence[str], rows: List[Row], hint: Optional[str] = None):
        hint = hint or settings.identifier_column_hint
        column = find_identifier_column(headers, hint)
        if column is None:
            raise RowSourceError(f"{hint} column not found in file")

        self.headers = list(headers)
        self.identifier_column = column
        self._rows = rows

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def total(self) -> int:
        return len(self._rows)

    def identifier(self, row: Row) -> str:
        return row.get(self.identifier_column, "")

    @classmethod
    def from_upload(cls, filename: str, content: bytes, hint: Optional[str] = None) -> "RowSource":
        """Parse raw upload bytes, picking the decoder from the file extension"""
        suffix = Path(filename).suffix.lower()
        logger.info(f"Parsing upload '{filename}' ({len(content)} bytes) as {suffix or 'csv'}")

        try:
            if suffix == ".xlsx":
                headers, rows = _read_xlsx(content)
            elif suffix == ".xls":
                headers, rows = _read_xls(content)
            else:
                headers, rows = _read_csv(content)
        except RowSourceError:
            raise
        except Exception as e:
            logger.error(f"Failed to parse '{filename}': {e}", exc_info=True)
            raise RowSourceError(f"Could not read {filename}: {e}") from e

        source = cls(headers, rows, hint=hint)
        logger.info(
            f"Parsed {source.total} rows from '{filename}', "
            f"identifier column '{source.identifier_column}'"
        )
        return source


def _read_csv(content: bytes):
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise RowSourceError(f"File is not valid UTF-8 text: {e}") from e

    reader = csv.DictReader(io.StringIO(text))
    headers = [h.strip() for h in (reader.fieldnames or [])]
    if not headers:
        raise RowSourceError("File has no header row")

    rows: List[Row] = []
    for record in reader:
        # Overflow cells land under the None key; they have no header to match
        row = {
            key.strip(): (value or "").strip()
            for key, value in record.items()
            if key is not None
        }
        if not any(row.values()):
            continue
        rows.append(row)
    return headers, rows


def _rows_from_matrix(matrix: Iterable[Sequence[Any]]):
    iterator = iter(matrix)
    try:
        header_cells = next(iterator)
    except StopIteration:
        raise RowSourceError("Worksheet is empty")

    headers = [_cell_to_text(cell) for cell in header_cells]

    rows: List[Row] = []
    for cells in iterator:
        values = [_cell_to_text(cell) for cell in cells]
        if not any(values):
            continue
        row = {}
        for index, header in enumerate(headers):
            if not header:
                continue
            row[header] = values[index] if index < len(values) else ""
        rows.append(row)
    return headers, rows


def _read_xlsx(content: bytes):
    workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        worksheet = workbook.worksheets[0]
        return _rows_from_matrix(worksheet.iter_rows(values_only=True))
    finally:
        workbook.close()


def _read_xls(content: bytes):
    workbook = CalamineWorkbook.from_filelike(io.BytesIO(content))
    sheet = workbook.get_sheet_by_index(0)
    return _rows_from_matrix(sheet.to_python())
