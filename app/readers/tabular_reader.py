"""
app/readers/tabular_reader.py

Loads CSV and spreadsheet uploads into ordered, header-keyed records.

Spreadsheet sources may hold many sheets; the KPI and catalog readers pick
the right one by name preference first and by header inspection second.
"""

from __future__ import annotations

import csv
import io
import logging
import struct
import zipfile
from collections.abc import Callable, Iterator, Sequence
from contextlib import closing
from typing import Any

import xlrd
from openpyxl import load_workbook
from xlrd.compdoc import CompDocError
from openpyxl.utils.exceptions import InvalidFileException

from app.domain.imports import CellValue, RawRecord
from app.mappers.header_mapper import has_required_kpi_columns, is_catalog_header

logger = logging.getLogger(__name__)

CSV_EXTENSIONS: tuple[str, ...] = (".csv",)
SPREADSHEET_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls")

KPI_PREFERRED_SHEETS: tuple[str, ...] = (
    "Externos",
    "Rendimentos",
    "Copia de Rendimentos",
    "Cópia de Rendimentos",
)
CATALOG_PREFERRED_SHEETS: tuple[str, ...] = ("Base", "BASE", "Pedidos Base")

ZIP_SIGNATURE = b"PK\x03\x04"

# xlrd surfaces truncated or corrupt BIFF streams through more than XLRDError.
_XLS_READ_ERRORS: tuple[type[BaseException], ...] = (
    xlrd.XLRDError,
    CompDocError,
    struct.error,
    IndexError,
    ValueError,
    AssertionError,
    EOFError,
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class TabularFormatError(ValueError):
    """
    Raised when an upload cannot be read as a tabular source.
    """


class UnsupportedFormatError(TabularFormatError):
    """
    Raised for file extensions other than CSV/XLSX/XLS.
    """


class SheetNotFoundError(TabularFormatError):
    """
    Raised when an explicitly requested sheet does not exist.
    """

    def __init__(self, sheet_name: str) -> None:
        super().__init__(f"Sheet '{sheet_name}' was not found in the workbook.")
        self.sheet_name = sheet_name


class NoQualifyingSheetError(TabularFormatError):
    """
    Raised when no sheet carries the KPI columns.
    """


# ---------------------------------------------------------------------------
# Workbook access
# ---------------------------------------------------------------------------


class _Workbook:
    """
    Minimal read interface over openpyxl and xlrd workbooks.
    """

    def __init__(
        self,
        sheet_names: Sequence[str],
        row_source: Callable[[str], Iterator[Sequence[Any]]],
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.sheet_names = list(sheet_names)
        self._row_source = row_source
        self._on_close = on_close

    def has_sheet(self, name: str) -> bool:
        return name in self.sheet_names

    def iter_rows(self, name: str) -> Iterator[Sequence[Any]]:
        return self._row_source(name)

    def header_row(self, name: str) -> list[Any]:
        for row in self.iter_rows(name):
            if not _is_blank_row(row):
                return list(row)
        return []

    def close(self) -> None:
        if self._on_close is not None:
            self._on_close()


def _open_workbook(content: bytes) -> _Workbook:
    # Dispatch on the file signature, not the extension.
    if content.startswith(ZIP_SIGNATURE):
        return _open_xlsx(content)
    return _open_xls(content)


def _open_xlsx(content: bytes) -> _Workbook:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise TabularFormatError("Spreadsheet could not be read as XLSX.") from exc

    def rows(name: str) -> Iterator[Sequence[Any]]:
        return workbook[name].iter_rows(values_only=True)

    return _Workbook(workbook.sheetnames, rows, workbook.close)


def _open_xls(content: bytes) -> _Workbook:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except _XLS_READ_ERRORS as exc:
        raise TabularFormatError("Spreadsheet could not be read as XLS or XLSX.") from exc

    def rows(name: str) -> Iterator[Sequence[Any]]:
        sheet = book.sheet_by_name(name)
        for index in range(sheet.nrows):
            yield [_xls_cell_value(cell, book.datemode) for cell in sheet.row(index)]

    return _Workbook(book.sheet_names(), rows, book.release_resources)


def _xls_cell_value(cell: Any, datemode: int) -> CellValue:
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_NUMBER and float(cell.value).is_integer():
        return int(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return None
    return cell.value


def _is_blank_row(row: Sequence[Any]) -> bool:
    return all(value is None or str(value).strip() == "" for value in row)


def _sheet_records(workbook: _Workbook, name: str) -> list[RawRecord]:
    """
    Convert one sheet into records keyed by its first non-blank row.

    Blank cells become ``""``; blank-header columns are dropped and repeated
    headers get ``_1``, ``_2`` suffixes.
    """

    rows = iter(workbook.iter_rows(name))
    header: list[Any] | None = None
    for row in rows:
        if not _is_blank_row(row):
            header = list(row)
            break
    if header is None:
        return []

    keys = _unique_keys(header)
    records: list[RawRecord] = []
    for row in rows:
        if _is_blank_row(row):
            continue
        record: RawRecord = {}
        for position, key in enumerate(keys):
            if key is None:
                continue
            value = row[position] if position < len(row) else None
            record[key] = "" if value is None else value
        records.append(record)
    return records


def _unique_keys(header: Sequence[Any]) -> list[str | None]:
    seen: dict[str, int] = {}
    keys: list[str | None] = []
    for cell in header:
        if cell is None or str(cell).strip() == "":
            keys.append(None)
            continue
        key = str(cell)
        count = seen.get(key, 0)
        seen[key] = count + 1
        keys.append(key if count == 0 else f"{key}_{count}")
    return keys


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def _read_csv(content: bytes) -> list[RawRecord]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise TabularFormatError("CSV must be UTF-8 encoded.") from exc

    try:
        reader = csv.DictReader(io.StringIO(text, newline=""))
        records: list[RawRecord] = []
        for raw_row in reader:
            record: RawRecord = {}
            for key, value in raw_row.items():
                if key is None:
                    continue
                record[key.strip()] = value.strip() if isinstance(value, str) else value
            records.append(record)
    except csv.Error as exc:
        raise TabularFormatError(f"Invalid CSV format: {exc}") from exc
    return records


# ---------------------------------------------------------------------------
# Sheet selection
# ---------------------------------------------------------------------------


def select_kpi_sheet(workbook: _Workbook, requested_sheet: str | None = None) -> str:
    """
    Pick the sheet holding the KPI columns.

    An explicit name is used verbatim. Otherwise preferred names are tried
    in order, then every sheet in file order; the first whose header row
    carries all KPI fields wins.
    """

    if requested_sheet:
        if not workbook.has_sheet(requested_sheet):
            raise SheetNotFoundError(requested_sheet)
        return requested_sheet

    for name in KPI_PREFERRED_SHEETS:
        if workbook.has_sheet(name) and has_required_kpi_columns(workbook.header_row(name)):
            return name

    for name in workbook.sheet_names:
        if has_required_kpi_columns(workbook.header_row(name)):
            return name

    raise NoQualifyingSheetError(
        "No sheet with KPI columns found (Usuario, Data, Pedidos, Volume, Peso)."
    )


def select_catalog_sheet(workbook: _Workbook) -> str | None:
    for name in CATALOG_PREFERRED_SHEETS:
        if workbook.has_sheet(name):
            return name

    for name in workbook.sheet_names:
        if is_catalog_header(workbook.header_row(name)):
            return name
    return None


# ---------------------------------------------------------------------------
# Public readers
# ---------------------------------------------------------------------------


def read_kpi_records(
    filename: str,
    content: bytes,
    sheet_name: str | None = None,
) -> list[RawRecord]:
    """
    Read a KPI feed. Raises a ``TabularFormatError`` subclass when the file
    cannot supply KPI records.
    """

    lower_name = filename.lower()
    if lower_name.endswith(CSV_EXTENSIONS):
        return _read_csv(content)
    if not lower_name.endswith(SPREADSHEET_EXTENSIONS):
        raise UnsupportedFormatError("Unsupported file format. Upload a CSV or XLSX file.")

    with closing(_open_workbook(content)) as workbook:
        selected = select_kpi_sheet(workbook, sheet_name)
        logger.info("KPI sheet selected filename=%r sheet=%r", filename, selected)
        return _sheet_records(workbook, selected)


def read_catalog_records(filename: str, content: bytes) -> list[RawRecord]:
    """
    Read a catalog ("Base") feed. A workbook without a usable sheet yields
    an empty list; an unknown extension raises ``UnsupportedFormatError``.
    """

    lower_name = filename.lower()
    if lower_name.endswith(CSV_EXTENSIONS):
        return _read_csv(content)
    if not lower_name.endswith(SPREADSHEET_EXTENSIONS):
        raise UnsupportedFormatError("Unsupported file format. Upload a CSV or XLSX file.")

    with closing(_open_workbook(content)) as workbook:
        selected = select_catalog_sheet(workbook)
        if selected is None:
            logger.info("No catalog sheet found filename=%r sheets=%r", filename, workbook.sheet_names)
            return []
        logger.info("Catalog sheet selected filename=%r sheet=%r", filename, selected)
        return _sheet_records(workbook, selected)
