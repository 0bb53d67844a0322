"""
Excel Column Extractor - Spreadsheet Reader

Turns the first sheet of a workbook into a list of rows of cell text.

Supported formats:
- .xlsx  Office Open XML (zip package), read with openpyxl
- .xls   BIFF binary workbooks, read with xlrd
- .xml   SpreadsheetML 2003 flat markup, read with ElementTree

Structured formats (.xlsx/.xls) report a row that holds no cells as None so the
extractor can drop it. SpreadsheetML rows are always materialised, with
ss:Index gaps padded by empty strings.
"""

import io
import math
import warnings
import xml.etree.ElementTree as ET
import zipfile
from datetime import date, datetime, time, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import openpyxl
import xlrd
from openpyxl.utils.datetime import WINDOWS_EPOCH, to_excel
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from ..logging_setup import get_logger
from .errors import FileAccessError, SpreadsheetFormatError

# Suppress openpyxl warnings
warnings.filterwarnings('ignore', category=UserWarning, module='openpyxl')

Row = Optional[List[str]]

SUPPORTED_EXTENSIONS = ('.xlsx', '.xls', '.xml')

ZIP_MAGIC = b'PK'
UTF8_BOM = b'\xef\xbb\xbf'
SNIFF_LENGTH = 512

SPREADSHEET_NS = 'urn:schemas-microsoft-com:office:spreadsheet'

# Sheet size limits of the Excel grid
MAX_ROWS = 1048576
MAX_COLUMNS = 16384


class SpreadsheetFormat(Enum):
    """Workbook formats the reader understands"""
    XLSX = "xlsx"
    XLS = "xls"
    XML = "xml"


def classify_spreadsheet(file_name: str, head: bytes) -> SpreadsheetFormat:
    """Pick the parser for a file from its extension and leading bytes

    Files named .xlsx/.xls that are really XML markup (a common export quirk)
    are routed to the SpreadsheetML parser.
    """
    suffix = _extension(file_name)

    if suffix == '.xml':
        return SpreadsheetFormat.XML

    if suffix in ('.xlsx', '.xls'):
        if not head.startswith(ZIP_MAGIC) and _looks_like_markup(head):
            return SpreadsheetFormat.XML
        return SpreadsheetFormat.XLSX if suffix == '.xlsx' else SpreadsheetFormat.XLS

    raise SpreadsheetFormatError(f"Unsupported file type: {file_name}")


def _extension(file_name: str) -> str:
    # Path.suffix is empty for a bare ".xlsx", which discovery still accepts
    name = Path(file_name).name.lower()
    return "." + name.rsplit(".", 1)[1] if "." in name else ""


def _looks_like_markup(head: bytes) -> bool:
    if head.startswith(UTF8_BOM):
        head = head[len(UTF8_BOM):]
    head = head.lstrip()
    return head.startswith(b'<?xml') or head.startswith(b'<')


# Cell value coercion

def format_number(value: float) -> str:
    """Render a number without exponent notation or a trailing .0"""
    if math.isnan(value) or math.isinf(value):
        return str(value)
    if float(value).is_integer():
        return str(int(value))
    return np.format_float_positional(value, trim='-')


def format_cell_value(value: Any, epoch: datetime = WINDOWS_EPOCH) -> str:
    """Convert a raw cell value to the text written to CSV

    Dates and times are numeric cells underneath, so they are written as
    their spreadsheet serial number relative to the workbook epoch.
    """
    if value is None:
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "true" if value else "false"
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        return format_number(float(value))
    if isinstance(value, (datetime, date, time, timedelta)):
        return format_number(float(to_excel(value, epoch)))
    return str(value)


def _formula_text(value: Any) -> str:
    # ArrayFormula / DataTableFormula keep the expression in .text
    text = getattr(value, 'text', value)
    text = "" if text is None else str(text)
    return text[1:] if text.startswith('=') else text


def _trim_absent_rows(rows: List[Row]) -> List[Row]:
    while rows and rows[-1] is None:
        rows.pop()
    return rows


class SpreadsheetReader:
    """Base class for format-specific readers"""

    def read(self, content: bytes, file_name: str) -> List[Row]:
        raise NotImplementedError


class XlsxReader(SpreadsheetReader):
    """Reads .xlsx workbooks with openpyxl

    The workbook is loaded twice: once for cached formula results and once for
    the formula text, used when no cached result was saved.
    """

    def read(self, content: bytes, file_name: str) -> List[Row]:
        try:
            values_book = openpyxl.load_workbook(io.BytesIO(content), data_only=True)
            formula_book = openpyxl.load_workbook(io.BytesIO(content), data_only=False)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
            raise SpreadsheetFormatError(f"Cannot open {file_name} as .xlsx: {e}") from e

        try:
            if not values_book.worksheets:
                return []

            value_sheet = values_book.worksheets[0]
            formula_sheet = formula_book.worksheets[0]

            rows: List[Row] = []
            for value_row, formula_row in zip(value_sheet.iter_rows(), formula_sheet.iter_rows()):
                if all(cell.value is None for cell in formula_row):
                    rows.append(None)
                    continue
                rows.append([
                    self._cell_text(value_cell, formula_cell, values_book.epoch)
                    for value_cell, formula_cell in zip(value_row, formula_row)
                ])
            return _trim_absent_rows(rows)
        finally:
            values_book.close()
            formula_book.close()

    @staticmethod
    def _cell_text(value_cell, formula_cell, epoch) -> str:
        if formula_cell.data_type == 'f':
            if value_cell.value is not None:
                return format_cell_value(value_cell.value, epoch)
            return _formula_text(formula_cell.value)
        return format_cell_value(value_cell.value, epoch)


class XlsReader(SpreadsheetReader):
    """Reads legacy .xls workbooks with xlrd"""

    def read(self, content: bytes, file_name: str) -> List[Row]:
        try:
            book = xlrd.open_workbook(file_contents=content)
        except (xlrd.XLRDError, CompDocError) as e:
            raise SpreadsheetFormatError(f"Cannot open {file_name} as .xls: {e}") from e

        try:
            if book.nsheets == 0:
                return []

            sheet = book.sheet_by_index(0)
            rows: List[Row] = []
            for row_index in range(sheet.nrows):
                cells = sheet.row(row_index)
                if all(cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK) for cell in cells):
                    rows.append(None)
                    continue
                rows.append([self._cell_text(cell) for cell in cells])
            return _trim_absent_rows(rows)
        finally:
            book.release_resources()

    @staticmethod
    def _cell_text(cell) -> str:
        if cell.ctype == xlrd.XL_CELL_TEXT:
            return cell.value
        # Date cells keep their serial number, like any other numeric cell
        if cell.ctype in (xlrd.XL_CELL_NUMBER, xlrd.XL_CELL_DATE):
            return format_number(cell.value)
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return format_cell_value(bool(cell.value))
        if cell.ctype == xlrd.XL_CELL_ERROR:
            return xlrd.error_text_from_code.get(cell.value, "#ERR")
        return ""


class SpreadsheetMLReader(SpreadsheetReader):
    """Reads SpreadsheetML 2003 (.xml) workbooks

    Honors ss:Index on rows and cells and ss:MergeAcross on cells.
    """

    def read(self, content: bytes, file_name: str) -> List[Row]:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise SpreadsheetFormatError(f"Cannot parse {file_name} as XML: {e}") from e

        if _local_name(root.tag) != 'Workbook':
            raise SpreadsheetFormatError(
                f"{file_name} is not a SpreadsheetML workbook (root element <{_local_name(root.tag)}>)"
            )

        worksheet = _first_child(root, 'Worksheet')
        if worksheet is None:
            return []
        table = _first_child(worksheet, 'Table')
        if table is None:
            return []

        rows: List[Row] = []
        for row_el in _children(table, 'Row'):
            position = _int_attribute(row_el, 'Index', MAX_ROWS)
            if position is not None:
                while len(rows) < position - 1:
                    rows.append([])
            rows.append(self._read_row(row_el))
        return rows

    def _read_row(self, row_el: ET.Element) -> List[str]:
        cells: List[str] = []
        for cell_el in _children(row_el, 'Cell'):
            position = _int_attribute(cell_el, 'Index', MAX_COLUMNS)
            if position is not None:
                while len(cells) < position - 1:
                    cells.append("")
            cells.append(self._cell_text(cell_el))

            merge_across = _int_attribute(cell_el, 'MergeAcross', MAX_COLUMNS - 1)
            if merge_across:
                cells.extend([""] * merge_across)
            if len(cells) > MAX_COLUMNS:
                raise SpreadsheetFormatError(f"Row has more than {MAX_COLUMNS} cells")
        return cells

    @staticmethod
    def _cell_text(cell_el: ET.Element) -> str:
        data = _first_child(cell_el, 'Data')
        if data is None:
            formula = _attribute(cell_el, 'Formula')
            return _formula_text(formula) if formula else ""

        text = "".join(data.itertext())
        data_type = _attribute(data, 'Type') or 'String'

        if data_type == 'Number':
            try:
                return format_number(float(text))
            except ValueError:
                return text
        if data_type == 'Boolean':
            return format_cell_value(text.strip().lower() in ('1', 'true'))
        if data_type == 'DateTime':
            try:
                return format_cell_value(datetime.fromisoformat(text.strip()))
            except ValueError:
                return text
        return text


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def _children(element: ET.Element, name: str):
    return [child for child in element if _local_name(child.tag) == name]


def _first_child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _attribute(element: ET.Element, name: str) -> Optional[str]:
    value = element.get(f'{{{SPREADSHEET_NS}}}{name}')
    if value is None:
        value = element.get(name)
    return value


def _int_attribute(element: ET.Element, name: str, limit: int) -> Optional[int]:
    value = _attribute(element, name)
    if value is None:
        return None
    try:
        number = int(value)
    except ValueError as e:
        raise SpreadsheetFormatError(f"Invalid ss:{name} value '{value}'") from e
    if number < 0 or number > limit:
        raise SpreadsheetFormatError(f"ss:{name} value {number} is outside the sheet (limit {limit})")
    return number


READERS: Dict[SpreadsheetFormat, SpreadsheetReader] = {
    SpreadsheetFormat.XLSX: XlsxReader(),
    SpreadsheetFormat.XLS: XlsReader(),
    SpreadsheetFormat.XML: SpreadsheetMLReader(),
}

logger = get_logger("SpreadsheetReader")


def read_rows(file_path) -> List[Row]:
    """Read the first sheet of a workbook as rows of cell text

    Raises:
        FileAccessError: the file could not be read
        SpreadsheetFormatError: the content could not be parsed
    """
    path = Path(file_path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise FileAccessError(f"Cannot read {path.name}: {e.strerror or e}") from e

    spreadsheet_format = classify_spreadsheet(path.name, content[:SNIFF_LENGTH])
    logger.debug("spreadsheet_classified", file_name=path.name, format=spreadsheet_format.value)

    return READERS[spreadsheet_format].read(content, path.name)
