"""
Excel Column Extractor - Column Locator and Extractor

Finds the requested column in the header row and collects its values from the
rows beneath it.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from ..logging_setup import get_logger
from .errors import ColumnNotFoundError, SpreadsheetFormatError
from .models import ColumnLocation
from .spreadsheet_reader import Row, read_rows

logger = get_logger("ColumnExtractor")


def locate_column(header_row: Sequence[str], column_name: str) -> ColumnLocation:
    """Find the leftmost header matching column_name, ignoring case

    Header cells are stripped of surrounding whitespace before comparing.

    Raises:
        ColumnNotFoundError: no header cell matches
    """
    target = column_name.casefold()
    for index, header in enumerate(header_row):
        if header.strip().casefold() == target:
            return ColumnLocation(index=index, matched_header=header)
    raise ColumnNotFoundError(column_name)


def extract_column(rows: Sequence[Row], column_index: int) -> List[str]:
    """Collect the value at column_index from every data row

    rows[0] is the header. Absent rows (None) are skipped; rows that are too
    short yield an empty string so positions stay aligned.
    """
    values = []
    for row in rows[1:]:
        if row is None:
            continue
        values.append(row[column_index] if column_index < len(row) else "")
    return values


def extract_column_from_file(file_path, column_name: str) -> List[str]:
    """Read a workbook and return the values of the named column"""
    path = Path(file_path)
    rows = read_rows(path)

    if not rows:
        raise SpreadsheetFormatError("No rows found in sheet")

    header_row: Optional[List[str]] = rows[0]
    if not header_row:
        raise SpreadsheetFormatError("No header row found")

    location = locate_column(header_row, column_name)
    logger.debug("column_located",
                 file_name=path.name,
                 column_index=location.index,
                 matched_header=location.matched_header)

    return extract_column(rows, location.index)
