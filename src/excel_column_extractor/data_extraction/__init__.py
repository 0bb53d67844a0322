"""
Excel Column Extractor - Data Extraction Package
Reads workbooks, locates a column and writes its values to CSV
"""

# Make key classes available at package level
from .column_extractor import (
    extract_column,
    extract_column_from_file,
    locate_column,
)
from .csv_writer import (
    CsvWriter,
    is_balanced_csv,
    scramble_value,
    unescape_csv_value,
)
from .errors import (
    ColumnNotFoundError,
    CsvValidationError,
    ExtractionError,
    FileAccessError,
    SpreadsheetFormatError,
)
from .models import (
    ColumnLocation,
    ExtractionFailure,
    ExtractionResult,
    ExtractionSuccess,
)
from .spreadsheet_reader import (
    SUPPORTED_EXTENSIONS,
    SpreadsheetFormat,
    classify_spreadsheet,
    read_rows,
)

__all__ = [
    'ColumnLocation',
    'ColumnNotFoundError',
    'CsvValidationError',
    'CsvWriter',
    'ExtractionError',
    'ExtractionFailure',
    'ExtractionResult',
    'ExtractionSuccess',
    'FileAccessError',
    'SUPPORTED_EXTENSIONS',
    'SpreadsheetFormat',
    'SpreadsheetFormatError',
    'classify_spreadsheet',
    'extract_column',
    'extract_column_from_file',
    'is_balanced_csv',
    'locate_column',
    'read_rows',
    'scramble_value',
    'unescape_csv_value',
]
