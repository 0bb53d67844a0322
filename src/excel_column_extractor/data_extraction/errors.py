"""
Exception classes raised by the extraction pipeline
"""


class ExtractionError(Exception):
    """Base exception for extraction errors"""
    pass


class FileAccessError(ExtractionError):
    """File or folder could not be read or written"""
    pass


class SpreadsheetFormatError(ExtractionError):
    """Spreadsheet content could not be parsed"""
    pass


class ColumnNotFoundError(ExtractionError):
    """Requested column is absent from the header row"""

    def __init__(self, column_name: str):
        super().__init__(f"Column '{column_name}' not found")
        self.column_name = column_name


class CsvValidationError(ExtractionError):
    """Written CSV failed the quote-balance check"""
    pass
