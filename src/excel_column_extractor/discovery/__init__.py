"""
Excel Column Extractor - File Discovery
Finds candidate workbooks in an input folder
"""

from .file_discovery import discover_spreadsheets, is_supported_file

__all__ = [
    'discover_spreadsheets',
    'is_supported_file',
]
