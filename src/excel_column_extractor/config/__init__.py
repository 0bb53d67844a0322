"""
Configuration for the Excel Column Extractor
"""

from .settings import (
    AppConfig,
    ConfigurationError,
    CsvDelimiter,
    CsvEncoding,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    'AppConfig',
    'ConfigurationError',
    'CsvDelimiter',
    'CsvEncoding',
    'Settings',
    'get_settings',
    'reload_settings',
]
