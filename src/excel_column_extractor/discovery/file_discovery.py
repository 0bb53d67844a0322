# src/excel_column_extractor/discovery/file_discovery.py
import os
from pathlib import Path
from typing import List

from ..data_extraction.errors import FileAccessError
from ..data_extraction.spreadsheet_reader import SUPPORTED_EXTENSIONS
from ..logging_setup import get_logger

logger = get_logger("FileDiscovery")


def is_supported_file(file_name: str) -> bool:
    """True if the name ends in a supported spreadsheet extension"""
    return file_name.lower().endswith(SUPPORTED_EXTENSIONS)


def discover_spreadsheets(folder_path) -> List[Path]:
    """List the spreadsheets directly inside folder_path

    Only regular files are returned; subfolders are not scanned. The list is
    sorted by file name and that order is kept through the whole run.

    Raises:
        FileAccessError: the folder could not be listed
    """
    folder = Path(folder_path)
    try:
        with os.scandir(folder) as entries:
            files = [
                Path(entry.path)
                for entry in entries
                if entry.is_file() and is_supported_file(entry.name)
            ]
    except OSError as e:
        raise FileAccessError(f"Cannot list folder {folder}: {e.strerror or e}") from e

    files.sort(key=lambda p: p.name)

    logger.info("files_discovered", folder=str(folder), count=len(files))
    return files
