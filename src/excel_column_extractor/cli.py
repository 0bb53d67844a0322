"""CLI for excel-column-extractor."""

import argparse
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .config.settings import (
    VALID_LOG_LEVELS,
    AppConfig,
    ConfigurationError,
    CsvDelimiter,
    CsvEncoding,
    get_settings,
)
from .data_extraction.errors import ExtractionError
from .logging_setup import get_logger, setup_logging
from .workflows.batch_extraction_processor import BatchExtractionProcessor

logger = get_logger("cli")


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on bad arguments"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser(default_delimiter: CsvDelimiter, default_encoding: CsvEncoding) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="excel-column-extractor",
        description="Extract a named column from every Excel file in a folder into CSV files. "
                    "Run without arguments to open the graphical interface.",
    )
    parser.add_argument('column_name', help='Column header to extract (case-insensitive)')
    parser.add_argument('folder_path', help='Folder containing .xlsx, .xls or .xml files')
    parser.add_argument('-m', '--merge', action='store_true',
                        help='Merge all results into a single CSV file')
    parser.add_argument('-d', '--delimiter', type=str.lower, choices=CsvDelimiter.names(),
                        default=default_delimiter.cli_name,
                        help=f'CSV field separator (default: {default_delimiter.cli_name})')
    parser.add_argument('-e', '--encoding', type=str.lower, choices=CsvEncoding.names(),
                        default=default_encoding.cli_name,
                        help=f'CSV file encoding (default: {default_encoding.cli_name})')
    parser.add_argument('--scramble', action='store_true',
                        help='Scramble output text to anonymize data (debug only)')
    parser.add_argument('--log-level', type=str.upper, choices=VALID_LOG_LEVELS,
                        help='Logging level (default: EXTRACTOR_LOG_LEVEL or ERROR)')
    return parser


def _launch_gui():
    from .gui import launch
    launch()


def main(argv: Optional[List[str]] = None, launch_gui: Callable[[], None] = _launch_gui) -> int:
    """Entry point. Returns the process exit status."""
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        try:
            launch_gui()
        except ConfigurationError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 1
        return 0

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    args = build_parser(settings.delimiter, settings.encoding).parse_args(argv)

    setup_logging(args.log_level or settings.log_level, settings.log_file)

    column_name = args.column_name.strip()
    if not column_name:
        print("Error: column name must not be empty", file=sys.stderr)
        return 1

    folder = Path(args.folder_path)
    if not folder.is_dir():
        print(f"Error: {args.folder_path} is not a valid directory", file=sys.stderr)
        return 1

    config = AppConfig(
        column_name=column_name,
        folder_path=folder,
        merge_output=args.merge,
        delimiter=CsvDelimiter.from_name(args.delimiter),
        encoding=CsvEncoding.from_name(args.encoding),
        scramble=args.scramble,
    )

    try:
        BatchExtractionProcessor(config, settings=settings).run()
    except ExtractionError as e:
        logger.error("extraction_aborted", error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
