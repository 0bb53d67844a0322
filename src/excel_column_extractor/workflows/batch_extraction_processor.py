"""
Excel Column Extractor - Batch Extraction Processor

This module runs the column extraction over every spreadsheet in a folder.
Each file is processed by its own task, results are collected in discovery
order, and the consolidated outputs are written once all tasks have finished.

Key Features:
- One concurrent task per discovered file
- Per-file failures are recorded without stopping the batch
- Optional merged CSV across all successful files
- Timestamped error log listing every failed file
"""

import sys
import threading
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config.settings import AppConfig, Settings, get_settings
from ..data_extraction.column_extractor import extract_column_from_file
from ..data_extraction.csv_writer import CsvWriter
from ..data_extraction.errors import ExtractionError, FileAccessError
from ..data_extraction.models import ExtractionFailure, ExtractionResult, ExtractionSuccess
from ..discovery.file_discovery import discover_spreadsheets
from ..logging_setup import get_logger

TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'

ERROR_LOG_HEADER = [
    "Excel to CSV Extraction Error Log",
    "Generated: {generated}",
    "-----------------------------------",
]


def _print_out(message: str):
    print(message, flush=True)


def _print_err(message: str):
    print(message, file=sys.stderr, flush=True)


def csv_name_for(source_file: Path) -> str:
    """Output name for a source workbook: same stem, .csv extension"""
    return Path(source_file).with_suffix('.csv').name


def find_output_collisions(files: List[Path]) -> Dict[str, List[Path]]:
    """Group source files whose per-file CSVs would share one name

    Names are compared case-insensitively, as on Windows and macOS volumes.
    """
    by_name: Dict[str, List[Path]] = defaultdict(list)
    for file_path in files:
        by_name[csv_name_for(file_path).casefold()].append(file_path)
    return {name: paths for name, paths in by_name.items() if len(paths) > 1}


class BatchExtractionProcessor:
    """
    Extracts one column from every spreadsheet in a folder
    """

    def __init__(self, config: AppConfig, settings: Optional[Settings] = None,
                 max_workers: Optional[int] = None,
                 echo: Callable[[str], None] = _print_out,
                 echo_error: Callable[[str], None] = _print_err):
        """
        Initialize the batch processor

        Args:
            config: Options for this run
            settings: Environment defaults (output folder names); loaded if omitted
            max_workers: Thread count; defaults to one thread per file
            echo: Receives progress lines
            echo_error: Receives error lines
        """
        self.config = config
        self.settings = settings or get_settings()
        self.max_workers = max_workers
        self.echo = echo
        self.echo_error = echo_error

        self.writer = CsvWriter(config.delimiter, config.encoding, config.scramble)
        self.logger = get_logger("BatchExtractionProcessor")
        self._write_locks: Dict[str, threading.Lock] = {}
        self._write_locks_guard = threading.Lock()

        # Processing stats
        self.stats: Dict = {
            'total_files': 0,
            'successful_extractions': 0,
            'failed_extractions': 0,
            'merged_csv': None,
            'error_log': None,
            'discovery_error': None,
            'start_time': None,
            'end_time': None,
        }

    @property
    def output_dir(self) -> Path:
        return Path(self.config.folder_path) / self.settings.output_dir_name

    def run(self) -> List[ExtractionResult]:
        """
        Discover, extract and aggregate

        Returns:
            One result per discovered file, in discovery order

        Raises:
            FileAccessError: the output folder could not be created
        """
        folder = Path(self.config.folder_path)
        self.stats['start_time'] = datetime.now()
        self.logger.info("batch_processing_started",
                         folder=str(folder),
                         column=self.config.column_name,
                         merge=self.config.merge_output)

        try:
            files = discover_spreadsheets(folder)
        except FileAccessError as e:
            self.logger.error("file_discovery_failed", folder=str(folder), error=str(e))
            self.stats['discovery_error'] = str(e)
            self.echo_error(f"Error: {e}")
            return []

        if not files:
            self.echo(f"No spreadsheet files found in {folder}")
            return []

        self.stats['total_files'] = len(files)
        if not self.config.merge_output:
            self.warn_output_collisions(files)
        self.prepare_output_dir()

        results = self.process_files(files)
        self.handle_results(results)

        self.stats['end_time'] = datetime.now()
        self.logger.info("batch_processing_complete",
                         total_files=self.stats['total_files'],
                         successful=self.stats['successful_extractions'],
                         failed=self.stats['failed_extractions'],
                         duration_seconds=(self.stats['end_time'] - self.stats['start_time']).total_seconds())
        return results

    def warn_output_collisions(self, files: List[Path]):
        """Report source files that would overwrite each other's CSV"""
        for csv_name, sources in find_output_collisions(files).items():
            names = [source.name for source in sources]
            self.logger.warning("output_name_collision", csv_name=csv_name, sources=names)
            self.echo_error(f"Warning: {', '.join(names)} all write to the same CSV; only one will be kept")

    def prepare_output_dir(self) -> Path:
        """Create the CSV output folder before any task starts"""
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.logger.error("output_dir_creation_failed", path=str(self.output_dir), error=str(e))
            raise FileAccessError(f"Cannot create output folder {self.output_dir}: {e.strerror or e}") from e
        return self.output_dir

    def process_files(self, files: List[Path]) -> List[ExtractionResult]:
        """Run one task per file and wait for all of them

        Results are returned in submission order, not completion order.
        """
        workers = self.max_workers or len(files)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="extract") as executor:
            futures = [executor.submit(self.process_single_file, file_path) for file_path in files]
            return [future.result() for future in futures]

    def _write_lock(self, csv_path: Path) -> threading.Lock:
        # one lock per output file, shared by colliding source names
        with self._write_locks_guard:
            return self._write_locks.setdefault(str(csv_path).casefold(), threading.Lock())

    def process_single_file(self, file_path: Path) -> ExtractionResult:
        """
        Process a single spreadsheet

        Any exception is turned into an ExtractionFailure.
        """
        file_name = file_path.name
        self.echo(f"Processing: {file_name}")
        self.logger.info("file_extraction_started", file_name=file_name)
        start_time = time.time()

        try:
            values = extract_column_from_file(file_path, self.config.column_name)

            csv_file = None
            if not self.config.merge_output:
                csv_path = self.output_dir / csv_name_for(file_path)
                with self._write_lock(csv_path):
                    csv_file = self.writer.write(values, csv_path)

            self.logger.info("file_extraction_complete",
                             file_name=file_name,
                             rows=len(values),
                             duration=time.time() - start_time)
            return ExtractionSuccess(
                source_file=file_path,
                csv_file=csv_file,
                row_count=len(values),
                values=tuple(values),
            )

        except Exception as e:
            message = str(e) or type(e).__name__
            self.logger.warning("file_extraction_failed", file_name=file_name, error=message)
            if not isinstance(e, ExtractionError):
                self.logger.debug("file_extraction_traceback", file_name=file_name, exc_info=True)
            return ExtractionFailure(source_file=file_path, error_message=message)

    def handle_results(self, results: List[ExtractionResult]):
        """Report each result, then write the merged CSV and error log"""
        successes: List[ExtractionSuccess] = []
        failures: List[ExtractionFailure] = []

        for result in results:
            if isinstance(result, ExtractionSuccess):
                successes.append(result)
                if result.csv_file is None:
                    self.echo(f"Extracted {result.row_count} rows from: {result.source_file.name}")
                else:
                    self.echo(f"Created CSV for: {result.source_file.name} ({result.row_count} rows)")
            elif isinstance(result, ExtractionFailure):
                failures.append(result)
                self.echo_error(f"{result.source_file.name}: {result.error_message}")
            else:
                raise TypeError(f"Unexpected result type: {type(result).__name__}")

        self.stats['successful_extractions'] = len(successes)
        self.stats['failed_extractions'] = len(failures)

        timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)

        if self.config.merge_output and successes:
            self.stats['merged_csv'] = self.write_merged_csv(successes, timestamp)

        if failures:
            self.stats['error_log'] = self.write_error_log(failures, timestamp)

        self.echo(f"\nCompleted: {len(successes)} successful, {len(failures)} failed")
        if self.stats['merged_csv']:
            self.echo(f"Merged CSV written to: {self.stats['merged_csv']}")
        if self.stats['error_log']:
            self.echo(f"Error log written to: {self.stats['error_log']}")

    def write_merged_csv(self, successes: List[ExtractionSuccess], timestamp: str) -> Optional[Path]:
        """Write all successful values, in discovery order, to one CSV"""
        merged_values = [value for result in successes for value in result.values]
        merged_path = self.output_dir / f"merged_{timestamp}.csv"

        try:
            self.writer.write(merged_values, merged_path)
        except ExtractionError as e:
            self.logger.error("merged_csv_failed", path=str(merged_path), error=str(e))
            self.echo_error(f"Failed to write merged CSV: {e}")
            return None

        self.logger.info("merged_csv_written",
                         path=str(merged_path),
                         files=len(successes),
                         rows=len(merged_values))
        return merged_path

    def write_error_log(self, failures: List[ExtractionFailure], timestamp: str) -> Optional[Path]:
        """Write one '<file>: <message>' line per failure"""
        log_dir = self.output_dir / self.settings.log_dir_name
        log_file = log_dir / f"error_log_{timestamp}.txt"

        lines = [line.format(generated=datetime.now().isoformat(timespec='seconds'))
                 for line in ERROR_LOG_HEADER]
        lines.extend(f"{failure.source_file.name}: {failure.error_message}" for failure in failures)

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
        except OSError as e:
            self.logger.error("error_log_failed", path=str(log_file), error=str(e))
            self.echo_error(f"Failed to write error log: {e}")
            return None

        self.logger.info("error_log_written", path=str(log_file), failures=len(failures))
        return log_file


def run_extraction(config: AppConfig, **kwargs) -> List[ExtractionResult]:
    """Convenience wrapper: build a processor and run it"""
    return BatchExtractionProcessor(config, **kwargs).run()
