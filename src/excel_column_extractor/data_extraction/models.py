"""Result records produced by the extraction pipeline."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union


@dataclass(frozen=True)
class ColumnLocation:
    """Index and header text of the column picked for extraction."""

    index: int
    matched_header: str


@dataclass(frozen=True)
class ExtractionSuccess:
    """Values extracted from one spreadsheet.

    ``csv_file`` is None when the write was deferred for merging.
    """

    source_file: Path
    csv_file: Optional[Path]
    row_count: int
    values: Tuple[str, ...]

    def __post_init__(self):
        if len(self.values) != self.row_count:
            raise ValueError(
                f"row_count {self.row_count} does not match {len(self.values)} values"
            )


@dataclass(frozen=True)
class ExtractionFailure:
    """A spreadsheet that could not be processed."""

    source_file: Path
    error_message: str


ExtractionResult = Union[ExtractionSuccess, ExtractionFailure]
