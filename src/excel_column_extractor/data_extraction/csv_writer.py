"""
Excel Column Extractor - CSV Writer

Writes one value per line. Every line ends with the delimiter followed by a
newline, including the last one; downstream imports rely on that layout.
"""

import codecs
import hashlib
import random
from itertools import groupby
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd

from ..config.settings import CsvDelimiter, CsvEncoding
from ..logging_setup import get_logger
from .errors import CsvValidationError, FileAccessError

LINE_TERMINATOR = "\n"
QUOTE = '"'


def unescape_csv_value(text: str, delimiter: str) -> str:
    """Undo the quoting applied by CsvWriter.format_text to a single field"""
    if len(text) >= 2 and text.startswith(QUOTE) and text.endswith(QUOTE):
        return text[1:-1].replace(QUOTE * 2, QUOTE)
    return text


def is_balanced_csv(text: str) -> bool:
    """Check that every quoted field in text is closed

    A doubled quote inside a quoted field is a literal quote. Line breaks do
    not reset the state, so a quoted field may span lines.
    """
    inside_quotes = False
    i = 0
    while i < len(text):
        if text[i] == QUOTE:
            if inside_quotes and i + 1 < len(text) and text[i + 1] == QUOTE:
                i += 2
                continue
            inside_quotes = not inside_quotes
        i += 1
    return not inside_quotes


def scramble_value(value: str) -> str:
    """Shuffle the characters inside each alphanumeric run of value

    The generator is seeded from the value's SHA-256 digest, so the same input
    always scrambles the same way. Separators keep their positions.
    """
    seed = int.from_bytes(hashlib.sha256(value.encode("utf-8")).digest()[:8], "big")
    rng = random.Random(seed)

    parts = []
    for is_word, group in groupby(value, key=str.isalnum):
        chars = list(group)
        if is_word:
            # Fisher-Yates
            for i in range(len(chars) - 1, 0, -1):
                j = rng.randint(0, i)
                chars[i], chars[j] = chars[j], chars[i]
        parts.append("".join(chars))
    return "".join(parts)


class CsvWriter:
    """Formats, encodes, writes and validates single-column CSV files"""

    def __init__(self, delimiter: CsvDelimiter = CsvDelimiter.SEMICOLON,
                 encoding: CsvEncoding = CsvEncoding.UTF_8,
                 scramble: bool = False):
        self.delimiter = delimiter
        self.encoding = encoding
        self.scramble = scramble
        self.logger = get_logger("CsvWriter")

    def prepare_values(self, values: Iterable[Optional[str]]) -> List[str]:
        """Drop blank values and scramble the rest when requested"""
        kept = [value for value in values if value is not None and value.strip()]
        if self.scramble:
            kept = [scramble_value(value) for value in kept]
        return kept

    def format_text(self, values: List[str]) -> str:
        """Render one value per line, each followed by the delimiter

        The empty second column produces the trailing delimiter; pandas quotes
        values holding the delimiter, a quote or a line break.
        """
        if not values:
            return ""
        frame = pd.DataFrame({'value': values, '': ''})
        return frame.to_csv(sep=self.delimiter.char, header=False, index=False,
                            lineterminator=LINE_TERMINATOR)

    def encode(self, text: str) -> bytes:
        data = text.encode(self.encoding.codec, errors="replace")
        if self.encoding.bom:
            data = codecs.BOM_UTF8 + data
        return data

    def decode(self, data: bytes) -> str:
        codec = "utf-8-sig" if self.encoding.bom else self.encoding.codec
        return data.decode(codec, errors="replace")

    def write(self, values: Iterable[Optional[str]], output_path) -> Path:
        """Write values to output_path and validate the result

        Raises:
            FileAccessError: the file could not be written or re-read
            CsvValidationError: the written file has an unclosed quoted field
        """
        path = Path(output_path)
        kept = self.prepare_values(values)
        data = self.encode(self.format_text(kept))

        try:
            path.write_bytes(data)
        except OSError as e:
            raise FileAccessError(f"Cannot write {path.name}: {e.strerror or e}") from e

        self.validate(path)

        self.logger.info("csv_written",
                         path=str(path),
                         lines=len(kept),
                         delimiter=self.delimiter.cli_name,
                         encoding=self.encoding.cli_name)
        return path

    def validate(self, path: Path) -> None:
        """Re-read a written CSV and check its quoting"""
        try:
            text = self.decode(path.read_bytes())
        except OSError as e:
            raise FileAccessError(f"Cannot read back {path.name}: {e.strerror or e}") from e

        if not is_balanced_csv(text):
            self.logger.error("csv_validation_failed", path=str(path))
            raise CsvValidationError(f"Generated CSV has an unclosed quoted field: {path.name}")
