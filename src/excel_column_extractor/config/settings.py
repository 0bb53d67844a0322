# src/excel_column_extractor/config/settings.py
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Find the project root directory
def find_project_root() -> Path:
    """Find the project root by looking for .env file"""
    current = Path(__file__).resolve()

    for parent in current.parents:
        if (parent / '.env').exists():
            return parent
        if (parent / 'src').exists() and (parent / '.env.template').exists():
            return parent

    # Default to the working directory
    return Path.cwd()


PROJECT_ROOT = find_project_root()
ENV_PATH = PROJECT_ROOT / '.env'

# A missing .env is fine: every setting has a default
load_dotenv(ENV_PATH)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing"""
    pass


class CsvDelimiter(Enum):
    """Field separators offered for CSV output"""
    COMMA = ("comma", ",")
    SEMICOLON = ("semicolon", ";")
    TAB = ("tab", "\t")
    PIPE = ("pipe", "|")
    COLON = ("colon", ":")
    SPACE = ("space", " ")

    def __init__(self, cli_name: str, char: str):
        self.cli_name = cli_name
        self.char = char

    @classmethod
    def from_name(cls, name: str) -> "CsvDelimiter":
        for member in cls:
            if member.cli_name == name.strip().lower():
                return member
        raise ConfigurationError(
            f"Unknown delimiter '{name}'. Choose one of: {', '.join(cls.names())}"
        )

    @classmethod
    def names(cls):
        return [member.cli_name for member in cls]

    def __str__(self):
        return self.cli_name


class CsvEncoding(Enum):
    """Character sets offered for CSV output"""
    UTF_8 = ("utf8", "utf-8", False)
    UTF_8_BOM = ("utf8bom", "utf-8", True)
    LATIN_1 = ("latin1", "latin-1", False)
    WINDOWS_1252 = ("windows1252", "cp1252", False)
    UTF_16 = ("utf16", "utf-16", False)
    US_ASCII = ("ascii", "ascii", False)

    def __init__(self, cli_name: str, codec: str, bom: bool):
        self.cli_name = cli_name
        self.codec = codec
        self.bom = bom

    @classmethod
    def from_name(cls, name: str) -> "CsvEncoding":
        for member in cls:
            if member.cli_name == name.strip().lower():
                return member
        raise ConfigurationError(
            f"Unknown encoding '{name}'. Choose one of: {', '.join(cls.names())}"
        )

    @classmethod
    def names(cls):
        return [member.cli_name for member in cls]

    def __str__(self):
        return self.cli_name


@dataclass(frozen=True)
class AppConfig:
    """Options for a single extraction run"""
    column_name: str
    folder_path: Path
    merge_output: bool = False
    delimiter: CsvDelimiter = CsvDelimiter.SEMICOLON
    encoding: CsvEncoding = CsvEncoding.UTF_8
    scramble: bool = False


@dataclass(frozen=True)
class Settings:
    """Environment-driven defaults"""
    delimiter: CsvDelimiter
    encoding: CsvEncoding
    output_dir_name: str
    log_dir_name: str
    log_level: str
    log_file: Optional[str] = None


def _load_settings() -> Settings:
    log_level = os.getenv("EXTRACTOR_LOG_LEVEL", "ERROR").strip().upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid EXTRACTOR_LOG_LEVEL '{log_level}'. "
            f"Choose one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    output_dir_name = os.getenv("EXTRACTOR_OUTPUT_DIR", "CSV").strip()
    log_dir_name = os.getenv("EXTRACTOR_LOG_DIR", "logs").strip()
    if not output_dir_name or not log_dir_name:
        raise ConfigurationError("EXTRACTOR_OUTPUT_DIR and EXTRACTOR_LOG_DIR must not be empty")

    return Settings(
        delimiter=CsvDelimiter.from_name(os.getenv("EXTRACTOR_DELIMITER", "semicolon")),
        encoding=CsvEncoding.from_name(os.getenv("EXTRACTOR_ENCODING", "utf8")),
        output_dir_name=output_dir_name,
        log_dir_name=log_dir_name,
        log_level=log_level,
        log_file=os.getenv("EXTRACTOR_LOG_FILE") or None,
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use"""
    global _settings
    if _settings is None:
        _settings = _load_settings()
    return _settings


def reload_settings() -> Settings:
    """Re-read settings from the environment"""
    global _settings
    _settings = None
    return get_settings()
