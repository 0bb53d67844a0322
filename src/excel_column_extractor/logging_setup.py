"""
Structured logging configuration shared by every component
"""

import logging
import sys
from typing import Optional

import structlog

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(component: str):
    """Return a structlog logger bound to a component name"""
    return structlog.get_logger("excel_column_extractor").bind(component=component)


def setup_logging(log_level: str = "ERROR", log_file: Optional[str] = None):
    """Set up logging configuration

    Log records go to stderr so they never mix with the progress lines
    printed to stdout.
    """
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(message)s',
        handlers=handlers,
        force=True,
    )
