"""
Excel Column Extractor - Workflows
Batch orchestration of the extraction pipeline
"""

from .batch_extraction_processor import (
    BatchExtractionProcessor,
    csv_name_for,
    find_output_collisions,
    run_extraction,
)

__all__ = [
    'BatchExtractionProcessor',
    'csv_name_for',
    'find_output_collisions',
    'run_extraction',
]
