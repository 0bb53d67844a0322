"""
Excel Column Extractor
Extracts one named column from a folder of Excel workbooks into CSV files
"""

__version__ = '1.0.0'
