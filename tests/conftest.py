"""Shared test fixtures."""

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

import openpyxl
import pytest
import xlwt

from excel_column_extractor.config.settings import (
    AppConfig,
    CsvDelimiter,
    CsvEncoding,
    Settings,
)


# ── Sample SpreadsheetML Content ─────────────────────────────────────────

SPREADSHEETML_CONTACTS = """\
<?xml version="1.0"?>
<?mso-application progid="Excel.Sheet"?>
<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet"
 xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet"
 xmlns:html="http://www.w3.org/TR/REC-html40">
 <Worksheet ss:Name="Contacts">
  <Table>
   <Row>
    <Cell><Data ss:Type="String">Name</Data></Cell>
    <Cell><Data ss:Type="String">Email</Data></Cell>
    <Cell><Data ss:Type="String">Score</Data></Cell>
   </Row>
   <Row>
    <Cell ss:Index="2"><Data ss:Type="String">alice@test.org</Data></Cell>
    <Cell><Data ss:Type="Number">10</Data></Cell>
   </Row>
   <Row>
    <Cell><Data ss:Type="String">Bob</Data></Cell>
   </Row>
   <Row ss:Index="5">
    <Cell ss:MergeAcross="1"><Data ss:Type="String">Merged</Data></Cell>
    <Cell><Data ss:Type="Number">2.50</Data></Cell>
   </Row>
  </Table>
 </Worksheet>
 <Worksheet ss:Name="Ignored">
  <Table>
   <Row><Cell><Data ss:Type="String">Email</Data></Cell></Row>
   <Row><Cell><Data ss:Type="String">second@sheet.org</Data></Cell></Row>
  </Table>
 </Worksheet>
</Workbook>
"""


def spreadsheetml(rows_xml: str) -> str:
    """Wrap <Row> markup in a minimal SpreadsheetML workbook."""
    return (
        '<?xml version="1.0"?>\n'
        '<Workbook xmlns="urn:schemas-microsoft-com:office:spreadsheet"\n'
        ' xmlns:ss="urn:schemas-microsoft-com:office:spreadsheet"\n'
        ' xmlns:html="http://www.w3.org/TR/REC-html40">\n'
        ' <Worksheet ss:Name="Sheet1"><Table>\n'
        f'{rows_xml}\n'
        ' </Table></Worksheet>\n'
        '</Workbook>\n'
    )


def make_xlsx(path: Path, header: Optional[str], values: Iterable, sheet_name: str = "Data") -> Path:
    """Create a one-column workbook: header in A1, values below."""
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = sheet_name
    if header is not None:
        sheet.cell(row=1, column=1, value=header)
    for offset, value in enumerate(values, start=2):
        sheet.cell(row=offset, column=1, value=value)
    workbook.save(path)
    return path


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture
def settings():
    return Settings(
        delimiter=CsvDelimiter.SEMICOLON,
        encoding=CsvEncoding.UTF_8,
        output_dir_name="CSV",
        log_dir_name="logs",
        log_level="ERROR",
    )


@pytest.fixture
def input_dir(tmp_path):
    folder = tmp_path / "input"
    folder.mkdir()
    return folder


@pytest.fixture
def email_workbook(input_dir):
    return make_xlsx(
        input_dir / "test_emails.xlsx",
        "Email",
        ["john@example.com", "jane@example.com", "bob@example.com"],
    )


@pytest.fixture
def mixed_types_workbook(tmp_path):
    """Header row plus one data row per value type, with a gap at row 4."""
    path = tmp_path / "mixed.xlsx"
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.append(["Id", "Value"])
    sheet.append(["text", "hello"])
    sheet.append(["int", 42])
    # row 4 left empty
    sheet.cell(row=5, column=1, value="float")
    sheet.cell(row=5, column=2, value=1.25)
    sheet.append(["whole_float", 3.0])
    sheet.append(["bool", True])
    sheet.append(["date", datetime(2024, 1, 15)])
    sheet.append(["formula", "=SUM(1,2)"])
    sheet.append(["tiny", 0.0000001])
    sheet.append(["blank", None])
    workbook.save(path)
    return path


@pytest.fixture
def xls_workbook(tmp_path):
    """Legacy .xls written with xlwt: gap at row 3, a bool and a date in row 5"""
    path = tmp_path / "legacy.xls"
    workbook = xlwt.Workbook()
    sheet = workbook.add_sheet("Data")
    sheet.write(0, 0, "Email")
    sheet.write(0, 1, "Amount")
    sheet.write(1, 0, "a@x.com")
    sheet.write(1, 1, 12)
    sheet.write(3, 0, "b@x.com")
    sheet.write(3, 1, 0.5)
    sheet.write(4, 0, True)
    sheet.write(4, 1, datetime(2024, 1, 15), xlwt.easyxf(num_format_str="yyyy-mm-dd"))
    workbook.add_sheet("Ignored").write(0, 0, "Email")
    workbook.save(str(path))
    return path


def make_config(folder: Path, column: str = "Email", **overrides) -> AppConfig:
    options = dict(
        column_name=column,
        folder_path=folder,
        merge_output=False,
        delimiter=CsvDelimiter.SEMICOLON,
        encoding=CsvEncoding.UTF_8,
        scramble=False,
    )
    options.update(overrides)
    return AppConfig(**options)
