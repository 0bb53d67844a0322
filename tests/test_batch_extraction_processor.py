"""
Integration tests for the batch extraction workflow
"""

from dataclasses import replace
from pathlib import Path

import pytest

from excel_column_extractor.config.settings import CsvDelimiter
from excel_column_extractor.data_extraction import (
    ExtractionFailure,
    ExtractionSuccess,
    FileAccessError,
)
from excel_column_extractor.workflows import (
    BatchExtractionProcessor,
    csv_name_for,
    find_output_collisions,
    run_extraction,
)
from tests.conftest import SPREADSHEETML_CONTACTS, make_config, make_xlsx


def _run(config, settings, **kwargs):
    processor = BatchExtractionProcessor(config, settings=settings, **kwargs)
    return processor, processor.run()


class TestSingleFile:

    def test_creates_csv_per_file(self, input_dir, email_workbook, settings, capsys):
        processor, results = _run(make_config(input_dir), settings)

        assert len(results) == 1
        result = results[0]
        assert isinstance(result, ExtractionSuccess)
        assert result.row_count == 3
        assert result.csv_file == input_dir / "CSV" / "test_emails.csv"
        assert result.csv_file.read_text(encoding="utf-8") == (
            "john@example.com;\njane@example.com;\nbob@example.com;\n"
        )

        out = capsys.readouterr().out
        assert "Processing: test_emails.xlsx" in out
        assert "Created CSV for: test_emails.xlsx (3 rows)" in out
        assert "Completed: 1 successful, 0 failed" in out
        assert processor.stats['error_log'] is None
        assert not (input_dir / "CSV" / "logs").exists()

    def test_lowercase_column_with_comma_delimiter(self, input_dir, email_workbook, settings):
        config = make_config(input_dir, column="email", delimiter=CsvDelimiter.COMMA)
        _, results = _run(config, settings)

        assert results[0].csv_file.read_text(encoding="utf-8") == (
            "john@example.com,\njane@example.com,\nbob@example.com,\n"
        )

    def test_missing_column_writes_error_log(self, input_dir, settings, capsys):
        make_xlsx(input_dir / "phones.xlsx", "Phone", ["555-0100"])

        processor, results = _run(make_config(input_dir), settings)

        assert results == [ExtractionFailure(
            source_file=input_dir / "phones.xlsx",
            error_message="Column 'Email' not found",
        )]
        assert not (input_dir / "CSV" / "phones.csv").exists()

        logs = list((input_dir / "CSV" / "logs").glob("error_log_*.txt"))
        assert len(logs) == 1
        assert processor.stats['error_log'] == logs[0]
        content = logs[0].read_text(encoding="utf-8")
        assert content.startswith("Excel to CSV Extraction Error Log\n")
        assert "phones.xlsx: Column 'Email' not found" in content

        captured = capsys.readouterr()
        assert "phones.xlsx: Column 'Email' not found" in captured.err
        assert "Completed: 0 successful, 1 failed" in captured.out


class TestMergeMode:

    def test_merged_csv_in_discovery_order(self, input_dir, settings, capsys):
        make_xlsx(input_dir / "b_second.xlsx", "EMAIL", ["b1@x.com", "b2@x.com"])
        make_xlsx(input_dir / "a_first.xlsx", "Email", ["a1@x.com"])
        (input_dir / "c_third.xml").write_text(SPREADSHEETML_CONTACTS, encoding="utf-8")

        processor, results = _run(make_config(input_dir, merge_output=True), settings)

        assert [r.source_file.name for r in results] == ["a_first.xlsx", "b_second.xlsx", "c_third.xml"]
        assert all(isinstance(r, ExtractionSuccess) and r.csv_file is None for r in results)

        merged = list((input_dir / "CSV").glob("merged_*.csv"))
        assert len(merged) == 1
        assert processor.stats['merged_csv'] == merged[0]
        assert merged[0].read_text(encoding="utf-8") == (
            "a1@x.com;\nb1@x.com;\nb2@x.com;\nalice@test.org;\n"
        )
        assert sorted(p.name for p in (input_dir / "CSV").iterdir()) == [merged[0].name]

        out = capsys.readouterr().out
        assert "Extracted 2 rows from: b_second.xlsx" in out
        assert "Merged CSV written to:" in out

    def test_failures_are_left_out_of_merge(self, input_dir, email_workbook, settings):
        (input_dir / "broken.xlsx").write_bytes(b"definitely not a workbook")

        processor, results = _run(make_config(input_dir, merge_output=True), settings)

        assert [type(r) for r in results] == [ExtractionFailure, ExtractionSuccess]
        merged = processor.stats['merged_csv']
        assert merged.read_text(encoding="utf-8") == (
            "john@example.com;\njane@example.com;\nbob@example.com;\n"
        )
        assert processor.stats['error_log'] is not None

    def test_no_merged_file_when_everything_fails(self, input_dir, settings):
        make_xlsx(input_dir / "phones.xlsx", "Phone", ["555-0100"])

        processor, _ = _run(make_config(input_dir, merge_output=True), settings)

        assert processor.stats['merged_csv'] is None
        assert not list((input_dir / "CSV").glob("merged_*.csv"))


class TestBatchBehaviour:

    def test_one_result_per_supported_file(self, input_dir, email_workbook, settings):
        (input_dir / "broken.xlsx").write_bytes(b"garbage")
        (input_dir / "notes.txt").write_text("ignored", encoding="utf-8")
        (input_dir / "nested").mkdir()
        make_xlsx(input_dir / "nested" / "deep.xlsx", "Email", ["deep@x.com"])

        processor, results = _run(make_config(input_dir), settings)

        assert len(results) == 2
        assert processor.stats['total_files'] == 2
        assert processor.stats['successful_extractions'] + processor.stats['failed_extractions'] == 2

    def test_result_order_is_independent_of_worker_count(self, input_dir, settings):
        names = [f"file_{i:02d}.xlsx" for i in range(8)]
        for name in reversed(names):
            make_xlsx(input_dir / name, "Email", [f"{name}@x.com"])

        for workers in (1, 3, None):
            _, results = _run(make_config(input_dir), settings, max_workers=workers)
            assert [r.source_file.name for r in results] == names

    def test_empty_folder(self, input_dir, settings, capsys):
        processor, results = _run(make_config(input_dir), settings)

        assert results == []
        assert "No spreadsheet files found" in capsys.readouterr().out
        assert not (input_dir / "CSV").exists()

    def test_missing_folder_reports_error(self, tmp_path, settings, capsys):
        _, results = _run(make_config(tmp_path / "gone"), settings)

        assert results == []
        assert "Error: Cannot list folder" in capsys.readouterr().err

    def test_output_folder_blocked_by_file(self, input_dir, email_workbook, settings):
        (input_dir / "CSV").write_text("in the way", encoding="utf-8")

        with pytest.raises(FileAccessError):
            _run(make_config(input_dir), settings)

    def test_error_log_failure_does_not_abort(self, input_dir, settings, capsys):
        make_xlsx(input_dir / "phones.xlsx", "Phone", ["555-0100"])
        (input_dir / "CSV").mkdir()
        (input_dir / "CSV" / "logs").write_text("in the way", encoding="utf-8")

        processor, results = _run(make_config(input_dir), settings)

        assert len(results) == 1
        assert processor.stats['error_log'] is None
        assert "Failed to write error log" in capsys.readouterr().err

    def test_custom_output_names(self, input_dir, email_workbook, settings):
        custom = replace(settings, output_dir_name="exports")
        _, results = _run(make_config(input_dir), custom)

        assert results[0].csv_file == input_dir / "exports" / "test_emails.csv"

    def test_echo_callbacks(self, input_dir, email_workbook, settings):
        out, err = [], []

        run_extraction(make_config(input_dir), settings=settings, echo=out.append, echo_error=err.append)

        assert out[0] == "Processing: test_emails.xlsx"
        assert err == []

    def test_colliding_output_names_are_reported(self, input_dir, settings):
        make_xlsx(input_dir / "report.xlsx", "Email", ["first@x.com"])
        (input_dir / "report.xml").write_text(SPREADSHEETML_CONTACTS, encoding="utf-8")
        out, err = [], []

        results = run_extraction(make_config(input_dir), settings=settings,
                                 echo=out.append, echo_error=err.append)

        assert all(isinstance(r, ExtractionSuccess) for r in results)
        assert err == ["Warning: report.xlsx, report.xml all write to the same CSV; only one will be kept"]
        assert [p.name for p in (input_dir / "CSV").iterdir()] == ["report.csv"]

    def test_no_collision_warning_in_merge_mode(self, input_dir, settings):
        make_xlsx(input_dir / "report.xlsx", "Email", ["first@x.com"])
        (input_dir / "report.xml").write_text(SPREADSHEETML_CONTACTS, encoding="utf-8")
        err = []

        run_extraction(make_config(input_dir, merge_output=True), settings=settings,
                       echo=lambda line: None, echo_error=err.append)

        assert err == []

    def test_listing_failure_is_recorded(self, tmp_path, settings):
        processor, _ = _run(make_config(tmp_path / "gone"), settings, echo_error=lambda line: None)
        assert processor.stats['discovery_error'].startswith("Cannot list folder")


def test_csv_name_for():

    assert csv_name_for(Path("/data/Report.Q1.xlsx")) == "Report.Q1.csv"
    assert csv_name_for(Path("legacy.xls")) == "legacy.csv"


def test_find_output_collisions():
    files = [Path("A.xlsx"), Path("a.xls"), Path("b.xml"), Path("c.xlsx")]
    assert find_output_collisions(files) == {"a.csv": [Path("A.xlsx"), Path("a.xls")]}
    assert find_output_collisions([Path("a.xlsx"), Path("b.xlsx")]) == {}
