"""Tests for the command-line interface and CSV export."""

import csv
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from demand_ocr.cli import (
    _find_documents,
    _mime_type_for,
    _print_summary,
    _write_csv,
    extract_single,
    main,
    process_folder,
    submit_single,
)
from demand_ocr.errors import OCRServiceError
from demand_ocr.extraction.catalog import Catalog
from demand_ocr.extraction.pipeline import DemandExtractor
from demand_ocr.ocr.document_graph import DocumentGraph
from demand_ocr.storage.staging import StagingLifecycleManager
from demand_ocr.submission import SubmissionFailed, SubmissionSucceeded
from demand_ocr.utils.config import AppConfig, StagingMode


def _make_sheet(path: Path) -> None:
    path.write_bytes(b"\xff\xd8fake-jpeg")


def _extraction(document: DocumentGraph, catalog: Catalog) -> tuple:
    engine = MagicMock()
    engine.process_inline.return_value = document
    return StagingLifecycleManager(StagingMode.INLINE, engine), DemandExtractor(catalog)


class TestFindDocuments:
    """Tests for document discovery."""

    def test_finds_supported_files(self, tmp_path: Path) -> None:
        for name in ("a.png", "b.jpg", "c.pdf", "d.txt", "e.JPEG"):
            (tmp_path / name).write_bytes(b"x")
        names = [p.name for p in _find_documents(tmp_path)]
        assert names == ["a.png", "b.jpg", "c.pdf", "e.JPEG"]

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert _find_documents(tmp_path) == []


class TestMimeTypeFor:
    """Tests for MIME type guessing."""

    def test_guesses_from_extension(self) -> None:
        assert _mime_type_for(Path("sheet.png"), "image/jpeg") == "image/png"
        assert _mime_type_for(Path("sheet.pdf"), "image/jpeg") == "application/pdf"

    def test_falls_back_to_default(self) -> None:
        assert _mime_type_for(Path("sheet"), "image/jpeg") == "image/jpeg"


class TestWriteCsv:
    """Tests for CSV export."""

    def test_writes_header_and_rows(self, tmp_path: Path) -> None:
        output = tmp_path / "out" / "rows.csv"
        _write_csv(
            [
                {
                    "filename": "a.jpg",
                    "date": "2024-01-01",
                    "store_id": "S01",
                    "item": "Sugar",
                    "quantity": "5",
                }
            ],
            output,
        )
        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert rows == [
            {
                "filename": "a.jpg",
                "date": "2024-01-01",
                "store_id": "S01",
                "item": "Sugar",
                "quantity": "5",
            }
        ]

    def test_empty_records_writes_header(self, tmp_path: Path) -> None:
        output = tmp_path / "rows.csv"
        _write_csv([], output)
        assert output.read_text().strip() == "filename,date,store_id,item,quantity"


class TestPrintSummary:
    """Tests for the batch summary printout."""

    def test_prints_counts(self, capsys: pytest.CaptureFixture) -> None:
        _print_summary(
            {"total": 3, "successful": 2, "failed": 1, "rows": 7}, Path("out.csv")
        )
        out = capsys.readouterr().out
        assert "Batch Extraction Complete" in out
        assert "Rows:       7" in out


@patch("demand_ocr.cli.load_config", return_value=AppConfig())
class TestExtractSingle:
    """Tests for single-sheet extraction."""

    @patch("demand_ocr.cli._build_extraction")
    def test_extract_single(
        self,
        mock_build: MagicMock,
        _mock_config: MagicMock,
        tmp_path: Path,
        catalog: Catalog,
        sugar_document: DocumentGraph,
    ) -> None:
        staging, extractor = _extraction(sugar_document, catalog)
        mock_build.return_value = (staging, extractor)
        sheet = tmp_path / "sheet.png"
        _make_sheet(sheet)

        result = extract_single(sheet, "S01", "2024-01-01")

        assert result == {
            "filename": "sheet.png",
            "store_id": "S01",
            "date": "2024-01-01",
            "rows": [["2024-01-01", "S01", "Sugar", "5"]],
        }
        staging.engine.process_inline.assert_called_once_with(
            b"\xff\xd8fake-jpeg", "image/png"
        )


@patch("demand_ocr.cli.load_config", return_value=AppConfig())
class TestProcessFolder:
    """Tests for batch folder extraction."""

    @patch("demand_ocr.cli._build_extraction")
    def test_batch_writes_csv(
        self,
        mock_build: MagicMock,
        _mock_config: MagicMock,
        tmp_path: Path,
        catalog: Catalog,
        sugar_document: DocumentGraph,
    ) -> None:
        mock_build.return_value = _extraction(sugar_document, catalog)
        input_dir = tmp_path / "in"
        input_dir.mkdir()
        _make_sheet(input_dir / "S01.jpg")
        _make_sheet(input_dir / "S02.jpg")
        output = tmp_path / "rows.csv"

        summary = process_folder(input_dir, output, "2024-01-01")

        assert summary == {"total": 2, "successful": 2, "failed": 0, "rows": 2}
        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert [r["store_id"] for r in rows] == ["S01", "S02"]
        assert all(r["item"] == "Sugar" for r in rows)

    @patch("demand_ocr.cli._build_extraction")
    def test_batch_counts_failures(
        self,
        mock_build: MagicMock,
        _mock_config: MagicMock,
        tmp_path: Path,
        catalog: Catalog,
        sugar_document: DocumentGraph,
    ) -> None:
        staging, extractor = _extraction(sugar_document, catalog)
        staging.engine.process_inline.side_effect = [
            OCRServiceError("bad image"),
            sugar_document,
        ]
        mock_build.return_value = (staging, extractor)
        _make_sheet(tmp_path / "a.jpg")
        _make_sheet(tmp_path / "b.jpg")

        summary = process_folder(tmp_path, tmp_path / "out.csv", "2024-01-01", "S09")

        assert summary == {"total": 2, "successful": 1, "failed": 1, "rows": 1}

    @patch("demand_ocr.cli._build_extraction")
    def test_batch_empty_folder(
        self, mock_build: MagicMock, _mock_config: MagicMock, tmp_path: Path
    ) -> None:
        mock_build.return_value = (MagicMock(), MagicMock())
        output = tmp_path / "rows.csv"

        summary = process_folder(tmp_path, output, "2024-01-01")

        assert summary == {"total": 0, "successful": 0, "failed": 0, "rows": 0}
        assert not output.exists()


@patch("demand_ocr.cli.load_config", return_value=AppConfig())
class TestSubmitSingle:
    """Tests for a full submission from the command line."""

    @patch("demand_ocr.cli.SubmissionOrchestrator.from_config")
    def test_submit_success(
        self, mock_from_config: MagicMock, _mock_config: MagicMock, tmp_path: Path
    ) -> None:
        orchestrator = mock_from_config.return_value
        orchestrator.submit.return_value = SubmissionSucceeded(rows_added=2, rows=[])
        sheet = tmp_path / "sheet.pdf"
        _make_sheet(sheet)

        ok, payload = submit_single(sheet, "S01", "2024-01-01")

        assert ok is True
        assert payload["rows_added"] == 2
        request = orchestrator.submit.call_args.args[0]
        assert request.mime_type == "application/pdf"
        assert request.filename == "sheet.pdf"

    @patch("demand_ocr.cli.SubmissionOrchestrator.from_config")
    def test_submit_failure(
        self, mock_from_config: MagicMock, _mock_config: MagicMock, tmp_path: Path
    ) -> None:
        mock_from_config.return_value.submit.return_value = SubmissionFailed(
            details="boom"
        )
        sheet = tmp_path / "sheet.jpg"
        _make_sheet(sheet)

        ok, payload = submit_single(sheet, "S01", "2024-01-01", "image/jpeg")

        assert ok is False
        assert payload["details"] == "boom"


class TestMain:
    """Tests for argument parsing and dispatch."""

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "Demand Sheet OCR" in capsys.readouterr().out

    def test_extract_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", str(tmp_path / "nope.jpg"), "-s", "S01", "-d", "2024-01-01"])
        assert exc_info.value.code == 1

    def test_batch_missing_dir(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(tmp_path / "nope"), "-d", "2024-01-01"])
        assert exc_info.value.code == 1

    @patch("demand_ocr.cli.extract_single")
    def test_extract_writes_output(self, mock_extract: MagicMock, tmp_path: Path) -> None:
        mock_extract.return_value = {"filename": "a.jpg", "rows": []}
        sheet = tmp_path / "a.jpg"
        _make_sheet(sheet)
        output = tmp_path / "out.json"

        main(["extract", str(sheet), "-s", "S01", "-d", "2024-01-01", "-o", str(output)])

        assert json.loads(output.read_text()) == {"filename": "a.jpg", "rows": []}
        mock_extract.assert_called_once_with(sheet, "S01", "2024-01-01")

    @patch("demand_ocr.cli.submit_single", return_value=(False, {"status": "error"}))
    def test_submit_failure_exits_nonzero(
        self, _mock_submit: MagicMock, tmp_path: Path
    ) -> None:
        sheet = tmp_path / "a.jpg"
        _make_sheet(sheet)
        with pytest.raises(SystemExit) as exc_info:
            main(["submit", str(sheet), "-s", "S01", "-d", "2024-01-01"])
        assert exc_info.value.code == 1

    @patch("demand_ocr.cli.process_folder")
    def test_batch_dispatch(self, mock_process: MagicMock, tmp_path: Path) -> None:
        main(["batch", str(tmp_path), "-d", "2024-01-01", "-s", "S01", "-v"])
        mock_process.assert_called_once_with(
            tmp_path, Path("demand_rows.csv"), "2024-01-01", "S01", True
        )
