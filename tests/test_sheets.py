"""Tests for the Google Sheets sink (mocked discovery service)."""

import threading
from unittest.mock import MagicMock, patch

import pytest
from googleapiclient.errors import HttpError

from demand_ocr.errors import ConfigurationError, SinkError
from demand_ocr.sheets.sink import GoogleSheetsSink
from demand_ocr.utils.config import AppConfig, SheetsConfig


def _service(response: dict | None = None) -> MagicMock:
    service = MagicMock()
    append = service.spreadsheets.return_value.values.return_value.append
    append.return_value.execute.return_value = response or {}
    return service


class TestGoogleSheetsSink:
    """Tests for appending rows through the Sheets API."""

    def test_append_request(self) -> None:
        service = _service({"updates": {"updatedRows": 2}})
        sink = GoogleSheetsSink(lambda: service, "sheet-id")
        rows = [["2024-01-01", "S01", "Sugar", "5"], ["2024-01-01", "S01", "Rice", "2"]]

        assert sink.append("DemandLog!A:D", rows) == 2
        append = service.spreadsheets.return_value.values.return_value.append
        append.assert_called_once_with(
            spreadsheetId="sheet-id",
            range="DemandLog!A:D",
            valueInputOption="USER_ENTERED",
            body={"values": rows},
        )

    def test_missing_update_count_is_zero(self) -> None:
        sink = GoogleSheetsSink(lambda: _service({}), "sheet-id")
        assert sink.append("DemandLog!A:D", [["a", "b", "c", "1"]]) == 0

    def test_http_error_is_wrapped(self) -> None:
        service = _service()
        append = service.spreadsheets.return_value.values.return_value.append
        append.return_value.execute.side_effect = HttpError(
            MagicMock(status=403, reason="Forbidden"), b"permission denied"
        )
        with pytest.raises(SinkError):
            sink = GoogleSheetsSink(lambda: service, "sheet-id")
            sink.append("DemandLog!A:D", [["x"]])

    def test_from_config_requires_spreadsheet(self) -> None:
        with pytest.raises(ConfigurationError):
            GoogleSheetsSink.from_config(AppConfig())

    @patch("demand_ocr.sheets.sink.build")
    def test_from_config(self, mock_build: MagicMock) -> None:
        config = AppConfig(
            sheets=SheetsConfig(spreadsheet_id="abc", value_input_option="RAW")
        )
        sink = GoogleSheetsSink.from_config(config)

        mock_build.assert_not_called()
        assert sink.service is mock_build.return_value
        assert mock_build.call_args.args == ("sheets", "v4")
        assert mock_build.call_args.kwargs["cache_discovery"] is False
        assert sink.spreadsheet_id == "abc"
        assert sink.value_input_option == "RAW"


class TestSheetsServicePerThread:
    """Tests for keeping the discovery transport out of shared state."""

    def test_same_thread_reuses_service(self) -> None:
        factory = MagicMock(side_effect=lambda: _service({"updates": {"updatedRows": 1}}))
        sink = GoogleSheetsSink(factory, "sheet-id")

        sink.append("DemandLog!A:D", [["a"]])
        sink.append("DemandLog!A:D", [["b"]])

        assert factory.call_count == 1

    def test_threads_do_not_share_service(self) -> None:
        services: list[MagicMock] = []

        def _factory() -> MagicMock:
            service = _service({"updates": {"updatedRows": 1}})
            services.append(service)
            return service

        sink = GoogleSheetsSink(_factory, "sheet-id")
        barrier = threading.Barrier(2)
        used: list[object] = []

        def _append() -> None:
            barrier.wait()
            used.append(sink.service)
            sink.append("DemandLog!A:D", [["a"]])

        workers = [threading.Thread(target=_append) for _ in range(2)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert len(services) == 2
        assert used[0] is not used[1]
        for service in services:
            append = service.spreadsheets.return_value.values.return_value.append
            append.return_value.execute.assert_called_once_with()
