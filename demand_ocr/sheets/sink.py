"""Google Sheets sink for demand rows.

Rows are appended with ``spreadsheets.values.append`` to a fixed range
(four columns: date, store, item, quantity). Ordering and consistency of
concurrent appends are left to the Sheets API.

Discovery services carry an ``httplib2`` transport that is not thread-safe,
so each thread builds and keeps its own service. Credentials are shared.
"""

import threading
from collections.abc import Callable
from typing import Any, Protocol

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from demand_ocr.errors import ConfigurationError, SinkError
from demand_ocr.utils.config import AppConfig
from demand_ocr.utils.credentials import SHEETS_SCOPE, load_credentials
from demand_ocr.utils.logger import get_logger

logger = get_logger(__name__)


class SpreadsheetSink(Protocol):
    """Append-only table sink."""

    def append(self, range_name: str, rows: list[list[str]]) -> int: ...


class GoogleSheetsSink:
    """Appends rows to one spreadsheet through the Sheets API v4.

    Args:
        service_factory: Builds a discovery resource, e.g.
            ``build("sheets", "v4", ...)``. Called once per thread.
        spreadsheet_id: Target spreadsheet id.
        value_input_option: How Sheets interprets the values.
    """

    def __init__(
        self,
        service_factory: Callable[[], Any],
        spreadsheet_id: str,
        value_input_option: str = "USER_ENTERED",
    ) -> None:
        self.service_factory = service_factory
        self.spreadsheet_id = spreadsheet_id
        self.value_input_option = value_input_option
        self._local = threading.local()

    @property
    def service(self) -> Any:
        """The calling thread's discovery service."""
        service = getattr(self._local, "service", None)
        if service is None:
            logger.debug(
                "Building Sheets service for %s", threading.current_thread().name
            )
            service = self.service_factory()
            self._local.service = service
        return service

    @classmethod
    def from_config(cls, config: AppConfig) -> "GoogleSheetsSink":
        """Build the sink from the ``sheets`` and ``credentials`` sections.

        Raises:
            ConfigurationError: If no spreadsheet id is configured.
        """
        if not config.sheets.spreadsheet_id:
            raise ConfigurationError("Sheets sink requires SPREADSHEET_ID")
        credentials = load_credentials(config.credentials, scopes=[SHEETS_SCOPE])

        def _build_service() -> Any:
            return build("sheets", "v4", credentials=credentials, cache_discovery=False)

        return cls(
            _build_service,
            config.sheets.spreadsheet_id,
            config.sheets.value_input_option,
        )

    def append(self, range_name: str, rows: list[list[str]]) -> int:
        """Append ``rows`` after the last populated row of ``range_name``.

        Args:
            range_name: A1 range such as ``DemandLog!A:D``.
            rows: Ordered rows of string cells.

        Returns:
            Number of rows the API reports as updated (0 when absent).

        Raises:
            SinkError: If the API call fails.
        """
        try:
            response = (
                self.service.spreadsheets()
                .values()
                .append(
                    spreadsheetId=self.spreadsheet_id,
                    range=range_name,
                    valueInputOption=self.value_input_option,
                    body={"values": rows},
                )
                .execute()
            )
        except HttpError as exc:
            raise SinkError(f"Sheets append failed: {exc}") from exc

        updated = int((response.get("updates") or {}).get("updatedRows") or 0)
        logger.info("Appended %d rows to %s", updated, range_name)
        return updated
