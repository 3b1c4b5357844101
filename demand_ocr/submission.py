"""Request-level orchestration of a demand sheet submission.

A submission moves through RECEIVED -> VALIDATED -> STAGED/SKIPPED ->
OCR_COMPLETE -> ROWS_EXTRACTED -> APPENDED -> RESPONDED, or stops early in
REJECTED (bad request, no side effects) or ERRORED (any downstream failure).
Zero extracted rows is a successful but empty outcome, not an error.

Every fatal error is caught here and turned into a :class:`SubmissionFailed`
result; callers only map result types to responses.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from enum import StrEnum

from demand_ocr.errors import SubmissionValidationError
from demand_ocr.extraction.assembler import DemandRow
from demand_ocr.extraction.catalog import Catalog
from demand_ocr.extraction.pipeline import DemandExtractor
from demand_ocr.ocr.documentai_engine import DocumentAIEngine
from demand_ocr.sheets.sink import GoogleSheetsSink, SpreadsheetSink
from demand_ocr.storage.staging import (
    CleanupOutcome,
    CleanupStatus,
    StagingLifecycleManager,
)
from demand_ocr.utils.config import AppConfig
from demand_ocr.utils.logger import get_logger

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Missing storeId, date, or image data in request body."
MISSING_MIME_TYPE_MESSAGE = "Missing mimeType for staged document processing."
INVALID_IMAGE_MESSAGE = "Image data is not valid base64."
EMPTY_RESULT_MESSAGE = (
    "Successfully processed image, but no recognizable quantities were found."
)
FAILURE_MESSAGE = "A critical error occurred during OCR or Sheets update."

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(;[^,]*)?;base64,", re.I)
_BASE64_WHITESPACE = re.compile(r"[ \t\r\n\f\v]+")


class SubmissionState(StrEnum):
    """States of the per-request state machine."""

    RECEIVED = "received"
    VALIDATED = "validated"
    STAGED = "staged"
    SKIPPED = "skipped"
    OCR_COMPLETE = "ocr_complete"
    ROWS_EXTRACTED = "rows_extracted"
    APPENDED = "appended"
    RESPONDED = "responded"
    REJECTED = "rejected"
    ERRORED = "errored"


@dataclass(frozen=True)
class SubmissionRequest:
    """Inbound submission fields; ``image`` is base64 text."""

    store_id: str | None
    date: str | None
    image: str | None
    mime_type: str | None = None
    filename: str | None = None


_NO_CLEANUP = CleanupOutcome(status=CleanupStatus.SKIPPED)


@dataclass(frozen=True)
class SubmissionSucceeded:
    """Rows were extracted and appended to the sheet."""

    rows_added: int
    rows: list[DemandRow]
    cleanup: CleanupOutcome = _NO_CLEANUP
    trail: tuple[SubmissionState, ...] = ()

    @property
    def message(self) -> str:
        return (
            f"Successfully processed demand. {self.rows_added} item rows "
            "appended to Google Sheet."
        )

    def payload(self) -> dict:
        return {"status": "success", "message": self.message, "rows_added": self.rows_added}


@dataclass(frozen=True)
class SubmissionWarning:
    """The pipeline completed but found no recognizable rows."""

    message: str = EMPTY_RESULT_MESSAGE
    cleanup: CleanupOutcome = _NO_CLEANUP
    trail: tuple[SubmissionState, ...] = ()

    @property
    def rows_added(self) -> int:
        return 0

    def payload(self) -> dict:
        return {"status": "warning", "message": self.message, "rows_added": 0}


@dataclass(frozen=True)
class SubmissionRejected:
    """The request failed validation; nothing was staged or processed."""

    error: str
    trail: tuple[SubmissionState, ...] = ()

    def payload(self) -> dict:
        return {"error": self.error}


@dataclass(frozen=True)
class SubmissionFailed:
    """A staging, OCR, extraction or sheet error aborted the request."""

    details: str
    message: str = FAILURE_MESSAGE
    cleanup: CleanupOutcome = _NO_CLEANUP
    trail: tuple[SubmissionState, ...] = ()

    def payload(self) -> dict:
        return {"status": "error", "message": self.message, "details": self.details}


SubmissionResult = (
    SubmissionSucceeded | SubmissionWarning | SubmissionRejected | SubmissionFailed
)


def decode_image_payload(image: str, mime_type: str | None) -> tuple[bytes, str | None]:
    """Decode base64 image text, honouring an optional data URL prefix.

    Line-wrapped (RFC 2045) payloads are accepted; ASCII whitespace is
    removed before decoding.

    Args:
        image: Base64 text, optionally prefixed with ``data:<mime>;base64,``.
        mime_type: Explicit MIME type from the request, which wins over
            the data URL.

    Returns:
        Tuple of (raw bytes, MIME type or ``None``).

    Raises:
        SubmissionValidationError: If the payload is not valid base64 or
            decodes to nothing.
    """
    payload = image.strip()
    match = _DATA_URL.match(payload)
    if match:
        mime_type = mime_type or match.group("mime")
        payload = payload[match.end():]
    payload = _BASE64_WHITESPACE.sub("", payload)

    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SubmissionValidationError(INVALID_IMAGE_MESSAGE) from exc
    if not content:
        raise SubmissionValidationError(MISSING_FIELDS_MESSAGE)
    return content, mime_type


class SubmissionOrchestrator:
    """Runs one submission end to end.

    Args:
        staging: Staging lifecycle manager (inline or staged mode).
        extractor: Demand row extractor.
        sink: Spreadsheet sink.
        range_name: Destination range, e.g. ``DemandLog!A:D``.
        default_mime_type: MIME type used in inline mode when none is sent.
    """

    def __init__(
        self,
        staging: StagingLifecycleManager,
        extractor: DemandExtractor,
        sink: SpreadsheetSink,
        range_name: str = "DemandLog!A:D",
        default_mime_type: str = "image/jpeg",
    ) -> None:
        self.staging = staging
        self.extractor = extractor
        self.sink = sink
        self.range_name = range_name
        self.default_mime_type = default_mime_type

    @classmethod
    def from_config(cls, config: AppConfig) -> "SubmissionOrchestrator":
        """Wire the Google-backed collaborators from configuration."""
        engine = DocumentAIEngine.from_config(config)
        return cls(
            staging=StagingLifecycleManager.from_config(config, engine),
            extractor=DemandExtractor(Catalog.from_config(config.catalog)),
            sink=GoogleSheetsSink.from_config(config),
            range_name=config.sheets.range,
            default_mime_type=config.documentai.default_mime_type,
        )

    def validate(self, request: SubmissionRequest) -> tuple[bytes, str]:
        """Check required fields and decode the payload.

        Returns:
            Tuple of (raw bytes, MIME type).

        Raises:
            SubmissionValidationError: If a required field is missing or the
                payload cannot be decoded.
        """
        if not all(
            (value or "").strip()
            for value in (request.store_id, request.date, request.image)
        ):
            raise SubmissionValidationError(MISSING_FIELDS_MESSAGE)

        content, mime_type = decode_image_payload(request.image, request.mime_type)
        if not mime_type:
            if self.staging.requires_mime_type:
                raise SubmissionValidationError(MISSING_MIME_TYPE_MESSAGE)
            mime_type = self.default_mime_type
        return content, mime_type

    def submit(self, request: SubmissionRequest) -> SubmissionResult:
        """Process one submission and return its tagged result.

        Args:
            request: Inbound submission fields.

        Returns:
            Exactly one of the four submission result types.
        """
        trail = [SubmissionState.RECEIVED]

        try:
            content, mime_type = self.validate(request)
        except SubmissionValidationError as exc:
            logger.info("Rejected submission: %s", exc)
            trail.append(SubmissionState.REJECTED)
            return SubmissionRejected(error=str(exc), trail=tuple(trail))
        trail.append(SubmissionState.VALIDATED)

        store_id, submission_date = request.store_id, request.date
        logger.info(
            "Submission for store %s on %s (%d bytes, %s)",
            store_id,
            submission_date,
            len(content),
            mime_type,
        )

        session = self.staging.session(content, mime_type, store_id, request.filename)
        rows: list[DemandRow] = []
        rows_added = 0
        try:
            with session:
                trail.append(
                    SubmissionState.STAGED if session.key else SubmissionState.SKIPPED
                )
                document = session.process()
                trail.append(SubmissionState.OCR_COMPLETE)

                rows = self.extractor.extract(document, store_id, submission_date)
                trail.append(SubmissionState.ROWS_EXTRACTED)

                if rows:
                    rows_added = self.sink.append(
                        self.range_name, [row.as_values() for row in rows]
                    )
                    trail.append(SubmissionState.APPENDED)
        except Exception as exc:
            logger.exception("Submission for store %s failed", store_id)
            trail.append(SubmissionState.ERRORED)
            return SubmissionFailed(
                details=str(exc), cleanup=session.cleanup, trail=tuple(trail)
            )

        trail.append(SubmissionState.RESPONDED)
        if not rows:
            logger.warning("No recognizable rows for store %s", store_id)
            return SubmissionWarning(cleanup=session.cleanup, trail=tuple(trail))

        logger.info("Store %s: %d rows appended", store_id, rows_added)
        return SubmissionSucceeded(
            rows_added=rows_added,
            rows=rows,
            cleanup=session.cleanup,
            trail=tuple(trail),
        )
