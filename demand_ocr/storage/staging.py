"""Staging lifecycle for one OCR invocation.

In staged mode the input bytes are written to the blob store, Document AI
reads them by reference, and the blob is deleted when the session scope
exits, whatever happened inside it. In inline mode the bytes go straight to
Document AI and there is nothing to clean up.

Success path: IDLE -> STAGED -> PROCESSED -> CLEANED.
Failure path: IDLE -> STAGED -> FAILED -> CLEANUP_ATTEMPTED.
Inline mode:  IDLE -> PROCESSED (or FAILED).

The cleanup result is recorded as a :class:`CleanupOutcome` and logged. It
is never raised, so the outcome of OCR and everything downstream of it is
what reaches the caller.
"""

from dataclasses import dataclass
from enum import StrEnum
from types import TracebackType

from demand_ocr.errors import ConfigurationError
from demand_ocr.ocr.document_graph import DocumentGraph
from demand_ocr.ocr.documentai_engine import DocumentAIEngine
from demand_ocr.utils.config import AppConfig, StagingMode
from demand_ocr.utils.logger import get_logger

from .blob_store import BlobStore, GCSBlobStore, generate_blob_key

logger = get_logger(__name__)


class StagingState(StrEnum):
    """Lifecycle states of a staging session."""

    IDLE = "idle"
    STAGED = "staged"
    PROCESSED = "processed"
    FAILED = "failed"
    CLEANED = "cleaned"
    CLEANUP_ATTEMPTED = "cleanup_attempted"


class CleanupStatus(StrEnum):
    """Result of the best-effort blob delete."""

    SKIPPED = "skipped"
    DELETED = "deleted"
    FAILED = "failed"


@dataclass(frozen=True)
class CleanupOutcome:
    """Observed result of releasing a staged blob."""

    status: CleanupStatus
    key: str | None = None
    error: str | None = None


_NO_CLEANUP = CleanupOutcome(status=CleanupStatus.SKIPPED)


class StagingSession:
    """Scoped acquisition of one staged blob and one OCR call.

    Use as a context manager; the blob is written on entry and deleted on
    exit. Created by :meth:`StagingLifecycleManager.session`.
    """

    def __init__(
        self,
        mode: StagingMode,
        engine: DocumentAIEngine,
        blob_store: BlobStore | None,
        content: bytes,
        mime_type: str,
        key: str | None,
    ) -> None:
        self.mode = mode
        self.engine = engine
        self.blob_store = blob_store
        self.content = content
        self.mime_type = mime_type
        self.key = key
        self.state = StagingState.IDLE
        self.cleanup: CleanupOutcome = _NO_CLEANUP
        self._processed = False

    def __enter__(self) -> "StagingSession":
        if self.mode == StagingMode.STAGED:
            # A failed put raises here; nothing exists yet to clean up.
            self.blob_store.put(self.key, self.content, self.mime_type)
            self.state = StagingState.STAGED
        return self

    def process(self) -> DocumentGraph:
        """Invoke OCR once, by storage reference or with inline bytes.

        Raises:
            OCRServiceError: If Document AI fails.
            RuntimeError: If called more than once per session.
        """
        if self._processed:
            raise RuntimeError("OCR already invoked for this staging session")
        self._processed = True

        try:
            if self.mode == StagingMode.STAGED:
                document = self.engine.process_gcs(
                    self.blob_store.uri(self.key), self.mime_type
                )
            else:
                document = self.engine.process_inline(self.content, self.mime_type)
        except Exception:
            self.state = StagingState.FAILED
            raise

        self.state = StagingState.PROCESSED
        return document

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is not None:
            self.state = StagingState.FAILED
        if self.mode == StagingMode.STAGED:
            self.cleanup = self._release()
        return False

    def _release(self) -> CleanupOutcome:
        failed_before = self.state == StagingState.FAILED
        try:
            self.blob_store.delete(self.key)
        except Exception as exc:
            logger.warning("Failed to delete staged blob %s: %s", self.key, exc)
            self.state = StagingState.CLEANUP_ATTEMPTED
            return CleanupOutcome(CleanupStatus.FAILED, key=self.key, error=str(exc))

        self.state = (
            StagingState.CLEANUP_ATTEMPTED if failed_before else StagingState.CLEANED
        )
        return CleanupOutcome(CleanupStatus.DELETED, key=self.key)


class StagingLifecycleManager:
    """Single entry point for both OCR invocation modes.

    Args:
        mode: Inline bytes or staged blob reference.
        engine: Document AI engine.
        blob_store: Blob store, required in staged mode.
        prefix: Object key prefix for staged uploads.
    """

    def __init__(
        self,
        mode: StagingMode,
        engine: DocumentAIEngine,
        blob_store: BlobStore | None = None,
        prefix: str = "demand-sheets",
    ) -> None:
        if mode == StagingMode.STAGED and blob_store is None:
            raise ConfigurationError("Staged mode requires a blob store")
        self.mode = mode
        self.engine = engine
        self.blob_store = blob_store
        self.prefix = prefix

    @classmethod
    def from_config(
        cls, config: AppConfig, engine: DocumentAIEngine
    ) -> "StagingLifecycleManager":
        blob_store = None
        if config.staging.mode == StagingMode.STAGED:
            blob_store = GCSBlobStore.from_config(config)
        return cls(config.staging.mode, engine, blob_store, config.staging.prefix)

    @property
    def requires_mime_type(self) -> bool:
        """Staged objects must carry an explicit content type."""
        return self.mode == StagingMode.STAGED

    def session(
        self,
        content: bytes,
        mime_type: str,
        store_id: str,
        document_name: str | None = None,
    ) -> StagingSession:
        """Open a staging session for one request.

        Args:
            content: Raw image or PDF bytes.
            mime_type: MIME type of ``content``.
            store_id: Store identifier, used in the generated key.
            document_name: Optional filename, preferred for the key.

        Returns:
            A session to be used as a context manager.
        """
        key = None
        if self.mode == StagingMode.STAGED:
            key = generate_blob_key(self.prefix, store_id, mime_type, document_name)
        return StagingSession(
            self.mode, self.engine, self.blob_store, content, mime_type, key
        )
