"""Google Document AI wrapper returning document graphs.

Shields callers from request construction and the protobuf response type
and converts library errors into :class:`OCRServiceError`. Two invocation
modes are supported: inline bytes (``raw_document``) and a Cloud Storage
reference (``gcs_document``).
"""

from typing import Any, Protocol

from google.api_core import exceptions as gexc
from google.api_core.client_options import ClientOptions
from google.cloud import documentai_v1 as documentai
from google.protobuf.json_format import MessageToDict

from demand_ocr.errors import ConfigurationError, OCRServiceError
from demand_ocr.utils.config import AppConfig
from demand_ocr.utils.credentials import CLOUD_PLATFORM_SCOPE, load_credentials
from demand_ocr.utils.logger import get_logger

from .document_graph import DocumentGraph

logger = get_logger(__name__)


class _DocAIClientProtocol(Protocol):
    def process_document(self, request: Any) -> Any: ...


def processor_path(project_id: str, location: str, processor_id: str) -> str:
    """Return the fully qualified processor resource name."""
    return f"projects/{project_id}/locations/{location}/processors/{processor_id}"


def _document_to_dict(result: Any) -> dict[str, Any]:
    """Extract a plain dict from a ``ProcessResponse``.

    Accepts real protobuf-backed responses and the plain dictionaries used
    by test doubles.
    """
    doc = getattr(result, "document", result)
    if isinstance(doc, dict):
        return doc
    if hasattr(doc, "_pb"):
        return MessageToDict(doc._pb)
    raise OCRServiceError("Unsupported Document AI response format")


class DocumentAIEngine:
    """OCR engine backed by a Document AI form/table processor.

    Args:
        name: Fully qualified processor resource name.
        client: Object exposing ``process_document(request=...)``.
    """

    def __init__(self, name: str, client: _DocAIClientProtocol) -> None:
        self.name = name
        self.client = client

    @classmethod
    def from_config(cls, config: AppConfig) -> "DocumentAIEngine":
        """Build an engine with a regional client from application config.

        Raises:
            ConfigurationError: If the project or processor id is missing.
        """
        docai = config.documentai
        if not docai.project_id or not docai.processor_id:
            raise ConfigurationError(
                "Document AI requires GCP_PROJECT_ID and DOCAI_PROCESSOR_ID"
            )
        client = documentai.DocumentProcessorServiceClient(
            credentials=load_credentials(
                config.credentials, scopes=[CLOUD_PLATFORM_SCOPE]
            ),
            client_options=ClientOptions(
                api_endpoint=f"{docai.location}-documentai.googleapis.com"
            ),
        )
        return cls(processor_path(docai.project_id, docai.location, docai.processor_id), client)

    def process_inline(self, content: bytes, mime_type: str) -> DocumentGraph:
        """Run OCR on bytes sent inline with the request.

        Args:
            content: Raw image or PDF bytes.
            mime_type: MIME type of ``content``.

        Returns:
            The parsed document graph.
        """
        request = documentai.ProcessRequest(
            name=self.name,
            raw_document=documentai.RawDocument(content=content, mime_type=mime_type),
        )
        logger.info("Processing %d inline bytes (%s)", len(content), mime_type)
        return self._process(request)

    def process_gcs(self, gcs_uri: str, mime_type: str) -> DocumentGraph:
        """Run OCR on a document already staged in Cloud Storage.

        Args:
            gcs_uri: ``gs://bucket/object`` reference.
            mime_type: MIME type of the stored object.

        Returns:
            The parsed document graph.
        """
        request = documentai.ProcessRequest(
            name=self.name,
            gcs_document=documentai.GcsDocument(gcs_uri=gcs_uri, mime_type=mime_type),
        )
        logger.info("Processing staged document %s (%s)", gcs_uri, mime_type)
        return self._process(request)

    def _process(self, request: Any) -> DocumentGraph:
        try:
            result = self.client.process_document(request=request)
        except gexc.GoogleAPICallError as exc:
            raise OCRServiceError(f"Document AI call failed: {exc}") from exc

        document = DocumentGraph.from_dict(_document_to_dict(result))
        logger.info(
            "Document AI returned %d pages with %d tables",
            len(document.pages),
            document.table_count,
        )
        return document
