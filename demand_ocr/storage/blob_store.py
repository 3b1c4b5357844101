"""Cloud Storage blob store used to stage uploads for Document AI."""

import mimetypes
import re
import uuid
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Protocol

from google.api_core import exceptions as gexc
from google.cloud import storage

from demand_ocr.errors import ConfigurationError, StagingError
from demand_ocr.utils.config import AppConfig
from demand_ocr.utils.credentials import CLOUD_PLATFORM_SCOPE, load_credentials
from demand_ocr.utils.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class BlobStore(Protocol):
    """Minimal put/delete blob store interface."""

    def put(self, key: str, data: bytes, content_type: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def uri(self, key: str) -> str: ...


def generate_blob_key(
    prefix: str,
    store_id: str,
    mime_type: str,
    document_name: str | None = None,
    now: datetime | None = None,
) -> str:
    """Generate a fresh request-scoped object key.

    The key is ``<prefix>/<slug>/<UTC timestamp>-<random>.<ext>`` where the
    slug is the document name stem when given, otherwise the store id.

    Args:
        prefix: Object prefix inside the bucket.
        store_id: Store identifier from the submission.
        mime_type: MIME type used to pick the file extension.
        document_name: Optional uploaded filename.
        now: Timestamp override for tests.

    Returns:
        A key that is never reused across requests.
    """
    source = PurePosixPath(document_name).stem if document_name else store_id
    slug = _UNSAFE_KEY_CHARS.sub("-", source).strip("-") or "document"
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    extension = mimetypes.guess_extension(mime_type) or ".bin"
    key = f"{slug}/{stamp}-{uuid.uuid4().hex[:8]}{extension}"
    return f"{prefix.strip('/')}/{key}" if prefix.strip("/") else key


class GCSBlobStore:
    """Blob store backed by a single Cloud Storage bucket.

    Args:
        bucket: Bucket handle from ``storage.Client().bucket(name)``.
    """

    def __init__(self, bucket: storage.Bucket) -> None:
        self.bucket = bucket

    @classmethod
    def from_config(cls, config: AppConfig) -> "GCSBlobStore":
        """Build the store for ``staging.bucket``.

        Raises:
            ConfigurationError: If no bucket is configured.
        """
        if not config.staging.bucket:
            raise ConfigurationError("Staged mode requires STAGING_BUCKET")
        client = storage.Client(
            project=config.documentai.project_id,
            credentials=load_credentials(
                config.credentials, scopes=[CLOUD_PLATFORM_SCOPE]
            ),
        )
        return cls(client.bucket(config.staging.bucket))

    def uri(self, key: str) -> str:
        return f"gs://{self.bucket.name}/{key}"

    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Upload ``data`` under ``key``.

        Raises:
            StagingError: If the upload fails.
        """
        try:
            self.bucket.blob(key).upload_from_string(data, content_type=content_type)
        except gexc.GoogleAPICallError as exc:
            raise StagingError(f"Failed to stage {self.uri(key)}: {exc}") from exc
        logger.info("Staged %d bytes at %s", len(data), self.uri(key))

    def delete(self, key: str) -> None:
        """Delete the object under ``key``.

        Raises:
            google.api_core.exceptions.GoogleAPICallError: If the delete fails.
        """
        self.bucket.blob(key).delete()
        logger.info("Deleted staged blob %s", self.uri(key))
