"""
Object storage gateway for PDF receipts (Supabase Storage) plus an in-memory
double for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol
import logging

from supabase import Client, create_client

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class StorageConfigError(ValueError):
    """Raised when the storage client is built without credentials."""


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def upload_pdf(self, bucket: str, path: str, payload: bytes) -> str:
        ...


@dataclass
class InMemoryStorage:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage/v1/object/public"
    stored_objects: dict = field(default_factory=dict)

    def upload_pdf(self, bucket: str, path: str, payload: bytes) -> str:
        # Upsert: a second upload to the same path replaces the first one
        self.stored_objects[(bucket, path)] = {
            "content_type": PDF_CONTENT_TYPE,
            "body": bytes(payload),
        }
        return f"{self.base_url}/{bucket}/{path}"


class SupabaseStorage:
    """
    Supabase Storage client.

    Credentials are checked here rather than at import time so a missing
    ``SUPABASE_URL`` or service key fails at the call site that needs storage.
    """

    def __init__(self, url: str, key: str, client: Client | None = None):
        if not url or not key:
            raise StorageConfigError("SUPABASE_URL dan SUPABASE_SERVICE_ROLE_KEY wajib diisi")
        self.url = url
        self._client = client or create_client(url, key)

    def upload_pdf(self, bucket: str, path: str, payload: bytes) -> str:
        """Upload ``payload`` to ``bucket/path`` (overwriting) and return its public URL.

        Errors raised by the storage service are propagated unchanged; there
        is a single attempt with no retry.
        """
        bucket_api = self._client.storage.from_(bucket)
        bucket_api.upload(
            path=path,
            file=payload,
            file_options={"content-type": PDF_CONTENT_TYPE, "upsert": "true"},
        )
        public_url = bucket_api.get_public_url(path)
        logger.info("Uploaded %s/%s (%d bytes)", bucket, path, len(payload))
        return public_url
