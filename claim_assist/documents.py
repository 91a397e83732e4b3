"""
Claim Assist — Supporting Documents

Uploaded evidence (DD-214, treatment records, buddy statements …) is
kept as an encrypted blob in object storage with its metadata row in the
relational store. Blobs live under a per-user prefix:

    <storage_dir>/<user_id>/<random>_<file name>

The metadata row is written after the blob; if that write fails the blob
is removed again so no orphan is left behind.
"""

from __future__ import annotations

import logging
import mimetypes
import re
import uuid
from pathlib import Path

from claim_assist.config import settings
from claim_assist.errors import NotFoundError, PayloadTooLarge, StoreError, ValidationError
from claim_assist.models import Document
from claim_assist.pii_shield import AuditEntry, BlobCipher, audit_log
from claim_assist.store import RecordStore

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_EXTENSIONS = {
    ".pdf", ".txt", ".md", ".png", ".jpg", ".jpeg", ".doc", ".docx",
}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_file_name(file_name: str) -> str:
    """Strip directories and unsafe characters from a client file name."""
    name = Path(file_name.replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name or "document"


class BlobStorage:
    """Filesystem-backed object storage holding encrypted blobs."""

    def __init__(self, root: str | Path | None = None, cipher: BlobCipher | None = None):
        self._root = Path(root or settings.storage_dir)
        self._cipher = cipher or BlobCipher()

    def _path(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if self._root.resolve() not in path.parents:
            raise ValidationError("Invalid storage path")
        return path

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self._cipher.encrypt(data))

    def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.exists():
            raise NotFoundError("Document content not found")
        return self._cipher.decrypt(path.read_bytes())

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class DocumentService:
    def __init__(
        self,
        store: RecordStore,
        storage: BlobStorage,
        max_upload_bytes: int | None = None,
    ):
        self._store = store
        self._storage = storage
        self._max_bytes = max_upload_bytes or settings.max_upload_size_mb * 1024 * 1024

    def upload(
        self,
        user_id: str,
        file_name: str,
        content: bytes,
        mime_type: str | None = None,
    ) -> Document:
        ext = Path(file_name or "").suffix.lower()
        if ext not in ALLOWED_DOCUMENT_EXTENSIONS:
            raise ValidationError(
                f"Unsupported file type '{ext}'. "
                f"Accepted: {', '.join(sorted(ALLOWED_DOCUMENT_EXTENSIONS))}"
            )
        if not content:
            raise ValidationError("Uploaded file is empty")
        if len(content) > self._max_bytes:
            raise PayloadTooLarge(
                f"File exceeds {self._max_bytes // (1024 * 1024)} MB limit."
            )

        clean_name = safe_file_name(file_name)
        storage_path = f"{user_id}/{uuid.uuid4().hex[:12]}_{clean_name}"
        mime_type = mime_type or mimetypes.guess_type(clean_name)[0]

        self._storage.put(storage_path, content)
        try:
            doc = self._store.add_document(
                user_id=user_id,
                file_name=clean_name,
                storage_path=storage_path,
                mime_type=mime_type,
                size_bytes=len(content),
            )
        except StoreError:
            self._storage.delete(storage_path)
            raise

        audit_log.record(AuditEntry(
            user_id=user_id,
            action="write",
            resource="document",
            resource_id=doc.id,
            reason="document_upload",
        ))
        logger.info("Stored document %s (%d bytes)", doc.id, len(content))
        return doc

    def download(self, user_id: str, document_id: str) -> tuple[Document, bytes]:
        doc = self._require(user_id, document_id)
        content = self._storage.get(doc.storage_path)
        audit_log.record(AuditEntry(
            user_id=user_id,
            action="download",
            resource="document",
            resource_id=doc.id,
            reason="document_download",
        ))
        return doc, content

    def delete(self, user_id: str, document_id: str) -> None:
        doc = self._require(user_id, document_id)
        self._store.delete_document(user_id, document_id)
        self._storage.delete(doc.storage_path)
        audit_log.record(AuditEntry(
            user_id=user_id,
            action="delete",
            resource="document",
            resource_id=doc.id,
            reason="document_delete",
        ))
        logger.info("Deleted document %s", doc.id)

    def _require(self, user_id: str, document_id: str) -> Document:
        doc = self._store.get_document(user_id, document_id)
        if doc is None:
            raise NotFoundError("Document not found.")
        return doc
