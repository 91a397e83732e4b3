"""
Tests for document storage and the upload/download service.
"""
from unittest.mock import patch

import pytest

from claim_assist.documents import DocumentService, safe_file_name
from claim_assist.errors import NotFoundError, PayloadTooLarge, StoreError, ValidationError

from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def service(store, blob_storage):
    return DocumentService(store=store, storage=blob_storage, max_upload_bytes=1024)


def test_safe_file_name_strips_directories():
    assert safe_file_name("../../etc/passwd") == "passwd"
    assert safe_file_name("C:\\Users\\vet\\DD 214 (copy).pdf") == "DD_214_copy_.pdf"
    assert safe_file_name("...") == "document"


def test_upload_encrypts_blob_under_user_prefix(service, blob_storage, tmp_path):
    doc = service.upload(USER_ID, "dd214.pdf", b"%PDF-1.4 discharge record")

    assert doc.storage_path.startswith(f"{USER_ID}/")
    assert doc.mime_type == "application/pdf"
    assert doc.size_bytes == len(b"%PDF-1.4 discharge record")
    on_disk = (tmp_path / "documents" / doc.storage_path).read_bytes()
    assert b"discharge record" not in on_disk

    fetched, content = service.download(USER_ID, doc.id)
    assert fetched.id == doc.id
    assert content == b"%PDF-1.4 discharge record"


def test_upload_rejects_unsupported_extension(service):
    with pytest.raises(ValidationError, match="Unsupported file type"):
        service.upload(USER_ID, "payload.exe", b"MZ")


def test_upload_rejects_empty_file(service):
    with pytest.raises(ValidationError, match="empty"):
        service.upload(USER_ID, "notes.txt", b"")


def test_upload_rejects_oversized_file(service):
    with pytest.raises(PayloadTooLarge):
        service.upload(USER_ID, "scan.png", b"x" * 2048)


def test_metadata_failure_removes_blob(service, store, tmp_path):
    with patch.object(store, "add_document", side_effect=StoreError("Failed to save document metadata")):
        with pytest.raises(StoreError):
            service.upload(USER_ID, "notes.txt", b"buddy statement")

    user_dir = tmp_path / "documents" / USER_ID
    assert not user_dir.exists() or list(user_dir.iterdir()) == []


def test_other_user_cannot_download_or_delete(service):
    doc = service.upload(USER_ID, "notes.txt", b"buddy statement")
    with pytest.raises(NotFoundError):
        service.download(OTHER_USER_ID, doc.id)
    with pytest.raises(NotFoundError):
        service.delete(OTHER_USER_ID, doc.id)


def test_delete_removes_blob_and_row(service, store, tmp_path):
    doc = service.upload(USER_ID, "notes.txt", b"buddy statement")
    service.delete(USER_ID, doc.id)

    assert store.get_document(USER_ID, doc.id) is None
    assert not (tmp_path / "documents" / doc.storage_path).exists()


def test_storage_rejects_path_traversal(blob_storage):
    with pytest.raises(ValidationError):
        blob_storage.put("../outside.txt", b"data")
