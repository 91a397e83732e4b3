"""
Claim Assist — Document API Routes

  POST   /documents              — Upload a supporting document (multipart "file")
  GET    /documents              — The caller's documents (metadata only)
  GET    /documents/{id}         — Download a document
  DELETE /documents/{id}         — Delete a document
"""

from __future__ import annotations

import logging
from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Depends, File, Response, UploadFile, status

from claim_assist.auth import Identity, get_current_user
from claim_assist.dependencies import get_document_service, get_record_store
from claim_assist.documents import DocumentService
from claim_assist.schemas import DocumentOut
from claim_assist.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentOut, status_code=status.HTTP_201_CREATED)
async def upload_document(
    file: UploadFile = File(...),
    identity: Identity = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    """Accepts PDF, text, image and Word files up to the configured size."""
    content = await file.read()
    return service.upload(
        user_id=identity.user_id,
        file_name=file.filename or "",
        content=content,
        mime_type=file.content_type,
    )


@router.get("", response_model=list[DocumentOut])
def list_documents(
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    return store.list_documents(identity.user_id)


@router.get("/{document_id}")
def download_document(
    document_id: UUID,
    identity: Identity = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    doc, content = service.download(identity.user_id, str(document_id))
    return Response(
        content=content,
        media_type=doc.mime_type or "application/octet-stream",
        headers={
            "Content-Disposition": f"attachment; filename*=UTF-8''{quote(doc.file_name)}",
        },
    )


@router.delete("/{document_id}")
def delete_document(
    document_id: UUID,
    identity: Identity = Depends(get_current_user),
    service: DocumentService = Depends(get_document_service),
):
    service.delete(identity.user_id, str(document_id))
    return {"message": "Document deleted", "document_id": str(document_id)}
