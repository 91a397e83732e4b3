"""
Claim Assist — Service History API Routes

  GET    /service-history        — The caller's service periods
  POST   /service-history        — Add a period
  PUT    /service-history/{id}   — Replace a period
  DELETE /service-history/{id}   — Remove a period
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from claim_assist.auth import Identity, get_current_user
from claim_assist.dependencies import get_record_store
from claim_assist.errors import NotFoundError
from claim_assist.pii_shield import AuditEntry, audit_log
from claim_assist.schemas import ServiceHistoryIn, ServiceHistoryOut
from claim_assist.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/service-history", tags=["service-history"])

_NOT_FOUND = "Service history record not found"


def _audit(user_id: str, action: str, record_id: str) -> None:
    audit_log.record(AuditEntry(
        user_id=user_id,
        action=action,
        resource="service_history",
        resource_id=record_id,
        reason="service_history_edit",
    ))


@router.get("", response_model=list[ServiceHistoryOut])
def list_service_history(
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    return store.list_service_history(identity.user_id)


@router.post("", response_model=ServiceHistoryOut, status_code=status.HTTP_201_CREATED)
def add_service_history(
    body: ServiceHistoryIn,
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    record = store.add_service_history(identity.user_id, **body.model_dump())
    _audit(identity.user_id, "write", record.id)
    return record


@router.put("/{record_id}", response_model=ServiceHistoryOut)
def update_service_history(
    record_id: UUID,
    body: ServiceHistoryIn,
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    record = store.update_service_history(
        identity.user_id, str(record_id), **body.model_dump(),
    )
    if record is None:
        raise NotFoundError(_NOT_FOUND)
    _audit(identity.user_id, "write", record.id)
    return record


@router.delete("/{record_id}")
def delete_service_history(
    record_id: UUID,
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    if not store.delete_service_history(identity.user_id, str(record_id)):
        raise NotFoundError(_NOT_FOUND)
    _audit(identity.user_id, "delete", str(record_id))
    return {"message": "Service history deleted", "id": str(record_id)}
