"""
Claim Assist — Condition API Routes

  GET    /conditions/common      — Frequently claimed conditions
  GET    /conditions             — The caller's conditions
  POST   /conditions             — Add a condition (201 new, 200 existing)
  DELETE /conditions/{id}        — Remove a condition and its transcript
  POST   /suggest-conditions     — AI suggestions from branch + job
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from claim_assist.auth import Identity, get_current_user
from claim_assist.conditions import COMMON_CONDITIONS, ConditionSuggester
from claim_assist.dependencies import get_condition_suggester, get_record_store
from claim_assist.errors import NotFoundError
from claim_assist.pii_shield import AuditEntry, audit_log
from claim_assist.schemas import (
    CommonConditionsResponse,
    ConditionCreate,
    ConditionCreated,
    ConditionOut,
    SuggestConditionsRequest,
    SuggestConditionsResponse,
)
from claim_assist.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["conditions"])


@router.get("/conditions/common", response_model=CommonConditionsResponse)
def list_common_conditions(identity: Identity = Depends(get_current_user)):
    return CommonConditionsResponse(
        conditions=list(COMMON_CONDITIONS),
        total_count=len(COMMON_CONDITIONS),
    )


@router.get("/conditions", response_model=list[ConditionOut])
def list_conditions(
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    return store.list_conditions(identity.user_id)


@router.post(
    "/conditions",
    response_model=ConditionCreated,
    status_code=status.HTTP_201_CREATED,
)
def add_condition(
    body: ConditionCreate,
    response: Response,
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    condition, created = store.add_condition(
        user_id=identity.user_id,
        condition_name=body.condition_name,
        claim_type=body.claim_type,
        diagnostic_code=body.diagnostic_code,
        status=body.status,
    )
    if created:
        audit_log.record(AuditEntry(
            user_id=identity.user_id,
            action="write",
            resource="condition",
            resource_id=condition.id,
            reason="condition_add",
        ))
    else:
        response.status_code = status.HTTP_200_OK
    return ConditionCreated(
        condition=ConditionOut.model_validate(condition),
        created=created,
    )


@router.delete("/conditions/{condition_id}")
def delete_condition(
    condition_id: UUID,
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    if not store.delete_condition(identity.user_id, str(condition_id)):
        raise NotFoundError("Condition not found or access denied")
    audit_log.record(AuditEntry(
        user_id=identity.user_id,
        action="delete",
        resource="condition",
        resource_id=str(condition_id),
        reason="condition_delete",
    ))
    return {"message": "Condition deleted", "condition_id": str(condition_id)}


@router.post("/suggest-conditions", response_model=SuggestConditionsResponse)
def suggest_conditions(
    body: SuggestConditionsRequest,
    identity: Identity = Depends(get_current_user),
    suggester: ConditionSuggester = Depends(get_condition_suggester),
):
    """Suggestions are not persisted; the client adds the ones the veteran picks."""
    suggestions = suggester.suggest(body.service_branch, body.job_title)
    return SuggestConditionsResponse(suggested_conditions=suggestions)
