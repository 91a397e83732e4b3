"""
Claim Assist — Interview API Routes

  POST /manage-interview                 — Advance one interview turn
  GET  /conditions/{id}/interview        — Q&A transcript for a condition
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends

from claim_assist.auth import Identity, get_current_user
from claim_assist.dependencies import get_orchestrator, get_record_store
from claim_assist.errors import NotFoundError
from claim_assist.interview import InterviewOrchestrator
from claim_assist.pii_shield import AuditEntry, audit_log
from claim_assist.schemas import (
    InterviewEntry,
    InterviewTranscript,
    ManageInterviewRequest,
    ManageInterviewResponse,
)
from claim_assist.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["interview"])


@router.post("/manage-interview", response_model=ManageInterviewResponse)
def manage_interview(
    body: ManageInterviewRequest,
    identity: Identity = Depends(get_current_user),
    orchestrator: InterviewOrchestrator = Depends(get_orchestrator),
):
    """
    Commit the veteran's latest answer (if any) and return the next
    question, or interview_status "completed" when the generator has
    nothing more to ask.
    """
    result = orchestrator.run_turn(
        user_id=identity.user_id,
        condition_id=str(body.conditionId),
        latest_answer=body.latestAnswer,
    )
    return result.to_response()


@router.get("/conditions/{condition_id}/interview", response_model=InterviewTranscript)
def get_interview_transcript(
    condition_id: UUID,
    identity: Identity = Depends(get_current_user),
    store: RecordStore = Depends(get_record_store),
):
    condition = store.get_condition(identity.user_id, str(condition_id))
    if condition is None:
        raise NotFoundError("Condition not found or access denied")

    rows = store.interview_history(identity.user_id, condition.id)
    audit_log.record(AuditEntry(
        user_id=identity.user_id,
        action="read",
        resource="interview_answer",
        resource_id=condition.id,
        reason="transcript_view",
    ))
    return InterviewTranscript(
        condition_id=condition.id,
        condition_name=condition.condition_name,
        claim_type=condition.claim_type,
        answered_count=sum(1 for r in rows if r.answer_text is not None),
        responses=[InterviewEntry.model_validate(r) for r in rows],
    )
