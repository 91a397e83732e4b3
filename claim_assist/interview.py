"""
Claim Assist — Interview Orchestrator

Runs one turn of the per-condition claim interview:

  1. Load the condition (scoped to the caller); 404 if absent.
  2. Load the most recently ended service period (placeholder if none).
  3. Load the Q&A transcript, ascending by sequence number.
  4. Commit the caller's answer to the open (last, unanswered) question.
  5. Choose the target section from claim type + transcript.
  6. Ask the question generator for the next question.
  7. Store the new question as the next sequence number, or report the
     interview as completed when the generator returns nothing.

The orchestrator is stateless between calls; everything it knows comes
from the store. There is no transaction across steps 4 and 7: an answer
committed in step 4 stays committed even if generation fails, and a
failed insert in step 7 still returns the question to the caller. A
re-submitted answer is a no-op, so the caller can retry a whole turn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from claim_assist.errors import NotFoundError, PersistenceWarning, StoreError
from claim_assist.models import ClaimType
from claim_assist.pii_shield import AuditEntry, audit_log
from claim_assist.question_generator import QuestionContext, QuestionGenerator
from claim_assist.store import RecordStore

logger = logging.getLogger(__name__)


# ── Interview outline sections ───────────────────────────────────────

SECTION_IN_SERVICE = "II.B.i - In-Service Event, Injury, or Exposure"
SECTION_SECONDARY = "II.B.ii - Secondary Connection"
SECTION_AGGRAVATION = "II.B.iii - Aggravation Details"
SECTION_SYMPTOMS = "II.C - Current Symptoms and Functional Impact"

SERVICE_CONNECTION_SECTIONS: dict[str, str] = {
    ClaimType.PRIMARY.value: SECTION_IN_SERVICE,
    ClaimType.SECONDARY.value: SECTION_SECONDARY,
    ClaimType.AGGRAVATION.value: SECTION_AGGRAVATION,
}

# Questions mentioning any of these count as service-connection questions.
SERVICE_CONNECTION_KEYWORDS = ("service", "exposure", "injury", "event")
SERVICE_CONNECTION_QUESTION_LIMIT = 2

PLACEHOLDER_SERVICE_CONTEXT = {"branch": "N/A", "job": "N/A"}


class InterviewStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


def service_connection_section(claim_type: str | None) -> str:
    """The claim-type-specific section; unknown types fall back to Primary."""
    return SERVICE_CONNECTION_SECTIONS.get(claim_type or "", SECTION_IN_SERVICE)


def count_service_connection_questions(questions: Sequence[str]) -> int:
    return sum(
        1 for text in questions
        if any(keyword in text.lower() for keyword in SERVICE_CONNECTION_KEYWORDS)
    )


def select_target_section(questions: Sequence[str], claim_type: str | None) -> str:
    """
    Decide which outline section the next question should address.

    Progress is inferred from the wording of earlier questions: once two
    of them mention a service-connection keyword the interview moves on to
    current symptoms. This is a heuristic over free text and shifts if the
    generator's phrasing changes.
    """
    if not questions:
        return service_connection_section(claim_type)
    if count_service_connection_questions(questions) < SERVICE_CONNECTION_QUESTION_LIMIT:
        return service_connection_section(claim_type)
    return SECTION_SYMPTOMS


@dataclass
class TurnResult:
    next_question: str | None
    interview_status: InterviewStatus
    target_section: str
    sequence_number: int | None = None  # of the stored question, if stored

    def to_response(self) -> dict:
        return {
            "next_question": self.next_question,
            "interview_status": self.interview_status.value,
        }


class InterviewOrchestrator:
    def __init__(self, store: RecordStore, generator: QuestionGenerator):
        self._store = store
        self._generator = generator

    def run_turn(
        self,
        user_id: str,
        condition_id: str,
        latest_answer: str | None = None,
    ) -> TurnResult:
        """Execute one interview turn. Errors propagate as ClaimAssistError."""
        condition = self._store.get_condition(user_id, condition_id)
        if condition is None:
            raise NotFoundError("Condition not found or access denied")

        service_context = self._service_context(user_id)

        history = [
            {
                "sequence_number": row.sequence_number,
                "question": row.question_text,
                "answer": row.answer_text,
            }
            for row in self._store.interview_history(user_id, condition_id)
        ]

        if latest_answer is not None:
            self._commit_answer(user_id, condition_id, history, latest_answer)

        claim_type = condition.claim_type or ClaimType.PRIMARY.value
        target_section = select_target_section(
            [item["question"] for item in history], claim_type,
        )
        logger.info(
            "Interview turn for condition %s: %d prior questions, target=%s",
            condition_id, len(history), target_section,
        )

        next_question = self._generator.next_question(QuestionContext(
            condition_name=condition.condition_name,
            claim_type=claim_type,
            service_history_context=service_context,
            target_section=target_section,
            previous_qa_pairs=[
                {"question": item["question"], "answer": item["answer"] or ""}
                for item in history
            ],
        ))

        if not next_question:
            logger.info(
                "No further question for condition %s; interview completed",
                condition_id,
            )
            return TurnResult(
                next_question=None,
                interview_status=InterviewStatus.COMPLETED,
                target_section=target_section,
            )

        next_sequence = (
            max(item["sequence_number"] for item in history) + 1 if history else 0
        )
        stored_sequence: int | None = None
        try:
            self._store_question(user_id, condition_id, next_sequence, next_question)
            stored_sequence = next_sequence
        except PersistenceWarning as warning:
            logger.warning(
                "%s; returning question to user anyway (%s)",
                warning.message, warning.details.get("cause", ""),
            )

        return TurnResult(
            next_question=next_question,
            interview_status=InterviewStatus.IN_PROGRESS,
            target_section=target_section,
            sequence_number=stored_sequence,
        )

    # ── Steps ────────────────────────────────────────────────────────

    def _service_context(self, user_id: str) -> dict:
        try:
            record = self._store.latest_service_history(user_id)
        except StoreError as exc:
            logger.error("Service history unavailable, using placeholder: %s", exc)
            return dict(PLACEHOLDER_SERVICE_CONTEXT)
        if record is None:
            return dict(PLACEHOLDER_SERVICE_CONTEXT)
        return {"branch": record.branch, "job": record.job}

    def _commit_answer(
        self,
        user_id: str,
        condition_id: str,
        history: list[dict],
        answer: str,
    ) -> None:
        """Write the answer onto the last entry if it is still open."""
        if not history or history[-1]["answer"] is not None:
            logger.warning(
                "Received an answer for condition %s but no unanswered question "
                "is open; ignoring",
                condition_id,
            )
            return

        last = history[-1]
        committed = self._store.record_answer(
            user_id, condition_id, last["sequence_number"], answer,
        )
        if not committed:
            logger.warning(
                "Question %d of condition %s was answered concurrently; ignoring",
                last["sequence_number"], condition_id,
            )
            return

        last["answer"] = answer
        audit_log.record(AuditEntry(
            user_id=user_id,
            action="write",
            resource="interview_answer",
            resource_id=f"{condition_id}:{last['sequence_number']}",
            reason="interview_turn",
        ))
        logger.info("Updated answer for sequence %d", last["sequence_number"])

    def _store_question(
        self,
        user_id: str,
        condition_id: str,
        sequence_number: int,
        question: str,
    ) -> None:
        try:
            self._store.append_question(user_id, condition_id, sequence_number, question)
        except StoreError as exc:
            raise PersistenceWarning(
                f"Failed to store question {sequence_number} for condition {condition_id}",
                details={"cause": exc.message},
            ) from exc
        audit_log.record(AuditEntry(
            user_id=user_id,
            action="write",
            resource="interview_question",
            resource_id=f"{condition_id}:{sequence_number}",
            reason="interview_turn",
        ))
        logger.info("Stored next question with sequence %d", sequence_number)
