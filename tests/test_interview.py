"""
Tests for the interview orchestrator and section selection.
"""
import json
from datetime import date
from unittest.mock import patch

import pytest

from claim_assist.errors import NotFoundError, StoreError, UpstreamError
from claim_assist.interview import (
    PLACEHOLDER_SERVICE_CONTEXT,
    SECTION_AGGRAVATION,
    SECTION_IN_SERVICE,
    SECTION_SECONDARY,
    SECTION_SYMPTOMS,
    InterviewOrchestrator,
    InterviewStatus,
    count_service_connection_questions,
    select_target_section,
)
from claim_assist.models import ClaimType
from claim_assist.question_generator import QuestionGenerator
from claim_assist.workflows import INTERVIEW_WORKFLOW

from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def orchestrator(store, backend):
    return InterviewOrchestrator(store=store, generator=QuestionGenerator(backend))


# ── Section selection ────────────────────────────────────────────────

def test_no_history_targets_claim_type_section():
    assert select_target_section([], "Primary") == SECTION_IN_SERVICE
    assert select_target_section([], "Secondary") == SECTION_SECONDARY
    assert select_target_section([], "Aggravation") == SECTION_AGGRAVATION


def test_unknown_claim_type_falls_back_to_primary():
    assert select_target_section([], "Presumptive") == SECTION_IN_SERVICE
    assert select_target_section([], None) == SECTION_IN_SERVICE


def test_one_service_question_keeps_service_section():
    questions = ["When did the injury happen?", "How often do you notice it?"]
    assert select_target_section(questions, "Primary") == SECTION_IN_SERVICE


def test_two_service_questions_move_to_symptoms():
    questions = [
        "Describe the EVENT that caused your condition.",
        "Were you treated while in Service?",
    ]
    assert count_service_connection_questions(questions) == 2
    assert select_target_section(questions, "Secondary") == SECTION_SYMPTOMS


def test_keyword_counted_once_per_question():
    questions = ["Was the injury from a service event or exposure?"]
    assert count_service_connection_questions(questions) == 1


# ── Turns ────────────────────────────────────────────────────────────

def test_first_turn_stores_question_zero(orchestrator, backend, store, condition):
    backend.queue_questions("When did your ringing in the ears begin during service?")

    result = orchestrator.run_turn(USER_ID, condition.id)

    assert result.interview_status == InterviewStatus.IN_PROGRESS
    assert result.sequence_number == 0
    assert result.target_section == SECTION_IN_SERVICE
    rows = store.interview_history(USER_ID, condition.id)
    assert [(r.sequence_number, r.answer_text) for r in rows] == [(0, None)]

    workflow, variables = backend.calls[0]
    assert workflow == INTERVIEW_WORKFLOW
    assert variables["condition_name"] == "Tinnitus"
    assert variables["claim_type"] == "Primary"
    assert json.loads(variables["service_history_context"]) == PLACEHOLDER_SERVICE_CONTEXT
    assert json.loads(variables["previous_qa_pairs"]) == []


def test_answer_is_committed_before_next_question(orchestrator, backend, store, condition):
    backend.queue_questions("What event caused it?", "Which unit were you in?")
    orchestrator.run_turn(USER_ID, condition.id)

    result = orchestrator.run_turn(USER_ID, condition.id, latest_answer="Artillery training")

    assert result.sequence_number == 1
    rows = store.interview_history(USER_ID, condition.id)
    assert [r.answer_text for r in rows] == ["Artillery training", None]
    assert json.loads(backend.last_variables["previous_qa_pairs"]) == [
        {"question": "What event caused it?", "answer": "Artillery training"},
    ]


def test_sequence_numbers_are_gapless(orchestrator, backend, store, condition):
    backend.queue_questions("Q one?", "Q two?", "Q three?")
    orchestrator.run_turn(USER_ID, condition.id)
    orchestrator.run_turn(USER_ID, condition.id, latest_answer="a1")
    orchestrator.run_turn(USER_ID, condition.id, latest_answer="a2")

    rows = store.interview_history(USER_ID, condition.id)
    assert [r.sequence_number for r in rows] == [0, 1, 2]


def test_target_moves_to_symptoms_after_two_service_questions(
    orchestrator, backend, condition,
):
    backend.queue_questions(
        "Describe the in-service event.",
        "Were you exposed to loud noise during service?",
        "How does it affect your sleep?",
    )
    orchestrator.run_turn(USER_ID, condition.id)
    orchestrator.run_turn(USER_ID, condition.id, latest_answer="Range duty")
    result = orchestrator.run_turn(USER_ID, condition.id, latest_answer="Daily")

    assert result.target_section == SECTION_SYMPTOMS
    assert backend.last_variables["target_section"] == SECTION_SYMPTOMS


def test_latest_service_period_is_sent_as_context(orchestrator, backend, store, condition):
    store.add_service_history(
        USER_ID, "army", date(2001, 1, 1), date(2005, 1, 1), "Cannon Crewmember",
    )
    store.add_service_history(
        USER_ID, "navy", date(2006, 1, 1), date(2012, 6, 30), "Aviation Boatswain's Mate",
    )
    backend.queue_questions("When did it start?")

    orchestrator.run_turn(USER_ID, condition.id)

    assert json.loads(backend.last_variables["service_history_context"]) == {
        "branch": "navy",
        "job": "Aviation Boatswain's Mate",
    }


def test_service_history_failure_uses_placeholder(orchestrator, backend, store, condition):
    backend.queue_questions("When did it start?")
    with patch.object(store, "latest_service_history", side_effect=StoreError("boom")):
        result = orchestrator.run_turn(USER_ID, condition.id)

    assert result.interview_status == InterviewStatus.IN_PROGRESS
    assert json.loads(backend.last_variables["service_history_context"]) == PLACEHOLDER_SERVICE_CONTEXT


def test_empty_question_completes_without_insert(orchestrator, backend, store, condition):
    backend.queue_questions("Last question?", "")
    orchestrator.run_turn(USER_ID, condition.id)

    result = orchestrator.run_turn(USER_ID, condition.id, latest_answer="Final answer")

    assert result.interview_status == InterviewStatus.COMPLETED
    assert result.to_response() == {"next_question": None, "interview_status": "completed"}
    rows = store.interview_history(USER_ID, condition.id)
    assert len(rows) == 1
    assert rows[0].answer_text == "Final answer"


def test_answer_without_open_question_is_ignored(orchestrator, backend, store, condition):
    backend.queue_questions("First question?")

    result = orchestrator.run_turn(USER_ID, condition.id, latest_answer="Unprompted")

    assert result.sequence_number == 0
    rows = store.interview_history(USER_ID, condition.id)
    assert [r.answer_text for r in rows] == [None]


def test_resubmitted_answer_does_not_overwrite(orchestrator, backend, store, condition):
    backend.queue_questions("Q0?", "")
    orchestrator.run_turn(USER_ID, condition.id)
    orchestrator.run_turn(USER_ID, condition.id, latest_answer="original")

    orchestrator.run_turn(USER_ID, condition.id, latest_answer="changed")

    rows = store.interview_history(USER_ID, condition.id)
    assert [r.answer_text for r in rows] == ["original"]


def test_generator_failure_raises_upstream_and_inserts_nothing(
    orchestrator, backend, store, condition,
):
    backend.queue_questions("Q0?")
    orchestrator.run_turn(USER_ID, condition.id)
    backend.error = UpstreamError("AI workflow timed out")

    with pytest.raises(UpstreamError) as exc_info:
        orchestrator.run_turn(USER_ID, condition.id, latest_answer="kept")

    assert exc_info.value.message == "AI interaction failed: AI workflow timed out"
    assert exc_info.value.status_code == 502
    rows = store.interview_history(USER_ID, condition.id)
    assert len(rows) == 1
    assert rows[0].answer_text == "kept"


def test_malformed_generator_result_is_upstream_error(orchestrator, backend, condition):
    backend.results.append({"question": "wrong key"})

    with pytest.raises(UpstreamError, match="next_question"):
        orchestrator.run_turn(USER_ID, condition.id)


def test_failed_question_insert_still_returns_question(
    orchestrator, backend, store, condition,
):
    backend.queue_questions("Could not be saved?")
    with patch.object(
        store, "append_question", side_effect=StoreError("Failed to store next question"),
    ):
        result = orchestrator.run_turn(USER_ID, condition.id)

    assert result.next_question == "Could not be saved?"
    assert result.interview_status == InterviewStatus.IN_PROGRESS
    assert result.sequence_number is None
    assert store.interview_history(USER_ID, condition.id) == []


def test_other_users_condition_is_not_found(orchestrator, backend, condition):
    with pytest.raises(NotFoundError):
        orchestrator.run_turn(OTHER_USER_ID, condition.id)
    assert backend.calls == []


def test_claim_type_drives_first_section(orchestrator, backend, store):
    secondary, _ = store.add_condition(USER_ID, "Sleep Apnea", ClaimType.SECONDARY)
    backend.queue_questions("Which condition caused this?")

    result = orchestrator.run_turn(USER_ID, secondary.id)

    assert result.target_section == SECTION_SECONDARY
