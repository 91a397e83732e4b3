"""
Tests for the user-scoped relational store.
"""
from datetime import date

import pytest

from claim_assist.database import build_engine, build_session_factory
from claim_assist.errors import StoreError, ValidationError
from claim_assist.models import ClaimType, ConditionStatus
from claim_assist.store import RecordStore

from tests.conftest import OTHER_USER_ID, USER_ID


def test_add_condition_is_idempotent_per_user(store):
    first, created = store.add_condition(USER_ID, "Migraines", ClaimType.PRIMARY)
    again, created_again = store.add_condition(USER_ID, "Migraines", ClaimType.SECONDARY)

    assert created is True
    assert created_again is False
    assert again.id == first.id
    assert again.claim_type == "Primary"


def test_same_condition_name_allowed_for_different_users(store):
    _, created_a = store.add_condition(USER_ID, "Hearing Loss")
    _, created_b = store.add_condition(OTHER_USER_ID, "Hearing Loss")
    assert created_a and created_b


def test_conditions_are_scoped_to_owner(store, condition):
    assert store.get_condition(OTHER_USER_ID, condition.id) is None
    assert store.list_conditions(OTHER_USER_ID) == []
    assert [c.id for c in store.list_conditions(USER_ID)] == [condition.id]


def test_suggested_status_is_kept(store):
    cond, _ = store.add_condition(
        USER_ID, "Sleep Apnea", ClaimType.SECONDARY, status=ConditionStatus.SUGGESTED,
    )
    assert cond.status == "suggested"


def test_delete_condition_removes_transcript(store, condition):
    store.append_question(USER_ID, condition.id, 0, "When did it start?")

    assert store.delete_condition(USER_ID, condition.id) is True
    assert store.get_condition(USER_ID, condition.id) is None
    assert store.interview_history(USER_ID, condition.id) == []
    assert store.delete_condition(USER_ID, condition.id) is False


def test_delete_condition_of_other_user_is_noop(store, condition):
    assert store.delete_condition(OTHER_USER_ID, condition.id) is False
    assert store.get_condition(USER_ID, condition.id) is not None


def test_record_answer_writes_once(store, condition):
    store.append_question(USER_ID, condition.id, 0, "Q0?")

    assert store.record_answer(USER_ID, condition.id, 0, "first") is True
    assert store.record_answer(USER_ID, condition.id, 0, "second") is False
    row = store.interview_history(USER_ID, condition.id)[0]
    assert row.answer_text == "first"
    assert row.updated_at is not None


def test_duplicate_sequence_number_is_store_error(store, condition):
    store.append_question(USER_ID, condition.id, 0, "Q0?")
    with pytest.raises(StoreError, match="store next question"):
        store.append_question(USER_ID, condition.id, 0, "Racing Q0?")


def test_interview_history_is_ascending(store, condition):
    store.append_question(USER_ID, condition.id, 1, "second")
    store.append_question(USER_ID, condition.id, 0, "first")
    assert [r.question_text for r in store.interview_history(USER_ID, condition.id)] == [
        "first", "second",
    ]


def test_service_history_dates_are_checked(store):
    with pytest.raises(ValidationError, match="End date cannot be before start date"):
        store.add_service_history(USER_ID, "army", date(2010, 1, 1), date(2009, 1, 1), "Medic")


def test_latest_service_history_orders_by_end_date(store):
    assert store.latest_service_history(USER_ID) is None
    store.add_service_history(USER_ID, "navy", date(2010, 1, 1), date(2014, 1, 1), "Corpsman")
    store.add_service_history(USER_ID, "army", date(2000, 1, 1), date(2004, 1, 1), "Medic")

    assert store.latest_service_history(USER_ID).branch == "navy"


def test_update_service_history(store):
    record = store.add_service_history(
        USER_ID, "army", date(2000, 1, 1), date(2004, 1, 1), "Medic", ["Iraq 2003"],
    )
    updated = store.update_service_history(
        USER_ID, record.id, "army", date(2000, 1, 1), date(2006, 1, 1), "Combat Medic",
        ["Iraq 2003", "Afghanistan 2005"],
    )
    assert updated.end_date == date(2006, 1, 1)
    assert updated.deployments == ["Iraq 2003", "Afghanistan 2005"]
    assert store.update_service_history(
        OTHER_USER_ID, record.id, "army", date(2000, 1, 1), date(2006, 1, 1), "x",
    ) is None


def test_documents_are_scoped_to_owner(store):
    doc = store.add_document(USER_ID, "dd214.pdf", f"{USER_ID}/abc_dd214.pdf", "application/pdf", 42)
    assert store.get_document(OTHER_USER_ID, doc.id) is None
    assert [d.id for d in store.list_documents(USER_ID)] == [doc.id]
    assert store.delete_document(OTHER_USER_ID, doc.id) is False
    assert store.delete_document(USER_ID, doc.id) is True


def test_database_errors_become_store_errors():
    engine = build_engine("sqlite://")  # tables never created
    store = RecordStore(build_session_factory(engine))
    with pytest.raises(StoreError) as exc_info:
        store.list_conditions(USER_ID)
    assert exc_info.value.message == "Failed to fetch conditions"
    assert exc_info.value.status_code == 500
    engine.dispose()
