"""
Claim Assist — Relational Store

User-scoped persistence for conditions, service history, interview
Q&A and document metadata. Every method takes the owning user_id and
filters on it; that filter is the only tenant-isolation mechanism.

Each call runs in its own short session/transaction. Nothing here spans
several calls, so the interview's answer commit and question insert are
independent writes (see interview.InterviewOrchestrator).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from claim_assist.errors import StoreError, ValidationError
from claim_assist.models import (
    ClaimType,
    Condition,
    ConditionStatus,
    Document,
    InterviewResponse,
    ServiceHistory,
)

logger = logging.getLogger(__name__)


def _check_service_dates(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise ValidationError("End date cannot be before start date")


class RecordStore:
    """Repository over the relational store, scoped per user."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, action: str) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Store failure while trying to %s: %s", action, exc)
            raise StoreError(f"Failed to {action}") from exc
        finally:
            session.close()

    # ── Conditions ───────────────────────────────────────────────────

    def list_conditions(self, user_id: str) -> list[Condition]:
        with self._session("fetch conditions") as session:
            stmt = (
                select(Condition)
                .where(Condition.user_id == user_id)
                .order_by(Condition.created_at, Condition.condition_name)
            )
            return list(session.scalars(stmt).all())

    def get_condition(self, user_id: str, condition_id: str) -> Condition | None:
        with self._session("fetch condition details") as session:
            stmt = select(Condition).where(
                Condition.id == condition_id,
                Condition.user_id == user_id,
            )
            return session.scalars(stmt).one_or_none()

    def add_condition(
        self,
        user_id: str,
        condition_name: str,
        claim_type: ClaimType = ClaimType.PRIMARY,
        diagnostic_code: str | None = None,
        status: ConditionStatus = ConditionStatus.CONFIRMED,
    ) -> tuple[Condition, bool]:
        """
        Insert a condition for the user.

        Returns (condition, created). A (user, name) pair that already
        exists is not an error: the stored row is returned with
        created=False and left untouched.
        """
        with self._session("save condition") as session:
            condition = Condition(
                user_id=user_id,
                condition_name=condition_name,
                claim_type=ClaimType(claim_type).value,
                diagnostic_code=diagnostic_code,
                status=ConditionStatus(status).value,
            )
            session.add(condition)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                existing = session.scalars(
                    select(Condition).where(
                        Condition.user_id == user_id,
                        Condition.condition_name == condition_name,
                    )
                ).one_or_none()
                if existing is None:
                    raise
                logger.info("Condition %s already recorded for user", existing.id)
                return existing, False
            logger.info("Added condition %s (%s)", condition.id, condition.claim_type)
            return condition, True

    def delete_condition(self, user_id: str, condition_id: str) -> bool:
        """Delete a condition and its interview transcript."""
        with self._session("delete condition") as session:
            session.execute(
                delete(InterviewResponse).where(
                    InterviewResponse.user_id == user_id,
                    InterviewResponse.condition_id == condition_id,
                )
            )
            result = session.execute(
                delete(Condition).where(
                    Condition.id == condition_id,
                    Condition.user_id == user_id,
                )
            )
            session.commit()
            return result.rowcount > 0

    # ── Service history ──────────────────────────────────────────────

    def list_service_history(self, user_id: str) -> list[ServiceHistory]:
        with self._session("fetch service history") as session:
            stmt = (
                select(ServiceHistory)
                .where(ServiceHistory.user_id == user_id)
                .order_by(ServiceHistory.start_date)
            )
            return list(session.scalars(stmt).all())

    def latest_service_history(self, user_id: str) -> ServiceHistory | None:
        """The most recently ended service period, if any."""
        with self._session("fetch service history") as session:
            stmt = (
                select(ServiceHistory)
                .where(ServiceHistory.user_id == user_id)
                .order_by(ServiceHistory.end_date.desc())
                .limit(1)
            )
            return session.scalars(stmt).first()

    def add_service_history(
        self,
        user_id: str,
        branch: str,
        start_date: date,
        end_date: date,
        job: str,
        deployments: list[str] | None = None,
    ) -> ServiceHistory:
        _check_service_dates(start_date, end_date)
        with self._session("add service history") as session:
            record = ServiceHistory(
                user_id=user_id,
                branch=branch,
                start_date=start_date,
                end_date=end_date,
                job=job,
                deployments=list(deployments or []),
            )
            session.add(record)
            session.commit()
            logger.info("Added service history %s", record.id)
            return record

    def update_service_history(
        self,
        user_id: str,
        record_id: str,
        branch: str,
        start_date: date,
        end_date: date,
        job: str,
        deployments: list[str] | None = None,
    ) -> ServiceHistory | None:
        _check_service_dates(start_date, end_date)
        with self._session("update service history") as session:
            record = session.scalars(
                select(ServiceHistory).where(
                    ServiceHistory.id == record_id,
                    ServiceHistory.user_id == user_id,
                )
            ).one_or_none()
            if record is None:
                return None
            record.branch = branch
            record.start_date = start_date
            record.end_date = end_date
            record.job = job
            record.deployments = list(deployments or [])
            session.commit()
            return record

    def delete_service_history(self, user_id: str, record_id: str) -> bool:
        with self._session("delete service history") as session:
            result = session.execute(
                delete(ServiceHistory).where(
                    ServiceHistory.id == record_id,
                    ServiceHistory.user_id == user_id,
                )
            )
            session.commit()
            return result.rowcount > 0

    # ── Interview Q&A ────────────────────────────────────────────────

    def interview_history(self, user_id: str, condition_id: str) -> list[InterviewResponse]:
        """Full Q&A transcript, ascending by sequence number."""
        with self._session("fetch interview history") as session:
            stmt = (
                select(InterviewResponse)
                .where(
                    InterviewResponse.user_id == user_id,
                    InterviewResponse.condition_id == condition_id,
                )
                .order_by(InterviewResponse.sequence_number)
            )
            return list(session.scalars(stmt).all())

    def record_answer(
        self,
        user_id: str,
        condition_id: str,
        sequence_number: int,
        answer_text: str,
    ) -> bool:
        """
        Write the answer of an open question.

        Only a row whose answer is still NULL is touched, so an answer is
        written at most once. Returns False when no open row matched.
        """
        with self._session("save your answer") as session:
            result = session.execute(
                update(InterviewResponse)
                .where(
                    InterviewResponse.user_id == user_id,
                    InterviewResponse.condition_id == condition_id,
                    InterviewResponse.sequence_number == sequence_number,
                    InterviewResponse.answer_text.is_(None),
                )
                .values(
                    answer_text=answer_text,
                    updated_at=datetime.now(timezone.utc),
                )
            )
            session.commit()
            return result.rowcount == 1

    def append_question(
        self,
        user_id: str,
        condition_id: str,
        sequence_number: int,
        question_text: str,
    ) -> InterviewResponse:
        with self._session("store next question") as session:
            row = InterviewResponse(
                user_id=user_id,
                condition_id=condition_id,
                sequence_number=sequence_number,
                question_text=question_text,
                answer_text=None,
            )
            session.add(row)
            session.commit()
            return row

    # ── Documents ────────────────────────────────────────────────────

    def list_documents(self, user_id: str) -> list[Document]:
        with self._session("fetch documents") as session:
            stmt = (
                select(Document)
                .where(Document.user_id == user_id)
                .order_by(Document.uploaded_at.desc(), Document.file_name)
            )
            return list(session.scalars(stmt).all())

    def get_document(self, user_id: str, document_id: str) -> Document | None:
        with self._session("fetch document") as session:
            stmt = select(Document).where(
                Document.id == document_id,
                Document.user_id == user_id,
            )
            return session.scalars(stmt).one_or_none()

    def add_document(
        self,
        user_id: str,
        file_name: str,
        storage_path: str,
        mime_type: str | None,
        size_bytes: int,
    ) -> Document:
        with self._session("save document metadata") as session:
            doc = Document(
                user_id=user_id,
                file_name=file_name,
                storage_path=storage_path,
                mime_type=mime_type,
                size_bytes=size_bytes,
            )
            session.add(doc)
            session.commit()
            return doc

    def delete_document(self, user_id: str, document_id: str) -> bool:
        with self._session("delete document") as session:
            result = session.execute(
                delete(Document).where(
                    Document.id == document_id,
                    Document.user_id == user_id,
                )
            )
            session.commit()
            return result.rowcount > 0
