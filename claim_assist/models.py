"""
Claim Assist — Relational Models

Tables owned by the application. Every row carries the owning user_id;
all queries filter on it (see store.RecordStore).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from claim_assist.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ClaimType(str, Enum):
    """Relationship of a claimed condition to military service."""
    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    AGGRAVATION = "Aggravation"


class ConditionStatus(str, Enum):
    CONFIRMED = "confirmed"
    SUGGESTED = "suggested"


class Condition(Base):
    __tablename__ = "conditions"
    __table_args__ = (
        UniqueConstraint("user_id", "condition_name", name="uq_conditions_user_name"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)

    condition_name = Column(String(255), nullable=False)
    claim_type = Column(String(32), nullable=False, default=ClaimType.PRIMARY.value)
    diagnostic_code = Column(String(16))
    status = Column(String(32), nullable=False, default=ConditionStatus.CONFIRMED.value)

    created_at = Column(DateTime(timezone=True), default=_utcnow)


class ServiceHistory(Base):
    __tablename__ = "service_history"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)

    branch = Column(String(64), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    job = Column(String(255), nullable=False)
    deployments = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class InterviewResponse(Base):
    __tablename__ = "interview_responses"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "condition_id", "sequence_number",
            name="uq_interview_responses_sequence",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    condition_id = Column(
        String(36),
        ForeignKey("conditions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sequence_number = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    answer_text = Column(Text)  # NULL = asked, not yet answered

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow)


class Document(Base):
    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)

    file_name = Column(String(255), nullable=False)
    storage_path = Column(String(512), nullable=False, unique=True)
    mime_type = Column(String(128))
    size_bytes = Column(Integer)

    uploaded_at = Column(DateTime(timezone=True), default=_utcnow)
