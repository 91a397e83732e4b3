"""
Claim Assist — Request / Response Schemas
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from claim_assist.models import ClaimType, ConditionStatus

SERVICE_BRANCHES = ("army", "navy", "air force", "marines", "coast guard")


def split_deployments(value: str | list[str] | None) -> list[str]:
    """Comma-separated input → trimmed, ordered list without blanks."""
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else value
    return [str(p).strip() for p in parts if str(p).strip()]


# ── Interview ────────────────────────────────────────────────────────

class ManageInterviewRequest(BaseModel):
    conditionId: UUID = Field(..., description="Condition being interviewed.")
    latestAnswer: str | None = Field(
        default=None,
        max_length=10000,
        description="Answer to the open question; omit or null on the first turn.",
        json_schema_extra={"examples": ["March 2019, during a convoy in Kandahar"]},
    )

    @field_validator("latestAnswer")
    @classmethod
    def _answer_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("latestAnswer must be a non-empty string or null")
        return value.strip() if value is not None else None


class ManageInterviewResponse(BaseModel):
    next_question: str | None
    interview_status: str


class InterviewEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sequence_number: int
    question_text: str
    answer_text: str | None


class InterviewTranscript(BaseModel):
    condition_id: str
    condition_name: str
    claim_type: str
    answered_count: int
    responses: list[InterviewEntry]


# ── Conditions ───────────────────────────────────────────────────────

class ConditionCreate(BaseModel):
    condition_name: str = Field(..., min_length=1, max_length=255)
    claim_type: ClaimType = ClaimType.PRIMARY
    diagnostic_code: str | None = Field(default=None, max_length=16)
    status: ConditionStatus = ConditionStatus.CONFIRMED

    @field_validator("condition_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("condition_name must not be blank")
        return value


class ConditionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    condition_name: str
    claim_type: str
    diagnostic_code: str | None
    status: str
    created_at: datetime | None


class ConditionCreated(BaseModel):
    condition: ConditionOut
    created: bool


class CommonConditionsResponse(BaseModel):
    conditions: list[str]
    total_count: int


class SuggestConditionsRequest(BaseModel):
    service_branch: str = Field(..., min_length=1, max_length=64)
    job_title: str = Field(..., min_length=1, max_length=255)


class SuggestConditionsResponse(BaseModel):
    suggested_conditions: list[str]


# ── Service history ──────────────────────────────────────────────────

class ServiceHistoryIn(BaseModel):
    branch: str = Field(..., json_schema_extra={"examples": ["army"]})
    start_date: date
    end_date: date
    job: str = Field(..., min_length=1, max_length=255)
    deployments: list[str] = Field(
        default_factory=list,
        description="Deployment labels; a comma-separated string is accepted.",
        json_schema_extra={"examples": ["Iraq 2004, Afghanistan 2009"]},
    )

    @field_validator("branch")
    @classmethod
    def _known_branch(cls, value: str) -> str:
        branch = value.strip().lower()
        if branch not in SERVICE_BRANCHES:
            raise ValueError(f"branch must be one of: {', '.join(SERVICE_BRANCHES)}")
        return branch

    @field_validator("deployments", mode="before")
    @classmethod
    def _split_deployments(cls, value):
        return split_deployments(value)

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class ServiceHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    branch: str
    start_date: date
    end_date: date
    job: str
    deployments: list[str]


# ── Documents ────────────────────────────────────────────────────────

class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    file_name: str
    mime_type: str | None
    size_bytes: int | None
    uploaded_at: datetime | None
