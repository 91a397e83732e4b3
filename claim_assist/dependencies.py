"""
Claim Assist — Shared Service Instances

Module-level singletons initialized by the server lifespan and handed to
routes through FastAPI dependencies (tests swap them via
app.dependency_overrides).
"""

from __future__ import annotations

import logging

from fastapi import Depends, HTTPException
from sqlalchemy.engine import Engine

from claim_assist.conditions import ConditionSuggester
from claim_assist.database import build_engine, build_session_factory, init_db
from claim_assist.documents import BlobStorage, DocumentService
from claim_assist.interview import InterviewOrchestrator
from claim_assist.question_generator import QuestionGenerator
from claim_assist.store import RecordStore
from claim_assist.workflows import WorkflowBackend, build_workflow_backend

logger = logging.getLogger(__name__)

_record_store: RecordStore | None = None
_workflow_backend: WorkflowBackend | None = None
_blob_storage: BlobStorage | None = None


def init_dependencies(engine: Engine | None = None) -> None:
    """Called from server lifespan to initialize the store and AI backend."""
    global _record_store, _workflow_backend, _blob_storage
    engine = engine or build_engine()
    init_db(engine)
    _record_store = RecordStore(build_session_factory(engine))
    _workflow_backend = build_workflow_backend()
    _blob_storage = BlobStorage()
    logger.info("Store, AI workflow backend and blob storage initialized")


def _not_ready() -> HTTPException:
    return HTTPException(status_code=503, detail="Service not yet initialized.")


def get_record_store() -> RecordStore:
    if _record_store is None:
        raise _not_ready()
    return _record_store


def get_workflow_backend() -> WorkflowBackend:
    if _workflow_backend is None:
        raise _not_ready()
    return _workflow_backend


def get_blob_storage() -> BlobStorage:
    if _blob_storage is None:
        raise _not_ready()
    return _blob_storage


def get_orchestrator(
    store: RecordStore = Depends(get_record_store),
    backend: WorkflowBackend = Depends(get_workflow_backend),
) -> InterviewOrchestrator:
    return InterviewOrchestrator(store=store, generator=QuestionGenerator(backend))


def get_condition_suggester(
    backend: WorkflowBackend = Depends(get_workflow_backend),
) -> ConditionSuggester:
    return ConditionSuggester(backend)


def get_document_service(
    store: RecordStore = Depends(get_record_store),
    storage: BlobStorage = Depends(get_blob_storage),
) -> DocumentService:
    return DocumentService(store=store, storage=storage)
