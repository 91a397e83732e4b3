"""
Shared fixtures: an in-memory store, a scripted AI backend, throwaway
encrypted blob storage and a TestClient wired to all three.
"""
import os

# Must be set before claim_assist.config is imported
os.environ.setdefault("RATE_LIMIT_MAX_REQUESTS", "0")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from cryptography.fernet import Fernet
from fastapi.testclient import TestClient

from claim_assist.auth import create_access_token
from claim_assist.database import build_engine, build_session_factory, init_db
from claim_assist.dependencies import (
    get_blob_storage,
    get_record_store,
    get_workflow_backend,
)
from claim_assist.documents import BlobStorage
from claim_assist.models import ClaimType
from claim_assist.pii_shield import BlobCipher
from claim_assist.server import app
from claim_assist.store import RecordStore

from tests.fakes import FakeWorkflowBackend

USER_ID = "5b0f3c4e-2a6d-4d8e-9d61-6f0f4b7f2a10"
OTHER_USER_ID = "9c1d2e3f-4a5b-4c6d-8e7f-0a1b2c3d4e5f"


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return RecordStore(build_session_factory(engine))


@pytest.fixture
def backend():
    return FakeWorkflowBackend()


@pytest.fixture
def blob_storage(tmp_path):
    return BlobStorage(
        root=tmp_path / "documents",
        cipher=BlobCipher(Fernet.generate_key().decode()),
    )


@pytest.fixture
def condition(store):
    condition, _ = store.add_condition(USER_ID, "Tinnitus", ClaimType.PRIMARY)
    return condition


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(USER_ID)}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {create_access_token(OTHER_USER_ID)}"}


@pytest.fixture
def client(store, backend, blob_storage):
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_workflow_backend] = lambda: backend
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage
    yield TestClient(app)
    app.dependency_overrides.clear()
