from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from canteen.main import app
from canteen.services.identity import MockIdentityService, UserIdentity, get_identity_service
from canteen.services.records import InMemoryRecordStore, get_record_store
from canteen.services.records.seed import MENU_SEED
from canteen.services.session import SessionContext, SessionRegistry, get_session_registry


@pytest.fixture
def menu_ids() -> dict[str, str]:
    """Seed item ids keyed by item name."""
    return {row["name"]: row["id"] for row in MENU_SEED}


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore(seed=MENU_SEED)


@pytest.fixture
def identity() -> MockIdentityService:
    return MockIdentityService()


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry(idle_timeout=timedelta(minutes=30))


@pytest.fixture
def signed_in_context() -> SessionContext:
    context = SessionContext(session_id="test-session")
    context.sign_in(UserIdentity(id="user-1", email="asha@example.com"), "token-1")
    return context


@pytest.fixture
def client(store, identity, registry):
    app.dependency_overrides[get_record_store] = lambda: store
    app.dependency_overrides[get_identity_service] = lambda: identity
    app.dependency_overrides[get_session_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
