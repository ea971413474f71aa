# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import os

# main.py builds a module-level app on import; keep it off Supabase
os.environ["STORE_BACKEND"] = "memory"

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock
from typing import Generator

from main import create_app
from core.backends import Backends
from core.identity import InMemoryAuthBackend
from core.permissions import default_permissions
from core.store import InMemoryDocumentStore
from models.enums import Role
from models.user import Principal
from services.session import IdentitySessionManager, principal_path


DEFAULT_PASSWORD = "password123"


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Empty in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def auth_backend() -> InMemoryAuthBackend:
    """In-memory account registry."""
    return InMemoryAuthBackend()


@pytest.fixture
def backends(store, auth_backend) -> Backends:
    return Backends(
        store=store,
        identity_factory=auth_backend.client,
        privileged=auth_backend.privileged(),
    )


@pytest.fixture
def make_user(store, auth_backend):
    """
    Create an account plus its principal document.
    Returns (principal, access_token).
    """

    def _make_user(
        email: str,
        role: Role = Role.staff,
        display_name: str = None,
        permissions=None,
    ):
        display_name = display_name or email.split("@")[0]
        identity = auth_backend.add_account(email, DEFAULT_PASSWORD, display_name)
        principal = Principal(
            uid=identity.uid,
            email=identity.email,
            display_name=display_name,
            role=role,
            permissions=permissions or default_permissions(role),
        )
        store.merge_write(principal_path(identity.uid), principal.to_document())
        return principal, auth_backend.issue_token(identity.uid)

    return _make_user


@pytest.fixture
def session_for(backends):
    """Open a session context restored from a token."""
    opened = []

    def _session_for(token: str = None, privileged="default") -> IdentitySessionManager:
        session = IdentitySessionManager(
            backends.identity_factory(),
            backends.store,
            privileged=backends.privileged if privileged == "default" else privileged,
            revoke_on_delete=backends.revoke_on_delete,
        ).start()
        if token:
            session.restore(token)
        opened.append(session)
        return session

    yield _session_for

    for session in opened:
        session.close()


@pytest.fixture(scope="function")
def app(backends):
    """Create a test FastAPI application instance."""
    return create_app(backends, refresh_seconds=0)


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin(make_user):
    return make_user("admin@hotel.com", Role.admin, "Alice Admin")


@pytest.fixture
def staff(make_user):
    return make_user("staff@hotel.com", Role.staff, "Sam Staff")


@pytest.fixture
def auth_headers():
    return lambda token: {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = Mock()
    mock_table = Mock()
    mock_client.table.return_value = mock_table
    return mock_client


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Reset the login limiter before each test."""
    from core.rate_limiter import login_limiter
    login_limiter.reset()
    yield
    login_limiter.reset()
