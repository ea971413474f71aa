from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.backends import Backends
from core.store import DocumentStore
from models.user import Principal
from services.session import IdentitySessionManager


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Collaborators (set on app.state by create_app)
# ============================================================
def get_backends(request: Request) -> Backends:
    return request.app.state.backends


def get_store(backends: Backends = Depends(get_backends)) -> DocumentStore:
    return backends.store


def open_session(backends: Backends) -> IdentitySessionManager:
    return IdentitySessionManager(
        backends.identity_factory(),
        backends.store,
        privileged=backends.privileged,
        revoke_on_delete=backends.revoke_on_delete,
    ).start()


# ============================================================
# SESSION CONTEXT (one per request, restored from the bearer token)
# ============================================================
def get_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    backends: Backends = Depends(get_backends),
):
    session = open_session(backends)
    try:
        if credentials:
            session.restore(credentials.credentials)
        yield session
    finally:
        session.close()


def get_current_principal(
    session: IdentitySessionManager = Depends(get_session),
) -> Principal:
    return session.require_authenticated()


# ============================================================
# ROLE / CAPABILITY GUARDS
# ============================================================
def requires_capability(capability: str):
    """
    Usage:
        @router.get("/", dependencies=[Depends(requires_capability("can_view_reception"))])
    """

    def checker(session: IdentitySessionManager = Depends(get_session)) -> Principal:
        return session.require_capability(capability)

    return checker
