# core/backends.py

from dataclasses import dataclass
from typing import Callable, Optional

from core.config import Settings
from core.identity import IdentityProvider, InMemoryAuthBackend, PrivilegedBackend
from core.logging_config import logger
from core.store import ChangeFeedStore, InMemoryDocumentStore


@dataclass
class Backends:
    """External collaborators the application runs on."""
    store: ChangeFeedStore
    # One identity provider per client session
    identity_factory: Callable[[], IdentityProvider]
    privileged: Optional[PrivilegedBackend] = None
    revoke_on_delete: bool = False


def memory_backends(revoke_on_delete: bool = False) -> Backends:
    auth = InMemoryAuthBackend()
    return Backends(
        store=InMemoryDocumentStore(),
        identity_factory=auth.client,
        privileged=auth.privileged(),
        revoke_on_delete=revoke_on_delete,
    )


def supabase_backends(settings: Settings) -> Backends:
    from core.supabase_client import get_session_client, get_supabase_client
    from core.supabase_helpers import SupabaseIdentityProvider, SupabasePrivilegedBackend
    from core.supabase_store import SupabaseDocumentStore

    admin_client = get_supabase_client()
    if admin_client is None:
        raise RuntimeError("Supabase client not configured")

    def identity_factory() -> IdentityProvider:
        session_client = get_session_client()
        if session_client is None:
            raise RuntimeError("Supabase anon client not configured")
        return SupabaseIdentityProvider(session_client, admin_client)

    return Backends(
        store=SupabaseDocumentStore(admin_client, settings.SUPABASE_DOCUMENTS_TABLE),
        identity_factory=identity_factory,
        privileged=SupabasePrivilegedBackend(admin_client),
        revoke_on_delete=settings.REVOKE_CREDENTIALS_ON_DELETE,
    )


def build_backends(settings: Settings) -> Backends:
    if settings.STORE_BACKEND == "memory":
        logger.warning("Using in-memory store and identity backends (data is not persisted)")
        return memory_backends(settings.REVOKE_CREDENTIALS_ON_DELETE)
    return supabase_backends(settings)
