# core/identity.py

"""
Identity provider contract (accounts, sessions, display names) and the
privileged backend contract for operations a plain client session cannot
perform (password reset, credential revocation).
"""

import secrets
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from threading import Lock
from typing import Callable, Dict, List, Optional

from passlib.context import CryptContext

from core.errors import EmailAlreadyInUse, InvalidCredentials, NotFound
from core.logging_config import logger


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str
    display_name: str = ""


@dataclass(frozen=True)
class AuthSession:
    access_token: str
    identity: Identity


SessionCallback = Callable[[Optional[AuthSession]], None]


# ============================================================
# Contracts
# ============================================================

class IdentityProvider(ABC):
    """
    One provider instance per client session.
    `on_session_changed` callbacks fire on every session transition,
    including the initial restore.
    """

    def __init__(self):
        self._callbacks: List[SessionCallback] = []
        self.current_session: Optional[AuthSession] = None

    def on_session_changed(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def _emit(self, session: Optional[AuthSession]) -> None:
        self.current_session = session
        for callback in list(self._callbacks):
            callback(session)

    @abstractmethod
    def create_account(self, email: str, password: str) -> Identity:
        """Create an account and sign in as it. Raises EmailAlreadyInUse / SignupFailed."""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> AuthSession:
        """Raises InvalidCredentials."""

    @abstractmethod
    def restore_session(self, access_token: str) -> Optional[AuthSession]:
        ...

    @abstractmethod
    def end_session(self) -> None:
        ...

    @abstractmethod
    def set_display_name(self, identity: Identity, name: str) -> None:
        ...


class PrivilegedBackend(ABC):
    """Trusted server-side operations on another identity's credential."""

    @abstractmethod
    def reset_password(self, uid: str, password: str) -> None:
        ...

    @abstractmethod
    def revoke_credentials(self, uid: str) -> None:
        ...


# ============================================================
# In-memory backend (development / tests)
# ============================================================

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass
class _Account:
    identity: Identity
    password_hash: str


class InMemoryAuthBackend:
    """
    Shared account registry. Hands out one InMemoryIdentityProvider per
    client session via client().
    """

    def __init__(self):
        self._accounts: Dict[str, _Account] = {}     # uid → account
        self._tokens: Dict[str, str] = {}            # token → uid
        self._lock = Lock()

    def client(self) -> "InMemoryIdentityProvider":
        return InMemoryIdentityProvider(self)

    def privileged(self) -> "InMemoryPrivilegedBackend":
        return InMemoryPrivilegedBackend(self)

    def find_by_email(self, email: str) -> Optional[_Account]:
        email = email.strip().lower()
        return next(
            (a for a in self._accounts.values() if a.identity.email == email),
            None,
        )

    def add_account(self, email: str, password: str, display_name: str = "") -> Identity:
        with self._lock:
            if self.find_by_email(email):
                raise EmailAlreadyInUse()
            identity = Identity(
                uid=uuid.uuid4().hex,
                email=email.strip().lower(),
                display_name=display_name,
            )
            self._accounts[identity.uid] = _Account(identity, pwd_context.hash(password))
            return identity

    def verify(self, email: str, password: str) -> Optional[Identity]:
        account = self.find_by_email(email)
        if account and pwd_context.verify(password, account.password_hash):
            return account.identity
        return None

    def issue_token(self, uid: str) -> str:
        with self._lock:
            token = secrets.token_urlsafe(32)
            self._tokens[token] = uid
            return token

    def resolve_token(self, token: str) -> Optional[Identity]:
        uid = self._tokens.get(token)
        account = self._accounts.get(uid) if uid else None
        return account.identity if account else None

    def revoke_token(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def account_exists(self, uid: str) -> bool:
        return uid in self._accounts

    def rename(self, uid: str, name: str) -> Identity:
        with self._lock:
            account = self._accounts.get(uid)
            if not account:
                raise NotFound("Account not found")
            account.identity = replace(account.identity, display_name=name)
            return account.identity

    def set_password(self, uid: str, password: str) -> None:
        with self._lock:
            account = self._accounts.get(uid)
            if not account:
                raise NotFound("Account not found")
            account.password_hash = pwd_context.hash(password)

    def remove_account(self, uid: str) -> None:
        with self._lock:
            self._accounts.pop(uid, None)
            for token in [t for t, u in self._tokens.items() if u == uid]:
                self._tokens.pop(token)


class InMemoryIdentityProvider(IdentityProvider):

    def __init__(self, backend: InMemoryAuthBackend):
        super().__init__()
        self.backend = backend

    def create_account(self, email, password):
        identity = self.backend.add_account(email, password)
        # Account creation signs in as the new account
        self._emit(AuthSession(self.backend.issue_token(identity.uid), identity))
        return identity

    def authenticate(self, email, password):
        identity = self.backend.verify(email, password)
        if not identity:
            raise InvalidCredentials()
        session = AuthSession(self.backend.issue_token(identity.uid), identity)
        self._emit(session)
        return session

    def restore_session(self, access_token):
        identity = self.backend.resolve_token(access_token)
        session = AuthSession(access_token, identity) if identity else None
        self._emit(session)
        return session

    def end_session(self):
        if self.current_session:
            self.backend.revoke_token(self.current_session.access_token)
        self._emit(None)

    def set_display_name(self, identity, name):
        updated = self.backend.rename(identity.uid, name)
        if self.current_session and self.current_session.identity.uid == identity.uid:
            self.current_session = replace(self.current_session, identity=updated)


class InMemoryPrivilegedBackend(PrivilegedBackend):

    def __init__(self, backend: InMemoryAuthBackend):
        self.backend = backend

    def reset_password(self, uid, password):
        self.backend.set_password(uid, password)
        logger.info(f"Password reset for {uid}")

    def revoke_credentials(self, uid):
        self.backend.remove_account(uid)
        logger.info(f"Credentials revoked for {uid}")
