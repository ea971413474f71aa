# services/session.py

"""
Identity session manager: who is signed in, their principal document,
and every principal mutation behind its authorization check.

One manager is one session context. Create it, start() it, pass it to
whatever needs identity, close() it when the context goes away:

    with IdentitySessionManager(identity, store).start() as session:
        session.login(email, password)
        session.update_profile("Night Audit")

State machine:  ANONYMOUS → LOADING → AUTHENTICATED, and back to ANONYMOUS
on sign-out or failure.
"""

from typing import Optional, Union

from core.errors import (
    HotelOSError,
    InvalidCredentials,
    NotAuthenticated,
    NotFound,
    OperationNotAllowed,
    SignupFailed,
    Unauthorized,
    UnsupportedOperation,
)
from core.identity import AuthSession, Identity, IdentityProvider, PrivilegedBackend
from core.logging_config import logger
from core.permissions import PermissionSet, default_permissions, has_capability
from core.store import SERVER_TIMESTAMP, DocumentSnapshot, DocumentStore, doc_path
from models.enums import Role, SessionState
from models.user import AdminUserUpdate, Principal
from services.projector import LiveProjection


def principal_path(uid: str) -> str:
    return doc_path("users", uid)


class IdentitySessionManager:

    def __init__(
        self,
        identity: IdentityProvider,
        store: DocumentStore,
        privileged: Optional[PrivilegedBackend] = None,
        revoke_on_delete: bool = False,
    ):
        self.identity = identity
        self.store = store
        self.privileged = privileged
        self.revoke_on_delete = revoke_on_delete

        self.state = SessionState.anonymous
        self.session: Optional[AuthSession] = None
        self.error: Optional[str] = None

        self._profile: Optional[LiveProjection] = None
        self._stop_watch = None
        self._signing_up = False

    # =========================================================
    # Lifecycle
    # =========================================================
    def start(self) -> "IdentitySessionManager":
        if self._stop_watch is None:
            self._stop_watch = self.identity.on_session_changed(self._on_session_changed)
        return self

    def close(self) -> None:
        if self._stop_watch:
            self._stop_watch()
            self._stop_watch = None
        self._drop_profile()

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc):
        self.close()

    @property
    def principal(self) -> Optional[Principal]:
        return self._profile.current if self._profile else None

    # =========================================================
    # Session watch
    # =========================================================
    def _on_session_changed(self, session: Optional[AuthSession]) -> None:
        self._drop_profile()
        self.session = session

        if session is None:
            self.state = SessionState.anonymous
            return

        self.state = SessionState.loading
        if self._signing_up:
            # signup() writes the principal itself, then adopts the session
            return

        try:
            self._adopt(session.identity)
        except HotelOSError as e:
            logger.warning(f"Could not load principal for {session.identity.uid}: {e.message}")
            self.error = e.message
            self.session = None
            self.state = SessionState.anonymous

    def _adopt(self, identity: Identity) -> None:
        principal = self._load_or_bootstrap(identity)
        self._profile = LiveProjection.of_document(
            self.store,
            principal_path(identity.uid),
            self._decode_principal,
            initial=principal,
        )
        self.error = None
        self.state = SessionState.authenticated
        logger.info(f"Session authenticated for {identity.uid} ({principal.role})")

    @staticmethod
    def _decode_principal(snapshot: DocumentSnapshot) -> Optional[Principal]:
        if not snapshot.exists:
            return None
        return Principal.from_document(snapshot.id, snapshot.data)

    def _load_or_bootstrap(self, identity: Identity) -> Principal:
        path = principal_path(identity.uid)
        data = self.store.get(path)
        if data is not None:
            return Principal.from_document(identity.uid, data)

        principal = Principal(
            uid=identity.uid,
            email=identity.email,
            display_name=identity.display_name or identity.email.split("@")[0],
            role=Role.staff,
            permissions=default_permissions(Role.staff),
        )
        # Same key from a concurrent bootstrap: last writer wins, no duplicate
        self.store.merge_write(path, {**principal.to_document(), "createdAt": SERVER_TIMESTAMP})
        logger.info(f"Bootstrapped staff principal for {identity.uid}")
        return Principal.from_document(identity.uid, self.store.get(path) or principal.to_document())

    def _drop_profile(self) -> None:
        if self._profile:
            self._profile.close()
            self._profile = None

    # =========================================================
    # Guards
    # =========================================================
    def require_authenticated(self) -> Principal:
        principal = self.principal
        if self.state != SessionState.authenticated or principal is None:
            raise NotAuthenticated()
        return principal

    def require_admin(self) -> Principal:
        principal = self.require_authenticated()
        if principal.role != Role.admin:
            logger.warning(f"Admin action refused for {principal.uid} ({principal.role})")
            raise Unauthorized("Admin privileges required for this action.")
        return principal

    def require_capability(self, capability: str) -> Principal:
        principal = self.require_authenticated()
        if not has_capability(principal.permissions, capability):
            logger.warning(f"Capability {capability} refused for {principal.uid}")
            raise Unauthorized(f"Insufficient permissions: '{capability}' required")
        return principal

    # =========================================================
    # Session operations
    # =========================================================
    def restore(self, access_token: str) -> Optional[AuthSession]:
        """Resume a session from a token issued earlier."""
        self.state = SessionState.loading
        session = self.identity.restore_session(access_token)
        if session is None:
            self.state = SessionState.anonymous
        return session

    def login(self, email: str, password: str) -> AuthSession:
        self.state = SessionState.loading
        try:
            return self.identity.authenticate(email.strip().lower(), password)
        except InvalidCredentials:
            self.state = SessionState.anonymous
            raise

    def signup(self, email: str, password: str, display_name: str) -> Principal:
        """
        Create a provider account, then its principal as a manager.
        Two documents, not atomic: if the principal write fails the
        provider account is left without a principal.
        """
        email = email.strip().lower()
        display_name = display_name.strip()

        self._signing_up = True
        try:
            identity = self.identity.create_account(email, password)
        finally:
            self._signing_up = False

        try:
            self.identity.set_display_name(identity, display_name)
            identity = Identity(identity.uid, identity.email or email, display_name)

            principal = Principal(
                uid=identity.uid,
                email=identity.email,
                display_name=display_name,
                role=Role.manager,
                permissions=default_permissions(Role.manager),
            )
            self.store.merge_write(
                principal_path(identity.uid),
                {**principal.to_document(), "createdAt": SERVER_TIMESTAMP},
            )
        except HotelOSError as e:
            logger.error(f"Signup left account {identity.uid} without a principal: {e.message}")
            self.identity.end_session()
            raise SignupFailed(e.message)

        logger.info(f"Signed up {identity.uid} as manager")
        if self.identity.current_session:
            self._adopt(identity)
        return self.principal or principal

    def logout(self) -> None:
        self.identity.end_session()
        if self.state != SessionState.anonymous:
            self._on_session_changed(None)

    def update_profile(self, display_name: str) -> Principal:
        """Rename the session owner; the new name shows before the store confirms it."""
        principal = self.require_authenticated()
        display_name = display_name.strip()
        if not display_name:
            raise OperationNotAllowed("Display name cannot be empty.")

        self._profile.overlay(principal.model_copy(update={"display_name": display_name}))
        try:
            self.identity.set_display_name(self.session.identity, display_name)
            self.store.merge_write(principal_path(principal.uid), {"displayName": display_name})
        except HotelOSError:
            self._profile.clear_overlay()
            raise

        return self.principal

    def register_user(self, *args, **kwargs):
        """
        Always refused: the provider's client-side account creation signs in
        as the new account, which would replace the admin's session.
        """
        raise UnsupportedOperation(
            "Creating accounts from an admin session is not supported. "
            "Have the person sign up, then promote them with update_user_permissions."
        )

    # =========================================================
    # Admin operations
    # =========================================================
    def _require_target(self, target_uid: str) -> str:
        path = principal_path(target_uid)
        if self.store.get(path) is None:
            raise NotFound("User not found")
        return path

    def admin_update_user(self, target_uid: str, updates: Union[AdminUserUpdate, dict]) -> Principal:
        admin = self.require_admin()
        if isinstance(updates, dict):
            updates = AdminUserUpdate.model_validate(updates)

        if updates.password and self.privileged is None:
            raise UnsupportedOperation(
                "Password reset needs the privileged server-side backend."
            )

        path = self._require_target(target_uid)

        fields = {}
        if updates.display_name is not None:
            fields["displayName"] = updates.display_name.strip()
        if updates.role is not None:
            fields["role"] = updates.role.value
        if updates.permissions is not None:
            fields["permissions"] = updates.permissions.to_document()

        # Password first: a failed reset must not leave the fields applied
        if updates.password:
            self.privileged.reset_password(target_uid, updates.password)
        if fields:
            self.store.merge_write(path, fields)

        logger.info(f"Admin {admin.uid} updated {target_uid}: {sorted(fields)}")
        return Principal.from_document(target_uid, self.store.get(path))

    def update_user_permissions(
        self,
        target_uid: str,
        role: Role,
        permissions: Union[PermissionSet, dict],
    ) -> Principal:
        admin = self.require_admin()
        role = Role(role)
        if isinstance(permissions, dict):
            permissions = PermissionSet.model_validate(permissions)

        path = self._require_target(target_uid)
        self.store.merge_write(
            path,
            {"role": role.value, "permissions": permissions.to_document()},
        )

        logger.info(f"Admin {admin.uid} set {target_uid} to {role}")
        return Principal.from_document(target_uid, self.store.get(path))

    def delete_user(self, target_uid: str) -> None:
        """
        Remove the target's principal document. Unless credential revocation
        is enabled, the account can still sign in and will be bootstrapped
        again as staff.
        """
        admin = self.require_admin()
        if target_uid == admin.uid:
            raise OperationNotAllowed("You cannot delete your own account.")

        path = self._require_target(target_uid)
        self.store.delete_document(path)

        if self.revoke_on_delete and self.privileged is not None:
            self.privileged.revoke_credentials(target_uid)
        else:
            logger.info(f"Principal {target_uid} deleted; provider credential still active")

        logger.info(f"Admin {admin.uid} deleted {target_uid}")
