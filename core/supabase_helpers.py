# core/supabase_helpers.py

from supabase import Client

from core.errors import (
    EmailAlreadyInUse,
    InvalidCredentials,
    SignupFailed,
    extract_store_error,
    handle_store_error,
)
from core.identity import AuthSession, Identity, IdentityProvider, PrivilegedBackend
from core.logging_config import logger


def identity_from_user(user) -> Identity:
    metadata = getattr(user, "user_metadata", None) or {}
    return Identity(
        uid=user.id,
        email=user.email or "",
        display_name=metadata.get("display_name") or metadata.get("full_name") or "",
    )


# =================================================================
#  IDENTITY PROVIDER (Supabase Auth / GoTrue)
# =================================================================
# Sign-in and sign-up run on a per-session anon client.
# Metadata writes go through the service-role admin API.
# =================================================================

class SupabaseIdentityProvider(IdentityProvider):

    def __init__(self, session_client: Client, admin_client: Client):
        super().__init__()
        self.session_client = session_client
        self.admin_client = admin_client

    def create_account(self, email, password):
        try:
            resp = self.session_client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            detail = extract_store_error(e)
            if "already registered" in detail.lower() or "already exists" in detail.lower():
                raise EmailAlreadyInUse()
            raise SignupFailed(detail)

        user = getattr(resp, "user", None)
        if user is None:
            raise SignupFailed("No user returned by the identity provider")

        # With email confirmation on, an existing address comes back as a
        # user without identities instead of an error
        if getattr(user, "identities", None) == []:
            raise EmailAlreadyInUse()

        identity = identity_from_user(user)
        session = getattr(resp, "session", None)
        if session and session.access_token:
            self._emit(AuthSession(session.access_token, identity))
        return identity

    def authenticate(self, email, password):
        try:
            resp = self.session_client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            # Log the error type only; details could reveal which field was wrong
            logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
            raise InvalidCredentials()

        if not resp.session or not resp.session.access_token:
            raise InvalidCredentials()

        session = AuthSession(resp.session.access_token, identity_from_user(resp.user))
        self._emit(session)
        return session

    def restore_session(self, access_token):
        try:
            resp = self.session_client.auth.get_user(access_token)
        except Exception as e:
            logger.warning(f"Session restore failed: {type(e).__name__}")
            resp = None

        user = getattr(resp, "user", None) if resp else None
        session = AuthSession(access_token, identity_from_user(user)) if user else None
        self._emit(session)
        return session

    def end_session(self):
        try:
            self.session_client.auth.sign_out()
        except Exception as e:
            logger.warning(f"Sign-out failed: {extract_store_error(e)}")
        self._emit(None)

    def set_display_name(self, identity, name):
        try:
            self.admin_client.auth.admin.update_user_by_id(
                identity.uid,
                {"user_metadata": {"display_name": name}},
            )
        except Exception as e:
            raise handle_store_error(e, "Failed to update display name")


# =================================================================
#  PRIVILEGED BACKEND (service role)
# =================================================================

class SupabasePrivilegedBackend(PrivilegedBackend):

    def __init__(self, admin_client: Client):
        self.admin_client = admin_client

    def reset_password(self, uid, password):
        try:
            self.admin_client.auth.admin.update_user_by_id(uid, {"password": password})
        except Exception as e:
            raise handle_store_error(e, "Failed to reset password")
        logger.info(f"Password reset for {uid}")

    def revoke_credentials(self, uid):
        try:
            self.admin_client.auth.admin.delete_user(uid)
        except Exception as e:
            raise handle_store_error(e, "Failed to revoke credentials")
        logger.info(f"Credentials revoked for {uid}")
