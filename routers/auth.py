from fastapi import APIRouter, Depends, Request

from core.logging_config import logger
from core.rate_limiter import login_limiter, require_rate_limit
from dependencies.auth import get_backends, get_current_principal, get_session, open_session
from models.auth import LoginRequest, TokenResponse
from models.user import Principal, ProfileUpdate, SignupRequest
from services.session import IdentitySessionManager


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# LOGIN
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate user")
def login(payload: LoginRequest, request: Request):
    require_rate_limit(login_limiter, request, key=payload.email.lower())

    with open_session(get_backends(request)) as session:
        auth_session = session.login(payload.email, payload.password)
        logger.info(f"Login for {auth_session.identity.uid} ({session.state})")
        return TokenResponse(access_token=auth_session.access_token)


# ============================================================
# SIGNUP (self-service, creates a manager)
# ============================================================
@router.post("/signup", response_model=Principal, status_code=201, summary="Create an account")
def signup(payload: SignupRequest, request: Request):
    require_rate_limit(login_limiter, request)

    with open_session(get_backends(request)) as session:
        return session.signup(payload.email, payload.password, payload.display_name)


# ============================================================
# LOGOUT
# ============================================================
@router.post("/logout", summary="End the current session")
def logout(session: IdentitySessionManager = Depends(get_session)):
    session.logout()
    return {"success": True}


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", response_model=Principal, summary="Current authenticated principal")
def read_me(principal: Principal = Depends(get_current_principal)):
    return principal


@router.patch("/me", response_model=Principal, summary="Update current user profile")
def update_profile(
    payload: ProfileUpdate,
    session: IdentitySessionManager = Depends(get_session),
):
    """
    Self-service rename. Role and permissions are admin-only.
    """
    return session.update_profile(payload.display_name)
