# routers/admin.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from dependencies.auth import get_current_principal, get_session, get_store
from core.store import DocumentStore
from models.enums import Role
from models.user import AdminUserUpdate, PermissionUpdate, Principal, RegisterUserRequest
from services.directory import DirectoryProjector
from services.session import IdentitySessionManager


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


# -----------------------------------------------------
# LIST USERS (directory, any authenticated caller)
# -----------------------------------------------------
@router.get(
    "/users",
    response_model=List[Principal],
    summary="List users",
    dependencies=[Depends(get_current_principal)],
)
def list_users(role: Optional[Role] = None, store: DocumentStore = Depends(get_store)):
    with DirectoryProjector(store) as directory:
        users = directory.with_role(role) if role else directory.users

    return sorted(users, key=lambda u: (u.display_name.lower(), u.uid))


# -----------------------------------------------------
# REGISTER USER (always refused)
# -----------------------------------------------------
@router.post("/users", summary="Admin: Create user account")
def register_user(
    payload: RegisterUserRequest,
    session: IdentitySessionManager = Depends(get_session),
):
    session.register_user(
        payload.email,
        payload.password,
        payload.role,
        payload.display_name,
        payload.permissions,
    )


# -----------------------------------------------------
# UPDATE USER
# -----------------------------------------------------
@router.patch("/users/{uid}", response_model=Principal, summary="Admin: Update user")
def update_user(
    uid: str,
    payload: AdminUserUpdate,
    session: IdentitySessionManager = Depends(get_session),
):
    return session.admin_update_user(uid, payload)


# -----------------------------------------------------
# REPLACE ROLE + PERMISSIONS
# -----------------------------------------------------
@router.put("/users/{uid}/permissions", response_model=Principal, summary="Admin: Set role and permissions")
def update_permissions(
    uid: str,
    payload: PermissionUpdate,
    session: IdentitySessionManager = Depends(get_session),
):
    return session.update_user_permissions(uid, payload.role, payload.permissions)


# -----------------------------------------------------
# DELETE USER
# -----------------------------------------------------
@router.delete("/users/{uid}", summary="Admin: Delete user")
def delete_user(
    uid: str,
    session: IdentitySessionManager = Depends(get_session),
):
    session.delete_user(uid)
    return {"success": True}
