# models/user.py

from typing import Optional
from datetime import datetime

from pydantic import EmailStr, Field

from core.permissions import PermissionSet, effective_permissions, normalize_role
from models.base import DocumentModel
from models.enums import Role


# ===============================================================
# PRINCIPAL (users/{uid})
# ===============================================================

class Principal(DocumentModel):
    """
    The authenticated identity's profile record.
    Stored at users/{uid}; the uid is the document key.
    """
    uid: str
    email: str = ""
    display_name: str = ""
    role: Role = Role.staff
    permissions: PermissionSet = Field(default_factory=PermissionSet)
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, uid: str, data: Optional[dict]) -> "Principal":
        """
        Lenient decode of a stored principal:
        legacy `userName` backs a missing displayName, unknown role → staff,
        every capability flag resolved against the role defaults.
        """
        data = data or {}
        role = normalize_role(data.get("role"))

        created_at = data.get("createdAt")
        if not isinstance(created_at, (str, int, float, datetime)):
            created_at = None

        return cls(
            uid=uid,
            email=str(data.get("email") or ""),
            display_name=str(data.get("displayName") or data.get("userName") or ""),
            role=role,
            permissions=effective_permissions(role, data.get("permissions")),
            created_at=created_at,
        )

    def to_document(self) -> dict:
        doc = super().to_document()
        # uid is the document key, not a field
        doc.pop("uid", None)
        return doc


# ===============================================================
# REQUEST PAYLOADS
# ===============================================================

class SignupRequest(DocumentModel):
    email: EmailStr
    password: str
    display_name: str


class ProfileUpdate(DocumentModel):
    """Self-service profile edit."""
    display_name: str


class AdminUserUpdate(DocumentModel):
    """
    Partial update of another principal (admin only).
    `password` is never stored in the document; it is forwarded to the
    privileged backend.
    """
    display_name: Optional[str] = None
    role: Optional[Role] = None
    permissions: Optional[PermissionSet] = None
    password: Optional[str] = None


class PermissionUpdate(DocumentModel):
    role: Role
    permissions: PermissionSet


class RegisterUserRequest(DocumentModel):
    email: EmailStr
    password: str
    display_name: str
    role: Role = Role.staff
    permissions: Optional[PermissionSet] = None
