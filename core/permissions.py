# core/permissions.py

from typing import Any, Optional

from pydantic import Field

from models.base import DocumentModel
from models.enums import Role


# ============================================
# CAPABILITY FLAGS
# ============================================
class PermissionSet(DocumentModel):
    """Fixed-width record of capability flags. Every flag always has a value."""

    can_manage_settings: bool = False
    can_view_shared_data: bool = False
    can_view_agenda: bool = False
    can_view_messaging: bool = False
    can_view_fnb: bool = False
    can_view_housekeeping: bool = False
    can_view_maintenance: bool = False
    can_view_crm: bool = Field(False, alias="canViewCRM")
    can_view_reception: bool = False
    can_view_spa: bool = False


CAPABILITIES = list(PermissionSet.model_fields.keys())


# ============================================
# CENTRALIZED ROLE → CAPABILITIES MAP
# ============================================
ROLE_PERMISSIONS = {

    # =====================================================
    # STAFF: front desk basics
    # =====================================================
    "staff": [
        "can_view_agenda",
        "can_view_messaging",
        "can_view_reception",
        "can_view_shared_data",
    ],

    # =====================================================
    # MANAGER: operations, no settings, no maintenance
    # =====================================================
    "manager": [
        "can_view_agenda",
        "can_view_messaging",
        "can_view_reception",
        "can_view_shared_data",
        "can_view_fnb",
        "can_view_crm",
        "can_view_spa",
        "can_view_housekeeping",
    ],

    # =====================================================
    # ADMIN: everything
    # =====================================================
    "admin": list(CAPABILITIES),
}


def normalize_role(role: Any) -> Role:
    """Unknown or missing roles fall back to staff."""
    try:
        return Role(str(role))
    except ValueError:
        return Role.staff


def default_permissions(role: Any) -> PermissionSet:
    """
    Default capability set for a role.
    Always returns a fresh instance, so callers may override flags freely.
    """
    granted = ROLE_PERMISSIONS[normalize_role(role).value]
    return PermissionSet(**{cap: cap in granted for cap in CAPABILITIES})


def effective_permissions(role: Any, stored: Optional[dict]) -> PermissionSet:
    """
    Resolve a principal's capability set:
      • role defaults for every flag
      • per-principal overrides from the stored document win once set
    Stored keys may be camelCase (at rest) or snake_case.
    """
    resolved = default_permissions(role)
    if not isinstance(stored, dict):
        return resolved

    for cap, field in PermissionSet.model_fields.items():
        for key in (field.alias, cap):
            if key in stored and stored[key] is not None:
                setattr(resolved, cap, bool(stored[key]))
                break

    return resolved


def has_capability(permissions: PermissionSet, capability: str) -> bool:
    if capability not in CAPABILITIES:
        raise ValueError(f"Unknown capability: {capability}")
    return bool(getattr(permissions, capability))
