# tests/test_permissions.py

"""
Tests for role defaults and capability resolution.
"""

import pytest

from core.permissions import (
    CAPABILITIES,
    PermissionSet,
    default_permissions,
    effective_permissions,
    has_capability,
    normalize_role,
)
from models.enums import Role


def test_admin_gets_every_capability():
    perms = default_permissions(Role.admin)
    assert all(getattr(perms, cap) for cap in CAPABILITIES)


def test_staff_defaults():
    perms = default_permissions("staff")
    assert perms.can_view_reception is True
    assert perms.can_view_agenda is True
    assert perms.can_manage_settings is False
    assert perms.can_view_crm is False
    assert perms.can_view_maintenance is False


def test_manager_defaults():
    perms = default_permissions(Role.manager)
    assert perms.can_view_crm is True
    assert perms.can_view_fnb is True
    assert perms.can_manage_settings is False


def test_defaults_are_fresh_instances():
    first = default_permissions(Role.staff)
    first.can_view_spa = True

    assert default_permissions(Role.staff).can_view_spa is False


def test_unknown_role_falls_back_to_staff():
    assert normalize_role("owner") == Role.staff
    assert normalize_role(None) == Role.staff
    assert default_permissions("owner") == default_permissions(Role.staff)


def test_effective_permissions_overlay_stored_flags():
    """Stored flags win over role defaults, missing flags come from the role."""
    perms = effective_permissions(
        "staff",
        {"canViewCRM": True, "canViewReception": False},
    )

    assert perms.can_view_crm is True
    assert perms.can_view_reception is False
    # untouched flag keeps the staff default
    assert perms.can_view_agenda is True


def test_effective_permissions_accepts_snake_case_keys():
    perms = effective_permissions("staff", {"can_view_spa": True})
    assert perms.can_view_spa is True


def test_effective_permissions_ignores_non_dict():
    assert effective_permissions("manager", "garbage") == default_permissions("manager")


def test_permission_set_serializes_crm_alias():
    doc = PermissionSet(can_view_crm=True).to_document()
    assert doc["canViewCRM"] is True
    assert "canViewCrm" not in doc
    assert len(doc) == len(CAPABILITIES)


def test_has_capability():
    perms = default_permissions(Role.staff)
    assert has_capability(perms, "can_view_reception") is True
    assert has_capability(perms, "can_manage_settings") is False


def test_has_capability_rejects_unknown_flag():
    with pytest.raises(ValueError):
        has_capability(default_permissions(Role.admin), "can_fly")
