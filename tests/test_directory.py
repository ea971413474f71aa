# tests/test_directory.py

"""
Tests for the live user directory.
"""

from models.enums import Role
from services.directory import DirectoryProjector
from services.session import principal_path


def test_directory_lists_every_principal(store, make_user):
    make_user("a@hotel.com", Role.admin, "Alice")
    make_user("b@hotel.com", Role.staff, "Bruno")

    with DirectoryProjector(store) as directory:
        assert sorted(u.display_name for u in directory.users) == ["Alice", "Bruno"]
        assert [u.display_name for u in directory.with_role(Role.admin)] == ["Alice"]


def test_directory_normalizes_legacy_documents(store):
    store.merge_write(principal_path("u1"), {"userName": "Old Timer", "role": "owner"})

    with DirectoryProjector(store) as directory:
        user = directory.by_uid("u1")

    assert user.display_name == "Old Timer"
    assert user.role == Role.staff
    assert user.permissions.can_view_reception is True


def test_directory_follows_changes(store, make_user):
    directory = DirectoryProjector(store)
    assert directory.users == []

    principal, _ = make_user("a@hotel.com", display_name="Alice")
    assert directory.by_uid(principal.uid).display_name == "Alice"

    store.delete_document(principal_path(principal.uid))
    assert directory.by_uid(principal.uid) is None

    directory.close()


def test_author_names(store, make_user):
    make_user("a@hotel.com", display_name="Marie")
    make_user("b@hotel.com", display_name="Paul")
    make_user("c@hotel.com", display_name="Marie")

    with DirectoryProjector(store) as directory:
        assert directory.author_names() == ["Marie", "Paul"]
