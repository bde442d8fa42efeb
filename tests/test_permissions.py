"""Unit tests for the permission resolver."""

from bridge_console.config.permissions_config import PERMISSION_MATRIX, ROLE_PERMISSIONS
from bridge_console.core.permissions import ANONYMOUS, resolve_scope
from bridge_console.modules.auth.schemas import Profile


def test_unauthenticated_identity_gets_nothing():
    scope = resolve_scope(None)

    assert scope is ANONYMOUS
    assert scope.can_view_all is False
    assert scope.owner_filter is None
    assert scope.can_query is False
    assert not scope.can("read", "licenses")
    assert not scope.can_view_reports


def test_admin_views_all_and_can_delete():
    scope = resolve_scope(Profile(id="a", role="admin", client_id="C9"))

    assert scope.can_view_all is True
    assert scope.owner_filter is None
    assert scope.can("delete", "clients")
    assert scope.can_manage_clients
    assert scope.can_query


def test_technician_views_all_but_cannot_delete():
    scope = resolve_scope(Profile(id="t", role="technician"))

    assert scope.can_view_all
    assert scope.can("update", "equipment")
    assert not scope.can("delete", "equipment")


def test_client_role_is_restricted_to_owner():
    scope = resolve_scope(Profile(id="c", role="client", client_id="C1"))

    assert scope.can_view_all is False
    assert scope.owner_filter == "C1"
    assert scope.can("read", "licenses")
    assert not scope.can_manage_licenses
    assert scope.can_view_reports


def test_client_without_owner_cannot_query():
    scope = resolve_scope(Profile(id="c", role="client"))

    assert scope.authenticated
    assert scope.can_query is False


def test_unknown_role_falls_back_to_unverified():
    scope = resolve_scope(Profile(id="x", role="superhero", client_id="C1"))

    assert scope.role == "unverified"
    assert scope.permissions == frozenset()
    assert not scope.can("read", "clients")


def test_scope_is_memoized_for_unchanged_identity():
    first = resolve_scope(Profile(id="c", role="client", client_id="C1"))
    second = resolve_scope(Profile(id="other-user", role="client", client_id="C1"))

    assert first is second
    assert first.can == second.can
    assert first.cache_key() == second.cache_key()


def test_scope_changes_when_owner_changes():
    assert resolve_scope(Profile(id="c", role="client", client_id="C1")) != \
        resolve_scope(Profile(id="c", role="client", client_id="C2"))


def test_permission_matrix_lists_every_role():
    role_names = {role["name"] for role in PERMISSION_MATRIX["roles"]}

    assert role_names == {"admin", "technician", "client", "unverified"}
    assert "clients:delete" in ROLE_PERMISSIONS["admin"]
    assert "users:validate" in ROLE_PERMISSIONS["admin"]
    assert ROLE_PERMISSIONS["unverified"] == frozenset()
