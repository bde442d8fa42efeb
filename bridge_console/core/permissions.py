"""
Permission resolver: turns the current profile into a Scope.

A Scope tells the query layer whether every client's rows are visible or only
those of one owning client, and answers can(action, resource). Scopes are
memoized on (role, client_id) so an unchanged identity always yields the same
object, which keeps query-cache keys stable.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import FrozenSet, Optional

from bridge_console.config.permissions_config import ROLE_PERMISSIONS, ROLE_VIEW_ALL, DEFAULT_ROLE
from bridge_console.modules.auth.schemas import Profile


@dataclass(frozen=True)
class Scope:
    authenticated: bool = False
    can_view_all: bool = False
    owner_filter: Optional[str] = None
    role: Optional[str] = None
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def can(self, action: str, resource: str) -> bool:
        if not self.authenticated:
            return False
        return f"{resource}:{action}" in self.permissions

    @property
    def is_restricted(self) -> bool:
        return not self.can_view_all

    @property
    def can_query(self) -> bool:
        """False when no query may be issued at all (anonymous, or restricted without an owner)."""
        return self.authenticated and (self.can_view_all or self.owner_filter is not None)

    @property
    def can_manage_clients(self) -> bool:
        return self.can("create", "clients") or self.can("update", "clients")

    @property
    def can_manage_licenses(self) -> bool:
        return self.can("create", "licenses") or self.can("update", "licenses")

    @property
    def can_manage_equipment(self) -> bool:
        return self.can("create", "equipment") or self.can("update", "equipment")

    @property
    def can_view_reports(self) -> bool:
        return self.can("read", "reports")

    def cache_key(self) -> tuple:
        return (self.can_view_all, self.owner_filter)

    def to_dict(self) -> dict:
        return {
            "can_view_all_data": self.can_view_all,
            "client_access": self.owner_filter,
            "role": self.role,
            "permissions": sorted(self.permissions),
            "can_manage_clients": self.can_manage_clients,
            "can_manage_licenses": self.can_manage_licenses,
            "can_manage_equipment": self.can_manage_equipment,
            "can_view_reports": self.can_view_reports,
        }


ANONYMOUS = Scope()


@lru_cache(maxsize=256)
def _scope_for(role: str, client_id: Optional[str]) -> Scope:
    if role not in ROLE_PERMISSIONS:
        role = DEFAULT_ROLE
    can_view_all = ROLE_VIEW_ALL[role]
    return Scope(
        authenticated=True,
        can_view_all=can_view_all,
        owner_filter=None if can_view_all else client_id,
        role=role,
        permissions=ROLE_PERMISSIONS[role],
    )


def resolve_scope(profile: Optional[Profile]) -> Scope:
    if profile is None:
        return ANONYMOUS
    return _scope_for(profile.role or DEFAULT_ROLE, profile.client_id or None)
