# ris_core/common/permissions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Set

from rest_framework.permissions import BasePermission, SAFE_METHODS

# Group/role names (Django auth Group names recommended)
ROLE_ADMIN = "ADMIN"
ROLE_REFERRING_PHYSICIAN = "REFERRING_PHYSICIAN"
ROLE_SCHEDULER = "SCHEDULER"
ROLE_PERFORMING_PHYSICIAN = "PERFORMING_PHYSICIAN"
ROLE_READING_PHYSICIAN = "READING_PHYSICIAN"
ROLE_READONLY = "READONLY"

ALL_ROLES = [
    ROLE_ADMIN,
    ROLE_REFERRING_PHYSICIAN,
    ROLE_SCHEDULER,
    ROLE_PERFORMING_PHYSICIAN,
    ROLE_READING_PHYSICIAN,
    ROLE_READONLY,
]

CLINICAL_ROLES = {
    ROLE_REFERRING_PHYSICIAN,
    ROLE_SCHEDULER,
    ROLE_PERFORMING_PHYSICIAN,
    ROLE_READING_PHYSICIAN,
}


def _user_roles(user) -> Set[str]:
    """
    Resolve roles from:
    1) Django groups: user.groups (recommended)
    2) Optional user.role attribute (if your project has it)

    Returns set of role strings.

    Default behavior:
    - If authenticated user has no roles/groups, treat them as READONLY.
    """
    roles: Set[str] = set()

    if not user or not getattr(user, "is_authenticated", False):
        return roles

    # Superuser treated as admin
    if getattr(user, "is_superuser", False):
        roles.add(ROLE_ADMIN)
        return roles

    if hasattr(user, "groups"):
        roles.update(user.groups.values_list("name", flat=True))

    if hasattr(user, "role") and user.role:
        roles.add(str(user.role))

    if not roles:
        roles.add(ROLE_READONLY)

    return roles


@dataclass(frozen=True)
class Capabilities:
    """
    What the caller may do, resolved once when a request enters the
    radiology order flow and passed down instead of re-querying groups.
    """
    is_authenticated: bool
    roles: FrozenSet[str] = frozenset()

    @classmethod
    def for_user(cls, user) -> "Capabilities":
        authenticated = bool(user and getattr(user, "is_authenticated", False))
        return cls(is_authenticated=authenticated, roles=frozenset(_user_roles(user)))

    @classmethod
    def anonymous(cls) -> "Capabilities":
        return cls(is_authenticated=False)

    @property
    def referring(self) -> bool:
        return ROLE_REFERRING_PHYSICIAN in self.roles

    @property
    def scheduler(self) -> bool:
        return ROLE_SCHEDULER in self.roles

    @property
    def performing(self) -> bool:
        return ROLE_PERFORMING_PHYSICIAN in self.roles

    @property
    def reading(self) -> bool:
        return ROLE_READING_PHYSICIAN in self.roles

    @property
    def super(self) -> bool:
        # No clinical role at all: the form shows every section.
        return not (self.referring or self.scheduler or self.performing or self.reading)

    def as_flags(self) -> dict[str, bool]:
        return {
            "referring": self.referring,
            "scheduler": self.scheduler,
            "performing": self.performing,
            "reading": self.reading,
            "super": self.super,
        }


class BaseRolePermission(BasePermission):
    """
    Base permission class for role-based access control.

    Key behavior:
    - Requires authentication (global IsAuthenticated already does this).
    - ADMIN bypass.
    - Uses allowed_roles_per_action for strict RBAC.
    - If action is unknown and request is SAFE, fall back to list/retrieve
      instead of denying.
    """
    message = "You do not have permission to perform this action."

    # Override in subclasses: dict of action -> set of allowed roles
    allowed_roles_per_action: dict[str, set[str]] = {
        "list": set(ALL_ROLES),
        "retrieve": set(ALL_ROLES),
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs or "id" in kwargs

        method = request.method.upper()
        if method in ("GET", "HEAD", "OPTIONS"):
            return "retrieve" if is_detail else "list"
        if method == "POST":
            return "create"
        if method == "PUT":
            return "update"
        if method == "PATCH":
            return "partial_update"
        if method == "DELETE":
            return "destroy"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = _user_roles(user)

        if ROLE_ADMIN in roles:
            return True

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action)

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            is_detail = "pk" in kwargs or "id" in kwargs
            read_action = "retrieve" if is_detail else "list"
            allowed = self.allowed_roles_per_action.get(read_action)

        if allowed is not None:
            return bool(roles & allowed)

        # Unknown action => deny by default
        return False

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class RadiologyOrderPermission(BaseRolePermission):
    """Permissions for the radiology order form and list"""
    allowed_roles_per_action = {
        "list": set(ALL_ROLES),
        "retrieve": set(ALL_ROLES),
        "form": set(ALL_ROLES),
        "submit": {ROLE_ADMIN} | CLINICAL_ROLES,
    }
