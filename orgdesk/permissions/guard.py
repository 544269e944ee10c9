"""
Hierarchy guard.

A higher-ranked role's capability set must always be a superset of every
lower-ranked role's set, so a permission can only be disabled for a role
once no lower role still holds it. Enabling is always allowed.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from orgdesk.models.enums import ROLE_LEVELS, OrgRole
from orgdesk.permissions.keys import PermissionKey, is_protected
from orgdesk.permissions.layers import RoleKey

PermissionState = Mapping[RoleKey, bool]

@dataclass(frozen=True)
class ToggleCheck:
    allowed: bool
    reason: str | None = None

ALLOWED = ToggleCheck(allowed=True)

def can_disable(role: OrgRole, key: str | PermissionKey, current_state: PermissionState) -> ToggleCheck:
    pk = PermissionKey.parse(key)

    # a lower-role grant is reported ahead of the critical-module rule
    level = ROLE_LEVELS[role]
    lower = sorted(
        (r for r in ROLE_LEVELS if ROLE_LEVELS[r] < level),
        key=ROLE_LEVELS.__getitem__,
        reverse=True,
    )
    for other in lower:
        if current_state.get((other, pk), False):
            return ToggleCheck(False, f"Cannot disable: {other.display} has this permission")

    if is_protected(role, pk):
        return ToggleCheck(False, f"{role.display} must have access to critical modules")
    return ALLOWED

def check_toggle(
    role: OrgRole,
    key: str | PermissionKey,
    new_value: bool,
    current_state: PermissionState,
) -> ToggleCheck:
    if new_value:
        return ALLOWED
    return can_disable(role, key, current_state)

class PermissionDraft:
    """
    Working copy of a role/permission matrix.

    Toggles are applied one at a time and each is checked against the draft
    as it stands, not against the saved state. ``pending`` holds only the
    cells whose draft value differs from the original.
    """

    def __init__(self, original: PermissionState):
        self._original: dict[RoleKey, bool] = dict(original)
        self._state: dict[RoleKey, bool] = dict(original)
        self._pending: dict[RoleKey, bool] = {}

    @property
    def state(self) -> Mapping[RoleKey, bool]:
        return self._state

    @property
    def pending(self) -> Mapping[RoleKey, bool]:
        return self._pending

    @property
    def has_changes(self) -> bool:
        return bool(self._pending)

    def value(self, role: OrgRole, key: str | PermissionKey) -> bool:
        return self._state.get((role, PermissionKey.parse(key)), False)

    def toggle(self, role: OrgRole, key: str | PermissionKey, new_value: bool) -> ToggleCheck:
        pk = PermissionKey.parse(key)
        check = check_toggle(role, pk, new_value, self._state)
        if not check.allowed:
            return check

        cell = (role, pk)
        self._state[cell] = new_value
        if self._original.get(cell, False) == new_value:
            self._pending.pop(cell, None)
        else:
            self._pending[cell] = new_value
        return check

    def commit(self) -> dict[RoleKey, bool]:
        """Return the pending changes and make the draft the new original."""
        changes = dict(self._pending)
        self._original = dict(self._state)
        self._pending.clear()
        return changes

    def reset(self) -> None:
        self._state = dict(self._original)
        self._pending.clear()
