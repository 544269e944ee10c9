"""
Permission resolution.

Layers are consulted in a fixed order, first hit wins:

1. organization override, unless the org uses global defaults
2. plan preset, unless the org overrides plan presets
3. global default

A key missing from every layer is denied. Super-admins bypass all layers.
"""
from __future__ import annotations

from collections.abc import Iterable

from orgdesk.models.enums import OrgRole
from orgdesk.permissions.keys import PermissionKey, parent_menu, try_parse
from orgdesk.permissions.layers import ResolutionContext

KeyLike = str | PermissionKey

def has_permission(role: OrgRole | None, key: KeyLike, ctx: ResolutionContext) -> bool:
    if ctx.is_super_admin:
        return True
    if role is None:
        return False

    pk = try_parse(key)
    if pk is None:
        return False

    layers = ctx.layers
    if not ctx.settings.use_global_defaults:
        value = layers.org_overrides.get((role, pk))
        if value is not None:
            return value

    if not ctx.settings.override_plan_presets:
        value = layers.plan_presets.get((ctx.plan, role, pk))
        if value is not None:
            return value

    return layers.global_defaults.get((role, pk), False)

def has_any_permission(role: OrgRole | None, keys: Iterable[KeyLike], ctx: ResolutionContext) -> bool:
    return any(has_permission(role, k, ctx) for k in keys)

def has_all_permissions(role: OrgRole | None, keys: Iterable[KeyLike], ctx: ResolutionContext) -> bool:
    return all(has_permission(role, k, ctx) for k in keys)

def has_menu_access(role: OrgRole | None, menu_key: KeyLike, ctx: ResolutionContext) -> bool:
    pk = try_parse(menu_key)
    if pk is None or not pk.is_menu:
        return False
    return has_permission(role, pk, ctx)

def has_sub_menu_access(role: OrgRole | None, sub_menu_key: KeyLike, ctx: ResolutionContext) -> bool:
    """Both the parent menu gate and the sub-menu key must resolve to True."""
    pk = try_parse(sub_menu_key)
    if pk is None:
        return False
    menu = parent_menu(pk)
    if menu is None:
        return False
    return has_permission(role, menu, ctx) and has_permission(role, pk, ctx)

def effective_permissions(
    role: OrgRole | None,
    ctx: ResolutionContext,
    keys: Iterable[KeyLike] | None = None,
) -> dict[PermissionKey, bool]:
    if keys is None:
        candidates: Iterable[KeyLike] = ctx.layers.known_keys()
    else:
        candidates = keys
    out: dict[PermissionKey, bool] = {}
    for k in candidates:
        pk = try_parse(k)
        if pk is not None:
            out[pk] = has_permission(role, pk, ctx)
    return out

class PermissionResolver:
    """Binds a role to a resolution context."""

    def __init__(self, role: OrgRole | None, ctx: ResolutionContext):
        self.role = role
        self.ctx = ctx

    def has(self, key: KeyLike) -> bool:
        return has_permission(self.role, key, self.ctx)

    def has_any(self, keys: Iterable[KeyLike]) -> bool:
        return has_any_permission(self.role, keys, self.ctx)

    def has_all(self, keys: Iterable[KeyLike]) -> bool:
        return has_all_permissions(self.role, keys, self.ctx)

    def has_menu(self, menu_key: KeyLike) -> bool:
        return has_menu_access(self.role, menu_key, self.ctx)

    def has_sub_menu(self, sub_menu_key: KeyLike) -> bool:
        return has_sub_menu_access(self.role, sub_menu_key, self.ctx)

    def effective(self, keys: Iterable[KeyLike] | None = None) -> dict[PermissionKey, bool]:
        return effective_permissions(self.role, self.ctx, keys)
