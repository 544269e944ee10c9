from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orgdesk.config import settings
from orgdesk.logging_config import get_logger
from orgdesk.models.enums import OrgRole, Plan
from orgdesk.models.org import Org
from orgdesk.models.permission import OrgPermission, OrgPermissionSettings, PlanPermissionPreset, RolePermission
from orgdesk.permissions.cache import CacheScope, LayerCache
from orgdesk.permissions.keys import PermissionKey, try_parse
from orgdesk.permissions.layers import EMPTY_LAYERS, PermissionLayers, ResolutionContext, ResolutionSettings, RoleKey
from orgdesk.permissions.resolver import has_permission

log = get_logger(__name__)

Snapshot = tuple[ResolutionSettings, PermissionLayers]

permission_cache: LayerCache[Snapshot] = LayerCache(ttl_seconds=settings.permission_cache_ttl_seconds)

def get_permission_cache() -> LayerCache[Snapshot]:
    return permission_cache

def load_settings(db: Session, org_id: uuid.UUID) -> ResolutionSettings:
    row = db.get(OrgPermissionSettings, org_id)
    if row is None:
        return ResolutionSettings()
    return ResolutionSettings(
        use_global_defaults=row.use_global_defaults,
        override_plan_presets=row.override_plan_presets,
    )

def _keyed(rows, *prefix_attrs: str) -> dict:
    out = {}
    for row in rows:
        pk = try_parse(row.permission_key)
        if pk is None:
            log.warning("skipping malformed permission key %r", row.permission_key)
            continue
        out[tuple(getattr(row, a) for a in prefix_attrs) + (pk,)] = row.is_enabled
    return out

def load_layers(
    db: Session,
    org_id: uuid.UUID | None,
    role: OrgRole | None = None,
    plan: Plan | None = None,
) -> PermissionLayers:
    """Fetch layer rows; ``role=None`` loads every role."""
    g = select(RolePermission)
    p = select(PlanPermissionPreset)
    o = select(OrgPermission).where(OrgPermission.org_id == org_id)
    if role is not None:
        g = g.where(RolePermission.role == role)
        p = p.where(PlanPermissionPreset.role == role)
        o = o.where(OrgPermission.role == role)
    if plan is not None:
        p = p.where(PlanPermissionPreset.plan == plan)

    return PermissionLayers(
        global_defaults=_keyed(db.scalars(g), "role"),
        plan_presets=_keyed(db.scalars(p), "plan", "role"),
        org_overrides=_keyed(db.scalars(o), "role") if org_id is not None else {},
    )

def build_context(
    db: Session,
    org: Org,
    role: OrgRole | None,
    *,
    is_super_admin: bool = False,
    cache: LayerCache[Snapshot] | None = None,
) -> ResolutionContext:
    """Resolution context for one member. Store failures resolve as deny."""
    if is_super_admin:
        return ResolutionContext(plan=org.plan, is_super_admin=True)

    cache = cache if cache is not None else permission_cache
    scope = CacheScope(organization_id=org.id, role=role, plan=org.plan)

    def _load() -> Snapshot:
        return load_settings(db, org.id), load_layers(db, org.id, role, org.plan)

    try:
        perm_settings, layers = cache.get_or_load(scope, _load)
    except SQLAlchemyError as e:
        log.warning("permission load failed for org=%s role=%s: %s", org.id, role, e)
        db.rollback()
        return ResolutionContext(plan=org.plan, layers=EMPTY_LAYERS)

    return ResolutionContext(plan=org.plan, settings=perm_settings, layers=layers)

def resolved_state(
    layers: PermissionLayers,
    plan: Plan,
    perm_settings: ResolutionSettings,
    keys: set[PermissionKey] | None = None,
) -> dict[RoleKey, bool]:
    """Resolved value of every (role, key) cell, the input the hierarchy guard works on."""
    ctx = ResolutionContext(plan=plan, settings=perm_settings, layers=layers)
    keys = keys if keys is not None else layers.known_keys()
    return {(role, k): has_permission(role, k, ctx) for role in OrgRole for k in keys}

def org_state(db: Session, org: Org, *, as_overridden: bool = True) -> dict[RoleKey, bool]:
    """
    Resolved state for every role in ``org``.

    With ``as_overridden`` the org overrides count even if the org is still
    on global defaults, which is the state they will take effect in.
    """
    perm_settings = load_settings(db, org.id)
    if as_overridden:
        perm_settings = ResolutionSettings(
            use_global_defaults=False,
            override_plan_presets=perm_settings.override_plan_presets,
        )
    layers = load_layers(db, org.id, None, org.plan)
    return resolved_state(layers, org.plan, perm_settings)
