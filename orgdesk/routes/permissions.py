import uuid

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from orgdesk.config import settings
from orgdesk.db import get_db
from orgdesk.models.permission import OrgPermission
from orgdesk.permissions.cache import LayerCache
from orgdesk.permissions.keys import MENU_KEYS, SUB_MENUS, all_known_keys
from orgdesk.permissions.layers import ResolutionSettings
from orgdesk.permissions.store import get_permission_cache, load_settings
from orgdesk.permissions.updates import BulkUpdateResult, OverrideChange, apply_org_overrides, update_org_settings
from orgdesk.ratelimit import rate_limit
from orgdesk.rbac.deps import OrgContext, get_org_context, require_perm
from orgdesk.schemas.permissions import (
    BulkUpdateOut,
    EffectivePermissionsOut,
    ItemResultOut,
    OverrideChangeIn,
    OverridesIn,
    PermissionCheckIn,
    PermissionCheckOut,
    PermissionSettingsIn,
    PermissionSettingsOut,
)

router = APIRouter(prefix="/orgs/{org_id}/permissions", tags=["permissions"])

def bulk_response(result: BulkUpdateResult) -> JSONResponse:
    body = BulkUpdateOut(
        success=result.all_succeeded,
        message=result.message,
        success_count=result.success_count,
        failed_count=result.failed_count,
        failed_ids=result.failed_ids,
        results=[ItemResultOut(id=r.id, success=r.success, error=r.error) for r in result.results],
    )
    # 207 lets the caller retry just the failed subset
    return JSONResponse(status_code=200 if result.all_succeeded else 207, content=body.model_dump())

@router.get("/me", response_model=EffectivePermissionsOut)
def my_permissions(ctx: OrgContext = Depends(get_org_context)) -> EffectivePermissionsOut:
    keys = set(all_known_keys()) | ctx.resolver.ctx.layers.known_keys()
    effective = ctx.resolver.effective(keys)
    return EffectivePermissionsOut(
        org_id=ctx.org.id,
        role=ctx.role,
        is_super_admin=ctx.is_super_admin,
        permissions={str(k): v for k, v in sorted(effective.items())},
        menus={k: ctx.resolver.has_menu(k) for k in MENU_KEYS},
        sub_menus={k: ctx.resolver.has_sub_menu(k) for k in SUB_MENUS},
    )

@router.post("/check", response_model=PermissionCheckOut)
def check_permissions(
    payload: PermissionCheckIn,
    ctx: OrgContext = Depends(get_org_context),
) -> PermissionCheckOut:
    results = {k: ctx.resolver.has(k) for k in payload.keys}
    allowed = all(results.values()) if payload.mode == "all" else any(results.values())
    return PermissionCheckOut(allowed=allowed, results=results)

@router.get("/settings", response_model=PermissionSettingsOut)
def get_settings(
    org_id: uuid.UUID,
    ctx: OrgContext = Depends(require_perm("settings.view", "settings.manage")),
    db: Session = Depends(get_db),
) -> PermissionSettingsOut:
    s = load_settings(db, org_id)
    return PermissionSettingsOut(
        org_id=org_id,
        use_global_defaults=s.use_global_defaults,
        override_plan_presets=s.override_plan_presets,
    )

@router.put("/settings", response_model=PermissionSettingsOut)
def put_settings(
    org_id: uuid.UUID,
    payload: PermissionSettingsIn,
    ctx: OrgContext = Depends(get_org_context),
    db: Session = Depends(get_db),
    cache: LayerCache = Depends(get_permission_cache),
) -> PermissionSettingsOut:
    if not ctx.is_super_admin:
        raise HTTPException(status_code=403, detail="super admin access required")

    s = update_org_settings(
        db,
        ctx.org,
        ResolutionSettings(
            use_global_defaults=payload.use_global_defaults,
            override_plan_presets=payload.override_plan_presets,
        ),
        actor=ctx.user,
        cache=cache,
    )
    return PermissionSettingsOut(
        org_id=org_id,
        use_global_defaults=s.use_global_defaults,
        override_plan_presets=s.override_plan_presets,
    )

@router.get("/overrides", response_model=list[OverrideChangeIn])
def list_overrides(
    org_id: uuid.UUID,
    ctx: OrgContext = Depends(require_perm("settings.view", "settings.manage")),
    db: Session = Depends(get_db),
) -> list[OverrideChangeIn]:
    rows = db.scalars(
        select(OrgPermission)
        .where(OrgPermission.org_id == org_id)
        .order_by(OrgPermission.role, OrgPermission.permission_key)
    ).all()
    return [OverrideChangeIn(role=r.role, permission_key=r.permission_key, is_enabled=r.is_enabled) for r in rows]

@router.put(
    "/overrides",
    response_model=BulkUpdateOut,
    dependencies=[Depends(rate_limit("org_overrides", settings.rate_limit_admin_writes_per_min))],
)
def put_overrides(
    payload: OverridesIn,
    ctx: OrgContext = Depends(require_perm("settings.manage")),
    db: Session = Depends(get_db),
    cache: LayerCache = Depends(get_permission_cache),
) -> JSONResponse:
    changes = [OverrideChange(role=c.role, permission_key=c.permission_key, is_enabled=c.is_enabled) for c in payload.changes]
    result = apply_org_overrides(
        db,
        ctx.org,
        changes,
        actor=ctx.user,
        actor_role=None if ctx.is_super_admin else ctx.role,
        cache=cache,
    )
    return bulk_response(result)
