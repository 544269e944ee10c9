from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session

from orgdesk.auth.deps import require_super_admin
from orgdesk.config import settings
from orgdesk.db import get_db
from orgdesk.models.permission import RolePermission
from orgdesk.models.user import User
from orgdesk.permissions.cache import LayerCache
from orgdesk.permissions.keys import try_parse
from orgdesk.permissions.store import get_permission_cache
from orgdesk.permissions.updates import PermissionUpdate, bulk_update_global_permissions, set_plan_preset
from orgdesk.ratelimit import rate_limit
from orgdesk.routes.permissions import bulk_response
from orgdesk.schemas.permissions import BulkUpdateIn, BulkUpdateOut, PlanPresetIn, PlanPresetOut, RolePermissionOut

router = APIRouter(prefix="/admin", tags=["admin"])

admin_writes = rate_limit("admin_writes", settings.rate_limit_admin_writes_per_min)

@router.get("/permissions", response_model=list[RolePermissionOut])
def list_global_permissions(
    _: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
) -> list[RolePermissionOut]:
    rows = db.scalars(select(RolePermission).order_by(RolePermission.permission_key, RolePermission.role)).all()
    return [
        RolePermissionOut(
            id=r.id,
            role=r.role,
            permission_key=r.permission_key,
            label=r.label,
            is_enabled=r.is_enabled,
            is_protected=r.is_protected,
        )
        for r in rows
    ]

@router.post("/permissions/bulk-update", response_model=BulkUpdateOut, dependencies=[Depends(admin_writes)])
def bulk_update(
    payload: BulkUpdateIn,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
    cache: LayerCache = Depends(get_permission_cache),
) -> JSONResponse:
    updates = [PermissionUpdate(permission_id=u.permission_id, is_enabled=u.is_enabled) for u in payload.updates]
    result = bulk_update_global_permissions(db, updates, actor=user, cache=cache)
    return bulk_response(result)

@router.put("/plan-presets", response_model=PlanPresetOut, dependencies=[Depends(admin_writes)])
def put_plan_preset(
    payload: PlanPresetIn,
    user: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
    cache: LayerCache = Depends(get_permission_cache),
) -> PlanPresetOut:
    if try_parse(payload.permission_key) is None:
        raise HTTPException(status_code=422, detail="invalid permission key")

    row = set_plan_preset(
        db, payload.plan, payload.role, payload.permission_key, payload.is_enabled, actor=user, cache=cache
    )
    return PlanPresetOut(
        id=row.id,
        plan=row.plan,
        role=row.role,
        permission_key=row.permission_key,
        is_enabled=row.is_enabled,
    )
