"""
Administrative writes to the permission layers.

Every item is applied in its own savepoint and reported on its own, so a
batch can partially succeed and the caller can resend only the failures.
"""
from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orgdesk.logging_config import get_logger
from orgdesk.models.audit_log import AuditLog
from orgdesk.models.enums import ROLE_LEVELS, OrgRole, Plan
from orgdesk.models.org import Org
from orgdesk.models.permission import OrgPermission, OrgPermissionSettings, PlanPermissionPreset, RolePermission
from orgdesk.models.user import User
from orgdesk.permissions.cache import LayerCache
from orgdesk.permissions.guard import check_toggle
from orgdesk.permissions.keys import DEFAULT_GRANTS, PERMISSION_DEFINITIONS, PermissionKey, is_protected, try_parse
from orgdesk.permissions.layers import ResolutionSettings
from orgdesk.permissions.store import org_state

log = get_logger(__name__)

@dataclass(frozen=True)
class PermissionUpdate:
    permission_id: str
    is_enabled: bool

@dataclass(frozen=True)
class OverrideChange:
    role: OrgRole
    permission_key: str
    is_enabled: bool

    @property
    def item_id(self) -> str:
        return f"{self.role.value}:{self.permission_key}"

@dataclass(frozen=True)
class ItemResult:
    id: str
    success: bool
    error: str | None = None

@dataclass
class BulkUpdateResult:
    results: list[ItemResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed_count(self) -> int:
        return len(self.results) - self.success_count

    @property
    def failed_ids(self) -> list[str]:
        return [r.id for r in self.results if not r.success]

    @property
    def all_succeeded(self) -> bool:
        return self.failed_count == 0

    @property
    def message(self) -> str:
        return f"{self.success_count}/{len(self.results)} permissions updated"

    def ok(self, item_id: str) -> None:
        self.results.append(ItemResult(id=item_id, success=True))

    def fail(self, item_id: str, error: str) -> None:
        self.results.append(ItemResult(id=item_id, success=False, error=error))

def _audit(
    db: Session,
    actor: User | None,
    *,
    action: str,
    entity_type: str,
    entity_id: str,
    org_id: uuid.UUID | None = None,
    details: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            actor_id=actor.id if actor else None,
            actor_email=actor.email if actor else None,
            org_id=org_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
    )

def _global_state(db: Session) -> dict[tuple[OrgRole, PermissionKey], bool]:
    state = {}
    for row in db.scalars(select(RolePermission)):
        pk = try_parse(row.permission_key)
        if pk is not None:
            state[(row.role, pk)] = row.is_enabled
    return state

def bulk_update_global_permissions(
    db: Session,
    updates: Sequence[PermissionUpdate],
    actor: User | None = None,
    cache: LayerCache | None = None,
) -> BulkUpdateResult:
    result = BulkUpdateResult()
    state = _global_state(db)

    for u in updates:
        item_id = str(u.permission_id)
        try:
            perm = db.get(RolePermission, uuid.UUID(item_id))
        except ValueError:
            perm = None
        if perm is None:
            result.fail(item_id, f"Permission not found: {item_id}")
            continue

        if perm.is_protected and perm.is_enabled and not u.is_enabled:
            result.fail(item_id, "Cannot disable protected permission")
            continue

        pk = try_parse(perm.permission_key)
        if pk is not None:
            check = check_toggle(perm.role, pk, u.is_enabled, state)
            if not check.allowed:
                result.fail(item_id, check.reason or "rejected")
                continue

        previous = perm.is_enabled
        try:
            with db.begin_nested():
                perm.is_enabled = u.is_enabled
                _audit(
                    db,
                    actor,
                    action=f"Permission {'enabled' if u.is_enabled else 'disabled'}: {perm.label or perm.permission_key}",
                    entity_type="role_permission",
                    entity_id=item_id,
                    details={
                        "role": perm.role.value,
                        "permission_key": perm.permission_key,
                        "previous_value": previous,
                        "new_value": u.is_enabled,
                    },
                )
        except SQLAlchemyError as e:
            log.warning("permission update %s failed: %s", item_id, e)
            result.fail(item_id, str(e.__class__.__name__))
            continue

        if pk is not None:
            state[(perm.role, pk)] = u.is_enabled
        result.ok(item_id)

    db.commit()
    if cache is not None and result.success_count:
        cache.clear()

    if not result.all_succeeded:
        log.warning("bulk permission update partial failure: %s", result.message)
    return result

def apply_org_overrides(
    db: Session,
    org: Org,
    changes: Sequence[OverrideChange],
    actor: User | None = None,
    actor_role: OrgRole | None = None,
    cache: LayerCache | None = None,
) -> BulkUpdateResult:
    """
    Upsert organization overrides, last write wins.

    ``actor_role`` restricts a non-platform caller to roles strictly below
    their own.
    """
    result = BulkUpdateResult()
    state = org_state(db, org)

    for c in changes:
        item_id = c.item_id
        pk = try_parse(c.permission_key)
        if pk is None:
            result.fail(item_id, f"Invalid permission key: {c.permission_key}")
            continue

        if actor_role is not None and ROLE_LEVELS[c.role] >= ROLE_LEVELS[actor_role]:
            result.fail(item_id, "Cannot change permissions for a role at or above your own")
            continue

        check = check_toggle(c.role, pk, c.is_enabled, state)
        if not check.allowed:
            result.fail(item_id, check.reason or "rejected")
            continue

        try:
            with db.begin_nested():
                row = db.scalar(
                    select(OrgPermission).where(
                        OrgPermission.org_id == org.id,
                        OrgPermission.role == c.role,
                        OrgPermission.permission_key == str(pk),
                    )
                )
                previous = None if row is None else row.is_enabled
                if row is None:
                    row = OrgPermission(org_id=org.id, role=c.role, permission_key=str(pk))
                    db.add(row)
                row.is_enabled = c.is_enabled
                _audit(
                    db,
                    actor,
                    org_id=org.id,
                    action=f"Org permission {'enabled' if c.is_enabled else 'disabled'}: {pk}",
                    entity_type="org_permission",
                    entity_id=item_id,
                    details={"previous_value": previous, "new_value": c.is_enabled},
                )
        except SQLAlchemyError as e:
            log.warning("org override %s failed for org=%s: %s", item_id, org.id, e)
            result.fail(item_id, str(e.__class__.__name__))
            continue

        state[(c.role, pk)] = c.is_enabled
        result.ok(item_id)

    db.commit()
    if cache is not None:
        cache.invalidate_org(org.id)
    return result

def set_plan_preset(
    db: Session,
    plan: Plan,
    role: OrgRole,
    key: str | PermissionKey,
    is_enabled: bool,
    actor: User | None = None,
    cache: LayerCache | None = None,
) -> PlanPermissionPreset:
    pk = PermissionKey.parse(key)
    row = db.scalar(
        select(PlanPermissionPreset).where(
            PlanPermissionPreset.plan == plan,
            PlanPermissionPreset.role == role,
            PlanPermissionPreset.permission_key == str(pk),
        )
    )
    if row is None:
        row = PlanPermissionPreset(plan=plan, role=role, permission_key=str(pk))
        db.add(row)
    row.is_enabled = is_enabled
    _audit(
        db,
        actor,
        action=f"Plan preset {'enabled' if is_enabled else 'disabled'}: {pk}",
        entity_type="plan_permission_preset",
        entity_id=f"{plan.value}:{role.value}:{pk}",
        details={"new_value": is_enabled},
    )
    db.commit()
    db.refresh(row)
    if cache is not None:
        cache.clear()
    return row

def update_org_settings(
    db: Session,
    org: Org,
    new_settings: ResolutionSettings,
    actor: User | None = None,
    cache: LayerCache | None = None,
) -> ResolutionSettings:
    row = db.get(OrgPermissionSettings, org.id)
    if row is None:
        row = OrgPermissionSettings(org_id=org.id)
        db.add(row)
    row.use_global_defaults = new_settings.use_global_defaults
    row.override_plan_presets = new_settings.override_plan_presets
    _audit(
        db,
        actor,
        org_id=org.id,
        action="Permission settings updated",
        entity_type="org_permission_settings",
        entity_id=str(org.id),
        details={
            "use_global_defaults": new_settings.use_global_defaults,
            "override_plan_presets": new_settings.override_plan_presets,
        },
    )
    db.commit()
    if cache is not None:
        cache.invalidate_org(org.id)
    return new_settings

def seed_global_defaults(db: Session) -> int:
    """
    Write the default grant matrix into the global layer.

    Existing rows keep their is_enabled value so admin edits survive a re-run.
    """
    labels = {d.key: d.label for d in PERMISSION_DEFINITIONS}
    existing = {(r.role, r.permission_key) for r in db.scalars(select(RolePermission))}

    created = 0
    for raw_key, granted in DEFAULT_GRANTS.items():
        key = PermissionKey.parse(raw_key)
        for role in OrgRole:
            if (role, str(key)) in existing:
                continue
            db.add(
                RolePermission(
                    role=role,
                    permission_key=str(key),
                    label=labels.get(key),
                    is_enabled=role in granted,
                    is_protected=is_protected(role, key),
                )
            )
            created += 1
    db.flush()
    return created
