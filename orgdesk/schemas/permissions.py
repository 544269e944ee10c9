import uuid
from typing import Literal

from pydantic import BaseModel, Field

from orgdesk.models.enums import OrgRole, Plan

class EffectivePermissionsOut(BaseModel):
    org_id: uuid.UUID
    role: OrgRole | None
    is_super_admin: bool
    permissions: dict[str, bool]
    menus: dict[str, bool]
    sub_menus: dict[str, bool]

class PermissionCheckIn(BaseModel):
    keys: list[str] = Field(min_length=1)
    mode: Literal["any", "all"] = "any"

class PermissionCheckOut(BaseModel):
    allowed: bool
    results: dict[str, bool]

class PermissionSettingsIn(BaseModel):
    use_global_defaults: bool = True
    override_plan_presets: bool = False

class PermissionSettingsOut(PermissionSettingsIn):
    org_id: uuid.UUID

class OverrideChangeIn(BaseModel):
    role: OrgRole
    permission_key: str
    is_enabled: bool

class OverridesIn(BaseModel):
    changes: list[OverrideChangeIn] = Field(min_length=1)

class PermissionUpdateIn(BaseModel):
    permission_id: str
    is_enabled: bool

class BulkUpdateIn(BaseModel):
    updates: list[PermissionUpdateIn] = Field(min_length=1)

class ItemResultOut(BaseModel):
    id: str
    success: bool
    error: str | None = None

class BulkUpdateOut(BaseModel):
    success: bool
    message: str
    success_count: int
    failed_count: int
    failed_ids: list[str]
    results: list[ItemResultOut]

class RolePermissionOut(BaseModel):
    id: uuid.UUID
    role: OrgRole
    permission_key: str
    label: str | None
    is_enabled: bool
    is_protected: bool

class PlanPresetIn(BaseModel):
    plan: Plan
    role: OrgRole
    permission_key: str
    is_enabled: bool

class PlanPresetOut(PlanPresetIn):
    id: uuid.UUID
