from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from orgdesk.models.enums import OrgRole, Plan
from orgdesk.permissions.keys import PermissionKey

RoleKey = tuple[OrgRole, PermissionKey]
PlanRoleKey = tuple[Plan, OrgRole, PermissionKey]

@dataclass(frozen=True)
class ResolutionSettings:
    use_global_defaults: bool = True
    override_plan_presets: bool = False

@dataclass(frozen=True)
class PermissionLayers:
    """Snapshot of the three permission tables, keyed by composite tuples."""

    global_defaults: Mapping[RoleKey, bool] = field(default_factory=dict)
    plan_presets: Mapping[PlanRoleKey, bool] = field(default_factory=dict)
    org_overrides: Mapping[RoleKey, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("global_defaults", "plan_presets", "org_overrides"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def from_rows(
        cls,
        global_rows: Iterable[tuple[OrgRole | str, str | PermissionKey, bool]] = (),
        preset_rows: Iterable[tuple[Plan | str, OrgRole | str, str | PermissionKey, bool]] = (),
        override_rows: Iterable[tuple[OrgRole | str, str | PermissionKey, bool]] = (),
    ) -> PermissionLayers:
        return cls(
            global_defaults={(OrgRole(r), PermissionKey.parse(k)): bool(v) for r, k, v in global_rows},
            plan_presets={
                (Plan(p), OrgRole(r), PermissionKey.parse(k)): bool(v) for p, r, k, v in preset_rows
            },
            org_overrides={(OrgRole(r), PermissionKey.parse(k)): bool(v) for r, k, v in override_rows},
        )

    def known_keys(self) -> set[PermissionKey]:
        keys = {k for _, k in self.global_defaults}
        keys.update(k for _, _, k in self.plan_presets)
        keys.update(k for _, k in self.org_overrides)
        return keys

EMPTY_LAYERS = PermissionLayers()

@dataclass(frozen=True)
class ResolutionContext:
    plan: Plan = Plan.free
    settings: ResolutionSettings = field(default_factory=ResolutionSettings)
    layers: PermissionLayers = EMPTY_LAYERS
    is_super_admin: bool = False
