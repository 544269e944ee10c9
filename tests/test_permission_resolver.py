import pytest

from orgdesk.models.enums import OrgRole, Plan
from orgdesk.permissions.keys import PermissionKey
from orgdesk.permissions.layers import PermissionLayers, ResolutionContext, ResolutionSettings
from orgdesk.permissions.resolver import (
    PermissionResolver,
    effective_permissions,
    has_all_permissions,
    has_any_permission,
    has_menu_access,
    has_permission,
    has_sub_menu_access,
)

LAYERS = PermissionLayers.from_rows(
    global_rows=[
        ("employee", "invoices.view", True),
        ("employee", "invoices.delete", False),
        ("manager", "invoices.delete", True),
        ("employee", "sales_billing.access", True),
        ("employee", "sales.invoices", True),
        ("employee", "sales.quotations", True),
        ("employee", "settings.access", False),
        ("employee", "settings.team_members", True),
    ],
    preset_rows=[
        ("pro", "employee", "invoices.view", False),
        ("pro", "employee", "invoices.delete", True),
    ],
    override_rows=[
        ("employee", "invoices.view", True),
    ],
)

def ctx(**kw) -> ResolutionContext:
    kw.setdefault("layers", LAYERS)
    return ResolutionContext(**kw)

def test_unknown_key_is_denied_for_every_role():
    c = ctx(settings=ResolutionSettings(use_global_defaults=False))
    for role in OrgRole:
        assert has_permission(role, "payroll.export", c) is False

def test_missing_role_is_denied():
    assert has_permission(None, "invoices.view", ctx()) is False

def test_malformed_keys_are_denied_not_raised():
    c = ctx()
    assert has_permission(OrgRole.employee, "invoices", c) is False
    assert has_permission(OrgRole.employee, "", c) is False
    assert has_permission(OrgRole.employee, "a.b.c", c) is False

def test_global_default_used_when_no_other_layer_applies():
    assert has_permission(OrgRole.employee, "invoices.view", ctx(plan=Plan.free)) is True
    assert has_permission(OrgRole.manager, "invoices.delete", ctx(plan=Plan.free)) is True

def test_plan_preset_beats_global_default():
    assert has_permission(OrgRole.employee, "invoices.view", ctx(plan=Plan.pro)) is False
    assert has_permission(OrgRole.employee, "invoices.delete", ctx(plan=Plan.pro)) is True

def test_override_plan_presets_skips_preset_layer():
    c = ctx(plan=Plan.pro, settings=ResolutionSettings(override_plan_presets=True))
    assert has_permission(OrgRole.employee, "invoices.delete", c) is False

def test_org_override_wins_when_not_using_global_defaults():
    # preset says no, global says yes, override says yes
    c = ctx(plan=Plan.pro, settings=ResolutionSettings(use_global_defaults=False))
    assert has_permission(OrgRole.employee, "invoices.view", c) is True

def test_org_override_ignored_while_using_global_defaults():
    c = ctx(plan=Plan.pro, settings=ResolutionSettings(use_global_defaults=True))
    assert has_permission(OrgRole.employee, "invoices.view", c) is False

def test_override_disagreeing_with_every_other_layer():
    layers = PermissionLayers.from_rows(
        global_rows=[("accounts", "expenses.manage", True)],
        preset_rows=[("starter", "accounts", "expenses.manage", True)],
        override_rows=[("accounts", "expenses.manage", False)],
    )
    c = ResolutionContext(
        plan=Plan.starter,
        settings=ResolutionSettings(use_global_defaults=False),
        layers=layers,
    )
    assert has_permission(OrgRole.accounts, "expenses.manage", c) is False

def test_super_admin_bypasses_layers():
    c = ResolutionContext(is_super_admin=True)
    assert has_permission(None, "anything.at_all", c) is True
    assert has_permission(OrgRole.employee, "billing.manage", c) is True

def test_string_and_composite_keys_resolve_the_same():
    c = ctx()
    assert has_permission(OrgRole.employee, PermissionKey("invoices", "view"), c) is True
    assert has_permission("employee", "invoices.view", c) is True

def test_any_and_all():
    c = ctx()
    assert has_any_permission(OrgRole.employee, ["billing.view", "invoices.view"], c) is True
    assert has_any_permission(OrgRole.employee, [], c) is False
    assert has_all_permissions(OrgRole.employee, ["invoices.view", "invoices.delete"], c) is False
    assert has_all_permissions(OrgRole.employee, [], c) is True

def test_menu_access_requires_access_key():
    c = ctx()
    assert has_menu_access(OrgRole.employee, "sales_billing.access", c) is True
    assert has_menu_access(OrgRole.employee, "invoices.view", c) is False

@pytest.mark.parametrize(
    "sub_menu, expected",
    [
        ("sales.invoices", True),
        ("sales.customers", False),  # menu ok, sub-menu missing
        ("settings.team_members", False),  # sub-menu ok, menu disabled
        ("sales.not_a_menu", False),  # unmapped
    ],
)
def test_sub_menu_access_needs_menu_and_sub_menu(sub_menu, expected):
    assert has_sub_menu_access(OrgRole.employee, sub_menu, ctx()) is expected

def test_effective_permissions_defaults_to_known_keys():
    out = effective_permissions(OrgRole.employee, ctx())
    assert out[PermissionKey("invoices", "view")] is True
    assert out[PermissionKey("invoices", "delete")] is False

def test_bound_resolver():
    r = PermissionResolver(OrgRole.employee, ctx())
    assert r.has("invoices.view")
    assert not r.has("billing.view")
    assert r.has_sub_menu("sales.quotations")
    assert r.effective(["invoices.view", "garbage"]) == {PermissionKey("invoices", "view"): True}

def test_permission_key_parse_and_render():
    k = PermissionKey.parse(" invoices.delete ")
    assert k == PermissionKey("invoices", "delete")
    assert str(k) == "invoices.delete"
    assert not k.is_menu
    assert PermissionKey.parse("settings.access").is_menu
    with pytest.raises(ValueError):
        PermissionKey.parse("nodot")
