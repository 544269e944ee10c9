import uuid

from sqlalchemy.orm import Session

from conftest import add_member, auth, make_org, make_user
from orgdesk.models.enums import OrgRole
from orgdesk.models.org import Org
from orgdesk.models.permission import RolePermission

def check(client, org_id, user, *keys: str, mode: str = "any") -> dict:
    r = client.post(
        f"/orgs/{org_id}/permissions/check",
        json={"keys": list(keys), "mode": mode},
        headers=auth(user),
    )
    assert r.status_code == 200, r.text
    return r.json()

def test_me_reports_effective_permissions(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    employee = make_user(db_session, "employee")
    add_member(db_session, org, employee, OrgRole.employee)

    r = client.get(f"/orgs/{org.id}/permissions/me", headers=auth(employee))
    assert r.status_code == 200, r.text
    body = r.json()

    assert body["role"] == "employee"
    assert body["is_super_admin"] is False
    assert body["permissions"]["tasks.view"] is True
    assert body["permissions"]["billing.view"] is False
    assert body["menus"]["dashboard.access"] is True
    assert body["menus"]["settings.access"] is False
    assert body["sub_menus"]["sales.invoices"] is True
    assert body["sub_menus"]["settings.team_members"] is False

def test_me_for_super_admin_without_membership(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    admin = make_user(db_session, "admin", super_admin=True)

    r = client.get(f"/orgs/{org.id}/permissions/me", headers=auth(admin))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["role"] is None
    assert body["is_super_admin"] is True
    assert all(body["permissions"].values())

def test_check_any_and_all(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    manager = make_user(db_session, "manager")
    add_member(db_session, org, manager, OrgRole.manager)

    out = check(client, org.id, manager, "billing.view", "invoices.delete")
    assert out["allowed"] is True
    assert out["results"] == {"billing.view": False, "invoices.delete": True}

    out = check(client, org.id, manager, "billing.view", "invoices.delete", mode="all")
    assert out["allowed"] is False

    # malformed keys resolve to False
    out = check(client, org.id, manager, "nonsense")
    assert out == {"allowed": False, "results": {"nonsense": False}}

def test_settings_read_and_write(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    manager = make_user(db_session, "manager")
    employee = make_user(db_session, "employee")
    admin = make_user(db_session, "admin", super_admin=True)
    add_member(db_session, org, manager, OrgRole.manager)
    add_member(db_session, org, employee, OrgRole.employee)

    r = client.get(f"/orgs/{org.id}/permissions/settings", headers=auth(employee))
    assert r.status_code == 403

    r = client.get(f"/orgs/{org.id}/permissions/settings", headers=auth(manager))
    assert r.status_code == 200, r.text
    assert r.json()["use_global_defaults"] is True
    assert r.json()["override_plan_presets"] is False

    payload = {"use_global_defaults": False, "override_plan_presets": True}
    r = client.put(f"/orgs/{org.id}/permissions/settings", json=payload, headers=auth(manager))
    assert r.status_code == 403

    r = client.put(f"/orgs/{org.id}/permissions/settings", json=payload, headers=auth(admin))
    assert r.status_code == 200, r.text

    r = client.get(f"/orgs/{org.id}/permissions/settings", headers=auth(manager))
    assert r.json()["use_global_defaults"] is False

def test_overrides_take_effect_once_org_leaves_global_defaults(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    owner = make_user(db_session, "owner")
    employee = make_user(db_session, "employee")
    admin = make_user(db_session, "admin", super_admin=True)
    add_member(db_session, org, owner, OrgRole.owner)
    add_member(db_session, org, employee, OrgRole.employee)

    # warm the cache
    assert check(client, org.id, employee, "invoices.view")["allowed"] is True

    r = client.put(
        f"/orgs/{org.id}/permissions/overrides",
        json={"changes": [{"role": "employee", "permission_key": "invoices.view", "is_enabled": False}]},
        headers=auth(owner),
    )
    assert r.status_code == 200, r.text
    assert r.json()["success_count"] == 1

    # still on global defaults
    assert check(client, org.id, employee, "invoices.view")["allowed"] is True

    r = client.put(
        f"/orgs/{org.id}/permissions/settings",
        json={"use_global_defaults": False},
        headers=auth(admin),
    )
    assert r.status_code == 200, r.text

    assert check(client, org.id, employee, "invoices.view")["allowed"] is False

    r = client.get(f"/orgs/{org.id}/permissions/overrides", headers=auth(owner))
    assert r.status_code == 200, r.text
    assert r.json() == [{"role": "employee", "permission_key": "invoices.view", "is_enabled": False}]

def test_override_batch_partial_failure_is_207(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    owner = make_user(db_session, "owner")
    add_member(db_session, org, owner, OrgRole.owner)

    changes = [
        {"role": "designer", "permission_key": "reports.view", "is_enabled": True},
        {"role": "owner", "permission_key": "reports.view", "is_enabled": False},
        {"role": "manager", "permission_key": "tasks.view", "is_enabled": False},
    ]
    r = client.put(f"/orgs/{org.id}/permissions/overrides", json={"changes": changes}, headers=auth(owner))
    assert r.status_code == 207, r.text
    body = r.json()
    assert body["success"] is False
    assert body["success_count"] == 1
    assert body["failed_ids"] == ["owner:reports.view", "manager:tasks.view"]
    assert body["message"] == "1/3 permissions updated"

def test_manager_cannot_write_overrides(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    manager = make_user(db_session, "manager")
    add_member(db_session, org, manager, OrgRole.manager)

    r = client.put(
        f"/orgs/{org.id}/permissions/overrides",
        json={"changes": [{"role": "employee", "permission_key": "tasks.edit", "is_enabled": False}]},
        headers=auth(manager),
    )
    assert r.status_code == 403

def test_admin_bulk_update(client, db_session: Session, seeded_defaults):
    admin = make_user(db_session, "admin", super_admin=True)
    member = make_user(db_session, "member")

    r = client.get("/admin/permissions", headers=auth(member))
    assert r.status_code == 403

    r = client.get("/admin/permissions", headers=auth(admin))
    assert r.status_code == 200, r.text
    rows = {(p["role"], p["permission_key"]): p for p in r.json()}
    assert rows[("owner", "settings.view")]["is_protected"] is True

    updates = [
        {"permission_id": rows[("designer", "reports.view")]["id"], "is_enabled": True},
        {"permission_id": rows[("employee", "reports.view")]["id"], "is_enabled": True},
    ]
    r = client.post("/admin/permissions/bulk-update", json={"updates": updates}, headers=auth(admin))
    assert r.status_code == 200, r.text
    assert r.json()["success"] is True

    gone = rows[("accounts", "reports.view")]["id"]
    db_session.delete(db_session.get(RolePermission, uuid.UUID(gone)))
    db_session.commit()

    updates = [
        {"permission_id": rows[("accounts", "vendors.view")]["id"], "is_enabled": False},
        {"permission_id": gone, "is_enabled": True},
    ]
    r = client.post("/admin/permissions/bulk-update", json={"updates": updates}, headers=auth(admin))
    assert r.status_code == 207, r.text
    body = r.json()
    assert body["failed_ids"] == [gone]
    assert body["results"][1]["error"] == f"Permission not found: {gone}"

def test_plan_preset_applies_to_orgs_on_that_plan(client, db_session: Session, seeded_defaults):
    admin = make_user(db_session, "admin", super_admin=True)
    owner = make_user(db_session, "owner")
    employee = make_user(db_session, "employee")

    r = client.post("/orgs", json={"name": "pro-org", "plan": "pro"}, headers=auth(owner))
    assert r.status_code == 200, r.text
    pro_id = r.json()["id"]

    free_org = make_org(db_session)
    add_member(db_session, free_org, employee, OrgRole.employee)
    pro_org = db_session.get(Org, uuid.UUID(pro_id))
    add_member(db_session, pro_org, employee, OrgRole.employee)

    r = client.put(
        "/admin/plan-presets",
        json={"plan": "pro", "role": "employee", "permission_key": "reports.view", "is_enabled": True},
        headers=auth(admin),
    )
    assert r.status_code == 200, r.text

    assert check(client, pro_id, employee, "reports.view")["allowed"] is True
    assert check(client, free_org.id, employee, "reports.view")["allowed"] is False

    r = client.put(
        "/admin/plan-presets",
        json={"plan": "pro", "role": "employee", "permission_key": "reports", "is_enabled": True},
        headers=auth(admin),
    )
    assert r.status_code == 422

def test_invites_limited_to_lower_roles(client, db_session: Session, seeded_defaults):
    org = make_org(db_session)
    owner = make_user(db_session, "owner")
    add_member(db_session, org, owner, OrgRole.owner)

    r = client.post(
        f"/orgs/{org.id}/invites",
        json={"email": "new.hire@example.com", "role": "sales_staff", "department": "sales"},
        headers=auth(owner),
    )
    assert r.status_code == 200, r.text
    assert r.json()["department"] == "sales"

    r = client.post(
        f"/orgs/{org.id}/invites",
        json={"email": "co.owner@example.com", "role": "owner"},
        headers=auth(owner),
    )
    assert r.status_code == 403
