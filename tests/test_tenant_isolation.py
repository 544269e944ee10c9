from sqlalchemy.orm import Session

from conftest import auth, make_user

def test_tenant_isolation_tasks(client, db_session: Session, seeded_defaults):
    a = make_user(db_session, "a")
    b = make_user(db_session, "b")

    r = client.post("/orgs", json={"name": "org-a"}, headers=auth(a))
    assert r.status_code == 200
    org_a = r.json()["id"]

    r = client.post("/orgs", json={"name": "org-b"}, headers=auth(b))
    assert r.status_code == 200
    org_b = r.json()["id"]

    r = client.post(f"/orgs/{org_a}/tasks", json={"title": "t1"}, headers=auth(a))
    assert r.status_code == 200, r.text
    task_a = r.json()["id"]

    # b is not a member of org_a, should be blocked
    r = client.get(f"/orgs/{org_a}/tasks", headers=auth(b))
    assert r.status_code == 403

    r = client.get(f"/orgs/{org_a}/permissions/me", headers=auth(b))
    assert r.status_code == 403

    # also block direct task update attempt (even if you guessed id)
    r = client.patch(f"/orgs/{org_a}/tasks/{task_a}", json={"title": "hacked"}, headers=auth(b))
    assert r.status_code in (403, 404)

    # task ids do not leak across orgs
    r = client.get(f"/orgs/{org_b}/tasks/{task_a}", headers=auth(b))
    assert r.status_code == 404

    r = client.get("/orgs", headers=auth(b))
    assert [o["id"] for o in r.json()] == [org_b]

def test_unknown_org_and_missing_token(client, db_session: Session):
    u = make_user(db_session, "u")

    r = client.get("/orgs/00000000-0000-0000-0000-000000000000/tasks", headers=auth(u))
    assert r.status_code == 404

    r = client.get("/orgs")
    assert r.status_code == 401

    r = client.get("/orgs", headers={"authorization": "bearer not-a-jwt"})
    assert r.status_code == 401
