import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from orgdesk.db import SessionLocal
from orgdesk.models.enums import OrgRole, SystemRole, TaskVisibility
from orgdesk.models.membership import Membership
from orgdesk.models.org import Org
from orgdesk.models.task import Task
from orgdesk.models.user import User
from orgdesk.permissions.updates import seed_global_defaults

@dataclass
class SeedResult:
    owner_email: str
    manager_email: str
    employee_email: str
    super_admin_email: str
    org_id: uuid.UUID
    permissions_created: int

def get_or_create_user(db: Session, email: str, name: str | None = None) -> User:
    email = email.lower().strip()
    u = db.scalar(select(User).where(User.email == email))
    if u is None:
        u = User(email=email, name=name)
        db.add(u)
        db.flush()
    return u

def get_or_create_membership(
    db: Session,
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    role: OrgRole,
    department: str | None = None,
) -> Membership:
    m = db.get(Membership, {"user_id": user_id, "org_id": org_id})
    if m is None:
        m = Membership(user_id=user_id, org_id=org_id, role=role, department=department)
        db.add(m)
        db.flush()
    elif m.role != role or m.department != department:
        m.role = role
        m.department = department
        db.add(m)
        db.flush()
    return m

def get_or_create_org(db: Session, name: str) -> Org:
    o = db.scalar(select(Org).where(Org.name == name))
    if o is None:
        o = Org(name=name)
        db.add(o)
        db.flush()
    return o

def seed() -> SeedResult:
    db = SessionLocal()
    try:
        created = seed_global_defaults(db)

        admin = get_or_create_user(db, "superadmin@example.com", "platform admin")
        admin.system_role = SystemRole.super_admin

        owner = get_or_create_user(db, "owner@example.com", "owner")
        manager = get_or_create_user(db, "manager@example.com", "manager")
        employee = get_or_create_user(db, "employee@example.com", "employee")

        org = get_or_create_org(db, "seeded org")

        get_or_create_membership(db, owner.id, org.id, OrgRole.owner)
        get_or_create_membership(db, manager.id, org.id, OrgRole.manager, "ops")
        get_or_create_membership(db, employee.id, org.id, OrgRole.employee, "sales")

        if db.scalar(select(Task).where(Task.org_id == org.id)) is None:
            db.add_all(
                [
                    Task(org_id=org.id, title="seeded public task", created_by=owner.id, assigned_to=employee.id),
                    Task(
                        org_id=org.id,
                        title="seeded sales task",
                        visibility=TaskVisibility.department,
                        department="sales",
                        created_by=manager.id,
                    ),
                    Task(
                        org_id=org.id,
                        title="seeded private task",
                        visibility=TaskVisibility.private,
                        created_by=owner.id,
                        assigned_to=manager.id,
                    ),
                ]
            )

        db.commit()

        return SeedResult(
            owner_email=owner.email,
            manager_email=manager.email,
            employee_email=employee.email,
            super_admin_email=admin.email,
            org_id=org.id,
            permissions_created=created,
        )
    finally:
        db.close()

if __name__ == "__main__":
    r = seed()
    print("seed complete")
    print(f"org_id={r.org_id}")
    print(f"global permission rows created={r.permissions_created}")
    print("users:")
    print(f"  super admin: {r.super_admin_email}")
    print(f"  owner:       {r.owner_email}")
    print(f"  manager:     {r.manager_email}")
    print(f"  employee:    {r.employee_email}")
