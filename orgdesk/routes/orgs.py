import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from orgdesk.auth.deps import get_current_user
from orgdesk.db import get_db
from orgdesk.models.enums import ROLE_LEVELS, OrgRole
from orgdesk.models.membership import Membership
from orgdesk.models.org import Org
from orgdesk.models.user import User
from orgdesk.rbac.deps import OrgContext, get_org_context, require_perm
from orgdesk.schemas.orgs import InviteIn, MemberOut, OrgCreateIn, OrgOut

router = APIRouter(prefix="/orgs", tags=["orgs"])

@router.post("", response_model=OrgOut)
def create_org(
    payload: OrgCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> OrgOut:
    org = Org(name=payload.name, plan=payload.plan)
    db.add(org)
    db.flush()

    db.add(Membership(user_id=user.id, org_id=org.id, role=OrgRole.owner))
    db.commit()

    return OrgOut(id=org.id, name=org.name, plan=org.plan)

@router.get("", response_model=list[OrgOut])
def list_orgs(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[OrgOut]:
    q = (
        select(Org)
        .join(Membership, Membership.org_id == Org.id)
        .where(Membership.user_id == user.id)
        .order_by(Org.created_at.desc())
    )
    orgs = db.scalars(q).all()
    return [OrgOut(id=o.id, name=o.name, plan=o.plan) for o in orgs]

@router.get("/{org_id}", response_model=OrgOut)
def get_org(ctx: OrgContext = Depends(get_org_context)) -> OrgOut:
    return OrgOut(id=ctx.org.id, name=ctx.org.name, plan=ctx.org.plan)

@router.post("/{org_id}/invites", response_model=MemberOut)
def invite_member(
    org_id: uuid.UUID,
    payload: InviteIn,
    ctx: OrgContext = Depends(require_perm("team_members.manage")),
    db: Session = Depends(get_db),
) -> MemberOut:
    # inviters can only hand out roles below their own
    if not ctx.is_super_admin:
        if ctx.role is None or ROLE_LEVELS[payload.role] >= ROLE_LEVELS[ctx.role]:
            raise HTTPException(status_code=403, detail="forbidden")

    email = payload.email.lower().strip()
    invited = db.scalar(select(User).where(User.email == email))
    if invited is None:
        invited = User(email=email)
        db.add(invited)
        db.flush()

    existing = db.get(Membership, {"user_id": invited.id, "org_id": org_id})
    if existing is not None:
        return MemberOut(
            user_id=existing.user_id, org_id=existing.org_id, role=existing.role, department=existing.department
        )

    m = Membership(user_id=invited.id, org_id=org_id, role=payload.role, department=payload.department)
    db.add(m)
    db.commit()
    return MemberOut(user_id=m.user_id, org_id=m.org_id, role=m.role, department=m.department)
