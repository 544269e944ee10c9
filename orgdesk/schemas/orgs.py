import uuid
from pydantic import BaseModel, EmailStr

from orgdesk.models.enums import OrgRole, Plan

class OrgCreateIn(BaseModel):
    name: str
    plan: Plan = Plan.free

class OrgOut(BaseModel):
    id: uuid.UUID
    name: str
    plan: Plan

class InviteIn(BaseModel):
    email: EmailStr
    role: OrgRole = OrgRole.employee
    department: str | None = None

class MemberOut(BaseModel):
    user_id: uuid.UUID
    org_id: uuid.UUID
    role: OrgRole
    department: str | None = None
