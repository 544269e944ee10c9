import uuid

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from orgdesk.auth.deps import get_current_user
from orgdesk.db import get_db
from orgdesk.logging_config import get_logger
from orgdesk.models.enums import OrgRole
from orgdesk.models.membership import Membership
from orgdesk.models.org import Org
from orgdesk.models.user import User
from orgdesk.permissions.cache import LayerCache
from orgdesk.permissions.keys import PermissionKey
from orgdesk.permissions.resolver import PermissionResolver
from orgdesk.permissions.store import build_context, get_permission_cache
from orgdesk.permissions.visibility import Viewer, viewer_for

log = get_logger(__name__)

class OrgContext:
    def __init__(self, org: Org, user: User, membership: Membership | None, resolver: PermissionResolver):
        self.org = org
        self.user = user
        self.membership = membership
        self.resolver = resolver

    @property
    def role(self) -> OrgRole | None:
        return self.membership.role if self.membership else None

    @property
    def is_super_admin(self) -> bool:
        return self.user.is_super_admin

    def viewer(self) -> Viewer:
        department = self.membership.department if self.membership else None
        return viewer_for(self.user.id, department, self.role, self.resolver.ctx)

def get_org_context(
    org_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: LayerCache = Depends(get_permission_cache),
) -> OrgContext:
    org = db.get(Org, org_id)
    if org is None:
        raise HTTPException(status_code=404, detail="org not found")

    membership = db.get(Membership, {"user_id": user.id, "org_id": org_id})
    if membership is None and not user.is_super_admin:
        raise HTTPException(status_code=403, detail="not a member of this org")

    role = membership.role if membership else None
    ctx = build_context(db, org, role, is_super_admin=user.is_super_admin, cache=cache)
    return OrgContext(org=org, user=user, membership=membership, resolver=PermissionResolver(role, ctx))

def require_perm(*keys: str):
    """Dependency passing when the caller holds any of ``keys``."""
    if not keys:
        raise RuntimeError("require_perm needs at least one permission key")
    parsed = [PermissionKey.parse(k) for k in keys]

    def _checker(org_id: uuid.UUID, ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
        if ctx.org.id != org_id:
            raise HTTPException(status_code=400, detail="org context mismatch")

        if not ctx.resolver.has_any(parsed):
            log.info("denied %s for user=%s org=%s", "|".join(map(str, parsed)), ctx.user.id, org_id)
            raise HTTPException(status_code=403, detail="forbidden")
        return ctx

    return _checker
