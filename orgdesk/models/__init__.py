from orgdesk.models.audit_log import AuditLog
from orgdesk.models.base import Base
from orgdesk.models.membership import Membership
from orgdesk.models.org import Org
from orgdesk.models.permission import OrgPermission, OrgPermissionSettings, PlanPermissionPreset, RolePermission
from orgdesk.models.task import Task
from orgdesk.models.user import User

__all__ = [
    "AuditLog",
    "Base",
    "Membership",
    "Org",
    "OrgPermission",
    "OrgPermissionSettings",
    "PlanPermissionPreset",
    "RolePermission",
    "Task",
    "User",
]
