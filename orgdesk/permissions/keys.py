from __future__ import annotations

from dataclasses import dataclass

from orgdesk.models.enums import TOP_ROLE, OrgRole

@dataclass(frozen=True, order=True)
class PermissionKey:
    """A ``module.action`` pair. ``module.access`` keys gate whole menus."""

    module: str
    action: str

    @classmethod
    def parse(cls, raw: str | PermissionKey) -> PermissionKey:
        if isinstance(raw, PermissionKey):
            return raw
        module, sep, action = raw.strip().partition(".")
        if not sep or not module or not action or "." in action:
            raise ValueError(f"invalid permission key: {raw!r}")
        return cls(module=module, action=action)

    @property
    def is_menu(self) -> bool:
        return self.action == "access"

    def __str__(self) -> str:
        return f"{self.module}.{self.action}"

def try_parse(raw: str | PermissionKey) -> PermissionKey | None:
    try:
        return PermissionKey.parse(raw)
    except (TypeError, ValueError, AttributeError):
        return None

# modules whose view gate the top role can never lose
CRITICAL_MODULES = frozenset({"dashboard", "settings", "billing", "team_members"})

MENU_KEYS: tuple[str, ...] = (
    "dashboard.access",
    "sales_billing.access",
    "expenses.access",
    "hr_workforce.access",
    "reports.access",
    "settings.access",
)

SUB_MENUS: dict[str, str] = {
    "sales.customers": "sales_billing.access",
    "sales.invoices": "sales_billing.access",
    "sales.quotations": "sales_billing.access",
    "sales.delivery_challans": "sales_billing.access",
    "sales.price_calculations": "sales_billing.access",
    "expenses.vendors": "expenses.access",
    "expenses.expenses": "expenses.access",
    "hr.employees": "hr_workforce.access",
    "hr.attendance": "hr_workforce.access",
    "hr.leave_management": "hr_workforce.access",
    "hr.payroll": "hr_workforce.access",
    "hr.performance": "hr_workforce.access",
    "hr.tasks": "hr_workforce.access",
    "reports.financial": "reports.access",
    "reports.hr": "reports.access",
    "settings.role_management": "settings.access",
    "settings.organization_settings": "settings.access",
    "settings.team_members": "settings.access",
    "settings.usage_limits": "settings.access",
    "settings.notifications": "settings.access",
    "settings.billing": "settings.access",
}

def parent_menu(sub_menu: str | PermissionKey) -> PermissionKey | None:
    menu = SUB_MENUS.get(str(sub_menu))
    return PermissionKey.parse(menu) if menu else None

@dataclass(frozen=True)
class PermissionDefinition:
    key: PermissionKey
    label: str
    category: str

def _d(key: str, label: str, category: str) -> PermissionDefinition:
    return PermissionDefinition(key=PermissionKey.parse(key), label=label, category=category)

PERMISSION_DEFINITIONS: tuple[PermissionDefinition, ...] = (
    _d("dashboard.view", "View Dashboard", "MAIN"),
    _d("invoices.view", "View Invoices", "MAIN"),
    _d("invoices.manage", "Manage Invoices", "MAIN"),
    _d("invoices.delete", "Delete Invoices", "MAIN"),
    _d("payments.view", "View Payments", "MAIN"),
    _d("payments.manage", "Manage Payments", "MAIN"),
    _d("quotations.view", "View Quotations", "MAIN"),
    _d("quotations.manage", "Manage Quotations", "MAIN"),
    _d("delivery_challans.view", "View Challans", "MAIN"),
    _d("delivery_challans.manage", "Manage Challans", "MAIN"),
    _d("customers.view", "View Customers", "BUSINESS"),
    _d("customers.manage", "Manage Customers", "BUSINESS"),
    _d("vendors.view", "View Vendors", "BUSINESS"),
    _d("vendors.manage", "Manage Vendors", "BUSINESS"),
    _d("expenses.view", "View Expenses", "BUSINESS"),
    _d("expenses.manage", "Manage Expenses", "BUSINESS"),
    _d("employees.view", "View Employees", "HR_OPS"),
    _d("employees.manage", "Manage Employees", "HR_OPS"),
    _d("attendance.view", "View Attendance", "HR_OPS"),
    _d("attendance.manage", "Manage Attendance", "HR_OPS"),
    _d("salary.view", "View Salary", "HR_OPS"),
    _d("salary.manage", "Manage Salary", "HR_OPS"),
    _d("tasks.view", "View Tasks", "HR_OPS"),
    _d("tasks.create", "Create Tasks", "HR_OPS"),
    _d("tasks.edit", "Edit Tasks", "HR_OPS"),
    _d("tasks.manage", "Manage Tasks", "HR_OPS"),
    _d("tasks.delete", "Delete Tasks", "HR_OPS"),
    _d("reports.view", "View Reports", "SYSTEM"),
    _d("team_members.view", "View Team", "SYSTEM"),
    _d("team_members.manage", "Manage Team", "SYSTEM"),
    _d("settings.view", "View Settings", "SYSTEM"),
    _d("settings.manage", "Manage Settings", "SYSTEM"),
    _d("billing.view", "View Billing", "SYSTEM"),
    _d("billing.manage", "Manage Billing", "SYSTEM"),
)

def roles_at_or_above(role: OrgRole) -> tuple[OrgRole, ...]:
    return tuple(r for r in OrgRole if r.level >= role.level)

_E = OrgRole.employee
_D = OrgRole.designer
_S = OrgRole.sales_staff
_A = OrgRole.accounts
_M = OrgRole.manager
_O = OrgRole.owner

# lowest role holding each key by default; every higher role holds it too
_DEFAULT_FLOORS: dict[str, OrgRole] = {
    "dashboard.view": _E,
    "invoices.view": _E,
    "invoices.manage": _S,
    "invoices.delete": _M,
    "payments.view": _S,
    "payments.manage": _A,
    "quotations.view": _D,
    "quotations.manage": _S,
    "delivery_challans.view": _E,
    "delivery_challans.manage": _S,
    "customers.view": _E,
    "customers.manage": _S,
    "vendors.view": _A,
    "vendors.manage": _A,
    "expenses.view": _A,
    "expenses.manage": _A,
    "employees.view": _A,
    "employees.manage": _M,
    "attendance.view": _E,
    "attendance.manage": _M,
    "salary.view": _A,
    "salary.manage": _O,
    "tasks.view": _E,
    "tasks.create": _E,
    "tasks.edit": _E,
    "tasks.manage": _M,
    "tasks.delete": _M,
    "reports.view": _M,
    "team_members.view": _M,
    "team_members.manage": _O,
    "settings.view": _M,
    "settings.manage": _O,
    "billing.view": _O,
    "billing.manage": _O,
    "dashboard.access": _E,
    "sales_billing.access": _E,
    "expenses.access": _A,
    "hr_workforce.access": _E,
    "reports.access": _M,
    "settings.access": _M,
    "sales.customers": _E,
    "sales.invoices": _E,
    "sales.quotations": _S,
    "sales.delivery_challans": _E,
    "sales.price_calculations": _S,
    "expenses.vendors": _A,
    "expenses.expenses": _A,
    "hr.employees": _M,
    "hr.attendance": _E,
    "hr.leave_management": _E,
    "hr.payroll": _A,
    "hr.performance": _M,
    "hr.tasks": _E,
    "reports.financial": _M,
    "reports.hr": _M,
    "settings.role_management": _O,
    "settings.organization_settings": _M,
    "settings.team_members": _M,
    "settings.usage_limits": _O,
    "settings.notifications": _M,
    "settings.billing": _O,
}

# default grants written to the global layer by seed_global_defaults
DEFAULT_GRANTS: dict[str, tuple[OrgRole, ...]] = {
    key: roles_at_or_above(floor) for key, floor in _DEFAULT_FLOORS.items()
}

def is_protected(role: OrgRole, key: PermissionKey) -> bool:
    """True if ``role`` can never lose ``key``."""
    return role == TOP_ROLE and key.module in CRITICAL_MODULES and key.action in ("view", "access")

def all_known_keys() -> list[PermissionKey]:
    return sorted({PermissionKey.parse(k) for k in DEFAULT_GRANTS})
