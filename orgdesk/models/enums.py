from enum import Enum

class OrgRole(str, Enum):
    owner = "owner"
    manager = "manager"
    accounts = "accounts"
    sales_staff = "sales_staff"
    designer = "designer"
    employee = "employee"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]

    @property
    def display(self) -> str:
        return self.value.replace("_", " ").title()

# higher number = more permissions
ROLE_LEVELS: dict[OrgRole, int] = {
    OrgRole.owner: 100,
    OrgRole.manager: 75,
    OrgRole.accounts: 50,
    OrgRole.sales_staff: 40,
    OrgRole.designer: 35,
    OrgRole.employee: 25,
}

TOP_ROLE = max(ROLE_LEVELS, key=ROLE_LEVELS.__getitem__)

class SystemRole(str, Enum):
    super_admin = "super_admin"

class Plan(str, Enum):
    free = "free"
    starter = "starter"
    pro = "pro"
    enterprise = "enterprise"

class TaskStatus(str, Enum):
    todo = "todo"
    in_progress = "in_progress"
    done = "done"

class TaskVisibility(str, Enum):
    public = "public"
    private = "private"
    department = "department"
