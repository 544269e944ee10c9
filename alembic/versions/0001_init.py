"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

ROLES = ("owner", "manager", "accounts", "sales_staff", "designer", "employee")
PLANS = ("free", "starter", "pro", "enterprise")

def upgrade() -> None:
    # enums
    postgresql.ENUM(*PLANS, name="plan").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM(*ROLES, name="org_role").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM("super_admin", name="system_role").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM("todo", "in_progress", "done", name="task_status").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM("public", "private", "department", name="task_visibility").create(
        op.get_bind(), checkfirst=True
    )

    plan = postgresql.ENUM(*PLANS, name="plan", create_type=False)
    org_role = postgresql.ENUM(*ROLES, name="org_role", create_type=False)
    system_role = postgresql.ENUM("super_admin", name="system_role", create_type=False)
    task_status = postgresql.ENUM("todo", "in_progress", "done", name="task_status", create_type=False)
    task_visibility = postgresql.ENUM("public", "private", "department", name="task_visibility", create_type=False)

    uuid_t = postgresql.UUID(as_uuid=True)

    op.create_table(
        "users",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("system_role", system_role, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "orgs",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("plan", plan, nullable=False, server_default="free"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "memberships",
        sa.Column("user_id", uuid_t, sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("org_id", uuid_t, sa.ForeignKey("orgs.id"), primary_key=True),
        sa.Column("role", org_role, nullable=False, server_default="employee"),
        sa.Column("department", sa.String(length=120), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("user_id", "org_id", name="uq_membership_user_org"),
    )
    op.create_index("ix_memberships_org_id", "memberships", ["org_id"])

    op.create_table(
        "role_permissions",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("role", org_role, nullable=False),
        sa.Column("permission_key", sa.String(length=120), nullable=False),
        sa.Column("label", sa.String(length=200), nullable=True),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_protected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("role", "permission_key", name="uq_role_permission"),
    )
    op.create_index("ix_role_permissions_role", "role_permissions", ["role"])

    op.create_table(
        "plan_permission_presets",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("plan", plan, nullable=False),
        sa.Column("role", org_role, nullable=False),
        sa.Column("permission_key", sa.String(length=120), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("plan", "role", "permission_key", name="uq_plan_role_permission"),
    )
    op.create_index("ix_plan_permission_presets_plan", "plan_permission_presets", ["plan"])

    op.create_table(
        "org_permissions",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("org_id", uuid_t, sa.ForeignKey("orgs.id"), nullable=False),
        sa.Column("role", org_role, nullable=False),
        sa.Column("permission_key", sa.String(length=120), nullable=False),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("org_id", "role", "permission_key", name="uq_org_role_permission"),
    )
    op.create_index("ix_org_permissions_org_id", "org_permissions", ["org_id"])

    op.create_table(
        "org_permission_settings",
        sa.Column("org_id", uuid_t, sa.ForeignKey("orgs.id"), primary_key=True),
        sa.Column("use_global_defaults", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("override_plan_presets", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "tasks",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("org_id", uuid_t, sa.ForeignKey("orgs.id"), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", task_status, nullable=False, server_default="todo"),
        sa.Column("visibility", task_visibility, nullable=True, server_default="public"),
        sa.Column("department", sa.String(length=120), nullable=True),
        sa.Column("created_by", uuid_t, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("assigned_to", uuid_t, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        # department tasks must name their department
        sa.CheckConstraint(
            "visibility <> 'department' OR department IS NOT NULL",
            name="ck_tasks_department_required",
        ),
    )
    op.create_index("ix_tasks_org_id", "tasks", ["org_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", uuid_t, primary_key=True, nullable=False),
        sa.Column("actor_id", uuid_t, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("actor_email", sa.String(length=320), nullable=True),
        sa.Column("org_id", uuid_t, sa.ForeignKey("orgs.id"), nullable=True),
        sa.Column("action", sa.String(length=200), nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=200), nullable=True),
        sa.Column("details", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_audit_logs_org_id", "audit_logs", ["org_id"])

def downgrade() -> None:
    op.drop_index("ix_audit_logs_org_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_tasks_org_id", table_name="tasks")
    op.drop_table("tasks")

    op.drop_table("org_permission_settings")

    op.drop_index("ix_org_permissions_org_id", table_name="org_permissions")
    op.drop_table("org_permissions")

    op.drop_index("ix_plan_permission_presets_plan", table_name="plan_permission_presets")
    op.drop_table("plan_permission_presets")

    op.drop_index("ix_role_permissions_role", table_name="role_permissions")
    op.drop_table("role_permissions")

    op.drop_index("ix_memberships_org_id", table_name="memberships")
    op.drop_table("memberships")

    op.drop_table("orgs")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    postgresql.ENUM(name="task_visibility").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="task_status").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="system_role").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="org_role").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="plan").drop(op.get_bind(), checkfirst=True)
