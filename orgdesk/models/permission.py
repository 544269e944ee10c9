import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from orgdesk.models.base import Base
from orgdesk.models.enums import OrgRole, Plan

_role_enum = sa.Enum(OrgRole, name="org_role")

class RolePermission(Base):
    """Global role -> permission default."""

    __tablename__ = "role_permissions"
    __table_args__ = (sa.UniqueConstraint("role", "permission_key", name="uq_role_permission"),)

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    role: Mapped[OrgRole] = mapped_column(_role_enum, nullable=False, index=True)
    permission_key: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    label: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    is_enabled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    # protected rows can be enabled but never disabled
    is_protected: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
        nullable=False,
    )

class PlanPermissionPreset(Base):
    __tablename__ = "plan_permission_presets"
    __table_args__ = (
        sa.UniqueConstraint("plan", "role", "permission_key", name="uq_plan_role_permission"),
    )

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    plan: Mapped[Plan] = mapped_column(sa.Enum(Plan, name="plan"), nullable=False, index=True)
    role: Mapped[OrgRole] = mapped_column(_role_enum, nullable=False)
    permission_key: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

class OrgPermission(Base):
    """Organization-specific override."""

    __tablename__ = "org_permissions"
    __table_args__ = (
        sa.UniqueConstraint("org_id", "role", "permission_key", name="uq_org_role_permission"),
    )

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("orgs.id"), index=True, nullable=False)
    role: Mapped[OrgRole] = mapped_column(_role_enum, nullable=False)
    permission_key: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
        nullable=False,
    )

class OrgPermissionSettings(Base):
    __tablename__ = "org_permission_settings"

    org_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, sa.ForeignKey("orgs.id"), primary_key=True)
    use_global_defaults: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    override_plan_presets: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
