import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from orgdesk.models.base import Base
from orgdesk.models.enums import SystemRole

class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # platform-level role, outside any org
    system_role: Mapped[SystemRole | None] = mapped_column(
        Enum(SystemRole, name="system_role"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    @property
    def is_super_admin(self) -> bool:
        return self.system_role == SystemRole.super_admin
