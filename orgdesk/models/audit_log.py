import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from orgdesk.models.base import Base

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    actor_id: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, sa.ForeignKey("users.id"), nullable=True)
    actor_email: Mapped[str | None] = mapped_column(sa.String(320), nullable=True)
    org_id: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, sa.ForeignKey("orgs.id"), index=True, nullable=True)

    action: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    entity_type: Mapped[str] = mapped_column(sa.String(64), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(sa.String(200), nullable=True)
    details: Mapped[dict | None] = mapped_column(sa.JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )
