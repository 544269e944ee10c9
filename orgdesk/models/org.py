import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from orgdesk.models.base import Base
from orgdesk.models.enums import Plan

class Org(Base):
    __tablename__ = "orgs"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )

    name: Mapped[str] = mapped_column(sa.String(120), nullable=False)

    plan: Mapped[Plan] = mapped_column(
        sa.Enum(Plan, name="plan"),
        nullable=False,
        default=Plan.free,
        server_default=Plan.free.value,
    )
