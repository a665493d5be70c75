"""
models/maintenance.py
---------------------
Scheduled maintenance windows for a service.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statuspage.db.base import Base, TimestampMixin


class MaintenanceStatus(str, PyEnum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"


class Maintenance(Base, TimestampMixin):
    __tablename__ = "maintenances"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=MaintenanceStatus.scheduled.value
    )
    scheduled_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    scheduled_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    service_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    service: Mapped["Service"] = relationship(  # noqa: F821
        "Service", back_populates="maintenances", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Maintenance id={self.id} status={self.status}>"
