"""
models/service.py
-----------------
A service is one component shown on the status page (API, dashboard,
payments, ...). Its status is set by hand; nothing here probes health.
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statuspage.db.base import Base, TimestampMixin


class ServiceStatus(str, PyEnum):
    operational = "operational"
    degraded = "degraded"
    partial_outage = "partial_outage"
    major_outage = "major_outage"


class Service(Base, TimestampMixin):
    __tablename__ = "services"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=ServiceStatus.operational.value
    )
    organization_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    organization: Mapped["Organization"] = relationship(  # noqa: F821
        "Organization", back_populates="services"
    )
    incidents: Mapped[list["Incident"]] = relationship(  # noqa: F821
        "Incident",
        back_populates="service",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    maintenances: Mapped[list["Maintenance"]] = relationship(  # noqa: F821
        "Maintenance",
        back_populates="service",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Service id={self.id} name={self.name} status={self.status}>"
