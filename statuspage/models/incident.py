"""
models/incident.py
------------------
Incidents and their timeline of updates.

An incident belongs to a service (and through it to an organization).
Every status change is recorded as an IncidentUpdate so the public page can
show the full timeline.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from statuspage.db.base import Base, TimestampMixin


class IncidentStatus(str, PyEnum):
    investigating = "investigating"
    identified = "identified"
    monitoring = "monitoring"
    resolved = "resolved"


class Incident(Base, TimestampMixin):
    __tablename__ = "incidents"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=IncidentStatus.investigating.value
    )
    resolved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    service_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    service: Mapped["Service"] = relationship(  # noqa: F821
        "Service", back_populates="incidents", lazy="selectin"
    )
    updates: Mapped[list["IncidentUpdate"]] = relationship(
        "IncidentUpdate",
        back_populates="incident",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="IncidentUpdate.created_at.desc()",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Incident id={self.id} status={self.status}>"


class IncidentUpdate(Base, TimestampMixin):
    __tablename__ = "incident_updates"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    incident_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("incidents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    incident: Mapped["Incident"] = relationship("Incident", back_populates="updates")

    def __repr__(self) -> str:
        return f"<IncidentUpdate id={self.id} status={self.status}>"
