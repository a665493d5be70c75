"""
realtime/events.py
------------------
Event names of the real-time wire contract and the DomainEvent value object.

Domain events are notifications, not data: clients use them as hints to
refetch, so a payload only has to identify what changed.
"""

from dataclasses import dataclass, field
from enum import Enum as PyEnum
from typing import Any, Optional


class ClientEvent(str, PyEnum):
    """Frames a client may send to the server."""
    join_org = "join:org"
    leave_org = "leave:org"


class EventKind(str, PyEnum):
    """Tenant-scoped notifications the server pushes to room members."""
    service_created = "service:created"
    service_updated = "service:updated"
    service_status_changed = "service:status_changed"
    service_deleted = "service:deleted"
    incident_created = "incident:created"
    incident_updated = "incident:updated"
    incident_resolved = "incident:resolved"
    maintenance_created = "maintenance:created"
    maintenance_updated = "maintenance:updated"
    maintenance_deleted = "maintenance:deleted"

    @property
    def entity(self) -> str:
        """'service', 'incident' or 'maintenance'."""
        return self.value.split(":", 1)[0]


@dataclass(frozen=True)
class TenantRef:
    """What a client asked to join: an organization id, a public slug, or both."""
    org_id: Optional[str] = None
    org_slug: Optional[str] = None

    def __bool__(self) -> bool:
        return bool(self.org_id or self.org_slug)


@dataclass(frozen=True)
class DomainEvent:
    kind: EventKind
    tenant_id: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        """Envelope sent to each room member. The tenant id stays server-side."""
        return {"event": self.kind.value, "data": self.payload}
