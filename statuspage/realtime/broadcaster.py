"""
realtime/broadcaster.py
-----------------------
Fan-out of domain events to an organization's room.

Delivery contract (best effort, poll-backed):
  - publish() never awaits. It snapshots the room and enqueues the frame on
    every member's outbound queue.
  - No acknowledgement, retry or replay. A socket that joins after publish()
    misses the event; its periodic refetch covers the gap.
  - Within one organization, frames reach each connection in publish order.
  - Callers MUST commit their transaction before publishing, so a client
    refetching on receipt observes the new state.
"""

from typing import Any, Mapping, Union

from pydantic import BaseModel

from statuspage.core.logging import get_logger
from statuspage.realtime.events import DomainEvent, EventKind
from statuspage.realtime.membership import RoomMembershipManager

logger = get_logger(__name__)

Payload = Union[BaseModel, Mapping[str, Any]]


def _to_wire(payload: Payload) -> dict[str, Any]:
    if isinstance(payload, BaseModel):
        return payload.model_dump(mode="json", by_alias=True)
    return dict(payload)


class EventBroadcaster:

    def __init__(self, membership: RoomMembershipManager) -> None:
        self._membership = membership

    def publish(self, tenant_id: str, kind: EventKind, payload: Payload) -> int:
        """
        Send `payload` tagged with `kind` to every current member of the room.
        Returns how many connections the frame was queued on (0 for an empty room).
        """
        event = DomainEvent(kind=EventKind(kind), tenant_id=tenant_id, payload=_to_wire(payload))
        return self.dispatch(event)

    def dispatch(self, event: DomainEvent) -> int:
        members = self._membership.members_of(event.tenant_id)
        if not members:
            logger.debug("No listeners for event", org_id=event.tenant_id, event_name=event.kind.value)
            return 0

        message = event.to_message()
        delivered = sum(1 for connection in members if connection.deliver(message))
        logger.debug(
            "Event published",
            org_id=event.tenant_id,
            event_name=event.kind.value,
            recipients=delivered,
        )
        return delivered
