"""Wire payload shaping for service events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from thirteen.logic.events import ServiceEvent


def service_event_payload(event: ServiceEvent) -> dict[str, Any]:
    """Return the wire-format dict for a ServiceEvent payload.

    Shape: {"type": <event type>, **data_fields}, with the internal-only
    ``type`` and ``target`` of the domain model excluded. Cards render as
    their text form ("10♥").
    """
    return {
        "type": event.event.value,
        **event.data.model_dump(exclude={"type", "target"}, mode="json"),
    }
