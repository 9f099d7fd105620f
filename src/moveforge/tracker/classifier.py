"""Event classifier - turns raw Move events into typed models and display lines."""

from __future__ import annotations

import json
from typing import Any, Callable

from moveforge.errors import MalformedEvent
from moveforge.models.events import (
    DeliveryEvent,
    DrillingCompletedEvent,
    DrillingStartedEvent,
    EventType,
    RefiningEvent,
    TransportationEvent,
    TypedEvent,
    UnknownEvent,
)
from moveforge.models.records import EventRecord

MISSING = "undefined"

Renderer = Callable[[Any], str]

# Event kind name -> (model class, {model attribute: data key})
_KINDS: dict[str, tuple[type, dict[str, str]]] = {
    "DrillingStartedEvent": (
        DrillingStartedEvent,
        {"batch_id": "batch_id", "location": "location", "quantity": "quantity", "unit": "unit"},
    ),
    "DrillingCompletedEvent": (
        DrillingCompletedEvent,
        {"batch_id": "batch_id", "location": "location"},
    ),
    "TransportationEvent": (
        TransportationEvent,
        {"batch_id": "batch_id", "method": "method", "from_location": "from", "to_location": "to"},
    ),
    "RefiningEvent": (
        RefiningEvent,
        {"batch_id": "batch_id", "refinery": "refinery",
         "output_quantity": "output_quantity", "unit": "unit"},
    ),
    "DeliveryEvent": (
        DeliveryEvent,
        {"batch_id": "batch_id", "destination": "destination"},
    ),
}


def require_event_type(type_str: str) -> EventType:
    """Split ``<address>::<module>::<name>``, raising MalformedEvent when
    there are fewer than three segments.

    Segments past the third (generic type arguments, for instance) are
    ignored rather than rejected.
    """
    parts = (type_str or "").split("::")
    if len(parts) < 3:
        raise MalformedEvent(type_str)
    return EventType(address=parts[0], module=parts[1], name=parts[2])


def parse_event_type(type_str: str) -> EventType | None:
    """Like require_event_type, but returns None for a malformed type."""
    try:
        return require_event_type(type_str)
    except MalformedEvent:
        return None


def classify(event: EventRecord) -> TypedEvent | None:
    """Build the typed model for an event, or None if its type is malformed."""
    event_type = parse_event_type(event.type)
    if event_type is None:
        return None

    data = event.data or {}
    kind = _KINDS.get(event_type.name)
    if kind is None:
        return UnknownEvent(event_type=event_type, data=dict(data))

    cls, fields = kind
    values = {attr: data.get(key) for attr, key in fields.items()}
    return cls(event_type=event_type, data=dict(data), **values)


def register_kind(
    name: str,
    cls: type,
    fields: dict[str, str],
    renderer: Renderer | None = None,
) -> None:
    """Register an additional event kind (and optionally its renderer)."""
    _KINDS[name] = (cls, dict(fields))
    if renderer is not None:
        _RENDERERS[cls] = renderer


# ── Rendering ──────────────────────────────────────────────


def _v(value: Any) -> str:
    return MISSING if value is None else str(value)


def _dump(value: Any) -> str:
    return json.dumps(value, default=str)


def _prefix(event: TypedEvent) -> str:
    return f"[{event.event_type.name}]"


def _render_drilling_started(e: DrillingStartedEvent) -> str:
    return (
        f"{_prefix(e)} batch {_v(e.batch_id)} - drilling started at {_v(e.location)}"
        f", qty {_v(e.quantity)} {_v(e.unit)}"
    )


def _render_drilling_completed(e: DrillingCompletedEvent) -> str:
    return f"{_prefix(e)} batch {_v(e.batch_id)} - drilling completed at {_v(e.location)}"


def _render_transportation(e: TransportationEvent) -> str:
    return (
        f"{_prefix(e)} batch {_v(e.batch_id)} - moved {_v(e.method)}"
        f" from {_v(e.from_location)} -> {_v(e.to_location)}"
    )


def _render_refining(e: RefiningEvent) -> str:
    return (
        f"{_prefix(e)} batch {_v(e.batch_id)} - refined at {_v(e.refinery)}"
        f", output {_v(e.output_quantity)} {_v(e.unit)}"
    )


def _render_delivery(e: DeliveryEvent) -> str:
    return f"{_prefix(e)} batch {_v(e.batch_id)} - delivered to {_v(e.destination)}"


def _render_unknown(e: UnknownEvent) -> str:
    return f"{_prefix(e)} {_dump(e.data)}"


_RENDERERS: dict[type, Renderer] = {
    DrillingStartedEvent: _render_drilling_started,
    DrillingCompletedEvent: _render_drilling_completed,
    TransportationEvent: _render_transportation,
    RefiningEvent: _render_refining,
    DeliveryEvent: _render_delivery,
    UnknownEvent: _render_unknown,
}


def render_event(event: TypedEvent) -> str:
    """Render a typed event; classes without a renderer fall back to a data dump."""
    renderer = _RENDERERS.get(type(event))
    if renderer is None:
        return f"{_prefix(event)} {_dump(getattr(event, 'data', {}))}"
    return renderer(event)


def format_event(event: EventRecord) -> str:
    """Render a raw event record as one line. Absent fields print as ``undefined``."""
    typed = classify(event)
    if typed is None:
        return f"Unknown event: {_dump({'type': event.type, 'data': event.data})}"
    return render_event(typed)
