"""Typed contract events decoded from fully-qualified Move event types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class EventType:
    """Parsed ``<address>::<module>::<name>``."""

    address: str
    module: str
    name: str

    def __str__(self) -> str:
        return f"{self.address}::{self.module}::{self.name}"


@dataclass(frozen=True)
class DrillingStartedEvent:
    """A batch of crude entered production at a field."""

    event_type: EventType
    batch_id: Any = None
    location: Any = None
    quantity: Any = None
    unit: Any = None
    data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class DrillingCompletedEvent:
    event_type: EventType
    batch_id: Any = None
    location: Any = None
    data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class TransportationEvent:
    """A batch moved between two sites.

    The on-chain fields are ``from`` and ``to``; ``from`` is a keyword,
    so both are renamed as a pair.
    """

    event_type: EventType
    batch_id: Any = None
    method: Any = None
    from_location: Any = None
    to_location: Any = None
    data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class RefiningEvent:
    event_type: EventType
    batch_id: Any = None
    refinery: Any = None
    output_quantity: Any = None
    unit: Any = None
    data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class DeliveryEvent:
    event_type: EventType
    batch_id: Any = None
    destination: Any = None
    data: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class UnknownEvent:
    """Any event kind without a dedicated model; keeps the raw data."""

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def batch_id(self) -> Any:
        return self.data.get("batch_id")


TypedEvent = Union[
    DrillingStartedEvent,
    DrillingCompletedEvent,
    TransportationEvent,
    RefiningEvent,
    DeliveryEvent,
    UnknownEvent,
]
