"""Data models for moveforge."""

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
from moveforge.models.records import (
    EventRecord,
    FilterCriteria,
    FilterResult,
    GasEstimate,
    PollCycleResult,
    TransactionRecord,
)
from moveforge.models.config import (
    DEFAULT_MODULE,
    DEFAULT_NETWORKS,
    ForgeConfig,
    NetworkProfile,
    RpcConfig,
    TrackerConfig,
)

__all__ = [
    "EventType", "TypedEvent", "UnknownEvent",
    "DrillingStartedEvent", "DrillingCompletedEvent", "TransportationEvent",
    "RefiningEvent", "DeliveryEvent",
    "EventRecord", "TransactionRecord", "FilterCriteria", "FilterResult", "PollCycleResult",
    "GasEstimate",
    "DEFAULT_MODULE", "DEFAULT_NETWORKS",
    "ForgeConfig", "NetworkProfile", "RpcConfig", "TrackerConfig",
]
