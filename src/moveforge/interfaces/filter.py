"""EventFilter protocol - decides whether a classified event is emitted."""

from __future__ import annotations

from typing import Protocol

from moveforge.models.events import TypedEvent
from moveforge.models.records import FilterResult


class EventFilter(Protocol):
    """Evaluates typed events against the tracker's filter criteria."""

    def evaluate(self, event: TypedEvent) -> FilterResult:
        """Accept or reject an event, with the reason."""
        ...
