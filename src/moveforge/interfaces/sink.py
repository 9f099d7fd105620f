"""EventSink protocol - where the tracker writes rendered event lines."""

from __future__ import annotations

from typing import Protocol


class EventSink(Protocol):
    """Receives one formatted line per emitted event.

    Must be synchronous: the tracker emits all lines of a transaction
    without yielding to the event loop.
    """

    def __call__(self, line: str) -> None:
        ...
