"""Records returned by the Movement RPC and produced by the tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EventRecord:
    """An event embedded in a transaction.

    ``type`` is fully qualified: ``<address>::<module>::<name>``.
    """

    type: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> EventRecord:
        data = raw.get("data")
        return cls(
            type=str(raw.get("type") or ""),
            data=data if isinstance(data, dict) else {},
        )


@dataclass(frozen=True)
class TransactionRecord:
    """One entry of an account's transaction history."""

    version: int
    events: tuple[EventRecord, ...] = ()
    hash: str = ""
    sequence_number: int | None = None
    success: bool | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> TransactionRecord:
        """Build a record from the RPC JSON.

        The RPC encodes u64 values as strings; ``version`` is parsed
        numerically so ordering never falls back to string comparison.
        Raises ValueError when ``version`` is missing or not an integer.
        """
        if raw.get("version") is None:
            raise ValueError("transaction has no version")
        version = int(raw["version"])
        seq = raw.get("sequence_number")
        return cls(
            version=version,
            events=tuple(EventRecord.from_json(e) for e in raw.get("events") or []),
            hash=str(raw.get("hash") or ""),
            sequence_number=int(seq) if seq is not None else None,
            success=raw.get("success"),
            raw=raw,
        )


@dataclass(frozen=True)
class FilterCriteria:
    """Module / batch predicates applied to every tracked event."""

    module: str | None = None
    batch_id: str | None = None

    def describe(self) -> str:
        parts = []
        if self.module:
            parts.append(f"module={self.module}")
        if self.batch_id:
            parts.append(f"batch={self.batch_id}")
        return ", ".join(parts) or "none"


@dataclass
class PollCycleResult:
    """Outcome of a single poll tick."""

    lines: list[str] = field(default_factory=list)
    transactions_seen: int = 0
    transactions_skipped: int = 0
    events_skipped: int = 0
    watermark: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class GasEstimate:
    gas_used: int
    success: bool
    vm_status: str


@dataclass(frozen=True)
class FilterResult:
    """Outcome of evaluating one event against the filter criteria."""

    accepted: bool
    reason: str  # accepted | module_mismatch | batch_mismatch
