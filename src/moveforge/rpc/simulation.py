"""Transaction simulation helpers - payload building and result parsing."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

DEFAULT_MAX_GAS = 100_000
DEFAULT_GAS_UNIT_PRICE = 100
EXPIRATION_SECS = 600


def parse_argument(arg: str) -> Any:
    """Parse a ``type:value`` CLI argument into its JSON form.

    Integers travel as strings (the RPC encodes u64+ that way), booleans
    become bool, anything without a type prefix passes through.
    """
    if ":" not in arg:
        return arg
    type_name, _, value = arg.partition(":")
    if type_name.lower() == "bool":
        return value.lower() == "true"
    return value


def parse_arguments(args: list[str] | tuple[str, ...]) -> list[Any]:
    return [parse_argument(a) for a in args]


def build_simulation_txn(
    function: str,
    args: list[str] | tuple[str, ...],
    sender: str,
    module_address: str | None = None,
    module_name: str = "hello_move",
    now: float | None = None,
) -> dict[str, Any]:
    """Build an unsigned entry-function transaction for /transactions/simulate."""
    now = time.time() if now is None else now
    return {
        "sender": sender,
        "sequence_number": "0",
        "max_gas_amount": str(DEFAULT_MAX_GAS),
        "gas_unit_price": str(DEFAULT_GAS_UNIT_PRICE),
        "expiration_timestamp_secs": str(int(now + EXPIRATION_SECS)),
        "payload": {
            "type": "entry_function_payload",
            "function": f"{module_address or sender}::{module_name}::{function}",
            "type_arguments": [],
            "arguments": parse_arguments(args),
        },
    }


@dataclass
class SimulationResult:
    """First result of a /transactions/simulate response."""

    success: bool
    gas_used: int
    gas_unit_price: int
    vm_status: str
    changes: list[dict[str, Any]] = field(default_factory=list)
    events: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total_cost(self) -> int:
        return self.gas_used * self.gas_unit_price

    @classmethod
    def from_response(cls, response: Any) -> SimulationResult:
        if not response:
            raise ValueError("Empty simulation response from RPC")
        sim = response[0] if isinstance(response, list) else response
        return cls(
            success=bool(sim.get("success")),
            gas_used=int(sim.get("gas_used") or 0),
            gas_unit_price=int(sim.get("gas_unit_price") or 0),
            vm_status=str(sim.get("vm_status") or "Unknown"),
            changes=list(sim.get("changes") or []),
            events=list(sim.get("events") or []),
        )
