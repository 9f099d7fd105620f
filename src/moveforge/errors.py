"""Exception types shared across moveforge components."""

from __future__ import annotations


class MoveForgeError(Exception):
    """Base class for moveforge errors."""


class UnknownNetwork(MoveForgeError):
    """Raised when a network name is not registered on the RPC client."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = list(available)
        super().__init__(
            f"Unknown network: {name}. Available: {', '.join(self.available)}"
        )


class NetworkError(MoveForgeError):
    """The RPC endpoint did not respond (connect failure, timeout, reset)."""

    def __init__(self, endpoint: str, detail: str = "") -> None:
        self.endpoint = endpoint
        self.detail = detail
        msg = "Network error: No response from RPC endpoint"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class RpcError(MoveForgeError):
    """The RPC endpoint answered with a non-success status or an unreadable body."""

    def __init__(self, status: int, message: str, endpoint: str = "") -> None:
        self.status = status
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"RPC Error ({status}): {message}")


class MalformedEvent(MoveForgeError):
    """An event type string does not split into address::module::name."""

    def __init__(self, event_type: str) -> None:
        self.event_type = event_type
        super().__init__(f"Malformed event type: {event_type!r}")


class MissingAddress(MoveForgeError):
    """No account address was given to the tracker."""

    def __init__(self) -> None:
        super().__init__("Address is required. Use --address <accountAddress>")


class TransactionTimeout(MoveForgeError):
    """A submitted transaction was not confirmed in time."""

    def __init__(self, txn_hash: str, timeout: float) -> None:
        self.txn_hash = txn_hash
        self.timeout = timeout
        super().__init__(f"Transaction confirmation timeout after {timeout:g}s: {txn_hash}")


class StateStoreError(MoveForgeError):
    """The tracker's cursor database could not be opened or read."""

    def __init__(self, db_path: str, detail: str = "") -> None:
        self.db_path = db_path
        self.detail = detail
        msg = f"cannot open state db {db_path}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
