"""RpcGateway protocol - the subset of the RPC client the tracker depends on."""

from __future__ import annotations

from typing import Any, Protocol

from moveforge.models.records import TransactionRecord


class RpcGateway(Protocol):
    """Fetches account transaction history from a Movement RPC endpoint."""

    @property
    def endpoint(self) -> str:
        ...

    async def get_account_transactions(
        self, address: str, params: dict[str, Any] | None = None,
    ) -> list[TransactionRecord]:
        """Return the account's transactions in server order.

        Raises NetworkError when the endpoint does not respond and
        RpcError when it answers with a non-success status.
        """
        ...

    async def close(self) -> None:
        ...
