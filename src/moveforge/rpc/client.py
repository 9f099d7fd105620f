"""Movement RPC client - network selection and HTTP transport."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from moveforge.errors import NetworkError, RpcError, TransactionTimeout, UnknownNetwork
from moveforge.models.config import DEFAULT_NETWORKS
from moveforge.models.records import GasEstimate, TransactionRecord

log = logging.getLogger(__name__)

EXPLORER_BASE = "https://explorer.movementnetwork.xyz"


class MovementRpcClient:
    """Async client for the Movement (Aptos-compatible) REST API.

    The selected network belongs to the instance, not to the process:
    every tracker builds its own client, so concurrent trackers on
    different networks never see each other's endpoint.
    """

    def __init__(
        self,
        network: str = "testnet",
        endpoints: dict[str, str] | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._networks: dict[str, str] = dict(DEFAULT_NETWORKS)
        if endpoints:
            self._networks.update(endpoints)
        if network not in self._networks:
            raise UnknownNetwork(network, list(self._networks))
        self._network = network
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> MovementRpcClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ── Network selection ──────────────────────────────────

    @property
    def network(self) -> str:
        return self._network

    @property
    def networks(self) -> dict[str, str]:
        return dict(self._networks)

    @property
    def endpoint(self) -> str:
        return self._networks[self._network]

    def set_network(self, network: str) -> None:
        """Select a registered network. Raises UnknownNetwork otherwise."""
        if network not in self._networks:
            raise UnknownNetwork(network, list(self._networks))
        self._network = network
        log.info("Network set to: %s", network)

    def set_custom_endpoint(self, network: str, rpc_url: str) -> None:
        """Override or add the RPC endpoint for a network."""
        self._networks[network] = rpc_url.rstrip("/")
        log.debug("Configured custom RPC endpoint for %s: %s", network, rpc_url)

    # ── Transport ──────────────────────────────────────────

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        payload: Any = None,
    ) -> Any:
        url = f"{self.endpoint}{path}"
        log.debug("%s %s", method, url)
        try:
            resp = await self._http().request(method, url, params=params, json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise self._rpc_error(exc.response) from exc
        except httpx.TransportError as exc:
            log.error(
                "Network Error: no response from RPC endpoint %s (%s)",
                self.endpoint, exc,
            )
            raise NetworkError(self.endpoint, type(exc).__name__) from exc

        try:
            return resp.json()
        except ValueError as exc:
            log.error(
                "RPC Error: status=%d non-JSON body (%s) endpoint=%s",
                resp.status_code, resp.headers.get("content-type", "unknown"), self.endpoint,
            )
            raise RpcError(resp.status_code, "Invalid JSON response", self.endpoint) from exc

    def _rpc_error(self, resp: httpx.Response) -> RpcError:
        message = resp.reason_phrase or "error"
        try:
            body = resp.json()
            if isinstance(body, dict) and body.get("message"):
                message = str(body["message"])
        except ValueError:
            pass
        log.error(
            "RPC Error: status=%d message=%s endpoint=%s",
            resp.status_code, message, self.endpoint,
        )
        return RpcError(resp.status_code, message, self.endpoint)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, payload: Any = None) -> Any:
        return await self._request("POST", path, payload=payload if payload is not None else {})

    # ── Accounts ───────────────────────────────────────────

    async def get_account(self, address: str) -> dict[str, Any]:
        return await self.get(f"/accounts/{address}")

    async def get_account_resources(self, address: str) -> list[dict[str, Any]]:
        return await self.get(f"/accounts/{address}/resources")

    async def get_account_modules(self, address: str) -> list[dict[str, Any]]:
        return await self.get(f"/accounts/{address}/modules")

    async def get_account_transactions(
        self, address: str, params: dict[str, Any] | None = None,
    ) -> list[TransactionRecord]:
        """Fetch an account's transaction history.

        ``params`` (limit, start, ...) are passed through unmodified. The
        records come back in server order. Entries without a committed
        version (pending transactions) are dropped.
        """
        raw = await self.get(f"/accounts/{address}/transactions", params=params or {})
        if not isinstance(raw, list):
            log.warning("Unexpected transactions payload for %s: %s", address, type(raw).__name__)
            return []

        records: list[TransactionRecord] = []
        for item in raw:
            try:
                records.append(TransactionRecord.from_json(item))
            except (TypeError, ValueError, AttributeError) as exc:
                log.debug("Skipping transaction without usable version: %s", exc)
        return records

    # ── Transactions ───────────────────────────────────────

    async def get_transaction(self, txn_hash: str) -> dict[str, Any]:
        return await self.get(f"/transactions/by_hash/{txn_hash}")

    async def submit_transaction(self, signed_txn: dict[str, Any]) -> dict[str, Any]:
        return await self.post("/transactions", signed_txn)

    async def simulate_transaction(self, txn: dict[str, Any]) -> list[dict[str, Any]]:
        """Dry-run a transaction. Nothing is committed on-chain."""
        return await self.post("/transactions/simulate", txn)

    async def wait_for_transaction(
        self, txn_hash: str, timeout: float = 30.0, poll_interval: float = 1.0,
    ) -> dict[str, Any]:
        """Poll until the transaction is committed (has a ``success`` field)."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            try:
                txn = await self.get_transaction(txn_hash)
                if isinstance(txn, dict) and txn.get("success") is not None:
                    return txn
            except (RpcError, NetworkError) as exc:
                # 404 until the node has seen the transaction
                log.debug("Transaction %s not available yet: %s", txn_hash, exc)
            await asyncio.sleep(poll_interval)
        raise TransactionTimeout(txn_hash, timeout)

    async def estimate_gas(self, txn: dict[str, Any]) -> GasEstimate:
        try:
            simulation = await self.simulate_transaction(txn)
            if not simulation:
                raise ValueError("Invalid simulation response")
            first = simulation[0]
            return GasEstimate(
                gas_used=int(first.get("gas_used") or 0),
                success=bool(first.get("success")),
                vm_status=str(first.get("vm_status") or ""),
            )
        except Exception:
            log.error("Failed to estimate gas")
            raise

    # ── Explorer ───────────────────────────────────────────

    def _explorer_suffix(self) -> str:
        return "" if self._network == "mainnet" else f"?network={self._network}"

    def explorer_url(self, txn_hash: str) -> str:
        return f"{EXPLORER_BASE}/txn/{txn_hash}{self._explorer_suffix()}"

    def account_explorer_url(self, address: str) -> str:
        return f"{EXPLORER_BASE}/account/{address}{self._explorer_suffix()}"
