"""Tier 2 fixtures: a local aiohttp server speaking the Movement REST API."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from aiohttp import web

from moveforge.rpc.client import MovementRpcClient


@dataclass
class FakeChain:
    """Transactions per account (oldest first) plus injected failures."""

    accounts: dict[str, list[dict]] = field(default_factory=dict)
    fail_next: int = 0
    requests: list[dict] = field(default_factory=list)

    def commit(self, address: str, txn: dict) -> None:
        self.accounts.setdefault(address, []).append(txn)


@pytest.fixture
async def rpc_server():
    """Local RPC server on a free port. Yields (base_url, chain)."""
    chain = FakeChain()

    async def handle_transactions(request):
        chain.requests.append(dict(request.query))
        if chain.fail_next:
            chain.fail_next -= 1
            return web.json_response({"message": "Service Unavailable"}, status=503)

        address = request.match_info["address"]
        if address not in chain.accounts:
            return web.json_response(
                {"message": f"Account not found by Address({address})", "error_code": "account_not_found"},
                status=404,
            )
        limit = int(request.query.get("limit", "25"))
        newest_first = list(reversed(chain.accounts[address]))[:limit]
        return web.json_response(newest_first)

    app = web.Application()
    app.router.add_get("/v1/accounts/{address}/transactions", handle_transactions)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    yield f"http://{host}:{port}/v1", chain
    await runner.cleanup()


@pytest.fixture
async def local_client(rpc_server):
    """MovementRpcClient pointed at the local server as network 'local'."""
    base_url, _ = rpc_server
    client = MovementRpcClient("local", endpoints={"local": base_url}, timeout=5)
    yield client
    await client.close()
