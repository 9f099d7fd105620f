"""Tracker daemon - runs one event poller per tracked address."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Callable

from moveforge.errors import MissingAddress, StateStoreError, UnknownNetwork
from moveforge.interfaces.sink import EventSink
from moveforge.models.config import ForgeConfig
from moveforge.models.records import FilterCriteria
from moveforge.rpc.client import MovementRpcClient
from moveforge.storage.sqlite import SQLiteCursorStore
from moveforge.tracker.poller import EventPoller

log = logging.getLogger(__name__)

FALLBACK_NETWORK = "testnet"

ClientFactory = Callable[[], MovementRpcClient]


def resolve_network(cfg: ForgeConfig, requested: str | None) -> str:
    """Validate a network name; unknown names fall back to testnet with a warning."""
    name = requested or cfg.network or FALLBACK_NETWORK
    client = MovementRpcClient(FALLBACK_NETWORK, endpoints=cfg.endpoints())
    try:
        client.set_network(name)
    except UnknownNetwork:
        log.warning("Unknown network '%s', defaulting to %s.", name, FALLBACK_NETWORK)
    return client.network


class TrackerDaemon:
    """Tracks events for one or more accounts.

    Each address gets its own EventPoller and its own RPC client, run as
    independent asyncio tasks. Nothing mutable is shared between them
    except the optional cursor store, whose rows are keyed per tracker.
    """

    def __init__(
        self,
        cfg: ForgeConfig,
        addresses: list[str],
        emit: EventSink,
        criteria: FilterCriteria | None = None,
        network: str | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        if not addresses:
            raise MissingAddress()

        self._cfg = cfg
        self._network = network or cfg.network
        self._criteria = criteria or FilterCriteria(module=cfg.tracker.module)
        self._client_factory = client_factory or self._default_client

        self.store: SQLiteCursorStore | None = None
        if cfg.tracker.state_db:
            self.store = SQLiteCursorStore(cfg.tracker.state_db)

        self.clients: list[MovementRpcClient] = []
        self.pollers: list[EventPoller] = []
        for address in dict.fromkeys(addresses):  # dedupe, keep order
            client = self._client_factory()
            self.clients.append(client)
            self.pollers.append(
                EventPoller(
                    gateway=client,
                    address=address,
                    emit=emit,
                    criteria=self._criteria,
                    interval_ms=cfg.tracker.interval_ms,
                    page_size=cfg.tracker.page_size,
                    store=self.store,
                )
            )

    def _default_client(self) -> MovementRpcClient:
        return MovementRpcClient(
            self._network,
            endpoints=self._cfg.endpoints(),
            timeout=self._cfg.rpc.timeout,
        )

    async def start(self) -> None:
        """Open the cursor store and run every poller until stopped."""
        log.info("Starting tracker on %s", self._network)
        log.info("  Accounts: %s", ", ".join(p.address for p in self.pollers))
        log.info("  Filters: %s", self._criteria.describe())
        if self.store:
            log.info("  Cursor store: %s", self._cfg.tracker.state_db)
            try:
                await self.store.initialize()
            except StateStoreError:
                for client in self.clients:
                    await client.close()
                raise

        tasks = [
            asyncio.create_task(p.run(), name=f"tracker:{p.address}")
            for p in self.pollers
        ]
        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for poller, res in zip(self.pollers, results):
                if isinstance(res, Exception):
                    log.error("Tracker for %s failed: %s", poller.address, res, exc_info=res)
        finally:
            for task in tasks:
                task.cancel()
            for client in self.clients:
                await client.close()
            if self.store:
                await self.store.close()
            log.info("Tracker shut down cleanly")

    def stop(self) -> None:
        """Signal every poller to stop."""
        for poller in self.pollers:
            poller.stop()


async def run_tracker(
    cfg: ForgeConfig,
    addresses: list[str],
    emit: EventSink,
    criteria: FilterCriteria | None = None,
    network: str | None = None,
) -> None:
    """Entry point for running the tracker until SIGINT / SIGTERM."""
    daemon = TrackerDaemon(cfg, addresses, emit, criteria=criteria, network=network)

    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, daemon.stop)
            installed.append(sig)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    try:
        await daemon.start()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
