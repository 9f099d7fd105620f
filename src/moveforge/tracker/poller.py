"""Incremental event poller - watches an account's transaction history."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Sequence

from moveforge.errors import MissingAddress, NetworkError, RpcError
from moveforge.interfaces.filter import EventFilter
from moveforge.interfaces.gateway import RpcGateway
from moveforge.interfaces.sink import EventSink
from moveforge.interfaces.store import CursorStore
from moveforge.models.records import FilterCriteria, PollCycleResult, TransactionRecord
from moveforge.policy.filter import CriteriaEventFilter
from moveforge.tracker.classifier import classify, render_event

log = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 5000
DEFAULT_PAGE_SIZE = 50


class PollerState(str, Enum):
    """Lifecycle of an EventPoller."""

    STARTING = "starting"
    POLLING = "polling"
    WAITING = "waiting"
    STOPPED = "stopped"


class EventPoller:
    """Emits the events of an account's new transactions, once each, in order.

    Every tick fetches the latest page of the account's transactions,
    processes them oldest to newest and skips anything at or below the
    watermark (the highest version already processed). The watermark only
    moves forward and only after a transaction has been fully handled, so
    a transaction's events are emitted together or not at all.

    The poller runs until ``stop()`` is called or its task is cancelled.
    Fetch failures and per-event failures are logged and never end the run.
    """

    def __init__(
        self,
        gateway: RpcGateway,
        address: str,
        emit: EventSink,
        criteria: FilterCriteria | None = None,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        page_size: int = DEFAULT_PAGE_SIZE,
        store: CursorStore | None = None,
        event_filter: EventFilter | None = None,
    ) -> None:
        if not address:
            raise MissingAddress()
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")

        self._gateway = gateway
        self._address = address
        self._emit = emit
        self._criteria = criteria or FilterCriteria()
        self._filter = event_filter or CriteriaEventFilter(self._criteria)
        self._interval_ms = interval_ms
        self._page_size = page_size
        self._store = store

        self._watermark: int | None = None
        self._state = PollerState.STARTING
        self._stop_event = asyncio.Event()
        self.cycles = 0

    @property
    def address(self) -> str:
        return self._address

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def watermark(self) -> int | None:
        return self._watermark

    @property
    def state(self) -> PollerState:
        return self._state

    def stop(self) -> None:
        """Request a stop. Interrupts a pending wait immediately."""
        if not self._stop_event.is_set():
            log.info("Stop requested for tracker %s", self._address)
        self._stop_event.set()

    @property
    def stopping(self) -> bool:
        return self._stop_event.is_set()

    # ── Lifecycle ──────────────────────────────────────────

    async def run(self) -> None:
        """Poll forever: POLLING, then WAITING, until stopped."""
        await self._start()
        try:
            while not self._stop_event.is_set():
                self._state = PollerState.POLLING
                await self.poll_once()

                if self._stop_event.is_set():
                    break
                self._state = PollerState.WAITING
                await self._wait()
        finally:
            self._state = PollerState.STOPPED
            log.info(
                "Tracker for %s stopped after %d cycles (watermark: %s)",
                self._address, self.cycles, self._watermark,
            )

    async def _start(self) -> None:
        self._state = PollerState.STARTING
        if self._store is not None:
            try:
                saved = await self._store.get_watermark(
                    self._address, self._criteria.module, self._criteria.batch_id,
                )
            except Exception as exc:
                log.warning("Could not restore watermark, starting from the latest page: %s", exc)
                saved = None
            if saved is not None:
                self._watermark = saved
                log.info("Restored watermark: version %d", saved)

        log.info("Tracking events for account: %s", self._address)
        if self._criteria.module:
            log.info("Module filter: %s", self._criteria.module)
        if self._criteria.batch_id:
            log.info("Batch filter: %s", self._criteria.batch_id)
        log.info("Endpoint: %s (every %d ms)", self._gateway.endpoint, self._interval_ms)

    async def _wait(self) -> None:
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval_ms / 1000)
        except asyncio.TimeoutError:
            pass

    # ── Poll cycle ─────────────────────────────────────────

    async def poll_once(self) -> PollCycleResult:
        """Run a single fetch-and-process tick."""
        self.cycles += 1
        previous = self._watermark
        result = PollCycleResult(watermark=previous)

        try:
            txns = await self._gateway.get_account_transactions(
                self._address, {"limit": self._page_size},
            )
        except (NetworkError, RpcError) as exc:
            log.warning("Polling error: %s", exc)
            result.error = str(exc)
            return result
        except Exception as exc:
            log.warning("Polling error: %s", exc, exc_info=True)
            result.error = str(exc)
            return result

        ordered = self._oldest_first(txns)
        if (
            previous is not None
            and len(txns) >= self._page_size
            and ordered
            and ordered[0].version > previous
        ):
            log.warning(
                "Full page above watermark %d (oldest version %d); "
                "transactions in between may have been missed",
                previous, ordered[0].version,
            )

        for txn in ordered:
            if self._watermark is not None and txn.version <= self._watermark:
                result.transactions_skipped += 1
                continue

            lines = self._process_transaction(txn, result)
            # No await between here and the watermark update: a cancelled
            # poller never leaves a transaction half emitted.
            for line in lines:
                self._emit_line(line)
            result.lines.extend(lines)
            result.transactions_seen += 1
            if self._watermark is None or txn.version > self._watermark:
                self._watermark = txn.version

        result.watermark = self._watermark
        if result.lines:
            log.debug(
                "Emitted %d events from %d transactions (watermark: %s)",
                len(result.lines), result.transactions_seen, self._watermark,
            )

        if self._store is not None and self._watermark != previous:
            await self._persist()
        return result

    def _oldest_first(self, txns: Sequence[TransactionRecord]) -> list[TransactionRecord]:
        """Sort by numeric version; the server is expected to send newest first."""
        versions = [t.version for t in txns]
        if any(a < b for a, b in zip(versions, versions[1:])):
            log.debug("Server order was not newest-first: %s", versions)
        return sorted(txns, key=lambda t: t.version)

    def _process_transaction(
        self, txn: TransactionRecord, result: PollCycleResult,
    ) -> list[str]:
        lines: list[str] = []
        for index, event in enumerate(txn.events):
            try:
                typed = classify(event)
                if typed is None:
                    log.debug("Skipping malformed event type %r (version %d)", event.type, txn.version)
                    result.events_skipped += 1
                    continue
                if not self._filter.evaluate(typed).accepted:
                    result.events_skipped += 1
                    continue
                lines.append(render_event(typed))
            except Exception as exc:
                log.warning("Skipping event %d of version %d: %s", index, txn.version, exc)
                result.events_skipped += 1
        return lines

    def _emit_line(self, line: str) -> None:
        try:
            self._emit(line)
        except Exception as exc:
            log.warning("Failed to emit event line: %s", exc)

    async def _persist(self) -> None:
        assert self._store is not None and self._watermark is not None
        try:
            await self._store.set_watermark(
                self._address, self._criteria.module, self._criteria.batch_id, self._watermark,
            )
        except Exception as exc:
            log.warning("Could not persist watermark %d: %s", self._watermark, exc)
