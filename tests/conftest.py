"""Shared fixtures for moveforge tests."""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest
from pytest_metadata.plugin import metadata_key

from moveforge.models.config import DEFAULT_MODULE, DEFAULT_NETWORKS, ForgeConfig, TrackerConfig
from moveforge.models.records import FilterCriteria
from moveforge.storage.sqlite import SQLiteCursorStore
from moveforge.tracker.poller import EventPoller

from tests.mocks import MockGateway, RecordingSink

TEST_ADDRESS = "0xabc"
OTHER_ADDRESS = "0xdef"

EXPLORER_BASE = "https://explorer.movementnetwork.xyz"


def explorer_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to the Movement explorer for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}?network=testnet"
    text = label or id
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Movement Testnet"
    meta["RPC Endpoint"] = DEFAULT_NETWORKS["testnet"]
    meta["Tracked Module"] = DEFAULT_MODULE
    meta["Tracked Account"] = TEST_ADDRESS


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject the tracked account's explorer link into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Movement Testnet Explorer</strong><br/>"
        f'Tracked Account: {explorer_link("account", TEST_ADDRESS)}'
        "</div>"
    )


def make_test_config(**tracker_overrides) -> ForgeConfig:
    """Build a ForgeConfig suitable for testing (fast polling, no state db)."""
    tracker = dict(module=DEFAULT_MODULE, interval_ms=10, page_size=50, state_db=None)
    tracker.update(tracker_overrides)
    return ForgeConfig(tracker=TrackerConfig(**tracker))


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() is true, failing after timeout."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def test_config():
    """Default ForgeConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteCursorStore."""
    s = SQLiteCursorStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_gateway():
    return MockGateway()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def poller(mock_gateway, sink):
    """EventPoller for TEST_ADDRESS with the default module filter."""
    return EventPoller(
        gateway=mock_gateway,
        address=TEST_ADDRESS,
        emit=sink,
        criteria=FilterCriteria(module=DEFAULT_MODULE),
        interval_ms=10,
    )
