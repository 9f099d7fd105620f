"""Command line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from moveforge import cli as cli_module
from moveforge.cli import cli
from moveforge.errors import RpcError
from moveforge.rpc.client import MovementRpcClient


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    for var in ("NETWORK", "RPC_URL", "MODULE", "INTERVAL_MS", "STATE_DB"):
        monkeypatch.delenv(f"MOVEFORGE_{var}", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def project(tmp_path):
    return str(tmp_path / "moveforge.config.json")


@pytest.fixture
def tracker_calls(monkeypatch):
    """Replace run_tracker with a recorder so track returns immediately."""
    calls = []

    async def fake_run_tracker(cfg, addresses, emit, criteria=None, network=None):
        calls.append(dict(cfg=cfg, addresses=addresses, criteria=criteria, network=network))

    monkeypatch.setattr(cli_module, "run_tracker", fake_run_tracker)
    return calls


# ── track ─────────────────────────────────────────────────────────


def test_track_requires_address(runner, tracker_calls):
    result = runner.invoke(cli, ["track"])
    assert result.exit_code == 1
    assert "Address is required. Use --address <accountAddress>" in result.output
    assert tracker_calls == []


def test_track_defaults(runner, tracker_calls):
    result = runner.invoke(cli, ["track", "--address", "0xabc"])

    assert result.exit_code == 0, result.output
    assert "Tracking 0xabc on testnet" in result.output
    assert "Tracker running" in result.output
    call = tracker_calls[0]
    assert call["addresses"] == ["0xabc"]
    assert call["network"] == "testnet"
    assert call["criteria"].module == "oil_supply_chain"
    assert call["criteria"].batch_id is None
    assert call["cfg"].tracker.interval_ms == 5000


def test_track_options(runner, tracker_calls, tmp_path):
    result = runner.invoke(cli, [
        "track", "-a", "0xabc", "-a", "0xdef",
        "--module", "pipeline", "--batch", "BATCH-123",
        "--network", "devnet", "--interval", "250", "--page-size", "20",
        "--state-db", str(tmp_path / "cursors.db"),
    ])

    assert result.exit_code == 0, result.output
    call = tracker_calls[0]
    assert call["addresses"] == ["0xabc", "0xdef"]
    assert call["network"] == "devnet"
    assert call["criteria"].module == "pipeline"
    assert call["criteria"].batch_id == "BATCH-123"
    assert call["cfg"].tracker.interval_ms == 250
    assert call["cfg"].tracker.page_size == 20
    assert call["cfg"].tracker.state_db == str(tmp_path / "cursors.db")


def test_track_unknown_network_falls_back_to_testnet(runner, tracker_calls):
    result = runner.invoke(cli, ["track", "--address", "0xabc", "--network", "moonnet"])

    assert result.exit_code == 0, result.output
    assert tracker_calls[0]["network"] == "testnet"


def test_track_rejects_zero_interval(runner, tracker_calls):
    result = runner.invoke(cli, ["track", "--address", "0xabc", "--interval", "0"])
    assert result.exit_code == 2
    assert tracker_calls == []


def test_track_rejects_zero_interval_from_env(runner, tracker_calls, monkeypatch):
    monkeypatch.setenv("MOVEFORGE_INTERVAL_MS", "0")

    result = runner.invoke(cli, ["track", "--address", "0xabc"])

    assert result.exit_code == 1
    assert "interval_ms must be positive" in result.output
    assert tracker_calls == []


def test_track_unopenable_state_db(runner, tmp_path):
    result = runner.invoke(cli, ["track", "--address", "0xabc", "--state-db", str(tmp_path)])

    assert result.exit_code == 1
    assert f"Error: cannot open state db {tmp_path}" in result.output
    assert isinstance(result.exception, SystemExit)


# ── network ───────────────────────────────────────────────────────


def test_network_add_list_switch_remove(runner, project):
    result = runner.invoke(cli, [
        "-p", project, "network", "add", "local",
        "--url", "http://127.0.0.1:8080/v1", "--chain-id", "4",
    ])
    assert result.exit_code == 0, result.output
    with open(project) as f:
        data = json.load(f)
    assert data["networks"]["local"] == {"rpc": "http://127.0.0.1:8080/v1", "chain_id": 4}
    assert data["deployment"]["defaultNetwork"] == "testnet"

    result = runner.invoke(cli, ["-p", project, "network", "list"])
    assert "* testnet" in result.output
    assert "  local" in result.output
    assert "http://127.0.0.1:8080/v1" in result.output

    result = runner.invoke(cli, ["-p", project, "network", "switch", "local"])
    assert result.exit_code == 0, result.output
    result = runner.invoke(cli, ["-p", project, "network", "current"])
    assert result.output.splitlines()[0] == "local"
    assert "Chain ID: 4" in result.output

    result = runner.invoke(cli, ["-p", project, "network", "remove", "local", "--yes"])
    assert result.exit_code == 0, result.output
    with open(project) as f:
        data = json.load(f)
    assert data["networks"] == {}
    assert data["deployment"]["defaultNetwork"] == "testnet"


def test_network_add_prompts_until_valid_url(runner, project):
    result = runner.invoke(
        cli, ["-p", project, "network", "add", "local"],
        input="ftp://nope\nhttp://localhost:8080/v1\n",
    )
    assert result.exit_code == 0, result.output
    assert "Please enter a valid HTTP/HTTPS URL" in result.output
    with open(project) as f:
        assert json.load(f)["networks"]["local"]["rpc"] == "http://localhost:8080/v1"


def test_network_add_invalid_url(runner, project):
    result = runner.invoke(cli, ["-p", project, "network", "add", "local", "--url", "localhost"])
    assert result.exit_code == 1


def test_network_switch_unknown(runner, project):
    result = runner.invoke(cli, ["-p", project, "network", "switch", "moonnet"])
    assert result.exit_code == 1
    assert "Network 'moonnet' not found" in result.output


def test_network_remove_unknown(runner, project):
    result = runner.invoke(cli, ["-p", project, "network", "remove", "moonnet", "--yes"])
    assert result.exit_code == 1


# ── simulate ──────────────────────────────────────────────────────


def test_simulate_requires_function(runner):
    result = runner.invoke(cli, ["simulate"])
    assert result.exit_code == 1
    assert "Function name is required" in result.output


def test_simulate_shows_results(runner, monkeypatch):
    sent = []

    async def fake_simulate(self, txn):
        sent.append(txn)
        return [{
            "success": True,
            "gas_used": "10",
            "gas_unit_price": "100",
            "vm_status": "Executed successfully",
            "changes": [],
            "events": [{
                "type": "0x1::oil_supply_chain::DeliveryEvent",
                "data": {"batch_id": "B1", "destination": "Port-9"},
            }],
        }]

    monkeypatch.setattr(MovementRpcClient, "simulate_transaction", fake_simulate)

    result = runner.invoke(cli, ["simulate", "--function", "deliver", "--args", "u64:5", "--args", "bool:true"])

    assert result.exit_code == 0, result.output
    assert sent[0]["payload"]["function"] == "0x1::hello_move::deliver"
    assert sent[0]["payload"]["arguments"] == ["5", True]
    assert "1000 Octas" in result.output
    assert "[DeliveryEvent] batch B1 - delivered to Port-9" in result.output
    assert "No transaction was submitted" in result.output


def test_simulate_failure(runner, monkeypatch):
    async def fake_simulate(self, txn):
        raise RpcError(400, "FUNCTION_RESOLUTION_FAILURE")

    monkeypatch.setattr(MovementRpcClient, "simulate_transaction", fake_simulate)

    result = runner.invoke(cli, ["simulate", "--function", "nope"])
    assert result.exit_code == 1
    assert "Simulation failed: RPC Error (400): FUNCTION_RESOLUTION_FAILURE" in result.output


# ── lookups & status ──────────────────────────────────────────────


def test_tx_shows_events(runner, monkeypatch):
    async def fake_get_transaction(self, txn_hash):
        return {
            "version": "42",
            "success": True,
            "vm_status": "Executed successfully",
            "gas_used": "7",
            "events": [{
                "type": "0xabc::oil_supply_chain::DrillingStartedEvent",
                "data": {"batch_id": "BATCH-123", "location": "Field-A", "quantity": "100", "unit": "bbl"},
            }],
        }

    monkeypatch.setattr(MovementRpcClient, "get_transaction", fake_get_transaction)

    result = runner.invoke(cli, ["tx", "0xdead"])

    assert result.exit_code == 0, result.output
    assert "drilling started at Field-A, qty 100 bbl" in result.output
    assert "explorer.movementnetwork.xyz/txn/0xdead?network=testnet" in result.output


def test_status(runner, project):
    runner.invoke(cli, ["-p", project, "network", "add", "local", "--url", "http://localhost:8080/v1"])
    runner.invoke(cli, ["-p", project, "network", "switch", "local"])

    result = runner.invoke(cli, ["-p", project, "status"])

    assert result.exit_code == 0, result.output
    assert "Network:    local" in result.output
    assert "RPC URL:    http://localhost:8080/v1" in result.output
    assert "Module:     oil_supply_chain" in result.output
