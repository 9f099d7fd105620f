"""Configuration loading: TOML file + environment variables + moveforge.config.json."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from moveforge.models.config import ForgeConfig, NetworkProfile

log = logging.getLogger(__name__)

PROJECT_FILE = "moveforge.config.json"


def load_config(
    config_path: str | Path | None = None,
    project_path: str | Path | None = None,
    env_prefix: str = "MOVEFORGE_",
) -> ForgeConfig:
    """Load CLI configuration from the project file, a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (MOVEFORGE_NETWORK, etc.)
        2. TOML config file
        3. Project file (moveforge.config.json)
        4. Defaults from ForgeConfig
    """
    cfg = ForgeConfig()

    # ── Project file ───────────────────────────────────────
    loaded = load_project_file(project_path)
    if loaded is not None:
        path, data = loaded
        cfg.project_path = str(path)
        _apply_project(cfg, data)

    # ── TOML file ──────────────────────────────────────────
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)
        else:
            log.debug("Config file not found at %s", p)

    network = raw.get("network", {})
    if v := network.get("default"):
        cfg.network = str(v)
    for name, url in (network.get("endpoints") or {}).items():
        _upsert_network(cfg, name, str(url))

    tracker = raw.get("tracker", {})
    if v := tracker.get("module"):
        cfg.tracker.module = str(v)
    if (v := tracker.get("interval_ms")) is not None:
        cfg.tracker.interval_ms = int(v)
    if (v := tracker.get("page_size")) is not None:
        cfg.tracker.page_size = int(v)
    if v := tracker.get("state_db"):
        cfg.tracker.state_db = str(v)

    rpc = raw.get("rpc", {})
    if v := rpc.get("timeout"):
        cfg.rpc.timeout = float(v)
    if v := rpc.get("confirm_timeout"):
        cfg.rpc.confirm_timeout = float(v)
    if v := rpc.get("confirm_poll"):
        cfg.rpc.confirm_poll = float(v)

    logging_raw = raw.get("logging", {})
    if v := logging_raw.get("level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
    if rpc_url := os.environ.get(f"{env_prefix}RPC_URL"):
        _upsert_network(cfg, cfg.network, rpc_url)
    if module := os.environ.get(f"{env_prefix}MODULE"):
        cfg.tracker.module = module
    if interval := os.environ.get(f"{env_prefix}INTERVAL_MS"):
        cfg.tracker.interval_ms = int(interval)
    if state_db := os.environ.get(f"{env_prefix}STATE_DB"):
        cfg.tracker.state_db = state_db

    if cfg.tracker.state_db:
        cfg.tracker.state_db = str(Path(cfg.tracker.state_db).expanduser())

    _validate(cfg)
    return cfg


def _validate(cfg: ForgeConfig) -> None:
    """Raise ValueError for settings the tracker cannot run with."""
    if cfg.tracker.interval_ms <= 0:
        raise ValueError(f"tracker interval_ms must be positive, got {cfg.tracker.interval_ms}")
    if cfg.tracker.page_size <= 0:
        raise ValueError(f"tracker page_size must be positive, got {cfg.tracker.page_size}")


def _upsert_network(cfg: ForgeConfig, name: str, rpc_url: str) -> None:
    rpc_url = rpc_url.rstrip("/")
    if existing := cfg.networks.get(name):
        existing.rpc_url = rpc_url
    else:
        cfg.networks[name] = NetworkProfile(name=name, rpc_url=rpc_url)


def _apply_project(cfg: ForgeConfig, data: dict[str, Any]) -> None:
    if v := data.get("name"):
        cfg.project_name = str(v)
    if v := default_network(data):
        cfg.network = v
    for name, block in (data.get("networks") or {}).items():
        if not isinstance(block, dict):
            continue
        rpc_url = block.get("rpc") or block.get("rpcUrl")
        if rpc_url:
            _upsert_network(cfg, name, str(rpc_url))
        profile = cfg.networks.get(name)
        if profile is None:
            continue
        profile.chain_id = block.get("chain_id") or block.get("chainId") or profile.chain_id
        profile.faucet_url = block.get("faucet") or block.get("faucetUrl") or profile.faucet_url
        profile.module_address = block.get("moduleAddress") or profile.module_address


# ── Project file helpers ───────────────────────────────────


def resolve_project_path(project_path: str | Path | None = None) -> Path:
    """Return the project file path (default: ./moveforge.config.json)."""
    p = Path(project_path).expanduser() if project_path else Path(PROJECT_FILE)
    if not p.is_absolute():
        p = Path.cwd() / p
    return p


def load_project_file(
    project_path: str | Path | None = None,
) -> tuple[Path, dict[str, Any]] | None:
    """Read moveforge.config.json. Returns None when the file does not exist.

    Raises ValueError (json.JSONDecodeError) for an unparsable file.
    """
    p = resolve_project_path(project_path)
    if not p.exists():
        log.debug("Project file not found at %s", p)
        return None

    try:
        with open(p) as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        log.error("Invalid configuration file %s: %s", p, exc)
        raise
    if not isinstance(data, dict):
        raise ValueError(f"Invalid configuration file {p}: expected a JSON object")
    return p, data


def save_project_file(project_path: str | Path | None, data: dict[str, Any]) -> Path:
    p = resolve_project_path(project_path)
    with open(p, "w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
    return p


def default_network(data: dict[str, Any] | None) -> str | None:
    """``deployment.defaultNetwork`` from a project file, if present."""
    if not data or not isinstance(data.get("deployment"), dict):
        return None
    return data["deployment"].get("defaultNetwork") or None


def network_config(data: dict[str, Any] | None, network: str) -> dict[str, Any] | None:
    """The ``networks.<name>`` block of a project file, if present."""
    if not data or not isinstance(data.get("networks"), dict):
        return None
    return data["networks"].get(network) or None
