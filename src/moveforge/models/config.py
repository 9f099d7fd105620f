"""Configuration models for the CLI and the tracker."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_NETWORKS: dict[str, str] = {
    "testnet": "https://aptos.testnet.porto.movementlabs.xyz/v1",
    "devnet": "https://aptos.devnet.porto.movementlabs.xyz/v1",
    "mainnet": "https://mainnet.movementnetwork.xyz/v1",
}

DEFAULT_MODULE = "oil_supply_chain"


@dataclass
class NetworkProfile:
    """A named RPC endpoint, as stored in moveforge.config.json."""

    name: str
    rpc_url: str
    chain_id: int | str | None = None
    faucet_url: str | None = None
    module_address: str | None = None


@dataclass
class TrackerConfig:
    """Event tracker settings."""

    module: str = DEFAULT_MODULE
    interval_ms: int = 5000
    page_size: int = 50
    state_db: str | None = None  # None keeps the watermark in memory only


@dataclass
class RpcConfig:
    timeout: float = 30.0  # seconds per HTTP request
    confirm_timeout: float = 30.0  # seconds to wait for a transaction
    confirm_poll: float = 1.0


@dataclass
class ForgeConfig:
    """Complete CLI configuration."""

    network: str = "testnet"
    networks: dict[str, NetworkProfile] = field(
        default_factory=lambda: {
            name: NetworkProfile(name=name, rpc_url=url)
            for name, url in DEFAULT_NETWORKS.items()
        }
    )
    project_name: str | None = None
    project_path: str | None = None  # resolved moveforge.config.json, if found
    log_level: str = "info"

    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)

    def endpoints(self) -> dict[str, str]:
        return {name: p.rpc_url for name, p in self.networks.items()}

    def profile(self, name: str | None = None) -> NetworkProfile | None:
        return self.networks.get(name or self.network)
