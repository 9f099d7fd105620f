"""Movement RPC integration components."""

from moveforge.rpc.client import MovementRpcClient
from moveforge.rpc.simulation import SimulationResult, build_simulation_txn, parse_arguments

__all__ = ["MovementRpcClient", "SimulationResult", "build_simulation_txn", "parse_arguments"]
