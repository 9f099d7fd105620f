"""CLI entry point for moveforge."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from moveforge.config import (
    default_network,
    load_config,
    load_project_file,
    save_project_file,
)
from moveforge.daemon import resolve_network, run_tracker
from moveforge.errors import MoveForgeError
from moveforge.models.config import ForgeConfig
from moveforge.models.records import EventRecord, FilterCriteria
from moveforge.rpc.client import MovementRpcClient
from moveforge.rpc.simulation import SimulationResult, build_simulation_txn
from moveforge.tracker.classifier import format_event


def _load(ctx: click.Context) -> ForgeConfig:
    try:
        return load_config(ctx.obj["config_path"], ctx.obj["project_path"])
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _project_data(ctx: click.Context) -> dict:
    """The parsed project file, or an empty dict when there is none."""
    try:
        loaded = load_project_file(ctx.obj["project_path"])
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    return loaded[1] if loaded else {}


def _require_addresses(addresses: tuple[str, ...]) -> list[str]:
    """Exit with error if no account address was given."""
    cleaned = [a.strip() for a in addresses if a and a.strip()]
    if not cleaned:
        click.echo("Error: Address is required. Use --address <accountAddress>", err=True)
        sys.exit(1)
    return cleaned


def _client(cfg: ForgeConfig, network: str | None) -> MovementRpcClient:
    return MovementRpcClient(
        resolve_network(cfg, network),
        endpoints=cfg.endpoints(),
        timeout=cfg.rpc.timeout,
    )


def _kv(key: str, value: object) -> None:
    click.echo(f"  {key + ':':<14}{value}")


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-p", "--project", "project_path", default=None,
              help="Path to moveforge.config.json (default: ./moveforge.config.json)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(package_name="moveforge", prog_name="moveforge")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, project_path: str | None, verbose: bool) -> None:
    """moveforge - developer toolkit for Move contracts on the Movement network."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["project_path"] = project_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


# ── Tracker ────────────────────────────────────────────


def _emit_line(line: str) -> None:
    click.echo("")
    click.secho(line, fg="green")


@cli.command()
@click.option("-a", "--address", "addresses", multiple=True,
              help="Account address to track (repeat for several accounts)")
@click.option("-m", "--module", default=None, help="Only show events of this module")
@click.option("-b", "--batch", default=None, help="Only show events for this batch_id")
@click.option("-n", "--network", default=None, help="Network name (default: testnet)")
@click.option("-i", "--interval", type=click.IntRange(min=1), default=None,
              help="Polling interval in milliseconds (default: 5000)")
@click.option("--page-size", type=click.IntRange(min=1), default=None,
              help="Transactions fetched per poll (default: 50)")
@click.option("--state-db", default=None, help="Persist tracker watermarks in this SQLite file")
@click.pass_context
def track(
    ctx: click.Context,
    addresses: tuple[str, ...],
    module: str | None,
    batch: str | None,
    network: str | None,
    interval: int | None,
    page_size: int | None,
    state_db: str | None,
) -> None:
    """Track supply-chain events emitted by an account's transactions."""
    accounts = _require_addresses(addresses)
    cfg = _load(ctx)

    if module:
        cfg.tracker.module = module
    if interval:
        cfg.tracker.interval_ms = interval
    if page_size:
        cfg.tracker.page_size = page_size
    if state_db:
        cfg.tracker.state_db = state_db

    selected = resolve_network(cfg, network)
    criteria = FilterCriteria(module=cfg.tracker.module or None, batch_id=batch or None)

    click.echo(f"Tracking {', '.join(accounts)} on {selected}")
    click.echo(f"  Filters:  {criteria.describe()}")
    click.echo(f"  Interval: {cfg.tracker.interval_ms} ms")
    click.echo("Tracker running. Listening for events.")
    try:
        asyncio.run(run_tracker(cfg, accounts, _emit_line, criteria=criteria, network=selected))
    except MoveForgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ── Simulation ─────────────────────────────────────────


def _show_simulation(result: SimulationResult) -> None:
    click.echo("Simulation Results")
    _kv("Status", "Success" if result.success else "Failed")
    _kv("Gas Used", result.gas_used)
    _kv("Gas Price", result.gas_unit_price)
    _kv("Total Cost", f"{result.total_cost} Octas")
    _kv("VM Status", result.vm_status)

    if result.changes:
        click.echo("")
        click.echo("Storage Changes")
        for i, change in enumerate(result.changes, 1):
            data = change.get("data") if isinstance(change.get("data"), dict) else {}
            click.echo(f"  Change {i}: {change.get('type')}")
            if change.get("address"):
                _kv("  Address", change["address"])
            resource = change.get("resource") or data.get("type")
            if resource:
                _kv("  Resource", resource)
            for key, value in data.items():
                _kv(f"    {key}", json.dumps(value, default=str))

    if result.events:
        click.echo("")
        click.echo("Events Emitted")
        for i, raw in enumerate(result.events, 1):
            click.echo(f"  Event {i}: {format_event(EventRecord.from_json(raw))}")


@cli.command()
@click.option("-f", "--function", "function", default=None, help="Entry function to simulate")
@click.option("-a", "--args", "args", multiple=True, help="Function argument, e.g. u64:100 (repeatable)")
@click.option("-s", "--sender", default="0x1", help="Sender address")
@click.option("--module-name", default="hello_move", help="Module that defines the function")
@click.option("-n", "--network", default=None, help="Network name")
@click.pass_context
def simulate(
    ctx: click.Context,
    function: str | None,
    args: tuple[str, ...],
    sender: str,
    module_name: str,
    network: str | None,
) -> None:
    """Dry-run an entry function call. Nothing is submitted on-chain."""
    if not function:
        click.echo("Error: Function name is required. Use --function <name>", err=True)
        click.echo("Example: moveforge simulate --function initialize --args u64:100", err=True)
        sys.exit(1)

    cfg = _load(ctx)
    client = _client(cfg, network)
    profile = cfg.profile(client.network)
    module_address = (profile.module_address if profile else None) or sender

    click.echo(f"Function: {module_address}::{module_name}::{function}")
    click.echo(f"Sender:   {sender}")
    if args:
        click.echo(f"Args:     {', '.join(args)}")
    click.echo(f"Network:  {client.network}")
    click.echo("")

    txn = build_simulation_txn(function, args, sender, module_address, module_name)

    async def _simulate() -> SimulationResult:
        async with client:
            return SimulationResult.from_response(await client.simulate_transaction(txn))

    try:
        result = asyncio.run(_simulate())
    except (MoveForgeError, ValueError) as exc:
        click.echo(f"\nSimulation failed: {exc}", err=True)
        click.echo("Check the function name, argument types, and that the module is deployed.", err=True)
        sys.exit(1)

    _show_simulation(result)
    click.echo("")
    click.echo("Note: this was a simulation. No transaction was submitted.")


# ── Networks ───────────────────────────────────────────


@cli.group()
def network():
    """Manage networks in moveforge.config.json."""
    pass


@network.command("list")
@click.pass_context
def network_list(ctx: click.Context) -> None:
    """List known networks."""
    cfg = _load(ctx)
    for name, profile in cfg.networks.items():
        marker = "*" if name == cfg.network else " "
        click.echo(f"{marker} {name}")
        click.echo(f"    RPC:      {profile.rpc_url}")
        click.echo(f"    Chain ID: {profile.chain_id or 'auto'}")
        if profile.faucet_url:
            click.echo(f"    Faucet:   {profile.faucet_url}")


def _valid_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise click.BadParameter("Please enter a valid HTTP/HTTPS URL")
    return value


@network.command("add")
@click.argument("name")
@click.option("--url", default=None, help="RPC URL")
@click.option("--chain-id", default=None, help="Chain ID")
@click.option("--faucet", default=None, help="Faucet URL")
@click.pass_context
def network_add(
    ctx: click.Context, name: str, url: str | None, chain_id: str | None, faucet: str | None,
) -> None:
    """Add (or replace) a network."""
    if url is None:
        url = click.prompt("RPC URL", value_proc=_valid_url)
    else:
        try:
            _valid_url(url)
        except click.BadParameter as exc:
            click.echo(f"Error: {exc.message}", err=True)
            sys.exit(1)

    data = _project_data(ctx)
    block: dict = {"rpc": url}
    if chain_id:
        block["chain_id"] = int(chain_id) if chain_id.isdigit() else chain_id
    if faucet:
        block["faucet"] = faucet
    data.setdefault("networks", {})[name] = block
    data.setdefault("deployment", {}).setdefault("defaultNetwork", "testnet")

    path = save_project_file(ctx.obj["project_path"], data)
    click.echo(f"Network '{name}' added to {path}")
    click.echo(f"  RPC URL: {url}")
    if chain_id:
        click.echo(f"  Chain ID: {chain_id}")
    if faucet:
        click.echo(f"  Faucet: {faucet}")


@network.command("remove")
@click.argument("name")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def network_remove(ctx: click.Context, name: str, yes: bool) -> None:
    """Remove a network from the project file."""
    data = _project_data(ctx)
    networks = data.get("networks") or {}
    if name not in networks:
        click.echo(f"Error: Network '{name}' not found", err=True)
        sys.exit(1)

    if not yes:
        click.confirm(f"Remove network '{name}'?", abort=True)

    del networks[name]
    if default_network(data) == name:
        data["deployment"]["defaultNetwork"] = next(iter(networks), "testnet")

    save_project_file(ctx.obj["project_path"], data)
    click.echo(f"Network '{name}' removed")


@network.command("switch")
@click.argument("name")
@click.pass_context
def network_switch(ctx: click.Context, name: str) -> None:
    """Make NAME the default network."""
    cfg = _load(ctx)
    if name not in cfg.networks:
        click.echo(f"Error: Network '{name}' not found", err=True)
        click.echo(f"Available networks: {', '.join(cfg.networks)}", err=True)
        sys.exit(1)

    data = _project_data(ctx)
    data.setdefault("deployment", {})["defaultNetwork"] = name
    save_project_file(ctx.obj["project_path"], data)
    click.echo(f"Switched to network '{name}'")
    click.echo(f"  RPC URL: {cfg.networks[name].rpc_url}")


@network.command("current")
@click.pass_context
def network_current(ctx: click.Context) -> None:
    """Show the default network."""
    cfg = _load(ctx)
    profile = cfg.profile()
    click.echo(cfg.network)
    if profile is None:
        click.echo("  (not configured)")
        return
    click.echo(f"  RPC:      {profile.rpc_url}")
    click.echo(f"  Chain ID: {profile.chain_id or 'auto'}")
    if profile.faucet_url:
        click.echo(f"  Faucet:   {profile.faucet_url}")


# ── Lookups ────────────────────────────────────────────


@cli.command()
@click.argument("address")
@click.option("-n", "--network", default=None, help="Network name")
@click.pass_context
def account(ctx: click.Context, address: str, network: str | None) -> None:
    """Show an account's sequence number, resources and modules."""
    cfg = _load(ctx)
    client = _client(cfg, network)

    async def _account():
        async with client:
            info = await client.get_account(address)
            resources = await client.get_account_resources(address)
            modules = await client.get_account_modules(address)
        return info, resources, modules

    try:
        info, resources, modules = asyncio.run(_account())
    except MoveForgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Account {address} ({client.network})")
    _kv("Sequence", info.get("sequence_number"))
    _kv("Auth key", info.get("authentication_key"))
    _kv("Resources", len(resources or []))
    _kv("Modules", len(modules or []))
    for mod in modules or []:
        name = (mod.get("abi") or {}).get("name") or "?"
        click.echo(f"    - {name}")
    _kv("Explorer", client.account_explorer_url(address))


@cli.command()
@click.argument("txn_hash")
@click.option("-w", "--wait", is_flag=True, help="Wait until the transaction is committed")
@click.option("-n", "--network", default=None, help="Network name")
@click.pass_context
def tx(ctx: click.Context, txn_hash: str, wait: bool, network: str | None) -> None:
    """Show a transaction by hash."""
    cfg = _load(ctx)
    client = _client(cfg, network)

    async def _tx():
        async with client:
            if wait:
                return await client.wait_for_transaction(
                    txn_hash, cfg.rpc.confirm_timeout, cfg.rpc.confirm_poll,
                )
            return await client.get_transaction(txn_hash)

    try:
        txn = asyncio.run(_tx())
    except MoveForgeError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Transaction {txn_hash}")
    _kv("Version", txn.get("version", "pending"))
    _kv("Success", txn.get("success", "pending"))
    _kv("VM Status", txn.get("vm_status", "-"))
    _kv("Gas Used", txn.get("gas_used", "-"))
    for raw in txn.get("events") or []:
        click.echo(f"    {format_event(EventRecord.from_json(raw))}")
    _kv("Explorer", client.explorer_url(txn_hash))


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the resolved configuration."""
    cfg = _load(ctx)
    profile = cfg.profile()
    click.echo(f"Project:    {cfg.project_name or '(none)'}")
    click.echo(f"File:       {cfg.project_path or '(not found)'}")
    click.echo(f"Network:    {cfg.network}")
    click.echo(f"RPC URL:    {profile.rpc_url if profile else '(unknown network)'}")
    click.echo(f"Module:     {cfg.tracker.module}")
    click.echo(f"Interval:   {cfg.tracker.interval_ms} ms")
    click.echo(f"Page size:  {cfg.tracker.page_size}")
    click.echo(f"State DB:   {cfg.tracker.state_db or '(in memory)'}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
