#!/usr/bin/env python3
"""
run_chains.py - CLI over the network registry and RPC client.

Usage:
    python run_chains.py networks
    python run_chains.py add --chain-id 0xfa --name Fantom --symbol FTM --rpc https://rpc.ftm.tools
    python run_chains.py switch 250
    python run_chains.py balance 1 0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045
    python run_chains.py fees 137
    python run_chains.py urls 42161
    python run_chains.py remove 250
"""

import asyncio
import json
import sys

import click

from chains.context import ChainContext
from config import Settings
from core.logging import get_logger, set_global_context, setup_logging
from core.models import AddChainParams
from core.exceptions import ValidationError
from core.validators import parse_chain_id

logger = get_logger("chains.cli")


def _context(ctx: click.Context) -> ChainContext:
    return ctx.obj["chains"]


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Override LOG_LEVEL",
)
@click.option("--data-dir", default=None, help="Override CHAINS_DATA_DIR")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, data_dir: str | None) -> None:
    """Inspect and manage networks, query chains over JSON-RPC."""
    settings = Settings.from_env()
    if data_dir:
        settings.data_dir = data_dir
    # stdout carries command output; logs go to stderr
    setup_logging(level=log_level or settings.log_level, json_output=settings.log_json, stream=sys.stderr)
    set_global_context(service="chains-cli")

    ctx.ensure_object(dict)
    ctx.obj["chains"] = ChainContext.from_settings(settings)


@cli.command()
@click.pass_context
def networks(ctx: click.Context) -> None:
    """List all networks, marking the current one."""
    registry = _context(ctx).registry
    for network in registry.all:
        marker = "*" if network.chain_id == registry.current.chain_id else " "
        origin = "user" if network.is_user_added else "built-in"
        fee = "eip1559" if network.eip1559 else "legacy"
        click.echo(f"{marker} {network.chain_id:>8}  {network.name:<20} {network.symbol:<6} {origin:<8} {fee}")


@cli.command()
@click.option("--chain-id", required=True, help="Chain id, decimal or 0x-hex")
@click.option("--name", default="", help="Chain name")
@click.option("--symbol", default="", help="Native currency symbol")
@click.option("--rpc", "rpc_urls", multiple=True, required=True, help="RPC URL (repeatable)")
@click.option("--explorer", default=None, help="Block explorer URL")
@click.pass_context
def add(ctx, chain_id, name, symbol, rpc_urls, explorer) -> None:
    """Add a user network, probing its first RPC URL."""
    chains = _context(ctx)
    params = AddChainParams(
        chain_id=chain_id,
        chain_name=name,
        currency_symbol=symbol,
        rpc_urls=list(rpc_urls),
        block_explorer_urls=[explorer] if explorer else [],
    )

    async def _add() -> bool:
        async with chains:
            return await chains.registry.add(params)

    if not _run(_add()):
        click.echo(f"Network {chain_id} was rejected", err=True)
        sys.exit(1)

    network = chains.registry.find(chain_id)
    click.echo(json.dumps(network.to_dict(), indent=2))


@cli.command()
@click.argument("chain_id")
@click.pass_context
def remove(ctx: click.Context, chain_id: str) -> None:
    """Remove a user network."""
    if not _context(ctx).registry.remove(chain_id):
        click.echo(f"{chain_id} is not a user network", err=True)
        sys.exit(1)
    click.echo(f"Removed {chain_id}")


@cli.command()
@click.argument("chain_id")
@click.pass_context
def switch(ctx: click.Context, chain_id: str) -> None:
    """Select the current network."""
    registry = _context(ctx).registry
    network = registry.find(chain_id)
    if network is None:
        click.echo(f"Unknown network {chain_id}", err=True)
        sys.exit(1)
    registry.switch(network)
    click.echo(f"Current network: {network.name} ({network.chain_id})")


@cli.command()
@click.argument("chain_id")
@click.pass_context
def urls(ctx: click.Context, chain_id: str) -> None:
    """Show candidate RPC endpoints in priority order."""
    try:
        parse_chain_id(chain_id)
    except ValidationError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    for url in _context(ctx).resolver.urls(chain_id):
        click.echo(url)


@cli.command()
@click.argument("chain_id")
@click.argument("address")
@click.pass_context
def balance(ctx: click.Context, chain_id: str, address: str) -> None:
    """Native balance (wei) and pending nonce of an address."""
    chains = _context(ctx)

    async def _query():
        async with chains:
            wei = await chains.client.get_balance(chain_id, address)
            nonce = await chains.client.get_transaction_count(chain_id, address)
            return wei, nonce

    wei, nonce = _run(_query())
    click.echo(json.dumps({"chain_id": chain_id, "address": address, "balance_wei": str(wei), "nonce": nonce}))


@cli.command()
@click.argument("chain_id")
@click.pass_context
def fees(ctx: click.Context, chain_id: str) -> None:
    """Current base fee and priority fee."""
    chains = _context(ctx)

    async def _estimate():
        async with chains:
            return await chains.fees.estimate(chain_id)

    estimate = _run(_estimate())
    click.echo(json.dumps(estimate.to_dict()))


if __name__ == "__main__":
    cli()
