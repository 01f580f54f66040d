"""
cli.py — Click CLI entrypoint for the staking API.

Usage:
    oxt-api serve --port 3001
    oxt-api yield 0xabc...
    oxt-api ranking --limit 20
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Any

import click
import structlog

from oxt_shared.config import settings
from oxt_shared.units import is_valid_address
from oxt_api.context import AppContext
from oxt_api.utils.logging import configure_logging

log = structlog.get_logger(__name__)


def _run(action: Callable[[AppContext], Awaitable[Any]]) -> Any:
    """Run one coroutine against a freshly built context, tearing it down afterwards."""

    async def _main() -> Any:
        ctx = AppContext.build(settings)
        try:
            return await action(ctx)
        finally:
            await ctx.shutdown()

    return asyncio.run(_main())


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
def main(log_level: str) -> None:
    """OXT validator and delegator staking API."""
    configure_logging(settings, log_level=log_level)


@main.command()
@click.option("--host", default=settings.api_host, show_default=True)
@click.option("--port", default=settings.api_port, type=int, show_default=True)
def serve(host: str, port: int) -> None:
    """Run the HTTP API under uvicorn."""
    import uvicorn

    log.info("server_starting", host=host, port=port, data_source=settings.data_source)
    uvicorn.run("oxt_api.app:app", host=host, port=port)


@main.command(name="yield")
@click.argument("address")
def yield_report(address: str) -> None:
    """Print the yield report for one validator as JSON."""
    if not is_valid_address(address):
        raise click.BadParameter(f"not an address: {address}", param_hint="ADDRESS")

    result = _run(lambda ctx: ctx.apr.validator_yield(address))
    if result.degraded:
        click.echo(f"warning: degraded result ({result.reason})", err=True)
    click.echo(json.dumps(result.value.model_dump(mode="json"), indent=2))


@main.command()
@click.option("--limit", default=10, type=click.IntRange(1, 100), show_default=True)
def ranking(limit: int) -> None:
    """Print the top delegators by total stake."""
    result = _run(lambda ctx: ctx.ranking.top(limit))
    page = result.value
    if not page.entries:
        click.echo("No delegators with active stake.")
        return
    for entry in page.entries:
        click.echo(
            f"  {entry.rank:>4}  {entry.delegator_address}  "
            f"{entry.total_stake:>24} OXT  {entry.percent_of_total}%"
        )
    click.echo(
        f"{page.summary.total_delegators} delegators, {page.summary.total_staked} OXT staked"
    )
    if result.degraded:
        click.echo(f"warning: degraded result ({result.reason})", err=True)
