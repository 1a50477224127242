"""CLI entry point for inspecting a custody tenant.

Provide read-only Typer commands that list vault accounts, supported assets,
and transactions through the authenticated custody API client. Credentials
come from ``config/settings.yaml`` and the environment.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, TypeVar

import typer

from custody_tools.clients.custody.exceptions import CustodyError
from custody_tools.clients.custody.models import TransactionFilter, TransactionStatus
from custody_tools.clients.custody.sdk import CustodySDK
from custody_tools.core.config import ConfigError
from custody_tools.core.timestamps import parse_timestamp_ms

app = typer.Typer(help="Inspect custody vault accounts, assets, and transactions")

_T = TypeVar("_T")

_MAX_NAME_LEN = 38


def _configure_logging(verbose: bool) -> None:
    """Enable per-request debug logging when ``--verbose`` is given."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log each API request")] = False,
) -> None:
    """Inspect a custody tenant through the authenticated API."""
    _configure_logging(verbose)


def _run(call: Callable[[CustodySDK], Awaitable[_T]]) -> _T:
    """Run one SDK call, turning custody and config errors into a clean CLI exit."""

    async def _inner() -> _T:
        async with CustodySDK.from_config() as sdk:
            return await call(sdk)

    try:
        return asyncio.run(_inner())
    except (CustodyError, ConfigError, ValueError, FileNotFoundError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _parse_ts_option(value: str) -> int:
    """Parse a CLI timestamp option, raising BadParameter on failure."""
    try:
        return parse_timestamp_ms(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _parse_status(value: str) -> TransactionStatus:
    try:
        return TransactionStatus(value.upper())
    except ValueError as exc:
        valid = ", ".join(s.value for s in TransactionStatus)
        raise typer.BadParameter(f"Must be one of: {valid}") from exc


def _truncate(text: str) -> str:
    return text[:_MAX_NAME_LEN] if len(text) > _MAX_NAME_LEN else text


@app.command()
def vaults() -> None:
    """List vault accounts with their asset counts."""
    accounts: list[dict[str, Any]] = _run(lambda sdk: sdk.get_vault_accounts())
    if not accounts:
        typer.echo("No vault accounts found")
        return

    typer.echo(f"\n{'ID':<10} {'Name':<40} {'Hidden':>6} {'Assets':>6}")
    typer.echo("-" * 65)
    for account in accounts:
        hidden = "yes" if account.get("hiddenOnUI") else "no"
        assets = account.get("assets") or []
        name = _truncate(str(account.get("name", "")))
        typer.echo(f"{account.get('id', ''):<10} {name:<40} {hidden:>6} {len(assets):>6}")


@app.command()
def vault(
    vault_account_id: Annotated[str, typer.Argument(help="Vault account ID")],
) -> None:
    """Show a single vault account as JSON."""
    account = _run(lambda sdk: sdk.get_vault_account_by_id(vault_account_id))
    typer.echo(json.dumps(account, indent=2, sort_keys=True))


@app.command()
def assets() -> None:
    """List assets supported by the platform."""
    supported: list[dict[str, Any]] = _run(lambda sdk: sdk.get_supported_assets())
    typer.echo(f"\n{'ID':<20} {'Name':<40} {'Type':<16}")
    typer.echo("-" * 78)
    for asset in supported:
        name = _truncate(str(asset.get("name", "")))
        typer.echo(f"{asset.get('id', ''):<20} {name:<40} {asset.get('type', ''):<16}")


@app.command()
def transactions(
    status: Annotated[str, typer.Option(help="Only transactions with this status")] = "",
    after: Annotated[str, typer.Option(help="Created after (ISO 8601 or Unix timestamp)")] = "",
    before: Annotated[str, typer.Option(help="Created before (ISO 8601 or Unix timestamp)")] = "",
    limit: Annotated[int, typer.Option(help="Maximum number of results")] = 50,
) -> None:
    """List transactions matching a filter."""
    transaction_filter = TransactionFilter(
        status=_parse_status(status) if status else None,
        after=_parse_ts_option(after) if after else None,
        before=_parse_ts_option(before) if before else None,
        limit=limit,
    )
    results: list[dict[str, Any]] = _run(lambda sdk: sdk.get_transactions(transaction_filter))
    if not results:
        typer.echo("No transactions found")
        return

    typer.echo(f"\n{'ID':<38} {'Status':<24} {'Asset':<12} {'Amount':>16}")
    typer.echo("-" * 93)
    for tx in results:
        typer.echo(
            f"{tx.get('id', ''):<38} {tx.get('status', ''):<24} "
            f"{tx.get('assetId', ''):<12} {tx.get('amount', ''):>16}"
        )


def main() -> None:
    """Run the explorer CLI application."""
    app()


if __name__ == "__main__":
    main()
