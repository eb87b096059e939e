"""`questrade` command line.

Every data command runs one session:

1. exchange the configured refresh token,
2. persist the rotated refresh token to the user `.env` (the old one is
   spent at this point),
3. run the query and render it.

Errors of the client taxonomy stop at the command boundary with a non-zero
exit code.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, TypeVar

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler

from questrade.adapters.client import Client
from questrade.cli import doctor
from questrade.cli.ui_components import (
    build_accounts_table,
    build_activities_table,
    build_candles_table,
    build_markets_table,
    build_quotes_table,
    build_time_panel,
    build_token_panel,
)
from questrade.core.config import AppSettings, write_user_env_vars
from questrade.core.domain.markets import Interval
from questrade.core.domain.models import ApiToken
from questrade.core.errors import ApiError, QuestradeError, TransportError

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Typed client for the Questrade REST API.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

_DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S%z"]


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO; keep it for --verbose only.
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)


def build_client(settings: AppSettings) -> Client:
    return Client.from_settings(settings)


def persist_rotation(token: ApiToken) -> str:
    """Store the new refresh token; the previous one is no longer valid."""

    path = write_user_env_vars({"QUESTRADE_REFRESH_TOKEN": token.refresh_token.get_secret_value()})
    return str(path)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


async def _session(
    settings: AppSettings,
    refresh_token: str,
    action: Callable[[Client, ApiToken], Awaitable[T]],
) -> tuple[ApiToken, str, T]:
    async with build_client(settings) as client:
        token = await client.refresh_token(refresh_token)
        try:
            saved_to = persist_rotation(token)
        except OSError as exc:
            # The previous refresh token is spent; this printout is the only copy left.
            _err_console.print(f"[red]Could not save the rotated refresh token:[/red] {exc}")
            _err_console.print("Store it as QUESTRADE_REFRESH_TOKEN before running another command:")
            _err_console.print(token.refresh_token.get_secret_value(), markup=False, highlight=False, soft_wrap=True)
            raise typer.Exit(code=1) from exc
        result = await action(client, token)
    return token, saved_to, result


def _run(action: Callable[[Client, ApiToken], Awaitable[T]]) -> tuple[ApiToken, str, T]:
    """Run one session, mapping client errors to an exit code."""

    settings = AppSettings()
    if settings.refresh_token is None or not settings.refresh_token.get_secret_value():
        _err_console.print("[red]QUESTRADE_REFRESH_TOKEN is not configured[/red] (run `questrade doctor setup`)")
        raise typer.Exit(code=1)

    try:
        return asyncio.run(_session(settings, settings.refresh_token.get_secret_value(), action))
    except ApiError as exc:
        _err_console.print(f"[red]API error {exc.code}:[/red] {exc.message}")
        raise typer.Exit(code=2) from exc
    except TransportError as exc:
        _err_console.print(f"[red]Network error:[/red] {exc} [dim](safe to retry)[/dim]")
        raise typer.Exit(code=3) from exc
    except QuestradeError as exc:
        _err_console.print(f"[red]{type(exc).__name__}:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _print_json(value: BaseModel | list[BaseModel]) -> None:
    if isinstance(value, BaseModel):
        _console.print_json(value.model_dump_json(by_alias=True))
        return
    _console.print_json(json.dumps([item.model_dump(mode="json", by_alias=True) for item in value]))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging (never prints secrets)."),
) -> None:
    configure_logging(verbose)


@app.command()
def refresh() -> None:
    """Exchange the configured refresh token and save the rotated one."""

    async def noop(client: Client, token: ApiToken) -> None:
        return None

    token, saved_to, _ = _run(noop)
    _console.print(build_token_panel(token, persisted_to=saved_to))


@app.command()
def time(as_json: bool = typer.Option(False, "--json", help="Print raw JSON.")) -> None:
    """Show the API server time."""

    _, _, server_time = _run(lambda client, token: client.time(token))
    if as_json:
        _print_json(server_time)
    else:
        _console.print(build_time_panel(server_time))


@app.command()
def accounts(as_json: bool = typer.Option(False, "--json", help="Print raw JSON.")) -> None:
    """List the accounts of the authenticated user."""

    _, _, data = _run(lambda client, token: client.accounts(token))
    if as_json:
        _print_json(data)
    else:
        _console.print(build_accounts_table(data))


@app.command()
def activities(
    account_id: str = typer.Argument(..., help="Account number."),
    start: Optional[datetime] = typer.Option(None, formats=_DATE_FORMATS, help="Start (UTC if no offset)."),
    end: Optional[datetime] = typer.Option(None, formats=_DATE_FORMATS, help="End (UTC if no offset)."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    """List account activities (default: the last 30 days)."""

    end_at = _as_utc(end) if end else datetime.now(timezone.utc)
    start_at = _as_utc(start) if start else end_at - timedelta(days=30)

    _, _, data = _run(lambda client, token: client.account_activities(token, account_id, start_at, end_at))
    if as_json:
        _print_json(data)
    else:
        _console.print(build_activities_table(data))


@app.command()
def markets(as_json: bool = typer.Option(False, "--json", help="Print raw JSON.")) -> None:
    """List markets and their trading hours."""

    _, _, data = _run(lambda client, token: client.markets(token))
    if as_json:
        _print_json(data)
    else:
        _console.print(build_markets_table(data))


@app.command()
def quotes(
    symbol_ids: List[int] = typer.Argument(..., help="One or more symbol ids."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    """Level 1 quotes for one or more symbol ids."""

    if len(symbol_ids) == 1:
        _, _, data = _run(lambda client, token: client.market_quotes_symbol(token, symbol_ids[0]))
    else:
        _, _, data = _run(lambda client, token: client.market_quotes_symbols(token, symbol_ids))
    if as_json:
        _print_json(data)
    else:
        _console.print(build_quotes_table(data))


@app.command()
def candles(
    symbol_id: int = typer.Argument(..., help="Symbol id."),
    start: datetime = typer.Option(..., formats=_DATE_FORMATS, help="Start (UTC if no offset)."),
    end: datetime = typer.Option(..., formats=_DATE_FORMATS, help="End (UTC if no offset)."),
    interval: Interval = typer.Option(Interval.ONE_DAY, help="Candle interval."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
) -> None:
    """Historical OHLCV candles for a symbol."""

    start_at, end_at = _as_utc(start), _as_utc(end)
    _, _, data = _run(lambda client, token: client.market_candles(token, symbol_id, start_at, end_at, interval))
    if as_json:
        _print_json(data)
    else:
        _console.print(build_candles_table(data, symbol_id=symbol_id))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
