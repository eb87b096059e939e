"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from questrade.adapters.http_client import build_async_client
from questrade.cli.ui_components import mask_secret, print_banner
from questrade.core.config import AppSettings, write_user_env_vars
from questrade.core.domain.environment import Environment
from questrade.core.errors import QuestradeError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run(
    probe: bool = typer.Option(True, "--probe/--no-probe", help="Probe the login host over HTTP."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    print_banner(_console, settings.environment)

    table = Table(title="questrade doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    if settings.consumer_key:
        table.add_row("Consumer key", "OK", mask_secret(settings.consumer_key))
    else:
        table.add_row("Consumer key", "MISSING", "Run `questrade doctor setup`")
    if settings.refresh_token is not None and settings.refresh_token.get_secret_value():
        table.add_row("Refresh token", "OK", mask_secret(settings.refresh_token))
    else:
        table.add_row("Refresh token", "MISSING", "Generate one in the Questrade app hub")
    table.add_row("Environment", "OK", settings.environment.label())

    try:
        endpoints = settings.environment.endpoints()
    except QuestradeError as exc:
        table.add_row("OAuth endpoints", "FAIL", str(exc))
        _console.print(table)
        raise typer.Exit(code=1)
    table.add_row("Authorize URL", "OK", endpoints.authorize_url)
    table.add_row("Token URL", "OK", endpoints.token_url)
    table.add_row(
        "Timeouts",
        "OK",
        f"total {settings.http_timeout_seconds:g}s, connect {settings.connect_timeout_seconds:g}s",
    )

    # Connectivity (best-effort)
    if probe:
        ok_http, detail_http = asyncio.run(_check_http(str(settings.environment.host()), settings))
        table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    consumer_key = typer.prompt("Consumer key").strip()
    refresh_token = typer.prompt("Refresh token", hide_input=True).strip()
    environment = typer.prompt(
        "Environment (practice/production)",
        default=Environment.default().value,
        show_default=True,
    ).strip().lower()

    if not consumer_key or not refresh_token:
        raise typer.BadParameter("consumer key and refresh token are required")
    try:
        Environment(environment)
    except ValueError:
        raise typer.BadParameter(f"unknown environment {environment!r}") from None

    env_path = write_user_env_vars(
        {
            "QUESTRADE_CONSUMER_KEY": consumer_key,
            "QUESTRADE_REFRESH_TOKEN": refresh_token,
            "QUESTRADE_ENVIRONMENT": environment,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
