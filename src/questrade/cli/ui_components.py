"""UI components for the CLI (Rich).

- Keeps command logic apart from rendering.
- Tables and panels are reused by several commands.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import SecretStr
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from questrade.core.domain.accounts import Accounts, Activity, ActivityType
from questrade.core.domain.environment import Environment
from questrade.core.domain.markets import Candle, Market, Quote
from questrade.core.domain.models import ApiToken, ServerTime, utcnow


def print_banner(console: Console, environment: Environment) -> None:
    title = Text("questrade", style="bold cyan")
    subtitle = Text(f"{environment.label()} • Accounts • Markets", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(0, 4)))


def mask_secret(secret: SecretStr | str | None, *, visible: int = 4) -> str:
    """Show the first `visible` characters of a secret, mask the rest."""

    if secret is None:
        return "-"
    value = secret.get_secret_value() if isinstance(secret, SecretStr) else secret
    if not value:
        return "-"
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "…"


def _fmt_dt(value: datetime | None) -> str:
    return value.isoformat(timespec="seconds") if value else "-"


def build_token_panel(token: ApiToken, *, persisted_to: str | None = None) -> Panel:
    """Panel for a freshly issued `ApiToken` (secrets masked)."""

    remaining = int(token.expires_in(now=utcnow()).total_seconds())
    body = Text()
    body.append("API server:    ", style="bold")
    body.append(f"{token.api_server}\n")
    body.append("Access token:  ", style="bold")
    body.append(f"{mask_secret(token.access_token)}\n")
    body.append("Refresh token: ", style="bold")
    body.append(f"{mask_secret(token.refresh_token)}\n")
    body.append("Expires at:    ", style="bold")
    body.append(f"{_fmt_dt(token.expires_at)} ({remaining}s)")
    if persisted_to:
        body.append(f"\n\nRotated refresh token saved to {persisted_to}", style="dim")
    return Panel(body, title=Text("Access token", style="bold green"), border_style="green")


def build_accounts_table(accounts: Accounts) -> Table:
    table = Table(title="Accounts")
    table.add_column("Number", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Client type", style="white")
    table.add_column("Status", style="green")
    table.add_column("Primary", style="magenta")
    table.add_column("Billing", style="magenta")
    for account in accounts.accounts:
        table.add_row(
            account.number,
            account.account_type.value,
            account.client_account_type.value,
            account.status.value,
            "yes" if account.is_primary else "",
            "yes" if account.is_billing else "",
        )
    return table


def build_activities_table(activities: list[Activity]) -> Table:
    table = Table(title="Activities")
    table.add_column("Trade date", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Symbol", style="white")
    table.add_column("Description", style="dim")
    table.add_column("Net", style="green", justify="right")
    table.add_column("Currency", style="white")
    for activity in activities:
        kind = activity.activity_type
        table.add_row(
            _fmt_dt(activity.trade_date),
            kind.value if isinstance(kind, ActivityType) else kind,
            activity.symbol or "-",
            activity.description,
            f"{activity.net_amount:,.2f}",
            activity.currency.value,
        )
    return table


def build_time_panel(server_time: ServerTime) -> Panel:
    drift = (server_time.time - utcnow()).total_seconds()
    body = Text()
    body.append(f"{_fmt_dt(server_time.time)}\n")
    body.append(f"Local clock drift: {drift:+.1f}s", style="dim")
    return Panel(body, title="Server time", border_style="cyan")


def build_markets_table(markets: list[Market]) -> Table:
    table = Table(title="Markets")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Default venue", style="white")
    table.add_column("Opens", style="green")
    table.add_column("Closes", style="red")
    table.add_column("Snap quotes", style="magenta", justify="right")
    for market in markets:
        table.add_row(
            market.name,
            market.default_trading_venue,
            _fmt_dt(market.start_time),
            _fmt_dt(market.end_time),
            str(market.snap_quotes_limit),
        )
    return table


def build_quotes_table(quotes: list[Quote]) -> Table:
    table = Table(title="Quotes")
    table.add_column("Symbol", style="cyan", no_wrap=True)
    table.add_column("Id", style="dim", justify="right")
    table.add_column("Bid", style="green", justify="right")
    table.add_column("Ask", style="red", justify="right")
    table.add_column("Last", style="white", justify="right")
    table.add_column("Volume", style="magenta", justify="right")
    table.add_column("Halted", style="yellow")
    for quote in quotes:
        table.add_row(
            quote.symbol,
            str(quote.symbol_id),
            f"{quote.bid_price:.2f} x {quote.bid_size}",
            f"{quote.ask_price:.2f} x {quote.ask_size}",
            f"{quote.last_trade_price:.2f}",
            f"{quote.volume:,}",
            "HALTED" if quote.is_halted else "",
        )
    return table


def build_candles_table(candles: list[Candle], *, symbol_id: int) -> Table:
    table = Table(title=f"Candles #{symbol_id}")
    table.add_column("Start", style="cyan", no_wrap=True)
    table.add_column("Open", justify="right")
    table.add_column("High", style="green", justify="right")
    table.add_column("Low", style="red", justify="right")
    table.add_column("Close", justify="right")
    table.add_column("Volume", style="magenta", justify="right")
    for candle in candles:
        table.add_row(
            _fmt_dt(candle.start),
            f"{candle.open:.2f}",
            f"{candle.high:.2f}",
            f"{candle.low:.2f}",
            f"{candle.close:.2f}",
            f"{candle.volume:,}",
        )
    return table
