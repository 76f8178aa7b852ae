"""CLI entry point for whoop-cli."""

import asyncio
import json
from collections.abc import Coroutine
from datetime import UTC, date, datetime, timedelta
from typing import Any, NoReturn, TypeVar

import structlog
import typer
from pydantic import ValidationError

from whoop_cli import __version__
from whoop_cli.api.client import WhoopClient
from whoop_cli.auth import oauth
from whoop_cli.auth.tokens import TokenManager, TokenStore, default_token_store
from whoop_cli.core.config import settings
from whoop_cli.core.errors import ExitCode, RateLimitError, WhoopError
from whoop_cli.core.log import configure_logging
from whoop_cli.models.whoop import CombinedOutput, DataType, WhoopSleep
from whoop_cli.services.history import HISTORY_DAYS, SleepHistoryStore
from whoop_cli.services.wake import WakeDetector
from whoop_cli.utils.dates import format_date, get_whoop_day, parse_date_or_default
from whoop_cli.utils.format import format_pretty, format_summary, format_wake_result

logger = structlog.get_logger()

T = TypeVar("T")

app = typer.Typer(
    name="whoop",
    help="CLI for fetching WHOOP health data",
    no_args_is_help=True,
)
auth_app = typer.Typer(help="Manage authentication", no_args_is_help=True)
app.add_typer(auth_app, name="auth")

WAKE_FETCH_LIMIT = 10


@app.callback()
def _configure() -> None:
    configure_logging(settings.log_level)


# =============================================================================
# Wiring (patched in tests)
# =============================================================================


def get_token_store() -> TokenStore:
    return default_token_store(settings)


def get_token_manager() -> TokenManager:
    return TokenManager(get_token_store(), settings)


def get_client() -> WhoopClient:
    return WhoopClient(get_token_manager())


def get_history_store() -> SleepHistoryStore:
    return SleepHistoryStore(settings.history_file)


# =============================================================================
# Helpers
# =============================================================================


def handle_error(error: Exception) -> NoReturn:
    """Report an error on stderr and exit with its code."""
    if isinstance(error, WhoopError):
        typer.echo(f"Error: {error.message}", err=True)
        if isinstance(error, RateLimitError) and error.retry_after:
            typer.echo(f"Retry after: {error.retry_after} seconds", err=True)
        raise typer.Exit(int(error.exit_code))

    logger.error("Unexpected error", error=str(error), exc_info=True)
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(int(ExitCode.GENERAL_ERROR))


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, converting failures into CLI exits."""
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except Exception as e:  # noqa: BLE001
        handle_error(e)


def echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def output(data: CombinedOutput, pretty: bool) -> None:
    """Print fetched data as JSON or pretty text."""
    typer.echo(format_pretty(data) if pretty else data.to_json())


async def fetch(
    types: list[DataType],
    day: str,
    limit: int | None = None,
    all_pages: bool = False,
) -> CombinedOutput:
    async with get_client() as client:
        return await client.fetch_data(types, day, limit=limit, all_pages=all_pages)


def primary_sleep(sleeps: list[WhoopSleep]) -> WhoopSleep | None:
    """The main (non-nap) sleep, if any."""
    return next((s for s in sleeps if not s.nap), None)


# =============================================================================
# Auth commands
# =============================================================================


@auth_app.command()
def login() -> None:
    """Log in via the browser (OAuth2)."""
    run(oauth.login(get_token_store(), settings))


@auth_app.command()
def logout() -> None:
    """Delete stored tokens."""
    try:
        oauth.logout(get_token_store())
    except WhoopError as e:
        handle_error(e)


@auth_app.command()
def status() -> None:
    """Show authentication status."""
    try:
        oauth.status(get_token_store())
    except WhoopError as e:
        handle_error(e)


@auth_app.command()
def refresh() -> None:
    """Refresh the access token now."""
    run(oauth.refresh(get_token_manager()))


# =============================================================================
# Data commands
# =============================================================================

DateOption = typer.Option(None, "--date", "-d", help="Date in ISO format (YYYY-MM-DD)")
LimitOption = typer.Option(25, "--limit", "-l", help="Max results per page")
AllOption = typer.Option(False, "--all", "-a", help="Fetch all pages")
PrettyOption = typer.Option(False, "--pretty", "-p", help="Human-readable output")


def _add_data_command(name: str, help_text: str, data_type: DataType) -> None:
    def command(
        date_: str | None = DateOption,
        limit: int = LimitOption,
        all_pages: bool = AllOption,
        pretty: bool = PrettyOption,
    ) -> None:
        async def _go() -> CombinedOutput:
            return await fetch([data_type], parse_date_or_default(date_), limit, all_pages)

        output(run(_go()), pretty)

    command.__doc__ = help_text
    app.command(name=name, help=help_text)(command)


_add_data_command("profile", "Fetch user profile", DataType.PROFILE)
_add_data_command("body", "Fetch body measurements", DataType.BODY)
_add_data_command("sleep", "Fetch sleep data", DataType.SLEEP)
_add_data_command("recovery", "Fetch recovery data", DataType.RECOVERY)
_add_data_command("workout", "Fetch workout data", DataType.WORKOUT)
_add_data_command("cycle", "Fetch cycle (daily strain) data", DataType.CYCLE)


@app.command("fetch")
def fetch_combined(
    ctx: typer.Context,
    date_: str | None = DateOption,
    limit: int = LimitOption,
    all_pages: bool = AllOption,
    pretty: bool = PrettyOption,
    sleep: bool = typer.Option(False, "--sleep", help="Include sleep data"),
    recovery: bool = typer.Option(False, "--recovery", help="Include recovery data"),
    workout: bool = typer.Option(False, "--workout", help="Include workout data"),
    cycle: bool = typer.Option(False, "--cycle", help="Include cycle data"),
    profile: bool = typer.Option(False, "--profile", help="Include profile data"),
    body: bool = typer.Option(False, "--body", help="Include body measurements"),
) -> None:
    """Fetch several data types for one day in a single document."""
    selected = {
        DataType.SLEEP: sleep,
        DataType.RECOVERY: recovery,
        DataType.WORKOUT: workout,
        DataType.CYCLE: cycle,
        DataType.PROFILE: profile,
        DataType.BODY: body,
    }
    types = [t for t, wanted in selected.items() if wanted]

    if not types:
        typer.echo(ctx.get_help())
        return

    async def _go() -> CombinedOutput:
        return await fetch(types, parse_date_or_default(date_), limit, all_pages)

    output(run(_go()), pretty)


@app.command()
def summary(date_: str | None = DateOption) -> None:
    """One-line health summary."""

    async def _go() -> CombinedOutput:
        return await fetch(
            [DataType.RECOVERY, DataType.SLEEP, DataType.CYCLE], parse_date_or_default(date_)
        )

    typer.echo(format_summary(run(_go())))


# =============================================================================
# Wake detection
# =============================================================================


async def _seed_history(detector: WakeDetector, today: date) -> dict[str, Any]:
    """Fetch the primary sleep of each of the last HISTORY_DAYS days and seed them."""
    typer.echo(f"Seeding sleep history with last {HISTORY_DAYS} days...", err=True)

    sessions: list[WhoopSleep] = []
    async with get_client() as client:
        for offset in range(HISTORY_DAYS - 1, -1, -1):
            day = format_date(today - timedelta(days=offset))
            try:
                result = await client.fetch_data([DataType.SLEEP], day, limit=WAKE_FETCH_LIMIT)
            except (WhoopError, ValidationError) as e:
                logger.debug("Seed fetch failed", day=day, error=str(e))
                typer.echo(f"  ✗ {day}: no data", err=True)
                continue

            session = primary_sleep(result.sleep or [])
            if session is None:
                typer.echo(f"  ✗ {day}: no data", err=True)
                continue
            sessions.append(session)

    seeded = detector.seed(sessions)
    records = {r.date: r for r in detector.store.load()}
    for day in seeded.seeded:
        record = records.get(day)
        if record is not None:
            typer.echo(
                f"  ✓ {day}: {record.duration_hours:.1f}h, {record.cycles} cycles", err=True
            )
    for day in seeded.skipped:
        typer.echo(f"  ✗ {day}: not scored yet", err=True)

    typer.echo("Done! History seeded.", err=True)
    return {"seeded": True, "records": seeded.records, "skipped": len(seeded.skipped)}


@app.command()
def wake(
    pretty: bool = PrettyOption,
    seed: bool = typer.Option(
        False, "--seed", help="Seed history with recent sleep data (run once to initialize)"
    ),
) -> None:
    """Check if user is actually awake (adaptive sleep pattern detection)."""
    detector = WakeDetector(get_history_store())

    if seed:
        echo_json(run(_seed_history(detector, datetime.now(UTC).date())))
        return

    async def _go() -> CombinedOutput:
        return await fetch([DataType.SLEEP], get_whoop_day(), WAKE_FETCH_LIMIT)

    sleeps = run(_go()).sleep or []
    if not sleeps:
        echo_json(
            {
                "isAwake": False,
                "reason": "no_sleep_data",
                "message": "No sleep data available yet. User may still be asleep.",
            }
        )
        return

    session = primary_sleep(sleeps) or sleeps[0]

    try:
        result = detector.evaluate(session)
    except WhoopError as e:
        handle_error(e)

    typer.echo(format_wake_result(result) if pretty else result.to_json())


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"whoop-cli v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
