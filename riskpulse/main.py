from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import NoReturn, Optional

import psycopg
import typer
from rich.console import Console
from rich.live import Live

from riskpulse.config import get_settings
from riskpulse.domain.models import RecordKind
from riskpulse.errors import RiskPulseError
from riskpulse.infrastructure.db_factory import build_dsn, get_sync_connection
from riskpulse.infrastructure.gateway import InMemoryGateway, PersistenceGateway, PostgresGateway
from riskpulse.ingest.pipeline import IngestionPipeline
from riskpulse.reporter import print_view, render_view
from riskpulse.utils.logging import configure_logging
from riskpulse.views.live import LiveView

app = typer.Typer(help="riskpulse: organizational risk metrics ingestion and dashboard CLI.")

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

_KIND_HELP = "Record kind: risk, prediction or employee."


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _gateway(memory: bool) -> PersistenceGateway:
    if memory:
        return InMemoryGateway(owner_id=get_settings().owner_id)
    return PostgresGateway()


def _fail(exc: Exception) -> NoReturn:
    typer.echo(str(exc), err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"env={settings.app_env} owner={settings.owner_id} "
        f"validation={settings.validation_mode} refresh={settings.refresh_interval_seconds:g}s"
    )


@app.command("init-db")
def init_db(
    schema: Path = typer.Option(SCHEMA_PATH, "--schema", help="SQL file creating the tables."),
    dsn: Optional[str] = typer.Option(None, "--dsn", help="Override the DSN built from settings."),
) -> None:
    """
    Create the risk, prediction and employee tables if they do not exist.
    """
    _setup()
    try:
        ddl = schema.read_text(encoding="utf-8")
        with get_sync_connection(dsn or build_dsn()) as conn:
            conn.execute(ddl)
    except (OSError, psycopg.Error) as exc:
        _fail(exc)
    typer.echo(f"Schema applied from {schema}")


@app.command()
def upload(
    kind: RecordKind = typer.Argument(..., help=_KIND_HELP),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    collect_all: bool = typer.Option(
        False, "--collect-all", help="Report every invalid row instead of stopping at the first."
    ),
    memory: bool = typer.Option(False, "--memory", help="Use a throwaway in-memory store."),
) -> None:
    """
    Validate a CSV file and store it as one batch.
    """
    _setup()
    gateway = _gateway(memory)
    pipeline = IngestionPipeline(gateway, validation_mode="collect_all" if collect_all else None)
    try:
        stored = pipeline.ingest(file, kind)
    except RiskPulseError as exc:
        _fail(exc)
    typer.echo(f"Stored {len(stored)} {kind.value} record(s) in {kind.table}.")


@app.command()
def show(
    kind: RecordKind = typer.Argument(..., help=_KIND_HELP),
    limit: int = typer.Option(20, "--limit", "-n", help="Rows to list (0 for all)."),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", exists=True, dir_okay=False, help="Ingest this CSV first."
    ),
    memory: bool = typer.Option(False, "--memory", help="Use a throwaway in-memory store."),
) -> None:
    """
    Fetch a collection and print its summary and latest records.
    """
    _setup()
    gateway = _gateway(memory)
    try:
        if file is not None:
            IngestionPipeline(gateway).ingest(file, kind)
        records = gateway.fetch_all(kind)
    except RiskPulseError as exc:
        _fail(exc)
    print_view(kind, records, limit=limit)


@app.command()
def watch(
    kind: RecordKind = typer.Argument(..., help=_KIND_HELP),
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", help="Refresh interval in seconds (default from settings)."
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Rows to list (0 for all)."),
) -> None:
    """
    Keep a collection on screen, re-rendering whenever it changes.
    """
    _setup()
    settings = get_settings()
    console = Console()
    period = interval if interval is not None else settings.refresh_interval_seconds

    with Live(console=console, auto_refresh=False) as live:

        def rerender(view: LiveView) -> None:
            live.update(render_view(view.kind, view.records, view.error, limit=limit), refresh=True)

        # the gateway subscription already polls; no second refresh loop
        gateway = PostgresGateway(poll_interval_seconds=period)
        view = LiveView(gateway, kind, on_update=rerender)
        try:
            view.start()
        except RiskPulseError as exc:
            _fail(exc)
        try:
            while True:
                time.sleep(1)
        finally:
            view.stop()
            gateway.close()


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
