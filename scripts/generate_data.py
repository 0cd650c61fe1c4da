"""
Sample data generator for riskpulse.

Writes deterministic pseudo-random CSV uploads for each record kind, in the
exact format the ingestion pipeline accepts, and optionally pushes them
through the pipeline into Postgres.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

import typer

from riskpulse.domain.models import RecordKind
from riskpulse.domain.schemas import schema_for
from riskpulse.errors import RiskPulseError
from riskpulse.infrastructure.gateway import PostgresGateway
from riskpulse.ingest.pipeline import IngestionPipeline

app = typer.Typer(help="Generate sample risk, prediction and employee CSV uploads.")

DEPARTMENTS = ["Engineering", "Sales", "Support", "Finance", "Operations"]


def _clamp(value: float) -> float:
    return round(min(max(value, 0.0), 100.0), 1)


def _generate_rows_csv(
    csv_path: Path,
    kind: RecordKind,
    rows: int,
    seed: int,
    start: datetime | None = None,
) -> None:
    """Write `rows` hourly samples with a header matching `kind`'s schema."""
    rng = random.Random(seed)
    start = start or datetime(2024, 3, 1, tzinfo=UTC)
    header = list(schema_for(kind).fields)

    # random walk so trends look like a real feed
    levels = [rng.uniform(20, 60) for _ in range(3)]

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for i in range(rows):
            ts = (start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M:%S")
            levels = [_clamp(level + rng.gauss(0, 4)) for level in levels]
            if kind is RecordKind.EMPLOYEE:
                workload, satisfaction = levels[0], levels[1]
                writer.writerow([ts, workload, satisfaction, rng.choice(DEPARTMENTS)])
            else:
                writer.writerow([ts, *levels])


@app.command()
def main(
    kind: RecordKind = typer.Argument(..., help="Record kind: risk, prediction or employee."),
    rows: int = typer.Option(48, "--rows", "-r", help="Number of rows to generate."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    load: bool = typer.Option(
        False,
        "--load",
        help="Ingest the generated file into Postgres through the pipeline.",
    ),
) -> None:
    """
    Generate a sample upload and optionally ingest it.
    """
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="riskpulse_csv_"))
        csv_path = tmpdir / f"{kind.table}.csv"

    _generate_rows_csv(csv_path, kind=kind, rows=rows, seed=seed)
    typer.echo(f"Wrote {rows:,} {kind.value} rows -> {csv_path} (seed={seed})")

    if not load:
        return

    try:
        stored = IngestionPipeline(PostgresGateway()).ingest(csv_path, kind)
    except RiskPulseError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Stored {len(stored):,} rows in {kind.table}.")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
