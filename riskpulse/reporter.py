from __future__ import annotations

from typing import List, Optional, Sequence

from rich import box
from rich.console import Console, Group, RenderableType
from rich.table import Table
from rich.text import Text

from riskpulse.domain.models import EmployeeSample, RecordKind, RiskSample, StoredRecord
from riskpulse.views.summaries import (
    RISK_METRICS,
    department_breakdown,
    employee_metrics,
    latest_prediction,
    latest_risk_scores,
    risk_level,
    risk_trend,
)

_LEVEL_STYLES = {"High": "bold red", "Medium": "yellow", "Low": "green"}
_TREND_ARROWS = {"up": "▲", "down": "▼", "stable": "•"}


def _level(score: float) -> str:
    level = risk_level(score)
    return f"[{_LEVEL_STYLES[level]}]{level}[/{_LEVEL_STYLES[level]}]"


def records_table(kind: RecordKind, records: Sequence[StoredRecord], limit: int = 20) -> Table:
    """
    Render the most recent `limit` records of a collection, oldest first.
    """
    shown = list(records)[-limit:] if limit > 0 else list(records)
    table = Table(
        title=f"{kind.table} ({len(records):,} records)",
        box=box.ROUNDED,
        caption=f"Showing last {len(shown)} by timestamp" if shown else None,
    )
    table.add_column("Timestamp", style="cyan", no_wrap=True)

    if kind is RecordKind.EMPLOYEE:
        table.add_column("Department", style="magenta")
        table.add_column("Workload", justify="right")
        table.add_column("Satisfaction", justify="right")
        table.add_column("Resignation Risk", justify="right", style="bold")
        for record in shown:
            table.add_row(
                record.timestamp.isoformat(),
                record.department or "[dim]-[/dim]",
                f"{record.workload:g}",
                f"{record.satisfaction:g}",
                str(record.resignation_risk),
            )
    else:
        table.add_column("Financial", justify="right", style="green")
        table.add_column("Cyber", justify="right", style="blue")
        table.add_column("Reputation", justify="right", style="yellow")
        for record in shown:
            table.add_row(
                record.timestamp.isoformat(),
                f"{record.financial_risk:g}",
                f"{record.cyber_risk:g}",
                f"{record.reputation_risk:g}",
            )
    return table


def risk_summary_table(kind: RecordKind, records: Sequence[RiskSample]) -> Table:
    """Scores, levels and trends for a risk or prediction collection."""
    if kind is RecordKind.PREDICTION:
        scores = latest_prediction(records)
        title = "Latest prediction"
    else:
        scores = latest_risk_scores(records)
        title = "Risk overview (recent average)"

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Score", justify="right", style="bold")
    table.add_column("Level", justify="center")
    table.add_column("Trend", justify="right")

    values = (scores.financial, scores.cyber, scores.reputation)
    for metric, score in zip(RISK_METRICS, values):
        trend = risk_trend(records, metric)
        label = metric.replace("_risk", "").capitalize()
        table.add_row(
            label,
            f"{score:g}",
            _level(score),
            f"{_TREND_ARROWS[trend.direction]} {trend.change}%",
        )
    return table


def employee_summary_table(records: Sequence[EmployeeSample]) -> Group:
    """Headline employee metrics plus the per-department breakdown."""
    metrics = employee_metrics(records)
    headline = Table(title="Employee risk (recent average)", box=box.ROUNDED)
    headline.add_column("Workload", justify="right")
    headline.add_column("Satisfaction", justify="right")
    headline.add_column("Resignation Risk", justify="right", style="bold")
    headline.add_column("Records", justify="right", style="magenta")
    headline.add_column("Departments", justify="right", style="magenta")
    headline.add_row(
        f"{metrics.avg_workload}%",
        f"{metrics.avg_satisfaction}%",
        f"{metrics.avg_resignation_risk}% ({_level(metrics.avg_resignation_risk)})",
        f"{metrics.total_employees:,}",
        str(metrics.department_count),
    )

    departments = Table(title="By department", box=box.SIMPLE)
    departments.add_column("Department", style="cyan")
    departments.add_column("Employees", justify="right")
    departments.add_column("Avg Resignation Risk", justify="right")
    for summary in department_breakdown(records):
        departments.add_row(
            summary.department or "[dim](blank)[/dim]",
            str(summary.employees),
            f"{summary.avg_resignation_risk} ({_level(summary.avg_resignation_risk)})",
        )
    return Group(headline, departments)


def render_view(
    kind: RecordKind, records: Sequence[StoredRecord], error: Optional[str] = None, limit: int = 20
) -> RenderableType:
    """Full dashboard panel for one collection."""
    parts: List[RenderableType] = []
    if error:
        parts.append(Text(error, style="red"))
    if not records:
        parts.append(f"[yellow]No {kind.value} data available. Upload a CSV to begin.[/yellow]")
        return Group(*parts)

    if kind is RecordKind.EMPLOYEE:
        parts.append(employee_summary_table(records))  # type: ignore[arg-type]
    else:
        parts.append(risk_summary_table(kind, records))  # type: ignore[arg-type]
    parts.append(records_table(kind, records, limit=limit))
    return Group(*parts)


def print_view(
    kind: RecordKind,
    records: Sequence[StoredRecord],
    console: Optional[Console] = None,
    limit: int = 20,
) -> None:
    (console or Console()).print(render_view(kind, records, limit=limit))


__all__ = [
    "records_table",
    "risk_summary_table",
    "employee_summary_table",
    "render_view",
    "print_view",
]
