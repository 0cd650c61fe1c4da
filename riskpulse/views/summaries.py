"""
Dashboard read model: pure summaries over ordered record snapshots.

Inputs are lists ordered ascending by timestamp, as returned by a gateway's
fetch_all. Nothing here re-validates records.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Literal, Sequence

from riskpulse.domain.models import EmployeeSample, RiskSample

RECENT_WINDOW = 5
HIGH_RISK_THRESHOLD = 60
MEDIUM_RISK_THRESHOLD = 30

RiskMetric = Literal["financial_risk", "cyber_risk", "reputation_risk"]
RISK_METRICS: tuple[RiskMetric, ...] = ("financial_risk", "cyber_risk", "reputation_risk")


def _round(value: float) -> int:
    # dashboards round half-up
    return math.floor(value + 0.5)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


@dataclass(frozen=True)
class RiskScores:
    financial: float
    cyber: float
    reputation: float


@dataclass(frozen=True)
class Trend:
    direction: Literal["up", "down", "stable"]
    change: int


@dataclass(frozen=True)
class EmployeeMetrics:
    avg_workload: int
    avg_satisfaction: int
    avg_resignation_risk: int
    total_employees: int
    department_count: int


@dataclass(frozen=True)
class DepartmentSummary:
    department: str
    employees: int
    avg_resignation_risk: int


def latest_risk_scores(records: Sequence[RiskSample], window: int = RECENT_WINDOW) -> RiskScores:
    """Rounded mean of each risk metric over the most recent `window` records."""
    recent = list(records)[-window:]
    if not recent:
        return RiskScores(0, 0, 0)
    return RiskScores(
        financial=_round(_mean([r.financial_risk for r in recent])),
        cyber=_round(_mean([r.cyber_risk for r in recent])),
        reputation=_round(_mean([r.reputation_risk for r in recent])),
    )


def latest_prediction(records: Sequence[RiskSample]) -> RiskScores:
    """Risk values of the newest prediction, or zeros when there is none."""
    if not records:
        return RiskScores(0, 0, 0)
    latest = records[-1]
    return RiskScores(latest.financial_risk, latest.cyber_risk, latest.reputation_risk)


def risk_trend(
    records: Sequence[RiskSample], metric: RiskMetric, window: int = RECENT_WINDOW
) -> Trend:
    """
    Percentage change of `metric` between the first and last record of the window.

    With fewer than two records the trend is stable. A zero starting value
    has no meaningful percentage change, so it reports a change of 0 with
    the direction of the latest value.
    """
    recent = list(records)[-window:]
    if len(recent) < 2:
        return Trend("stable", 0)

    previous = getattr(recent[0], metric)
    current = getattr(recent[-1], metric)
    if previous == 0:
        return Trend("up" if current > 0 else "stable", 0)

    change = (current - previous) / previous * 100
    if change == 0:
        return Trend("stable", 0)
    return Trend("up" if change > 0 else "down", abs(_round(change)))


def risk_level(score: float) -> Literal["High", "Medium", "Low"]:
    if score >= HIGH_RISK_THRESHOLD:
        return "High"
    if score >= MEDIUM_RISK_THRESHOLD:
        return "Medium"
    return "Low"


def employee_metrics(
    records: Sequence[EmployeeSample], window: int = RECENT_WINDOW
) -> EmployeeMetrics:
    recent = list(records)[-window:]
    if not recent:
        return EmployeeMetrics(0, 0, 0, 0, 0)
    return EmployeeMetrics(
        avg_workload=_round(_mean([r.workload for r in recent])),
        avg_satisfaction=_round(_mean([r.satisfaction for r in recent])),
        avg_resignation_risk=_round(_mean([r.resignation_risk for r in recent])),
        total_employees=len(records),
        department_count=len({r.department for r in records}),
    )


def department_breakdown(records: Sequence[EmployeeSample]) -> List[DepartmentSummary]:
    """Headcount and mean resignation risk per department, in first-seen order."""
    risks: Dict[str, List[int]] = {}
    for record in records:
        risks.setdefault(record.department, []).append(record.resignation_risk)
    return [
        DepartmentSummary(department, len(values), _round(_mean(values)))
        for department, values in risks.items()
    ]


__all__ = [
    "RECENT_WINDOW",
    "RISK_METRICS",
    "RiskMetric",
    "RiskScores",
    "Trend",
    "EmployeeMetrics",
    "DepartmentSummary",
    "latest_risk_scores",
    "latest_prediction",
    "risk_trend",
    "risk_level",
    "employee_metrics",
    "department_breakdown",
]
