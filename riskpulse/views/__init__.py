"""
Presentation read model for riskpulse: summaries and live views.
"""

from riskpulse.views.live import LiveView, UploadInProgress
from riskpulse.views.summaries import (
    department_breakdown,
    employee_metrics,
    latest_prediction,
    latest_risk_scores,
    risk_level,
    risk_trend,
)

__all__ = [
    "LiveView",
    "UploadInProgress",
    "department_breakdown",
    "employee_metrics",
    "latest_prediction",
    "latest_risk_scores",
    "risk_level",
    "risk_trend",
]
