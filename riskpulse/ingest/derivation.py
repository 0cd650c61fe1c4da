"""
Derived employee metrics.

Resignation risk blends workload and dissatisfaction with fixed weights; it
is computed at ingestion time and never read from an upload.
"""

from __future__ import annotations

import math

WORKLOAD_WEIGHT = 0.4
DISSATISFACTION_WEIGHT = 0.6


def resignation_risk(workload: float, satisfaction: float) -> int:
    """
    Score in [0, 100] from workload and satisfaction percentages.

    Examples
    --------
    >>> resignation_risk(0, 100)
    0
    >>> resignation_risk(100, 0)
    100
    >>> resignation_risk(80, 20)
    80
    """
    workload_factor = workload / 100
    dissatisfaction = 1 - (satisfaction / 100)
    raw = (workload_factor * WORKLOAD_WEIGHT + dissatisfaction * DISSATISFACTION_WEIGHT) * 100
    # half-up rounding, not round()'s half-to-even
    return min(max(math.floor(raw + 0.5), 0), 100)


__all__ = ["WORKLOAD_WEIGHT", "DISSATISFACTION_WEIGHT", "resignation_risk"]
