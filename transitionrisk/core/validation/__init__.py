"""
Validation Module

TEST-split confusion metrics and risk summaries.
"""
from .metrics import ValidationMetrics, RiskSummary, compute_metrics, summarize_risk, DECISION_THRESHOLD

__all__ = [
    "ValidationMetrics",
    "RiskSummary",
    "compute_metrics",
    "summarize_risk",
    "DECISION_THRESHOLD",
]
