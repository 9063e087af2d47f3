"""
tonewatch — message tone and risk analysis.

Public entry points for the web layer:
    classify_message_risk(text, analysis) -> "LOW" | "MEDIUM" | "HIGH"
    compute_risk_summary(messages)        -> RiskSummary

Privacy: no raw message content in logs. Counts and ids only.
"""

from tonewatch.aggregators.risk_aggregator import compute_risk_summary
from tonewatch.detectors.risk_classifier import classify_message_risk
from tonewatch.models.record import (
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    Message,
    RiskSummary,
    ToneAnalysis,
)

__all__ = [
    "RISK_HIGH",
    "RISK_LOW",
    "RISK_MEDIUM",
    "Message",
    "RiskSummary",
    "ToneAnalysis",
    "classify_message_risk",
    "compute_risk_summary",
]
