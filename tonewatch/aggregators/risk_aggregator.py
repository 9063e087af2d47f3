"""
tonewatch/aggregators/risk_aggregator.py
Stage 3 — dashboard-level risk summary over a message collection.

Input MUST already be ordered newest-first; the caller (message parser /
contact store) owns that ordering and nothing here re-sorts.

NOTE ON MOOD TREND:
  Sample = the 10 newest messages whose analysis reports a sentiment.
  negative ratio > 0.6 → declining, < 0.3 → improving, else stable.
  Empty sample → stable.

NOTE ON SCORES:
  safety_percentage  = round(100 * low / total), 0 for an empty collection
  overall_risk_level = round((high*100 + medium*50) / total), 25 for an
                       empty collection (neutral default the dashboard expects)
  Rounding is half-up, same as the dashboard's Math.round.
"""

import logging
import math
from typing import Iterable, List, Sequence

from tonewatch.detectors.normalizer import normalize_analysis
from tonewatch.detectors.risk_classifier import classify_normalized
from tonewatch.models.record import (
    Alert,
    Message,
    RISK_HIGH,
    RISK_MEDIUM,
    RiskSummary,
    TREND_DECLINING,
    TREND_IMPROVING,
    TREND_STABLE,
)

logger = logging.getLogger(__name__)

MAX_ALERTS          = 5
ALERT_TITLE         = 'High-Risk Message Detected'
EXCERPT_LENGTH      = 100
MOOD_WINDOW         = 10
DECLINING_THRESHOLD = 0.6
IMPROVING_THRESHOLD = 0.3
EMPTY_OVERALL_RISK  = 25


def compute_risk_summary(messages: Sequence[Message]) -> RiskSummary:
    """
    Normalize + classify every message, tally counts, collect up to
    MAX_ALERTS alerts for the newest HIGH messages, derive the mood trend.
    Never raises on missing or partial analyses.
    """
    high = medium = low = 0
    alerts: List[Alert] = []
    sentiments: List[str] = []

    for msg in messages:
        norm  = normalize_analysis(msg.analysis)
        level = classify_normalized(msg.text, norm)

        if level == RISK_HIGH:
            high += 1
            if len(alerts) < MAX_ALERTS:
                alerts.append(build_alert(msg))
        elif level == RISK_MEDIUM:
            medium += 1
        else:
            low += 1

        if norm.sentiment_reported and len(sentiments) < MOOD_WINDOW:
            sentiments.append(norm.sentiment)

    total = high + medium + low

    summary = RiskSummary(
        high_count         = high,
        medium_count       = medium,
        low_count          = low,
        mood_trend         = mood_trend(sentiments),
        alerts             = alerts,
        safety_percentage  = _round_half_up(100 * low / total) if total else 0,
        overall_risk_level = (
            _round_half_up((high * 100 + medium * 50) / total)
            if total else EMPTY_OVERALL_RISK
        ),
    )
    logger.debug(
        f"Risk summary: total={total} high={high} medium={medium} "
        f"low={low} alerts={len(alerts)} trend={summary.mood_trend}"
    )
    return summary


def build_alert(msg: Message) -> Alert:
    return Alert(
        message_id      = msg.id,
        title           = ALERT_TITLE,
        message_excerpt = _excerpt(msg.text),
        timestamp       = msg.submitted_at,
    )


def _excerpt(text) -> str:
    if not text:
        return '...'
    text = text if isinstance(text, str) else str(text)
    return text[:EXCERPT_LENGTH] + '...'


def mood_trend(sentiments: Iterable[str]) -> str:
    """Directional label over an already-windowed list of sentiments."""
    sample = list(sentiments)
    if not sample:
        return TREND_STABLE

    negative_ratio = sum(1 for s in sample if s == 'negative') / len(sample)
    if negative_ratio > DECLINING_THRESHOLD:
        return TREND_DECLINING
    if negative_ratio < IMPROVING_THRESHOLD:
        return TREND_IMPROVING
    return TREND_STABLE


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
