"""
tonewatch/report_export.py
Wire format for the admin dashboard.

The dashboard predates this package and reads Spanish risk labels
("bajo" / "medio" / "alto") and camelCase keys. Keep both stable.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tonewatch.models.record import (
    Alert,
    MoodAnalysis,
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
    RiskSummary,
)

EXPORT_FORMAT_VERSION = "1.0"

RISK_WIRE_LABELS = {
    RISK_LOW:    'bajo',
    RISK_MEDIUM: 'medio',
    RISK_HIGH:   'alto',
}


def risk_level_to_wire(level: str) -> str:
    """Unknown levels serialize as "bajo"."""
    return RISK_WIRE_LABELS.get(level, RISK_WIRE_LABELS[RISK_LOW])


def alert_to_dict(alert: Alert) -> Dict[str, Any]:
    return {
        'messageId':      alert.message_id,
        'title':          alert.title,
        'messageExcerpt': alert.message_excerpt,
        'timestamp':      _iso(alert.timestamp),
        'level':          alert.level,
    }


def summary_to_dict(summary: RiskSummary) -> Dict[str, Any]:
    return {
        'highCount':        summary.high_count,
        'mediumCount':      summary.medium_count,
        'lowCount':         summary.low_count,
        'totalCount':       summary.total_count,
        'moodTrend':        summary.mood_trend,
        'alerts':           [alert_to_dict(a) for a in summary.alerts],
        'safetyPercentage': summary.safety_percentage,
        'overallRiskLevel': summary.overall_risk_level,
    }


def mood_analysis_to_dict(report: MoodAnalysis) -> Dict[str, Any]:
    return {
        'overallMood':        report.overall_mood,
        'moodTrend':          report.mood_trend,
        'riskIndicators':     list(report.risk_indicators),
        'recommendations':    list(report.recommendations),
        'confidence':         report.confidence,
        'totalAnalyzed':      report.total_analyzed,
        'sentimentBreakdown': dict(report.sentiment_breakdown),
        'emotionBreakdown':   dict(report.emotion_breakdown),
    }


def export_summary_json(
    summary: RiskSummary,
    indent:  Optional[int] = 2,
) -> str:
    """Summary plus export metadata, as written by the CLI."""
    payload = {
        'export_format_version': EXPORT_FORMAT_VERSION,
        'generated_at':          datetime.now(timezone.utc).isoformat(),
        'summary':               summary_to_dict(summary),
    }
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def _iso(ts: Any) -> Optional[str]:
    if ts is None:
        return None
    return ts.isoformat() if isinstance(ts, datetime) else str(ts)
