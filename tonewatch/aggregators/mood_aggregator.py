"""
tonewatch/aggregators/mood_aggregator.py
Recent-mood report for the admin dashboard.

Looks at the newest `limit` messages and keeps the ones that carry an
analysis. Thresholds are separate from the risk summary's mood trend;
this feeds the "how are people feeling" panel, not the risk alarm.

  negative ratio > 0.4 → concerning / declining
  positive ratio > 0.6 → positive / improving
  otherwise            → neutral / stable

PLAUSIBLE heuristic — not a validated clinical instrument.
"""

import logging
from collections import Counter
from typing import Sequence

from tonewatch.detectors.normalizer import normalize_analysis
from tonewatch.models.record import (
    Message,
    MoodAnalysis,
    TREND_DECLINING,
    TREND_IMPROVING,
    TREND_STABLE,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT       = 50
CONCERNING_RATIO    = 0.4
POSITIVE_RATIO      = 0.6


def compute_mood_analysis(
    messages: Sequence[Message],
    limit:    int = DEFAULT_LIMIT,
) -> MoodAnalysis:
    """Messages are newest-first, as for compute_risk_summary."""
    recent   = list(messages)[:max(int(limit), 0)]
    analyzed = [normalize_analysis(m.analysis) for m in recent if m.analysis is not None]

    report = MoodAnalysis(total_analyzed=len(analyzed))

    if not analyzed:
        report.recommendations.append('Not enough analyzed messages for a mood reading')
        logger.info("Mood analysis: no analyzed messages in window")
        return report

    sentiments = Counter({'positive': 0, 'negative': 0, 'neutral': 0})
    emotions: Counter = Counter()
    for norm in analyzed:
        sentiments[norm.sentiment] += 1
        emotions[norm.emotion] += 1

    total          = len(analyzed)
    negative_ratio = sentiments['negative'] / total
    positive_ratio = sentiments['positive'] / total

    if negative_ratio > CONCERNING_RATIO:
        report.overall_mood = 'concerning'
        report.mood_trend   = TREND_DECLINING
        report.risk_indicators.append('High share of negative sentiment')
        report.recommendations.append('Review recent messages to identify problems')
    elif positive_ratio > POSITIVE_RATIO:
        report.overall_mood = 'positive'
        report.mood_trend   = TREND_IMPROVING
        report.recommendations.append('Positive trend in communications')
    else:
        report.overall_mood = 'neutral'
        report.mood_trend   = TREND_STABLE
        report.recommendations.append('Emotional state stable')

    report.confidence          = sum(n.confidence for n in analyzed) / total
    report.sentiment_breakdown = dict(sentiments)
    report.emotion_breakdown   = dict(emotions.most_common())

    top_emotion, top_count = emotions.most_common(1)[0]
    report.recommendations.append(f"Predominant emotion: {top_emotion} ({top_count} messages)")

    logger.info(
        f"Mood analysis: analyzed={total} mood={report.overall_mood} "
        f"trend={report.mood_trend}"
    )
    return report
