"""
tests/test_risk_aggregator.py
Dashboard risk summary: counts, alerts, mood trend, percentages.
Synthetic messages only.
"""

from datetime import datetime, timedelta, timezone

import pytest

from tonewatch.aggregators.risk_aggregator import (
    ALERT_TITLE,
    MAX_ALERTS,
    compute_risk_summary,
    mood_trend,
)
from tonewatch.detectors.risk_classifier import classify_message_risk
from tonewatch.models.record import (
    Message,
    RISK_HIGH,
    TREND_DECLINING,
    TREND_IMPROVING,
    TREND_STABLE,
)

BASE_TS = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

LOW_TEXT    = "Hello, I would like to volunteer"
MEDIUM_TEXT = "I feel worried"
HIGH_TEXT   = "I want to die"


def _msg(i: int, text: str = LOW_TEXT, analysis=None) -> Message:
    """i = 0 is newest."""
    return Message(
        id           = f"m{i}",
        text         = text,
        submitted_at = BASE_TS - timedelta(hours=i),
        analysis     = analysis,
    )


def _sent(sentiment: str) -> dict:
    return {"sentiment": sentiment, "emotion": "neutral", "toxicity": "safe"}


class TestEmpty:
    def test_empty_collection(self):
        s = compute_risk_summary([])
        assert s.high_count == 0
        assert s.medium_count == 0
        assert s.low_count == 0
        assert s.alerts == []
        assert s.mood_trend == TREND_STABLE
        assert s.safety_percentage == 0
        assert s.overall_risk_level == 25
        assert s.total_count == 0


class TestCounts:
    def test_counts_sum_to_n(self):
        msgs = [_msg(0, HIGH_TEXT), _msg(1, MEDIUM_TEXT), _msg(2), _msg(3), _msg(4, HIGH_TEXT)]
        s = compute_risk_summary(msgs)
        assert (s.high_count, s.medium_count, s.low_count) == (2, 1, 2)
        assert s.high_count + s.medium_count + s.low_count == len(msgs)

    def test_messages_without_analysis_are_counted(self):
        s = compute_risk_summary([_msg(i) for i in range(3)])
        assert s.low_count == 3

    def test_malformed_analysis_absorbed(self):
        msgs = [
            _msg(0, analysis={"keywords": 5, "toxicityScore": "x"}),
            _msg(1, analysis={"sentiment": None}),
        ]
        s = compute_risk_summary(msgs)
        assert s.low_count == 2


class TestAlerts:
    def test_alert_fields(self):
        long_text = "die " + "x" * 200
        s = compute_risk_summary([_msg(0, long_text)])
        assert len(s.alerts) == 1
        alert = s.alerts[0]
        assert alert.message_id == "m0"
        assert alert.title == ALERT_TITLE == "High-Risk Message Detected"
        assert alert.message_excerpt == long_text[:100] + "..."
        assert alert.timestamp == BASE_TS
        assert alert.level == "high"

    def test_short_text_still_gets_ellipsis(self):
        s = compute_risk_summary([_msg(0, HIGH_TEXT)])
        assert s.alerts[0].message_excerpt == HIGH_TEXT + "..."

    def test_non_string_text_excerpt(self):
        s = compute_risk_summary([_msg(0, 123, {"summary": "die"})])
        assert s.high_count == 1
        assert s.alerts[0].message_excerpt == "123..."

    def test_capped_at_five_newest_first(self):
        msgs = [_msg(i, HIGH_TEXT) for i in range(8)]
        s = compute_risk_summary(msgs)
        assert s.high_count == 8
        assert len(s.alerts) == MAX_ALERTS == 5
        assert [a.message_id for a in s.alerts] == ["m0", "m1", "m2", "m3", "m4"]

    def test_alerts_only_for_high(self):
        msgs = [_msg(0, MEDIUM_TEXT), _msg(1, HIGH_TEXT), _msg(2), _msg(3, HIGH_TEXT)]
        s = compute_risk_summary(msgs)
        ids = [a.message_id for a in s.alerts]
        assert ids == ["m1", "m3"]
        by_id = {m.id: m for m in msgs}
        for a in s.alerts:
            m = by_id[a.message_id]
            assert classify_message_risk(m.text, m.analysis) == RISK_HIGH

    def test_given_order_is_respected(self):
        # Oldest-first input: aggregator does not re-sort
        msgs = [_msg(5, HIGH_TEXT), _msg(0, HIGH_TEXT)]
        s = compute_risk_summary(msgs)
        assert [a.message_id for a in s.alerts] == ["m5", "m0"]


class TestMoodTrend:
    def test_seven_of_ten_negative_is_declining(self):
        msgs = [_msg(i, analysis=_sent("negative" if i < 7 else "positive")) for i in range(10)]
        assert compute_risk_summary(msgs).mood_trend == TREND_DECLINING

    def test_two_of_ten_negative_is_improving(self):
        msgs = [_msg(i, analysis=_sent("negative" if i < 2 else "neutral")) for i in range(10)]
        assert compute_risk_summary(msgs).mood_trend == TREND_IMPROVING

    def test_half_negative_is_stable(self):
        msgs = [_msg(i, analysis=_sent("negative" if i % 2 else "positive")) for i in range(10)]
        assert compute_risk_summary(msgs).mood_trend == TREND_STABLE

    def test_only_ten_newest_count(self):
        # 10 newest positive, 20 older negative
        msgs = [_msg(i, analysis=_sent("positive")) for i in range(10)]
        msgs += [_msg(i, analysis=_sent("negative")) for i in range(10, 30)]
        assert compute_risk_summary(msgs).mood_trend == TREND_IMPROVING

    def test_messages_without_sentiment_are_skipped(self):
        msgs = [_msg(i) for i in range(10)]
        msgs += [_msg(i, analysis=_sent("negative")) for i in range(10, 13)]
        assert compute_risk_summary(msgs).mood_trend == TREND_DECLINING

    def test_no_sentiment_anywhere_is_stable(self):
        assert compute_risk_summary([_msg(0), _msg(1)]).mood_trend == TREND_STABLE

    @pytest.mark.parametrize("sample,expected", [
        ([], TREND_STABLE),
        (["negative"] * 6 + ["neutral"] * 4, TREND_STABLE),    # 0.6 is not > 0.6
        (["negative"] * 3 + ["neutral"] * 7, TREND_STABLE),    # 0.3 is not < 0.3
        (["negative"] * 7 + ["neutral"] * 3, TREND_DECLINING),
        (["positive"], TREND_IMPROVING),
    ])
    def test_thresholds(self, sample, expected):
        assert mood_trend(sample) == expected


class TestScores:
    def test_safety_and_overall(self):
        msgs = [_msg(0, HIGH_TEXT), _msg(1, MEDIUM_TEXT), _msg(2), _msg(3)]
        s = compute_risk_summary(msgs)
        assert s.safety_percentage == 50
        assert s.overall_risk_level == 38    # (100 + 50) / 4 = 37.5

    def test_half_rounds_up(self):
        # 1 low of 8 → 12.5 → 13
        msgs = [_msg(0)] + [_msg(i, MEDIUM_TEXT) for i in range(1, 8)]
        s = compute_risk_summary(msgs)
        assert s.safety_percentage == 13

    def test_all_high(self):
        s = compute_risk_summary([_msg(i, HIGH_TEXT) for i in range(3)])
        assert s.safety_percentage == 0
        assert s.overall_risk_level == 100

    def test_all_low(self):
        s = compute_risk_summary([_msg(i) for i in range(3)])
        assert s.safety_percentage == 100
        assert s.overall_risk_level == 0


class TestPurity:
    def test_idempotent(self):
        msgs = [_msg(0, HIGH_TEXT), _msg(1, MEDIUM_TEXT, _sent("negative")), _msg(2)]
        assert compute_risk_summary(msgs) == compute_risk_summary(msgs)

    def test_input_not_mutated(self):
        analysis = _sent("negative")
        msgs = [_msg(0, analysis=analysis)]
        compute_risk_summary(msgs)
        assert msgs[0].analysis == _sent("negative")
        assert msgs[0].text == LOW_TEXT
