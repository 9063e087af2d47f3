"""
tonewatch/models/record.py
Shared dataclass schema. The normalizer, classifier, aggregators, providers
and exporters all use these types. Do not add logic here — data only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Tuple, Union


# ── RISK LEVELS ──────────────────────────────────────────────
RISK_LOW    = 'LOW'
RISK_MEDIUM = 'MEDIUM'
RISK_HIGH   = 'HIGH'

# ── MOOD TRENDS ──────────────────────────────────────────────
TREND_IMPROVING = 'improving'
TREND_DECLINING = 'declining'
TREND_STABLE    = 'stable'


@dataclass
class ToneAnalysis:
    """Provider result for one message. Every field may be missing upstream."""
    sentiment:      Optional[str]   = None      # positive / negative / neutral
    emotion:        Optional[str]   = None      # joy / sadness / anger / fear / surprise / disgust / neutral
    toxicity:       Optional[str]   = None      # toxic / safe
    toxicity_score: Optional[float] = None
    keywords:       List[Any]       = field(default_factory=list)   # str or {word, score}
    summary:        Optional[str]   = None

    confidence:     Optional[float] = None
    language:       Optional[str]   = None
    topics:         List[str]       = field(default_factory=list)
    analyzed_at:    Optional[datetime] = None
    model_used:     str             = ''


@dataclass
class Message:
    """One inbound contact submission."""
    id:           str
    text:         str
    submitted_at: datetime
    analysis:     Optional[Union[ToneAnalysis, dict]] = None


@dataclass(frozen=True)
class Keyword:
    """Single extracted term. Provider order = relevance order."""
    word:  str
    score: Optional[float] = None


@dataclass(frozen=True)
class NormalizedAnalysis:
    """ToneAnalysis with every field defaulted. Output of the normalizer."""
    sentiment:          str                 = 'neutral'
    emotion:            str                 = 'neutral'
    toxicity:           str                 = 'safe'
    toxicity_score:     float               = 0.0
    keywords:           Tuple[Keyword, ...] = ()
    summary:            str                 = ''
    sentiment_reported: bool                = False
    confidence:         float               = 0.0


@dataclass
class Alert:
    """Dashboard notice for one HIGH risk message."""
    message_id:      str
    title:           str
    message_excerpt: str
    timestamp:       datetime
    level:           str = 'high'


@dataclass
class RiskSummary:
    """Aggregate view over a message collection. Never persisted."""
    high_count:        int         = 0
    medium_count:      int         = 0
    low_count:         int         = 0
    mood_trend:        str         = TREND_STABLE
    alerts:            List[Alert] = field(default_factory=list)
    safety_percentage: int         = 0
    overall_risk_level: int        = 25

    @property
    def total_count(self) -> int:
        return self.high_count + self.medium_count + self.low_count


@dataclass
class MoodAnalysis:
    """Recent-mood report for the admin dashboard."""
    overall_mood:        str             = 'neutral'    # positive / neutral / concerning
    mood_trend:          str             = TREND_STABLE
    risk_indicators:     List[str]       = field(default_factory=list)
    recommendations:     List[str]       = field(default_factory=list)
    confidence:          float           = 0.0
    total_analyzed:      int             = 0
    sentiment_breakdown: dict            = field(default_factory=dict)
    emotion_breakdown:   dict            = field(default_factory=dict)
