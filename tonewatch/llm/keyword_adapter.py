"""
tonewatch/llm/keyword_adapter.py
Offline tone provider — pure Python, zero network, always available.
Used when no remote provider is configured or a remote call fails.

Word lists are substring-matched against the lowercased message, the same
way the remote prompt's output is consumed downstream.
"""

import logging
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Optional

from tonewatch.llm.base import ToneProvider
from tonewatch.models.record import ToneAnalysis

logger = logging.getLogger(__name__)

# ── WORD LISTS ───────────────────────────────────────────────
# Extend freely.

POSITIVE_WORDS = [
    'thank', 'great', 'excellent', 'amazing', 'love', 'wonderful', 'fantastic',
    'awesome', 'happy', 'excited', 'good', 'best', 'perfect', 'brilliant',
    'outstanding',
]

NEGATIVE_WORDS = [
    'hate', 'terrible', 'awful', 'bad', 'horrible', 'angry', 'frustrated',
    'disappointed', 'sad', 'upset', 'kill', 'suicide', 'death', 'die', 'murder',
    'destroy', 'hurt', 'pain', 'suffer', 'cry', 'depressed', 'hopeless',
    'worthless', 'useless', 'fail', 'failure', 'broken', 'devastated',
    'miserable', 'pathetic',
]

STRONG_NEGATIVE_WORDS = frozenset({
    'suicide', 'kill', 'murder', 'death', 'die', 'destroy', 'devastated',
    'hopeless', 'worthless', 'pathetic',
})

# Dict order is the tie-break order: first emotion to reach the max wins.
EMOTION_WORDS: Dict[str, List[str]] = {
    'anger':    ['angry', 'mad', 'furious', 'rage', 'hate', 'kill', 'murder', 'destroy'],
    'sadness':  ['sad', 'cry', 'depressed', 'suicide', 'hopeless', 'miserable', 'devastated', 'broken'],
    'fear':     ['afraid', 'scared', 'terrified', 'panic', 'anxious', 'worried'],
    'joy':      ['happy', 'excited', 'joyful', 'cheerful', 'delighted', 'thrilled'],
    'surprise': ['surprised', 'shocked', 'amazed', 'astonished'],
    'disgust':  ['disgusted', 'revolted', 'sick', 'gross'],
}

FALLBACK_TOXICITY_SCORE = 0.1
MAX_KEYWORDS            = 5
_WORD_RE                = re.compile(r'\b\w{4,}\b')


class KeywordToneAdapter(ToneProvider):

    name = 'keyword'

    def is_available(self) -> bool:
        return True

    def analyze(self, text: str) -> Optional[ToneAnalysis]:
        lower = (text or '').lower()

        positive = sum(1 for w in POSITIVE_WORDS if w in lower)
        negative = 0
        strong   = 0
        for w in NEGATIVE_WORDS:
            if w in lower:
                negative += 1
                if w in STRONG_NEGATIVE_WORDS:
                    strong += 1

        sentiment, confidence = _sentiment(positive, negative, strong)
        emotion = _emotion(lower, sentiment, strong)

        return ToneAnalysis(
            sentiment      = sentiment,
            emotion        = emotion,
            toxicity       = 'safe',
            toxicity_score = FALLBACK_TOXICITY_SCORE,
            keywords       = extract_keywords(lower),
            summary        = (
                f"Enhanced analysis: {positive} positive, {negative} negative "
                f"({strong} strong), emotion: {emotion}"
            ),
            confidence     = confidence,
            language       = 'en',
            topics         = [],
            analyzed_at    = datetime.now(timezone.utc),
            model_used     = 'keyword-only',
        )


def extract_keywords(text: str, top: int = MAX_KEYWORDS) -> List[dict]:
    """Most frequent words of 4+ letters, first-seen order on ties."""
    counts = Counter(_WORD_RE.findall((text or '').lower()))
    return [{'word': w, 'score': 1} for w, _ in counts.most_common(top)]


def _sentiment(positive: int, negative: int, strong: int):
    if strong > 0:
        return 'negative', min(0.95, 0.8 + strong * 0.1)
    if negative > positive and negative > 0:
        return 'negative', min(0.9, 0.6 + negative * 0.1)
    if positive > negative and positive > 0:
        return 'positive', min(0.9, 0.6 + positive * 0.1)
    return 'neutral', 0.5


def _emotion(lower: str, sentiment: str, strong: int) -> str:
    emotion, best = 'neutral', 0
    for name, words in EMOTION_WORDS.items():
        score = sum(1 for w in words if w in lower)
        if score > best:
            emotion, best = name, score

    if emotion == 'neutral':
        if sentiment == 'negative':
            return 'sadness' if strong > 0 else 'anger'
        if sentiment == 'positive':
            return 'joy'
    return emotion
