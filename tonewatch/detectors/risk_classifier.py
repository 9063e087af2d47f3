"""
tonewatch/detectors/risk_classifier.py
Stage 2 — message risk classification. Pure Python, no I/O.

Priority cascade, first match wins: HIGH rules, then MEDIUM rules, then LOW.
Life-risk language is never downgraded by a simultaneous MEDIUM match.
The one implementation used by the API, the CLI and the aggregators.
"""

from typing import Any, Iterable, Optional

from tonewatch.detectors.normalizer import normalize_analysis
from tonewatch.models.record import (
    NormalizedAnalysis,
    RISK_HIGH,
    RISK_LOW,
    RISK_MEDIUM,
)

# ── KEYWORD SETS ─────────────────────────────────────────────
# Case-insensitive substring match: 'die' also hits 'died', 'dying' does not.

HIGH_RISK_TERMS = (
    'suicide', 'kill', 'death', 'die', 'murder', 'hurt', 'pain',
    'suicidio', 'muerte', 'matar', 'dolor',
)

MEDIUM_RISK_TERMS = (
    'depressed', 'sad', 'hopeless', 'anxious', 'worried', 'scared',
    'depresión', 'triste', 'ansiedad',
)

# ── TOXICITY CUT POINTS (strict >) ───────────────────────────
HIGH_TOXICITY_THRESHOLD   = 0.8
MEDIUM_TOXICITY_THRESHOLD = 0.5


def classify_message_risk(text: Optional[str], analysis: Any = None) -> str:
    """
    Return RISK_HIGH / RISK_MEDIUM / RISK_LOW for one message.
    `analysis` may be None, a ToneAnalysis, a raw provider mapping,
    or an already NormalizedAnalysis. Never raises.
    """
    if isinstance(analysis, NormalizedAnalysis):
        norm = analysis
    else:
        norm = normalize_analysis(analysis)
    return classify_normalized(text, norm)


def classify_normalized(text: Optional[str], norm: NormalizedAnalysis) -> str:
    haystack = f"{_lower(text)} {norm.summary.lower()}"
    keywords = [kw.word.lower() for kw in norm.keywords]

    toxic = norm.toxicity == 'toxic'

    if (
        _contains_any(haystack, keywords, HIGH_RISK_TERMS)
        or (toxic and norm.toxicity_score > HIGH_TOXICITY_THRESHOLD)
        or (norm.emotion == 'sadness' and norm.sentiment == 'negative')
    ):
        return RISK_HIGH

    if (
        _contains_any(haystack, keywords, MEDIUM_RISK_TERMS)
        or (toxic and norm.toxicity_score > MEDIUM_TOXICITY_THRESHOLD)
        or (norm.emotion == 'anger' and norm.sentiment == 'negative')
    ):
        return RISK_MEDIUM

    return RISK_LOW


def matched_terms(text: Optional[str], analysis: Any = None) -> dict:
    """Which HIGH / MEDIUM terms fired. Used by detail views to explain a label."""
    norm     = normalize_analysis(analysis)
    haystack = f"{_lower(text)} {norm.summary.lower()}"
    keywords = [kw.word.lower() for kw in norm.keywords]
    return {
        'high':   [t for t in HIGH_RISK_TERMS   if _term_hit(t, haystack, keywords)],
        'medium': [t for t in MEDIUM_RISK_TERMS if _term_hit(t, haystack, keywords)],
    }


# ── HELPERS ──────────────────────────────────────────────────

def _lower(text: Any) -> str:
    if not text:
        return ''
    return (text if isinstance(text, str) else str(text)).lower()


def _term_hit(term: str, haystack: str, keywords: Iterable[str]) -> bool:
    return term in haystack or any(term in kw for kw in keywords)


def _contains_any(haystack: str, keywords: Iterable[str], terms: Iterable[str]) -> bool:
    keywords = list(keywords)
    return any(_term_hit(t, haystack, keywords) for t in terms)
