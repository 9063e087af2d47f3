"""
tonewatch/detectors/normalizer.py
Stage 1 — turns a raw provider result into a NormalizedAnalysis.

Accepts None, a ToneAnalysis, or a raw mapping straight from the provider /
contact store (camelCase or snake_case keys). Missing analysis is a normal
steady state: the provider call may not have finished or may have failed.
Never raises.
"""

import math
from typing import Any, Iterable, Mapping, Optional, Tuple

from tonewatch.models.record import Keyword, NormalizedAnalysis, ToneAnalysis

VALID_SENTIMENTS = frozenset({'positive', 'negative', 'neutral'})
VALID_EMOTIONS   = frozenset({'joy', 'sadness', 'anger', 'fear', 'surprise', 'disgust', 'neutral'})
VALID_TOXICITY   = frozenset({'toxic', 'safe'})

# provider key → ToneAnalysis attribute
_FIELD_ALIASES = {
    'toxicityScore': 'toxicity_score',
    'analyzedAt':    'analyzed_at',
    'modelUsed':     'model_used',
}

_EMPTY = NormalizedAnalysis()


def normalize_analysis(analysis: Any) -> NormalizedAnalysis:
    """Default every field of a possibly-absent, possibly-partial analysis."""
    if analysis is None:
        return _EMPTY

    get = _getter(analysis)
    if get is None:
        return _EMPTY

    sentiment = _label(get('sentiment'), VALID_SENTIMENTS)
    emotion   = _label(get('emotion'), VALID_EMOTIONS)
    toxicity  = _label(get('toxicity'), VALID_TOXICITY)

    return NormalizedAnalysis(
        sentiment          = sentiment or 'neutral',
        emotion            = emotion or 'neutral',
        toxicity           = toxicity or 'safe',
        toxicity_score     = _unit_float(get('toxicity_score')),
        keywords           = normalize_keywords(get('keywords')),
        summary            = _text(get('summary')),
        sentiment_reported = sentiment is not None,
        confidence         = _unit_float(get('confidence')),
    )


def normalize_keywords(raw: Any) -> Tuple[Keyword, ...]:
    """
    Collapse the provider's keyword shapes into Keyword records.
    Strings are kept, {word, score} mappings and objects with a `word`
    attribute are unpacked, numbers are coerced, anything else is skipped.
    """
    if raw is None or isinstance(raw, (str, bytes)):
        # A bare string is one keyword, not a sequence of characters
        raw = [raw] if isinstance(raw, str) else []
    if isinstance(raw, Mapping) or not isinstance(raw, Iterable):
        return ()

    out = []
    for item in raw:
        kw = _keyword(item)
        if kw is not None:
            out.append(kw)
    return tuple(out)


# ── HELPERS ──────────────────────────────────────────────────

def _getter(analysis: Any):
    if isinstance(analysis, Mapping):
        def get(name: str) -> Any:
            if name in analysis:
                return analysis[name]
            for alias, target in _FIELD_ALIASES.items():
                if target == name and alias in analysis:
                    return analysis[alias]
            return None
        return get
    if isinstance(analysis, ToneAnalysis) or hasattr(analysis, 'sentiment'):
        return lambda name: getattr(analysis, name, None)
    return None


def _keyword(item: Any) -> Optional[Keyword]:
    if item is None or isinstance(item, bool):
        return None
    if isinstance(item, str):
        word = item.strip()
        return Keyword(word=word) if word else None
    if isinstance(item, (int, float)):
        word = _number_text(item)
        return Keyword(word=word) if word else None
    if isinstance(item, Keyword):
        return item

    if isinstance(item, Mapping):
        word, score = item.get('word'), item.get('score')
    else:
        word, score = getattr(item, 'word', None), getattr(item, 'score', None)

    if word is None or isinstance(word, (Mapping, list, tuple)):
        return None
    word = _number_text(word) if isinstance(word, (int, float)) else str(word).strip()
    if not word:
        return None
    return Keyword(word=word, score=_optional_float(score))


def _label(value: Any, allowed: frozenset) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value if value in allowed else None


def _text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    return _number_text(value) or ''


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return None if math.isnan(f) else f


def _number_text(value: Any) -> Optional[str]:
    # ints past the interpreter digit limit refuse str()
    try:
        return str(value)
    except (ValueError, OverflowError):
        return None


def _unit_float(value: Any) -> float:
    f = _optional_float(value)
    if f is None:
        return 0.0
    return min(max(f, 0.0), 1.0)
