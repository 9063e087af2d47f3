"""
tonewatch/llm/base.py
Abstract base class for all tone providers.
To add a new backend: subclass ToneProvider and implement analyze().
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from numbers import Real
from typing import Any, Mapping, Optional

from tonewatch.detectors.normalizer import (
    VALID_EMOTIONS,
    VALID_SENTIMENTS,
    VALID_TOXICITY,
)
from tonewatch.models.record import ToneAnalysis

MAX_SUMMARY_LEN = 500
MAX_PROMPT_TEXT = 1500

SYSTEM_PROMPT = (
    "You are an expert in sentiment and tone analysis. Analyze text and "
    "provide structured JSON responses about emotional tone, sentiment, "
    "toxicity, language, keywords, and topics. Always respond with valid JSON only."
)


class ToneProvider(ABC):
    """
    All tone backends implement this interface.
    Callers get back a ToneAnalysis or None and never know
    which backend is running.
    """

    name: str = 'provider'

    @abstractmethod
    def is_available(self) -> bool:
        """
        Returns True if the backend is configured and ready.
        Checked before a batch starts so the caller can fall back
        to the offline keyword provider.
        """
        ...

    @abstractmethod
    def analyze(self, text: str) -> Optional[ToneAnalysis]:
        """
        Analyze a single message.
        Returns None on any failure — the risk core treats that as
        "no analysis". Never raises.
        """
        ...

    def build_prompt(self, text: str) -> str:
        """Shared prompt builder. Adapters override only for format-specific needs."""
        return (
            "Analyze the tone and sentiment of the following message. "
            "Provide a JSON response with this exact structure:\n"
            "{\n"
            '  "sentiment": "positive|negative|neutral",\n'
            '  "emotion": "joy|sadness|anger|fear|surprise|disgust|neutral",\n'
            '  "confidence": 0.0-1.0,\n'
            '  "toxicity": "safe|toxic",\n'
            '  "toxicityScore": 0.0-1.0,\n'
            '  "language": "language_code",\n'
            '  "keywords": ["keyword1", "keyword2", "keyword3"],\n'
            '  "topics": ["topic1", "topic2", "topic3"],\n'
            '  "summary": "Brief explanation of the analysis"\n'
            "}\n\n"
            f'Message to analyze: "{text[:MAX_PROMPT_TEXT]}"\n\n'
            "Focus on:\n"
            "- Overall sentiment (positive, negative, neutral)\n"
            "- Primary emotion detected\n"
            "- Confidence level (0-1 scale)\n"
            "- Toxicity assessment\n"
            "- Language detection\n"
            "- Key topics and keywords\n"
            "- Brief summary\n\n"
            "Respond only with valid JSON."
        )


def strip_code_fences(text: str) -> str:
    """Models add ```json fences despite being told not to."""
    clean = (text or '').strip()
    if clean.startswith('```'):
        parts = clean.split('```')
        if len(parts) >= 2:
            clean = parts[1]
            if clean.startswith('json'):
                clean = clean[4:]
    return clean.strip()


def validate_analysis_payload(data: Any) -> bool:
    """Structural check on a decoded provider payload."""
    if not isinstance(data, Mapping):
        return False
    return (
        data.get('sentiment') in VALID_SENTIMENTS
        and data.get('emotion') in VALID_EMOTIONS
        and data.get('toxicity') in VALID_TOXICITY
        and _unit(data.get('confidence'))
        and _unit(data.get('toxicityScore'))
        and isinstance(data.get('summary'), str)
        and len(data['summary']) <= MAX_SUMMARY_LEN
    )


def parse_analysis_payload(text: str, model_used: str = '') -> Optional[ToneAnalysis]:
    """Decode + validate a JSON completion. None if it does not hold up."""
    try:
        data = json.loads(strip_code_fences(text))
    except (json.JSONDecodeError, TypeError):
        return None
    if not validate_analysis_payload(data):
        return None

    keywords = data.get('keywords') or []
    topics   = data.get('topics') or []
    return ToneAnalysis(
        sentiment      = data['sentiment'],
        emotion        = data['emotion'],
        toxicity       = data['toxicity'],
        toxicity_score = float(data['toxicityScore']),
        keywords       = list(keywords) if isinstance(keywords, list) else [],
        summary        = data['summary'],
        confidence     = float(data['confidence']),
        language       = str(data.get('language') or 'en'),
        topics         = [str(t) for t in topics] if isinstance(topics, list) else [],
        analyzed_at    = datetime.now(timezone.utc),
        model_used     = model_used,
    )


def _unit(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and 0 <= value <= 1
