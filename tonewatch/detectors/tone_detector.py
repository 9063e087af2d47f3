"""
tonewatch/detectors/tone_detector.py
Provider orchestration. Tries the configured remote provider, falls back
to the offline keyword provider when it is unavailable or a call fails.

Privacy: counts and latency only in logs. Never message content.
"""

import logging
import time
from dataclasses import replace
from typing import Callable, List, Optional

from tonewatch.llm.base import ToneProvider
from tonewatch.llm.keyword_adapter import KeywordToneAdapter
from tonewatch.models.record import Message, ToneAnalysis

logger = logging.getLogger(__name__)


def analyze_tone(
    text:     str,
    provider: Optional[ToneProvider] = None,
    fallback: Optional[ToneProvider] = None,
) -> Optional[ToneAnalysis]:
    """
    One message. Returns None only for blank text or when every backend fails.
    Never raises.
    """
    if not (text or '').strip():
        return None

    fallback = fallback if fallback is not None else KeywordToneAdapter()

    for backend in (provider, fallback):
        if backend is None:
            continue
        try:
            result = backend.analyze(text)
        except Exception as e:
            # Adapters are not supposed to raise; treat it as a failed call
            logger.error(f"{getattr(backend, 'name', 'provider')} raised: {e}")
            result = None
        if result is not None:
            return result
        logger.warning(f"{getattr(backend, 'name', 'provider')} returned no analysis")

    return None


def analyze_messages(
    messages:    List[Message],
    provider:    Optional[ToneProvider] = None,
    fallback:    Optional[ToneProvider] = None,
    progress_cb: Optional[Callable[[int, int], None]] = None,
    overwrite:   bool = False,
) -> List[Message]:
    """
    Batch re-analysis. Fills `analysis` on messages that lack one
    (or on all of them with overwrite=True). Returns new Message objects
    in the same order; inputs are not mutated.
    """
    if not messages:
        logger.info("Tone analysis: 0 messages — nothing to analyze.")
        return []

    if provider is not None and not provider.is_available():
        logger.warning(
            f"{getattr(provider, 'name', 'provider')} unavailable — "
            f"running keyword-only mode."
        )
        provider = None

    start    = time.perf_counter()
    pending  = [m for m in messages if overwrite or m.analysis is None]
    total    = len(pending)
    analyzed = 0
    out: List[Message] = []

    for msg in messages:
        if not (overwrite or msg.analysis is None):
            out.append(msg)
            continue

        analyzed += 1
        if progress_cb:
            progress_cb(analyzed, total)

        result = analyze_tone(msg.text, provider=provider, fallback=fallback)
        out.append(replace(msg, analysis=result) if result is not None else msg)

    logger.info(
        "Tone analysis complete: count=%s latency_sec=%.2f",
        total,
        time.perf_counter() - start,
    )
    return out
