"""
tonewatch/api.py
─────────────────────────────────────────────────────────────────────────────
tonewatch — Dual-mode API layer

TWO USAGE MODES:
  1. Importable module (site backend, batch jobs):
         from tonewatch.api import ToneWatchAPI
         api = ToneWatchAPI()
         level = api.classify("I'm anxious about my exam")
         summary = api.summary(records)

  2. FastAPI HTTP server (admin dashboard via fetch()):
         python -m tonewatch.api                  # default: port 8765
         python -m tonewatch.api --port 9000
         uvicorn tonewatch.api:app --port 8765

ENDPOINTS:
  POST /risk/classify   — risk level for one message (+ optional analysis)
  POST /risk/summary    — dashboard risk summary over a message list
  POST /mood-analysis   — recent-mood report over a message list
  POST /analyze         — run the tone provider on one message, return analysis + risk
  GET  /usage           — provider token usage / cost
  POST /usage/reset     — clear usage counters
  GET  /health          — status

STATELESS: every request recomputes from the messages it carries. The
contact store owns persistence; nothing here is cached between requests.

PRIVACY NOTE:
  Message text is never logged. /analyze forwards text to the configured
  remote provider when one is set up; keyword mode stays on-host.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tonewatch.aggregators.mood_aggregator import compute_mood_analysis
from tonewatch.aggregators.risk_aggregator import compute_risk_summary
from tonewatch.config import build_provider, load_config
from tonewatch.detectors.normalizer import normalize_analysis
from tonewatch.detectors.risk_classifier import classify_message_risk, matched_terms
from tonewatch.detectors.tone_detector import analyze_tone
from tonewatch.llm.base import ToneProvider
from tonewatch.parsers.message_parser import MAX_TEXT_LEN, parse_messages
from tonewatch.report_export import (
    mood_analysis_to_dict,
    risk_level_to_wire,
    summary_to_dict,
)

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


# ═══════════════════════════════════════════════════════════════════════════
# IMPORTABLE CLASS
# ═══════════════════════════════════════════════════════════════════════════

class ToneWatchAPI:
    """
    Pure-Python wrapper around the risk core and the tone provider.
    No HTTP layer required — import and call directly.

    Usage:
        api = ToneWatchAPI()
        api.classify(text, analysis)      # {"riskLevel": "alto", ...}
        api.summary(records)              # dashboard summary dict
        api.mood(records)                 # mood report dict
        api.analyze(text)                 # provider analysis + risk
    """

    def __init__(
        self,
        config:   Optional[Dict[str, Any]] = None,
        provider: Optional[ToneProvider]   = None,
    ):
        self.config   = config if config is not None else load_config()
        self.provider = provider or build_provider(self.config)

    # ── RISK ──────────────────────────────────────────────────────────────

    def classify(self, text: str, analysis: Any = None) -> Dict[str, Any]:
        level = classify_message_risk(text, analysis)
        return {
            "riskLevel":     risk_level_to_wire(level),
            "riskLevelCode": level,
            "matchedTerms":  matched_terms(text, analysis),
        }

    def summary(self, records: List[Dict[str, Any]]) -> Dict[str, Any]:
        messages = parse_messages(records)
        summary = compute_risk_summary(messages)
        logger.info(
            f"Risk summary served: received={len(records)} "
            f"parsed={len(messages)} alerts={len(summary.alerts)}"
        )
        return summary_to_dict(summary)

    def mood(self, records: List[Dict[str, Any]], limit: Optional[int] = None) -> Dict[str, Any]:
        if limit is None:
            limit = int(self.config.get("mood_analysis_limit") or 50)
        messages = parse_messages(records)
        return mood_analysis_to_dict(compute_mood_analysis(messages, limit=limit))

    # ── PROVIDER ──────────────────────────────────────────────────────────

    def analyze(self, text: str) -> Dict[str, Any]:
        """
        Run the configured provider (keyword fallback on failure).
        Raises ValueError on blank text.
        """
        if not (text or "").strip():
            raise ValueError("text must not be blank")

        provider = self.provider if self.provider.is_available() else None
        analysis = analyze_tone(text, provider=provider)
        norm = normalize_analysis(analysis)
        level = classify_message_risk(text, norm)

        return {
            "analysis": None if analysis is None else {
                "sentiment":     norm.sentiment,
                "emotion":       norm.emotion,
                "confidence":    norm.confidence,
                "toxicity":      norm.toxicity,
                "toxicityScore": norm.toxicity_score,
                "language":      analysis.language or "en",
                "keywords":      [
                    {"word": k.word, "score": k.score} for k in norm.keywords
                ],
                "topics":        list(analysis.topics),
                "summary":       norm.summary,
                "analyzedAt":    analysis.analyzed_at.isoformat() if analysis.analyzed_at else None,
                "modelUsed":     analysis.model_used,
            },
            "riskLevel":     risk_level_to_wire(level),
            "riskLevelCode": level,
        }

    def usage(self) -> Optional[Dict[str, Any]]:
        """Token usage for remote providers; None for the keyword provider."""
        tracker = getattr(self.provider, "usage", None)
        return tracker.stats() if tracker is not None else None

    def reset_usage(self) -> None:
        tracker = getattr(self.provider, "usage", None)
        if tracker is not None:
            tracker.reset()


# ═══════════════════════════════════════════════════════════════════════════
# FASTAPI HTTP APP
# ═══════════════════════════════════════════════════════════════════════════

class MessageIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id:           str
    text:         str                       = Field(min_length=1, max_length=MAX_TEXT_LEN)
    submitted_at: datetime                  = Field(alias="submittedAt")
    analysis:     Optional[Dict[str, Any]]  = None

    # the parser drops these silently; reject them so counts match the request
    @field_validator("id")
    @classmethod
    def id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id must not be blank")
        return v

    @field_validator("text")
    @classmethod
    def text_has_content(cls, v: str) -> str:
        if not any(c.isprintable() and not c.isspace() for c in v):
            raise ValueError("text must contain visible characters")
        return v


def _unique_ids(messages: List[MessageIn]) -> List[MessageIn]:
    seen = set()
    for m in messages:
        if m.id in seen:
            raise ValueError(f"duplicate message id: {m.id}")
        seen.add(m.id)
    return messages


class ClassifyRequest(BaseModel):
    text:     str                      = Field("", max_length=MAX_TEXT_LEN)
    analysis: Optional[Dict[str, Any]] = None


class SummaryRequest(BaseModel):
    messages: List[MessageIn] = Field(default_factory=list)

    @field_validator("messages")
    @classmethod
    def messages_unique(cls, v: List[MessageIn]) -> List[MessageIn]:
        return _unique_ids(v)


class MoodRequest(BaseModel):
    messages: List[MessageIn] = Field(default_factory=list)
    limit:    Optional[int]   = Field(None, ge=1, le=500)

    @field_validator("messages")
    @classmethod
    def messages_unique(cls, v: List[MessageIn]) -> List[MessageIn]:
        return _unique_ids(v)


class AnalyzeRequest(BaseModel):
    text: str = Field(min_length=1, max_length=MAX_TEXT_LEN)


def _records(messages: List[MessageIn]) -> List[Dict[str, Any]]:
    return [m.model_dump(by_alias=True) for m in messages]


def _build_app(
    config:   Optional[Dict[str, Any]] = None,
    provider: Optional[ToneProvider]   = None,
) -> FastAPI:
    """
    Build and return the FastAPI application instance.
    Called once at module level or on demand (tests, custom config).
    """
    _api = ToneWatchAPI(config=config, provider=provider)

    _app = FastAPI(
        title       = "tonewatch API",
        description = "Message tone and risk analysis for the admin dashboard",
        version     = VERSION,
        docs_url    = "/docs",
        redoc_url   = None,
    )

    _app.add_middleware(
        CORSMiddleware,
        allow_origins     = list(_api.config.get("cors_origins") or []),
        allow_methods     = ["GET", "POST", "OPTIONS"],
        allow_headers     = ["Content-Type"],
        allow_credentials = False,
    )

    # ── ENDPOINTS ───────────────────────────────────────────────────────

    @_app.post("/risk/classify", summary="Classify one message")
    def classify(req: ClassifyRequest):
        """Risk level for one message. `analysis` may be omitted or partial."""
        return _api.classify(req.text, req.analysis)

    @_app.post("/risk/summary", summary="Dashboard risk summary")
    def risk_summary(req: SummaryRequest):
        """
        Counts, mood trend, up to 5 alerts, safety percentage and
        overall risk level. Messages are re-ordered newest-first.
        Blank ids or texts and duplicate ids are rejected (422), so the
        counts always sum to the number of messages sent.
        """
        try:
            return _api.summary(_records(req.messages))
        except Exception as exc:
            logger.error(f"Risk summary error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Risk summary failed")

    @_app.post("/mood-analysis", summary="Recent mood report")
    def mood_analysis(req: MoodRequest):
        try:
            return _api.mood(_records(req.messages), limit=req.limit)
        except Exception as exc:
            logger.error(f"Mood analysis error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Mood analysis failed")

    @_app.post("/analyze", summary="Analyze one message with the tone provider")
    def analyze(req: AnalyzeRequest):
        try:
            return _api.analyze(req.text)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except Exception as exc:
            logger.error(f"Analyze endpoint error: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Analysis failed")

    @_app.get("/usage", summary="Provider token usage")
    def usage():
        data = _api.usage()
        if data is None:
            raise HTTPException(
                status_code=404,
                detail=f"Provider '{_api.provider.name}' does not track token usage",
            )
        return data

    @_app.post("/usage/reset", summary="Reset provider token usage")
    def usage_reset():
        _api.reset_usage()
        return {"status": "ok"}

    @_app.get("/health", summary="Health check")
    def health():
        return {
            "status":             "ok",
            "provider":           _api.provider.name,
            "provider_available": _api.provider.is_available(),
            "version":            VERSION,
        }

    return _app


# Module-level app instance — used by uvicorn tonewatch.api:app
app = _build_app()


# ═══════════════════════════════════════════════════════════════════════════
# CLI ENTRYPOINT — python -m tonewatch.api
# ═══════════════════════════════════════════════════════════════════════════

def serve():
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(
        prog        = "tonewatch-api",
        description = "tonewatch API server — serves the admin dashboard",
    )
    parser.add_argument("--port", type=int, default=None,
                        help="Port to bind (default: config api_port)")
    parser.add_argument("--host", type=str, default=None,
                        help="Host to bind (default: config api_host)")
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory holding tonewatch_config.json (default: cwd)")
    args = parser.parse_args()

    logging.basicConfig(
        level  = logging.INFO,
        format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    config = load_config(args.config_dir)
    host = args.host or config["api_host"]
    port = args.port or int(config["api_port"])

    server_app = _build_app(config=config)
    logger.info(f"tonewatch API v{VERSION} on http://{host}:{port} (docs: /docs)")
    uvicorn.run(server_app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    serve()
