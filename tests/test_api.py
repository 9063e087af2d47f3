"""
tests/test_api.py
─────────────────────────────────────────────────────────────────────────────
Tests for tonewatch.api — ToneWatchAPI class and the FastAPI endpoints.

Coverage:
  - classify: wire labels, matched terms, partial analysis
  - summary / mood: records parsed, re-sorted newest-first
  - analyze: keyword provider, blank text rejected
  - usage: None for keyword provider, stats for remote provider
  - HTTP: request validation (422), error mapping (400 / 404), health

All tests use the offline keyword provider or a mocked remote provider.
No network access required.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from tonewatch.api import VERSION, ToneWatchAPI, _build_app
from tonewatch.config import DEFAULT_CONFIG
from tonewatch.llm.chat_adapter import ChatCompletionsAdapter
from tonewatch.llm.keyword_adapter import KeywordToneAdapter
from tonewatch.models.record import ToneAnalysis


RECORDS = [
    {"_id": "old",   "message": "I want to die",             "submittedAt": "2024-01-01T10:00:00Z"},
    {"_id": "new",   "message": "I feel hurt and alone",     "submittedAt": "2024-01-03T10:00:00Z"},
    {"_id": "mid",   "message": "Hello, I have a question",  "submittedAt": "2024-01-02T10:00:00Z",
     "toneAnalysis": {"sentiment": "negative", "emotion": "anger"}},
]


@pytest.fixture(autouse=True)
def _no_api_keys(monkeypatch):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


@pytest.fixture
def api():
    return ToneWatchAPI(config=dict(DEFAULT_CONFIG), provider=KeywordToneAdapter())


@pytest.fixture
def client():
    app = _build_app(config=dict(DEFAULT_CONFIG), provider=KeywordToneAdapter())
    return TestClient(app)


# ── IMPORTABLE CLASS ─────────────────────────────────────────────────────────

class TestClassify:
    def test_high(self, api):
        result = api.classify("I want to die")
        assert result["riskLevel"] == "alto"
        assert result["riskLevelCode"] == "HIGH"
        assert result["matchedTerms"]["high"] == ["die"]

    def test_medium_from_analysis(self, api):
        result = api.classify("Hello", {"sentiment": "negative", "emotion": "anger"})
        assert result["riskLevel"] == "medio"
        assert result["matchedTerms"] == {"high": [], "medium": []}

    def test_low(self, api):
        assert api.classify("")["riskLevel"] == "bajo"


class TestSummary:
    def test_counts_and_alert_order(self, api):
        d = api.summary(RECORDS)
        assert (d["highCount"], d["mediumCount"], d["lowCount"]) == (2, 1, 0)
        assert [a["messageId"] for a in d["alerts"]] == ["new", "old"]
        assert d["moodTrend"] == "declining"

    def test_malformed_records_skipped(self, api):
        d = api.summary(RECORDS + [{"message": "no id"}])
        assert d["totalCount"] == 3

    def test_empty(self, api):
        d = api.summary([])
        assert d["totalCount"] == 0
        assert d["overallRiskLevel"] == 25


class TestMood:
    def test_mood_uses_config_limit(self, api):
        api.config["mood_analysis_limit"] = 1
        d = api.mood(RECORDS)
        # newest record has no analysis
        assert d["totalAnalyzed"] == 0

    def test_mood_explicit_limit(self, api):
        d = api.mood(RECORDS, limit=3)
        assert d["totalAnalyzed"] == 1
        assert d["overallMood"] == "concerning"


class TestAnalyze:
    def test_keyword_analysis(self, api):
        result = api.analyze("I feel hopeless")
        assert result["analysis"]["sentiment"] == "negative"
        assert result["analysis"]["emotion"] == "sadness"
        assert result["analysis"]["modelUsed"] == "keyword-only"
        assert result["riskLevel"] == "alto"

    def test_blank_rejected(self, api):
        with pytest.raises(ValueError):
            api.analyze("   ")

    def test_remote_failure_falls_back(self):
        remote = MagicMock()
        remote.is_available.return_value = True
        remote.analyze.return_value = None
        api = ToneWatchAPI(config=dict(DEFAULT_CONFIG), provider=remote)
        result = api.analyze("Thank you so much")
        assert result["analysis"]["modelUsed"] == "keyword-only"
        assert result["riskLevel"] == "bajo"

    def test_remote_result_used(self):
        remote = MagicMock()
        remote.is_available.return_value = True
        remote.analyze.return_value = ToneAnalysis(
            sentiment="negative", emotion="anger", toxicity="toxic",
            toxicity_score=0.6, keywords=["rude"], model_used="deepseek-chat",
        )
        result = ToneWatchAPI(config=dict(DEFAULT_CONFIG), provider=remote).analyze("You are rude")
        assert result["analysis"]["keywords"] == [{"word": "rude", "score": None}]
        assert result["riskLevelCode"] == "MEDIUM"


class TestUsage:
    def test_keyword_provider_has_no_usage(self, api):
        assert api.usage() is None
        api.reset_usage()

    def test_remote_usage_and_reset(self):
        provider = ChatCompletionsAdapter(api_key="k")
        provider.usage.record({"prompt_tokens": 10, "completion_tokens": 5}, provider.preset.pricing)
        api = ToneWatchAPI(config=dict(DEFAULT_CONFIG), provider=provider)
        assert api.usage()["total"]["tokens_used"] == 15
        api.reset_usage()
        assert api.usage()["total"]["requests"] == 0


# ── HTTP ─────────────────────────────────────────────────────────────────────

class TestHttp:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {
            "status": "ok", "provider": "keyword", "provider_available": True, "version": VERSION,
        }

    def test_classify(self, client):
        r = client.post("/risk/classify", json={"text": "I am worried"})
        assert r.status_code == 200
        assert r.json()["riskLevel"] == "medio"

    def test_summary(self, client):
        payload = {"messages": [
            {"id": "a", "text": "I want to die",  "submittedAt": "2024-01-01T10:00:00Z"},
            {"id": "b", "text": "Hello",          "submittedAt": "2024-01-02T10:00:00Z",
             "analysis": {"sentiment": "negative"}},
        ]}
        r = client.post("/risk/summary", json=payload)
        assert r.status_code == 200
        data = r.json()
        assert data["highCount"] == 1
        assert data["lowCount"] == 1
        assert data["alerts"][0]["messageId"] == "a"
        assert data["alerts"][0]["messageExcerpt"] == "I want to die..."
        assert data["moodTrend"] == "declining"

    def test_summary_rejects_oversized_text(self, client):
        payload = {"messages": [
            {"id": "a", "text": "x" * 1001, "submittedAt": "2024-01-01T10:00:00Z"},
        ]}
        assert client.post("/risk/summary", json=payload).status_code == 422

    def test_summary_rejects_whitespace_text(self, client):
        payload = {"messages": [{"id": "a", "text": "   ", "submittedAt": "2024-01-01T10:00:00Z"}]}
        assert client.post("/risk/summary", json=payload).status_code == 422

    def test_summary_rejects_duplicate_ids(self, client):
        payload = {"messages": [
            {"id": "a", "text": "first",  "submittedAt": "2024-01-01T10:00:00Z"},
            {"id": "a", "text": "second", "submittedAt": "2024-01-02T10:00:00Z"},
        ]}
        assert client.post("/risk/summary", json=payload).status_code == 422
        assert client.post("/mood-analysis", json=payload).status_code == 422

    def test_summary_counts_match_request(self, client):
        payload = {"messages": [
            {"id": str(i), "text": f"note {i}", "submittedAt": "2024-01-01T10:00:00Z"}
            for i in range(4)
        ]}
        assert client.post("/risk/summary", json=payload).json()["totalCount"] == 4

    def test_summary_rejects_missing_timestamp(self, client):
        payload = {"messages": [{"id": "a", "text": "hi"}]}
        assert client.post("/risk/summary", json=payload).status_code == 422

    def test_mood(self, client):
        payload = {"messages": [
            {"id": "a", "text": "hi", "submittedAt": "2024-01-01T10:00:00Z",
             "analysis": {"sentiment": "positive", "emotion": "joy"}},
        ], "limit": 10}
        r = client.post("/mood-analysis", json=payload)
        assert r.status_code == 200
        assert r.json()["overallMood"] == "positive"

    def test_mood_limit_bounds(self, client):
        assert client.post("/mood-analysis", json={"messages": [], "limit": 0}).status_code == 422

    def test_analyze(self, client):
        r = client.post("/analyze", json={"text": "I am so happy, thank you"})
        assert r.status_code == 200
        assert r.json()["analysis"]["sentiment"] == "positive"

    def test_analyze_blank_is_400(self, client):
        assert client.post("/analyze", json={"text": "   "}).status_code == 400

    def test_analyze_empty_is_422(self, client):
        assert client.post("/analyze", json={"text": ""}).status_code == 422

    def test_usage_404_for_keyword_provider(self, client):
        assert client.get("/usage").status_code == 404

    def test_usage_reset(self, client):
        r = client.post("/usage/reset")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}
