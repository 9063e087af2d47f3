"""
tonewatch/llm/chat_adapter.py
OpenAI-compatible /chat/completions backend. Covers DeepSeek and OpenAI;
both speak the same request/response shape and differ only in host,
model name and token pricing.

API keys come from config / environment (DEEPSEEK_API_KEY, OPENAI_API_KEY).
Message text is sent to the remote provider but never logged.
"""

import json
import logging
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional

from tonewatch.llm.base import SYSTEM_PROMPT, ToneProvider, parse_analysis_payload
from tonewatch.llm.usage import DEEPSEEK_PRICING, OPENAI_PRICING, Pricing, TokenUsageTracker
from tonewatch.models.record import ToneAnalysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatPreset:
    name:       str
    host:       str
    model:      str
    pricing:    Pricing
    max_tokens: int


DEEPSEEK = ChatPreset(
    name       = 'deepseek',
    host       = 'https://api.deepseek.com/v1',
    model      = 'deepseek-chat',
    pricing    = DEEPSEEK_PRICING,
    max_tokens = 500,
)

OPENAI = ChatPreset(
    name       = 'openai',
    host       = 'https://api.openai.com/v1',
    model      = 'gpt-3.5-turbo',
    pricing    = OPENAI_PRICING,
    max_tokens = 500,
)

PRESETS = {p.name: p for p in (DEEPSEEK, OPENAI)}


class ChatCompletionsAdapter(ToneProvider):

    def __init__(
        self,
        api_key:     Optional[str],
        preset:      ChatPreset                  = DEEPSEEK,
        model:       Optional[str]               = None,
        host:        Optional[str]               = None,
        timeout_sec: int                         = 30,
        temperature: float                       = 0.3,
        usage:       Optional[TokenUsageTracker] = None,
    ):
        self.api_key     = api_key or ''
        self.preset      = preset
        self.name        = preset.name
        self.model       = model or preset.model
        self.host        = (host or preset.host).rstrip('/')
        self.timeout_sec = timeout_sec
        self.temperature = temperature
        self.usage       = usage or TokenUsageTracker()

    # ── AVAILABILITY CHECK ───────────────────────────────────
    def is_available(self) -> bool:
        """Configured = has a key. No network probe; the call itself is the probe."""
        if not self.api_key:
            logger.warning(f"{self.name}: no API key configured")
            return False
        return True

    # ── ANALYSIS ─────────────────────────────────────────────
    def analyze(self, text: str) -> Optional[ToneAnalysis]:
        if not self.api_key:
            return None

        payload = json.dumps({
            'model': self.model,
            'messages': [
                {'role': 'system', 'content': SYSTEM_PROMPT},
                {'role': 'user',   'content': self.build_prompt(text)},
            ],
            'max_tokens':  self.preset.max_tokens,
            'temperature': self.temperature,
        }).encode('utf-8')

        start = time.perf_counter()
        try:
            req = urllib.request.Request(
                f"{self.host}/chat/completions",
                data    = payload,
                headers = {
                    'Content-Type':  'application/json',
                    'Authorization': f"Bearer {self.api_key}",
                },
                method  = 'POST',
            )
            with urllib.request.urlopen(req, timeout=self.timeout_sec) as resp:
                data = json.loads(resp.read().decode('utf-8'))

        except urllib.error.HTTPError as e:
            logger.error(f"{self.name} API error: {e.code} {e.reason}")
            return None
        except urllib.error.URLError as e:
            logger.error(f"{self.name} request failed: {e.reason}")
            return None
        except json.JSONDecodeError as e:
            logger.error(f"JSON decode failed in {self.name} response: {e}")
            return None
        except Exception as e:
            logger.error(f"{self.name} analyze error: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"{self.name}: response body is not a JSON object")
            return None

        self.usage.record(data.get('usage'), self.preset.pricing)

        try:
            content = data['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError):
            logger.warning(f"{self.name}: response carried no completion")
            return None

        analysis = parse_analysis_payload(content, model_used=self.model)
        if analysis is None:
            logger.warning(f"{self.name}: invalid analysis payload")
            return None

        logger.debug(
            f"{self.name} analysis ok: latency_sec={time.perf_counter() - start:.2f}"
        )
        return analysis
