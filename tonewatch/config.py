"""
tonewatch/config.py
JSON config with defaults. Persists to tonewatch_config.json.
API keys come from the environment only and are never written to disk.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from tonewatch.llm.base import ToneProvider
from tonewatch.llm.chat_adapter import PRESETS, ChatCompletionsAdapter
from tonewatch.llm.keyword_adapter import KeywordToneAdapter

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "tonewatch_config.json"

DEFAULT_CONFIG = {
    "provider": "auto",             # auto / deepseek / openai / keyword
    "deepseek_model": "deepseek-chat",
    "deepseek_host": "https://api.deepseek.com/v1",
    "openai_model": "gpt-3.5-turbo",
    "openai_host": "https://api.openai.com/v1",
    "provider_timeout_sec": 30,
    "api_host": "127.0.0.1",
    "api_port": 8765,
    "cors_origins": [
        "http://localhost",
        "http://localhost:3000",
        "http://127.0.0.1",
        "http://127.0.0.1:3000",
    ],
    "mood_analysis_limit": 50,
}

# env var → config key
ENV_KEYS = {
    "DEEPSEEK_API_KEY": "deepseek_api_key",
    "OPENAI_API_KEY":   "openai_api_key",
}

_SECRET_KEYS = frozenset(ENV_KEYS.values())


def _config_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path.cwd()
    return root / CONFIG_FILENAME


def load_config(project_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load config from tonewatch_config.json + environment. Returns defaults if missing."""
    config = dict(DEFAULT_CONFIG)
    path = _config_path(project_root)
    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                config.update(data)
            else:
                logger.warning(f"Config load failed: {path.name} is not a JSON object")
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Config load failed: {e}")

    for env_name, key in ENV_KEYS.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value
    return config


def save_config(config: Dict[str, Any], project_root: Optional[Path] = None) -> Path:
    """Persist config to tonewatch_config.json. Secrets are stripped."""
    path = _config_path(project_root)
    public = {k: v for k, v in config.items() if k not in _SECRET_KEYS}
    path.write_text(json.dumps(public, indent=2), encoding="utf-8")
    return path


def build_provider(config: Dict[str, Any]) -> ToneProvider:
    """
    Pick the tone provider named by config["provider"].
    "auto" prefers DeepSeek, then OpenAI, then the offline keyword provider,
    depending on which API keys are present.
    """
    choice = str(config.get("provider") or "auto").lower()
    timeout = int(config.get("provider_timeout_sec") or 30)

    if choice == "auto":
        if config.get("deepseek_api_key"):
            choice = "deepseek"
        elif config.get("openai_api_key"):
            choice = "openai"
        else:
            choice = "keyword"
            logger.warning("No provider API keys found. Using keyword analysis.")

    if choice in PRESETS:
        return ChatCompletionsAdapter(
            api_key     = config.get(f"{choice}_api_key"),
            preset      = PRESETS[choice],
            model       = config.get(f"{choice}_model"),
            host        = config.get(f"{choice}_host"),
            timeout_sec = timeout,
        )

    if choice != "keyword":
        logger.warning(f"Unknown provider '{choice}' — using keyword analysis")
    return KeywordToneAdapter()
