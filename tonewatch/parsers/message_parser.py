"""
tonewatch/parsers/message_parser.py
Parses contact-form submissions exported from the contact store (JSON).

Accepted record keys (store export and API payloads both work):
  id            ← "_id" | "id"
  text          ← "message" | "text"
  submitted_at  ← "submittedAt" | "submitted_at"  (ISO-8601 or epoch ms)
  analysis      ← "toneAnalysis" | "analysis"     (left raw; the normalizer handles it)

Malformed records are skipped, never fatal. Output is deduplicated on id
and ordered newest-first, the order the risk aggregator expects.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from tonewatch.models.record import Message, ToneAnalysis

logger = logging.getLogger(__name__)

MAX_TEXT_LEN = 1000


def parse_message(raw: Any) -> Optional[Message]:
    """One record → Message, or None if it lacks an id, text or timestamp."""
    if not isinstance(raw, Mapping):
        return None
    try:
        msg_id = _first(raw, '_id', 'id')
        if isinstance(msg_id, Mapping):
            msg_id = msg_id.get('$oid')
        if msg_id is None or str(msg_id).strip() == '':
            return None

        text = _sanitize(_first(raw, 'message', 'text'))
        if not text:
            return None

        submitted = parse_timestamp(_first(raw, 'submittedAt', 'submitted_at'))
        if submitted is None:
            return None

        analysis = _first(raw, 'toneAnalysis', 'analysis')
        return Message(
            id           = str(msg_id),
            text         = text,
            submitted_at = submitted,
            analysis     = analysis if isinstance(analysis, (Mapping, ToneAnalysis)) else None,
        )
    except Exception as e:
        logger.debug(f"Skipped message record: {e}")
        return None


def parse_messages(records: Iterable[Any]) -> List[Message]:
    """Parse, drop malformed, dedupe on id (first wins), sort newest-first."""
    out: List[Message] = []
    seen: set = set()
    skipped = 0

    for raw in records:
        msg = parse_message(raw)
        if msg is None:
            skipped += 1
            continue
        if msg.id in seen:
            continue
        seen.add(msg.id)
        out.append(msg)

    if skipped:
        logger.warning(f"Skipped {skipped} malformed message record(s)")

    out.sort(key=lambda m: m.submitted_at, reverse=True)
    return out


def parse_message_file(path: Path) -> List[Message]:
    """
    Read a JSON export: either a list of records or {"messages": [...]}.
    Returns [] on read / decode failure.
    """
    try:
        data = json.loads(Path(path).read_text(encoding='utf-8-sig'))
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error in {Path(path).name}: {e}")
        return []
    except OSError as e:
        logger.error(f"File read error {Path(path).name}: {e}")
        return []

    if isinstance(data, Mapping):
        data = data.get('messages') or data.get('contacts') or []
    if not isinstance(data, list):
        logger.error(f"Unexpected JSON shape in {Path(path).name}")
        return []

    messages = parse_messages(data)
    logger.info(f"Parsed {len(messages)} messages from {Path(path).name}")
    return messages


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 string, epoch milliseconds, or datetime → aware datetime (UTC if naive)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OSError, OverflowError, ValueError):
            return None
    if isinstance(value, Mapping) and '$date' in value:
        # Mongo extended JSON
        return parse_timestamp(value['$date'])
    if isinstance(value, str):
        s = value.strip()
        if s.endswith('Z'):
            s = s[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            return None
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    return None


# ── HELPERS ──────────────────────────────────────────────────

def _first(raw: Mapping, *keys: str) -> Any:
    for k in keys:
        if raw.get(k) is not None:
            return raw[k]
    return None


def _sanitize(text: Any, max_len: int = MAX_TEXT_LEN) -> str:
    if not isinstance(text, str) or not text:
        return ''
    cleaned = ''.join(c for c in text if c.isprintable() or c in '\n\r\t')
    return cleaned.strip()[:max_len]
