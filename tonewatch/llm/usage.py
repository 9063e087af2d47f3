"""
tonewatch/llm/usage.py
Token usage and cost accounting for remote tone providers.

One tracker per provider instance, clock injected so day buckets are
testable. Nothing module-level: two adapters never share counters.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pricing:
    """USD per 1K tokens."""
    input_per_1k:  float
    output_per_1k: float


DEEPSEEK_PRICING = Pricing(input_per_1k=0.00014, output_per_1k=0.00028)
OPENAI_PRICING   = Pricing(input_per_1k=0.0015,  output_per_1k=0.002)


@dataclass
class DailyUsage:
    tokens:        int   = 0
    requests:      int   = 0
    cost:          float = 0.0
    input_tokens:  int   = 0
    output_tokens: int   = 0


@dataclass
class _Totals:
    tokens_used: int   = 0
    requests:    int   = 0
    cost:        float = 0.0
    daily:       Dict[date, DailyUsage] = field(default_factory=dict)


class TokenUsageTracker:

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock  = clock or datetime.now
        self._totals = _Totals()

    def record(self, usage: Optional[Mapping], pricing: Pricing) -> float:
        """
        Add one response's `usage` block (prompt_tokens / completion_tokens /
        total_tokens). Returns the cost of this call. Missing or non-mapping usage is a no-op.
        """
        if not isinstance(usage, Mapping) or not usage:
            return 0.0

        prompt     = _int(usage.get('prompt_tokens'))
        completion = _int(usage.get('completion_tokens'))
        total      = _int(usage.get('total_tokens')) or prompt + completion

        cost = (prompt * pricing.input_per_1k + completion * pricing.output_per_1k) / 1000

        self._totals.tokens_used += total
        self._totals.requests    += 1
        self._totals.cost        += cost

        day = self._today()
        daily = self._totals.daily.setdefault(day, DailyUsage())
        daily.tokens        += total
        daily.requests      += 1
        daily.cost          += cost
        daily.input_tokens  += prompt
        daily.output_tokens += completion

        logger.info(f"Provider usage: tokens={total} cost=${cost:.6f}")
        return cost

    def stats(self) -> dict:
        """Totals, today, the last 7 days (oldest first) and average tokens/request."""
        today = self._today()
        last_7 = []
        for offset in range(6, -1, -1):
            day = today - timedelta(days=offset)
            last_7.append({'date': day.isoformat(), **_daily_dict(self._totals.daily.get(day))})

        requests = self._totals.requests
        return {
            'total': {
                'tokens_used': self._totals.tokens_used,
                'requests':    requests,
                'cost':        self._totals.cost,
            },
            'today':  _daily_dict(self._totals.daily.get(today)),
            'last_7_days': last_7,
            'average_tokens_per_request': (
                round(self._totals.tokens_used / requests) if requests else 0
            ),
        }

    def reset(self) -> None:
        self._totals = _Totals()

    def _today(self) -> date:
        return self._clock().date()


def _daily_dict(d: Optional[DailyUsage]) -> dict:
    d = d or DailyUsage()
    return {
        'tokens':        d.tokens,
        'requests':      d.requests,
        'cost':          d.cost,
        'input_tokens':  d.input_tokens,
        'output_tokens': d.output_tokens,
    }


def _int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0
