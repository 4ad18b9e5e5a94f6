"""
Spike detection over a trailing window of daily detection counts.

Counts arrive most-recent-day first. The first entry is "today"; the rest
form the baseline whose arithmetic mean is compared against it. The current
day never contributes to its own baseline.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

SPIKE_MULTIPLIER = 1.5
SPIKE_WINDOW_DAYS = 7
DEFAULT_LOOKBACK = timedelta(hours=24)
MAX_ALERTS = 50


@dataclass(frozen=True)
class SpikeResult:
    today_count: int
    avg_count: int
    percent_increase: int

    def as_payload(self) -> dict:
        return {
            "todayCount": self.today_count,
            "avgCount": self.avg_count,
            "percentIncrease": self.percent_increase,
        }


def _round_half_up(value: float) -> int:
    # Math.round semantics: .5 rounds toward +infinity
    return int((value + 0.5) // 1)


def evaluate_spike(daily_counts: Sequence[int], multiplier: float = SPIKE_MULTIPLIER) -> Optional[SpikeResult]:
    """
    Returns a SpikeResult when today's count exceeds `multiplier` times the
    mean of the remaining days, otherwise None.

    Fewer than two days of data, or an all-zero baseline, is "no spike".
    """
    if len(daily_counts) < 2:
        return None

    today_count = daily_counts[0]
    history = daily_counts[1:]
    avg_count = sum(history) / len(history)

    if avg_count <= 0:
        return None
    if not today_count > avg_count * multiplier:
        return None

    return SpikeResult(
        today_count=today_count,
        avg_count=_round_half_up(avg_count),
        percent_increase=_round_half_up((today_count - avg_count) / avg_count * 100),
    )


def window_start(now: datetime, days: int = SPIKE_WINDOW_DAYS) -> datetime:
    """Midnight (UTC) of the first day of a `days`-long window ending today."""
    first_day: date = now.date() - timedelta(days=days - 1)
    return datetime.combine(first_day, datetime.min.time())


def default_watermark(now: datetime) -> datetime:
    return now - DEFAULT_LOOKBACK
