"""Medal tiers derived from cumulative budget completions."""

from __future__ import annotations

from typing import Optional

from . import keys
from .completions import CompletionCounters
from .config import MEDAL_TIERS
from .kv_store import KeyValueStore
from .models import MedalBreakdown


def breakdown(total: int) -> MedalBreakdown:
    """Split ``total`` into the largest multiples of 100, 50 and 5, then ones.

    Example:
        >>> breakdown(99)
        MedalBreakdown(bronze=4, silver=9, gold=1, perfect=0)
    """
    if total < 0:
        raise ValueError("Completion total cannot be negative")
    remaining = int(total)
    counts = {}
    for name, size in MEDAL_TIERS:
        counts[name], remaining = divmod(remaining, size)
    return MedalBreakdown(**counts)


def current_medal(progress: int) -> Optional[str]:
    """Highest tier whose size ``progress`` has reached, or ``None``."""
    for name, size in MEDAL_TIERS:
        if progress >= size:
            return name
    return None


class MedalCycle:
    """Progress towards the next medal since the last cycle restart."""

    def __init__(self, store: KeyValueStore, counters: CompletionCounters) -> None:
        self.store = store
        self.counters = counters

    @property
    def start_total(self) -> int:
        return self.store.get_int(keys.medal_cycle_start_key(self.counters.account_id))

    @property
    def progress(self) -> int:
        return max(0, self.counters.total - self.start_total)

    def current_medal(self) -> Optional[str]:
        return current_medal(self.progress)

    def restart(self) -> None:
        self.store.set(keys.medal_cycle_start_key(self.counters.account_id), self.counters.total)
