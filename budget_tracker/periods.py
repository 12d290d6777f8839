"""Rolling budget window arithmetic and persistence.

A window spans one calendar month. Stored windows are never back-dated:
edits clamp the start to today and re-derive the end so the span stays
exactly one month (``end == add_months(start, 1)``). When nothing is
stored the current calendar month is used without writing anything.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Optional

import pandas as pd

from . import keys
from .config import DEFAULT_PERIOD_KIND
from .kv_store import KeyValueStore
from .models import BudgetScope, PeriodKind, PeriodWindow, period_key

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------


def add_months(day: date, months: int) -> date:
    """Add ``months`` to ``day``, clamping the day to the target month's length."""
    return (pd.Timestamp(day) + pd.DateOffset(months=months)).date()


def month_start(day: date) -> date:
    return day.replace(day=1)


def default_window(today: date) -> PeriodWindow:
    """Calendar month containing ``today``."""
    start = month_start(today)
    return PeriodWindow(start=start, end=add_months(start, 1) - timedelta(days=1))


def rolling_window(start: date) -> PeriodWindow:
    return PeriodWindow(start=start, end=add_months(start, 1))


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------


class PeriodCalculator:
    """Reads and edits the active window for each scope of one store."""

    def __init__(self, store: KeyValueStore, clock: Optional[Clock] = None) -> None:
        self.store = store
        self.clock = clock or date.today

    def today(self) -> date:
        return self.clock()

    def active_period(self, scope: BudgetScope) -> PeriodKind:
        # Monthly is the only kind in use; stored kinds are kept for later ones.
        return PeriodKind(DEFAULT_PERIOD_KIND)

    def active_window(self, scope: BudgetScope) -> PeriodWindow:
        kind = self.active_period(scope)
        start = self.store.get_date(keys.window_start_key(scope, kind))
        end = self.store.get_date(keys.window_end_key(scope, kind))
        if start is None:
            logger.debug("No stored window for %s; using calendar month", scope.label())
            return default_window(self.today())
        if end is None or end < start:
            return rolling_window(start)
        return PeriodWindow(start=start, end=end)

    def set_window(
        self,
        scope: BudgetScope,
        start: date,
        end: Optional[date] = None,
    ) -> PeriodWindow:
        """Persist a window starting at ``start`` (never before today).

        ``end`` is accepted for symmetry with stored windows but is always
        re-derived as one month after the clamped start.
        """
        clamped = max(start, self.today())
        window = rolling_window(clamped)
        if end is not None and end != window.end:
            logger.debug("Window end %s re-derived as %s", end, window.end)
        self._persist(scope, window)
        return window

    def shift_start_toward_end(self, scope: BudgetScope, months: int = 1) -> PeriodWindow:
        """Move the start bound by ``months``; the end follows one month later."""
        current = self.active_window(scope)
        return self.set_window(scope, add_months(current.start, months))

    def shift_end_toward_start(self, scope: BudgetScope, months: int = -1) -> PeriodWindow:
        """Move the end bound by ``months``; the start is re-derived one month earlier."""
        current = self.active_window(scope)
        today = self.today()
        new_end = max(add_months(current.end, months), today)
        return self.set_window(scope, add_months(new_end, -1))

    def clear_window(self, scope: BudgetScope) -> None:
        kind = self.active_period(scope)
        self.store.delete(keys.window_start_key(scope, kind))
        self.store.delete(keys.window_end_key(scope, kind))
        if scope.is_category:
            self.store.delete(keys.category_period_kind_key(scope))

    def period_key(self, scope: BudgetScope) -> str:
        return period_key(self.active_window(scope).end)

    def _persist(self, scope: BudgetScope, window: PeriodWindow) -> None:
        kind = self.active_period(scope)
        self.store.set(keys.window_start_key(scope, kind), window.start)
        self.store.set(keys.window_end_key(scope, kind), window.end)
        if scope.is_category:
            self.store.set(keys.category_period_kind_key(scope), kind.value)
