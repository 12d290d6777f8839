"""Completion credit for budget periods that closed within their limit."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from . import keys
from .kv_store import KeyValueStore
from .models import BudgetScope, PeriodKind, PeriodWindow

logger = logging.getLogger(__name__)


class CompletionCounters:
    """Persisted completion counts for a single account.

    Created when an account is selected and dropped when another one is;
    all reads go straight to the store.
    """

    def __init__(self, store: KeyValueStore, account_id: str) -> None:
        self.store = store
        self.account_id = str(account_id)

    @property
    def overall(self) -> int:
        return max(0, self.store.get_int(keys.overall_completion_count_key(self.account_id)))

    @property
    def category(self) -> int:
        return max(0, self.store.get_int(keys.category_completion_count_key(self.account_id)))

    @property
    def total(self) -> int:
        return self.overall + self.category

    def increment(self, scope: BudgetScope) -> int:
        if scope.account_id != self.account_id:
            raise ValueError(
                f"Scope account {scope.account_id} does not match counters for {self.account_id}"
            )
        if scope.is_overall:
            key = keys.overall_completion_count_key(self.account_id)
            value = self.overall + 1
        else:
            key = keys.category_completion_count_key(self.account_id)
            value = self.category + 1
        self.store.set(key, value)
        return value

    def as_dict(self) -> dict:
        return {'overall': self.overall, 'category': self.category, 'total': self.total}


class CompletionRecorder:
    """Credits each closed, within-budget period exactly once."""

    def __init__(
        self,
        store: KeyValueStore,
        counters: CompletionCounters,
        kind: PeriodKind = PeriodKind.MONTHLY,
    ) -> None:
        self.store = store
        self.counters = counters
        self.kind = kind

    def is_recorded(self, scope: BudgetScope, window: PeriodWindow) -> bool:
        return self.store.get_bool(keys.completion_flag_key(scope, self.kind, window.period_key))

    def try_record_completion(
        self,
        scope: BudgetScope,
        window: PeriodWindow,
        spend: Decimal,
        limit: Decimal,
        now: Optional[Union[date, datetime]] = None,
    ) -> bool:
        """Record the period if it has closed within budget and was not yet credited.

        Over-budget periods set no flag, so a later call can still credit the
        period if its spend is revised down.
        """
        if limit <= 0:
            return False
        today = _as_date(now) if now is not None else date.today()
        if not window.is_closed(today):
            return False
        if spend > limit:
            return False
        if self.is_recorded(scope, window):
            return False
        self.store.set(keys.completion_flag_key(scope, self.kind, window.period_key), True)
        count = self.counters.increment(scope)
        logger.info(
            "Recorded %s budget completion for period %s (account %s, count %s)",
            scope.label(), window.period_key, scope.account_id, count,
        )
        return True


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value
