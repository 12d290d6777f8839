"""Threshold notifications for budget usage.

Each (scope, period, threshold) is announced at most once. Thresholds are
scanned from highest to lowest and only the highest one the usage has
reached can fire, so jumping from 40% straight to 100% sends the 100%
message alone; 50% and 80% are not back-filled for that period.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional, Sequence

from . import keys
from .aggregation import percent_used
from .config import NOTIFICATION_THRESHOLDS
from .kv_store import KeyValueStore
from .models import BudgetScope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetNotification:
    scope: BudgetScope
    threshold: int
    period_key: str
    title: str
    body: str

    @property
    def identifier(self) -> str:
        return str(keys.notification_flag_key(self.scope, self.period_key, self.threshold))


Dispatcher = Callable[[BudgetNotification], None]


def log_dispatcher(notification: BudgetNotification) -> None:
    """Default dispatcher: record the message instead of delivering it."""
    logger.info("%s: %s", notification.title, notification.body)


def build_notification(scope: BudgetScope, threshold: int, period_key: str) -> BudgetNotification:
    if scope.is_overall:
        title = "Budget Update"
        if threshold >= 100:
            body = "You've fully used this month's budget."
        else:
            body = f"You've reached {threshold}% of this month's budget."
    else:
        name = scope.category_name
        title = f"{name} budget"
        if threshold >= 100:
            body = f"You've fully used the budget for {name}."
        else:
            body = f"You've reached {threshold}% of {name} budget."
    return BudgetNotification(
        scope=scope,
        threshold=threshold,
        period_key=period_key,
        title=title,
        body=body,
    )


class ThresholdNotifier:
    """Decides which threshold, if any, newly qualifies for a period."""

    def __init__(
        self,
        store: KeyValueStore,
        thresholds: Sequence[int] = NOTIFICATION_THRESHOLDS,
        dispatcher: Optional[Dispatcher] = None,
    ) -> None:
        self.store = store
        self.thresholds = tuple(sorted(thresholds, reverse=True))
        self.dispatcher = dispatcher or log_dispatcher

    def is_announced(self, scope: BudgetScope, period_key: str, threshold: int) -> bool:
        return self.store.get_bool(keys.notification_flag_key(scope, period_key, threshold))

    def evaluate(
        self,
        scope: BudgetScope,
        spend: Decimal,
        limit: Decimal,
        period_key: str,
    ) -> Optional[int]:
        """Claim and return the highest reached threshold if it is unannounced.

        The scan stops at the first announced threshold it meets, so once a
        higher level fired the lower ones stay silent for the period.
        """
        if limit <= 0:
            return None
        pct = percent_used(spend, limit)
        for threshold in self.thresholds:
            if self.is_announced(scope, period_key, threshold):
                return None
            if pct >= threshold:
                self.store.set(keys.notification_flag_key(scope, period_key, threshold), True)
                return threshold
        return None

    def notify_if_needed(
        self,
        scope: BudgetScope,
        spend: Decimal,
        limit: Decimal,
        period_key: str,
    ) -> Optional[BudgetNotification]:
        threshold = self.evaluate(scope, spend, limit, period_key)
        if threshold is None:
            return None
        notification = build_notification(scope, threshold, period_key)
        logger.info(
            "Budget threshold %s%% reached for %s (account %s, period %s)",
            threshold, scope.label(), scope.account_id, period_key,
        )
        self.dispatcher(notification)
        return notification
