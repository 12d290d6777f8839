"""Budget limit storage.

Overall limits live under one key per account. Category limits prefer a key
built from the category id; older entries written before ids existed are
keyed by category name and are still read as a fallback. Any write for a
category with an id removes the name-keyed entry so the two never diverge.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from . import keys
from .kv_store import KeyValueStore
from .models import BudgetScope
from .periods import PeriodCalculator

logger = logging.getLogger(__name__)


class BudgetLimitStore:
    """Reads and writes configured limits; ``0`` means no limit is set."""

    def __init__(
        self,
        store: KeyValueStore,
        periods: Optional[PeriodCalculator] = None,
    ) -> None:
        self.store = store
        self.periods = periods or PeriodCalculator(store)

    def get_limit(self, scope: BudgetScope) -> Decimal:
        if scope.is_overall:
            return self._positive(self.store.get_decimal(keys.overall_limit_key(scope.account_id)))
        if scope.category_id:
            value = self.store.get_decimal(
                keys.category_limit_id_key(scope.account_id, scope.category_id)
            )
            if value > 0:
                return value
        legacy = self.store.get_decimal(
            keys.category_limit_name_key(scope.account_id, str(scope.category_name))
        )
        return self._positive(legacy)

    def has_limit(self, scope: BudgetScope) -> bool:
        return self.get_limit(scope) > 0

    def set_limit(self, scope: BudgetScope, amount: Decimal) -> None:
        """Store ``amount`` for ``scope``; non-positive amounts clear the limit."""
        amount = Decimal(str(amount))
        if amount <= 0:
            self.clear_limit(scope)
            return
        if scope.is_overall:
            self.store.set(keys.overall_limit_key(scope.account_id), amount)
        elif scope.category_id:
            self.store.set(keys.category_limit_id_key(scope.account_id, scope.category_id), amount)
            self.store.delete(keys.category_limit_name_key(scope.account_id, str(scope.category_name)))
        else:
            self.store.set(keys.category_limit_name_key(scope.account_id, str(scope.category_name)), amount)
        logger.debug("Set %s limit for account %s to %s", scope.label(), scope.account_id, amount)

    def clear_limit(self, scope: BudgetScope) -> None:
        """Remove the limit and the scope's stored window."""
        if scope.is_overall:
            self.store.delete(keys.overall_limit_key(scope.account_id))
        else:
            if scope.category_id:
                self.store.delete(keys.category_limit_id_key(scope.account_id, scope.category_id))
            self.store.delete(keys.category_limit_name_key(scope.account_id, str(scope.category_name)))
        self.periods.clear_window(scope)

    @staticmethod
    def _positive(value: Decimal) -> Decimal:
        return value if value > 0 else Decimal('0')
