"""Structured keys for the persistent key-value store.

Every value the tracker persists is addressed by a :class:`StoreKey`. The
rendered form is the flat string namespace already present in stored data,
so these builders must keep producing exactly the same strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .models import BudgetScope, PeriodKind


@dataclass(frozen=True)
class StoreKey:
    """Account-namespaced key made of ordered segments."""

    account_id: str
    segments: Tuple[str, ...]

    def render(self) -> str:
        return '_'.join(self.segments)

    def __str__(self) -> str:
        return self.render()


def _key(account_id: str, *segments: object) -> StoreKey:
    return StoreKey(account_id=account_id, segments=tuple(str(s) for s in segments))


def _kind(kind: PeriodKind) -> str:
    return PeriodKind(kind).value


# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------


def overall_limit_key(account_id: str) -> StoreKey:
    return _key(account_id, 'budget', 'limit', account_id)


def category_limit_id_key(account_id: str, category_id: str) -> StoreKey:
    return _key(account_id, 'budget', 'limit', 'cat', account_id, 'id', category_id)


def category_limit_name_key(account_id: str, name: str) -> StoreKey:
    return _key(account_id, 'budget', 'limit', 'cat', account_id, name)


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def window_start_key(scope: BudgetScope, kind: PeriodKind) -> StoreKey:
    if scope.is_overall:
        return _key(scope.account_id, 'budget', 'period', 'start', scope.account_id, _kind(kind))
    return _key(
        scope.account_id, 'budget', 'cat', 'start', _kind(kind), scope.account_id, scope.category_name
    )


def window_end_key(scope: BudgetScope, kind: PeriodKind) -> StoreKey:
    if scope.is_overall:
        return _key(scope.account_id, 'budget', 'period', 'end', scope.account_id, _kind(kind))
    return _key(
        scope.account_id, 'budget', 'cat', 'end', _kind(kind), scope.account_id, scope.category_name
    )


def category_period_kind_key(scope: BudgetScope) -> StoreKey:
    return _key(scope.account_id, 'budget', 'cat', 'period', scope.account_id, scope.category_name)


# ---------------------------------------------------------------------------
# Idempotency flags
# ---------------------------------------------------------------------------


def notification_flag_key(scope: BudgetScope, period_key: str, threshold: int) -> StoreKey:
    if scope.is_overall:
        return _key(scope.account_id, 'budget', 'notified', scope.account_id, period_key, threshold)
    return _key(
        scope.account_id,
        'budget', 'cat', 'notified',
        scope.account_id, period_key, scope.category_name, threshold,
    )


def completion_flag_key(scope: BudgetScope, kind: PeriodKind, period_key: str) -> StoreKey:
    if scope.is_overall:
        return _key(
            scope.account_id,
            'budget', 'completion', 'recorded',
            scope.account_id, _kind(kind), period_key,
        )
    return _key(
        scope.account_id,
        'budget', 'cat', 'completion', 'recorded',
        scope.account_id, scope.category_name, _kind(kind), period_key,
    )


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


def overall_completion_count_key(account_id: str) -> StoreKey:
    return _key(account_id, 'budget', 'overall', 'completion', 'count', account_id)


def category_completion_count_key(account_id: str) -> StoreKey:
    return _key(account_id, 'budget', 'category', 'completion', 'count', account_id)


def medal_cycle_start_key(account_id: str) -> StoreKey:
    return _key(account_id, 'medal', 'cycle', 'start', 'total', account_id)
