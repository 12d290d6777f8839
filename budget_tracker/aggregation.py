"""Spend totals and budget progress calculations.

This module provides the spend aggregation used by every budget check,
per-category expense totals, a pace/progress snapshot for a window and the
short guidance messages shown next to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

import pandas as pd

from .config import UNCATEGORIZED_LABEL
from .ledger import TransactionLedger
from .models import BudgetScope, PeriodWindow

ZERO = Decimal('0')


def _sum_amounts(amounts: pd.Series) -> Decimal:
    return sum((Decimal(str(a)) for a in amounts), ZERO)


class SpendAggregator:
    """Computes spend for a scope by querying the ledger on every call."""

    def __init__(self, ledger: TransactionLedger) -> None:
        self.ledger = ledger

    def spend(self, scope: BudgetScope, window: PeriodWindow) -> Decimal:
        """Sum of expense amounts for ``scope`` within ``window`` (inclusive).

        Income and carry-over rows never count. Category scopes only see
        rows of their own category. Returns ``Decimal('0')`` when nothing
        matches.
        """
        rows = self.ledger.find(
            scope.account_id,
            category=scope if scope.is_category else None,
            is_expense=True,
            is_carry_over=False,
            date_range=(window.start, window.end),
        )
        if rows.empty:
            return ZERO
        return _sum_amounts(rows['amount'])

    def category_totals(
        self,
        account_id: str,
        window: PeriodWindow,
        top: Optional[int] = None,
    ) -> pd.Series:
        """Expense totals per category name for a window, largest first.

        Args:
            account_id: Account whose expenses are summed
            window: Date range to include
            top: Optional number of categories to keep

        Returns:
            Series indexed by category name with ``Decimal`` totals
        """
        rows = self.ledger.find(
            account_id,
            is_expense=True,
            is_carry_over=False,
            date_range=(window.start, window.end),
        )
        if rows.empty:
            return pd.Series(dtype=object)
        names = rows['category'].fillna(UNCATEGORIZED_LABEL)
        totals = rows['amount'].groupby(names).agg(_sum_amounts)
        totals = totals.sort_values(ascending=False, key=lambda s: s.map(float))
        if top is not None:
            totals = totals.head(top)
        return totals


# ---------------------------------------------------------------------------
# Progress snapshot
# ---------------------------------------------------------------------------


def percent_used(spend: Decimal, limit: Decimal) -> int:
    """Whole percent of ``limit`` used, capped at 100 and rounded half up."""
    if limit <= 0:
        return 0
    ratio = min(Decimal('100'), Decimal(spend) / Decimal(limit) * 100)
    return int(ratio.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class BudgetProgress:
    window: PeriodWindow
    spend: Decimal
    limit: Decimal
    progress: Decimal
    percent_used: int
    remaining: Decimal
    days_elapsed: int
    days_total: int
    days_remaining: int
    safe_to_spend_today: Decimal
    recommended_spend_to_date: Decimal
    projected_spend: Decimal

    @property
    def has_limit(self) -> bool:
        return self.limit > 0

    @property
    def is_exceeded(self) -> bool:
        return self.has_limit and self.spend > self.limit

    @property
    def is_trending_over(self) -> bool:
        return self.has_limit and self.projected_spend > self.limit


def progress_snapshot(
    window: PeriodWindow,
    spend: Decimal,
    limit: Decimal,
    today: date,
) -> BudgetProgress:
    """Pace figures for a window as of ``today``.

    Elapsed days are counted from the window start and never drop below one,
    so a window that has not started yet behaves like its first day. The
    projection extrapolates the current daily rate over the whole window.
    """
    spend = Decimal(spend)
    limit = Decimal(limit)
    days_total = window.days_total
    days_elapsed = min(days_total, max(1, (today - window.start).days + 1))
    days_remaining = max(1, days_total - days_elapsed + 1)

    if limit > 0:
        progress = min(Decimal('1'), spend / limit)
        remaining = max(ZERO, limit - spend)
        recommended = limit * days_elapsed / days_total
    else:
        progress = ZERO
        remaining = ZERO
        recommended = ZERO

    projected = spend / days_elapsed * days_total if spend > 0 else ZERO

    return BudgetProgress(
        window=window,
        spend=spend,
        limit=limit,
        progress=progress,
        percent_used=percent_used(spend, limit),
        remaining=remaining,
        days_elapsed=days_elapsed,
        days_total=days_total,
        days_remaining=days_remaining,
        safe_to_spend_today=remaining / days_remaining,
        recommended_spend_to_date=recommended,
        projected_spend=projected,
    )


def budget_insights(
    snapshot: BudgetProgress,
    over_categories: Sequence[str] = (),
) -> List[str]:
    """Short guidance messages for the overall budget."""
    tips: List[str] = []
    if snapshot.is_trending_over:
        tips.append("You're trending over budget. Consider lowering non-essential spend this month.")
    elif snapshot.has_limit:
        tips.append("You're on track to finish within budget. Keep the pace!")
    if over_categories:
        tips.append(
            f"Category '{over_categories[0]}' exceeded its limit. Review or adjust its budget."
        )
    if not tips:
        tips.append("Set category budgets to get sharper guidance.")
    return tips
