"""Core data types shared by the budget tracker components.

Scopes identify what a limit, window or counter applies to. Windows are the
concrete date ranges a budget is measured against. Everything here is a
plain value object; persistence lives in ``kv_store`` and ``keys``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class BudgetTrackerError(Exception):
    """Base class for errors raised by the budget tracker."""


# ---------------------------------------------------------------------------
# Period kinds
# ---------------------------------------------------------------------------


class PeriodKind(str, Enum):
    """Closed set of budget period kinds.

    The value is what gets written into persisted keys, so new kinds only
    need a new member here.
    """

    MONTHLY = "monthly"


# ---------------------------------------------------------------------------
# Scopes
# ---------------------------------------------------------------------------


def normalize_category_name(name: Optional[str]) -> str:
    """Collapse whitespace and case-fold a category name for comparison."""
    if not name:
        return ''
    return ' '.join(str(name).split()).casefold()


@dataclass(frozen=True)
class CategoryRef:
    """A category as the caller knows it: display name plus optional id."""

    name: str
    category_id: Optional[str] = None


@dataclass(frozen=True, eq=False)
class BudgetScope:
    """The (account, optional category) a budget applies to.

    Use :meth:`overall` and :meth:`category` rather than the constructor.
    Two category scopes are equal when their ids match, or, when either
    side has no id, when their normalised names match.
    """

    account_id: str
    category_name: Optional[str] = None
    category_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.account_id or not str(self.account_id).strip():
            raise ValueError("Budget scope requires an account id")
        if self.category_id is not None and self.category_name is None:
            raise ValueError("Category scope requires a category name")

    @classmethod
    def overall(cls, account_id: str) -> 'BudgetScope':
        return cls(account_id=str(account_id))

    @classmethod
    def category(
        cls,
        account_id: str,
        name: str,
        category_id: Optional[str] = None,
    ) -> 'BudgetScope':
        return cls(
            account_id=str(account_id),
            category_name=str(name).strip(),
            category_id=str(category_id) if category_id else None,
        )

    @classmethod
    def for_ref(cls, account_id: str, ref: CategoryRef) -> 'BudgetScope':
        return cls.category(account_id, ref.name, ref.category_id)

    @property
    def is_overall(self) -> bool:
        return self.category_name is None

    @property
    def is_category(self) -> bool:
        return self.category_name is not None

    @property
    def identity(self) -> Tuple[str, ...]:
        if self.is_overall:
            return (self.account_id,)
        if self.category_id:
            return (self.account_id, 'id', self.category_id)
        return (self.account_id, 'name', normalize_category_name(self.category_name))

    def __eq__(self, other: object) -> bool:
        """Ids decide when both sides carry one; otherwise names decide.

        Not transitive across mixed refs: a name-only scope equals every
        id-bearing scope with that name. Callers deduplicating a batch put
        id-bearing scopes first.
        """
        if not isinstance(other, BudgetScope):
            return NotImplemented
        if self.account_id != other.account_id or self.is_overall != other.is_overall:
            return False
        if self.is_overall:
            return True
        if self.category_id and other.category_id:
            return self.category_id == other.category_id
        return normalize_category_name(self.category_name) == normalize_category_name(
            other.category_name
        )

    def __hash__(self) -> int:
        # Ids and names can be mixed in equality, so only hash what always matches.
        if self.is_overall:
            return hash((self.account_id, None))
        return hash((self.account_id, 'category'))

    def label(self) -> str:
        return 'Overall' if self.is_overall else str(self.category_name)


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------


def period_key(day: date) -> str:
    """Stable ``YYYYMM`` key for the period a day closes."""
    return day.strftime('%Y%m')


@dataclass(frozen=True)
class PeriodWindow:
    """Date range a budget is measured against; ``end`` is the last included day."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")

    @property
    def period_key(self) -> str:
        return period_key(self.end)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def is_closed(self, today: date) -> bool:
        return today > self.end

    @property
    def days_total(self) -> int:
        return (self.end - self.start).days + 1


# ---------------------------------------------------------------------------
# Medals
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MedalBreakdown:
    bronze: int = 0
    silver: int = 0
    gold: int = 0
    perfect: int = 0

    @property
    def total(self) -> int:
        return self.bronze + self.silver * 5 + self.gold * 50 + self.perfect * 100

    def as_dict(self) -> dict:
        return {
            'bronze': self.bronze,
            'silver': self.silver,
            'gold': self.gold,
            'perfect': self.perfect,
        }
