"""pandas-backed transaction ledger.

The budget core never mutates the ledger; it only asks for filtered rows via
:meth:`TransactionLedger.find`. The owning application keeps the frame up to
date through :meth:`replace` and :meth:`append`.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from .models import BudgetScope, CategoryRef, normalize_category_name

LEDGER_COLUMNS = [
    'account_id',
    'date',
    'amount',
    'is_expense',
    'is_carry_over',
    'category',
    'category_id',
]

# Alternate headers seen in exports, normalised to LEDGER_COLUMNS
_COLUMN_ALIASES = {
    'account': 'account_id',
    'transaction_date': 'date',
    'transaction date': 'date',
    'isexpense': 'is_expense',
    'expense': 'is_expense',
    'iscarryover': 'is_carry_over',
    'carry_over': 'is_carry_over',
    'category_name': 'category',
    'categoryid': 'category_id',
}

_TRUE_STRINGS = {'true', '1', 'yes', 'y', 't'}

CategoryFilter = Union[BudgetScope, CategoryRef, str, None]


def _to_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if pd.isna(value):
        return False
    return bool(value)


def _to_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _to_amount(value: Any) -> Decimal:
    """Convert numeric or textual amounts to ``Decimal``; blanks become zero."""
    if value is None or isinstance(value, bool):
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        cleaned = value.strip().replace('$', '').replace(',', '')
        if not cleaned:
            return Decimal('0')
        value = cleaned
    elif pd.isna(value):
        return Decimal('0')
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal('0')


def normalize_ledger(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Return a copy of ``df`` with the ledger columns and dtypes in place."""
    if df is None:
        df = pd.DataFrame(columns=LEDGER_COLUMNS)
    working = df.copy()
    renames = {}
    for column in working.columns:
        alias = _COLUMN_ALIASES.get(str(column).strip().lower())
        if alias and alias not in working.columns:
            renames[column] = alias
    working = working.rename(columns=renames)

    for column in LEDGER_COLUMNS:
        if column not in working.columns:
            working[column] = None

    working['account_id'] = working['account_id'].map(_to_optional_str)
    working['date'] = pd.to_datetime(working['date'], errors='coerce').dt.normalize()
    working['is_expense'] = working['is_expense'].map(_to_bool).astype(bool)
    working['is_carry_over'] = working['is_carry_over'].map(_to_bool).astype(bool)
    working['category'] = working['category'].map(_to_optional_str)
    working['category_id'] = working['category_id'].map(_to_optional_str)
    # Amounts stay as Decimal objects so sums are exact.
    working['amount'] = working['amount'].map(_to_amount)
    return working.reset_index(drop=True)


def _category_target(category: CategoryFilter) -> Optional[Tuple[Optional[str], str]]:
    if category is None:
        return None
    if isinstance(category, BudgetScope):
        if category.is_overall:
            return None
        return category.category_id, str(category.category_name)
    if isinstance(category, CategoryRef):
        return category.category_id, category.name
    return None, str(category)


class TransactionLedger:
    """Ordered collection of transactions held in a DataFrame."""

    def __init__(self, frame: Optional[pd.DataFrame] = None) -> None:
        self._frame = normalize_ledger(frame)

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> 'TransactionLedger':
        return cls(pd.DataFrame(list(records)))

    @classmethod
    def read_csv(cls, path: Union[str, Path], **kwargs: Any) -> 'TransactionLedger':
        return cls(pd.read_csv(path, **kwargs))

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    def __len__(self) -> int:
        return len(self._frame)

    # Collaborator-side mutation ---------------------------------------------

    def replace(self, frame: pd.DataFrame) -> None:
        self._frame = normalize_ledger(frame)

    def append(self, records: Iterable[Dict[str, Any]]) -> None:
        incoming = normalize_ledger(pd.DataFrame(list(records)))
        if incoming.empty:
            return
        if self._frame.empty:
            self._frame = incoming
            return
        self._frame = pd.concat([self._frame, incoming], ignore_index=True)

    # Queries -----------------------------------------------------------------

    def find(
        self,
        account_id: str,
        category: CategoryFilter = None,
        is_expense: bool = True,
        is_carry_over: bool = False,
        date_range: Optional[Tuple[date, date]] = None,
    ) -> pd.DataFrame:
        """Return the rows matching all filters; dates compare inclusively."""
        df = self._frame
        if df.empty:
            return df.copy()

        mask = (df['account_id'] == str(account_id))
        mask &= df['is_expense'] == bool(is_expense)
        mask &= df['is_carry_over'] == bool(is_carry_over)

        if date_range is not None:
            start, end = date_range
            mask &= df['date'].notna()
            mask &= df['date'] >= pd.Timestamp(start)
            mask &= df['date'] <= pd.Timestamp(end)

        target = _category_target(category)
        if target is not None:
            mask &= self._category_mask(df, *target)

        return df[mask].copy()

    @staticmethod
    def _category_mask(df: pd.DataFrame, category_id: Optional[str], name: str) -> pd.Series:
        wanted = normalize_category_name(name)
        by_name = df['category'].map(normalize_category_name) == wanted
        if not category_id:
            return by_name
        has_id = df['category_id'].notna()
        by_id = df['category_id'] == category_id
        # Rows recorded before ids existed only carry a name.
        return (has_id & by_id) | (~has_id & by_name)

    def categories(self, account_id: str) -> List[CategoryRef]:
        """Distinct expense categories seen for an account."""
        rows = self.find(account_id)
        if rows.empty:
            return []
        refs: Dict[str, CategoryRef] = {}
        for name, category_id in rows[['category', 'category_id']].itertuples(index=False):
            if not name:
                continue
            refs.setdefault(normalize_category_name(name), CategoryRef(name=name, category_id=category_id))
        return sorted(refs.values(), key=lambda ref: ref.name.casefold())
