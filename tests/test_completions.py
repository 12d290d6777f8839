from datetime import date, datetime
from decimal import Decimal

import pytest

from budget_tracker.completions import CompletionCounters, CompletionRecorder
from budget_tracker.kv_store import InMemoryStore
from budget_tracker.models import BudgetScope, PeriodWindow

OVERALL = BudgetScope.overall('acct-1')
GROCERIES = BudgetScope.category('acct-1', 'Groceries', 'cat-1')
JANUARY = PeriodWindow(date(2024, 1, 1), date(2024, 1, 31))
AFTER = date(2024, 2, 1)


def _recorder(store=None):
    store = store if store is not None else InMemoryStore()
    return CompletionRecorder(store, CompletionCounters(store, 'acct-1'))


def test_closed_period_within_budget_is_recorded_once():
    recorder = _recorder()

    assert recorder.try_record_completion(OVERALL, JANUARY, Decimal('900'), Decimal('1000'), now=AFTER)
    assert not recorder.try_record_completion(OVERALL, JANUARY, Decimal('900'), Decimal('1000'), now=AFTER)

    assert recorder.counters.overall == 1
    assert recorder.counters.category == 0
    assert recorder.store.get_bool('budget_completion_recorded_acct-1_monthly_202401')


def test_spend_equal_to_limit_counts_as_success():
    recorder = _recorder()
    assert recorder.try_record_completion(OVERALL, JANUARY, Decimal('1000'), Decimal('1000'), now=AFTER)


@pytest.mark.parametrize('now', [date(2024, 1, 15), date(2024, 1, 31), datetime(2024, 1, 31, 23, 59)])
def test_open_period_is_never_recorded(now):
    store = InMemoryStore()
    recorder = _recorder(store)

    assert not recorder.try_record_completion(OVERALL, JANUARY, Decimal('0'), Decimal('1000'), now=now)
    assert store.snapshot() == {}


def test_unset_limit_is_never_recorded():
    store = InMemoryStore()
    recorder = _recorder(store)

    assert not recorder.try_record_completion(OVERALL, JANUARY, Decimal('0'), Decimal('0'), now=AFTER)
    assert store.snapshot() == {}


def test_over_budget_period_can_be_recorded_after_revision():
    store = InMemoryStore()
    recorder = _recorder(store)

    assert not recorder.try_record_completion(OVERALL, JANUARY, Decimal('1010'), Decimal('1000'), now=AFTER)
    assert store.snapshot() == {}

    # A transaction deleted after close brings the period back under the limit
    assert recorder.try_record_completion(OVERALL, JANUARY, Decimal('990'), Decimal('1000'), now=AFTER)
    assert recorder.counters.total == 1


def test_category_completion_uses_category_counter():
    store = InMemoryStore()
    recorder = _recorder(store)

    assert recorder.try_record_completion(GROCERIES, JANUARY, Decimal('50'), Decimal('100'), now=AFTER)

    assert recorder.counters.as_dict() == {'overall': 0, 'category': 1, 'total': 1}
    assert store.get_int('budget_category_completion_count_acct-1') == 1
    assert store.get_bool('budget_cat_completion_recorded_acct-1_Groceries_monthly_202401')


def test_counters_are_per_account():
    store = InMemoryStore()
    first = CompletionCounters(store, 'acct-1')
    second = CompletionCounters(store, 'acct-2')

    first.increment(OVERALL)
    first.increment(OVERALL)

    assert first.overall == 2
    assert second.total == 0
    with pytest.raises(ValueError):
        second.increment(OVERALL)
