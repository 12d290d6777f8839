from datetime import date

from budget_tracker.kv_store import InMemoryStore
from budget_tracker.models import BudgetScope, PeriodWindow
from budget_tracker.periods import PeriodCalculator, add_months, default_window

OVERALL = BudgetScope.overall('acct-1')
GROCERIES = BudgetScope.category('acct-1', 'Groceries', 'cat-1')


def _calculator(today, store=None):
    return PeriodCalculator(store if store is not None else InMemoryStore(), clock=lambda: today)


def test_add_months_clamps_to_month_length():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)
    assert add_months(date(2024, 12, 15), 1) == date(2025, 1, 15)


def test_default_window_is_calendar_month():
    assert default_window(date(2024, 2, 10)) == PeriodWindow(date(2024, 2, 1), date(2024, 2, 29))
    assert default_window(date(2024, 1, 31)) == PeriodWindow(date(2024, 1, 1), date(2024, 1, 31))


def test_active_window_default_is_not_persisted():
    store = InMemoryStore()
    calc = _calculator(date(2024, 2, 10), store)

    window = calc.active_window(OVERALL)

    assert window == PeriodWindow(date(2024, 2, 1), date(2024, 2, 29))
    assert window.period_key == '202402'
    assert store.snapshot() == {}


def test_set_window_clamps_start_to_today():
    store = InMemoryStore()
    calc = _calculator(date(2024, 3, 15), store)

    window = calc.set_window(OVERALL, date(2024, 3, 1))

    assert window == PeriodWindow(date(2024, 3, 15), date(2024, 4, 15))
    assert store.get_date('budget_period_start_acct-1_monthly') == date(2024, 3, 15)
    assert store.get_date('budget_period_end_acct-1_monthly') == date(2024, 4, 15)
    assert calc.active_window(OVERALL) == window


def test_set_window_rederives_end_for_one_month_span():
    calc = _calculator(date(2024, 1, 10))

    for start, end in [
        (date(2024, 1, 31), None),
        (date(2024, 1, 20), date(2024, 1, 5)),
        (date(2024, 5, 31), date(2024, 9, 1)),
        (date(2023, 12, 1), None),
    ]:
        window = calc.set_window(OVERALL, start, end)
        assert window.start >= date(2024, 1, 10)
        assert add_months(window.start, 1) == window.end

    assert calc.set_window(OVERALL, date(2024, 1, 31)).end == date(2024, 2, 29)


def test_category_window_uses_category_namespace():
    store = InMemoryStore()
    calc = _calculator(date(2024, 3, 1), store)

    calc.set_window(GROCERIES, date(2024, 3, 5))

    assert store.get_date('budget_cat_start_monthly_acct-1_Groceries') == date(2024, 3, 5)
    assert store.get_date('budget_cat_end_monthly_acct-1_Groceries') == date(2024, 4, 5)
    assert store.get('budget_cat_period_acct-1_Groceries') == 'monthly'
    # The overall window is untouched
    assert calc.active_window(OVERALL) == PeriodWindow(date(2024, 3, 1), date(2024, 3, 31))


def test_shift_start_toward_end_moves_both_bounds():
    calc = _calculator(date(2024, 3, 15))
    calc.set_window(OVERALL, date(2024, 3, 20))

    forward = calc.shift_start_toward_end(OVERALL, 1)
    assert forward == PeriodWindow(date(2024, 4, 20), date(2024, 5, 20))

    back = calc.shift_start_toward_end(OVERALL, -2)
    assert back == PeriodWindow(date(2024, 3, 15), date(2024, 4, 15))


def test_shift_end_toward_start_rederives_start():
    calc = _calculator(date(2024, 5, 1))
    calc.set_window(OVERALL, date(2024, 5, 10))

    later = calc.shift_end_toward_start(OVERALL, 1)
    assert later == PeriodWindow(date(2024, 6, 10), date(2024, 7, 10))

    earlier = calc.shift_end_toward_start(OVERALL, -2)
    # Start would fall before today, so it is clamped and the end re-derived.
    assert earlier == PeriodWindow(date(2024, 5, 1), date(2024, 6, 1))


def test_stored_start_without_end_rolls_one_month():
    store = InMemoryStore({'budget_period_start_acct-1_monthly': date(2024, 1, 15)})
    calc = _calculator(date(2024, 1, 20), store)

    assert calc.active_window(OVERALL) == PeriodWindow(date(2024, 1, 15), date(2024, 2, 15))


def test_clear_window_restores_default():
    store = InMemoryStore()
    calc = _calculator(date(2024, 3, 15), store)
    calc.set_window(GROCERIES, date(2024, 3, 20))

    calc.clear_window(GROCERIES)

    assert calc.active_window(GROCERIES) == PeriodWindow(date(2024, 3, 1), date(2024, 3, 31))


def test_clear_window_drops_category_period_kind():
    store = InMemoryStore()
    calc = _calculator(date(2024, 3, 15), store)
    calc.set_window(GROCERIES, date(2024, 3, 20))
    assert store.contains('budget_cat_period_acct-1_Groceries')

    calc.clear_window(GROCERIES)

    assert store.snapshot() == {}
