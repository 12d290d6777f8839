from decimal import Decimal

from budget_tracker.kv_store import InMemoryStore
from budget_tracker.models import BudgetScope
from budget_tracker.notifications import ThresholdNotifier, build_notification

OVERALL = BudgetScope.overall('acct-1')
DINING = BudgetScope.category('acct-1', 'Dining', 'cat-7')
LIMIT = Decimal('1000')


def _evaluate(notifier, spend, scope=OVERALL, period='202401', limit=LIMIT):
    return notifier.evaluate(scope, Decimal(spend), limit, period)


def test_no_threshold_without_limit():
    notifier = ThresholdNotifier(InMemoryStore())
    assert _evaluate(notifier, '900', limit=Decimal('0')) is None


def test_below_lowest_threshold_fires_nothing():
    store = InMemoryStore()
    assert _evaluate(ThresholdNotifier(store), '400') is None
    assert store.snapshot() == {}


def test_each_crossing_fires_once_in_order():
    store = InMemoryStore()
    notifier = ThresholdNotifier(store)

    assert _evaluate(notifier, '520') == 50
    assert _evaluate(notifier, '520') is None
    assert _evaluate(notifier, '810') == 80
    assert _evaluate(notifier, '1010') == 100
    assert _evaluate(notifier, '1010') is None

    assert store.get_bool('budget_notified_acct-1_202401_50')
    assert store.get_bool('budget_notified_acct-1_202401_80')
    assert store.get_bool('budget_notified_acct-1_202401_100')


def test_jump_past_all_thresholds_fires_only_highest():
    store = InMemoryStore()
    notifier = ThresholdNotifier(store)

    assert _evaluate(notifier, '1500') == 100
    for _ in range(5):
        assert _evaluate(notifier, '1500') is None

    assert not store.contains('budget_notified_acct-1_202401_80')
    assert not store.contains('budget_notified_acct-1_202401_50')


def test_lower_threshold_stays_silent_after_spend_drops():
    notifier = ThresholdNotifier(InMemoryStore())

    assert _evaluate(notifier, '950') == 80
    assert _evaluate(notifier, '600') is None
    assert _evaluate(notifier, '1000') == 100


def test_new_period_fires_again():
    notifier = ThresholdNotifier(InMemoryStore())

    assert _evaluate(notifier, '600', period='202401') == 50
    assert _evaluate(notifier, '600', period='202402') == 50


def test_category_flags_use_category_name():
    store = InMemoryStore()
    notifier = ThresholdNotifier(store)

    assert _evaluate(notifier, '100', scope=DINING, limit=Decimal('100')) == 100
    assert store.get_bool('budget_cat_notified_acct-1_202401_Dining_100')
    # The overall scope of the same account is independent
    assert _evaluate(notifier, '100', limit=Decimal('100')) == 100


def test_notify_if_needed_dispatches_message():
    sent = []
    notifier = ThresholdNotifier(InMemoryStore(), dispatcher=sent.append)

    notification = notifier.notify_if_needed(OVERALL, Decimal('820'), LIMIT, '202401')

    assert sent == [notification]
    assert notification.threshold == 80
    assert notification.title == "Budget Update"
    assert notification.body == "You've reached 80% of this month's budget."
    assert notification.identifier == 'budget_notified_acct-1_202401_80'
    assert notifier.notify_if_needed(OVERALL, Decimal('820'), LIMIT, '202401') is None
    assert len(sent) == 1


def test_notification_wording():
    full = build_notification(OVERALL, 100, '202401')
    category = build_notification(DINING, 50, '202401')
    category_full = build_notification(DINING, 100, '202401')

    assert full.body == "You've fully used this month's budget."
    assert category.title == "Dining budget"
    assert category.body == "You've reached 50% of Dining budget."
    assert category_full.body == "You've fully used the budget for Dining."


def test_custom_thresholds_are_scanned_descending():
    notifier = ThresholdNotifier(InMemoryStore(), thresholds=[25, 90])

    assert _evaluate(notifier, '300') == 25
    assert _evaluate(notifier, '950') == 90
