"""Account-level budget evaluation.

:class:`BudgetTracker` is what an application calls at each observation
point (a budget screen appearing, the ledger changing). For the selected
account it walks the overall budget and every category budget through the
same steps: resolve the window, sum the spend, maybe announce a threshold,
maybe credit a completed period, and finally recompute the medal tally.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from .aggregation import BudgetProgress, SpendAggregator, budget_insights, progress_snapshot
from .completions import CompletionCounters, CompletionRecorder
from .kv_store import KeyValueStore
from .ledger import TransactionLedger
from .limits import BudgetLimitStore
from .medals import MedalCycle, breakdown
from .models import BudgetScope, CategoryRef, MedalBreakdown, PeriodWindow
from .notifications import BudgetNotification, Dispatcher, ThresholdNotifier
from .periods import Clock, PeriodCalculator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScopeStatus:
    scope: BudgetScope
    window: PeriodWindow
    spend: Decimal
    limit: Decimal
    progress: BudgetProgress
    notification: Optional[BudgetNotification] = None
    completion_recorded: bool = False


@dataclass
class Observation:
    account_id: str
    statuses: List[ScopeStatus] = field(default_factory=list)
    notifications: List[BudgetNotification] = field(default_factory=list)
    completions_recorded: int = 0
    overall_completions: int = 0
    category_completions: int = 0
    medals: MedalBreakdown = field(default_factory=MedalBreakdown)
    cycle_progress: int = 0
    current_medal: Optional[str] = None
    insights: List[str] = field(default_factory=list)

    @property
    def total_completions(self) -> int:
        return self.overall_completions + self.category_completions

    @property
    def overall(self) -> Optional[ScopeStatus]:
        for status in self.statuses:
            if status.scope.is_overall:
                return status
        return None

    def exceeded_categories(self) -> List[str]:
        return [
            str(status.scope.category_name)
            for status in self.statuses
            if status.scope.is_category and status.progress.is_exceeded
        ]


class AccountSession:
    """Collaborators bound to one account for as long as it stays selected."""

    def __init__(
        self,
        account_id: str,
        store: KeyValueStore,
        ledger: TransactionLedger,
        dispatcher: Optional[Dispatcher] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.account_id = str(account_id)
        self.clock = clock or date.today
        self.periods = PeriodCalculator(store, clock=self.clock)
        self.aggregator = SpendAggregator(ledger)
        self.limits = BudgetLimitStore(store, self.periods)
        self.notifier = ThresholdNotifier(store, dispatcher=dispatcher)
        self.counters = CompletionCounters(store, self.account_id)
        self.recorder = CompletionRecorder(store, self.counters)
        self.medal_cycle = MedalCycle(store, self.counters)

    @property
    def overall_scope(self) -> BudgetScope:
        return BudgetScope.overall(self.account_id)

    def category_scope(self, category: CategoryRef) -> BudgetScope:
        return BudgetScope.for_ref(self.account_id, category)

    def evaluate_scope(self, scope: BudgetScope, record: bool = True) -> ScopeStatus:
        window = self.periods.active_window(scope)
        spend = self.aggregator.spend(scope, window)
        limit = self.limits.get_limit(scope)
        notification = self.notifier.notify_if_needed(scope, spend, limit, window.period_key)
        recorded = False
        if record:
            recorded = self.recorder.try_record_completion(
                scope, window, spend, limit, now=self.clock()
            )
        return ScopeStatus(
            scope=scope,
            window=window,
            spend=spend,
            limit=limit,
            progress=progress_snapshot(window, spend, limit, self.clock()),
            notification=notification,
            completion_recorded=recorded,
        )


class BudgetTracker:
    """Entry point for the presentation layer."""

    def __init__(
        self,
        store: KeyValueStore,
        ledger: TransactionLedger,
        dispatcher: Optional[Dispatcher] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.clock = clock
        self._session: Optional[AccountSession] = None

    # Account selection -----------------------------------------------------

    def select_account(self, account_id: str) -> AccountSession:
        if self._session is None or self._session.account_id != str(account_id):
            self._session = AccountSession(
                account_id, self.store, self.ledger, self.dispatcher, self.clock
            )
            logger.debug("Selected budget account %s", account_id)
        return self._session

    @property
    def session(self) -> AccountSession:
        if self._session is None:
            raise RuntimeError("No account selected; call select_account() first")
        return self._session

    # Observation -------------------------------------------------------------

    def observe(self, categories: Optional[Iterable[CategoryRef]] = None) -> Observation:
        """Run the full evaluation for the selected account.

        ``categories`` defaults to the expense categories found in the
        ledger. Only categories with a configured limit are evaluated.
        """
        session = self.session
        observation = Observation(account_id=session.account_id)
        if categories is None:
            categories = self.ledger.categories(session.account_id)

        scopes = [session.overall_scope]
        # Id-bearing refs claim their scope before name-only refs can match them.
        refs = list(categories)
        ordered = [r for r in refs if r.category_id] + [r for r in refs if not r.category_id]
        for category in ordered:
            scope = session.category_scope(category)
            if scope not in scopes and session.limits.has_limit(scope):
                scopes.append(scope)

        for scope in scopes:
            status = session.evaluate_scope(scope)
            observation.statuses.append(status)
            if status.notification is not None:
                observation.notifications.append(status.notification)
            if status.completion_recorded:
                observation.completions_recorded += 1

        observation.overall_completions = session.counters.overall
        observation.category_completions = session.counters.category
        observation.medals = breakdown(session.counters.total)
        observation.cycle_progress = session.medal_cycle.progress
        observation.current_medal = session.medal_cycle.current_medal()

        overall = observation.overall
        if overall is not None:
            observation.insights = budget_insights(
                overall.progress, observation.exceeded_categories()
            )
        return observation

    # Edit flows --------------------------------------------------------------

    def save_budget(self, amount: Decimal, start: Optional[date] = None) -> ScopeStatus:
        """Set the overall limit and its window, then re-check thresholds."""
        session = self.session
        scope = session.overall_scope
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError("Budget amount must be positive; use delete_budget() to clear it")
        session.limits.set_limit(scope, amount)
        if start is None:
            start = session.periods.active_window(scope).start
        session.periods.set_window(scope, start)
        return session.evaluate_scope(scope, record=False)

    def save_category_budget(
        self,
        category: CategoryRef,
        amount: Decimal,
        start: Optional[date] = None,
    ) -> ScopeStatus:
        """Set a category limit and its window, then re-check thresholds."""
        session = self.session
        scope = session.category_scope(category)
        amount = Decimal(str(amount))
        if amount <= 0:
            raise ValueError("Budget amount must be positive; use delete_category_budget() to clear it")
        session.limits.set_limit(scope, amount)
        if start is None:
            start = session.periods.active_window(scope).start
        session.periods.set_window(scope, start)
        return session.evaluate_scope(scope, record=False)

    def save_category_window(self, category: CategoryRef, start: date) -> PeriodWindow:
        """Move a category budget's window without touching its limit."""
        session = self.session
        return session.periods.set_window(session.category_scope(category), start)

    def delete_budget(self) -> None:
        session = self.session
        session.limits.clear_limit(session.overall_scope)

    def delete_category_budget(self, category: CategoryRef) -> None:
        session = self.session
        session.limits.clear_limit(session.category_scope(category))

    def restart_medal_cycle(self) -> int:
        session = self.session
        session.medal_cycle.restart()
        return session.medal_cycle.progress
