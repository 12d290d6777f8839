"""Top-level package for the budget tracker.

This package tracks spending against overall and per-category budget
limits over rolling monthly windows.  The primary modules are:

* ``periods`` – active window lookup and clamped window edits
* ``aggregation`` – spend totals and progress snapshots over the ledger
* ``limits`` – configured limits with legacy name-key fallback
* ``notifications`` – one-time 50/80/100% threshold notifications
* ``completions`` – credit for periods that closed within budget
* ``medals`` – bronze/silver/gold/perfect tally of completions
* ``tracker`` – the per-account pipeline tying everything together

Typical use from an application:

```python
from budget_tracker import BudgetTracker, JsonFileStore, TransactionLedger

tracker = BudgetTracker(JsonFileStore(), TransactionLedger(frame))
tracker.select_account("acct-1")
observation = tracker.observe(categories)
```
"""

from .aggregation import SpendAggregator, progress_snapshot
from .completions import CompletionCounters, CompletionRecorder
from .kv_store import InMemoryStore, JsonFileStore, KeyValueStore, StoreError
from .ledger import TransactionLedger
from .limits import BudgetLimitStore
from .medals import MedalCycle, breakdown, current_medal
from .models import (
    BudgetScope,
    BudgetTrackerError,
    CategoryRef,
    MedalBreakdown,
    PeriodKind,
    PeriodWindow,
)
from .notifications import BudgetNotification, ThresholdNotifier
from .periods import PeriodCalculator
from .tracker import BudgetTracker, Observation

__all__ = [
    # Data model
    'BudgetScope',
    'BudgetTrackerError',
    'CategoryRef',
    'MedalBreakdown',
    'PeriodKind',
    'PeriodWindow',
    # Collaborators
    'InMemoryStore',
    'JsonFileStore',
    'KeyValueStore',
    'StoreError',
    'TransactionLedger',
    # Components
    'PeriodCalculator',
    'SpendAggregator',
    'progress_snapshot',
    'BudgetLimitStore',
    'ThresholdNotifier',
    'BudgetNotification',
    'CompletionCounters',
    'CompletionRecorder',
    'MedalCycle',
    'breakdown',
    'current_medal',
    # Orchestration
    'BudgetTracker',
    'Observation',
]
