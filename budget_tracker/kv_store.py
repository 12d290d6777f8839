"""Persistent key-value store used for limits, windows, flags and counters.

Keys are :class:`~budget_tracker.keys.StoreKey` objects (plain strings are
accepted too) and values are ``Decimal``, ``date``, ``bool``, ``int`` or a
short string such as a stored period kind.
Typed readers return sentinel defaults for missing entries so callers never
have to special-case an empty store.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from .keys import StoreKey
from .models import BudgetTrackerError

logger = logging.getLogger(__name__)

KeyLike = Union[StoreKey, str]
StoreValue = Union[Decimal, date, bool, int, str]


class StoreError(BudgetTrackerError, OSError):
    """Raised when the backing store cannot be read or written."""


def _render(key: KeyLike) -> str:
    return key.render() if isinstance(key, StoreKey) else str(key)


def _to_decimal(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        return Decimal('0')
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal('0')


def _to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


class KeyValueStore(ABC):
    """Interface for the key-value store.

    Subclasses implement :meth:`_read`, :meth:`_write`, :meth:`_remove` and
    :meth:`_iter_keys`; the typed readers are shared.
    """

    def get(self, key: KeyLike) -> Optional[Any]:
        return self._read(_render(key))

    def set(self, key: KeyLike, value: StoreValue) -> None:
        if value is None:
            raise ValueError("Use delete() to remove a key")
        self._write(_render(key), value)

    def delete(self, key: KeyLike) -> None:
        self._remove(_render(key))

    def contains(self, key: KeyLike) -> bool:
        return self._read(_render(key)) is not None

    def keys(self) -> Iterator[str]:
        return self._iter_keys()

    # Typed readers ---------------------------------------------------------

    def get_decimal(self, key: KeyLike) -> Decimal:
        return _to_decimal(self.get(key))

    def get_date(self, key: KeyLike) -> Optional[date]:
        return _to_date(self.get(key))

    def get_bool(self, key: KeyLike) -> bool:
        return bool(self.get(key))

    def get_int(self, key: KeyLike) -> int:
        return _to_int(self.get(key))

    # Storage primitives ----------------------------------------------------

    @abstractmethod
    def _read(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def _write(self, key: str, value: StoreValue) -> None:
        ...

    @abstractmethod
    def _remove(self, key: str) -> None:
        ...

    @abstractmethod
    def _iter_keys(self) -> Iterator[str]:
        ...


class InMemoryStore(KeyValueStore):
    """Dict-backed store; values are kept as given."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})

    def _read(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def _write(self, key: str, value: StoreValue) -> None:
        self._data[key] = value

    def _remove(self, key: str) -> None:
        self._data.pop(key, None)

    def _iter_keys(self) -> Iterator[str]:
        return iter(sorted(self._data))

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._data)


def _encode(value: StoreValue) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, str)):
        return value
    raise TypeError(f"Unsupported store value type: {type(value).__name__}")


class JsonFileStore(KeyValueStore):
    """Store persisted as a single JSON document.

    The file is read on first access and rewritten after every mutation
    through a ``.tmp`` sibling and ``os.replace``. Decimals are written as
    strings and dates as ISO strings; the typed readers convert them back.
    A file that exists but cannot be decoded raises :class:`StoreError`
    and is never overwritten.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        if path is None:
            from .config import STORE_PATH, ensure_data_directories
            ensure_data_directories()
            path = STORE_PATH
        self.path = Path(path)
        self._data: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data
        data: Dict[str, Any] = {}
        if self.path.exists():
            try:
                with self.path.open('r', encoding='utf-8') as handle:
                    loaded = json.load(handle)
            except json.JSONDecodeError as e:
                logger.error("Budget store %s is not valid JSON", self.path)
                raise StoreError(f"Failed to decode budget store {self.path}: {e}") from e
            except OSError as e:
                raise StoreError(f"Failed to read budget store {self.path}: {e}") from e
            if not isinstance(loaded, dict):
                raise StoreError(f"Budget store {self.path} must hold a JSON object")
            data = loaded
            logger.debug("Loaded %d keys from %s", len(data), self.path)
        self._data = data
        return data

    def _flush(self) -> None:
        data = self._load()
        tmp = self.path.with_suffix(self.path.suffix + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open('w', encoding='utf-8') as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except OSError as e:
            if tmp.exists():
                tmp.unlink()
            raise StoreError(f"Failed to save budget store to {self.path}: {e}") from e

    def _read(self, key: str) -> Optional[Any]:
        return self._load().get(key)

    def _write(self, key: str, value: StoreValue) -> None:
        self._load()[key] = _encode(value)
        self._flush()

    def _remove(self, key: str) -> None:
        data = self._load()
        if key not in data:
            return
        del data[key]
        self._flush()

    def _iter_keys(self) -> Iterator[str]:
        return iter(sorted(self._load()))

    def reload(self) -> None:
        """Drop the in-memory copy so the next access re-reads the file."""
        self._data = None
