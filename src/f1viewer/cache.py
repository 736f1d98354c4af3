from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, TypeVar

from .catalog import Driver, Episode, Team

T = TypeVar("T")


class ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers block new readers."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class RecordCache(Generic[T]):
    def __init__(self) -> None:
        self._records: dict[str, T] = {}
        self._lock = ReadWriteLock()

    def get(self, record_id: str) -> T | None:
        with self._lock.read():
            return self._records.get(record_id)

    def add(self, record_id: str, record: T) -> T:
        with self._lock.write():
            return self._records.setdefault(record_id, record)

    def get_or_fetch(self, record_id: str, fetch: Callable[[str], T]) -> T:
        cached = self.get(record_id)
        if cached is not None:
            return cached
        # fetch outside the lock; the first stored record wins
        return self.add(record_id, fetch(record_id))

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        with self._lock.read():
            return record_id in self._records


class CatalogCache:
    def __init__(self) -> None:
        self.episodes: RecordCache[Episode] = RecordCache()
        self.drivers: RecordCache[Driver] = RecordCache()
        self.teams: RecordCache[Team] = RecordCache()
