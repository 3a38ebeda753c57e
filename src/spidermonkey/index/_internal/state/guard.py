"""Reader/writer coordination for the shared index state.

Searches take the shared section; the resync cycle takes the exclusive
section only around the window where the Tantivy commit and the line cache
publish happen together. Writers are preferred: once one is waiting, new
readers queue behind it so steady query traffic cannot starve a resync.

Usage::

    guard = ConcurrencyGuard()

    with guard.read():
        snapshot = take_snapshot()

    with guard.write():
        publish_everything()
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class ConcurrencyGuard:
    """Many readers or one writer, built on a single condition variable."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        """Shared section. Blocks while a writer holds or waits for the guard."""
        with self._cond:
            while self._writer_active or self._writers_waiting:
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
        """Exclusive section. Excludes readers and other writers."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            with self._cond:
                self._writer_active = False
                self._cond.notify_all()

    @property
    def readers(self) -> int:
        with self._cond:
            return self._readers

    @property
    def writer_active(self) -> bool:
        with self._cond:
            return self._writer_active
