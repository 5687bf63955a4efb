"""
=============================================================================
READER/WRITER LOCK
=============================================================================

Guards the state an Extender shares across request threads: the hook
lists, the envelope field names and the CORS flag.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      WHO TAKES WHICH SIDE                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   READ  (shared)      running hooks, reading field names             │
    │                       many requests at once                          │
    │                                                                      │
    │   WRITE (exclusive)   add_begin_hook(), set_data_field_name(), ...   │
    │                       waits for in-flight readers to drain           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Writers get preference: once a writer is waiting, new readers queue behind
it, so a steady stream of requests cannot starve registration.

The lock is NOT reentrant. A hook that registers another hook while the
hooks are running will deadlock.

=============================================================================
"""

from contextlib import contextmanager
from typing import Iterator
import threading


class ReadWriteLock:
    """
    Many readers or one writer, built on a single Condition.

    Usage:
        lock = ReadWriteLock()

        with lock.read_locked():
            ...  # shared

        with lock.write_locked():
            ...  # exclusive
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0            # Active readers
        self._writer = False         # Writer holds the lock
        self._waiting_writers = 0    # Writers queued for the lock

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read() without matching acquire_read()")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            if not self._writer:
                raise RuntimeError("release_write() without matching acquire_write()")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()
