"""
Process-local storage shared by the in-memory profile store and audit recorder.

Used for tests and demo configurations only. A single re-entrant lock guards
every table. ``read()`` holds it for lookups. ``atomic()`` holds it for the
whole block and restores a snapshot of all tables if the block raises, so
profile writes and audit entries are kept or discarded together.
"""

import copy
import threading
from contextlib import contextmanager


class InMemoryDatabase:
    """Named tables (dicts keyed by id) behind one lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._tables = {}
        self._depth = 0

    def table(self, name):
        with self._lock:
            return self._tables.setdefault(name, {})

    @contextmanager
    def atomic(self):
        with self._lock:
            outermost = self._depth == 0
            snapshot = copy.deepcopy(self._tables) if outermost else None
            self._depth += 1
            try:
                yield self
            except BaseException:
                if outermost:
                    # Restore in place so tables handed out earlier stay valid.
                    for name, rows in self._tables.items():
                        rows.clear()
                        rows.update(snapshot.get(name, {}))
                raise
            finally:
                self._depth -= 1

    @contextmanager
    def read(self):
        """Hold the lock without a snapshot; for blocks that only read."""
        with self._lock:
            yield self

    def flush(self):
        with self._lock:
            for rows in self._tables.values():
                rows.clear()


default_database = InMemoryDatabase()
