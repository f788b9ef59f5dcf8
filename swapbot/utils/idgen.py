from __future__ import annotations

import itertools


class TaskIdGenerator:
    """Monotonic generator for scheduled task ids.

    Ids are never reused within a process; after a restart the generator is
    re-seeded past the highest id found in the restored store.
    """

    def __init__(self, *, start: int = 1) -> None:
        if start <= 0:
            raise ValueError("start must be positive")
        self._counter = itertools.count(start)
        self._last = start - 1

    def next(self) -> int:
        self._last = next(self._counter)
        return self._last

    @property
    def last(self) -> int:
        return self._last

    def advance_past(self, value: int) -> None:
        if value > self._last:
            self._counter = itertools.count(value + 1)
            self._last = value


__all__ = ["TaskIdGenerator"]
