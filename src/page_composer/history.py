from __future__ import annotations

import logging
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50

T = TypeVar("T")


class HistoryManager(Generic[T]):
    """Linear undo/redo over whole snapshots.

    ``stack[index]`` is the snapshot the session considers current. Recording
    after an undo discards the redo branch; the stack keeps at most ``limit``
    entries, evicting the oldest first.
    """

    def __init__(self, *, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self._limit = limit
        self._stack: list[T] = []
        self._index = -1

    @property
    def index(self) -> int:
        return self._index

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def current(self) -> T | None:
        if self._index < 0:
            return None
        return self._stack[self._index]

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._stack) - 1

    def snapshots(self) -> tuple[T, ...]:
        return tuple(self._stack)

    def record(self, snapshot: T) -> None:
        del self._stack[self._index + 1 :]
        self._stack.append(snapshot)
        self._index = len(self._stack) - 1
        overflow = len(self._stack) - self._limit
        if overflow > 0:
            del self._stack[:overflow]
            self._index -= overflow
        logger.debug("History recorded", extra={"index": self._index, "size": len(self._stack)})

    def undo(self) -> T | None:
        if not self.can_undo:
            return None
        self._index -= 1
        return self._stack[self._index]

    def redo(self) -> T | None:
        if not self.can_redo:
            return None
        self._index += 1
        return self._stack[self._index]

    def reset(self, snapshot: T | None = None) -> None:
        self._stack = [] if snapshot is None else [snapshot]
        self._index = len(self._stack) - 1


__all__ = ["DEFAULT_HISTORY_LIMIT", "HistoryManager"]
