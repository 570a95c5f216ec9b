from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from .models.session import SchedulerState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DraftCell(Generic[T]):
    """Single-owner holder of the latest draft.

    Readers call ``read_latest`` at the moment they need the value instead of
    keeping a reference captured earlier. ``revision`` increases on every
    replacement so a reader can tell whether the value changed since it looked.
    """

    def __init__(self, value: T) -> None:
        self._value = value
        self._revision = 0

    @property
    def revision(self) -> int:
        return self._revision

    def read_latest(self) -> T:
        return self._value

    def snapshot(self) -> tuple[T, int]:
        return self._value, self._revision

    def replace(self, value: T) -> int:
        self._value = value
        self._revision += 1
        return self._revision


@dataclass(frozen=True)
class SaveOutcome(Generic[T]):
    sent: T
    revision: int
    result: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AutosaveScheduler(Generic[T]):
    """Debounced, serialized persistence of the value held in a ``DraftCell``.

    ``arm`` restarts the quiet-period timer; when it fires, the cell is read
    at that moment and handed to ``persist``. At most one persist call runs at
    a time: a timer that fires during a save is deferred until the save ends.
    """

    def __init__(
        self,
        cell: DraftCell[T],
        persist: Callable[[T], Awaitable[T]],
        *,
        on_outcome: Callable[[SaveOutcome[T]], None] | None = None,
        on_start: Callable[[T, int], None] | None = None,
        default_delay: float = 1.0,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._cell = cell
        self._persist = persist
        self._on_outcome = on_outcome
        self._on_start = on_start
        self._default_delay = default_delay
        self._loop = loop
        self._timer: asyncio.TimerHandle | None = None
        self._inflight: asyncio.Task[bool] | None = None
        self._deferred = False
        self._closed = False

    @property
    def state(self) -> SchedulerState:
        if self._inflight is not None and not self._inflight.done():
            return SchedulerState.saving
        if self._timer is not None:
            return SchedulerState.armed
        return SchedulerState.idle

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> bool:
        return self._timer is not None or self._deferred

    def arm(self, delay: float | None = None) -> None:
        if self._closed:
            return
        loop = self._get_loop()
        self.cancel()
        wait = self._default_delay if delay is None else delay
        self._timer = loop.call_later(wait, self._on_timer)
        logger.debug("Autosave armed", extra={"delay": wait, "revision": self._cell.revision})

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def save_now(self) -> bool:
        """Persist immediately, after any save already in flight has finished."""
        if self._closed:
            return False
        self.cancel()
        self._deferred = False
        while self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})
        if self._closed:
            return False
        self._deferred = False
        self._inflight = self._get_loop().create_task(self._save())
        return await self._inflight

    async def wait_idle(self) -> None:
        """Wait until no save is running or deferred (timers are not waited for)."""
        while self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})

    def close(self) -> None:
        """Cancel pending timers; a save in flight completes but its outcome is dropped."""
        self._closed = True
        self._deferred = False
        self.cancel()

    def _on_timer(self) -> None:
        self._timer = None
        if self._closed:
            return
        if self._inflight is not None and not self._inflight.done():
            self._deferred = True
            logger.debug("Autosave deferred behind in-flight save")
            return
        self._inflight = self._get_loop().create_task(self._save())

    async def _save(self) -> bool:
        value, revision = self._cell.snapshot()
        if self._on_start is not None:
            self._on_start(value, revision)
        try:
            result = await self._persist(value)
        except Exception as exc:
            logger.warning(
                "Autosave failed",
                exc_info=True,
                extra={"revision": revision, "error": str(exc)},
            )
            outcome: SaveOutcome[T] = SaveOutcome(sent=value, revision=revision, error=exc)
        else:
            outcome = SaveOutcome(sent=value, revision=revision, result=result)
        finally:
            self._inflight = None
            if self._deferred and not self._closed:
                self._deferred = False
                self._inflight = self._get_loop().create_task(self._save())

        if self._closed:
            logger.info("Discarding save outcome for closed session", extra={"revision": revision})
            return outcome.ok
        if self._on_outcome is not None:
            self._on_outcome(outcome)
        return outcome.ok

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop


__all__ = ["AutosaveScheduler", "DraftCell", "SaveOutcome"]
