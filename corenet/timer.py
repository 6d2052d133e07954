"""Timers ordered by deadline, and a manager that hands out expired callbacks."""

from __future__ import annotations

import itertools
import threading
import weakref
from bisect import bisect_left
from typing import Callable, List, Optional, Tuple

from .util import elapsed_ms

Callback = Callable[[], None]
Clock = Callable[[], int]

_ROLLOVER_MS = 60 * 60 * 1000
_sequence = itertools.count()


class Timer:
    """A one-shot or recurring timer owned by a :class:`TimerManager`."""

    def __init__(
        self,
        ms: int,
        cb: Optional[Callback],
        recurring: bool,
        manager: "TimerManager",
    ) -> None:
        self._recurring = recurring
        self._ms = ms
        self._cb = cb
        self._manager = manager
        self._seq = next(_sequence)
        self._next = manager._clock() + ms

    @property
    def interval(self) -> int:
        """Period of the timer in milliseconds."""
        return self._ms

    @property
    def deadline(self) -> int:
        """Clock reading, in milliseconds, at which the timer fires."""
        return self._next

    @property
    def recurring(self) -> bool:
        """Whether the timer re-arms itself after firing."""
        return self._recurring

    @property
    def active(self) -> bool:
        """Whether the timer still holds a callback."""
        return self._cb is not None

    def cancel(self) -> bool:
        """Drop the timer from its manager; False if it was already inactive."""
        manager = self._manager
        with manager._lock:
            if self._cb is None:
                return False
            self._cb = None
            manager._remove(self)
            return True

    def refresh(self) -> bool:
        """Restart the countdown from now with the same interval."""
        manager = self._manager
        with manager._lock:
            if self._cb is None or not manager._remove(self):
                return False
            self._next = manager._clock() + self._ms
            manager._place(self)
            return True

    def reset(self, ms: int, from_now: bool) -> bool:
        """Change the interval, counting from now or from the last start."""
        if ms == self._ms and not from_now:
            return True
        manager = self._manager
        with manager._lock:
            if self._cb is None or not manager._remove(self):
                return False
            start = manager._clock() if from_now else self._next - self._ms
            self._ms = ms
            self._next = start + ms
            at_front = manager._insert(self)
        if at_front:
            manager.on_timer_inserted_at_front()
        return True

    def __repr__(self) -> str:
        return (
            f"Timer(interval={self._ms}, deadline={self._next}, "
            f"recurring={self._recurring}, active={self.active})"
        )


class TimerManager:
    """Keeps timers sorted by deadline and collects the expired ones."""

    def __init__(self, clock: Clock = elapsed_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._timers: List[Tuple[int, int, Timer]] = []
        self._tickled = False
        self._previous_time = clock()

    def add_timer(
        self, ms: int, cb: Callback, recurring: bool = False
    ) -> Timer:
        """Arm a new timer that fires ``ms`` milliseconds from now."""
        timer = Timer(ms, cb, recurring, self)
        with self._lock:
            at_front = self._insert(timer)
        if at_front:
            self.on_timer_inserted_at_front()
        return timer

    def add_condition_timer(
        self, ms: int, cb: Callback, cond: object, recurring: bool = False
    ) -> Timer:
        """Arm a timer whose callback runs only while ``cond`` is alive."""
        ref = weakref.ref(cond)

        def on_timer() -> None:
            if ref() is not None:
                cb()

        return self.add_timer(ms, on_timer, recurring)

    def next_timer(self) -> Optional[int]:
        """Milliseconds until the nearest deadline, or None with no timers."""
        with self._lock:
            self._tickled = False
            if not self._timers:
                return None
            now = self._clock()
            deadline = self._timers[0][0]
            return 0 if now >= deadline else deadline - now

    def list_expired_callbacks(self) -> List[Callback]:
        """Remove the timers that are due and return their callbacks.

        Recurring timers are re-armed from the current clock reading.
        """
        now = self._clock()
        with self._lock:
            if not self._timers:
                return []
            rollover = self._detect_clock_rollover(now)
            if not rollover and self._timers[0][0] > now:
                return []
            if rollover:
                cut = len(self._timers)
            else:
                cut = bisect_left(self._timers, (now + 1,))
            expired = [entry[2] for entry in self._timers[:cut]]
            del self._timers[:cut]
            callbacks: List[Callback] = []
            for timer in expired:
                callbacks.append(timer._cb)
                if timer._recurring:
                    timer._next = now + timer._ms
                    self._place(timer)
                else:
                    timer._cb = None
            return callbacks

    def has_timer(self) -> bool:
        """Whether any timer is armed."""
        with self._lock:
            return bool(self._timers)

    def on_timer_inserted_at_front(self) -> None:
        """Hook run when a timer becomes the earliest one; the default does nothing."""

    def _place(self, timer: Timer) -> int:
        key = (timer._next, timer._seq)
        index = bisect_left(self._timers, key)
        self._timers.insert(index, (timer._next, timer._seq, timer))
        return index

    def _insert(self, timer: Timer) -> bool:
        at_front = self._place(timer) == 0 and not self._tickled
        if at_front:
            self._tickled = True
        return at_front

    def _remove(self, timer: Timer) -> bool:
        index = bisect_left(self._timers, (timer._next, timer._seq))
        if index < len(self._timers) and self._timers[index][2] is timer:
            del self._timers[index]
            return True
        return False

    def _detect_clock_rollover(self, now: int) -> bool:
        rollover = now < self._previous_time and now < self._previous_time - _ROLLOVER_MS
        self._previous_time = now
        return rollover