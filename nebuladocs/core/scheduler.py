"""Cancellable timers used to debounce saves."""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class ScheduledCall:
    """Handle returned by a scheduler; a cancelled call never fires."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False
        self._timer: Optional[threading.Timer] = None

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def fire(self) -> None:
        if not self.pending:
            return
        self.fired = True
        self.callback()


class SaveScheduler(ABC):
    """Arms a callback to run after a delay."""

    @abstractmethod
    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        """Run ``callback`` once after ``delay`` seconds unless cancelled."""
        pass


class TimerScheduler(SaveScheduler):
    """Wall-clock scheduler backed by daemon ``threading.Timer`` threads."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(due=delay, callback=callback)
        timer = threading.Timer(delay, call.fire)
        timer.daemon = True
        call._timer = timer
        timer.start()
        return call


class ManualScheduler(SaveScheduler):
    """Scheduler driven by an explicit clock, for deterministic tests and batch tools."""

    def __init__(self):
        self.now = 0.0
        self._calls: List[ScheduledCall] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(due=self.now + delay, callback=callback)
        self._calls.append(call)
        return call

    @property
    def pending(self) -> List[ScheduledCall]:
        return [call for call in self._calls if call.pending]

    def advance(self, seconds: float) -> int:
        """Move the clock forward and fire every call that fell due. Returns the number fired."""
        self.now += seconds
        due = sorted((c for c in self._calls if c.pending and c.due <= self.now), key=lambda c: c.due)
        for call in due:
            logger.debug(f"Firing scheduled call due at {call.due:.2f}")
            call.fire()
        self._calls = [c for c in self._calls if c.pending]
        return len(due)
