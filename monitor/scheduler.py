"""
Timer-driven scan loop.

ScanScheduler runs the scan function once on start() and then once per
interval until stop(). Timers come from a Clock so tests can drive the
loop with virtual time.

States:
    idle     -> not running
    waiting  -> a tick is pending on the clock
    scanning -> the scan function is executing
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

IDLE = "idle"
SCANNING = "scanning"
WAITING = "waiting"


class Clock(ABC):
    """Source of one-shot timers."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Any:
        """
        Run ``callback`` after ``delay`` seconds.

        Returns:
            Handle with a ``cancel()`` method
        """
        pass


class ThreadingClock(Clock):
    """Wall-clock timers backed by threading.Timer."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.name = "scan-scheduler"
        timer.start()
        return timer


class ScanScheduler:
    """
    At most one periodic scan loop.

    start() while already running is a silent no-op. stop() cancels the
    pending tick; a scan that is already running completes but does not
    schedule another. Scans never overlap: a start() during a running scan
    schedules its first tick for when that scan completes.
    """

    def __init__(
        self,
        scan_fn: Callable[[], Any],
        interval_minutes: float = 60,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize scheduler.

        Args:
            scan_fn: Function running one scan cycle
            interval_minutes: Time between the end of a scan and the next one
            clock: Timer source (wall clock if None)
        """
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")

        self.scan_fn = scan_fn
        self.interval_seconds = interval_minutes * 60
        self.clock = clock or ThreadingClock()

        self._lock = threading.Lock()
        self._active = False
        self._state = IDLE
        self._pending = None
        # Bumped on every start/stop so stale timers from an old loop do nothing
        self._generation = 0
        self._scan_count = 0
        self._last_result: Any = None

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active

    @property
    def state(self) -> str:
        with self._lock:
            return self._state

    @property
    def scan_count(self) -> int:
        with self._lock:
            return self._scan_count

    @property
    def last_result(self) -> Any:
        with self._lock:
            return self._last_result

    def start(self) -> bool:
        """
        Start the loop; the first scan runs right away on the clock.

        Returns:
            True if the loop was started, False if it was already running
        """
        with self._lock:
            if self._active:
                logger.debug("Monitoring already active, start ignored")
                return False

            self._active = True
            self._generation += 1
            if self._state == SCANNING:
                # Restarted during a scan: the new loop begins when it finishes
                logger.debug("Scan in progress, first tick deferred until it completes")
            else:
                self._schedule(0)

        logger.info(
            f"Portal monitoring started (interval {self.interval_seconds / 60:g} min)"
        )
        return True

    def stop(self) -> bool:
        """
        Stop the loop.

        Returns:
            True if the loop was running
        """
        with self._lock:
            if not self._active:
                return False

            self._active = False
            self._generation += 1
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            if self._state != SCANNING:
                self._state = IDLE

        logger.info("Portal monitoring stopped")
        return True

    def _schedule(self, delay: float) -> None:
        # Caller holds self._lock
        generation = self._generation
        self._pending = self.clock.call_later(delay, lambda: self._tick(generation))
        self._state = WAITING

    def _tick(self, generation: int) -> None:
        with self._lock:
            if not self._active or generation != self._generation:
                return
            self._pending = None
            self._state = SCANNING

        result = None
        try:
            result = self.scan_fn()
        except Exception as e:
            logger.error(f"Scan cycle failed, retrying next tick: {e}", exc_info=True)
        finally:
            with self._lock:
                self._scan_count += 1
                if result is not None:
                    self._last_result = result

                if not self._active:
                    self._state = IDLE
                elif generation == self._generation:
                    self._schedule(self.interval_seconds)
                else:
                    self._schedule(0)
