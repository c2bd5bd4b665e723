# ================================
# file: driver/timer.py
# ================================
from __future__ import annotations
from typing import Callable, Optional
import threading, time

from core.config import TIMER_JOIN_TIMEOUT_S


class PeriodicTimer:
    """Calls `callback` every `period` seconds on a background thread.
    Ticks are scheduled on a fixed grid (no drift); an overrun skips the missed
    slots instead of bursting to catch up. A callback exception stops the timer
    and is kept in `error`.
    """
    def __init__(self, period: float, callback: Callable[[], object],
                 max_ticks: Optional[int] = None, logger_func=None, log_file=None) -> None:
        if period <= 0.0:
            raise ValueError(f"timer period must be > 0, got {period}")
        self.period = float(period)
        self.callback = callback
        self.max_ticks = max_ticks
        self.logger_func = logger_func
        self.log_file = log_file
        self.tick_count = 0
        self.overruns = 0
        self.error: Optional[BaseException] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _log(self, message: str, module: str = "TIMER") -> None:
        if self.logger_func and self.log_file:
            self.logger_func(self.log_file, message, module)
        else:
            print(f"[{module}] {message}")

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        next_t = time.monotonic()
        while not self._stop.is_set():
            if self.max_ticks is not None and self.tick_count >= self.max_ticks:
                break
            try:
                self.callback()
            except Exception as e:
                self.error = e
                self._log(f"[ERROR] tick callback raised: {e!r}, timer stopped")
                self._stop.set()
                break
            finally:
                self.tick_count += 1
            next_t += self.period
            now = time.monotonic()
            if next_t < now:
                missed = int((now - next_t) // self.period) + 1
                self.overruns += missed
                next_t += missed * self.period
            self._stop.wait(max(0.0, next_t - time.monotonic()))

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=TIMER_JOIN_TIMEOUT_S)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
