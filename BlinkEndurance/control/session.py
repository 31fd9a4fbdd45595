"""
Endurance session timer.

Elapsed time accumulates in fixed ticks (default 10 ms) while running. The
best time is kept for the process lifetime only and never decreases.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

from BlinkEndurance.core.errors import ConfigError
from .events import ClosureConfirmed, SessionStopped

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, tick_ms: int = 10) -> None:
        if int(tick_ms) < 1:
            raise ConfigError(f"tick_ms must be >= 1, got {tick_ms}")
        self.tick_ms = int(tick_ms)
        self.elapsed_ms = 0
        self.best_ms = 0
        self.running = False
        self._on_start: List[Callable[[], None]] = []
        self._on_stop: List[Callable[[SessionStopped], None]] = []

    def on_start(self, callback: Callable[[], None]) -> None:
        """Called on every start; used to reset detection counters and history."""
        self._on_start.append(callback)

    def on_stop(self, callback: Callable[[SessionStopped], None]) -> None:
        self._on_stop.append(callback)

    def start(self) -> None:
        self.elapsed_ms = 0
        for cb in list(self._on_start):
            cb()
        self.running = True
        logger.info("session started (best=%s)", format_time(self.best_ms))

    def tick(self) -> None:
        if self.running:
            self.elapsed_ms += self.tick_ms

    def stop(self, reason: str = "manual") -> Optional[SessionStopped]:
        if not self.running:
            return None
        self.running = False
        self.best_ms = max(self.best_ms, self.elapsed_ms)
        evt = SessionStopped(elapsed_ms=self.elapsed_ms, best_ms=self.best_ms, reason=reason)
        logger.info("session stopped (%s) after %s, best %s", reason, format_time(self.elapsed_ms), format_time(self.best_ms))
        for cb in list(self._on_stop):
            cb(evt)
        return evt

    def handle_closure(self, event: ClosureConfirmed) -> None:
        """Stop a running session on confirmed closure; ignored when idle."""
        if not self.running:
            logger.debug("closure at frame %d ignored, no session running", event.frame_index)
            return
        self.stop(reason="closure")


def format_time(ms: int) -> str:
    """12340 -> '12.340'"""
    ms = int(ms)
    return f"{ms // 1000}.{ms % 1000:03d}"
