"""
Debounced eye-closure state machine.

States: OPEN (initial) and CLOSED. One sample per frame:
- invalid sample (no face / no eye points) counts as below threshold
- valid sample below threshold increments the counter
- valid sample at or above threshold resets the counter and reopens

The machine closes once the counter reaches `required_frames` and reports
`confirmed=True` on that frame only. It does not know about the timer.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from BlinkEndurance.core.errors import ConfigError
from .estimators import Estimate

logger = logging.getLogger(__name__)

OPEN = "open"
CLOSED = "closed"

# Historical presets per estimator: (threshold, required_frames)
PRESETS = {
    "distance": (0.15, 2),
    "ear": (0.2, 1),
}


@dataclass(frozen=True)
class DetectionConfig:
    threshold: float
    required_frames: int

    def __post_init__(self) -> None:
        try:
            thr = float(self.threshold)
            req = int(self.required_frames)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid detection config: {e}") from e
        if not math.isfinite(thr) or thr < 0:
            raise ConfigError(f"threshold must be a finite value >= 0, got {self.threshold!r}")
        if req < 1:
            raise ConfigError(f"required_frames must be >= 1, got {self.required_frames!r}")
        object.__setattr__(self, "threshold", thr)
        object.__setattr__(self, "required_frames", req)

    @classmethod
    def preset(cls, estimator: str) -> "DetectionConfig":
        try:
            thr, req = PRESETS[estimator]
        except KeyError:
            raise ConfigError(f"unknown estimator: {estimator!r}") from None
        return cls(threshold=thr, required_frames=req)


@dataclass(frozen=True)
class ClosureState:
    is_closed: bool
    consecutive_below_threshold: int
    confirmed: bool = False  # True only on the frame that closed


class ClosureStateMachine:
    def __init__(self, config: DetectionConfig) -> None:
        self.config = config
        self.is_closed = False
        self.consecutive_below_threshold = 0

    @property
    def state(self) -> str:
        return CLOSED if self.is_closed else OPEN

    def reset(self) -> None:
        self.is_closed = False
        self.consecutive_below_threshold = 0

    def update(self, sample: Estimate) -> ClosureState:
        if not sample.valid or sample.value < self.config.threshold:
            self.consecutive_below_threshold += 1
        else:
            self.consecutive_below_threshold = 0
            if self.is_closed:
                logger.debug("eyes reopened (value=%.3f)", sample.value)
            self.is_closed = False

        confirmed = False
        if not self.is_closed and self.consecutive_below_threshold >= self.config.required_frames:
            self.is_closed = True
            confirmed = True
            logger.debug(
                "closure confirmed after %d frame(s) (valid=%s, value=%.3f)",
                self.consecutive_below_threshold, sample.valid, sample.value,
            )
        return ClosureState(self.is_closed, self.consecutive_below_threshold, confirmed)
