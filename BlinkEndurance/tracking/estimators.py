"""
Eye-openness estimators.

Both strategies take one frame's keypoints and return an Estimate. An
invalid estimate means no usable eye was found this frame; callers treat it
as closed.

- EarEstimator: Eye Aspect Ratio from a 6-point contour per eye,
  EAR = (|p1-p5| + |p2-p4|) / (2 |p0-p3|). Scale invariant, no state.
- DistanceEstimator: vertical top/bottom eyelid distance, optionally divided
  by the mean of the last `history_length` averaged values.
"""
from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence

import numpy as np

from BlinkEndurance.core.errors import ConfigError
from .keypoints import EyeSample, EyeSelector, Keypoint, Point, make_selector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Estimate:
    value: float
    valid: bool

    @classmethod
    def missing(cls) -> "Estimate":
        return cls(value=0.0, valid=False)


class OpennessEstimator:
    """Common interface for openness strategies."""

    name = "base"

    def __init__(self, selector: EyeSelector) -> None:
        self.selector = selector

    def estimate(self, keypoints: Optional[Sequence[Keypoint]]) -> Estimate:
        if not keypoints:
            return Estimate.missing()
        values: List[float] = []
        for sample in self.selector.select_all(keypoints):
            v = self._eye_value(sample)
            if v is not None and math.isfinite(v):
                values.append(v)
        if not values:
            return Estimate.missing()
        return self._combine(sum(values) / len(values))

    def reset(self) -> None:
        pass

    def _eye_value(self, sample: EyeSample) -> Optional[float]:
        raise NotImplementedError

    def _combine(self, average: float) -> Estimate:
        return Estimate(value=float(average), valid=True)


def euclid(a: Point, b: Point) -> float:
    dx = a[0] - b[0]
    dy = a[1] - b[1]
    return (dx * dx + dy * dy) ** 0.5


def eye_aspect_ratio(points: Sequence[Point]) -> Optional[float]:
    """EAR of an ordered 6-point contour; None if degenerate."""
    if len(points) != 6:
        return None
    p0, p1, p2, p3, p4, p5 = points
    horiz = euclid(p0, p3)
    if horiz <= 0:
        return None
    return (euclid(p1, p5) + euclid(p2, p4)) / (2.0 * horiz)


class EarEstimator(OpennessEstimator):
    name = "ear"

    def _eye_value(self, sample: EyeSample) -> Optional[float]:
        return eye_aspect_ratio([p.xy for p in sample.points])


class DistanceEstimator(OpennessEstimator):
    name = "distance"

    def __init__(self, selector: EyeSelector, history_length: int = 10, normalize: bool = True) -> None:
        super().__init__(selector)
        if int(history_length) < 1:
            raise ConfigError(f"history_length must be >= 1, got {history_length}")
        self.history_length = int(history_length)
        self.normalize = bool(normalize)
        self._history: Deque[float] = deque(maxlen=self.history_length)

    @property
    def history(self) -> List[float]:
        return list(self._history)

    def reset(self) -> None:
        self._history.clear()

    def _eye_value(self, sample: EyeSample) -> Optional[float]:
        if len(sample.points) < 2:
            return None
        top, bottom = sample.points[0], sample.points[1]
        return abs(top.y - bottom.y)

    def _combine(self, average: float) -> Estimate:
        if not self.normalize:
            return Estimate(value=float(average), valid=True)
        value = self.normalized(average)
        self._history.append(float(average))
        return Estimate(value=value, valid=True)

    def normalized(self, average: float) -> float:
        """Divide by the mean of previous samples; 1.0 when there is no baseline."""
        if not self._history:
            return 1.0
        baseline = float(np.mean(self._history))
        if baseline <= 0 or not math.isfinite(baseline):
            logger.debug("openness baseline is %r, treating frame as open", baseline)
            return 1.0
        return float(average) / baseline


def make_estimator(kind: str, selector: str = "indices", history_length: int = 10, normalize: bool = True) -> OpennessEstimator:
    sel = make_selector(selector, kind)
    if kind == "ear":
        return EarEstimator(sel)
    if kind == "distance":
        return DistanceEstimator(sel, history_length=history_length, normalize=normalize)
    raise ConfigError(f"unknown estimator: {kind!r}")
