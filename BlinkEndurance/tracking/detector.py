from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from BlinkEndurance.control.events import ClosureConfirmed
from .closure import ClosureStateMachine, DetectionConfig
from .estimators import Estimate, OpennessEstimator
from .keypoints import Face, Keypoint


@dataclass(frozen=True)
class Snapshot:
    openness: float
    valid: bool
    is_closed: bool
    consecutive_frames: int
    debug_label: str
    confirmed: bool = False


class ClosureDetector:
    """Keypoints -> openness estimate -> debounced closure state.

    Listeners added with `on_closure_confirmed` are called once per
    open->closed transition with a ClosureConfirmed event.
    """

    def __init__(self, estimator: OpennessEstimator, config: DetectionConfig) -> None:
        self.estimator = estimator
        self.config = config
        self.machine = ClosureStateMachine(config)
        self.frame_index = 0
        self._listeners: List[Callable[[ClosureConfirmed], None]] = []
        self.last: Optional[Snapshot] = None

    def on_closure_confirmed(self, callback: Callable[[ClosureConfirmed], None]) -> None:
        self._listeners.append(callback)

    def reset(self) -> None:
        self.estimator.reset()
        self.machine.reset()
        self.frame_index = 0
        self.last = None

    def process_faces(self, faces: Optional[Sequence[Face]]) -> Snapshot:
        """Only the first detected face is considered."""
        keypoints: Sequence[Keypoint] = faces[0].keypoints if faces else []
        return self.process(keypoints)

    def process(self, keypoints: Optional[Sequence[Keypoint]]) -> Snapshot:
        self.frame_index += 1
        est = self.estimator.estimate(keypoints)
        st = self.machine.update(est)
        snap = Snapshot(
            openness=est.value,
            valid=est.valid,
            is_closed=st.is_closed,
            consecutive_frames=st.consecutive_below_threshold,
            debug_label=self.debug_label(est, st.consecutive_below_threshold),
            confirmed=st.confirmed,
        )
        self.last = snap
        if st.confirmed:
            evt = ClosureConfirmed(
                frame_index=self.frame_index,
                consecutive_frames=st.consecutive_below_threshold,
                value=est.value,
                valid=est.valid,
            )
            for cb in list(self._listeners):
                cb(evt)
        return snap

    def debug_label(self, est: Estimate, frames: int) -> str:
        head = f"{self.estimator.name}: {est.value:.3f}" if est.valid else f"{self.estimator.name}: no face"
        return f"{head}, threshold: {self.config.threshold}, frames: {frames}/{self.config.required_frames}"
