"""
Single-threaded detection loop.

Each step grabs one frame, runs the landmark source, advances the session
clock and feeds the detector. Steps never overlap; after stop() (or after
the frame or landmark source fails) no further step touches detector or session
state. A Qt front-end calls step() from a QTimer; run() is the plain loop
for headless use.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from BlinkEndurance.core.errors import BlinkEnduranceError, FrameSourceError, LandmarkSourceError
from BlinkEndurance.tracking.detector import ClosureDetector, Snapshot
from BlinkEndurance.tracking.keypoints import Face
from .session import Session

logger = logging.getLogger(__name__)


class DetectionLoop:
    def __init__(
        self,
        frames: Callable[[], Optional[object]],
        source,
        detector: ClosureDetector,
        session: Session,
        *,
        drive_clock: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._frames = frames
        self.source = source
        self.detector = detector
        self.session = session
        self.drive_clock = bool(drive_clock)
        self._clock = clock
        self._last_t: Optional[float] = None
        self._stopped = True
        self.error: Optional[BlinkEnduranceError] = None
        self.last_frame: Optional[object] = None
        self.last_faces: List[Face] = []
        self._on_error: List[Callable[[BlinkEnduranceError], None]] = []

        session.on_start(detector.reset)
        session.on_stop(lambda _evt: self.stop())
        detector.on_closure_confirmed(session.handle_closure)

    @property
    def running(self) -> bool:
        return not self._stopped

    def on_error(self, callback: Callable[[BlinkEnduranceError], None]) -> None:
        self._on_error.append(callback)

    def start(self) -> None:
        """Start a new session and begin scheduling frames."""
        self.error = None
        self.session.start()
        self._last_t = self._clock()
        self._stopped = False

    def stop(self) -> None:
        if not self._stopped:
            logger.debug("detection loop stopped after %d frame(s)", self.detector.frame_index)
        self._stopped = True

    def close(self) -> None:
        """Stop and release the frame and landmark sources."""
        self.session.stop(reason="manual")
        self.stop()
        for obj in (self.source, getattr(self._frames, "__self__", None)):
            close = getattr(obj, "close", None)
            if callable(close):
                close()

    def step(self) -> Optional[Snapshot]:
        if self._stopped:
            return None
        try:
            frame = self._frames()
        except Exception as e:
            err = FrameSourceError(f"frame source failed: {e}")
            self._fail(err)
            raise err from e
        try:
            faces: List[Face] = list(self.source.estimate_faces(frame) or [])
        except LandmarkSourceError as e:
            self._fail(e)
            raise
        except Exception as e:
            err = LandmarkSourceError(f"landmark source failed: {e}")
            self._fail(err)
            raise err from e
        if self._stopped:
            return None
        self._advance_clock()
        self.last_frame = frame
        self.last_faces = faces
        return self.detector.process_faces(faces)

    def run(self, max_frames: Optional[int] = None) -> int:
        n = 0
        while not self._stopped:
            if max_frames is not None and n >= max_frames:
                break
            self.step()
            n += 1
        return n

    def _advance_clock(self) -> None:
        if not self.drive_clock or self._last_t is None:
            return
        tick_s = self.session.tick_ms / 1000.0
        now = self._clock()
        ticks = int((now - self._last_t) / tick_s)
        for _ in range(ticks):
            self.session.tick()
        self._last_t += ticks * tick_s

    def _fail(self, err: BlinkEnduranceError) -> None:
        logger.error("stopping detection: %s", err)
        self.error = err
        self._stopped = True
        self.session.stop(reason="error")
        for cb in list(self._on_error):
            cb(err)
