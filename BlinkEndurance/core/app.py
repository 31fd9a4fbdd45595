from __future__ import annotations

import logging
import sys
from typing import List, Optional, Tuple

try:
    from PyQt6.QtCore import QTimer
    from PyQt6.QtWidgets import QApplication
except Exception:  # pragma: no cover
    QApplication = None  # type: ignore
    QTimer = None  # type: ignore

from BlinkEndurance.camera import Camera
from BlinkEndurance.control.events import SessionStopped
from BlinkEndurance.control.loop import DetectionLoop
from BlinkEndurance.control.session import Session
from BlinkEndurance.core.errors import BlinkEnduranceError, ConfigError, FrameSourceError
from BlinkEndurance.core.settings import SettingsManager
from BlinkEndurance.tracking.detector import ClosureDetector
from BlinkEndurance.ui.main_window import MainWindow

logger = logging.getLogger(__name__)


class AppCore:
    """Wires camera, landmark model, detector and session to the window.

    Two timers: one adds fixed ticks to the session clock, the other runs a
    detection step per camera frame (or just refreshes the preview when no
    session is running).
    """

    def __init__(self, settings: Optional[SettingsManager] = None) -> None:
        self.settings = settings or SettingsManager()
        self.session = Session(tick_ms=self.settings.tick_ms())
        self.detector = ClosureDetector(self.settings.build_estimator(), self.settings.detection_config())
        w, h = self.settings.camera_resolution()
        self.camera = Camera(index=self.settings.camera_index(), width=w, height=h, target_fps=self.settings.camera_fps())
        self.source = None
        self.loop: Optional[DetectionLoop] = None

        self.win = MainWindow()
        self.win.startRequested.connect(self.start_session)  # type: ignore[attr-defined]
        self.win.stopRequested.connect(self.stop_session)  # type: ignore[attr-defined]
        self.win.set_threshold(self.detector.config.threshold, label=self.detector.estimator.name.upper())

        self.tick_timer = QTimer()
        self.tick_timer.setInterval(self.session.tick_ms)
        self.tick_timer.timeout.connect(self._on_tick)  # type: ignore[attr-defined]
        self.frame_timer = QTimer()
        self.frame_timer.setInterval(max(1, int(1000 / self.camera.target_fps)))
        self.frame_timer.timeout.connect(self._on_frame)  # type: ignore[attr-defined]
        self.session.on_stop(self._on_session_stopped)

        # Preview is best effort; start_session reports camera problems
        try:
            self.camera.open()
        except RuntimeError as e:
            logger.warning("camera preview unavailable: %s", e)
        self.frame_timer.start()
        QTimer.singleShot(0, self._load_model)

    def _load_model(self) -> None:
        from BlinkEndurance.tracking.landmarks import FaceMeshSource

        try:
            self.source = FaceMeshSource()
        except Exception as e:
            logger.error("failed to load landmark model: %s", e)
            self.win.show_error("Failed to load the face landmark model. Restart the application.")
            return
        self.loop = DetectionLoop(self.camera.read, self.source, self.detector, self.session, drive_clock=False)
        self.loop.on_error(self._on_detection_error)
        self.win.set_model_ready(True)
        logger.info("landmark model ready")

    # Session -----------------------------------------------------------
    def start_session(self) -> None:
        if self.loop is None or self.session.running:
            return
        try:
            self.camera.open()
        except RuntimeError as e:
            logger.error("cannot start session: %s", e)
            self.win.show_error("Cannot access the webcam. Check camera permissions.")
            return
        self.win.show_error(None)
        self.loop.start()
        self.tick_timer.start()
        self.win.set_running(True)
        self.win.update_times(self.session.elapsed_ms, self.session.best_ms)

    def stop_session(self) -> None:
        self.session.stop(reason="manual")

    def _on_session_stopped(self, evt: SessionStopped) -> None:
        self.tick_timer.stop()
        self.win.set_running(False)
        self.win.update_times(evt.elapsed_ms, evt.best_ms)

    def _on_detection_error(self, err: BlinkEnduranceError) -> None:
        if isinstance(err, FrameSourceError):
            self.win.show_error("Lost access to the webcam. Check the camera and restart the application.")
        else:
            self.win.show_error("An error occurred during blink detection. Restart the application.")

    # Timers ------------------------------------------------------------
    def _on_tick(self) -> None:
        self.session.tick()
        self.win.update_times(self.session.elapsed_ms, self.session.best_ms)

    def _on_frame(self) -> None:
        if self.loop is None or not self.loop.running:
            frame = self.camera.read()
            if frame is not None:
                self.win.update_video(frame)
            return
        try:
            snap = self.loop.step()
        except BlinkEnduranceError:
            return
        if snap is None:
            return
        self.win.update_snapshot(snap)
        if self.loop.last_frame is not None:
            self.win.update_video(self.loop.last_frame, eye_points=self._eye_points(), closed=snap.is_closed)

    def _eye_points(self) -> List[Tuple[float, float]]:
        if self.loop is None or not self.loop.last_faces:
            return []
        kps = self.loop.last_faces[0].keypoints
        samples = self.detector.estimator.selector.select_all(kps)
        return [p.xy for s in samples for p in s.points]

    def shutdown(self) -> None:
        self.frame_timer.stop()
        self.tick_timer.stop()
        if self.loop is not None:
            self.loop.close()
        else:
            self.camera.close()


def main() -> int:
    if QApplication is None:
        print("PyQt6 is not installed. Please install dependencies from pyproject.toml.")
        return 1
    app = QApplication(sys.argv)
    try:
        core = AppCore()
    except ConfigError as e:
        print(f"Invalid settings: {e}")
        return 2
    core.win.show()
    code = app.exec()
    core.shutdown()
    return int(code)


if __name__ == "__main__":
    raise SystemExit(main())
