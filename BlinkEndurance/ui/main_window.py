from __future__ import annotations

from typing import Optional, Sequence, Tuple

try:
    from PyQt6.QtCore import Qt, pyqtSignal
    from PyQt6.QtGui import QFont
    from PyQt6.QtWidgets import (
        QWidget,
        QMainWindow,
        QVBoxLayout,
        QLabel,
        QPushButton,
    )
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore
    QMainWindow = object  # type: ignore
    pyqtSignal = lambda *a, **k: None  # type: ignore

from BlinkEndurance.control.session import format_time
from BlinkEndurance.tracking.detector import Snapshot
from .openness_widget import OpennessWidget
from .video_widget import VideoWidget


class MainWindow(QMainWindow):  # type: ignore[misc]
    startRequested = pyqtSignal()
    stopRequested = pyqtSignal()

    def __init__(self):  # type: ignore[no-redef]
        super().__init__()
        self.setWindowTitle("Blink Endurance Challenge")
        self._running = False
        self._model_ready = False
        self._build_ui()

    def _build_ui(self) -> None:
        central = QWidget()
        v = QVBoxLayout()

        self.video = VideoWidget()
        v.addWidget(self.video, stretch=1)

        self.lbl_time = QLabel(format_time(0))
        f = QFont()
        f.setPointSize(32)
        f.setBold(True)
        self.lbl_time.setFont(f)
        self.lbl_time.setAlignment(Qt.AlignmentFlag.AlignCenter)
        v.addWidget(self.lbl_time)

        self.lbl_best = QLabel(f"Best: {format_time(0)}")
        self.lbl_best.setAlignment(Qt.AlignmentFlag.AlignCenter)
        v.addWidget(self.lbl_best)

        self.openness_bar = OpennessWidget()
        v.addWidget(self.openness_bar)
        self.lbl_debug = QLabel("")
        self.lbl_debug.setStyleSheet("color: #3b82f6;")
        v.addWidget(self.lbl_debug)
        self.lbl_state = QLabel("Eyes: open")
        self.lbl_state.setStyleSheet("color: #16a34a;")
        v.addWidget(self.lbl_state)
        self.lbl_frames = QLabel("Consecutive frames: 0")
        self.lbl_frames.setStyleSheet("color: #a855f7;")
        v.addWidget(self.lbl_frames)

        self.btn_start = QPushButton("Loading model...")
        self.btn_start.setEnabled(False)
        self.btn_stop = QPushButton("Force stop")
        self.btn_stop.setVisible(False)
        v.addWidget(self.btn_start)
        v.addWidget(self.btn_stop)
        self.btn_start.clicked.connect(self.startRequested)  # type: ignore[attr-defined]
        self.btn_stop.clicked.connect(self.stopRequested)  # type: ignore[attr-defined]

        self.lbl_error = QLabel("")
        self.lbl_error.setWordWrap(True)
        self.lbl_error.setStyleSheet("color: #ffffff; background: #cc0000; padding: 6px; font-weight: bold;")
        self.lbl_error.setVisible(False)
        v.addWidget(self.lbl_error)

        central.setLayout(v)
        self.setCentralWidget(central)

    # State updates -----------------------------------------------------
    def set_model_ready(self, ready: bool) -> None:
        self._model_ready = bool(ready)
        self._refresh_buttons()

    def set_running(self, running: bool) -> None:
        self._running = bool(running)
        self._refresh_buttons()

    def _refresh_buttons(self) -> None:
        self.btn_start.setText("Start" if self._model_ready else "Loading model...")
        self.btn_start.setEnabled(self._model_ready and not self._running)
        self.btn_start.setVisible(not self._running)
        self.btn_stop.setVisible(self._running)

    def set_threshold(self, threshold: float, label: str) -> None:
        self.openness_bar.set_threshold(threshold, label=label)

    def update_times(self, elapsed_ms: int, best_ms: int) -> None:
        self.lbl_time.setText(format_time(elapsed_ms))
        self.lbl_best.setText(f"Best: {format_time(best_ms)}")

    def update_snapshot(self, snap: Snapshot) -> None:
        self.openness_bar.set_value(snap.openness, valid=snap.valid)
        self.lbl_debug.setText(snap.debug_label)
        self.lbl_state.setText("Eyes: closed" if snap.is_closed else "Eyes: open")
        self.lbl_frames.setText(f"Consecutive frames: {snap.consecutive_frames}")

    def update_video(self, frame, eye_points: Optional[Sequence[Tuple[float, float]]] = None, closed: bool = False) -> None:
        self.video.set_frame(frame, eye_points=eye_points, closed=closed)

    def show_error(self, message: Optional[str]) -> None:
        self.lbl_error.setText(message or "")
        self.lbl_error.setVisible(bool(message))
