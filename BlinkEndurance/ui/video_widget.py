from __future__ import annotations

from typing import Optional, Sequence, Tuple

try:
    from PyQt6.QtCore import Qt, QPoint
    from PyQt6.QtGui import QImage, QPainter, QColor, QPen
    from PyQt6.QtWidgets import QWidget
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore
    QImage = object  # type: ignore
    QPainter = object  # type: ignore
    QColor = object  # type: ignore
    QPen = object  # type: ignore
    cv2 = None  # type: ignore


class VideoWidget(QWidget):  # type: ignore[misc]
    """Camera preview with the selected eye points drawn on top.

    Points are green while the eyes read open and red once closure is
    confirmed.
    """

    def __init__(self):  # type: ignore[no-redef]
        super().__init__()
        self._frame = None
        self._eye_points: Sequence[Tuple[float, float]] = ()
        self._closed = False
        self.setMinimumSize(400, 300)

    def set_frame(self, frame, eye_points: Optional[Sequence[Tuple[float, float]]] = None, closed: bool = False) -> None:
        self._frame = frame
        self._eye_points = tuple(eye_points or ())
        self._closed = bool(closed)
        self.update()

    def paintEvent(self, e):  # type: ignore[override]
        if self._frame is None or QImage is object:
            return
        img = self._to_qimage(self._frame)
        if img is None:
            return
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(0, 0, 0))
        target = self.rect()
        pix = img.scaled(target.size(), Qt.AspectRatioMode.KeepAspectRatio, Qt.TransformationMode.SmoothTransformation)
        x = target.x() + (target.width() - pix.width()) // 2
        y = target.y() + (target.height() - pix.height()) // 2
        painter.drawImage(x, y, pix)

        fw, fh = img.width(), img.height()
        if fw > 0 and fh > 0 and self._eye_points:
            scale = min(target.width() / fw, target.height() / fh)
            color = QColor(255, 60, 60) if self._closed else QColor(0, 220, 0)
            painter.setPen(QPen(color, 2))
            for px, py in self._eye_points:
                painter.drawEllipse(QPoint(x + int(px * scale), y + int(py * scale)), 2, 2)
        painter.end()

    @staticmethod
    def _to_qimage(frame):
        if cv2 is None:
            return None
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w, ch = rgb.shape
        return QImage(rgb.data, w, h, ch * w, QImage.Format.Format_RGB888).copy()
