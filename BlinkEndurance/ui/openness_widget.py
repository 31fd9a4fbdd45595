from __future__ import annotations

try:
    from PyQt6.QtCore import Qt, QRect
    from PyQt6.QtGui import QColor, QPainter, QPen, QFont
    from PyQt6.QtWidgets import QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QRect = None  # type: ignore
    QColor = None  # type: ignore
    QPainter = None  # type: ignore
    QPen = None  # type: ignore
    QFont = None  # type: ignore
    QWidget = object  # type: ignore


class OpennessWidget(QWidget):  # type: ignore[misc]
    """
    Single bar showing the current openness/EAR value against the closure
    threshold: red band below the threshold, green above, white marker for
    the value. The marker is hidden on frames without a face.
    """

    def __init__(self):  # type: ignore[no-redef]
        super().__init__()
        self._value = 0.0
        self._valid = False
        self._threshold = 0.2
        self._label = "EAR"
        self.setMinimumHeight(24)

    def set_threshold(self, threshold: float, label: str = "EAR") -> None:
        self._threshold = max(0.0, float(threshold))
        self._label = label
        self.update()

    def set_value(self, value: float, valid: bool = True) -> None:
        self._value = max(0.0, float(value))
        self._valid = bool(valid)
        self.update()

    def paintEvent(self, e):  # type: ignore[override]
        if QPainter is None:
            return
        p = QPainter(self)
        r = self.rect()
        lw = 60
        bar = QRect(r.left() + lw, r.top() + 3, r.width() - lw - 6, r.height() - 6)
        # Scale up to 3x threshold so the open range stays visible
        cap = max(self._threshold * 3.0, 0.05)

        def x_for(v: float) -> int:
            v = max(0.0, min(cap, v))
            return int(bar.left() + (v / cap) * bar.width())

        t_x = x_for(self._threshold)
        p.fillRect(QRect(bar.left(), bar.top(), t_x - bar.left(), bar.height()), QColor(204, 0, 0, 60))
        p.fillRect(QRect(t_x, bar.top(), bar.right() - t_x + 1, bar.height()), QColor(0, 170, 0, 60))
        pen = QPen(QColor(120, 120, 120))
        pen.setWidth(1)
        p.setPen(pen)
        p.drawRect(bar)
        if self._valid:
            pen = QPen(QColor(255, 255, 255))
            pen.setWidth(2)
            p.setPen(pen)
            m_x = x_for(self._value)
            p.drawLine(m_x, bar.top(), m_x, bar.bottom())
        f = QFont()
        f.setPointSizeF(max(7.5, self.font().pointSizeF() - 1))
        p.setFont(f)
        p.setPen(QColor(80, 80, 80))
        p.drawText(QRect(r.left() + 4, r.top(), lw - 6, r.height()), int(Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft), self._label)
        p.end()
