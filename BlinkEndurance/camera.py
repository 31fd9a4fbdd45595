"""
Webcam frame source using OpenCV VideoCapture.

- open() raises RuntimeError when no device can be opened
- read() returns a BGR frame or None on a failed grab
- backend can be forced with BLINKENDURANCE_CAMERA_BACKEND=dshow|msmf|any
"""
from __future__ import annotations

import logging
import os
from typing import List, Optional

try:
    import cv2  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None

logger = logging.getLogger(__name__)


def _backends() -> List[int]:
    preferred = (os.environ.get("BLINKENDURANCE_CAMERA_BACKEND", "") or "").strip().lower()
    named = {
        "dshow": getattr(cv2, "CAP_DSHOW", None),
        "msmf": getattr(cv2, "CAP_MSMF", None),
        "any": getattr(cv2, "CAP_ANY", None),
    }
    order = ["any", "dshow", "msmf"]
    if preferred in named:
        order.remove(preferred)
        order.insert(0, preferred)
    out: List[int] = []
    for key in order:
        be = named[key]
        if be is not None and be not in out:
            out.append(be)
    return out or [0]


class Camera:
    def __init__(self, index: int = 0, width: int = 640, height: int = 480, target_fps: int = 30) -> None:
        self.index = int(index)
        self.width = int(width)
        self.height = int(height)
        self.target_fps = max(1, int(target_fps))
        self.cap = None

    def open(self) -> None:
        if cv2 is None:
            raise RuntimeError("OpenCV (cv2) is not installed.")
        if self.cap is not None:
            return
        for be in _backends():
            cap = cv2.VideoCapture(self.index, be)
            if cap is not None and cap.isOpened():
                self.cap = cap
                logger.info("camera %d opened (backend=%s)", self.index, be)
                break
            if cap is not None:
                cap.release()
        if self.cap is None:
            raise RuntimeError(
                f"Cannot open camera {self.index}. Close other apps using the camera and check camera permissions."
            )
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        # Best-effort hint, drivers may ignore it
        self.cap.set(cv2.CAP_PROP_FPS, float(self.target_fps))
        actual_w = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_h = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if actual_w > 0 and actual_h > 0:
            self.width, self.height = actual_w, actual_h

    def read(self) -> Optional[object]:
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok or frame is None:
            return None
        return frame

    def close(self) -> None:
        if self.cap is not None:
            try:
                self.cap.release()
            finally:
                self.cap = None

    @property
    def is_open(self) -> bool:
        return bool(self.cap is not None and self.cap.isOpened())
