"""
MediaPipe FaceMesh landmark source.

estimate_faces(frame) returns a list of Face objects (empty when no face is
found). Keypoints are in pixel coordinates, ordered by FaceMesh index, and
the eye landmarks listed in keypoints.LANDMARK_NAMES carry names so that
both index- and name-based selection work.
"""
from __future__ import annotations

import logging
from typing import List

try:
    import cv2  # type: ignore
    import mediapipe as mp  # type: ignore
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore
    mp = None  # type: ignore

from BlinkEndurance.core.errors import LandmarkSourceError
from .keypoints import LANDMARK_NAMES, Face, Keypoint

logger = logging.getLogger(__name__)


class FaceMeshSource:
    def __init__(self, max_faces: int = 1, min_detection_confidence: float = 0.5, min_tracking_confidence: float = 0.5) -> None:
        if mp is None or cv2 is None:
            raise RuntimeError("mediapipe/OpenCV not installed.")
        self._mesh = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=int(max_faces),
            refine_landmarks=True,
            min_detection_confidence=float(min_detection_confidence),
            min_tracking_confidence=float(min_tracking_confidence),
        )
        logger.debug("face mesh ready (max_faces=%d)", int(max_faces))

    def close(self) -> None:
        if self._mesh is not None:
            try:
                self._mesh.close()
            finally:
                self._mesh = None

    def estimate_faces(self, frame) -> List[Face]:
        if self._mesh is None:
            raise LandmarkSourceError("landmark source is closed")
        if frame is None:
            return []
        h, w = frame.shape[:2]
        try:
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            res = self._mesh.process(rgb)
        except Exception as e:
            raise LandmarkSourceError(f"face mesh inference failed: {e}") from e
        if not res.multi_face_landmarks:
            return []
        faces: List[Face] = []
        for face in res.multi_face_landmarks:
            kps = [
                Keypoint(LANDMARK_NAMES.get(i), float(p.x * w), float(p.y * h))
                for i, p in enumerate(face.landmark)
            ]
            faces.append(Face(keypoints=kps))
        return faces
