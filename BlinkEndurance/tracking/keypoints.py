"""
Keypoint types and eye point selection.

MediaPipe FaceMesh indices used here (refine_landmarks=True):
- EAR contour, ordered p0..p5 (corner, upper, upper, corner, lower, lower)
  right eye: 33, 160, 158, 133, 153, 144
  left eye:  362, 385, 387, 263, 373, 380
- Mid eyelid pair (top, bottom)
  right eye: 159, 145
  left eye:  386, 374

Selection is either positional (index into the per-frame keypoint list) or by
name, where each required name is matched as a case-insensitive substring of
the keypoint name. The choice is made once at startup.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from BlinkEndurance.core.errors import ConfigError

Point = Tuple[float, float]

EYES = ("left", "right")

RIGHT_EYE_CONTOUR_IDX = [33, 160, 158, 133, 153, 144]
LEFT_EYE_CONTOUR_IDX = [362, 385, 387, 263, 373, 380]
RIGHT_EYE_LID_IDX = [159, 145]
LEFT_EYE_LID_IDX = [386, 374]

RIGHT_EYE_CONTOUR_NAMES = [
    "right_eye_outer",
    "right_eye_upper_outer",
    "right_eye_upper_inner",
    "right_eye_inner",
    "right_eye_lower_inner",
    "right_eye_lower_outer",
]
LEFT_EYE_CONTOUR_NAMES = [
    "left_eye_inner",
    "left_eye_upper_inner",
    "left_eye_upper_outer",
    "left_eye_outer",
    "left_eye_lower_outer",
    "left_eye_lower_inner",
]
RIGHT_EYE_LID_NAMES = ["right_eye_top", "right_eye_bottom"]
LEFT_EYE_LID_NAMES = ["left_eye_top", "left_eye_bottom"]

# Names given to FaceMesh indices by the landmark source
LANDMARK_NAMES: Dict[int, str] = {
    **dict(zip(RIGHT_EYE_CONTOUR_IDX, RIGHT_EYE_CONTOUR_NAMES)),
    **dict(zip(LEFT_EYE_CONTOUR_IDX, LEFT_EYE_CONTOUR_NAMES)),
    **dict(zip(RIGHT_EYE_LID_IDX, RIGHT_EYE_LID_NAMES)),
    **dict(zip(LEFT_EYE_LID_IDX, LEFT_EYE_LID_NAMES)),
}


@dataclass(frozen=True)
class Keypoint:
    name: Optional[str]
    x: float
    y: float

    @property
    def xy(self) -> Point:
        return (self.x, self.y)


@dataclass
class Face:
    keypoints: List[Keypoint] = field(default_factory=list)


@dataclass
class EyeSample:
    eye: str  # 'left'|'right'
    points: List[Keypoint]


class EyeSelector:
    """Resolves the ordered points of each eye from one frame's keypoints."""

    def select(self, keypoints: Sequence[Keypoint], eye: str) -> Optional[EyeSample]:
        raise NotImplementedError

    def select_all(self, keypoints: Sequence[Keypoint]) -> List[EyeSample]:
        out: List[EyeSample] = []
        for eye in EYES:
            sample = self.select(keypoints, eye)
            if sample is not None:
                out.append(sample)
        return out


class IndexSelector(EyeSelector):
    def __init__(self, indices: Dict[str, Sequence[int]]) -> None:
        self.indices = _check_eyes({k: [int(i) for i in v] for k, v in indices.items()})

    def select(self, keypoints: Sequence[Keypoint], eye: str) -> Optional[EyeSample]:
        idxs = self.indices.get(eye)
        if not idxs:
            return None
        n = len(keypoints)
        if any(i < 0 or i >= n for i in idxs):
            return None
        return EyeSample(eye=eye, points=[keypoints[i] for i in idxs])


class NameSelector(EyeSelector):
    def __init__(self, names: Dict[str, Sequence[str]]) -> None:
        self.names = _check_eyes({k: [str(s).lower() for s in v] for k, v in names.items()})

    def select(self, keypoints: Sequence[Keypoint], eye: str) -> Optional[EyeSample]:
        wanted = self.names.get(eye)
        if not wanted:
            return None
        named = [(kp.name.lower(), kp) for kp in keypoints if kp.name]
        points: List[Keypoint] = []
        for pattern in wanted:
            match = next((kp for name, kp in named if pattern in name), None)
            if match is None:
                return None
            points.append(match)
        return EyeSample(eye=eye, points=points)


def _check_eyes(mapping: Dict[str, list]) -> Dict[str, list]:
    unknown = set(mapping) - set(EYES)
    if unknown:
        raise ConfigError(f"unknown eye key(s): {sorted(unknown)}")
    return mapping


def make_selector(kind: str, estimator: str) -> EyeSelector:
    """Build the default selector for an estimator ('ear'|'distance')."""
    if estimator == "ear":
        idx = {"left": LEFT_EYE_CONTOUR_IDX, "right": RIGHT_EYE_CONTOUR_IDX}
        names = {"left": LEFT_EYE_CONTOUR_NAMES, "right": RIGHT_EYE_CONTOUR_NAMES}
    elif estimator == "distance":
        idx = {"left": LEFT_EYE_LID_IDX, "right": RIGHT_EYE_LID_IDX}
        names = {"left": LEFT_EYE_LID_NAMES, "right": RIGHT_EYE_LID_NAMES}
    else:
        raise ConfigError(f"unknown estimator: {estimator!r}")
    if kind == "indices":
        return IndexSelector(idx)
    if kind == "names":
        return NameSelector(names)
    raise ConfigError(f"unknown eye selector: {kind!r}")
