"""
Settings manager for BlinkEndurance.

Loads/saves JSON settings from BlinkEndurance/settings.json (or an explicit
path) and exposes typed accessors. Settings are read once when a session is
built and are not changed mid-session.
"""
from __future__ import annotations

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

from BlinkEndurance.tracking.closure import PRESETS, DetectionConfig
from BlinkEndurance.tracking.estimators import OpennessEstimator, make_estimator
from .errors import ConfigError

logger = logging.getLogger(__name__)

ESTIMATORS = ("ear", "distance")
SELECTORS = ("indices", "names")

DEFAULTS: Dict[str, Any] = {
    "detection": {
        "estimator": "ear",
        # threshold/required_frames fall back to the estimator preset when absent
        "history_length": 10,
        "normalize": True,
        "eye_selector": "indices",
    },
    "camera": {
        "index": 0,
        "resolution": [640, 480],
        "fps": 30,
    },
    "timer": {"tick_ms": 10},
}


class SettingsManager:
    def __init__(self, path: Optional[str] = None) -> None:
        if path is None:
            here = os.path.dirname(os.path.abspath(__file__))
            path = os.path.join(os.path.dirname(here), "settings.json")
        self.path = path
        self.data: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        self.data = copy.deepcopy(DEFAULTS)
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"invalid settings file {self.path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"settings file {self.path} must hold a JSON object")
        for key, value in loaded.items():
            if isinstance(value, dict) and isinstance(self.data.get(key), dict):
                self.data[key].update(value)
            else:
                self.data[key] = value
        logger.debug("settings loaded from %s", self.path)

    def save(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.data, f, indent=2)

    def _section(self, name: str) -> Dict[str, Any]:
        sec = self.data.setdefault(name, {})
        if not isinstance(sec, dict):
            raise ConfigError(f"settings section '{name}' must be an object")
        return sec

    def _int(self, section: str, key: str, default: int) -> int:
        v = self._section(section).get(key, default)
        try:
            return int(v)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{section}.{key} must be an integer, got {v!r}") from e

    # Detection ---------------------------------------------------------
    def estimator(self) -> str:
        kind = str(self._section("detection").get("estimator", "ear")).lower()
        if kind not in ESTIMATORS:
            raise ConfigError(f"unknown estimator: {kind!r} (expected one of {ESTIMATORS})")
        return kind

    def set_estimator(self, kind: str) -> None:
        self._section("detection")["estimator"] = str(kind)

    def eye_selector(self) -> str:
        kind = str(self._section("detection").get("eye_selector", "indices")).lower()
        if kind not in SELECTORS:
            raise ConfigError(f"unknown eye selector: {kind!r} (expected one of {SELECTORS})")
        return kind

    def history_length(self) -> int:
        return self._int("detection", "history_length", 10)

    def normalize(self) -> bool:
        v = self._section("detection").get("normalize", True)
        if not isinstance(v, bool):
            raise ConfigError(f"detection.normalize must be true or false, got {v!r}")
        return v

    def threshold(self) -> float:
        v = self._section("detection").get("threshold")
        return float(PRESETS[self.estimator()][0] if v is None else v)

    def set_threshold(self, v: float) -> None:
        self._section("detection")["threshold"] = float(v)

    def required_frames(self) -> int:
        v = self._section("detection").get("required_frames")
        return int(PRESETS[self.estimator()][1] if v is None else v)

    def set_required_frames(self, n: int) -> None:
        self._section("detection")["required_frames"] = int(n)

    def detection_config(self) -> DetectionConfig:
        try:
            thr, req = self.threshold(), self.required_frames()
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid detection settings: {e}") from e
        return DetectionConfig(threshold=thr, required_frames=req)

    def build_estimator(self) -> OpennessEstimator:
        return make_estimator(
            self.estimator(),
            selector=self.eye_selector(),
            history_length=self.history_length(),
            normalize=self.normalize(),
        )

    # Camera / timer ----------------------------------------------------
    def camera_index(self) -> int:
        return self._int("camera", "index", 0)

    def set_camera_index(self, idx: int) -> None:
        self._section("camera")["index"] = int(idx)

    def camera_resolution(self) -> tuple[int, int]:
        arr = self._section("camera").get("resolution", [640, 480])
        try:
            return int(arr[0]), int(arr[1])
        except (TypeError, ValueError, IndexError) as e:
            raise ConfigError(f"camera.resolution must be [width, height], got {arr!r}") from e

    def camera_fps(self) -> int:
        return self._int("camera", "fps", 30)

    def tick_ms(self) -> int:
        return self._int("timer", "tick_ms", 10)
