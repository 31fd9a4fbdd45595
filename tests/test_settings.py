import json

import pytest

from BlinkEndurance.core.errors import ConfigError
from BlinkEndurance.core.settings import SettingsManager
from BlinkEndurance.tracking.estimators import DistanceEstimator, EarEstimator
from BlinkEndurance.tracking.keypoints import NameSelector


def write(tmp_path, data):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_defaults_when_file_missing(tmp_path):
    s = SettingsManager(str(tmp_path / "missing.json"))
    assert s.estimator() == "ear"
    cfg = s.detection_config()
    assert cfg.threshold == 0.2
    assert cfg.required_frames == 1
    assert isinstance(s.build_estimator(), EarEstimator)
    assert s.tick_ms() == 10
    assert s.camera_resolution() == (640, 480)


def test_distance_preset_and_overrides(tmp_path):
    s = SettingsManager(write(tmp_path, {"detection": {"estimator": "distance", "history_length": 5, "eye_selector": "names"}}))
    cfg = s.detection_config()
    assert (cfg.threshold, cfg.required_frames) == (0.15, 2)
    est = s.build_estimator()
    assert isinstance(est, DistanceEstimator)
    assert est.history_length == 5
    assert isinstance(est.selector, NameSelector)

    s.set_threshold(0.3)
    s.set_required_frames(4)
    cfg = s.detection_config()
    assert (cfg.threshold, cfg.required_frames) == (0.3, 4)


def test_partial_section_keeps_defaults(tmp_path):
    s = SettingsManager(write(tmp_path, {"camera": {"index": 2}}))
    assert s.camera_index() == 2
    assert s.camera_fps() == 30


def test_save_round_trip(tmp_path):
    path = str(tmp_path / "settings.json")
    s = SettingsManager(path)
    s.set_estimator("distance")
    s.set_camera_index(1)
    s.save()
    again = SettingsManager(path)
    assert again.estimator() == "distance"
    assert again.camera_index() == 1


@pytest.mark.parametrize(
    "detection",
    [
        {"required_frames": 0},
        {"required_frames": "two"},
        {"threshold": -1},
        {"threshold": "high"},
        {"estimator": "iris"},
    ],
)
def test_invalid_detection_config(tmp_path, detection):
    s = SettingsManager(write(tmp_path, {"detection": detection}))
    with pytest.raises(ConfigError):
        s.detection_config()


@pytest.mark.parametrize(
    "detection",
    [
        {"eye_selector": "regex"},
        {"estimator": "iris"},
        {"estimator": "distance", "history_length": "ten"},
        {"normalize": "false"},
        {"normalize": 0},
    ],
)
def test_invalid_estimator_settings(tmp_path, detection):
    s = SettingsManager(write(tmp_path, {"detection": detection}))
    with pytest.raises(ConfigError):
        s.build_estimator()


def test_normalize_flag_is_read_as_bool(tmp_path):
    s = SettingsManager(write(tmp_path, {"detection": {"estimator": "distance", "normalize": False}}))
    assert s.normalize() is False
    assert s.build_estimator().normalize is False


@pytest.mark.parametrize(
    "data,accessor",
    [
        ({"camera": {"index": "front"}}, "camera_index"),
        ({"camera": {"fps": "fast"}}, "camera_fps"),
        ({"timer": {"tick_ms": None}}, "tick_ms"),
        ({"detection": {"history_length": [10]}}, "history_length"),
    ],
)
def test_non_integer_settings_raise_config_error(tmp_path, data, accessor):
    s = SettingsManager(write(tmp_path, data))
    with pytest.raises(ConfigError):
        getattr(s, accessor)()


def test_invalid_history_length(tmp_path):
    s = SettingsManager(write(tmp_path, {"detection": {"estimator": "distance", "history_length": 0}}))
    with pytest.raises(ConfigError):
        s.build_estimator()


def test_malformed_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        SettingsManager(str(path))
