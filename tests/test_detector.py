import pytest

from BlinkEndurance.tracking.closure import DetectionConfig
from BlinkEndurance.tracking.detector import ClosureDetector
from BlinkEndurance.tracking.estimators import make_estimator
from BlinkEndurance.tracking.keypoints import LEFT_EYE_LID_IDX, RIGHT_EYE_LID_IDX, Face, Keypoint


def lids(gap):
    pts = [Keypoint(None, 0.0, 0.0) for _ in range(478)]
    for x, (top, bottom) in ((50.0, RIGHT_EYE_LID_IDX), (90.0, LEFT_EYE_LID_IDX)):
        pts[top] = Keypoint(None, x, 50.0)
        pts[bottom] = Keypoint(None, x, 50.0 + gap)
    return pts


def make_detector(required=2, threshold=3.0):
    est = make_estimator("distance", normalize=False)
    return ClosureDetector(est, DetectionConfig(threshold=threshold, required_frames=required))


def test_listener_fires_once_per_closure():
    det = make_detector(required=2)
    events = []
    det.on_closure_confirmed(events.append)
    for gap in (5.0, 1.0, 1.0, 1.0, 1.0):
        det.process(lids(gap))
    assert len(events) == 1
    assert events[0].frame_index == 3
    assert events[0].consecutive_frames == 2
    det.process(lids(5.0))
    det.process(lids(1.0))
    det.process(lids(1.0))
    assert len(events) == 2


def test_snapshot_fields_and_debug_label():
    det = make_detector(required=2)
    snap = det.process(lids(1.5))
    assert snap.valid
    assert snap.openness == pytest.approx(1.5)
    assert not snap.is_closed
    assert snap.consecutive_frames == 1
    assert snap.debug_label == "distance: 1.500, threshold: 3.0, frames: 1/2"
    assert det.last is snap


def test_no_face_snapshot():
    det = make_detector(required=1)
    snap = det.process_faces([])
    assert not snap.valid
    assert snap.is_closed and snap.confirmed
    assert "no face" in snap.debug_label


def test_only_first_face_is_used():
    det = make_detector(required=1)
    snap = det.process_faces([Face(lids(5.0)), Face(lids(0.0))])
    assert snap.openness == pytest.approx(5.0)
    assert not snap.is_closed


def test_reset_clears_state_and_history():
    est = make_estimator("distance", normalize=True)
    det = ClosureDetector(est, DetectionConfig(0.15, 2))
    det.process(lids(5.0))
    det.process([])
    det.reset()
    assert est.history == []
    assert det.frame_index == 0
    assert det.machine.consecutive_below_threshold == 0
    assert det.last is None
