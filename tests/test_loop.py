import pytest

from BlinkEndurance.control.loop import DetectionLoop
from BlinkEndurance.control.session import Session
from BlinkEndurance.core.errors import FrameSourceError, LandmarkSourceError
from BlinkEndurance.tracking.closure import DetectionConfig
from BlinkEndurance.tracking.detector import ClosureDetector
from BlinkEndurance.tracking.estimators import make_estimator
from BlinkEndurance.tracking.keypoints import LEFT_EYE_LID_IDX, RIGHT_EYE_LID_IDX, Face, Keypoint


def lid_face(gap):
    pts = [Keypoint(None, 0.0, 0.0) for _ in range(478)]
    for x, (top, bottom) in ((50.0, RIGHT_EYE_LID_IDX), (90.0, LEFT_EYE_LID_IDX)):
        pts[top] = Keypoint(None, x, 50.0)
        pts[bottom] = Keypoint(None, x, 50.0 + gap)
    return Face(pts)


class ScriptedSource:
    """Returns one scripted result per call; an Exception entry is raised."""

    def __init__(self, script):
        self.script = list(script)
        self.calls = 0
        self.closed = False

    def estimate_faces(self, frame):
        item = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class FakeClock:
    def __init__(self):
        self.t = 0.0

    def __call__(self):
        return self.t


def build(script, required=2, normalize=False, clock=None, drive_clock=False, frames=None):
    source = ScriptedSource(script)
    est = make_estimator("distance", normalize=normalize)
    det = ClosureDetector(est, DetectionConfig(threshold=3.0, required_frames=required))
    session = Session(tick_ms=10)
    kwargs = {"drive_clock": drive_clock}
    if clock is not None:
        kwargs["clock"] = clock
    loop = DetectionLoop(frames or (lambda: object()), source, det, session, **kwargs)
    return loop, source, det, session


def test_step_before_start_does_nothing():
    loop, source, det, _ = build([[lid_face(5.0)]])
    assert loop.step() is None
    assert source.calls == 0
    assert det.frame_index == 0


def test_closure_stops_session_and_loop():
    loop, source, det, session = build([[lid_face(5.0)], [lid_face(1.0)], [lid_face(1.0)], [lid_face(1.0)]])
    loop.start()
    n = loop.run(max_frames=10)
    assert n == 3
    assert not loop.running
    assert not session.running
    assert det.machine.is_closed
    assert loop.step() is None
    assert source.calls == 3


def test_missing_faces_end_the_round():
    loop, _, _, session = build([[]], required=2)
    loop.start()
    assert loop.run(max_frames=10) == 2
    assert not session.running


def test_source_error_is_terminal():
    loop, source, det, session = build([[lid_face(5.0)], RuntimeError("gpu lost")])
    errors = []
    loop.on_error(errors.append)
    loop.start()
    loop.step()
    with pytest.raises(LandmarkSourceError):
        loop.step()
    assert isinstance(loop.error, LandmarkSourceError)
    assert errors == [loop.error]
    assert not loop.running
    assert not session.running
    frames = det.frame_index
    assert loop.step() is None
    assert det.frame_index == frames
    assert source.calls == 2


def test_frame_source_error_is_terminal():
    def unplugged():
        raise OSError("camera unplugged")

    loop, source, det, session = build([[lid_face(5.0)]], frames=unplugged)
    errors = []
    loop.on_error(errors.append)
    loop.start()
    with pytest.raises(FrameSourceError):
        loop.step()
    assert isinstance(loop.error, FrameSourceError)
    assert errors == [loop.error]
    assert not loop.running
    assert not session.running
    assert loop.step() is None
    assert source.calls == 0
    assert det.frame_index == 0


def test_stop_prevents_further_mutation():
    loop, source, det, session = build([[lid_face(5.0)]])
    loop.start()
    loop.step()
    loop.stop()
    assert loop.step() is None
    assert det.frame_index == 1
    assert source.calls == 1


def test_restart_resets_history_and_counters():
    loop, _, det, session = build([[lid_face(5.0)], [lid_face(1.0)], [lid_face(1.0)]], normalize=True)
    loop.start()
    loop.run(max_frames=2)
    assert det.estimator.history
    session.stop()
    loop.start()
    assert det.estimator.history == []
    assert det.machine.consecutive_below_threshold == 0
    assert session.running and loop.running


def test_loop_drives_session_clock():
    clock = FakeClock()
    loop, _, _, session = build([[lid_face(5.0)]], clock=clock, drive_clock=True)
    loop.start()
    clock.t = 0.0255
    loop.step()
    assert session.elapsed_ms == 20
    clock.t = 0.105
    loop.step()
    assert session.elapsed_ms == 100


def test_close_releases_sources_and_stops_session():
    loop, source, _, session = build([[lid_face(5.0)]])
    loop.start()
    loop.close()
    assert source.closed
    assert not session.running
    assert not loop.running
