"""
Exception types raised by BlinkEndurance.

Missing face or eye points are not errors; they are reported as an invalid
estimate and handled by the closure state machine.
"""
from __future__ import annotations


class BlinkEnduranceError(Exception):
    pass


class ConfigError(BlinkEnduranceError, ValueError):
    """Invalid detection/timer configuration, raised at construction time."""


class LandmarkSourceError(BlinkEnduranceError, RuntimeError):
    """The landmark model failed while processing a frame.

    Terminal for the current session: the detection loop stops scheduling
    frames once this is raised.
    """


class FrameSourceError(BlinkEnduranceError, RuntimeError):
    """The camera/frame source raised while grabbing a frame.

    Terminal for the current session, like LandmarkSourceError.
    """
