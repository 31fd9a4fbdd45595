"""
Event dataclasses emitted by the detection loop.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ClosureConfirmed:
    frame_index: int
    consecutive_frames: int
    value: float
    valid: bool


@dataclass(frozen=True)
class SessionStopped:
    elapsed_ms: int
    best_ms: int
    reason: str  # 'closure'|'manual'|'error'
