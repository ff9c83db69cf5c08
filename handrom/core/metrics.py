"""
per-frame metric dispatch.

recording, the session summary and replay all go through compute_frame_metrics,
with laterality taken from the frame's stored session metadata. that is what
makes a replayed frame read exactly what was computed live.
"""

from __future__ import annotations

from typing import Optional, Union

from .deviation import calculate_wrist_deviation
from .finger_rom import calculate_finger_rom
from .kapandji import calculate_kapandji_score
from .landmarks import RecordedFrame
from .laterality import SessionContext
from .results import (
    AssessmentKind,
    Digit,
    JointAngles,
    KapandjiScore,
    WristAngles,
    WristDeviation,
)
from .wrist import calculate_wrist_angles

FrameMetrics = Union[JointAngles, KapandjiScore, WristAngles, WristDeviation]


def compute_frame_metrics(
    frame: RecordedFrame,
    kind: AssessmentKind,
    digit: Digit = Digit.INDEX,
    context: Optional[SessionContext] = None,
) -> Optional[FrameMetrics]:
    """
    run the calculator for `kind` on one recorded frame.

    args:
      frame: recorded frame (hand + optional pose + session metadata)
      kind: which assessment to compute
      digit: finger for TAM
      context: laterality; rebuilt from the frame metadata when None

    returns:
      the kind's result, or None when the hand frame is incomplete
    """
    kind = AssessmentKind(kind)
    if frame.hand is None or not frame.hand.is_complete:
        return None

    if kind == AssessmentKind.TAM:
        return calculate_finger_rom(frame.hand, Digit(digit))
    if kind == AssessmentKind.KAPANDJI:
        return calculate_kapandji_score(frame.hand)

    if context is None:
        context = SessionContext.from_frame(frame)
    lock = context.lock

    if kind == AssessmentKind.WRIST_FLEXION_EXTENSION:
        return calculate_wrist_angles(frame.hand, frame.pose, lock.hand_type, indices=lock.indices)
    return calculate_wrist_deviation(frame.pose, frame.hand, lock.is_left, indices=lock.indices)
