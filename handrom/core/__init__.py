"""Core rom engine: landmarks, angle math, calculators and the laterality lock."""

from .landmarks import HandFrame, PoseFrame, RecordedFrame, LandmarkPoint
from .geometry import flexion_angle
from .results import (
    AssessmentKind,
    Digit,
    JointAngles,
    KapandjiScore,
    WristAngles,
    WristDeviation,
    SessionSummary,
)
from .finger_rom import calculate_finger_rom
from .kapandji import calculate_kapandji_score, max_kapandji_score, KAPANDJI_TARGETS
from .laterality import HandType, LateralityLock, LateralityResolver, SessionContext
from .wrist import calculate_wrist_angles
from .deviation import calculate_wrist_deviation
from .metrics import compute_frame_metrics

__all__ = [
    "HandFrame",
    "PoseFrame",
    "RecordedFrame",
    "LandmarkPoint",
    "flexion_angle",
    "AssessmentKind",
    "Digit",
    "JointAngles",
    "KapandjiScore",
    "WristAngles",
    "WristDeviation",
    "SessionSummary",
    "calculate_finger_rom",
    "calculate_kapandji_score",
    "max_kapandji_score",
    "KAPANDJI_TARGETS",
    "HandType",
    "LateralityLock",
    "LateralityResolver",
    "SessionContext",
    "calculate_wrist_angles",
    "calculate_wrist_deviation",
    "compute_frame_metrics",
]
