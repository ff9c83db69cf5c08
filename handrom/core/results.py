"""
result types produced by the calculators.

every variant carries a `kind` tag so rendering / export code can switch on it
without isinstance chains.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class ResultKind(str, Enum):
    JOINT_ANGLES = "joint_angles"
    KAPANDJI = "kapandji"
    WRIST_ANGLES = "wrist_angles"
    WRIST_DEVIATION = "wrist_deviation"


class AssessmentKind(str, Enum):
    """what a session is measuring. selects the calculator for replay + summary."""

    TAM = "TAM"
    KAPANDJI = "KAPANDJI"
    WRIST_FLEXION_EXTENSION = "WRIST_FLEXION_EXTENSION"
    WRIST_DEVIATION = "WRIST_DEVIATION"


class Digit(str, Enum):
    INDEX = "INDEX"
    MIDDLE = "MIDDLE"
    RING = "RING"
    PINKY = "PINKY"


@dataclass(frozen=True)
class JointAngles:
    mcp: float
    pip: float
    dip: float
    total_active_rom: float
    kind: ResultKind = field(default=ResultKind.JOINT_ANGLES, init=False)


@dataclass(frozen=True)
class KapandjiScore:
    """
    max_score: highest level (1-10) whose target the thumb tip reached, 0 if none
    achieved: one flag per level, level 1 first
    reached_targets: names of the targets that passed, in level order
    """

    max_score: int
    achieved: Tuple[bool, ...]
    reached_targets: Tuple[str, ...] = ()
    kind: ResultKind = field(default=ResultKind.KAPANDJI, init=False)


@dataclass(frozen=True)
class WristAngles:
    forearm_to_hand_angle: float
    flexion: float
    extension: float
    hand_type: str
    confidence: float
    elbow_detected: bool
    kind: ResultKind = field(default=ResultKind.WRIST_ANGLES, init=False)


@dataclass(frozen=True)
class WristDeviation:
    """deviation_angle is signed: positive = ulnar, negative = radial."""

    deviation_angle: float
    radial: float
    ulnar: float
    hand_type: str
    confidence: float
    elbow_detected: bool
    kind: ResultKind = field(default=ResultKind.WRIST_DEVIATION, init=False)


@dataclass(frozen=True)
class SessionSummary:
    """
    per-metric extremes of a session and the frame index where each was seen.

    built in one pass by summarize_session; never updated in place.
    """

    kind: AssessmentKind
    digit: Digit
    hand_type: str = "RIGHT"
    frame_count: int = 0

    max_tam: float = 0.0
    max_tam_frame: int = 0
    min_tam: float = 0.0
    min_tam_frame: int = 0
    max_mcp: float = 0.0
    max_mcp_frame: int = 0
    max_pip: float = 0.0
    max_pip_frame: int = 0
    max_dip: float = 0.0
    max_dip_frame: int = 0

    max_kapandji: int = 0
    max_kapandji_frame: int = 0

    max_flexion: float = 0.0
    max_flexion_frame: int = 0
    max_extension: float = 0.0
    max_extension_frame: int = 0

    max_radial: float = 0.0
    max_radial_frame: int = 0
    max_ulnar: float = 0.0
    max_ulnar_frame: int = 0

    mean_confidence: float = 0.0
