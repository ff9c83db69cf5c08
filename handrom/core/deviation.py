"""
wrist radial / ulnar deviation.

same forearm as the flexion calculator (pose elbow -> hand wrist), but the
hand vector points at the middle of the knuckle line (midpoint of index mcp 5
and little mcp 17) and both are projected onto the image plane, which is the
palm plane when the palm faces the camera.

sign convention, used live and in replay:
  positive = ulnar, negative = radial (mirrored for the left hand)
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .geometry import angle_between, cross_z, planar
from .landmarks import HandFrame, PoseFrame, WRIST, INDEX_MCP, PINKY_MCP
from .laterality import HandType, PoseIndices, pose_indices_for
from .results import WristDeviation
from .wrist import MIN_VISIBILITY, arm_confidence, arm_is_usable


# ============================================================
# deviation limits (degrees)
# ============================================================

MAX_RADIAL_DEG = 25.0
MAX_ULNAR_DEG = 35.0


def neutral_deviation(hand_type: HandType) -> WristDeviation:
    return WristDeviation(
        deviation_angle=0.0,
        radial=0.0,
        ulnar=0.0,
        hand_type=hand_type.value,
        confidence=0.0,
        elbow_detected=False,
    )


def calculate_wrist_deviation(
    pose: Optional[PoseFrame],
    hand: Optional[HandFrame],
    is_left_hand: bool,
    indices: Optional[PoseIndices] = None,
    min_visibility: float = MIN_VISIBILITY,
) -> WristDeviation:
    """
    signed deviation for one frame.

    args:
      pose: pose frame with visibility
      hand: hand frame (needs landmarks 0, 5, 17)
      is_left_hand: locked session side
      indices: locked pose indices, derived from the side when None

    returns:
      WristDeviation clamped to [-MAX_RADIAL_DEG, MAX_ULNAR_DEG]
    """
    side = HandType.LEFT if is_left_hand else HandType.RIGHT
    if indices is None:
        indices = pose_indices_for(side)

    if hand is None or len(hand) <= PINKY_MCP or not arm_is_usable(hand, pose, indices, min_visibility):
        return neutral_deviation(side)

    elbow = pose.landmarks[indices.elbow]
    wrist = hand.landmarks[WRIST]
    knuckles = (hand.landmarks[INDEX_MCP] + hand.landmarks[PINKY_MCP]) / 2.0

    forearm = planar(wrist - elbow)
    hand_vec = planar(knuckles - wrist)

    magnitude = angle_between(forearm, hand_vec)
    sign = float(np.sign(cross_z(forearm, hand_vec)))
    if side == HandType.LEFT:
        sign = -sign

    deviation = float(np.clip(sign * magnitude, -MAX_RADIAL_DEG, MAX_ULNAR_DEG))

    return WristDeviation(
        deviation_angle=deviation,
        radial=-deviation if deviation < 0 else 0.0,
        ulnar=deviation if deviation > 0 else 0.0,
        hand_type=side.value,
        confidence=arm_confidence(pose, indices),
        elbow_detected=True,
    )
