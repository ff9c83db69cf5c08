"""
elbow-referenced wrist flexion / extension.

  forearm vector: pose elbow -> hand wrist (hand landmark 0)
  hand vector:    hand wrist -> middle finger mcp (hand landmark 9)

the deflection between the two (flexion_angle at the wrist) is split into
flexion or extension by the sign of their image-plane cross product, mirrored
for the left hand. inside the neutral zone both read 0, otherwise exactly one
of them is non-zero.

the pose arm (elbow, pose wrist, shoulder) must be visible above
MIN_VISIBILITY, otherwise a neutral default comes back with confidence 0.
"""

from __future__ import annotations

from typing import Optional

from .geometry import cross_z, flexion_angle
from .landmarks import HandFrame, PoseFrame, WRIST, MIDDLE_MCP
from .laterality import HandType, PoseIndices, pose_indices_for
from .results import WristAngles


# ============================================================
# wrist configuration
# ============================================================

MIN_VISIBILITY = 0.5        # elbow / pose wrist / shoulder gate (strict >)
USABLE_CONFIDENCE = 0.5     # below this a reading should not be trusted
NEUTRAL_ZONE_DEG = 2.0      # deflection at or below this counts as straight
MAX_DEFLECTION_DEG = 90.0   # physiological maximum
NEUTRAL_FOREARM_TO_HAND = 90.0


def neutral_wrist_angles(hand_type) -> WristAngles:
    return WristAngles(
        forearm_to_hand_angle=NEUTRAL_FOREARM_TO_HAND,
        flexion=0.0,
        extension=0.0,
        hand_type=_side(hand_type).value,
        confidence=0.0,
        elbow_detected=False,
    )


def _side(hand_type) -> HandType:
    ht = HandType.parse(hand_type)
    return HandType.RIGHT if ht == HandType.UNKNOWN else ht


def arm_confidence(pose: Optional[PoseFrame], indices: PoseIndices) -> float:
    """min visibility of the elbow, pose wrist and shoulder (0 if pose missing)."""
    if pose is None:
        return 0.0
    return min(
        pose.visibility_of(indices.elbow),
        pose.visibility_of(indices.wrist),
        pose.visibility_of(indices.shoulder),
    )


def arm_is_usable(
    hand: Optional[HandFrame],
    pose: Optional[PoseFrame],
    indices: PoseIndices,
    min_visibility: float = MIN_VISIBILITY,
) -> bool:
    """enough landmarks and visibility for an elbow-referenced reading."""
    if hand is None or len(hand) <= MIDDLE_MCP or pose is None:
        return False
    if not (pose.has(indices.elbow) and pose.has(indices.wrist) and pose.has(indices.shoulder)):
        return False
    return (
        pose.visibility_of(indices.elbow) > min_visibility
        and pose.visibility_of(indices.wrist) > min_visibility
        and pose.visibility_of(indices.shoulder) > min_visibility
    )


def calculate_wrist_angles(
    hand: Optional[HandFrame],
    pose: Optional[PoseFrame],
    hand_type,
    indices: Optional[PoseIndices] = None,
    min_visibility: float = MIN_VISIBILITY,
) -> WristAngles:
    """
    wrist flexion / extension for one frame.

    args:
      hand: hand frame (needs landmarks 0 and 9)
      pose: pose frame with visibility
      hand_type: locked session side (LEFT / RIGHT)
      indices: locked pose indices, derived from hand_type when None

    returns:
      WristAngles, neutral default when the arm is not usable
    """
    side = _side(hand_type)
    if indices is None:
        indices = pose_indices_for(side)

    if not arm_is_usable(hand, pose, indices, min_visibility):
        return neutral_wrist_angles(side)

    elbow = pose.landmarks[indices.elbow]
    wrist = hand.landmarks[WRIST]
    mcp = hand.landmarks[MIDDLE_MCP]

    deflection = min(flexion_angle(elbow, wrist, mcp), MAX_DEFLECTION_DEG)

    forearm = wrist - elbow
    hand_vec = mcp - wrist
    direction = cross_z(forearm, hand_vec)
    if side == HandType.LEFT:
        direction = -direction

    flexion = extension = 0.0
    if deflection > NEUTRAL_ZONE_DEG:
        if direction > 0:
            flexion = deflection
        else:
            extension = deflection

    return WristAngles(
        forearm_to_hand_angle=180.0 - deflection,
        flexion=float(flexion),
        extension=float(extension),
        hand_type=side.value,
        confidence=arm_confidence(pose, indices),
        elbow_detected=True,
    )


def is_usable(result) -> bool:
    """true when a wrist reading (angles or deviation) clears USABLE_CONFIDENCE."""
    return bool(result.elbow_detected) and result.confidence >= USABLE_CONFIDENCE
