"""
per-digit joint flexion (mcp / pip / dip) and total active motion.

each joint is the flexion_angle of a fixed landmark triple. mcp uses the
wrist as its proximal point, so it reads finger flexion relative to the palm.
"""

from __future__ import annotations

from typing import Dict, Tuple

from .geometry import flexion_angle
from .landmarks import HandFrame, WRIST
from .results import Digit, JointAngles


# ============================================================
# joint triples (proximal, vertex, distal)
# ============================================================

FINGER_JOINTS: Dict[Digit, Dict[str, Tuple[int, int, int]]] = {
    Digit.INDEX: {"mcp": (WRIST, 5, 6), "pip": (5, 6, 7), "dip": (6, 7, 8)},
    Digit.MIDDLE: {"mcp": (WRIST, 9, 10), "pip": (9, 10, 11), "dip": (10, 11, 12)},
    Digit.RING: {"mcp": (WRIST, 13, 14), "pip": (13, 14, 15), "dip": (14, 15, 16)},
    Digit.PINKY: {"mcp": (WRIST, 17, 18), "pip": (17, 18, 19), "dip": (18, 19, 20)},
}

# ============================================================
# anatomical limits (degrees)
# ============================================================

MAX_MCP_FLEXION = 95.0   # tracking noise can read past these
MAX_PIP_FLEXION = 115.0
MAX_DIP_FLEXION = 90.0


def validate_anatomical_limits(angles: JointAngles) -> JointAngles:
    """clamp each joint to its anatomical maximum and recompute tam."""
    mcp = min(max(angles.mcp, 0.0), MAX_MCP_FLEXION)
    pip = min(max(angles.pip, 0.0), MAX_PIP_FLEXION)
    dip = min(max(angles.dip, 0.0), MAX_DIP_FLEXION)
    return JointAngles(mcp=mcp, pip=pip, dip=dip, total_active_rom=mcp + pip + dip)


def calculate_finger_rom(hand: HandFrame, digit: Digit, clamp: bool = True) -> JointAngles:
    """
    joint angles for one finger.

    args:
      hand: complete 21-point hand frame (caller skips incomplete frames)
      digit: INDEX / MIDDLE / RING / PINKY
      clamp: apply anatomical limits (default on)

    returns:
      JointAngles with total_active_rom = mcp + pip + dip
    """
    triples = FINGER_JOINTS[Digit(digit)]
    pts = hand.landmarks

    mcp = flexion_angle(*(pts[i] for i in triples["mcp"]))
    pip = flexion_angle(*(pts[i] for i in triples["pip"]))
    dip = flexion_angle(*(pts[i] for i in triples["dip"]))

    angles = JointAngles(mcp=mcp, pip=pip, dip=dip, total_active_rom=mcp + pip + dip)
    if clamp:
        angles = validate_anatomical_limits(angles)
    return angles


def calculate_all_fingers(hand: HandFrame, clamp: bool = True) -> Dict[Digit, JointAngles]:
    return {digit: calculate_finger_rom(hand, digit, clamp=clamp) for digit in Digit}
