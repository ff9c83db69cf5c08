"""
tests for the angle primitive and finger rom.

validates:
  - flexion_angle bounds and degenerate input
  - per-digit joint triples and tam
  - anatomical clamping
"""

import numpy as np
import pytest

from handrom.core.finger_rom import (
    FINGER_JOINTS,
    MAX_MCP_FLEXION,
    MAX_PIP_FLEXION,
    calculate_all_fingers,
    calculate_finger_rom,
    validate_anatomical_limits,
)
from handrom.core.geometry import angle_between, flexion_angle
from handrom.core.landmarks import HandFrame, LandmarkPoint
from handrom.core.results import Digit, JointAngles

from synthetic import make_hand


def test_straight_joint_reads_zero():
    assert flexion_angle((0, 0, 0), (0, 1, 0), (0, 2, 0)) == pytest.approx(0.0, abs=1e-4)


def test_right_angle_reads_ninety():
    assert flexion_angle((0, 0, 0), (0, 1, 0), (1, 1, 0)) == pytest.approx(90.0)


def test_folded_joint_reads_180():
    assert flexion_angle((1, 0, 0), (0, 0, 0), (2, 0, 0)) == pytest.approx(180.0)


def test_zero_length_vector_degrades_to_zero():
    assert flexion_angle((0.3, 0.3, 0), (0.3, 0.3, 0), (0.5, 0.1, 0)) == 0.0
    assert angle_between(np.zeros(3), np.array([1.0, 0, 0])) == 0.0


def test_accepts_landmark_points():
    a = LandmarkPoint(0.0, 0.0, 0.0)
    b = LandmarkPoint(0.0, 1.0)
    c = LandmarkPoint(1.0, 1.0, 0.0)
    assert flexion_angle(a, b, c) == pytest.approx(90.0)


def test_collinear_index_finger_pip_is_straight():
    """all 21 points on one line along the index finger -> straight pip."""
    pts = np.array([[0.5, 0.9 - 0.02 * i, 0.0] for i in range(21)])
    angles = calculate_finger_rom(HandFrame(pts), Digit.INDEX)
    assert angles.pip == pytest.approx(0.0, abs=1e-4)
    assert angles.dip == pytest.approx(0.0, abs=1e-4)
    assert angles.mcp == pytest.approx(0.0, abs=1e-4)


def test_joint_triples_use_wrist_for_mcp():
    for digit, joints in FINGER_JOINTS.items():
        assert joints["mcp"][0] == 0
        assert joints["pip"][1] == joints["mcp"][2]
        assert joints["dip"][1] == joints["pip"][2]


def test_middle_finger_bend_is_pip_flexion():
    angles = calculate_finger_rom(make_hand(middle_bend=60.0), Digit.MIDDLE)
    assert angles.mcp == pytest.approx(0.0, abs=1e-4)
    assert angles.pip == pytest.approx(60.0)
    assert angles.dip == pytest.approx(0.0, abs=1e-4)
    assert angles.total_active_rom == pytest.approx(60.0)


def test_angle_bounds_and_tam_sum_on_random_hands():
    """0 <= mcp, pip, dip <= 180 and tam = mcp + pip + dip, clamped or not."""
    rng = np.random.default_rng(7)
    for _ in range(200):
        hand = HandFrame(rng.random((21, 3)))
        for clamp in (True, False):
            for digit in Digit:
                a = calculate_finger_rom(hand, digit, clamp=clamp)
                for value in (a.mcp, a.pip, a.dip):
                    assert 0.0 <= value <= 180.0
                assert a.total_active_rom == pytest.approx(a.mcp + a.pip + a.dip)


def test_anatomical_limits_clamp_and_recompute_tam():
    raw = JointAngles(mcp=120.0, pip=150.0, dip=30.0, total_active_rom=300.0)
    clamped = validate_anatomical_limits(raw)
    assert clamped.mcp == MAX_MCP_FLEXION
    assert clamped.pip == MAX_PIP_FLEXION
    assert clamped.dip == 30.0
    assert clamped.total_active_rom == MAX_MCP_FLEXION + MAX_PIP_FLEXION + 30.0


def test_all_fingers():
    result = calculate_all_fingers(make_hand())
    assert set(result) == set(Digit)
    # straight template: middle finger lines up with the wrist
    assert result[Digit.MIDDLE].total_active_rom == pytest.approx(0.0, abs=1e-4)
    assert result[Digit.INDEX].mcp > 0.0
