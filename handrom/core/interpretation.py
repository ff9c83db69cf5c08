"""
clinical interpretation bands for session results.
"""

from __future__ import annotations

from typing import NamedTuple

from .results import Digit


class Interpretation(NamedTuple):
    level: str
    description: str
    percent_of_normal: float = 0.0


# ============================================================
# normal reference values (degrees)
# ============================================================

NORMAL_TAM = {
    Digit.INDEX: 260.0,
    Digit.MIDDLE: 270.0,
    Digit.RING: 260.0,
    Digit.PINKY: 240.0,
}

NORMAL_WRIST_FLEXION = 80.0
NORMAL_WRIST_EXTENSION = 70.0
NORMAL_RADIAL = 20.0
NORMAL_ULNAR = 30.0


def interpret_kapandji(score: int) -> Interpretation:
    if score >= 9:
        return Interpretation("Excellent", "full thumb opposition", score * 10.0)
    if score >= 7:
        return Interpretation("Good", "near-complete opposition", score * 10.0)
    if score >= 5:
        return Interpretation("Fair", "moderate opposition limitation", score * 10.0)
    if score >= 3:
        return Interpretation("Poor", "significant opposition limitation", score * 10.0)
    return Interpretation("Severe Limitation", "thumb opposition severely restricted", score * 10.0)


def interpret_tam(digit: Digit, tam: float) -> Interpretation:
    """tam as a percentage of the normal maximum for that finger."""
    percent = tam / NORMAL_TAM[Digit(digit)] * 100.0
    if percent >= 90:
        return Interpretation("Excellent", "within normal range", percent)
    if percent >= 75:
        return Interpretation("Good", "mild limitation", percent)
    if percent >= 60:
        return Interpretation("Fair", "moderate limitation", percent)
    if percent >= 40:
        return Interpretation("Limited", "marked limitation", percent)
    return Interpretation("Severely Limited", "severe limitation", percent)


def interpret_wrist(max_flexion: float, max_extension: float) -> Interpretation:
    percent = (max_flexion / NORMAL_WRIST_FLEXION + max_extension / NORMAL_WRIST_EXTENSION) / 2.0 * 100.0
    if max_flexion >= 60 and max_extension >= 50:
        return Interpretation("Normal", "functional wrist range", percent)
    if max_flexion >= 40 or max_extension >= 30:
        return Interpretation("Moderate", "partial wrist range", percent)
    return Interpretation("Limited", "restricted wrist range", percent)


def interpret_deviation(max_radial: float, max_ulnar: float) -> Interpretation:
    total = max_radial + max_ulnar
    percent = total / (NORMAL_RADIAL + NORMAL_ULNAR) * 100.0
    if max_radial >= 18 and max_ulnar >= 25 and total >= 45:
        return Interpretation("Normal", "full radial / ulnar range", percent)
    if max_radial >= 12 and max_ulnar >= 18 and total >= 30:
        return Interpretation("Moderate", "partial radial / ulnar range", percent)
    return Interpretation("Limited", "restricted radial / ulnar range", percent)
