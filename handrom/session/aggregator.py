"""
session maximum aggregator.

one pass over every recorded frame, through compute_frame_metrics, reduced to
per-metric extremes and the first frame index where each occurs. TAM
summaries also carry the largest mcp, pip and dip angle seen. the summary
is rebuilt from scratch whenever the frames or the selected digit / kind change.
"""

from __future__ import annotations

from typing import Dict, Sequence

import numpy as np

from ..core.kapandji import max_kapandji_score
from ..core.landmarks import RecordedFrame
from ..core.laterality import HandType
from ..core.metrics import compute_frame_metrics
from ..core.results import AssessmentKind, Digit, SessionSummary


def summarize_session(
    frames: Sequence[RecordedFrame],
    kind=AssessmentKind.TAM,
    digit=Digit.INDEX,
) -> SessionSummary:
    """
    summarize a session for one assessment kind.

    args:
      frames: recorded frames in order
      kind: assessment kind selecting the calculator
      digit: finger for TAM

    returns:
      SessionSummary (all zeros, frame index 0, for an empty session)
    """
    kind = AssessmentKind(kind)
    digit = Digit(digit)
    frames = list(frames)

    hand_type = HandType.RIGHT.value
    if frames:
        parsed = HandType.parse(frames[0].session_hand_type)
        if parsed != HandType.UNKNOWN:
            hand_type = parsed.value

    values = dict(kind=kind, digit=digit, hand_type=hand_type, frame_count=len(frames))
    confidences = []

    if kind == AssessmentKind.TAM:
        max_tam = min_tam = None
        joint_max = {"mcp": None, "pip": None, "dip": None}
        for i, frame in enumerate(frames):
            angles = compute_frame_metrics(frame, kind, digit)
            if angles is None:
                continue
            tam = angles.total_active_rom
            confidences.append(frame.quality)
            if max_tam is None or tam > max_tam:
                max_tam = tam
                values.update(max_tam=tam, max_tam_frame=i)
            if min_tam is None or tam < min_tam:
                min_tam = tam
                values.update(min_tam=tam, min_tam_frame=i)
            for joint, best in joint_max.items():
                value = getattr(angles, joint)
                if best is None or value > best:
                    joint_max[joint] = value
                    values.update({f"max_{joint}": value, f"max_{joint}_frame": i})

    elif kind == AssessmentKind.KAPANDJI:
        best, best_index = max_kapandji_score(frames)
        if best is not None:
            values.update(max_kapandji=best.max_score, max_kapandji_frame=best_index)
        confidences = [f.quality for f in frames if f.hand is not None and f.hand.is_complete]

    elif kind == AssessmentKind.WRIST_FLEXION_EXTENSION:
        max_flex = max_ext = 0.0
        for i, frame in enumerate(frames):
            angles = compute_frame_metrics(frame, kind, digit)
            if angles is None:
                continue
            confidences.append(angles.confidence)
            if angles.flexion > max_flex:
                max_flex = angles.flexion
                values.update(max_flexion=max_flex, max_flexion_frame=i)
            if angles.extension > max_ext:
                max_ext = angles.extension
                values.update(max_extension=max_ext, max_extension_frame=i)

    else:
        max_rad = max_uln = 0.0
        for i, frame in enumerate(frames):
            dev = compute_frame_metrics(frame, kind, digit)
            if dev is None:
                continue
            confidences.append(dev.confidence)
            if dev.radial > max_rad:
                max_rad = dev.radial
                values.update(max_radial=max_rad, max_radial_frame=i)
            if dev.ulnar > max_uln:
                max_uln = dev.ulnar
                values.update(max_ulnar=max_uln, max_ulnar_frame=i)

    if confidences:
        values["mean_confidence"] = float(np.mean(confidences))

    return SessionSummary(**values)


def summarize_all_digits(frames: Sequence[RecordedFrame]) -> Dict[Digit, SessionSummary]:
    """
    TAM summary for every finger of one recording.

    returns:
      {Digit: SessionSummary}, index -> pinky, each with per-joint maxima
    """
    frames = list(frames)
    return {digit: summarize_session(frames, AssessmentKind.TAM, digit) for digit in Digit}
