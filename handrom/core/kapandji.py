"""
kapandji thumb opposition score.

the thumb tip is tested against 10 anatomical targets in fixed order, from the
index proximal phalanx (level 1) to the distal palmar crease (level 10). a level
passes when the thumb tip is within OPPOSITION_THRESHOLD of its target in
normalized landmark space.

the session score is the best single-frame score (max_kapandji_score).
"""

from __future__ import annotations

from typing import Iterable, NamedTuple, Optional, Tuple

import numpy as np

from .geometry import distance, midpoint
from .landmarks import HandFrame, RecordedFrame, THUMB_TIP
from .results import KapandjiScore


# ============================================================
# scoring configuration
# ============================================================

OPPOSITION_THRESHOLD = 0.055  # normalized units, strict less-than
NUM_LEVELS = 10


class KapandjiTarget(NamedTuple):
    level: int
    name: str
    description: str
    landmarks: Tuple[int, ...]  # target = mean of these points


KAPANDJI_TARGETS: Tuple[KapandjiTarget, ...] = (
    KapandjiTarget(1, "Index Proximal Phalanx", "thumb touches side of index proximal phalanx", (6,)),
    KapandjiTarget(2, "Index Middle Phalanx", "thumb touches side of index middle phalanx", (7,)),
    KapandjiTarget(3, "Index Finger Tip", "thumb touches tip of index finger", (8,)),
    KapandjiTarget(4, "Middle Finger Tip", "thumb touches tip of middle finger", (12,)),
    KapandjiTarget(5, "Ring Finger Tip", "thumb touches tip of ring finger", (16,)),
    KapandjiTarget(6, "Little Finger Tip", "thumb touches tip of little finger", (20,)),
    KapandjiTarget(7, "Little DIP Joint Crease", "thumb touches little finger dip crease", (19,)),
    KapandjiTarget(8, "Little PIP Joint Crease", "thumb touches little finger pip crease", (18,)),
    KapandjiTarget(9, "Little MCP Joint Crease", "thumb touches little finger mcp crease", (17,)),
    KapandjiTarget(10, "Distal Palmar Crease", "thumb reaches the distal palmar crease", (0, 9, 13, 17)),
)


def target_position(hand: HandFrame, target: KapandjiTarget) -> np.ndarray:
    return midpoint(*(hand.landmarks[i] for i in target.landmarks))


def calculate_kapandji_score(hand: HandFrame, threshold: float = OPPOSITION_THRESHOLD) -> KapandjiScore:
    """
    score a single frame.

    args:
      hand: complete 21-point hand frame
      threshold: max thumb-to-target distance for a level to pass

    returns:
      KapandjiScore (max_score 0 when nothing is reached)
    """
    thumb_tip = hand.landmarks[THUMB_TIP]

    achieved = []
    reached = []
    max_score = 0
    for target in KAPANDJI_TARGETS:
        ok = distance(thumb_tip, target_position(hand, target)) < threshold
        achieved.append(ok)
        if ok:
            reached.append(target.name)
            max_score = target.level

    return KapandjiScore(max_score=max_score, achieved=tuple(achieved), reached_targets=tuple(reached))


def max_kapandji_score(
    frames: Iterable, threshold: float = OPPOSITION_THRESHOLD
) -> Tuple[Optional[KapandjiScore], int]:
    """
    best score over a whole session.

    accepts HandFrames or RecordedFrames; incomplete hands are skipped. on ties
    the earliest frame wins.

    returns:
      (best score or None if no frame was scorable, frame index of the best score)
    """
    best: Optional[KapandjiScore] = None
    best_index = 0
    for i, frame in enumerate(frames):
        hand = frame.hand if isinstance(frame, RecordedFrame) else frame
        if hand is None or not hand.is_complete:
            continue
        score = calculate_kapandji_score(hand, threshold)
        if best is None or score.max_score > best.max_score:
            best, best_index = score, i
    return best, best_index
