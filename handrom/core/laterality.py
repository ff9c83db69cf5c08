"""
hand laterality (left / right) lock for one recording session.

per-frame handedness from the tracker flips around, especially when the hand
rotates. the resolver decides the side once, on the first frame that carries
data, and returns that same answer for the rest of the session:

  1. both elbows visible above ELBOW_VISIBILITY_THRESHOLD -> more visible side
  2. hand wrist closer to one elbow -> that side
  3. assessment-level hand type, if the caller gave one
  4. RIGHT

the lock (with its pose indices) is stamped into every recorded frame, and
replay rebuilds a SessionContext from that metadata instead of resolving again.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional

import numpy as np

from .landmarks import (
    HandFrame,
    PoseFrame,
    RecordedFrame,
    WRIST,
    LEFT_ELBOW,
    LEFT_SHOULDER,
    LEFT_WRIST,
    RIGHT_ELBOW,
    RIGHT_SHOULDER,
    RIGHT_WRIST,
)


# ============================================================
# resolver configuration
# ============================================================

ELBOW_VISIBILITY_THRESHOLD = 0.1  # both elbows must exceed this for rule 1


class HandType(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value) -> "HandType":
        """lenient parse of stored / provider labels ("Left", "right", None...)."""
        if isinstance(value, HandType):
            return value
        if value is None:
            return cls.UNKNOWN
        text = str(value).strip().upper()
        if text in ("LEFT", "L"):
            return cls.LEFT
        if text in ("RIGHT", "R"):
            return cls.RIGHT
        return cls.UNKNOWN


class LockState(str, Enum):
    UNLOCKED = "UNLOCKED"
    LOCKED = "LOCKED"


class LockSource(str, Enum):
    ELBOW_VISIBILITY = "elbow_visibility"
    WRIST_PROXIMITY = "wrist_proximity"
    ASSESSMENT = "assessment"
    DEFAULT = "default"
    STORED = "stored"


class PoseIndices(NamedTuple):
    shoulder: int
    elbow: int
    wrist: int


def pose_indices_for(hand_type) -> PoseIndices:
    """pose landmark indices of the arm that belongs to `hand_type` (RIGHT if unknown)."""
    if HandType.parse(hand_type) == HandType.LEFT:
        return PoseIndices(LEFT_SHOULDER, LEFT_ELBOW, LEFT_WRIST)
    return PoseIndices(RIGHT_SHOULDER, RIGHT_ELBOW, RIGHT_WRIST)


@dataclass(frozen=True)
class LateralityLock:
    """frozen laterality decision of a session."""

    hand_type: HandType
    shoulder_index: int
    elbow_index: int
    wrist_index: int
    elbow_locked: bool
    source: LockSource = LockSource.DEFAULT

    @classmethod
    def for_hand(cls, hand_type, elbow_locked: bool = True, source: LockSource = LockSource.DEFAULT) -> "LateralityLock":
        ht = HandType.parse(hand_type)
        if ht == HandType.UNKNOWN:
            ht = HandType.RIGHT
        idx = pose_indices_for(ht)
        return cls(
            hand_type=ht,
            shoulder_index=idx.shoulder,
            elbow_index=idx.elbow,
            wrist_index=idx.wrist,
            elbow_locked=elbow_locked,
            source=source,
        )

    @property
    def is_left(self) -> bool:
        return self.hand_type == HandType.LEFT

    @property
    def indices(self) -> PoseIndices:
        return PoseIndices(self.shoulder_index, self.elbow_index, self.wrist_index)


def detect_hand_type_by_proximity(hand: Optional[HandFrame], pose: Optional[PoseFrame]) -> HandType:
    """
    per-frame guess: the arm whose elbow is nearest the hand wrist.

    returns UNKNOWN when either frame is missing, an elbow is missing,
    or both elbows are equally far.
    """
    if hand is None or len(hand) == 0 or pose is None:
        return HandType.UNKNOWN
    if not (pose.has(LEFT_ELBOW) and pose.has(RIGHT_ELBOW)):
        return HandType.UNKNOWN

    wrist = hand.landmarks[WRIST][:2]
    d_left = float(np.linalg.norm(pose.landmarks[LEFT_ELBOW][:2] - wrist))
    d_right = float(np.linalg.norm(pose.landmarks[RIGHT_ELBOW][:2] - wrist))
    if d_left < d_right:
        return HandType.LEFT
    if d_right < d_left:
        return HandType.RIGHT
    return HandType.UNKNOWN


class LateralityResolver:
    """
    one-shot latch: UNLOCKED until the first frame with data, LOCKED after.

    usage:
      resolver = LateralityResolver(assessment_hand_type="LEFT")
      resolver.reset()                      # at recording start
      lock = resolver.resolve(hand, pose)   # every frame, same answer once locked
    """

    def __init__(
        self,
        assessment_hand_type=None,
        elbow_threshold: float = ELBOW_VISIBILITY_THRESHOLD,
        verbose: bool = True,
    ):
        self.assessment_hand_type = HandType.parse(assessment_hand_type)
        self.elbow_threshold = elbow_threshold
        self.verbose = verbose
        self._lock: Optional[LateralityLock] = None

    @property
    def state(self) -> LockState:
        return LockState.LOCKED if self._lock is not None else LockState.UNLOCKED

    @property
    def lock(self) -> Optional[LateralityLock]:
        return self._lock

    def reset(self):
        """back to UNLOCKED. called when a new recording starts."""
        self._lock = None

    def fallback(self) -> LateralityLock:
        """answer used when no frame evidence exists (rules 3 and 4)."""
        if self.assessment_hand_type != HandType.UNKNOWN:
            return LateralityLock.for_hand(self.assessment_hand_type, elbow_locked=False, source=LockSource.ASSESSMENT)
        return LateralityLock.for_hand(HandType.RIGHT, elbow_locked=False, source=LockSource.DEFAULT)

    def _decide(self, hand: Optional[HandFrame], pose: Optional[PoseFrame]) -> LateralityLock:
        if pose is not None:
            left_vis = pose.visibility_of(LEFT_ELBOW)
            right_vis = pose.visibility_of(RIGHT_ELBOW)
            if left_vis > self.elbow_threshold and right_vis > self.elbow_threshold:
                side = HandType.LEFT if left_vis > right_vis else HandType.RIGHT
                return LateralityLock.for_hand(side, elbow_locked=True, source=LockSource.ELBOW_VISIBILITY)

        side = detect_hand_type_by_proximity(hand, pose)
        if side != HandType.UNKNOWN:
            return LateralityLock.for_hand(side, elbow_locked=True, source=LockSource.WRIST_PROXIMITY)

        return self.fallback()

    def resolve(self, hand: Optional[HandFrame], pose: Optional[PoseFrame]) -> LateralityLock:
        """
        laterality for this frame.

        once LOCKED the arguments are ignored. a frame with neither hand nor
        pose data gets the fallback answer and leaves the resolver UNLOCKED.
        """
        if self._lock is not None:
            return self._lock

        has_hand = hand is not None and len(hand) > 0
        has_pose = pose is not None and len(pose) > 0
        if not (has_hand or has_pose):
            return self.fallback()

        self._lock = self._decide(hand, pose)
        if self.verbose:
            print(f"[info] hand laterality locked: {self._lock.hand_type.value} "
                  f"(via {self._lock.source.value}, elbow index {self._lock.elbow_index})")
        return self._lock


# ============================================================
# session context
# ============================================================

@dataclass(frozen=True)
class SessionContext:
    """laterality handed to every calculator call. built live from the resolver or from stored frame metadata."""

    lock: LateralityLock

    @property
    def hand_type(self) -> HandType:
        return self.lock.hand_type

    @property
    def is_left(self) -> bool:
        return self.lock.is_left

    @classmethod
    def from_frame(cls, frame: RecordedFrame) -> "SessionContext":
        """rebuild from a frame's stored session metadata (never re-resolves)."""
        ht = HandType.parse(frame.session_hand_type)
        if ht == HandType.UNKNOWN:
            ht = HandType.RIGHT
        default = pose_indices_for(ht)
        lock = LateralityLock(
            hand_type=ht,
            shoulder_index=frame.session_shoulder_index if frame.session_shoulder_index is not None else default.shoulder,
            elbow_index=frame.session_elbow_index if frame.session_elbow_index is not None else default.elbow,
            wrist_index=frame.session_wrist_index if frame.session_wrist_index is not None else default.wrist,
            elbow_locked=bool(frame.session_elbow_locked),
            source=LockSource.STORED,
        )
        return cls(lock)


def stamp_frame(
    timestamp: float,
    hand: HandFrame,
    pose: Optional[PoseFrame],
    lock: LateralityLock,
) -> RecordedFrame:
    """RecordedFrame carrying the session lock metadata."""
    return RecordedFrame(
        timestamp=float(timestamp),
        hand=hand,
        pose=pose,
        session_hand_type=lock.hand_type.value,
        session_elbow_index=lock.elbow_index,
        session_wrist_index=lock.wrist_index,
        session_shoulder_index=lock.shoulder_index,
        session_elbow_locked=lock.elbow_locked,
    )
