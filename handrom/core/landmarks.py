"""
landmark containers for one captured frame.

mediapipe gives us:
  - hand: 21 keypoints (x, y normalized to [0,1], z relative depth, wrist = 0)
  - pose: 33 keypoints with a per-point visibility score in [0,1]

we keep the raw numbers as float64 numpy arrays so that a frame written to disk
and read back gives bit-identical angles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np


# ============================================================
# mediapipe landmark indices
# ============================================================

NUM_HAND_LANDMARKS = 21
NUM_POSE_LANDMARKS = 33

# hand (mediapipe hand landmarker)
WRIST = 0
THUMB_CMC, THUMB_MCP, THUMB_IP, THUMB_TIP = 1, 2, 3, 4
INDEX_MCP, INDEX_PIP, INDEX_DIP, INDEX_TIP = 5, 6, 7, 8
MIDDLE_MCP, MIDDLE_PIP, MIDDLE_DIP, MIDDLE_TIP = 9, 10, 11, 12
RING_MCP, RING_PIP, RING_DIP, RING_TIP = 13, 14, 15, 16
PINKY_MCP, PINKY_PIP, PINKY_DIP, PINKY_TIP = 17, 18, 19, 20

# pose (mediapipe pose landmarker) - only the arm points are consumed
LEFT_SHOULDER, RIGHT_SHOULDER = 11, 12
LEFT_ELBOW, RIGHT_ELBOW = 13, 14
LEFT_WRIST, RIGHT_WRIST = 15, 16


class LandmarkPoint(NamedTuple):
    """single (x, y, z) landmark. converts straight to a numpy vector."""

    x: float
    y: float
    z: float = 0.0


def _point_xyz(entry) -> tuple[float, float, float]:
    """accept mediapipe landmark objects, {x,y,z} dicts or 3-sequences."""
    if hasattr(entry, "x") and hasattr(entry, "y"):
        return float(entry.x), float(entry.y), float(getattr(entry, "z", 0.0) or 0.0)
    if isinstance(entry, dict):
        return float(entry.get("x", 0.0)), float(entry.get("y", 0.0)), float(entry.get("z", 0.0) or 0.0)
    if isinstance(entry, (list, tuple, np.ndarray)) and len(entry) >= 2:
        z = entry[2] if len(entry) >= 3 else 0.0
        return float(entry[0]), float(entry[1]), float(z)
    raise ValueError(f"unsupported landmark format: {type(entry).__name__}")


def _as_points(landmarks) -> np.ndarray:
    """coerce any landmark container into a [N, 3] float64 array."""
    if landmarks is None:
        return np.zeros((0, 3), dtype=np.float64)
    if isinstance(landmarks, np.ndarray) and landmarks.ndim == 2 and landmarks.shape[1] == 3:
        return landmarks.astype(np.float64, copy=True)
    rows = [_point_xyz(p) for p in landmarks]
    if not rows:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array(rows, dtype=np.float64)


# ============================================================
# frames
# ============================================================

@dataclass(frozen=True, eq=False)
class HandFrame:
    """
    21 hand keypoints from one frame.

    args:
      landmarks: [N, 3] float64 (N == 21 for a usable frame, index 0 = wrist)
      handedness: raw provider label ("Left" / "Right" / "UNKNOWN"), informational only
      quality: provider confidence in [0,1]
    """

    landmarks: np.ndarray
    handedness: str = "UNKNOWN"
    quality: float = 1.0

    def __post_init__(self):
        object.__setattr__(self, "landmarks", _as_points(self.landmarks))

    @classmethod
    def from_points(cls, points, handedness: str = "UNKNOWN", quality: float = 1.0) -> "HandFrame":
        return cls(_as_points(points), handedness=handedness, quality=float(quality))

    def __len__(self) -> int:
        return int(self.landmarks.shape[0])

    @property
    def is_complete(self) -> bool:
        return len(self) >= NUM_HAND_LANDMARKS

    def point(self, index: int) -> LandmarkPoint:
        x, y, z = self.landmarks[index]
        return LandmarkPoint(float(x), float(y), float(z))

    def __eq__(self, other) -> bool:
        if not isinstance(other, HandFrame):
            return NotImplemented
        return (
            self.handedness == other.handedness
            and self.quality == other.quality
            and np.array_equal(self.landmarks, other.landmarks)
        )


@dataclass(frozen=True, eq=False)
class PoseFrame:
    """
    up to 33 body keypoints with visibility. indices that are not present
    read as visibility 0.
    """

    landmarks: np.ndarray
    visibility: Optional[np.ndarray] = None

    def __post_init__(self):
        points = _as_points(self.landmarks)
        if self.visibility is None:
            vis = np.ones(points.shape[0], dtype=np.float64)
        else:
            vis = np.asarray(self.visibility, dtype=np.float64).reshape(-1)
            if vis.shape[0] != points.shape[0]:
                # pad / truncate so every point has a visibility value
                fixed = np.zeros(points.shape[0], dtype=np.float64)
                n = min(points.shape[0], vis.shape[0])
                fixed[:n] = vis[:n]
                vis = fixed
        object.__setattr__(self, "landmarks", points)
        object.__setattr__(self, "visibility", vis)

    @classmethod
    def from_points(cls, points) -> "PoseFrame":
        """build from landmark objects / dicts carrying an optional visibility field."""
        if points is None:
            return cls(np.zeros((0, 3)))
        coords, vis = [], []
        for p in points:
            coords.append(_point_xyz(p))
            if isinstance(p, dict):
                v = p.get("visibility")
            else:
                v = getattr(p, "visibility", None)
            vis.append(1.0 if v is None else float(v))
        if not coords:
            return cls(np.zeros((0, 3)))
        return cls(np.array(coords, dtype=np.float64), np.array(vis, dtype=np.float64))

    def __len__(self) -> int:
        return int(self.landmarks.shape[0])

    def has(self, index: int) -> bool:
        return 0 <= index < len(self)

    def point(self, index: int) -> Optional[LandmarkPoint]:
        if not self.has(index):
            return None
        x, y, z = self.landmarks[index]
        return LandmarkPoint(float(x), float(y), float(z))

    def visibility_of(self, index: int) -> float:
        if not self.has(index):
            return 0.0
        return float(self.visibility[index])

    def __eq__(self, other) -> bool:
        if not isinstance(other, PoseFrame):
            return NotImplemented
        return np.array_equal(self.landmarks, other.landmarks) and np.array_equal(
            self.visibility, other.visibility
        )


@dataclass(frozen=True)
class RecordedFrame:
    """
    one timestamped unit of a session.

    the session_* fields are the frozen laterality decision of the whole session.
    they are written once and copied unchanged into every frame, so replay reads
    them instead of re-deriving laterality.
    """

    timestamp: float
    hand: HandFrame
    pose: Optional[PoseFrame] = None
    session_hand_type: str = "UNKNOWN"
    session_elbow_index: Optional[int] = None
    session_wrist_index: Optional[int] = None
    session_shoulder_index: Optional[int] = None
    session_elbow_locked: bool = False

    @property
    def quality(self) -> float:
        return self.hand.quality

    @property
    def handedness(self) -> str:
        return self.hand.handedness

