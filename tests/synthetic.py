"""
synthetic mediapipe-style landmarks for tests.

hand: upright open hand, palm facing the camera, wrist at (0.5, 0.9).
  the middle finger and the wrist-to-knuckle-midpoint line are vertical, so
  rotating the hand about the wrist by theta gives a wrist deflection of exactly theta.
pose: 33 points; the tested arm's elbow sits straight below the hand wrist.
"""

import numpy as np

from handrom.core.landmarks import HandFrame, PoseFrame

WRIST_XY = (0.5, 0.9)

FINGER_X = {"index": 0.38, "middle": 0.50, "ring": 0.56, "pinky": 0.62}
FINGER_Y = (0.70, 0.62, 0.54, 0.46)  # mcp, pip, dip, tip


def hand_points() -> np.ndarray:
    """[21, 3] template hand."""
    pts = np.zeros((21, 3), dtype=np.float64)
    pts[0] = (WRIST_XY[0], WRIST_XY[1], 0.0)
    # thumb cmc, mcp, ip, tip
    pts[1] = (0.42, 0.85, 0.0)
    pts[2] = (0.36, 0.80, 0.0)
    pts[3] = (0.31, 0.75, 0.0)
    pts[4] = (0.30, 0.70, 0.0)
    for base, name in zip((5, 9, 13, 17), ("index", "middle", "ring", "pinky")):
        for k, y in enumerate(FINGER_Y):
            pts[base + k] = (FINGER_X[name], y, 0.0)
    return pts


def rotate(points: np.ndarray, theta_deg: float, about: int = 0, indices=None) -> np.ndarray:
    """rotate points (all but the pivot, or `indices`) about landmark `about` in the image plane."""
    out = points.copy()
    t = np.radians(theta_deg)
    c, s = np.cos(t), np.sin(t)
    pivot = points[about]
    if indices is None:
        indices = [i for i in range(len(points)) if i != about]
    for i in indices:
        dx, dy = points[i, 0] - pivot[0], points[i, 1] - pivot[1]
        out[i, 0] = pivot[0] + dx * c - dy * s
        out[i, 1] = pivot[1] + dx * s + dy * c
    return out


def make_hand(theta_deg: float = 0.0, middle_bend: float = 0.0, thumb_tip=None, quality: float = 0.9) -> HandFrame:
    """
    template hand, optionally with the middle finger bent at its pip joint
    and the whole hand rotated about the wrist.
    """
    pts = hand_points()
    if middle_bend:
        pts = rotate(pts, middle_bend, about=10, indices=[11, 12])
    if thumb_tip is not None:
        pts[4] = thumb_tip
    if theta_deg:
        pts = rotate(pts, theta_deg, about=0)
    return HandFrame(pts, handedness="Right", quality=quality)


def make_pose(side: str = "RIGHT", elbow_vis: float = 0.9, other_elbow_vis: float = 0.3,
              arm_vis: float = 0.9) -> PoseFrame:
    """
    33-point pose. the `side` arm's elbow is straight below the hand wrist,
    the other arm is off to the side.
    """
    pts = np.full((33, 3), 0.5, dtype=np.float64)
    pts[:, 2] = 0.0
    vis = np.full(33, 0.5, dtype=np.float64)

    near = {"shoulder": (0.40, 0.30), "elbow": (0.50, 1.20), "wrist": (0.50, 0.92)}
    far_x = 0.90 if side == "RIGHT" else 0.10
    far = {"shoulder": (far_x, 0.30), "elbow": (far_x, 1.20), "wrist": (far_x, 0.92)}

    if side == "RIGHT":
        this_arm = {"shoulder": 12, "elbow": 14, "wrist": 16}
        other_arm = {"shoulder": 11, "elbow": 13, "wrist": 15}
    else:
        this_arm = {"shoulder": 11, "elbow": 13, "wrist": 15}
        other_arm = {"shoulder": 12, "elbow": 14, "wrist": 16}

    for part, idx in this_arm.items():
        pts[idx, :2] = near[part]
        vis[idx] = arm_vis
    for part, idx in other_arm.items():
        pts[idx, :2] = far[part]
    vis[this_arm["elbow"]] = elbow_vis
    vis[other_arm["elbow"]] = other_elbow_vis

    return PoseFrame(pts, vis)
