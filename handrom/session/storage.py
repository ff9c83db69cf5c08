"""
recorded-session format: hdf5 file and json record array.

hdf5 layout:
  /hand/landmarks       [M, 21, 3] float64   hand keypoints (nan padded)
  /hand/counts          [M] int32            real number of hand points
  /hand/quality         [M] float64          tracker confidence
  /hand/handedness      [M] string           raw tracker label

  /pose/landmarks       [M, 33, 3] float64   body keypoints (nan padded)
  /pose/visibility      [M, 33] float64      per-point visibility
  /pose/counts          [M] int32            0 = no pose for that frame

  /session/timestamps   [M] float64          seconds since session start
  /session/hand_type    [M] string           locked laterality
  /session/elbow_index  [M] int32            locked pose indices (-1 = none)
  /session/wrist_index  [M] int32
  /session/shoulder_index [M] int32
  /session/elbow_locked [M] bool

  file attrs            subject_id, session_id, kind, capture_fps, date, ...

json: array of records with camelCase keys (timestamp, landmarks, poseLandmarks,
handedness, quality, sessionHandType, sessionElbowIndex, sessionWristIndex,
sessionShoulderIndex, sessionElbowLocked).

either format alone reproduces every metric of the session.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import h5py
import numpy as np

from ..core.landmarks import (
    HandFrame,
    NUM_HAND_LANDMARKS,
    NUM_POSE_LANDMARKS,
    PoseFrame,
    RecordedFrame,
)
from .recorder import DEFAULT_CAPTURE_FPS, Session


class SessionFormatError(ValueError):
    """recorded frame stream is structurally invalid (not a list of records, missing datasets)."""


REQUIRED_DATASETS = (
    "hand/landmarks",
    "hand/counts",
    "hand/quality",
    "hand/handedness",
    "pose/landmarks",
    "pose/visibility",
    "pose/counts",
    "session/timestamps",
    "session/hand_type",
    "session/elbow_index",
    "session/wrist_index",
    "session/shoulder_index",
    "session/elbow_locked",
)


def _frames_of(session_or_frames) -> Sequence[RecordedFrame]:
    if isinstance(session_or_frames, Session):
        return session_or_frames.frames
    return list(session_or_frames)


# ============================================================
# json records
# ============================================================

def frame_to_record(frame: RecordedFrame) -> dict:
    """RecordedFrame -> json-compatible dict."""
    record = {
        "timestamp": frame.timestamp,
        "landmarks": [{"x": float(x), "y": float(y), "z": float(z)} for x, y, z in frame.hand.landmarks],
        "poseLandmarks": [],
        "handedness": frame.hand.handedness,
        "quality": frame.hand.quality,
        "sessionHandType": frame.session_hand_type,
        "sessionElbowIndex": frame.session_elbow_index,
        "sessionWristIndex": frame.session_wrist_index,
        "sessionShoulderIndex": frame.session_shoulder_index,
        "sessionElbowLocked": frame.session_elbow_locked,
    }
    if frame.pose is not None:
        record["poseLandmarks"] = [
            {"x": float(x), "y": float(y), "z": float(z), "visibility": float(v)}
            for (x, y, z), v in zip(frame.pose.landmarks, frame.pose.visibility)
        ]
    return record


def _float(value, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _optional_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _points(value, pose: bool = False):
    """list of {x,y,z} dicts -> points; malformed entries make the whole list empty."""
    if not isinstance(value, list):
        return None
    try:
        if pose:
            return PoseFrame.from_points(value) if value else None
        return HandFrame.from_points(value).landmarks
    except (TypeError, ValueError):
        return None


def record_to_frame(record: Mapping) -> RecordedFrame:
    """json record -> RecordedFrame. malformed fields degrade to empty / default values."""
    points = _points(record.get("landmarks"))
    hand = HandFrame(
        points if points is not None else np.zeros((0, 3)),
        handedness=str(record.get("handedness") or "UNKNOWN"),
        quality=_float(record.get("quality"), 0.0),
    )
    pose = _points(record.get("poseLandmarks"), pose=True)

    return RecordedFrame(
        timestamp=_float(record.get("timestamp")),
        hand=hand,
        pose=pose,
        session_hand_type=str(record.get("sessionHandType") or "UNKNOWN"),
        session_elbow_index=_optional_int(record.get("sessionElbowIndex")),
        session_wrist_index=_optional_int(record.get("sessionWristIndex")),
        session_shoulder_index=_optional_int(record.get("sessionShoulderIndex")),
        session_elbow_locked=record.get("sessionElbowLocked") is True,
    )


def frames_to_records(session_or_frames) -> List[dict]:
    return [frame_to_record(f) for f in _frames_of(session_or_frames)]


def frames_from_records(records) -> List[RecordedFrame]:
    """
    parse a json record array.

    raises:
      SessionFormatError: if `records` is not a list of mappings
    """
    if not isinstance(records, list):
        raise SessionFormatError(f"recorded session must be a list of records, got {type(records).__name__}")
    frames = []
    for i, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise SessionFormatError(f"record {i} is not an object ({type(record).__name__})")
        frames.append(record_to_frame(record))
    return frames


def save_json(session_or_frames, output_path, verbose: bool = True) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    records = frames_to_records(session_or_frames)
    with open(path, "w") as f:
        json.dump(records, f)
    if verbose:
        print(f"[success] wrote {len(records)} records to {path}")
    return path


def load_json(input_path, verbose: bool = True) -> List[RecordedFrame]:
    path = Path(input_path)
    with open(path, "r") as f:
        try:
            records = json.load(f)
        except json.JSONDecodeError as e:
            raise SessionFormatError(f"{path} is not valid json: {e}") from e
    frames = frames_from_records(records)
    if verbose:
        print(f"[info] loaded {len(frames)} frames from {path}")
    return frames


# ============================================================
# hdf5
# ============================================================

def _padded(arrays: List[np.ndarray], width: int, cols: int) -> np.ndarray:
    out = np.full((len(arrays), width, cols), np.nan, dtype=np.float64)
    for i, arr in enumerate(arrays):
        n = arr.shape[0]
        if n:
            out[i, :n] = arr.reshape(n, cols)
    return out


def save_hdf5(session: Session, output_path, verbose: bool = True) -> Path:
    """write a session to hdf5."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frames = session.frames
    m = len(frames)

    if verbose:
        print(f"[info] saving session to {path}...")

    try:
        hand_counts = np.array([len(f.hand) for f in frames], dtype=np.int32)
        hand_width = max([NUM_HAND_LANDMARKS] + hand_counts.tolist())
        hand_points = _padded([f.hand.landmarks for f in frames], hand_width, 3)

        pose_counts = np.array([len(f.pose) if f.pose is not None else 0 for f in frames], dtype=np.int32)
        pose_width = max([NUM_POSE_LANDMARKS] + pose_counts.tolist())
        empty = np.zeros((0, 3))
        pose_points = _padded([f.pose.landmarks if f.pose is not None else empty for f in frames], pose_width, 3)
        pose_vis = _padded(
            [f.pose.visibility.reshape(-1, 1) if f.pose is not None else np.zeros((0, 1)) for f in frames],
            pose_width,
            1,
        )[:, :, 0]

        def _index(value):
            return -1 if value is None else int(value)

        str_dtype = h5py.string_dtype(encoding='utf-8')

        with h5py.File(path, 'w') as f:
            hand_grp = f.create_group('hand')
            hand_grp.create_dataset('landmarks', data=hand_points, compression='gzip')
            hand_grp.create_dataset('counts', data=hand_counts)
            hand_grp.create_dataset('quality', data=np.array([fr.hand.quality for fr in frames], dtype=np.float64))
            hand_grp.create_dataset('handedness',
                data=np.array([fr.hand.handedness for fr in frames], dtype=object),
                dtype=str_dtype
            )

            pose_grp = f.create_group('pose')
            pose_grp.create_dataset('landmarks', data=pose_points, compression='gzip')
            pose_grp.create_dataset('visibility', data=pose_vis, compression='gzip')
            pose_grp.create_dataset('counts', data=pose_counts)

            sess_grp = f.create_group('session')
            sess_grp.create_dataset('timestamps', data=np.array([fr.timestamp for fr in frames], dtype=np.float64))
            sess_grp.create_dataset('hand_type',
                data=np.array([fr.session_hand_type for fr in frames], dtype=object),
                dtype=str_dtype
            )
            sess_grp.create_dataset('elbow_index', data=np.array([_index(fr.session_elbow_index) for fr in frames], dtype=np.int32))
            sess_grp.create_dataset('wrist_index', data=np.array([_index(fr.session_wrist_index) for fr in frames], dtype=np.int32))
            sess_grp.create_dataset('shoulder_index', data=np.array([_index(fr.session_shoulder_index) for fr in frames], dtype=np.int32))
            sess_grp.create_dataset('elbow_locked', data=np.array([fr.session_elbow_locked for fr in frames], dtype=bool))

            # metadata attributes
            f.attrs['subject_id'] = session.subject_id
            f.attrs['session_id'] = session.session_id
            f.attrs['kind'] = session.kind.value
            f.attrs['hand'] = session.hand_type.value
            f.attrs['assessment_hand_type'] = session.assessment_hand_type.value
            f.attrs['capture_fps'] = float(session.capture_fps)
            f.attrs['date'] = datetime.now().strftime("%Y-%m-%d")
            f.attrs['time'] = datetime.now().strftime("%H:%M:%S")
            f.attrs['frame_count'] = m
            f.attrs['duration_sec'] = session.duration

        if verbose:
            print(f"[success] session saved!")
            print(f"  frames: {m}")
            print(f"  hand: {session.hand_type.value}")
            print(f"  file size: {path.stat().st_size / 1024:.1f} KB")

    except Exception as e:
        print(f"[error] failed to save session: {e}")
        raise

    return path


def load_hdf5(input_path, verbose: bool = True) -> Session:
    """
    read a session written by save_hdf5.

    raises:
      SessionFormatError: if a required dataset is missing or shapes disagree
    """
    path = Path(input_path)
    with h5py.File(path, 'r') as f:
        missing = [name for name in REQUIRED_DATASETS if name not in f]
        if missing:
            raise SessionFormatError(f"{path} is missing datasets: {', '.join(missing)}")

        hand_points = f['hand/landmarks'][:]
        hand_counts = f['hand/counts'][:]
        quality = f['hand/quality'][:]
        handedness = f['hand/handedness'].asstr()[:]

        pose_points = f['pose/landmarks'][:]
        pose_vis = f['pose/visibility'][:]
        pose_counts = f['pose/counts'][:]

        timestamps = f['session/timestamps'][:]
        hand_types = f['session/hand_type'].asstr()[:]
        elbow_idx = f['session/elbow_index'][:]
        wrist_idx = f['session/wrist_index'][:]
        shoulder_idx = f['session/shoulder_index'][:]
        elbow_locked = f['session/elbow_locked'][:]

        attrs = dict(f.attrs)

    m = timestamps.shape[0]
    columns = (hand_points, hand_counts, quality, handedness, pose_points, pose_vis,
               pose_counts, hand_types, elbow_idx, wrist_idx, shoulder_idx, elbow_locked)
    if any(c.shape[0] != m for c in columns):
        raise SessionFormatError(f"{path} has datasets of different lengths")

    def _index(value) -> Optional[int]:
        return None if int(value) < 0 else int(value)

    frames = []
    for i in range(m):
        hand = HandFrame(
            hand_points[i, :int(hand_counts[i])],
            handedness=str(handedness[i]),
            quality=float(quality[i]),
        )
        n_pose = int(pose_counts[i])
        pose = PoseFrame(pose_points[i, :n_pose], pose_vis[i, :n_pose]) if n_pose else None
        frames.append(RecordedFrame(
            timestamp=float(timestamps[i]),
            hand=hand,
            pose=pose,
            session_hand_type=str(hand_types[i]),
            session_elbow_index=_index(elbow_idx[i]),
            session_wrist_index=_index(wrist_idx[i]),
            session_shoulder_index=_index(shoulder_idx[i]),
            session_elbow_locked=bool(elbow_locked[i]),
        ))

    session = Session.from_frames(
        frames,
        subject_id=str(attrs.get('subject_id', 'unknown')),
        session_id=str(attrs.get('session_id', '')),
        kind=str(attrs.get('kind', 'TAM')),
        assessment_hand_type=str(attrs.get('assessment_hand_type', 'UNKNOWN')),
        capture_fps=float(attrs.get('capture_fps', DEFAULT_CAPTURE_FPS)),
    )
    if verbose:
        print(f"[info] loaded session {session.session_id}: {len(frames)} frames, hand {session.hand_type.value}")
    return session


def estimate_capture_fps(frames: Sequence[RecordedFrame]) -> float:
    """capture rate from the median spacing of frame timestamps, DEFAULT_CAPTURE_FPS if unknown."""
    timestamps = np.array([f.timestamp for f in frames], dtype=np.float64)
    steps = np.diff(timestamps)
    steps = steps[steps > 0]
    if steps.size == 0:
        return float(DEFAULT_CAPTURE_FPS)
    return float(1.0 / np.median(steps))


def load_session(input_path, kind=None, verbose: bool = True) -> Session:
    """
    load .h5/.hdf5 or .json by extension.

    the json record array does not carry the assessment kind, so `kind` is
    required for json files. capture fps is recovered from the timestamps.

    raises:
      SessionFormatError: json file loaded without a kind
    """
    path = Path(input_path)
    if path.suffix.lower() in (".h5", ".hdf5"):
        session = load_hdf5(path, verbose=verbose)
        if kind is not None:
            session = Session.from_frames(
                session.frames, session.subject_id, session.session_id, kind,
                session.assessment_hand_type, session.capture_fps,
            )
        return session
    if kind is None:
        raise SessionFormatError(f"{path} is a json record array with no assessment kind, pass one explicitly")
    frames = load_json(path, verbose=verbose)
    return Session.from_frames(
        frames,
        session_id=path.stem,
        kind=kind,
        capture_fps=estimate_capture_fps(frames),
    )


def save_session(session: Session, output_path, verbose: bool = True) -> Path:
    path = Path(output_path)
    if path.suffix.lower() == ".json":
        return save_json(session, path, verbose=verbose)
    return save_hdf5(session, path, verbose=verbose)
