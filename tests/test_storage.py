"""
tests for the recorded-session format (json records + hdf5).

validates:
  - export -> import reproduces every frame and the session summary
  - structurally invalid streams raise SessionFormatError
  - malformed fields inside a record degrade instead of raising
"""

import json
import tempfile
from pathlib import Path

import h5py
import numpy as np
import pytest

from handrom.core.landmarks import HandFrame
from handrom.core.results import AssessmentKind, Digit
from handrom.session.aggregator import summarize_session
from handrom.session.recorder import Session, SessionRecorder
from handrom.session.storage import (
    SessionFormatError,
    estimate_capture_fps,
    frame_to_record,
    frames_from_records,
    frames_to_records,
    load_hdf5,
    load_json,
    load_session,
    save_hdf5,
    save_json,
    save_session,
)

from synthetic import hand_points, make_hand, make_pose


THETAS = [0, 12.5, 33.3, -21.7, -44.1, 8.8]


def make_session(kind=AssessmentKind.WRIST_FLEXION_EXTENSION):
    recorder = SessionRecorder("S07", kind=kind, session_id="storage", assessment_hand_type="LEFT",
                               capture_fps=25.0, verbose=False)
    recorder.start()
    rng = np.random.default_rng(3)
    for i, t in enumerate(THETAS):
        pts = make_hand(theta_deg=t, middle_bend=abs(t)).landmarks + rng.normal(0, 1e-3, (21, 3))
        hand = HandFrame(pts, handedness="Left" if i % 2 else "Right", quality=0.8 + 0.01 * i)
        pose = make_pose("LEFT") if i != 3 else None
        recorder.record_frame(hand, pose, timestamp=i * 0.04)
    return recorder.stop()


def assert_same_frames(a, b):
    assert len(a) == len(b)
    for fa, fb in zip(a, b):
        assert fa == fb


@pytest.mark.parametrize("kind", list(AssessmentKind))
def test_json_round_trip_reproduces_summary(kind):
    session = make_session(kind)
    records = json.loads(json.dumps(frames_to_records(session)))
    frames = frames_from_records(records)
    assert_same_frames(session.frames, frames)
    for digit in Digit:
        assert summarize_session(frames, kind, digit) == summarize_session(session.frames, kind, digit)


@pytest.mark.parametrize("kind", list(AssessmentKind))
def test_hdf5_round_trip_reproduces_summary(kind):
    session = make_session(kind)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = save_hdf5(session, Path(tmpdir) / "session.h5", verbose=False)
        loaded = load_hdf5(path, verbose=False)

    assert_same_frames(session.frames, loaded.frames)
    assert loaded.subject_id == "S07"
    assert loaded.session_id == "storage"
    assert loaded.kind == kind
    assert loaded.capture_fps == 25.0
    assert loaded.hand_type == session.hand_type
    assert summarize_session(loaded.frames, kind) == summarize_session(session.frames, kind)


def test_hdf5_layout():
    session = make_session()
    with tempfile.TemporaryDirectory() as tmpdir:
        path = save_hdf5(session, Path(tmpdir) / "session.h5", verbose=False)
        with h5py.File(path, 'r') as f:
            assert f['hand/landmarks'].shape == (len(THETAS), 21, 3)
            assert f['pose/landmarks'].shape == (len(THETAS), 33, 3)
            assert f['pose/visibility'].shape == (len(THETAS), 33)
            assert f['pose/counts'][3] == 0
            assert list(f['session/elbow_index'][:]) == [13] * len(THETAS)
            assert f.attrs['subject_id'] == "S07"
            assert f.attrs['kind'] == "WRIST_FLEXION_EXTENSION"
            assert f.attrs['hand'] == "LEFT"


def test_save_and_load_by_extension():
    session = make_session()
    with tempfile.TemporaryDirectory() as tmpdir:
        json_path = save_session(session, Path(tmpdir) / "s.json", verbose=False)
        h5_path = save_session(session, Path(tmpdir) / "s.h5", verbose=False)
        from_json = load_session(json_path, kind=AssessmentKind.WRIST_FLEXION_EXTENSION, verbose=False)
        from_h5 = load_session(h5_path, verbose=False)

    assert isinstance(from_json, Session)
    assert_same_frames(from_json.frames, from_h5.frames)
    assert from_json.hand_type == from_h5.hand_type
    assert summarize_session(from_json.frames, from_json.kind) == summarize_session(from_h5.frames, from_h5.kind)


def test_recorder_save_writes_both_formats():
    recorder = SessionRecorder("S01", verbose=False)
    recorder.start()
    recorder.record_frame(make_hand(), make_pose("RIGHT"), timestamp=0.0)
    with tempfile.TemporaryDirectory() as tmpdir:
        h5_path = recorder.save(Path(tmpdir) / "out" / "rec.h5", json_path=Path(tmpdir) / "rec.json")
        assert h5_path.exists()
        assert len(load_json(Path(tmpdir) / "rec.json", verbose=False)) == 1


def test_record_keys():
    session = make_session()
    record = frame_to_record(session.frames[0])
    assert set(record) == {
        "timestamp", "landmarks", "poseLandmarks", "handedness", "quality",
        "sessionHandType", "sessionElbowIndex", "sessionWristIndex",
        "sessionShoulderIndex", "sessionElbowLocked",
    }
    assert len(record["landmarks"]) == 21
    assert set(record["poseLandmarks"][0]) == {"x", "y", "z", "visibility"}
    assert record["sessionHandType"] == "LEFT"


def test_non_list_stream_raises():
    with pytest.raises(SessionFormatError):
        frames_from_records({"frames": []})
    with pytest.raises(SessionFormatError):
        frames_from_records([{"timestamp": 0.0}, 42])
    assert issubclass(SessionFormatError, ValueError)


def test_invalid_json_file_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "bad.json"
        path.write_text("{not json")
        with pytest.raises(SessionFormatError):
            load_json(path, verbose=False)
        path.write_text('{"a": 1}')
        with pytest.raises(SessionFormatError):
            load_json(path, verbose=False)


def test_hdf5_missing_datasets_raise():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "partial.h5"
        with h5py.File(path, 'w') as f:
            f.create_group('hand').create_dataset('landmarks', data=np.zeros((1, 21, 3)))
        with pytest.raises(SessionFormatError):
            load_hdf5(path, verbose=False)


def test_malformed_fields_degrade():
    records = [
        {"timestamp": "soon", "landmarks": "garbage", "poseLandmarks": [{"x": "?"}],
         "quality": None, "sessionElbowIndex": "x"},
        {"landmarks": [{"x": p[0], "y": p[1], "z": p[2]} for p in hand_points()]},
    ]
    frames = frames_from_records(records)
    assert frames[0].timestamp == 0.0
    assert len(frames[0].hand) == 0
    assert frames[0].pose is None
    assert frames[0].session_elbow_index is None
    assert frames[0].session_hand_type == "UNKNOWN"
    assert frames[1].hand.is_complete

    summary = summarize_session(frames, AssessmentKind.TAM, Digit.MIDDLE)
    assert summary.frame_count == 2
    assert summary.max_tam_frame == 1


def test_json_load_session_keeps_kind_and_capture_rate():
    recorder = SessionRecorder("S02", kind=AssessmentKind.WRIST_DEVIATION, capture_fps=60.0, verbose=False)
    recorder.start()
    for i, t in enumerate(THETAS):
        recorder.record_frame(make_hand(theta_deg=t), make_pose("RIGHT"), timestamp=i / 60.0)
    session = recorder.stop()

    with tempfile.TemporaryDirectory() as tmpdir:
        path = save_json(session, Path(tmpdir) / "dev.json", verbose=False)
        loaded = load_session(path, kind=session.kind, verbose=False)
        with pytest.raises(SessionFormatError):
            load_session(path, verbose=False)

    assert loaded.kind == AssessmentKind.WRIST_DEVIATION
    assert loaded.capture_fps == pytest.approx(60.0)
    assert summarize_session(loaded.frames, loaded.kind) == summarize_session(session.frames, session.kind)


def frame_to_record_at(hand, timestamp):
    return {"timestamp": timestamp, "landmarks": [{"x": x, "y": y, "z": z} for x, y, z in hand.landmarks]}


def test_estimate_capture_fps():
    hand = make_hand()
    frames = frames_from_records([frame_to_record_at(hand, t) for t in (0.0, 0.1, 0.2, 0.2, 0.5)])
    assert estimate_capture_fps(frames) == pytest.approx(10.0)  # median spacing, repeats ignored
    assert estimate_capture_fps(frames[:1]) == 30.0
    assert estimate_capture_fps([]) == 30.0


def test_elbow_locked_only_true_for_a_real_boolean():
    frames = frames_from_records([
        {"sessionElbowLocked": True},
        {"sessionElbowLocked": "false"},
        {"sessionElbowLocked": 1},
        {},
    ])
    assert [f.session_elbow_locked for f in frames] == [True, False, False, False]
