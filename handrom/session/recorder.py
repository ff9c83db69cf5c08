"""
live recording of landmark frames into an immutable session.

handles:
  - laterality lock per session (reset on start, stamped into every frame)
  - timestamps relative to session start (time.perf_counter)
  - live metrics through the same dispatcher replay uses
  - saving to hdf5 / json via handrom.session.storage
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..core.landmarks import HandFrame, PoseFrame, RecordedFrame
from ..core.laterality import HandType, LateralityLock, LateralityResolver, SessionContext, stamp_frame
from ..core.metrics import FrameMetrics, compute_frame_metrics
from ..core.results import AssessmentKind, Digit


DEFAULT_CAPTURE_FPS = 30.0


@dataclass(frozen=True)
class Session:
    """
    recorded session, read-only once recording stops.

    frames: ordered recorded frames, all sharing the same lock metadata
    lock: the session's laterality decision
    """

    frames: Tuple[RecordedFrame, ...]
    lock: LateralityLock
    subject_id: str = "unknown"
    session_id: str = ""
    kind: AssessmentKind = AssessmentKind.TAM
    assessment_hand_type: HandType = HandType.UNKNOWN
    capture_fps: float = DEFAULT_CAPTURE_FPS

    def __len__(self) -> int:
        return len(self.frames)

    def __getitem__(self, index: int) -> RecordedFrame:
        return self.frames[index]

    @property
    def hand_type(self) -> HandType:
        return self.lock.hand_type

    @property
    def duration(self) -> float:
        if not self.frames:
            return 0.0
        return self.frames[-1].timestamp - self.frames[0].timestamp

    @classmethod
    def from_frames(
        cls,
        frames: Sequence[RecordedFrame],
        subject_id: str = "unknown",
        session_id: str = "",
        kind=AssessmentKind.TAM,
        assessment_hand_type=None,
        capture_fps: float = DEFAULT_CAPTURE_FPS,
    ) -> "Session":
        """wrap imported frames; the lock is read back from the first frame's metadata."""
        frames = tuple(frames)
        ht = HandType.parse(assessment_hand_type)
        if frames:
            lock = SessionContext.from_frame(frames[0]).lock
        else:
            lock = LateralityResolver(ht, verbose=False).fallback()
        return cls(
            frames=frames,
            lock=lock,
            subject_id=subject_id,
            session_id=session_id,
            kind=AssessmentKind(kind),
            assessment_hand_type=ht,
            capture_fps=float(capture_fps),
        )


class SessionRecorder:
    """
    buffers frames for one assessment recording.

    usage:
      recorder = SessionRecorder("P001", AssessmentKind.WRIST_DEVIATION)
      recorder.start()
      for hand, pose in feed:
          recorder.record_frame(hand, pose)
      session = recorder.stop()
      recorder.save("data/P001.h5")
    """

    def __init__(
        self,
        subject_id: str,
        kind=AssessmentKind.TAM,
        session_id: Optional[str] = None,
        assessment_hand_type=None,
        digit=Digit.INDEX,
        capture_fps: float = DEFAULT_CAPTURE_FPS,
        verbose: bool = True,
    ):
        """
        initialize recorder.

        args:
          subject_id: subject identifier
          kind: assessment being recorded
          session_id: optional session identifier (auto-generated if None)
          assessment_hand_type: hand side from the assessment setup, used only as laterality fallback
          digit: finger used for live TAM metrics
          capture_fps: nominal camera rate, stored for replay cadence
        """
        self.subject_id = subject_id
        self.kind = AssessmentKind(kind)
        self.session_id = session_id or datetime.now().strftime("session_%Y%m%d_%H%M%S")
        self.assessment_hand_type = HandType.parse(assessment_hand_type)
        self.digit = Digit(digit)
        self.capture_fps = float(capture_fps)
        self.verbose = verbose

        self.resolver = LateralityResolver(self.assessment_hand_type, verbose=verbose)
        self.frames: List[RecordedFrame] = []
        self.last_metrics: Optional[FrameMetrics] = None
        self.session: Optional[Session] = None
        self.recording = False
        self.start_time = time.perf_counter()

    def _get_timestamp(self) -> float:
        """seconds since session start."""
        return time.perf_counter() - self.start_time

    def start(self):
        """begin a new recording; laterality unlocks here."""
        self.resolver.reset()
        self.frames = []
        self.last_metrics = None
        self.session = None
        self.start_time = time.perf_counter()
        self.recording = True
        if self.verbose:
            print(f"[info] recording started")
            print(f"  subject: {self.subject_id}")
            print(f"  session: {self.session_id}")
            print(f"  assessment: {self.kind.value}")

    def record_frame(
        self,
        hand: Optional[HandFrame],
        pose: Optional[PoseFrame] = None,
        timestamp: Optional[float] = None,
    ) -> Optional[RecordedFrame]:
        """
        buffer one tracker frame.

        args:
          hand: hand landmarks (frames without a hand are not stored)
          pose: pose landmarks with visibility
          timestamp: seconds since start (None = now)

        returns:
          the stored RecordedFrame, or None if nothing was stored
        """
        if not self.recording:
            return None

        lock = self.resolver.resolve(hand, pose)
        if hand is None or len(hand) == 0:
            return None

        ts = self._get_timestamp() if timestamp is None else float(timestamp)
        frame = stamp_frame(ts, hand, pose, lock)
        self.frames.append(frame)
        self.last_metrics = compute_frame_metrics(frame, self.kind, self.digit, SessionContext(lock))
        return frame

    def stop(self) -> Session:
        """freeze the buffered frames into a Session."""
        self.recording = False
        lock = self.resolver.lock or self.resolver.fallback()
        self.session = Session(
            frames=tuple(self.frames),
            lock=lock,
            subject_id=self.subject_id,
            session_id=self.session_id,
            kind=self.kind,
            assessment_hand_type=self.assessment_hand_type,
            capture_fps=self.capture_fps,
        )
        if self.verbose:
            print(f"[info] recording stopped: {len(self.frames)} frames, hand {lock.hand_type.value}")
        return self.session

    def get_stats(self) -> dict:
        """current recording statistics."""
        n = len(self.frames)
        duration = self.frames[-1].timestamp - self.frames[0].timestamp if n > 1 else 0.0
        quality = float(np.mean([f.quality for f in self.frames])) if n else 0.0
        lock = self.resolver.lock
        return {
            'frames': n,
            'duration_sec': duration,
            'frame_rate_hz': (n - 1) / duration if duration > 0 else 0.0,
            'mean_quality': quality,
            'hand_type': lock.hand_type.value if lock else None,
        }

    def save(self, output_path, json_path=None) -> Path:
        """write the session to hdf5 (and optionally the json record array)."""
        from .storage import save_hdf5, save_json

        session = self.session if self.session is not None and not self.recording else self.stop()
        path = save_hdf5(session, output_path, verbose=self.verbose)
        if json_path is not None:
            save_json(session, json_path, verbose=self.verbose)
        return path
