"""
replay playback controller.

frame-indexed state machine over a recorded session:

  STOPPED --play--> PLAYING (from frame 0)
  PLAYING --tick--> PLAYING (one frame per tick; last frame -> STOPPED + complete)
  PLAYING/PAUSED --seek(i)--> SEEKING --> PAUSED at i
  PAUSED --play--> PLAYING

each displayed frame is recomputed from its stored session metadata through
compute_frame_metrics, so a frame reached by ticking and the same frame reached
by seek read identical values.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from ..core.landmarks import RecordedFrame
from ..core.metrics import FrameMetrics, compute_frame_metrics
from ..core.results import AssessmentKind, Digit, ResultKind, SessionSummary
from .aggregator import summarize_session
from .recorder import DEFAULT_CAPTURE_FPS, Session


# ============================================================
# playback configuration
# ============================================================

MIN_TICK_INTERVAL_MS = 16   # ~60hz redraw budget
MIN_SPEED = 0.25
MAX_SPEED = 2.0


class PlaybackState(str, Enum):
    STOPPED = "STOPPED"
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    SEEKING = "SEEKING"


def primary_value(metrics: Optional[FrameMetrics]) -> Optional[float]:
    """single number used to rank frames for max / min navigation."""
    if metrics is None:
        return None
    if metrics.kind == ResultKind.JOINT_ANGLES:
        return metrics.total_active_rom
    if metrics.kind == ResultKind.KAPANDJI:
        return float(metrics.max_score)
    if metrics.kind == ResultKind.WRIST_ANGLES:
        return max(metrics.flexion, metrics.extension)
    return abs(metrics.deviation_angle)


class ReplayController:
    """
    plays back a session one frame per tick.

    usage:
      player = ReplayController(session)
      player.play()
      while player.tick():
          draw(player.current_frame, player.current_metrics)
    """

    def __init__(
        self,
        session: Union[Session, Sequence[RecordedFrame]],
        kind=None,
        digit=Digit.INDEX,
        capture_fps: Optional[float] = None,
        verbose: bool = True,
    ):
        if isinstance(session, Session):
            frames = session.frames
            kind = session.kind if kind is None else kind
            capture_fps = session.capture_fps if capture_fps is None else capture_fps
        else:
            frames = tuple(session)

        self._frames = tuple(frames)
        self._kind = AssessmentKind(kind if kind is not None else AssessmentKind.TAM)
        self._digit = Digit(digit)
        self.capture_fps = float(capture_fps or DEFAULT_CAPTURE_FPS)
        self.verbose = verbose

        self._state = PlaybackState.STOPPED
        self._index = 0
        self._complete = False
        self._speed = 1.0
        self._metrics = self._compute(0) if self._frames else None
        self._summary = summarize_session(self._frames, self._kind, self._digit)

    # ---------------------------------------------------------------- status

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def current_frame_index(self) -> int:
        return self._index

    @property
    def is_complete(self) -> bool:
        return self._complete

    @property
    def speed(self) -> float:
        return self._speed

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def kind(self) -> AssessmentKind:
        return self._kind

    @property
    def digit(self) -> Digit:
        return self._digit

    @property
    def current_frame(self) -> Optional[RecordedFrame]:
        return self._frames[self._index] if self._frames else None

    @property
    def current_metrics(self) -> Optional[FrameMetrics]:
        return self._metrics

    @property
    def summary(self) -> SessionSummary:
        return self._summary

    @property
    def tick_interval_ms(self) -> int:
        """ms between ticks at the current speed, never below MIN_TICK_INTERVAL_MS."""
        return max(MIN_TICK_INTERVAL_MS, int(round(1000.0 / self.capture_fps / self._speed)))

    # ---------------------------------------------------------------- internals

    @property
    def _last_index(self) -> int:
        return len(self._frames) - 1

    def _compute(self, index: int) -> Optional[FrameMetrics]:
        return compute_frame_metrics(self._frames[index], self._kind, self._digit)

    def _show(self, index: int):
        # metrics first, then index + metrics together
        metrics = self._compute(index)
        self._index, self._metrics = index, metrics

    def _finish(self):
        self._state = PlaybackState.STOPPED
        self._complete = True
        if self.verbose:
            print(f"[info] playback complete ({len(self._frames)} frames)")

    # ---------------------------------------------------------------- controls

    def play(self) -> bool:
        """start or resume playback. returns False for an empty session."""
        if not self._frames:
            if self.verbose:
                print("[warn] no frames to replay")
            return False
        if self._state == PlaybackState.PLAYING:
            return True

        if self._complete or self._state == PlaybackState.STOPPED:
            self._complete = False
            self._show(0)
        self._state = PlaybackState.PLAYING

        if self._index >= self._last_index:
            self._finish()
        return True

    def pause(self):
        if self._state == PlaybackState.PLAYING:
            self._state = PlaybackState.PAUSED

    def toggle(self) -> bool:
        """play/pause button."""
        if self._state == PlaybackState.PLAYING:
            self.pause()
            return True
        return self.play()

    def reset(self):
        """back to frame 0, stopped."""
        self._state = PlaybackState.STOPPED
        self._complete = False
        if self._frames:
            self._show(0)

    def seek(self, frame_index: int):
        """jump to a frame (clamped) and pause there."""
        if not self._frames:
            return
        target = min(max(int(frame_index), 0), self._last_index)
        self._state = PlaybackState.SEEKING
        self._show(target)
        self._complete = target == self._last_index
        self._state = PlaybackState.PAUSED

    def tick(self) -> bool:
        """advance one frame while playing. returns True if a frame was advanced."""
        if self._state != PlaybackState.PLAYING:
            return False
        if self._index >= self._last_index:
            self._finish()
            return False

        self._show(self._index + 1)
        if self._index == self._last_index:
            self._finish()
        return True

    def set_speed(self, multiplier: float) -> float:
        self._speed = min(max(float(multiplier), MIN_SPEED), MAX_SPEED)
        return self._speed

    # ---------------------------------------------------------------- selection

    def select_digit(self, digit):
        self._digit = Digit(digit)
        self._refresh()

    def select_kind(self, kind):
        self._kind = AssessmentKind(kind)
        self._refresh()

    def _refresh(self):
        self._summary = summarize_session(self._frames, self._kind, self._digit)
        if self._frames:
            self._show(self._index)

    def max_frame_index(self) -> int:
        s = self._summary
        if self._kind == AssessmentKind.TAM:
            return s.max_tam_frame
        if self._kind == AssessmentKind.KAPANDJI:
            return s.max_kapandji_frame
        if self._kind == AssessmentKind.WRIST_FLEXION_EXTENSION:
            return s.max_flexion_frame if s.max_flexion >= s.max_extension else s.max_extension_frame
        return s.max_ulnar_frame if s.max_ulnar >= s.max_radial else s.max_radial_frame

    def min_frame_index(self) -> int:
        if self._kind == AssessmentKind.TAM:
            return self._summary.min_tam_frame
        best_index, best = 0, None
        for i in range(len(self._frames)):
            value = primary_value(self._compute(i))
            if value is not None and (best is None or value < best):
                best_index, best = i, value
        return best_index

    def jump_to_max(self):
        self.seek(self.max_frame_index())

    def jump_to_min(self):
        self.seek(self.min_frame_index())

    # ---------------------------------------------------------------- loop

    def run(
        self,
        on_frame: Optional[Callable[[int, Optional[FrameMetrics]], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """
        drive playback until complete or paused from a callback.

        args:
          on_frame: called with (frame index, metrics) for every displayed frame
          sleep: wait function, seconds

        returns:
          number of frames shown
        """
        if not self.play():
            return 0

        shown = 1
        if on_frame is not None:
            on_frame(self._index, self._metrics)
        while self._state == PlaybackState.PLAYING:
            sleep(self.tick_interval_ms / 1000.0)
            if not self.tick():
                break
            shown += 1
            if on_frame is not None:
                on_frame(self._index, self._metrics)
        return shown
