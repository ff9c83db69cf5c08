"""
tests for the hand laterality lock.

validates:
  - fallback order (elbow visibility, wrist proximity, assessment, right)
  - lock idempotence within a session
  - reset at session start
  - session context rebuilt from frame metadata
"""

from handrom.core.landmarks import PoseFrame, RecordedFrame
from handrom.core.laterality import (
    HandType,
    LateralityLock,
    LateralityResolver,
    LockSource,
    LockState,
    SessionContext,
    detect_hand_type_by_proximity,
    pose_indices_for,
    stamp_frame,
)

from synthetic import make_hand, make_pose


def test_pose_indices():
    assert pose_indices_for("LEFT") == (11, 13, 15)
    assert pose_indices_for(HandType.RIGHT) == (12, 14, 16)
    assert pose_indices_for("UNKNOWN") == (12, 14, 16)


def test_hand_type_parse():
    assert HandType.parse("Left") == HandType.LEFT
    assert HandType.parse("right") == HandType.RIGHT
    assert HandType.parse(None) == HandType.UNKNOWN
    assert HandType.parse("both") == HandType.UNKNOWN


def test_elbow_visibility_picks_more_visible_side():
    resolver = LateralityResolver(verbose=False)
    lock = resolver.resolve(make_hand(), make_pose("LEFT", elbow_vis=0.8, other_elbow_vis=0.4))
    assert lock.hand_type == HandType.LEFT
    assert lock.source == LockSource.ELBOW_VISIBILITY
    assert (lock.elbow_index, lock.wrist_index, lock.shoulder_index) == (13, 15, 11)
    assert lock.elbow_locked is True
    assert resolver.state == LockState.LOCKED


def test_low_elbow_visibility_falls_back_to_proximity():
    resolver = LateralityResolver(assessment_hand_type="RIGHT", verbose=False)
    pose = make_pose("LEFT", elbow_vis=0.05, other_elbow_vis=0.9)
    assert detect_hand_type_by_proximity(make_hand(), pose) == HandType.LEFT
    lock = resolver.resolve(make_hand(), pose)
    assert lock.hand_type == HandType.LEFT
    assert lock.source == LockSource.WRIST_PROXIMITY


def test_no_pose_uses_assessment_hand_type():
    resolver = LateralityResolver(assessment_hand_type="LEFT", verbose=False)
    lock = resolver.resolve(make_hand(), None)
    assert lock.hand_type == HandType.LEFT
    assert lock.source == LockSource.ASSESSMENT
    assert lock.elbow_locked is False
    assert resolver.state == LockState.LOCKED


def test_no_information_defaults_to_right():
    resolver = LateralityResolver(verbose=False)
    lock = resolver.resolve(make_hand(), None)
    assert lock.hand_type == HandType.RIGHT
    assert lock.source == LockSource.DEFAULT


def test_empty_frame_does_not_lock():
    resolver = LateralityResolver(assessment_hand_type="LEFT", verbose=False)
    lock = resolver.resolve(None, None)
    assert lock.hand_type == HandType.LEFT
    assert resolver.state == LockState.UNLOCKED

    lock = resolver.resolve(make_hand(), make_pose("RIGHT"))
    assert lock.hand_type == HandType.RIGHT
    assert resolver.state == LockState.LOCKED


def test_lock_is_idempotent():
    """once locked, conflicting frames never change the side."""
    resolver = LateralityResolver(verbose=False)
    first = resolver.resolve(make_hand(), make_pose("RIGHT"))
    for side in ("LEFT", "RIGHT", "LEFT"):
        for vis in (0.05, 0.5, 0.99):
            lock = resolver.resolve(make_hand(theta_deg=30), make_pose(side, elbow_vis=vis, other_elbow_vis=0.01))
            assert lock == first
    assert resolver.resolve(None, None) == first


def test_reset_unlocks():
    resolver = LateralityResolver(verbose=False)
    resolver.resolve(make_hand(), make_pose("RIGHT"))
    resolver.reset()
    assert resolver.state == LockState.UNLOCKED
    assert resolver.resolve(make_hand(), make_pose("LEFT")).hand_type == HandType.LEFT


def test_context_from_frame_metadata():
    lock = LateralityLock.for_hand("LEFT")
    frame = stamp_frame(0.5, make_hand(), make_pose("RIGHT"), lock)
    assert frame.session_hand_type == "LEFT"
    assert frame.session_elbow_index == 13

    context = SessionContext.from_frame(frame)
    assert context.hand_type == HandType.LEFT
    assert context.is_left
    assert context.lock.indices == (11, 13, 15)


def test_context_from_frame_without_metadata_defaults_to_right():
    frame = RecordedFrame(timestamp=0.0, hand=make_hand(), pose=PoseFrame([]))
    context = SessionContext.from_frame(frame)
    assert context.hand_type == HandType.RIGHT
    assert context.lock.elbow_index == 14
    assert context.lock.elbow_locked is False
