"""
wraps mediapipe hand + pose landmarkers to produce HandFrame / PoseFrame per camera frame.

uses the mediapipe tasks api in VIDEO mode. both models need their .task
files (hand_landmarker.task, pose_landmarker_*.task) on disk.
"""

from __future__ import annotations

from typing import Optional, Tuple

import cv2
import mediapipe as mp
import numpy as np

from .landmarks import HandFrame, PoseFrame

BaseOptions = mp.tasks.BaseOptions
HandLandmarker = mp.tasks.vision.HandLandmarker
HandLandmarkerOptions = mp.tasks.vision.HandLandmarkerOptions
PoseLandmarker = mp.tasks.vision.PoseLandmarker
PoseLandmarkerOptions = mp.tasks.vision.PoseLandmarkerOptions
RunningMode = mp.tasks.vision.RunningMode


# ============================================================
# tracker configuration
# ============================================================

DEFAULT_HAND_MODEL = "models/hand_landmarker.task"
DEFAULT_POSE_MODEL = "models/pose_landmarker_full.task"
MIN_DETECTION_CONFIDENCE = 0.3  # lowered for better detection
MIN_TRACKING_CONFIDENCE = 0.3   # lowered for stability


class LandmarkTracker:
    """
    one hand + one body per frame.

    usage:
      with LandmarkTracker(hand_model, pose_model) as tracker:
          hand, pose = tracker.process(frame_bgr, timestamp_ms)
    """

    def __init__(
        self,
        hand_model_path: str = DEFAULT_HAND_MODEL,
        pose_model_path: Optional[str] = DEFAULT_POSE_MODEL,
        min_detection_confidence: float = MIN_DETECTION_CONFIDENCE,
        min_tracking_confidence: float = MIN_TRACKING_CONFIDENCE,
    ):
        hand_options = HandLandmarkerOptions(
            base_options=BaseOptions(model_asset_path=hand_model_path),
            running_mode=RunningMode.VIDEO,
            num_hands=1,
            min_hand_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        self._hands = HandLandmarker.create_from_options(hand_options)

        self._pose = None
        if pose_model_path:
            pose_options = PoseLandmarkerOptions(
                base_options=BaseOptions(model_asset_path=pose_model_path),
                running_mode=RunningMode.VIDEO,
                num_poses=1,
                min_pose_detection_confidence=min_detection_confidence,
                min_tracking_confidence=min_tracking_confidence,
            )
            self._pose = PoseLandmarker.create_from_options(pose_options)

    def process(self, frame_bgr: np.ndarray, timestamp_ms: int) -> Tuple[Optional[HandFrame], Optional[PoseFrame]]:
        """
        run both landmarkers on one bgr frame.

        args:
          frame_bgr: opencv frame
          timestamp_ms: monotonically increasing frame time

        returns:
          (hand or None, pose or None)
        """
        if frame_bgr is None or frame_bgr.size == 0:
            return None, None

        # mediapipe expects rgb, opencv gives bgr
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        hand = None
        hand_result = self._hands.detect_for_video(image, int(timestamp_ms))
        if hand_result.hand_landmarks:
            label, score = "UNKNOWN", 0.0
            if hand_result.handedness:
                category = hand_result.handedness[0][0]
                label, score = category.category_name, float(category.score)
            hand = HandFrame.from_points(hand_result.hand_landmarks[0], handedness=label, quality=score)

        pose = None
        if self._pose is not None:
            pose_result = self._pose.detect_for_video(image, int(timestamp_ms))
            if pose_result.pose_landmarks:
                pose = PoseFrame.from_points(pose_result.pose_landmarks[0])

        return hand, pose

    def close(self):
        self._hands.close()
        if self._pose is not None:
            self._pose.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
