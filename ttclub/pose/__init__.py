"""Pose landmark vocabulary, frame model and pose comparison."""

from ttclub.pose.comparison import PoseComparator, PoseComparison, PoseDeviation, compare_poses
from ttclub.pose.frames import (
    Frame,
    Landmark,
    PlayerFrame,
    PoseBody,
    detect_dominant_side,
    extract_player_frames,
    is_visible,
    load_frames_json,
    parse_frames,
)
from ttclub.pose.landmarks import NUM_LANDMARKS, PoseLandmark

__all__ = [
    "Frame",
    "Landmark",
    "PlayerFrame",
    "PoseBody",
    "PoseLandmark",
    "NUM_LANDMARKS",
    "PoseComparator",
    "PoseComparison",
    "PoseDeviation",
    "compare_poses",
    "detect_dominant_side",
    "extract_player_frames",
    "is_visible",
    "load_frames_json",
    "parse_frames",
]
