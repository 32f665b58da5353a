"""Pytest configuration and fixtures."""

import math

import numpy as np
import pytest

from ttclub.pose.frames import Frame, Landmark, PoseBody
from ttclub.pose.landmarks import NUM_LANDMARKS, PoseLandmark

FPS = 30.0

# Standing player facing the camera, normalized coordinates
STANDING_POSE = {
    PoseLandmark.NOSE: (0.50, 0.20),
    PoseLandmark.LEFT_SHOULDER: (0.42, 0.35),
    PoseLandmark.RIGHT_SHOULDER: (0.58, 0.35),
    PoseLandmark.LEFT_ELBOW: (0.38, 0.45),
    PoseLandmark.RIGHT_ELBOW: (0.62, 0.45),
    PoseLandmark.LEFT_WRIST: (0.36, 0.55),
    PoseLandmark.RIGHT_WRIST: (0.65, 0.55),
    PoseLandmark.LEFT_HIP: (0.45, 0.60),
    PoseLandmark.RIGHT_HIP: (0.55, 0.60),
    PoseLandmark.LEFT_KNEE: (0.45, 0.75),
    PoseLandmark.RIGHT_KNEE: (0.55, 0.75),
    PoseLandmark.LEFT_ANKLE: (0.45, 0.90),
    PoseLandmark.RIGHT_ANKLE: (0.55, 0.90),
}


def make_landmarks(overrides=None, visibility=0.9, shift_x=0.0):
    """Build a full 33-landmark pose from the standing pose plus overrides."""
    overrides = overrides or {}
    landmarks = []
    for idx in range(NUM_LANDMARKS):
        x, y = overrides.get(idx, STANDING_POSE.get(idx, (0.50, 0.20)))
        landmarks.append(Landmark(x=x + shift_x, y=y, z=0.0, visibility=visibility))
    return landmarks


def make_drill_frames(
    num_reps=6,
    frames_per_rep=10,
    amplitude=0.15,
    drift_per_rep=0.0,
    noise=0.0,
    side="right",
    seed=0,
):
    """Repetitive drill: one wrist swings up and down once per repetition.

    The wrist is highest (smallest y) in the middle of every repetition. With
    ``drift_per_rep`` the whole body moves right by that much per repetition.
    """
    rng = np.random.default_rng(seed)
    wrist = PoseLandmark.RIGHT_WRIST if side == "right" else PoseLandmark.LEFT_WRIST
    base_x = STANDING_POSE[wrist][0]

    frames = []
    for i in range(num_reps * frames_per_rep):
        wrist_y = 0.45 + amplitude * math.cos(2 * math.pi * i / frames_per_rep)
        landmarks = make_landmarks(
            {wrist: (base_x, wrist_y)},
            shift_x=drift_per_rep * (i // frames_per_rep),
        )
        if noise > 0:
            landmarks = [
                Landmark(
                    x=float(np.clip(lm.x + rng.normal(0, noise), 0, 1)),
                    y=float(np.clip(lm.y + rng.normal(0, noise), 0, 1)),
                    z=lm.z,
                    visibility=lm.visibility,
                )
                for lm in landmarks
            ]
        frames.append(Frame(timestamp_seconds=i / FPS, bodies=[PoseBody(landmarks)]))
    return frames


def make_stroke_frames(num_frames, right_steps=None, left_steps=None, right_start=(0.65, 0.55)):
    """Mostly still player whose wrists move by the given per-frame steps.

    ``right_steps`` / ``left_steps`` map a frame index to the (dx, dy) the
    wrist moved since the previous frame. Positions accumulate.
    """
    right_steps = right_steps or {}
    left_steps = left_steps or {}
    right = list(right_start)
    left = list(STANDING_POSE[PoseLandmark.LEFT_WRIST])

    frames = []
    for i in range(num_frames):
        dx, dy = right_steps.get(i, (0.0, 0.0))
        right[0] += dx
        right[1] += dy
        dx, dy = left_steps.get(i, (0.0, 0.0))
        left[0] += dx
        left[1] += dy
        landmarks = make_landmarks(
            {
                PoseLandmark.RIGHT_WRIST: tuple(right),
                PoseLandmark.LEFT_WRIST: tuple(left),
            }
        )
        frames.append(Frame(timestamp_seconds=i / FPS, bodies=[PoseBody(landmarks)]))
    return frames


def frames_to_records(frames):
    """Convert frames into the stored JSON record layout."""
    return [
        {
            "timestamp_seconds": frame.timestamp_seconds,
            "poses": [
                {
                    "landmarks": [
                        {"x": lm.x, "y": lm.y, "z": lm.z, "visibility": lm.visibility}
                        for lm in body.landmarks
                    ]
                }
                for body in frame.bodies
            ],
        }
        for frame in frames
    ]


@pytest.fixture
def standing_pose():
    """Create a standing pose with all landmarks visible.

    Returns:
        List of 33 landmarks.
    """
    return make_landmarks()


@pytest.fixture
def pose_factory():
    """Factory for poses with overridden landmark positions."""
    return make_landmarks


@pytest.fixture
def drill_frames():
    """Create a steady right-handed drill with six identical repetitions.

    Returns:
        List of 60 frames (30 fps), wrist highest at frames 5, 15, ..., 55.
    """
    return make_drill_frames()


@pytest.fixture
def drill_factory():
    """Factory for drill sessions with drift, noise or another playing hand."""
    return make_drill_frames


@pytest.fixture
def stroke_factory():
    """Factory for recordings with explicit wrist movements."""
    return make_stroke_frames


@pytest.fixture
def records_factory():
    """Converter from frames to stored frame records."""
    return frames_to_records
