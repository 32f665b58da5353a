"""Pose frame data model and helpers shared by the analyzers.

A frame holds zero or more detected bodies, each with 33 normalized
landmarks. Analyzers work on a single body per frame ("player frames").
Malformed landmarks are represented as ``None`` and simply do not count.
"""

import json
import logging
import math
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

import numpy as np

from ttclub.pose.landmarks import PoseLandmark
from ttclub.utils.geometry import manhattan_distance

logger = logging.getLogger(__name__)

DEFAULT_MIN_VISIBILITY = 0.3


@dataclass(frozen=True)
class Landmark:
    """Single body keypoint in normalized image coordinates."""

    x: float  # 0..1, fraction of frame width
    y: float  # 0..1, fraction of frame height (grows downwards)
    z: float = 0.0  # relative depth
    visibility: float = 0.0  # 0..1 confidence

    @property
    def xy(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass
class PoseBody:
    """One detected body: an ordered list of landmarks (``None`` = unusable)."""

    landmarks: List[Optional[Landmark]] = field(default_factory=list)


@dataclass
class Frame:
    """Pose estimation output for one video frame."""

    timestamp_seconds: float
    bodies: List[PoseBody] = field(default_factory=list)


@dataclass
class PlayerFrame:
    """Landmarks of a single selected body at one point in time."""

    timestamp_seconds: float
    landmarks: List[Optional[Landmark]]


def _is_number(value: Any) -> bool:
    # numpy scalars (np.float32, np.int64) register as numbers.Real
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(float(value))


def parse_landmark(data: Any) -> Optional[Landmark]:
    """Convert a landmark record into a :class:`Landmark`.

    Args:
        data: Landmark instance or mapping with ``x``, ``y`` and optional
            ``z`` / ``visibility``.

    Returns:
        Landmark, or None if x/y are missing or not numeric.
    """
    if isinstance(data, Landmark):
        return data
    if not isinstance(data, Mapping):
        return None

    x, y = data.get("x"), data.get("y")
    if not _is_number(x) or not _is_number(y):
        return None

    z = data.get("z")
    visibility = data.get("visibility")
    return Landmark(
        x=float(x),
        y=float(y),
        z=float(z) if _is_number(z) else 0.0,
        visibility=float(visibility) if _is_number(visibility) else 0.0,
    )


def parse_body(data: Any) -> Optional[PoseBody]:
    """Convert a body record (``{"landmarks": [...]}`` or a plain list)."""
    if isinstance(data, PoseBody):
        return data
    if isinstance(data, Mapping):
        raw = data.get("landmarks")
    else:
        raw = data
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        return None
    return PoseBody(landmarks=[parse_landmark(lm) for lm in raw])


def parse_frame(data: Any) -> Optional[Frame]:
    """Convert a stored frame record into a :class:`Frame`.

    Accepts ``{"timestamp_seconds": t, "poses": [...]}``; ``bodies`` is
    accepted in place of ``poses`` and ``timestamp`` in place of
    ``timestamp_seconds``.
    """
    if isinstance(data, Frame):
        return data
    if not isinstance(data, Mapping):
        return None

    timestamp = data.get("timestamp_seconds", data.get("timestamp"))
    if not _is_number(timestamp):
        return None

    raw_bodies = data.get("poses", data.get("bodies")) or []
    if not isinstance(raw_bodies, Sequence) or isinstance(raw_bodies, (str, bytes)):
        raw_bodies = []

    bodies = []
    for raw in raw_bodies:
        body = parse_body(raw)
        # Keep positions stable: an unreadable body still occupies its index
        bodies.append(body if body is not None else PoseBody())

    return Frame(timestamp_seconds=float(timestamp), bodies=bodies)


def parse_frames(records: Any) -> List[Frame]:
    """Convert a sequence of frame records, skipping unreadable ones.

    Args:
        records: Sequence of Frame instances or stored frame mappings.

    Returns:
        List of frames in input order.
    """
    if records is None:
        return []

    frames = []
    skipped = 0
    for record in records:
        frame = parse_frame(record)
        if frame is None:
            skipped += 1
            continue
        frames.append(frame)

    if skipped:
        logger.debug(f"Skipped {skipped} malformed frame record(s)")

    return frames


def load_frames_json(path: Path | str) -> List[Frame]:
    """Load frames from a JSON file.

    The file holds either a list of frame records or an object with a
    ``frames`` list.

    Args:
        path: Path to JSON file.

    Returns:
        Parsed frames.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, Mapping):
        data = data.get("frames", [])

    return parse_frames(data)


def extract_player_frames(frames: Any, body_index: int = 0) -> List[PlayerFrame]:
    """Select one body across all frames, dropping frames without it.

    Args:
        frames: Frames or stored frame records.
        body_index: Which detected body to follow.

    Returns:
        Player frames in time order of the input.
    """
    player_frames = []
    for frame in parse_frames(frames):
        if body_index < 0 or len(frame.bodies) <= body_index:
            continue
        player_frames.append(
            PlayerFrame(
                timestamp_seconds=frame.timestamp_seconds,
                landmarks=frame.bodies[body_index].landmarks,
            )
        )
    return player_frames


def get_landmark(landmarks: Sequence[Optional[Landmark]], index: int) -> Optional[Landmark]:
    """Landmark at ``index`` or None when the body has fewer points."""
    if 0 <= index < len(landmarks):
        return landmarks[index]
    return None


def is_visible(landmark: Optional[Landmark], min_visibility: float = DEFAULT_MIN_VISIBILITY) -> bool:
    """Whether a landmark is present and confident enough to count."""
    return landmark is not None and landmark.visibility >= min_visibility


def detect_dominant_side(
    player_frames: Sequence[PlayerFrame],
    min_visibility: float = DEFAULT_MIN_VISIBILITY,
) -> str:
    """Infer the playing hand from wrist activity.

    Sums frame-to-frame L1 displacement of each wrist over pairs of frames in
    which both samples are visible. The busier wrist is dominant; ties go to
    the right hand.

    Args:
        player_frames: Frames of a single player.
        min_visibility: Visibility needed for a wrist sample to count.

    Returns:
        'left' or 'right'.
    """
    activity = {"left": 0.0, "right": 0.0}
    wrists = {"left": PoseLandmark.LEFT_WRIST, "right": PoseLandmark.RIGHT_WRIST}

    for prev, curr in zip(player_frames, player_frames[1:]):
        for side, idx in wrists.items():
            a = get_landmark(prev.landmarks, idx)
            b = get_landmark(curr.landmarks, idx)
            if is_visible(a, min_visibility) and is_visible(b, min_visibility):
                activity[side] += manhattan_distance(a.xy, b.xy)

    return "left" if activity["left"] > activity["right"] else "right"
