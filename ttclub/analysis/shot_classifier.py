"""Rule-based table tennis shot classification from pose sequences.

Strokes are found as bursts of dominant-wrist speed. Each stroke is then
classified by:
1. Side: wrist position relative to the shoulder midpoint (forehand/backhand).
2. Type: vertical wrist trajectory around the stroke (topspin/push/block).
3. Serve: an upward toss of the free hand just before the stroke.
"""

import logging
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ttclub.pose.frames import (
    PlayerFrame,
    detect_dominant_side,
    extract_player_frames,
    get_landmark,
    is_visible,
    parse_frames,
)
from ttclub.pose.landmarks import SIDES, PoseLandmark, opposite_side, wrist_index
from ttclub.utils.config import section_value
from ttclub.utils.geometry import euclidean_distance, midpoint, round_half_up

logger = logging.getLogger(__name__)

SHOT_SIDES = ("forehand", "backhand")
SHOT_TYPES = ("topspin", "push", "block", "serve")

SHOT_LABELS: Dict[str, str] = {
    "forehand_serve": "VH Aufschlag",
    "backhand_serve": "RH Aufschlag",
    "forehand_topspin": "VH Topspin",
    "backhand_topspin": "RH Topspin",
    "forehand_push": "VH Schupf",
    "backhand_push": "RH Schupf",
    "forehand_block": "VH Block",
    "backhand_block": "RH Block",
}

# Stroke type thresholds in normalized units (before body scaling)
TOPSPIN_VERTICAL_THRESHOLD = 0.02
TOPSPIN_AMPLITUDE_THRESHOLD = 0.03
BLOCK_AMPLITUDE_THRESHOLD = 0.02
BLOCK_MAX_STROKE_FRAMES = 3
PUSH_AMPLITUDE_THRESHOLD = 0.04

# Frames inspected before/after the stroke anchor
TYPE_WINDOW_FRAMES = 2
SERVE_WINDOW_FRAMES = 5

PROBABLE_CONFIDENCE = 0.7


@dataclass
class StrokeEvent:
    """A burst of wrist speed, anchored at its fastest frame."""

    frame_index: int
    timestamp_seconds: float
    speed: float
    stroke_frames: int
    confidence: float


@dataclass
class ShotEvent:
    """A classified shot."""

    timestamp_seconds: float
    frame_index: int
    shot_type: str  # "{side}_{type}", e.g. "forehand_topspin"
    side: str
    type: str
    confidence: float
    wrist_speed: float

    @property
    def label(self) -> str:
        return SHOT_LABELS.get(self.shot_type, self.shot_type)


@dataclass
class ShotStats:
    total_shots: int
    shot_type_counts: Dict[str, int]
    side_distribution: Dict[str, int]
    type_distribution: Dict[str, int]
    avg_confidence: int  # 0-100


@dataclass
class ShotMeta:
    dominant_side: str
    hand_source: str  # "profile" or "auto"
    body_scale: float
    stroke_speed_threshold: float


@dataclass
class ShotAnalysis:
    """Result of a shot classification run."""

    shots: List[ShotEvent] = field(default_factory=list)
    stats: Optional[ShotStats] = None
    meta: Optional[ShotMeta] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ShotClassifier:
    """Detect and classify strokes of one player."""

    def __init__(
        self,
        body_index: Optional[int] = None,
        min_frames: Optional[int] = None,
        stroke_speed_threshold: Optional[float] = None,
        lookahead_frames: Optional[int] = None,
        continuation_ratio: Optional[float] = None,
        min_stroke_frames: Optional[int] = None,
        cooldown_frames: Optional[int] = None,
        serve_toss_threshold: Optional[float] = None,
        min_visibility: Optional[float] = None,
        min_confidence: Optional[float] = None,
        scale_to_body: Optional[bool] = None,
    ):
        """Initialize shot classifier.

        Arguments left as None are read from the ``shot_classifier`` section
        of the analysis config.

        Args:
            body_index: Which detected body to analyze.
            min_frames: Minimum usable frames before classification.
            stroke_speed_threshold: Wrist displacement per frame that starts a stroke.
            lookahead_frames: Frames after the trigger that may extend a stroke.
            continuation_ratio: Fraction of the threshold that keeps a stroke going.
            min_stroke_frames: Frames (trigger included) a stroke must last.
            cooldown_frames: Frames skipped after a stroke before detecting the next.
            serve_toss_threshold: Upward free-hand movement that marks a serve.
            min_visibility: Landmark visibility needed to count.
            min_confidence: Strokes below this confidence are dropped.
            scale_to_body: Scale thresholds by the player's shoulder width.
        """
        section = "shot_classifier"

        self.body_index = section_value(section, "body_index", body_index, 0)
        self.min_frames = section_value(section, "min_frames", min_frames, 5)
        self.stroke_speed_threshold = section_value(
            section, "stroke_speed_threshold", stroke_speed_threshold, 0.015
        )
        self.lookahead_frames = section_value(section, "lookahead_frames", lookahead_frames, 5)
        self.continuation_ratio = section_value(
            section, "continuation_ratio", continuation_ratio, 0.5
        )
        self.min_stroke_frames = section_value(section, "min_stroke_frames", min_stroke_frames, 2)
        self.cooldown_frames = section_value(section, "cooldown_frames", cooldown_frames, 3)
        self.serve_toss_threshold = section_value(
            section, "serve_toss_threshold", serve_toss_threshold, 0.03
        )
        self.min_visibility = section_value(section, "min_visibility", min_visibility, 0.3)
        self.min_confidence = section_value(section, "min_confidence", min_confidence, 0.0)
        self.scale_to_body = section_value(section, "scale_to_body", scale_to_body, False)
        self.reference_shoulder_width = section_value(
            section, "reference_shoulder_width", None, 0.15
        )

    def classify(
        self,
        frames: Sequence[Any],
        dominant_hand: Optional[str] = None,
    ) -> ShotAnalysis:
        """Detect and classify all shots in a recording.

        Args:
            frames: Frames (or stored frame records) of one recording.
            dominant_hand: Playing hand from the player profile ('left' or
                'right'); detected from wrist activity when None.

        Returns:
            ShotAnalysis; empty (no shots, no stats) with too few usable frames.

        Raises:
            ValueError: If dominant_hand is not 'left', 'right' or None.
        """
        if dominant_hand is not None and dominant_hand not in SIDES:
            raise ValueError(f"dominant_hand must be 'left' or 'right', got {dominant_hand!r}")

        frame_list = parse_frames(frames)
        if len(frame_list) < self.min_frames:
            logger.debug(f"Shot classification skipped: {len(frame_list)} frames")
            return ShotAnalysis()

        player_frames = extract_player_frames(frame_list, self.body_index)
        if len(player_frames) < self.min_frames:
            logger.debug(
                f"Shot classification skipped: {len(player_frames)} frames "
                f"with body {self.body_index}"
            )
            return ShotAnalysis()

        body_scale = self.compute_body_scale(player_frames) if self.scale_to_body else 1.0

        if dominant_hand is not None:
            dominant_side, hand_source = dominant_hand, "profile"
        else:
            dominant_side = detect_dominant_side(player_frames, self.min_visibility)
            hand_source = "auto"

        speed_threshold = self.stroke_speed_threshold * body_scale
        toss_threshold = self.serve_toss_threshold * body_scale

        events = self.detect_stroke_events(player_frames, dominant_side, speed_threshold)

        shots = []
        for event in events:
            if event.confidence < self.min_confidence:
                continue

            side = self.classify_side(event, player_frames, dominant_side)
            if self.detect_serve(event, player_frames, dominant_side, toss_threshold):
                stroke_type = "serve"
            else:
                stroke_type = self.classify_shot_type(
                    event, player_frames, dominant_side, body_scale
                )

            shots.append(
                ShotEvent(
                    timestamp_seconds=event.timestamp_seconds,
                    frame_index=event.frame_index,
                    shot_type=f"{side}_{stroke_type}",
                    side=side,
                    type=stroke_type,
                    confidence=event.confidence,
                    wrist_speed=event.speed,
                )
            )

        stats = self.compute_stats(shots)
        meta = ShotMeta(
            dominant_side=dominant_side,
            hand_source=hand_source,
            body_scale=round(body_scale, 2),
            stroke_speed_threshold=round(speed_threshold, 4),
        )

        logger.info(
            f"Shot classification: {len(shots)} shot(s), {dominant_side}-handed ({hand_source})"
        )

        return ShotAnalysis(shots=shots, stats=stats, meta=meta)

    def compute_body_scale(self, player_frames: Sequence[PlayerFrame]) -> float:
        """Estimate body size relative to an adult at reference distance.

        Children and players far from the camera move less in normalized
        coordinates. Averages shoulder width over about ten sampled frames.

        Returns:
            Scale factor clamped to 0.5-2.0 (1.0 without usable shoulders).
        """
        widths = []
        step = max(1, len(player_frames) // 10)
        for frame in player_frames[::step]:
            ls = get_landmark(frame.landmarks, PoseLandmark.LEFT_SHOULDER)
            rs = get_landmark(frame.landmarks, PoseLandmark.RIGHT_SHOULDER)
            if is_visible(ls, self.min_visibility) and is_visible(rs, self.min_visibility):
                widths.append(abs(rs.x - ls.x))

        if not widths:
            return 1.0

        return float(np.clip(np.mean(widths) / self.reference_shoulder_width, 0.5, 2.0))

    def _wrist_speed(
        self,
        player_frames: Sequence[PlayerFrame],
        index: int,
        wrist_idx: int,
    ) -> Optional[float]:
        """Wrist displacement from frame ``index - 1`` to ``index``, None if not visible."""
        prev = get_landmark(player_frames[index - 1].landmarks, wrist_idx)
        curr = get_landmark(player_frames[index].landmarks, wrist_idx)
        if not is_visible(prev, self.min_visibility) or not is_visible(curr, self.min_visibility):
            return None
        return euclidean_distance(prev.xy, curr.xy)

    def detect_stroke_events(
        self,
        player_frames: Sequence[PlayerFrame],
        dominant_side: str,
        speed_threshold: float,
    ) -> List[StrokeEvent]:
        """Find bursts of dominant-wrist speed.

        A stroke starts when wrist speed reaches ``speed_threshold`` and
        continues for up to ``lookahead_frames`` frames while speed stays at or
        above ``continuation_ratio`` of the threshold. After an accepted stroke
        the next ``cooldown_frames`` frames are skipped.

        Returns:
            Stroke events anchored at their peak-speed frame.
        """
        wrist_idx = wrist_index(dominant_side)
        continuation = speed_threshold * self.continuation_ratio
        n = len(player_frames)

        events = []
        i = 1
        while i < n:
            speed = self._wrist_speed(player_frames, i, wrist_idx)
            if speed is None or speed < speed_threshold:
                i += 1
                continue

            peak_speed, peak_idx = speed, i
            stroke_frames = 1
            last_idx = i

            for j in range(i + 1, min(i + 1 + self.lookahead_frames, n)):
                next_speed = self._wrist_speed(player_frames, j, wrist_idx)
                if next_speed is None or next_speed < continuation:
                    break
                stroke_frames += 1
                last_idx = j
                if next_speed > peak_speed:
                    peak_speed, peak_idx = next_speed, j

            if stroke_frames < self.min_stroke_frames:
                i += 1
                continue

            confidence = min(1.0, peak_speed / (speed_threshold * 3))

            events.append(
                StrokeEvent(
                    frame_index=peak_idx,
                    timestamp_seconds=player_frames[peak_idx].timestamp_seconds,
                    speed=peak_speed,
                    stroke_frames=stroke_frames,
                    confidence=round(confidence, 2),
                )
            )

            i = last_idx + 1 + self.cooldown_frames

        return events

    def classify_side(
        self,
        event: StrokeEvent,
        player_frames: Sequence[PlayerFrame],
        dominant_side: str,
    ) -> str:
        """Forehand when the playing wrist is on its own side of the body.

        Defaults to forehand when shoulders or wrist are not visible.
        """
        landmarks = player_frames[event.frame_index].landmarks
        ls = get_landmark(landmarks, PoseLandmark.LEFT_SHOULDER)
        rs = get_landmark(landmarks, PoseLandmark.RIGHT_SHOULDER)
        wrist = get_landmark(landmarks, wrist_index(dominant_side))

        if not (
            is_visible(ls, self.min_visibility)
            and is_visible(rs, self.min_visibility)
            and is_visible(wrist, self.min_visibility)
        ):
            return "forehand"

        center_x, _ = midpoint(ls.xy, rs.xy)

        if dominant_side == "right":
            return "forehand" if wrist.x > center_x else "backhand"
        return "forehand" if wrist.x < center_x else "backhand"

    def classify_shot_type(
        self,
        event: StrokeEvent,
        player_frames: Sequence[PlayerFrame],
        dominant_side: str,
        body_scale: float = 1.0,
    ) -> str:
        """Classify topspin, push or block from the wrist's vertical path.

        Looks at the wrist two frames before and after the anchor. Falls back
        to topspin, the most common stroke.
        """
        idx = event.frame_index
        wrist_idx = wrist_index(dominant_side)

        wrist_at = get_landmark(player_frames[idx].landmarks, wrist_idx)
        if not is_visible(wrist_at, self.min_visibility):
            return "topspin"

        vertical_movement = 0.0  # positive = upwards
        amplitude = 0.0

        if idx >= TYPE_WINDOW_FRAMES:
            before = get_landmark(player_frames[idx - TYPE_WINDOW_FRAMES].landmarks, wrist_idx)
            if is_visible(before, self.min_visibility):
                vertical_movement = before.y - wrist_at.y
                amplitude += abs(before.y - wrist_at.y)

        if idx + TYPE_WINDOW_FRAMES < len(player_frames):
            after = get_landmark(player_frames[idx + TYPE_WINDOW_FRAMES].landmarks, wrist_idx)
            if is_visible(after, self.min_visibility):
                amplitude += abs(wrist_at.y - after.y)

        if (
            vertical_movement > TOPSPIN_VERTICAL_THRESHOLD * body_scale
            and amplitude > TOPSPIN_AMPLITUDE_THRESHOLD * body_scale
        ):
            return "topspin"

        if (
            amplitude < BLOCK_AMPLITUDE_THRESHOLD * body_scale
            and event.stroke_frames <= BLOCK_MAX_STROKE_FRAMES
        ):
            return "block"

        if amplitude < PUSH_AMPLITUDE_THRESHOLD * body_scale:
            return "push"

        return "topspin"

    def detect_serve(
        self,
        event: StrokeEvent,
        player_frames: Sequence[PlayerFrame],
        dominant_side: str,
        toss_threshold: float,
    ) -> bool:
        """Whether the free hand tossed a ball right before the stroke."""
        idx = event.frame_index
        free_wrist = wrist_index(opposite_side(dominant_side))

        check_start = max(0, idx - SERVE_WINDOW_FRAMES)
        check_end = max(0, idx - 1)

        max_upward = 0.0
        for i in range(check_start + 1, check_end + 1):
            prev = get_landmark(player_frames[i - 1].landmarks, free_wrist)
            curr = get_landmark(player_frames[i].landmarks, free_wrist)
            if not is_visible(prev, self.min_visibility) or not is_visible(curr, self.min_visibility):
                continue

            # Image y grows downwards
            max_upward = max(max_upward, prev.y - curr.y)

        return max_upward >= toss_threshold

    @staticmethod
    def compute_stats(shots: Sequence[ShotEvent]) -> Optional[ShotStats]:
        """Tally shots per label, side and type."""
        if not shots:
            return None

        side_distribution = {side: 0 for side in SHOT_SIDES}
        type_distribution = {stroke: 0 for stroke in SHOT_TYPES}
        for shot in shots:
            side_distribution[shot.side] += 1
            type_distribution[shot.type] += 1

        avg_confidence = sum(shot.confidence for shot in shots) / len(shots)

        return ShotStats(
            total_shots=len(shots),
            shot_type_counts=dict(Counter(shot.shot_type for shot in shots)),
            side_distribution=side_distribution,
            type_distribution=type_distribution,
            avg_confidence=round_half_up(avg_confidence * 100),
        )


def classify_shots(
    frames: Sequence[Any],
    body_index: int = 0,
    dominant_hand: Optional[str] = None,
) -> ShotAnalysis:
    """Classify shots with the configured defaults.

    Args:
        frames: Frames (or stored frame records) of one recording.
        body_index: Which detected body to analyze.
        dominant_hand: Playing hand from the player profile, if known.

    Returns:
        ShotAnalysis.
    """
    return ShotClassifier(body_index=body_index).classify(frames, dominant_hand=dominant_hand)


def build_shot_labels(
    shots: Sequence[ShotEvent],
    video_id: str,
    labeled_by: str,
    club_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Turn classified shots into video label rows for review by a coach.

    Args:
        shots: Classified shots.
        video_id: Video the shots belong to.
        labeled_by: User the labels are attributed to.
        club_id: Club of the video, if any.

    Returns:
        One label row per shot.
    """
    return [
        {
            "video_id": video_id,
            "labeled_by": labeled_by,
            "club_id": club_id,
            "timestamp_start": shot.timestamp_seconds,
            "timestamp_end": None,
            "event_type": "shot",
            "shot_type": shot.shot_type,
            "player_position": "unknown",
            "confidence": "probable" if shot.confidence >= PROBABLE_CONFIDENCE else "uncertain",
            "notes": f"AI-detected (speed: {shot.wrist_speed:.3f})",
            "is_verified": False,
        }
        for shot in shots
    ]
