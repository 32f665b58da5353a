"""Movement quality analysis for ball-bucket (multiball) training.

Detects stroke repetitions from the dominant wrist's vertical trajectory,
scores every repetition against a reference pose averaged from the first
repetitions, and tracks how consistency develops over the session:
- Repetition detection (smoothed wrist height, trough prominence)
- Reference pose and consistency scoring (0-100)
- Per-repetition deviations with readable descriptions
- Fatigue curve and session summary

Short or noisy clips are an expected input: every stage degrades to an empty
result instead of raising.
"""

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ttclub.pose.frames import (
    Landmark,
    PlayerFrame,
    detect_dominant_side,
    extract_player_frames,
    get_landmark,
    is_visible,
    parse_frames,
)
from ttclub.pose.landmarks import DEVIATION_CHECKPOINTS, STROKE_KEYPOINTS, wrist_index
from ttclub.utils.config import section_value
from ttclub.utils.geometry import distance_to_similarity, euclidean_distance, round_half_up
from ttclub.utils.smoothing import find_troughs, moving_average, window_bounds

logger = logging.getLogger(__name__)

# Wrist height assumed when the landmark is missing (frame centre)
MISSING_WRIST_Y = 0.5


@dataclass
class DeviationRecord:
    """One axis on which a landmark is off compared to the reference."""

    landmark_name: str
    direction: str  # "tiefer", "höher", "weiter rechts", "weiter links"
    amount: float
    description: str


@dataclass
class Repetition:
    """A single detected stroke repetition, anchored at the wrist's highest point."""

    timestamp_seconds: float
    frame_index: int
    peak_pose: List[Optional[Landmark]]
    dominant_side: str
    index: Optional[int] = None
    consistency_score: Optional[int] = None
    deviations: List[DeviationRecord] = field(default_factory=list)


@dataclass
class FatiguePoint:
    """Smoothed consistency at one repetition and its change from the start."""

    index: int
    timestamp_seconds: float
    score: int
    trend: int


@dataclass
class CommonDeviation:
    description: str
    frequency: int  # % of repetitions showing it


@dataclass
class MovementSummary:
    total_repetitions: int
    average_consistency: int
    best_score: int
    worst_score: int
    fatigue_detected: bool
    common_deviations: List[CommonDeviation] = field(default_factory=list)


@dataclass
class MovementAnalysis:
    """Full result of a movement quality analysis run."""

    repetitions: List[Repetition] = field(default_factory=list)
    summary: Optional[MovementSummary] = None
    fatigue_curve: List[FatiguePoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MovementQualityAnalyzer:
    """Analyze repetition consistency and fatigue in a repetitive stroke drill."""

    def __init__(
        self,
        body_index: Optional[int] = None,
        min_frames: Optional[int] = None,
        min_repetitions: Optional[int] = None,
        smoothing_window: Optional[int] = None,
        min_prominence: Optional[float] = None,
        reference_repetitions: Optional[int] = None,
        min_visibility: Optional[float] = None,
        max_distance: Optional[float] = None,
        deviation_threshold: Optional[float] = None,
        max_deviations: Optional[int] = None,
        fatigue_window: Optional[int] = None,
        fatigue_trend_threshold: Optional[float] = None,
    ):
        """Initialize movement quality analyzer.

        Arguments left as None are read from the ``movement_quality`` section
        of the analysis config.

        Args:
            body_index: Which detected body to analyze.
            min_frames: Minimum usable frames before analysis is attempted.
            min_repetitions: Repetitions needed before scoring.
            smoothing_window: Moving average window for the wrist signal.
            min_prominence: Minimum trough prominence (normalized units).
            reference_repetitions: Repetitions averaged into the reference pose.
            min_visibility: Landmark visibility needed to count.
            max_distance: Distance that maps to zero similarity.
            deviation_threshold: Per-axis offset that is reported as deviation.
            max_deviations: Deviations kept per repetition.
            fatigue_window: Window size of the fatigue curve.
            fatigue_trend_threshold: Final trend below which fatigue is flagged.
        """
        section = "movement_quality"

        self.body_index = section_value(section, "body_index", body_index, 0)
        self.min_frames = section_value(section, "min_frames", min_frames, 5)
        self.min_repetitions = section_value(section, "min_repetitions", min_repetitions, 2)
        self.smoothing_window = section_value(section, "smoothing_window", smoothing_window, 3)
        self.min_prominence = section_value(section, "min_prominence", min_prominence, 0.02)
        self.reference_repetitions = section_value(
            section, "reference_repetitions", reference_repetitions, 3
        )
        self.min_visibility = section_value(section, "min_visibility", min_visibility, 0.3)
        self.max_distance = section_value(section, "max_distance", max_distance, 0.3)
        self.deviation_threshold = section_value(
            section, "deviation_threshold", deviation_threshold, 0.04
        )
        self.max_deviations = section_value(section, "max_deviations", max_deviations, 5)
        self.fatigue_window = section_value(section, "fatigue_window", fatigue_window, 3)
        self.fatigue_trend_threshold = section_value(
            section, "fatigue_trend_threshold", fatigue_trend_threshold, -10
        )
        self.fatigue_baseline = section_value(section, "fatigue_baseline_repetitions", None, 3)
        self.min_fatigue_points = section_value(section, "min_fatigue_points", None, 4)
        self.common_deviation_count = section_value(section, "common_deviations", None, 3)

    def analyze(self, frames: Sequence[Any]) -> MovementAnalysis:
        """Analyze a ball-bucket training session.

        Args:
            frames: Frames (or stored frame records) of one recording.

        Returns:
            MovementAnalysis. Empty when there are too few usable frames;
            unscored repetitions without summary when fewer than
            ``min_repetitions`` repetitions were found.
        """
        frame_list = parse_frames(frames)
        if len(frame_list) < self.min_frames:
            logger.debug(f"Movement analysis skipped: {len(frame_list)} frames")
            return MovementAnalysis()

        player_frames = extract_player_frames(frame_list, self.body_index)
        if len(player_frames) < self.min_frames:
            logger.debug(
                f"Movement analysis skipped: {len(player_frames)} frames "
                f"with body {self.body_index}"
            )
            return MovementAnalysis()

        repetitions = self.detect_repetitions(player_frames)
        if len(repetitions) < self.min_repetitions:
            logger.debug(f"Only {len(repetitions)} repetition(s) detected, not scoring")
            return MovementAnalysis(repetitions=repetitions)

        reference_count = min(self.reference_repetitions, len(repetitions))
        reference_pose = self.compute_reference_pose(repetitions[:reference_count])

        scored = [
            replace(
                rep,
                index=idx,
                consistency_score=self.compute_consistency_score(rep.peak_pose, reference_pose),
                deviations=self.identify_deviations(rep.peak_pose, reference_pose),
            )
            for idx, rep in enumerate(repetitions)
        ]

        fatigue_curve = self.compute_fatigue_curve(scored)
        summary = self.summarize(scored, fatigue_curve)

        logger.info(
            f"Movement analysis: {summary.total_repetitions} repetitions, "
            f"average consistency {summary.average_consistency}%"
        )

        return MovementAnalysis(repetitions=scored, summary=summary, fatigue_curve=fatigue_curve)

    def detect_repetitions(self, player_frames: Sequence[PlayerFrame]) -> List[Repetition]:
        """Detect repetitions from the dominant wrist's height.

        The wrist is highest at the troughs of its y coordinate, since image y
        grows downwards.

        Args:
            player_frames: Frames of the analyzed player.

        Returns:
            Unscored repetitions in time order.
        """
        dominant_side = detect_dominant_side(player_frames, self.min_visibility)
        wrist_idx = wrist_index(dominant_side)

        wrist_y = []
        for frame in player_frames:
            wrist = get_landmark(frame.landmarks, wrist_idx)
            wrist_y.append(wrist.y if wrist is not None else MISSING_WRIST_Y)

        smoothed = moving_average(wrist_y, self.smoothing_window)
        peaks = find_troughs(smoothed, self.min_prominence)

        return [
            Repetition(
                timestamp_seconds=player_frames[idx].timestamp_seconds,
                frame_index=idx,
                peak_pose=list(player_frames[idx].landmarks),
                dominant_side=dominant_side,
            )
            for idx in peaks
        ]

    def compute_reference_pose(self, repetitions: Sequence[Repetition]) -> List[Landmark]:
        """Average peak poses landmark by landmark.

        Only visible landmarks enter a landmark's average. The reference
        visibility is the fraction of repetitions in which it was visible.

        Args:
            repetitions: Repetitions forming the reference.

        Returns:
            Reference pose (empty list for no repetitions).
        """
        if not repetitions:
            return []

        num_landmarks = max(len(rep.peak_pose) for rep in repetitions)
        reference = []

        for i in range(num_landmarks):
            visible = [
                lm
                for lm in (get_landmark(rep.peak_pose, i) for rep in repetitions)
                if is_visible(lm, self.min_visibility)
            ]
            if visible:
                coords = np.array([[lm.x, lm.y, lm.z] for lm in visible])
                mean_x, mean_y, mean_z = coords.mean(axis=0)
            else:
                mean_x = mean_y = mean_z = 0.0

            reference.append(
                Landmark(
                    x=float(mean_x),
                    y=float(mean_y),
                    z=float(mean_z),
                    visibility=len(visible) / len(repetitions),
                )
            )

        return reference

    def compute_consistency_score(
        self,
        pose: Sequence[Optional[Landmark]],
        reference: Sequence[Optional[Landmark]],
    ) -> int:
        """Score a pose against the reference.

        Returns:
            0-100 (100 = identical over the stroke keypoints), 0 when no
            landmark could be compared.
        """
        if not pose or not reference:
            return 0

        similarity = 0.0
        count = 0

        for idx in STROKE_KEYPOINTS:
            p = get_landmark(pose, idx)
            r = get_landmark(reference, idx)
            if not is_visible(p, self.min_visibility) or not is_visible(r, self.min_visibility):
                continue

            distance = euclidean_distance(p.xy, r.xy)
            similarity += distance_to_similarity(distance, self.max_distance)
            count += 1

        return round_half_up(similarity / count * 100) if count > 0 else 0

    def identify_deviations(
        self,
        pose: Sequence[Optional[Landmark]],
        reference: Sequence[Optional[Landmark]],
    ) -> List[DeviationRecord]:
        """List the largest per-axis deviations from the reference.

        Returns:
            At most ``max_deviations`` records, largest amount first.
        """
        if not pose or not reference:
            return []

        deviations = []

        for idx, name in DEVIATION_CHECKPOINTS:
            p = get_landmark(pose, idx)
            r = get_landmark(reference, idx)
            if not is_visible(p, self.min_visibility) or not is_visible(r, self.min_visibility):
                continue

            dy = p.y - r.y
            dx = p.x - r.x

            if abs(dy) > self.deviation_threshold:
                deviations.append(self._deviation(name, "tiefer" if dy > 0 else "höher", abs(dy)))

            if abs(dx) > self.deviation_threshold:
                direction = "weiter rechts" if dx > 0 else "weiter links"
                deviations.append(self._deviation(name, direction, abs(dx)))

        deviations.sort(key=lambda d: d.amount, reverse=True)

        return deviations[: self.max_deviations]

    @staticmethod
    def _deviation(name: str, direction: str, amount: float) -> DeviationRecord:
        return DeviationRecord(
            landmark_name=name,
            direction=direction,
            amount=amount,
            description=f"{name} ist {direction} als die Referenz",
        )

    def compute_fatigue_curve(self, scored: Sequence[Repetition]) -> List[FatiguePoint]:
        """Compute the windowed consistency trend over a session.

        Args:
            scored: Repetitions with consistency scores.

        Returns:
            One FatiguePoint per repetition.
        """
        if not scored:
            return []

        scores = np.array([rep.consistency_score for rep in scored], dtype=float)
        baseline_count = min(self.fatigue_baseline, len(scores))
        initial_avg = float(np.mean(scores[:baseline_count]))

        curve = []
        for i, rep in enumerate(scored):
            start, end = window_bounds(i, len(scores), self.fatigue_window)
            avg_score = float(np.mean(scores[start:end]))

            curve.append(
                FatiguePoint(
                    index=i,
                    timestamp_seconds=rep.timestamp_seconds,
                    score=round_half_up(avg_score),
                    trend=round_half_up(avg_score - initial_avg),
                )
            )

        return curve

    def summarize(
        self,
        scored: Sequence[Repetition],
        fatigue_curve: Sequence[FatiguePoint],
    ) -> MovementSummary:
        """Aggregate scored repetitions into a session summary."""
        scores = [rep.consistency_score for rep in scored]

        fatigue_detected = (
            len(fatigue_curve) >= self.min_fatigue_points
            and fatigue_curve[-1].trend < self.fatigue_trend_threshold
        )

        return MovementSummary(
            total_repetitions=len(scored),
            average_consistency=round_half_up(sum(scores) / len(scores)),
            best_score=max(scores),
            worst_score=min(scores),
            fatigue_detected=fatigue_detected,
            common_deviations=self.find_common_deviations(scored),
        )

    def find_common_deviations(self, scored: Sequence[Repetition]) -> List[CommonDeviation]:
        """Most frequent deviations across all repetitions.

        Deviations are grouped by landmark and direction; frequency is the
        share of repetitions (in %) that show the deviation.
        """
        if not scored:
            return []

        counts: Dict[Tuple[str, str], List[Any]] = {}
        for rep in scored:
            for dev in rep.deviations:
                key = (dev.landmark_name, dev.direction)
                if key not in counts:
                    counts[key] = [dev.description, 0]
                counts[key][1] += 1

        ranked = sorted(counts.values(), key=lambda item: item[1], reverse=True)

        return [
            CommonDeviation(
                description=description,
                frequency=round_half_up(count / len(scored) * 100),
            )
            for description, count in ranked[: self.common_deviation_count]
        ]


def consistency_band(score: Optional[int]) -> str:
    """Classify a consistency score as 'good' (>= 80), 'fair' (>= 50) or 'poor'."""
    if score is None:
        return "poor"
    if score >= 80:
        return "good"
    if score >= 50:
        return "fair"
    return "poor"


def analyze_ball_machine_session(frames: Sequence[Any], body_index: int = 0) -> MovementAnalysis:
    """Analyze a ball-bucket session with the configured defaults.

    Args:
        frames: Frames (or stored frame records) of one recording.
        body_index: Which detected body to analyze.

    Returns:
        MovementAnalysis.
    """
    return MovementQualityAnalyzer(body_index=body_index).analyze(frames)
