"""Landmark-by-landmark comparison of two poses."""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Sequence

from ttclub.pose.frames import Landmark, get_landmark, is_visible
from ttclub.pose.landmarks import LANDMARK_TO_GROUP, STROKE_KEYPOINTS
from ttclub.utils.config import section_value
from ttclub.utils.geometry import distance_to_similarity, euclidean_distance, round_half_up


@dataclass
class PoseDeviation:
    """Positional offset of one landmark against the reference pose."""

    landmark: int
    group: str
    distance: float
    direction: Dict[str, float]  # {"x": dx, "y": dy}, pose minus reference


@dataclass
class PoseComparison:
    """Result of comparing a pose to a reference pose."""

    similarity: int  # 0..100
    compared_landmarks: int
    deviations: List[PoseDeviation] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class PoseComparator:
    """Compare poses over the stroke-relevant keypoints."""

    def __init__(
        self,
        min_visibility: Optional[float] = None,
        deviation_threshold: Optional[float] = None,
        max_distance: Optional[float] = None,
        keypoints: Optional[Sequence[int]] = None,
    ):
        """Initialize pose comparator.

        Args:
            min_visibility: Visibility both landmarks need to be compared.
            deviation_threshold: Distance above which a landmark is reported.
            max_distance: Distance that maps to zero similarity.
            keypoints: Landmark indices to compare (default: stroke keypoints).
        """
        section = "pose_comparison"

        self.min_visibility = section_value(section, "min_visibility", min_visibility, 0.3)
        self.deviation_threshold = section_value(
            section, "deviation_threshold", deviation_threshold, 0.05
        )
        self.max_distance = section_value(section, "max_distance", max_distance, 0.3)
        self.keypoints = [int(k) for k in (keypoints or STROKE_KEYPOINTS)]

    def compare(
        self,
        pose: Sequence[Optional[Landmark]],
        reference: Sequence[Optional[Landmark]],
    ) -> PoseComparison:
        """Compare ``pose`` against ``reference``.

        Args:
            pose: Landmarks of the pose under test.
            reference: Landmarks of the reference pose.

        Returns:
            PoseComparison with similarity score and deviations sorted by
            distance (largest first).
        """
        similarity = 0.0
        count = 0
        deviations = []

        for idx in self.keypoints:
            p = get_landmark(pose, idx)
            r = get_landmark(reference, idx)
            if not is_visible(p, self.min_visibility) or not is_visible(r, self.min_visibility):
                continue

            distance = euclidean_distance(p.xy, r.xy)
            similarity += distance_to_similarity(distance, self.max_distance)
            count += 1

            if distance > self.deviation_threshold:
                deviations.append(
                    PoseDeviation(
                        landmark=idx,
                        group=LANDMARK_TO_GROUP.get(idx, "other"),
                        distance=distance,
                        direction={"x": p.x - r.x, "y": p.y - r.y},
                    )
                )

        deviations.sort(key=lambda d: d.distance, reverse=True)
        score = round_half_up(similarity / count * 100) if count > 0 else 0

        return PoseComparison(similarity=score, compared_landmarks=count, deviations=deviations)


def compare_poses(
    pose: Sequence[Optional[Landmark]],
    reference: Sequence[Optional[Landmark]],
    **kwargs,
) -> PoseComparison:
    """Compare two poses with a default-configured :class:`PoseComparator`."""
    return PoseComparator(**kwargs).compare(pose, reference)
