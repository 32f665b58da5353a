"""Movement quality and shot classification from pose sequences."""

from ttclub.analysis.movement_quality import (
    MovementAnalysis,
    MovementQualityAnalyzer,
    analyze_ball_machine_session,
    consistency_band,
)
from ttclub.analysis.shot_classifier import (
    ShotAnalysis,
    ShotClassifier,
    build_shot_labels,
    classify_shots,
)

__all__ = [
    "MovementAnalysis",
    "MovementQualityAnalyzer",
    "ShotAnalysis",
    "ShotClassifier",
    "analyze_ball_machine_session",
    "build_shot_labels",
    "classify_shots",
    "consistency_band",
]
