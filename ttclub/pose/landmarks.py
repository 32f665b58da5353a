"""MediaPipe 33-landmark vocabulary and the groupings used by the analyzers."""

from enum import IntEnum
from typing import Dict, List, Tuple

NUM_LANDMARKS = 33


class PoseLandmark(IntEnum):
    """MediaPipe Pose landmark indices."""

    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


L = PoseLandmark

# name -> index, e.g. "left_wrist" -> 15
LANDMARK_NAMES: Dict[str, int] = {lm.name.lower(): int(lm) for lm in PoseLandmark}

# Keypoints relevant to a stroke, used for consistency scoring
STROKE_KEYPOINTS: List[PoseLandmark] = [
    L.LEFT_SHOULDER, L.RIGHT_SHOULDER,
    L.LEFT_ELBOW, L.RIGHT_ELBOW,
    L.LEFT_WRIST, L.RIGHT_WRIST,
    L.LEFT_HIP, L.RIGHT_HIP,
    L.LEFT_KNEE, L.RIGHT_KNEE,
    L.LEFT_ANKLE, L.RIGHT_ANKLE,
]

# Landmarks checked for per-axis deviations, with the names shown to players
DEVIATION_CHECKPOINTS: List[Tuple[PoseLandmark, str]] = [
    (L.LEFT_ELBOW, "Linker Ellbogen"),
    (L.RIGHT_ELBOW, "Rechter Ellbogen"),
    (L.LEFT_WRIST, "Linkes Handgelenk"),
    (L.RIGHT_WRIST, "Rechtes Handgelenk"),
    (L.LEFT_SHOULDER, "Linke Schulter"),
    (L.RIGHT_SHOULDER, "Rechte Schulter"),
    (L.LEFT_HIP, "Linke Hüfte"),
    (L.RIGHT_HIP, "Rechte Hüfte"),
    (L.LEFT_KNEE, "Linkes Knie"),
    (L.RIGHT_KNEE, "Rechtes Knie"),
]

BODY_GROUPS: Dict[str, List[PoseLandmark]] = {
    "head": [
        L.NOSE, L.LEFT_EYE_INNER, L.LEFT_EYE, L.LEFT_EYE_OUTER,
        L.RIGHT_EYE_INNER, L.RIGHT_EYE, L.RIGHT_EYE_OUTER,
        L.LEFT_EAR, L.RIGHT_EAR, L.MOUTH_LEFT, L.MOUTH_RIGHT,
    ],
    "arms": [
        L.LEFT_ELBOW, L.RIGHT_ELBOW, L.LEFT_WRIST, L.RIGHT_WRIST,
        L.LEFT_PINKY, L.RIGHT_PINKY, L.LEFT_INDEX, L.RIGHT_INDEX,
        L.LEFT_THUMB, L.RIGHT_THUMB,
    ],
    "torso": [L.LEFT_SHOULDER, L.RIGHT_SHOULDER, L.LEFT_HIP, L.RIGHT_HIP],
    "legs": [
        L.LEFT_KNEE, L.RIGHT_KNEE, L.LEFT_ANKLE, L.RIGHT_ANKLE,
        L.LEFT_HEEL, L.RIGHT_HEEL, L.LEFT_FOOT_INDEX, L.RIGHT_FOOT_INDEX,
    ],
}

LANDMARK_TO_GROUP: Dict[int, str] = {
    int(idx): group for group, members in BODY_GROUPS.items() for idx in members
}

SIDES = ("left", "right")


def wrist_index(side: str) -> PoseLandmark:
    """Wrist landmark for ``side`` ('left' or 'right')."""
    return L.LEFT_WRIST if side == "left" else L.RIGHT_WRIST


def opposite_side(side: str) -> str:
    """Return the other body side."""
    return "right" if side == "left" else "left"
