"""Geometry and rounding utilities for normalized pose coordinates."""

import math
from typing import Tuple

import numpy as np


def euclidean_distance(
    point1: Tuple[float, float], point2: Tuple[float, float]
) -> float:
    """Calculate Euclidean distance between two 2D points.

    Args:
        point1: First point (x, y).
        point2: Second point (x, y).

    Returns:
        Distance between points.
    """
    return float(np.sqrt((point1[0] - point2[0]) ** 2 + (point1[1] - point2[1]) ** 2))


def manhattan_distance(
    point1: Tuple[float, float], point2: Tuple[float, float]
) -> float:
    """Calculate L1 distance between two 2D points.

    Args:
        point1: First point (x, y).
        point2: Second point (x, y).

    Returns:
        Sum of absolute coordinate differences.
    """
    return abs(point1[0] - point2[0]) + abs(point1[1] - point2[1])


def midpoint(point1: Tuple[float, float], point2: Tuple[float, float]) -> Tuple[float, float]:
    """Calculate midpoint between two 2D points.

    Args:
        point1: First point (x, y).
        point2: Second point (x, y).

    Returns:
        Midpoint (x, y).
    """
    return ((point1[0] + point2[0]) / 2, (point1[1] + point2[1]) / 2)


def distance_to_similarity(distance: float, max_distance: float) -> float:
    """Map a positional distance onto a similarity in [0, 1].

    A distance of zero is a perfect match; ``max_distance`` or more scores zero.

    Example:
        >>> distance_to_similarity(0.15, 0.3)
        0.5
    """
    if max_distance <= 0:
        return 0.0
    return max(0.0, 1.0 - distance / max_distance)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity.

    Python's ``round`` uses banker's rounding; scores and percentages shown to
    players round .5 upwards.

    Example:
        >>> round_half_up(2.5)
        3
    """
    return int(math.floor(value + 0.5))
