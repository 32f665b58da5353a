"""Smoothing and extremum detection for 1D pose signals.

This module provides:
- Moving average filtering for simple smoothing
- Sliding-window means over score sequences
- Trough detection with neighbour-maximum prominence
"""

from typing import List, Sequence

import numpy as np
from scipy.signal import argrelmin


def window_bounds(index: int, length: int, window_size: int) -> tuple[int, int]:
    """Return ``[start, end)`` of the window anchored around ``index``.

    The window starts half a window before ``index`` and spans ``window_size``
    samples, truncated at the end of the sequence.
    """
    start = max(0, index - window_size // 2)
    end = min(length, start + window_size)
    return start, end


def moving_average(signal: Sequence[float], window_size: int = 3) -> np.ndarray:
    """Smooth signal using moving average.

    Args:
        signal: Input signal.
        window_size: Window size for smoothing.

    Returns:
        Smoothed signal (same length as input).
    """
    values = np.asarray(signal, dtype=float)
    if window_size < 2 or len(values) == 0:
        return values.copy()

    smoothed = np.zeros_like(values)
    for i in range(len(values)):
        start, end = window_bounds(i, len(values), window_size)
        smoothed[i] = np.mean(values[start:end])

    return smoothed


def find_troughs(signal: Sequence[float], min_prominence: float) -> List[int]:
    """Find strict local minima that stand out from their surroundings.

    Prominence of a trough is the smaller of the two rises from the trough to
    the nearest local maximum on each side.

    Args:
        signal: Input signal.
        min_prominence: Minimum prominence for a trough to count.

    Returns:
        Indices of accepted troughs in ascending order.
    """
    values = np.asarray(signal, dtype=float)
    if len(values) < 3:
        return []

    # argrelmin with clip mode never reports the first or last sample
    candidates = argrelmin(values, order=1)[0]

    troughs = []
    for idx in candidates:
        left = idx - 1
        while left > 0 and values[left - 1] >= values[left]:
            left -= 1

        right = idx + 1
        while right < len(values) - 1 and values[right + 1] >= values[right]:
            right += 1

        prominence = min(values[left] - values[idx], values[right] - values[idx])
        if prominence >= min_prominence:
            troughs.append(int(idx))

    return troughs
