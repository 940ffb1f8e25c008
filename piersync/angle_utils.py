"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Angle Utilities

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Wraparound-safe arithmetic for cyclic quantities such as right
ascension (hours, period 24) or azimuth (degrees, period 360).
"""

from typing import Union

import numpy as np

HOURS_PER_DAY = 24.0

ArrayLike = Union[float, np.ndarray]


def wrapped_difference(a: ArrayLike, b: ArrayLike,
                       period: float = HOURS_PER_DAY) -> ArrayLike:
    """Return the minimal absolute distance between two cyclic values.

    ``d = |a - b| mod period``; when *d* exceeds half a period the short
    way round (``period - d``) is returned instead, so the result always
    lies in ``[0, period / 2]``.

    Args:
        a:      First value (scalar or numpy array).
        b:      Second value (scalar or numpy array).
        period: Length of one cycle, e.g. ``24.0`` for hours.

    Returns:
        ``float`` for scalar input, otherwise an array of distances.
    """
    if period <= 0:
        raise ValueError(f"period must be positive, got {period}")

    d = np.mod(np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)), period)
    d = np.where(d > period / 2.0, period - d, d)

    if d.ndim == 0:
        return float(d)
    return d


def normalize_hours(hours: float) -> float:
    """Return *hours* normalised to 0-24."""
    return hours % HOURS_PER_DAY
