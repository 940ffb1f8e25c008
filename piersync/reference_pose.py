"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Reference Pose Calculator

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Computes the counter-weights-down (CWD) sync target.  Pointing six
hours east of the meridian, just short of the pole, leaves the
counter-weights hanging straight down on either side of the pier.
"""

from dataclasses import dataclass

from .angle_utils import normalize_hours

# Just short of the pole so the target is never singular
CWD_DECLINATION = 89.999999
CWD_HOUR_OFFSET = 6.0


@dataclass(frozen=True)
class ReferencePose:
    """Sync target in equatorial coordinates."""

    right_ascension: float  # hours, [0, 24)
    declination: float      # degrees


def compute_reference_pose(sidereal_time: float) -> ReferencePose:
    """Return the CWD pose for the given local sidereal time (hours)."""
    return ReferencePose(
        right_ascension=normalize_hours(sidereal_time + CWD_HOUR_OFFSET),
        declination=CWD_DECLINATION,
    )
