"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Convergence Checker

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Classifies a single mount snapshot taken after the CWD sync.  The
checker only judges the instantaneous sample; turning a persistent
"not ready" into a failure is the polling loop's job.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .angle_utils import HOURS_PER_DAY, wrapped_difference
from .mount import MountSnapshot, PierSide
from .reference_pose import ReferencePose

logger = logging.getLogger(__name__)

DECLINATION_MIN = 89.99
DECLINATION_MAX = 90.0
RA_TOLERANCE_HOURS = 3.0 / 3600.0  # 3 seconds of time

REASON_TRACKING = "tracking still active"
REASON_PIER_SIDE = "side of pier unknown"
REASON_DECLINATION = "declination out of tolerance"
REASON_RIGHT_ASCENSION = "right ascension out of tolerance"


class ConvergenceStatus(Enum):
    CONVERGED = "converged"
    NOT_READY = "not_ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ConvergenceResult:
    """Verdict for one snapshot, with the offending values when known."""

    status: ConvergenceStatus
    reason: str = ""
    actual: Optional[float] = None
    expected: Optional[float] = None

    @property
    def converged(self) -> bool:
        return self.status is ConvergenceStatus.CONVERGED

    @classmethod
    def ok(cls) -> "ConvergenceResult":
        return cls(ConvergenceStatus.CONVERGED)

    @classmethod
    def not_ready(cls, reason: str, actual: Optional[float] = None,
                  expected: Optional[float] = None) -> "ConvergenceResult":
        return cls(ConvergenceStatus.NOT_READY, reason, actual, expected)


class ConvergenceChecker:
    """Checks tracking, side of pier, declination and RA, in that order."""

    def evaluate(self, snapshot: MountSnapshot, pose: ReferencePose,
                 sync_timestamp: float, now: float,
                 require_tracking_stopped: bool = False) -> ConvergenceResult:
        """
        Evaluate *snapshot* against the CWD target.

        Args:
            snapshot:       Mount state read after the sync.
            pose:           Target computed at sync time (never re-sampled).
            sync_timestamp: Clock reading (seconds) taken just before the sync.
            now:            Clock reading (seconds) for this sample.
            require_tracking_stopped: Also require tracking to be off.

        Returns:
            The first failing check as ``NOT_READY``, else ``CONVERGED``.
        """
        if require_tracking_stopped and snapshot.tracking:
            return ConvergenceResult.not_ready(REASON_TRACKING)

        if snapshot.side_of_pier == PierSide.UNKNOWN:
            return ConvergenceResult.not_ready(REASON_PIER_SIDE)

        dec = snapshot.declination
        if dec < DECLINATION_MIN or dec > DECLINATION_MAX:
            return ConvergenceResult.not_ready(
                REASON_DECLINATION, actual=dec, expected=pose.declination,
            )

        # With tracking off the hour angle stays put, so RA advances with time
        elapsed_hours = (now - sync_timestamp) / 3600.0
        expected_ra = pose.right_ascension + elapsed_hours
        diff = wrapped_difference(snapshot.right_ascension, expected_ra, HOURS_PER_DAY)
        if diff > RA_TOLERANCE_HOURS:
            return ConvergenceResult.not_ready(
                REASON_RIGHT_ASCENSION,
                actual=snapshot.right_ascension,
                expected=expected_ra,
            )

        logger.debug("Converged: RA diff %.2fs, dec %.6f°", diff * 3600.0, dec)
        return ConvergenceResult.ok()
