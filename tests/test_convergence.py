"""Tests for the ConvergenceChecker.

The checker only classifies one sample; no clock or mount is involved.
"""

import sys
from pathlib import Path

import pytest

# Ensure the piersync package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from conftest import make_snapshot
from piersync.convergence import (
    REASON_DECLINATION,
    REASON_PIER_SIDE,
    REASON_RIGHT_ASCENSION,
    REASON_TRACKING,
    ConvergenceChecker,
    ConvergenceStatus,
)
from piersync.mount import PierSide
from piersync.reference_pose import CWD_DECLINATION, compute_reference_pose

POSE = compute_reference_pose(10.0)  # RA 16h


@pytest.fixture
def checker():
    return ConvergenceChecker()


class TestOrdering:
    def test_settled_snapshot_converges(self, checker):
        result = checker.evaluate(make_snapshot(), POSE, 0.0, 0.0)
        assert result.status is ConvergenceStatus.CONVERGED
        assert result.converged

    def test_unknown_pier_side_never_converges(self, checker):
        snap = make_snapshot(side_of_pier=PierSide.UNKNOWN)
        result = checker.evaluate(snap, POSE, 0.0, 0.0)
        assert result.status is ConvergenceStatus.NOT_READY
        assert result.reason == REASON_PIER_SIDE

    @pytest.mark.parametrize("side", [PierSide.EAST, PierSide.WEST])
    def test_either_known_side_is_accepted(self, checker, side):
        result = checker.evaluate(make_snapshot(side_of_pier=side), POSE, 0.0, 0.0)
        assert result.converged

    def test_tracking_only_matters_when_required(self, checker):
        snap = make_snapshot(tracking=True)
        assert checker.evaluate(snap, POSE, 0.0, 0.0).converged
        result = checker.evaluate(snap, POSE, 0.0, 0.0, require_tracking_stopped=True)
        assert result.reason == REASON_TRACKING

    def test_tracking_checked_before_pier_side(self, checker):
        snap = make_snapshot(tracking=True, side_of_pier=PierSide.UNKNOWN, declination=0.0)
        result = checker.evaluate(snap, POSE, 0.0, 0.0, require_tracking_stopped=True)
        assert result.reason == REASON_TRACKING

    def test_pier_side_checked_before_declination(self, checker):
        snap = make_snapshot(side_of_pier=PierSide.UNKNOWN, declination=0.0)
        assert checker.evaluate(snap, POSE, 0.0, 0.0).reason == REASON_PIER_SIDE

    def test_declination_checked_before_right_ascension(self, checker):
        snap = make_snapshot(declination=45.0, right_ascension=3.0)
        assert checker.evaluate(snap, POSE, 0.0, 0.0).reason == REASON_DECLINATION


class TestDeclination:
    @pytest.mark.parametrize("dec", [89.99, 89.995, 89.999999, 90.0])
    def test_inside_bound(self, checker, dec):
        assert checker.evaluate(make_snapshot(declination=dec), POSE, 0.0, 0.0).converged

    @pytest.mark.parametrize("dec", [89.9899, 90.0001, 89.5, -89.995])
    def test_outside_bound(self, checker, dec):
        result = checker.evaluate(make_snapshot(declination=dec), POSE, 0.0, 0.0)
        assert result.status is ConvergenceStatus.NOT_READY
        assert result.reason == REASON_DECLINATION
        assert result.actual == dec
        assert result.expected == CWD_DECLINATION


class TestRightAscension:
    def test_compensates_elapsed_time(self, checker):
        now = 120.0
        snap = make_snapshot(right_ascension=16.0 + now / 3600.0)
        assert checker.evaluate(snap, POSE, 0.0, now).converged

    def test_uncompensated_reading_is_rejected(self, checker):
        result = checker.evaluate(make_snapshot(right_ascension=16.0), POSE, 0.0, 120.0)
        assert result.reason == REASON_RIGHT_ASCENSION
        assert result.actual == 16.0
        assert result.expected == pytest.approx(16.0 + 120.0 / 3600.0)

    def test_uses_fractional_elapsed_seconds(self, checker):
        # 3.5 s elapsed is outside the 3 s tolerance; truncating to 3 s would pass
        result = checker.evaluate(make_snapshot(right_ascension=16.0), POSE, 10.0, 13.5)
        assert result.reason == REASON_RIGHT_ASCENSION

    def test_within_tolerance(self, checker):
        snap = make_snapshot(right_ascension=16.0 + 2.5 / 3600.0)
        assert checker.evaluate(snap, POSE, 0.0, 0.0).converged

    def test_outside_tolerance_either_direction(self, checker):
        for offset in (3.5, -3.5):
            snap = make_snapshot(right_ascension=16.0 + offset / 3600.0)
            assert checker.evaluate(snap, POSE, 0.0, 0.0).reason == REASON_RIGHT_ASCENSION

    def test_wraps_around_midnight(self, checker):
        pose = compute_reference_pose(17.9999)  # RA 23.9999h
        # One hour later the expected RA is 24.9999h, reported as 0.9999h
        snap = make_snapshot(right_ascension=0.9999)
        assert checker.evaluate(snap, pose, 0.0, 3600.0).converged

    def test_checker_never_fails_hard(self, checker):
        snap = make_snapshot(side_of_pier=PierSide.UNKNOWN, declination=0.0, right_ascension=5.0)
        result = checker.evaluate(snap, POSE, 0.0, 1e6, require_tracking_stopped=True)
        assert result.status is not ConvergenceStatus.FAILED
