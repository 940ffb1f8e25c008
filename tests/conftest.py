"""Shared fixtures: a fake monotonic clock and a scripted mount.

Nothing here sleeps for real; ``FakeClock.sleep`` just advances time.
"""

import sys
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional

import pytest

# Ensure the piersync package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from piersync.mount import Mount, MountSnapshot, PierSide  # noqa: E402


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    MAX_SLEEPS = 10_000  # guards tests against a loop that never ends

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        if len(self.sleeps) > self.MAX_SLEEPS:
            raise RuntimeError("FakeClock: too many sleeps, loop does not terminate")
        self.now += seconds


def make_snapshot(**overrides) -> MountSnapshot:
    """A settled, unparked, sync-capable snapshot with overrides applied."""
    base = MountSnapshot(
        side_of_pier=PierSide.WEST,
        right_ascension=16.0,
        declination=89.995,
        tracking=False,
        sidereal_time=10.0,
        at_park=False,
        can_sync=True,
        can_unpark=True,
    )
    return replace(base, **overrides)


class ScriptedMount(Mount):
    """Mount returning *initial* until synced, then ``after_sync(now)``.

    Every command is recorded in ``calls``; reads are counted in ``reads``.
    """

    def __init__(self, initial: MountSnapshot,
                 after_sync: Optional[Callable[[float], MountSnapshot]] = None,
                 clock: Optional[FakeClock] = None):
        self.initial = initial
        self.after_sync = after_sync
        self.clock = clock or FakeClock()
        self.calls: List[str] = []
        self.reads = 0
        self.synced = False
        self.sync_args = None
        self.sync_time: Optional[float] = None
        self.connect_error: Optional[Exception] = None
        self.disconnect_error: Optional[Exception] = None
        self.sync_error: Optional[Exception] = None
        self.unpark_error: Optional[Exception] = None
        self.snapshot_error: Optional[Exception] = None

    def connect(self) -> None:
        self.calls.append("connect")
        if self.connect_error is not None:
            raise self.connect_error

    def disconnect(self) -> None:
        self.calls.append("disconnect")
        if self.disconnect_error is not None:
            raise self.disconnect_error

    def dispose(self) -> None:
        self.calls.append("dispose")

    def snapshot(self) -> MountSnapshot:
        self.reads += 1
        if self.snapshot_error is not None and self.synced:
            raise self.snapshot_error
        if self.synced and self.after_sync is not None:
            return self.after_sync(self.clock())
        return self.initial

    def unpark(self) -> None:
        self.calls.append("unpark")
        if self.unpark_error is not None:
            raise self.unpark_error
        self.initial = replace(self.initial, at_park=False)

    def set_tracking(self, enabled: bool) -> None:
        self.calls.append(f"tracking:{enabled}")

    def sync_to_coordinates(self, right_ascension: float, declination: float) -> None:
        self.calls.append("sync")
        if self.sync_error is not None:
            raise self.sync_error
        self.sync_args = (right_ascension, declination)
        self.sync_time = self.clock()
        self.synced = True


@pytest.fixture
def clock():
    return FakeClock()
