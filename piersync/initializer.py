"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Mount Initialization State Machine

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Drives a freshly powered-up equatorial mount into a known
counter-weights-down orientation:

    IDLE -> CONNECTING -> PRECONDITION_CHECK -> (SKIP | UNPARKING)
         -> SYNCING -> POLLING -> DONE

The mount is synced to the CWD pose and then polled once per second
until it reports the expected side of pier and coordinates, or the
timeout elapses.  The connection is always released on exit.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .convergence import ConvergenceChecker, ConvergenceStatus
from .exceptions import (
    CapabilityError,
    CommandError,
    ConvergenceTimeoutError,
    MountConnectionError,
    MountError,
    PiersyncError,
    PreconditionError,
)
from .mount import Mount, MountSnapshot, PierSide
from .reference_pose import ReferencePose, compute_reference_pose

logger = logging.getLogger(__name__)

POLL_INTERVAL = 1.0  # seconds between status samples


class ConditionMode(Enum):
    """When the initializer should sync the mount.

    ``FORCE`` is the force-capable mode: it syncs when ``force`` is set or
    the side of pier is unknown, and reports a skip as success.
    """

    ALWAYS = "always"
    UNKNOWN_PIER_SIDE = "unknownSideOfPier"
    FORCE = "force"

    @classmethod
    def parse(cls, value: str) -> "ConditionMode":
        """Look up a mode by its command-line value (case-insensitive)."""
        wanted = (value or "").strip().lower()
        for mode in cls:
            if mode.value.lower() == wanted:
                return mode
        raise ValueError(
            f"Unknown condition '{value}' (expected one of: "
            + ", ".join(m.value for m in cls) + ")"
        )


class InitState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    PRECONDITION_CHECK = "precondition_check"
    SKIP = "skip"
    UNPARKING = "unparking"
    SYNCING = "syncing"
    POLLING = "polling"
    DONE = "done"


class OutcomeKind(Enum):
    ALREADY_INITIALIZED = "already_initialized"
    INITIALIZED = "initialized"
    CONDITION_MET = "condition_met"
    CONDITION_NOT_MET = "condition_not_met"
    FAILED = "failed"


@dataclass(frozen=True)
class InitializationConfig:
    """Run options, built once at the boundary."""

    condition_mode: ConditionMode = ConditionMode.UNKNOWN_PIER_SIDE
    timeout: int = 60
    unpark: bool = False
    stop_tracking: bool = False
    check_only: bool = False
    force: bool = False
    connect_settle: float = 1.0

    def __post_init__(self):
        if self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")
        if self.connect_settle < 0:
            raise ValueError(f"connect_settle must be >= 0, got {self.connect_settle}")


@dataclass(frozen=True)
class InitializationOutcome:
    """Terminal result of one run."""

    kind: OutcomeKind
    reason: str = ""
    cause: Optional[str] = None
    error: Optional[PiersyncError] = None

    @property
    def succeeded(self) -> bool:
        return self.kind not in (OutcomeKind.FAILED, OutcomeKind.CONDITION_NOT_MET)

    @classmethod
    def failed(cls, error: PiersyncError) -> "InitializationOutcome":
        return cls(OutcomeKind.FAILED, reason=error.message, cause=error.cause, error=error)


class MountInitializer:
    """Runs the CWD initialization sequence against one :class:`Mount`.

    Args:
        config:      Run options.
        clock:       Monotonic clock in seconds (injectable for tests).
        sleep:       Blocking sleep; the only suspension point of a run.
        on_progress: Callback receiving one human-readable line per stage
                     and per poll tick.  ``None`` keeps the run silent.
        checker:     Convergence checker (defaults to the standard one).
    """

    def __init__(self, config: InitializationConfig,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep,
                 on_progress: Optional[Callable[[str], None]] = None,
                 checker: Optional[ConvergenceChecker] = None):
        self.config = config
        self._clock = clock
        self._sleep = sleep
        self._on_progress = on_progress
        self._checker = checker or ConvergenceChecker()

        self.state = InitState.IDLE
        self.outcome: Optional[InitializationOutcome] = None
        self.samples = 0

    # ---- Helpers ---------------------------------------------------------
    def _set_state(self, state: InitState) -> None:
        logger.debug("State %s -> %s", self.state.name, state.name)
        self.state = state

    def _progress(self, message: str) -> None:
        logger.info(message)
        if self._on_progress is not None:
            self._on_progress(message)

    def _finish(self, outcome: InitializationOutcome) -> InitializationOutcome:
        self._set_state(InitState.DONE)
        self.outcome = outcome
        return outcome

    def condition_met(self, snapshot: MountSnapshot) -> bool:
        """Return ``True`` when the mount should be (re)initialized."""
        mode = self.config.condition_mode
        unknown = snapshot.side_of_pier == PierSide.UNKNOWN
        if mode is ConditionMode.ALWAYS:
            return True
        if mode is ConditionMode.UNKNOWN_PIER_SIDE:
            return unknown
        return self.config.force or unknown

    # ---- Public API ------------------------------------------------------
    def run(self, mount: Mount) -> InitializationOutcome:
        """Initialize *mount* and return the terminal outcome.

        Connection, capability, park state, command and timeout failures,
        including unexpected errors raised by the mount back-end, are
        reported as a ``FAILED`` outcome.  The mount is disconnected and
        disposed on every path.
        """
        self._set_state(InitState.CONNECTING)
        try:
            with mount.session():
                if self.config.connect_settle > 0:
                    self._sleep(self.config.connect_settle)
                outcome = self._run_connected(mount)
        except MountConnectionError as exc:
            error = MountConnectionError("Failed connecting to mount", exc.cause or exc.message)
            logger.error("%s", error)
            return self._finish(InitializationOutcome.failed(error))
        except PiersyncError as exc:
            logger.error("Mount initialization failed: %s", exc)
            return self._finish(InitializationOutcome.failed(exc))
        return self._finish(outcome)

    # ---- Stages ----------------------------------------------------------
    def _run_connected(self, mount: Mount) -> InitializationOutcome:
        self._set_state(InitState.PRECONDITION_CHECK)
        snapshot = self._read(mount)
        met = self.condition_met(snapshot)
        logger.debug("Side of pier %s, condition met: %s", snapshot.side_of_pier.name, met)

        if self.config.check_only:
            if self.config.condition_mode is ConditionMode.FORCE:
                logger.warning("Check-only is not supported with the force condition – ignoring")
            else:
                self._set_state(InitState.SKIP)
                kind = OutcomeKind.CONDITION_MET if met else OutcomeKind.CONDITION_NOT_MET
                self._progress("Condition met" if met else "Condition not met")
                return InitializationOutcome(kind)

        if not met:
            self._set_state(InitState.SKIP)
            self._progress("Mount already initialized")
            return InitializationOutcome(OutcomeKind.ALREADY_INITIALIZED)

        self._progress("Initializing mount")
        self._check_preconditions(mount, snapshot)

        # Park state may have changed, re-read before picking the target
        if self.config.unpark:
            snapshot = self._read(mount)

        pose = compute_reference_pose(snapshot.sidereal_time)
        self._progress(f"Current LST: {snapshot.sidereal_time}")
        self._progress(
            f"Current declination: {snapshot.declination}, expected: {pose.declination}"
        )
        self._progress(
            f"Current right ascension: {snapshot.right_ascension}, "
            f"expected: {pose.right_ascension}"
        )

        sync_timestamp = self._clock()
        self._sync(mount, pose, snapshot.tracking)

        self._poll(mount, pose, sync_timestamp)
        self._progress("Mount initialized")
        return InitializationOutcome(OutcomeKind.INITIALIZED)

    def _check_preconditions(self, mount: Mount, snapshot: MountSnapshot) -> None:
        if not snapshot.can_sync:
            raise CapabilityError("Mount cannot sync")

        if self.config.unpark:
            if not snapshot.can_unpark:
                raise CapabilityError("Mount cannot unpark")
            self._set_state(InitState.UNPARKING)
            self._progress("Unparking...")
            try:
                mount.unpark()
            except Exception as exc:
                raise CommandError("Failed unparking mount", str(exc)) from exc
        elif snapshot.at_park:
            raise PreconditionError("Mount is parked")

    def _sync(self, mount: Mount, pose: ReferencePose, prev_tracking: bool) -> None:
        self._set_state(InitState.SYNCING)
        self._progress("Syncing...")
        try:
            # Must be tracking to sync
            mount.set_tracking(True)
            mount.sync_to_coordinates(pose.right_ascension, pose.declination)
            mount.set_tracking(False if self.config.stop_tracking else prev_tracking)
        except Exception as exc:
            raise CommandError("Failed syncing mount", str(exc)) from exc

    def _poll(self, mount: Mount, pose: ReferencePose, sync_timestamp: float) -> None:
        """Sample the mount until it converges or the timeout elapses.

        ``retry`` is decided from the total elapsed time before each sleep,
        so one last sample is always taken after the deadline.
        """
        self._set_state(InitState.POLLING)
        loop_start = self._clock()

        while True:
            retry = (self._clock() - loop_start) < self.config.timeout

            self._sleep(POLL_INTERVAL)
            self.samples += 1
            self._progress("Checking status...")

            snapshot = self._read(mount)
            result = self._checker.evaluate(
                snapshot, pose, sync_timestamp, self._clock(),
                require_tracking_stopped=self.config.stop_tracking,
            )

            if result.status is ConvergenceStatus.CONVERGED:
                return
            if result.status is ConvergenceStatus.NOT_READY and retry:
                self._progress(f"Not ready: {result.reason}")
                continue

            logger.warning(
                "Gave up after %d samples: %s (actual=%s, expected=%s)",
                self.samples, result.reason, result.actual, result.expected,
            )
            raise ConvergenceTimeoutError(result.reason, result.actual, result.expected)

    @staticmethod
    def _read(mount: Mount) -> MountSnapshot:
        try:
            return mount.snapshot()
        except MountError:
            raise
        except Exception as exc:
            raise CommandError("Failed reading mount state", str(exc)) from exc
