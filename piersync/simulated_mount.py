"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Simulated Mount Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Provides an in-process equatorial mount for dry runs and tests.  It
mimics the behaviour the initializer has to cope with on real
hardware: after power-up the side of pier is unknown, and after a
sync the mount needs a few seconds before it reports its new state.
"""

import logging
import time
from typing import Callable, Iterable, List, Optional

import astropy.units as u
from astropy.coordinates import Longitude
from astropy.time import Time
from astropy.utils import iers

from .angle_utils import normalize_hours
from .exceptions import CommandError, MountConnectionError
from .mount import Mount, MountSnapshot, PierSide

logger = logging.getLogger(__name__)


def local_sidereal_time(longitude: float, when: Optional[Time] = None) -> float:
    """
    Local mean sidereal time in hours for an observer at *longitude*.

    Args:
        longitude: Observer longitude in degrees (east positive)
        when: Observation time (defaults to now)

    Returns:
        Sidereal time in hours, 0-24
    """
    if when is None:
        when = Time.now()
    # Offline-safe: no IERS download, degraded UT1 accuracy is fine here
    with iers.conf.set_temp("auto_download", False), \
            iers.conf.set_temp("iers_degraded_accuracy", "warn"):
        lst = when.sidereal_time("mean", longitude=Longitude(longitude * u.deg))
    return float(lst.hour)


class SimulatedMount(Mount):
    """Simulated German equatorial mount.

    Right ascension drifts with sidereal time while tracking is off
    (the hour angle stays fixed) and holds still while tracking.

    Parameters
    ----------
    longitude : float
        Site longitude in degrees, used for the astropy sidereal clock.
    settle_time : float
        Seconds after a sync before the new side of pier is reported.
    settled_side : PierSide
        Side of pier reported once settled.
    sidereal_time_fn : callable, optional
        Returns the local sidereal time in hours.  Defaults to
        :func:`local_sidereal_time` for *longitude*.
    clock : callable
        Monotonic clock in seconds (injectable for tests).
    fail_on : iterable of str
        Commands that raise, for fault injection: ``connect``,
        ``disconnect``, ``snapshot``, ``unpark``, ``tracking``, ``sync``.
    """

    def __init__(self, longitude: float = 0.0, settle_time: float = 3.0,
                 settled_side: PierSide = PierSide.WEST,
                 side_of_pier: PierSide = PierSide.UNKNOWN,
                 right_ascension: float = 0.0, declination: float = 0.0,
                 tracking: bool = False, at_park: bool = False,
                 can_sync: bool = True, can_unpark: bool = True,
                 sidereal_time_fn: Optional[Callable[[], float]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 fail_on: Iterable[str] = ()):
        self.longitude = longitude
        self.settle_time = max(0.0, settle_time)
        self.settled_side = settled_side
        self._side = side_of_pier
        self._ra = normalize_hours(right_ascension)
        self._dec = declination
        self._tracking = tracking
        self._at_park = at_park
        self._can_sync = can_sync
        self._can_unpark = can_unpark
        self._sidereal_time_fn = sidereal_time_fn or (lambda: local_sidereal_time(self.longitude))
        self._clock = clock
        self._fail_on = set(fail_on)

        self.connected = False
        self.disposed = False
        self.commands: List[str] = []
        self._sync_time: Optional[float] = None
        self._last_lst: Optional[float] = None

    @classmethod
    def from_config(cls, sim_cfg: dict, **kwargs) -> "SimulatedMount":
        """Build a simulator from the ``simulator`` config section."""
        side_name = str(sim_cfg.get("settled_side", "west")).upper()
        return cls(
            longitude=sim_cfg.get("longitude", 0.0),
            settle_time=sim_cfg.get("settle_time", 3.0),
            settled_side=PierSide[side_name] if side_name in PierSide.__members__ else PierSide.WEST,
            at_park=sim_cfg.get("at_park", False),
            can_sync=sim_cfg.get("can_sync", True),
            can_unpark=sim_cfg.get("can_unpark", True),
            **kwargs,
        )

    # -- internal helpers ------------------------------------------------

    def _command(self, name: str) -> None:
        self.commands.append(name)
        if name in self._fail_on:
            if name == "connect":
                raise MountConnectionError("Simulated mount refused connection")
            raise CommandError(f"Simulated failure: {name}")

    def _require_connection(self) -> None:
        if not self.connected:
            raise CommandError("Simulated mount not connected")

    def _advance(self) -> float:
        """Bring the pointing model up to the current sidereal time."""
        lst = normalize_hours(self._sidereal_time_fn())
        if self._last_lst is not None and not self._tracking and not self._at_park:
            delta = normalize_hours(lst - self._last_lst)
            self._ra = normalize_hours(self._ra + delta)
        self._last_lst = lst
        return lst

    def _side_of_pier(self) -> PierSide:
        if self._sync_time is not None and self._clock() - self._sync_time >= self.settle_time:
            return self.settled_side
        return self._side

    # -- Mount API -------------------------------------------------------

    def connect(self) -> None:
        self._command("connect")
        self.connected = True
        self._advance()
        logger.info("Simulated mount connected")

    def disconnect(self) -> None:
        self._command("disconnect")
        self.connected = False
        logger.info("Simulated mount disconnected")

    def dispose(self) -> None:
        self.disposed = True

    def snapshot(self) -> MountSnapshot:
        self._require_connection()
        if "snapshot" in self._fail_on:
            raise CommandError("Simulated failure: snapshot")
        lst = self._advance()
        return MountSnapshot(
            side_of_pier=self._side_of_pier(),
            right_ascension=self._ra,
            declination=self._dec,
            tracking=self._tracking,
            sidereal_time=lst,
            at_park=self._at_park,
            can_sync=self._can_sync,
            can_unpark=self._can_unpark,
        )

    def unpark(self) -> None:
        self._require_connection()
        self._command("unpark")
        if not self._can_unpark:
            raise CommandError("Simulated mount cannot unpark")
        self._advance()
        self._at_park = False

    def set_tracking(self, enabled: bool) -> None:
        self._require_connection()
        self._command("tracking")
        self._advance()
        self._tracking = bool(enabled)

    def sync_to_coordinates(self, right_ascension: float, declination: float) -> None:
        self._require_connection()
        self._command("sync")
        if not self._can_sync:
            raise CommandError("Simulated mount cannot sync")
        if self._at_park:
            raise CommandError("Simulated mount is parked")
        if not self._tracking:
            raise CommandError("Simulated mount must be tracking to sync")
        self._advance()
        self._ra = normalize_hours(right_ascension)
        self._dec = declination
        self._side = PierSide.UNKNOWN
        self._sync_time = self._clock()
        logger.debug("Simulated sync to RA=%.6fh Dec=%.6f°", self._ra, self._dec)
