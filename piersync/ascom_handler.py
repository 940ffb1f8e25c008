"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
ASCOM Telescope Handler Module

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

This module provides communication with ASCOM-compatible mounts
using win32com.client.  :class:`DriverMount` holds the property-level
logic shared with the Alpaca back-end, since both expose the same
ASCOM ``ITelescope`` members.  Driver errors are translated into
:mod:`piersync.exceptions` types at the point of the call.
"""

import abc
import logging
from typing import Any, Optional

from .exceptions import CommandError, MountConnectionError
from .mount import Mount, MountSnapshot, PierSide

try:
    import win32com.client
    ASCOM_AVAILABLE = True
except ImportError:
    ASCOM_AVAILABLE = False
    logging.getLogger(__name__).debug("win32com not available - ASCOM mounts disabled")


class DriverMount(Mount):
    """Mount backed by an object exposing the ASCOM ``ITelescope`` members."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.telescope: Any = None
        self.connected = False

    @abc.abstractmethod
    def _open_driver(self) -> Any:
        """Create the driver object (COM dispatch, REST client, ...)."""

    def connect(self) -> None:
        """Connect to the telescope driver."""
        try:
            self.logger.info(f"Connecting to telescope: {self.name}")
            if self.telescope is None:
                self.telescope = self._open_driver()
            self.telescope.Connected = True
            self.connected = True
            self.logger.info("Telescope connected successfully")
        except Exception as e:
            self.connected = False
            raise MountConnectionError(f"Failed to connect to {self.name}", str(e)) from e

    def disconnect(self) -> None:
        """Disconnect from the telescope driver."""
        if self.telescope is not None and self.connected:
            try:
                self.telescope.Connected = False
                self.connected = False
                self.logger.info("Telescope disconnected")
            except Exception as e:
                raise CommandError("Error disconnecting telescope", str(e)) from e

    def dispose(self) -> None:
        """Drop the driver reference so it can be released."""
        self.telescope = None
        self.connected = False

    def _require_connection(self) -> Any:
        if self.telescope is None or not self.connected:
            raise CommandError("Telescope not connected")
        return self.telescope

    def _read(self, member: str) -> Any:
        scope = self._require_connection()
        try:
            return getattr(scope, member)
        except Exception as e:
            raise CommandError(f"Error reading {member}", str(e)) from e

    def snapshot(self) -> MountSnapshot:
        """Read side of pier, position, tracking, LST and park state."""
        return MountSnapshot(
            side_of_pier=PierSide.from_raw(self._read("SideOfPier")),
            right_ascension=float(self._read("RightAscension")),  # hours
            declination=float(self._read("Declination")),  # degrees
            tracking=bool(self._read("Tracking")),
            sidereal_time=float(self._read("SiderealTime")),  # hours
            at_park=bool(self._read("AtPark")),
            can_sync=bool(self._read("CanSync")),
            can_unpark=bool(self._read("CanUnpark")),
        )

    @property
    def can_sync(self) -> bool:
        return bool(self._read("CanSync"))

    @property
    def can_unpark(self) -> bool:
        return bool(self._read("CanUnpark"))

    def unpark(self) -> None:
        scope = self._require_connection()
        try:
            scope.Unpark()
        except Exception as e:
            raise CommandError("Failed unparking telescope", str(e)) from e

    def set_tracking(self, enabled: bool) -> None:
        scope = self._require_connection()
        try:
            scope.Tracking = enabled
        except Exception as e:
            raise CommandError(f"Failed setting tracking to {enabled}", str(e)) from e

    def sync_to_coordinates(self, right_ascension: float, declination: float) -> None:
        scope = self._require_connection()
        try:
            self.logger.debug("SyncToCoordinates(%.6f, %.6f)", right_ascension, declination)
            scope.SyncToCoordinates(right_ascension, declination)
        except Exception as e:
            raise CommandError("SyncToCoordinates rejected", str(e)) from e


class ASCOMMount(DriverMount):
    """Mount back-end for ASCOM COM telescope drivers (Windows)."""

    def __init__(self, prog_id: str):
        """
        Prepare an ASCOM telescope driver.

        Args:
            prog_id: ASCOM ProgID for the telescope driver
        """
        super().__init__(prog_id)
        self.prog_id = prog_id

        if not ASCOM_AVAILABLE:
            raise MountConnectionError(
                f"Cannot open {prog_id}", "win32com not available - cannot use ASCOM"
            )

    def _open_driver(self) -> Any:
        return win32com.client.Dispatch(self.prog_id)

    @staticmethod
    def choose_device(default_prog_id: str = "ASCOM.Simulator.Telescope") -> Optional[str]:
        """Show the ASCOM Chooser and return the selected telescope ProgID.

        Returns:
            The chosen ProgID, or ``None`` when ASCOM is unavailable or the
            user cancelled the dialog.
        """
        if not ASCOM_AVAILABLE:
            return None
        chooser = win32com.client.Dispatch("ASCOM.Utilities.Chooser")
        chooser.DeviceType = "Telescope"
        chosen = chooser.Choose(default_prog_id)
        return chosen or None
