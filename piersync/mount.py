"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Mount Abstraction Layer

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Provides a hardware-agnostic mount interface for the initializer.
Concrete implementations cover the supported device back-ends:

* **ASCOMMount**     – Windows ASCOM COM drivers (win32com)
* **AlpacaMount**    – ASCOM Alpaca REST devices (alpyca)
* **SimulatedMount** – in-process simulator for dry runs and tests
"""

import abc
import contextlib
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator

from .exceptions import MountConnectionError

logger = logging.getLogger(__name__)


class PierSide(IntEnum):
    """Side of pier, numbered like the ASCOM ``PierSide`` enumeration."""

    EAST = 0
    WEST = 1
    UNKNOWN = -1

    @classmethod
    def from_raw(cls, value) -> "PierSide":
        """Map a raw driver value to a :class:`PierSide`.

        Anything the driver reports that is not a known side (``None``,
        out-of-range integers, garbage) is treated as ``UNKNOWN``.
        """
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            return cls.UNKNOWN


@dataclass(frozen=True)
class MountSnapshot:
    """Mount state captured at one instant."""

    side_of_pier: PierSide
    right_ascension: float  # hours
    declination: float      # degrees
    tracking: bool
    sidereal_time: float    # hours
    at_park: bool
    can_sync: bool
    can_unpark: bool


class Mount(abc.ABC):
    """Base class for all mount back-ends.

    Implementations translate driver failures into
    :class:`~piersync.exceptions.MountError` subclasses so the
    initializer only ever has to deal with one error family.
    """

    # -- Abstract interface -------------------------------------------------
    @abc.abstractmethod
    def connect(self) -> None:
        """Open the connection to the device."""

    @abc.abstractmethod
    def disconnect(self) -> None:
        """Close the connection to the device."""

    @abc.abstractmethod
    def snapshot(self) -> MountSnapshot:
        """Read the current mount state."""

    @abc.abstractmethod
    def unpark(self) -> None:
        """Release the mount from its park position."""

    @abc.abstractmethod
    def set_tracking(self, enabled: bool) -> None:
        """Switch sidereal tracking on or off."""

    @abc.abstractmethod
    def sync_to_coordinates(self, right_ascension: float, declination: float) -> None:
        """Tell the mount it is pointing at the given coordinates."""

    def dispose(self) -> None:
        """Release the underlying device handle (idempotent)."""

    # -- Capabilities -------------------------------------------------------
    # Convenience accessors for callers outside a run.  The initializer
    # reads the flags from the snapshot it already holds.  Back-ends that
    # can query a single flag cheaply override these.
    @property
    def can_sync(self) -> bool:
        return self.snapshot().can_sync

    @property
    def can_unpark(self) -> bool:
        return self.snapshot().can_unpark

    # -- Scoped connection -------------------------------------------------
    @contextlib.contextmanager
    def session(self) -> Iterator["Mount"]:
        """Connect on entry; disconnect and dispose on every exit path.

        Any error raised by :meth:`connect` surfaces as
        :class:`~piersync.exceptions.MountConnectionError`.  Disconnect
        failures are logged and dropped so that cleanup never masks the
        primary result of the caller.
        """
        try:
            try:
                self.connect()
            except MountConnectionError:
                raise
            except Exception as exc:
                raise MountConnectionError("Failed to connect", str(exc)) from exc
            yield self
        finally:
            try:
                self.disconnect()
            except Exception as exc:
                logger.warning("Error disconnecting mount: %s", exc)
            self.dispose()
