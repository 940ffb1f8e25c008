"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Exception Hierarchy

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

All errors raised by the initializer and the mount adapters derive from
:class:`PiersyncError`, so the command-line boundary can catch a single
type and render it as ``FAILURE``.
"""

from typing import Optional


class PiersyncError(Exception):
    """Base exception for all PIERSYNC errors.

    Carries a human-readable *message* (the stage label shown to the
    user) and an optional *cause* describing the underlying fault.
    """

    def __init__(self, message: str, cause: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class MountError(PiersyncError):
    """Raised when the mount device itself reports or causes a fault."""


class MountConnectionError(MountError):
    """Raised when the mount cannot be reached or connected.

    This can occur when:
    - The ASCOM driver is not installed or win32com is unavailable
    - The Alpaca server does not answer
    - The driver refuses ``Connected = True``
    """


class CommandError(MountError):
    """Raised when the mount rejects a command or a property read fails."""


class CapabilityError(PiersyncError):
    """Raised when the mount lacks a required capability (sync, unpark)."""


class PreconditionError(PiersyncError):
    """Raised when the mount is in a state that forbids initialization."""


class ConvergenceTimeoutError(PiersyncError):
    """Raised when the mount did not settle within the timeout.

    Attributes:
        reason:   Last not-ready reason reported by the convergence check.
        actual:   Last value read from the mount (if any).
        expected: Value the check expected (if any).
    """

    def __init__(self, reason: str, actual: Optional[float] = None,
                 expected: Optional[float] = None):
        if actual is not None and expected is not None:
            message = f"{reason.capitalize()}: {actual}, expected: {expected}"
        else:
            message = reason.capitalize()
        super().__init__(message)
        self.reason = reason
        self.actual = actual
        self.expected = expected
