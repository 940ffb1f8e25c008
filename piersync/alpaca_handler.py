"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
ASCOM Alpaca Telescope Handler

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Talks to network mounts through the ASCOM Alpaca REST API using
alpyca's :class:`alpaca.telescope.Telescope`.  Works on every platform,
unlike the COM back-end in :mod:`piersync.ascom_handler`.

The alpyca client exposes the same ``ITelescope`` member names as the
COM object, so all property access and error wrapping is shared via
:class:`~piersync.ascom_handler.DriverMount`.
"""

import logging
import re
from typing import Tuple

from alpaca.telescope import Telescope

from .ascom_handler import DriverMount

logger = logging.getLogger(__name__)

ALPACA_SCHEME = "alpaca://"

_ADDRESS_RE = re.compile(
    r"^alpaca://(?P<address>[^/\s]+)(?:/(?P<device>\d+))?/?$", re.IGNORECASE,
)


def parse_alpaca_id(telescope_id: str) -> Tuple[str, int]:
    """Split ``alpaca://host:port[/N]`` into ``(host:port, N)``.

    The device number defaults to 0.
    """
    match = _ADDRESS_RE.match(telescope_id.strip())
    if match is None:
        raise ValueError(f"Invalid Alpaca telescope id: {telescope_id!r}")
    return match.group("address"), int(match.group("device") or 0)


class AlpacaMount(DriverMount):
    """Mount back-end for ASCOM Alpaca telescopes."""

    def __init__(self, address: str, device_number: int = 0):
        super().__init__(f"{ALPACA_SCHEME}{address}/{device_number}")
        self.address = address
        self.device_number = device_number

    def _open_driver(self) -> Telescope:
        logger.debug("Opening Alpaca telescope %s #%d", self.address, self.device_number)
        return Telescope(self.address, self.device_number)
