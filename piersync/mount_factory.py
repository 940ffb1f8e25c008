"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Mount Factory

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Maps a telescope identifier to a concrete :class:`Mount`:

* ``simulator``               -> :class:`SimulatedMount`
* ``alpaca://host:port[/N]``  -> :class:`AlpacaMount`
* anything else               -> :class:`ASCOMMount` (treated as a ProgID)
"""

import logging
from typing import Optional

from .alpaca_handler import ALPACA_SCHEME, AlpacaMount, parse_alpaca_id
from .ascom_handler import ASCOMMount
from .mount import Mount
from .simulated_mount import SimulatedMount

logger = logging.getLogger(__name__)

SIMULATOR_ID = "simulator"


def create_mount(telescope_id: str, config: Optional[dict] = None) -> Mount:
    """Factory that returns a mount back-end for *telescope_id*."""
    telescope_id = (telescope_id or "").strip()
    if not telescope_id:
        raise ValueError("No telescope specified")
    config = config or {}

    if telescope_id.lower() == SIMULATOR_ID:
        logger.info("Using simulated mount")
        return SimulatedMount.from_config(config.get("simulator", {}))

    if telescope_id.lower().startswith(ALPACA_SCHEME):
        address, device_number = parse_alpaca_id(telescope_id)
        logger.info("Using Alpaca telescope %s #%d", address, device_number)
        return AlpacaMount(address, device_number)

    logger.info("Using ASCOM telescope %s", telescope_id)
    return ASCOMMount(telescope_id)
