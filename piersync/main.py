"""
PIERSYNC - Pier-side Initialization by Equatorial Reference Sync
Main Application Entry Point

Copyright (c) 2026 Kay Schäfer. All Rights Reserved.
Proprietary and confidential. See LICENSE for details.

Loads config.yaml, parses the command line, connects to the chosen
mount and runs the counter-weights-down initialization.  The result
is reported as progress lines, an optional OK/FAILURE status line and
the process exit code:

    0  success (or condition met in check mode)
    1  condition not met in check mode
    2  fatal error
"""

import argparse
import copy
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from .ascom_handler import ASCOMMount
from .exceptions import PiersyncError
from .initializer import (
    ConditionMode,
    InitializationConfig,
    InitializationOutcome,
    MountInitializer,
    OutcomeKind,
)
from .mount_factory import create_mount

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"

EXIT_OK = 0
EXIT_CONDITION_NOT_MET = 1
EXIT_FAILURE = 2

# ---------------------------------------------------------------------------
# Default configuration – used as fallback when keys are missing / invalid
# ---------------------------------------------------------------------------
DEFAULT_CONFIG: dict = {
    "mount": {
        "telescope": "",
        "default_prog_id": "ASCOM.Simulator.Telescope",
    },
    "initialization": {
        "condition": "",
        "timeout": 60,
        "unpark": False,
        "stop_tracking": False,
        "force": False,
        "connect_settle": 1.0,
    },
    "simulator": {
        "longitude": 0.0,
        "settle_time": 3.0,
        "settled_side": "west",
        "at_park": False,
        "can_sync": True,
        "can_unpark": True,
    },
    "logging": {
        "level": "WARNING",
        "file": "",
        "console": True,
    },
}


# ---------------------------------------------------------------------------
# Config helpers
# ---------------------------------------------------------------------------
def _type_ok(default, value) -> bool:
    """Flags, numbers and strings only accept a value of the same kind."""
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(default, bool) and isinstance(value, bool)
    if isinstance(default, (int, float)):
        return isinstance(value, (int, float))
    if isinstance(default, str):
        return isinstance(value, str)
    return True


def _merge_sections(raw: dict) -> dict:
    """Overlay the sections of a user config on a copy of ``DEFAULT_CONFIG``.

    Values of the wrong type keep their default.  Sections and keys that
    PIERSYNC does not know about are carried over untouched.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in raw.items():
        defaults = config.get(section)
        if defaults is None:
            config[section] = values
        elif not isinstance(values, dict):
            logger.warning("Config section '%s' is not a mapping, using defaults", section)
        else:
            for key, value in values.items():
                if key in defaults and not _type_ok(defaults[key], value):
                    logger.warning("Config value %s.%s=%r has the wrong type, using %r",
                                   section, key, value, defaults[key])
                    continue
                defaults[key] = value
    return config


def load_config(path: Optional[str] = None) -> dict:
    """Load ``config.yaml`` and merge it with the defaults.

    A missing, unparsable or empty file yields a copy of ``DEFAULT_CONFIG``.

    Args:
        path: Path to config file.  Defaults to ``config.yaml`` in the
              repository root.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r") as fh:
            raw = yaml.safe_load(fh)
    except FileNotFoundError:
        logger.info("Config file not found: %s – using defaults", config_path)
        raw = None
    except yaml.YAMLError as exc:
        logger.error("Error parsing config file: %s – using defaults", exc)
        raw = None

    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning("Config file %s is not a mapping – using defaults", config_path)
        return copy.deepcopy(DEFAULT_CONFIG)
    logger.info("Configuration loaded from %s", config_path)
    return _merge_sections(raw)


def save_telescope(telescope_id: str, path: Optional[str] = None) -> None:
    """Remember *telescope_id* as ``mount.telescope`` in the config file."""
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    config = load_config(path)
    config["mount"]["telescope"] = telescope_id
    try:
        with open(config_path, "w") as fh:
            yaml.safe_dump(config, fh, default_flow_style=False, sort_keys=False)
    except OSError as exc:
        logger.error("Could not save telescope to %s: %s", config_path, exc)
        return
    logger.info("Telescope %s saved to %s", telescope_id, config_path)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
def setup_logging(config: dict, level_override: Optional[str] = None) -> None:
    """Configure the root logger with an optional RotatingFileHandler."""
    log_cfg = config.get("logging", {})
    level_name = (level_override or log_cfg.get("level", "WARNING")).upper()
    level = getattr(logging, level_name, logging.WARNING)
    log_file = log_cfg.get("file")
    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    handlers: list = []
    if log_cfg.get("console", True):
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        rotating = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,   # 5 MB
            backupCount=5,
        )
        handlers.append(rotating)

    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=handlers or [logging.NullHandler()],
    )


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="piersync",
        description="Initialize an equatorial mount by syncing it to the "
                    "counter-weights-down position",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Conditions:
  always             always sync the mount
  unknownSideOfPier  sync only when the side of pier is unknown
  force              sync when --force is given or the side of pier is unknown

Telescopes:
  simulator                  built-in simulated mount
  alpaca://host:port[/N]     ASCOM Alpaca device N (default 0)
  <ProgID>                   ASCOM COM driver, e.g. ASCOM.Simulator.Telescope

Exit codes:
  0  success   1  condition not met (--check)   2  failure
""",
    )
    parser.add_argument("--condition", choices=[m.value for m in ConditionMode],
                        help="When to initialize the mount")
    parser.add_argument("--telescope", help="Telescope identifier (chooser if omitted)")
    parser.add_argument("--timeout", type=int, default=None,
                        help="Seconds to wait for the mount to settle (default 60)")
    parser.add_argument("--silent", action="store_true", help="Suppress progress output")
    parser.add_argument("--status", action="store_true",
                        help="Print OK or FAILURE as the final line")
    parser.add_argument("--unpark", action="store_true", help="Unpark the mount if parked")
    parser.add_argument("--stopTracking", dest="stop_tracking", action="store_true",
                        help="Stop tracking after the sync")
    parser.add_argument("--force", action="store_true",
                        help="With --condition force: initialize even if the side of pier is known")
    parser.add_argument("--check", action="store_true",
                        help="Only evaluate the condition, do not touch the mount")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--log-level", dest="log_level", default=None,
                        help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def build_init_config(args: argparse.Namespace, config: dict) -> InitializationConfig:
    """Combine command-line flags with the ``initialization`` config section."""
    init_cfg = config.get("initialization", {})
    condition = args.condition or init_cfg.get("condition")
    if not condition:
        raise ValueError("No condition specified")

    timeout = args.timeout if args.timeout is not None else init_cfg.get("timeout", 60)
    return InitializationConfig(
        condition_mode=ConditionMode.parse(condition),
        timeout=int(timeout),
        unpark=args.unpark or init_cfg.get("unpark", False),
        stop_tracking=args.stop_tracking or init_cfg.get("stop_tracking", False),
        check_only=args.check,
        force=args.force or init_cfg.get("force", False),
        connect_settle=float(init_cfg.get("connect_settle", 1.0)),
    )


def resolve_telescope(args: argparse.Namespace, config: dict,
                      config_path: Optional[str] = None) -> Optional[str]:
    """Return the telescope id from the CLI, the config, or the ASCOM chooser."""
    mount_cfg = config.get("mount", {})
    telescope_id = args.telescope or mount_cfg.get("telescope")
    if telescope_id:
        return telescope_id

    logger.info("No telescope configured – launching chooser")
    chosen = ASCOMMount.choose_device(mount_cfg.get("default_prog_id", "ASCOM.Simulator.Telescope"))
    if chosen:
        config.setdefault("mount", {})["telescope"] = chosen
        save_telescope(chosen, config_path)
    return chosen


def exit_code_for(outcome: InitializationOutcome) -> int:
    if outcome.kind is OutcomeKind.FAILED:
        return EXIT_FAILURE
    if outcome.kind is OutcomeKind.CONDITION_NOT_MET:
        return EXIT_CONDITION_NOT_MET
    return EXIT_OK


def _report_error(message: str, cause: Optional[str] = None) -> None:
    if cause:
        print(f"{message}:", file=sys.stderr)
        print(cause, file=sys.stderr)
    else:
        print(message, file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``piersync`` command."""
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(config, args.log_level)

    def finish(code: int) -> int:
        if args.status:
            print("OK" if code == EXIT_OK else "FAILURE")
        return code

    try:
        init_config = build_init_config(args, config)
    except ValueError as exc:
        if not args.silent:
            _report_error(str(exc))
        return finish(EXIT_FAILURE)

    try:
        telescope_id = resolve_telescope(args, config, args.config)
        if not telescope_id:
            raise ValueError("No telescope specified")
        mount = create_mount(telescope_id, config)
    except (ValueError, PiersyncError) as exc:
        if not args.silent:
            message = getattr(exc, "message", str(exc))
            _report_error(message, getattr(exc, "cause", None))
        return finish(EXIT_FAILURE)

    if not args.silent:
        print(f"Connecting to mount: {telescope_id}")

    initializer = MountInitializer(
        init_config,
        on_progress=None if args.silent else print,
    )
    try:
        outcome = initializer.run(mount)
    except Exception as exc:
        logger.exception("Unexpected error during initialization")
        if not args.silent:
            _report_error("Unexpected error", str(exc))
        return finish(EXIT_FAILURE)

    if outcome.kind is OutcomeKind.FAILED and not args.silent:
        _report_error(outcome.reason, outcome.cause)

    return finish(exit_code_for(outcome))


if __name__ == "__main__":
    sys.exit(main())
