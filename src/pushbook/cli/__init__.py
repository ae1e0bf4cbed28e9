"""
Pushbook CLI Module

Shared helpers for the command line entry points.
"""

import argparse
import logging
import platform
import sys

from pushbook import __version__

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
DEBUG_FORMAT = "%(asctime)s %(levelname)s [%(name)s:%(funcName)s:%(lineno)d] %(message)s"

# -v counts to logging levels
VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


def get_version_string(prog: str) -> str:
    """Generate a detailed version string."""
    python_version = platform.python_version()
    os_info = f"{platform.system()} {platform.release()}"
    return (
        f"{prog} {__version__}\n"
        f"  python: {python_version}\n"
        f"  platform: {os_info}"
    )


def configure_logging(verbosity: int) -> int:
    """Send diagnostic logging to stderr at the level selected by -v."""
    level = VERBOSITY_LEVELS.get(min(verbosity, 2), logging.DEBUG)
    logging.basicConfig(
        level=level,
        format=DEBUG_FORMAT if level <= logging.DEBUG else LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    if level > logging.DEBUG:
        # asyncssh logs every channel at INFO
        logging.getLogger("asyncssh").setLevel(logging.WARNING)
    return level


def add_inventory_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the mutually exclusive inventory source options."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-c", "--host-config",
        dest="host_config",
        default=None,
        help="YAML inventory file",
    )
    group.add_argument(
        "-s", "--host-script",
        dest="host_script",
        default=None,
        help="Executable that prints a YAML inventory on stdout",
    )


__all__ = [
    'add_inventory_arguments',
    'configure_logging',
    'get_version_string',
]
