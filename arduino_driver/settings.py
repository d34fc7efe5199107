"""Shared constants and logging setup for the Arduino driver."""

from __future__ import annotations

import logging

CONFIG_FILE = "arduino_driver.json"
LOG_LEVEL = logging.INFO
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DRIVER_BAUD_RATE = 115200
DEFAULT_READ_TIMEOUT = 0.1
DEFAULT_WRITE_TIMEOUT = 0.1

PROTOCOL_MAJOR_VERSION = 1
PROTOCOL_MINOR_VERSION = 0

HANDSHAKE_ATTEMPTS = 3
DEFAULT_REBOOT_GRACE_TIME = 2.0


def configure_logging(
    *, level: int = LOG_LEVEL, fmt: str = LOG_FORMAT, force: bool = False
) -> None:
    """Initialize the root logger used across the driver."""

    if force:
        logging.basicConfig(level=level, format=fmt, force=True)
        return

    if logging.getLogger().handlers:
        return
    logging.basicConfig(level=level, format=fmt)
