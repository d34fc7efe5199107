"""Serial port discovery."""

from __future__ import annotations

import logging
from typing import List, Optional

import serial.tools.list_ports

from ..errors import ConfigurationError

_LOGGER = logging.getLogger(__name__)


def list_ports() -> List[str]:
    """Return the distinct serial device names currently present."""
    ports: List[str] = []
    for info in serial.tools.list_ports.comports():
        device = getattr(info, "device", None)
        if device and device not in ports:
            ports.append(device)
    return ports


def resolve_port(explicit: Optional[str] = None) -> str:
    """Return *explicit* or the single serial port available.

    Raises:
        ConfigurationError: If no port was given and there is not exactly one
            candidate to choose from.
    """
    normalized = (explicit or "").strip()
    if normalized:
        return normalized

    ports = list_ports()
    if len(ports) == 1:
        _LOGGER.info("Auto-detected serial port %s", ports[0])
        return ports[0]
    if not ports:
        detail = "no serial ports are available"
    else:
        detail = f"{len(ports)} serial ports are available ({', '.join(ports)})"
    raise ConfigurationError(
        "Unable to auto-detect the Arduino port, since "
        f"{detail}. Pass the port name explicitly.",
        phase="port-detection",
    )
