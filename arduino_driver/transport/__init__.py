"""Transport layer: the serial session and port discovery."""

from .ports import list_ports, resolve_port
from .serial_session import SerialSession

__all__ = [
    "SerialSession",
    "list_ports",
    "resolve_port",
]
