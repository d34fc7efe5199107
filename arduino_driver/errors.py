"""Exception types raised by the Arduino driver."""

from __future__ import annotations

from typing import Any, Optional


class ArduinoDriverError(Exception):
    """Base class for driver failures.

    ``phase``, ``model`` and ``port`` describe where the failure happened when
    that is known, so callers can tell a bootstrap failure from a send failure.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: Optional[str] = None,
        model: Any = None,
        port: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.phase = phase
        self.model = model
        self.port = port


class ConfigurationError(ArduinoDriverError):
    """Ambiguous or missing port, disabled auto-bootstrap, or no open port."""


class TransportTimeout(ArduinoDriverError):
    """No complete response frame arrived within the read timeout."""


class ProtocolError(ArduinoDriverError):
    """A response frame could not be decoded."""


class DeploymentFailure(ArduinoDriverError):
    """Uploading the listener firmware failed."""
