"""Protocol version exchange with the listener firmware."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .protocol.commands import handshake
from .protocol.responses import HandshakeResponse
from .settings import HANDSHAKE_ATTEMPTS, PROTOCOL_MAJOR_VERSION, PROTOCOL_MINOR_VERSION
from .transport.serial_session import SerialSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProtocolVersion:
    """A (major, minor) protocol version, compared as ``major + minor / 10``."""

    major: int
    minor: int

    @property
    def composite(self) -> float:
        return self.major + self.minor / 10

    def is_newer_than(self, other: "ProtocolVersion") -> bool:
        return self.composite > other.composite

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


DRIVER_PROTOCOL_VERSION = ProtocolVersion(PROTOCOL_MAJOR_VERSION, PROTOCOL_MINOR_VERSION)


def requires_redeploy(
    driver_version: ProtocolVersion, listener_version: ProtocolVersion
) -> bool:
    """True when the driver speaks a newer protocol than the listener."""
    return driver_version.is_newer_than(listener_version)


class HandshakeManager:
    """Send a Handshake request and report the listener's protocol version."""

    def __init__(
        self, session: SerialSession, *, max_attempts: int = HANDSHAKE_ATTEMPTS
    ) -> None:
        self.session = session
        self.max_attempts = max_attempts

    def attempt(self) -> Optional[ProtocolVersion]:
        """Return the listener's version, or ``None`` if it did not answer."""
        response = self.session.send(handshake(), self.max_attempts)
        if response is None:
            logger.info("No handshake ACK received on %s", self.session.port)
            return None
        if not isinstance(response, HandshakeResponse):
            logger.warning(
                "Unexpected answer to handshake on %s: %r", self.session.port, response
            )
            return None
        version = ProtocolVersion(response.major, response.minor)
        logger.info("Handshake ACK received, listener protocol %s", version)
        return version
