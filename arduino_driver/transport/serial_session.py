"""Serial session: one open port, one request in flight."""

from __future__ import annotations

import logging
from typing import Optional

import serial

from ..errors import ConfigurationError, ProtocolError, TransportTimeout
from ..protocol.commands import MIN_ERROR_FRAME_SIZE, RESPONSE_SIZES, Ack, Request, encode
from ..protocol.responses import Response, decode
from ..settings import DEFAULT_READ_TIMEOUT, DEFAULT_WRITE_TIMEOUT, DRIVER_BAUD_RATE

_LOGGER = logging.getLogger(__name__)


class SerialSession:
    """Owns a serial port and performs strict request/response exchanges.

    Port name, baud rate and timeouts are fixed for the lifetime of the
    session; build a new session to change them.
    """

    def __init__(
        self,
        port: str,
        *,
        baudrate: int = DRIVER_BAUD_RATE,
        timeout: float = DEFAULT_READ_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.write_timeout = write_timeout
        self._serial: Optional[serial.Serial] = None

    @property
    def is_open(self) -> bool:
        return bool(self._serial and self._serial.is_open)

    def open(self) -> serial.Serial:
        if self.is_open:
            return self._serial
        _LOGGER.debug("Opening port %s at %d baud", self.port, self.baudrate)
        self._serial = serial.Serial(
            self.port,
            self.baudrate,
            timeout=self.timeout,
            write_timeout=self.write_timeout,
        )
        return self._serial

    def close(self) -> None:
        ser, self._serial = self._serial, None
        if ser is None:
            return
        _LOGGER.debug("Closing port %s", self.port)
        try:
            ser.close()
        except Exception:
            _LOGGER.debug("Error while closing port %s", self.port, exc_info=True)

    def __enter__(self) -> "SerialSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def request(self, request: Request) -> Response:
        """Write *request* and decode exactly one response frame.

        Raises:
            ConfigurationError: If the port is not open.
            TransportTimeout: If the frame is incomplete when the read times out.
            ProtocolError: If the frame cannot be decoded.
        """
        if not self.is_open:
            raise ConfigurationError(
                f"Serial port {self.port} is not open", port=self.port
            )
        assert self._serial is not None
        ser = self._serial
        ser.reset_input_buffer()
        ser.write(encode(request))
        ser.flush()

        expected = request.response_size
        frame = ser.read(expected)
        if frame and frame[0] == Ack.ERROR and len(frame) < RESPONSE_SIZES[Ack.ERROR]:
            frame += ser.read(RESPONSE_SIZES[Ack.ERROR] - len(frame))
            expected = MIN_ERROR_FRAME_SIZE
        if len(frame) < expected:
            raise TransportTimeout(
                f"Expected {expected} bytes in response to {request.command.name} "
                f"on {self.port}, got {len(frame)}",
                port=self.port,
            )
        return decode(frame)

    def send(self, request: Request, max_attempts: int = 1) -> Optional[Response]:
        """Exchange *request*, retrying on timeouts and undecodable frames.

        Returns ``None`` once *max_attempts* have failed, so callers can treat
        a silent device as an ordinary outcome.
        """
        max_attempts = max(1, max_attempts)
        for attempt in range(1, max_attempts + 1):
            try:
                return self.request(request)
            except (TransportTimeout, ProtocolError, serial.SerialException) as exc:
                _LOGGER.debug(
                    "Attempt %d/%d for %s on %s failed: %s",
                    attempt,
                    max_attempts,
                    request.command.name,
                    self.port,
                    exc,
                )
        return None
