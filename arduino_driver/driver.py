"""Public entry point: a bootstrapped connection to an Arduino listener."""

from __future__ import annotations

import logging
from typing import Optional, Type, TypeVar

from .bootstrap import BootstrapOrchestrator, BootstrapPolicy
from .config import DriverConfig
from .errors import ConfigurationError, ProtocolError
from .firmware.deployer import AvrdudeDeployer, FirmwareDeployer
from .firmware.library import FirmwareLibrary
from .handshake import ProtocolVersion
from .hardware import ArduinoModel
from .protocol import commands
from .protocol.commands import DigitalValue, PinMode, Request
from .protocol.responses import (
    AnalogReadResponse,
    AnalogWriteResponse,
    DigitalReadResponse,
    DigitalWriteResponse,
    ErrorResponse,
    NoToneResponse,
    PinModeResponse,
    Response,
    ToneResponse,
)
from .transport.ports import resolve_port
from .transport.serial_session import SerialSession

logger = logging.getLogger(__name__)

R = TypeVar("R")


class ArduinoDriver:
    """Send GPIO requests to an Arduino running the listener firmware.

    Construction resolves the port, then verifies (and with ``auto_bootstrap``
    repairs) the listener before returning. Use as a context manager or call
    :meth:`close` when done::

        with ArduinoDriver(ArduinoModel.UNO, "/dev/ttyACM0") as driver:
            driver.pin_mode(13, PinMode.OUTPUT)
            driver.digital_write(13, DigitalValue.HIGH)
    """

    def __init__(
        self,
        model: ArduinoModel | str = ArduinoModel.UNO,
        port: Optional[str] = None,
        auto_bootstrap: bool = False,
        *,
        config: Optional[DriverConfig] = None,
        deployer: Optional[FirmwareDeployer] = None,
        firmware: Optional[FirmwareLibrary] = None,
        policy: Optional[BootstrapPolicy] = None,
    ) -> None:
        if config is None:
            config = DriverConfig(
                model=ArduinoModel.parse(model),
                port=port,
                auto_bootstrap=auto_bootstrap,
            )
        logger.info("Instantiating ArduinoDriver (model %s)...", config.model)
        self.config = config.with_port(resolve_port(config.port))
        self._session: Optional[SerialSession] = None

        orchestrator = BootstrapOrchestrator(
            self.config,
            session_factory=self._create_session,
            deployer=deployer or AvrdudeDeployer(),
            firmware=firmware or FirmwareLibrary(self.config.firmware_dir),
            policy=policy,
        )
        self._session, self._protocol_version = orchestrator.run()

    @classmethod
    def from_config(cls, config: DriverConfig, **kwargs) -> "ArduinoDriver":
        return cls(config=config, **kwargs)

    def _create_session(self) -> SerialSession:
        return SerialSession(
            self.config.port,
            baudrate=self.config.baudrate,
            timeout=self.config.read_timeout,
            write_timeout=self.config.write_timeout,
        )

    @property
    def model(self) -> ArduinoModel:
        return self.config.model

    @property
    def port(self) -> str:
        return self.config.port

    @property
    def protocol_version(self) -> ProtocolVersion:
        """Protocol version reported by the listener during bootstrap."""
        return self._protocol_version

    @property
    def is_open(self) -> bool:
        return bool(self._session and self._session.is_open)

    def close(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.close()
        except Exception:
            logger.debug("Error while closing driver on %s", self.port, exc_info=True)

    def __enter__(self) -> "ArduinoDriver":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def send(self, request: Request) -> Response:
        """Perform one exchange and return whatever the listener answered."""
        if self._session is None:
            raise ConfigurationError(
                "ArduinoDriver is closed; no serial port is open", port=self.port
            )
        return self._session.request(request)

    def _send_expecting(self, request: Request, expected: Type[R]) -> R | ErrorResponse:
        response = self.send(request)
        if isinstance(response, (expected, ErrorResponse)):
            if isinstance(response, ErrorResponse):
                logger.warning(
                    "Listener reported an error for %s: %r", request.command.name, response
                )
            return response
        raise ProtocolError(
            f"Expected {expected.__name__} in response to {request.command.name}, "
            f"got {type(response).__name__}",
            phase="send",
            model=self.model,
            port=self.port,
        )

    def digital_read(self, pin: int) -> DigitalReadResponse | ErrorResponse:
        return self._send_expecting(commands.digital_read(pin), DigitalReadResponse)

    def digital_write(
        self, pin: int, level: DigitalValue | int
    ) -> DigitalWriteResponse | ErrorResponse:
        return self._send_expecting(
            commands.digital_write(pin, level), DigitalWriteResponse
        )

    def analog_read(self, pin: int) -> AnalogReadResponse | ErrorResponse:
        return self._send_expecting(commands.analog_read(pin), AnalogReadResponse)

    def analog_write(self, pin: int, value: int) -> AnalogWriteResponse | ErrorResponse:
        return self._send_expecting(
            commands.analog_write(pin, value), AnalogWriteResponse
        )

    def pin_mode(self, pin: int, mode: PinMode | int) -> PinModeResponse | ErrorResponse:
        return self._send_expecting(commands.pin_mode(pin, mode), PinModeResponse)

    def tone(
        self, pin: int, frequency: int, duration_ms: int = 0
    ) -> ToneResponse | ErrorResponse:
        return self._send_expecting(
            commands.tone(pin, frequency, duration_ms), ToneResponse
        )

    def no_tone(self, pin: int) -> NoToneResponse | ErrorResponse:
        return self._send_expecting(commands.no_tone(pin), NoToneResponse)
