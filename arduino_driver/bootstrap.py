"""Bootstrap: verify the listener firmware and redeploy it when needed.

The orchestrator runs once per driver. It handshakes with the listener and,
when the listener is missing or speaks an older protocol, flashes a fresh
image, waits out the board's reboot and handshakes again::

    IDLE -> PORT_OPENING -> HANDSHAKING -> COMPATIBLE -> READY
                                        -> NEEDS_REDEPLOY | NO_RESPONSE
         -> REDEPLOYING -> GRACE_PERIOD -> PORT_OPENING -> RE_HANDSHAKING
         -> READY | FATAL
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Mapping, Optional, Tuple

from .config import DriverConfig
from .errors import (
    ArduinoDriverError,
    ConfigurationError,
    DeploymentFailure,
    TransportTimeout,
)
from .firmware.deployer import FirmwareDeployer
from .firmware.library import FirmwareLibrary
from .handshake import (
    DRIVER_PROTOCOL_VERSION,
    HandshakeManager,
    ProtocolVersion,
    requires_redeploy,
)
from .hardware import ArduinoModel
from .settings import DEFAULT_REBOOT_GRACE_TIME, HANDSHAKE_ATTEMPTS
from .transport.serial_session import SerialSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], SerialSession]


class BootstrapState(Enum):
    IDLE = "idle"
    PORT_OPENING = "port-opening"
    HANDSHAKING = "handshaking"
    COMPATIBLE = "compatible"
    NEEDS_REDEPLOY = "needs-redeploy"
    NO_RESPONSE = "no-response"
    REDEPLOYING = "redeploying"
    GRACE_PERIOD = "grace-period"
    RE_HANDSHAKING = "re-handshaking"
    READY = "ready"
    FATAL = "fatal"


@dataclass(frozen=True)
class ModelProfile:
    """Per-model bootstrap overrides.

    ``grace_time`` is the reboot delay in seconds after flashing (``None``
    uses the policy default). With auto-bootstrap enabled, ``always_redeploy``
    skips the first handshake for boards whose listener cannot be trusted to
    answer it.
    """

    grace_time: Optional[float] = None
    always_redeploy: bool = False


DEFAULT_MODEL_PROFILES: Mapping[ArduinoModel, ModelProfile] = {
    ArduinoModel.MICRO: ModelProfile(grace_time=8.0),
    ArduinoModel.MEGA_2560: ModelProfile(grace_time=4.0),
    ArduinoModel.NANO_R3: ModelProfile(always_redeploy=True),
}


@dataclass(frozen=True)
class BootstrapPolicy:
    """Version and timing data the orchestrator works from."""

    driver_version: ProtocolVersion = DRIVER_PROTOCOL_VERSION
    default_grace_time: float = DEFAULT_REBOOT_GRACE_TIME
    handshake_attempts: int = HANDSHAKE_ATTEMPTS
    profiles: Mapping[ArduinoModel, ModelProfile] = field(
        default_factory=lambda: dict(DEFAULT_MODEL_PROFILES)
    )

    def profile_for(self, model: ArduinoModel) -> ModelProfile:
        return self.profiles.get(model, ModelProfile())

    def grace_time_for(self, model: ArduinoModel) -> float:
        grace_time = self.profile_for(model).grace_time
        return self.default_grace_time if grace_time is None else grace_time

    def always_redeploys(self, model: ArduinoModel) -> bool:
        return self.profile_for(model).always_redeploy


class BootstrapOrchestrator:
    """Bring a board from unknown firmware to a verified listener session."""

    def __init__(
        self,
        config: DriverConfig,
        *,
        session_factory: SessionFactory,
        deployer: FirmwareDeployer,
        firmware: FirmwareLibrary,
        policy: Optional[BootstrapPolicy] = None,
    ) -> None:
        if not config.port:
            raise ConfigurationError(
                "Bootstrap needs a resolved port name", phase="configuration"
            )
        self.config = config
        self.session_factory = session_factory
        self.deployer = deployer
        self.firmware = firmware
        self.policy = policy or BootstrapPolicy()
        self.state = BootstrapState.IDLE
        self.history: List[BootstrapState] = [BootstrapState.IDLE]
        self._session: Optional[SerialSession] = None

    @property
    def model(self) -> ArduinoModel:
        return self.config.model

    @property
    def port(self) -> str:
        assert self.config.port is not None
        return self.config.port

    def run(self) -> Tuple[SerialSession, ProtocolVersion]:
        """Run the bootstrap sequence and return the ready session.

        Raises:
            ConfigurationError: The listener did not answer (or is outdated)
                and auto-bootstrap is disabled.
            DeploymentFailure: Flashing the listener failed.
            TransportTimeout: The listener still did not answer after flashing.
        """
        if self.state is not BootstrapState.IDLE:
            raise RuntimeError("Bootstrap has already run")
        try:
            return self._run()
        except BaseException:
            self._release_session()
            if self.state is not BootstrapState.FATAL:
                self._enter(BootstrapState.FATAL)
            raise

    def _run(self) -> Tuple[SerialSession, ProtocolVersion]:
        driver_version = self.policy.driver_version
        if self.config.auto_bootstrap and self.policy.always_redeploys(self.model):
            logger.info("%s listener is always redeployed; skipping handshake", self.model)
        else:
            version = self._open_and_handshake(BootstrapState.HANDSHAKING)
            if version is None:
                self._enter(BootstrapState.NO_RESPONSE)
                self._release_session()
                if not self.config.auto_bootstrap:
                    raise self._fatal(
                        ConfigurationError(
                            "Unable to get a handshake ACK from the Arduino on port "
                            f"{self.port}. Enable auto_bootstrap to deploy the listener "
                            "automatically (this overwrites the sketch on the board)."
                        )
                    )
            else:
                logger.info(
                    "Driver protocol %s, listener protocol %s", driver_version, version
                )
                if not requires_redeploy(driver_version, version):
                    self._enter(BootstrapState.COMPATIBLE)
                    return self._ready(version)
                self._enter(BootstrapState.NEEDS_REDEPLOY)
                self._release_session()
                if not self.config.auto_bootstrap:
                    raise self._fatal(
                        ConfigurationError(
                            f"Listener on port {self.port} speaks protocol {version}, "
                            f"older than the driver's {driver_version}. Enable "
                            "auto_bootstrap to redeploy it."
                        )
                    )

        self._redeploy()

        grace_time = self.policy.grace_time_for(self.model)
        self._enter(BootstrapState.GRACE_PERIOD)
        logger.info("Grace time after reboot, waiting %.1fs...", grace_time)
        time.sleep(grace_time)

        version = self._open_and_handshake(BootstrapState.RE_HANDSHAKING)
        if version is None:
            self._release_session()
            raise self._fatal(
                TransportTimeout(
                    f"Unable to get a handshake ACK from the {self.model} on port "
                    f"{self.port} after deploying the listener"
                )
            )
        return self._ready(version)

    def _open_and_handshake(self, state: BootstrapState) -> Optional[ProtocolVersion]:
        self._enter(BootstrapState.PORT_OPENING)
        session = self.session_factory()
        self._session = session
        session.open()
        self._enter(state)
        manager = HandshakeManager(session, max_attempts=self.policy.handshake_attempts)
        return manager.attempt()

    def _redeploy(self) -> None:
        self._enter(BootstrapState.REDEPLOYING)
        logger.info(
            "Bootstrapping listener (protocol %s) onto %s at %s...",
            self.policy.driver_version,
            self.model,
            self.port,
        )
        started = time.monotonic()
        try:
            image = self.firmware.image_for(self.model)
            uploaded = self.deployer.upload(self.model, self.port, image)
        except DeploymentFailure as exc:
            raise self._fatal(exc)
        except Exception as exc:
            raise self._fatal(
                DeploymentFailure(f"Deploying the listener failed: {exc}")
            ) from exc
        if not uploaded:
            raise self._fatal(
                DeploymentFailure(
                    f"Deploying the listener to the {self.model} on port "
                    f"{self.port} failed"
                )
            )
        logger.info(
            "Bootstrapping device took %.0fms", (time.monotonic() - started) * 1000
        )

    def _ready(self, version: ProtocolVersion) -> Tuple[SerialSession, ProtocolVersion]:
        assert self._session is not None
        session, self._session = self._session, None
        self._enter(BootstrapState.READY)
        logger.info("Arduino driver ready on %s (listener protocol %s)", self.port, version)
        return session, version

    def _release_session(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.close()

    def _fatal(self, exc: ArduinoDriverError) -> ArduinoDriverError:
        exc.phase = exc.phase or self.state.value
        exc.model = exc.model or self.model
        exc.port = exc.port or self.port
        self._enter(BootstrapState.FATAL)
        return exc

    def _enter(self, state: BootstrapState) -> None:
        logger.debug("Bootstrap %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)
