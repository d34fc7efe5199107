"""Host-side driver for Arduino boards running the serial listener firmware."""

from __future__ import annotations

from .bootstrap import BootstrapPolicy, BootstrapState, ModelProfile
from .config import DriverConfig, load_config, save_config
from .driver import ArduinoDriver
from .errors import (
    ArduinoDriverError,
    ConfigurationError,
    DeploymentFailure,
    ProtocolError,
    TransportTimeout,
)
from .handshake import ProtocolVersion
from .hardware import ArduinoModel
from .protocol import DigitalValue, PinMode

__all__ = [
    "ArduinoDriver",
    "ArduinoDriverError",
    "ArduinoModel",
    "BootstrapPolicy",
    "BootstrapState",
    "ConfigurationError",
    "DeploymentFailure",
    "DigitalValue",
    "DriverConfig",
    "ModelProfile",
    "PinMode",
    "ProtocolError",
    "ProtocolVersion",
    "TransportTimeout",
    "load_config",
    "save_config",
]
