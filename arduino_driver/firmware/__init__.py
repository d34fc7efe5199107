"""Listener firmware images and deployers."""

from .deployer import AVRDUDE_TARGETS, AvrdudeDeployer, AvrdudeTarget, FirmwareDeployer
from .library import FirmwareImage, FirmwareLibrary

__all__ = [
    "AVRDUDE_TARGETS",
    "AvrdudeDeployer",
    "AvrdudeTarget",
    "FirmwareDeployer",
    "FirmwareImage",
    "FirmwareLibrary",
]
