"""Firmware deployment: the deployer capability and its avrdude backend."""

from __future__ import annotations

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence

import serial

from ..hardware import ArduinoModel
from ..transport.ports import list_ports
from .library import FirmwareImage

logger = logging.getLogger(__name__)

TOUCH_BAUD_RATE = 1200


class FirmwareDeployer(ABC):
    """Uploads a listener image onto the board attached to a port."""

    @abstractmethod
    def upload(self, model: ArduinoModel, port: str, image: FirmwareImage) -> bool:
        """Flash *image*; return ``True`` on success."""


@dataclass(frozen=True)
class AvrdudeTarget:
    """avrdude settings for one board family."""

    part: str
    programmer: str
    baudrate: int
    touch_reset: bool = False


AVRDUDE_TARGETS: dict[ArduinoModel, AvrdudeTarget] = {
    ArduinoModel.UNO: AvrdudeTarget("atmega328p", "arduino", 115200),
    ArduinoModel.NANO_R3: AvrdudeTarget("atmega328p", "arduino", 57600),
    ArduinoModel.MEGA_2560: AvrdudeTarget("atmega2560", "wiring", 115200),
    ArduinoModel.MICRO: AvrdudeTarget("atmega32u4", "avr109", 57600, touch_reset=True),
    ArduinoModel.LEONARDO: AvrdudeTarget("atmega32u4", "avr109", 57600, touch_reset=True),
}


class AvrdudeDeployer(FirmwareDeployer):
    """Flash listener images by running the ``avrdude`` command line tool."""

    def __init__(
        self,
        executable: str = "avrdude",
        *,
        timeout: float = 120.0,
        bootloader_wait: float = 4.0,
        extra_args: Sequence[str] = (),
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.bootloader_wait = bootloader_wait
        self.extra_args = tuple(extra_args)

    def command_for(
        self, target: AvrdudeTarget, port: str, image: FirmwareImage
    ) -> List[str]:
        return [
            self.executable,
            f"-p{target.part}",
            f"-c{target.programmer}",
            f"-P{port}",
            f"-b{target.baudrate}",
            "-D",
            *self.extra_args,
            f"-Uflash:w:{image.path}:i",
        ]

    def upload(self, model: ArduinoModel, port: str, image: FirmwareImage) -> bool:
        target = AVRDUDE_TARGETS.get(model)
        if target is None:
            logger.error("No avrdude settings for model %s", model)
            return False

        upload_port = self._enter_bootloader(port) if target.touch_reset else port
        cmd = self.command_for(target, upload_port, image)
        logger.debug("Running %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd, check=False, capture_output=True, text=True, timeout=self.timeout
            )
        except FileNotFoundError:
            logger.error(
                "%s not found; install avrdude or put it on PATH", self.executable
            )
            return False
        except subprocess.TimeoutExpired:
            logger.error("avrdude did not finish within %.0fs", self.timeout)
            return False

        if proc.returncode != 0:
            err = (proc.stderr or proc.stdout or "").strip()
            logger.error("avrdude failed with exit code %d: %s", proc.returncode, err)
            return False

        logger.info("Uploaded %s to %s on %s", image.path.name, model, upload_port)
        return True

    def _enter_bootloader(self, port: str) -> str:
        """Reset an ATmega32u4 board into its bootloader with a 1200 baud touch.

        The bootloader often enumerates as a different port; return it if it
        shows up, otherwise the original port once it re-appears.
        """
        before = list_ports()
        try:
            ser = serial.Serial(port, TOUCH_BAUD_RATE)
            ser.dtr = False
            ser.close()
        except serial.SerialException:
            logger.debug("1200 baud touch on %s failed", port, exc_info=True)

        vanished = False
        deadline = time.time() + self.bootloader_wait
        while time.time() < deadline:
            time.sleep(0.25)
            current = list_ports()
            fresh = [name for name in current if name not in before]
            if fresh:
                logger.debug("Bootloader appeared on %s", fresh[0])
                return fresh[0]
            if port not in current:
                vanished = True
            elif vanished:
                return port
        return port
