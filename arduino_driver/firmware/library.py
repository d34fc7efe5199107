"""Listener firmware images, one Intel HEX file per board model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from ..errors import DeploymentFailure
from ..hardware import ArduinoModel

logger = logging.getLogger(__name__)

IMAGE_FILE_NAME = "ArduinoListener.ino.{model}.hex"
DEFAULT_FIRMWARE_DIR = Path(__file__).resolve().parent / "listener"


@dataclass(frozen=True)
class FirmwareImage:
    """A listener build for one model, as Intel HEX records."""

    model: ArduinoModel
    path: Path
    records: Tuple[str, ...]

    @classmethod
    def from_file(cls, model: ArduinoModel, path: str | Path) -> "FirmwareImage":
        """Read and sanity-check the HEX records stored at *path*."""
        hex_path = Path(path)
        try:
            text = hex_path.read_text(encoding="ascii")
        except (OSError, UnicodeDecodeError) as exc:
            raise DeploymentFailure(
                f"Could not read firmware image {hex_path}: {exc}",
                phase="firmware",
                model=model,
            ) from exc

        records = tuple(line.strip() for line in text.splitlines() if line.strip())
        if not records:
            raise DeploymentFailure(
                f"Firmware image {hex_path} is empty", phase="firmware", model=model
            )
        for number, record in enumerate(records, start=1):
            if not record.startswith(":"):
                raise DeploymentFailure(
                    f"Firmware image {hex_path} line {number} is not an Intel HEX record",
                    phase="firmware",
                    model=model,
                )
        return cls(model=model, path=hex_path, records=records)


class FirmwareLibrary:
    """Look up the listener image for a board model in a directory."""

    def __init__(self, directory: Optional[str | Path] = None) -> None:
        self.directory = Path(directory) if directory else DEFAULT_FIRMWARE_DIR

    def path_for(self, model: ArduinoModel) -> Path:
        return self.directory / IMAGE_FILE_NAME.format(model=model.value)

    def image_for(self, model: ArduinoModel) -> FirmwareImage:
        """Load the image for *model*.

        Raises:
            DeploymentFailure: If the image is missing or malformed.
        """
        path = self.path_for(model)
        if not path.is_file():
            raise DeploymentFailure(
                f"Unable to bootstrap {model}: firmware image {path} is missing",
                phase="firmware",
                model=model,
            )
        logger.debug("Loading listener image %s", path)
        return FirmwareImage.from_file(model, path)
