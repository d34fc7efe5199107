"""Configuration helpers for the Arduino driver."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Optional

from .hardware import ArduinoModel
from .settings import (
    CONFIG_FILE,
    DEFAULT_READ_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
    DRIVER_BAUD_RATE,
)

logger = logging.getLogger(__name__)


def _ensure_parent(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        # Directory creation failures will surface during write; keep silent here.
        pass


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _coerce_float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result > 0 else default


def _coerce_model(value: Any, default: ArduinoModel) -> ArduinoModel:
    if value is None:
        return default
    try:
        return ArduinoModel.parse(value)
    except ValueError:
        logger.error("Unknown Arduino model %r in config; using %s", value, default)
        return default


def _coerce_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class DriverConfig:
    """Everything needed to build a driver and (re)create its serial session.

    ``model``, ``port`` and ``auto_bootstrap`` describe the board; the timing
    fields apply to every session opened for it.
    """

    model: ArduinoModel = ArduinoModel.UNO
    port: Optional[str] = None
    auto_bootstrap: bool = False
    baudrate: int = DRIVER_BAUD_RATE
    read_timeout: float = DEFAULT_READ_TIMEOUT
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    firmware_dir: Optional[str] = None

    def with_port(self, port: str) -> "DriverConfig":
        return replace(self, port=port)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["model"] = self.model.value
        return data


def load_config(path: str | Path = CONFIG_FILE) -> DriverConfig:
    """Load configuration data from *path* or return defaults on failure."""

    defaults = DriverConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return defaults

    try:
        raw = json.loads(cfg_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        logger.error("Config file %s contains invalid JSON: %s", cfg_path, exc)
        return defaults
    except OSError as exc:
        logger.error("Could not read config file %s: %s", cfg_path, exc)
        return defaults

    if not isinstance(raw, dict):
        logger.error("Config file %s did not contain an object", cfg_path)
        return defaults

    return DriverConfig(
        model=_coerce_model(raw.get("model"), defaults.model),
        port=_coerce_optional_str(raw.get("port")),
        auto_bootstrap=bool(raw.get("auto_bootstrap", defaults.auto_bootstrap)),
        baudrate=max(1, _coerce_int(raw.get("baudrate"), defaults.baudrate)),
        read_timeout=_coerce_float(raw.get("read_timeout"), defaults.read_timeout),
        write_timeout=_coerce_float(raw.get("write_timeout"), defaults.write_timeout),
        firmware_dir=_coerce_optional_str(raw.get("firmware_dir")),
    )


def save_config(config: DriverConfig, path: str | Path = CONFIG_FILE) -> None:
    """Persist *config* to *path*, logging errors without raising."""

    cfg_path = Path(path)
    _ensure_parent(cfg_path)
    try:
        cfg_path.write_text(json.dumps(config.to_dict(), indent=4), encoding="utf-8")
    except OSError as exc:
        logger.error("Could not write config file %s: %s", cfg_path, exc)
