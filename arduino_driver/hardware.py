"""Supported Arduino board models."""

from __future__ import annotations

from enum import Enum


class ArduinoModel(str, Enum):
    """Board families the listener firmware is built for."""

    UNO = "Uno"
    NANO_R3 = "NanoR3"
    MEGA_2560 = "Mega2560"
    MICRO = "Micro"
    LEONARDO = "Leonardo"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "ArduinoModel | str") -> "ArduinoModel":
        """Return the model named by *value*, accepting values or member names."""

        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text.lower() in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"Unknown Arduino model: {value!r}")
