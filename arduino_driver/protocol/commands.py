"""Command tags, request values and request builders.

Every request goes on the wire as ``[command tag][param bytes...]`` with no
length prefix, checksum or terminator. Both sides agree on the number of
bytes each command sends and receives.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class Ack(IntEnum):
    """Acknowledgement tags that lead every response frame."""

    HANDSHAKE = 0x02
    DIGITAL_READ = 0x04
    DIGITAL_WRITE = 0x06
    PIN_MODE = 0x08
    ANALOG_READ = 0x0A
    ANALOG_WRITE = 0x0C
    TONE = 0x0E
    NO_TONE = 0x10
    ERROR = 0xEF


class Command(IntEnum):
    """Request tags, one per operation family."""

    HANDSHAKE = 0x01
    DIGITAL_READ = 0x03
    DIGITAL_WRITE = 0x05
    PIN_MODE = 0x07
    ANALOG_READ = 0x09
    ANALOG_WRITE = 0x0B
    TONE = 0x0D
    NO_TONE = 0x0F
    ERROR = 0xEF

    @property
    def ack(self) -> Ack:
        """The acknowledgement tag answering this command."""
        return Ack[self.name]


class PinMode(IntEnum):
    INPUT = 0
    OUTPUT = 1
    INPUT_PULLUP = 2


class DigitalValue(IntEnum):
    LOW = 0
    HIGH = 1


# Full frame length (tag included) of each successful response.
RESPONSE_SIZES: dict[Ack, int] = {
    Ack.HANDSHAKE: 3,
    Ack.DIGITAL_READ: 3,
    Ack.DIGITAL_WRITE: 3,
    Ack.PIN_MODE: 3,
    Ack.ANALOG_READ: 4,
    Ack.ANALOG_WRITE: 3,
    Ack.TONE: 1,
    Ack.NO_TONE: 1,
    Ack.ERROR: 4,
}

# An error frame carries at least the error code.
MIN_ERROR_FRAME_SIZE = 2


@dataclass(frozen=True)
class Request:
    """An immutable request: a command tag and its parameter bytes."""

    command: Command
    params: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "command", Command(self.command))
        object.__setattr__(self, "params", bytes(self.params))

    @property
    def response_size(self) -> int:
        """Bytes the session reads for the matching acknowledgement."""
        return RESPONSE_SIZES[self.command.ack]

    def __repr__(self) -> str:
        return (
            f"Request(command={self.command.name}, "
            f"params={self.params.hex(' ') if self.params else '(empty)'})"
        )


def encode(request: Request) -> bytes:
    """Serialize *request* as ``[command tag] + params``."""
    return bytes([request.command.value]) + request.params


def _check_byte(name: str, value: int) -> int:
    if not 0 <= int(value) <= 0xFF:
        raise ValueError(f"{name} must be 0-255, got {value}")
    return int(value)


def handshake() -> Request:
    """Build the version-exchange request."""
    return Request(Command.HANDSHAKE)


def digital_read(pin: int) -> Request:
    return Request(Command.DIGITAL_READ, bytes([_check_byte("Pin", pin)]))


def digital_write(pin: int, level: DigitalValue | int) -> Request:
    """Build a DigitalWrite request driving *pin* LOW or HIGH."""
    level = DigitalValue(level)
    return Request(Command.DIGITAL_WRITE, bytes([_check_byte("Pin", pin), level.value]))


def analog_read(pin: int) -> Request:
    return Request(Command.ANALOG_READ, bytes([_check_byte("Pin", pin)]))


def analog_write(pin: int, value: int) -> Request:
    """Build an AnalogWrite (PWM) request.

    Args:
        pin: Pin number 0-255.
        value: Duty cycle 0-255.
    """
    return Request(
        Command.ANALOG_WRITE,
        bytes([_check_byte("Pin", pin), _check_byte("Analog value", value)]),
    )


def pin_mode(pin: int, mode: PinMode | int) -> Request:
    mode = PinMode(mode)
    return Request(Command.PIN_MODE, bytes([_check_byte("Pin", pin), mode.value]))


def tone(pin: int, frequency: int, duration_ms: int = 0) -> Request:
    """Build a Tone request.

    Frequency travels as two big-endian bytes and the duration as four; a
    duration of 0 plays until a NoTone request arrives.
    """
    if not 0 <= frequency <= 0xFFFF:
        raise ValueError(f"Frequency must be 0-65535, got {frequency}")
    if not 0 <= duration_ms <= 0xFFFFFFFF:
        raise ValueError(f"Duration must be 0-4294967295 ms, got {duration_ms}")
    params = (
        bytes([_check_byte("Pin", pin)])
        + int(frequency).to_bytes(2, "big")
        + int(duration_ms).to_bytes(4, "big")
    )
    return Request(Command.TONE, params)


def no_tone(pin: int) -> Request:
    return Request(Command.NO_TONE, bytes([_check_byte("Pin", pin)]))
