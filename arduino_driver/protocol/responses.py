"""Response variants and the decoder that builds them from raw frames."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from ..errors import ProtocolError
from .commands import (
    MIN_ERROR_FRAME_SIZE,
    RESPONSE_SIZES,
    Ack,
    DigitalValue,
    PinMode,
)


@dataclass(frozen=True)
class HandshakeResponse:
    """The listener's protocol version."""

    major: int
    minor: int
    ack: int = Ack.HANDSHAKE


@dataclass(frozen=True)
class DigitalReadResponse:
    pin: int
    level: DigitalValue
    ack: int = Ack.DIGITAL_READ


@dataclass(frozen=True)
class DigitalWriteResponse:
    pin: int
    level: DigitalValue
    ack: int = Ack.DIGITAL_WRITE


@dataclass(frozen=True)
class AnalogReadResponse:
    """Parsed AnalogRead response; ``value`` is rebuilt from two bytes."""

    pin: int
    value: int
    ack: int = Ack.ANALOG_READ


@dataclass(frozen=True)
class AnalogWriteResponse:
    pin: int
    value: int
    ack: int = Ack.ANALOG_WRITE


@dataclass(frozen=True)
class PinModeResponse:
    pin: int
    mode: PinMode
    ack: int = Ack.PIN_MODE


@dataclass(frozen=True)
class ToneResponse:
    ack: int = Ack.TONE


@dataclass(frozen=True)
class NoToneResponse:
    ack: int = Ack.NO_TONE


@dataclass(frozen=True)
class ErrorResponse:
    """An error reported by the listener firmware.

    ``code`` and the (up to two) ``context`` bytes are defined by the
    firmware; the driver passes them through untouched.
    """

    code: int
    context: bytes = b""
    ack: int = Ack.ERROR

    def __repr__(self) -> str:
        return (
            f"ErrorResponse(code=0x{self.code:02X}, "
            f"context={self.context.hex(' ') if self.context else '(empty)'})"
        )


Response = Union[
    HandshakeResponse,
    DigitalReadResponse,
    DigitalWriteResponse,
    AnalogReadResponse,
    AnalogWriteResponse,
    PinModeResponse,
    ToneResponse,
    NoToneResponse,
    ErrorResponse,
]


def _digital_level(value: int) -> DigitalValue:
    try:
        return DigitalValue(value)
    except ValueError:
        raise ProtocolError(f"Invalid digital level in response: {value}") from None


def _pin_mode(value: int) -> PinMode:
    try:
        return PinMode(value)
    except ValueError:
        raise ProtocolError(f"Invalid pin mode in response: {value}") from None


def _parse_handshake(data: bytes) -> HandshakeResponse:
    return HandshakeResponse(major=data[1], minor=data[2])


def _parse_digital_read(data: bytes) -> DigitalReadResponse:
    return DigitalReadResponse(pin=data[1], level=_digital_level(data[2]))


def _parse_digital_write(data: bytes) -> DigitalWriteResponse:
    return DigitalWriteResponse(pin=data[1], level=_digital_level(data[2]))


def _parse_pin_mode(data: bytes) -> PinModeResponse:
    return PinModeResponse(pin=data[1], mode=_pin_mode(data[2]))


def _parse_analog_read(data: bytes) -> AnalogReadResponse:
    return AnalogReadResponse(pin=data[1], value=(data[2] << 8) | data[3])


def _parse_analog_write(data: bytes) -> AnalogWriteResponse:
    return AnalogWriteResponse(pin=data[1], value=int(data[2]))


def _parse_tone(data: bytes) -> ToneResponse:
    return ToneResponse()


def _parse_no_tone(data: bytes) -> NoToneResponse:
    return NoToneResponse()


def _parse_error(data: bytes) -> ErrorResponse:
    return ErrorResponse(code=data[1], context=bytes(data[2:RESPONSE_SIZES[Ack.ERROR]]))


# One entry per acknowledgement tag; tests assert the table stays exhaustive.
DECODERS: dict[Ack, Callable[[bytes], Response]] = {
    Ack.HANDSHAKE: _parse_handshake,
    Ack.DIGITAL_READ: _parse_digital_read,
    Ack.DIGITAL_WRITE: _parse_digital_write,
    Ack.PIN_MODE: _parse_pin_mode,
    Ack.ANALOG_READ: _parse_analog_read,
    Ack.ANALOG_WRITE: _parse_analog_write,
    Ack.TONE: _parse_tone,
    Ack.NO_TONE: _parse_no_tone,
    Ack.ERROR: _parse_error,
}


def required_size(ack: Ack) -> int:
    """Smallest frame length that decodes for *ack*."""
    if ack is Ack.ERROR:
        return MIN_ERROR_FRAME_SIZE
    return RESPONSE_SIZES[ack]


def decode(data: bytes) -> Response:
    """Decode one complete response frame.

    Raises:
        ProtocolError: If the frame is empty, truncated, carries an unknown
            acknowledgement tag or an out-of-range field.
    """
    data = bytes(data)
    if not data:
        raise ProtocolError("Empty response frame")
    try:
        ack = Ack(data[0])
    except ValueError:
        raise ProtocolError(
            f"Unexpected command byte in response: 0x{data[0]:02X}"
        ) from None
    if len(data) < required_size(ack):
        raise ProtocolError(
            f"Truncated {ack.name} response: expected {required_size(ack)} bytes, "
            f"got {len(data)}"
        )
    return DECODERS[ack](data)
