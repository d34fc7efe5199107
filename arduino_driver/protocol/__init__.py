"""Protocol layer: command tags, request builders and response decoding."""

from .commands import (
    Ack,
    Command,
    DigitalValue,
    PinMode,
    Request,
    analog_read,
    analog_write,
    digital_read,
    digital_write,
    encode,
    handshake,
    no_tone,
    pin_mode,
    tone,
)
from .responses import (
    AnalogReadResponse,
    AnalogWriteResponse,
    DigitalReadResponse,
    DigitalWriteResponse,
    ErrorResponse,
    HandshakeResponse,
    NoToneResponse,
    PinModeResponse,
    Response,
    ToneResponse,
    decode,
)

__all__ = [
    "Ack",
    "AnalogReadResponse",
    "AnalogWriteResponse",
    "Command",
    "DigitalReadResponse",
    "DigitalValue",
    "DigitalWriteResponse",
    "ErrorResponse",
    "HandshakeResponse",
    "NoToneResponse",
    "PinMode",
    "PinModeResponse",
    "Request",
    "Response",
    "ToneResponse",
    "analog_read",
    "analog_write",
    "decode",
    "digital_read",
    "digital_write",
    "encode",
    "handshake",
    "no_tone",
    "pin_mode",
    "tone",
]
