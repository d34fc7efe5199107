import unittest
from types import SimpleNamespace
from unittest import mock

from arduino_driver import ArduinoDriver, ArduinoModel, DriverConfig
from arduino_driver.errors import ConfigurationError, ProtocolError, TransportTimeout
from arduino_driver.handshake import ProtocolVersion
from arduino_driver.protocol import commands
from arduino_driver.protocol.commands import DigitalValue, PinMode
from arduino_driver.protocol.responses import (
    AnalogReadResponse,
    AnalogWriteResponse,
    DigitalReadResponse,
    DigitalWriteResponse,
    ErrorResponse,
    NoToneResponse,
    PinModeResponse,
    ToneResponse,
)

HANDSHAKE_ACK = bytes([0x02, 1, 0])


class ArduinoDriverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ser = mock.Mock()
        self.ser.is_open = True
        self.reads = [HANDSHAKE_ACK]
        self.ser.read.side_effect = lambda size: self.reads.pop(0) if self.reads else b""
        patcher = mock.patch(
            "arduino_driver.transport.serial_session.serial.Serial",
            return_value=self.ser,
        )
        self.mock_serial = patcher.start()
        self.addCleanup(patcher.stop)
        self.deployer = mock.Mock()

    def _driver(self, **kwargs) -> ArduinoDriver:
        kwargs.setdefault("deployer", self.deployer)
        return ArduinoDriver(ArduinoModel.UNO, "COM5", **kwargs)

    def test_construction_handshakes_on_configured_port(self) -> None:
        driver = self._driver()

        self.mock_serial.assert_called_once_with(
            "COM5", 115200, timeout=0.1, write_timeout=0.1
        )
        self.ser.write.assert_called_once_with(b"\x01")
        self.assertTrue(driver.is_open)
        self.assertEqual(driver.protocol_version, ProtocolVersion(1, 0))
        self.deployer.upload.assert_not_called()

    def test_typed_sends_return_typed_responses(self) -> None:
        driver = self._driver()
        self.reads += [
            bytes([0x08, 13, 1]),
            bytes([0x06, 13, 1]),
            bytes([0x04, 2, 0]),
            bytes([0x0A, 0, 0x03, 0xFF]),
            bytes([0x0C, 9, 128]),
            b"\x0e",
            b"\x10",
        ]

        self.assertEqual(driver.pin_mode(13, PinMode.OUTPUT), PinModeResponse(13, PinMode.OUTPUT))
        self.assertEqual(
            driver.digital_write(13, DigitalValue.HIGH),
            DigitalWriteResponse(13, DigitalValue.HIGH),
        )
        self.assertEqual(driver.digital_read(2), DigitalReadResponse(2, DigitalValue.LOW))
        self.assertEqual(driver.analog_read(0), AnalogReadResponse(0, 1023))
        self.assertEqual(driver.analog_write(9, 128), AnalogWriteResponse(9, 128))
        self.assertEqual(driver.tone(8, 440, 250), ToneResponse())
        self.assertEqual(driver.no_tone(8), NoToneResponse())

        written = [c.args[0] for c in self.ser.write.call_args_list[1:]]
        self.assertEqual(written[0], bytes([0x07, 13, 1]))
        self.assertEqual(written[-1], bytes([0x0F, 8]))

    def test_remote_error_is_returned_not_raised(self) -> None:
        driver = self._driver()
        self.reads += [bytes([0xEF, 0x02, 0x0D, 0x00])]
        self.assertEqual(driver.digital_read(13), ErrorResponse(2, b"\x0d\x00"))

    def test_wrong_variant_raises_protocol_error(self) -> None:
        driver = self._driver()
        self.reads += [bytes([0x0C, 1, 2])]
        with self.assertRaises(ProtocolError):
            driver.digital_read(1)

    def test_unknown_ack_raises_protocol_error(self) -> None:
        driver = self._driver()
        self.reads += [bytes([0x42, 1, 2])]
        with self.assertRaises(ProtocolError):
            driver.digital_read(1)

    def test_silent_board_raises_timeout(self) -> None:
        driver = self._driver()
        with self.assertRaises(TransportTimeout):
            driver.analog_read(0)

    def test_send_after_close_is_configuration_error(self) -> None:
        driver = self._driver()
        driver.close()
        driver.close()
        self.ser.close.assert_called_once()
        with self.assertRaises(ConfigurationError):
            driver.digital_read(3)
        with self.assertRaises(ConfigurationError):
            driver.send(commands.no_tone(3))

    def test_context_manager_closes_even_if_close_fails(self) -> None:
        self.ser.close.side_effect = OSError("gone")
        with self._driver() as driver:
            pass
        self.assertFalse(driver.is_open)

    def test_no_handshake_without_auto_bootstrap_fails(self) -> None:
        self.reads = []
        with self.assertRaises(ConfigurationError):
            self._driver()
        self.ser.close.assert_called_once()

    @mock.patch("arduino_driver.bootstrap.time.sleep")
    def test_auto_bootstrap_redeploys_and_reconnects(self, sleep) -> None:
        self.reads = [b"", b"", b"", HANDSHAKE_ACK]
        self.deployer.upload.return_value = True
        firmware = mock.Mock()

        driver = self._driver(auto_bootstrap=True, firmware=firmware)

        self.deployer.upload.assert_called_once_with(
            ArduinoModel.UNO, "COM5", firmware.image_for.return_value
        )
        sleep.assert_called_once_with(2.0)
        self.assertEqual(self.mock_serial.call_count, 2)
        self.assertTrue(driver.is_open)

    @mock.patch("arduino_driver.transport.ports.serial.tools.list_ports.comports")
    def test_port_is_auto_detected(self, comports) -> None:
        comports.return_value = [SimpleNamespace(device="/dev/ttyACM0")]
        driver = ArduinoDriver(ArduinoModel.UNO, deployer=self.deployer)
        self.assertEqual(driver.port, "/dev/ttyACM0")

    @mock.patch("arduino_driver.transport.ports.serial.tools.list_ports.comports")
    def test_ambiguous_ports_are_rejected(self, comports) -> None:
        comports.return_value = [
            SimpleNamespace(device="COM1"),
            SimpleNamespace(device="COM2"),
        ]
        with self.assertRaises(ConfigurationError):
            ArduinoDriver("Uno", deployer=self.deployer)
        self.mock_serial.assert_not_called()

    def test_from_config_uses_session_settings(self) -> None:
        config = DriverConfig(
            model=ArduinoModel.MEGA_2560,
            port="COM9",
            baudrate=57600,
            read_timeout=0.5,
            write_timeout=0.25,
        )
        driver = ArduinoDriver.from_config(config, deployer=self.deployer)
        self.mock_serial.assert_called_once_with(
            "COM9", 57600, timeout=0.5, write_timeout=0.25
        )
        self.assertEqual(driver.model, ArduinoModel.MEGA_2560)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
