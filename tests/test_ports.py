import unittest
from types import SimpleNamespace
from unittest import mock

from arduino_driver.errors import ConfigurationError
from arduino_driver.transport import ports

COMPORTS = "arduino_driver.transport.ports.serial.tools.list_ports.comports"


class PortDiscoveryTests(unittest.TestCase):
    @mock.patch(COMPORTS)
    def test_list_ports_is_distinct_and_ordered(self, comports) -> None:
        comports.return_value = [
            SimpleNamespace(device="COM3"),
            SimpleNamespace(device="COM1"),
            SimpleNamespace(device="COM3"),
            SimpleNamespace(device=None),
        ]
        self.assertEqual(ports.list_ports(), ["COM3", "COM1"])

    @mock.patch(COMPORTS)
    def test_explicit_port_wins(self, comports) -> None:
        self.assertEqual(ports.resolve_port(" COM8 "), "COM8")
        comports.assert_not_called()

    @mock.patch(COMPORTS)
    def test_single_port_is_selected(self, comports) -> None:
        comports.return_value = [SimpleNamespace(device="/dev/ttyUSB0")]
        self.assertEqual(ports.resolve_port(), "/dev/ttyUSB0")

    @mock.patch(COMPORTS)
    def test_no_ports_is_a_configuration_error(self, comports) -> None:
        comports.return_value = []
        with self.assertRaises(ConfigurationError) as ctx:
            ports.resolve_port()
        self.assertIn("no serial ports", str(ctx.exception))

    @mock.patch(COMPORTS)
    def test_several_ports_is_a_configuration_error(self, comports) -> None:
        comports.return_value = [
            SimpleNamespace(device="COM1"),
            SimpleNamespace(device="COM2"),
        ]
        with self.assertRaises(ConfigurationError) as ctx:
            ports.resolve_port(None)
        self.assertIn("COM1, COM2", str(ctx.exception))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
