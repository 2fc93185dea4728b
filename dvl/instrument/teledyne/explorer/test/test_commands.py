#!/usr/bin/env python
"""
@package dvl.instrument.teledyne.explorer.test.test_commands
@file dvl/instrument/teledyne/explorer/test/test_commands.py
@brief Test cases for the ExplorerDVL command encoding
"""
import datetime

import pytest

from dvl.core.unit_test import DvlUnitTestCase
from dvl.core.exceptions import InstrumentParameterException
from dvl.instrument.teledyne.explorer import commands
from dvl.instrument.teledyne.explorer.commands import BaudRate, Parity, SensorSource, CoordinateSystem, \
    OutputConfiguration, StandardCommand

__license__ = 'Apache 2.0'


@pytest.mark.unit
class StandardCommandUnitTest(DvlUnitTestCase):

    def assert_command(self, expected, *args, **kwargs):
        self.assertEqual(commands.build_standard_command(*args, **kwargs), expected)

    def test_unsigned(self):
        self.assert_command(b'BP001\n', 'BP', 1, 3)
        self.assert_command(b'BX01000\n', 'BX', 1000, 5)
        self.assert_command(b'WP00000\n', 'WP', 0, 5)
        self.assert_command(b'ES99\n', 'ES', 99, 2)

    def test_signed(self):
        self.assert_command(b'EA+04500\n', 'EA', 4500, 5, sign=True)
        self.assert_command(b'EA-04500\n', 'EA', -4500, 5, sign=True)
        self.assert_command(b'EA+00000\n', 'EA', 0, 5, sign=True)

    def test_length(self):
        """
        mnemonic + optional sign + digits + newline
        """
        for value, digits, sign in ((5, 3, False), (12, 5, True), (-3, 4, True)):
            command = commands.build_standard_command('XX', value, digits, sign)
            self.assertEqual(len(command), 2 + (1 if sign else 0) + digits + 1)

    def test_format_without_newline(self):
        self.assertEqual(commands.format_standard_command(StandardCommand('WN', 30, 3, False)), 'WN030')

    def test_overflow(self):
        with self.assertRaises(InstrumentParameterException):
            commands.build_standard_command('ES', 100, 2)
        with self.assertRaises(InstrumentParameterException):
            commands.build_standard_command('EA', -100000, 5, sign=True)

    def test_negative_unsigned(self):
        with self.assertRaises(InstrumentParameterException):
            commands.build_standard_command('BP', -1, 3)

    def test_not_an_integer(self):
        for value in (1.5, '1', True, None):
            with self.assertRaises(InstrumentParameterException):
                commands.build_standard_command('BP', value, 3)


@pytest.mark.unit
class ConversionUnitTest(DvlUnitTestCase):

    def test_truncation(self):
        self.assertEqual(commands.heading_to_hundredths(45.0), 4500)
        self.assertEqual(commands.heading_to_hundredths(-12.345), -1234)
        self.assertEqual(commands.depth_to_decimeters(100.0), 1000)
        self.assertEqual(commands.depth_to_decimeters(6553.5), 65535)
        self.assertEqual(commands.depth_to_decimeters(1.99), 19)
        self.assertEqual(commands.cell_size_to_centimeters(2.0), 200)
        self.assertEqual(commands.cell_size_to_centimeters(0.105), 10)

    def test_baudrate_to_bps(self):
        self.assertEqual(BaudRate.to_bps(BaudRate.BR9600), 9600)
        self.assertEqual(BaudRate.to_bps(BaudRate.BR115200), 115200)
        with self.assertRaises(KeyError):
            BaudRate.to_bps(42)


@pytest.mark.unit
class SpecialCommandUnitTest(DvlUnitTestCase):

    def test_serial_port(self):
        self.assertEqual(commands.build_serial_port_command(BaudRate.BR9600, Parity.NONE, 1), b'CB411\n')
        self.assertEqual(commands.build_serial_port_command(BaudRate.BR115200, Parity.ODD, 2), b'CB832\n')

    def test_serial_port_invalid(self):
        with self.assertRaises(InstrumentParameterException):
            commands.build_serial_port_command(9, Parity.NONE, 1)
        with self.assertRaises(InstrumentParameterException):
            commands.build_serial_port_command(BaudRate.BR9600, 0, 1)
        with self.assertRaises(InstrumentParameterException):
            commands.build_serial_port_command(BaudRate.BR9600, Parity.NONE, 3)

    def test_flow_control(self):
        self.assertEqual(commands.build_flow_control_command(True, True, True, True, False), b'CF11110\n')
        self.assertEqual(commands.build_flow_control_command(False, False, False, False, True), b'CF00001\n')

    def test_output_configuration(self):
        conf = OutputConfiguration(CoordinateSystem.INSTRUMENT, True, True, False)
        self.assertEqual(commands.build_output_configuration_command(conf), b'EX01110\n')
        conf = OutputConfiguration(CoordinateSystem.EARTH, False, False, True)
        self.assertEqual(commands.build_output_configuration_command(conf), b'EX11001\n')
        conf = OutputConfiguration(CoordinateSystem.BEAM, False, False, False)
        self.assertEqual(commands.build_output_configuration_command(conf), b'EX00000\n')

    def test_output_configuration_invalid(self):
        with self.assertRaises(InstrumentParameterException):
            commands.build_output_configuration_command(OutputConfiguration(4, False, False, False))

    def test_sensor_source(self):
        self.assertEqual(commands.build_sensor_source_command(*([SensorSource.EXTERNAL] * 6)), b'EZ222222\n')
        self.assertEqual(commands.build_sensor_source_command(SensorSource.MANUAL, SensorSource.INTERNAL,
                                                              SensorSource.EXTERNAL, SensorSource.INTERNAL,
                                                              SensorSource.MANUAL, SensorSource.EXTERNAL),
                         b'EZ012102\n')
        with self.assertRaises(InstrumentParameterException):
            commands.build_sensor_source_command(3, 2, 2, 2, 2, 2)

    def test_simple(self):
        self.assertEqual(commands.build_simple_command('CK'), b'CK\n')
        self.assertEqual(commands.build_simple_command('PD0'), b'PD0\n')


@pytest.mark.unit
class TimeCommandUnitTest(DvlUnitTestCase):

    def test_split_time(self):
        self.assertEqual(commands.split_time(datetime.timedelta(0)), (0, 0, 0, 0))
        self.assertEqual(commands.split_time(datetime.timedelta(hours=1, minutes=2, seconds=3, milliseconds=450)),
                         (1, 2, 3, 45))
        # below a hundredth of a second is dropped
        self.assertEqual(commands.split_time(datetime.timedelta(milliseconds=209)), (0, 0, 0, 20))
        self.assertEqual(commands.split_time(0.2), (0, 0, 0, 20))

    def test_split_time_invalid(self):
        with self.assertRaises(InstrumentParameterException):
            commands.split_time(datetime.timedelta(seconds=-1))
        with self.assertRaises(InstrumentParameterException):
            commands.split_time('soon')

    def test_time_per_ensemble(self):
        self.assertEqual(commands.build_time_per_ensemble_command(datetime.timedelta(0)), b'TE00:00:00.00\n')
        self.assertEqual(commands.build_time_per_ensemble_command(
            datetime.timedelta(hours=1, minutes=2, seconds=3, milliseconds=450)), b'TE01:02:03.45\n')
        self.assertEqual(commands.build_time_per_ensemble_command(datetime.timedelta(hours=99, minutes=59)),
                         b'TE99:59:00.00\n')
        with self.assertRaises(InstrumentParameterException):
            commands.build_time_per_ensemble_command(datetime.timedelta(hours=100))

    def test_time_between_pings(self):
        self.assertEqual(commands.build_time_between_pings_command(datetime.timedelta(milliseconds=200)),
                         b'TP00:00.20\n')
        self.assertEqual(commands.build_time_between_pings_command(datetime.timedelta(minutes=59, seconds=59)),
                         b'TP59:59.00\n')
        with self.assertRaises(InstrumentParameterException):
            commands.build_time_between_pings_command(datetime.timedelta(hours=1))
