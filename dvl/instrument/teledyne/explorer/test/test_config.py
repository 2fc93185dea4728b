#!/usr/bin/env python
"""
@package dvl.instrument.teledyne.explorer.test.test_config
@file dvl/instrument/teledyne/explorer/test/test_config.py
@brief Test cases for the ExplorerDVL settings
"""
import datetime
import os
import shutil
import tempfile

import pytest

from dvl.core.unit_test import DvlUnitTestCase
from dvl.core.exceptions import InstrumentParameterException
from dvl.instrument.teledyne.explorer.commands import BaudRate, Parity, SensorSource, CoordinateSystem
from dvl.instrument.teledyne.explorer.config import DvlConfig, DvlConfigKey, config_defaults

__license__ = 'Apache 2.0'

CONFIG_YAML = """
baudrate: BR115200
parity: even
salinity: 35
heading_alignment: -45.5
transformation: EARTH
heading_source: MANUAL
time_between_pings: 0.5
number_of_depth_cells: 10
"""


@pytest.mark.unit
class DvlConfigUnitTest(DvlUnitTestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def write_file(self, contents):
        path = os.path.join(self.tmp_dir, 'dvl.yml')
        with open(path, 'w') as fh:
            fh.write(contents)
        return path

    def test_defaults(self):
        config = DvlConfig()
        self.assertEqual(set(config.as_dict()), set(DvlConfigKey.list()))
        self.assertEqual(config.as_dict(), config_defaults)
        self.assertEqual(config.bottom_track_pings_per_ensemble, 1)
        self.assertEqual(config.maximum_tracking_depth, 100.0)
        self.assertEqual(config.baudrate, BaudRate.BR9600)
        self.assertEqual(config.heading_alignment, 45.0)
        self.assertEqual(config.salinity, 19)
        self.assertEqual(config.transformation, CoordinateSystem.INSTRUMENT)
        self.assertEqual(config.time_between_pings, datetime.timedelta(milliseconds=200))
        self.assertEqual(config.number_of_depth_cells, 30)
        self.assertEqual(config.depth_cell_size, 2.0)

    def test_keyword_overrides(self):
        config = DvlConfig(salinity=35, parity=Parity.ODD)
        self.assertEqual(config.salinity, 35)
        self.assertEqual(config.parity, Parity.ODD)
        self.assertEqual(config.stop_bits, 1)

    def test_from_dict(self):
        self.assertEqual(DvlConfig.from_dict(None), DvlConfig())
        self.assertEqual(DvlConfig.from_dict({'salinity': 0}), DvlConfig(salinity=0))
        self.assertNotEqual(DvlConfig.from_dict({'salinity': 0}), DvlConfig())

    def test_from_yaml(self):
        config = DvlConfig.from_yaml(self.write_file(CONFIG_YAML))
        self.assertEqual(config.baudrate, BaudRate.BR115200)
        self.assertEqual(config.parity, Parity.EVEN)
        self.assertEqual(config.salinity, 35)
        self.assertEqual(config.heading_alignment, -45.5)
        self.assertEqual(config.transformation, CoordinateSystem.EARTH)
        self.assertEqual(config.heading_source, SensorSource.MANUAL)
        self.assertEqual(config.time_between_pings, datetime.timedelta(milliseconds=500))
        self.assertEqual(config.number_of_depth_cells, 10)
        # untouched settings keep the factory value
        self.assertEqual(config.depth_source, SensorSource.EXTERNAL)

    def test_empty_yaml(self):
        self.assertEqual(DvlConfig.from_yaml(self.write_file('')), DvlConfig())

    def test_yaml_not_a_mapping(self):
        with self.assertRaises(InstrumentParameterException):
            DvlConfig.from_yaml(self.write_file('- salinity\n- 35\n'))

    def test_unknown_setting(self):
        with self.assertRaises(InstrumentParameterException):
            DvlConfig(salinty=35)

    def test_invalid_enum(self):
        with self.assertRaises(InstrumentParameterException):
            DvlConfig(parity='sometimes')
        with self.assertRaises(InstrumentParameterException):
            DvlConfig(baudrate=42)

    def test_invalid_time(self):
        with self.assertRaises(InstrumentParameterException):
            DvlConfig(time_between_pings='soon')
        with self.assertRaises(InstrumentParameterException):
            DvlConfig.from_yaml(self.write_file('time_per_ensemble: [1, 2]\n'))

    def test_missing_file(self):
        with self.assertRaises(InstrumentParameterException):
            DvlConfig.from_yaml(os.path.join(self.tmp_dir, 'missing.yml'))

    def test_yaml_syntax_error(self):
        with self.assertRaises(InstrumentParameterException):
            DvlConfig.from_yaml(self.write_file('salinity: [35\n'))
