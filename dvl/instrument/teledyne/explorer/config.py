"""
@package dvl.instrument.teledyne.explorer.config
@file dvl/instrument/teledyne/explorer/config.py
@brief Settings sent to the ExplorerDVL by ExplorerDvlDriver.apply_config

DvlConfig starts from the factory defaults; a YAML file (or a dict) keyed
by DvlConfigKey values overrides some of them. Settings with an e_ prefix
are expert settings, change them only after reading the operation manual.
"""
import datetime

import yaml

from dvl.core.common import BaseEnum
from dvl.core.exceptions import InstrumentParameterException
from dvl.instrument.teledyne.explorer.commands import BaudRate, Parity, SensorSource, CoordinateSystem, \
    to_timedelta

__license__ = 'Apache 2.0'


class DvlConfigKey(BaseEnum):
    # bottom track
    BOTTOM_TRACK_PINGS_PER_ENSEMBLE = 'bottom_track_pings_per_ensemble'   # 0 to 999
    MAXIMUM_TRACKING_DEPTH = 'maximum_tracking_depth'                     # 1 to 6553.5 m

    # serial port
    BAUDRATE = 'baudrate'
    PARITY = 'parity'
    STOP_BITS = 'stop_bits'

    # flow control
    AUTOMATIC_ENSEMBLE_CYCLING = 'automatic_ensemble_cycling'
    AUTOMATIC_PING_CYCLING = 'automatic_ping_cycling'
    BINARY_DATA_OUTPUT = 'binary_data_output'
    ENABLE_SERIAL_OUTPUT = 'enable_serial_output'
    ENABLE_DATA_RECORDING = 'enable_data_recording'

    # environment
    HEADING_ALIGNMENT = 'heading_alignment'                               # degrees, -179.99 to 180
    E_HEADING_BIAS = 'e_heading_bias'                                     # degrees, -179.99 to 180
    SALINITY = 'salinity'                                                 # 0 to 40 ppt

    # coordinate transformation
    TRANSFORMATION = 'transformation'
    USE_TILTS_IN_TRANSFORMATION = 'use_tilts_in_transformation'
    ALLOW_3BEAM_SOLUTIONS = 'allow_3beam_solutions'
    ALLOW_BIN_MAPPING = 'allow_bin_mapping'

    # sensor sources
    SPEED_OF_SOUND_SOURCE = 'speed_of_sound_source'
    DEPTH_SOURCE = 'depth_source'
    HEADING_SOURCE = 'heading_source'                                     # INTERNAL is not allowed
    PITCH_AND_ROLL_SOURCE = 'pitch_and_roll_source'
    SALINITY_SOURCE = 'salinity_source'                                   # INTERNAL is not allowed
    TEMPERATURE_SOURCE = 'temperature_source'

    # timing
    TIME_PER_ENSEMBLE = 'time_per_ensemble'                               # seconds, 0 to 89999.99
    TIME_BETWEEN_PINGS = 'time_between_pings'                             # seconds, 0 to 3599.99

    # water profiling
    NUMBER_OF_DEPTH_CELLS = 'number_of_depth_cells'                       # 1 to 255
    PINGS_PER_ENSEMBLE = 'pings_per_ensemble'                             # 0 to 16384
    DEPTH_CELL_SIZE = 'depth_cell_size'                                   # 0.1 to 8 m


config_defaults = {
    DvlConfigKey.BOTTOM_TRACK_PINGS_PER_ENSEMBLE: 1,
    DvlConfigKey.MAXIMUM_TRACKING_DEPTH: 100.0,
    DvlConfigKey.BAUDRATE: BaudRate.BR9600,
    DvlConfigKey.PARITY: Parity.NONE,
    DvlConfigKey.STOP_BITS: 1,
    DvlConfigKey.AUTOMATIC_ENSEMBLE_CYCLING: True,
    DvlConfigKey.AUTOMATIC_PING_CYCLING: True,
    DvlConfigKey.BINARY_DATA_OUTPUT: True,
    DvlConfigKey.ENABLE_SERIAL_OUTPUT: True,
    DvlConfigKey.ENABLE_DATA_RECORDING: False,
    DvlConfigKey.HEADING_ALIGNMENT: 45.0,
    DvlConfigKey.E_HEADING_BIAS: 0.0,
    DvlConfigKey.SALINITY: 19,
    DvlConfigKey.TRANSFORMATION: CoordinateSystem.INSTRUMENT,
    DvlConfigKey.USE_TILTS_IN_TRANSFORMATION: True,
    DvlConfigKey.ALLOW_3BEAM_SOLUTIONS: True,
    DvlConfigKey.ALLOW_BIN_MAPPING: False,
    DvlConfigKey.SPEED_OF_SOUND_SOURCE: SensorSource.EXTERNAL,
    DvlConfigKey.DEPTH_SOURCE: SensorSource.EXTERNAL,
    DvlConfigKey.HEADING_SOURCE: SensorSource.EXTERNAL,
    DvlConfigKey.PITCH_AND_ROLL_SOURCE: SensorSource.EXTERNAL,
    DvlConfigKey.SALINITY_SOURCE: SensorSource.EXTERNAL,
    DvlConfigKey.TEMPERATURE_SOURCE: SensorSource.EXTERNAL,
    DvlConfigKey.TIME_PER_ENSEMBLE: datetime.timedelta(0),
    DvlConfigKey.TIME_BETWEEN_PINGS: datetime.timedelta(milliseconds=200),
    DvlConfigKey.NUMBER_OF_DEPTH_CELLS: 30,
    DvlConfigKey.PINGS_PER_ENSEMBLE: 0,
    DvlConfigKey.DEPTH_CELL_SIZE: 2.0,
}

# settings given by name in a configuration file
enum_settings = {
    DvlConfigKey.BAUDRATE: BaudRate,
    DvlConfigKey.PARITY: Parity,
    DvlConfigKey.TRANSFORMATION: CoordinateSystem,
    DvlConfigKey.SPEED_OF_SOUND_SOURCE: SensorSource,
    DvlConfigKey.DEPTH_SOURCE: SensorSource,
    DvlConfigKey.HEADING_SOURCE: SensorSource,
    DvlConfigKey.PITCH_AND_ROLL_SOURCE: SensorSource,
    DvlConfigKey.SALINITY_SOURCE: SensorSource,
    DvlConfigKey.TEMPERATURE_SOURCE: SensorSource,
}

time_settings = (DvlConfigKey.TIME_PER_ENSEMBLE, DvlConfigKey.TIME_BETWEEN_PINGS)


def _convert(key, value):
    enum = enum_settings.get(key)
    if enum is not None:
        if isinstance(value, str):
            try:
                return enum.dict()[value.upper()]
            except KeyError:
                raise InstrumentParameterException('Invalid value %r for %s, expected one of %s' %
                                                   (value, key, sorted(enum.dict())))
        if not enum.has(value):
            raise InstrumentParameterException('Invalid value %r for %s' % (value, key))
        return value

    if key in time_settings:
        return to_timedelta(value)

    return value


class DvlConfig(object):
    """
    ExplorerDVL settings, initialized with factory defaults.
    Attributes are named after the DvlConfigKey values.
    """
    def __init__(self, **kwargs):
        for key, value in config_defaults.items():
            setattr(self, key, value)
        self.update(kwargs)

    def update(self, settings):
        for key, value in settings.items():
            if not DvlConfigKey.has(key):
                raise InstrumentParameterException('Unknown configuration setting: %s' % key)
            setattr(self, key, _convert(key, value))

    def as_dict(self):
        return dict((key, getattr(self, key)) for key in DvlConfigKey.list())

    def __eq__(self, other):
        return isinstance(other, DvlConfig) and self.as_dict() == other.as_dict()

    def __repr__(self):
        return 'DvlConfig(%r)' % self.as_dict()

    @classmethod
    def from_dict(cls, settings):
        return cls(**(settings or {}))

    @classmethod
    def from_yaml(cls, path):
        try:
            with open(path) as fh:
                settings = yaml.safe_load(fh)
        except (IOError, yaml.YAMLError) as e:
            raise InstrumentParameterException('Unable to read configuration file %s: %s' % (path, e))
        if settings is not None and not isinstance(settings, dict):
            raise InstrumentParameterException('Configuration file %s does not hold a mapping' % path)
        return cls.from_dict(settings)
