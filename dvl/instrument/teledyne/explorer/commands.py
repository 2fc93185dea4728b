"""
@package dvl.instrument.teledyne.explorer.commands
@file dvl/instrument/teledyne/explorer/commands.py
@brief Command encoding for the Teledyne ExplorerDVL

Every configuration command is a short ASCII line. Most of them are a
mnemonic followed by a zero padded (and sometimes signed) decimal field
(see build_standard_command); the rest have a fixed layout of their own.
Unit conversions happen before encoding and always truncate toward zero.
"""
import datetime
from collections import namedtuple

from dvl.core.common import BaseEnum
from dvl.core.exceptions import InstrumentParameterException

__license__ = 'Apache 2.0'

# newline.
NEWLINE = '\n'


class ExplorerPrompt(BaseEnum):
    """
    Device i/o prompts..
    """
    COMMAND = b'>'
    ERROR = b'ER'
    ERROR_END = b'\n>'


class ExplorerInstrumentCmds(BaseEnum):
    """
    Device specific commands
    Represents the commands the driver implements and the string that
    must be sent to the instrument to execute the command.
    """
    BOTTOM_TRACK_PINGS = 'BP'
    MAXIMUM_TRACKING_DEPTH = 'BX'
    SERIAL_PORT_CONTROL = 'CB'
    FLOW_CONTROL = 'CF'
    SAVE_SETUP = 'CK'
    START_PINGING = 'CS'
    HEADING_ALIGNMENT = 'EA'
    SALINITY = 'ES'
    COORDINATE_TRANSFORMATION = 'EX'
    SENSOR_SOURCE = 'EZ'
    HEADING_BIAS = '#EV'             # expert command
    SELECT_PD0_FORMAT = 'PD0'
    TIME_PER_ENSEMBLE = 'TE'         # hh:mm:ss.cc
    TIME_BETWEEN_PINGS = 'TP'        # mm:ss.cc
    NUMBER_OF_DEPTH_CELLS = 'WN'     # 1-255
    PINGS_PER_ENSEMBLE = 'WP'        # 0-16384
    DEPTH_CELL_SIZE = 'WS'           # cm


class BaudRate(BaseEnum):
    """
    CB command baud rate codes
    """
    BR300 = 0
    BR1200 = 1
    BR2400 = 2
    BR4800 = 3
    BR9600 = 4
    BR19200 = 5
    BR38400 = 6
    BR57600 = 7
    BR115200 = 8

    @classmethod
    def to_bps(cls, code):
        """ the line speed in bits per second for a CB code """
        return int(cls.name(code)[2:])


class Parity(BaseEnum):
    """
    CB command parity codes
    """
    NONE = 1
    EVEN = 2
    ODD = 3
    LOW = 4
    HIGH = 5


class SensorSource(BaseEnum):
    """
    EZ command sensor source codes
    """
    MANUAL = 0
    INTERNAL = 1
    EXTERNAL = 2


class CoordinateSystem(BaseEnum):
    BEAM = 0
    INSTRUMENT = 1
    SHIP = 2
    EARTH = 3


StandardCommand = namedtuple('StandardCommand', ('mnemonic', 'value', 'num_digits', 'sign'))

OutputConfiguration = namedtuple('OutputConfiguration',
                                 ('coordinate_system', 'use_attitude', 'use_3beam_solution', 'use_bin_mapping'))


def _line(command):
    return (command + NEWLINE).encode('ascii')


def _flag(value):
    return '1' if value else '0'


def _check_enum(enum, value, what):
    if not enum.has(value):
        raise InstrumentParameterException('Invalid %s: %r' % (what, value))


def format_standard_command(command):
    """
    Build the ascii text of a StandardCommand, without the newline.
    @throws InstrumentParameterException if the value does not fit the field
    """
    if not isinstance(command.value, int) or isinstance(command.value, bool):
        raise InstrumentParameterException('%s value must be an integer: %r' % (command.mnemonic, command.value))
    if command.value < 0 and not command.sign:
        raise InstrumentParameterException('%s takes no sign, cannot send %d' % (command.mnemonic, command.value))

    digits = str(abs(command.value))
    if len(digits) > command.num_digits:
        raise InstrumentParameterException('%s value %d does not fit in %d digits' %
                                           (command.mnemonic, command.value, command.num_digits))

    sign = ''
    if command.sign:
        sign = '-' if command.value < 0 else '+'

    return command.mnemonic + sign + digits.zfill(command.num_digits)


def build_standard_command(mnemonic, value, num_digits, sign=False):
    """
    Encode a standard command, e.g. ('BP', 1, 3) -> b'BP001\\n' and
    ('EA', -4500, 5, True) -> b'EA-04500\\n'.
    @param mnemonic the command characters
    @param value the integer value, already converted to device units
    @param num_digits width of the zero padded decimal field
    @param sign True if the field carries an explicit '+'/'-'
    """
    return _line(format_standard_command(StandardCommand(mnemonic, value, num_digits, sign)))


def build_simple_command(cmd):
    return _line(cmd)


# unit conversions, truncating toward zero

def heading_to_hundredths(degrees):
    return int(degrees * 100)


def depth_to_decimeters(meters):
    return int(meters * 10)


def cell_size_to_centimeters(meters):
    return int(meters * 100)


def build_serial_port_command(baudrate, parity, stop_bits):
    """
    CBbps: baud rate code, parity code, stop bits.
    """
    _check_enum(BaudRate, baudrate, 'baud rate')
    _check_enum(Parity, parity, 'parity')
    if stop_bits not in (1, 2):
        raise InstrumentParameterException('Stop bits must be 1 or 2, got %r' % stop_bits)

    return _line('%s%d%d%d' % (ExplorerInstrumentCmds.SERIAL_PORT_CONTROL, baudrate, parity, stop_bits))


def build_flow_control_command(automatic_ensemble_cycling, automatic_ping_cycling, binary_data_output,
                               enable_serial_output, enable_data_recording):
    return _line(ExplorerInstrumentCmds.FLOW_CONTROL +
                 _flag(automatic_ensemble_cycling) +
                 _flag(automatic_ping_cycling) +
                 _flag(binary_data_output) +
                 _flag(enable_serial_output) +
                 _flag(enable_data_recording))


def build_output_configuration_command(conf):
    """
    EXccfff: two bit coordinate system code, then the attitude, 3-beam and
    bin mapping flags.
    """
    _check_enum(CoordinateSystem, conf.coordinate_system, 'coordinate system')
    code = '{0:02b}'.format(conf.coordinate_system)
    return _line(ExplorerInstrumentCmds.COORDINATE_TRANSFORMATION + code +
                 _flag(conf.use_attitude) +
                 _flag(conf.use_3beam_solution) +
                 _flag(conf.use_bin_mapping))


def build_sensor_source_command(speed_of_sound_source, depth_source, heading_source,
                                pitch_and_roll_source, salinity_source, temperature_source):
    sources = (speed_of_sound_source, depth_source, heading_source,
               pitch_and_roll_source, salinity_source, temperature_source)
    for source in sources:
        _check_enum(SensorSource, source, 'sensor source')
    return _line(ExplorerInstrumentCmds.SENSOR_SOURCE + ''.join(str(source) for source in sources))


def to_timedelta(value):
    """ accept a timedelta or a number of seconds """
    if isinstance(value, datetime.timedelta):
        return value
    try:
        return datetime.timedelta(seconds=value)
    except TypeError:
        raise InstrumentParameterException('Not a time interval: %r' % (value,))


def split_time(value):
    """
    Split an interval into (hours, minutes, seconds, hundredths), dropping
    anything below a hundredth of a second.
    """
    interval = to_timedelta(value)
    if interval < datetime.timedelta(0):
        raise InstrumentParameterException('Negative time interval: %s' % interval)

    microseconds = (interval.days * 86400 + interval.seconds) * 1000000 + interval.microseconds
    centiseconds = microseconds // 10000
    hours, centiseconds = divmod(centiseconds, 360000)
    minutes, centiseconds = divmod(centiseconds, 6000)
    seconds, centiseconds = divmod(centiseconds, 100)
    return hours, minutes, seconds, centiseconds


def build_time_per_ensemble_command(value):
    """ TEhh:mm:ss.cc """
    hours, minutes, seconds, centiseconds = split_time(value)
    if hours > 99:
        raise InstrumentParameterException('Time per ensemble too long: %s' % to_timedelta(value))
    return _line('%s%02d:%02d:%02d.%02d' % (ExplorerInstrumentCmds.TIME_PER_ENSEMBLE,
                                            hours, minutes, seconds, centiseconds))


def build_time_between_pings_command(value):
    """ TPmm:ss.cc """
    hours, minutes, seconds, centiseconds = split_time(value)
    if hours:
        raise InstrumentParameterException('Time between pings must be under one hour: %s' % to_timedelta(value))
    return _line('%s%02d:%02d.%02d' % (ExplorerInstrumentCmds.TIME_BETWEEN_PINGS, minutes, seconds, centiseconds))
