"""
@package dvl.instrument.teledyne.explorer.cli
@file dvl/instrument/teledyne/explorer/cli.py
@brief Command line entry points for the ExplorerDVL driver

<uri> is serial://DEVICE:BAUDRATE, tcp://HOST:PORT or any pyserial url.
"""
import signal
import sys
import threading

from docopt import docopt

from dvl.core.log import get_logger, LoggerManager
from dvl.core.exceptions import InstrumentException
from dvl.core.time_tools import ntp_to_string
from dvl.instrument.teledyne.explorer.commands import CoordinateSystem
from dvl.instrument.teledyne.explorer.config import DvlConfig
from dvl.instrument.teledyne.explorer.driver import ExplorerDvlDriver, ConfigurationResult

log = get_logger()

__license__ = 'Apache 2.0'

READ_USAGE = """
Usage:
    dvl_teledyne_read [options] <uri>

Options:
    -h, --help              Show this screen.
    --log-level=<level>     Driver log level [default: INFO].
    --timeout=<seconds>     Read timeout in acquisition mode [default: 5].

"""

CONFIGURE_USAGE = """
Usage:
    dvl_teledyne_configure [options] <uri> [<config_file>]

Sends the settings of <config_file> (factory defaults when omitted) and saves them.

Options:
    -h, --help              Show this screen.
    --log-level=<level>     Driver log level [default: INFO].

"""

SEND_FILE_USAGE = """
Usage:
    dvl_teledyne_send_file [options] <uri> <command_file>

Sends <command_file> one line at a time, up to the first CS line.

Options:
    -h, --help              Show this screen.
    --log-level=<level>     Driver log level [default: INFO].

"""


def _options(usage, argv):
    return docopt(usage, argv=sys.argv[1:] if argv is None else argv)


def _install_stop_handler():
    """
    SIGINT sets the returned event instead of interrupting the read loop.
    """
    stop = threading.Event()

    def handle_signal(signum, frame):
        stop.set()

    signal.signal(signal.SIGINT, handle_signal)
    return stop


def format_ensemble(ensemble):
    fields = [ntp_to_string(ensemble.time), str(ensemble.seq)]
    for beam in range(4):
        fields.extend(('%.2f' % ensemble.range[beam],
                       '%.3f' % ensemble.velocity[beam],
                       '%.2f' % ensemble.evaluation[beam]))
    return ' '.join(fields)


def read_loop(driver, stop, timeout, out=sys.stdout):
    """
    Print one line per ensemble until stop is set.
    """
    ensemble = driver.read(timeout)
    out.write('Device outputs its data in the %s coordinate system\n' %
              CoordinateSystem.name(ensemble.coordinate_system))
    header = ['Time', 'Seq']
    for beam in range(4):
        header.append('range[%d] velocity[%d] evaluation[%d]' % (beam, beam, beam))
    out.write(' '.join(header) + '\n')
    out.write('\nPress CTRL + C to stop acquisition and exit the program.\n\n')

    count = 0
    while not stop.is_set():
        out.write(format_ensemble(ensemble) + '\n')
        count += 1
        ensemble = driver.read(timeout)
    return count


def _stop_acquisition(driver):
    """
    Best effort attempt to stop a pinging device before the port is closed.
    """
    if not driver.is_open() or driver.in_configuration_mode():
        return
    try:
        driver.set_configuration_mode()
    except InstrumentException as e:
        log.warning('unable to stop acquisition: %s', e)


def read_main(argv=None):
    options = _options(READ_USAGE, argv)
    LoggerManager.set_level(options['--log-level'])

    stop = _install_stop_handler()
    driver = ExplorerDvlDriver()
    try:
        driver.open(options['<uri>'])
        read_loop(driver, stop, float(options['--timeout']))
        sys.stdout.write('\nStopping data acquisition and shutting down.\n')
        driver.set_configuration_mode()
    except InstrumentException as e:
        log.error('%s', e)
        _stop_acquisition(driver)
        return 1
    finally:
        driver.close()
    return 0


def configure_main(argv=None):
    options = _options(CONFIGURE_USAGE, argv)
    LoggerManager.set_level(options['--log-level'])

    driver = ExplorerDvlDriver()
    try:
        config_file = options['<config_file>']
        config = DvlConfig.from_yaml(config_file) if config_file else DvlConfig()

        driver.connect(options['<uri>'])
        result = driver.apply_config(config)
        if result == ConfigurationResult.PARTIALLY_APPLIED:
            sys.stdout.write('Configuration applied; reconnect with the new serial port settings and '
                             'save (CK) to persist them.\n')
        else:
            sys.stdout.write('Configuration applied and saved.\n')
    except InstrumentException as e:
        log.error('%s', e)
        return 1
    finally:
        driver.close()
    return 0


def send_file_main(argv=None):
    options = _options(SEND_FILE_USAGE, argv)
    LoggerManager.set_level(options['--log-level'])

    driver = ExplorerDvlDriver()
    try:
        driver.connect(options['<uri>'])
        driver.send_configuration_file(options['<command_file>'])
    except (InstrumentException, IOError) as e:
        log.error('%s', e)
        return 1
    finally:
        driver.close()
    return 0
