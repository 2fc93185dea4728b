"""
@package dvl.instrument.teledyne.explorer.driver
@file dvl/instrument/teledyne/explorer/driver.py
@brief Driver for the Teledyne ExplorerDVL
Release notes:

Usage:
  - open() the connection to the device (or hand an already open transport
    to the constructor),
  - enter configuration mode with set_configuration_mode(),
  - configure the device with apply_config(), send_configuration_file() or
    the individual set_* methods,
  - start_acquisition() and call read() for every ensemble,
  - set_configuration_mode() again to stop pinging.

All calls block the calling thread and must come from a single thread.
"""
from dvl.core.log import get_logger
from dvl.core.common import BaseEnum
from dvl.core.exceptions import InstrumentCommandException, InstrumentTimeoutException, \
    InstrumentStateException, InstrumentException, ConfigurationException, SampleException
from dvl.core.instrument.packet_reader import PacketReader
from dvl.core.instrument.transport import SerialTransport
from dvl.instrument.teledyne.explorer import commands
from dvl.instrument.teledyne.explorer.commands import ExplorerInstrumentCmds, BaudRate, Parity, \
    OutputConfiguration
from dvl.instrument.teledyne.explorer.config import DvlConfigKey
from dvl.instrument.teledyne.explorer.framing import extract_packet, parse_configuration_frame, AckFrame
from dvl.instrument.teledyne.explorer.pd0_parser import Pd0Parser, PD0ParsingException

__license__ = 'Apache 2.0'

log = get_logger()

# default timeouts, in seconds
TIMEOUT = 1.0
WRITE_TIMEOUT = 0.5
READ_TIMEOUT = 5.0

# wake up probing after a BREAK
WAKEUP_ATTEMPTS = 12
WAKEUP_TIMEOUT = 0.1
WAKEUP_WRITE_TIMEOUT = 0.1

FACTORY_BAUDRATE = BaudRate.BR9600


class OperatingMode(BaseEnum):
    CONFIGURATION = 'CONFIGURATION'
    ACQUISITION = 'ACQUISITION'


class ConfigurationResult(BaseEnum):
    APPLIED = 'APPLIED'
    # the port settings were sent but could not be saved over the old link
    PARTIALLY_APPLIED = 'PARTIALLY_APPLIED'


class ExplorerDvlDriver(object):
    """
    Host side protocol driver for the ExplorerDVL.

    The driver holds a transport, a packet reader owning the receive buffer
    and a PD0 parser; it keeps track of whether the device is in
    configuration mode (ASCII commands, '>' prompts) or in acquisition
    mode (binary PD0 ensembles).
    """
    def __init__(self, transport=None, parser=None, max_buff_size=1000000):
        self._transport = transport if transport is not None else SerialTransport()
        self._parser = parser if parser is not None else Pd0Parser()
        self._reader = PacketReader(self._transport, max_buff_size)
        # the device state is unknown until the first BREAK
        self._mode = OperatingMode.ACQUISITION
        self._desired_baudrate = FACTORY_BAUDRATE
        self.last_ensemble = None

    @property
    def mode(self):
        return self._mode

    def in_configuration_mode(self):
        return self._mode == OperatingMode.CONFIGURATION

    ########################################################################
    # Connection.
    ########################################################################

    def connect(self, uri):
        """
        Open the connection only. The device state is unknown, the next
        command sends a BREAK first.
        """
        self._transport.open(uri)
        self._mode = OperatingMode.ACQUISITION

    def open(self, uri):
        """
        Open the connection, bring the device to configuration mode, apply the
        desired baud rate if one was requested, and start acquisition.
        """
        self.connect(uri)
        self.set_configuration_mode()
        if self._desired_baudrate != FACTORY_BAUDRATE:
            self.set_desired_baudrate(self._desired_baudrate)
        self.start_acquisition()

    def close(self):
        self._transport.close()

    def is_open(self):
        return self._transport.is_open()

    def set_desired_baudrate(self, baudrate):
        """
        Remember the baud rate to use. If the connection is open the device is
        switched right away and the local port follows it.
        """
        if self._transport.is_open():
            self.set_serial_port_control_settings(baudrate, Parity.NONE, 1)
            self._transport.set_baudrate(BaudRate.to_bps(baudrate))
        self._desired_baudrate = baudrate

    ########################################################################
    # Packet framing.
    ########################################################################

    def extract_packet(self, buffer):
        """
        Frame dispatcher: configuration responses in configuration mode,
        PD0 ensembles otherwise.
        """
        return extract_packet(buffer, self.in_configuration_mode(), self._parser.extract_packet)

    def clear(self):
        self._reader.clear()

    def _write(self, data, timeout=WRITE_TIMEOUT):
        log.debug('sending %r', data)
        self._transport.write(data, timeout)

    ########################################################################
    # Acknowledgement protocol.
    ########################################################################

    def read_configuration_ack(self, timeout=TIMEOUT):
        """
        Wait for the response to the last command.
        @throws InstrumentStateException if not in configuration mode
        @throws InstrumentCommandException with the device text if it reported an error
        @throws InstrumentTimeoutException if nothing came back within timeout
        """
        if not self.in_configuration_mode():
            raise InstrumentStateException('not in configuration mode')

        packet = self._reader.read_packet(self.extract_packet, timeout)
        frame = parse_configuration_frame(packet)
        if isinstance(frame, AckFrame):
            return

        response = frame.message.decode('ascii', 'replace')
        log.debug('device error: %r', response)
        # drop the prompt ending the message so it is not taken for the next ack
        self.clear()
        raise InstrumentCommandException(response, response=response)

    def _do_cmd_ack(self, command, timeout=TIMEOUT, write_timeout=WRITE_TIMEOUT):
        """
        Send one command and wait for its acknowledgement.
        """
        self._write(command, write_timeout)
        self.read_configuration_ack(timeout)

    def _send_command(self, command, timeout=TIMEOUT):
        self.set_configuration_mode()
        self._do_cmd_ack(command, timeout)

    def send_standard_command(self, mnemonic, value, num_digits, sign=False):
        self._send_command(commands.build_standard_command(mnemonic, value, num_digits, sign))

    ########################################################################
    # Mode handling.
    ########################################################################

    def set_configuration_mode(self):
        """
        Put the device in configuration mode, stopping any pinging.

        After a BREAK the device ignores the line for a while, so a newline
        is written repeatedly until a prompt comes back.
        @throws InstrumentConnectionException if the BREAK cannot be sent
        @throws InstrumentTimeoutException if the device never answers
        """
        if self.in_configuration_mode():
            return

        self._transport.send_break()
        self._mode = OperatingMode.CONFIGURATION

        self.clear()
        for attempt in range(WAKEUP_ATTEMPTS):
            self._write(commands.NEWLINE.encode('ascii'), WAKEUP_WRITE_TIMEOUT)
            try:
                self.read_configuration_ack(WAKEUP_TIMEOUT)
            except InstrumentTimeoutException:
                if attempt == WAKEUP_ATTEMPTS - 1:
                    log.error('no prompt after %d wake up attempts', WAKEUP_ATTEMPTS)
                    raise
                log.debug('no prompt yet (attempt %d)', attempt + 1)
                continue

            self.clear()
            break

        log.debug('device in configuration mode')

    def start_acquisition(self):
        """
        Select PD0 output and start pinging.

        The CS command is not acknowledged: once pinging, the device answers
        with binary ensembles instead of a prompt.
        """
        if not self.in_configuration_mode():
            raise InstrumentStateException('not in configuration mode')

        self._do_cmd_ack(commands.build_simple_command(ExplorerInstrumentCmds.SELECT_PD0_FORMAT))
        self._write(commands.build_simple_command(ExplorerInstrumentCmds.START_PINGING))
        self._mode = OperatingMode.ACQUISITION
        log.debug('device in acquisition mode')

    def read(self, timeout=READ_TIMEOUT):
        """
        Read one packet in the current mode.
        @retval a Pd0Ensemble in acquisition mode, an AckFrame or ErrorFrame
        in configuration mode
        @throws InstrumentTimeoutException if no packet came in time
        @throws SampleException if an ensemble could not be decoded
        """
        packet = self._reader.read_packet(self.extract_packet, timeout)
        if self.in_configuration_mode():
            return parse_configuration_frame(packet)

        try:
            ensemble = self._parser.parse(packet)
        except PD0ParsingException as e:
            raise SampleException('Unable to decode ensemble: %s' % e)

        self.last_ensemble = ensemble
        return ensemble

    ########################################################################
    # Configuration commands.
    ########################################################################

    def send_configuration_file(self, file_name):
        """
        Send a text file of commands, one per line, waiting for an ack after
        each of them. A CS line ends the file; the device stays in
        configuration mode, use start_acquisition() afterwards.
        """
        self.set_configuration_mode()

        with open(file_name) as fh:
            for line in fh:
                line = line.rstrip('\r\n')
                if line == ExplorerInstrumentCmds.START_PINGING:
                    break
                if not line:
                    continue
                self._do_cmd_ack((line + commands.NEWLINE).encode('ascii'))

    def save_configuration(self):
        """ Write the current settings to non volatile memory """
        self._send_command(commands.build_simple_command(ExplorerInstrumentCmds.SAVE_SETUP))

    def set_bottom_track_pings_per_ensemble(self, pings):
        self.send_standard_command(ExplorerInstrumentCmds.BOTTOM_TRACK_PINGS, pings, 3)

    def set_maximum_tracking_depth(self, depth):
        """
        @param depth maximum tracking depth in meters, 1 to 6553.5
        """
        self.send_standard_command(ExplorerInstrumentCmds.MAXIMUM_TRACKING_DEPTH,
                                   commands.depth_to_decimeters(depth), 5)

    def set_serial_port_control_settings(self, baudrate, parity, stop_bits):
        """
        Change the device serial port settings.

        Using this will most likely break the connection; reconnect with the
        settings just sent.
        """
        self._send_command(commands.build_serial_port_command(baudrate, parity, stop_bits))

    def set_flow_control_settings(self, automatic_ensemble_cycling, automatic_ping_cycling,
                                  binary_data_output, enable_serial_output, enable_data_recording):
        self._send_command(commands.build_flow_control_command(automatic_ensemble_cycling,
                                                               automatic_ping_cycling,
                                                               binary_data_output,
                                                               enable_serial_output,
                                                               enable_data_recording))

    def set_heading_alignment(self, heading_alignment):
        """
        @param heading_alignment beam 3 misalignment in degrees, -179.99 to 180
        """
        self.send_standard_command(ExplorerInstrumentCmds.HEADING_ALIGNMENT,
                                   commands.heading_to_hundredths(heading_alignment), 5, sign=True)

    def set_e_heading_bias(self, heading_bias):
        """
        @param heading_bias electrical/magnetic bias in degrees, -179.99 to 180
        """
        self.send_standard_command(ExplorerInstrumentCmds.HEADING_BIAS,
                                   commands.heading_to_hundredths(heading_bias), 5, sign=True)

    def set_salinity(self, salinity):
        self.send_standard_command(ExplorerInstrumentCmds.SALINITY, salinity, 2)

    def set_output_configuration(self, conf):
        self._send_command(commands.build_output_configuration_command(conf))

    def set_sensor_source_settings(self, speed_of_sound_source, depth_source, heading_source,
                                   pitch_and_roll_source, salinity_source, temperature_source):
        self._send_command(commands.build_sensor_source_command(speed_of_sound_source,
                                                                depth_source,
                                                                heading_source,
                                                                pitch_and_roll_source,
                                                                salinity_source,
                                                                temperature_source))

    def set_time_per_ensemble(self, time_per_ensemble):
        self._send_command(commands.build_time_per_ensemble_command(time_per_ensemble))

    def set_time_between_pings(self, time_between_pings):
        self._send_command(commands.build_time_between_pings_command(time_between_pings))

    def set_number_of_depth_cells(self, cells):
        self.send_standard_command(ExplorerInstrumentCmds.NUMBER_OF_DEPTH_CELLS, cells, 3)

    def set_pings_per_ensemble(self, pings):
        self.send_standard_command(ExplorerInstrumentCmds.PINGS_PER_ENSEMBLE, pings, 5)

    def set_depth_cell_size(self, size):
        """
        @param size depth cell size in meters
        """
        self.send_standard_command(ExplorerInstrumentCmds.DEPTH_CELL_SIZE,
                                   commands.cell_size_to_centimeters(size), 4)

    ########################################################################
    # Configuration sequence.
    ########################################################################

    def _configuration_steps(self, conf):
        output_configuration = OutputConfiguration(conf.transformation,
                                                   conf.use_tilts_in_transformation,
                                                   conf.allow_3beam_solutions,
                                                   conf.allow_bin_mapping)
        return [
            (DvlConfigKey.BOTTOM_TRACK_PINGS_PER_ENSEMBLE,
             self.set_bottom_track_pings_per_ensemble, (conf.bottom_track_pings_per_ensemble,)),
            (DvlConfigKey.MAXIMUM_TRACKING_DEPTH,
             self.set_maximum_tracking_depth, (conf.maximum_tracking_depth,)),
            ('flow_control',
             self.set_flow_control_settings, (conf.automatic_ensemble_cycling,
                                              conf.automatic_ping_cycling,
                                              conf.binary_data_output,
                                              conf.enable_serial_output,
                                              conf.enable_data_recording)),
            (DvlConfigKey.HEADING_ALIGNMENT, self.set_heading_alignment, (conf.heading_alignment,)),
            (DvlConfigKey.SALINITY, self.set_salinity, (conf.salinity,)),
            (DvlConfigKey.E_HEADING_BIAS, self.set_e_heading_bias, (conf.e_heading_bias,)),
            ('output_configuration', self.set_output_configuration, (output_configuration,)),
            ('sensor_source',
             self.set_sensor_source_settings, (conf.speed_of_sound_source,
                                               conf.depth_source,
                                               conf.heading_source,
                                               conf.pitch_and_roll_source,
                                               conf.salinity_source,
                                               conf.temperature_source)),
            (DvlConfigKey.TIME_PER_ENSEMBLE, self.set_time_per_ensemble, (conf.time_per_ensemble,)),
            (DvlConfigKey.TIME_BETWEEN_PINGS, self.set_time_between_pings, (conf.time_between_pings,)),
            (DvlConfigKey.NUMBER_OF_DEPTH_CELLS, self.set_number_of_depth_cells, (conf.number_of_depth_cells,)),
            (DvlConfigKey.PINGS_PER_ENSEMBLE, self.set_pings_per_ensemble, (conf.pings_per_ensemble,)),
            (DvlConfigKey.DEPTH_CELL_SIZE, self.set_depth_cell_size, (conf.depth_cell_size,)),
            # save in case communication fails after altering the serial port settings
            ('save', self.save_configuration, ()),
            ('serial_port',
             self.set_serial_port_control_settings, (conf.baudrate, conf.parity, conf.stop_bits)),
        ]

    def apply_config(self, conf):
        """
        Send every setting of conf to the device and save them to non
        volatile memory.

        The serial port settings go last, followed by a second save. If the
        port parameters changed, that second save usually fails because the
        device already talks with the new parameters; the failure is
        tolerated and PARTIALLY_APPLIED is returned. Reconnect with the new
        parameters and save again to persist them.

        @param conf a DvlConfig
        @retval ConfigurationResult
        @throws ConfigurationException naming the first setting that failed.
        Settings sent before it are not rolled back.
        """
        for setting, setter, args in self._configuration_steps(conf):
            try:
                setter(*args)
            except InstrumentException as e:
                log.error('applying configuration failed at %s: %s', setting, e)
                raise ConfigurationException('Failed to apply %s: %s' % (setting, e), setting=setting) from e

        try:
            self.save_configuration()
        except (InstrumentTimeoutException, InstrumentCommandException) as e:
            log.warning('could not save the serial port settings (%s), reconnect with the new settings', e)
            return ConfigurationResult.PARTIALLY_APPLIED

        return ConfigurationResult.APPLIED
