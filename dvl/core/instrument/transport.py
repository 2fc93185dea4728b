#!/usr/bin/env python

"""
@package dvl.core.instrument.transport
@file dvl/core/instrument/transport.py
@brief Serial line transport used by the instrument drivers.

Wraps a pyserial port behind the small interface the protocol layer needs:
write with a timeout, read whatever is available within a timeout, send a
BREAK and clear the input buffer.
"""

__license__ = 'Apache 2.0'

import re

import serial

from dvl.core.log import get_logger
from dvl.core.exceptions import InstrumentConnectionException, InstrumentTimeoutException

log = get_logger()

DEFAULT_BAUDRATE = 9600
BREAK_DURATION = 0.25

SERIAL_URI_REGEX = re.compile(r'^serial://(?P<device>[^:]+)(:(?P<baudrate>\d+))?$')
TCP_URI_REGEX = re.compile(r'^tcp://(?P<host>[^:]+):(?P<port>\d+)$')


def parse_uri(uri):
    """
    Translate a driver URI into a pyserial url and a baud rate.

    serial:///dev/ttyUSB0:115200  -> ('/dev/ttyUSB0', 115200)
    tcp://host:4001               -> ('socket://host:4001', 9600)
    anything else is handed to pyserial as is (loop://, rfc2217://, a device path)
    """
    match = SERIAL_URI_REGEX.match(uri)
    if match:
        baudrate = match.group('baudrate')
        return match.group('device'), int(baudrate) if baudrate else DEFAULT_BAUDRATE

    match = TCP_URI_REGEX.match(uri)
    if match:
        return 'socket://%s:%s' % (match.group('host'), match.group('port')), DEFAULT_BAUDRATE

    return uri, DEFAULT_BAUDRATE


class SerialTransport(object):
    """
    Blocking serial port access. Every call blocks the caller for at most the
    timeout it is given.
    """
    def __init__(self, break_duration=BREAK_DURATION):
        self._serial = None
        self.break_duration = break_duration

    def open(self, uri):
        url, baudrate = parse_uri(uri)
        log.debug('opening %s at %d baud', url, baudrate)
        try:
            self._serial = serial.serial_for_url(url,
                                                 baudrate=baudrate,
                                                 bytesize=serial.EIGHTBITS,
                                                 parity=serial.PARITY_NONE,
                                                 stopbits=serial.STOPBITS_ONE,
                                                 timeout=0)
        except (serial.SerialException, ValueError) as e:
            raise InstrumentConnectionException('Unable to open %s: %s' % (uri, e))

    def close(self):
        if self._serial is not None:
            self._serial.close()
            self._serial = None

    def is_open(self):
        return self._serial is not None and self._serial.is_open

    def _port(self):
        if self._serial is None:
            raise InstrumentConnectionException('Transport is not open')
        return self._serial

    def set_baudrate(self, baudrate):
        port = self._port()
        try:
            port.baudrate = baudrate
        except (serial.SerialException, ValueError) as e:
            raise InstrumentConnectionException('Unable to change baud rate to %s: %s' % (baudrate, e))

    def write(self, data, timeout=1.0):
        """
        Write all of data, giving up after timeout seconds.
        @retval number of bytes written
        @throws InstrumentTimeoutException if the port did not accept the data in time
        """
        port = self._port()
        port.write_timeout = timeout
        try:
            written = port.write(data)
            port.flush()
        except serial.SerialTimeoutException:
            raise InstrumentTimeoutException('Timeout writing %r' % data)
        except serial.SerialException as e:
            raise InstrumentConnectionException('Error writing to port: %s' % e)
        return written

    def read_available(self, timeout):
        """
        Wait up to timeout seconds for at least one byte, then return everything
        already buffered. Returns an empty bytes object when nothing arrived.
        """
        port = self._port()
        try:
            port.timeout = max(timeout, 0)
            data = port.read(1)
            if data:
                pending = port.in_waiting
                if pending:
                    data += port.read(pending)
        except serial.SerialException as e:
            raise InstrumentConnectionException('Error reading from port: %s' % e)
        return data

    def send_break(self):
        try:
            self._port().send_break(self.break_duration)
        except (serial.SerialException, OSError) as e:
            raise InstrumentConnectionException('Failed to send BREAK: %s' % e)

    def clear_input_buffer(self):
        try:
            self._port().reset_input_buffer()
        except serial.SerialException as e:
            raise InstrumentConnectionException('Failed to clear input buffer: %s' % e)
