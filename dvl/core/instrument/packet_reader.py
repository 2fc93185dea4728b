#!/usr/bin/env python

"""
@package dvl.core.instrument.packet_reader
@file dvl/core/instrument/packet_reader.py
@brief Read buffer that turns a byte stream into whole packets.

The reader owns the bytes received from the transport and never interprets
them itself. An extract function, supplied per call, looks at the start of
the buffer and answers with:

    0   the packet at the start of the buffer is not complete yet
    < 0 the first byte is garbage, drop it and look again
    > 0 the first N bytes are one packet
"""

__license__ = 'Apache 2.0'

import time

from dvl.core.log import get_logger
from dvl.core.exceptions import InstrumentTimeoutException

log = get_logger()

DEFAULT_MAX_BUFF_SIZE = 1000000


class PacketReader(object):
    """
    Accumulates transport data and hands out one packet per read_packet call.
    """
    def __init__(self, transport, max_buff_size=DEFAULT_MAX_BUFF_SIZE):
        self._transport = transport
        self.max_buff_size = max_buff_size
        self.buffer = bytearray()

    def add_data(self, data):
        """
        Append raw transport data to the end of the buffer, dropping the oldest
        bytes if the buffer would grow beyond max_buff_size.
        """
        self.buffer.extend(data)
        if len(self.buffer) > self.max_buff_size:
            oversize = len(self.buffer) - self.max_buff_size
            log.warning('Packet buffer has grown beyond specified limit (%d), truncating %d bytes',
                        self.max_buff_size, oversize)
            del self.buffer[:oversize]

    def extract(self, extract_fn):
        """
        Pull one packet out of the bytes already buffered.
        @param extract_fn the framing function (see module docstring)
        @retval the packet as bytes, or None if no complete packet is buffered
        """
        while self.buffer:
            size = extract_fn(self.buffer)
            if size < 0:
                log.debug('discarding unexpected byte %r', bytes(self.buffer[:1]))
                del self.buffer[:1]
            elif size == 0:
                return None
            else:
                packet = bytes(self.buffer[:size])
                del self.buffer[:size]
                return packet
        return None

    def read_packet(self, extract_fn, timeout):
        """
        Return the next complete packet, reading from the transport as needed.
        @param extract_fn the framing function
        @param timeout seconds to wait for a complete packet
        @throws InstrumentTimeoutException if no packet is complete within timeout
        """
        deadline = time.monotonic() + timeout
        while True:
            packet = self.extract(extract_fn)
            if packet is not None:
                return packet

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise InstrumentTimeoutException('No complete packet received within %.2fs' % timeout)

            data = self._transport.read_available(remaining)
            if data:
                self.add_data(data)

    def clear(self):
        """ Forget everything buffered here and in the transport """
        self.buffer = bytearray()
        self._transport.clear_input_buffer()
