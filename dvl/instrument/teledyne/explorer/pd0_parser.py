#!/usr/bin/env python
"""
@package dvl.instrument.teledyne.explorer.pd0_parser
@file dvl/instrument/teledyne/explorer/pd0_parser.py
@brief Framing and decoding of PD0 ensembles sent by the ExplorerDVL

Only the blocks needed for navigation are decoded (fixed leader, variable
leader and bottom track). Profile blocks are recognised and skipped.
"""
import datetime
import math
import struct
from collections import namedtuple

from dvl.core.log import get_logger
from dvl.core.time_tools import datetime_to_ntp_date_time
from dvl.instrument.teledyne.explorer.framing import MALFORMED, INCOMPLETE

__license__ = 'Apache 2.0'

log = get_logger()

HEADER_ID = 0x7f
HEADER_SIZE = 6
CHECKSUM_SIZE = 2
BAD_VELOCITY = -32768

namedtuple_store = {}
bitmapped_namedtuple_store = {}


class PD0ParsingException(Exception):
    pass


class InsufficientDataException(PD0ParsingException):
    pass


class ChecksumException(PD0ParsingException):
    pass


class BlockId(object):
    FIXED_DATA = 0
    VARIABLE_DATA = 128
    VELOCITY_DATA = 256
    CORRELATION_DATA = 512
    ECHO_INTENSITY_DATA = 768
    PERCENT_GOOD_DATA = 1024
    STATUS_DATA_ID = 1280
    BOTTOM_TRACK = 1536
    AUV_NAV_DATA = 8192


SKIPPED_BLOCKS = (BlockId.VELOCITY_DATA, BlockId.CORRELATION_DATA, BlockId.ECHO_INTENSITY_DATA,
                  BlockId.PERCENT_GOOD_DATA, BlockId.STATUS_DATA_ID, BlockId.AUV_NAV_DATA)

HEADER_FORMAT = (
    ('id', 'B'),
    ('data_source', 'B'),
    ('num_bytes', 'H'),
    ('spare', 'B'),
    ('num_data_types', 'B')
)

FIXED_FORMAT = (
    ('id', 'H'),
    ('cpu_firmware_version', 'B'),
    ('cpu_firmware_revision', 'B'),
    ('system_configuration', 'H'),
    ('simulation_data_flag', 'B'),
    ('lag_length', 'B'),
    ('number_of_beams', 'B'),
    ('number_of_cells', 'B'),
    ('pings_per_ensemble', 'H'),
    ('depth_cell_length', 'H'),
    ('blank_after_transmit', 'H'),
    ('signal_processing_mode', 'B'),
    ('low_corr_threshold', 'B'),
    ('num_code_reps', 'B'),
    ('minimum_percentage', 'B'),
    ('error_velocity_max', 'H'),
    ('tpp_minutes', 'B'),
    ('tpp_seconds', 'B'),
    ('tpp_hundredths', 'B'),
    ('coord_transform', 'B'),
    ('heading_alignment', 'h'),
    ('heading_bias', 'h'),
    ('sensor_source', 'B'),
    ('sensor_available', 'B'),
)

VARIABLE_FORMAT = (
    ('id', 'H'),
    ('ensemble_number', 'H'),
    ('rtc_year', 'B'),
    ('rtc_month', 'B'),
    ('rtc_day', 'B'),
    ('rtc_hour', 'B'),
    ('rtc_minute', 'B'),
    ('rtc_second', 'B'),
    ('rtc_hundredths', 'B'),
    ('ensemble_roll_over', 'B'),
    ('bit_result', 'H'),
    ('speed_of_sound', 'H'),
    ('depth_of_transducer', 'H'),
    ('heading', 'H'),
    ('pitch', 'h'),
    ('roll', 'h'),
    ('salinity', 'H'),
    ('temperature', 'h'),
)

BOTTOM_TRACK_FORMAT = (
    ('id', 'H'),
    ('pings_per_ensemble', 'H'),
    ('delay_before_reacquire', 'H'),
    ('correlation_mag_min', 'B'),
    ('eval_amplitude_min', 'B'),
    ('percent_good_minimum', 'B'),
    ('mode', 'B'),
    ('error_velocity_max', 'H'),
    ('reserved', 'I'),
    ('range_1', 'H'),
    ('range_2', 'H'),
    ('range_3', 'H'),
    ('range_4', 'H'),
    ('velocity_1', 'h'),
    ('velocity_2', 'h'),
    ('velocity_3', 'h'),
    ('velocity_4', 'h'),
    ('corr_1', 'B'),
    ('corr_2', 'B'),
    ('corr_3', 'B'),
    ('corr_4', 'B'),
    ('amp_1', 'B'),
    ('amp_2', 'B'),
    ('amp_3', 'B'),
    ('amp_4', 'B'),
    ('pcnt_1', 'B'),
    ('pcnt_2', 'B'),
    ('pcnt_3', 'B'),
    ('pcnt_4', 'B'),
)

# only present in the long form of the bottom track block
BOTTOM_TRACK_RANGE_MSB_OFFSET = 77


def _format_size(formatter):
    return struct.calcsize('<' + ''.join(item[1] for item in formatter))


def count_zero_bits(bitmask):
    if not bitmask:
        return 0
    zero_digits = 0
    submask = 1
    while True:
        x = bitmask & submask
        submask <<= 1
        if x != 0:
            break
        zero_digits += 1
    return zero_digits


def checksum(data):
    return sum(bytearray(data)) & 0xffff


def extract_pd0_packet(buffer):
    """
    Frame length of the PD0 ensemble at the start of buffer: the byte count
    from the header plus the two checksum bytes. Returns INCOMPLETE until the
    whole ensemble is buffered and MALFORMED if the start of the buffer is not
    an ensemble header or the checksum does not match.
    """
    size = len(buffer)
    if size == 0:
        return INCOMPLETE
    if buffer[0] != HEADER_ID:
        return MALFORMED
    if size < 2:
        return INCOMPLETE
    if buffer[1] != HEADER_ID:
        return MALFORMED
    if size < 4:
        return INCOMPLETE

    num_bytes = struct.unpack_from('<H', bytes(buffer[2:4]))[0]
    if num_bytes < HEADER_SIZE:
        return MALFORMED

    packet_size = num_bytes + CHECKSUM_SIZE
    if size < packet_size:
        return INCOMPLETE

    stored = struct.unpack_from('<H', bytes(buffer[num_bytes:packet_size]))[0]
    if checksum(buffer[:num_bytes]) != stored:
        log.debug('PD0 checksum mismatch, resynchronizing')
        return MALFORMED
    return packet_size


class AdcpPd0Record(object):
    """
    Decoded view of one PD0 ensemble.
    """
    def __init__(self, data):
        self.data = data
        self.header = None
        self.offsets = None
        self.fixed_data = None
        self.variable_data = None
        self.bottom_track = None
        self.range_msb = None
        self.coord_transform = None
        self.stored_checksum = None
        self._process()

    def __repr__(self):
        return '%s(header=%r, variable_data=%r, bottom_track=%r)' % (
            self.__class__.__name__, self.header, self.variable_data, self.bottom_track)

    def _unpack_from_format(self, name, formatter, offset):
        format_string = ''.join([item[1] for item in formatter])
        fields = [item[0] for item in formatter]
        if offset + _format_size(formatter) > len(self.data):
            raise InsufficientDataException('Truncated %s block at offset %d' % (name, offset))
        data = struct.unpack_from('<' + format_string, self.data, offset)
        if name not in namedtuple_store:
            namedtuple_store[name] = namedtuple(name, fields)
        _class = namedtuple_store[name]
        return _class(*data)

    @staticmethod
    def _unpack_bitmapped(name, formatter, source_data):
        # short circuit if we've seen this bitmap before
        short_circuit_key = (name, source_data)
        if short_circuit_key in bitmapped_namedtuple_store:
            return bitmapped_namedtuple_store[short_circuit_key]

        fields = [item[0] for item in formatter]
        if name not in namedtuple_store:
            namedtuple_store[name] = namedtuple(name, fields)
        _class = namedtuple_store[name]

        data = []
        for _, bitmask, lookup_table in formatter:
            raw = (source_data & bitmask) >> count_zero_bits(bitmask)
            if lookup_table is not None:
                data.append(lookup_table[raw])
            else:
                data.append(raw)
        value = _class(*data)

        bitmapped_namedtuple_store[short_circuit_key] = value
        return value

    def _process(self):
        self._process_header()
        self._validate_checksum()
        self._parse_offset_data()
        if self.fixed_data is None or self.variable_data is None:
            raise PD0ParsingException('PD0 ensemble without fixed or variable leader')
        self._parse_coord_transform()

    def _process_header(self):
        if len(self.data) < HEADER_SIZE:
            raise InsufficientDataException('Insufficient data for a PD0 header (%d bytes)' % len(self.data))
        self.header = self._unpack_from_format('header', HEADER_FORMAT, 0)
        self.data = self.data[:self.header.num_bytes + CHECKSUM_SIZE]

    def _validate_checksum(self):
        if len(self.data) < self.header.num_bytes + CHECKSUM_SIZE:
            raise InsufficientDataException(
                'Insufficient data in PD0 record (expected %d bytes, found %d)' %
                (self.header.num_bytes + CHECKSUM_SIZE, len(self.data)))

        calculated_checksum = checksum(self.data[:-CHECKSUM_SIZE])
        self.stored_checksum = struct.unpack_from('<H', self.data, self.header.num_bytes)[0]

        if calculated_checksum != self.stored_checksum:
            raise ChecksumException('Checksum failure in PD0 data (expected %d, calculated %d)' %
                                    (self.stored_checksum, calculated_checksum))

    def _parse_offset_data(self):
        num_types = self.header.num_data_types
        if HEADER_SIZE + 2 * num_types > self.header.num_bytes:
            raise InsufficientDataException('Offset table for %d data types does not fit in %d bytes' %
                                            (num_types, self.header.num_bytes))

        self.offsets = struct.unpack_from('<%dH' % num_types, self.data, HEADER_SIZE)
        for offset in self.offsets:
            if offset + 2 > self.header.num_bytes:
                raise InsufficientDataException('Data type offset %d beyond the end of the ensemble (%d bytes)' %
                                                (offset, self.header.num_bytes))
            block_id = struct.unpack_from('<H', self.data, offset)[0]
            if block_id == BlockId.FIXED_DATA:
                self.fixed_data = self._unpack_from_format('fixed', FIXED_FORMAT, offset)
            elif block_id == BlockId.VARIABLE_DATA:
                self.variable_data = self._unpack_from_format('variable', VARIABLE_FORMAT, offset)
            elif block_id == BlockId.BOTTOM_TRACK:
                self._parse_bottom_track(offset)
            elif block_id in SKIPPED_BLOCKS:
                pass
            else:
                # blocks this driver has no use for, e.g. high resolution bottom track
                log.debug('skipping unhandled data type id: 0x%04x', block_id)

    def _parse_bottom_track(self, offset):
        self.bottom_track = self._unpack_from_format('bottom_track', BOTTOM_TRACK_FORMAT, offset)
        msb_offset = offset + BOTTOM_TRACK_RANGE_MSB_OFFSET
        if msb_offset + 4 <= self.header.num_bytes:
            self.range_msb = struct.unpack_from('<4B', self.data, msb_offset)
        else:
            self.range_msb = (0, 0, 0, 0)

    def _parse_coord_transform(self):
        """
         xxx00xxx = NO TRANSFORMATION (BEAM COORDINATES)
         xxx01xxx = INSTRUMENT COORDINATES
         xxx10xxx = SHIP COORDINATES
         xxx11xxx = EARTH COORDINATES
         xxxxx1xx = TILTS (PITCH AND ROLL) USED IN SHIP OR EARTH TRANSFORMATION
         xxxxxx1x = 3-BEAM SOLUTION USED IF ONE BEAM IS BELOW THE CORRELATION THRESHOLD
         xxxxxxx1 = BIN MAPPING USED
        """
        coord_transform_format = (
            ('coord_transform', 0b11000, None),
            ('tilts_used', 0b100, None),
            ('three_beam_used', 0b10, None),
            ('bin_mapping_used', 0b1, None))

        self.coord_transform = self._unpack_bitmapped('coord_transform', coord_transform_format,
                                                      self.fixed_data.coord_transform)


Pd0Ensemble = namedtuple('Pd0Ensemble', ('time', 'seq', 'coordinate_system',
                                         'range', 'velocity', 'evaluation', 'record'))


def _rtc_time(variable_data):
    """ NTP timestamp of the ensemble from the variable leader clock """
    year = variable_data.rtc_year
    year += 1900 if year >= 80 else 2000
    dts = datetime.datetime(year, variable_data.rtc_month, variable_data.rtc_day,
                            variable_data.rtc_hour, variable_data.rtc_minute, variable_data.rtc_second,
                            variable_data.rtc_hundredths * 10000)
    return datetime_to_ntp_date_time(dts)


class Pd0Parser(object):
    """
    Binary frame collaborator of the driver: frames and decodes ensembles.
    """
    extract_packet = staticmethod(extract_pd0_packet)

    @staticmethod
    def parse(packet):
        """
        Decode a whole PD0 ensemble.
        @retval Pd0Ensemble. range in meters, velocity in m/s (NaN for bad
        beams) and evaluation as correlation in [0, 1], one entry per beam.
        @throws PD0ParsingException if the ensemble cannot be decoded
        """
        record = AdcpPd0Record(packet)
        try:
            ensemble_time = _rtc_time(record.variable_data)
        except ValueError as e:
            raise PD0ParsingException('Invalid ensemble clock: %s' % e)

        ranges = []
        velocities = []
        evaluations = []
        track = record.bottom_track
        if track is not None:
            for beam in range(4):
                msb = record.range_msb[beam]
                ranges.append(((msb << 16) + getattr(track, 'range_%d' % (beam + 1))) / 100.0)
                velocity = getattr(track, 'velocity_%d' % (beam + 1))
                velocities.append(math.nan if velocity == BAD_VELOCITY else velocity / 1000.0)
                evaluations.append(getattr(track, 'corr_%d' % (beam + 1)) / 255.0)
        else:
            ranges = [math.nan] * 4
            velocities = [math.nan] * 4
            evaluations = [math.nan] * 4

        seq = record.variable_data.ensemble_number + (record.variable_data.ensemble_roll_over << 16)
        return Pd0Ensemble(ensemble_time, seq, record.coord_transform.coord_transform,
                           ranges, velocities, evaluations, record)
