"""
@package dvl.instrument.teledyne.explorer.test.pd0_samples
@file dvl/instrument/teledyne/explorer/test/pd0_samples.py
@brief Synthetic PD0 ensembles for the parser and driver tests
"""
import struct

from dvl.instrument.teledyne.explorer.pd0_parser import FIXED_FORMAT, VARIABLE_FORMAT, BOTTOM_TRACK_FORMAT, \
    BlockId, BOTTOM_TRACK_RANGE_MSB_OFFSET, checksum

__license__ = 'Apache 2.0'

# bottom track block of the ExplorerDVL, including the range MSB bytes
BOTTOM_TRACK_LONG_SIZE = 85

# instrument coordinates, tilts used, 3-beam solutions allowed
COORD_TRANSFORM_INSTRUMENT = 0b01110

VARIABLE_DEFAULTS = {
    'ensemble_number': 7,
    'ensemble_roll_over': 1,
    'rtc_year': 24,
    'rtc_month': 3,
    'rtc_day': 15,
    'rtc_hour': 12,
    'rtc_minute': 30,
    'rtc_second': 45,
    'rtc_hundredths': 50,
}

BOTTOM_TRACK_DEFAULTS = {
    'range_1': 1234,
    'range_2': 1250,
    'range_3': 0xffff,
    'range_4': 1300,
    'velocity_1': 250,
    'velocity_2': -125,
    'velocity_3': -32768,
    'velocity_4': 0,
    'corr_1': 255,
    'corr_2': 102,
    'corr_3': 0,
    'corr_4': 51,
}


def pack_block(formatter, **values):
    fmt = '<' + ''.join(item[1] for item in formatter)
    return struct.pack(fmt, *[values.get(name, 0) for name, _ in formatter])


def fixed_leader(coord_transform=COORD_TRANSFORM_INSTRUMENT):
    return pack_block(FIXED_FORMAT, id=BlockId.FIXED_DATA, number_of_beams=4, coord_transform=coord_transform)


def variable_leader(**values):
    settings = dict(VARIABLE_DEFAULTS)
    settings.update(values)
    return pack_block(VARIABLE_FORMAT, id=BlockId.VARIABLE_DATA, **settings)


def bottom_track(range_msb=(0, 0, 1, 0), **values):
    settings = dict(BOTTOM_TRACK_DEFAULTS)
    settings.update(values)
    block = bytearray(pack_block(BOTTOM_TRACK_FORMAT, id=BlockId.BOTTOM_TRACK, **settings))
    block.extend(b'\x00' * (BOTTOM_TRACK_LONG_SIZE - len(block)))
    block[BOTTOM_TRACK_RANGE_MSB_OFFSET:BOTTOM_TRACK_RANGE_MSB_OFFSET + 4] = bytearray(range_msb)
    return bytes(block)


def build_ensemble(blocks=None):
    """
    Assemble header, offset table, blocks and checksum into one ensemble.
    """
    if blocks is None:
        blocks = [fixed_leader(), variable_leader(), bottom_track()]

    header_size = 6 + 2 * len(blocks)
    offsets = []
    position = header_size
    for block in blocks:
        offsets.append(position)
        position += len(block)

    num_bytes = position
    data = struct.pack('<BBHBB', 0x7f, 0x7f, num_bytes, 0, len(blocks))
    data += struct.pack('<%dH' % len(blocks), *offsets)
    data += b''.join(blocks)
    return data + struct.pack('<H', checksum(data))


def with_offset(data, index, offset):
    """
    Point entry index of the offset table somewhere else, keeping the checksum valid.
    """
    body = bytearray(data[:-2])
    struct.pack_into('<H', body, 6 + 2 * index, offset)
    return bytes(body) + struct.pack('<H', checksum(body))
