"""
@package dvl.instrument.teledyne.explorer.framing
@file dvl/instrument/teledyne/explorer/framing.py
@brief Packet framing for the ExplorerDVL serial stream

In configuration mode the device answers every command with either the
'>' prompt or an error text starting with "ER" that runs up to the next
prompt. In acquisition mode the stream is made of binary PD0 ensembles,
which are framed by the PD0 parser.
"""
from collections import namedtuple

from dvl.instrument.teledyne.explorer.commands import ExplorerPrompt

__license__ = 'Apache 2.0'

MALFORMED = -1
INCOMPLETE = 0

AckFrame = namedtuple('AckFrame', ())
ErrorFrame = namedtuple('ErrorFrame', ('message',))

_PROMPT = ExplorerPrompt.COMMAND[0]
_ERROR_START = ExplorerPrompt.ERROR[0]
_ERROR_SECOND = ExplorerPrompt.ERROR[1]


def extract_configuration_packet(buffer):
    """
    Frame length of the configuration mode response at the start of buffer.
    @retval 1 for a prompt, the offset of the "\\n>" terminator for an error
    text, 0 if more bytes are needed, MALFORMED for anything else
    """
    if not buffer:
        return INCOMPLETE

    first = buffer[0]
    if first == _PROMPT:
        return 1

    if first != _ERROR_START:
        return MALFORMED

    # the device starts every error message with ER
    if len(buffer) > 1 and buffer[1] != _ERROR_SECOND:
        return MALFORMED

    # the prompt that ends the message is left in the buffer, it is the next packet
    end = bytes(buffer).find(ExplorerPrompt.ERROR_END, 2)
    if end < 0:
        return INCOMPLETE
    return end


def extract_packet(buffer, configuration_mode, pd0_extract):
    """
    Frame dispatcher used by the driver read loop.
    @param buffer bytes received and not consumed yet
    @param configuration_mode True when the device is in configuration mode
    @param pd0_extract framing function for binary ensembles
    """
    if configuration_mode:
        return extract_configuration_packet(buffer)
    return pd0_extract(buffer)


def parse_configuration_frame(packet):
    """
    Turn a configuration mode packet into an AckFrame or an ErrorFrame.
    """
    if packet == ExplorerPrompt.COMMAND:
        return AckFrame()
    return ErrorFrame(bytes(packet))
