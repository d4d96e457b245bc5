"""
frame.py

Aurora protocol frame construction and validation.

Copyright (C) 2016-2024 Gary Roderick                  gjroderick<at>gmail.com

This program is free software: you can redistribute it and/or modify it under
the terms of the GNU General Public License as published by the Free Software
Foundation, either version 3 of the License, or (at your option) any later
version.

This program is distributed in the hope that it will be useful, but WITHOUT ANY
WARRANTY; without even the implied warranty of MERCHANTABILITY or FITNESS FOR A
PARTICULAR PURPOSE.  See the GNU General Public License for more details.

You should have received a copy of the GNU General Public License along with
this program.  If not, see https://www.gnu.org/licenses/.

Version: 0.1.0                                        Date: 17 October 2026

The inverter communications protocol uses fixed length messages. A command
message is 10 bytes:

    byte 0: inverter address
    byte 1: command code
    byte 2: payload byte 0
    byte 3: payload byte 1
    byte 4: payload byte 2
    byte 5: payload byte 3
    byte 6: payload byte 4
    byte 7: payload byte 5
    byte 8: CRC low byte
    byte 9: CRC high byte

and a reply message is 8 bytes:

    byte 0: transmission state
    byte 1: global state
    byte 2: data
    byte 3: data
    byte 4: data
    byte 5: data
    byte 6: CRC low byte
    byte 7: CRC high byte
"""

# Python imports
import logging
import struct

# WeeWX imports
import weewx

# auroramonbus imports
from .decoders import format_byte_to_hex
from .errors import CrcMismatch, FrameLengthError

# get a logger object
log = logging.getLogger(__name__)

COMMAND_LENGTH = 10
REPLY_LENGTH = 8
PAYLOAD_LENGTH = 6
CRC_POLY = 0x8408


def crc16(buf):
    """Calculate a CCITT CRC16 checksum of a series of bytes.

    Calculated as per the Checksum calculation section of the Aurora PV
    Inverter Series Communications Protocol. This is the reflected form of
    the CCITT CRC, polynomial 0x8408 and initial value 0xFFFF with each byte
    processed least significant bit first. The result is inverted.

    Input:
        buf: bytes like object for which the CRC is to be calculated

    Returns:
        The CRC as an integer.
    """

    crc = 0xffff
    for _byte in bytearray(buf):
        for _ in range(8):
            if (crc & 0x0001) ^ (_byte & 0x0001):
                crc = ((crc >> 1) ^ CRC_POLY) & 0xffff
            else:
                crc >>= 1
            _byte >>= 1
    return ~crc & 0xffff


def crc_to_bytes(crc):
    """Pack a CRC as two bytes, low byte first."""

    return struct.pack('<H', crc & 0xffff)


def encode(address, command, payload=None):
    """Construct the byte sequence for a command.

    Bytes 2 to 7 inclusive are used with some command codes as additional
    parameters or a command payload. Unused payload bytes are padded with
    0x00.

    Inputs:
        address: The inverter address. Integer 1 to 255.
        command: The command code. Integer 0 to 255.
        payload: Up to 6 bytes of command payload. Optional, bytes like
                 object.

    Returns:
        A bytes object 10 bytes in length containing the command message.

    Raises:
        ValueError if the address, command or payload are out of range.
    """

    if not 1 <= address <= 255:
        raise ValueError("address must be in range 1-255, got %s" % (address,))
    if not 0 <= command <= 255:
        raise ValueError("command must be in range 0-255, got %s" % (command,))
    _payload = bytes(payload) if payload is not None else b''
    if len(_payload) > PAYLOAD_LENGTH:
        raise ValueError("payload must be at most %d bytes, got %d" % (PAYLOAD_LENGTH,
                                                                        len(_payload)))
    # all command sequences start with the inverter address and command code,
    # then the payload padded out with 0s to give 8 bytes
    _body = struct.pack('2B', address, command) + _payload
    _body += b'\x00' * (COMMAND_LENGTH - 2 - len(_body))
    # add the CRC and return our byte sequence
    return _body + crc_to_bytes(crc16(_body))


def verify(frame):
    """Does a reply carry a valid CRC.

    Returns False rather than raising if the reply is not exactly 8 bytes.
    """

    if frame is None or len(frame) != REPLY_LENGTH:
        return False
    return bytes(frame[-2:]) == crc_to_bytes(crc16(frame[:-2]))


def decode_and_verify(frame):
    """Validate an inverter reply.

    Input:
        frame: bytes like object containing the reply read from the inverter

    Returns:
        The verified 8 byte reply as a bytes object.

    Raises:
        FrameLengthError if the reply is not exactly 8 bytes.
        CrcMismatch if the trailing CRC does not match the CRC of the first 6
        bytes.
    """

    if frame is None or len(frame) != REPLY_LENGTH:
        _len = 0 if frame is None else len(frame)
        raise FrameLengthError("Expected to read %d bytes; got %d instead" % (REPLY_LENGTH,
                                                                               _len))
    _frame = bytes(frame)
    _crc_bytes = crc_to_bytes(crc16(_frame[:-2]))
    if _frame[-2:] != _crc_bytes:
        if weewx.debug >= 2:
            log.debug("Inverter response failed CRC check:")
            log.debug("  ***** response=%s", format_byte_to_hex(_frame))
            log.debug("  *****     data=%s        CRC=%s  expected CRC=%s",
                      format_byte_to_hex(_frame[:-2]),
                      format_byte_to_hex(_frame[-2:]),
                      format_byte_to_hex(_crc_bytes))
        raise CrcMismatch("Inverter response failed CRC check")
    return _frame
