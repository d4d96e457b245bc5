"""
decoders.py

Decode big-endian fields from Aurora inverter replies.

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

All multi-byte fields in an inverter reply are big-endian. The data bytes of
a reply start at offset 2 (bytes 0 and 1 are the transmission and global
state) so offset 2 is the default for every decoder.

None of the decoders raise on short input. If there are insufficient bytes at
the given offset a sentinel is returned instead, 0 for the integer decoders
and NaN for the float decoder.
"""

# Python imports
import math
import struct

DATA_OFFSET = 2


def _available(data, offset, size):
    """Are there at least size bytes in data starting at offset."""

    return data is not None and offset >= 0 and len(data) >= offset + size


def as_uint16(data, offset=DATA_OFFSET):
    """Decode a big-endian unsigned 16 bit integer."""

    if not _available(data, offset, 2):
        return 0
    return struct.unpack_from('>H', data, offset)[0]


def as_int16(data, offset=DATA_OFFSET):
    """Decode a big-endian signed 16 bit integer."""

    if not _available(data, offset, 2):
        return 0
    return struct.unpack_from('>h', data, offset)[0]


def as_uint32(data, offset=DATA_OFFSET):
    """Decode a big-endian unsigned 32 bit integer.

    Used for the cumulated energy counter registers.
    """

    if not _available(data, offset, 4):
        return 0
    return struct.unpack_from('>I', data, offset)[0]


def as_float(data, offset=DATA_OFFSET):
    """Decode a big-endian IEEE 754 single precision float.

    ANSI standard format float:

    bit bit         bit bit                             bit
    31  30          23  22                              0
    <S> <--Exponent-->  <------------Mantissa----------->

    Refer to the Aurora PV Inverter Series Communication Protocol rel 4.7
    command 59.

    Returns:
        The decoded float or NaN if there are insufficient bytes.
    """

    if not _available(data, offset, 4):
        return math.nan
    return struct.unpack_from('>f', data, offset)[0]


def as_ascii(data, start, end):
    """Decode a slice of a reply as ASCII text.

    Trailing (and leading) NUL and space characters are stripped. Bytes
    outside the ASCII range are replaced rather than raising.
    """

    if data is None:
        return ''
    return bytes(data[start:end]).decode('ascii', errors='replace').strip('\x00 ')


def format_byte_to_hex(byte_seq):
    """Format a sequence of bytes as a string of space separated hex bytes.

    Input:
        byte_seq: A bytes like object or sequence of ints to be formatted.

    Returns:
        A string of space separated hex digit pairs representing the input byte
        sequence.
    """

    # obtain a bytearray of the byte sequence
    _b_array = bytearray(byte_seq)
    # use a list comprehension to obtain a space delimited string of our byte
    # sequence formatted as hex characters
    return ' '.join(['%02X' % b for b in _b_array])
