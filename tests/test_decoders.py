"""Tests for auroramonbus.decoders."""

import math

from auroramonbus.decoders import (as_ascii, as_float, as_int16, as_uint16, as_uint32,
                                   format_byte_to_hex)


class TestIntegerDecoders:
    """Tests for the integer decoders."""

    def test_uint32(self):
        """Big-endian unsigned 32 bit at offset 2."""
        assert as_uint32(bytes.fromhex("00060000303900F7")) == 12345

    def test_uint32_high_bit(self):
        """Values with the top bit set stay unsigned."""
        assert as_uint32(b"\x00\x06\xdb\x12\x34\x56") == 0xDB123456

    def test_uint16_and_int16(self):
        """Signed and unsigned 16 bit views of the same bytes."""
        data = b"\x00\x06\xff\xfe"
        assert as_uint16(data) == 0xFFFE
        assert as_int16(data) == -2

    def test_offset(self):
        """An explicit offset is honoured."""
        assert as_uint16(b"\x01\x02\x03\x04", offset=0) == 0x0102

    def test_short_input_returns_zero(self):
        """Insufficient bytes decode to 0 rather than raising."""
        assert as_uint32(b"\x00\x06\x01") == 0
        assert as_uint16(b"\x00") == 0
        assert as_int16(None) == 0


class TestFloatDecoder:
    """Tests for as_float."""

    def test_float(self):
        """IEEE 754 single precision, big-endian."""
        assert as_float(b"\x00\x06\x43\x66\x00\x00") == 230.0

    def test_short_input_is_nan(self):
        """Insufficient bytes decode to NaN."""
        assert math.isnan(as_float(b"\x00\x06\x43"))


class TestAscii:
    """Tests for as_ascii and format_byte_to_hex."""

    def test_strips_nul_and_space(self):
        """Trailing NUL and space padding is removed."""
        assert as_ascii(b"\x00\x06AB \x00", 2, 6) == "AB"

    def test_non_ascii_replaced(self):
        """Non-ASCII bytes do not raise."""
        assert as_ascii(b"\x00\x06A\xffBC", 2, 6).startswith("A")

    def test_none(self):
        """None decodes to an empty string."""
        assert as_ascii(None, 0, 6) == ""

    def test_format_byte_to_hex(self):
        """Bytes are rendered as space separated upper-case hex pairs."""
        assert format_byte_to_hex(b"\x02\x3b\x0a") == "02 3B 0A"
