"""Tests for auroramonbus.frame."""

import pytest
import weewx

from auroramonbus.decoders import as_float
from auroramonbus.errors import CrcMismatch, FrameLengthError
from auroramonbus.frame import (COMMAND_LENGTH, crc16, crc_to_bytes, decode_and_verify,
                                encode, verify)

from conftest import make_reply

# measure reply carrying 230.2 V
GRID_VOLTAGE_REPLY = bytes.fromhex("0006436633332BB3")


class TestCrc16:
    """Tests for crc16."""

    def test_known_vector(self):
        """CRC of a grid voltage measure request."""
        assert crc16(bytes.fromhex("023B010100000000")) == 0x27BB

    def test_module_measure_vector(self):
        """CRC of a module (non-global) measure request."""
        assert crc16(bytes.fromhex("023B010000000000")) == 0x2CFF

    def test_empty_input(self):
        """CRC of no bytes is the complement of the initial value."""
        assert crc16(b"") == 0x0000

    def test_crc_to_bytes_low_byte_first(self):
        """CRC is packed little-endian."""
        assert crc_to_bytes(0x27BB) == b"\xbb\x27"


class TestEncode:
    """Tests for encode."""

    def test_golden_command(self):
        """Grid voltage request for address 2 matches the reference bytes."""
        assert encode(2, 0x3B, b"\x01\x01") == bytes.fromhex("023B0101000000" "00BB27")

    def test_length_and_padding(self):
        """Commands are always 10 bytes with zero padded payload."""
        frame = encode(2, 0x3A)
        assert len(frame) == COMMAND_LENGTH
        assert frame[2:8] == bytes(6)

    def test_full_payload(self):
        """A 6 byte payload is accepted as is."""
        frame = encode(7, 0x47, b"\x01\x02\x03\x04\x05\x06")
        assert frame[:8] == b"\x07\x47\x01\x02\x03\x04\x05\x06"

    @pytest.mark.parametrize("address", [0, 256, -1])
    def test_bad_address(self, address):
        """Address outside 1-255 is rejected."""
        with pytest.raises(ValueError):
            encode(address, 0x3B)

    def test_bad_command(self):
        """Command byte above 255 is rejected."""
        with pytest.raises(ValueError):
            encode(2, 0x100)

    def test_payload_too_long(self):
        """Payload of more than 6 bytes is rejected."""
        with pytest.raises(ValueError):
            encode(2, 0x3B, bytes(7))


class TestDecodeAndVerify:
    """Tests for decode_and_verify and verify."""

    def test_valid_reply(self):
        """A valid reply is returned unchanged."""
        assert decode_and_verify(GRID_VOLTAGE_REPLY) == GRID_VOLTAGE_REPLY
        assert verify(GRID_VOLTAGE_REPLY)

    def test_valid_reply_value(self):
        """The data bytes of the reference reply decode to 230.2."""
        assert as_float(decode_and_verify(GRID_VOLTAGE_REPLY)) == pytest.approx(230.2, rel=1e-6)

    def test_single_bit_flip(self):
        """Any single bit flip in a reply is detected."""
        for i in range(len(GRID_VOLTAGE_REPLY)):
            for bit in range(8):
                damaged = bytearray(GRID_VOLTAGE_REPLY)
                damaged[i] ^= 1 << bit
                assert not verify(damaged)
                with pytest.raises(CrcMismatch):
                    decode_and_verify(damaged)

    def test_short_reply(self):
        """A 7 byte reply is a length error, not a CRC error."""
        with pytest.raises(FrameLengthError, match="Expected to read 8 bytes; got 7 instead"):
            decode_and_verify(GRID_VOLTAGE_REPLY[:7])
        assert not verify(GRID_VOLTAGE_REPLY[:7])

    def test_none_reply(self):
        """No reply at all is a length error."""
        with pytest.raises(FrameLengthError):
            decode_and_verify(None)

    def test_errors_are_weewx_io_errors(self):
        """Frame errors can be caught as WeeWX I/O errors."""
        with pytest.raises(weewx.WeeWxIOError):
            decode_and_verify(GRID_VOLTAGE_REPLY[:-1] + b"\x00")
        with pytest.raises(weewx.CRCError):
            decode_and_verify(GRID_VOLTAGE_REPLY[:-1] + b"\x00")

    def test_make_reply_is_valid(self):
        """Replies built by the test helper verify."""
        assert verify(make_reply(b"\x12\x34\x56\x78"))
