"""Shared pytest helpers for auroramonbus tests."""

import struct

import weewx

from auroramonbus.errors import PortNotOpen
from auroramonbus.frame import crc16, crc_to_bytes


def make_frame(body: bytes) -> bytes:
    """Append a valid CRC to a 6 byte reply body."""
    return bytes(body) + crc_to_bytes(crc16(body))


def make_reply(data: bytes = b"\x00\x00\x00\x00", transmission_state: int = 0,
               global_state: int = 6) -> bytes:
    """Build a valid 8 byte reply carrying 4 data bytes."""
    return make_frame(bytes([transmission_state, global_state]) + bytes(data))


def float_reply(value: float, global_state: int = 6) -> bytes:
    """Build a valid measure reply."""
    return make_reply(struct.pack(">f", value), global_state=global_state)


def uint_reply(value: int, global_state: int = 6) -> bytes:
    """Build a valid energy counter or time reply."""
    return make_reply(struct.pack(">I", value), global_state=global_state)


def corrupt(reply: bytes) -> bytes:
    """Return reply with the CRC low byte inverted."""
    return reply[:-2] + bytes([reply[-2] ^ 0xFF]) + reply[-1:]


class FakeTransport:
    """Test double for SerialTransport: scripted replies, records calls.

    Each write() loads the next scripted reply into the receive buffer. A
    scripted reply of None means the inverter stays silent.
    """

    def __init__(self, replies=None):
        """Initialize with scripted replies."""
        self.replies = list(replies or [])
        self.calls = []
        self.written = []
        self.fail_open = False
        self.port = None
        self.baudrate = None
        self._open = False
        self._rx = bytearray()

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        """Open, or raise if fail_open is set."""
        self.calls.append("open")
        if self.fail_open:
            raise weewx.WeeWxIOError("Could not open port")
        self._open = True

    def close(self) -> None:
        """Record the close."""
        self.calls.append("close")
        self._open = False

    def write(self, data: bytes) -> None:
        """Record data and queue the next scripted reply."""
        if not self._open:
            raise PortNotOpen("Serial port not open")
        self.calls.append("write")
        self.written.append(bytes(data))
        if self.replies:
            _reply = self.replies.pop(0)
            if _reply is not None:
                self._rx = bytearray(_reply)

    def read_byte(self):
        """Return the next received byte or None."""
        if self._rx:
            return self._rx.pop(0)
        return None

    def discard_input(self) -> None:
        """Record the discard and drop any buffered bytes."""
        self.calls.append("discard")
        self._rx.clear()


class FakeEvent:
    """Test double for threading.Event: records waits, never sleeps.

    If set_after is given the event becomes set on that wait.
    """

    def __init__(self, set_after=None):
        """Initialize unset."""
        self.waits = []
        self.set_after = set_after
        self._set = False

    def is_set(self) -> bool:
        return self._set

    def set(self) -> None:
        self._set = True

    def clear(self) -> None:
        self._set = False

    def wait(self, timeout=None) -> bool:
        """Record timeout and return whether the event is set."""
        self.waits.append(timeout)
        if self.set_after is not None and len(self.waits) >= self.set_after:
            self._set = True
        return self._set


def transport_factory(transport):
    """Return an AuroraClient transport factory that hands out transport."""

    def factory(port, baudrate, read_timeout=None, write_timeout=None):
        transport.port = port
        transport.baudrate = baudrate
        return transport

    return factory


def connected_client(replies, **kwargs):
    """Return a connected AuroraClient talking to a FakeTransport."""
    from auroramonbus.client import AuroraClient

    transport = FakeTransport(replies)
    kwargs.setdefault("cancel_event", FakeEvent())
    client = AuroraClient(port="/dev/ttyTEST",
                          transport_factory=transport_factory(transport),
                          **kwargs)
    client.connect()
    transport.calls.clear()
    return client, transport


# one complete poll: 13 measures then 5 energy counters
MEASURE_VALUES = (230.0, 5.5, 1265.0, 50.0, 380.0, 40.0, 45.0,
                  300.0, 2.0, 250.0, 3.0, 1500.0, 3000.0)
ENERGY_VALUES = (12345, 100000, 2000000, 30000000, 0xDB000001)


def poll_replies():
    """Scripted replies for one complete poll."""
    return ([float_reply(v) for v in MEASURE_VALUES]
            + [uint_reply(v) for v in ENERGY_VALUES])
