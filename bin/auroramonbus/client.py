"""
client.py

Typed command API for an Aurora inverter.

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

An AuroraClient owns at most one open transport. Each command method packs a
command code and payload, delegates to the exchange engine and decodes the
validated 8 byte reply. Failures from the exchange engine are never swallowed,
they propagate to our caller as is.

Composite reads (energy counters, system info) issue their sub-commands
strictly one after the other.
"""

# Python imports
import collections
import logging
import struct
import threading
import time

# auroramonbus imports
from . import states
from .constants import (Command,
                        DEFAULT_ADDRESS,
                        DEFAULT_BAUDRATE,
                        DEFAULT_COMMAND_DELAY,
                        DEFAULT_PORT,
                        DEFAULT_READ_TIMEOUT,
                        DEFAULT_REPLY_TIMEOUT,
                        DEFAULT_WRITE_TIMEOUT,
                        EnergySelector,
                        GLOBAL_STATE_RUN,
                        INVERTER_EPOCH_OFFSET)
from .decoders import as_ascii, as_float, as_uint32, format_byte_to_hex
from .errors import PortNotOpen
from .exchange import ExchangeEngine
from .transport import SerialTransport

# get a logger object
log = logging.getLogger(__name__)

# partial energy counter values with this most significant byte are unset
PARTIAL_ENERGY_SENTINEL = 0xDB

# order in which read_energy_counters() reads the counters
ENERGY_COUNTER_ORDER = (EnergySelector.TODAY,
                        EnergySelector.MONTH,
                        EnergySelector.YEAR,
                        EnergySelector.TOTAL,
                        EnergySelector.PARTIAL)

# width of the label column in the system info report
REPORT_LABEL_WIDTH = 25


InverterState = collections.namedtuple('InverterState',
                                       ['transmission_state', 'global_state',
                                        'inverter_state', 'dcdc1_state',
                                        'dcdc2_state', 'alarm_state'])


class EnergyCounters(collections.namedtuple('EnergyCounters',
                                            ['today', 'month', 'year', 'total', 'partial',
                                             'raw_today', 'raw_month', 'raw_year',
                                             'raw_total', 'raw_partial'])):
    """Energy counters in kWh together with the raw register values."""

    __slots__ = ()

    @classmethod
    def from_raw(cls, today, month, year, total, partial):
        """Create an EnergyCounters object from raw counter register values.

        The partial counter sentinel is normalised to 0 before every value is
        scaled from Wh to kWh.
        """

        partial = normalise_partial_energy(partial)
        return cls(scale_energy(today), scale_energy(month), scale_energy(year),
                   scale_energy(total), scale_energy(partial),
                   today, month, year, total, partial)


def normalise_partial_energy(raw):
    """Return 0 if raw is the unset partial counter value (0xDBxxxxxx)."""

    if (raw >> 24) & 0xff == PARTIAL_ENERGY_SENTINEL:
        return 0
    return raw


def scale_energy(raw):
    """Convert a raw energy counter value in Wh to kWh."""

    return raw / 1000.0


def format_version(raw):
    """Format a version string with each character separated by '-'.

    This matches the vendor display convention, eg '1KNN' is displayed as
    '1-K-N-N'. Strings of one character or less are returned unchanged.
    """

    if len(raw) > 1:
        return '-'.join(raw)
    return raw


# ============================================================================
#                            class AuroraClient
# ============================================================================

class AuroraClient(object):
    """Client for a single Aurora inverter on an RS-485 bus.

    The client is not thread safe, callers must not issue commands
    concurrently against one client. Any wait in an exchange can be aborted by
    setting the cancel event, see cancel().
    """

    def __init__(self, port=DEFAULT_PORT, baudrate=DEFAULT_BAUDRATE, address=DEFAULT_ADDRESS,
                 read_timeout=DEFAULT_READ_TIMEOUT, write_timeout=DEFAULT_WRITE_TIMEOUT,
                 command_delay=DEFAULT_COMMAND_DELAY, reply_timeout=DEFAULT_REPLY_TIMEOUT,
                 policy=None, diagnostics=False, cancel_event=None,
                 on_status=None, on_data=None, transport_factory=SerialTransport):
        """Initialise an AuroraClient object. The port is not opened."""

        self.port = port
        self.baudrate = baudrate
        self.address = address
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.command_delay = command_delay
        self.reply_timeout = reply_timeout
        self.policy = policy
        self._diagnostics = diagnostics
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.on_status = on_status
        self.on_data = on_data
        self.transport_factory = transport_factory
        self.transport = None
        self.engine = None
        # updated from any reply that includes the inverter transmission and
        # global state
        self.transmission_state = None
        self.global_state = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.disconnect()

    # ------------------------------------------------------------------------
    #                         connection lifecycle
    # ------------------------------------------------------------------------

    def connect(self, port=None, baudrate=None, address=None):
        """Open the transport to the inverter.

        Any of port, baudrate and address that are specified override the
        values the client was created with. Baud rate plausibility is left to
        the transport.

        Raises:
            ValueError if the address is not in the range 1-255.
            weewx.WeeWxIOError if the port could not be opened.
        """

        if port is not None:
            self.port = port
        if baudrate is not None:
            self.baudrate = int(baudrate)
        if address is not None:
            self.address = int(address)
        if not 1 <= self.address <= 255:
            raise ValueError("address must be in range 1-255, got %s" % (self.address,))
        if self.is_connected:
            self.disconnect()
        self.cancel_event.clear()
        self.transport = self.transport_factory(self.port,
                                                self.baudrate,
                                                read_timeout=self.read_timeout,
                                                write_timeout=self.write_timeout)
        try:
            self.transport.open()
        except Exception as e:
            self._status("Connect failed: %s" % e, logging.ERROR)
            raise
        self.engine = ExchangeEngine(self.transport,
                                     self.address,
                                     policy=self.policy,
                                     command_delay=self.command_delay,
                                     reply_timeout=self.reply_timeout,
                                     cancel_event=self.cancel_event,
                                     on_status=self.on_status,
                                     on_data=self.on_data,
                                     diagnostics=self._diagnostics)
        log.info("Connected to '%s' @ %d baud, inverter address %d",
                 self.port, self.baudrate, self.address)
        self._status("Connected to %s @ %d" % (self.port, self.baudrate), logging.INFO)

    def disconnect(self):
        """Abort any exchange in progress and close the transport."""

        self.cancel_event.set()
        if self.transport is not None:
            self.transport.close()
            log.info("Closed '%s'", self.port)
        self.transport = None
        self.engine = None
        self._status("Disconnected", logging.INFO)

    def reopen(self):
        """Reopen a transport left closed by a failed port cycle.

        Unlike connect() the cancel event is not cleared.
        """

        if self.transport is None:
            raise PortNotOpen("Not connected")
        if not self.transport.is_open:
            self.transport.open()
            log.info("Reopened '%s'", self.port)

    def cancel(self):
        """Abort the exchange in progress, if any.

        The transport is left open. The outcome of the aborted command is
        unknown. The cancellation is consumed by the exchange it aborts, if
        no exchange is in progress the next command is aborted instead.
        """

        self.cancel_event.set()

    @property
    def is_connected(self):
        return self.transport is not None and self.transport.is_open

    @property
    def diagnostics(self):
        """Log every raw byte sequence sent to or received from the
        inverter."""

        return self._diagnostics

    @diagnostics.setter
    def diagnostics(self, value):
        self._diagnostics = bool(value)
        if self.engine is not None:
            self.engine.diagnostics = self._diagnostics
        log.debug("Diagnostics %s", 'enabled' if self._diagnostics else 'disabled')

    @property
    def is_running(self) -> bool:
        """Is the inverter running.

        Updated whenever a command is sent that elicits a response that
        includes the global state.
        """

        return self.global_state == GLOBAL_STATE_RUN

    # ------------------------------------------------------------------------
    #                               commands
    # ------------------------------------------------------------------------

    def read_measure(self, measure_type, global_measure=True):
        """Read a DSP measure.

        Inputs:
            measure_type: A MeasureType selecting the quantity to read.
            global_measure: Request the global (True) or module (False)
                            measure.

        Returns:
            The validated 8 byte reply. The value is a big-endian float at
            offset 2, see decoders.as_float().
        """

        _payload = bytes([int(measure_type), 1 if global_measure else 0, 0, 0, 0, 0])
        return self._exchange(Command.MEASURE, _payload)

    def read_measure_value(self, measure_type, global_measure=True):
        """Read a DSP measure and decode it as a float."""

        return as_float(self.read_measure(measure_type, global_measure))

    def read_part_number(self):
        """Read the inverter part number.

        The part number occupies reply bytes 1 to 5 inclusive.
        """

        _reply = self._exchange(Command.PART_NUMBER, has_state=False)
        return as_ascii(_reply, 1, 6)

    def read_version(self):
        """Read the inverter version.

        The version is four ASCII characters in reply bytes 2 to 5 inclusive,
        eg '1KNN' that we return as '1-K-N-N'.
        """

        _reply = self._exchange(Command.VERSION)
        return format_version(as_ascii(_reply, 2, 6))

    def read_firmware_release(self):
        """Read the inverter firmware release.

        The firmware release provided by the inverter is a four character
        string (eg, 'C016'); however, the firmware release is commonly
        displayed as four characters separated by periods (eg, 'C.0.1.6').
        """

        _reply = self._exchange(Command.FIRMWARE_RELEASE)
        return '.'.join(as_ascii(_reply, 2, 6))

    def read_serial_number(self):
        """Read the inverter serial number, six ASCII characters."""

        _reply = self._exchange(Command.SERIAL_NUMBER, has_state=False)
        return as_ascii(_reply, 0, 6)

    def read_manufacture_date(self):
        """Read the inverter manufacture date.

        Reply bytes 2 and 3 are the ASCII week digits and bytes 4 and 5 the
        ASCII year digits, eg bytes 0x34 0x36 are week 46.

        Returns:
            A 2-way tuple of (week, year) or (None, None) if the reply could
            not be decoded. The year is the two digit year.
        """

        _reply = self._exchange(Command.MANUFACTURE_DATE)
        try:
            return int(as_ascii(_reply, 2, 4)), int(as_ascii(_reply, 4, 6))
        except ValueError:
            log.debug("read_manufacture_date: could not decode response '%s'",
                      format_byte_to_hex(_reply))
            return None, None

    def read_state(self):
        """Read the inverter state.

        An inverter state request response is in the following format:

        byte 0: transmission state
        byte 1: global state
        byte 2: inverter state
        byte 3: DC/DC channel 1 state
        byte 4: DC/DC channel 2 state
        byte 5: alarm state

        Returns:
            An InverterState.
        """

        _reply = self._exchange(Command.STATE_REQUEST)
        return InverterState(*_reply[:6])

    def read_last_alarms(self):
        """Read the last four alarm codes, oldest first."""

        _reply = self._exchange(Command.LAST_ALARMS)
        return tuple(_reply[2:6])

    def read_time(self):
        """Read the inverter date-time.

        The inverter reports the number of seconds since midnight 1 January
        2000.

        Returns:
            An epoch timestamp.
        """

        _reply = self._exchange(Command.READ_TIME_DATE)
        return as_uint32(_reply) + INVERTER_EPOCH_OFFSET

    def set_time(self, epoch_ts):
        """Set the inverter date-time.

        Returns:
            True if the inverter reported a transmission state of 0 and is
            running, otherwise False.
        """

        _payload = struct.pack('>i', int(epoch_ts) - INVERTER_EPOCH_OFFSET)
        self._exchange(Command.SET_TIME_DATE, _payload)
        return self.transmission_state == 0 and self.is_running

    def read_energy_counter(self, selector):
        """Read a raw cumulated energy counter register.

        Returns:
            The register value in Wh as an unsigned integer.
        """

        _payload = bytes([int(selector), 0, 0, 0, 0, 0])
        _reply = self._exchange(Command.CUMULATED_ENERGY, _payload)
        return as_uint32(_reply)

    def read_energy_counters(self):
        """Read the today, month, year, total and partial energy counters.

        Returns:
            An EnergyCounters object.
        """

        _raw = [self.read_energy_counter(selector) for selector in ENERGY_COUNTER_ORDER]
        return EnergyCounters.from_raw(*_raw)

    def read_system_info(self, now=None):
        """Collect the system information.

        The sub-commands are issued in a fixed order: system info, part
        number, version, firmware release, state request, serial number,
        manufacture date and inverter time.

        Returns:
            A dict of system information.
        """

        _reply = self._exchange(Command.SYSTEM_INFO)
        info = {'global_state': _reply[1]}
        info['part_number'] = self.read_part_number()
        info['version'] = self.read_version()
        info['firmware_release'] = self.read_firmware_release()
        info['state'] = self.read_state()
        info['serial_number'] = self.read_serial_number()
        info['manufacture_date'] = self.read_manufacture_date()
        _inverter_ts = self.read_time()
        _now = now if now is not None else time.time()
        info['time_difference'] = int(round(_inverter_ts - _now))
        return info

    def read_extended_system_info(self, now=None):
        """Read the system information and format it as a text report."""

        return format_system_info(self.read_system_info(now=now))

    def debug_probe(self, command):
        """Send an arbitrary command with an all zero payload.

        Returns:
            The validated 8 byte reply unmodified.
        """

        if self.engine is None:
            raise PortNotOpen("Serial port not open")
        _reply = self.engine.exchange(command, bytes(6))
        log.debug("[Probe] cmd=0x%02X RX -> %s", command, format_byte_to_hex(_reply))
        return _reply

    # ------------------------------------------------------------------------
    #                               helpers
    # ------------------------------------------------------------------------

    def _exchange(self, command, payload=None, has_state=True):
        """Execute a command and return the validated reply.

        If the reply includes the inverter transmission and global state the
        transmission_state and global_state properties are updated.
        """

        if self.engine is None:
            raise PortNotOpen("Serial port not open")
        _reply = self.engine.exchange(command, payload)
        if has_state:
            self.transmission_state = _reply[0]
            self.global_state = _reply[1]
        return _reply

    def _status(self, message, level):
        if self.on_status is not None:
            self.on_status(message, level)


# ============================================================================
#                             Utility functions
# ============================================================================

def _line(label, value):
    return f"{label:<{REPORT_LABEL_WIDTH}}= {value}"


def format_system_info(info):
    """Format a system info dict as a fixed block of labelled lines."""

    _state = info['state']
    _week, _year = info['manufacture_date']
    if _week is not None:
        _date = f"20{_year:02d} Week {_week}"
    else:
        _date = 'unknown'
    lines = [
        _line('Part Number', info['part_number']),
        _line('Firmware Version', info['version']),
        _line('Firmware Release', info['firmware_release']),
        '',
        _line('Global State', states.describe(states.GLOBAL, info['global_state'])),
        _line('Operating State', states.describe(states.INVERTER, _state.inverter_state)),
        _line('DC/DC 1 State', states.describe(states.DCDC, _state.dcdc1_state)),
        _line('DC/DC 2 State', states.describe(states.DCDC, _state.dcdc2_state)),
        _line('Alarm Code', states.describe_alarm(_state.alarm_state)),
        '',
        _line('Serial Number', info['serial_number']),
        _line('Manufacturing Date', _date),
        '',
        _line('Inverter-computer time difference', f"{info['time_difference']} seconds"),
    ]
    return '\n'.join(lines) + '\n'
