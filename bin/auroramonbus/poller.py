"""
poller.py

Periodically read live data and energy counters from an Aurora inverter.

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
"""

# Python imports
import logging
import time

# WeeWX imports
import weewx
import weeutil.weeutil

# auroramonbus imports
from .constants import DEFAULT_ERROR_COOLDOWN, DEFAULT_POLL_INTERVAL, MeasureType
from .decoders import as_float, format_byte_to_hex
from .errors import ExchangeCancelled

# get a logger object
log = logging.getLogger(__name__)

# packet field and measure, in the order the measures are read
POLL_MEASURES = (('grid_voltage', MeasureType.GRID_VOLTAGE),
                 ('grid_current', MeasureType.GRID_CURRENT),
                 ('grid_power', MeasureType.GRID_POWER),
                 ('frequency', MeasureType.FREQUENCY),
                 ('bulk_voltage', MeasureType.BULK_VOLTAGE),
                 ('inverter_temp', MeasureType.INVERTER_TEMP),
                 ('booster_temp', MeasureType.BOOSTER_TEMP),
                 ('string1_voltage', MeasureType.INPUT1_VOLTAGE),
                 ('string1_current', MeasureType.INPUT1_CURRENT),
                 ('string2_voltage', MeasureType.INPUT2_VOLTAGE),
                 ('string2_current', MeasureType.INPUT2_CURRENT),
                 ('day_peak_power', MeasureType.DAY_PEAK_POWER),
                 ('peak_power', MeasureType.PEAK_POWER))


class Poller(object):
    """Poll an inverter for a packet of data every poll_interval seconds.

    A packet is a dict keyed by field name. Measures are in the units the
    inverter reports (V, A, W, Hz, degree C), energies are in kWh.
    """

    def __init__(self, client, poll_interval=DEFAULT_POLL_INTERVAL,
                 error_cooldown=DEFAULT_ERROR_COOLDOWN,
                 on_packet=None, on_status=None, clock=time.time):
        self.client = client
        self.poll_interval = poll_interval
        self.error_cooldown = error_cooldown
        self.on_packet = on_packet
        self.on_status = on_status
        self.clock = clock

    def poll_once(self):
        """Read one packet of data from the inverter.

        Every read is issued in turn, a failed read aborts the poll and the
        exception is raised to our caller.

        Returns:
            A packet dict.
        """

        self.client.reopen()
        _packet = {'dateTime': int(self.clock())}
        _raw = {}
        for field, measure in POLL_MEASURES:
            _reply = self.client.read_measure(measure)
            _packet[field] = as_float(_reply)
            if self.client.diagnostics:
                _raw[field] = format_byte_to_hex(_reply)
        _packet['string1_power'] = _packet['string1_voltage'] * _packet['string1_current']
        _packet['string2_power'] = _packet['string2_voltage'] * _packet['string2_current']
        _energy = self.client.read_energy_counters()
        _packet['day_energy'] = _energy.today
        _packet['month_energy'] = _energy.month
        _packet['year_energy'] = _energy.year
        _packet['total_energy'] = _energy.total
        _packet['partial_energy'] = _energy.partial
        if _raw:
            _packet['raw'] = _raw
        if weewx.debug >= 2:
            log.debug("poll_once: %s", weeutil.weeutil.to_sorted_string(_packet))
        return _packet

    def run(self, shutdown, max_cycles=None):
        """Poll until shutdown is set.

        A failed poll is logged and reported and is followed by the error
        cooldown rather than the poll interval. A cancelled exchange ends the
        loop.

        Inputs:
            shutdown:   Object with is_set() and wait(timeout) methods,
                        normally a threading.Event.
            max_cycles: Stop after this many polls, successful or not.
                        Optional.

        Returns:
            The number of polls made.
        """

        cycles = 0
        while not shutdown.is_set():
            if max_cycles is not None and cycles >= max_cycles:
                break
            cycles += 1
            try:
                _packet = self.poll_once()
            except ExchangeCancelled:
                log.debug("run: poll cancelled")
                break
            except weewx.WeeWxIOError as e:
                log.error("Poll failed: %s", e)
                self._status("Poll error: %s" % e, logging.ERROR)
                _delay = self.error_cooldown
            else:
                if self.on_packet is not None:
                    self.on_packet(_packet)
                _delay = self.poll_interval
            if max_cycles is not None and cycles >= max_cycles:
                break
            if shutdown.wait(_delay):
                break
        log.debug("run: stopped after %d polls", cycles)
        return cycles

    def _status(self, message, level):
        if self.on_status is not None:
            self.on_status(message, level)
