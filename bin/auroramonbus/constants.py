"""
constants.py

Aurora inverter command codes, measure and energy counter selectors and
communication defaults.

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
import enum
import time

# serial comms defaults, times are in seconds
DEFAULT_PORT = '/dev/ttyUSB0'
DEFAULT_BAUDRATE = 19200
DEFAULT_ADDRESS = 2
DEFAULT_READ_TIMEOUT = 3.0
DEFAULT_WRITE_TIMEOUT = 2.0

# exchange defaults, times are in seconds
DEFAULT_MAX_COMMAND_TRIES = 3
DEFAULT_COMMAND_DELAY = 0.08
DEFAULT_REPLY_TIMEOUT = 3.0
DEFAULT_MAX_READ_ROUNDS = 10
DEFAULT_READ_RETRY_DELAY = 0.1
DEFAULT_WAIT_BEFORE_RETRY = 0.1
DEFAULT_REOPEN_DELAY = 0.5

# poll loop defaults, times are in seconds
DEFAULT_POLL_INTERVAL = 10.0
MIN_POLL_INTERVAL = 5.0
DEFAULT_ERROR_COOLDOWN = 5.0

# the inverter clock runs on local time, its epoch is local midnight
# 1 January 2000
INVERTER_EPOCH_OFFSET = int(time.mktime((2000, 1, 1, 0, 0, 0, 0, 0, -1)))

# global state code reported while the inverter is running
GLOBAL_STATE_RUN = 6


class Command(enum.IntEnum):
    """Aurora command codes."""

    STATE_REQUEST = 0x32
    SYSTEM_INFO = 0x33
    PART_NUMBER = 0x34
    VERSION = 0x3A
    MEASURE = 0x3B
    SERIAL_NUMBER = 0x3F
    MANUFACTURE_DATE = 0x41
    READ_TIME_DATE = 0x46
    SET_TIME_DATE = 0x47
    FIRMWARE_RELEASE = 0x48
    CUMULATED_ENERGY = 0x4E
    LAST_ALARMS = 0x56


class MeasureType(enum.IntEnum):
    """DSP variable selectors used as the first payload byte of a measure
    command.

    Refer to the Aurora PV Inverter Series Communication Protocol rel 4.7
    command 59.
    """

    # AC/grid output
    GRID_VOLTAGE = 1
    GRID_CURRENT = 2
    GRID_POWER = 3
    FREQUENCY = 4
    BULK_VOLTAGE = 5
    LEAK_DC_CURRENT = 6
    LEAK_CURRENT = 7
    INPUT1_POWER = 8
    INPUT2_POWER = 9

    # temperatures and PV inputs
    INVERTER_TEMP = 21
    BOOSTER_TEMP = 22
    INPUT1_VOLTAGE = 23
    INPUT1_CURRENT = 25
    INPUT2_VOLTAGE = 26
    INPUT2_CURRENT = 27
    GRID_DC_VOLTAGE = 28
    GRID_DC_FREQUENCY = 29
    ISOLATION_RESISTANCE = 30
    BULK_DC_VOLTAGE = 31
    GRID_AVERAGE_VOLTAGE = 32
    BULK_MID_VOLTAGE = 33

    # peaks
    PEAK_POWER = 34
    DAY_PEAK_POWER = 35

    GRID_VOLTAGE_NEUTRAL = 36
    GRID_VOLTAGE_NEUTRAL_PHASE = 38


class EnergySelector(enum.IntEnum):
    """Cumulated energy counter selectors (command 78)."""

    TODAY = 0
    WEEK = 1
    MONTH = 3
    YEAR = 4
    TOTAL = 5
    PARTIAL = 6
