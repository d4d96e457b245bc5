"""
errors.py

Aurora protocol error classes.

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

The I/O related errors are derived from the WeeWX I/O error hierarchy so that
a WeeWX service or driver can treat any of them as a weewx.WeeWxIOError.
"""

# WeeWX imports
import weewx


class PortNotOpen(weewx.WeeWxIOError):
    """Exception raised when an operation is attempted on a closed or absent
       serial port."""


class FrameLengthError(weewx.WeeWxIOError):
    """Exception raised when an inverter reply is not exactly 8 bytes."""


class CrcMismatch(weewx.CRCError):
    """Exception raised when an inverter reply fails the CRC check."""


class ReplyTimeout(weewx.WeeWxIOError):
    """Exception raised when no reply was received before the deadline."""


class CommunicationTimeout(weewx.RetriesExceeded):
    """Exception raised when all attempts to complete an exchange failed."""


class ReopenFailed(weewx.WeeWxIOError):
    """Exception raised when the serial port could not be reopened."""


class ExchangeCancelled(Exception):
    """Exception raised when an exchange was aborted by a cancellation
       request. The outcome of the exchange is unknown."""
