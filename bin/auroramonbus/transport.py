"""
transport.py

Serial transport used to talk to an Aurora inverter over RS-485.

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
import serial

# WeeWX imports
import weewx

# auroramonbus imports
from .constants import (DEFAULT_BAUDRATE,
                        DEFAULT_READ_TIMEOUT,
                        DEFAULT_WRITE_TIMEOUT)
from .errors import PortNotOpen

# get a logger object
log = logging.getLogger(__name__)


class Transport(object):
    """Interface to an open byte channel to the inverter.

    The exchange engine only needs the operations below. Tests substitute any
    object providing the same methods.
    """

    @property
    def is_open(self):
        raise NotImplementedError("Property 'is_open' not implemented")

    def open(self):
        """Open the channel."""
        raise NotImplementedError("Method 'open' not implemented")

    def close(self):
        """Close the channel."""
        raise NotImplementedError("Method 'close' not implemented")

    def write(self, data):
        """Write all of data to the channel."""
        raise NotImplementedError("Method 'write' not implemented")

    def read_byte(self):
        """Read a single byte, returns None on timeout."""
        raise NotImplementedError("Method 'read_byte' not implemented")

    def discard_input(self):
        """Discard any bytes waiting in the input buffer."""
        raise NotImplementedError("Method 'discard_input' not implemented")


class SerialTransport(Transport):
    """Serial port transport using pyserial.

    The port is opened 8 data bits, no parity, 1 stop bit. Which physical port
    to use is decided by our caller, we only know how to open and close the
    port we were given.
    """

    def __init__(self, port, baudrate=DEFAULT_BAUDRATE,
                 read_timeout=DEFAULT_READ_TIMEOUT, write_timeout=DEFAULT_WRITE_TIMEOUT):
        """Initialise a SerialTransport object. The port is not opened."""

        self.port = port
        self.baudrate = baudrate
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.serial_port = None

    @property
    def is_open(self):
        return self.serial_port is not None and self.serial_port.is_open

    def open(self):
        """Open the serial port.

        Raises:
            weewx.WeeWxIOError if the port could not be opened.
        """

        try:
            self.serial_port = serial.Serial(port=self.port,
                                             baudrate=self.baudrate,
                                             bytesize=serial.EIGHTBITS,
                                             parity=serial.PARITY_NONE,
                                             stopbits=serial.STOPBITS_ONE,
                                             timeout=self.read_timeout,
                                             write_timeout=self.write_timeout,
                                             rtscts=False,
                                             dsrdtr=False)
        except serial.SerialException as e:
            # we encountered a serial exception, log it and re-raise as a
            # WeeWX IO error
            log.error("SerialException on open.")
            log.error("  ***** %s", e)
            raise weewx.WeeWxIOError(e) from e
        log.debug("Opened serial port '%s' baudrate: %d read_timeout: %.2f write_timeout: %.2f",
                  self.port,
                  self.baudrate,
                  self.read_timeout,
                  self.write_timeout)

    def close(self):
        """Close the serial port. Closing a closed port is a no-op."""

        if self.serial_port is not None:
            self.serial_port.close()
            log.debug("Closed serial port '%s'", self.port)

    def write(self, data):
        """Send data to the inverter.

        Input:
            data: A bytes object containing the bytes to be sent.

        Raises:
            PortNotOpen if the port is not open.
            weewx.WeeWxIOError if the data could not be written.
        """

        if not self.is_open:
            raise PortNotOpen("Serial port '%s' not open" % self.port)
        try:
            n = self.serial_port.write(data)
        except serial.SerialTimeoutException as e:
            # we encountered a write timeout, log it and re-raise as a WeeWX IO
            # error
            log.error("SerialTimeoutException on write.")
            log.error("  ***** %s", e)
            raise weewx.WeeWxIOError(e) from e
        except serial.SerialException as e:
            log.error("SerialException on write.")
            log.error("  ***** %s", e)
            raise weewx.WeeWxIOError(e) from e
        # We can only infer an error if we received a non-None value and it
        # does not match the number of bytes we intended to send.
        if n is not None and n != len(data):
            raise weewx.WeeWxIOError("Expected to write %d chars; sent %d instead" % (len(data),
                                                                                      n))

    def read_byte(self):
        """Read a single byte from the inverter.

        Returns:
            The byte as an integer or None if the read timed out.

        Raises:
            PortNotOpen if the port is not open.
            weewx.WeeWxIOError if the read failed.
        """

        if not self.is_open:
            raise PortNotOpen("Serial port '%s' not open" % self.port)
        try:
            _b = self.serial_port.read(1)
        except serial.SerialException as e:
            log.error("SerialException on read.")
            log.error("  ***** %s", e)
            log.error("  ***** Is there a competing process running??")
            raise weewx.WeeWxIOError(e) from e
        if len(_b) == 0:
            return None
        return _b[0]

    def discard_input(self):
        """Discard stale bytes in the input buffer.

        A failure to discard is not fatal, any stale bytes will cause the next
        reply to fail its CRC check.
        """

        if not self.is_open:
            return
        try:
            self.serial_port.reset_input_buffer()
        except serial.SerialException as e:
            log.debug("Could not discard input buffer: %s", e)
