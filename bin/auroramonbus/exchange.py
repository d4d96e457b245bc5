"""
exchange.py

Send a command to an Aurora inverter and obtain a validated reply.

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

An exchange is one complete command/validated reply cycle including any
retries. For each attempt the engine:

1.  discards any stale bytes in the input buffer
2.  sends the 10 byte command message
3.  waits a short settle delay to allow the inverter to turn around
4.  assembles the 8 byte reply one byte at a time under an overall deadline
5.  validates the reply CRC

A CRC error, a short reply or no reply at all is a failed attempt. Failed
attempts are followed by a backoff delay supplied by a retry policy. After the
final failed attempt the policy may ask for the port to be cycled (closed,
settle, reopened), we have seen inverters that wedge the UART after a burst of
malformed traffic and cycling the port clears this.

Every wait observes a cancellation event. Cancellation aborts the exchange
with ExchangeCancelled and never cycles the port.
"""

# Python imports
import enum
import logging
import threading
import time

# WeeWX imports
import weewx

# auroramonbus imports
from . import frame
from .constants import (DEFAULT_COMMAND_DELAY,
                        DEFAULT_MAX_COMMAND_TRIES,
                        DEFAULT_MAX_READ_ROUNDS,
                        DEFAULT_READ_RETRY_DELAY,
                        DEFAULT_REOPEN_DELAY,
                        DEFAULT_REPLY_TIMEOUT,
                        DEFAULT_WAIT_BEFORE_RETRY)
from .decoders import format_byte_to_hex
from .errors import (CommunicationTimeout,
                     CrcMismatch,
                     ExchangeCancelled,
                     PortNotOpen,
                     ReopenFailed,
                     ReplyTimeout)

# get a logger object
log = logging.getLogger(__name__)


class ExchangeState(enum.Enum):
    """States of the exchange engine."""

    IDLE = 'idle'
    SENDING = 'sending'
    AWAITING_REPLY = 'awaiting reply'
    VALID = 'valid'
    RETRY = 'retry'
    EXHAUSTED = 'exhausted'


# ============================================================================
#                             Retry policies
# ============================================================================

class RetryPolicy(object):
    """Decide how many attempts to make, how long to wait between them and
    when to cycle the port.

    Subclasses must implement backoff().
    """

    def __init__(self, max_tries=DEFAULT_MAX_COMMAND_TRIES, reopen_delay=DEFAULT_REOPEN_DELAY):
        if max_tries < 1:
            raise ValueError("max_tries must be at least 1, got %s" % (max_tries,))
        self.max_tries = max_tries
        self.reopen_delay = reopen_delay

    def backoff(self, attempt):
        """Seconds to wait after failed attempt number attempt (1 based)."""
        raise NotImplementedError("Method 'backoff' not implemented")

    def should_reopen(self, attempt):
        """Cycle the port after failed attempt number attempt."""

        return attempt == self.max_tries


class LinearRetryPolicy(RetryPolicy):
    """Wait attempt * step seconds after each failed attempt."""

    def __init__(self, max_tries=DEFAULT_MAX_COMMAND_TRIES, step=DEFAULT_WAIT_BEFORE_RETRY,
                 reopen_delay=DEFAULT_REOPEN_DELAY):
        super(LinearRetryPolicy, self).__init__(max_tries=max_tries, reopen_delay=reopen_delay)
        self.step = step

    def backoff(self, attempt):
        return attempt * self.step


class ExponentialRetryPolicy(RetryPolicy):
    """Double the wait after each failed attempt, up to a ceiling."""

    def __init__(self, max_tries=DEFAULT_MAX_COMMAND_TRIES, base=DEFAULT_WAIT_BEFORE_RETRY,
                 ceiling=5.0, reopen_delay=DEFAULT_REOPEN_DELAY):
        super(ExponentialRetryPolicy, self).__init__(max_tries=max_tries,
                                                     reopen_delay=reopen_delay)
        self.base = base
        self.ceiling = ceiling

    def backoff(self, attempt):
        return min(self.base * 2 ** (attempt - 1), self.ceiling)


# ============================================================================
#                           class ExchangeEngine
# ============================================================================

class ExchangeEngine(object):
    """Orchestrates command/reply exchanges over a transport.

    The engine is not reentrant, only one exchange may be in flight at a
    time. The inverter is a half-duplex single responder so replies are always
    consumed in the order the commands were sent.
    """

    def __init__(self, transport, address, policy=None,
                 command_delay=DEFAULT_COMMAND_DELAY,
                 reply_timeout=DEFAULT_REPLY_TIMEOUT,
                 max_read_rounds=DEFAULT_MAX_READ_ROUNDS,
                 read_retry_delay=DEFAULT_READ_RETRY_DELAY,
                 cancel_event=None, clock=time.monotonic,
                 on_status=None, on_data=None, diagnostics=False):
        """Initialise an ExchangeEngine object.

        Inputs:
            transport:       Transport object used to talk to the inverter.
            address:         Inverter bus address.
            policy:          RetryPolicy object, defaults to a
                             LinearRetryPolicy.
            command_delay:   Seconds to wait after sending before reading.
            reply_timeout:   Overall deadline in seconds for a reply.
            max_read_rounds: Maximum number of read rounds per reply.
            cancel_event:    Object with is_set(), clear() and wait(timeout)
                             methods, normally a threading.Event.
            clock:           Monotonic clock used for the reply deadline.
            on_status:       Callable accepting (message, level).
            on_data:         Callable accepting a validated reply.
            diagnostics:     Log every raw byte sequence at INFO level.
        """

        self.transport = transport
        self.address = address
        self.policy = policy if policy is not None else LinearRetryPolicy()
        self.command_delay = command_delay
        self.reply_timeout = reply_timeout
        self.max_read_rounds = max_read_rounds
        self.read_retry_delay = read_retry_delay
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.clock = clock
        self.on_status = on_status
        self.on_data = on_data
        self.diagnostics = diagnostics
        self.state = ExchangeState.IDLE
        self._busy = False

    def exchange(self, command, payload=None):
        """Send a command to the inverter and return the validated reply.

        Inputs:
            command: The command code. Integer.
            payload: Up to 6 bytes of command payload. Optional, bytes.

        Returns:
            The validated 8 byte reply as a bytes object.

        Raises:
            PortNotOpen if the transport is not open.
            CommunicationTimeout if every attempt failed.
            ExchangeCancelled if the cancellation event was set. The event
            is cleared before ExchangeCancelled is raised.
        """

        if self._busy:
            raise RuntimeError("An exchange is already in progress")
        if not self.transport.is_open:
            raise PortNotOpen("Serial port not open")
        _command_bytes = frame.encode(self.address, command, payload)
        self._busy = True
        try:
            return self._exchange(command, _command_bytes)
        except ExchangeCancelled:
            # leave the transport as it is, the outcome is unknown; the
            # cancellation is consumed so the next exchange can proceed
            self.cancel_event.clear()
            self.state = ExchangeState.IDLE
            log.debug("exchange: command 0x%02X cancelled", command)
            raise
        finally:
            self._busy = False

    def _exchange(self, command, command_bytes):
        """Attempt the exchange up to policy.max_tries times."""

        _max = self.policy.max_tries
        for attempt in range(1, _max + 1):
            self._check_cancelled()
            self.state = ExchangeState.SENDING
            self.transport.discard_input()
            self._trace('TX', command_bytes)
            self._status("[TX attempt %d/%d] sending 0x%02X" % (attempt, _max, command),
                         logging.DEBUG)
            try:
                self.transport.write(command_bytes)
                # wait before reading
                self._wait(self.command_delay)
                self.state = ExchangeState.AWAITING_REPLY
                _rx = self._read_reply()
                self._trace('RX', _rx)
                _reply = frame.decode_and_verify(_rx)
            except PortNotOpen:
                self.state = ExchangeState.IDLE
                raise
            except CrcMismatch:
                log.info("CRC error on try #%d.", attempt)
                self._status("CRC mismatch, retrying...", logging.WARNING)
            except ReplyTimeout:
                log.info("Timeout on try #%d.", attempt)
                self._status("Timeout (attempt %d/%d)" % (attempt, _max), logging.WARNING)
            except weewx.WeeWxIOError as e:
                # short reply or a serial fault
                log.info("Try #%d unsuccessful: %s", attempt, e)
                self._status("Comm error: %s" % e, logging.WARNING)
            else:
                self.state = ExchangeState.VALID
                if weewx.debug >= 2 or self.diagnostics:
                    log.debug("exchange: cmd=0x%02X (%d) -> %s",
                              command, command, format_byte_to_hex(_reply))
                if self.on_data is not None:
                    self.on_data(_reply)
                self._status("Reply received", logging.DEBUG)
                return _reply
            self.state = ExchangeState.RETRY
            self._wait(self.policy.backoff(attempt))
            if self.policy.should_reopen(attempt):
                self._recover()
        # if we made it here we have exhausted our attempts to obtain data from
        # the inverter
        self.state = ExchangeState.EXHAUSTED
        log.error("Unable to send or receive data to/from the inverter")
        raise CommunicationTimeout("Timeout waiting for inverter response")

    def _read_reply(self):
        """Assemble a reply one byte at a time.

        Reading stops once 8 bytes have been received, the reply deadline has
        passed or max_read_rounds rounds have been made. A read that times out
        ends the current round.

        Returns:
            The bytes received, possibly fewer than 8.

        Raises:
            ReplyTimeout if no bytes at all were received.
        """

        _buffer = bytearray()
        _start = self.clock()
        for _round in range(self.max_read_rounds):
            if not self.transport.is_open:
                break
            while len(_buffer) < frame.REPLY_LENGTH and not self._expired(_start):
                self._check_cancelled()
                _b = self.transport.read_byte()
                if _b is None:
                    break
                _buffer.append(_b)
            if len(_buffer) == frame.REPLY_LENGTH or self._expired(_start):
                break
            self._wait(self.read_retry_delay)
        if not _buffer:
            raise ReplyTimeout("No response from inverter")
        return bytes(_buffer)

    def _recover(self):
        """Cycle the port, a failure is logged but not raised."""

        try:
            self._cycle_port()
        except ReopenFailed as e:
            log.warning("%s", e)
            self._status(str(e), logging.WARNING)
        else:
            log.info("Port reopened after repeated timeout")
            self._status("Port reopened after repeated timeout", logging.WARNING)

    def _cycle_port(self):
        """Close the port, wait for it to settle, then open it again."""

        self.transport.close()
        self._wait(self.policy.reopen_delay)
        try:
            self.transport.open()
        except weewx.WeeWxIOError as e:
            raise ReopenFailed("Reopen failed: %s" % e) from e

    def _expired(self, start):
        return self.clock() - start >= self.reply_timeout

    def _wait(self, seconds):
        """Wait for seconds, raising ExchangeCancelled if cancelled."""

        if self.cancel_event.wait(seconds):
            raise ExchangeCancelled("Exchange cancelled")

    def _check_cancelled(self):
        if self.cancel_event.is_set():
            raise ExchangeCancelled("Exchange cancelled")

    def _trace(self, direction, data):
        if self.diagnostics:
            log.info("[%s] %s", direction, format_byte_to_hex(data))
        elif weewx.debug >= 2:
            log.debug("[%s] %s", direction, format_byte_to_hex(data))

    def _status(self, message, level=logging.INFO):
        if self.on_status is not None:
            self.on_status(message, level)
