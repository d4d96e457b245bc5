"""
config.py

Configuration handling for the Aurora inverter client.

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

Configuration is held in an [AuroraMonbus] stanza, normally in weewx.conf. Any
option omitted from the stanza takes its value from DEFAULT_STANZA.
"""

# Python imports
import io
import logging

# Python 3rd party imports
import configobj

# WeeWX imports
import weecfg
from weeutil.weeutil import to_bool, to_float, to_int

# auroramonbus imports
from .constants import (DEFAULT_ADDRESS,
                        DEFAULT_BAUDRATE,
                        DEFAULT_COMMAND_DELAY,
                        DEFAULT_MAX_COMMAND_TRIES,
                        DEFAULT_POLL_INTERVAL,
                        DEFAULT_PORT,
                        DEFAULT_READ_TIMEOUT,
                        DEFAULT_REOPEN_DELAY,
                        DEFAULT_WAIT_BEFORE_RETRY,
                        DEFAULT_WRITE_TIMEOUT,
                        MIN_POLL_INTERVAL)
from .exchange import LinearRetryPolicy

# get a logger object
log = logging.getLogger(__name__)

# name of our config stanza
DRIVER_NAME = 'AuroraMonbus'

DEFAULT_STANZA = f"""
[{DRIVER_NAME}]
    # This section is for the Power-One/ABB/FIMER Aurora series of inverters.

    # The inverter model, e.g., Aurora PVI-6000, Aurora PVI-5000
    model = Aurora

    # Serial port such as /dev/ttyS0, /dev/ttyUSB0, or /dev/cua0
    port = {DEFAULT_PORT}

    # Serial port baud rate
    baudrate = {DEFAULT_BAUDRATE}

    # inverter address, usually 2
    address = {DEFAULT_ADDRESS}

    # Serial port read and write timeouts in seconds
    read_timeout = {DEFAULT_READ_TIMEOUT}
    write_timeout = {DEFAULT_WRITE_TIMEOUT}

    # Seconds to wait after sending a command before reading the reply
    command_delay = {DEFAULT_COMMAND_DELAY}

    # How many times to try a command before giving up
    max_command_tries = {DEFAULT_MAX_COMMAND_TRIES}

    # Backoff step in seconds, the wait after failed attempt n is n * step
    wait_before_retry = {DEFAULT_WAIT_BEFORE_RETRY}

    # Seconds to wait between closing and reopening the port after the final
    # failed attempt
    reopen_delay = {DEFAULT_REOPEN_DELAY}

    # How often to poll the inverter in seconds
    poll_interval = {DEFAULT_POLL_INTERVAL}

    # Log every raw byte sequence sent to or received from the inverter
    diagnostics = False

    # The driver to use:
    driver = auroramonbus.driver
"""


def default_config():
    """Return the default stanza as a ConfigObj."""

    return configobj.ConfigObj(io.StringIO(DEFAULT_STANZA), encoding='utf-8', interpolation=False)


def load_config(path=None):
    """Read a WeeWX style config file.

    If path is None the standard WeeWX locations are searched for weewx.conf.

    Returns:
        A 2-way tuple of (config path, ConfigObj).

    Raises:
        OSError if the file could not be found.
    """

    return weecfg.read_config(path)


def station_dict(config_dict=None):
    """Obtain our stanza from a config dict with defaults merged in.

    Options in config_dict take precedence over the defaults.
    """

    _config = default_config()
    if config_dict is not None and DRIVER_NAME in config_dict:
        _config.merge({DRIVER_NAME: config_dict[DRIVER_NAME]})
    return _config[DRIVER_NAME]


def client_options(stn_dict):
    """Convert a stanza to AuroraClient keyword arguments.

    Raises:
        ValueError if an option is out of range.
    """

    address = to_int(stn_dict.get('address', DEFAULT_ADDRESS))
    if not 1 <= address <= 255:
        raise ValueError("address must be in range 1-255, got %s" % (address,))
    baudrate = to_int(stn_dict.get('baudrate', DEFAULT_BAUDRATE))
    if baudrate <= 0:
        raise ValueError("baudrate must be positive, got %s" % (baudrate,))
    read_timeout = to_float(stn_dict.get('read_timeout', DEFAULT_READ_TIMEOUT))
    write_timeout = to_float(stn_dict.get('write_timeout', DEFAULT_WRITE_TIMEOUT))
    for name, value in (('read_timeout', read_timeout), ('write_timeout', write_timeout)):
        if value <= 0:
            raise ValueError("%s must be positive, got %s" % (name, value))
    policy = LinearRetryPolicy(max_tries=to_int(stn_dict.get('max_command_tries',
                                                             DEFAULT_MAX_COMMAND_TRIES)),
                               step=to_float(stn_dict.get('wait_before_retry',
                                                          DEFAULT_WAIT_BEFORE_RETRY)),
                               reopen_delay=to_float(stn_dict.get('reopen_delay',
                                                                  DEFAULT_REOPEN_DELAY)))
    return {'port': stn_dict.get('port', DEFAULT_PORT),
            'baudrate': baudrate,
            'address': address,
            'read_timeout': read_timeout,
            'write_timeout': write_timeout,
            'command_delay': to_float(stn_dict.get('command_delay', DEFAULT_COMMAND_DELAY)),
            'policy': policy,
            'diagnostics': to_bool(stn_dict.get('diagnostics', False))}


def poll_interval(stn_dict):
    """Obtain the poll interval in seconds.

    Intervals below MIN_POLL_INTERVAL are accepted, but they leave little
    time to complete a full set of reads so we log a warning.
    """

    _interval = to_float(stn_dict.get('poll_interval', DEFAULT_POLL_INTERVAL))
    if _interval <= 0:
        raise ValueError("poll_interval must be positive, got %s" % (_interval,))
    if _interval < MIN_POLL_INTERVAL:
        log.warning("poll_interval of %.1f seconds is less than %.1f seconds",
                    _interval, MIN_POLL_INTERVAL)
    return _interval
