"""
cli.py

Command line interface to an Aurora inverter.

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

Interact with an inverter without the WeeWX engine and service overhead:

$ auroramonbus --option

where option is one of the following:
  --help          - display command line help
  --version       - display version
  --live-data     - display current inverter readings
  --energy        - display the energy counters
  --status        - display inverter status
  --info          - display inverter system information
  --alarms        - display the last four inverter alarms
  --probe CMD     - send command CMD and display the raw reply
  --get-time      - display inverter time
  --set-time      - set inverter time to the current system time
  --monitor       - poll the inverter and display readings until Ctrl-C
  --gen-packets   - generate driver LOOP packets indefinitely
"""

# Python imports
import argparse
import logging
import sys
import threading
import time

# Python 3rd party imports
import configobj

# WeeWX imports
import weewx
import weeutil.logger
import weeutil.weeutil
from weeutil.weeutil import bcolors, timestamp_to_string

# auroramonbus imports
from . import __version__
from . import config
from . import states
from .client import AuroraClient
from .decoders import format_byte_to_hex
from .driver import AuroraMonbusDriver
from .errors import ExchangeCancelled
from .poller import Poller

# get a logger object
log = logging.getLogger(__name__)


class DirectAuroraMonbus(object):
    """Class to interact with an inverter when run from the command line.

    A DirectAuroraMonbus object is created with an argparse namespace and our
    config stanza. Once created the process_arguments() method is called to
    process the respective command line options.
    """

    def __init__(self, namespace, parser, stn_dict, client_factory=AuroraClient):
        """Initialise a DirectAuroraMonbus object."""

        # save the argparse arguments and parser
        self.namespace = namespace
        self.parser = parser
        self.stn_dict = stn_dict
        self.client_factory = client_factory
        # obtain the command line options that override our config dict options
        self.config_from_command_line()

    def config_from_command_line(self):
        """Override the config stanza with any command line options."""

        for option in ('port', 'address', 'baudrate', 'poll_interval'):
            _value = getattr(self.namespace, option, None)
            if _value is not None:
                self.stn_dict[option] = _value
        if getattr(self.namespace, 'diagnostics', False):
            self.stn_dict['diagnostics'] = True

    def process_arguments(self):
        """Call the appropriate method based on the argparse arguments.

        Returns:
            A process exit code.
        """

        _actions = (('gen', self.gen_packets),
                    ('live_data', self.live_data),
                    ('energy', self.energy),
                    ('status', self.status),
                    ('info', self.info),
                    ('alarms', self.alarms),
                    ('probe', self.probe),
                    ('get_time', self.get_inverter_time),
                    ('set_time', self.set_inverter_time),
                    ('monitor', self.monitor))
        for option, action in _actions:
            if getattr(self.namespace, option, None):
                break
        else:
            # no valid option selected, display the help text
            print()
            print("No option selected, nothing done")
            print()
            self.parser.print_help()
            return 1
        try:
            action()
        except weewx.WeeWxIOError as e:
            print()
            print(f"Unable to connect to device: {e}")
            return 1
        except ValueError as e:
            print()
            print(f"Invalid option: {e}")
            return 1
        except ExchangeCancelled:
            print()
            print("Cancelled")
            return 1
        return 0

    def connect(self, **kwargs):
        """Obtain a connected client."""

        _client = self.client_factory(**config.client_options(self.stn_dict), **kwargs)
        _client.connect()
        return _client

    def live_data(self):
        """Display the current inverter readings."""

        with self.connect() as client:
            _packet = Poller(client).poll_once()
        print()
        print(f"{self.stn_dict.get('model', 'Aurora')} Current Data:")
        print(f"Poll time: {timestamp_to_string(_packet['dateTime'])}")
        print("-----------------------------------------------")
        print("Grid:")
        print(f"{'Voltage':>29}: {_format(_packet, 'grid_voltage', '%.1f V')}")
        print(f"{'Current':>29}: {_format(_packet, 'grid_current', '%.2f A')}")
        print(f"{'Power':>29}: {_format(_packet, 'grid_power', '%.1f W')}")
        print(f"{'Frequency':>29}: {_format(_packet, 'frequency', '%.2f Hz')}")
        print("-----------------------------------------------")
        print("String 1:")
        print(f"{'Voltage':>29}: {_format(_packet, 'string1_voltage', '%.1f V')}")
        print(f"{'Current':>29}: {_format(_packet, 'string1_current', '%.2f A')}")
        print(f"{'Power':>29}: {_format(_packet, 'string1_power', '%.1f W')}")
        print("-----------------------------------------------")
        print("String 2:")
        print(f"{'Voltage':>29}: {_format(_packet, 'string2_voltage', '%.1f V')}")
        print(f"{'Current':>29}: {_format(_packet, 'string2_current', '%.2f A')}")
        print(f"{'Power':>29}: {_format(_packet, 'string2_power', '%.1f W')}")
        print("-----------------------------------------------")
        print("Inverter:")
        print(f"{'Inverter Temp':>29}: {_format(_packet, 'inverter_temp', '%.1f °C')}")
        print(f"{'Booster Temp':>29}: {_format(_packet, 'booster_temp', '%.1f °C')}")
        print(f"{'Bulk Voltage':>29}: {_format(_packet, 'bulk_voltage', '%.1f V')}")
        print(f"""{"Today's Peak Power":>29}: {_format(_packet, 'day_peak_power', '%.1f W')}""")
        print(f"{'Lifetime Peak Power':>29}: {_format(_packet, 'peak_power', '%.1f W')}")
        print(f"""{"Today's Energy":>29}: {_format(_packet, 'day_energy', '%.3f kWh')}""")
        print(f"""{"This Month's Energy":>29}: {_format(_packet, 'month_energy', '%.3f kWh')}""")
        print(f"""{"This Year's Energy":>29}: {_format(_packet, 'year_energy', '%.3f kWh')}""")
        print(f"{'Partial Energy':>29}: {_format(_packet, 'partial_energy', '%.3f kWh')}")
        print(f"{'Lifetime Energy':>29}: {_format(_packet, 'total_energy', '%.3f kWh')}")
        if 'raw' in _packet:
            print("-----------------------------------------------")
            print("Raw replies:")
            for field, raw in _packet['raw'].items():
                print(f"{field:>29}: {raw}")

    def energy(self):
        """Display the energy counters."""

        with self.connect() as client:
            _counters = client.read_energy_counters()
        print()
        print("Energy counters:")
        print(f"{'Today':>12}: {_counters.today:.3f} kWh")
        print(f"{'Month':>12}: {_counters.month:.3f} kWh")
        print(f"{'Year':>12}: {_counters.year:.3f} kWh")
        print(f"{'Total':>12}: {_counters.total:.3f} kWh")
        print(f"{'Partial':>12}: {_counters.partial:.3f} kWh")

    def status(self):
        """Display the inverter status."""

        with self.connect() as client:
            _state = client.read_state()
        print()
        print(f"{self.stn_dict.get('model', 'Aurora')} Status:")
        print(f'{"Transmission state":>22}: {_state.transmission_state} '
              f'({states.describe(states.TRANSMISSION, _state.transmission_state)})')
        print(f'{"Global state":>22}: {_state.global_state} '
              f'({states.describe(states.GLOBAL, _state.global_state)})')
        print(f'{"Inverter state":>22}: {_state.inverter_state} '
              f'({states.describe(states.INVERTER, _state.inverter_state)})')
        print(f'{"DcDc1 state":>22}: {_state.dcdc1_state} '
              f'({states.describe(states.DCDC, _state.dcdc1_state)})')
        print(f'{"DcDc2 state":>22}: {_state.dcdc2_state} '
              f'({states.describe(states.DCDC, _state.dcdc2_state)})')
        print(f'{"Alarm state":>22}: {_state.alarm_state} '
              f'({states.describe_alarm(_state.alarm_state)})')

    def info(self):
        """Display the inverter system information."""

        with self.connect() as client:
            _report = client.read_extended_system_info()
        print()
        print(f"{self.stn_dict.get('model', 'Aurora')} Information:")
        print(_report, end='')

    def alarms(self):
        """Display the last four alarms, oldest first."""

        with self.connect() as client:
            _alarms = client.read_last_alarms()
        print()
        print("Last alarms:")
        for i, code in enumerate(_alarms, start=1):
            print(f"{i:>4}: {code:>3} {states.describe_alarm(code)}")

    def probe(self):
        """Send an arbitrary command and display the raw reply."""

        _command = int(self.namespace.probe, 0)
        with self.connect() as client:
            _reply = client.debug_probe(_command)
        print()
        print(f"cmd=0x{_command:02X} RX -> {format_byte_to_hex(_reply)}")

    def get_inverter_time(self):
        """Obtain and display the inverter date-time."""

        with self.connect() as client:
            inverter_ts = client.read_time()
        # calculate the difference to system time
        _error = inverter_ts - time.time()
        print()
        print(f"Inverter date-time is {timestamp_to_string(inverter_ts)}")
        print(f"    Clock error is {_error:.3f} seconds (positive is fast)")

    def set_inverter_time(self):
        """Set the inverter date-time."""

        with self.connect() as client:
            inverter_ts = client.read_time()
            _error = inverter_ts - time.time()
            print()
            print(f"Current inverter date-time is {timestamp_to_string(inverter_ts)}")
            print(f"    Clock error is {_error:.3f} seconds (positive is fast)")
            print()
            print("Setting inverter date-time...")
            if client.set_time(int(time.time() + 2)):
                print("Successfully set inverter date-time")
            else:
                print("Inverter date-time was not set")
            inverter_ts = client.read_time()
        _error = inverter_ts - time.time()
        print()
        print(f"Current inverter date-time is {timestamp_to_string(inverter_ts)}")
        print(f"    Clock error is {_error:.3f} seconds (positive is fast)")

    def monitor(self):
        """Poll the inverter and display each packet until Ctrl-C."""

        shutdown = threading.Event()
        client = self.connect(on_status=_print_status)
        poller = Poller(client,
                        poll_interval=config.poll_interval(self.stn_dict),
                        on_packet=_print_packet,
                        on_status=_print_status)
        print(f"Monitoring {self.stn_dict.get('model', 'Aurora')} at {client.port}, "
              f"press Ctrl-C to stop")
        try:
            poller.run(shutdown)
        except KeyboardInterrupt:
            pass
        finally:
            client.disconnect()

    def gen_packets(self):
        """Continuously generate and print driver loop packets."""

        log.info("Testing AuroraMonbus driver...")
        driver = AuroraMonbusDriver(**self.stn_dict)
        print()
        print(f"Interrogating {driver.model} at {driver.client.port}")
        print()
        try:
            for pkt in driver.genLoopPackets():
                print(f"{timestamp_to_string(pkt['dateTime'])}: "
                      f"{weeutil.weeutil.to_sorted_string(pkt)}")
        except KeyboardInterrupt:
            pass
        finally:
            driver.closePort()
        log.info("AuroraMonbus driver testing complete")


def _format(packet, field, fmt):
    _value = packet.get(field)
    if _value is None:
        return 'no data'
    return fmt % _value


def _print_packet(packet):
    print(f"{timestamp_to_string(packet['dateTime'])}: "
          f"{weeutil.weeutil.to_sorted_string(packet)}")


def _print_status(message, level):
    if level >= logging.WARNING:
        print(message)


def build_parser():
    """Construct the command line parser."""

    usage = f"""{bcolors.BOLD}%(prog)s --help
                    --version
                    --live-data [--config=FILENAME] [--port=PORT]
                    --energy [--config=FILENAME] [--port=PORT]
                    --status [--config=FILENAME] [--port=PORT]
                    --info [--config=FILENAME] [--port=PORT]
                    --alarms [--config=FILENAME] [--port=PORT]
                    --probe CMD [--config=FILENAME] [--port=PORT]
                    --get-time [--config=FILENAME] [--port=PORT]
                    --set-time [--config=FILENAME] [--port=PORT]
                    --monitor [--config=FILENAME] [--port=PORT]
                        [--poll-interval=POLL_INTERVAL]
                    --gen-packets [--config=FILENAME] [--port=PORT]
                        [--poll-interval=POLL_INTERVAL]{bcolors.ENDC}
    """
    description = """Interact with a Power-One/ABB/FIMER Aurora inverter."""

    parser = argparse.ArgumentParser(usage=usage,
                                     description=description,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('--config',
                        type=str,
                        metavar="CONFIG_FILE",
                        help="Use configuration file CONFIG_FILE.")
    parser.add_argument('--version',
                        action='store_true',
                        help='Display version.')
    parser.add_argument('--live-data',
                        dest='live_data',
                        action='store_true',
                        help='Display current inverter data.')
    parser.add_argument('--energy',
                        dest='energy',
                        action='store_true',
                        help='Display inverter energy counters.')
    parser.add_argument('--status',
                        dest='status',
                        action='store_true',
                        help='Display inverter status.')
    parser.add_argument('--info',
                        dest='info',
                        action='store_true',
                        help='Display inverter system information.')
    parser.add_argument('--alarms',
                        dest='alarms',
                        action='store_true',
                        help='Display the last four inverter alarms.')
    parser.add_argument('--probe',
                        dest='probe',
                        metavar='CMD',
                        help='Send command CMD (eg, 0x3A) and display the raw reply.')
    parser.add_argument('--get-time',
                        dest='get_time',
                        action='store_true',
                        help='Display current inverter date-time.')
    parser.add_argument('--set-time',
                        dest='set_time',
                        action='store_true',
                        help='Set inverter date-time to the current system date-time.')
    parser.add_argument('--monitor',
                        dest='monitor',
                        action='store_true',
                        help='Poll the inverter and display readings until Ctrl-C.')
    parser.add_argument('--gen-packets',
                        dest='gen',
                        action='store_true',
                        help='Output LOOP packets indefinitely.')
    parser.add_argument('--port',
                        type=str,
                        metavar="PORT",
                        help='Use port PORT.')
    parser.add_argument('--address',
                        type=int,
                        metavar="ADDRESS",
                        help='Use inverter address ADDRESS.')
    parser.add_argument('--baudrate',
                        type=int,
                        metavar="BAUDRATE",
                        help='Use baud rate BAUDRATE.')
    parser.add_argument('--poll-interval',
                        dest='poll_interval',
                        type=float,
                        metavar="POLL_INTERVAL",
                        help='Poll the inverter every POLL_INTERVAL seconds.')
    parser.add_argument('--diagnostics',
                        action='store_true',
                        help='Log every raw byte sequence sent and received.')
    parser.add_argument('--debug',
                        type=int,
                        metavar="LEVEL",
                        help='Set the WeeWX debug level.')
    return parser


def main(args=None):
    """Command line entry point."""

    parser = build_parser()
    namespace = parser.parse_args(args)

    if args is None and len(sys.argv) == 1:
        # we have no arguments, display the help text and exit
        parser.print_help()
        return 0

    # if we have been asked for the version number we can display that now
    if namespace.version:
        print(f"AuroraMonbus version {__version__}")
        return 0

    # first get the config_dict to use
    try:
        config_path, config_dict = config.load_config(namespace.config)
    except OSError as e:
        if namespace.config:
            print(f"Unable to read configuration file: {e}")
            return 1
        # no config file, use the defaults and the command line
        config_dict = configobj.ConfigObj()
    else:
        print(f"Using configuration file '{config_path}'")

    # set weewx.debug as necessary
    if namespace.debug is not None:
        _debug = weeutil.weeutil.to_int(namespace.debug)
    else:
        _debug = weeutil.weeutil.to_int(config_dict.get('debug', 0))
    weewx.debug = _debug

    # now we can set up the user customized logging
    weeutil.logger.setup('weewx', config_dict)

    direct = DirectAuroraMonbus(namespace, parser, config.station_dict(config_dict))
    return direct.process_arguments()


if __name__ == "__main__":
    sys.exit(main())
