"""
driver.py

A WeeWX driver for Power-One/ABB/FIMER Aurora inverters.

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

To use the driver add an [AuroraMonbus] stanza to weewx.conf, see
config.DEFAULT_STANZA, and set station_type = AuroraMonbus in [Station].

The driver emits a loop packet every poll_interval seconds. When the inverter
is not running (eg, overnight) the packet fields are None.
"""

# Python imports
import logging
import time

# WeeWX imports
import weeutil.weeutil
import weewx.drivers
import weewx.units

# auroramonbus imports
from . import __version__
from . import config
from .client import AuroraClient
from .constants import DEFAULT_ADDRESS, DEFAULT_PORT
from .poller import Poller

# get a logger object
log = logging.getLogger(__name__)

DRIVER_NAME = config.DRIVER_NAME
DRIVER_VERSION = __version__

# poller packet fields reported in kWh that WeeWX expects in Wh
ENERGY_FIELDS = ('day_energy', 'month_energy', 'year_energy', 'total_energy', 'partial_energy')


def define_units():
    """Define unit conversions and groups used by the driver.

    Inclusion in the driver removes the need for the user to edit
    extensions.py, but means the conversions and groups are only defined when
    the driver is being used.
    """

    # set default formats and labels for megawatt hours
    weewx.units.default_unit_format_dict['megawatt_hour'] = '%.1f'
    weewx.units.default_unit_label_dict['megawatt_hour'] = ' MWh'

    # define conversion functions for energy
    weewx.units.conversionDict['watt_hour'] = {'kilowatt_hour': lambda x: x / 1000.0,
                                               'megawatt_hour': lambda x: x / 1000000.0}
    weewx.units.conversionDict['kilowatt_hour'] = {'watt_hour': lambda x: x * 1000.0,
                                                   'megawatt_hour': lambda x: x / 1000.0}
    weewx.units.conversionDict['megawatt_hour'] = {'watt_hour': lambda x: x * 1000000.0,
                                                   'kilowatt_hour': lambda x: x * 1000.0}

    # assign loop packet fields to groups
    weewx.units.obs_group_dict['string1Voltage'] = 'group_volt'
    weewx.units.obs_group_dict['string1Current'] = 'group_amp'
    weewx.units.obs_group_dict['string1Power'] = 'group_power'
    weewx.units.obs_group_dict['string2Voltage'] = 'group_volt'
    weewx.units.obs_group_dict['string2Current'] = 'group_amp'
    weewx.units.obs_group_dict['string2Power'] = 'group_power'
    weewx.units.obs_group_dict['gridVoltage'] = 'group_volt'
    weewx.units.obs_group_dict['gridCurrent'] = 'group_amp'
    weewx.units.obs_group_dict['gridPower'] = 'group_power'
    weewx.units.obs_group_dict['gridFrequency'] = 'group_frequency'
    weewx.units.obs_group_dict['inverterTemp'] = 'group_temperature'
    weewx.units.obs_group_dict['boosterTemp'] = 'group_temperature'
    weewx.units.obs_group_dict['bulkVoltage'] = 'group_volt'
    weewx.units.obs_group_dict['dayPeakPower'] = 'group_power'
    weewx.units.obs_group_dict['peakPower'] = 'group_power'
    weewx.units.obs_group_dict['dayEnergy'] = 'group_energy'
    weewx.units.obs_group_dict['monthEnergy'] = 'group_energy'
    weewx.units.obs_group_dict['yearEnergy'] = 'group_energy'
    weewx.units.obs_group_dict['totalEnergy'] = 'group_energy'
    weewx.units.obs_group_dict['partialEnergy'] = 'group_energy'
    weewx.units.obs_group_dict['energy'] = 'group_energy'


# ============================================================================
#                       Loader/Editor methods
# ============================================================================

def loader(config_dict, engine):
    """Loader used to load the driver."""

    # first define unit groups and conversions used by the driver
    define_units()
    return AuroraMonbusDriver(**config_dict[DRIVER_NAME])


def confeditor_loader():
    return AuroraMonbusConfEditor()


# ============================================================================
#                          class AuroraMonbusDriver
# ============================================================================

class AuroraMonbusDriver(weewx.drivers.AbstractDevice):
    """Class representing connection to an Aurora inverter."""

    # default sensor map, format:
    #   loop packet field: poller packet field
    DEFAULT_SENSOR_MAP = {'string1Voltage': 'string1_voltage',
                          'string1Current': 'string1_current',
                          'string1Power': 'string1_power',
                          'string2Voltage': 'string2_voltage',
                          'string2Current': 'string2_current',
                          'string2Power': 'string2_power',
                          'gridVoltage': 'grid_voltage',
                          'gridCurrent': 'grid_current',
                          'gridPower': 'grid_power',
                          'gridFrequency': 'frequency',
                          'inverterTemp': 'inverter_temp',
                          'boosterTemp': 'booster_temp',
                          'bulkVoltage': 'bulk_voltage',
                          'dayPeakPower': 'day_peak_power',
                          'peakPower': 'peak_power',
                          'dayEnergy': 'day_energy',
                          'monthEnergy': 'month_energy',
                          'yearEnergy': 'year_energy',
                          'totalEnergy': 'total_energy',
                          'partialEnergy': 'partial_energy'
                          }

    def __init__(self, client=None, **inverter_dict):
        """Initialise an object of type AuroraMonbusDriver.

        The port is opened immediately. A pre-constructed (unconnected)
        AuroraClient may be supplied, otherwise one is created from
        inverter_dict.
        """

        _stn_dict = config.station_dict({DRIVER_NAME: inverter_dict})
        # model
        self.model = _stn_dict.get('model', 'Aurora')
        log.info('%s driver version is %s', self.model, DRIVER_VERSION)
        _options = config.client_options(_stn_dict)
        self.poll_interval = config.poll_interval(_stn_dict)
        log.info("   port: '%s' baudrate: %d read_timeout: %.1f write_timeout: %.1f",
                 _options['port'],
                 _options['baudrate'],
                 _options['read_timeout'],
                 _options['write_timeout'])
        log.info("   inverter address: %d poll_interval: %.1f seconds",
                 _options['address'],
                 self.poll_interval)
        log.info('   max_command_tries: %d command_delay: %.2f',
                 _options['policy'].max_tries,
                 _options['command_delay'])
        # get the sensor map
        self.sensor_map = inverter_dict.get('sensor_map',
                                            AuroraMonbusDriver.DEFAULT_SENSOR_MAP)
        log.info('   sensor_map: %s', self.sensor_map)
        self.client = client if client is not None else AuroraClient(**_options)
        self.poller = Poller(self.client, poll_interval=self.poll_interval)
        # initialise last energy value
        self.last_energy = None
        # build a 'none' packet to use when the inverter is offline
        self.none_packet = {}
        for field in self.sensor_map.values():
            self.none_packet[field] = None
        self.openPort()

    def openPort(self):
        """Open the connection to the inverter."""

        self.client.connect()

    def closePort(self):
        """Close the connection to the inverter."""

        self.client.disconnect()

    def genLoopPackets(self):
        """Generator function that returns 'loop' packets.

        Poll the inverter every self.poll_interval seconds and generate a
        loop packet. Sleep between loop packets.
        """

        while time.time() % self.poll_interval > 0.2:
            time.sleep(0.2)
        while True:
            _ts = time.time()
            packet = self.get_loop_packet()
            if packet:
                yield packet
            # wait until it's time to poll again
            if weewx.debug >= 2:
                log.debug("genLoopPackets: sleeping")
            while time.time() < _ts + self.poll_interval:
                time.sleep(0.2)

    def get_loop_packet(self):
        """Poll the inverter and construct a loop packet."""

        # get the current time as timestamp
        _ts = int(time.time())
        # a failed port cycle may have left the port closed
        try:
            self.client.reopen()
        except weewx.WeeWxIOError as e:
            log.error("get_loop_packet: could not reopen port: %s", e)
        # if the inverter is not known to be running get the inverter state,
        # it may have started running since we last looked
        if not self.client.is_running:
            try:
                self.client.read_state()
            except weewx.WeeWxIOError as e:
                log.debug("get_loop_packet: could not obtain inverter state: %s", e)
        _inverter_packet = self.none_packet
        if self.client.is_running:
            try:
                _inverter_packet = self.poller.poll_once()
            except weewx.WeeWxIOError as e:
                # most likely the inverter has gone to sleep
                log.error("get_loop_packet: could not poll inverter: %s", e)
            else:
                self.process_inverter_packet(_inverter_packet)
        if weewx.debug >= 2:
            log.debug("get_loop_packet: received inverter data packet: %s",
                      weeutil.weeutil.to_sorted_string(_inverter_packet))
        # create a limited loop packet by mapping the inverter data as per the
        # sensor map
        packet = self.map_inverter_packet(_inverter_packet)
        if packet:
            packet['dateTime'] = _ts
            packet['usUnits'] = weewx.METRIC
            # energy - the per-period energy value. The inverter reports
            # dayEnergy which is cumulative by day, so calculate the
            # per-period value as the difference between the current and
            # previous dayEnergy values.
            if 'dayEnergy' in packet:
                packet['energy'] = self.calculate_energy(packet['dayEnergy'],
                                                         self.last_energy)
                self.last_energy = packet['dayEnergy']
            else:
                self.last_energy = None
            if weewx.debug >= 2:
                log.debug("get_loop_packet: generated loop packet: %s",
                          weeutil.weeutil.to_sorted_string(packet))
        return packet

    @staticmethod
    def process_inverter_packet(inverter_packet):
        """Convert poller energy fields from kWh to Wh in place."""

        for field in ENERGY_FIELDS:
            if inverter_packet.get(field) is not None:
                inverter_packet[field] = inverter_packet[field] * 1000.0

    def map_inverter_packet(self, inverter_packet):
        """Map inverter data packet fields to WeeWX fields."""

        _packet = {}
        for weewx_field, inverter_field in self.sensor_map.items():
            if inverter_field in inverter_packet:
                _packet[weewx_field] = inverter_packet[inverter_field]
        return _packet

    def getTime(self):
        """Get inverter system time.

        The inverter cannot be contacted when it is asleep, in that case
        raise a NotImplementedError so WeeWX treats the 'console' time as not
        available.

        Returns:
            An epoch timestamp representing the inverter date-time.
        """

        try:
            return self.client.read_time()
        except weewx.WeeWxIOError as e:
            log.error("getTime: Could not contact inverter, it may be asleep")
            raise NotImplementedError("Could not contact inverter, it may be asleep") from e

    def setTime(self):
        """Set inverter system time.

        If the inverter is asleep a NotImplementedError is raised, this will
        cause WeeWX to continue normal operation.
        """

        # offset by 2 seconds to allow for rounding (0.5) and the delay in the
        # command being issued and acted on by the inverter (1.5)
        _ts = int(time.time() + 2)
        try:
            _response = self.client.set_time(_ts)
        except weewx.WeeWxIOError as e:
            raise NotImplementedError(e) from e
        if _response:
            log.info("Inverter time set")
        else:
            log.error("Inverter time was not set")

    @property
    def hardware_name(self):
        """The name by which this hardware is known."""

        return self.model

    @staticmethod
    def calculate_energy(newtotal, oldtotal):
        """Calculate energy differential given two cumulative measurements."""

        delta = None
        if newtotal is not None and oldtotal is not None and newtotal >= oldtotal:
            delta = newtotal - oldtotal
        return delta


# ============================================================================
#                       class AuroraMonbusConfEditor
# ============================================================================

class AuroraMonbusConfEditor(weewx.drivers.AbstractConfEditor):
    """Config editor for the driver."""

    @property
    def default_stanza(self):
        return config.DEFAULT_STANZA

    def prompt_for_settings(self):

        print("Specify the inverter model, for example: Aurora PVI-6000 or Aurora PVI-5000")
        model = self._prompt('model', 'Aurora PVI-6000')
        print("Specify the serial port on which the inverter is connected, for")
        print("example: /dev/ttyUSB0 or /dev/ttyS0 or /dev/cua0.")
        port = self._prompt('port', DEFAULT_PORT)
        print("Specify the inverter address, normally 2")
        address = self._prompt('address', DEFAULT_ADDRESS)
        return {'model': model,
                'port': port,
                'address': address
                }

    @staticmethod
    def modify_config(config_dict):

        print("""Setting record_generation to software.""")
        config_dict.setdefault('StdArchive', {})['record_generation'] = 'software'
        print("""Setting energy extractor to sum.""")
        if 'Accumulator' in config_dict:
            config_dict['Accumulator']['energy'] = {'extractor': 'sum'}
        else:
            config_dict['Accumulator'] = {'energy': {'extractor': 'sum'}}
