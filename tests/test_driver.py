"""Tests for auroramonbus.driver."""

import logging
from unittest.mock import MagicMock, patch

import pytest
import weewx
import weewx.units

from auroramonbus.client import AuroraClient
from auroramonbus.constants import INVERTER_EPOCH_OFFSET
from auroramonbus.driver import AuroraMonbusConfEditor, AuroraMonbusDriver, loader

from conftest import (FakeEvent, FakeTransport, corrupt, make_reply, transport_factory,
                      poll_replies, uint_reply)


def make_driver(replies, **inverter_dict):
    """Return a driver whose client talks to a FakeTransport."""
    transport = FakeTransport(replies)
    client = AuroraClient(cancel_event=FakeEvent(),
                          transport_factory=transport_factory(transport))
    inverter_dict.setdefault("model", "Aurora PVI-6000")
    return AuroraMonbusDriver(client=client, **inverter_dict), transport


class TestLoopPackets:
    """Tests for AuroraMonbusDriver.get_loop_packet."""

    def test_not_running_gives_none_packet(self):
        """A sleeping inverter gives a packet of None values."""
        driver, transport = make_driver([make_reply(global_state=1)])
        packet = driver.get_loop_packet()
        assert transport.written[0][1] == 0x32
        assert packet["usUnits"] == weewx.METRIC
        assert packet["gridVoltage"] is None
        assert packet["dayEnergy"] is None
        assert packet["energy"] is None

    def test_running_packet(self):
        """A running inverter gives mapped values with energy in Wh."""
        driver, transport = make_driver([make_reply(global_state=6)] + poll_replies())
        packet = driver.get_loop_packet()
        assert packet["gridVoltage"] == pytest.approx(230.0)
        assert packet["string1Power"] == pytest.approx(600.0)
        assert packet["dayEnergy"] == pytest.approx(12345.0)
        assert packet["totalEnergy"] == pytest.approx(30000000.0)
        assert packet["energy"] is None
        assert "dateTime" in packet

    def test_energy_delta(self):
        """The per-period energy is the change in day energy."""
        second = poll_replies()
        second[13] = uint_reply(12445)
        driver, _ = make_driver([make_reply(global_state=6)] + poll_replies() + second)
        driver.get_loop_packet()
        packet = driver.get_loop_packet()
        assert packet["energy"] == pytest.approx(100.0)

    def test_poll_failure_gives_none_packet(self):
        """A failed poll gives a packet of None values."""
        bad = corrupt(make_reply())
        driver, _ = make_driver([make_reply(global_state=6), bad, bad, bad])
        packet = driver.get_loop_packet()
        assert packet["gridVoltage"] is None

    def test_closed_port_is_reopened(self):
        """A port left closed by a failed reopen is reopened on the next packet."""
        bad = corrupt(make_reply())
        driver, transport = make_driver([bad, bad, bad, make_reply(global_state=1)])
        transport.fail_open = True
        packet = driver.get_loop_packet()
        assert packet["gridVoltage"] is None
        assert not transport.is_open
        transport.fail_open = False
        packet = driver.get_loop_packet()
        assert transport.is_open
        assert len(transport.written) == 4
        assert transport.written[-1][1] == 0x32
        assert driver.client.global_state == 1

    def test_custom_sensor_map(self):
        """Only fields in the sensor map are emitted."""
        driver, _ = make_driver([make_reply(global_state=6)] + poll_replies(),
                                sensor_map={"gridPower": "grid_power"})
        packet = driver.get_loop_packet()
        assert set(packet) == {"gridPower", "dateTime", "usUnits"}

    def test_calculate_energy(self):
        """Energy deltas need two values and no counter reset."""
        assert AuroraMonbusDriver.calculate_energy(150.0, 100.0) == 50.0
        assert AuroraMonbusDriver.calculate_energy(150.0, None) is None
        assert AuroraMonbusDriver.calculate_energy(10.0, 100.0) is None


class TestTime:
    """Tests for getTime and setTime."""

    def test_get_time(self):
        """getTime returns the inverter clock as an epoch timestamp."""
        driver, _ = make_driver([uint_reply(1000)])
        assert driver.getTime() == INVERTER_EPOCH_OFFSET + 1000

    def test_get_time_asleep(self):
        """An inverter that cannot be contacted has no clock."""
        bad = corrupt(make_reply())
        driver, _ = make_driver([bad, bad, bad])
        with pytest.raises(NotImplementedError):
            driver.getTime()

    def test_set_time(self, caplog):
        """setTime sets the inverter clock."""
        caplog.set_level(logging.INFO, logger="auroramonbus.driver")
        driver, transport = make_driver([make_reply()])
        driver.setTime()
        assert transport.written[0][1] == 0x47
        assert "Inverter time set" in caplog.text

    def test_set_time_asleep(self):
        """setTime on a sleeping inverter raises NotImplementedError."""
        bad = corrupt(make_reply())
        driver, _ = make_driver([bad, bad, bad])
        with pytest.raises(NotImplementedError):
            driver.setTime()


class TestDriverSetup:
    """Tests for driver construction and loading."""

    def test_hardware_name(self):
        """hardware_name is the configured model."""
        driver, _ = make_driver([])
        assert driver.hardware_name == "Aurora PVI-6000"

    def test_port_opened_and_closed(self):
        """The port is opened on construction and closed by closePort."""
        driver, transport = make_driver([])
        assert transport.is_open
        driver.closePort()
        assert not transport.is_open

    def test_invalid_config(self):
        """An invalid address is rejected."""
        with pytest.raises(ValueError):
            make_driver([], address="300")

    @patch("auroramonbus.transport.serial.Serial")
    def test_loader(self, mock_serial_cls):
        """loader() builds a driver from weewx.conf and defines units."""
        mock_serial_cls.return_value = MagicMock()
        driver = loader({"AuroraMonbus": {"port": "/dev/ttyUSB1", "model": "PVI-3.6"}}, None)
        assert isinstance(driver, AuroraMonbusDriver)
        assert driver.poll_interval == pytest.approx(10.0)
        assert mock_serial_cls.call_args.kwargs["port"] == "/dev/ttyUSB1"
        assert weewx.units.obs_group_dict["dayEnergy"] == "group_energy"


class TestConfEditor:
    """Tests for AuroraMonbusConfEditor."""

    def test_default_stanza(self):
        """The default stanza names our driver."""
        assert "driver = auroramonbus.driver" in AuroraMonbusConfEditor().default_stanza

    def test_modify_config(self):
        """Archive records are software generated and energy summed."""
        config_dict = {"StdArchive": {}}
        AuroraMonbusConfEditor.modify_config(config_dict)
        assert config_dict["StdArchive"]["record_generation"] == "software"
        assert config_dict["Accumulator"]["energy"] == {"extractor": "sum"}
