"""Tests for auroramonbus.cli."""

from auroramonbus import __version__, config
from auroramonbus.cli import DirectAuroraMonbus, build_parser, main
from auroramonbus.client import AuroraClient

from conftest import (FakeEvent, FakeTransport, corrupt, make_frame, make_reply,
                      poll_replies, transport_factory, uint_reply)


def direct(argv, replies):
    """Return a DirectAuroraMonbus whose clients talk to a FakeTransport."""
    transport = FakeTransport(replies)

    def client_factory(**kwargs):
        kwargs.setdefault("cancel_event", FakeEvent())
        return AuroraClient(transport_factory=transport_factory(transport), **kwargs)

    parser = build_parser()
    namespace = parser.parse_args(argv)
    return DirectAuroraMonbus(namespace, parser, config.station_dict(),
                              client_factory=client_factory), transport


class TestParser:
    """Tests for argument parsing and overrides."""

    def test_probe_argument(self):
        """--probe takes a command code."""
        namespace = build_parser().parse_args(["--probe", "0x3A"])
        assert namespace.probe == "0x3A"

    def test_command_line_overrides(self):
        """Command line options override the config stanza."""
        cli, _ = direct(["--status", "--port", "/dev/ttyS9", "--address", "7",
                         "--diagnostics"], [])
        assert cli.stn_dict["port"] == "/dev/ttyS9"
        assert cli.stn_dict["address"] == 7
        assert cli.stn_dict["diagnostics"] is True

    def test_version(self, capsys):
        """--version prints the version without reading a config file."""
        assert main(["--version"]) == 0
        assert __version__ in capsys.readouterr().out


class TestActions:
    """Tests for the command line actions."""

    def test_no_option(self, capsys):
        """With no action the help text is shown."""
        cli, _ = direct([], [])
        assert cli.process_arguments() == 1
        assert "No option selected" in capsys.readouterr().out

    def test_status(self, capsys):
        """--status shows decoded state labels."""
        cli, transport = direct(["--status"], [make_frame(bytes([0, 6, 2, 2, 2, 0]))])
        assert cli.process_arguments() == 0
        out = capsys.readouterr().out
        assert "Global state: 6 (Run)" in out
        assert "DcDc1 state: 2 (MPPT)" in out
        assert not transport.is_open

    def test_energy(self, capsys):
        """--energy shows the counters in kWh."""
        replies = [uint_reply(v) for v in (12345, 1000, 2000, 3000, 0xDB000000)]
        cli, _ = direct(["--energy"], replies)
        assert cli.process_arguments() == 0
        out = capsys.readouterr().out
        assert "Today: 12.345 kWh" in out
        assert "Partial: 0.000 kWh" in out

    def test_live_data(self, capsys):
        """--live-data shows one poll."""
        cli, _ = direct(["--live-data"], poll_replies())
        assert cli.process_arguments() == 0
        out = capsys.readouterr().out
        assert "230.0 V" in out
        assert "12.345 kWh" in out

    def test_alarms(self, capsys):
        """--alarms lists the last four alarms."""
        cli, _ = direct(["--alarms"], [make_reply(bytes([1, 0, 0, 0]))])
        assert cli.process_arguments() == 0
        assert "Sun Low [W001]" in capsys.readouterr().out

    def test_probe(self, capsys):
        """--probe shows the raw reply."""
        reply = make_reply(b"1KNN")
        cli, transport = direct(["--probe", "0x3A"], [reply])
        assert cli.process_arguments() == 0
        assert transport.written[0][1] == 0x3A
        assert "cmd=0x3A RX -> 00 06 31 4B 4E 4E" in capsys.readouterr().out

    def test_bad_probe_command(self, capsys):
        """An unparseable command code is a one line error."""
        cli, _ = direct(["--probe", "junk"], [])
        assert cli.process_arguments() == 1
        assert "Invalid option" in capsys.readouterr().out

    def test_communication_error(self, capsys):
        """A failed exchange is a one line error, not a traceback."""
        bad = corrupt(make_reply())
        cli, _ = direct(["--get-time"], [bad, bad, bad])
        assert cli.process_arguments() == 1
        assert "Unable to connect to device" in capsys.readouterr().out
