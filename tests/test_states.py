"""Tests for auroramonbus.states."""

from auroramonbus import states


class TestDescribe:
    """Tests for describe and describe_alarm."""

    def test_known_codes(self):
        """Known codes map to their labels."""
        assert states.describe(states.TRANSMISSION, 0) == "Everything is OK"
        assert states.describe(states.GLOBAL, 6) == "Run"
        assert states.describe(states.INVERTER, 0) == "Stand By"
        assert states.describe(states.DCDC, 2) == "MPPT"

    def test_unknown_code(self):
        """Unmapped codes are rendered in hex."""
        assert states.describe(states.DCDC, 0xFE) == "Unknown (0xFE)"

    def test_none(self):
        """A missing code is rendered as '---'."""
        assert states.describe(states.GLOBAL, None) == "---"
        assert states.describe_alarm(None) == "---"

    def test_alarm(self):
        """Alarms include the alarm code."""
        assert states.describe_alarm(1) == "Sun Low [W001]"

    def test_unknown_alarm(self):
        """Unmapped alarms are rendered in hex."""
        assert states.describe_alarm(0xFE) == "Unknown (0xFE)"
