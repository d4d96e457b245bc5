"""
auroramonbus

Serial protocol client for Power-One/ABB/FIMER Aurora inverters.

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

__version__ = '0.1.0'

from .client import AuroraClient, EnergyCounters, InverterState  # noqa: E402
from .constants import Command, EnergySelector, MeasureType  # noqa: E402
from .errors import (CommunicationTimeout, CrcMismatch, ExchangeCancelled,  # noqa: E402
                     FrameLengthError, PortNotOpen, ReopenFailed, ReplyTimeout)
from .exchange import (ExchangeEngine, ExponentialRetryPolicy,  # noqa: E402
                       LinearRetryPolicy, RetryPolicy)
