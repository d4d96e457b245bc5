"""
states.py

Aurora inverter status code lookup tables.

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

Refer to the Aurora PV Inverter Series Communication Protocol rel 4.7 for the
meaning of each code.
"""

# transmission state code map
TRANSMISSION = {0: 'Everything is OK',
                51: 'Command is not implemented',
                52: 'Variable does not exist',
                53: 'Variable value is out of range',
                54: 'EEprom not accessible',
                55: 'Not Toggled Service Mode',
                56: 'Can not send the command to internal micro',
                57: 'Command not Executed',
                58: 'The variable is not available, retry'
                }

# inverter system module state code maps

# global state
GLOBAL = {0: 'Sending Parameters',
          1: 'Wait Sun/Grid',
          2: 'Checking Grid',
          3: 'Measuring Riso',
          4: 'DcDc Start',
          5: 'Inverter Start',
          6: 'Run',
          7: 'Recovery',
          8: 'Pause',
          9: 'Ground Fault',
          10: 'OTH Fault',
          11: 'Address Setting',
          12: 'Self Test',
          13: 'Self Test Fail',
          14: 'Sensor Test + Meas.Riso',
          15: 'Leak Fault',
          16: 'Waiting for manual reset ',
          17: 'Internal Error E026',
          18: 'Internal Error E027',
          19: 'Internal Error E028',
          20: 'Internal Error E029',
          21: 'Internal Error E030',
          22: 'Sending Wind Table',
          23: 'Failed Sending table',
          24: 'UTH Fault',
          25: 'Remote OFF',
          26: 'Interlock Fail',
          27: 'Executing Autotest',
          30: 'Waiting Sun',
          31: 'Temperature Fault',
          32: 'Fan Stacked',
          33: 'Int. Com. Fault',
          34: 'Slave Insertion',
          35: 'DC Switch Open',
          36: 'TRAS Switch Open',
          37: 'MASTER Exclusion',
          38: 'Auto Exclusion ',
          98: 'Erasing Internal EEprom',
          99: 'Erasing External EEprom',
          100: 'Counting EEprom',
          101: 'Freeze'
          }

# inverter state
INVERTER = {0: 'Stand By',
            1: 'Checking Grid',
            2: 'Run',
            3: 'Bulk OV',
            4: 'Out OC',
            5: 'IGBT Sat',
            6: 'Bulk UV',
            7: 'Degauss Error',
            8: 'No Parameters',
            9: 'Bulk Low',
            10: 'Grid OV',
            11: 'Communication Error',
            12: 'Degaussing',
            13: 'Starting',
            14: 'Bulk Cap Fail',
            15: 'Leak Fail',
            16: 'DcDc Fail',
            17: 'Ileak Sensor Fail',
            18: 'SelfTest: relay inverter',
            19: 'SelfTest: wait for sensor test',
            20: 'SelfTest: test relay DcDc + sensor',
            21: 'SelfTest: relay inverter fail',
            22: 'SelfTest timeout fail',
            23: 'SelfTest: relay DcDc fail',
            24: 'Self Test 1',
            25: 'Waiting self test start',
            26: 'Dc Injection',
            27: 'Self Test 2',
            28: 'Self Test 3',
            29: 'Self Test 4',
            30: 'Internal Error',
            31: 'Internal Error',
            40: 'Forbidden State',
            41: 'Input UC',
            42: 'Zero Power',
            43: 'Grid Not Present',
            44: 'Waiting Start',
            45: 'MPPT',
            46: 'Grid Fail',
            47: 'Input OC'
            }

# DC/DC channel states
DCDC = {0: 'DcDc OFF',
        1: 'Ramp Start',
        2: 'MPPT',
        3: 'Not Used',
        4: 'Input OC',
        5: 'Input UV',
        6: 'Input OV',
        7: 'Input Low',
        8: 'No Parameters',
        9: 'Bulk OV',
        10: 'Communication Error',
        11: 'Ramp Fail',
        12: 'Internal Error',
        13: 'Input mode Error',
        14: 'Ground Fault',
        15: 'Inverter Fail',
        16: 'DcDc IGBT Sat',
        17: 'DcDc ILEAK Fail',
        18: 'DcDc Grid Fail',
        19: 'DcDc Comm Error'
        }

# alarm states
ALARM = {0:  {'description': 'No Alarm',          'code': 'No alarm code'},
         1:  {'description': 'Sun Low',           'code': 'W001'},
         2:  {'description': 'Input OC',          'code': 'E001'},
         3:  {'description': 'Input UV',          'code': 'W002'},
         4:  {'description': 'Input OV',          'code': 'E002'},
         5:  {'description': 'Sun Low',           'code': 'W001'},
         6:  {'description': 'No Parameters',     'code': 'E003'},
         7:  {'description': 'Bulk OV',           'code': 'E004'},
         8:  {'description': 'Comm.Error',        'code': 'E005'},
         9:  {'description': 'Output OC',         'code': 'E006'},
         10: {'description': 'IGBT Sat',          'code': 'E007'},
         11: {'description': 'Bulk UV',           'code': 'W011'},
         12: {'description': 'Internal error',    'code': 'E009'},
         13: {'description': 'Grid Fail',         'code': 'W003'},
         14: {'description': 'Bulk Low',          'code': 'E010'},
         15: {'description': 'Ramp Fail',         'code': 'E011'},
         16: {'description': 'Dc/Dc Fail',        'code': 'E012'},
         17: {'description': 'Wrong Mode',        'code': 'E013'},
         18: {'description': 'Ground Fault',      'code': '---'},
         19: {'description': 'Over Temp.',        'code': 'E014'},
         20: {'description': 'Bulk Cap Fail',     'code': 'E015'},
         21: {'description': 'Inverter Fail',     'code': 'E016'},
         22: {'description': 'Start Timeout',     'code': 'E017'},
         23: {'description': 'Ground Fault',      'code': 'E018'},
         24: {'description': 'Degauss error',     'code': '---'},
         25: {'description': 'Ileak sens.fail',   'code': 'E019'},
         26: {'description': 'DcDc Fail',         'code': 'E012'},
         27: {'description': 'Self Test Error 1', 'code': 'E020'},
         28: {'description': 'Self Test Error 2', 'code': 'E021'},
         29: {'description': 'Self Test Error 3', 'code': 'E019'},
         30: {'description': 'Self Test Error 4', 'code': 'E022'},
         31: {'description': 'DC inj error',      'code': 'E023'},
         32: {'description': 'Grid OV',           'code': 'W004'},
         33: {'description': 'Grid UV',           'code': 'W005'},
         34: {'description': 'Grid OF',           'code': 'W006'},
         35: {'description': 'Grid UF',           'code': 'W007'},
         36: {'description': 'Z grid Hi',         'code': 'W008'},
         37: {'description': 'Internal error',    'code': 'E024'},
         38: {'description': 'Riso Low',          'code': 'E025'},
         39: {'description': 'Vref Error',        'code': 'E026'},
         40: {'description': 'Error Meas V',      'code': 'E027'},
         41: {'description': 'Error Meas F',      'code': 'E028'},
         42: {'description': 'Error Meas Z',      'code': 'E029'},
         43: {'description': 'Error Meas Ileak',  'code': 'E030'},
         44: {'description': 'Error Read V',      'code': 'E031'},
         45: {'description': 'Error Read I',      'code': 'E032'},
         46: {'description': 'Table fail',        'code': 'W009'},
         47: {'description': 'Fan Fail',          'code': 'W010'},
         48: {'description': 'UTH',               'code': 'E033'},
         49: {'description': 'Interlock fail',    'code': 'E034'},
         50: {'description': 'Remote Off',        'code': 'E035'},
         51: {'description': 'Vout Avg error',    'code': 'E036'},
         52: {'description': 'Battery low',       'code': 'W012'},
         53: {'description': 'Clk fail',          'code': 'W013'},
         54: {'description': 'Input UC',          'code': 'E037'},
         55: {'description': 'Zero Power',        'code': 'W014'},
         56: {'description': 'Fan Stuck',         'code': 'E038'},
         57: {'description': 'DC Switch Open',    'code': 'E039'},
         58: {'description': 'Tras Switch Open',  'code': 'E040'},
         59: {'description': 'AC Switch Open',    'code': 'E041'},
         60: {'description': 'Bulk UV',           'code': 'E042'},
         61: {'description': 'Autoexclusion',     'code': 'E043'},
         62: {'description': 'Grid df/dt',        'code': 'W015'},
         63: {'description': 'Den switch Open',   'code': 'W016'},
         64: {'description': 'Jbox fail',         'code': 'W017'}
         }


def unknown(code):
    """Label used for a code that is not in a table."""

    return 'Unknown (0x%02X)' % code


def describe(table, code):
    """Look up the label for a status code.

    Input:
        table: One of TRANSMISSION, GLOBAL, INVERTER or DCDC.
        code:  The integer status code.

    Returns:
        The label with surrounding whitespace removed, 'Unknown (0xNN)' if the
        code is not in the table or '---' if code is None.
    """

    if code is None:
        return '---'
    try:
        return table[code].strip()
    except KeyError:
        return unknown(code)


def describe_alarm(code):
    """Look up the description and alarm code for an alarm state."""

    if code is None:
        return '---'
    try:
        _alarm = ALARM[code]
    except KeyError:
        return unknown(code)
    return '%s [%s]' % (_alarm['description'], _alarm['code'])
