# Copyright 2018 Brian T. Park
#
# MIT License

import unittest
from collections import deque
from typing import Any
from typing import List

from zictools.model.recurrence import DateTimeOfYear
from zictools.model.recurrence import END_OF_YEAR_MILLIS
from zictools.model.recurrence import LAST_DAY_OF_MONTH
from zictools.model.recurrence import START_OF_YEAR


def parse(line: str) -> DateTimeOfYear:
    return DateTimeOfYear.parse(deque(line.split()))


class TestDateTimeOfYear(unittest.TestCase):
    def test_no_tokens(self) -> None:
        dt = DateTimeOfYear.parse(deque())
        self.assertIs(START_OF_YEAR, dt)
        self.assertEqual(1, dt.month_of_year)
        self.assertEqual(1, dt.day_of_month)
        self.assertEqual(0, dt.millis_of_day)
        self.assertEqual('w', dt.zone_char)

    def test_month_only(self) -> None:
        dt = parse('Oct')
        self.assertEqual(DateTimeOfYear(month_of_year=10), dt)

    def test_exact_day(self) -> None:
        dt = parse('Nov 18 12:09:24')
        self.assertEqual(11, dt.month_of_year)
        self.assertEqual(18, dt.day_of_month)
        self.assertEqual(0, dt.day_of_week)
        self.assertEqual(12 * 3600000 + 9 * 60000 + 24000, dt.millis_of_day)
        self.assertEqual('w', dt.zone_char)

    def test_last_day_of_week(self) -> None:
        dt = parse('Oct lastSun 2:00s')
        self.assertEqual(10, dt.month_of_year)
        self.assertEqual(LAST_DAY_OF_MONTH, dt.day_of_month)
        self.assertEqual(7, dt.day_of_week)
        self.assertFalse(dt.advance_day_of_week)
        self.assertEqual(2 * 3600000, dt.millis_of_day)
        self.assertEqual('s', dt.zone_char)

    def test_day_of_week_on_or_after(self) -> None:
        dt = parse('Mar Sun>=8 2:00')
        self.assertEqual(
            DateTimeOfYear(3, 8, 7, True, 2 * 3600000, 'w'), dt)

    def test_day_of_week_on_or_before(self) -> None:
        dt = parse('Apr Fri<=1 2:00u')
        self.assertEqual(
            DateTimeOfYear(4, 1, 5, False, 2 * 3600000, 'u'), dt)

    def test_only_consumes_three_tokens(self) -> None:
        tokens = deque('Apr 1 2:00 1:00 D'.split())
        DateTimeOfYear.parse(tokens)
        self.assertEqual(deque(['1:00', 'D']), tokens)

    def test_invalid_day_fails(self) -> None:
        self.assertRaises(ValueError, parse, 'Apr Sun 2:00')
        self.assertRaises(ValueError, parse, 'Apr Foo>=1 2:00')

    def test_invalid_time_fails(self) -> None:
        self.assertRaises(ValueError, parse, 'Apr 1 25:00')
        self.assertRaises(ValueError, parse, 'Apr 1 -1:00')

    def test_24_00_rolls_to_next_day(self) -> None:
        self.assertEqual(DateTimeOfYear(4, 2, 0, False, 0, 'w'),
                         parse('Apr 1 24:00'))
        self.assertEqual(DateTimeOfYear(3, 1, 0, False, 0, 'w'),
                         parse('Feb 28 24:00'))
        self.assertEqual(DateTimeOfYear(5, 1, 0, False, 0, 's'),
                         parse('Apr 30 24:00s'))

    def test_24_00_end_of_year(self) -> None:
        self.assertEqual(
            DateTimeOfYear(12, 31, 0, False, END_OF_YEAR_MILLIS, 'u'),
            parse('Dec 31 24:00u'))

    def test_24_00_with_day_of_week(self) -> None:
        # Saturday on or after the 8th, 24:00 is Sunday on or after the 9th.
        self.assertEqual(DateTimeOfYear(3, 9, 7, True, 0, 'w'),
                         parse('Mar Sat>=8 24:00'))
        # The last Saturday of March, 24:00 is the Sunday on or before the
        # 1st of April.
        self.assertEqual(DateTimeOfYear(4, 1, 7, False, 0, 'w'),
                         parse('Mar lastSat 24:00'))
        # December 31 stays in the same year, at the last millisecond.
        self.assertEqual(
            DateTimeOfYear(12, 31, 7, True, END_OF_YEAR_MILLIS, 'w'),
            parse('Dec Sun>=31 24:00'))


class RecordingBuilder:
    """Record the calls of the ZoneBuilder interface."""

    def __init__(self) -> None:
        self.calls: List[Any] = []

    def set_standard_offset(self, standard_offset: int) -> None:
        self.calls.append(('set_standard_offset', standard_offset))

    def set_fixed_savings(self, name_key: str, save_millis: int) -> None:
        self.calls.append(('set_fixed_savings', name_key, save_millis))

    def add_recurring_savings(self, *args: object) -> None:
        self.calls.append(('add_recurring_savings',) + args)

    def add_cutover(self, *args: object) -> None:
        self.calls.append(('add_cutover',) + args)


class TestDateTimeOfYearBuilder(unittest.TestCase):
    def test_add_recurring(self) -> None:
        builder = RecordingBuilder()
        parse('Mar Sun>=8 2:00').add_recurring(
            builder, 'EDT', 3600000, 2007, 9999)
        self.assertEqual(
            [('add_recurring_savings', 'EDT', 3600000, 2007, 9999,
              'w', 3, 8, 7, True, 2 * 3600000)],
            builder.calls)

    def test_add_cutover(self) -> None:
        builder = RecordingBuilder()
        parse('Nov 18 12:00u').add_cutover(builder, 1883)
        self.assertEqual(
            [('add_cutover', 1883, 'u', 11, 18, 0, False, 12 * 3600000)],
            builder.calls)
