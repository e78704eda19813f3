# Copyright 2019 Brian T. Park
#
# MIT License

import io
import unittest

from zictools.builder.builder import DateTimeZoneBuilder
from zictools.builder.builder import read_from
from zictools.builder.chrono import civil_from_days
from zictools.builder.chrono import days_from_civil
from zictools.builder.chrono import format_instant
from zictools.builder.chrono import iso_day_of_week
from zictools.builder.chrono import start_of_year
from zictools.builder.chrono import year_of
from zictools.builder.datetimezone import Transition
from zictools.builder.datetimezone import decode_zone
from zictools.builder.datetimezone import encode_zone
from zictools.builder.ofyear import OfYear
from zictools.data_types.zic_types import MAX_YEAR
from zictools.data_types.zic_types import MIN_INSTANT

HOUR = 3600000

# 1980-01-01T00:00Z
JAN_1980 = 315532800000

# The transitions of the US rules in 1970 and 2001.
APR_1970 = 9961200000  # 1970-04-26T07:00Z
OCT_1970 = 25682400000  # 1970-10-25T06:00Z
APR_2001 = 988527600000  # 2001-04-29T07:00Z
OCT_2001 = 1004248800000  # 2001-10-28T06:00Z


def create_us_builder() -> DateTimeZoneBuilder:
    builder = DateTimeZoneBuilder()
    builder.set_standard_offset(-5 * HOUR)
    builder.add_recurring_savings(
        'EDT', HOUR, 1970, MAX_YEAR, 'w', 4, -1, 7, False, 2 * HOUR)
    builder.add_recurring_savings(
        'EST', 0, 1970, MAX_YEAR, 'w', 10, -1, 7, False, 2 * HOUR)
    return builder


class TestChrono(unittest.TestCase):
    def test_days_from_civil(self) -> None:
        self.assertEqual(0, days_from_civil(1970, 1, 1))
        self.assertEqual(-1, days_from_civil(1969, 12, 31))
        self.assertEqual(11323, days_from_civil(2001, 1, 1))
        self.assertEqual((2001, 1, 1), civil_from_days(11323))
        self.assertEqual((1600, 2, 29),
                         civil_from_days(days_from_civil(1600, 2, 29)))

    def test_iso_day_of_week(self) -> None:
        self.assertEqual(4, iso_day_of_week(0))  # Thursday
        self.assertEqual(7, iso_day_of_week(days_from_civil(2001, 4, 29)))

    def test_year_of(self) -> None:
        self.assertEqual(1980, year_of(JAN_1980))
        self.assertEqual(1979, year_of(JAN_1980 - 1))
        self.assertEqual(JAN_1980, start_of_year(1980))

    def test_format_instant(self) -> None:
        self.assertEqual(
            '1980-01-01T00:00:00.000Z', format_instant(JAN_1980))
        self.assertEqual(
            '1979-12-31T23:59:59.999Z', format_instant(JAN_1980 - 1))


class TestOfYear(unittest.TestCase):
    def test_last_sunday(self) -> None:
        of_year = OfYear('w', 4, -1, 7, False, 2 * HOUR)
        self.assertEqual(APR_2001, of_year.set_instant(2001, -5 * HOUR, 0))

    def test_sunday_on_or_after(self) -> None:
        # 2007-03-11 was the second Sunday of March.
        of_year = OfYear('u', 3, 8, 7, True, 0)
        self.assertEqual(
            days_from_civil(2007, 3, 11) * 86400000,
            of_year.set_instant(2007, -5 * HOUR, 0))

    def test_next_and_previous(self) -> None:
        of_year = OfYear('w', 4, -1, 7, False, 2 * HOUR)
        self.assertEqual(APR_2001, of_year.next(APR_2001 - 1, -5 * HOUR, 0))
        self.assertNotEqual(APR_2001, of_year.next(APR_2001, -5 * HOUR, 0))
        self.assertEqual(
            APR_2001, of_year.previous(APR_2001 + 1, -5 * HOUR, 0))
        self.assertLess(
            of_year.previous(APR_2001, -5 * HOUR, 0), APR_2001)


class TestTransition(unittest.TestCase):
    def test_is_transition_from(self) -> None:
        first = Transition(0, 'EST', -5 * HOUR, -5 * HOUR)
        self.assertTrue(first.is_transition_from(None))
        self.assertTrue(
            Transition(1, 'EDT', -4 * HOUR, -5 * HOUR)
            .is_transition_from(first))
        self.assertFalse(
            Transition(1, 'EST', -5 * HOUR, -5 * HOUR)
            .is_transition_from(first))
        self.assertFalse(
            Transition(0, 'EDT', -4 * HOUR, -5 * HOUR)
            .is_transition_from(first))
        self.assertEqual(HOUR, Transition(1, 'EDT', -4 * HOUR, -5 * HOUR)
                         .save_millis)


class TestDateTimeZoneBuilder(unittest.TestCase):
    def test_no_segments_is_utc(self) -> None:
        zone = DateTimeZoneBuilder().to_time_zone('Test/UTC')
        self.assertEqual('Test/UTC', zone.id)
        self.assertEqual(0, zone.get_offset(0))
        self.assertEqual('UTC', zone.get_name_key(0))
        self.assertEqual(0, zone.next_transition(0))

    def test_cutover_into_undefined_state(self) -> None:
        builder = DateTimeZoneBuilder()
        builder.set_standard_offset(HOUR)
        builder.set_fixed_savings('XST', 0)
        builder.add_cutover(1980, 'w', 1, 1, 0, False, 0)
        zone = builder.to_time_zone('Test/Zone')

        cutover = JAN_1980 - HOUR
        self.assertEqual((
            Transition(MIN_INSTANT, 'XST', HOUR, HOUR),
            Transition(cutover, '??', HOUR, HOUR),
        ), zone.transitions)
        self.assertIsNone(zone.tail)

        self.assertEqual(HOUR, zone.get_offset(0))
        self.assertEqual(HOUR, zone.get_standard_offset(0))
        self.assertEqual('XST', zone.get_name_key(0))
        self.assertEqual('XST', zone.get_name_key(cutover - 1))
        self.assertEqual('??', zone.get_name_key(cutover))
        self.assertEqual(HOUR, zone.get_offset(cutover))

        self.assertEqual(cutover, zone.next_transition(0))
        self.assertEqual(cutover, zone.next_transition(cutover))
        self.assertEqual(cutover - 1, zone.previous_transition(cutover + 1))
        self.assertEqual(0, zone.previous_transition(0))

    def test_unchanged_segment_is_dropped(self) -> None:
        builder = DateTimeZoneBuilder()
        builder.set_standard_offset(HOUR)
        builder.set_fixed_savings('XST', 0)
        builder.add_cutover(1980, 'w', 1, 1, 0, False, 0)
        builder.set_standard_offset(HOUR)
        builder.set_fixed_savings('XST', 0)
        zone = builder.to_time_zone('Test/Zone')
        self.assertEqual(
            (Transition(MIN_INSTANT, 'XST', HOUR, HOUR),), zone.transitions)
        self.assertEqual(JAN_1980, zone.next_transition(JAN_1980))

    def test_fixed_then_fixed(self) -> None:
        builder = DateTimeZoneBuilder()
        builder.set_standard_offset(HOUR)
        builder.set_fixed_savings('XST', 0)
        builder.add_cutover(1980, 'u', 1, 1, 0, False, 0)
        builder.set_standard_offset(2 * HOUR)
        builder.set_fixed_savings('YST', 0)
        zone = builder.to_time_zone('Test/Zone')
        self.assertEqual((
            Transition(MIN_INSTANT, 'XST', HOUR, HOUR),
            Transition(JAN_1980, 'YST', 2 * HOUR, 2 * HOUR),
        ), zone.transitions)

    def test_recurring_rules_with_tail(self) -> None:
        zone = create_us_builder().to_time_zone('Test/DST')
        self.assertEqual((
            Transition(MIN_INSTANT, 'EST', -5 * HOUR, -5 * HOUR),
            Transition(APR_1970, 'EDT', -4 * HOUR, -5 * HOUR),
            Transition(OCT_1970, 'EST', -5 * HOUR, -5 * HOUR),
        ), zone.transitions)
        self.assertIsNotNone(zone.tail)

        # Answered by the precalculated transitions.
        self.assertEqual(APR_1970, zone.next_transition(0))
        self.assertEqual('EDT', zone.get_name_key(APR_1970))
        self.assertEqual('EST', zone.get_name_key(OCT_1970))

        # Answered by the tail.
        jan_2001 = start_of_year(2001)
        self.assertEqual(APR_2001, zone.next_transition(jan_2001))
        self.assertEqual(OCT_2001, zone.next_transition(APR_2001))
        self.assertEqual(-5 * HOUR, zone.get_offset(APR_2001 - 1))
        self.assertEqual('EST', zone.get_name_key(APR_2001 - 1))
        self.assertEqual(-4 * HOUR, zone.get_offset(APR_2001))
        self.assertEqual('EDT', zone.get_name_key(APR_2001))
        self.assertEqual(-5 * HOUR, zone.get_standard_offset(APR_2001))
        self.assertEqual(-5 * HOUR, zone.get_offset(OCT_2001))
        self.assertEqual(OCT_2001 - 1, zone.previous_transition(OCT_2001))
        self.assertEqual(
            OCT_2001 - 1, zone.previous_transition(OCT_2001 + 1000))
        self.assertEqual(
            APR_2001 - 1, zone.previous_transition(OCT_2001 - 1))

        # The seam between the tail and the precalculated transitions.
        apr_1971 = zone.next_transition(OCT_1970)
        self.assertEqual(1971, year_of(apr_1971))
        self.assertEqual(OCT_1970 - 1, zone.previous_transition(apr_1971 - 1))
        self.assertEqual(APR_1970 - 1, zone.previous_transition(OCT_1970 - 1))
        # A transition at the instant itself counts as previous.
        self.assertEqual(OCT_1970 - 1, zone.previous_transition(OCT_1970))

    def test_rules_before_segment_start(self) -> None:
        # The segment starts in 1980, after the 1970 rules began, so the
        # state at its start is given by the Oct 1979 rule.
        builder = DateTimeZoneBuilder()
        builder.set_standard_offset(-6 * HOUR)
        builder.set_fixed_savings('CST', 0)
        builder.add_cutover(1980, 'w', 1, 1, 0, False, 0)
        builder.set_standard_offset(-5 * HOUR)
        builder.add_recurring_savings(
            'EDT', HOUR, 1970, MAX_YEAR, 'w', 4, -1, 7, False, 2 * HOUR)
        builder.add_recurring_savings(
            'EST', 0, 1970, MAX_YEAR, 'w', 10, -1, 7, False, 2 * HOUR)
        zone = builder.to_time_zone('Test/Chain')

        cutover = JAN_1980 + 6 * HOUR
        self.assertEqual(
            Transition(cutover, 'EST', -5 * HOUR, -5 * HOUR),
            zone.transitions[1])
        self.assertEqual('EDT', zone.transitions[2].name_key)
        self.assertEqual(1980, year_of(zone.transitions[2].millis))

    def test_to_time_zone_is_repeatable(self) -> None:
        builder = create_us_builder()
        self.assertEqual(
            builder.to_time_zone('Test/DST'), builder.to_time_zone('Test/DST'))


class TestZoneCodec(unittest.TestCase):
    def test_round_trip_with_tail(self) -> None:
        zone = create_us_builder().to_time_zone('Test/DST')
        data = encode_zone(zone)
        self.assertEqual(zone, decode_zone(data, 'Test/DST'))

    def test_write_to_and_read_from(self) -> None:
        builder = DateTimeZoneBuilder()
        builder.set_standard_offset(HOUR)
        builder.set_fixed_savings('XST', 0)
        builder.add_cutover(1980, 'w', 1, 1, 0, False, 0)

        out = io.BytesIO()
        builder.write_to('Test/Zone', out)
        out.seek(0)
        zone = read_from(out, 'Test/Zone')
        self.assertEqual(builder.to_time_zone('Test/Zone'), zone)
        self.assertEqual('Test/Zone', zone.id)

    def test_decode_truncated_fails(self) -> None:
        data = encode_zone(create_us_builder().to_time_zone('Test/DST'))
        self.assertRaises(ValueError, decode_zone, data[:-1], 'Test/DST')
        self.assertRaises(ValueError, decode_zone, data + b'\0', 'Test/DST')
