# Copyright 2019 Brian T. Park
#
# MIT License

"""
Verify the transitions of a compiled time zone, by walking them forward and
then backward over a range of years. A zone which fails is excluded from the
output of the compiler.
"""

import logging
from typing import List
from typing import Optional

from zictools.builder.chrono import format_instant
from zictools.builder.chrono import start_of_year
from zictools.data_types.zic_types import TimeZone
from zictools.data_types.zic_types import UNDEFINED_NAME_KEY
from zictools.data_types.zic_types import VERIFY_END_YEAR
from zictools.data_types.zic_types import VERIFY_START_YEAR


class TransitionVerifier:
    """Check that every transition between start_year and end_year changes
    the observable state, has a name key of at least 3 characters (or is
    UNDEFINED_NAME_KEY), and that previous_transition() lands 1 ms before each
    transition found by next_transition().
    """

    def __init__(
        self,
        start_year: int = VERIFY_START_YEAR,
        end_year: int = VERIFY_END_YEAR,
    ):
        self.start_millis = start_of_year(start_year)
        self.end_millis = start_of_year(end_year)
        self.passed = 0
        self.failed = 0

    def verify(self, zone: TimeZone, zone_id: Optional[str] = None) -> bool:
        """Return True if the 'zone' passes. A zone whose id differs from
        'zone_id' is an alias of another zone, and is accepted unchecked.
        """
        if zone_id is not None and zone_id != zone.id:
            return True
        valid = self._verify(zone)
        if valid:
            self.passed += 1
        else:
            self.failed += 1
        return valid

    def _verify(self, zone: TimeZone) -> bool:
        transitions = self._walk_forward(zone)
        if transitions is None:
            return False
        return self._walk_backward(zone, transitions)

    def _walk_forward(self, zone: TimeZone) -> Optional[List[int]]:
        millis = self.start_millis
        offset = zone.get_offset(millis)
        std_offset = zone.get_standard_offset(millis)
        key = zone.get_name_key(millis)

        transitions: List[int] = []
        while True:
            next_millis = zone.next_transition(millis)
            if next_millis == millis or next_millis > self.end_millis:
                break
            millis = next_millis

            next_offset = zone.get_offset(millis)
            next_std_offset = zone.get_standard_offset(millis)
            next_key = zone.get_name_key(millis)

            if (
                offset == next_offset
                and std_offset == next_std_offset
                and key == next_key
            ):
                logging.error(
                    '*d* Error in %s %s', zone.id, format_instant(millis))
                return None

            if next_key is None or (
                len(next_key) < 3 and next_key != UNDEFINED_NAME_KEY
            ):
                logging.error(
                    '*s* Error in %s %s, nameKey=%s',
                    zone.id, format_instant(millis), next_key)
                return None

            transitions.append(millis)
            offset = next_offset
            std_offset = next_std_offset
            key = next_key
        return transitions

    def _walk_backward(self, zone: TimeZone, transitions: List[int]) -> bool:
        millis = self.end_millis
        for transition in reversed(transitions):
            previous = zone.previous_transition(millis)
            if previous == millis or previous < self.start_millis:
                break
            millis = previous

            if transition - 1 != millis:
                logging.error(
                    '*r* Error in %s %s != %s',
                    zone.id,
                    format_instant(millis),
                    format_instant(transition - 1))
                return False
        return True

    def print_summary(self) -> None:
        logging.info(
            f'Summary: Verified zones: passed={self.passed}'
            f'; failed={self.failed}')
