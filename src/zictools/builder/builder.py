# Copyright 2019 Brian T. Park
#
# MIT License

"""
Build a DateTimeZone from the calls of the ZoneBuilder interface. Each call
to add_cutover() closes the current segment at the given point in time and
opens a new one. The timeline is calculated by walking the segments in order,
generating the transitions of the rules of each segment until its cutover.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO
from typing import List
from typing import Optional

from zictools.builder.chrono import start_of_year
from zictools.builder.chrono import year_of
from zictools.builder.datetimezone import DateTimeZone
from zictools.builder.datetimezone import DstTail
from zictools.builder.datetimezone import Transition
from zictools.builder.datetimezone import decode_zone
from zictools.builder.datetimezone import encode_zone
from zictools.builder.ofyear import OfYear
from zictools.builder.ofyear import Recurrence
from zictools.data_types.zic_types import LIMIT_YEAR
from zictools.data_types.zic_types import MAX_YEAR
from zictools.data_types.zic_types import MIN_INSTANT
from zictools.data_types.zic_types import UNDEFINED_NAME_KEY


@dataclass(frozen=True)
class _Rule:
    """A Recurrence limited to the years [from_year, to_year]."""
    recurrence: Recurrence
    from_year: int
    to_year: int

    @property
    def save_millis(self) -> int:
        return self.recurrence.save_millis

    @property
    def name_key(self) -> str:
        return self.recurrence.name_key

    def next(
        self,
        instant: int,
        standard_offset: int,
        save_millis: int,
    ) -> int:
        """Return the next occurrence after 'instant', or 'instant' if there
        is none within the years of the rule.
        """
        wall_offset = standard_offset + save_millis
        test_instant = instant
        if year_of(instant + wall_offset) < self.from_year:
            # Back off 1 ms, in case the first occurrence is exactly at the
            # start of from_year.
            test_instant = start_of_year(self.from_year) - wall_offset - 1

        next_millis = self.recurrence.next(
            test_instant, standard_offset, save_millis)
        if next_millis > instant:
            if year_of(next_millis + wall_offset) > self.to_year:
                return instant
        return next_millis


class _Segment:
    """The rules in effect between two cutovers."""

    def __init__(self) -> None:
        self.standard_offset = 0
        self.rules: List[_Rule] = []
        self.initial_name_key: Optional[str] = None
        self.initial_save_millis = 0
        self.upper_year: Optional[int] = None
        self.upper_of_year: Optional[OfYear] = None

    def copy(self) -> '_Segment':
        segment = _Segment()
        segment.standard_offset = self.standard_offset
        segment.rules = list(self.rules)
        segment.initial_name_key = self.initial_name_key
        segment.initial_save_millis = self.initial_save_millis
        segment.upper_year = self.upper_year
        segment.upper_of_year = self.upper_of_year
        return segment

    @property
    def is_empty(self) -> bool:
        return self.initial_name_key is None and not self.rules

    def first_transition(self, first_millis: int) -> Optional[Transition]:
        """Return the state at the start of this segment. Without a fixed
        SAVE, it is given by the latest rule at or before 'first_millis', or
        else by the first rule without SAVE.
        """
        if self.initial_name_key is not None:
            return Transition(
                first_millis,
                self.initial_name_key,
                self.standard_offset + self.initial_save_millis,
                self.standard_offset,
            )

        saved_rules = list(self.rules)
        millis = MIN_INSTANT
        save_millis = 0
        first: Optional[Transition] = None
        try:
            while True:
                next_transition = self.next_transition(millis, save_millis)
                if next_transition is None:
                    break
                millis = next_transition.millis
                if millis == first_millis:
                    first = _moved(next_transition, first_millis)
                    break
                if millis > first_millis:
                    if first is None:
                        first = self._default_transition(
                            saved_rules, first_millis)
                    if first is None:
                        first = Transition(
                            first_millis,
                            next_transition.name_key,
                            self.standard_offset,
                            self.standard_offset,
                        )
                    break
                first = _moved(next_transition, first_millis)
                save_millis = next_transition.save_millis
        finally:
            self.rules = saved_rules

        if first is None:
            first = self._default_transition(self.rules, first_millis)
        return first

    def _default_transition(
        self,
        rules: List[_Rule],
        first_millis: int,
    ) -> Optional[Transition]:
        """Return the initial state given by the first rule without SAVE."""
        for rule in rules:
            if rule.save_millis == 0:
                return Transition(
                    first_millis,
                    rule.name_key,
                    self.standard_offset,
                    self.standard_offset,
                )
        return None

    def next_transition(
        self,
        instant: int,
        save_millis: int,
    ) -> Optional[Transition]:
        """Return the first rule transition after 'instant', or None if there
        is none before the cutover of this segment or LIMIT_YEAR. Rules which
        have no occurrence after 'instant' are removed.
        """
        next_rule: Optional[_Rule] = None
        next_millis = 0
        remaining = []
        for rule in self.rules:
            millis = rule.next(instant, self.standard_offset, save_millis)
            if millis <= instant:
                continue
            remaining.append(rule)
            # On a tie, the rule added later wins.
            if next_rule is None or millis <= next_millis:
                next_rule = rule
                next_millis = millis
        self.rules = remaining

        if next_rule is None:
            return None
        if year_of(next_millis) >= LIMIT_YEAR:
            return None
        upper_millis = self.upper_limit(save_millis)
        if upper_millis is not None and next_millis >= upper_millis:
            return None
        return Transition(
            next_millis,
            next_rule.name_key,
            self.standard_offset + next_rule.save_millis,
            self.standard_offset,
        )

    def upper_limit(self, save_millis: int) -> Optional[int]:
        """Return the instant of the cutover, or None for +Infinity."""
        if self.upper_year is None or self.upper_of_year is None:
            return None
        return self.upper_of_year.set_instant(
            self.upper_year, self.standard_offset, save_millis)

    def build_tail(self) -> Optional[DstTail]:
        """Return a DstTail if exactly two rules which recur forever remain,
        and they switch between different states.
        """
        if len(self.rules) != 2:
            return None
        start, end = self.rules
        if start.to_year != MAX_YEAR or end.to_year != MAX_YEAR:
            return None
        if (
            start.save_millis == end.save_millis
            and start.name_key == end.name_key
        ):
            return None
        return DstTail(self.standard_offset, start.recurrence, end.recurrence)


def _moved(transition: Transition, millis: int) -> Transition:
    return Transition(
        millis,
        transition.name_key,
        transition.wall_offset,
        transition.standard_offset,
    )


def _add_transition(transitions: List[Transition], tr: Transition) -> bool:
    """Append 'tr' unless it changes nothing. A transition at the same local
    time as the last one replaces it. Return True if 'tr' was added.
    """
    if not transitions:
        transitions.append(tr)
        return True
    last = transitions[-1]
    if not tr.is_transition_from(last):
        return False

    offset_for_last = 0
    if len(transitions) >= 2:
        offset_for_last = transitions[-2].wall_offset
    last_local = last.millis + offset_for_last
    new_local = tr.millis + last.wall_offset
    if new_local != last_local:
        transitions.append(tr)
        return True

    transitions.pop()
    return _add_transition(transitions, tr)


class DateTimeZoneBuilder:
    """Implements the ZoneBuilder interface. Calls which configure a segment
    apply to the segment opened by the most recent add_cutover().
    """

    def __init__(self) -> None:
        self.segments: List[_Segment] = []

    def _last_segment(self) -> _Segment:
        if not self.segments:
            self.segments.append(_Segment())
        return self.segments[-1]

    def set_standard_offset(self, standard_offset: int) -> None:
        self._last_segment().standard_offset = standard_offset

    def set_fixed_savings(self, name_key: str, save_millis: int) -> None:
        segment = self._last_segment()
        segment.initial_name_key = name_key
        segment.initial_save_millis = save_millis

    def add_recurring_savings(
        self,
        name_key: str,
        save_millis: int,
        from_year: int,
        to_year: int,
        mode: str,
        month_of_year: int,
        day_of_month: int,
        day_of_week: int,
        advance_day_of_week: bool,
        millis_of_day: int,
    ) -> None:
        if from_year > to_year:
            return
        of_year = OfYear(
            mode,
            month_of_year,
            day_of_month,
            day_of_week,
            advance_day_of_week,
            millis_of_day,
        )
        recurrence = Recurrence(of_year, name_key, save_millis)
        self._last_segment().rules.append(
            _Rule(recurrence, from_year, to_year))

    def add_cutover(
        self,
        year: int,
        mode: str,
        month_of_year: int,
        day_of_month: int,
        day_of_week: int,
        advance_day_of_week: bool,
        millis_of_day: int,
    ) -> None:
        if self.segments:
            segment = self.segments[-1]
            segment.upper_year = year
            segment.upper_of_year = OfYear(
                mode,
                month_of_year,
                day_of_month,
                day_of_week,
                advance_day_of_week,
                millis_of_day,
            )
        self.segments.append(_Segment())

    def to_time_zone(self, zone_id: str) -> DateTimeZone:
        """Calculate the timeline. The builder is not modified, so this can
        be called more than once.
        """
        transitions: List[Transition] = []
        tail: Optional[DstTail] = None
        millis = MIN_INSTANT
        save_millis = 0
        last_index = len(self.segments) - 1

        for index, original in enumerate(self.segments):
            segment = original.copy()
            if segment.is_empty:
                # The state after a final cutover is not defined by the
                # source data, so the previous offsets continue.
                if transitions and millis > transitions[-1].millis:
                    last = transitions[-1]
                    _add_transition(transitions, Transition(
                        millis,
                        UNDEFINED_NAME_KEY,
                        last.wall_offset,
                        last.standard_offset,
                    ))
                continue

            first = segment.first_transition(millis)
            if first is None:
                continue
            _add_transition(transitions, first)
            millis = first.millis
            save_millis = first.save_millis

            while True:
                next_transition = segment.next_transition(millis, save_millis)
                if next_transition is None:
                    break
                added = _add_transition(transitions, next_transition)
                if added and tail is not None:
                    # One transition past the start of the tail joins the
                    # two correctly.
                    break
                millis = next_transition.millis
                save_millis = next_transition.save_millis
                if tail is None and index == last_index:
                    tail = segment.build_tail()

            upper_millis = segment.upper_limit(save_millis)
            if upper_millis is None:
                break
            millis = upper_millis

        if not transitions:
            logging.debug("Zone '%s' has no transitions, using UTC", zone_id)
            transitions.append(Transition(MIN_INSTANT, 'UTC', 0, 0))
        return DateTimeZone(zone_id, tuple(transitions), tail)

    def write_to(self, zone_id: str, out: BinaryIO) -> None:
        """Write the binary encoding of the zone to 'out'."""
        out.write(encode_zone(self.to_time_zone(zone_id)))


def read_from(stream: BinaryIO, zone_id: str) -> DateTimeZone:
    """Read a zone written by DateTimeZoneBuilder.write_to()."""
    return decode_zone(stream.read(), zone_id)
