# Copyright 2018 Brian T. Park
#
# MIT License

import datetime
from dataclasses import dataclass
from typing import Deque
from typing import Tuple

from zictools.data_types.zic_types import MILLIS_PER_DAY
from zictools.data_types.zic_types import ZoneBuilder
from zictools.extractor.keywords import parse_day_of_week
from zictools.extractor.keywords import parse_month
from zictools.extractor.keywords import parse_time
from zictools.extractor.keywords import parse_zone_char

# Marker day_of_month for 'lastXxx'.
LAST_DAY_OF_MONTH = -1

# Millis of day used for '24:00' on Dec 31, to avoid rolling into a new year.
END_OF_YEAR_MILLIS = MILLIS_PER_DAY - 1


@dataclass(frozen=True)
class DateTimeOfYear:
    """A point in the year, given by the IN, ON and AT fields of a Rule, or by
    the month, day and time of the UNTIL field of a Zone:

    # Rule  NAME    FROM    TO    TYPE IN   ON      AT      SAVE    LETTER
    Rule    US      2007    max   -    Mar  Sun>=8  2:00    1:00    D

    The ON field is either an exact day of month (day_of_week == 0), the last
    given weekday of the month (day_of_month == -1), or the given weekday on or
    after (advance_day_of_week) or on or before the day of month.
    """
    month_of_year: int = 1  # 1-12
    day_of_month: int = 1  # 1-31, or -1 for 'lastXxx'
    day_of_week: int = 0  # 1=Monday, 7=Sunday, 0={exact dayOfMonth match}
    advance_day_of_week: bool = False  # True for 'Xxx>=nn'
    millis_of_day: int = 0
    zone_char: str = 'w'  # 'w', 's', 'u'

    @classmethod
    def parse(cls, tokens: Deque[str]) -> 'DateTimeOfYear':
        """Consume the month, day and time tokens (each optional, in that
        order) from the front of 'tokens'. No tokens means Jan 1 00:00 wall
        time.
        """
        day = 1
        day_of_week = 0
        advance = False
        millis = 0
        zone_char = 'w'

        if not tokens:
            return START_OF_YEAR

        month = parse_month(tokens.popleft())
        if tokens:
            day, day_of_week, advance = _parse_day(tokens.popleft())

            if tokens:
                # The time is a duration from 00:00, handled as a time of day,
                # so negative times and times after 24:00 are not supported.
                text = tokens.popleft()
                zone_char = parse_zone_char(text[-1])
                if text[-1].isalpha():
                    text = text[:-1]
                if text == '24:00':
                    if month == 12 and day == 31:
                        millis = END_OF_YEAR_MILLIS
                    else:
                        month, day, day_of_week, advance = _next_day(
                            month, day, day_of_week)
                else:
                    millis = parse_time(text)
                    if millis < 0 or millis >= MILLIS_PER_DAY:
                        raise ValueError(f'Unsupported time of day: {text}')

        return cls(
            month_of_year=month,
            day_of_month=day,
            day_of_week=day_of_week,
            advance_day_of_week=advance,
            millis_of_day=millis,
            zone_char=zone_char,
        )

    def add_recurring(
        self,
        builder: ZoneBuilder,
        name_key: str,
        save_millis: int,
        from_year: int,
        to_year: int,
    ) -> None:
        """Add a recurring savings rule to the builder."""
        builder.add_recurring_savings(
            name_key,
            save_millis,
            from_year,
            to_year,
            self.zone_char,
            self.month_of_year,
            self.day_of_month,
            self.day_of_week,
            self.advance_day_of_week,
            self.millis_of_day,
        )

    def add_cutover(self, builder: ZoneBuilder, year: int) -> None:
        """Add a cutover at this point of the given year to the builder."""
        builder.add_cutover(
            year,
            self.zone_char,
            self.month_of_year,
            self.day_of_month,
            self.day_of_week,
            self.advance_day_of_week,
            self.millis_of_day,
        )


# Jan 1, 00:00 wall time. Used when the UNTIL of a Zone holds only a year.
START_OF_YEAR = DateTimeOfYear()


def _parse_day(text: str) -> Tuple[int, int, bool]:
    """Parse the ON field into (day_of_month, day_of_week, advance). The field
    is one of 'nn', 'lastXxx', 'Xxx>=nn' or 'Xxx<=nn'.
    """
    if text.isdigit():
        return int(text), 0, False
    if text.lower().startswith('last'):
        return LAST_DAY_OF_MONTH, parse_day_of_week(text[4:]), False

    index = text.find('>=')
    if index > 0:
        return int(text[index + 2:]), parse_day_of_week(text[:index]), True
    index = text.find('<=')
    if index > 0:
        return int(text[index + 2:]), parse_day_of_week(text[:index]), False
    raise ValueError(f'Invalid day of month: {text}')


def _next_day(
    month: int,
    day: int,
    day_of_week: int,
) -> Tuple[int, int, int, bool]:
    """Turn '24:00' of the given day into 00:00 of the following day. The year
    is irrelevant except for Feb 29, so a non-leap year is used.
    'lastXxx 24:00' becomes 'Yyy<=1' of the next month, where Yyy is the day
    after Xxx.
    """
    if day == LAST_DAY_OF_MONTH:
        date = datetime.date(2001, month % 12 + 1, 1)
    else:
        date = datetime.date(2001, month, day) + datetime.timedelta(days=1)
    advance = day != LAST_DAY_OF_MONTH and day_of_week != 0
    if day_of_week != 0:
        day_of_week = day_of_week % 7 + 1
    return date.month, date.day, day_of_week, advance
