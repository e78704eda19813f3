# Copyright 2019 Brian T. Park
#
# MIT License

from dataclasses import dataclass

from zictools.builder.chrono import civil_from_days
from zictools.builder.chrono import days_from_civil
from zictools.builder.chrono import days_in_month
from zictools.builder.chrono import iso_day_of_week
from zictools.data_types.zic_types import MILLIS_PER_DAY


@dataclass(frozen=True)
class OfYear:
    """Instant arithmetic for a recurring point in the year. The 'mode'
    selects the clock of millis_of_day: 'w' (wall), 's' (standard) or 'u'
    (UTC). A day_of_month < 0 counts back from the end of the month (-1 is the
    last day). A non-zero day_of_week moves the date to that weekday, forward
    if advance_day_of_week is set, backward otherwise.
    """
    mode: str
    month_of_year: int
    day_of_month: int
    day_of_week: int
    advance_day_of_week: bool
    millis_of_day: int

    def offset(self, standard_offset: int, save_millis: int) -> int:
        if self.mode == 'w':
            return standard_offset + save_millis
        if self.mode == 's':
            return standard_offset
        return 0

    def local_millis(self, year: int) -> int:
        """Return the local epoch milliseconds of this point in 'year'.
        Weekday shifts can move it into the previous or next month.
        """
        month = self.month_of_year
        dim = days_in_month(year, month)
        if self.day_of_month < 0:
            day = dim + 1 + self.day_of_month
        else:
            day = min(self.day_of_month, dim)
        days = days_from_civil(year, month, day)

        if self.day_of_week != 0:
            shift = self.day_of_week - iso_day_of_week(days)
            if self.advance_day_of_week:
                if shift < 0:
                    shift += 7
            elif shift > 0:
                shift -= 7
            days += shift

        return days * MILLIS_PER_DAY + self.millis_of_day

    def set_instant(
        self,
        year: int,
        standard_offset: int,
        save_millis: int,
    ) -> int:
        """Return the UTC instant of this point in the given year."""
        return (
            self.local_millis(year)
            - self.offset(standard_offset, save_millis)
        )

    def next(
        self,
        instant: int,
        standard_offset: int,
        save_millis: int,
    ) -> int:
        """Return the first occurrence strictly after 'instant'."""
        offset = self.offset(standard_offset, save_millis)
        local = instant + offset
        year = civil_from_days(local // MILLIS_PER_DAY)[0]
        candidate = self.local_millis(year)
        if candidate <= local:
            candidate = self.local_millis(year + 1)
        return candidate - offset

    def previous(
        self,
        instant: int,
        standard_offset: int,
        save_millis: int,
    ) -> int:
        """Return the last occurrence strictly before 'instant'."""
        offset = self.offset(standard_offset, save_millis)
        local = instant + offset
        year = civil_from_days(local // MILLIS_PER_DAY)[0]
        candidate = self.local_millis(year)
        if candidate >= local:
            candidate = self.local_millis(year - 1)
        return candidate - offset


@dataclass(frozen=True)
class Recurrence:
    """An OfYear with the name key and SAVE that it switches to."""
    of_year: OfYear
    name_key: str
    save_millis: int

    def next(
        self,
        instant: int,
        standard_offset: int,
        save_millis: int,
    ) -> int:
        return self.of_year.next(instant, standard_offset, save_millis)

    def previous(
        self,
        instant: int,
        standard_offset: int,
        save_millis: int,
    ) -> int:
        return self.of_year.previous(instant, standard_offset, save_millis)
