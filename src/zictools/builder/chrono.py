# Copyright 2019 Brian T. Park
#
# MIT License

"""
Proleptic Gregorian calendar arithmetic on integer days and milliseconds since
the Unix epoch (1970-01-01). Unlike the datetime module, these work for any
year, including the -Infinity and +Infinity marker instants used by the
builder.

The days_from_civil() and civil_from_days() algorithms are from
http://howardhinnant.github.io/date_algorithms.html.
"""

from typing import Tuple

from zictools.data_types.zic_types import MILLIS_PER_DAY

DAYS_IN_MONTH = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]


def is_leap(year: int) -> bool:
    return (year % 4 == 0) and ((year % 100 != 0) or (year % 400) == 0)


def days_in_month(year: int, month: int) -> int:
    """Return the number of days in the given (year, month)."""
    days = DAYS_IN_MONTH[month - 1]
    if month == 2 and is_leap(year):
        days += 1
    return days


def days_from_civil(year: int, month: int, day: int) -> int:
    """Return the number of days since 1970-01-01 of the given date."""
    year -= month <= 2
    era = year // 400
    yoe = year - era * 400  # [0, 399]
    doy = (153 * (month + (-3 if month > 2 else 9)) + 2) // 5 + day - 1
    doe = yoe * 365 + yoe // 4 - yoe // 100 + doy  # [0, 146096]
    return era * 146097 + doe - 719468


def civil_from_days(days: int) -> Tuple[int, int, int]:
    """Return the (year, month, day) of the given days since 1970-01-01."""
    days += 719468
    era = days // 146097
    doe = days - era * 146097  # [0, 146096]
    yoe = (doe - doe // 1460 + doe // 36524 - doe // 146096) // 365
    doy = doe - (365 * yoe + yoe // 4 - yoe // 100)  # [0, 365]
    mp = (5 * doy + 2) // 153  # [0, 11], March is 0
    day = doy - (153 * mp + 2) // 5 + 1
    month = mp + 3 if mp < 10 else mp - 9
    year = yoe + era * 400 + (month <= 2)
    return (year, month, day)


def iso_day_of_week(days: int) -> int:
    """Return the ISO weekday (1=Monday, 7=Sunday) of the days since
    1970-01-01, which was a Thursday.
    """
    return (days + 3) % 7 + 1


def year_of(millis: int) -> int:
    """Return the UTC year of the given epoch milliseconds."""
    return civil_from_days(millis // MILLIS_PER_DAY)[0]


def start_of_year(year: int) -> int:
    """Return the epoch milliseconds of Jan 1, 00:00 of the given year."""
    return days_from_civil(year, 1, 1) * MILLIS_PER_DAY


def format_instant(millis: int) -> str:
    """Return the ISO 8601 UTC representation of the epoch milliseconds,
    e.g. '1980-01-01T00:00:00.000Z'.
    """
    days, millis_of_day = divmod(millis, MILLIS_PER_DAY)
    year, month, day = civil_from_days(days)
    seconds, millis = divmod(millis_of_day, 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return (
        f'{year:04}-{month:02}-{day:02}'
        f'T{hours:02}:{minutes:02}:{seconds:02}.{millis:03}Z'
    )
