# Copyright 2018 Brian T. Park
#
# MIT License

"""
Keyword lookup tables and the field parsers shared by the Rule, Zone and Link
records of the TZ database files.

Keywords (rule, zone, link, month and weekday names, the minimum, maximum and
only year markers) are case insensitive and can be abbreviated by dropping all
but an initial prefix, as long as the abbreviation stays unambiguous. Each
lookup table contains every accepted prefix of a keyword, down to its shortest
unambiguous form.
"""

import re
from typing import Dict
from typing import Iterable
from typing import Optional
from typing import Set
from typing import Tuple

from zictools.data_types.zic_types import MAX_YEAR
from zictools.data_types.zic_types import MIN_YEAR
from zictools.data_types.zic_types import MILLIS_PER_HOUR
from zictools.data_types.zic_types import MILLIS_PER_MINUTE
from zictools.data_types.zic_types import MILLIS_PER_SECOND


def expand(whole: str, shortest: str) -> Set[str]:
    """Return the set of prefixes of 'whole', from the full word down to
    'shortest'. For example, expand('link', 'l') returns
    {'link', 'lin', 'li', 'l'}.
    """
    if not whole.startswith(shortest):
        raise ValueError(f"'{shortest}' is not a prefix of '{whole}'")
    return {whole[:n] for n in range(len(shortest), len(whole) + 1)}


def _create_lookup(entries: Iterable[Tuple[str, str]]) -> Dict[str, int]:
    """Map every accepted prefix of each keyword to its 1-based position."""
    lookup: Dict[str, int] = {}
    for index, (whole, shortest) in enumerate(entries, start=1):
        for code in expand(whole, shortest):
            lookup[code] = index
    return lookup


RULE_LOOKUP = expand('rule', 'r')
ZONE_LOOKUP = expand('zone', 'z')
LINK_LOOKUP = expand('link', 'l')
MIN_YEAR_LOOKUP = expand('minimum', 'mi')
MAX_YEAR_LOOKUP = expand('maximum', 'ma')
ONLY_YEAR_LOOKUP = expand('only', 'o')

MONTH_LOOKUP = _create_lookup([
    ('january', 'ja'),
    ('february', 'f'),
    ('march', 'mar'),
    ('april', 'ap'),
    ('may', 'may'),
    ('june', 'jun'),
    ('july', 'jul'),
    ('august', 'au'),
    ('september', 's'),
    ('october', 'o'),
    ('november', 'n'),
    ('december', 'd'),
])

# 1=Monday, 7=Sunday
DOW_LOOKUP = _create_lookup([
    ('monday', 'm'),
    ('tuesday', 'tu'),
    ('wednesday', 'w'),
    ('thursday', 'th'),
    ('friday', 'f'),
    ('saturday', 'sa'),
    ('sunday', 'su'),
])

# [-]hh[:mm[:ss[.fff]]]
_TIME_PATTERN = re.compile(r'(-)?(\d+)(?::(\d+)(?::(\d+)(?:\.(\d+))?)?)?')


def parse_year(text: str, default: int) -> int:
    """Parse the FROM or TO field of a Rule. The 'only' keyword returns the
    given 'default' (i.e. the FROM year).
    """
    lower = text.lower()
    if lower in MIN_YEAR_LOOKUP:
        return MIN_YEAR
    if lower in MAX_YEAR_LOOKUP:
        return MAX_YEAR
    if lower in ONLY_YEAR_LOOKUP:
        return default
    return int(text)


def parse_month(text: str) -> int:
    """Return the month index (1-12) of the (possibly abbreviated) name."""
    value = MONTH_LOOKUP.get(text.lower())
    if value is None:
        raise ValueError(f'Unknown month: {text}')
    return value


def parse_day_of_week(text: str) -> int:
    """Return the ISO weekday (1=Monday, 7=Sunday) of the (possibly
    abbreviated) name.
    """
    value = DOW_LOOKUP.get(text.lower())
    if value is None:
        raise ValueError(f'Unknown day-of-week: {text}')
    return value


def parse_optional(text: str) -> Optional[str]:
    """A lone hyphen marks an empty field."""
    return None if text == '-' else text


def _match_to_millis(match: 're.Match[str]') -> int:
    sign, hours, minutes, seconds, fraction = match.groups()
    millis = int(hours) * MILLIS_PER_HOUR
    if minutes:
        millis += int(minutes) * MILLIS_PER_MINUTE
    if seconds:
        millis += int(seconds) * MILLIS_PER_SECOND
    if fraction:
        millis += int((fraction + '00')[:3])
    return -millis if sign else millis


def parse_time(text: str) -> int:
    """Parse a duration of the form [-]hh[:mm[:ss[.fff]]] into milliseconds.
    Trailing characters (e.g. the 'w', 's', 'u' suffix of an AT field) are
    ignored. A lone hyphen means zero.
    """
    if text == '-':
        return 0
    match = _TIME_PATTERN.match(text)
    if match is None:
        raise ValueError(f'Invalid time: {text}')
    return _match_to_millis(match)


def try_parse_time(text: str) -> Optional[int]:
    """Strict version of parse_time() which requires the whole field to be a
    duration. Returns None instead of raising if it is not. Used to tell apart
    a RULES field holding a fixed SAVE amount from one holding a rule name.
    """
    match = _TIME_PATTERN.fullmatch(text)
    if match is None:
        return None
    return _match_to_millis(match)


def parse_zone_char(c: str) -> str:
    """Return the reference clock selected by the suffix of an AT or UNTIL
    time: 's' (standard), 'u' (UTC, also written 'g' or 'z'), or 'w' (wall,
    also the default when there is no suffix).
    """
    c = c.lower()
    if c == 's':
        return 's'
    if c in ('u', 'g', 'z'):
        return 'u'
    return 'w'
