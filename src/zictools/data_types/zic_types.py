# Copyright 2020 Brian T. Park
#
# MIT License

from collections import OrderedDict
from typing import Optional
from typing_extensions import Protocol

"""
Data types created or consumed by various classes under the zictools package.
These allow typing checking to be performed using mypy. Also contains global
constants used by multiple packages.
"""

# -----------------------------------------------------------------------------
# Constants used by various modules.
# -----------------------------------------------------------------------------

# Marker year to indicate -Infinity year ('minimum' in the FROM or TO fields).
MIN_YEAR: int = 0

# Marker year to indicate +Infinity year ('maximum' in the FROM or TO fields).
MAX_YEAR: int = 9999

# FROM year of the synthetic anchor rule inserted before a RuleSet with
# negative SAVE values.
ANCHOR_YEAR: int = 1800

# The range of years [start, end] walked by the TransitionVerifier.
VERIFY_START_YEAR: int = 1850
VERIFY_END_YEAR: int = 2050

# Rule transitions are not precalculated on or after this year. Zones whose
# final rules are a recurring DST pair continue beyond it through a DstTail.
LIMIT_YEAR: int = 2100

# Marker instant for -Infinity, the start of the initial state of a timeline.
MIN_INSTANT: int = -(1 << 63)

MILLIS_PER_SECOND: int = 1000
MILLIS_PER_MINUTE: int = 60 * MILLIS_PER_SECOND
MILLIS_PER_HOUR: int = 60 * MILLIS_PER_MINUTE
MILLIS_PER_DAY: int = 24 * MILLIS_PER_HOUR

# Max number of strings in the string pool of the ZoneInfoMap. Indexes are
# written as 16-bit fields.
MAX_POOL_SIZE: int = 32767

# Links in this file are deprecated names, resolved as back links.
BACKWARD_FILE_NAME: str = 'backward'

# Name of the index file written into the output directory.
ZONE_INFO_MAP_FILE: str = 'ZoneInfoMap'

# Aliases always resolved as back links, repairing historical damage in the
# TZ database. Aliases in the 'Etc/' namespace are treated the same way.
FORCED_BACK_LINKS = frozenset(['US/Pacific-New', 'GMT'])
FORCED_BACK_LINK_PREFIX: str = 'Etc/'

# Name key of the state after a cutover which is not followed by another
# zone segment.
UNDEFINED_NAME_KEY: str = '??'


class MissingRuleSetError(KeyError):
    """A zone segment refers to a RULES name which was never declared."""


# -----------------------------------------------------------------------------
# Interfaces of the timeline builder and the time zones it produces.
# -----------------------------------------------------------------------------

class ZoneBuilder(Protocol):
    """Define an interface for the timeline builder that Rules, RuleSets and
    Zones are resolved into, for mypy type checking.
    """
    def set_standard_offset(self, standard_offset: int) -> None:
        ...

    def set_fixed_savings(self, name_key: str, save_millis: int) -> None:
        ...

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
        ...

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
        ...


class TimeZone(Protocol):
    """Define the queries used by the TransitionVerifier and the
    ZoneInfoMap writer on a compiled time zone.
    """
    @property
    def id(self) -> str:
        ...

    def get_offset(self, instant: int) -> int:
        ...

    def get_standard_offset(self, instant: int) -> int:
        ...

    def get_name_key(self, instant: int) -> Optional[str]:
        ...

    def next_transition(self, instant: int) -> int:
        ...

    def previous_transition(self, instant: int) -> int:
        ...


def add_string(strings: 'OrderedDict[str, int]', name: str) -> int:
    """Add the 'name' to the strings (must be an OrderedDict), and return its
    index into the array of strings. If the 'name' already exists, then return
    the previous index. Otherwise, create a new index, and return that.
    """
    if not isinstance(strings, OrderedDict):
        raise Exception('strings must be an OrderedDict')
    index = strings.get(name)
    if index is None:
        index = len(strings)
        strings[name] = index
    return index  # index will never be None
