# Copyright 2018 Brian T. Park
#
# MIT License

from dataclasses import dataclass
from typing import Deque
from typing import List
from typing import Mapping
from typing import Optional

from zictools.data_types.zic_types import MissingRuleSetError
from zictools.data_types.zic_types import ZoneBuilder
from zictools.extractor.keywords import parse_optional
from zictools.extractor.keywords import parse_time
from zictools.extractor.keywords import try_parse_time
from zictools.model.recurrence import DateTimeOfYear
from zictools.model.recurrence import START_OF_YEAR
from zictools.model.rules import RuleSet
from zictools.model.rules import format_offset


@dataclass(frozen=True)
class ZoneSegment:
    """Represents one 'ZONE' line, or one continuation line, in a tz database
    file:

    # Zone  NAME             STDOFF    RULES  FORMAT  [UNTIL]
    Zone    America/Chicago  -5:50:36  -      LMT     1883 Nov 18 12:09:24
                             -6:00     US     C%sT    1920
                             ...
                             -6:00     US     C%sT
    """
    offset_millis: int  # STD offset from UTC/GMT
    rules: Optional[str]  # name of a RuleSet, a fixed SAVE, or None if '-'
    format: str  # abbreviation format (e.g. P%sT, E%sT, GMT/BST)
    until_year: Optional[int]  # None for the last, open-ended segment
    until: DateTimeOfYear

    @classmethod
    def parse(cls, tokens: Deque[str]) -> 'ZoneSegment':
        """Create a segment from the STDOFF, RULES, FORMAT and UNTIL tokens."""
        if len(tokens) < 3:
            raise ValueError(
                'Attempting to create a Zone from an incomplete line')
        offset_millis = parse_time(tokens.popleft())
        rules = parse_optional(tokens.popleft())
        name_format = tokens.popleft()

        until_year: Optional[int] = None
        until = START_OF_YEAR
        if tokens:
            until_year = int(tokens.popleft())
            if tokens:
                until = DateTimeOfYear.parse(tokens)

        return cls(
            offset_millis=offset_millis,
            rules=rules,
            format=name_format,
            until_year=until_year,
            until=until,
        )

    @property
    def is_terminal(self) -> bool:
        return self.until_year is None


class Zone:
    """A named zone and its segments, in chronological order."""

    def __init__(self, name: str, segment: ZoneSegment):
        self.name = name
        self.segments: List[ZoneSegment] = [segment]

    @classmethod
    def parse(cls, tokens: Deque[str]) -> 'Zone':
        """Create a Zone from the tokens following the 'Zone' keyword."""
        name = tokens.popleft()
        return cls(name, ZoneSegment.parse(tokens))

    def chain(self, tokens: Deque[str]) -> None:
        """Append the segment of a continuation line."""
        self.segments.append(ZoneSegment.parse(tokens))

    def resolve(
        self,
        builder: ZoneBuilder,
        rule_sets: Mapping[str, RuleSet],
    ) -> None:
        """Add every segment of the zone to the builder, with a cutover at the
        UNTIL of each segment except the last.
        """
        for segment in self.segments:
            if segment.rules is None:
                _add_fixed_savings(builder, segment, 0)
            else:
                # The RULES field is either a fixed SAVE (e.g. '1:00') or the
                # name of a RuleSet.
                save_millis = try_parse_time(segment.rules)
                if save_millis is not None:
                    _add_fixed_savings(builder, segment, save_millis)
                else:
                    rule_set = rule_sets.get(segment.rules)
                    if rule_set is None:
                        raise MissingRuleSetError(
                            f"Zone '{self.name}': "
                            f"Rules not found: {segment.rules}")
                    rule_set.resolve(
                        builder, segment.offset_millis, segment.format)

            if segment.until_year is None:
                break
            segment.until.add_cutover(builder, segment.until_year)


def _add_fixed_savings(
    builder: ZoneBuilder,
    segment: ZoneSegment,
    save_millis: int,
) -> None:
    builder.set_standard_offset(segment.offset_millis)
    if segment.format == '%z':
        name_key = format_offset(segment.offset_millis + save_millis)
    else:
        name_key = segment.format
    builder.set_fixed_savings(name_key, save_millis)
