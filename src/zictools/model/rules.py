# Copyright 2018 Brian T. Park
#
# MIT License

import logging
from dataclasses import dataclass
from typing import Deque
from typing import List
from typing import Optional

from zictools.data_types.zic_types import ANCHOR_YEAR
from zictools.data_types.zic_types import MILLIS_PER_SECOND
from zictools.data_types.zic_types import ZoneBuilder
from zictools.extractor.keywords import parse_optional
from zictools.extractor.keywords import parse_time
from zictools.extractor.keywords import parse_year
from zictools.model.recurrence import DateTimeOfYear


@dataclass(frozen=True)
class Rule:
    """Represents the 'RULE' lines in a tz database file. Those entries look
    like this:

    # Rule  NAME    FROM    TO    TYPE IN   ON      AT      SAVE    LETTER
    Rule    US      2007    max   -    Mar  Sun>=8  2:00    1:00    D
    Rule    US      2007    max   -    Nov  Sun>=1  2:00    0       S
    """
    name: str
    from_year: int
    to_year: int  # MAX_YEAR (9999) means 'max'
    type: Optional[str]  # ignored, retained for display
    date_time_of_year: DateTimeOfYear
    save_millis: int  # can be negative
    letter: Optional[str]  # None if '-'

    @classmethod
    def parse(cls, tokens: Deque[str]) -> 'Rule':
        """Create a Rule from the tokens following the 'Rule' keyword."""
        if len(tokens) < 6:
            raise ValueError(
                'Attempting to create a Rule from an incomplete line')
        name = tokens.popleft()
        from_year = parse_year(tokens.popleft(), 0)
        to_year = parse_year(tokens.popleft(), from_year)
        if to_year < from_year:
            raise ValueError(
                f"Rule '{name}': TO year {to_year} < FROM year {from_year}")
        rule_type = parse_optional(tokens.popleft())
        date_time_of_year = DateTimeOfYear.parse(tokens)
        if len(tokens) < 2:
            raise ValueError(f"Rule '{name}': missing SAVE or LETTER field")
        save_millis = parse_time(tokens.popleft())
        letter = parse_optional(tokens.popleft())
        return cls(
            name=name,
            from_year=from_year,
            to_year=to_year,
            type=rule_type,
            date_time_of_year=date_time_of_year,
            save_millis=save_millis,
            letter=letter,
        )

    @classmethod
    def create_anchor(cls, after: 'Rule') -> 'Rule':
        """Create a rule with no savings that spans from ANCHOR_YEAR until the
        start of the 'after' rule, so that the builder has a defined state
        before the real rules begin. The AT field is unimportant.
        """
        return cls(
            name=after.name,
            from_year=ANCHOR_YEAR,
            to_year=after.from_year,
            type=None,
            date_time_of_year=after.date_time_of_year,
            save_millis=0,
            letter=after.letter,
        )

    def add_recurring(
        self,
        builder: ZoneBuilder,
        negative_save: int,
        name_format: str,
        standard_offset: int = 0,
    ) -> None:
        """Add this rule to the builder, shifting its SAVE by the (negated)
        most negative SAVE of its RuleSet. The standard_offset is the
        shifted STDOFF of the Zone, used only by the '%z' format.
        """
        save_millis = self.save_millis - negative_save
        name_key = format_name(
            name_format, save_millis, self.letter, standard_offset)
        self.date_time_of_year.add_recurring(
            builder, name_key, save_millis, self.from_year, self.to_year)


class RuleSet:
    """All the Rules sharing the same NAME, resolved together."""

    def __init__(self, rule: Rule):
        self.rules: List[Rule] = [rule]

    @property
    def name(self) -> str:
        return self.rules[0].name

    @property
    def has_negative_save(self) -> bool:
        return any(rule.save_millis < 0 for rule in self.rules)

    def add_rule(self, rule: Rule) -> None:
        if rule.name != self.name:
            raise ValueError(
                f"Rule name mismatch: '{rule.name}' added to '{self.name}'")
        self.rules.append(rule)

    def resolve(
        self,
        builder: ZoneBuilder,
        standard_offset: int,
        name_format: str,
    ) -> None:
        """Add the recurring savings of every Rule to the builder.

        Some RuleSets (e.g. Eire, Namibia) place the winter time on the rule
        with the SAVE, using a negative SAVE. That puts the standard offset in
        the summer, and the wrong half of a 'STD/DST' format would be picked.
        So the most negative SAVE is subtracted from every Rule and added to
        the standard offset, and the two halves of the format are swapped.
        """
        negative_save = min(
            [0] + [rule.save_millis for rule in self.rules])

        if negative_save < 0:
            logging.info("Fixed negative save values for rule '%s'", self.name)
            standard_offset += negative_save
            index = name_format.find('/')
            if index > 0:
                name_format = (
                    name_format[index + 1:] + '/' + name_format[:index])
        builder.set_standard_offset(standard_offset)

        # A rule that predates all other rules, so that the shifted standard
        # state is in effect before the first real rule.
        if negative_save < 0:
            anchor = Rule.create_anchor(self.rules[0])
            anchor.add_recurring(
                builder, negative_save, name_format, standard_offset)

        for rule in self.rules:
            rule.add_recurring(
                builder, negative_save, name_format, standard_offset)


def format_name(
    name_format: str,
    save_millis: int,
    letter: Optional[str],
    standard_offset: int = 0,
) -> str:
    """Generate the abbreviation of a Rule from the FORMAT field of its Zone:

    * 'GMT/BST': the part before the slash if save_millis is 0, the part after
      it otherwise
    * 'E%sT': '%s' is replaced with the LETTER of the rule ('' if none)
    * '%z': the total UTC offset (standard_offset + save_millis) as '+hh',
      '+hhmm' or '+hhmmss', the shortest that does not lose information
    * anything else is used as is
    """
    index = name_format.find('/')
    if index > 0:
        if save_millis == 0:
            return name_format[:index]
        return name_format[index + 1:]

    index = name_format.find('%s')
    if index >= 0:
        return (
            name_format[:index]
            + (letter if letter is not None else '')
            + name_format[index + 2:]
        )

    if name_format == '%z':
        return format_offset(standard_offset + save_millis)

    return name_format


def format_offset(millis: int) -> str:
    """Render an offset from UTC as '+hh', '+hhmm' or '+hhmmss'."""
    sign = '-' if millis < 0 else '+'
    seconds = abs(millis) // MILLIS_PER_SECOND
    hours = seconds // 3600
    minutes = (seconds // 60) % 60
    secs = seconds % 60
    if secs == 0:
        if minutes == 0:
            return f'{sign}{hours:02}'
        return f'{sign}{hours:02}{minutes:02}'
    return f'{sign}{hours:02}{minutes:02}{secs:02}'
