# Copyright 2018 Brian T. Park
#
# MIT License

"""
Parse the raw TZ Database files into the internal Rule, RuleSet and Zone
records, and the 'good' and 'back' Link pairs.

The lines of a TZ Database file look like this:

# Rule  NAME    FROM    TO    TYPE IN   ON      AT      SAVE    LETTER
Rule    US      2007    max   -    Mar  Sun>=8  2:00    1:00    D

# Zone  NAME                STDOFF      RULES   FORMAT  [UNTIL]
Zone    America/Chicago     -5:50:36    -       LMT     1883 Nov 18 12:09:24
                            -6:00       US      C%sT

# Link  TARGET              LINK-NAME
Link    America/Chicago     US/Central
"""

import logging
import os
from collections import deque
from typing import Dict
from typing import Iterable
from typing import List
from typing import Optional
from typing import Tuple

from zictools.data_types.zic_types import BACKWARD_FILE_NAME
from zictools.data_types.zic_types import FORCED_BACK_LINKS
from zictools.data_types.zic_types import FORCED_BACK_LINK_PREFIX
from zictools.extractor.keywords import LINK_LOOKUP
from zictools.extractor.keywords import RULE_LOOKUP
from zictools.extractor.keywords import ZONE_LOOKUP
from zictools.model.rules import Rule
from zictools.model.rules import RuleSet
from zictools.model.zones import Zone

# List of (target, alias) pairs.
LinkPairs = List[Tuple[str, str]]


class Extractor:
    """Accumulates the Rules, Zones and Links of one or more TZ Database files.
    All files must be parsed before any zone is resolved, because a Zone can
    refer to Rules defined in a later file.
    """

    def __init__(self) -> None:
        self.rule_sets: Dict[str, RuleSet] = {}
        self.zones: List[Zone] = []
        self.good_links: LinkPairs = []  # revived as independent zones
        self.back_links: LinkPairs = []  # aliases of compiled zones
        self.unknown_lines = 0

    def parse_file(self, filename: str) -> None:
        """Parse the given file. Links in the 'backward' file are deprecated
        names, which are always resolved as back links.
        """
        backward = os.path.basename(filename) == BACKWARD_FILE_NAME
        logging.info('Processing %s', filename)
        with open(filename, 'r', encoding='utf-8') as f:
            self.parse_data_file(f, backward)

    def parse_data_file(self, lines: Iterable[str], backward: bool) -> None:
        zone: Optional[Zone] = None
        for line_number, line in enumerate(lines, start=1):
            try:
                zone = self._parse_line(line, zone, backward)
            except ValueError:
                logging.error(
                    'Error parsing line %d: %s', line_number, line.rstrip())
                raise

        if zone is not None:
            self.zones.append(zone)

    def _parse_line(
        self,
        line: str,
        zone: Optional[Zone],
        backward: bool,
    ) -> Optional[Zone]:
        """Process a single line, and return the Zone which is still open for
        continuation lines, if any.
        """
        # Leading and trailing white space is ignored, and so are blank lines
        # and comment lines. Quoted fields are not supported.
        trimmed = line.strip()
        if not trimmed or trimmed.startswith('#'):
            return zone
        index = line.find('#')
        if index >= 0:
            line = line[:index]

        # Fields are separated by space, form feed, carriage return, newline,
        # tab or vertical tab.
        tokens = deque(line.split())

        if line[0].isspace() and tokens:
            if zone is None:
                logging.debug('Continuation without a Zone: %s', trimmed)
            else:
                zone.chain(tokens)
            return zone

        if zone is not None:
            self.zones.append(zone)
            zone = None

        if not tokens:
            return None

        keyword = tokens.popleft().lower()
        if keyword in RULE_LOOKUP:
            rule = Rule.parse(tokens)
            rule_set = self.rule_sets.get(rule.name)
            if rule_set is None:
                self.rule_sets[rule.name] = RuleSet(rule)
            else:
                rule_set.add_rule(rule)
        elif keyword in ZONE_LOOKUP:
            if len(tokens) < 4:
                raise ValueError(
                    'Attempting to create a Zone from an incomplete line')
            zone = Zone.parse(tokens)
        elif keyword in LINK_LOOKUP:
            if len(tokens) < 2:
                raise ValueError(
                    'Attempting to create a Link from an incomplete line')
            target = tokens.popleft()
            alias = tokens.popleft()
            if backward or is_forced_back_link(alias):
                self.back_links.append((target, alias))
            else:
                self.good_links.append((target, alias))
        else:
            self.unknown_lines += 1
            logging.warning('Unknown line: %s', trimmed)

        return zone

    def print_summary(self) -> None:
        rule_count = sum(len(rs.rules) for rs in self.rule_sets.values())
        logging.info(
            f'Summary: Rules: {rule_count}'
            f'; RuleSets: {len(self.rule_sets)}'
            f'; Zones: {len(self.zones)}')
        logging.info(
            f'Summary: Links: good={len(self.good_links)}'
            f'; back={len(self.back_links)}'
            f'; unknown lines={self.unknown_lines}')


def is_forced_back_link(alias: str) -> bool:
    """Some aliases in the regular files must be kept as back links, to repair
    historical damage to the TZ database.
    """
    return (
        alias in FORCED_BACK_LINKS
        or alias.startswith(FORCED_BACK_LINK_PREFIX)
    )
