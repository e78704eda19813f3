# Copyright 2019 Brian T. Park
#
# MIT License

"""
Compile the parsed Zones into DateTimeZones, verify them, resolve the Links,
and optionally write one binary file per zone plus the 'ZoneInfoMap' index
into the output directory.
"""

import logging
import os
from typing import Dict
from typing import Iterable
from typing import Optional

from zictools.builder.builder import DateTimeZoneBuilder
from zictools.builder.builder import read_from
from zictools.builder.datetimezone import DateTimeZone
from zictools.data_types.zic_types import ZONE_INFO_MAP_FILE
from zictools.extractor.extractor import Extractor
from zictools.extractor.extractor import LinkPairs
from zictools.generator.zoneinfomap import sort_zone_info_map
from zictools.generator.zoneinfomap import write_zone_info_map
from zictools.model.zones import Zone
from zictools.verifier.verifier import TransitionVerifier

# Map of zone id or alias id to its DateTimeZone.
ZoneMap = Dict[str, DateTimeZone]


class ZoneInfoCompiler:
    """A single compilation run. If 'output_dir' is None, the zones are
    compiled and verified but nothing is written.
    """

    def __init__(self, output_dir: Optional[str] = None):
        self.output_dir = output_dir
        self.extractor = Extractor()
        self.verifier = TransitionVerifier()
        self.zones_written = 0
        self.good_links_revived = 0
        self.back_links_resolved = 0
        self.links_dropped = 0

    def parse_files(self, sources: Iterable[str]) -> None:
        """Parse all the source files. This must happen before compile()
        resolves anything, since Zones can refer to Rules in any file.
        """
        for source in sources:
            self.extractor.parse_file(source)

    def compile(self, sources: Iterable[str] = ()) -> ZoneMap:
        """Parse the 'sources' (in addition to any already parsed), then
        compile everything. Return the map of every zone id and alias id to
        its DateTimeZone, sorted by id.
        """
        logging.info('======== Extracting TZ Data files')
        self.parse_files(sources)
        self.extractor.print_summary()

        if self.output_dir is not None:
            _prepare_output_dir(self.output_dir)

        logging.info('======== Compiling zones')
        zone_map: ZoneMap = {}
        source_map: Dict[str, Zone] = {}
        for zone in self.extractor.zones:
            builder = self._resolve(zone, zone.name)
            tz = builder.to_time_zone(zone.name)
            if self.verifier.verify(tz, zone.name):
                zone_map[tz.id] = tz
                source_map[tz.id] = zone
                self._write_zone(builder, tz)

        logging.info('======== Resolving links')
        self._revive_good_links(
            self.extractor.good_links, source_map, zone_map)
        self._resolve_back_links(self.extractor.back_links, zone_map)

        if self.output_dir is not None:
            logging.info('======== Writing ZoneInfoMap')
            path = os.path.join(self.output_dir, ZONE_INFO_MAP_FILE)
            with open(path, 'wb') as f:
                write_zone_info_map(f, sort_zone_info_map(zone_map))

        return dict(sorted(zone_map.items()))

    def _resolve(self, zone: Zone, zone_id: str) -> DateTimeZoneBuilder:
        builder = DateTimeZoneBuilder()
        try:
            zone.resolve(builder, self.extractor.rule_sets)
        except Exception:
            logging.info(f'*** Error processing {zone_id}')
            raise
        return builder

    def _revive_good_links(
        self,
        good_links: LinkPairs,
        source_map: Dict[str, Zone],
        zone_map: ZoneMap,
    ) -> None:
        """Compile each good link alias as an independent zone, from the
        source Zone of its target.
        """
        for target, alias in good_links:
            zone = source_map.get(target)
            if zone is None:
                self.links_dropped += 1
                logging.warning(
                    "Cannot find source zone '%s' to link alias '%s' to",
                    target, alias)
                continue

            builder = self._resolve(zone, alias)
            revived = builder.to_time_zone(alias)
            if self.verifier.verify(revived, alias):
                zone_map[revived.id] = revived
                self._write_zone(builder, revived)
                self.good_links_revived += 1
                logging.debug('Good link: %s -> %s revived', alias, target)
            else:
                self.links_dropped += 1

    def _resolve_back_links(
        self,
        back_links: LinkPairs,
        zone_map: ZoneMap,
    ) -> None:
        """Map each back link alias to the DateTimeZone of its target. A
        target can itself be an alias, so passes are repeated until one
        resolves nothing more.
        """
        pending = list(back_links)
        while pending:
            unresolved: LinkPairs = []
            for target, alias in pending:
                tz = zone_map.get(target)
                if tz is None:
                    unresolved.append((target, alias))
                    continue
                zone_map[alias] = tz
                self.back_links_resolved += 1
                logging.debug('Back link: %s -> %s', alias, tz.id)
            if len(unresolved) == len(pending):
                break
            pending = unresolved

        for target, alias in pending:
            self.links_dropped += 1
            logging.warning(
                "Cannot find time zone '%s' to link alias '%s' to",
                target, alias)

    def _write_zone(
        self,
        builder: DateTimeZoneBuilder,
        tz: DateTimeZone,
    ) -> None:
        """Write the zone file, then read it back to check the encoding."""
        if self.output_dir is None:
            return
        logging.debug('Writing %s', tz.id)
        path = os.path.join(self.output_dir, tz.id)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as f:
            builder.write_to(tz.id, f)
        self.zones_written += 1

        with open(path, 'rb') as f:
            reread = read_from(f, tz.id)
        if reread != tz:
            logging.error(
                '*e* Error in %s: Did not read properly from file', tz.id)

    def print_summary(self) -> None:
        self.verifier.print_summary()
        logging.info(
            f'Summary: Links: revived={self.good_links_revived}'
            f'; aliased={self.back_links_resolved}'
            f'; dropped={self.links_dropped}')
        logging.info(f'Summary: Zone files written: {self.zones_written}')


def _prepare_output_dir(output_dir: str) -> None:
    """Create the output directory if needed. Raise OSError if it cannot be
    used.
    """
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)
    if not os.path.isdir(output_dir):
        raise NotADirectoryError(
            f'Destination is not a directory: {output_dir}')
