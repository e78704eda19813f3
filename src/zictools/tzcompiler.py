#!/usr/bin/env python3
#
# Copyright 2018 Brian T. Park
#
# MIT License.

"""
Compile the TZ Database source files given on the command line into one
binary file per zone, plus a 'ZoneInfoMap' index file, in the directory given
by `-dst`.

The compiler has a number of stages implemented by various helper classes:

* Extractor
    * Parse the raw TZDB files into Rule, RuleSet, Zone and Link records.
* DateTimeZoneBuilder
    * Resolve each Zone (with its RuleSets) into a DateTimeZone.
* TransitionVerifier
    * Check the transitions of each DateTimeZone. Zones which fail are
      excluded from the output.
* ZoneInfoMap generator
    * Write the index of every zone and alias id.

Flags:

* `-src {dir}`
    * Directory of the source files. Relative source paths are resolved
      against it.
* `-dst {dir}`
    * Directory where the zone files and ZoneInfoMap are written. If
      missing, the zones are compiled and verified, but nothing is written.
* `-verbose`
    * Log each link and each file written.
* `-?`
    * Print the usage.

Examples:

    $ zictools-compile -src tzdata -dst zoneinfo africa antarctica asia \\
        australasia europe northamerica southamerica etcetera backward
"""

import argparse
import logging
import os
from typing import List
from typing import NoReturn
from typing import Optional

from zictools.compiler import ZoneInfoCompiler


class UsageError(Exception):
    """The command line could not be parsed."""


class _ArgumentParser(argparse.ArgumentParser):
    """Raise UsageError instead of exiting the process on a bad flag."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def create_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog='zictools-compile',
        description='Compile TZ Database source files.',
        add_help=False,
    )
    parser.add_argument(
        '-src',
        help='Directory where the source files are read from',
        metavar='directory',
    )
    parser.add_argument(
        '-dst',
        help='Directory where the generated files are written to',
        metavar='directory',
    )
    parser.add_argument(
        '-verbose',
        help='Output verbosely (default false)',
        action='store_true',
    )
    parser.add_argument(
        '-?',
        help='Print this usage',
        dest='usage',
        action='store_true',
    )
    parser.add_argument(
        'sources',
        help='Source files',
        nargs='*',
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main driver for the TZ Database compiler.

    Usage:
        tzcompiler.py [-src dir] [-dst dir] [-verbose] [-?] files...
    """
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        print(f'Error: {e}')
        parser.print_help()
        return

    if args.usage or not args.sources:
        parser.print_help()
        return

    # Configure logging. This should normally be executed after the
    # parser.parse_args() because it allows us set the logging.level using a
    # flag.
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO)

    sources = [
        os.path.join(args.src, source) if args.src else source
        for source in args.sources
    ]

    logging.info('======== TZ Compiler settings')
    logging.info(f'Source dir: {args.src}')
    logging.info(f'Output dir: {args.dst}')
    logging.info(f'Sources: {args.sources}')

    compiler = ZoneInfoCompiler(output_dir=args.dst)
    compiler.compile(sources)
    compiler.print_summary()

    logging.info('======== Finished processing TZ Data files.')


if __name__ == '__main__':
    main()
