# Copyright 2020 Brian T. Park
#
# MIT License

"""
Generate the 'ZoneInfoMap' index file, which maps every zone id and alias id
to the id of the zone file that holds its data. All integers are big endian:

    u16 pool_size
    pool_size * {u16 byte_length, byte_length * UTF-8 bytes}
    u16 mapping_count
    mapping_count * {u16 alias_index, u16 target_index}
"""

import logging
from collections import OrderedDict
from typing import BinaryIO
from typing import List
from typing import Mapping
from typing import Tuple

from zictools.data_types.zic_types import MAX_POOL_SIZE
from zictools.data_types.zic_types import TimeZone
from zictools.data_types.zic_types import add_string
from zictools.generator.byteutils import ByteReader
from zictools.generator.byteutils import write_u16
from zictools.generator.byteutils import write_utf

# List of (alias, target) pairs decoded from a ZoneInfoMap.
ZoneInfoPairs = List[Tuple[str, str]]


def sort_zone_info_map(
    zimap: Mapping[str, TimeZone],
) -> 'OrderedDict[str, TimeZone]':
    """Return the entries of 'zimap' in case-insensitive order of the ids.
    Ids which differ only in case collapse into one entry: the spelling of
    the first id (in case-sensitive order) is kept, with the value of the
    last one.
    """
    spellings: 'OrderedDict[str, str]' = OrderedDict()
    values = {}
    for zone_id in sorted(zimap):
        folded = zone_id.lower()
        if folded in spellings:
            logging.warning(
                "Zone id '%s' collides with '%s', replacing its value",
                zone_id, spellings[folded])
        else:
            spellings[folded] = zone_id
        values[folded] = zimap[zone_id]

    sorted_map: 'OrderedDict[str, TimeZone]' = OrderedDict()
    for folded in sorted(spellings):
        sorted_map[spellings[folded]] = values[folded]
    return sorted_map


def encode_zone_info_map(zimap: Mapping[str, TimeZone]) -> bytes:
    """Encode the entries of 'zimap' in its iteration order. Each entry maps
    the key to the id of its TimeZone. Raises OverflowError if there are more
    than MAX_POOL_SIZE unique ids.
    """
    pool: 'OrderedDict[str, int]' = OrderedDict()
    indexes: List[Tuple[int, int]] = []
    for alias, zone in zimap.items():
        alias_index = _add_to_pool(pool, alias)
        target_index = _add_to_pool(pool, zone.id)
        indexes.append((alias_index, target_index))

    data = bytearray()
    write_u16(data, len(pool))
    for name in pool:
        write_utf(data, name)
    write_u16(data, len(indexes))
    for alias_index, target_index in indexes:
        write_u16(data, alias_index)
        write_u16(data, target_index)
    return bytes(data)


def _add_to_pool(pool: 'OrderedDict[str, int]', name: str) -> int:
    if name not in pool and len(pool) >= MAX_POOL_SIZE:
        raise OverflowError(
            f'Too many unique ids in ZoneInfoMap: limit {MAX_POOL_SIZE}')
    return add_string(pool, name)


def write_zone_info_map(out: BinaryIO, zimap: Mapping[str, TimeZone]) -> None:
    """Write the ZoneInfoMap of 'zimap' to 'out'. The 'zimap' is expected to
    be sorted by sort_zone_info_map().
    """
    out.write(encode_zone_info_map(zimap))


def read_zone_info_map(data: bytes) -> ZoneInfoPairs:
    """Decode a ZoneInfoMap into its (alias, target) pairs, in file order."""
    reader = ByteReader(data)
    pool = [reader.read_utf() for _ in range(reader.read_u16())]
    pairs: ZoneInfoPairs = []
    for _ in range(reader.read_u16()):
        alias_index = reader.read_u16()
        target_index = reader.read_u16()
        if alias_index >= len(pool) or target_index >= len(pool):
            raise ValueError(
                f'Invalid pool index ({alias_index}, {target_index}) '
                f'in pool of {len(pool)}')
        pairs.append((pool[alias_index], pool[target_index]))
    return pairs
