# Copyright 2019 Brian T. Park
#
# MIT License

"""
The time zone produced by the DateTimeZoneBuilder: a precalculated list of
Transitions, optionally followed by a DstTail which continues a recurring
pair of DST rules forever. Also contains the binary encoding of a zone, which
is the content of the per-zone files written by the compiler.
"""

from bisect import bisect_left
from bisect import bisect_right
from collections import OrderedDict
from dataclasses import dataclass
from dataclasses import field
from typing import List
from typing import Optional
from typing import Tuple

from zictools.builder.ofyear import OfYear
from zictools.builder.ofyear import Recurrence
from zictools.data_types.zic_types import MIN_INSTANT
from zictools.data_types.zic_types import add_string
from zictools.generator.byteutils import ByteReader
from zictools.generator.byteutils import write_i8
from zictools.generator.byteutils import write_i32
from zictools.generator.byteutils import write_i64
from zictools.generator.byteutils import write_u8
from zictools.generator.byteutils import write_u16
from zictools.generator.byteutils import write_u32
from zictools.generator.byteutils import write_utf


@dataclass(frozen=True)
class Transition:
    """The state of a zone starting at 'millis'."""
    millis: int
    name_key: str
    wall_offset: int
    standard_offset: int

    @property
    def save_millis(self) -> int:
        return self.wall_offset - self.standard_offset

    def is_transition_from(self, other: Optional['Transition']) -> bool:
        """Return True if this is a later and observably different state than
        'other'.
        """
        if other is None:
            return True
        return self.millis > other.millis and (
            self.wall_offset != other.wall_offset
            or self.standard_offset != other.standard_offset
            or self.name_key != other.name_key
        )


@dataclass(frozen=True)
class DstTail:
    """Alternate between the 'start' and 'end' Recurrences forever. Each
    recurrence is located using the SAVE of the other, which is the SAVE in
    effect just before it occurs.
    """
    standard_offset: int
    start: Recurrence
    end: Recurrence

    def find_matching(self, instant: int) -> Recurrence:
        """Return the Recurrence which is in effect at 'instant'."""
        start = self.start.next(
            instant, self.standard_offset, self.end.save_millis)
        end = self.end.next(
            instant, self.standard_offset, self.start.save_millis)
        return self.start if start > end else self.end

    def get_offset(self, instant: int) -> int:
        return self.standard_offset + self.find_matching(instant).save_millis

    def get_standard_offset(self, instant: int) -> int:
        return self.standard_offset

    def get_name_key(self, instant: int) -> str:
        return self.find_matching(instant).name_key

    def next_transition(self, instant: int) -> int:
        start = self.start.next(
            instant, self.standard_offset, self.end.save_millis)
        end = self.end.next(
            instant, self.standard_offset, self.start.save_millis)
        return min(start, end)

    def previous_transition(self, instant: int) -> int:
        # Transitions at 'instant' count as previous.
        instant += 1
        start = self.start.previous(
            instant, self.standard_offset, self.end.save_millis)
        end = self.end.previous(
            instant, self.standard_offset, self.start.save_millis)
        return max(start, end) - 1


@dataclass(frozen=True)
class DateTimeZone:
    """A compiled time zone. The first Transition normally starts at
    MIN_INSTANT and holds the initial state. Queries after the last
    Transition are answered by the 'tail' if there is one, otherwise the last
    state continues forever.
    """
    id: str
    transitions: Tuple[Transition, ...]
    tail: Optional[DstTail] = None
    _millis: List[int] = field(
        init=False, repr=False, compare=False, default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, '_millis', [t.millis for t in self.transitions])

    def _find(self, instant: int) -> Optional[Transition]:
        """Return the Transition in effect at 'instant', or None if 'instant'
        precedes the first Transition.
        """
        i = bisect_right(self._millis, instant) - 1
        return self.transitions[i] if i >= 0 else None

    def _after_last(self, instant: int) -> bool:
        return (
            self.tail is not None
            and (not self._millis or instant > self._millis[-1])
        )

    def get_offset(self, instant: int) -> int:
        if self._after_last(instant):
            assert self.tail is not None
            return self.tail.get_offset(instant)
        transition = self._find(instant)
        return 0 if transition is None else transition.wall_offset

    def get_standard_offset(self, instant: int) -> int:
        if self._after_last(instant):
            assert self.tail is not None
            return self.tail.get_standard_offset(instant)
        transition = self._find(instant)
        return 0 if transition is None else transition.standard_offset

    def get_name_key(self, instant: int) -> Optional[str]:
        if self._after_last(instant):
            assert self.tail is not None
            return self.tail.get_name_key(instant)
        transition = self._find(instant)
        return 'UTC' if transition is None else transition.name_key

    def next_transition(self, instant: int) -> int:
        """Return the first transition strictly after 'instant', or 'instant'
        itself if there is none.
        """
        millis = self._millis
        i = bisect_right(millis, instant)
        if i < len(millis):
            return millis[i]
        if self.tail is None:
            return instant
        if millis and instant < millis[-1]:
            instant = millis[-1]
        return self.tail.next_transition(instant)

    def previous_transition(self, instant: int) -> int:
        """Return the instant just before the latest transition at or before
        'instant', or 'instant' itself if there is none. The initial state at
        MIN_INSTANT is not a transition.
        """
        millis = self._millis
        i = bisect_left(millis, instant)
        if i < len(millis) and millis[i] == instant:
            return instant - 1 if instant > MIN_INSTANT else instant
        if i < len(millis):
            if i > 0 and millis[i - 1] > MIN_INSTANT:
                return millis[i - 1] - 1
            return instant
        if self.tail is not None:
            previous = self.tail.previous_transition(instant)
            if previous < instant:
                return previous
        if millis and millis[-1] > MIN_INSTANT:
            return millis[-1] - 1
        return instant


# -----------------------------------------------------------------------------
# Binary encoding of a DateTimeZone. All integers are big endian:
#
#   u16 count, count * utf        pool of name keys
#   u32 count, count * {i64 millis, i32 wall, i32 std, u16 name index}
#   u8 has_tail
#   [i32 std, 2 * {u16 name index, i32 save, u8 mode, u8 month, i8 day,
#                  u8 day_of_week, u8 advance, i32 millis_of_day}]
#
# The zone id is not encoded. It is the name of the file.
# -----------------------------------------------------------------------------

def encode_zone(zone: DateTimeZone) -> bytes:
    names: 'OrderedDict[str, int]' = OrderedDict()
    for transition in zone.transitions:
        add_string(names, transition.name_key)
    if zone.tail is not None:
        add_string(names, zone.tail.start.name_key)
        add_string(names, zone.tail.end.name_key)

    data = bytearray()
    write_u16(data, len(names))
    for name in names:
        write_utf(data, name)

    write_u32(data, len(zone.transitions))
    for transition in zone.transitions:
        write_i64(data, transition.millis)
        write_i32(data, transition.wall_offset)
        write_i32(data, transition.standard_offset)
        write_u16(data, names[transition.name_key])

    if zone.tail is None:
        write_u8(data, 0)
    else:
        write_u8(data, 1)
        write_i32(data, zone.tail.standard_offset)
        _write_recurrence(data, names, zone.tail.start)
        _write_recurrence(data, names, zone.tail.end)
    return bytes(data)


def _write_recurrence(
    data: bytearray,
    names: 'OrderedDict[str, int]',
    recurrence: Recurrence,
) -> None:
    of_year = recurrence.of_year
    write_u16(data, names[recurrence.name_key])
    write_i32(data, recurrence.save_millis)
    write_u8(data, ord(of_year.mode))
    write_u8(data, of_year.month_of_year)
    write_i8(data, of_year.day_of_month)
    write_u8(data, of_year.day_of_week)
    write_u8(data, 1 if of_year.advance_day_of_week else 0)
    write_i32(data, of_year.millis_of_day)


def decode_zone(data: bytes, zone_id: str) -> DateTimeZone:
    """Decode the output of encode_zone(). Raises ValueError if 'data' is
    truncated or has trailing garbage.
    """
    reader = ByteReader(data)
    names = [reader.read_utf() for _ in range(reader.read_u16())]

    transitions = []
    for _ in range(reader.read_u32()):
        millis = reader.read_i64()
        wall_offset = reader.read_i32()
        standard_offset = reader.read_i32()
        name_key = _lookup_name(names, reader.read_u16())
        transitions.append(
            Transition(millis, name_key, wall_offset, standard_offset))

    tail: Optional[DstTail] = None
    if reader.read_u8():
        standard_offset = reader.read_i32()
        start = _read_recurrence(reader, names)
        end = _read_recurrence(reader, names)
        tail = DstTail(standard_offset, start, end)

    if not reader.at_end():
        raise ValueError(f"Trailing data after zone '{zone_id}'")
    return DateTimeZone(zone_id, tuple(transitions), tail)


def _read_recurrence(reader: ByteReader, names: List[str]) -> Recurrence:
    name_key = _lookup_name(names, reader.read_u16())
    save_millis = reader.read_i32()
    of_year = OfYear(
        mode=chr(reader.read_u8()),
        month_of_year=reader.read_u8(),
        day_of_month=reader.read_i8(),
        day_of_week=reader.read_u8(),
        advance_day_of_week=reader.read_u8() != 0,
        millis_of_day=reader.read_i32(),
    )
    return Recurrence(of_year, name_key, save_millis)


def _lookup_name(names: List[str], index: int) -> str:
    if index >= len(names):
        raise ValueError(f'Invalid name index {index} in pool of {len(names)}')
    return names[index]
