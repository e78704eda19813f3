# Copyright 2023 Brian T. Park
#
# MIT License
"""
Utils for writing and reading integers and strings in byte arrays in big
endian format. For negative integers, use 2's complement.
"""


def write_u8(data: bytearray, x: int) -> None:
    if x > 255:
        raise ValueError(f"x={x} > 255, cannot write into uint8")
    if x < 0:
        raise ValueError(f"x={x} < 0, cannot write into uint8")
    data.append(x & 0xff)


def write_i8(data: bytearray, x: int) -> None:
    if x > 127:
        raise ValueError(f"x={x} > 127, cannot write into int8")
    if x < -128:
        raise ValueError(f"x={x} < -128, cannot write into int8")
    if x < 0:
        x += 256
    write_u8(data, x)


def write_u16(data: bytearray, x: int) -> None:
    if x > 65535:
        raise ValueError(f"x={x} > 65535, cannot write into uint16")
    if x < 0:
        raise ValueError(f"x={x} < 0, cannot write into uint16")
    data.append((x >> 8) & 0xff)
    data.append(x & 0xff)


def write_u32(data: bytearray, x: int) -> None:
    if x > 4294967295:
        raise ValueError(f"x={x} > 4294967295, cannot write into uint32")
    if x < 0:
        raise ValueError(f"x={x} < 0, cannot write into uint32")
    data.extend(x.to_bytes(4, 'big'))


def write_i32(data: bytearray, x: int) -> None:
    if x > (1 << 31) - 1:
        raise ValueError(f"x={x} > {(1 << 31) - 1}, cannot write into int32")
    if x < -(1 << 31):
        raise ValueError(f"x={x} < {-(1 << 31)}, cannot write into int32")
    if x < 0:
        x += (1 << 32)
    write_u32(data, x)


def write_i64(data: bytearray, x: int) -> None:
    if x > (1 << 63) - 1:
        raise ValueError(f"x={x} > {(1 << 63) - 1}, cannot write into int64")
    if x < -(1 << 63):
        raise ValueError(f"x={x} < {-(1 << 63)}, cannot write into int64")
    data.extend(x.to_bytes(8, 'big', signed=True))


def write_utf(data: bytearray, s: str) -> None:
    """Write the UTF-8 encoding of 's', prefixed by its byte length as a
    uint16.
    """
    encoded = s.encode('utf-8')
    write_u16(data, len(encoded))
    data.extend(encoded)


class ByteReader:
    """Read back the fields written by the write_xxx() functions, in order."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def _take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise ValueError(
                f"Unexpected end of data: need {size} bytes at {self.pos}, "
                f"have {len(self.data) - self.pos}")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_i8(self) -> int:
        return int.from_bytes(self._take(1), 'big', signed=True)

    def read_u16(self) -> int:
        return int.from_bytes(self._take(2), 'big')

    def read_u32(self) -> int:
        return int.from_bytes(self._take(4), 'big')

    def read_i32(self) -> int:
        return int.from_bytes(self._take(4), 'big', signed=True)

    def read_i64(self) -> int:
        return int.from_bytes(self._take(8), 'big', signed=True)

    def read_utf(self) -> str:
        size = self.read_u16()
        return self._take(size).decode('utf-8')
