"""Low-level Protobuf wire format primitives: varints, keys and field skipping."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, TypeVar

from protowire.errors import DecodeError

T = TypeVar("T")

MIN_TAG = 1
MAX_TAG = (1 << 29) - 1
RECURSION_LIMIT = 100

_U64_MAX = (1 << 64) - 1
_U32_MAX = (1 << 32) - 1
_MAX_VARINT_LEN = 10


class Reader:
    """A forward-only cursor over a bytes-like input."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes | bytearray | memoryview = b"") -> None:
        self._data = bytes(data)
        self._pos = 0

    def remaining(self) -> int:
        """Number of bytes not yet consumed."""
        return len(self._data) - self._pos

    def has_remaining(self) -> bool:
        """Whether any bytes are left to consume."""
        return self._pos < len(self._data)

    def read_byte(self) -> int:
        """Consume and return one byte."""
        if self._pos >= len(self._data):
            raise DecodeError("buffer underflow")
        byte = self._data[self._pos]
        self._pos += 1
        return byte

    def read(self, n: int) -> bytes:
        """Consume and return exactly ``n`` bytes."""
        self._check(n)
        chunk = self._data[self._pos : self._pos + n]
        self._pos += n
        return chunk

    def advance(self, n: int) -> None:
        """Skip ``n`` bytes."""
        self._check(n)
        self._pos += n

    def _check(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"cannot consume a negative number of bytes: {n}")
        if n > self.remaining():
            raise DecodeError("buffer underflow")

    def __repr__(self) -> str:
        return f"Reader(remaining={self.remaining()})"


class WireType(enum.IntEnum):
    """The wire type carried in the low three bits of a field key."""

    VARINT = 0
    SIXTY_FOUR_BIT = 1
    LENGTH_DELIMITED = 2
    START_GROUP = 3
    END_GROUP = 4
    THIRTY_TWO_BIT = 5


@dataclass(frozen=True)
class DecodeContext:
    """Per-decode state handed to nested decoders; tracks remaining recursion depth."""

    recurse_count: int = RECURSION_LIMIT

    def enter_recursion(self) -> DecodeContext:
        """Return the context to use one nesting level deeper."""
        return DecodeContext(self.recurse_count - 1)

    def check_limit(self) -> None:
        """Raise if no further nesting is allowed."""
        if self.recurse_count <= 0:
            raise DecodeError("recursion limit reached")


def encode_varint(value: int, buf: bytearray) -> None:
    """Append ``value`` to ``buf`` as an unsigned LEB128 varint."""
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"varint value out of unsigned 64-bit range: {value}")
    while value >= 0x80:
        buf.append((value & 0x7F) | 0x80)
        value >>= 7
    buf.append(value)


def decode_varint(reader: Reader) -> int:
    """Read an unsigned LEB128 varint of at most ten bytes."""
    if not reader.has_remaining():
        raise DecodeError("invalid varint")
    value = 0
    for shift in range(0, 7 * _MAX_VARINT_LEN, 7):
        if not reader.has_remaining():
            break
        byte = reader.read_byte()
        value |= (byte & 0x7F) << shift
        if byte < 0x80:
            return value & _U64_MAX
    raise DecodeError("invalid varint")


def encoded_len_varint(value: int) -> int:
    """Number of bytes (1 to 10) that ``value`` takes as a varint."""
    return max(1, ((value & _U64_MAX).bit_length() + 6) // 7)


def encode_key(tag: int, wire_type: WireType, buf: bytearray) -> None:
    """Append a field key made of ``tag`` and ``wire_type``."""
    if not MIN_TAG <= tag <= MAX_TAG:
        raise ValueError(f"tag out of range: {tag}")
    encode_varint((tag << 3) | int(wire_type), buf)


def decode_key(reader: Reader) -> tuple[int, WireType]:
    """Read a field key and return ``(tag, wire_type)``."""
    key = decode_varint(reader)
    if key > _U32_MAX:
        raise DecodeError(f"invalid key value: {key}")
    raw_wire_type = key & 0x07
    try:
        wire_type = WireType(raw_wire_type)
    except ValueError:
        raise DecodeError(f"invalid wire type value: {raw_wire_type}") from None
    tag = key >> 3
    if tag < MIN_TAG:
        raise DecodeError("invalid tag value: 0")
    return tag, wire_type


def key_len(tag: int) -> int:
    """Width in bytes (1 to 5) of a field key with this tag."""
    return encoded_len_varint((tag << 3) & _U32_MAX)


def check_wire_type(expected: WireType, actual: WireType) -> None:
    """Raise unless the wire types match."""
    if expected != actual:
        raise DecodeError(
            f"invalid wire type: {WireType(actual).name} "
            f"(expected {WireType(expected).name})"
        )


def merge_loop(
    value: T,
    reader: Reader,
    ctx: DecodeContext,
    merge: Callable[[T, Reader, DecodeContext], None],
) -> None:
    """Read a length prefix, then call ``merge`` until that many bytes are consumed."""
    length = decode_varint(reader)
    remaining = reader.remaining()
    if length > remaining:
        raise DecodeError("buffer underflow")
    limit = remaining - length
    while reader.remaining() > limit:
        merge(value, reader, ctx)
    if reader.remaining() != limit:
        raise DecodeError("delimited length exceeded")


def skip_field(wire_type: WireType, tag: int, reader: Reader, ctx: DecodeContext) -> None:
    """Consume the payload of a field whose key has already been read."""
    ctx.check_limit()
    if wire_type == WireType.VARINT:
        decode_varint(reader)
        length = 0
    elif wire_type == WireType.THIRTY_TWO_BIT:
        length = 4
    elif wire_type == WireType.SIXTY_FOUR_BIT:
        length = 8
    elif wire_type == WireType.LENGTH_DELIMITED:
        length = decode_varint(reader)
    elif wire_type == WireType.START_GROUP:
        while True:
            inner_tag, inner_wire_type = decode_key(reader)
            if inner_wire_type == WireType.END_GROUP:
                if inner_tag != tag:
                    raise DecodeError("unexpected end group tag")
                break
            skip_field(inner_wire_type, inner_tag, reader, ctx.enter_recursion())
        length = 0
    else:
        raise DecodeError("unexpected end group tag")

    if length > reader.remaining():
        raise DecodeError("buffer underflow")
    reader.advance(length)