"""Field codecs for the numeric Protobuf scalar types, varint and fixed width."""

from __future__ import annotations

import operator
import struct
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, MutableSequence, Sequence

from protowire.errors import DecodeError
from protowire.wire import (
    DecodeContext,
    Reader,
    WireType,
    check_wire_type,
    decode_varint,
    encode_key,
    encode_varint,
    encoded_len_varint,
    key_len,
    merge_loop,
)

_U32_MAX = (1 << 32) - 1
_U64_MAX = (1 << 64) - 1
_I32_MIN, _I32_MAX = -(1 << 31), (1 << 31) - 1
_I64_MIN, _I64_MAX = -(1 << 63), (1 << 63) - 1


def _as_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return value - (1 << bits) if value >> (bits - 1) else value


def _zigzag_encode(value: int, bits: int) -> int:
    return ((value << 1) ^ (value >> (bits - 1))) & ((1 << bits) - 1)


def _zigzag_decode(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    return (value >> 1) ^ -(value & 1)


@dataclass(frozen=True)
class VarintCodec:
    """Encoding functions for a scalar type carried as a varint."""

    name: str
    minimum: int
    maximum: int
    to_wire: Callable[[int], int] = field(repr=False)
    from_wire: Callable[[int], Any] = field(repr=False)
    zero: Any = 0

    def default(self) -> Any:
        """The type's default value."""
        return self.zero

    def _wire_value(self, value: Any) -> int:
        number = operator.index(value)
        if not self.minimum <= number <= self.maximum:
            raise ValueError(f"{self.name} value out of range: {number}")
        return self.to_wire(number)

    def encode(self, tag: int, value: Any, buf: bytearray) -> None:
        """Append one field holding ``value``."""
        wire_value = self._wire_value(value)
        encode_key(tag, WireType.VARINT, buf)
        encode_varint(wire_value, buf)

    def merge(
        self, wire_type: WireType, value: Any, reader: Reader, ctx: DecodeContext
    ) -> Any:
        """Decode one value; it replaces ``value``, which is returned no longer."""
        check_wire_type(WireType.VARINT, wire_type)
        return self.from_wire(decode_varint(reader))

    def encode_repeated(self, tag: int, values: Iterable[Any], buf: bytearray) -> None:
        """Append one field per value."""
        for value in values:
            self.encode(tag, value, buf)

    def encode_packed(self, tag: int, values: Sequence[Any], buf: bytearray) -> None:
        """Append all values as a single packed field; nothing if empty."""
        if not values:
            return
        wire_values = [self._wire_value(value) for value in values]
        encode_key(tag, WireType.LENGTH_DELIMITED, buf)
        encode_varint(sum(map(encoded_len_varint, wire_values)), buf)
        for wire_value in wire_values:
            encode_varint(wire_value, buf)

    def merge_repeated(
        self,
        wire_type: WireType,
        values: MutableSequence[Any],
        reader: Reader,
        ctx: DecodeContext,
    ) -> None:
        """Decode a packed run or a single unpacked value and append to ``values``."""
        _merge_repeated_numeric(self, WireType.VARINT, wire_type, values, reader, ctx)

    def encoded_len(self, tag: int, value: Any) -> int:
        """Encoded length of one field holding ``value``."""
        return key_len(tag) + encoded_len_varint(self._wire_value(value))

    def encoded_len_repeated(self, tag: int, values: Sequence[Any]) -> int:
        """Encoded length of ``values`` written one field each."""
        return key_len(tag) * len(values) + sum(
            encoded_len_varint(self._wire_value(value)) for value in values
        )

    def encoded_len_packed(self, tag: int, values: Sequence[Any]) -> int:
        """Encoded length of ``values`` written as one packed field."""
        if not values:
            return 0
        length = sum(encoded_len_varint(self._wire_value(value)) for value in values)
        return key_len(tag) + encoded_len_varint(length) + length


@dataclass(frozen=True)
class FixedCodec:
    """Encoding functions for a scalar type carried in a fixed number of bytes."""

    name: str
    layout: struct.Struct = field(repr=False)
    wire_type: WireType
    zero: Any = 0

    @property
    def width(self) -> int:
        """Encoded width of one value in bytes."""
        return self.layout.size

    def default(self) -> Any:
        """The type's default value."""
        return self.zero

    def _pack(self, value: Any) -> bytes:
        try:
            return self.layout.pack(value)
        except (struct.error, OverflowError) as exc:
            raise ValueError(f"invalid {self.name} value: {value!r}") from exc

    def encode(self, tag: int, value: Any, buf: bytearray) -> None:
        """Append one field holding ``value``."""
        packed = self._pack(value)
        encode_key(tag, self.wire_type, buf)
        buf += packed

    def merge(
        self, wire_type: WireType, value: Any, reader: Reader, ctx: DecodeContext
    ) -> Any:
        """Decode one value; it replaces ``value``, which is returned no longer."""
        check_wire_type(self.wire_type, wire_type)
        if reader.remaining() < self.width:
            raise DecodeError("buffer underflow")
        (decoded,) = self.layout.unpack(reader.read(self.width))
        return decoded

    def encode_repeated(self, tag: int, values: Iterable[Any], buf: bytearray) -> None:
        """Append one field per value."""
        for value in values:
            self.encode(tag, value, buf)

    def encode_packed(self, tag: int, values: Sequence[Any], buf: bytearray) -> None:
        """Append all values as a single packed field; nothing if empty."""
        if not values:
            return
        payload = b"".join(self._pack(value) for value in values)
        encode_key(tag, WireType.LENGTH_DELIMITED, buf)
        encode_varint(len(payload), buf)
        buf += payload

    def merge_repeated(
        self,
        wire_type: WireType,
        values: MutableSequence[Any],
        reader: Reader,
        ctx: DecodeContext,
    ) -> None:
        """Decode a packed run or a single unpacked value and append to ``values``."""
        _merge_repeated_numeric(self, self.wire_type, wire_type, values, reader, ctx)

    def encoded_len(self, tag: int, value: Any) -> int:
        """Encoded length of one field."""
        return key_len(tag) + self.width

    def encoded_len_repeated(self, tag: int, values: Sequence[Any]) -> int:
        """Encoded length of ``values`` written one field each."""
        return (key_len(tag) + self.width) * len(values)

    def encoded_len_packed(self, tag: int, values: Sequence[Any]) -> int:
        """Encoded length of ``values`` written as one packed field."""
        if not values:
            return 0
        length = self.width * len(values)
        return key_len(tag) + encoded_len_varint(length) + length


def _merge_repeated_numeric(
    codec: VarintCodec | FixedCodec,
    element_wire_type: WireType,
    wire_type: WireType,
    values: MutableSequence[Any],
    reader: Reader,
    ctx: DecodeContext,
) -> None:
    if wire_type == WireType.LENGTH_DELIMITED:
        def merge_one(
            target: MutableSequence[Any], inner: Reader, inner_ctx: DecodeContext
        ) -> None:
            target.append(
                codec.merge(element_wire_type, codec.default(), inner, inner_ctx)
            )

        merge_loop(values, reader, ctx, merge_one)
    else:
        check_wire_type(element_wire_type, wire_type)
        values.append(codec.merge(wire_type, codec.default(), reader, ctx))


BOOL = VarintCodec(
    "bool", 0, 1, lambda v: 1 if v else 0, lambda v: v != 0, zero=False
)
INT32 = VarintCodec(
    "int32", _I32_MIN, _I32_MAX, lambda v: v & _U64_MAX, lambda v: _as_signed(v, 32)
)
INT64 = VarintCodec(
    "int64", _I64_MIN, _I64_MAX, lambda v: v & _U64_MAX, lambda v: _as_signed(v, 64)
)
UINT32 = VarintCodec("uint32", 0, _U32_MAX, lambda v: v, lambda v: v & _U32_MAX)
UINT64 = VarintCodec("uint64", 0, _U64_MAX, lambda v: v, lambda v: v)
SINT32 = VarintCodec(
    "sint32",
    _I32_MIN,
    _I32_MAX,
    lambda v: _zigzag_encode(v, 32),
    lambda v: _zigzag_decode(v, 32),
)
SINT64 = VarintCodec(
    "sint64",
    _I64_MIN,
    _I64_MAX,
    lambda v: _zigzag_encode(v, 64),
    lambda v: _zigzag_decode(v, 64),
)

FLOAT = FixedCodec("float", struct.Struct("<f"), WireType.THIRTY_TWO_BIT, zero=0.0)
DOUBLE = FixedCodec("double", struct.Struct("<d"), WireType.SIXTY_FOUR_BIT, zero=0.0)
FIXED32 = FixedCodec("fixed32", struct.Struct("<I"), WireType.THIRTY_TWO_BIT)
FIXED64 = FixedCodec("fixed64", struct.Struct("<Q"), WireType.SIXTY_FOUR_BIT)
SFIXED32 = FixedCodec("sfixed32", struct.Struct("<i"), WireType.THIRTY_TWO_BIT)
SFIXED64 = FixedCodec("sfixed64", struct.Struct("<q"), WireType.SIXTY_FOUR_BIT)