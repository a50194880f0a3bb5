"""Field codecs for length-delimited Protobuf types: strings, bytes, messages and groups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, MutableSequence, Protocol, Sequence

from protowire.errors import DecodeError
from protowire.wire import (
    DecodeContext,
    Reader,
    WireType,
    check_wire_type,
    decode_key,
    decode_varint,
    encode_key,
    encode_varint,
    encoded_len_varint,
    key_len,
    merge_loop,
)


class FieldMessage(Protocol):
    """What a codec needs from a message: raw encoding, field merging and its length."""

    def encode_raw(self, buf: bytearray) -> None: ...

    def merge_field(
        self, tag: int, wire_type: WireType, reader: Reader, ctx: DecodeContext
    ) -> None: ...

    def encoded_len(self) -> int: ...


def _read_delimited(wire_type: WireType, reader: Reader) -> bytes:
    check_wire_type(WireType.LENGTH_DELIMITED, wire_type)
    length = decode_varint(reader)
    if length > reader.remaining():
        raise DecodeError("buffer underflow")
    return reader.read(length)


def _delimited_len(tag: int, length: int) -> int:
    return key_len(tag) + encoded_len_varint(length) + length


@dataclass(frozen=True)
class StringCodec:
    """Encoding functions for UTF-8 string fields."""

    def default(self) -> str:
        """The empty string."""
        return ""

    def encode(self, tag: int, value: str, buf: bytearray) -> None:
        """Append one field holding ``value``."""
        data = value.encode("utf-8")
        encode_key(tag, WireType.LENGTH_DELIMITED, buf)
        encode_varint(len(data), buf)
        buf += data

    def merge(
        self, wire_type: WireType, value: str, reader: Reader, ctx: DecodeContext
    ) -> str:
        """Decode one string; it replaces ``value``."""
        raw = _read_delimited(wire_type, reader)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise DecodeError(
                "invalid string value: data is not UTF-8 encoded"
            ) from None

    def encode_repeated(self, tag: int, values: Iterable[str], buf: bytearray) -> None:
        """Append one field per value."""
        for value in values:
            self.encode(tag, value, buf)

    def merge_repeated(
        self,
        wire_type: WireType,
        values: MutableSequence[str],
        reader: Reader,
        ctx: DecodeContext,
    ) -> None:
        """Decode one string and append it to ``values``."""
        check_wire_type(WireType.LENGTH_DELIMITED, wire_type)
        values.append(self.merge(wire_type, self.default(), reader, ctx))

    def encoded_len(self, tag: int, value: str) -> int:
        """Encoded length of one field holding ``value``."""
        return _delimited_len(tag, len(value.encode("utf-8")))

    def encoded_len_repeated(self, tag: int, values: Sequence[str]) -> int:
        """Encoded length of ``values`` written one field each."""
        return sum(self.encoded_len(tag, value) for value in values)


@dataclass(frozen=True)
class BytesCodec:
    """Encoding functions for raw byte fields."""

    def default(self) -> bytes:
        """The empty byte string."""
        return b""

    def encode(self, tag: int, value: bytes, buf: bytearray) -> None:
        """Append one field holding ``value``."""
        encode_key(tag, WireType.LENGTH_DELIMITED, buf)
        encode_varint(len(value), buf)
        buf += value

    def merge(
        self, wire_type: WireType, value: bytes, reader: Reader, ctx: DecodeContext
    ) -> bytes:
        """Decode one byte string; it replaces ``value``, as the last occurrence wins."""
        return _read_delimited(wire_type, reader)

    def encode_repeated(
        self, tag: int, values: Iterable[bytes], buf: bytearray
    ) -> None:
        """Append one field per value."""
        for value in values:
            self.encode(tag, value, buf)

    def merge_repeated(
        self,
        wire_type: WireType,
        values: MutableSequence[bytes],
        reader: Reader,
        ctx: DecodeContext,
    ) -> None:
        """Decode one byte string and append it to ``values``."""
        check_wire_type(WireType.LENGTH_DELIMITED, wire_type)
        values.append(self.merge(wire_type, self.default(), reader, ctx))

    def encoded_len(self, tag: int, value: bytes) -> int:
        """Encoded length of one field holding ``value``."""
        return _delimited_len(tag, len(value))

    def encoded_len_repeated(self, tag: int, values: Sequence[bytes]) -> int:
        """Encoded length of ``values`` written one field each."""
        return sum(self.encoded_len(tag, value) for value in values)


def _merge_next_field(msg: FieldMessage, reader: Reader, ctx: DecodeContext) -> None:
    tag, wire_type = decode_key(reader)
    msg.merge_field(tag, wire_type, reader, ctx)


@dataclass(frozen=True)
class MessageCodec:
    """Encoding functions for nested message fields of one message type."""

    message_type: Callable[[], Any]

    def default(self) -> Any:
        """A new, empty message."""
        return self.message_type()

    def encode(self, tag: int, msg: FieldMessage, buf: bytearray) -> None:
        """Append one field holding ``msg``."""
        encode_key(tag, WireType.LENGTH_DELIMITED, buf)
        encode_varint(msg.encoded_len(), buf)
        msg.encode_raw(buf)

    def merge(
        self, wire_type: WireType, msg: FieldMessage, reader: Reader, ctx: DecodeContext
    ) -> Any:
        """Decode one message and merge it into ``msg``, which is returned."""
        check_wire_type(WireType.LENGTH_DELIMITED, wire_type)
        ctx.check_limit()
        merge_loop(msg, reader, ctx.enter_recursion(), _merge_next_field)
        return msg

    def encode_repeated(
        self, tag: int, messages: Iterable[FieldMessage], buf: bytearray
    ) -> None:
        """Append one field per message."""
        for msg in messages:
            self.encode(tag, msg, buf)

    def merge_repeated(
        self,
        wire_type: WireType,
        messages: MutableSequence[Any],
        reader: Reader,
        ctx: DecodeContext,
    ) -> None:
        """Decode one message and append it to ``messages``."""
        check_wire_type(WireType.LENGTH_DELIMITED, wire_type)
        messages.append(
            self.merge(WireType.LENGTH_DELIMITED, self.default(), reader, ctx)
        )

    def encoded_len(self, tag: int, msg: FieldMessage) -> int:
        """Encoded length of one field holding ``msg``."""
        return _delimited_len(tag, msg.encoded_len())

    def encoded_len_repeated(self, tag: int, messages: Sequence[FieldMessage]) -> int:
        """Encoded length of ``messages`` written one field each."""
        return sum(self.encoded_len(tag, msg) for msg in messages)


@dataclass(frozen=True)
class GroupCodec:
    """Encoding functions for group fields of one message type."""

    message_type: Callable[[], Any]

    def default(self) -> Any:
        """A new, empty message."""
        return self.message_type()

    def encode(self, tag: int, msg: FieldMessage, buf: bytearray) -> None:
        """Append ``msg`` between start-group and end-group keys."""
        encode_key(tag, WireType.START_GROUP, buf)
        msg.encode_raw(buf)
        encode_key(tag, WireType.END_GROUP, buf)

    def merge(
        self,
        tag: int,
        wire_type: WireType,
        msg: FieldMessage,
        reader: Reader,
        ctx: DecodeContext,
    ) -> Any:
        """Decode fields into ``msg`` up to the matching end-group key; return ``msg``."""
        check_wire_type(WireType.START_GROUP, wire_type)
        ctx.check_limit()
        while True:
            field_tag, field_wire_type = decode_key(reader)
            if field_wire_type == WireType.END_GROUP:
                if field_tag != tag:
                    raise DecodeError("unexpected end group tag")
                return msg
            msg.merge_field(field_tag, field_wire_type, reader, ctx.enter_recursion())

    def encode_repeated(
        self, tag: int, messages: Iterable[FieldMessage], buf: bytearray
    ) -> None:
        """Append one group per message."""
        for msg in messages:
            self.encode(tag, msg, buf)

    def merge_repeated(
        self,
        tag: int,
        wire_type: WireType,
        messages: MutableSequence[Any],
        reader: Reader,
        ctx: DecodeContext,
    ) -> None:
        """Decode one group and append it to ``messages``."""
        check_wire_type(WireType.START_GROUP, wire_type)
        messages.append(
            self.merge(tag, WireType.START_GROUP, self.default(), reader, ctx)
        )

    def encoded_len(self, tag: int, msg: FieldMessage) -> int:
        """Encoded length of one group holding ``msg``."""
        return 2 * key_len(tag) + msg.encoded_len()

    def encoded_len_repeated(self, tag: int, messages: Sequence[FieldMessage]) -> int:
        """Encoded length of ``messages`` written one group each."""
        return sum(self.encoded_len(tag, msg) for msg in messages)


STRING = StringCodec()
BYTES = BytesCodec()