"""The message base class and helpers for length-delimited framing."""

from __future__ import annotations

import abc
from typing import TypeVar

from protowire.errors import EncodeError
from protowire.lengthdelim import MessageCodec
from protowire.wire import (
    DecodeContext,
    Reader,
    WireType,
    decode_key,
    decode_varint,
    encode_varint,
    encoded_len_varint,
)

M = TypeVar("M", bound="Message")

Source = bytes | bytearray | memoryview | Reader


def _reader(data: Source) -> Reader:
    return data if isinstance(data, Reader) else Reader(data)


def _check_capacity(required: int, capacity: int | None) -> None:
    if capacity is not None and required > capacity:
        raise EncodeError(required, capacity)


class Message(abc.ABC):
    """A Protocol Buffers message.

    Subclasses provide the field-level methods; encoding and decoding of whole
    messages is built on top of them. Subclasses must be constructible with no
    arguments, which gives the empty message.
    """

    @abc.abstractmethod
    def encode_raw(self, buf: bytearray) -> None:
        """Append the message's fields to ``buf``."""

    @abc.abstractmethod
    def merge_field(
        self, tag: int, wire_type: WireType, reader: Reader, ctx: DecodeContext
    ) -> None:
        """Decode one field whose key was just read and merge it into the message."""

    @abc.abstractmethod
    def encoded_len(self) -> int:
        """Encoded length of the message without a length delimiter."""

    @abc.abstractmethod
    def clear(self) -> None:
        """Reset every field to its default."""

    def encode(self, capacity: int | None = None) -> bytes:
        """Encode the message; raise EncodeError if it needs more than ``capacity`` bytes."""
        _check_capacity(self.encoded_len(), capacity)
        buf = bytearray()
        self.encode_raw(buf)
        return bytes(buf)

    def encode_length_delimited(self, capacity: int | None = None) -> bytes:
        """Encode the message preceded by its length as a varint."""
        length = self.encoded_len()
        _check_capacity(length + encoded_len_varint(length), capacity)
        buf = bytearray()
        encode_varint(length, buf)
        self.encode_raw(buf)
        return bytes(buf)

    @classmethod
    def decode(cls: type[M], data: Source) -> M:
        """Decode a message from the whole of ``data``."""
        message = cls()
        message.merge(data)
        return message

    @classmethod
    def decode_length_delimited(cls: type[M], data: Source) -> M:
        """Decode a length-delimited message from the front of ``data``."""
        message = cls()
        message.merge_length_delimited(data)
        return message

    def merge(self, data: Source) -> None:
        """Decode the whole of ``data`` and merge its fields into this message."""
        reader = _reader(data)
        ctx = DecodeContext()
        while reader.has_remaining():
            tag, wire_type = decode_key(reader)
            self.merge_field(tag, wire_type, reader, ctx)

    def merge_length_delimited(self, data: Source) -> None:
        """Decode a length-delimited message from ``data`` and merge it into this one."""
        MessageCodec(type(self)).merge(
            WireType.LENGTH_DELIMITED, self, _reader(data), DecodeContext()
        )


def encode_length_delimiter(length: int, capacity: int | None = None) -> bytes:
    """Encode a length delimiter; raise EncodeError if it exceeds ``capacity`` bytes."""
    _check_capacity(encoded_len_varint(length), capacity)
    buf = bytearray()
    encode_varint(length, buf)
    return bytes(buf)


def length_delimiter_len(length: int) -> int:
    """Encoded width (1 to 10 bytes) of a length delimiter."""
    return encoded_len_varint(length)


def decode_length_delimiter(data: Source) -> int:
    """Decode a length delimiter from the front of ``data``."""
    return decode_varint(_reader(data))