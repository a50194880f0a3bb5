"""Messages for the Protobuf well-known wrapper types and ``Empty``."""

from __future__ import annotations

from typing import Any, ClassVar

from protowire.lengthdelim import BYTES, STRING
from protowire.message import Message
from protowire.scalars import BOOL, DOUBLE, FLOAT, INT32, INT64, UINT32, UINT64
from protowire.wire import DecodeContext, Reader, WireType, skip_field

_VALUE_TAG = 1


class ScalarValue(Message):
    """A message holding one scalar in field 1, omitted when it has its default."""

    codec: ClassVar[Any]

    def __init__(self, value: Any = None) -> None:
        self.value = self.codec.default() if value is None else value

    def encode_raw(self, buf: bytearray) -> None:
        """Append field 1 unless the value is the default."""
        if self.value:
            self.codec.encode(_VALUE_TAG, self.value, buf)

    def merge_field(
        self, tag: int, wire_type: WireType, reader: Reader, ctx: DecodeContext
    ) -> None:
        """Decode field 1 into the value; skip any other field."""
        if tag == _VALUE_TAG:
            self.value = self.codec.merge(wire_type, self.value, reader, ctx)
        else:
            skip_field(wire_type, tag, reader, ctx)

    def encoded_len(self) -> int:
        """Encoded length; zero for the default value."""
        return self.codec.encoded_len(_VALUE_TAG, self.value) if self.value else 0

    def clear(self) -> None:
        """Reset the value to its default."""
        self.value = self.codec.default()

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.value == other.value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


class BoolValue(ScalarValue):
    """``google.protobuf.BoolValue``."""

    codec = BOOL


class UInt32Value(ScalarValue):
    """``google.protobuf.UInt32Value``."""

    codec = UINT32


class UInt64Value(ScalarValue):
    """``google.protobuf.UInt64Value``."""

    codec = UINT64


class Int32Value(ScalarValue):
    """``google.protobuf.Int32Value``."""

    codec = INT32


class Int64Value(ScalarValue):
    """``google.protobuf.Int64Value``."""

    codec = INT64


class FloatValue(ScalarValue):
    """``google.protobuf.FloatValue``."""

    codec = FLOAT


class DoubleValue(ScalarValue):
    """``google.protobuf.DoubleValue``."""

    codec = DOUBLE


class StringValue(ScalarValue):
    """``google.protobuf.StringValue``."""

    codec = STRING


class BytesValue(ScalarValue):
    """``google.protobuf.BytesValue``."""

    codec = BYTES


class Empty(Message):
    """``google.protobuf.Empty``: no fields; everything read is skipped."""

    def encode_raw(self, buf: bytearray) -> None:
        """Append nothing."""

    def merge_field(
        self, tag: int, wire_type: WireType, reader: Reader, ctx: DecodeContext
    ) -> None:
        """Skip the field."""
        skip_field(wire_type, tag, reader, ctx)

    def encoded_len(self) -> int:
        """Always zero."""
        return 0

    def clear(self) -> None:
        """Nothing to reset."""

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return True

    def __repr__(self) -> str:
        return "Empty()"