# protowire

Building blocks for reading and writing the Protocol Buffers binary wire
format in pure Python, using only the standard library.

## Modules

- `protowire.wire`: varints (`encode_varint`, `decode_varint`,
  `encoded_len_varint`), field keys (`encode_key`, `decode_key`,
  `key_len`), the `WireType` enum, a forward-only `Reader` over a byte
  buffer, `check_wire_type`, `merge_loop`, `skip_field`, and
  `DecodeContext`, which limits nesting to 100 levels while decoding.
- `protowire.scalars`: `VarintCodec` and `FixedCodec`, with ready-made
  codecs `BOOL`, `INT32`, `INT64`, `UINT32`, `UINT64`, `SINT32`,
  `SINT64`, `FLOAT`, `DOUBLE`, `FIXED32`, `FIXED64`, `SFIXED32` and
  `SFIXED64`. Each offers single, repeated and packed encodings and the
  matching `encoded_len*` functions. Out-of-range values raise
  `ValueError` when encoded.
- `protowire.lengthdelim`: `StringCodec`, `BytesCodec`, `MessageCodec` and
  `GroupCodec`, plus the `STRING` and `BYTES` codec instances.
- `protowire.maps`: `encode`, `merge` and `encoded_len` for map fields,
  taking a key codec and a value codec. Entries leave out keys and values
  equal to their defaults; `val_default` overrides the value default.
- `protowire.message`: the abstract `Message` base class, plus
  `encode_length_delimiter`, `decode_length_delimiter` and
  `length_delimiter_len`.
- `protowire.wrappers`: the well-known wrapper messages `BoolValue`,
  `UInt32Value`, `UInt64Value`, `Int32Value`, `Int64Value`, `FloatValue`,
  `DoubleValue`, `StringValue` and `BytesValue`, all built on
  `ScalarValue`, and `Empty`.
- `protowire.errors`: `DecodeError` and `EncodeError`. Both subclass
  `ValueError`.

## Installing

```
pip install protowire
```

To run the tests:

```
pip install "protowire[test]"
pytest
```

## Varints

```python
from protowire.wire import Reader, decode_varint, encode_varint, encoded_len_varint

buf = bytearray()
encode_varint(300, buf)
assert bytes(buf) == b"\xac\x02"
assert encoded_len_varint(300) == 2
assert decode_varint(Reader(bytes(buf))) == 300
```

## Writing a message

Subclass `Message` and implement `encode_raw`, `merge_field`,
`encoded_len` and `clear`. The subclass must be constructible with no
arguments. The base class provides `encode`, `encode_length_delimited`,
`decode`, `decode_length_delimited`, `merge` and `merge_length_delimited`.

```python
from protowire.message import Message
from protowire.scalars import SINT32
from protowire.wire import skip_field


class Point(Message):
    def __init__(self):
        self.x = 0
        self.y = 0

    def encode_raw(self, buf):
        if self.x:
            SINT32.encode(1, self.x, buf)
        if self.y:
            SINT32.encode(2, self.y, buf)

    def merge_field(self, tag, wire_type, reader, ctx):
        if tag == 1:
            self.x = SINT32.merge(wire_type, self.x, reader, ctx)
        elif tag == 2:
            self.y = SINT32.merge(wire_type, self.y, reader, ctx)
        else:
            skip_field(wire_type, tag, reader, ctx)

    def encoded_len(self):
        return (SINT32.encoded_len(1, self.x) if self.x else 0) + (
            SINT32.encoded_len(2, self.y) if self.y else 0
        )

    def clear(self):
        self.x = self.y = 0


p = Point()
p.x = -3
data = p.encode()
assert Point.decode(data).x == -3
```

Scalar codecs' `merge` returns the decoded value, which replaces the old
one. `MessageCodec.merge` and `GroupCodec.merge` merge into the message
they are given and return it.

`decode` and `merge` accept `bytes`, `bytearray`, `memoryview` or a
`Reader`. Malformed input raises `DecodeError`. `encode(capacity)` and
`encode_length_delimited(capacity)` raise `EncodeError` when the encoded
message needs more than `capacity` bytes. With no capacity given, they
always succeed.

## Wrapper types

```python
from protowire.wrappers import StringValue

data = StringValue("hello").encode()
assert StringValue.decode(data).value == "hello"
assert StringValue().encode() == b""
```

## What this package does not do

It does not read `.proto` files and does not generate message classes.
Every message type is written by hand as a `Message` subclass, using the
codecs above. It has no command-line tool.