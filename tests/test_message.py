from __future__ import annotations

from dataclasses import dataclass

import pytest
from hypothesis import given
from hypothesis import strategies as st

from protowire.errors import DecodeError, EncodeError
from protowire.lengthdelim import STRING, MessageCodec
from protowire.message import (
    Message,
    decode_length_delimiter,
    encode_length_delimiter,
    length_delimiter_len,
)
from protowire.scalars import INT32
from protowire.wire import Reader, WireType, encode_key, encode_varint, skip_field


@dataclass
class Node(Message):
    value: int = 0
    name: str = ""
    child: Node | None = None

    def encode_raw(self, buf):
        if self.value:
            INT32.encode(1, self.value, buf)
        if self.name:
            STRING.encode(2, self.name, buf)
        if self.child is not None:
            NODE.encode(3, self.child, buf)

    def merge_field(self, tag, wire_type, reader, ctx):
        if tag == 1:
            self.value = INT32.merge(wire_type, self.value, reader, ctx)
        elif tag == 2:
            self.name = STRING.merge(wire_type, self.name, reader, ctx)
        elif tag == 3:
            if self.child is None:
                self.child = Node()
            NODE.merge(wire_type, self.child, reader, ctx)
        else:
            skip_field(wire_type, tag, reader, ctx)

    def encoded_len(self):
        total = 0
        if self.value:
            total += INT32.encoded_len(1, self.value)
        if self.name:
            total += STRING.encoded_len(2, self.name)
        if self.child is not None:
            total += NODE.encoded_len(3, self.child)
        return total

    def clear(self):
        self.value = 0
        self.name = ""
        self.child = None


NODE = MessageCodec(Node)


def _chain(depth):
    node = Node()
    for _ in range(depth):
        node = Node(child=node)
    return node


def test_worked_example_encoding():
    assert Node(value=150).encode() == b"\x08\x96\x01"


def test_roundtrip_nested():
    msg = Node(value=-5, name="héllo", child=Node(value=7, name="x"))
    data = msg.encode()
    assert len(data) == msg.encoded_len()
    assert Node.decode(data) == msg


@given(
    st.integers(-(2**31), 2**31 - 1),
    st.text(),
    st.one_of(st.none(), st.integers(-(2**31), 2**31 - 1)),
)
def test_roundtrip_property(value, name, child_value):
    child = None if child_value is None else Node(value=child_value)
    msg = Node(value=value, name=name, child=child)
    data = msg.encode()
    assert len(data) == msg.encoded_len()
    assert Node.decode(data) == msg


def test_empty_message_encodes_to_nothing():
    assert Node().encode() == b""
    assert Node.decode(b"") == Node()


def test_encode_insufficient_capacity():
    msg = Node(value=1, name="abc")
    with pytest.raises(EncodeError) as info:
        msg.encode(capacity=1)
    assert info.value.required == msg.encoded_len()
    assert info.value.remaining == 1


def test_encode_exact_capacity():
    msg = Node(value=1, name="abc")
    assert msg.encode(capacity=msg.encoded_len()) == msg.encode()


def test_length_delimited_roundtrip():
    msg = Node(value=3, name="abc", child=Node(name="d"))
    data = msg.encode_length_delimited()
    assert decode_length_delimiter(data) == msg.encoded_len()
    assert len(data) == msg.encoded_len() + length_delimiter_len(msg.encoded_len())
    assert Node.decode_length_delimited(data) == msg


def test_length_delimited_insufficient_capacity():
    msg = Node(value=3, name="abc")
    with pytest.raises(EncodeError) as info:
        msg.encode_length_delimited(capacity=2)
    assert info.value.required == msg.encoded_len() + length_delimiter_len(
        msg.encoded_len()
    )
    assert info.value.remaining == 2


def test_length_delimited_stream():
    first = Node(value=1)
    second = Node(name="second")
    reader = Reader(first.encode_length_delimited() + second.encode_length_delimited())
    assert Node.decode_length_delimited(reader) == first
    assert Node.decode_length_delimited(reader) == second
    assert not reader.has_remaining()


def test_merge_last_scalar_wins_and_children_merge():
    msg = Node(value=1, name="keep", child=Node(value=4))
    msg.merge(Node(value=2, child=Node(name="c")).encode())
    assert msg == Node(value=2, name="keep", child=Node(value=4, name="c"))


def test_merge_length_delimited_into_existing():
    msg = Node(name="keep")
    msg.merge_length_delimited(Node(value=9).encode_length_delimited())
    assert msg == Node(value=9, name="keep")


def test_clear():
    msg = Node(value=1, name="a", child=Node())
    msg.clear()
    assert msg == Node()


def test_unknown_fields_are_skipped():
    buf = bytearray()
    encode_key(9, WireType.VARINT, buf)
    encode_varint(5, buf)
    INT32.encode(1, 3, buf)
    assert Node.decode(buf) == Node(value=3)


def test_truncated_input():
    with pytest.raises(DecodeError) as info:
        Node.decode(b"\x08")
    assert info.value.description == "invalid varint"


def test_delimited_length_exceeded():
    with pytest.raises(DecodeError) as info:
        Node.decode(b"\x1a\x01\x08\x01")
    assert info.value.description == "delimited length exceeded"


def test_deep_nesting():
    ok = _chain(100)
    assert Node.decode(ok.encode()) == ok
    with pytest.raises(DecodeError) as info:
        Node.decode(_chain(101).encode())
    assert info.value.description == "recursion limit reached"


def test_start_group_flood_hits_limit():
    with pytest.raises(DecodeError):
        Node.decode(b"C" * (1 << 20))


def test_message_is_abstract():
    with pytest.raises(TypeError):
        Message()


def test_encode_length_delimiter():
    assert encode_length_delimiter(300) == bytes([0xAC, 0x02])
    assert decode_length_delimiter(bytes([0xAC, 0x02])) == 300


@pytest.mark.parametrize("length", [0, 1, 127, 128, 300, 2**14, 2**28, 2**63, 2**64 - 1])
def test_length_delimiter_len_matches_encoding(length):
    encoded = encode_length_delimiter(length)
    assert length_delimiter_len(length) == len(encoded)
    assert decode_length_delimiter(encoded) == length


def test_encode_length_delimiter_insufficient_capacity():
    with pytest.raises(EncodeError) as info:
        encode_length_delimiter(300, capacity=1)
    assert info.value.required == length_delimiter_len(300)
    assert info.value.remaining == 1


def test_decode_length_delimiter_empty():
    with pytest.raises(DecodeError):
        decode_length_delimiter(b"")


def test_decode_length_delimiter_too_long():
    with pytest.raises(DecodeError):
        decode_length_delimiter(b"\xff" * 11)