"""Encoding functions for Protobuf map fields, generic over key and value codecs."""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping

from protowire.wire import (
    DecodeContext,
    Reader,
    WireType,
    decode_key,
    encode_key,
    encode_varint,
    encoded_len_varint,
    key_len,
    merge_loop,
    skip_field,
)

_KEY_TAG = 1
_VALUE_TAG = 2


def _value_default(val_codec: Any, val_default: Any) -> Any:
    return val_codec.default() if val_default is None else val_default


def _entry_len(
    key_codec: Any, val_codec: Any, key: Any, val: Any, val_default: Any
) -> int:
    length = 0
    if key != key_codec.default():
        length += key_codec.encoded_len(_KEY_TAG, key)
    if val != val_default:
        length += val_codec.encoded_len(_VALUE_TAG, val)
    return length


def encode(
    key_codec: Any,
    val_codec: Any,
    tag: int,
    values: Mapping[Any, Any],
    buf: bytearray,
    val_default: Any = None,
) -> None:
    """Append one length-delimited entry per item of ``values``.

    Keys equal to the key type's default and values equal to ``val_default``
    (the value type's default when not given) are left out of the entry.
    """
    val_default = _value_default(val_codec, val_default)
    key_default = key_codec.default()
    for key, val in values.items():
        skip_key = key == key_default
        skip_val = val == val_default
        encode_key(tag, WireType.LENGTH_DELIMITED, buf)
        encode_varint(_entry_len(key_codec, val_codec, key, val, val_default), buf)
        if not skip_key:
            key_codec.encode(_KEY_TAG, key, buf)
        if not skip_val:
            val_codec.encode(_VALUE_TAG, val, buf)


def merge(
    key_codec: Any,
    val_codec: Any,
    values: MutableMapping[Any, Any],
    reader: Reader,
    ctx: DecodeContext,
    val_default: Any = None,
) -> None:
    """Decode one map entry and insert it into ``values``.

    Missing keys or values take their defaults; unknown fields in the entry
    are skipped.
    """
    entry = [key_codec.default(), _value_default(val_codec, val_default)]
    ctx.check_limit()

    def merge_entry(target: list[Any], inner: Reader, inner_ctx: DecodeContext) -> None:
        field_tag, wire_type = decode_key(inner)
        if field_tag == _KEY_TAG:
            target[0] = key_codec.merge(wire_type, target[0], inner, inner_ctx)
        elif field_tag == _VALUE_TAG:
            target[1] = val_codec.merge(wire_type, target[1], inner, inner_ctx)
        else:
            skip_field(wire_type, field_tag, inner, inner_ctx)

    merge_loop(entry, reader, ctx.enter_recursion(), merge_entry)
    key, val = entry
    values[key] = val


def encoded_len(
    key_codec: Any,
    val_codec: Any,
    tag: int,
    values: Mapping[Any, Any],
    val_default: Any = None,
) -> int:
    """Encoded length of all entries of ``values``."""
    val_default = _value_default(val_codec, val_default)
    total = key_len(tag) * len(values)
    for key, val in values.items():
        length = _entry_len(key_codec, val_codec, key, val, val_default)
        total += encoded_len_varint(length) + length
    return total