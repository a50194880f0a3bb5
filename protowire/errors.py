"""Errors raised while encoding and decoding Protobuf data."""

from __future__ import annotations


class DecodeError(ValueError):
    """The input does not hold a valid Protobuf message.

    The description is a best-effort root cause. The stack holds
    ``(message, field)`` name pairs, one per level of nesting, that locate
    where decoding failed.
    """

    def __init__(self, description: str) -> None:
        super().__init__(description)
        self.description = description
        self.stack: list[tuple[str, str]] = []

    def push(self, message: str, field: str) -> None:
        """Record a ``(message, field)`` location on the stack."""
        self.stack.append((message, field))

    def __str__(self) -> str:
        location = "".join(f"{message}.{field}: " for message, field in self.stack)
        return f"failed to decode Protobuf message: {location}{self.description}"

    def __repr__(self) -> str:
        return f"DecodeError(description={self.description!r}, stack={self.stack!r})"


class EncodeError(ValueError):
    """A message did not fit into the capacity available for encoding it."""

    def __init__(self, required: int, remaining: int) -> None:
        super().__init__(required, remaining)
        self.required = required
        self.remaining = remaining

    def __str__(self) -> str:
        return (
            "failed to encode Protobuf messsage; insufficient buffer capacity "
            f"(required: {self.required}, remaining: {self.remaining})"
        )

    def __repr__(self) -> str:
        return f"EncodeError(required={self.required}, remaining={self.remaining})"