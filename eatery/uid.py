"""Masked identifiers: local id, object type and shard packed and base58 encoded."""

from __future__ import annotations

import re
from dataclasses import dataclass

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {char: position for position, char in enumerate(ALPHABET)}

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_UNSIGNED = re.compile(r"[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")


def b58encode(data: bytes) -> str:
    """Encode bytes with the bitcoin base58 alphabet."""
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(ALPHABET[remainder])
    padding = len(data) - len(data.lstrip(b"\0"))
    return ALPHABET[0] * padding + "".join(reversed(digits))


def b58decode(text: str) -> bytes:
    """Decode bitcoin base58 text; raise ValueError on a character outside the alphabet."""
    number = 0
    for char in text:
        try:
            number = number * 58 + _INDEX[char]
        except KeyError:
            raise ValueError(f"invalid base58 character {char!r}") from None
    padding = len(text) - len(text.lstrip(ALPHABET[0]))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big")
    return b"\0" * padding + body


@dataclass(frozen=True)
class UID:
    """32-bit local id, 10-bit object type and 18-bit shard id."""

    local_id: int
    object_type: int
    shard_id: int

    def _packed(self) -> int:
        value = (
            (self.local_id & _MASK32) << 28
            | (self.object_type & _MASK64) << 18
            | (self.shard_id & _MASK32)
        )
        return value & _MASK64

    def __str__(self) -> str:
        return b58encode(str(self._packed()).encode("ascii"))

    def to_json(self) -> str:
        """The JSON text of this identifier: its encoded form in quotes."""
        return f'"{self}"'

    def to_db(self) -> int:
        """The value stored in the database: the local id."""
        return self.local_id


def decompose_uid(text: str) -> UID:
    """Split a decimal packed value into its parts."""
    if not _UNSIGNED.fullmatch(text):
        raise ValueError(f"invalid uid number {text!r}")
    value = int(text)
    if value > _MASK64:
        raise ValueError(f"uid number out of range {text!r}")
    if value < (1 << 18):
        raise ValueError("wrong uid")
    return UID(
        local_id=(value >> 28) & _MASK32,
        object_type=(value >> 18) & 0x3FF,
        shard_id=value & 0x3FFFF,
    )


def from_base58(text: str) -> UID:
    return decompose_uid(b58decode(text).decode("latin-1"))


def uid_from_json(data) -> UID:
    """Parse a JSON string (quoted or not) holding an encoded identifier."""
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8")
    return from_base58(data.replace('"', ""))


def uid_from_db(value) -> UID | None:
    """Build an identifier from a database column value."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("Invalid Scan Source")
    if isinstance(value, int):
        return UID(value & _MASK32, 0, 1)
    if isinstance(value, (bytes, bytearray)):
        text = bytes(value).decode("latin-1")
        if not _SIGNED.fullmatch(text):
            raise ValueError(f"invalid integer {text!r}")
        number = int(text)
        if not -(1 << 63) <= number < (1 << 63):
            raise ValueError(f"integer out of range {text!r}")
        return UID(number & _MASK32, 0, 1)
    raise TypeError("Invalid Scan Source")