"""
Hash value type shared by all algorithms.

Bits are kept in the order the algorithm produced them (row-major over the
hash grid). Byte packing is MSB-first; a trailing partial byte is padded with
zero bits.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

import numpy as np

from errors import HashFormatError, HashLengthError

_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{2})*$")


@dataclass(frozen=True)
class ImageHash:
    bits: Tuple[bool, ...]

    def __init__(self, bits: Iterable[bool]) -> None:
        object.__setattr__(self, "bits", tuple(bool(b) for b in bits))

    def __len__(self) -> int:
        return len(self.bits)

    def __iter__(self) -> Iterator[bool]:
        return iter(self.bits)

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"ImageHash({self.hex()!r}, bits={len(self.bits)})"

    def __sub__(self, other: "ImageHash") -> int:
        return self.hamming(other)

    # ------------ Encodings ------------

    def to_bytes(self) -> bytes:
        """MSB-first packing: bit i -> byte i // 8, position 7 - i % 8."""
        if not self.bits:
            return b""
        packed = np.packbits(np.array(self.bits, dtype=bool), bitorder="big")
        return packed.tobytes()

    def hex(self) -> str:
        """Lowercase hex, two digits per byte, no prefix."""
        return self.to_bytes().hex()

    def to_int(self) -> int:
        """Packed bytes as a big-endian unsigned int (64-bit for default configs)."""
        return int.from_bytes(self.to_bytes(), byteorder="big", signed=False)

    # ------------ Decoders ------------

    @classmethod
    def from_bytes(cls, data: bytes, bit_count: Optional[int] = None) -> "ImageHash":
        """
        Inverse of `to_bytes`. `bit_count` defaults to 8 * len(data); a shorter
        count drops the padding bits of the last byte.

        Raises:
            HashFormatError: if bit_count doesn't fit the given bytes.
        """
        total = len(data) * 8
        n = total if bit_count is None else bit_count
        if n < 0 or n > total or (len(data) and n <= total - 8):
            raise HashFormatError(
                f"bit_count {n} doesn't match {len(data)} byte(s) of hash data"
            )
        if not data:
            return cls(())
        unpacked = np.unpackbits(np.frombuffer(data, dtype=np.uint8), bitorder="big")
        return cls(unpacked[:n].astype(bool).tolist())

    @classmethod
    def from_hex(cls, text: str, bit_count: Optional[int] = None) -> "ImageHash":
        """
        Parse a hex string produced by `hex()`.

        Raises:
            HashFormatError: for odd-length or non-hex input.
        """
        if not _HEX_RE.match(text):
            raise HashFormatError(f"Not a valid hash hex string: {text!r}")
        return cls.from_bytes(bytes.fromhex(text), bit_count)

    # ------------ Comparison ------------

    def hamming(self, other: "ImageHash") -> int:
        """
        Number of differing bit positions.

        Raises:
            HashLengthError: if the hashes have different bit counts.
        """
        if len(self.bits) != len(other.bits):
            raise HashLengthError(
                f"Cannot compare hashes of {len(self.bits)} and {len(other.bits)} bits"
            )
        return sum(a != b for a, b in zip(self.bits, other.bits))


def hamming_distance(a: ImageHash, b: ImageHash) -> int:
    """Hamming distance of two equal-length hashes."""
    return a.hamming(b)
