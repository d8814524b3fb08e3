"""Subfingerprint hashes: gray-code remapping and 2-bit packing."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .constants import GRAY_CODE, MAX_CLASSIFIERS


@dataclass(frozen=True, slots=True)
class SubFingerprint:
    """One hash at one time frame.

    Attributes:
        index: Frame index, contiguous from 0 within a track
        hash: 32-bit unsigned hash
        is_variation: Reserved for callers (e.g. to mark generated variants)
    """

    index: int
    hash: int
    is_variation: bool = False


def assemble_hash(symbols: Iterable[int]) -> int:
    """Pack classifier outputs into a hash, first classifier in the high bits.

    Each quantizer level goes through ``GRAY_CODE`` before packing so that
    neighbouring levels differ by a single bit.

    Raises:
        ValueError: If a level is outside 0-3 or there are more than 16 levels
    """
    value = 0
    count = 0
    for symbol in symbols:
        if not 0 <= symbol <= 3:
            raise ValueError(f"Quantizer level must be in 0..3, got {symbol}")
        count += 1
        if count > MAX_CLASSIFIERS:
            raise ValueError(f"At most {MAX_CLASSIFIERS} symbols fit a 32-bit hash")
        value = (value << 2) | GRAY_CODE[symbol]
    return value


def split_hash(value: int, count: int) -> list[int]:
    """Read the ``count`` packed 2-bit groups of a hash, most significant first.

    The groups are returned as stored, i.e. gray-coded.
    """
    return [(value >> (2 * (count - 1 - i))) & 0b11 for i in range(count)]


def hamming_distance(a: int, b: int) -> int:
    """Number of bits in which two hashes differ."""
    return bin((a ^ b) & 0xFFFFFFFF).count("1")
