"""Seeded Mulberry32 stream used for maze generation.

Bit-compatible with the common JavaScript ``mulberry32`` so a seed yields the
same maze everywhere.
"""

from __future__ import annotations

from typing import List, TypeVar

T = TypeVar("T")

MASK32 = 0xFFFFFFFF
GOLDEN_INCREMENT = 0x6D2B79F5


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


class Mulberry32:
    """Small-state 32-bit PRNG producing floats in [0, 1)."""

    __slots__ = ("_state",)

    def __init__(self, seed: int) -> None:
        self._state = seed & MASK32

    def next_u32(self) -> int:
        self._state = (self._state + GOLDEN_INCREMENT) & MASK32
        t = self._state
        x = _imul(t ^ (t >> 15), t | 1)
        x ^= (x + _imul(x ^ (x >> 7), x | 61)) & MASK32
        return (x ^ (x >> 14)) & MASK32

    def next(self) -> float:
        return self.next_u32() / 4294967296

    def __call__(self) -> float:
        return self.next()


def seeded_shuffle(seq: List[T], rng: Mulberry32) -> List[T]:
    """Fisher-Yates shuffle in place, walking from the end; returns ``seq``."""
    for i in range(len(seq) - 1, 0, -1):
        j = int(rng.next() * (i + 1))
        seq[i], seq[j] = seq[j], seq[i]
    return seq
