"""Deterministic pseudo-random source derived from a string seed."""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")

_MODULUS = 233280
_MULTIPLIER = 9301
_INCREMENT = 49297


def hash_seed(seed: str) -> int:
    """Hash ``seed`` with 32-bit ``h * 31 + c`` wraparound over its UTF-16 code units."""
    value = 0
    encoded = seed.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        code_unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


class SeededRandom:
    """Linear-congruential generator; identical seeds always yield identical sequences.

    Not thread-safe. Each generation pass should own its own instance.
    """

    def __init__(self, seed: str) -> None:
        self._state = hash_seed(seed)

    def next(self) -> float:
        """Return the next value in ``[0, 1)``."""
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def next_int(self, minimum: int, maximum: int) -> int:
        """Return an integer in ``[minimum, maximum]``."""
        return math.floor(self.next() * (maximum - minimum + 1)) + minimum

    def next_float(self, minimum: float, maximum: float) -> float:
        return self.next() * (maximum - minimum) + minimum

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[math.floor(self.next() * len(items))]
