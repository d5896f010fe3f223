"""Two's-complement fixed-point arithmetic on integer raw values.

A value is stored as a signed integer ``raw`` that stands for
``raw / 2**frac_bits``. Conversions from real numbers truncate toward
negative infinity and results that leave the range wrap around, as a
hardware register of ``total_bits`` bits would.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import numpy as np


class Activation(enum.IntEnum):
    """Activation applied after a dense layer."""

    LINEAR = 0
    SOFTMAX = 1
    SIGMOID = 2
    RELU = 3


@dataclass(frozen=True)
class FixedFormat:
    """A signed fixed-point format with ``int_bits`` of its bits before the point."""

    total_bits: int = 32
    int_bits: int = 10

    def __post_init__(self) -> None:
        if not 2 <= self.total_bits <= 32:
            raise ValueError(f"total_bits must lie in 2..32, got {self.total_bits}")
        if not 1 <= self.int_bits <= self.total_bits:
            raise ValueError(
                f"int_bits must lie in 1..{self.total_bits}, got {self.int_bits}"
            )

    @property
    def frac_bits(self) -> int:
        return self.total_bits - self.int_bits

    @property
    def scale(self) -> int:
        return 1 << self.frac_bits

    @property
    def min_raw(self) -> int:
        return -(1 << (self.total_bits - 1))

    @property
    def max_raw(self) -> int:
        return (1 << (self.total_bits - 1)) - 1

    @property
    def resolution(self) -> float:
        return 1.0 / self.scale

    def quantize(self, values) -> np.ndarray:
        """Convert real numbers to raw values, truncating and wrapping."""
        arr = np.asarray(values, dtype=np.float64)
        if not np.all(np.isfinite(arr)):
            raise ValueError("cannot quantize values that are not finite")
        scaled = np.floor(arr * self.scale)
        # The remainder of two floats is exact, so large values wrap correctly.
        reduced = np.mod(scaled, float(1 << self.total_bits))
        return self.wrap(reduced.astype(np.int64))

    def to_float(self, raw) -> np.ndarray:
        """Convert raw values to the real numbers they stand for."""
        return np.asarray(raw, dtype=np.int64).astype(np.float64) / self.scale

    def wrap(self, raw) -> np.ndarray:
        """Reduce integers into the signed range of the format."""
        arr = np.asarray(raw, dtype=np.int64)
        modulus = 1 << self.total_bits
        low = arr & (modulus - 1)
        return np.where(low > self.max_raw, low - modulus, low).astype(np.int64)

    def multiply(self, a, b) -> np.ndarray:
        """Multiply raw values, truncating the product back into the format."""
        product = self.wrap(a) * self.wrap(b)
        return self.wrap(product >> self.frac_bits)


FIXEDP = FixedFormat(32, 10)


def to_fixed(values) -> np.ndarray:
    """Quantize real numbers into the default 32-bit format with 10 integer bits."""
    return FIXEDP.quantize(values)


def to_float(raw) -> np.ndarray:
    """Convert raw values of the default format to real numbers."""
    return FIXEDP.to_float(raw)