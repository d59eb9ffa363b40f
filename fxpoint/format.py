# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Fixed-point format descriptors.

A Format is pure metadata: it maps a stored integer to a real number as

    real = stored * 2^(-fractional_bits)

`fractional_bits` is not tied to the bit width. Negative values put the radix
point beyond the stored bits (large magnitudes), values above the width put
it before them (tiny magnitudes). Both are ordinary formats.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .config import DEFAULT_CONFIG, WidthConfig
from .errors import InvalidFormatError
from .widths import round_up_to_storage_width, storage_dtype


@dataclass(frozen=True)
class Format:
    """Bit width, signedness and radix-point position of a fixed-point type."""

    logical_bits: int
    fractional_bits: int
    is_signed: bool
    storage_bits: int = field(init=False)
    config: WidthConfig = field(default=DEFAULT_CONFIG, compare=False, repr=False)

    def __post_init__(self):
        if isinstance(self.logical_bits, bool) or not isinstance(self.logical_bits, (int, np.integer)):
            raise InvalidFormatError(f"logical_bits must be an integer, got {self.logical_bits!r}")
        if isinstance(self.fractional_bits, bool) or not isinstance(self.fractional_bits, (int, np.integer)):
            raise InvalidFormatError(f"fractional_bits must be an integer, got {self.fractional_bits!r}")
        if not isinstance(self.is_signed, (bool, np.bool_)):
            raise InvalidFormatError(f"is_signed must be a bool, got {self.is_signed!r}")
        object.__setattr__(self, "logical_bits", int(self.logical_bits))
        object.__setattr__(self, "fractional_bits", int(self.fractional_bits))
        object.__setattr__(self, "is_signed", bool(self.is_signed))
        object.__setattr__(
            self, "storage_bits", round_up_to_storage_width(self.logical_bits, self.config)
        )

    @classmethod
    def for_int(cls, n: int, config: Optional[WidthConfig] = None) -> "Format":
        """Smallest integer format (R = 0) that holds `n` exactly."""
        n = int(n)
        if n < 0:
            bits = (~n).bit_length() + 1
        else:
            bits = max(1, n.bit_length())
        return cls(bits, 0, n < 0, config=config or DEFAULT_CONFIG)

    @property
    def sign_bit(self) -> int:
        return 1 if self.is_signed else 0

    @property
    def integral_bits(self) -> int:
        return self.logical_bits - self.fractional_bits - self.sign_bit

    @property
    def dtype(self) -> np.dtype:
        return storage_dtype(self.storage_bits, self.is_signed)

    @property
    def raw_min(self) -> int:
        return -(1 << (self.logical_bits - 1)) if self.is_signed else 0

    @property
    def raw_max(self) -> int:
        return (1 << (self.logical_bits - self.sign_bit)) - 1

    @property
    def resolution(self) -> float:
        """Real value of one unit in the last place."""
        return math.ldexp(1.0, -self.fractional_bits)

    @property
    def min_value(self) -> float:
        return math.ldexp(float(self.raw_min), -self.fractional_bits)

    @property
    def max_value(self) -> float:
        return math.ldexp(float(self.raw_max), -self.fractional_bits)

    @property
    def is_pure_fraction(self) -> bool:
        """True when every non-sign bit is a fractional bit."""
        return self.fractional_bits == self.logical_bits - self.sign_bit

    def signed(self) -> "Format":
        return Format(self.logical_bits, self.fractional_bits, True, config=self.config)

    def unsigned(self) -> "Format":
        return Format(self.logical_bits, self.fractional_bits, False, config=self.config)

    def with_bits(self, logical_bits: int, fractional_bits: Optional[int] = None) -> "Format":
        if fractional_bits is None:
            fractional_bits = self.fractional_bits
        return Format(logical_bits, fractional_bits, self.is_signed, config=self.config)

    def describe(self) -> str:
        sign = "signed" if self.is_signed else "unsigned"
        return (
            f"{sign} {self.logical_bits}-bit (storage {self.storage_bits}), "
            f"fractional_bits={self.fractional_bits}"
        )


def qformat(m: int, n: int, config: Optional[WidthConfig] = None) -> Format:
    """Signed Qm.n format: m integral bits, n fractional bits, one sign bit."""
    return Format(m + n + 1, n, True, config=config or DEFAULT_CONFIG)


def uqformat(m: int, n: int, config: Optional[WidthConfig] = None) -> Format:
    """Unsigned UQm.n format."""
    return Format(m + n, n, False, config=config or DEFAULT_CONFIG)


# Pure fractions in [-1, 1)
Q7 = qformat(0, 7)
Q15 = qformat(0, 15)
Q31 = qformat(0, 31)
