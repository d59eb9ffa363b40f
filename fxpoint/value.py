# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Scalar fixed-point values.

A Value is a Format plus one stored integer. There are two ways to build
one and they must not be confused:

    Value.from_raw(fmt, 4)      stored integer is 4 (real value 4 * 2^-R)
    from_int(4)                 real value is 4 (format chosen to fit)

Floats are never stored; `to_float`/`to_double` are conversions only.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from . import arith
from .config import WidthConfig
from .errors import InvalidFormatError
from .format import Format
from .shift import lshift as _raw_lshift
from .shift import rshift as _raw_rshift
from .widths import wrap_int, wrap_to_width


class Value:
    """A fixed-point scalar."""

    __slots__ = ("_format", "_data")

    def __init__(self, fmt: Format, data: np.ndarray):
        # Internal constructor: `data` is a 1-element array already in
        # fmt's storage dtype. Use from_raw / from_int / from_float instead.
        if data.shape != (1,) or data.dtype != fmt.dtype:
            raise InvalidFormatError(
                f"Value storage must be one {fmt.dtype} integer, got {data.dtype}{data.shape}"
            )
        self._format = fmt
        self._data = data

    @classmethod
    def from_raw(cls, fmt: Format, raw: int) -> "Value":
        """Value whose stored integer is `raw` (reduced to the logical width)."""
        wrapped = wrap_int(int(raw), fmt.logical_bits, fmt.is_signed)
        return cls(fmt, np.array([wrapped], dtype=fmt.dtype))

    @classmethod
    def from_float(cls, fmt: Format, x: float) -> "Value":
        """Nearest Value of `fmt` to `x`, saturating at the format range."""
        return cls(fmt, arith.quantize_raw(fmt, [x]))

    @property
    def format(self) -> Format:
        return self._format

    @property
    def raw(self) -> int:
        """The stored integer."""
        return int(self._data[0])

    def copy(self) -> "Value":
        return Value(self._format, self._data.copy())

    def to_float(self) -> np.float32:
        return arith.dequantize_raw(self._format, self._data, np.float32)[0]

    def to_double(self) -> float:
        return arith.to_double(self._format, self.raw)

    def __float__(self) -> float:
        return self.to_double()

    def reformat(self, fmt: Format) -> "Value":
        return Value(fmt, arith.reformat_raw(self._data, self._format, fmt))

    def reformat_checked(self, fmt: Format) -> "Value":
        return Value(fmt, arith.reformat_checked_raw(self._data, self._format, fmt))

    def _coerce(self, other) -> Optional["Value"]:
        if isinstance(other, Value):
            return other
        if isinstance(other, (int, np.integer)) and not isinstance(other, bool):
            return from_int(other, self._format.config)
        return None

    def _binary(self, kernel, other, reflected: bool = False):
        o = self._coerce(other)
        if o is None:
            return NotImplemented
        left, right = (o, self) if reflected else (self, o)
        fmt, raw = kernel(left._format, left._data, right._format, right._data)
        return Value(fmt, raw)

    def __add__(self, other):
        return self._binary(arith.add_raw, other)

    def __radd__(self, other):
        return self._binary(arith.add_raw, other, reflected=True)

    def __sub__(self, other):
        return self._binary(arith.sub_raw, other)

    def __rsub__(self, other):
        return self._binary(arith.sub_raw, other, reflected=True)

    def __mul__(self, other):
        return self._binary(arith.mul_raw, other)

    def __rmul__(self, other):
        return self._binary(arith.mul_raw, other, reflected=True)

    def _inplace(self, kernel, other):
        o = self._coerce(other)
        if o is None:
            # v += tensor must not rebind v to a Tensor
            raise TypeError(
                f"unsupported operand for in-place Value arithmetic: {type(other).__name__}"
            )
        _, raw = kernel(self._format, self._data, o._format, o._data)
        self._data[:] = raw
        return self

    def __iadd__(self, other):
        return self._inplace(arith.add_raw, other)

    def __isub__(self, other):
        return self._inplace(arith.sub_raw, other)

    def __neg__(self) -> "Value":
        fmt, raw = arith.neg_raw(self._format, self._data)
        return Value(fmt, raw)

    def increment(self) -> "Value":
        """++v: add one stored count (one ULP, not 1.0) in place."""
        _, raw = arith.step_raw(self._format, self._data, 1)
        self._data[:] = raw
        return self

    def decrement(self) -> "Value":
        _, raw = arith.step_raw(self._format, self._data, -1)
        self._data[:] = raw
        return self

    def rescale(self) -> "Value":
        fmt, raw = arith.rescale_raw(self._format, self._data)
        return Value(fmt, raw)

    def lshift(self, count: int) -> "Value":
        """Shift the stored bits left; the format is unchanged."""
        raw = wrap_to_width(_raw_lshift(self._data, count), self._format.logical_bits)
        return Value(self._format, raw)

    def rshift(self, count: int) -> "Value":
        return Value(self._format, _raw_rshift(self._data, count))

    def __lshift__(self, count):
        return self.lshift(count)

    def __rshift__(self, count):
        return self.rshift(count)

    def __ilshift__(self, count):
        self._data[:] = self.lshift(count)._data
        return self

    def __irshift__(self, count):
        self._data[:] = self.rshift(count)._data
        return self

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return self._format == other._format and self.raw == other.raw

    __hash__ = None

    def __repr__(self) -> str:
        return f"Value(raw={self.raw}, format={self._format!r})"

    def __str__(self) -> str:
        return str(self.to_double())


def from_int(n: int, config: Optional[WidthConfig] = None) -> Value:
    """Value representing the integer `n` exactly, in the smallest integer format."""
    fmt = Format.for_int(n, config)
    return Value(fmt, np.array([int(n)], dtype=fmt.dtype))
