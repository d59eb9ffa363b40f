# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Fixed-shape tensors of fixed-point scalars.

All elements share one Format. Storage is a flat numpy array in the
format's storage dtype, indexed first-dimension fastest:

    idx = sum(i_j * stride_j),   stride_j = prod(shape[m] for m < j)

so `to_doubles()` and `raw_array()` reshape with Fortran order and
`arr[i1, ..., ik] == t.get(i1, ..., ik)`.

Binary operators broadcast in this order:
    1. scalar (Value or int) with tensor, on either side
    2. a single-element tensor is unwrapped to a scalar, then rule 1
    3. tensors of identical shape, element by element
"""

from __future__ import annotations

import math
from typing import Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np

from . import arith
from .errors import InvalidFormatError, ShapeMismatchError
from .format import Format
from .shift import lshift as _raw_lshift
from .shift import rshift as _raw_rshift
from .value import Value, from_int
from .widths import wrap_int, wrap_to_width

Shape = Tuple[int, ...]


def _normalize_shape(shape) -> Shape:
    if isinstance(shape, (int, np.integer)):
        shape = (shape,)
    shape = tuple(int(n) for n in shape)
    for n in shape:
        if n < 1:
            raise InvalidFormatError(f"tensor extents must be >= 1, got shape {shape}")
    return shape


def _flatten_input(values, shape: Shape) -> np.ndarray:
    arr = np.asarray(values)
    if arr.shape == shape:
        return arr.reshape(-1, order="F")
    return arr.reshape(-1)


class Tensor:
    """A multi-dimensional aggregate of same-format fixed-point values."""

    __slots__ = ("_format", "_shape", "_data")

    def __init__(self, fmt: Format, shape: Sequence[int], data: np.ndarray):
        # Internal constructor; see zeros / broadcast / from_values / from_raw.
        shape = _normalize_shape(shape)
        size = math.prod(shape)
        if data.ndim != 1 or data.size != size:
            raise ShapeMismatchError(
                f"tensor of shape {shape} needs {size} elements, got {data.size}"
            )
        if data.dtype != fmt.dtype:
            raise InvalidFormatError(f"tensor storage must be {fmt.dtype}, got {data.dtype}")
        self._format = fmt
        self._shape = shape
        self._data = data

    @classmethod
    def zeros(cls, fmt: Format, shape: Sequence[int]) -> "Tensor":
        shape = _normalize_shape(shape)
        return cls(fmt, shape, np.zeros(math.prod(shape), dtype=fmt.dtype))

    @classmethod
    def broadcast(cls, shape: Sequence[int], value: Value) -> "Tensor":
        """Replicate one scalar across every position."""
        shape = _normalize_shape(shape)
        fmt = value.format
        return cls(fmt, shape, np.full(math.prod(shape), value.raw, dtype=fmt.dtype))

    @classmethod
    def from_values(cls, shape: Sequence[int], values: Iterable[Value]) -> "Tensor":
        """Concatenate same-format Values, in flat index order."""
        shape = _normalize_shape(shape)
        values = list(values)
        size = math.prod(shape)
        if len(values) != size:
            raise ShapeMismatchError(
                f"tensor of shape {shape} needs {size} values, got {len(values)}"
            )
        fmt = values[0].format
        for i, v in enumerate(values):
            if v.format != fmt:
                raise InvalidFormatError(
                    f"value {i} has format {v.format.describe()}, expected {fmt.describe()}"
                )
        return cls(fmt, shape, np.concatenate([v._data for v in values]))

    @classmethod
    def from_raw(cls, fmt: Format, shape: Sequence[int], raws) -> "Tensor":
        """
        Tensor whose stored integers are `raws`.

        `raws` is either a flat sequence in flat index order or an array of
        exactly `shape`.
        """
        shape = _normalize_shape(shape)
        flat = _flatten_input(raws, shape)
        wrapped = [wrap_int(int(r), fmt.logical_bits, fmt.is_signed) for r in flat]
        return cls(fmt, shape, np.array(wrapped, dtype=fmt.dtype))

    @classmethod
    def from_floats(cls, fmt: Format, shape: Sequence[int], floats) -> "Tensor":
        """Nearest representable values, saturating at the format range."""
        shape = _normalize_shape(shape)
        return cls(fmt, shape, arith.quantize_raw(fmt, _flatten_input(floats, shape)))

    @property
    def format(self) -> Format:
        return self._format

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def size(self) -> int:
        return self._data.size

    @property
    def strides(self) -> Shape:
        strides = []
        step = 1
        for n in self._shape:
            strides.append(step)
            step *= n
        return tuple(strides)

    def copy(self) -> "Tensor":
        return Tensor(self._format, self._shape, self._data.copy())

    def _flat_index(self, index: Sequence[int]) -> int:
        if len(index) != len(self._shape):
            raise IndexError(
                f"tensor of shape {self._shape} needs {len(self._shape)} indices, got {len(index)}"
            )
        flat = 0
        for i, n, stride in zip(index, self._shape, self.strides):
            i = int(i)
            if not 0 <= i < n:
                raise IndexError(f"index {tuple(index)} out of range for shape {self._shape}")
            flat += i * stride
        return flat

    def get(self, *index: int) -> Value:
        flat = self._flat_index(index)
        return Value(self._format, self._data[flat:flat + 1].copy())

    def set(self, *index: int, value) -> None:
        """Store `value` (reformatted to this tensor's format) at `index`."""
        flat = self._flat_index(index)
        if isinstance(value, (int, np.integer)) and not isinstance(value, bool):
            value = from_int(value, self._format.config)
        if not isinstance(value, Value):
            raise TypeError(f"expected a Value or int, got {type(value).__name__}")
        self._data[flat] = value.reformat(self._format)._data[0]

    def __getitem__(self, key) -> Value:
        if not isinstance(key, tuple):
            key = (key,)
        return self.get(*key)

    def __setitem__(self, key, value) -> None:
        if not isinstance(key, tuple):
            key = (key,)
        self.set(*key, value=value)

    def values(self) -> Iterator[Value]:
        """Elements in flat index order."""
        for flat in range(self.size):
            yield Value(self._format, self._data[flat:flat + 1].copy())

    def __iter__(self) -> Iterator[Value]:
        return self.values()

    def raw_array(self) -> np.ndarray:
        """Stored integers as an array of this tensor's shape."""
        return self._data.reshape(self._shape, order="F").copy()

    def to_doubles(self) -> np.ndarray:
        return arith.dequantize_raw(self._format, self._data).reshape(self._shape, order="F")

    def to_floats(self) -> np.ndarray:
        return arith.dequantize_raw(self._format, self._data, np.float32).reshape(
            self._shape, order="F"
        )

    def reformat(self, fmt: Format) -> "Tensor":
        return Tensor(fmt, self._shape, arith.reformat_raw(self._data, self._format, fmt))

    def reformat_checked(self, fmt: Format) -> "Tensor":
        return Tensor(fmt, self._shape, arith.reformat_checked_raw(self._data, self._format, fmt))

    # -- broadcasting ---------------------------------------------------------

    def _scalar(self, other) -> Optional[Value]:
        if isinstance(other, Value):
            return other
        if isinstance(other, (int, np.integer)) and not isinstance(other, bool):
            return from_int(other, self._format.config)
        return None

    def _pair(self, other) -> Optional[Tuple[Format, np.ndarray, Shape]]:
        """Resolve `self (op) other` to (right format, right storage, result shape)."""
        scalar = self._scalar(other)
        if scalar is not None:
            return scalar.format, scalar._data, self._shape
        if not isinstance(other, Tensor):
            return None
        if self.size == 1:
            return other._format, other._data, other._shape
        if other.size == 1 or other._shape == self._shape:
            return other._format, other._data, self._shape
        raise ShapeMismatchError(
            f"cannot combine tensors of shape {self._shape} and {other._shape}"
        )

    def _binary(self, kernel, other) -> "Tensor":
        pair = self._pair(other)
        if pair is None:
            return NotImplemented
        o_fmt, o_raw, shape = pair
        fmt, raw = kernel(self._format, self._data, o_fmt, o_raw)
        return Tensor(fmt, shape, raw)

    def _reflected(self, kernel, other) -> "Tensor":
        scalar = self._scalar(other)
        if scalar is None:
            return NotImplemented
        fmt, raw = kernel(scalar.format, scalar._data, self._format, self._data)
        return Tensor(fmt, self._shape, raw)

    def _inplace(self, kernel, other) -> "Tensor":
        pair = self._pair(other)
        if pair is None:
            return NotImplemented
        o_fmt, o_raw, shape = pair
        if shape != self._shape:
            raise ShapeMismatchError(
                f"in-place result of shape {shape} does not fit tensor of shape {self._shape}"
            )
        _, raw = kernel(self._format, self._data, o_fmt, o_raw)
        self._data[:] = raw
        return self

    def __add__(self, other):
        return self._binary(arith.add_raw, other)

    def __radd__(self, other):
        return self._reflected(arith.add_raw, other)

    def __sub__(self, other):
        return self._binary(arith.sub_raw, other)

    def __rsub__(self, other):
        return self._reflected(arith.sub_raw, other)

    def __mul__(self, other):
        return self._binary(arith.mul_raw, other)

    def __rmul__(self, other):
        return self._reflected(arith.mul_raw, other)

    def __iadd__(self, other):
        return self._inplace(arith.add_raw, other)

    def __isub__(self, other):
        return self._inplace(arith.sub_raw, other)

    def __neg__(self) -> "Tensor":
        fmt, raw = arith.neg_raw(self._format, self._data)
        return Tensor(fmt, self._shape, raw)

    def increment(self) -> "Tensor":
        """Add one stored count to every element, in place."""
        _, raw = arith.step_raw(self._format, self._data, 1)
        self._data[:] = raw
        return self

    def decrement(self) -> "Tensor":
        _, raw = arith.step_raw(self._format, self._data, -1)
        self._data[:] = raw
        return self

    def rescale(self) -> "Tensor":
        fmt, raw = arith.rescale_raw(self._format, self._data)
        return Tensor(fmt, self._shape, raw)

    def lshift(self, count: int) -> "Tensor":
        raw = wrap_to_width(_raw_lshift(self._data, count), self._format.logical_bits)
        return Tensor(self._format, self._shape, raw)

    def rshift(self, count: int) -> "Tensor":
        return Tensor(self._format, self._shape, _raw_rshift(self._data, count))

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
        if not isinstance(other, Tensor):
            return NotImplemented
        return (
            self._format == other._format
            and self._shape == other._shape
            and bool(np.array_equal(self._data, other._data))
        )

    __hash__ = None

    def __repr__(self) -> str:
        raws = [int(v) for v in self._data]
        return f"Tensor(shape={self._shape}, format={self._format!r}, raw={raws})"

    def __str__(self) -> str:
        return str(self.to_doubles())
