# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Free-function forms of the format-changing operations (Value or Tensor)."""

from __future__ import annotations

from typing import TypeVar, Union

from .format import Format
from .tensor import Tensor
from .value import Value

FixedPoint = TypeVar("FixedPoint", Value, Tensor)


def reformat(x: FixedPoint, fmt: Format) -> FixedPoint:
    """
    Convert to `fmt`, keeping the represented quantity where `fmt` can hold it.

    High bits that do not fit `fmt` are dropped silently; use
    `reformat_checked` to reject lossy conversions instead.
    """
    return x.reformat(fmt)


def reformat_checked(x: FixedPoint, fmt: Format) -> FixedPoint:
    return x.reformat_checked(fmt)


def rescale(x: FixedPoint) -> FixedPoint:
    """Signed [-1, 1) <-> unsigned [0, 1) via a top-bit flip."""
    return x.rescale()


def lshift(x: FixedPoint, count: int) -> FixedPoint:
    return x.lshift(count)


def rshift(x: FixedPoint, count: int) -> FixedPoint:
    return x.rshift(count)


def to_double(x: Union[Value, Tensor]):
    if isinstance(x, Tensor):
        return x.to_doubles()
    return x.to_double()
