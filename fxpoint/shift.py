# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Shift primitives on stored integers.

Two families:

- static-amount shifts (`lshift_static`, `rshift_static`) take a signed
  amount fixed by the calling operation; a negative left shift is a right
  shift and vice versa. Left shifts that drop high bits fail a round-trip
  check when debug checks are enabled.
- runtime-amount shifts (`lshift`, `rshift`) move raw storage bits by an
  unsigned count and never touch the format.

Counts outside [0, storage width) are rejected instead of being handed to
numpy, whose behavior for them is platform dependent.
"""

from __future__ import annotations

import operator

import numpy as np

from .errors import PreconditionError

_MAX_REPORTED = 4


def _dtype_bits(raw: np.ndarray) -> int:
    return raw.dtype.itemsize * 8


def _offending(values: np.ndarray) -> str:
    shown = [int(v) for v in values.reshape(-1)[:_MAX_REPORTED]]
    more = values.size - len(shown)
    text = ", ".join(str(v) for v in shown)
    return f"[{text}{', ...' if more > 0 else ''}]"


def _check_amount(raw: np.ndarray, amount: int, what: str, context: str) -> None:
    width = _dtype_bits(raw)
    if amount < 0 or amount >= width:
        suffix = f" ({context})" if context else ""
        raise PreconditionError(
            f"{what} by {amount} is outside [0, {width}) for {raw.dtype} storage{suffix}"
        )


def _left(raw: np.ndarray, amount: int, check: bool, context: str) -> np.ndarray:
    _check_amount(raw, amount, "left shift", context)
    k = raw.dtype.type(amount)
    out = np.left_shift(raw, k)
    if check and amount:
        lost = np.right_shift(out, k) != raw
        if np.any(lost):
            suffix = f" ({context})" if context else ""
            raise PreconditionError(
                f"left shift by {amount} loses high bits of stored value(s) "
                f"{_offending(raw[lost])} in {raw.dtype} storage{suffix}"
            )
    return out


def _right(raw: np.ndarray, amount: int, context: str) -> np.ndarray:
    _check_amount(raw, amount, "right shift", context)
    return np.right_shift(raw, raw.dtype.type(amount))


def lshift_static(raw: np.ndarray, amount: int, check: bool = True, context: str = "") -> np.ndarray:
    """Shift left by a signed amount (negative shifts right)."""
    amount = operator.index(amount)
    if amount < 0:
        return _right(raw, -amount, context)
    return _left(raw, amount, check, context)


def rshift_static(raw: np.ndarray, amount: int, check: bool = True, context: str = "") -> np.ndarray:
    """Shift right by a signed amount (negative shifts left, checked)."""
    amount = operator.index(amount)
    if amount < 0:
        return _left(raw, -amount, check, context)
    return _right(raw, amount, context)


def lshift(raw: np.ndarray, count: int) -> np.ndarray:
    """Raw left shift of stored bits by a runtime count."""
    count = operator.index(count)
    _check_amount(raw, count, "left shift", "")
    return np.left_shift(raw, raw.dtype.type(count))


def rshift(raw: np.ndarray, count: int) -> np.ndarray:
    """Raw right shift (arithmetic for signed storage) by a runtime count."""
    count = operator.index(count)
    _check_amount(raw, count, "right shift", "")
    return np.right_shift(raw, raw.dtype.type(count))
