# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Legal storage widths and their numpy integer dtypes.

Any requested bit count is rounded up to the next supported storage width
(8, 16, 32 and, when configured, 64 bits).
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .config import DEFAULT_CONFIG, WidthConfig
from .errors import InvalidFormatError

_SIGNED_DTYPES = {
    8: np.dtype(np.int8),
    16: np.dtype(np.int16),
    32: np.dtype(np.int32),
    64: np.dtype(np.int64),
}
_UNSIGNED_DTYPES = {
    8: np.dtype(np.uint8),
    16: np.dtype(np.uint16),
    32: np.dtype(np.uint32),
    64: np.dtype(np.uint64),
}


def round_up_to_storage_width(n: int, config: Optional[WidthConfig] = None) -> int:
    """Return the smallest supported storage width >= n."""
    config = config or DEFAULT_CONFIG
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        raise InvalidFormatError(f"bit count must be an integer, got {n!r}")
    if n < 1:
        raise InvalidFormatError(f"bit count must be >= 1, got {n}")
    for width in config.storage_widths:
        if n <= width:
            return width
    raise InvalidFormatError(
        f"{n} bits exceeds the maximum supported storage width "
        f"({config.max_storage_bits} bits)"
    )


def storage_dtype(bits: int, signed: bool) -> np.dtype:
    """numpy dtype backing a supported storage width."""
    table = _SIGNED_DTYPES if signed else _UNSIGNED_DTYPES
    try:
        return table[bits]
    except KeyError:
        raise InvalidFormatError(f"{bits} is not a storage width") from None


def wrap_to_width(raw: np.ndarray, bits: int) -> np.ndarray:
    """
    Reduce stored integers to `bits` logical bits, in place of their dtype.

    High bits above `bits` are dropped; the remaining value is sign- or
    zero-extended back to the full dtype width.
    """
    width = raw.dtype.itemsize * 8
    if bits >= width:
        return raw
    unused = raw.dtype.type(width - bits)
    return np.right_shift(np.left_shift(raw, unused), unused)


def wrap_int(n: int, bits: int, signed: bool) -> int:
    """Two's-complement reduction of a Python int to `bits` bits."""
    n &= (1 << bits) - 1
    if signed and n >> (bits - 1):
        n -= 1 << bits
    return n
