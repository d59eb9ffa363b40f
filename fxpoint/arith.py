# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Fixed-point arithmetic kernels.

Every kernel works on (Format, stored-integer array) pairs and returns a new
pair, so scalar Values and Tensors share one implementation. Arrays are 1-D
numpy arrays in the format's storage dtype; integer wraparound comes from
numpy's modular integer arithmetic and casts.

Result formats:
    a + b, a - b   -> a's format (b is reformatted to it first)
    a * b          -> bits a+b (minus one when both signed), R_a + R_b
    -a             -> signed; unsigned formats gain a sign bit below the max width
"""

from __future__ import annotations

import logging
import math
import warnings
from typing import Tuple

import numpy as np

from .errors import InvalidFormatError, PreconditionError
from .format import Format
from .shift import lshift_static
from .widths import storage_dtype, wrap_to_width

logger = logging.getLogger(__name__)

# ldexp takes a C int exponent
_EXPONENT_LIMIT = 2 ** 31 - 1

Kernel = Tuple[Format, np.ndarray]


def reformat_raw(raw: np.ndarray, src: Format, dst: Format) -> np.ndarray:
    """
    Convert stored integers from `src` to `dst`.

    Widen to the larger of the two storage widths, move the radix point with
    a static shift, then narrow to `dst`. The narrowing step drops high bits
    silently.
    """
    if src == dst:
        return raw.copy()

    working_bits = max(src.storage_bits, dst.storage_bits)
    work = raw.astype(storage_dtype(working_bits, src.is_signed))
    delta = dst.fractional_bits - src.fractional_bits
    check = dst.config.debug_checks

    if delta <= -working_bits:
        # every stored bit is shifted out; only the sign fill remains
        work = np.where(work < 0, -1, 0).astype(work.dtype)
    elif delta >= working_bits:
        if check and np.any(work != 0):
            raise PreconditionError(
                f"reformat from {src.describe()} to {dst.describe()} shifts "
                f"stored value(s) {[int(v) for v in work[work != 0][:4]]} "
                f"left by {delta}, beyond {working_bits}-bit working storage"
            )
        work = np.zeros_like(work)
    else:
        work = lshift_static(
            work, delta, check=check,
            context=f"reformat {src.describe()} -> {dst.describe()}",
        )

    return wrap_to_width(work.astype(dst.dtype), dst.logical_bits)


def _same_quantity(src_raw: np.ndarray, src: Format, dst_raw: np.ndarray, dst: Format) -> np.ndarray:
    s = src_raw.astype(object)
    d = dst_raw.astype(object)
    delta = dst.fractional_bits - src.fractional_bits
    if delta >= 0:
        return np.asarray(s * (1 << delta) == d, dtype=bool)
    return np.asarray(s == d * (1 << -delta), dtype=bool)


def reformat_checked_raw(raw: np.ndarray, src: Format, dst: Format) -> np.ndarray:
    """Like reformat_raw, but fail if any represented quantity changes."""
    out = reformat_raw(raw, src, dst)
    exact = _same_quantity(raw, src, out, dst)
    if not np.all(exact):
        bad = raw[~exact]
        logger.debug("checked reformat rejected %d value(s)", bad.size)
        raise PreconditionError(
            f"stored value(s) {[int(v) for v in bad[:4]]} of {src.describe()} "
            f"are not representable in {dst.describe()}"
        )
    return out


def add_raw(a_fmt: Format, a_raw: np.ndarray, b_fmt: Format, b_raw: np.ndarray) -> Kernel:
    b = reformat_raw(b_raw, b_fmt, a_fmt)
    return a_fmt, wrap_to_width(np.add(a_raw, b), a_fmt.logical_bits)


def sub_raw(a_fmt: Format, a_raw: np.ndarray, b_fmt: Format, b_raw: np.ndarray) -> Kernel:
    b = reformat_raw(b_raw, b_fmt, a_fmt)
    return a_fmt, wrap_to_width(np.subtract(a_raw, b), a_fmt.logical_bits)


def product_bits(a: Format, b: Format) -> int:
    both_signed = a.is_signed and b.is_signed
    return a.logical_bits + b.logical_bits - (1 if both_signed else 0)


def _shrink(fmt: Format, raw: np.ndarray, cut: int) -> Kernel:
    target = Format(
        fmt.logical_bits - cut, fmt.fractional_bits - cut, fmt.is_signed, config=fmt.config
    )
    return target, reformat_raw(raw, fmt, target)


def fit_product_operands(
    a_fmt: Format, a_raw: np.ndarray, b_fmt: Format, b_raw: np.ndarray
) -> Tuple[Format, np.ndarray, Format, np.ndarray]:
    """
    Drop low bits from the operands until their product fits the widest
    supported storage width.

    The wider operand is cut first, but never below the narrower one or half
    the maximum width; operands of equal width share the cut (the first one
    takes the odd bit).
    """
    max_bits = a_fmt.config.max_storage_bits
    half = max_bits // 2
    while product_bits(a_fmt, b_fmt) > max_bits:
        excess = product_bits(a_fmt, b_fmt) - max_bits
        a_bits, b_bits = a_fmt.logical_bits, b_fmt.logical_bits
        if a_bits != b_bits:
            if a_bits > b_bits:
                cut = min(excess, a_bits - max(b_bits, half))
                logger.debug("multiply: dropping %d low bits of left operand (%s)", cut, a_fmt.describe())
                a_fmt, a_raw = _shrink(a_fmt, a_raw, cut)
            else:
                cut = min(excess, b_bits - max(a_bits, half))
                logger.debug("multiply: dropping %d low bits of right operand (%s)", cut, b_fmt.describe())
                b_fmt, b_raw = _shrink(b_fmt, b_raw, cut)
            continue
        a_cut = (excess + 1) // 2
        b_cut = excess // 2
        logger.debug("multiply: dropping %d/%d low bits of equal-width operands", a_cut, b_cut)
        a_fmt, a_raw = _shrink(a_fmt, a_raw, a_cut)
        if b_cut:
            b_fmt, b_raw = _shrink(b_fmt, b_raw, b_cut)
    return a_fmt, a_raw, b_fmt, b_raw


def mul_raw(a_fmt: Format, a_raw: np.ndarray, b_fmt: Format, b_raw: np.ndarray) -> Kernel:
    config = a_fmt.config
    a_fmt, a_raw, b_fmt, b_raw = fit_product_operands(a_fmt, a_raw, b_fmt, b_raw)
    out_fmt = Format(
        product_bits(a_fmt, b_fmt),
        a_fmt.fractional_bits + b_fmt.fractional_bits,
        a_fmt.is_signed or b_fmt.is_signed,
        config=config,
    )
    dtype = out_fmt.dtype
    out = np.multiply(a_raw.astype(dtype), b_raw.astype(dtype))
    return out_fmt, wrap_to_width(out, out_fmt.logical_bits)


def neg_raw(fmt: Format, raw: np.ndarray) -> Kernel:
    """
    Negate into a signed format.

    Unsigned operands gain a sign bit. At the maximum storage width there is
    no room for it, so the top bit must be clear.
    """
    if fmt.is_signed:
        out_fmt = fmt
    elif fmt.logical_bits < fmt.config.max_storage_bits:
        out_fmt = fmt.with_bits(fmt.logical_bits + 1).signed()
    else:
        top = np.right_shift(raw, raw.dtype.type(fmt.logical_bits - 1)) != 0
        if np.any(top):
            raise PreconditionError(
                f"cannot negate unsigned stored value(s) {[int(v) for v in raw[top][:4]]} "
                f"of {fmt.describe()}: top bit set, value does not fit the signed range"
            )
        out_fmt = fmt.signed()
    out = np.negative(raw.astype(out_fmt.dtype))
    return out_fmt, wrap_to_width(out, out_fmt.logical_bits)


def step_raw(fmt: Format, raw: np.ndarray, step: int) -> Kernel:
    """Add `step` units in the last place (raw counts, not 1.0)."""
    one = raw.dtype.type(1)
    out = np.add(raw, one) if step > 0 else np.subtract(raw, one)
    return fmt, wrap_to_width(out, fmt.logical_bits)


def rescale_raw(fmt: Format, raw: np.ndarray) -> Kernel:
    """
    Map between signed [-1, 1) and unsigned [0, 1) by flipping the top bit.

    Only defined for formats whose non-sign bits are all fractional.
    """
    if not fmt.is_pure_fraction:
        raise InvalidFormatError(
            f"rescale needs fractional_bits == bits - sign bit, got {fmt.describe()}"
        )
    bits = fmt.logical_bits
    if fmt.is_signed:
        out_fmt = Format(bits, fmt.fractional_bits + 1, False, config=fmt.config)
        work = wrap_to_width(raw.astype(out_fmt.dtype), bits)
        out = np.bitwise_xor(work, out_fmt.dtype.type(1 << (bits - 1)))
        return out_fmt, out
    out_fmt = Format(bits, fmt.fractional_bits - 1, True, config=fmt.config)
    work = np.bitwise_xor(raw, raw.dtype.type(1 << (bits - 1)))
    return out_fmt, wrap_to_width(work.astype(out_fmt.dtype), bits)


def check_exponent(fmt: Format) -> None:
    if abs(fmt.fractional_bits) > _EXPONENT_LIMIT:
        raise PreconditionError(
            f"fractional_bits={fmt.fractional_bits} is outside the float exponent "
            f"range for {fmt.describe()}"
        )


def dequantize_raw(fmt: Format, raw: np.ndarray, dtype=np.float64) -> np.ndarray:
    check_exponent(fmt)
    return np.ldexp(raw.astype(dtype), -fmt.fractional_bits).astype(dtype)


def to_double(fmt: Format, raw: int) -> float:
    check_exponent(fmt)
    return math.ldexp(float(raw), -fmt.fractional_bits)


def quantize_raw(fmt: Format, x) -> np.ndarray:
    """
    Round real numbers to the nearest stored integer of `fmt` (ties to
    even), saturating at the format range.
    """
    check_exponent(fmt)
    values = np.asarray(x, dtype=np.float64).reshape(-1)
    if np.any(np.isnan(values)):
        raise ValueError(f"cannot represent NaN in {fmt.describe()}")
    scaled = np.round(np.ldexp(values, fmt.fractional_bits))

    over = scaled >= float(fmt.raw_max)
    under = scaled <= float(fmt.raw_min)
    clipped = over | under
    outside = (scaled > float(fmt.raw_max)) | (scaled < float(fmt.raw_min))
    if np.any(outside):
        warnings.warn(
            f"{int(np.count_nonzero(outside))} value(s) saturated to the range of "
            f"{fmt.describe()} [{fmt.min_value}, {fmt.max_value}]",
            RuntimeWarning,
        )

    dtype = fmt.dtype
    safe = np.where(clipped, 0.0, scaled).astype(dtype)
    out = np.where(over, dtype.type(fmt.raw_max), safe)
    out = np.where(under, dtype.type(fmt.raw_min), out)
    return out.astype(dtype)
