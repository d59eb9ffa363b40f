#!/usr/bin/env python
# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Q15 FIR filter built from fxpoint tensors.

Products of two Q15 samples are exact 31-bit values with 30 fractional bits;
they are summed in a 40-bit accumulator so a handful of taps cannot
overflow, and the result is narrowed back to Q15 at the end.

Usage:
    python examples/fir_filter.py --taps 0.25 0.5 0.25 --signal 0.5 -0.5 0.25 0.75
"""

from __future__ import annotations

import argparse
import logging
from typing import Sequence

import numpy as np

from fxpoint import Q15, Format, Tensor, Value

logger = logging.getLogger(__name__)

ACCUMULATOR = Format(40, 30, True)


def fir_q15(taps: Sequence[float], signal: Sequence[float]) -> Tensor:
    """Filter `signal` with `taps`; both are quantized to Q15."""
    h = Tensor.from_floats(Q15, (len(taps),), taps)
    x = Tensor.from_floats(Q15, (len(signal),), signal)
    y = Tensor.zeros(Q15, (len(signal),))

    for n in range(len(signal)):
        acc = Value.from_raw(ACCUMULATOR, 0)
        for k in range(len(taps)):
            if n - k < 0:
                break
            acc += h[k] * x[n - k]
        y[n] = acc
        logger.debug("y[%d] = %s (accumulator raw %d)", n, y[n], acc.raw)
    return y


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run a Q15 FIR filter")
    parser.add_argument("--taps", type=float, nargs="+", required=True)
    parser.add_argument("--signal", type=float, nargs="+", required=True)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    y = fir_q15(args.taps, args.signal)
    reference = np.convolve(args.signal, args.taps)[: len(args.signal)]
    print(f"fixed-point: {y.to_doubles()}")
    print(f"float64:     {reference}")
    print(f"max error:   {np.max(np.abs(y.to_doubles() - reference)):.3e}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
