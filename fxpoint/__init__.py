# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
fxpoint: fixed-point arithmetic with format tracking.

Formats fix bit width, signedness and radix-point position up front; the
operators decide result formats (sums keep the left operand's format,
products widen) and compute in native integer widths.

    >>> from fxpoint import Format, Value, from_int
    >>> x = Value.from_raw(Format(8, 3, False), 4)
    >>> x.to_double()
    0.5
    >>> (x * from_int(3)).to_double()
    1.5
"""

from .config import DEFAULT_CONFIG, WidthConfig, load_config
from .errors import (
    ConfigError,
    FixedPointError,
    InvalidFormatError,
    PreconditionError,
    ShapeMismatchError,
)
from .format import Q7, Q15, Q31, Format, qformat, uqformat
from .ops import lshift, reformat, reformat_checked, rescale, rshift, to_double
from .tensor import Tensor
from .value import Value, from_int
from .widths import round_up_to_storage_width

__all__ = [
    'DEFAULT_CONFIG',
    'WidthConfig',
    'load_config',
    'ConfigError',
    'FixedPointError',
    'InvalidFormatError',
    'PreconditionError',
    'ShapeMismatchError',
    'Format',
    'qformat',
    'uqformat',
    'Q7',
    'Q15',
    'Q31',
    'Value',
    'from_int',
    'Tensor',
    'reformat',
    'reformat_checked',
    'rescale',
    'lshift',
    'rshift',
    'to_double',
    'round_up_to_storage_width',
]
