# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""Exception types raised by the fixed-point core."""


class FixedPointError(Exception):
    """Base class for all fxpoint errors."""


class InvalidFormatError(FixedPointError, ValueError):
    """Raised when a format or tensor is defined with illegal parameters."""


class ShapeMismatchError(InvalidFormatError):
    """Raised when tensor shapes are incompatible for an element-wise op."""


class PreconditionError(FixedPointError, RuntimeError):
    """
    Raised when an operation is called with operands it cannot handle.

    These are programming errors (a shift that loses high bits, negating an
    unsigned value that does not fit the signed range, ...). The message
    always names the offending stored values and format parameters.
    """


class ConfigError(FixedPointError, ValueError):
    """Raised when the width configuration is invalid."""
