# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Width configuration for the fixed-point core.

The largest supported storage width is decided once, when a config is built.
`DEFAULT_CONFIG` is resolved from the environment at import time:

    FXPOINT_MAX_STORAGE_BITS   32 or 64 (default 64)
    FXPOINT_DEBUG_CHECKS       1/true/yes/on enables shift round-trip checks
                               (default: on unless Python runs with -O)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .errors import ConfigError

ALLOWED_MAX_STORAGE_BITS = (32, 64)
ALL_STORAGE_BITS = (8, 16, 32, 64)

ENV_MAX_STORAGE_BITS = "FXPOINT_MAX_STORAGE_BITS"
ENV_DEBUG_CHECKS = "FXPOINT_DEBUG_CHECKS"


@dataclass(frozen=True)
class WidthConfig:
    """Storage-width ceiling and debug-check switch shared by formats."""

    max_storage_bits: int = 64
    debug_checks: bool = __debug__

    def __post_init__(self):
        if self.max_storage_bits not in ALLOWED_MAX_STORAGE_BITS:
            raise ConfigError(
                f"max_storage_bits must be one of {ALLOWED_MAX_STORAGE_BITS}, "
                f"got {self.max_storage_bits!r}"
            )

    @property
    def storage_widths(self) -> Tuple[int, ...]:
        """Supported storage widths, smallest first."""
        return tuple(b for b in ALL_STORAGE_BITS if b <= self.max_storage_bits)


def _flag_enabled(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(environ: Optional[Mapping[str, str]] = None) -> WidthConfig:
    """Build a WidthConfig from FXPOINT_* environment variables."""
    env = os.environ if environ is None else environ

    raw_bits = env.get(ENV_MAX_STORAGE_BITS, "").strip()
    if raw_bits:
        try:
            max_bits = int(raw_bits)
        except ValueError:
            raise ConfigError(
                f"{ENV_MAX_STORAGE_BITS} must be an integer, got {raw_bits!r}"
            ) from None
    else:
        max_bits = 64

    raw_debug = env.get(ENV_DEBUG_CHECKS)
    debug = __debug__ if raw_debug is None else _flag_enabled(raw_debug)

    return WidthConfig(max_storage_bits=max_bits, debug_checks=debug)


DEFAULT_CONFIG = load_config()
