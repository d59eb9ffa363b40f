# Copyright (c) 2026 Thorir Mar Ingolfsson, ETH Zurich
# SPDX-License-Identifier: Apache-2.0

"""
Moving fixed-point tensors in and out of PyTorch.

Requires the optional `torch` dependency (`pip install fxpoint[torch]`).
Dimensions keep their meaning: `to_torch(t)[i, j] == t.get(i, j)`.
"""

from __future__ import annotations

import numpy as np
import torch

from .format import Format
from .tensor import Tensor

# torch has no general-purpose uint16/uint32 arithmetic; widen to int64.
_RAW_DTYPES = {
    np.dtype(np.int8): torch.int8,
    np.dtype(np.uint8): torch.uint8,
    np.dtype(np.int16): torch.int16,
    np.dtype(np.uint16): torch.int64,
    np.dtype(np.int32): torch.int32,
    np.dtype(np.uint32): torch.int64,
    np.dtype(np.int64): torch.int64,
}


def to_torch(t: Tensor, raw: bool = False) -> torch.Tensor:
    """
    Export `t` as a torch tensor.

    By default the represented real values are returned as float64. With
    `raw=True` the stored integers are returned instead; 64-bit unsigned
    storage has no lossless torch dtype and is rejected.
    """
    if not raw:
        return torch.from_numpy(t.to_doubles().copy(order="C"))
    try:
        dtype = _RAW_DTYPES[t.format.dtype]
    except KeyError:
        raise ValueError(
            f"no lossless torch integer dtype for {t.format.describe()}"
        ) from None
    ints = t.raw_array().astype(np.int64, order="C")
    return torch.from_numpy(ints).to(dtype)


def from_torch(fmt: Format, x: torch.Tensor) -> Tensor:
    """Quantize a floating-point torch tensor to `fmt` (round to nearest, saturate)."""
    values = x.detach().to(device="cpu", dtype=torch.float64).numpy()
    shape = tuple(values.shape)
    return Tensor.from_floats(fmt, shape, values)
