"""
Unnormalized 1-D DCT-II.

    X[k] = 2 * sum_i x[i] * cos(pi * k * (2i + 1) / (2N))

Direct O(N^2) evaluation in float64; N is the preprocessed row width (32 by
default), so a fast transform buys nothing here.

The sum runs over i in ascending order for every k (elementwise numpy ops, no
BLAS), so results don't depend on the linked BLAS or its blocking; pHash bits
sit right at the band mean often enough for that to matter.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Sequence, Union, cast

import numpy as np
from numpy.typing import ArrayLike, NDArray


@lru_cache(maxsize=32)
def _basis(n: int) -> NDArray[np.float64]:
    k = np.arange(n, dtype=np.float64)[:, None]
    i = np.arange(n, dtype=np.float64)[None, :]
    basis = np.cos(np.pi * k * (2.0 * i + 1.0) / (2.0 * n))
    basis.setflags(write=False)
    return cast(NDArray[np.float64], basis)


def dct(samples: Union[Sequence[float], ArrayLike]) -> NDArray[np.float64]:
    """DCT-II of a 1-D sequence; returns N float64 coefficients."""
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 1:
        raise ValueError(f"dct expects a 1-D sequence, got shape {x.shape}")
    return dct_rows(x[None, :])[0]


def dct_rows(matrix: ArrayLike) -> NDArray[np.float64]:
    """Apply `dct` independently to every row of a 2-D array (columns untouched)."""
    m = np.asarray(matrix, dtype=np.float64)
    if m.ndim != 2:
        raise ValueError(f"dct_rows expects a 2-D array, got shape {m.shape}")
    n = m.shape[1]
    acc = np.zeros(m.shape, dtype=np.float64)
    if n == 0:
        return acc
    basis = _basis(n)
    for i in range(n):
        # acc[r, k] += x[r, i] * cos(pi * k * (2i + 1) / 2N)
        acc += m[:, i : i + 1] * basis[:, i]
    return cast(NDArray[np.float64], 2.0 * acc)
