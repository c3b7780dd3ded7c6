from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass(frozen=True)
class LossConfig:
    """
    Immutable constants of an ``l2_entropy`` loss, fixed for a solver run.

    ``k`` divides the per-coordinate cap (``C / k`` on the dual variables,
    ``1 / k`` in the primal loss); ``k = 1`` gives the softmax loss. The
    derived constants are evaluated once, in ``result_type``.
    """

    k: int
    C: Any
    result_type: Any = np.float64

    c_div_k: Any = field(init=False, repr=False)
    log_c: Any = field(init=False, repr=False)
    c_log_c: Any = field(init=False, repr=False)
    k_inv: Any = field(init=False, repr=False)
    log_k: Any = field(init=False, repr=False)

    def __post_init__(self) -> None:
        dtype = np.dtype(self.result_type)
        if not np.issubdtype(dtype, np.floating):
            raise TypeError(f"result_type must be a floating type, got {dtype}.")
        if int(self.k) != self.k or self.k <= 0:
            raise ValueError(f"k must be a positive integer, got {self.k!r}.")
        if not self.C > 0:
            raise ValueError(f"C must be positive, got {self.C!r}.")

        cast = dtype.type
        c = cast(self.C)
        k = cast(self.k)
        object.__setattr__(self, "result_type", cast)
        object.__setattr__(self, "k", int(self.k))
        object.__setattr__(self, "C", c)
        object.__setattr__(self, "c_div_k", c / k)
        object.__setattr__(self, "log_c", np.log(c))
        object.__setattr__(self, "c_log_c", c * np.log(c))
        object.__setattr__(self, "k_inv", 1 / k)
        object.__setattr__(self, "log_k", np.log(k))
