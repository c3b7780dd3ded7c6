from __future__ import annotations

from dataclasses import dataclass, field

import torch


@dataclass
class SolverState:
    """
    Mutable state tracked across epochs of the dual coordinate ascent.

    ``A`` holds one row of dual variables per example and ``W`` the primal
    weights ``sum_i x_i a_i^T`` kept in sync with it.
    """

    A: torch.Tensor | None = None
    W: torch.Tensor | None = None
    epoch: int = 0
    metrics: dict[str, float] = field(default_factory=dict)
    generator: torch.Generator | None = None
