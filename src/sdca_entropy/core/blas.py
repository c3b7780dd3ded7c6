"""Level-1 vector primitives over contiguous 1D tensors, in the storage dtype."""

from __future__ import annotations

import torch


def axpby(alpha: float, x: torch.Tensor, beta: float, y: torch.Tensor) -> torch.Tensor:
    """In-place ``y := alpha * x + beta * y``; returns ``y``."""
    return y.mul_(beta).add_(x, alpha=alpha)


def dot(x: torch.Tensor, y: torch.Tensor) -> float:
    return float(torch.dot(x, y).item())


def swap(x: torch.Tensor, i: int, j: int) -> None:
    if i != j:
        x[[i, j]] = x[[j, i]]
