from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Union

import numpy as np
import torch

from .l2_entropy import L2EntropyLoss, Objectives
from .state import SolverState
from ..summation.base import Summation


@dataclass
class SolveResult:
    W: torch.Tensor
    A: torch.Tensor
    primal_objective: float
    dual_objective: float
    duality_gap: float
    epochs: int
    status: str
    history: list[dict[str, float]] = field(default_factory=list)
    metrics: dict[str, float] = field(default_factory=dict)


def objectives(
    loss: L2EntropyLoss,
    X: torch.Tensor,
    y: torch.Tensor,
    state: SolverState,
) -> Objectives:
    """
    Sum the per-example loss terms over the whole dataset.

    The regularizers add up to ``||W||^2`` because ``W = sum_i x_i a_i^T``.
    """
    num_classes = state.A.shape[1]
    summation = loss.summation
    zero = summation.result_type(0)
    regularizer, primal_loss, dual_loss = zero, zero, zero
    comp_r, comp_p, comp_d = zero, zero, zero
    scores = torch.empty(num_classes, dtype=state.W.dtype, device=state.W.device)
    for i, label in enumerate(y.tolist()):
        scores.copy_(X[i] @ state.W)
        terms = loss.regularized_loss(num_classes, label, state.A[i], scores)
        regularizer, comp_r = summation.add(terms.regularizer, regularizer, comp_r)
        primal_loss, comp_p = summation.add(terms.primal_loss, primal_loss, comp_p)
        dual_loss, comp_d = summation.add(terms.dual_loss, dual_loss, comp_d)
    return loss.primal_dual_gap(regularizer, primal_loss, dual_loss)


def solve(
    X: torch.Tensor,
    y: torch.Tensor,
    *,
    k: int = 1,
    C: float = 1.0,
    num_classes: int | None = None,
    summation: Union[str, type[Summation], Summation] = "kahan",
    result_type: Any = np.float64,
    max_epochs: int = 100,
    epsilon: float = 1e-3,
    check_every: int = 1,
    seed: int = 1,
    progress_callback: Callable[[str, dict[str, Any]], None] | None = None,
) -> SolveResult:
    """
    Train an L2 regularized multiclass entropy model by sequential SDCA.

    Examples are visited in a fresh random order every epoch. Every
    ``check_every`` epochs the objectives are evaluated and the run stops
    once ``duality_gap <= epsilon * max(1, |primal|, |dual|)``.
    """

    if X.dim() != 2:
        raise ValueError(f"X must be a 2D tensor, got shape {tuple(X.shape)}.")
    if y.dim() != 1 or y.shape[0] != X.shape[0]:
        raise ValueError(f"y must be a 1D tensor of length {X.shape[0]}, got shape {tuple(y.shape)}.")
    if max_epochs < 1 or check_every < 1:
        raise ValueError("max_epochs and check_every must be positive.")

    n, d = int(X.shape[0]), int(X.shape[1])
    labels = [int(label) for label in y.tolist()]
    if num_classes is None:
        num_classes = max(labels) + 1 if labels else 0
    if num_classes < 2:
        raise ValueError(f"num_classes must be at least 2, got {num_classes}.")
    if any(label < 0 or label >= num_classes for label in labels):
        raise ValueError(f"labels must lie in [0, {num_classes}).")
    if k >= num_classes:
        raise ValueError(f"k must be smaller than num_classes ({num_classes}), got {k}.")

    norm2 = (X * X).sum(dim=1)
    if bool((norm2 <= 0).any()):
        raise ValueError("every example must have a non-zero feature vector.")
    norm2_inv = (1.0 / norm2).tolist()

    loss = L2EntropyLoss(k, C, summation, result_type=result_type, data_type=X.dtype)

    generator = torch.Generator(device="cpu")
    generator.manual_seed(int(seed))

    state = SolverState(
        A=torch.zeros((n, num_classes), dtype=X.dtype, device=X.device),
        W=torch.zeros((d, num_classes), dtype=X.dtype, device=X.device),
        epoch=0,
        metrics={},
        generator=generator,
    )

    scores = torch.empty(num_classes, dtype=X.dtype, device=X.device)
    a_old = torch.empty_like(scores)
    history: list[dict[str, float]] = []
    status = "max_epochs"
    current: Objectives | None = None

    while state.epoch < max_epochs:
        order = torch.randperm(n, generator=generator).tolist()
        for i in order:
            variables = state.A[i]
            a_old.copy_(variables)
            scores.copy_(X[i] @ state.W)
            loss.update_variables(num_classes, labels[i], norm2_inv[i], variables, scores)
            # Keep W = sum_i x_i a_i^T in sync with the updated row.
            state.W.addr_(X[i], variables - a_old)
        state.epoch += 1

        if state.epoch % check_every != 0 and state.epoch < max_epochs:
            continue

        current = objectives(loss, X, y, state)
        primal, dual, gap = (float(value) for value in current)
        relative_gap = gap / max(1.0, abs(primal), abs(dual))
        record = {
            "epoch": float(state.epoch),
            "primal_objective": primal,
            "dual_objective": dual,
            "duality_gap": gap,
            "relative_gap": relative_gap,
        }
        history.append(record)
        if progress_callback is not None:
            progress_callback("epoch", {**record, "epoch": state.epoch})
        if relative_gap <= epsilon:
            status = "converged"
            break

    state.metrics.update(
        {
            "examples": float(n),
            "num_classes": float(num_classes),
            "updates": float(state.epoch * n),
        }
    )

    if current is None:
        raise RuntimeError("solve finished without evaluating the objectives.")
    return SolveResult(
        W=state.W.detach().cpu(),
        A=state.A.detach().cpu(),
        primal_objective=float(current.primal_objective),
        dual_objective=float(current.dual_objective),
        duality_gap=float(current.duality_gap),
        epochs=state.epoch,
        status=status,
        history=history,
        metrics=dict(state.metrics),
    )
