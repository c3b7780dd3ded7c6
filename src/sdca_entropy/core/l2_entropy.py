from __future__ import annotations

from typing import Any, NamedTuple, Union

import numpy as np
import torch

from .blas import axpby, dot, swap
from .config import LossConfig
from .precision import type_name
from ..prox.entropy import prox_entropy, thresholds_entropy_norm
from ..summation.base import Summation
from ..summation.registry import get_summation


class LossTerms(NamedTuple):
    regularizer: Any
    primal_loss: Any
    dual_loss: Any


class Objectives(NamedTuple):
    primal_objective: Any
    dual_objective: Any
    duality_gap: Any


class L2EntropyLoss:
    """
    Per-example dual update and objectives for L2 regularized SDCA with the
    (capped) multiclass entropy loss.

    The dual variables of one example are pinned to ``C`` at the label and
    lie in ``[-C/k, 0]`` elsewhere, summing to zero. Buffers are 1D tensors
    of length ``num_tasks`` in the storage dtype; all scalar arithmetic is
    done in ``result_type`` with the configured summation strategy.

    Both ``update_variables`` and ``regularized_loss`` use ``scores`` as
    scratch space: its contents are undefined after either call.
    """

    name = "l2_entropy"

    def __init__(
        self,
        k: int,
        C: float,
        summation: Union[str, type, Summation] = "kahan",
        *,
        result_type: Any = np.float64,
        data_type: torch.dtype = torch.float64,
    ) -> None:
        self.config = LossConfig(k=k, C=C, result_type=result_type)
        self.summation = get_summation(summation, self.config.result_type)
        self.data_type = data_type

    def to_string(self) -> str:
        return f"{self.name} (k = {self.config.k}, C = {float(self.config.C):g})"

    def precision_string(self) -> str:
        return (
            f"summation = {self.summation.name}, "
            f"precision = {type_name(self.config.result_type)}, "
            f"data = {type_name(self.data_type)}"
        )

    def __str__(self) -> str:
        return self.to_string()

    def update_variables(
        self,
        num_tasks: int,
        label: int,
        norm2_inv: float,
        variables: torch.Tensor,
        scores: torch.Tensor,
    ) -> None:
        """
        Replace ``variables`` with the maximizer of the per-example dual.

        ``norm2_inv`` is ``1 / ||x||^2`` of the example. On return
        ``variables[label] == C`` and ``scores`` holds scratch data.
        """
        cfg = self.config
        cast = cfg.result_type
        norm2 = 1 / cast(norm2_inv)
        rhs = norm2 * cfg.C
        hi = norm2 * cfg.c_div_k

        # Vector to project: scores - ||x||^2 * variables.
        axpby(1.0, scores, -float(norm2), variables)

        # The projection only sees the coordinates in front of the last one.
        last = num_tasks - 1
        swap(scores, label, last)
        swap(variables, label, last)

        prox_entropy(variables[:last], scores[:last], hi, rhs, self.summation)

        variables[last] = float(cfg.C)
        variables[:last].mul_(-float(norm2_inv))

        swap(variables, label, last)

    def regularized_loss(
        self,
        num_tasks: int,
        label: int,
        variables: torch.Tensor,
        scores: torch.Tensor,
    ) -> LossTerms:
        """
        Return the regularizer ``<scores, variables>`` with the primal and
        dual losses of one example. ``scores`` is shifted and sorted in place.
        """
        cfg = self.config
        cast = cfg.result_type
        zero = cast(0)
        regularizer = cast(dot(scores[:num_tasks], variables[:num_tasks]))

        dual_loss, compensation = cfg.c_log_c, zero
        for a in variables[:num_tasks].tolist():
            a = cast(a)
            dual_loss, compensation = self.summation.add(
                a * np.log(-a) if a < zero else zero, dual_loss, compensation
            )

        shift = scores[label].item()
        scores[:num_tasks].sub_(shift)
        hi, rhs = cfg.k_inv, cast(1)
        thresholds = thresholds_entropy_norm(scores[:num_tasks], hi, rhs, self.summation)
        t = thresholds.t
        if thresholds.index == 0:
            # log-sum-exp of the shifted scores, since rhs = 1
            primal_loss = t
        else:
            num_hi = cast(thresholds.index)
            sum_hi = self.summation.reduce(scores[: thresholds.index].tolist(), zero)
            primal_loss = t + hi * (sum_hi - num_hi * (t - cfg.log_k))

        return LossTerms(regularizer, cast(primal_loss), dual_loss)

    def primal_dual_gap(
        self,
        regularizer: Any,
        primal_loss: Any,
        dual_loss: Any,
    ) -> Objectives:
        cfg = self.config
        cast = cfg.result_type
        half = cast(0.5)
        regularizer = cast(regularizer)
        primal_objective = cfg.C * cast(primal_loss)
        dual_objective = cast(dual_loss)
        duality_gap = primal_objective - dual_objective + regularizer
        primal_objective = primal_objective + half * regularizer
        dual_objective = dual_objective - half * regularizer
        return Objectives(primal_objective, dual_objective, duality_gap)
