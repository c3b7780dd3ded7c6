"""
Entropic projections onto the capped simplex

    { x : <1, x> = rhs, 0 <= x_i <= hi }.

Two problems of the same family are solved here:

``prox_entropy``
    min_x  0.5 * <x, x> - <v, x> + <x, log(x)>
    solution x_i = min(hi, W_0(exp(v_i - t))), found with ``lambert_w_exp``.

``thresholds_entropy_norm``
    min_x  <x, log(x)> - <a, x>
    solution x_i = min(hi, exp(a_i - t)), a capped log-sum-exp.

In both cases the coordinates that hit the cap are the largest ones, so the
threshold ``t`` is found by scanning the number of capped coordinates over a
descending copy of the input.
"""

from __future__ import annotations

from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import torch

from .lambert import lambert_w_exp
from ..summation.base import Summation

_MAX_NEWTON_ITER = 100


class Thresholds(NamedTuple):
    """Split point and threshold returned by ``thresholds_entropy_norm``."""

    index: int
    t: Any


def _as_result(x: torch.Tensor, cast: Any) -> List[Any]:
    return [cast(value) for value in x.tolist()]


def _newton_terms(u: Sequence[Any], t: Any, rhs: Any, summation: Summation) -> Tuple[Any, Any]:
    # f(t) = sum_j W_0(exp(u_j - t)) - rhs and -f'(t)
    cast = summation.result_type
    w = [lambert_w_exp(cast(uj - t)) for uj in u]
    excess = summation.reduce(w, -rhs)
    slope = summation.reduce((wj / (1 + wj) for wj in w), 0)
    return excess, slope


def _solve_lambert_sum(
    u: Sequence[Any], rhs: Any, summation: Summation, t_prev: Optional[Any] = None
) -> Any:
    """
    Solve ``sum_j W_0(exp(u_j - t)) = rhs`` for ``t``; ``u`` is descending.

    The left-hand side is convex and decreasing in ``t``. Starting where the
    largest term alone equals ``rhs`` keeps every Newton step on the left of
    the root, so the iterates increase monotonically.

    ``t_prev`` is the root for one more leading coordinate and a larger
    ``rhs``; it lies right of this root, so one Newton step from it lands on
    the left. The better of the two starting points is used.
    """
    cast = summation.result_type
    tol = 4 * np.finfo(cast).eps
    t = u[0] - (rhs + np.log(rhs))
    if t_prev is not None:
        excess, slope = _newton_terms(u, t_prev, rhs, summation)
        if slope > 0:
            t = max(t, t_prev + excess / slope)
    for _ in range(_MAX_NEWTON_ITER):
        excess, slope = _newton_terms(u, t, rhs, summation)
        step = excess / slope
        t = t + step
        if step <= tol * max(1, abs(t)):
            break
    return t


def _threshold_lambert(u: Sequence[Any], hi: Any, rhs: Any, summation: Summation) -> Optional[Any]:
    """
    Return the threshold of the projection, or None if every coordinate
    is capped.
    """
    # w(x) >= hi  <=>  x >= hi + log(hi)
    bound = hi + np.log(hi)
    remaining = rhs
    t = None
    for p in range(len(u)):
        if remaining <= 0:
            break
        t = _solve_lambert_sum(u[p:], remaining, summation, t)
        if u[p] - t <= bound:
            return t
        remaining = remaining - hi
    return None


def prox_entropy(
    x: torch.Tensor,
    aux: torch.Tensor,
    hi: Any,
    rhs: Any,
    summation: Summation,
) -> None:
    """
    Project ``x`` in place onto the capped simplex under the entropic prox.

    Parameters
    ----------
    x:
        1D tensor view holding ``v`` on entry and the projection on exit.
    aux:
        Scratch tensor of the same length; its contents are overwritten.
    hi, rhs:
        Per-coordinate cap and the required sum.
    summation:
        Strategy used for every sum; fixes the working precision.

    When the caps cannot carry the mass (``n * hi <= rhs``) the set is empty
    or a single point and every coordinate is set to exactly ``hi``.
    """
    if x.numel() == 0:
        return
    cast = summation.result_type
    hi = cast(hi)
    rhs = cast(rhs)

    aux.copy_(torch.sort(x, descending=True).values)
    u = _as_result(aux, cast)
    v = _as_result(x, cast)

    t = _threshold_lambert(u, hi, rhs, summation)
    if t is None:
        projected = [hi] * len(v)
    else:
        projected = [min(hi, cast(lambert_w_exp(cast(vj - t)))) for vj in v]

    x.copy_(torch.tensor([float(value) for value in projected], dtype=x.dtype, device=x.device))


def thresholds_entropy_norm(
    x: torch.Tensor,
    hi: Any,
    rhs: Any,
    summation: Summation,
) -> Thresholds:
    """
    Find the capped log-sum-exp threshold of ``x``.

    ``x`` is sorted in place in descending order, so the ``index`` capped
    coordinates come first. ``index == 0`` means no coordinate is capped and
    ``t`` equals ``log(sum(exp(x))) - log(rhs)``.
    """
    cast = summation.result_type
    hi = cast(hi)
    rhs = cast(rhs)
    x.copy_(torch.sort(x, descending=True).values)
    a = _as_result(x, cast)
    log_hi = np.log(hi)

    n = len(a)
    for p in range(n):
        remaining = rhs - p * hi
        if remaining <= 0:
            return Thresholds(p, a[p - 1] - log_hi)
        # Shift by the largest remaining value to keep exp in range.
        s = summation.reduce((np.exp(aj - a[p]) for aj in a[p:]), 0)
        t = a[p] + np.log(s) - np.log(remaining)
        if a[p] - t <= log_hi:
            return Thresholds(p, t)
    return Thresholds(n, a[n - 1] - log_hi)
