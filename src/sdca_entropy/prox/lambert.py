"""
Lambert W function of an exponential, ``w = W_0(exp(x))``.

The returned ``w`` solves ``w + log(w) = x``. Evaluation never calls
``exp(x)`` on its own, so the whole real line is covered without overflow:
each branch picks a seed that is cheap to compute and good enough for a
fixed number of Householder steps (order 5) on ``w - z * exp(-w) = 0``.

References
----------
A. Householder, The numerical treatment of a single nonlinear equation.
    McGraw-Hill, 1970.
T. Fukushima, Precise and fast computation of Lambert W-functions without
    transcendental function evaluations. J. Comput. Appl. Math. 244 (2013).
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

# Omega constant (OEIS A030178), the solution of x * exp(x) = 1.
OMEGA = 0.56714329040978387299996866221035554975381578718651

_DOUBLE_UNDERFLOW = -746.0
_DOUBLE_EXP_ONLY = -36.0
_DOUBLE_ONE_STEP = -20.0
_DOUBLE_SEED_X = 4.0
_DOUBLE_OVERFLOW = 576460752303423488.0  # 2**59

_SINGLE_UNDERFLOW = np.float32(-104.0)
_SINGLE_EXP_ONLY = np.float32(-18.0)
_SINGLE_SEED_EXP = np.float32(-1.0)
_SINGLE_SEED_X = np.float32(8.0)
_SINGLE_OVERFLOW = np.float32(536870912.0)  # 2**29


def householder_w_step(w: Any, y: Any) -> Any:
    """
    One step of Householder's 5th order iteration for ``w - z * exp(-w) = 0``.

    Takes the current iterate ``w`` and ``y = z * exp(-w)``; returns the next
    iterate in the arithmetic of the inputs.
    """
    f0 = w - y
    f1 = 1 + y
    f11 = f1 * f1
    f0y = f0 * y
    f00y = f0 * f0y
    return w - 4 * f0 * (6 * f1 * (f11 + f0y) + f00y) / (
        f11 * (24 * f11 + 36 * f0y) + f00y * (14 * y + f0 + 8)
    )


def exp_approx(x: Any) -> Any:
    """
    Fast approximation ``(1 + x/1024)**1024`` of ``exp(x)``.

    Only good as an iteration seed: around 1e-3 on [-5, 1], and below 2**-52
    of ``exp(x)`` for ``x <= -36``. Not accurate for ``x > 1``.
    """
    y = 1 + x / 1024
    for _ in range(10):
        y = y * y
    return y


def _lambert_w_exp_double(x: float) -> float:
    # (-inf, -746]      exp underflows, return 0
    # (-746, -36]       w = exp(x)
    # (-36, -20]        w0 = exp(x), return w1
    # (-20, 0]          w0 = exp(x), return w2
    # (0, 4]            w0 = x, return w2
    # (4, 2**59]        w0 = x - log(x), return w2
    # (2**59, inf)      x + log(x) == x, return x
    if x > 0.0:
        if x <= _DOUBLE_SEED_X:
            w = householder_w_step(x, 1.0)
        elif x <= _DOUBLE_OVERFLOW:
            # Single precision log is enough for the seed.
            w = x - float(np.log(np.float32(x)))
            w = householder_w_step(w, x)
        else:
            return x
    else:
        if x > _DOUBLE_EXP_ONLY:
            w = exp_approx(x)
            if x > _DOUBLE_ONE_STEP:
                w = householder_w_step(w, exp_approx(x - w))
        else:
            return math.exp(x) if x > _DOUBLE_UNDERFLOW else 0.0
    return householder_w_step(w, math.exp(x - w))


def _lambert_w_exp_single(x: np.float32) -> np.float32:
    # (-inf, -104]      exp underflows, return 0
    # (-104, -18]       w = exp(x)
    # (-18, -1]         w0 = exp(x), return w1
    # (-1, 8]           w0 = x, return w2
    # (8, 2**29]        w0 = x - log(x), return w1
    # (2**29, inf)      x + log(x) == x, return x
    if x > _SINGLE_SEED_EXP:
        if x <= _SINGLE_SEED_X:
            w = householder_w_step(x, np.float32(1.0))
        elif x <= _SINGLE_OVERFLOW:
            return householder_w_step(x - np.log(x), x)
        else:
            return x
    else:
        if x > _SINGLE_EXP_ONLY:
            w = exp_approx(x)
        else:
            return np.exp(x) if x > _SINGLE_UNDERFLOW else np.float32(0.0)
    return householder_w_step(w, np.exp(x - w))


def lambert_w_exp(x: Any) -> Any:
    """
    Compute ``w = W_0(exp(x))`` for a real scalar ``x``.

    ``numpy.float32`` inputs are evaluated in single precision and return a
    ``numpy.float32``; anything else is evaluated in double precision and
    returns a Python float. The computed ``w`` satisfies

        |w + log(w) - x| < 4 * eps * max(1, |x|)

    with ``eps`` the machine epsilon of the working precision, as long as
    ``w`` is a normal number. Inputs past the underflow threshold return 0
    and inputs past the overflow threshold return ``x`` itself.
    """
    if isinstance(x, np.float32):
        return _lambert_w_exp_single(x)
    return _lambert_w_exp_double(float(x))
