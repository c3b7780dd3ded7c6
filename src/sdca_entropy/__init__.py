"""
Per-example dual updates and objectives for entropy-regularized SDCA.

`L2EntropyLoss` is the engine an SDCA solver calls for every visited
example; `solve` is a small sequential driver built on top of it. Summation
strategies are resolved through `sdca_entropy.summation.registry` so that
custom accumulators can be registered next to the built-in ones.
"""

from .core.l2_entropy import L2EntropyLoss
from .core.solver import solve
from .prox.lambert import lambert_w_exp
from .summation.registry import available_summations, get_summation, register_summation

__all__ = [
    "L2EntropyLoss",
    "solve",
    "lambert_w_exp",
    "available_summations",
    "get_summation",
    "register_summation",
]
