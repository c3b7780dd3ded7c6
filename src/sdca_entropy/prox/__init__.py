from .entropy import Thresholds, prox_entropy, thresholds_entropy_norm
from .lambert import OMEGA, exp_approx, householder_w_step, lambert_w_exp

__all__ = [
    "OMEGA",
    "Thresholds",
    "exp_approx",
    "householder_w_step",
    "lambert_w_exp",
    "prox_entropy",
    "thresholds_entropy_norm",
]
