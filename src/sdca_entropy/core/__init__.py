from .config import LossConfig
from .l2_entropy import L2EntropyLoss, LossTerms, Objectives
from .solver import SolveResult
from .state import SolverState

__all__ = ["LossConfig", "L2EntropyLoss", "LossTerms", "Objectives", "SolverState", "SolveResult"]
