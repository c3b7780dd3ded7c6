from .base import Summation
from .registry import available_summations, get_summation, register_summation
from .kahan import KahanSummation
from .plain import PlainSummation

__all__ = [
    "Summation",
    "KahanSummation",
    "PlainSummation",
    "available_summations",
    "get_summation",
    "register_summation",
]
