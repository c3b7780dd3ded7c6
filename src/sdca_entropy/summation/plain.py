from __future__ import annotations

from typing import Any, Iterable, Tuple

from .base import Summation
from .registry import register_summation


class PlainSummation(Summation):
    """
    Ordinary left-to-right running sum.

    Fastest option; the rounding error grows with the number of terms.
    """

    name = "plain"

    def reduce(self, values: Iterable[Any], init: Any = 0) -> Any:
        cast = self.result_type
        total = cast(init)
        for value in values:
            total = total + cast(value)
        return total

    def add(self, value: Any, total: Any, compensation: Any) -> Tuple[Any, Any]:
        return total + self.result_type(value), compensation


register_summation("plain", PlainSummation)
