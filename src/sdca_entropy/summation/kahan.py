from __future__ import annotations

from typing import Any, Iterable, Tuple

from .base import Summation
from .registry import register_summation


class KahanSummation(Summation):
    """
    Compensated (Kahan) summation.

    The lost low-order bits of every addition are carried in a separate
    compensation term, so the error bound does not depend on the number of
    terms. Costs about four times the arithmetic of a plain sum.
    """

    name = "kahan"

    def reduce(self, values: Iterable[Any], init: Any = 0) -> Any:
        cast = self.result_type
        total = cast(init)
        compensation = cast(0)
        for value in values:
            y = cast(value) - compensation
            t = total + y
            compensation = (t - total) - y
            total = t
        return total

    def add(self, value: Any, total: Any, compensation: Any) -> Tuple[Any, Any]:
        y = self.result_type(value) - compensation
        t = total + y
        return t, (t - total) - y


register_summation("kahan", KahanSummation)
