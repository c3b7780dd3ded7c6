from __future__ import annotations

import abc
from typing import Any, Iterable, Tuple

import numpy as np


class Summation(abc.ABC):
    """
    Abstract base class for accumulation strategies used by the loss engine.

    A strategy is bound to a numpy floating scalar type (``result_type``) in
    which all running sums are carried out. Implementations must be freely
    interchangeable: they may only change the numeric precision of a sum,
    never the control flow of the caller.
    """

    name: str = "<abstract>"

    def __init__(self, result_type: Any = np.float64) -> None:
        dtype = np.dtype(result_type)
        if not np.issubdtype(dtype, np.floating):
            raise TypeError(f"result_type must be a floating type, got {dtype}.")
        self.result_type = dtype.type

    @abc.abstractmethod
    def reduce(self, values: Iterable[Any], init: Any = 0) -> Any:
        """
        Fold ``values`` into ``init`` and return the total in ``result_type``.
        """

    @abc.abstractmethod
    def add(self, value: Any, total: Any, compensation: Any) -> Tuple[Any, Any]:
        """
        Add a single ``value`` to a running ``(total, compensation)`` pair.

        Returns the updated pair; callers start from ``(init, 0)`` and carry
        both values through their own loop.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(result_type={np.dtype(self.result_type).name})"
