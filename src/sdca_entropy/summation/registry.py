from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Type, Union

import numpy as np

from .base import Summation

SummationSpec = Union[str, Type[Summation], Summation]

_REGISTRY: Dict[str, Type[Summation]] = {}


def register_summation(name: str, summation_cls: Type[Summation]) -> None:
    """
    Make ``summation_cls`` resolvable by ``name``.

    Re-registering a name with the same class is a no-op; binding a taken
    name to another class raises ``ValueError``.
    """
    if not (isinstance(summation_cls, type) and issubclass(summation_cls, Summation)):
        raise TypeError(f"{summation_cls!r} is not a Summation subclass.")
    current = _REGISTRY.get(name)
    if current is not None and current is not summation_cls:
        raise ValueError(f"Summation name '{name}' is already bound to {current.__name__}.")
    _REGISTRY[name] = summation_cls


def available_summations() -> Tuple[str, ...]:
    return tuple(sorted(_REGISTRY))


def _lookup(name: str) -> Type[Summation]:
    try:
        return _REGISTRY[name]
    except KeyError as exc:
        known = ", ".join(available_summations()) or "<none>"
        raise KeyError(f"Unknown summation '{name}'. Registered summations: {known}") from exc


def get_summation(
    summation: SummationSpec,
    result_type: Optional[Any] = None,
    **kwargs,
) -> Summation:
    """
    Resolve ``summation`` to an instance accumulating in ``result_type``.

    Names and classes are instantiated with ``result_type`` (the class
    default when it is None). An instance is returned unchanged, but only if
    it already accumulates in ``result_type``; it cannot be re-typed, so a
    mismatch raises ``ValueError``, as does passing ``kwargs`` with it.
    """
    if result_type is not None:
        result_type = np.dtype(result_type).type

    if isinstance(summation, Summation):
        if kwargs:
            raise ValueError("Keyword arguments cannot be applied to a Summation instance.")
        if result_type is not None and summation.result_type is not result_type:
            raise ValueError(
                f"{summation!r} accumulates in {np.dtype(summation.result_type).name}, "
                f"expected {np.dtype(result_type).name}."
            )
        return summation

    if isinstance(summation, str):
        summation_cls = _lookup(summation)
    elif isinstance(summation, type) and issubclass(summation, Summation):
        summation_cls = summation
    else:
        raise TypeError(
            f"Expected a summation name, Summation subclass or instance, got {type(summation).__name__}."
        )

    if result_type is not None:
        kwargs["result_type"] = result_type
    return summation_cls(**kwargs)
