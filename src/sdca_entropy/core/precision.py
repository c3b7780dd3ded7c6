from __future__ import annotations

from typing import Any

import numpy as np
import torch

_TORCH_NAMES = {
    torch.float16: "half",
    torch.float32: "float",
    torch.float64: "double",
}


def type_name(dtype: Any) -> str:
    """
    C-style name of a storage or accumulation type, used in descriptors.
    """
    if isinstance(dtype, torch.dtype):
        try:
            return _TORCH_NAMES[dtype]
        except KeyError as exc:
            raise TypeError(f"Unsupported storage dtype {dtype}.") from exc
    np_type = np.dtype(dtype).type
    if np_type is np.float32:
        return "float"
    if np_type is np.float64:
        return "double"
    if np_type is np.longdouble:
        return "long double"
    raise TypeError(f"Unsupported accumulation type {np.dtype(dtype)}.")
