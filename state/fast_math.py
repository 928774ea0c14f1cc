"""Vector math over numpy float32 arrays.

Mirrors state.vector_math operation for operation so the two can be
swapped behind the engine. Results agree with the float64 reference
within PARITY_TOLERANCE per component.
"""

from typing import Sequence, Union

import numpy as np

from state.errors import DimensionMismatchError
from state.vector_math import validate_alpha

DTYPE = np.float32

VectorLike = Union[Sequence[float], np.ndarray]


def _check_flat(arr: np.ndarray) -> np.ndarray:
    if arr.ndim != 1:
        raise TypeError(f"Expected a 1-D vector, got an array with shape {arr.shape}")
    return arr


def as_array(v: VectorLike) -> np.ndarray:
    """Return a float32 copy of the input.
    
    Raises:
        TypeError: If the input is not one-dimensional.
    """
    return _check_flat(np.array(v, dtype=DTYPE))


def _pair(a: VectorLike, b: VectorLike) -> tuple[np.ndarray, np.ndarray]:
    arr_a = _check_flat(np.asarray(a, dtype=DTYPE))
    arr_b = _check_flat(np.asarray(b, dtype=DTYPE))
    if arr_a.shape[0] != arr_b.shape[0]:
        raise DimensionMismatchError(arr_a.shape[0], arr_b.shape[0])
    return arr_a, arr_b


def zeros(dim: int) -> np.ndarray:
    return np.zeros(dim, dtype=DTYPE)


def add(a: VectorLike, b: VectorLike) -> np.ndarray:
    arr_a, arr_b = _pair(a, b)
    return arr_a + arr_b


def scale(v: VectorLike, k: float) -> np.ndarray:
    return np.asarray(v, dtype=DTYPE) * DTYPE(k)


def magnitude(v: VectorLike) -> float:
    return float(np.linalg.norm(np.asarray(v, dtype=DTYPE)))


def normalize(v: VectorLike) -> np.ndarray:
    """Unit-length copy of v, or zeros if v has zero magnitude."""
    arr = as_array(v)
    mag = np.linalg.norm(arr)
    if mag == 0.0:
        return zeros(arr.shape[0])
    return arr / mag


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine similarity in [-1, 1]; 0.0 if either input is all-zero.
    
    Raises:
        DimensionMismatchError: If lengths differ.
    """
    arr_a, arr_b = _pair(a, b)
    mag_a = np.linalg.norm(arr_a)
    mag_b = np.linalg.norm(arr_b)
    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0
    similarity = np.dot(arr_a, arr_b) / (mag_a * mag_b)
    return float(np.clip(similarity, -1.0, 1.0))


def ema_fusion(current: VectorLike, previous: VectorLike, alpha: float) -> np.ndarray:
    """S_t = alpha * E_t + (1 - alpha) * S_{t-1}, computed in float32.
    
    Raises:
        DimensionMismatchError: If lengths differ.
        InvalidParameterError: If alpha is outside (0, 1].
    """
    arr_cur, arr_prev = _pair(current, previous)
    validate_alpha(alpha)
    a = DTYPE(alpha)
    return a * arr_cur + (DTYPE(1.0) - a) * arr_prev
