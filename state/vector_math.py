"""Pure vector math over plain float lists.

This is the 64-bit reference implementation. Degenerate inputs never
produce NaN or infinity: zero vectors normalize to zero vectors and have
zero cosine similarity with anything.
"""

import math
from typing import Sequence

from state.errors import DimensionMismatchError, InvalidParameterError


def _check_same_dimension(a: Sequence[float], b: Sequence[float]) -> None:
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))


def validate_alpha(alpha: float) -> float:
    """Check that an EMA factor lies in (0, 1].
    
    Args:
        alpha: Candidate EMA factor.
        
    Returns:
        The alpha, unchanged.
        
    Raises:
        InvalidParameterError: If alpha is outside (0, 1] or NaN.
    """
    if not (0.0 < alpha <= 1.0):
        raise InvalidParameterError(f"Alpha must be in the range (0, 1], got {alpha}")
    return alpha


def zeros(dim: int) -> list[float]:
    return [0.0] * dim


def add(a: Sequence[float], b: Sequence[float]) -> list[float]:
    """Element-wise sum of two vectors.
    
    Raises:
        DimensionMismatchError: If lengths differ.
    """
    _check_same_dimension(a, b)
    return [x + y for x, y in zip(a, b)]


def scale(v: Sequence[float], k: float) -> list[float]:
    """Multiply every element by a scalar."""
    return [x * k for x in v]


def dot(a: Sequence[float], b: Sequence[float]) -> float:
    _check_same_dimension(a, b)
    return sum(x * y for x, y in zip(a, b))


def magnitude(v: Sequence[float]) -> float:
    """L2 norm of a vector."""
    return math.sqrt(sum(x * x for x in v))


def normalize(v: Sequence[float]) -> list[float]:
    """Normalize a vector to unit length.
    
    Args:
        v: Input vector.
        
    Returns:
        Unit vector, or a zero vector of the same length if the
        magnitude is 0.
    """
    mag = magnitude(v)
    if mag == 0.0:
        return zeros(len(v))
    return [x / mag for x in v]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.
    
    Args:
        a: First vector.
        b: Second vector.
        
    Returns:
        Similarity clamped to [-1, 1], or exactly 0.0 if either vector
        has zero magnitude.
        
    Raises:
        DimensionMismatchError: If lengths differ.
    """
    _check_same_dimension(a, b)
    mag_a = magnitude(a)
    mag_b = magnitude(b)
    if mag_a == 0.0 or mag_b == 0.0:
        return 0.0
    
    similarity = dot(a, b) / (mag_a * mag_b)
    # Clamp floating-point overshoot
    return max(-1.0, min(1.0, similarity))


def ema_fusion(
    current: Sequence[float],
    previous: Sequence[float],
    alpha: float
) -> list[float]:
    """Fuse a new vector into a previous state.
    
    Formula: S_t = alpha * E_t + (1 - alpha) * S_{t-1}
    
    Args:
        current: New embedding E_t.
        previous: Previous state S_{t-1}.
        alpha: EMA factor in (0, 1]. Higher values weight recent vectors more.
        
    Returns:
        Updated state S_t as a new list.
        
    Raises:
        DimensionMismatchError: If lengths differ.
        InvalidParameterError: If alpha is outside (0, 1].
    """
    _check_same_dimension(current, previous)
    validate_alpha(alpha)
    return [alpha * c + (1.0 - alpha) * p for c, p in zip(current, previous)]
