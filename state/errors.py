"""Exception types raised by the semantic state core and its collaborators.

Every error raised here derives from SemanticStateError so callers can
separate library failures from unrelated runtime errors with one except clause.
"""

from typing import Any, Optional


class SemanticStateError(Exception):
    """Base class for all semantic state errors."""


class DimensionMismatchError(SemanticStateError, ValueError):
    """Two vectors that must share a dimension do not.
    
    Attributes:
        dim_a: Length of the first (or established) vector.
        dim_b: Length of the second (or incoming) vector.
    """
    
    def __init__(self, dim_a: int, dim_b: int) -> None:
        super().__init__(f"Vector dimension mismatch: a={dim_a}, b={dim_b}")
        self.dim_a = dim_a
        self.dim_b = dim_b


class EmptyEmbeddingError(SemanticStateError, ValueError):
    """An update received a zero-length embedding."""
    
    def __init__(self) -> None:
        super().__init__("Embedding must not be empty")


class InvalidParameterError(SemanticStateError, ValueError):
    """A constructor or math parameter is outside its valid domain."""


class EmbeddingProviderError(SemanticStateError):
    """The embedding source failed or returned no usable vector.
    
    Attributes:
        cause: Raw error surfaced by the provider, if any.
    """
    
    def __init__(self, message: str, cause: Optional[Any] = None) -> None:
        super().__init__(message)
        self.cause = cause
