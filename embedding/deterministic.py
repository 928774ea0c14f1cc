"""Offline deterministic embedder.

Stands in for a real embedding model in tests and in the CLI demo. Each
token maps to a hash-seeded Gaussian direction; a text embeds as the
normalized sum of its token directions, so texts sharing tokens point in
similar directions and identical token bags give identical vectors.
"""

import hashlib
import random
from typing import Dict

from state import config
from state.vector_math import add, normalize, zeros

from embedding.text import tokenize


class DeterministicEmbedder:
    """Bag-of-tokens embedder with hash-seeded token vectors."""
    
    def __init__(self, dim: int = config.DEFAULT_EMBEDDING_DIM) -> None:
        """Initialize embedder with specified dimensionality.
        
        Args:
            dim: Embedding dimension (default 384).
        """
        if dim <= 0:
            raise ValueError(f"dim must be positive, got {dim}")
        self.dim = dim
        self._token_cache: Dict[str, list[float]] = {}
    
    def _token_vector(self, token: str) -> list[float]:
        vec = self._token_cache.get(token)
        if vec is None:
            # Stable across processes, unlike hash()
            digest = hashlib.md5(token.encode("utf-8")).hexdigest()
            rng = random.Random(int(digest[:8], 16))
            vec = normalize([rng.gauss(0, 1) for _ in range(self.dim)])
            self._token_cache[token] = vec
        return vec
    
    def embed_text(self, text: str) -> list[float]:
        """Embed text as the unit-length sum of its token vectors.
        
        Args:
            text: Input text.
            
        Returns:
            Vector of length self.dim; the zero vector when text has no
            tokens.
        """
        total = zeros(self.dim)
        for token in tokenize(text):
            total = add(total, self._token_vector(token))
        return normalize(total)
