"""Embedder cache keyed by model name."""

import threading
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class EmbedderCache(Generic[T]):
    """Holds at most one loaded embedder.
    
    get() returns the cached instance while the requested model name is
    unchanged and rebuilds it when the name changes. Owned by whoever
    loads models (the worker), never by the numeric core.
    """
    
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._key: Optional[str] = None
        self._value: Optional[T] = None
    
    @property
    def key(self) -> Optional[str]:
        return self._key
    
    def get(self, model_name: str, factory: Callable[[str], T]) -> T:
        """Return the embedder for model_name, building it if needed.
        
        Args:
            model_name: Configuration identity of the embedder.
            factory: Builds an embedder from a model name. Exceptions
                propagate and leave the previous entry in place.
                
        Returns:
            Cached or newly built embedder.
        """
        with self._lock:
            if self._value is None or self._key != model_name:
                value = factory(model_name)
                self._key = model_name
                self._value = value
            return self._value
    
    def clear(self) -> None:
        with self._lock:
            self._key = None
            self._value = None
