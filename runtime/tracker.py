"""Orchestration from event text to engine updates."""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional, Sequence

from state.errors import EmbeddingProviderError
from state.types import Snapshot, StateCore, UpdateListener, UpdateResult


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class SemanticStateTracker:
    """Feeds embeddings of event text into a state core.
    
    The tracker owns the ordering discipline the core leaves to its
    caller: engine updates are applied one at a time under a lock, and
    submit() queues work on a single thread so updates land in
    submission order. A failed embedding fetch never reaches the core.
    """
    
    def __init__(
        self,
        core: StateCore,
        source: Any,
        on_error: Optional[Callable[[EmbeddingProviderError], None]] = None,
        clock: Optional[Callable[[], float]] = None
    ) -> None:
        """Initialize tracker.
        
        Args:
            core: Engine implementing update/snapshot/subscribe.
            source: Embedding source exposing embed_text(text).
            on_error: Receives provider failures. If omitted they are raised.
            clock: Returns the current time in ms. Defaults to wall clock.
        """
        self.core = core
        self.source = source
        self._on_error = on_error
        self._clock = clock or wall_clock_ms
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
    
    def update(self, text: str) -> Optional[UpdateResult]:
        """Embed text and fuse the result into the core.
        
        Args:
            text: Event text.
            
        Returns:
            UpdateResult, or None if the fetch failed and on_error
            handled it.
            
        Raises:
            EmbeddingProviderError: If the fetch failed and no on_error
                was given.
            DimensionMismatchError, EmptyEmbeddingError: From the core.
        """
        try:
            embedding = self.source.embed_text(text)
        except EmbeddingProviderError as e:
            return self._report(e)
        except Exception as e:
            return self._report(EmbeddingProviderError(f"Embedding source failed: {e}", cause=e))
        
        if embedding is None:
            return self._report(EmbeddingProviderError("Embedding source returned no vector"))
        
        return self.update_embedding(embedding)
    
    def update_embedding(self, embedding: Sequence[float]) -> UpdateResult:
        """Fuse an already obtained embedding at the current clock time."""
        with self._lock:
            return self.core.update(embedding, self._clock())
    
    def submit(self, text: str) -> Future:
        """Queue update(text) on the tracker's single worker thread.
        
        Returns:
            Future of the update() return value.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="semantic-tracker")
        return self._executor.submit(self.update, text)
    
    def snapshot(self) -> Snapshot:
        with self._lock:
            return self.core.snapshot(self._clock())
    
    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        return self.core.subscribe(listener)
    
    def close(self) -> None:
        """Wait for queued updates, then release the executor."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
    
    def _report(self, error: EmbeddingProviderError) -> None:
        if self._on_error is None:
            raise error
        self._on_error(error)
        return None
