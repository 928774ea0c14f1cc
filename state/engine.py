"""EMA state-fusion engine with drift detection and health scoring.

The engine is deterministic: callers pass the current time in
milliseconds to both update() and snapshot(). It is not thread-safe;
concurrent updates on one instance must be serialized by the caller,
and updates must be applied in the order their embeddings were obtained.
"""

import itertools
from typing import Callable, Dict, Optional, Sequence

from state import config
from state import fast_math
from state import vector_math
from state.errors import DimensionMismatchError, EmptyEmbeddingError
from state.types import Snapshot, UpdateListener, UpdateResult

DriftCallback = Callable[[list[float], float], None]


class StateEngine:
    """Rolling EMA representation of semantic intent.
    
    Two operational states: Uninitialized (no update yet, empty state
    vector) and Established (dimension fixed by the first embedding).
    A failed update never mutates state. There is no reset; construct a
    new engine instead.
    """
    
    # Math backend; subclasses swap in another module with the same API
    _ops = vector_math
    
    def __init__(
        self,
        alpha: float = config.DEFAULT_ALPHA,
        drift_threshold: float = config.DEFAULT_DRIFT_THRESHOLD,
        on_drift_detected: Optional[DriftCallback] = None
    ) -> None:
        """Initialize an engine in the Uninitialized state.
        
        Args:
            alpha: EMA factor in (0, 1]. Higher values weight recent
                embeddings more heavily.
            drift_threshold: Cosine similarity below which an update is
                reported as drift. Not range-checked: values above 1 mean
                drift on every update, values below -1 mean never.
            on_drift_detected: Optional callback receiving (embedding,
                drift_score) after a drifting update. It runs once the
                fusion is committed, not before it, so it observes the
                post-fusion state; subscribers run after it.
                
        Raises:
            InvalidParameterError: If alpha is outside (0, 1].
        """
        self._alpha = vector_math.validate_alpha(alpha)
        self._drift_threshold = drift_threshold
        self._on_drift_detected = on_drift_detected
        
        self._state_vector = self._ops.zeros(0)
        self._last_updated_at: float = 0.0
        self._last_drift: float = 0.0
        self._update_count: int = 0
        
        self._listeners: Dict[int, UpdateListener] = {}
        self._listener_ids = itertools.count()
    
    @property
    def alpha(self) -> float:
        return self._alpha
    
    @property
    def drift_threshold(self) -> float:
        return self._drift_threshold
    
    @property
    def dimension(self) -> int:
        """Established dimensionality, 0 while Uninitialized."""
        return len(self._state_vector)
    
    @property
    def update_count(self) -> int:
        return self._update_count
    
    def _coerce(self, embedding: Sequence[float]):
        return [float(x) for x in embedding]
    
    def update(self, embedding: Sequence[float], now_ms: float) -> UpdateResult:
        """Fuse an embedding into the state.
        
        The first update fuses against a zero vector and never reports
        drift. Later updates measure drift against the pre-fusion state.
        
        Args:
            embedding: Incoming embedding vector.
            now_ms: Current time in milliseconds.
            
        Returns:
            UpdateResult with a copy of the incoming embedding.
            
        Raises:
            EmptyEmbeddingError: If embedding has zero length.
            DimensionMismatchError: If the dimension differs from the
                established one.
        """
        if len(embedding) == 0:
            raise EmptyEmbeddingError()
        
        incoming = self._coerce(embedding)
        
        if self._update_count == 0:
            fused = self._ops.ema_fusion(incoming, self._ops.zeros(len(incoming)), self._alpha)
            drift_detected = False
            drift_score = 0.0
            last_drift = self._last_drift
        else:
            if len(incoming) != len(self._state_vector):
                raise DimensionMismatchError(len(self._state_vector), len(incoming))
            
            # Similarity against the state before this embedding is fused in
            similarity = self._ops.cosine_similarity(self._state_vector, incoming)
            drift_score = float(1.0 - similarity)
            drift_detected = bool(similarity < self._drift_threshold)
            fused = self._ops.ema_fusion(incoming, self._state_vector, self._alpha)
            last_drift = drift_score
        
        # Commit
        self._state_vector = fused
        self._last_drift = last_drift
        self._last_updated_at = now_ms
        self._update_count += 1
        
        result = UpdateResult(
            drift_detected=drift_detected,
            drift_score=drift_score,
            vector=[float(x) for x in incoming]
        )
        
        if drift_detected and self._on_drift_detected is not None:
            self._on_drift_detected(list(result.vector), drift_score)
        
        self._notify(result)
        return result
    
    def snapshot(self, now_ms: float) -> Snapshot:
        """Return a copy of the current state at time now_ms.
        
        Args:
            now_ms: Current time in milliseconds. Times earlier than the
                last update are treated as zero elapsed time.
                
        Returns:
            Snapshot whose fields are detached from engine state.
        """
        health_score = self._calculate_health(now_ms)
        return Snapshot(
            vector=[float(x) for x in self._state_vector],
            health_score=health_score,
            timestamp=self._last_updated_at,
            semantic_summary=config.summarize_health(health_score)
        )
    
    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        """Register a listener called after every successful update.
        
        Listeners run synchronously in registration order and receive
        the UpdateResult.
        
        Args:
            listener: Callable taking an UpdateResult.
            
        Returns:
            Disposer that unsubscribes the listener. Safe to call twice.
        """
        listener_id = next(self._listener_ids)
        self._listeners[listener_id] = listener
        
        def dispose() -> None:
            self._listeners.pop(listener_id, None)
        
        return dispose
    
    def _notify(self, result: UpdateResult) -> None:
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners.values()):
            listener(result)
    
    def _calculate_health(self, now_ms: float) -> float:
        elapsed = max(0.0, now_ms - self._last_updated_at)
        age_penalty = elapsed * config.AGE_DECAY_RATE
        drift_penalty = self._last_drift * config.DRIFT_WEIGHT
        return float(max(0.0, min(1.0, 1.0 - age_penalty - drift_penalty)))


class Float32StateEngine(StateEngine):
    """StateEngine computing fusion and similarity in numpy float32.
    
    Same contract as StateEngine; agrees with it within
    config.PARITY_TOLERANCE.
    """
    
    _ops = fast_math
    
    def _coerce(self, embedding: Sequence[float]):
        return fast_math.as_array(embedding)
