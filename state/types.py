"""Core value types exchanged with the semantic state engine."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Protocol, Sequence


@dataclass
class UpdateResult:
    """Outcome of a single engine update.
    
    Attributes:
        drift_detected: True if the incoming embedding fell below the
            drift threshold against the pre-fusion state.
        drift_score: Drift magnitude 1 - cosine_similarity in [0, 2]
            (0 for the baseline update).
        vector: Copy of the incoming embedding, not the fused state.
    """
    drift_detected: bool
    drift_score: float
    vector: list[float] = field(default_factory=list)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "driftDetected": self.drift_detected,
            "driftScore": self.drift_score,
            "vector": list(self.vector),
        }


@dataclass
class Snapshot:
    """Point-in-time view of the engine state.
    
    Attributes:
        vector: Copy of the EMA state vector.
        health_score: Reliability in [0, 1], decays with age and drift.
        timestamp: Time (ms) of the last successful update.
        semantic_summary: "stable", "drifting" or "volatile".
    """
    vector: list[float]
    health_score: float
    timestamp: float
    semantic_summary: str
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "vector": list(self.vector),
            "healthScore": self.health_score,
            "timestamp": self.timestamp,
            "semanticSummary": self.semantic_summary,
        }


UpdateListener = Callable[[UpdateResult], None]


class StateCore(Protocol):
    """Capability the orchestration layer depends on.
    
    Any numeric tier (pure Python, numpy, compiled extension) can sit
    behind this boundary without the tracker changing.
    """
    
    def update(self, embedding: Sequence[float], now_ms: float) -> UpdateResult:
        ...
    
    def snapshot(self, now_ms: float) -> Snapshot:
        ...
    
    def subscribe(self, listener: UpdateListener) -> Callable[[], None]:
        ...
