"""Configuration constants for the semantic state engine.

Health and summary cut-offs are fixed. Callers needing different bucketing
post-process the raw health score instead of changing these values.
"""

# Health lost per millisecond since the last update (0 after 10 s idle)
AGE_DECAY_RATE = 0.0001

# Weight of the last drift magnitude in the health penalty
DRIFT_WEIGHT = 0.5

# Summary buckets: health > STABLE_HEALTH is "stable", > DRIFTING_HEALTH is "drifting"
STABLE_HEALTH = 0.8
DRIFTING_HEALTH = 0.5

SUMMARY_STABLE = "stable"
SUMMARY_DRIFTING = "drifting"
SUMMARY_VOLATILE = "volatile"

# Engine defaults
DEFAULT_ALPHA = 0.3
DEFAULT_DRIFT_THRESHOLD = 0.75

# Max absolute disagreement between the float32 and float64 kernels
PARITY_TOLERANCE = 1e-4

# Embedding sources
DEFAULT_EMBEDDING_DIM = 384
DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_EMBEDDING_MODEL = "all-minilm"


def summarize_health(health_score: float) -> str:
    """Map a health score to its qualitative summary.
    
    Args:
        health_score: Health in [0, 1].
        
    Returns:
        One of "stable", "drifting", "volatile".
    """
    if health_score > STABLE_HEALTH:
        return SUMMARY_STABLE
    if health_score > DRIFTING_HEALTH:
        return SUMMARY_DRIFTING
    return SUMMARY_VOLATILE
