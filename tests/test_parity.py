"""Shadow parity between the float64 reference and float32 engines."""

import random

import pytest

from state import config, fast_math, vector_math
from state.engine import Float32StateEngine, StateEngine

TOL = config.PARITY_TOLERANCE


def _random_stream(seed: int, dim: int, length: int) -> list[list[float]]:
    rng = random.Random(seed)
    return [[rng.uniform(-1.0, 1.0) for _ in range(dim)] for _ in range(length)]


@pytest.mark.parametrize("seed", [1, 2, 3])
@pytest.mark.parametrize("alpha", [0.1, 0.5, 1.0])
def test_engines_agree_on_random_streams(seed, alpha):
    """Test that both tiers produce the same results within tolerance."""
    threshold = 0.2
    reference = StateEngine(alpha=alpha, drift_threshold=threshold)
    shadow = Float32StateEngine(alpha=alpha, drift_threshold=threshold)
    
    now_ms = 1_000_000.0
    for embedding in _random_stream(seed, dim=32, length=25):
        now_ms += 137.0
        expected = reference.update(embedding, now_ms)
        actual = shadow.update(embedding, now_ms)
        
        assert actual.drift_score == pytest.approx(expected.drift_score, abs=TOL)
        assert actual.vector == pytest.approx(expected.vector, abs=TOL)
        # Flags may only disagree when similarity sits on the threshold
        similarity = 1.0 - expected.drift_score
        if abs(similarity - threshold) > TOL:
            assert actual.drift_detected == expected.drift_detected
        
        for probe_ms in (now_ms, now_ms + 2500.0):
            ref_snap = reference.snapshot(probe_ms)
            shadow_snap = shadow.snapshot(probe_ms)
            assert shadow_snap.vector == pytest.approx(ref_snap.vector, abs=TOL)
            assert shadow_snap.health_score == pytest.approx(ref_snap.health_score, abs=TOL)
            assert shadow_snap.timestamp == ref_snap.timestamp


def test_math_kernels_agree():
    """Test the math functions of both kernels component by component."""
    a, b = _random_stream(11, dim=64, length=2)
    
    assert fast_math.cosine_similarity(a, b) == pytest.approx(vector_math.cosine_similarity(a, b), abs=TOL)
    assert fast_math.magnitude(a) == pytest.approx(vector_math.magnitude(a), abs=TOL)
    pairs = [
        (fast_math.add(a, b), vector_math.add(a, b)),
        (fast_math.scale(a, 2.5), vector_math.scale(a, 2.5)),
        (fast_math.normalize(a), vector_math.normalize(a)),
        (fast_math.ema_fusion(a, b, 0.3), vector_math.ema_fusion(a, b, 0.3)),
    ]
    for fast, ref in pairs:
        assert [float(x) for x in fast] == pytest.approx(ref, abs=TOL)


def test_both_tiers_reject_nested_embeddings():
    """Test a 2-D input is refused by both engines, not flattened."""
    nested = [[1.0, 2.0], [3.0, 4.0]]
    for engine in (StateEngine(alpha=0.5, drift_threshold=0.75), Float32StateEngine(alpha=0.5, drift_threshold=0.75)):
        with pytest.raises(TypeError):
            engine.update(nested, 0.0)
        assert engine.update_count == 0
        assert engine.dimension == 0
    
    with pytest.raises(TypeError):
        fast_math.cosine_similarity(nested, [1.0, 2.0, 3.0, 4.0])
