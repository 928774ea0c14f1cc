"""Tests for the vector math kernels."""

import math

import numpy as np
import pytest

from state import fast_math, vector_math
from state.errors import DimensionMismatchError, InvalidParameterError

KERNELS = [vector_math, fast_math]


def test_add_and_scale():
    """Test element-wise add and scalar scale."""
    assert vector_math.add([1.0, 2.0], [3.0, 4.0]) == [4.0, 6.0]
    assert vector_math.scale([1.0, -2.0], 3.0) == [3.0, -6.0]
    assert vector_math.scale([], 5.0) == []


@pytest.mark.parametrize("ops", KERNELS)
def test_add_dimension_mismatch(ops):
    """Test that add rejects vectors of different length."""
    with pytest.raises(DimensionMismatchError) as exc_info:
        ops.add([1.0, 2.0], [1.0, 2.0, 3.0])
    assert exc_info.value.dim_a == 2
    assert exc_info.value.dim_b == 3


@pytest.mark.parametrize("ops", KERNELS)
def test_normalize_unit_length(ops):
    """Test normalization of a 3-4-5 vector."""
    result = ops.normalize([3.0, 4.0])
    assert float(result[0]) == pytest.approx(0.6, abs=1e-6)
    assert float(result[1]) == pytest.approx(0.8, abs=1e-6)


@pytest.mark.parametrize("ops", KERNELS)
def test_normalize_zero_vector(ops):
    """Test that a zero vector normalizes to zeros, never NaN."""
    result = [float(x) for x in ops.normalize([0.0, 0.0, 0.0])]
    assert result == [0.0, 0.0, 0.0]


@pytest.mark.parametrize("ops", KERNELS)
def test_cosine_known_angles(ops):
    """Test cosine similarity for identical, orthogonal and opposite vectors."""
    assert ops.cosine_similarity([1.0, 2.0, 3.0], [2.0, 4.0, 6.0]) == pytest.approx(1.0, abs=1e-6)
    assert ops.cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0, abs=1e-6)
    assert ops.cosine_similarity([1.0, 2.0, 3.0], [-2.0, -4.0, -6.0]) == pytest.approx(-1.0, abs=1e-6)


@pytest.mark.parametrize("ops", KERNELS)
def test_cosine_zero_vector_is_exactly_zero(ops):
    """Test that a zero-magnitude input yields exactly 0."""
    assert ops.cosine_similarity([0.0, 0.0, 0.0, 0.0], [1.0, 2.0, 3.0, 4.0]) == 0.0
    assert ops.cosine_similarity([1.0, 2.0, 3.0, 4.0], [0.0, 0.0, 0.0, 0.0]) == 0.0
    assert ops.cosine_similarity([0.0, 0.0], [0.0, 0.0]) == 0.0


@pytest.mark.parametrize("ops", KERNELS)
def test_cosine_bounds(ops):
    """Test that cosine stays in [-1, 1] for many random pairs."""
    rng = np.random.default_rng(7)
    for _ in range(200):
        a = rng.normal(size=16) * rng.choice([1e-3, 1.0, 1e6])
        b = rng.normal(size=16) * rng.choice([1e-3, 1.0, 1e6])
        similarity = ops.cosine_similarity(a.tolist(), b.tolist())
        assert -1.0 <= similarity <= 1.0
        assert not math.isnan(similarity)


def test_cosine_clamps_overshoot():
    """Test that collinear vectors never exceed 1."""
    v = [0.1] * 384
    assert vector_math.cosine_similarity(v, v) <= 1.0


@pytest.mark.parametrize("ops", KERNELS)
def test_cosine_dimension_mismatch(ops):
    """Test that cosine rejects vectors of different length."""
    with pytest.raises(DimensionMismatchError):
        ops.cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


@pytest.mark.parametrize("ops", KERNELS)
def test_ema_fusion_formula(ops):
    """Test S_t = alpha * E_t + (1 - alpha) * S_{t-1}."""
    result = [float(x) for x in ops.ema_fusion([1.0, 0.0], [0.0, 1.0], 0.5)]
    assert result == pytest.approx([0.5, 0.5], abs=1e-6)
    
    result = [float(x) for x in ops.ema_fusion([3.0, 1.0, 4.0], [9.0, 9.0, 9.0], 1.0)]
    assert result == pytest.approx([3.0, 1.0, 4.0], abs=1e-6)


@pytest.mark.parametrize("ops", KERNELS)
@pytest.mark.parametrize("alpha", [0.0, -0.1, 1.0001, float("nan")])
def test_ema_fusion_rejects_bad_alpha(ops, alpha):
    """Test that alpha outside (0, 1] is rejected."""
    with pytest.raises(InvalidParameterError):
        ops.ema_fusion([1.0], [0.0], alpha)


@pytest.mark.parametrize("ops", KERNELS)
def test_ema_fusion_dimension_mismatch(ops):
    """Test that fusion rejects vectors of different length."""
    with pytest.raises(DimensionMismatchError):
        ops.ema_fusion([1.0, 2.0], [1.0], 0.5)


def test_fast_math_returns_float32():
    """Test that the numpy kernel computes in float32."""
    assert fast_math.ema_fusion([1.0, 2.0], [0.0, 0.0], 0.3).dtype == np.float32
    assert fast_math.normalize([1.0, 1.0]).dtype == np.float32
