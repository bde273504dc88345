import numpy as np
import pytest

from pyroflow.utils.error_handling import PhysicsError, check_field_finite
from pyroflow.utils.validation import (
    FieldComparison,
    ValidationType,
    Validator,
    compare_fields,
    velocity_divergence
)

def test_compare_fields_counts_changes():
    original = np.zeros((8, 8), dtype=np.float32)
    current = original.copy()
    current[1, 2] = 0.5
    current[3, 4] = 1e-4

    result = compare_fields(original, current)
    assert result == FieldComparison(changed=2, total=64)
    assert str(result) == "Changed 2 out of 64 cells"
    assert result.unchanged == 62

    assert compare_fields(original, current, tolerance=1e-3).changed == 1

def test_compare_vector_fields():
    original = np.zeros((4, 4, 2))
    current = original.copy()
    current[0, 0, 1] = 1.0
    result = compare_fields(original, current)
    assert result.changed == 1
    assert result.total == 16
    assert result.fraction_changed == pytest.approx(1 / 16)

def test_compare_shape_mismatch():
    with pytest.raises(ValueError):
        compare_fields(np.zeros((4, 4)), np.zeros((4, 5)))

def test_divergence():
    velocity = np.zeros((8, 8, 2))
    assert not np.any(velocity_divergence(velocity))

    velocity[..., 0] = np.arange(8)[:, None]
    div = velocity_divergence(velocity)
    np.testing.assert_allclose(div[1:-1], 1.0)
    np.testing.assert_allclose(div[0], 0.5)

def test_validator():
    validator = Validator()
    before = np.ones((8, 8))
    validator.check_conservation("density", before, before * 1.0001)
    assert validator.all_passed()

    validator.check_conservation("density", before, before * 1.5)
    validator.check_finite("temperature", np.array([0.0, np.nan]))
    assert not validator.all_passed()
    assert validator.results[-1].type is ValidationType.STABILITY
    assert len(validator.summary().splitlines()) == 3

def test_validator_records_comparisons():
    validator = Validator()
    result = validator.check_changed("density", np.zeros(4), np.array([0.0, 1.0, 0.0, 1.0]))
    assert result.passed
    assert result.message == "Changed 2 out of 4 cells"
    assert Validator().summary() == "No validations run"

def test_check_field_finite():
    check_field_finite(np.zeros((4, 4)), "density")
    with pytest.raises(PhysicsError):
        check_field_finite(np.array([np.inf]), "density")
    with pytest.raises(PhysicsError, match="too large"):
        check_field_finite(np.array([1e9]), "velocity")
