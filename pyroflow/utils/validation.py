import logging
from typing import Optional, Any, List
import numpy as np
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

class ValidationType(Enum):
    """Validation types"""
    CONSERVATION = "conservation"
    DIVERGENCE = "divergence"
    STABILITY = "stability"
    COMPARISON = "comparison"

@dataclass
class ValidationResult:
    """Validation result"""
    type: ValidationType
    name: str
    passed: bool
    message: str
    value: Optional[Any] = None
    expected: Optional[Any] = None
    tolerance: Optional[float] = None

    def __str__(self) -> str:
        result_str = f"{self.type.value.upper()} - {self.name}: "
        result_str += "PASSED" if self.passed else "FAILED"

        if self.message:
            result_str += f" - {self.message}"

        if self.value is not None:
            result_str += f"\nValue: {self.value}"

        if self.expected is not None:
            result_str += f"\nExpected: {self.expected}"

        if self.tolerance is not None:
            result_str += f"\nTolerance: {self.tolerance}"

        return result_str

@dataclass(frozen=True)
class FieldComparison:
    """Cell-by-cell comparison of two fields"""
    changed: int
    total: int

    @property
    def unchanged(self) -> int:
        return self.total - self.changed

    @property
    def fraction_changed(self) -> float:
        return self.changed / self.total if self.total else 0.0

    def __str__(self) -> str:
        return f"Changed {self.changed} out of {self.total} cells"

def compare_fields(original: np.ndarray, current: np.ndarray, tolerance: float = 0.0) -> FieldComparison:
    """
    Count the cells whose value differs between two snapshots

    Vector fields count a cell as changed when any channel differs.

    Args:
        original: Reference snapshot
        current: Snapshot to compare
        tolerance: Largest absolute difference still counted as unchanged

    Returns:
        Comparison counts
    """
    original = np.asarray(original)
    current = np.asarray(current)
    if original.shape != current.shape:
        raise ValueError(f"Shape mismatch: {original.shape} vs {current.shape}")

    diff = np.abs(current.astype(np.float64) - original.astype(np.float64))
    if diff.ndim == 3:
        diff = diff.max(axis=2)
    result = FieldComparison(changed=int(np.count_nonzero(diff > tolerance)), total=int(diff.size))
    logger.info(str(result))
    return result

def velocity_divergence(velocity: np.ndarray) -> np.ndarray:
    """Central-difference divergence of an [x, y, 2] velocity array with clamped edges"""
    vx = np.pad(velocity[..., 0], 1, mode="edge")
    vy = np.pad(velocity[..., 1], 1, mode="edge")
    return 0.5 * ((vx[2:, 1:-1] - vx[:-2, 1:-1]) + (vy[1:-1, 2:] - vy[1:-1, :-2]))

class Validator:
    def __init__(self):
        """Initialize validator"""
        self.results: List[ValidationResult] = []

    def _record(self, result: ValidationResult) -> ValidationResult:
        self.results.append(result)
        return result

    def check_conservation(self,
                           name: str,
                           before: np.ndarray,
                           after: np.ndarray,
                           tolerance: float = 1e-3) -> ValidationResult:
        """
        Check that the total of a field is preserved

        Args:
            name: Field name
            before: Snapshot before the operation
            after: Snapshot after the operation
            tolerance: Allowed relative change of the total

        Returns:
            Validation result
        """
        total_before = float(np.sum(before, dtype=np.float64))
        total_after = float(np.sum(after, dtype=np.float64))
        scale = max(abs(total_before), 1e-12)
        relative = abs(total_after - total_before) / scale
        return self._record(ValidationResult(
            type=ValidationType.CONSERVATION,
            name=name,
            passed=relative <= tolerance,
            message=f"relative change {relative:.3e}",
            value=total_after,
            expected=total_before,
            tolerance=tolerance
        ))

    def check_divergence(self,
                         name: str,
                         velocity: np.ndarray,
                         tolerance: float = 1e-3) -> ValidationResult:
        """Check that the largest absolute divergence stays under a tolerance"""
        max_div = float(np.max(np.abs(velocity_divergence(velocity))))
        return self._record(ValidationResult(
            type=ValidationType.DIVERGENCE,
            name=name,
            passed=max_div <= tolerance,
            message=f"max |div| {max_div:.3e}",
            value=max_div,
            tolerance=tolerance
        ))

    def check_finite(self, name: str, array: np.ndarray) -> ValidationResult:
        """Check for NaN or infinite values"""
        bad = int(np.count_nonzero(~np.isfinite(array)))
        return self._record(ValidationResult(
            type=ValidationType.STABILITY,
            name=name,
            passed=bad == 0,
            message=f"{bad} non-finite values",
            value=bad,
            expected=0
        ))

    def check_changed(self,
                      name: str,
                      original: np.ndarray,
                      current: np.ndarray,
                      tolerance: float = 0.0) -> ValidationResult:
        """Record how many cells differ from a reference snapshot"""
        comparison = compare_fields(original, current, tolerance)
        return self._record(ValidationResult(
            type=ValidationType.COMPARISON,
            name=name,
            passed=True,
            message=str(comparison),
            value=comparison.changed,
            expected=comparison.total,
            tolerance=tolerance
        ))

    def all_passed(self) -> bool:
        return all(result.passed for result in self.results)

    def summary(self) -> str:
        """One line per recorded result"""
        if not self.results:
            return "No validations run"
        return "\n".join(str(result).splitlines()[0] for result in self.results)
