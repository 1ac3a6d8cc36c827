"""
Integrity Scorer - Computes integrity score from the violation timeline
"""

import logging
from typing import Any, Dict, Iterable, Optional

from ..types import Severity, ViolationEvent, ViolationType

logger = logging.getLogger(__name__)

DEFAULT_DEDUCTIONS: Dict[Severity, int] = {
    Severity.LOW: 2,
    Severity.MEDIUM: 5,
    Severity.HIGH: 10,
    Severity.CRITICAL: 20,
}


def worst_severity_by_type(violations: Iterable[ViolationEvent]) -> Dict[ViolationType, Severity]:
    """Highest severity seen for each violation type."""
    worst: Dict[ViolationType, Severity] = {}
    for violation in violations:
        current = worst.get(violation.type)
        worst[violation.type] = (
            violation.severity if current is None else Severity.max_of(current, violation.severity)
        )
    return worst


def compute_integrity_score(
    violations: Iterable[ViolationEvent],
    deductions: Optional[Dict[Severity, int]] = None
) -> int:
    """
    Score = 100 - sum of deductions for the worst severity of each type.

    Repeats of a type only matter if they raise its worst severity, so the
    result does not depend on order or on how often a type fired.
    Clamped to 0-100.
    """
    table = deductions or DEFAULT_DEDUCTIONS
    total = sum(table[severity] for severity in worst_severity_by_type(violations).values())
    return max(0, min(100, 100 - total))


class IntegrityScorer:
    """
    Computes integrity score from proctoring violations.

    Formula:
        integrity_score = 100 - sum(deduction[max severity of type] for each type)

    with deductions low=2, medium=5, high=10, critical=20.
    """

    def __init__(self, deductions: Optional[Dict[str, int]] = None):
        """
        Initialize scorer with optional custom deductions.

        Args:
            deductions: Optional dict of severity name -> points, overriding defaults
        """
        self.deductions = dict(DEFAULT_DEDUCTIONS)
        if deductions:
            self.deductions.update({Severity(k): int(v) for k, v in deductions.items()})

    def compute(self, violations: Iterable[ViolationEvent]) -> int:
        """
        Compute integrity score from violations.

        Returns:
            Integrity score (0-100, higher is better)
        """
        score = compute_integrity_score(violations, self.deductions)
        logger.debug(f"Computed integrity score: {score}")
        return score

    def compute_breakdown(self, violations: Iterable[ViolationEvent]) -> Dict[str, Any]:
        """
        Compute integrity score with detailed breakdown.

        Returns:
            Dict with score and the deduction taken for each violation type
        """
        worst = worst_severity_by_type(violations)

        penalties = {
            violation_type.value: {
                "severity": severity.value,
                "deduction": self.deductions[severity]
            }
            for violation_type, severity in worst.items()
        }
        total = sum(p["deduction"] for p in penalties.values())

        return {
            "integrity_score": max(0, min(100, 100 - total)),
            "penalties": penalties,
            "total_deduction": total
        }

    def get_grade(self, score: int) -> str:
        """
        Convert score to letter grade.

        Returns:
            Grade: 'A' (excellent), 'B' (good), 'C' (warning), 'D' (concerning), 'F' (failed)
        """
        if score >= 90:
            return "A"
        elif score >= 80:
            return "B"
        elif score >= 70:
            return "C"
        elif score >= 60:
            return "D"
        else:
            return "F"
