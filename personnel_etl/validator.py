from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from .config import CONTROL_TOTAL_LABEL
from .models import Person, PersonStatus
from .parsers import ControlSummary
from .taxonomy import Category


LOG = logging.getLogger("personnel_etl")

UNCATEGORIZED = "UNCATEGORIZED"


@dataclass
class CountMismatch:
    category: str
    actual: int
    expected: int

    @property
    def diff(self) -> int:
        return self.actual - self.expected

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "actual": self.actual, "expected": self.expected, "diff": self.diff}


@dataclass
class ValidationResult:
    errors: List[CountMismatch]
    expected: Dict[Category, int]
    expected_total: int
    actual: Dict[Category, int] = field(default_factory=dict)
    actual_total: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "expected": {c.value: n for c, n in self.expected.items()},
            "expectedTotal": self.expected_total,
        }


def validate_counts(
    category_counts: Mapping[Category, int],
    control: ControlSummary,
    total_label: str = CONTROL_TOTAL_LABEL,
    logger: logging.Logger = LOG,
) -> ValidationResult:
    """
    Compare parsed per-category headcounts with the control sheet.
    Any category mismatch, or a grand-total mismatch, makes the run invalid.
    Does not touch the data.
    """
    logger.info("Validating against control sheet...")

    errors: List[CountMismatch] = []
    actual: Dict[Category, int] = {}
    total_actual = 0

    for category in Category:
        got = int(category_counts.get(category, 0))
        want = int(control.expected.get(category, 0))
        actual[category] = got
        total_actual += got

        if got != want:
            errors.append(CountMismatch(category=category.value, actual=got, expected=want))
            logger.info(f"  FAIL {category.value}: {got} (expected {want}, diff {got - want})")
        else:
            logger.info(f"  OK   {category.value}: {got}")

    if total_actual != control.expected_total:
        errors.append(CountMismatch(category=total_label, actual=total_actual, expected=control.expected_total))
        logger.info(f"  FAIL {total_label}: {total_actual} (expected {control.expected_total})")
    else:
        logger.info(f"  OK   {total_label}: {total_actual}")

    return ValidationResult(
        errors=errors,
        expected=dict(control.expected),
        expected_total=control.expected_total,
        actual=actual,
        actual_total=total_actual,
    )


def check_active_categories(people: Iterable[Person], logger: logging.Logger = LOG) -> List[CountMismatch]:
    """Active people must carry a category; each run reports how many do not."""
    missing = [p for p in people if p.status == PersonStatus.ACTIVE and p.category is None]
    if not missing:
        return []
    logger.warning(f"  Found {len(missing)} uncategorized people in the active roster (expected 0)")
    return [CountMismatch(category=UNCATEGORIZED, actual=len(missing), expected=0)]
