# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credit-weighted GPA aggregation.

Pure arithmetic over graded entries. Callers decide which results count:
student-facing figures pass only published, dual-approved results.
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class GpaEntry:
    """One graded course as seen by the aggregator."""

    total_score: float
    grade_points: float
    credits: int


def compute_gpa(entries: Iterable[GpaEntry]) -> float:
    """Compute GPA as sum(points * credits) / sum(credits).

    Args:
        entries: Graded courses to aggregate.

    Returns:
        GPA rounded to two decimals, or 0.0 when no credits are counted.
    """
    weighted_points = 0.0
    credit_sum = 0

    for entry in entries:
        weighted_points += entry.grade_points * entry.credits
        credit_sum += entry.credits

    if credit_sum <= 0:
        return 0.0

    return round(weighted_points / credit_sum, 2)


def total_credits(entries: Iterable[GpaEntry]) -> int:
    """Sum the credits of the given entries."""
    return sum(entry.credits for entry in entries)
