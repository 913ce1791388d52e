# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Grade calculation.

Maps a total score in [0, 100] to a letter grade and grade-point value
using a fixed, ordered table of score breakpoints. Grades are always
derived from the total; they are never accepted as input.

Example:
    >>> scale = FIVE_POINT_SCALE
    >>> scale.grade(85)
    Grade(letter='A', points=5.0)
"""

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, NamedTuple, Sequence

from academic_results.domains.results.errors import InvalidInputError

CA_MAX_SCORE = 30.0
EXAM_MAX_SCORE = 70.0
TOTAL_MAX_SCORE = CA_MAX_SCORE + EXAM_MAX_SCORE
SCORE_PRECISION = Decimal("0.01")
MAX_GRADE_POINTS = 9.99


def _is_number(value: object) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class Grade(NamedTuple):
    """Letter grade with its grade-point value."""

    letter: str
    points: float


@dataclass(frozen=True)
class GradingScale:
    """Ordered score breakpoints and their grade points.

    Attributes:
        name: Scale identifier.
        bands: (minimum total, letter) pairs, highest minimum first. The
            last band must start at 0 so every valid total has a grade.
        points: Grade points per letter.
    """

    name: str
    bands: tuple[tuple[float, str], ...]
    points: Mapping[str, float] = field(hash=False)

    def __post_init__(self) -> None:
        if not self.bands:
            raise ValueError(f"Grading scale '{self.name}' has no bands")

        minimums = [minimum for minimum, _ in self.bands]
        if any(later >= earlier for earlier, later in zip(minimums, minimums[1:])):
            raise ValueError(
                f"Grading scale '{self.name}' breakpoints must be strictly descending"
            )
        if minimums[-1] != 0:
            raise ValueError(f"Grading scale '{self.name}' must have a band starting at 0")
        if minimums[0] > TOTAL_MAX_SCORE:
            raise ValueError(f"Grading scale '{self.name}' breakpoint above {TOTAL_MAX_SCORE:g}")

        missing = [letter for _, letter in self.bands if letter not in self.points]
        if missing:
            raise ValueError(
                f"Grading scale '{self.name}' has no points for: {', '.join(missing)}"
            )

        # grade_points is stored as NUMERIC(3, 2)
        out_of_range = [
            letter
            for letter, value in self.points.items()
            if not _is_number(value) or not 0 <= value <= MAX_GRADE_POINTS
        ]
        if out_of_range:
            raise ValueError(
                f"Grading scale '{self.name}' points must be between 0 and "
                f"{MAX_GRADE_POINTS:g}: {', '.join(out_of_range)}"
            )

    @property
    def letters(self) -> tuple[str, ...]:
        """Letters in scale order, best first."""
        return tuple(letter for _, letter in self.bands)

    def grade(self, total_score: float) -> Grade:
        """Grade a total score.

        Args:
            total_score: Total of CA and exam scores.

        Returns:
            The letter and grade points for the total.

        Raises:
            InvalidInputError: If the total is not a number in [0, 100].
        """
        if not _is_number(total_score) or not 0 <= total_score <= TOTAL_MAX_SCORE:
            raise InvalidInputError(
                f"Total score must be between 0 and {TOTAL_MAX_SCORE:g}, got {total_score!r}"
            )

        for minimum, letter in self.bands:
            if total_score >= minimum:
                return Grade(letter, float(self.points[letter]))

        # Unreachable: the last band starts at 0
        raise InvalidInputError(f"No grade band for total score {total_score!r}")


FIVE_POINT_SCALE = GradingScale(
    name="five_point",
    bands=((70, "A"), (60, "B"), (50, "C"), (45, "D"), (40, "E"), (0, "F")),
    points={"A": 5.0, "B": 4.0, "C": 3.0, "D": 2.0, "E": 1.0, "F": 0.0},
)

FOUR_POINT_SCALE = GradingScale(
    name="four_point",
    bands=((70, "A"), (60, "B"), (50, "C"), (45, "D"), (0, "F")),
    points={"A": 4.0, "B": 3.0, "C": 2.0, "D": 1.0, "F": 0.0},
)

BUILTIN_SCALES: dict[str, GradingScale] = {
    FIVE_POINT_SCALE.name: FIVE_POINT_SCALE,
    FOUR_POINT_SCALE.name: FOUR_POINT_SCALE,
}


def build_scale(
    name: str,
    bands: Sequence[tuple[float, str]] | None = None,
    points: Mapping[str, float] | None = None,
) -> GradingScale:
    """Resolve the configured grading scale.

    Args:
        name: Built-in scale name.
        bands: Optional custom breakpoints replacing the built-in table.
        points: Grade points for the custom letters.

    Returns:
        The grading scale to use for the process lifetime.

    Raises:
        ValueError: If the name is unknown or the custom table is invalid.
    """
    if bands is not None and points is not None:
        return GradingScale(
            name=f"{name}_custom",
            bands=tuple((float(minimum), letter) for minimum, letter in bands),
            points=dict(points),
        )

    try:
        return BUILTIN_SCALES[name]
    except KeyError:
        raise ValueError(f"Unknown grading scale: {name}") from None


class ScoreBreakdown(NamedTuple):
    """Component scores and total, each at the stored two-decimal precision."""

    ca_score: float
    exam_score: float
    total_score: float


def validate_scores(ca_score: float, exam_score: float) -> ScoreBreakdown:
    """Quantize the components to two decimals and check their bounds.

    Components are rounded half-up before summing, so the total is always
    exactly the sum of the stored components.

    Raises:
        InvalidInputError: If a component is not a number or out of bounds.
    """
    if not _is_number(ca_score):
        raise InvalidInputError(f"CA score must be between 0 and {CA_MAX_SCORE:g}")
    if not _is_number(exam_score):
        raise InvalidInputError(f"Exam score must be between 0 and {EXAM_MAX_SCORE:g}")

    ca = _quantize(ca_score)
    exam = _quantize(exam_score)

    if not 0 <= ca <= CA_MAX_SCORE:
        raise InvalidInputError(f"CA score must be between 0 and {CA_MAX_SCORE:g}")
    if not 0 <= exam <= EXAM_MAX_SCORE:
        raise InvalidInputError(f"Exam score must be between 0 and {EXAM_MAX_SCORE:g}")

    return ScoreBreakdown(float(ca), float(exam), float(ca + exam))


def _quantize(value: float) -> Decimal:
    return Decimal(str(value)).quantize(SCORE_PRECISION, rounding=ROUND_HALF_UP)

