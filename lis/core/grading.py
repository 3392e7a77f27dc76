"""
Grade arithmetic: weighted course grades, letter mapping and 4.0-scale points.
"""

from typing import Dict, Iterable, List, Optional, Tuple

# Ordered high to low; the first threshold a percentage reaches wins.
LETTER_THRESHOLDS: List[Tuple[float, str]] = [
    (93.0, "A"),
    (90.0, "A-"),
    (87.0, "B+"),
    (83.0, "B"),
    (80.0, "B-"),
    (77.0, "C+"),
    (73.0, "C"),
    (70.0, "C-"),
    (67.0, "D+"),
    (60.0, "D"),
]

FAILING_LETTER = "F"

GPA_POINTS: Dict[str, float] = {
    "A": 4.0, "A-": 3.7,
    "B+": 3.3, "B": 3.0, "B-": 2.7,
    "C+": 2.3, "C": 2.0, "C-": 1.7,
    "D+": 1.3, "D": 1.0,
    "F": 0.0,
}


def percentage(marks_obtained: float, max_marks: float) -> float:
    return marks_obtained / max_marks * 100.0


def letter_grade(pct: float) -> str:
    """Map a percentage to its letter grade."""
    for threshold, letter in LETTER_THRESHOLDS:
        if pct >= threshold:
            return letter
    return FAILING_LETTER


def gpa_points(letter: str) -> float:
    """4.0-scale points for a letter grade."""
    return GPA_POINTS.get(letter, 0.0)


def weighted_course_grade(items: Iterable[Tuple[float, float, float]]) -> Optional[float]:
    """Weighted average percentage of graded items.

    ``items`` yields ``(marks_obtained, max_marks, weight_pct)`` for graded,
    published work only. Returns None when there is nothing to average.
    Zero-weight items count only when every item has zero weight, in which
    case the plain mean is returned.
    """
    items = list(items)
    if not items:
        return None
    total_weight = sum(weight for _, _, weight in items)
    if total_weight <= 0:
        return sum(percentage(marks, max_marks) for marks, max_marks, _ in items) / len(items)
    weighted = sum(percentage(marks, max_marks) * weight for marks, max_marks, weight in items)
    return weighted / total_weight


def credit_weighted_gpa(courses: Iterable[Tuple[Optional[float], int]]) -> Tuple[float, bool]:
    """Credit-weighted GPA over ``(course_grade_pct, credits)`` pairs.

    Courses without a grade are skipped entirely. Returns ``(gpa, has_data)``;
    a student with no graded courses, or only zero-credit ones, gets ``(0.0, False)``.
    """
    total_points = 0.0
    total_credits = 0
    for grade_pct, credits in courses:
        if grade_pct is None:
            continue
        total_points += gpa_points(letter_grade(grade_pct)) * credits
        total_credits += credits
    if total_credits <= 0:
        return 0.0, False
    return round(total_points / total_credits, 2), True
