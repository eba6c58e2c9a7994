"""
Grade aggregation and GPA computation.

Everything here is a pure function of its inputs except
``apply_assignment_grade``, which mutates the assignment it is given. Storage
and locking live in the service and persistence layers.

Course percentage
    Each category's average is the mean of ``grade / max_points`` over its
    graded assignments. Categories without graded work are left out of both
    the weighted sum and the weight total rather than being scored as zero.
    Weights are relative and need not add up to 100.

GPA
    Each course percentage maps to grade points through a fixed threshold
    table; the overall GPA is the credit-weighted mean over courses that have
    graded work.
"""

import logging
import math
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from .entities import AssignmentRecord, CourseGrade, GPAResult, GradeCategory
from .enums import CreditPolicy, DEFAULT_CREDITS
from .exceptions import MalformedDataError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


LETTER_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (65, "D"),
)

GPA_THRESHOLDS: Tuple[Tuple[float, float], ...] = (
    (97, 4.0),
    (93, 3.7),
    (90, 3.3),
    (87, 3.0),
    (83, 2.7),
    (80, 2.3),
    (77, 2.0),
    (73, 1.7),
    (70, 1.3),
    (67, 1.0),
    (65, 0.7),
)


# Percentages are rounded to this many digits before threshold lookups.
PERCENT_PRECISION = 9


def to_percentage(weighted_points: float, total_weight: float) -> float:
    return round(weighted_points / total_weight * 100, PERCENT_PRECISION)


def letter_grade(percentage: float) -> str:
    """Map a course percentage to its letter grade."""
    for threshold, letter in LETTER_THRESHOLDS:
        if percentage >= threshold:
            return letter
    return "F"


def percentage_to_gpa(percentage: float) -> float:
    """Map a course percentage to grade points on the 4.0 scale."""
    for threshold, points in GPA_THRESHOLDS:
        if percentage >= threshold:
            return points
    return 0.0


def standing_for(gpa: float) -> str:
    """Dashboard label for a GPA value."""
    if gpa >= 3.5:
        return "Excellent"
    if gpa >= 3.0:
        return "Good"
    return "Needs Improvement"


def validate_grade(assignment: AssignmentRecord, grade: float) -> float:
    """Reject grades that are not a number within [0, max_points]."""
    if isinstance(grade, bool) or not isinstance(grade, (int, float)):
        raise ValidationError(f"Grade must be a number, got {grade!r}")
    if not math.isfinite(grade):
        raise ValidationError(f"Grade must be finite, got {grade!r}")
    if grade < 0:
        raise ValidationError(
            f"Grade for assignment {assignment.assignment_id} cannot be negative",
            details={'grade': grade}
        )
    if grade > assignment.max_points:
        raise ValidationError(
            f"Grade {grade} exceeds max points {assignment.max_points} "
            f"for assignment {assignment.assignment_id}",
            details={'grade': grade, 'max_points': assignment.max_points}
        )
    return float(grade)


class GradeAggregator:
    """Computes category averages, course percentages and letter grades."""

    def category_average(self, category: GradeCategory) -> Optional[float]:
        """Average score fraction in [0, 1], or None when nothing is graded."""
        graded = category.graded_assignments()
        if not graded:
            return None
        # Clamp so records written before grade validation stay within range.
        ratios = [min(max(a.grade / a.max_points, 0.0), 1.0) for a in graded]
        return sum(ratios) / len(ratios)

    def weighted_totals(self, categories: Iterable[GradeCategory]) -> Tuple[float, float, int]:
        """Return (weighted points, total weight, contributing categories)."""
        weighted_points = 0.0
        total_weight = 0.0
        contributing = 0
        for category in categories:
            average = self.category_average(category)
            if average is None:
                continue
            weighted_points += average * category.weight
            total_weight += category.weight
            contributing += 1
        return weighted_points, total_weight, contributing

    def course_percentage(self, categories: Iterable[GradeCategory]) -> float:
        weighted_points, total_weight, _ = self.weighted_totals(categories)
        if total_weight <= 0:
            return 0.0
        return to_percentage(weighted_points, total_weight)

    def compute_course_grade(self, course_id: str,
                             categories: Iterable[GradeCategory]) -> CourseGrade:
        """Percentage and letter for one course out of a mixed category list."""
        course_categories = [c for c in categories if str(c.course_id) == str(course_id)]
        weighted_points, total_weight, contributing = self.weighted_totals(course_categories)
        percentage = to_percentage(weighted_points, total_weight) if total_weight > 0 else 0.0
        return CourseGrade(
            course_id=str(course_id),
            percentage=percentage,
            letter=letter_grade(percentage),
            total_weight=total_weight,
            graded_categories=contributing,
        )


class GPAComputer:
    """Turns grade categories across courses into a credit-weighted GPA."""

    def __init__(self, credit_policy: CreditPolicy = CreditPolicy.FIXED,
                 default_credits: int = DEFAULT_CREDITS,
                 course_credits: Optional[Dict[str, int]] = None,
                 aggregator: Optional[GradeAggregator] = None):
        self._credit_policy = credit_policy
        self._default_credits = default_credits
        self._course_credits = {str(k): v for k, v in (course_credits or {}).items()}
        self._aggregator = aggregator or GradeAggregator()

    @property
    def credit_policy(self) -> CreditPolicy:
        return self._credit_policy

    def credits_for(self, course_id: str) -> float:
        if self._credit_policy == CreditPolicy.FIXED:
            return self._default_credits
        return self._course_credits.get(str(course_id), 0)

    def compute_gpa_result(self, categories: Iterable[GradeCategory],
                           course_id_filter: Optional[Iterable[str]] = None) -> GPAResult:
        """GPA together with whether any graded work backed it."""
        try:
            grouped = self._group_by_course(categories, course_id_filter)
            total_quality_points = 0.0
            total_credits = 0.0
            course_points: Dict[str, float] = {}

            for course_id, course_categories in grouped.items():
                weighted_points, total_weight, _ = self._aggregator.weighted_totals(course_categories)
                if total_weight <= 0:
                    continue
                credits = self.credits_for(course_id)
                if credits <= 0:
                    continue
                points = percentage_to_gpa(to_percentage(weighted_points, total_weight))
                course_points[course_id] = points
                total_quality_points += points * credits
                total_credits += credits
        except (AttributeError, TypeError, ValueError, ZeroDivisionError) as e:
            raise MalformedDataError(f"Cannot aggregate grade categories: {e}") from e

        if total_credits <= 0:
            return GPAResult(gpa=0.0, has_data=False)

        return GPAResult(
            gpa=total_quality_points / total_credits,
            has_data=True,
            courses_counted=len(course_points),
            total_credits=total_credits,
            course_points=course_points,
        )

    def compute_gpa(self, categories: Iterable[GradeCategory],
                    course_id_filter: Optional[Iterable[str]] = None) -> float:
        """Overall GPA; 0.0 when nothing is graded or the data cannot be read."""
        try:
            return self.compute_gpa_result(categories, course_id_filter).gpa
        except Exception:
            logger.exception("GPA computation failed, reporting 0.0")
            return 0.0

    @staticmethod
    def _group_by_course(categories: Iterable[GradeCategory],
                         course_id_filter: Optional[Iterable[str]]) -> "OrderedDict[str, List[GradeCategory]]":
        wanted = None
        if course_id_filter is not None:
            wanted = {str(course_id) for course_id in course_id_filter}

        grouped: "OrderedDict[str, List[GradeCategory]]" = OrderedDict()
        for category in categories:
            course_id = str(category.course_id)
            if wanted is not None and course_id not in wanted:
                continue
            grouped.setdefault(course_id, []).append(category)
        return grouped


def compute_course_grade(course_id: str, categories: Iterable[GradeCategory]) -> CourseGrade:
    return GradeAggregator().compute_course_grade(course_id, categories)


def compute_gpa(all_categories: Iterable[GradeCategory],
                course_id_filter: Optional[Iterable[str]] = None) -> float:
    """GPA with the default policy: every course counts for three credits."""
    return GPAComputer().compute_gpa(all_categories, course_id_filter)


def apply_assignment_grade(categories: Iterable[GradeCategory], category_id: str,
                           assignment_id: str, grade: float) -> GradeCategory:
    """Record a grade on an assignment and return its category.

    The assignment is updated in place and marked completed. Nothing is
    modified when the category or assignment cannot be found or the grade is
    rejected.
    """
    category = next((c for c in categories if str(c.id) == str(category_id)), None)
    if category is None:
        raise NotFoundError(f"Grade category {category_id} not found",
                            details={'category_id': category_id})

    assignment = category.find_assignment(assignment_id)
    if assignment is None:
        raise NotFoundError(f"Assignment {assignment_id} not found in category {category_id}",
                            details={'category_id': category_id, 'assignment_id': assignment_id})

    assignment.grade = validate_grade(assignment, grade)
    assignment.completed = True
    return category
