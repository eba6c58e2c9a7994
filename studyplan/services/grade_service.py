"""
Grade service: the application seam between the store and the grading core.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..core.entities import AssignmentRecord, Course, CourseGrade, GPAResult, GradeCategory
from ..core.enums import CreditPolicy, DEFAULT_CREDITS
from ..core.exceptions import ValidationError
from ..core.grading import (
    GradeAggregator, GPAComputer, apply_assignment_grade, standing_for, validate_grade
)
from ..core.interfaces import GradeStore
from .concurrency_manager import ConcurrencyManager

logger = logging.getLogger(__name__)


@dataclass
class CourseStanding:
    """A course together with its computed grade."""
    course: Course
    grade: CourseGrade


@dataclass
class GradeSummary:
    """Everything the grades overview shows at once."""
    gpa: GPAResult
    standing: str
    courses: List[CourseStanding] = field(default_factory=list)
    average_percentage: Optional[float] = None
    highest_percentage: Optional[float] = None


class GradeService:
    """Loads grade data from a store and runs it through the grading core."""

    def __init__(self, store: GradeStore, credit_policy: CreditPolicy = CreditPolicy.FIXED,
                 default_credits: int = DEFAULT_CREDITS,
                 concurrency_manager: Optional[ConcurrencyManager] = None):
        self._store = store
        self._credit_policy = credit_policy
        self._default_credits = default_credits
        self._concurrency_manager = concurrency_manager or ConcurrencyManager()
        self._aggregator = GradeAggregator()

    @property
    def store(self) -> GradeStore:
        return self._store

    @property
    def credit_policy(self) -> CreditPolicy:
        return self._credit_policy

    # Courses

    def list_courses(self) -> List[Course]:
        return self._store.list_courses()

    def get_course(self, course_id: str) -> Course:
        return self._store.get_course(course_id)

    def create_course(self, name: str, code: str, **kwargs) -> Course:
        course = Course(name=name, code=code, **kwargs)
        self._store.save_course(course)
        logger.info("Created course %s (%s)", course.code, course.id)
        return course

    def update_course(self, course_id: str, **changes) -> Course:
        """Edit course fields in place; grade categories are left alone."""
        with self._concurrency_manager.lock(f"course:{course_id}"):
            course = self._store.get_course(course_id)
            course.edit(**changes)
            self._store.save_course(course)
        logger.info("Updated course %s: %s", course_id, ", ".join(sorted(changes)))
        return course

    def delete_course(self, course_id: str) -> bool:
        return self._store.delete_course(course_id)

    # Grade categories

    def list_grade_categories(self, course_id: Optional[str] = None) -> List[GradeCategory]:
        return self._store.list_grade_categories(course_id)

    def get_grade_category(self, category_id: str) -> GradeCategory:
        return self._store.get_grade_category(category_id)

    def create_grade_category(self, course_id: str, category_name: str, weight: float,
                              assignments: Optional[Iterable[Dict[str, Any]]] = None) -> GradeCategory:
        """Create a category; ``assignments`` are dicts of name, max_points and optional grade.

        Supplied ids are kept as given. Items without one get the lowest
        positive number not already taken by another id in the list.
        """
        items = list(assignments or [])
        supplied = [str(item["id"]) for item in items if item.get("id") not in (None, "")]
        if len(supplied) != len(set(supplied)):
            raise ValidationError("Assignment ids must be unique within a category")

        taken = set(supplied)
        next_number = 1
        records = []
        for item in items:
            if item.get("id") not in (None, ""):
                assignment_id = str(item["id"])
            else:
                while str(next_number) in taken:
                    next_number += 1
                assignment_id = str(next_number)
                taken.add(assignment_id)
            record = AssignmentRecord(
                assignment_id=assignment_id,
                name=item.get("name", ""),
                max_points=item["max_points"],
            )
            if item.get("grade") is not None:
                record.grade = validate_grade(record, item["grade"])
                record.completed = True
            records.append(record)

        category = GradeCategory(course_id=str(course_id), category_name=category_name,
                                 weight=weight, assignments=records)
        self._store.create_grade_category(category)
        logger.info("Created grade category %s for course %s", category.id, course_id)
        return category

    def delete_grade_category(self, category_id: str) -> bool:
        return self._store.delete_grade_category(category_id)

    def update_assignment_grade(self, category_id: str, assignment_id: str,
                                grade: float) -> GradeCategory:
        """Grade one assignment and persist the category's assignment list.

        The fetch, update and save run under the category's lock so that
        concurrent graders in this process cannot overwrite each other.
        """
        with self._concurrency_manager.lock(f"grade_category:{category_id}"):
            category = self._store.get_grade_category(category_id)
            apply_assignment_grade([category], category_id, assignment_id, grade)
            self._store.save_grade_category_assignments(category.id, category.assignments)

        logger.info("Graded assignment %s in category %s: %s", assignment_id, category_id, grade)
        return category

    # Grades

    def course_grade(self, course_id: str) -> CourseGrade:
        self._store.get_course(course_id)
        categories = self._store.list_grade_categories(course_id)
        return self._aggregator.compute_course_grade(course_id, categories)

    def gpa_summary(self, course_ids: Optional[Iterable[str]] = None) -> GPAResult:
        """GPA with an explicit no-data flag. Store and data errors propagate."""
        categories = self._store.list_grade_categories()
        return self._gpa_computer().compute_gpa_result(categories, course_ids)

    def calculate_gpa(self, course_ids: Optional[Iterable[str]] = None) -> float:
        """GPA as a plain number, 0.0 when there is no graded work or on failure."""
        try:
            return self.gpa_summary(course_ids).gpa
        except Exception as e:
            logger.exception("Error calculating GPA: %s", e)
            return 0.0

    def grade_summary(self) -> GradeSummary:
        courses = self._store.list_courses()
        categories = self._store.list_grade_categories()
        standings = [
            CourseStanding(course=course,
                           grade=self._aggregator.compute_course_grade(course.id, categories))
            for course in courses
        ]
        gpa = self._gpa_computer(courses).compute_gpa_result(categories)

        percentages = [s.grade.percentage for s in standings]
        return GradeSummary(
            gpa=gpa,
            standing=standing_for(gpa.gpa),
            courses=standings,
            average_percentage=sum(percentages) / len(percentages) if percentages else None,
            highest_percentage=max(percentages) if percentages else None,
        )

    def _gpa_computer(self, courses: Optional[List[Course]] = None) -> GPAComputer:
        course_credits = None
        if self._credit_policy == CreditPolicy.COURSE:
            if courses is None:
                courses = self._store.list_courses()
            course_credits = {course.id: course.credits for course in courses}
        return GPAComputer(
            credit_policy=self._credit_policy,
            default_credits=self._default_credits,
            course_credits=course_credits,
            aggregator=self._aggregator,
        )
