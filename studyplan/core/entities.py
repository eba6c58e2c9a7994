"""
Core entities for the Studyplan platform.
"""

import uuid
from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .enums import DEFAULT_COURSE_COLOR
from .exceptions import ValidationError


class AbstractEntity(ABC):
    """Identity and revision tracking shared by stored entities.

    ``version`` starts at 1 and grows by one on every recorded change, so two
    reads of the same entity can be compared without diffing fields.
    """

    def __init__(self, entity_id: Optional[str] = None):
        self._id = entity_id or str(uuid.uuid4())
        self._created_at = datetime.now(timezone.utc)
        self._updated_at = self._created_at
        self._version = 1

    @property
    def id(self) -> str:
        return self._id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def version(self) -> int:
        return self._version

    def touch(self) -> None:
        """Record a change to the entity."""
        self._updated_at = datetime.now(timezone.utc)
        self._version += 1

    def restore_lifecycle(self, created_at: datetime, updated_at: datetime, version: int) -> None:
        """Put back timestamps and version read from storage."""
        self._created_at = created_at
        self._updated_at = updated_at
        self._version = version

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self._id,
            'created_at': self._created_at.isoformat(),
            'updated_at': self._updated_at.isoformat(),
            'version': self._version,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self._id}, version={self._version})"


def _check_credits(credits: int) -> None:
    if credits < 0:
        raise ValidationError("Course credits cannot be negative", details={'credits': credits})


class Course(AbstractEntity):
    """A course the student is taking."""

    EDITABLE_FIELDS = ("name", "code", "instructor", "credits", "color",
                       "schedule", "semester", "description")

    def __init__(self, name: str, code: str, instructor: str = "", credits: int = 0,
                 color: str = DEFAULT_COURSE_COLOR, schedule: str = "", semester: str = "",
                 description: str = "", **kwargs):
        super().__init__(**kwargs)
        _check_credits(credits)
        self._name = name
        self._code = code
        self._instructor = instructor
        self._credits = credits
        self._color = color
        self._schedule = schedule
        self._semester = semester
        self._description = description

    @property
    def name(self) -> str:
        return self._name

    @property
    def code(self) -> str:
        return self._code

    @property
    def instructor(self) -> str:
        return self._instructor

    @property
    def credits(self) -> int:
        return self._credits

    @property
    def color(self) -> str:
        return self._color

    @property
    def schedule(self) -> str:
        return self._schedule

    @property
    def semester(self) -> str:
        return self._semester

    @property
    def description(self) -> str:
        return self._description

    def edit(self, **changes: Any) -> None:
        """Change any of ``EDITABLE_FIELDS``; an empty edit records nothing."""
        unknown = sorted(set(changes) - set(self.EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown course fields: {', '.join(unknown)}",
                                  details={'fields': unknown})
        if not changes:
            return
        _check_credits(changes.get("credits", self._credits))
        for name, value in changes.items():
            setattr(self, f"_{name}", value)
        self.touch()


@dataclass
class AssignmentRecord:
    """A single graded (or not yet graded) piece of work inside a category."""
    assignment_id: str
    name: str
    max_points: float
    grade: Optional[float] = None
    completed: bool = False

    def __post_init__(self):
        if self.max_points <= 0:
            raise ValidationError(
                f"Assignment {self.assignment_id} must have positive max points",
                details={'max_points': self.max_points}
            )
        if self.grade is not None:
            self.completed = True

    @property
    def is_graded(self) -> bool:
        return self.grade is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.assignment_id,
            'name': self.name,
            'max_points': self.max_points,
            'grade': self.grade,
            'completed': self.completed,
        }


class GradeCategory(AbstractEntity):
    """A weighted group of assignments belonging to exactly one course."""

    def __init__(self, course_id: str, category_name: str, weight: float,
                 assignments: Optional[List[AssignmentRecord]] = None, **kwargs):
        super().__init__(**kwargs)
        if weight < 0:
            raise ValidationError(
                f"Category weight must be non-negative, got {weight}",
                details={'weight': weight}
            )
        self._course_id = course_id
        self._category_name = category_name
        self._weight = float(weight)
        self._assignments: List[AssignmentRecord] = list(assignments or [])

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def category_name(self) -> str:
        return self._category_name

    @property
    def weight(self) -> float:
        return self._weight

    @property
    def assignments(self) -> List[AssignmentRecord]:
        """The live, ordered assignment list."""
        return self._assignments

    def graded_assignments(self) -> List[AssignmentRecord]:
        return [a for a in self._assignments if a.is_graded]

    def find_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        for assignment in self._assignments:
            if assignment.assignment_id == str(assignment_id):
                return assignment
        return None

    def replace_assignments(self, assignments: List[AssignmentRecord]) -> None:
        """Replace the assignment list wholesale."""
        self._assignments = list(assignments)
        self.touch()

    def to_dict(self) -> Dict[str, Any]:
        """Convert grade category to dictionary."""
        base_dict = super().to_dict()
        base_dict.update({
            'course_id': self._course_id,
            'category_name': self._category_name,
            'weight': self._weight,
            'assignments': [a.to_dict() for a in self._assignments],
        })
        return base_dict


@dataclass
class CourseGrade:
    """Percentage and letter grade for one course."""
    course_id: str
    percentage: float
    letter: str
    total_weight: float = 0.0
    graded_categories: int = 0

    @property
    def has_data(self) -> bool:
        return self.total_weight > 0


@dataclass
class GPAResult:
    """Overall GPA with an explicit marker for the no-graded-work case."""
    gpa: float
    has_data: bool
    courses_counted: int = 0
    total_credits: float = 0.0
    course_points: Dict[str, float] = field(default_factory=dict)
