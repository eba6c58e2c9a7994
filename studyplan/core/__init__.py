"""
Core module containing the entities and the grading engine.
"""

from .entities import *
from .interfaces import *
from .exceptions import *
from .enums import *
from .grading import (
    GradeAggregator,
    GPAComputer,
    letter_grade,
    percentage_to_gpa,
    standing_for,
    compute_course_grade,
    compute_gpa,
    apply_assignment_grade,
)

__all__ = [
    # Entities
    "AbstractEntity",
    "Course",
    "GradeCategory",
    "AssignmentRecord",
    "CourseGrade",
    "GPAResult",

    # Interfaces
    "Repository",
    "GradeStore",

    # Enums
    "CreditPolicy",
    "StoreType",

    # Exceptions
    "PlannerException",
    "ValidationError",
    "NotFoundError",
    "MalformedDataError",
    "PersistenceError",
    "ConfigurationError",
    "ConcurrencyError",

    # Grading
    "GradeAggregator",
    "GPAComputer",
    "letter_grade",
    "percentage_to_gpa",
    "standing_for",
    "compute_course_grade",
    "compute_gpa",
    "apply_assignment_grade",
]
