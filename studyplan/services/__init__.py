"""
Services module: application logic on top of the grade store.
"""

from .concurrency_manager import ConcurrencyManager
from .grade_service import GradeService, GradeSummary, CourseStanding

__all__ = [
    "ConcurrencyManager",
    "GradeService",
    "GradeSummary",
    "CourseStanding",
]
