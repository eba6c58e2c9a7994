"""
Core interfaces and abstract base classes for the Studyplan platform.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, List, Optional, TypeVar

if TYPE_CHECKING:
    from .entities import AssignmentRecord, Course, GradeCategory


T = TypeVar('T')


class Repository(ABC, Generic[T]):
    """Abstract base class for repositories."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Save an entity."""
        pass

    @abstractmethod
    def find_by_id(self, entity_id: str) -> Optional[T]:
        """Find entity by ID."""
        pass

    @abstractmethod
    def find_all(self) -> List[T]:
        """All stored entities."""
        pass

    @abstractmethod
    def delete(self, entity_id: str) -> bool:
        """Delete an entity by ID."""
        pass


class GradeStore(ABC):
    """Persistence boundary for courses and grade categories.

    The grading core never talks to storage directly; services receive an
    implementation of this interface and hand plain entities to the core.
    """

    @abstractmethod
    def list_grade_categories(self, course_id: Optional[str] = None) -> List['GradeCategory']:
        """List grade categories, optionally for a single course."""
        pass

    @abstractmethod
    def get_grade_category(self, category_id: str) -> 'GradeCategory':
        """Get a grade category or raise NotFoundError."""
        pass

    @abstractmethod
    def save_grade_category_assignments(self, category_id: str,
                                        assignments: List['AssignmentRecord']) -> None:
        """Persist only the assignment list of a category."""
        pass

    @abstractmethod
    def list_courses(self) -> List['Course']:
        """List all courses."""
        pass

    @abstractmethod
    def get_course(self, course_id: str) -> 'Course':
        """Get a course or raise NotFoundError."""
        pass

    @abstractmethod
    def save_course(self, course: 'Course') -> 'Course':
        """Create or replace a course."""
        pass

    @abstractmethod
    def delete_course(self, course_id: str) -> bool:
        """Delete a course and its grade categories."""
        pass

    @abstractmethod
    def create_grade_category(self, category: 'GradeCategory') -> 'GradeCategory':
        """Store a new grade category."""
        pass

    @abstractmethod
    def delete_grade_category(self, category_id: str) -> bool:
        """Delete a grade category."""
        pass
