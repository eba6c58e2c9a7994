"""
Database-backed grade store and store construction.
"""

import logging
from typing import List, Optional, Union

from ..core.entities import AssignmentRecord, Course, GradeCategory
from ..core.enums import StoreType
from ..core.exceptions import ConfigurationError, NotFoundError
from ..core.interfaces import GradeStore
from .database import DatabaseManager, SQLiteDatabase
from .memory import InMemoryGradeStore
from .repositories import CourseRepository, GradeCategoryRepository
from . import records

logger = logging.getLogger(__name__)


class DatabaseGradeStore(GradeStore):
    """GradeStore on top of the course and grade category repositories."""

    def __init__(self, database: DatabaseManager, strict_records: bool = False):
        self._database = database
        self._courses = CourseRepository(database)
        self._categories = GradeCategoryRepository(database, strict_records=strict_records)

    def list_grade_categories(self, course_id: Optional[str] = None) -> List[GradeCategory]:
        if course_id is None:
            return self._categories.find_all()
        return self._categories.find_by_course(course_id)

    def get_grade_category(self, category_id: str) -> GradeCategory:
        category = self._categories.find_by_id(category_id)
        if category is None:
            raise NotFoundError(f"Grade category {category_id} not found",
                                details={'category_id': category_id})
        return category

    def save_grade_category_assignments(self, category_id: str,
                                        assignments: List[AssignmentRecord]) -> None:
        category = self.get_grade_category(category_id)
        category.replace_assignments(assignments)
        self._categories.save(category)

    def list_courses(self) -> List[Course]:
        return self._courses.find_all()

    def get_course(self, course_id: str) -> Course:
        course = self._courses.find_by_id(course_id)
        if course is None:
            raise NotFoundError(f"Course {course_id} not found", details={'course_id': course_id})
        return course

    def save_course(self, course: Course) -> Course:
        return self._courses.save(course)

    def delete_course(self, course_id: str) -> bool:
        if self._courses.find_by_id(course_id) is None:
            return False
        orphaned = self._categories.ids_for_course(course_id)
        self._database.execute_many(
            [self._categories.delete_statement(category_id) for category_id in orphaned]
            + [self._courses.delete_statement(course_id)]
        )
        logger.info("Deleted course %s and %d grade categories", course_id, len(orphaned))
        return True

    def create_grade_category(self, category: GradeCategory) -> GradeCategory:
        self.get_course(category.course_id)
        return self._categories.save(category)

    def delete_grade_category(self, category_id: str) -> bool:
        return self._categories.delete(category_id)


class StoreFactory:
    """Factory for creating grade stores."""

    @staticmethod
    def create_store(store_type: Union[str, StoreType], database_path: str = "studyplan.db",
                     strict_records: bool = False, seed_path: Optional[str] = None) -> GradeStore:
        """Create a store by type, optionally loading seed records into it."""
        try:
            kind = store_type if isinstance(store_type, StoreType) else StoreType(store_type.lower())
        except ValueError:
            raise ConfigurationError(f"Unsupported store type: {store_type}")

        seed = records.load_seed_records(seed_path) if seed_path else None

        if kind == StoreType.MEMORY:
            return InMemoryGradeStore(
                course_records=seed["courses"] if seed else None,
                category_records=seed["grade_categories"] if seed else None,
                strict_records=strict_records,
            )

        store = DatabaseGradeStore(SQLiteDatabase(database_path), strict_records=strict_records)
        if seed:
            for record in seed["courses"]:
                store.save_course(records.course_from_record(record))
            for record in seed["grade_categories"]:
                store.create_grade_category(records.category_from_record(record, strict=True))
        return store
