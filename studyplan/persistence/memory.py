"""
In-memory grade store.

Keeps backend-shaped records in dictionaries and decodes them on every read,
so entities handed out to callers never alias stored state. Used for demo
mode and tests.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from ..core.entities import AssignmentRecord, Course, GradeCategory
from ..core.exceptions import NotFoundError
from ..core.interfaces import GradeStore
from . import records

logger = logging.getLogger(__name__)


class InMemoryGradeStore(GradeStore):
    """GradeStore backed by process memory."""

    def __init__(self, course_records: Optional[Iterable[Dict[str, Any]]] = None,
                 category_records: Optional[Iterable[Dict[str, Any]]] = None,
                 strict_records: bool = False):
        self._courses: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._categories: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._strict_records = strict_records
        self._lock = threading.RLock()

        for record in course_records or []:
            self._courses[records.record_id(record)] = dict(record)
        for record in category_records or []:
            self._categories[records.record_id(record)] = dict(record)

    def list_grade_categories(self, course_id: Optional[str] = None) -> List[GradeCategory]:
        with self._lock:
            if course_id is None:
                selected = list(self._categories.values())
            else:
                selected = [r for r in self._categories.values()
                            if records.record_course_id(r) == str(course_id)]
            return [self._decode_category(r) for r in selected]

    def get_grade_category(self, category_id: str) -> GradeCategory:
        with self._lock:
            record = self._categories.get(str(category_id))
            if record is None:
                raise NotFoundError(f"Grade category {category_id} not found",
                                    details={'category_id': category_id})
            return self._decode_category(record)

    def save_grade_category_assignments(self, category_id: str,
                                        assignments: List[AssignmentRecord]) -> None:
        with self._lock:
            record = self._categories.get(str(category_id))
            if record is None:
                raise NotFoundError(f"Grade category {category_id} not found",
                                    details={'category_id': category_id})
            record["assignments_c"] = records.encode_assignments(assignments)

    def list_courses(self) -> List[Course]:
        with self._lock:
            return [records.course_from_record(r) for r in self._courses.values()]

    def get_course(self, course_id: str) -> Course:
        with self._lock:
            record = self._courses.get(str(course_id))
            if record is None:
                raise NotFoundError(f"Course {course_id} not found", details={'course_id': course_id})
            return records.course_from_record(record)

    def save_course(self, course: Course) -> Course:
        with self._lock:
            self._courses[course.id] = records.course_to_record(course)
        return course

    def delete_course(self, course_id: str) -> bool:
        with self._lock:
            if self._courses.pop(str(course_id), None) is None:
                return False
            orphaned = [category_id for category_id, record in self._categories.items()
                        if records.record_course_id(record) == str(course_id)]
            for category_id in orphaned:
                del self._categories[category_id]
            logger.info("Deleted course %s and %d grade categories", course_id, len(orphaned))
            return True

    def create_grade_category(self, category: GradeCategory) -> GradeCategory:
        with self._lock:
            if category.course_id not in self._courses:
                raise NotFoundError(f"Course {category.course_id} not found",
                                    details={'course_id': category.course_id})
            self._categories[category.id] = records.category_to_record(category)
        return category

    def delete_grade_category(self, category_id: str) -> bool:
        with self._lock:
            return self._categories.pop(str(category_id), None) is not None

    def _decode_category(self, record: Dict[str, Any]) -> GradeCategory:
        return records.category_from_record(record, strict=self._strict_records)
