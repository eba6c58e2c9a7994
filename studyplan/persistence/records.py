"""
Mapping between backend records and canonical entities.

The hosted backend names fields with a ``_c`` suffix (``course_id_c``,
``category_name_c``, ``weight_c``), wraps lookups as ``{"Id": ..., "Name":
...}`` and stores a category's assignments as a JSON string in
``assignments_c``. Older payloads use camelCase keys instead. This module is
the only place that knows about either shape; everything past it works with
``Course``, ``GradeCategory`` and ``AssignmentRecord``.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ..core.entities import AssignmentRecord, Course, GradeCategory
from ..core.enums import DEFAULT_COURSE_COLOR
from ..core.exceptions import MalformedDataError, ValidationError

logger = logging.getLogger(__name__)

_MISSING = object()


def _pick(record: Dict[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    """First present, non-None value among ``keys``."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    if default is _MISSING:
        raise MalformedDataError(f"Record is missing field {keys[0]}", details={'keys': list(keys)})
    return default


def record_id(record: Dict[str, Any]) -> str:
    return str(_pick(record, "Id", "id"))


def _lookup_id(value: Any) -> str:
    """Lookup fields arrive either as a bare id or as {"Id": ..., "Name": ...}."""
    if isinstance(value, dict):
        value = value.get("Id")
    if value is None or value == "":
        raise MalformedDataError("Lookup field has no Id")
    return str(value)


def record_course_id(record: Dict[str, Any]) -> Optional[str]:
    """The course a category record points at, or None when it cannot be read."""
    try:
        return _lookup_id(_pick(record, "course_id_c", "courseId", "course_id"))
    except MalformedDataError:
        return None


def _as_float(value: Any, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise MalformedDataError(f"Field {field_name} is not a number: {value!r}") from e


def _as_int(value: Any, field_name: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError) as e:
        raise MalformedDataError(f"Field {field_name} is not an integer: {value!r}") from e


# Assignments

def assignment_from_record(record: Dict[str, Any]) -> AssignmentRecord:
    if not isinstance(record, dict):
        raise MalformedDataError(f"Assignment entry is not an object: {record!r}")
    grade = _pick(record, "grade", default=None)
    try:
        return AssignmentRecord(
            assignment_id=record_id(record),
            name=str(_pick(record, "name", "Name", "title", default="")),
            max_points=_as_float(_pick(record, "maxPoints", "max_points"), "maxPoints"),
            grade=None if grade is None else _as_float(grade, "grade"),
            completed=bool(_pick(record, "completed", default=False)),
        )
    except ValidationError as e:
        raise MalformedDataError(f"Invalid assignment entry: {e.message}") from e


def assignment_to_record(assignment: AssignmentRecord) -> Dict[str, Any]:
    return {
        "Id": assignment.assignment_id,
        "name": assignment.name,
        "maxPoints": assignment.max_points,
        "grade": assignment.grade,
        "completed": assignment.completed,
    }


def decode_assignments(raw: Any) -> List[AssignmentRecord]:
    """Decode an ``assignments_c`` value; an empty value means no assignments."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as e:
            raise MalformedDataError(f"Assignment list is not valid JSON: {e}") from e
    if not isinstance(raw, list):
        raise MalformedDataError(f"Assignment list must be an array, got {type(raw).__name__}")
    return [assignment_from_record(item) for item in raw]


def encode_assignments(assignments: List[AssignmentRecord]) -> str:
    return json.dumps([assignment_to_record(a) for a in assignments])


# Grade categories

def category_from_record(record: Dict[str, Any], strict: bool = False) -> GradeCategory:
    """Build a GradeCategory from a backend record.

    An unreadable assignment list is logged and treated as empty unless
    ``strict`` is set, in which case the MalformedDataError propagates.
    """
    category_id = record_id(record)
    raw_assignments = _pick(record, "assignments_c", "assignments", default=None)
    try:
        assignments = decode_assignments(raw_assignments)
    except MalformedDataError as e:
        if strict:
            raise
        logger.warning("Discarding assignments of grade category %s: %s", category_id, e.message)
        assignments = []

    try:
        return GradeCategory(
            course_id=_lookup_id(_pick(record, "course_id_c", "courseId", "course_id")),
            category_name=str(_pick(record, "category_name_c", "categoryName", "category_name", "Name",
                                    default="")),
            weight=_as_float(_pick(record, "weight_c", "weight", default=0), "weight_c"),
            assignments=assignments,
            entity_id=category_id,
        )
    except ValidationError as e:
        raise MalformedDataError(f"Invalid grade category {category_id}: {e.message}") from e


def category_to_record(category: GradeCategory) -> Dict[str, Any]:
    return {
        "Id": category.id,
        "Name": category.category_name or "Grade Category",
        "course_id_c": category.course_id,
        "category_name_c": category.category_name,
        "weight_c": category.weight,
        "assignments_c": encode_assignments(category.assignments),
    }


# Courses

def course_from_record(record: Dict[str, Any]) -> Course:
    course_id = record_id(record)
    try:
        return Course(
            name=str(_pick(record, "name_c", "name", "Name", default="")),
            code=str(_pick(record, "code_c", "code", default="")),
            instructor=str(_pick(record, "instructor_c", "instructor", default="")),
            credits=_as_int(_pick(record, "credits_c", "credits", default=0), "credits_c"),
            color=str(_pick(record, "color_c", "color", default=DEFAULT_COURSE_COLOR)),
            schedule=str(_pick(record, "schedule_c", "schedule", default="")),
            semester=str(_pick(record, "semester_c", "semester", default="")),
            description=str(_pick(record, "description_c", "description", default="")),
            entity_id=course_id,
        )
    except ValidationError as e:
        raise MalformedDataError(f"Invalid course {course_id}: {e.message}") from e


def course_to_record(course: Course) -> Dict[str, Any]:
    return {
        "Id": course.id,
        "Name": course.name,
        "name_c": course.name,
        "code_c": course.code,
        "instructor_c": course.instructor,
        "schedule_c": course.schedule,
        "credits_c": course.credits,
        "color_c": course.color,
        "semester_c": course.semester,
        "description_c": course.description,
    }


def load_seed_records(path: str) -> Dict[str, List[Dict[str, Any]]]:
    """Read a JSON seed file holding ``courses`` and ``grade_categories`` lists."""
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except ValueError as e:
        raise MalformedDataError(f"Seed file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedDataError(f"Seed file {path} must hold an object")
    return {
        "courses": list(data.get("courses", [])),
        "grade_categories": list(data.get("grade_categories", [])),
    }
