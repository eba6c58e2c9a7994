import pytest

from studyplan.core.entities import AssignmentRecord, Course, GradeCategory
from studyplan.persistence import DatabaseGradeStore, InMemoryGradeStore, SQLiteDatabase
from studyplan.services import GradeService


def make_assignment(assignment_id, max_points, grade=None, name=None):
    return AssignmentRecord(
        assignment_id=str(assignment_id),
        name=name or f"Assignment {assignment_id}",
        max_points=max_points,
        grade=grade,
    )


def make_category(course_id, name, weight, scores, category_id=None):
    """``scores`` is a list of (max_points, grade_or_None) pairs."""
    assignments = [make_assignment(i, max_points, grade)
                   for i, (max_points, grade) in enumerate(scores, start=1)]
    kwargs = {"entity_id": category_id} if category_id else {}
    return GradeCategory(course_id=course_id, category_name=name, weight=weight,
                         assignments=assignments, **kwargs)


@pytest.fixture
def homework_and_exam():
    """Homework 40% (8/10, 9/10) and Exam 60% (85/100): 85.0% overall."""
    return [
        make_category("c1", "Homework", 40, [(10, 8), (10, 9)], category_id="hw"),
        make_category("c1", "Exam", 60, [(100, 85)], category_id="exam"),
    ]


@pytest.fixture
def course_records():
    return [
        {"Id": 1, "Name": "Calculus", "name_c": "Calculus", "code_c": "MATH151",
         "instructor_c": "Dr. Okafor", "credits_c": 4, "color_c": "#6366F1"},
        {"Id": 2, "Name": "Biology", "name_c": "Biology", "code_c": "BIO210",
         "instructor_c": "Dr. Lindqvist", "credits_c": 3, "color_c": "#10B981"},
    ]


@pytest.fixture
def category_records():
    return [
        {"Id": 10, "Name": "Homework", "course_id_c": {"Id": 1, "Name": "Calculus"},
         "category_name_c": "Homework", "weight_c": 40,
         "assignments_c": '[{"Id": 1, "name": "PS1", "maxPoints": 10, "grade": 8, "completed": true},'
                          ' {"Id": 2, "name": "PS2", "maxPoints": 10, "grade": null, "completed": false}]'},
        {"Id": 11, "Name": "Exams", "course_id_c": 1, "category_name_c": "Exams", "weight_c": 60,
         "assignments_c": '[{"Id": 1, "name": "Midterm", "maxPoints": 100, "grade": 80, "completed": true}]'},
        {"Id": 20, "Name": "Labs", "course_id_c": 2, "category_name_c": "Labs", "weight_c": 100,
         "assignments_c": '[{"Id": 1, "name": "Lab 1", "maxPoints": 20, "grade": null}]'},
    ]


@pytest.fixture
def memory_store(course_records, category_records):
    return InMemoryGradeStore(course_records=course_records, category_records=category_records)


@pytest.fixture
def sqlite_store(tmp_path):
    return DatabaseGradeStore(SQLiteDatabase(str(tmp_path / "studyplan.db")))


@pytest.fixture
def grade_service(memory_store):
    return GradeService(memory_store)


@pytest.fixture
def sample_course():
    return Course(name="Linear Algebra", code="MATH221", instructor="Dr. Chen", credits=4)
