"""
Seed a running Studyplan server with sample courses and grades.

Usage:
    python add_data.py [--base-url http://127.0.0.1:8000]

The base URL defaults to ``STUDYPLAN_BASE_URL`` or http://127.0.0.1:8000.
"""

import argparse
import os
import sys

import requests

DEFAULT_BASE_URL = "http://127.0.0.1:8000"


class PlannerClient:
    """Thin wrapper over the REST API; failed calls print and return None."""

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def _call(self, method, path, expected, action, **kwargs):
        try:
            response = self.session.request(method, f"{self.base_url}{path}",
                                            timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            print(f"[FAIL] Error {action}: {e}")
            return None
        if response.status_code != expected:
            print(f"[FAIL] Failed {action}: {response.status_code} {response.text}")
            return None
        return response.json()

    def is_up(self) -> bool:
        return self._call("GET", "/health", 200, "reaching server") is not None

    def create_course(self, name, code, instructor, credits, color, semester):
        course = self._call("POST", "/courses", 201, f"creating course {code}", json={
            "name": name,
            "code": code,
            "instructor": instructor,
            "credits": credits,
            "color": color,
            "semester": semester,
        })
        if course:
            print(f"[OK] Course {code} - {name}")
        return course

    def create_grade_category(self, course_id, category_name, weight, assignments):
        category = self._call("POST", "/grade-categories", 201, f"creating category {category_name}", json={
            "course_id": course_id,
            "category_name": category_name,
            "weight": weight,
            "assignments": assignments,
        })
        if category:
            print(f"[OK] Category {category_name} ({weight}%)")
        return category

    def grade_assignment(self, category_id, assignment_id, grade):
        path = f"/grade-categories/{category_id}/assignments/{assignment_id}/grade"
        category = self._call("PUT", path, 200, f"grading assignment {assignment_id}", json={"grade": grade})
        if category:
            print(f"[OK] Graded assignment {assignment_id}: {grade}")
        return category

    def summary(self):
        return self._call("GET", "/grades/summary", 200, "fetching summary")


def print_summary(summary):
    print(f"\n{'='*60}")
    print(f"Courses ({len(summary['courses'])})")
    print(f"{'='*60}")
    for entry in summary["courses"]:
        course, grade = entry["course"], entry["grade"]
        print(f"  {course['code']:10} | {course['name']:25} | {grade['percentage']:6.1f}% | {grade['letter']}")
    gpa = summary["gpa"]
    print(f"\nGPA: {gpa['gpa']:.2f} ({gpa['standing']})")


def main():
    parser = argparse.ArgumentParser(description="Add sample data to a Studyplan server")
    parser.add_argument("--base-url", default=os.environ.get("STUDYPLAN_BASE_URL", DEFAULT_BASE_URL))
    args = parser.parse_args()

    client = PlannerClient(args.base_url)
    if not client.is_up():
        print(f"Server is not reachable at {client.base_url}. Start it with:")
        print("  studyplan --port 8000")
        sys.exit(1)

    print("Creating courses...")
    calculus = client.create_course("Calculus I", "MATH151", "Dr. Okafor", 4, "#6366F1", "Spring 2025")
    biology = client.create_course("Cell Biology", "BIO210", "Dr. Lindqvist", 3, "#10B981", "Spring 2025")
    history = client.create_course("Modern History", "HIST120", "Prof. Haddad", 3, "#F97316", "Spring 2025")

    print("\nCreating grade categories...")
    if calculus:
        homework = client.create_grade_category(calculus["id"], "Homework", 30, [
            {"name": "Limits", "max_points": 20, "grade": 19},
            {"name": "Derivatives", "max_points": 20, "grade": 17},
            {"name": "Integrals", "max_points": 20},
        ])
        client.create_grade_category(calculus["id"], "Exams", 70, [
            {"name": "Midterm", "max_points": 100, "grade": 88},
        ])
        if homework:
            pending = [a for a in homework["assignments"] if a["grade"] is None]
            if pending:
                client.grade_assignment(homework["id"], pending[0]["id"], 18)

    if biology:
        client.create_grade_category(biology["id"], "Labs", 40, [
            {"name": "Microscopy", "max_points": 25, "grade": 23},
        ])
        client.create_grade_category(biology["id"], "Exams", 60, [
            {"name": "Midterm", "max_points": 100, "grade": 79},
        ])

    if history:
        client.create_grade_category(history["id"], "Essays", 100, [
            {"name": "Industrial Revolution", "max_points": 100},
        ])

    summary = client.summary()
    if summary:
        print_summary(summary)
    print(f"\nAPI documentation: {client.base_url}/docs")


if __name__ == "__main__":
    main()
