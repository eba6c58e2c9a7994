import pytest
from fastapi.testclient import TestClient

from studyplan.api import PlannerRestAPI
from studyplan.persistence import InMemoryGradeStore
from studyplan.services import GradeService


@pytest.fixture
def client(memory_store):
    api = PlannerRestAPI(GradeService(memory_store))
    return TestClient(api.app)


@pytest.fixture
def empty_client():
    return TestClient(PlannerRestAPI(GradeService(InMemoryGradeStore())).app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_create_and_fetch_course(empty_client):
    response = empty_client.post("/courses", json={
        "name": "Organic Chemistry", "code": "CHEM231", "credits": 4, "semester": "Fall 2025"
    })
    assert response.status_code == 201
    course = response.json()
    assert course["code"] == "CHEM231"
    assert course["color"] == "#3B82F6"

    fetched = empty_client.get(f"/courses/{course['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["semester"] == "Fall 2025"
    assert [c["id"] for c in empty_client.get("/courses").json()] == [course["id"]]


def test_create_course_rejects_bad_color(empty_client):
    response = empty_client.post("/courses", json={"name": "Art", "code": "ART1", "color": "red"})
    assert response.status_code == 422


def test_unknown_course(client):
    assert client.get("/courses/404").status_code == 404
    assert client.get("/courses/404/grade").status_code == 404
    assert client.delete("/courses/404").status_code == 404
    assert client.put("/courses/404", json={"name": "Ghost"}).status_code == 404


def test_update_course(client):
    response = client.put("/courses/1", json={"name": "Calculus I", "credits": 5})
    assert response.status_code == 200
    body = response.json()
    assert (body["name"], body["credits"], body["code"]) == ("Calculus I", 5, "MATH151")
    assert client.get("/courses/1").json()["name"] == "Calculus I"
    assert client.get("/courses/1/grade").json()["percentage"] == pytest.approx(80.0)


def test_update_course_validation(client):
    assert client.put("/courses/1", json={"credits": -1}).status_code == 422
    assert client.put("/courses/1", json={"color": "red"}).status_code == 422
    assert client.put("/courses/1", json={"name": ""}).status_code == 422
    assert client.get("/courses/1").json()["credits"] == 4


def test_course_grade(client):
    response = client.get("/courses/1/grade")
    assert response.status_code == 200
    body = response.json()
    assert body["percentage"] == pytest.approx(80.0)
    assert body["letter"] == "B-"
    assert body["has_data"] is True


def test_list_categories_for_course(client):
    response = client.get("/grade-categories", params={"course_id": "1"})
    assert response.status_code == 200
    categories = response.json()
    assert [c["category_name"] for c in categories] == ["Homework", "Exams"]
    assert categories[0]["average_percentage"] == pytest.approx(80.0)


def test_create_grade_category(client):
    response = client.post("/grade-categories", json={
        "course_id": "2",
        "category_name": "Exams",
        "weight": 50,
        "assignments": [{"name": "Final", "max_points": 100, "grade": 91}, {"name": "Quiz", "max_points": 10}],
    })
    assert response.status_code == 201
    body = response.json()
    assert [a["id"] for a in body["assignments"]] == ["1", "2"]
    assert body["assignments"][0]["completed"] is True
    assert body["assignments"][1]["grade"] is None
    assert client.get("/courses/2/grade").json()["letter"] == "A-"


def test_create_grade_category_errors(client):
    unknown = client.post("/grade-categories", json={
        "course_id": "404", "category_name": "Exams", "weight": 50})
    assert unknown.status_code == 404

    overscore = client.post("/grade-categories", json={
        "course_id": "1", "category_name": "Quizzes", "weight": 10,
        "assignments": [{"name": "Q1", "max_points": 5, "grade": 6}]})
    assert overscore.status_code == 400


def test_update_assignment_grade(client):
    response = client.put("/grade-categories/10/assignments/2/grade", json={"grade": 10})
    assert response.status_code == 200
    assignment = response.json()["assignments"][1]
    assert assignment["grade"] == 10
    assert assignment["completed"] is True

    grade = client.get("/courses/1/grade").json()
    assert grade["percentage"] == pytest.approx(84.0)


def test_update_assignment_grade_errors(client):
    assert client.put("/grade-categories/99/assignments/1/grade", json={"grade": 5}).status_code == 404
    assert client.put("/grade-categories/10/assignments/99/grade", json={"grade": 5}).status_code == 404
    assert client.put("/grade-categories/10/assignments/2/grade", json={"grade": 11}).status_code == 400
    assert client.put("/grade-categories/10/assignments/2/grade", json={"grade": -1}).status_code == 422


def test_gpa(client):
    body = client.get("/gpa").json()
    assert body["gpa"] == pytest.approx(2.3)
    assert body["has_data"] is True
    assert body["standing"] == "Needs Improvement"

    filtered = client.get("/gpa", params={"course_id": "2"}).json()
    assert filtered["gpa"] == 0.0
    assert filtered["has_data"] is False


def test_grade_summary(client):
    body = client.get("/grades/summary").json()
    assert [entry["course"]["code"] for entry in body["courses"]] == ["MATH151", "BIO210"]
    assert body["highest_percentage"] == pytest.approx(80.0)
    assert body["average_percentage"] == pytest.approx(40.0)


def test_delete_category_and_course(client):
    assert client.delete("/grade-categories/11").status_code == 204
    assert client.get("/grade-categories/11").status_code == 404
    assert client.delete("/grade-categories/11").status_code == 404

    assert client.delete("/courses/1").status_code == 204
    assert client.get("/grade-categories", params={"course_id": "1"}).json() == []


def test_malformed_records_surface_as_server_error(course_records, category_records):
    category_records[0]["course_id_c"] = None
    client = TestClient(PlannerRestAPI(GradeService(InMemoryGradeStore(course_records, category_records))).app)
    assert client.get("/gpa").status_code == 500
