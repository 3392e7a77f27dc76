# /tests/test_rest_api.py

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(platform):
    return TestClient(platform.rest_api.app)


@pytest.fixture
def seeded(client):
    """A professor, a course and one enrolled student, created over HTTP."""
    professor = client.post("/professors", json={
        'name': 'Grace Hopper', 'email': 'grace@uni.edu', 'department': 'CS'}).json()
    course = client.post("/courses", json={
        'professor_id': professor['id'], 'name': 'Compilers', 'code': 'CS401',
        'semester': 'Fall', 'department': 'CS', 'credits': 3}).json()
    student = client.post("/students", json={
        'name': 'Alan Turing', 'email': 'alan@uni.edu', 'roll_number': 'R1', 'department': 'CS'}).json()
    enrolled = client.post("/enrollments", json={'student_id': student['id'], 'code': course['enrollment_code']})
    assert enrolled.status_code == 200
    return {'professor_id': professor['id'], 'course': course, 'student_id': student['id']}


def test_health_and_statistics(client):
    assert client.get("/health").json()['status'] == "healthy"
    stats = client.get("/statistics").json()
    assert stats['success'] is True
    assert stats['statistics']['store']['students'] == 0


def test_duplicate_email_is_409(client, seeded):
    response = client.post("/professors", json={
        'name': 'Copy', 'email': 'GRACE@uni.edu', 'department': 'CS'})

    assert response.status_code == 409
    assert response.json()['detail']['error_code'] == "DUPLICATE_EMAIL"


def test_invalid_code_is_400(client, seeded):
    response = client.post("/enrollments", json={'student_id': seeded['student_id'], 'code': 'WRONG1'})
    assert response.status_code == 400


def test_unknown_student_is_404(client):
    assert client.get("/students/ghost").status_code == 404
    assert client.get("/students/ghost/dashboard").status_code == 404


def test_lecture_feedback_flow(client, seeded):
    course_id = seeded['course']['id']
    student_id = seeded['student_id']
    lecture = client.post(f"/courses/{course_id}/lectures", json={
        'title': 'Parsing', 'date': '2026-09-01T09:00:00Z', 'duration': 60, 'topics': ['ll1', 'lr1']}).json()

    early = client.post(f"/lectures/{lecture['id']}/feedback", json={
        'student_id': student_id, 'understanding_level': 'fully'})
    assert early.status_code == 409

    assert client.post(f"/lectures/{lecture['id']}/transition", json={'status': 'completed'}).status_code == 200
    assert client.post(f"/lectures/{lecture['id']}/transition", json={'status': 'live'}).status_code == 409
    assert len(client.get(f"/students/{student_id}/pending-feedback").json()) == 1

    created = client.post(f"/lectures/{lecture['id']}/feedback", json={
        'student_id': student_id, 'understanding_level': 'need_clarity',
        'topic_ratings': [{'topic': 'lr1', 'rating': 1}]})
    assert created.status_code == 201
    assert created.json()['understanding_level'] == "confused"
    assert client.get(f"/students/{student_id}/pending-feedback").json() == []


def test_grade_flow(client, seeded):
    course_id = seeded['course']['id']
    student_id = seeded['student_id']
    a1 = client.post(f"/courses/{course_id}/assessments", json={
        'name': 'A1', 'type': 'assignment', 'max_marks': 100, 'weight_pct': 40}).json()
    a2 = client.post(f"/courses/{course_id}/assessments", json={
        'name': 'A2', 'type': 'midterm', 'max_marks': 50, 'weight_pct': 60}).json()

    assert client.put(f"/assessments/{a1['id']}/grades/{student_id}", json={'marks_obtained': 80}).status_code == 200
    assert client.put(f"/assessments/{a2['id']}/grades/{student_id}", json={'marks_obtained': 40}).status_code == 200
    assert client.put(f"/assessments/{a2['id']}/grades/{student_id}",
                      json={'marks_obtained': 400}).status_code == 400
    assert client.get(f"/students/{student_id}/grades").json() == []

    client.post(f"/assessments/{a1['id']}/publish")
    client.post(f"/assessments/{a2['id']}/publish")

    grade = client.get(f"/students/{student_id}/courses/{course_id}/grade").json()
    assert grade['grade_pct'] == pytest.approx(80.0)
    assert grade['letter'] == "B-"
    assert client.get(f"/students/{student_id}/gpa").json() == {'gpa': 2.7, 'has_data': True}
    assert len(client.get(f"/users/{student_id}/notifications").json()) == 2


def test_roster_and_insights(client, seeded):
    course_id = seeded['course']['id']
    response = client.post(f"/courses/{course_id}/roster", json={'records': [
        {'name': 'Roster Kid', 'email': 'kid@uni.edu', 'rollno': 'R77'},
        {'name': 'Z', 'email': 'bad'},
    ]})

    assert response.status_code == 200
    assert len(response.json()['created']) == 1
    assert len(response.json()['errors']) == 1
    assert len(client.get(f"/courses/{course_id}/students").json()) == 2

    insights = client.get(f"/courses/{course_id}/insights")
    assert insights.status_code == 200
    assert insights.json()['source'] == "local"
    assert client.get("/courses/ghost/insights").status_code == 404


def test_overview(client, seeded):
    overview = client.get(f"/courses/{seeded['course']['id']}/overview").json()
    assert overview['enrolled_students'] == 1


def test_course_metrics(client, seeded):
    course_id = seeded['course']['id']

    assert client.get(f"/courses/{course_id}/engagement").json() == {'engagement': 0.0}
    assert client.get(f"/courses/{course_id}/health").json() == {'health': 40.0}
    assert client.get("/courses/ghost/engagement").status_code == 404
    assert client.get("/courses/ghost/health").status_code == 404
