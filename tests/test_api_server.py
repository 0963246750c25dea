"""
Tests for the review API
"""
import pytest
from fastapi.testclient import TestClient

from proctor_quiz.server.api_server import create_api_app


@pytest.fixture
def submitted(manager, stored_quiz, signal_source, ticker):
    session = manager.open_session("geo-1", signal_source, ticker)
    session.initialize()
    session.set_answer("q1", "paris")
    ticker.advance(42)
    session.submit()
    return session


@pytest.fixture
def client(manager):
    return TestClient(create_api_app(manager))


class TestQuizEndpoints:
    def test_list_quizzes(self, client, stored_quiz):
        response = client.get("/quizzes")
        assert response.status_code == 200
        body = response.json()
        assert len(body) == 1
        assert body[0]["id"] == "geo-1"
        assert body[0]["question_count"] == 2
        assert body[0]["total_points"] == 3
        assert body[0]["time_limit_minutes"] == 1

    def test_list_quizzes_empty(self, client):
        assert client.get("/quizzes").json() == []


class TestAttemptEndpoints:
    def test_quiz_attempts(self, client, submitted):
        response = client.get("/quizzes/geo-1/attempts")
        assert response.status_code == 200
        (attempt,) = response.json()
        assert attempt["student_id"] == "student-1"
        assert attempt["score"] == 2
        assert attempt["percentage"] == 67
        assert attempt["time_taken"] == 42

    def test_unknown_quiz_attempts(self, client):
        assert client.get("/quizzes/missing/attempts").status_code == 404

    def test_student_attempts(self, client, submitted):
        body = client.get("/students/student-1/attempts").json()
        assert [attempt["quiz_id"] for attempt in body] == ["geo-1"]
        assert client.get("/students/nobody/attempts").json() == []


class TestReviewEndpoints:
    def test_review(self, client, submitted):
        response = client.get("/quizzes/geo-1/review/student-1")
        assert response.status_code == 200
        body = response.json()
        assert body["score"] == 2
        assert body["total_points"] == 3
        assert body["correct_count"] == 1
        assert body["performance_message"] == "Not bad! Room for improvement."
        first, second = body["questions"]
        assert first["given_answer"] == "paris"
        assert first["is_correct"] is True
        assert second["given_answer"] is None
        assert second["points_awarded"] == 0

    def test_review_page(self, client, submitted):
        response = client.get("/quizzes/geo-1/review/student-1/page")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Geography" in response.text
        assert "mathjax" in response.text.lower()

    def test_review_without_attempt(self, client, stored_quiz):
        assert client.get("/quizzes/geo-1/review/nobody").status_code == 404

    def test_review_unknown_quiz(self, client):
        assert client.get("/quizzes/missing/review/student-1").status_code == 404
