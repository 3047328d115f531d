import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from models import db
from models.questions import Question
from models.quiz_attempts import QuizAttempt
from models.quizzes import Quiz


@pytest.fixture
def app():
    app = create_app("testing")
    app.config["ADMIN_PASSWORD_HASH"] = generate_password_hash("admin-pass", method="pbkdf2:sha256")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_token(client):
    response = client.post("/api/auth/admin/login", json={"user_id": "admin", "password": "admin-pass"})
    assert response.status_code == 200
    return response.get_json()["token"]


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def make_quiz(app):
    def _make_quiz(correct_options=("A", "B"), title="Sample quiz", marks_per_question=5,
                   total_time_minutes=10, status="published", attempts_closed=False, **fields):
        quiz = Quiz(
            title=title,
            marks_per_question=marks_per_question,
            total_time_minutes=total_time_minutes,
            status=status,
            attempts_closed=attempts_closed,
            **fields,
        )
        for index, correct in enumerate(correct_options):
            quiz.questions.append(Question(
                question_text=f"Question {index + 1}",
                option_a="first",
                option_b="second",
                option_c="third",
                option_d="fourth",
                correct_option=correct,
                question_order=index,
            ))
        db.session.add(quiz)
        db.session.commit()
        return quiz

    return _make_quiz


@pytest.fixture
def add_attempt(app):
    def _add_attempt(quiz, user_name, score, time_taken_seconds=None, **fields):
        attempt = QuizAttempt(
            quiz_id=quiz.id,
            user_name=user_name,
            score=score,
            total_marks=quiz.marks_per_question * len(quiz.questions),
            correct_count=score // quiz.marks_per_question,
            wrong_count=0,
            time_taken_seconds=time_taken_seconds,
            **fields,
        )
        db.session.add(attempt)
        db.session.commit()
        return attempt

    return _add_attempt


def answer_key(quiz, *letters):
    """Build an answers object keyed by question id, None entries are left out."""
    return {
        str(question.id): letter
        for question, letter in zip(quiz.questions, letters)
        if letter is not None
    }
