import datetime

import jwt

from config import TestConfig
from models import db
from models.questions import Question
from models.quiz_attempts import QuizAttempt
from models.quiz_attempts_answers import QuizAttemptAnswer
from models.quizzes import Quiz
from tests.conftest import answer_key


def question_payload(text="What is 2 + 2?", correct="B", **extra):
    return {
        "question_text": text,
        "option_a": "3",
        "option_b": "4",
        "option_c": "5",
        "option_d": "22",
        "correct_option": correct,
        **extra,
    }


def quiz_payload(**overrides):
    payload = {
        "title": "Class 9 Maths",
        "marks_per_question": 4,
        "total_time_minutes": 20,
        "class_level": "9",
        "test_type": "topic_wise",
        "subject": "maths",
        "questions": [question_payload(), question_payload("What is 3 x 3?", "D")],
    }
    payload.update(overrides)
    return payload


# Authentication
# --------------------------------------------------------------------------------
def test_login_rejects_bad_credentials(client):
    response = client.post("/api/auth/admin/login", json={"user_id": "admin", "password": "wrong"})

    assert response.status_code == 401
    assert response.get_json()["success"] is False


def test_login_is_disabled_without_a_configured_hash(app, client):
    assert TestConfig.ADMIN_PASSWORD_HASH is None
    app.config["ADMIN_PASSWORD_HASH"] = None

    response = client.post("/api/auth/admin/login", json={"user_id": "admin", "password": "admin-pass"})

    assert response.status_code == 500
    assert response.get_json()["success"] is False


def test_login_sets_cookie_and_token_verifies(client, admin_token):
    response = client.post("/api/auth/admin/verify", json={"token": admin_token})

    assert response.status_code == 200
    assert response.get_json()["valid"] is True


def test_verify_rejects_base64_style_tokens(client):
    response = client.post("/api/auth/admin/verify", json={"token": "YWRtaW46MTIzOmFiYw=="})

    assert response.status_code == 401
    assert response.get_json() == {"valid": False}


def test_admin_routes_require_a_token(client):
    assert client.get("/api/admin/quizzes").status_code == 401
    assert client.get("/api/admin/quizzes", headers={"x-admin-token": "garbage"}).status_code == 401


def test_admin_routes_reject_forged_and_expired_tokens(app, client):
    forged = jwt.encode({"sub": "admin", "role": "admin"}, "some-other-secret", algorithm="HS256")
    expired = jwt.encode(
        {"sub": "admin", "role": "admin",
         "exp": datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=1)},
        app.config["SECRET_KEY"], algorithm="HS256",
    )
    not_admin = jwt.encode({"sub": "student", "role": "student"}, app.config["SECRET_KEY"], algorithm="HS256")

    for token in (forged, expired, not_admin):
        response = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


def test_admin_header_token_is_accepted(client, admin_token):
    response = client.get("/api/admin/stats", headers={"x-admin-token": admin_token})

    assert response.status_code == 200


def test_logout_clears_cookie(client):
    response = client.post("/api/auth/admin/logout")

    assert response.status_code == 200
    assert "access_token=;" in response.headers["Set-Cookie"]


# Authoring and publish-gating
# --------------------------------------------------------------------------------
def test_create_draft_quiz(client, admin_headers):
    response = client.post("/api/admin/quizzes/new", json=quiz_payload(status="draft"), headers=admin_headers)

    assert response.status_code == 201
    quiz = response.get_json()["quiz"]
    assert quiz["status"] == "draft"
    assert quiz["subject"] == "maths"
    assert [q["question_order"] for q in quiz["questions"]] == [0, 1]
    assert quiz["questions"][1]["correct_option"] == "D"


def test_create_published_quiz_requires_every_answer(client, admin_headers):
    payload = quiz_payload(status="published", questions=[question_payload(), question_payload(correct=None)])

    response = client.post("/api/admin/quizzes/new", json=payload, headers=admin_headers)

    assert response.status_code == 400
    assert "correct answers" in response.get_json()["error"]
    assert Quiz.query.count() == 0


def test_create_validates_fields(client, admin_headers):
    bad_payloads = [
        quiz_payload(title=""),
        quiz_payload(marks_per_question=0),
        quiz_payload(class_level="12"),
        quiz_payload(questions=[question_payload(correct="E")]),
        quiz_payload(questions=[{"question_text": "Missing options"}]),
    ]
    for payload in bad_payloads:
        response = client.post("/api/admin/quizzes/new", json=payload, headers=admin_headers)
        assert response.status_code == 400, payload


def test_subject_is_dropped_for_non_topic_tests(client, admin_headers):
    response = client.post(
        "/api/admin/quizzes/new", json=quiz_payload(test_type="full_test"), headers=admin_headers
    )

    assert response.get_json()["quiz"]["subject"] is None


def test_question_text_is_cleaned(client, admin_headers):
    payload = quiz_payload(questions=[question_payload("Find  the\nvalue of $x  +  1$\n when x = 2")])

    quiz = client.post("/api/admin/quizzes/new", json=payload, headers=admin_headers).get_json()["quiz"]

    assert quiz["questions"][0]["question_text"] == "Find the value of $x  +  1$ when x = 2"


def test_publish_toggle_applies_gating(client, admin_headers, make_quiz):
    quiz = make_quiz(correct_options=("A", None), status="draft")

    response = client.put(f"/api/admin/quizzes/{quiz.id}/status", json={"status": "published"}, headers=admin_headers)
    assert response.status_code == 400
    assert db.session.get(Quiz, quiz.id).status == "draft"

    ready = make_quiz(correct_options=("A", "C"), status="draft")
    response = client.put(f"/api/admin/quizzes/{ready.id}/status", json={"status": "published"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["quiz"]["status"] == "published"

    response = client.put(f"/api/admin/quizzes/{ready.id}/status", json={"status": "draft"}, headers=admin_headers)
    assert response.get_json()["quiz"]["status"] == "draft"


def test_empty_quiz_cannot_be_published(client, admin_headers, make_quiz):
    quiz = make_quiz(correct_options=(), status="draft")

    response = client.put(f"/api/admin/quizzes/{quiz.id}/status", json={"status": "published"}, headers=admin_headers)

    assert response.status_code == 400


def test_update_keeps_existing_questions_and_past_answers(client, admin_headers, make_quiz):
    quiz = make_quiz(correct_options=("A", "B"))
    first, second = quiz.questions
    data = client.post(
        "/api/student/quiz/submit",
        json={"quiz_id": quiz.id, "user_name": "Asha", "answers": answer_key(quiz, "A", "B")},
    ).get_json()

    payload = {
        "title": "Renamed",
        "questions": [
            {**question_payload("Second, edited", "C"), "id": second.id},
            {**question_payload("First, edited", "A"), "id": first.id},
            question_payload("Brand new", "D"),
        ],
    }
    response = client.put(f"/api/admin/quizzes/{quiz.id}/edit", json=payload, headers=admin_headers)

    assert response.status_code == 200
    updated = response.get_json()["quiz"]
    assert updated["title"] == "Renamed"
    assert [q["question_text"] for q in updated["questions"]] == ["Second, edited", "First, edited", "Brand new"]
    assert [q["id"] for q in updated["questions"]][:2] == [second.id, first.id]

    # Past attempt keeps its grade and answers
    attempt = db.session.get(QuizAttempt, data["attempt_id"])
    assert attempt.score == 10
    assert QuizAttemptAnswer.query.filter_by(attempt_id=attempt.id).count() == 2


def test_update_removes_omitted_questions(client, admin_headers, make_quiz):
    quiz = make_quiz(correct_options=("A", "B"), status="draft")
    keep = quiz.questions[0]

    response = client.put(
        f"/api/admin/quizzes/{quiz.id}/edit",
        json={"questions": [{**question_payload(), "id": keep.id}]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert Question.query.filter_by(quiz_id=quiz.id).count() == 1


def test_update_rejects_publishing_with_missing_answers(client, admin_headers, make_quiz):
    quiz = make_quiz(correct_options=("A", "B"), status="draft")

    response = client.put(
        f"/api/admin/quizzes/{quiz.id}/edit",
        json={"status": "published", "title": "Changed", "questions": [question_payload(correct=None)]},
        headers=admin_headers,
    )

    assert response.status_code == 400
    reloaded = db.session.get(Quiz, quiz.id)
    assert reloaded.status == "draft"
    assert reloaded.title == "Sample quiz"
    assert Question.query.filter_by(quiz_id=quiz.id).count() == 2


def test_update_rejects_foreign_question_ids(client, admin_headers, make_quiz):
    quiz = make_quiz(status="draft")
    other = make_quiz(title="Other", status="draft")

    response = client.put(
        f"/api/admin/quizzes/{quiz.id}/edit",
        json={"questions": [{**question_payload(), "id": other.questions[0].id}]},
        headers=admin_headers,
    )

    assert response.status_code == 400


def test_attempts_closed_toggle(client, admin_headers, make_quiz):
    quiz = make_quiz()

    response = client.put(
        f"/api/admin/quizzes/{quiz.id}/attempts-closed", json={"attempts_closed": True}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.get_json()["quiz"]["attempts_closed"] is True

    submit = client.post(
        "/api/student/quiz/submit", json={"quiz_id": quiz.id, "user_name": "Late", "answers": {}}
    )
    assert submit.status_code == 403


def test_delete_quiz_removes_everything(client, admin_headers, make_quiz):
    quiz = make_quiz()
    client.post("/api/student/quiz/submit", json={"quiz_id": quiz.id, "user_name": "Asha", "answers": {}})
    quiz_id = quiz.id

    response = client.delete(f"/api/admin/quizzes/{quiz_id}/delete", headers=admin_headers)

    assert response.status_code == 200
    assert db.session.get(Quiz, quiz_id) is None
    assert Question.query.count() == 0
    assert QuizAttempt.query.count() == 0
    assert QuizAttemptAnswer.query.count() == 0


def test_unknown_quiz_is_404(client, admin_headers):
    assert client.get("/api/admin/quizzes/404", headers=admin_headers).status_code == 404
    assert client.delete("/api/admin/quizzes/404/delete", headers=admin_headers).status_code == 404


# Review and dashboard
# --------------------------------------------------------------------------------
def test_list_quizzes_has_counts(client, admin_headers, make_quiz):
    quiz = make_quiz(correct_options=("A", "B", "C"))
    make_quiz(title="Empty draft", correct_options=(), status="draft")
    client.post("/api/student/quiz/submit", json={"quiz_id": quiz.id, "user_name": "Asha", "answers": {}})

    quizzes = client.get("/api/admin/quizzes", headers=admin_headers).get_json()["quizzes"]

    by_title = {q["title"]: q for q in quizzes}
    assert by_title["Sample quiz"]["question_count"] == 3
    assert by_title["Sample quiz"]["attempt_count"] == 1
    assert by_title["Empty draft"]["question_count"] == 0


def test_attempts_are_ranked(client, admin_headers, make_quiz, add_attempt):
    quiz = make_quiz()
    add_attempt(quiz, "Second", 5, time_taken_seconds=10)
    add_attempt(quiz, "First", 10, time_taken_seconds=50)

    attempts = client.get(f"/api/admin/quizzes/{quiz.id}/attempts", headers=admin_headers).get_json()["attempts"]

    assert [(a["user_name"], a["rank"]) for a in attempts] == [("First", 1), ("Second", 2)]


def test_attempt_detail_joins_questions(client, admin_headers, make_quiz):
    quiz = make_quiz(correct_options=("A", "B"))
    data = client.post(
        "/api/student/quiz/submit",
        json={"quiz_id": quiz.id, "user_name": "Asha", "answers": answer_key(quiz, "A", "D")},
    ).get_json()

    detail = client.get(f"/api/admin/attempts/{data['attempt_id']}", headers=admin_headers).get_json()

    assert detail["attempt"]["user_name"] == "Asha"
    assert [a["selected_option"] for a in detail["answers"]] == ["A", "D"]
    assert [a["is_correct"] for a in detail["answers"]] == [True, False]
    assert detail["answers"][1]["question"]["correct_option"] == "B"
    assert client.get("/api/admin/attempts/999", headers=admin_headers).status_code == 404


def test_stats_counts(client, admin_headers, make_quiz):
    quiz = make_quiz()
    make_quiz(status="draft")
    client.post("/api/student/quiz/submit", json={"quiz_id": quiz.id, "user_name": "Asha", "answers": {}})

    stats = client.get("/api/admin/stats", headers=admin_headers).get_json()

    assert stats == {"quiz_count": 2, "published_count": 1, "attempt_count": 1, "student_count": 0}
