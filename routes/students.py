from flask import Blueprint, jsonify, request, current_app
from sqlalchemy import func

from classes.exceptions import InvalidInput
from classes.notification_manager import NotificationManager
from classes.student_manager import StudentManager
from classes.submission_manager import (
    SubmissionManager,
    build_leaderboard,
    get_published_quiz,
    get_question_set,
)
from classes.validators import validate_int
from models import db
from models.questions import Question
from models.quizzes import Quiz

# Students' blueprint, public quiz taking
student_bp = Blueprint("student", __name__)


#                                                         QUIZZES
#_____________________________________________________________________________________________________________
#Browse published quizzes
@student_bp.route("/quizzes", methods=["GET"])
def get_published_quizzes():
    query = Quiz.query.filter_by(status="published")

    for field in ("class_level", "test_type", "subject"):
        value = request.args.get(field)
        if value:
            query = query.filter(getattr(Quiz, field) == value)

    search = request.args.get("search", "").strip()
    if search:
        query = query.filter(func.lower(Quiz.title).contains(search.lower(), autoescape=True))

    quizzes = query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()

    question_counts = dict(
        db.session.query(Question.quiz_id, func.count(Question.id))
        .filter(Question.quiz_id.in_([q.id for q in quizzes]))
        .group_by(Question.quiz_id)
        .all()
    ) if quizzes else {}

    return jsonify({
        "quizzes": [
            {**quiz.to_dict(), "question_count": question_counts.get(quiz.id, 0)}
            for quiz in quizzes
        ]
    }), 200


#Fetch quiz details for the attempt page, correct options stay hidden
@student_bp.route("/quiz/<int:quiz_id>/details", methods=["GET"])
def get_quiz_details(quiz_id):
    quiz = get_published_quiz(quiz_id)
    questions = get_question_set(quiz.id)

    return jsonify({
        **quiz.to_dict(),
        "question_count": len(questions),
        "questions": [q.to_dict(include_answer=False) for q in questions],
    }), 200


@student_bp.route("/quiz/<int:quiz_id>/leaderboard", methods=["GET"])
def get_quiz_leaderboard(quiz_id):
    quiz = get_published_quiz(quiz_id)
    leaderboard, _ = build_leaderboard(quiz.id, limit=current_app.config.get("LEADERBOARD_LIMIT", 20))
    return jsonify({"quiz_title": quiz.title, "leaderboard": leaderboard}), 200


#Submit a quiz attempt, grades it and returns the result with the leaderboard
@student_bp.route("/quiz/submit", methods=["POST"], defaults={"quiz_id": None})
@student_bp.route("/quiz/<int:quiz_id>/submit", methods=["POST"])
def submit_quiz(quiz_id):
    data = request.get_json(silent=True)
    result = SubmissionManager.submit(data, quiz_id=quiz_id)
    return jsonify(result), 200


#                                                     STUDENT PROFILES
#_____________________________________________________________________________________________________________
@student_bp.route("/profile/register", methods=["POST"])
def register_profile():
    profile = StudentManager.register(request.get_json(silent=True) or {})
    return jsonify({"message": "Registration successful", "student": profile.to_dict()}), 201


@student_bp.route("/profile/login", methods=["POST"])
def login_profile():
    profile = StudentManager.login(request.get_json(silent=True) or {})
    return jsonify({"message": "Login successful", "student": profile.to_dict()}), 200


#Public card only, contact details are returned to the phone owner at login
@student_bp.route("/profile/<int:profile_id>", methods=["GET"])
def get_profile(profile_id):
    profile = StudentManager.get_profile(profile_id)
    return jsonify({"student": profile.to_dict(include_contact=False)}), 200


#History is looked up by the phone the student logged in with
@student_bp.route("/profile/history", methods=["POST"])
def get_history():
    return jsonify({"attempts": StudentManager.history(request.get_json(silent=True) or {})}), 200


#                                                       NOTIFICATIONS
#_____________________________________________________________________________________________________________
@student_bp.route("/notifications", methods=["GET"])
def get_notifications():
    student_profile_id = validate_int(
        "student_profile_id", request.args.get("student_profile_id") or None, allow_none=True
    )
    return jsonify(NotificationManager.active_for_student(student_profile_id)), 200


def _student_profile_id_from_body():
    data = request.get_json(silent=True) or {}
    student_profile_id = validate_int("student_profile_id", data.get("student_profile_id"), allow_none=True)
    if student_profile_id is None:
        raise InvalidInput("student_profile_id is required")
    return student_profile_id


@student_bp.route("/notifications/<int:notification_id>/read", methods=["POST"])
def mark_notification_read(notification_id):
    created = NotificationManager.mark_read(notification_id, _student_profile_id_from_body())
    return jsonify({"message": "Marked as read", "created": created}), 200


@student_bp.route("/notifications/read-all", methods=["POST"])
def mark_all_notifications_read():
    count = NotificationManager.mark_all_read(_student_profile_id_from_body())
    return jsonify({"message": "All notifications marked as read", "marked": count}), 200
