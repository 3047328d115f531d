import base64
import os

from flask import Blueprint, jsonify, request, current_app
from werkzeug.utils import secure_filename

from classes.exceptions import InvalidInput
from classes.notification_manager import NotificationManager
from classes.quiz_manager import QuizManager
from utils.gemini_client import GeminiClient
from utils.helpers import allowed_file, parse_bool
from utils.utils import admin_required

# Admin console blueprint
admin_bp = Blueprint("admin", __name__)


def get_json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


#                                                         QUIZZES
#_____________________________________________________________________________________________________________
#Fetch All Quizzes
@admin_bp.route("/quizzes", methods=["GET"])
@admin_required
def get_all_quizzes():
    return jsonify({"quizzes": QuizManager.list_quizzes()}), 200


#Fetch one single quiz with its questions
@admin_bp.route("/quizzes/<int:quiz_id>", methods=["GET"])
@admin_required
def get_quiz(quiz_id):
    return jsonify({"quiz": QuizManager.get_quiz(quiz_id)}), 200


#CREATE a New Quiz
# --------------------------------------------------------------------------------
@admin_bp.route("/quizzes/new", methods=["POST"])
@admin_required
def create_quiz():
    quiz = QuizManager.create_quiz(get_json_body())
    message = "Quiz published!" if quiz["status"] == "published" else "Quiz saved as draft"
    return jsonify({"message": message, "quiz": quiz}), 201


# EDIT a Quiz (fields and, when given, the whole question set)
# --------------------------------------------------------------------------------
@admin_bp.route("/quizzes/<int:quiz_id>/edit", methods=["PUT"])
@admin_required
def edit_quiz(quiz_id):
    quiz = QuizManager.update_quiz(quiz_id, get_json_body())
    return jsonify({"message": "Quiz updated successfully", "quiz": quiz}), 200


# Publish / Unpublish
# --------------------------------------------------------------------------------
@admin_bp.route("/quizzes/<int:quiz_id>/status", methods=["PUT"])
@admin_required
def set_quiz_status(quiz_id):
    status = get_json_body().get("status")
    quiz = QuizManager.set_status(quiz_id, status)
    message = "Quiz published" if status == "published" else "Quiz unpublished"
    return jsonify({"message": message, "quiz": quiz}), 200


# Open / Close a quiz to new attempts
# --------------------------------------------------------------------------------
@admin_bp.route("/quizzes/<int:quiz_id>/attempts-closed", methods=["PUT"])
@admin_required
def set_attempts_closed(quiz_id):
    closed = parse_bool(get_json_body().get("attempts_closed"))
    if closed is None:
        raise InvalidInput("attempts_closed must be true or false")
    quiz = QuizManager.set_attempts_closed(quiz_id, closed)
    return jsonify({"message": "Attempts closed" if closed else "Attempts reopened", "quiz": quiz}), 200


# DELETE a Quiz
# --------------------------------------------------------------------------------
@admin_bp.route("/quizzes/<int:quiz_id>/delete", methods=["DELETE"])
@admin_required
def delete_quiz(quiz_id):
    QuizManager.delete_quiz(quiz_id)
    return jsonify({"message": "Quiz deleted successfully"}), 200


# AI extraction of a question set from a PDF or text file
# --------------------------------------------------------------------------------
@admin_bp.route("/quizzes/extract", methods=["POST"])
@admin_required
def extract_quiz():
    file = request.files.get("file")

    if file:
        file_name = secure_filename(file.filename or "")
        if not file_name or not allowed_file(file_name, current_app.config["ALLOWED_EXTENSIONS"]):
            raise InvalidInput("Only PDF or TXT files can be extracted")
        document = base64.b64encode(file.read()).decode("ascii")
    else:
        data = request.get_json(silent=True) or {}
        file_name = data.get("file_name")
        document = data.get("pdf_base64")

    if not document:
        raise InvalidInput("No PDF data provided")

    client = GeminiClient.from_config(current_app.config)
    result = client.extract_quiz(document, file_name)

    if not result["title"] and file_name:
        result["title"] = os.path.splitext(file_name)[0]

    return jsonify(result), 200


#                                                         ATTEMPTS
#_____________________________________________________________________________________________________________
@admin_bp.route("/quizzes/<int:quiz_id>/attempts", methods=["GET"])
@admin_required
def get_quiz_attempts(quiz_id):
    return jsonify({"attempts": QuizManager.list_attempts(quiz_id)}), 200


@admin_bp.route("/attempts/<int:attempt_id>", methods=["GET"])
@admin_required
def get_attempt_detail(attempt_id):
    return jsonify(QuizManager.attempt_detail(attempt_id)), 200


@admin_bp.route("/stats", methods=["GET"])
@admin_required
def get_stats():
    return jsonify(QuizManager.stats()), 200


#                                                       NOTIFICATIONS
#_____________________________________________________________________________________________________________
@admin_bp.route("/notifications", methods=["GET"])
@admin_required
def list_notifications():
    return jsonify({"notifications": NotificationManager.list_all()}), 200


@admin_bp.route("/notifications", methods=["POST"])
@admin_required
def create_notification():
    notification = NotificationManager.create(get_json_body())
    return jsonify({"message": "Notification created", "notification": notification}), 201


@admin_bp.route("/notifications/<int:notification_id>/toggle", methods=["PUT"])
@admin_required
def toggle_notification(notification_id):
    is_active = parse_bool(get_json_body().get("is_active"))
    if is_active is None:
        raise InvalidInput("is_active must be true or false")
    notification = NotificationManager.set_active(notification_id, is_active)
    return jsonify({"notification": notification}), 200


@admin_bp.route("/notifications/<int:notification_id>/delete", methods=["DELETE"])
@admin_required
def delete_notification(notification_id):
    NotificationManager.delete(notification_id)
    return jsonify({"message": "Notification deleted"}), 200
