import logging

from sqlalchemy import func

from classes.exceptions import InvalidInput, NotFound
from classes.submission_manager import leaderboard_query, rank_attempts
from classes.validators import require_text, validate_choice, validate_int, validate_option
from models import db
from models.questions import Question
from models.quiz_attempts import QuizAttempt
from models.quiz_attempts_answers import QuizAttemptAnswer
from models.quizzes import CLASS_LEVELS, QUIZ_STATUSES, SUBJECTS, TEST_TYPES, Quiz
from models.student_profiles import StudentProfile
from utils.helpers import clean_question_text, commit_or_fail

logger = logging.getLogger(__name__)


def get_quiz_or_404(quiz_id):
    quiz = db.session.get(Quiz, quiz_id)
    if not quiz:
        raise NotFound("Quiz not found")
    return quiz


def parse_question(data, index):
    """Validate one question payload and return clean column values."""
    if not isinstance(data, dict):
        raise InvalidInput(f"Question {index + 1} must be an object")

    label = f"Question {index + 1}"
    values = {
        "question_text": clean_question_text(require_text(f"{label} text", data.get("question_text"))),
        "correct_option": validate_option(data.get("correct_option"), field_name=f"{label} correct_option"),
    }
    for letter in "abcd":
        values[f"option_{letter}"] = require_text(f"{label} option {letter.upper()}", data.get(f"option_{letter}"))
    return values


def check_publishable(questions):
    """Publish-gating: at least one question and every correct option set."""
    if not questions:
        raise InvalidInput("Add at least one question before publishing")
    missing = [i + 1 for i, q in enumerate(questions) if not q.correct_option]
    if missing:
        raise InvalidInput(
            "Set correct answers for all questions before publishing (missing: "
            + ", ".join(str(n) for n in missing) + ")"
        )


class QuizManager:
    @staticmethod
    def list_quizzes():
        """All quizzes newest first with question and attempt counts."""
        question_counts = dict(
            db.session.query(Question.quiz_id, func.count(Question.id)).group_by(Question.quiz_id).all()
        )
        attempt_counts = dict(
            db.session.query(QuizAttempt.quiz_id, func.count(QuizAttempt.id)).group_by(QuizAttempt.quiz_id).all()
        )
        quizzes = Quiz.query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()
        return [
            {
                **quiz.to_dict(),
                "question_count": question_counts.get(quiz.id, 0),
                "attempt_count": attempt_counts.get(quiz.id, 0),
            }
            for quiz in quizzes
        ]

    @staticmethod
    def get_quiz(quiz_id):
        return get_quiz_or_404(quiz_id).to_dict(include_questions=True)

    @staticmethod
    def _apply_fields(quiz, data):
        if "title" in data:
            quiz.title = require_text("Title", data.get("title"), max_length=255)
        if "marks_per_question" in data:
            quiz.marks_per_question = validate_int("marks_per_question", data.get("marks_per_question"), minimum=1)
        if "total_time_minutes" in data:
            quiz.total_time_minutes = validate_int("total_time_minutes", data.get("total_time_minutes"), minimum=1)
        if "class_level" in data:
            class_level = data.get("class_level")
            quiz.class_level = validate_choice("class_level", None if class_level is None else str(class_level), CLASS_LEVELS)
        if "test_type" in data:
            quiz.test_type = validate_choice("test_type", data.get("test_type"), TEST_TYPES)
        if "subject" in data:
            quiz.subject = validate_choice("subject", data.get("subject"), SUBJECTS)
        if "attempts_closed" in data:
            quiz.attempts_closed = bool(data.get("attempts_closed"))

        # Subjects only classify topic wise tests
        if quiz.test_type != "topic_wise":
            quiz.subject = None

    @staticmethod
    def _replace_questions(quiz, payload):
        """Sync the quiz question set with an ordered list of payloads.

        Entries with a known id are updated in place so stored answers keep
        pointing at them, the rest are inserted and missing ones deleted.
        """
        if not isinstance(payload, list):
            raise InvalidInput("questions must be a list")

        parsed = [(item.get("id") if isinstance(item, dict) else None, parse_question(item, i))
                  for i, item in enumerate(payload)]
        existing = {q.id: q for q in quiz.questions}

        kept_ids = set()
        for question_id, _ in parsed:
            if question_id is not None:
                question_id = validate_int("question id", question_id)
                if question_id not in existing:
                    raise InvalidInput(f"Question {question_id} does not belong to this quiz")
                if question_id in kept_ids:
                    raise InvalidInput(f"Question {question_id} is listed twice")
                kept_ids.add(question_id)

        for question_id, question in list(existing.items()):
            if question_id not in kept_ids:
                quiz.questions.remove(question)

        # Park kept rows on negative positions so reordering never trips the unique index
        for position, question_id in enumerate(kept_ids):
            existing[question_id].question_order = -(position + 1)
        db.session.flush()

        ordered = []
        for index, (question_id, values) in enumerate(parsed):
            if question_id is not None:
                question = existing[int(question_id)]
                for column, value in values.items():
                    setattr(question, column, value)
                question.question_order = index
            else:
                question = Question(question_order=index, **values)
                quiz.questions.append(question)
            ordered.append(question)
        quiz.questions.sort(key=lambda q: q.question_order)
        return ordered

    @staticmethod
    def create_quiz(data):
        if not isinstance(data, dict):
            raise InvalidInput("Invalid quiz data")

        status = data.get("status") or "draft"
        if status not in QUIZ_STATUSES:
            raise InvalidInput("status must be draft or published")

        quiz = Quiz(
            title=require_text("Title", data.get("title"), max_length=255),
            marks_per_question=1,
            total_time_minutes=30,
            status="draft",
            attempts_closed=False,
        )
        QuizManager._apply_fields(quiz, data)

        questions = []
        for index, item in enumerate(data.get("questions") or []):
            question = Question(question_order=index, **parse_question(item, index))
            quiz.questions.append(question)
            questions.append(question)

        if status == "published":
            check_publishable(questions)
        quiz.status = status

        db.session.add(quiz)
        commit_or_fail("Failed to create quiz")
        logger.info("Created quiz %s (%s) with %s questions", quiz.id, quiz.status, len(questions))
        return quiz.to_dict(include_questions=True)

    @staticmethod
    def update_quiz(quiz_id, data):
        if not isinstance(data, dict):
            raise InvalidInput("Invalid quiz data")

        quiz = get_quiz_or_404(quiz_id)
        status = data.get("status", quiz.status)
        if status not in QUIZ_STATUSES:
            raise InvalidInput("status must be draft or published")

        try:
            QuizManager._apply_fields(quiz, data)
            if "questions" in data and data["questions"] is not None:
                QuizManager._replace_questions(quiz, data["questions"])
            if status == "published":
                check_publishable(quiz.questions)
        except InvalidInput:
            db.session.rollback()
            raise
        quiz.status = status

        commit_or_fail("Failed to update quiz")
        logger.info("Updated quiz %s (%s)", quiz.id, quiz.status)
        return quiz.to_dict(include_questions=True)

    @staticmethod
    def set_status(quiz_id, status):
        if status not in QUIZ_STATUSES:
            raise InvalidInput("status must be draft or published")
        quiz = get_quiz_or_404(quiz_id)
        if status == "published":
            check_publishable(quiz.questions)
        quiz.status = status
        commit_or_fail("Failed to change quiz status")
        logger.info("Quiz %s is now %s", quiz.id, status)
        return quiz.to_dict()

    @staticmethod
    def set_attempts_closed(quiz_id, closed):
        if not isinstance(closed, bool):
            raise InvalidInput("attempts_closed must be true or false")
        quiz = get_quiz_or_404(quiz_id)
        quiz.attempts_closed = closed
        commit_or_fail("Failed to change attempt closure")
        logger.info("Quiz %s attempts %s", quiz.id, "closed" if closed else "opened")
        return quiz.to_dict()

    @staticmethod
    def delete_quiz(quiz_id):
        quiz = get_quiz_or_404(quiz_id)
        db.session.delete(quiz)
        commit_or_fail("Failed to delete quiz")
        logger.info("Deleted quiz %s", quiz_id)

    @staticmethod
    def list_attempts(quiz_id):
        """A quiz's attempts in leaderboard order, each with its rank."""
        get_quiz_or_404(quiz_id)
        return [
            {**attempt.to_dict(), "rank": rank}
            for rank, attempt in rank_attempts(leaderboard_query(quiz_id).all())
        ]

    @staticmethod
    def attempt_detail(attempt_id):
        attempt = db.session.get(QuizAttempt, attempt_id)
        if not attempt:
            raise NotFound("Attempt not found")

        answers = (
            QuizAttemptAnswer.query
            .join(Question, QuizAttemptAnswer.question_id == Question.id)
            .filter(QuizAttemptAnswer.attempt_id == attempt_id)
            .order_by(Question.question_order.asc())
            .all()
        )
        return {
            "attempt": attempt.to_dict(),
            "answers": [answer.to_dict(include_question=True) for answer in answers],
        }

    @staticmethod
    def stats():
        return {
            "quiz_count": Quiz.query.count(),
            "published_count": Quiz.query.filter_by(status="published").count(),
            "attempt_count": QuizAttempt.query.count(),
            "student_count": StudentProfile.query.count(),
        }
