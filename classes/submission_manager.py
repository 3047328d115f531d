import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from classes.exceptions import Forbidden, InvalidInput, NotFound, PersistenceFailure
from classes.validators import optional_text, require_text, validate_int, validate_option
from models import db
from models.questions import Question
from models.quiz_attempts import QuizAttempt
from models.quiz_attempts_answers import QuizAttemptAnswer
from models.quizzes import Quiz
from models.student_profiles import StudentProfile

logger = logging.getLogger(__name__)


def get_published_quiz(quiz_id):
    """Fetch a published quiz with its questions, NotFound otherwise."""
    quiz = (
        Quiz.query
        .options(selectinload(Quiz.questions))
        .filter_by(id=quiz_id, status="published")
        .first()
    )
    if not quiz:
        raise NotFound("Quiz not found or not published")
    return quiz


def get_question_set(quiz_id):
    return (
        Question.query
        .filter_by(quiz_id=quiz_id)
        .order_by(Question.question_order.asc())
        .all()
    )


def selected_option_for(answers, question_id):
    # JSON object keys arrive as strings
    if str(question_id) in answers:
        value = answers[str(question_id)]
    else:
        value = answers.get(question_id)
    return validate_option(value, field_name=f"Answer for question {question_id}")


def grade_answers(questions, answers, marks_per_question):
    """Grade one submission in a single pass over the questions in stored order.

    An unanswered question counts neither as correct nor as wrong, and a
    question without a correct option can never be marked correct.
    """
    graded = []
    correct_count = 0
    wrong_count = 0

    for question in questions:
        selected = selected_option_for(answers, question.id)
        answered = selected is not None
        is_correct = answered and question.correct_option is not None and selected == question.correct_option

        if is_correct:
            correct_count += 1
        elif answered:
            wrong_count += 1

        graded.append({
            "question": question,
            "selected_option": selected,
            "is_correct": is_correct,
        })

    return {
        "answers": graded,
        "correct_count": correct_count,
        "wrong_count": wrong_count,
        "score": correct_count * marks_per_question,
        "total_marks": len(questions) * marks_per_question,
    }


def leaderboard_query(quiz_id):
    """Attempts of a quiz best first: score desc, time asc with nulls last."""
    return (
        QuizAttempt.query
        .filter_by(quiz_id=quiz_id)
        .order_by(
            QuizAttempt.score.desc(),
            QuizAttempt.time_taken_seconds.is_(None),
            QuizAttempt.time_taken_seconds.asc(),
            QuizAttempt.submitted_at.asc(),
            QuizAttempt.id.asc(),
        )
    )


def rank_attempts(attempts):
    """Pair already ordered attempts with sequential ranks, ties are not shared."""
    return [(rank, attempt) for rank, attempt in enumerate(attempts, start=1)]


def leaderboard_entry(rank, attempt):
    return {
        "attempt_id": attempt.id,
        "user_name": attempt.user_name,
        "score": attempt.score,
        "total_marks": attempt.total_marks,
        "time_taken_seconds": attempt.time_taken_seconds,
        "rank": rank,
    }


def build_leaderboard(quiz_id, attempt_id=None, limit=None):
    """Return (top entries, rank of attempt_id or None)."""
    ranked = rank_attempts(leaderboard_query(quiz_id).all())

    user_rank = None
    if attempt_id is not None:
        user_rank = next((rank for rank, attempt in ranked if attempt.id == attempt_id), None)

    if limit is not None:
        ranked = ranked[:limit]
    return [leaderboard_entry(rank, attempt) for rank, attempt in ranked], user_rank


class SubmissionManager:
    @staticmethod
    def parse_submission(data, quiz_id=None):
        """Validate the raw request body, raising InvalidInput on bad fields."""
        if not isinstance(data, dict):
            raise InvalidInput("Missing required fields")

        quiz_id = quiz_id if quiz_id is not None else data.get("quiz_id")
        user_name = data.get("user_name")
        answers = data.get("answers")

        if quiz_id in (None, "") or not user_name or answers is None:
            raise InvalidInput("Missing required fields")
        if not isinstance(answers, dict):
            raise InvalidInput("answers must be an object keyed by question id")

        user_phone = optional_text("user_phone", data.get("user_phone"), max_length=20)
        student_profile_id = validate_int("student_profile_id", data.get("student_profile_id"), allow_none=True)
        if student_profile_id is not None:
            profile = db.session.get(StudentProfile, student_profile_id)
            if not profile:
                raise InvalidInput("Unknown student profile")
            # Only the phone owner can file attempts under a profile
            if user_phone != profile.phone_number:
                raise InvalidInput("user_phone does not match the student profile")

        return {
            "quiz_id": validate_int("quiz_id", quiz_id),
            "user_name": require_text("user_name", user_name, max_length=100),
            "user_address": optional_text("user_address", data.get("user_address")),
            "user_phone": user_phone,
            "student_profile_id": student_profile_id,
            "answers": answers,
            "time_taken_seconds": validate_int(
                "time_taken_seconds", data.get("time_taken_seconds"), minimum=0, allow_none=True
            ),
        }

    @staticmethod
    def submit(data, quiz_id=None):
        """Grade a submission, store it atomically and compose the result."""
        submission = SubmissionManager.parse_submission(data, quiz_id=quiz_id)

        quiz = get_published_quiz(submission["quiz_id"])
        if quiz.attempts_closed:
            raise Forbidden("Attempts are closed for this quiz")

        questions = list(quiz.questions)
        result = grade_answers(questions, submission["answers"], quiz.marks_per_question)

        elapsed = submission["time_taken_seconds"]
        # Elapsed time is client reported and accepted as is
        if elapsed is not None and elapsed > quiz.total_time_minutes * 60:
            logger.warning(
                "Quiz %s submission by %r reports %ss, over the %s minute limit",
                quiz.id, submission["user_name"], elapsed, quiz.total_time_minutes,
            )

        attempt = QuizAttempt(
            quiz_id=quiz.id,
            user_name=submission["user_name"],
            user_address=submission["user_address"],
            user_phone=submission["user_phone"],
            student_profile_id=submission["student_profile_id"],
            score=result["score"],
            total_marks=result["total_marks"],
            correct_count=result["correct_count"],
            wrong_count=result["wrong_count"],
            time_taken_seconds=elapsed,
        )

        try:
            db.session.add(attempt)
            db.session.flush()

            db.session.add_all([
                QuizAttemptAnswer(
                    attempt_id=attempt.id,
                    question_id=graded["question"].id,
                    selected_option=graded["selected_option"],
                    is_correct=graded["is_correct"],
                )
                for graded in result["answers"]
            ])
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Failed to store attempt for quiz %s", quiz.id)
            raise PersistenceFailure("Submission failed") from e

        logger.info(
            "Quiz %s attempt %s: %s scored %s/%s",
            quiz.id, attempt.id, attempt.user_name, attempt.score, attempt.total_marks,
        )

        leaderboard, user_rank = build_leaderboard(
            quiz.id,
            attempt_id=attempt.id,
            limit=current_app.config.get("LEADERBOARD_LIMIT", 20),
        )

        return {
            "attempt_id": attempt.id,
            "user_name": attempt.user_name,
            "quiz_title": quiz.title,
            "score": result["score"],
            "total_marks": result["total_marks"],
            "correct_count": result["correct_count"],
            "wrong_count": result["wrong_count"],
            "time_taken_seconds": elapsed,
            "leaderboard": leaderboard,
            "user_rank": user_rank,
            "details": [
                {
                    "question_id": graded["question"].id,
                    "question_text": graded["question"].question_text,
                    "option_a": graded["question"].option_a,
                    "option_b": graded["question"].option_b,
                    "option_c": graded["question"].option_c,
                    "option_d": graded["question"].option_d,
                    "correct_option": graded["question"].correct_option,
                    "selected_option": graded["selected_option"],
                    "is_correct": graded["is_correct"],
                }
                for graded in result["answers"]
            ],
        }
