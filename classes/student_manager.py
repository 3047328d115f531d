import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from classes.exceptions import Conflict, NotFound, PersistenceFailure
from classes.validators import require_text, validate_phone
from models import db
from models.quiz_attempts import QuizAttempt
from models.student_profiles import StudentProfile

logger = logging.getLogger(__name__)


class StudentManager:
    @staticmethod
    def find_by_phone(phone_number):
        return StudentProfile.query.filter_by(phone_number=phone_number).first()

    @staticmethod
    def get_profile(profile_id):
        profile = db.session.get(StudentProfile, profile_id)
        if not profile:
            raise NotFound("Student profile not found")
        return profile

    @staticmethod
    def register(data):
        """Register a phone number identity, name and address are mandatory."""
        phone = validate_phone(data.get("phone_number"))
        full_name = require_text("Name", data.get("full_name"), max_length=100)
        address = require_text("Address", data.get("address"), max_length=500)

        if StudentManager.find_by_phone(phone):
            raise Conflict("This phone number is already registered. Please login instead.")

        profile = StudentProfile(phone_number=phone, full_name=full_name, address=address)
        db.session.add(profile)
        try:
            db.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same phone
            db.session.rollback()
            raise Conflict("This phone number is already registered. Please login instead.")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Failed to register student profile")
            raise PersistenceFailure("Registration failed") from e

        logger.info("Registered student profile %s", profile.id)
        return profile

    @staticmethod
    def login(data):
        phone = validate_phone(data.get("phone_number"))
        profile = StudentManager.find_by_phone(phone)
        if not profile:
            raise NotFound("Phone number not registered. Please register first.")
        return profile

    @staticmethod
    def history(data):
        """Attempts of the profile owning the given phone, newest first, with quiz titles."""
        profile = StudentManager.login(data)
        attempts = (
            QuizAttempt.query
            .filter_by(student_profile_id=profile.id)
            .order_by(QuizAttempt.submitted_at.desc(), QuizAttempt.id.desc())
            .all()
        )
        return [
            {**attempt.to_dict(include_contact=False), "quiz_title": attempt.quiz.title if attempt.quiz else None}
            for attempt in attempts
        ]
