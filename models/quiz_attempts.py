from models import db

class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempts"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_name = db.Column(db.String(100), nullable=False)
    user_address = db.Column(db.Text, nullable=True)
    user_phone = db.Column(db.String(20), nullable=True)
    student_profile_id = db.Column(db.Integer, db.ForeignKey("student_profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    score = db.Column(db.Integer, nullable=False, default=0)
    total_marks = db.Column(db.Integer, nullable=False, default=0)
    correct_count = db.Column(db.Integer, nullable=False, default=0)
    wrong_count = db.Column(db.Integer, nullable=False, default=0)
    time_taken_seconds = db.Column(db.Integer, nullable=True)
    submitted_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    quiz = db.relationship("Quiz", back_populates="attempts")
    student_profile = db.relationship("StudentProfile", back_populates="attempts")
    answers = db.relationship("QuizAttemptAnswer", back_populates="attempt", lazy=True, cascade="all, delete-orphan")

    def to_dict(self, include_contact=True):
        data = {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "user_name": self.user_name,
            "student_profile_id": self.student_profile_id,
            "score": self.score,
            "total_marks": self.total_marks,
            "correct_count": self.correct_count,
            "wrong_count": self.wrong_count,
            "time_taken_seconds": self.time_taken_seconds,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
        }
        if include_contact:
            data["user_address"] = self.user_address
            data["user_phone"] = self.user_phone
        return data
