from models import db

QUIZ_STATUSES = ("draft", "published")
CLASS_LEVELS = ("6", "9", "11")
TEST_TYPES = ("topic_wise", "full_test", "pyqs")
SUBJECTS = ("science", "maths", "english", "hindi", "indo_islamic")


class Quiz(db.Model):
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    marks_per_question = db.Column(db.Integer, nullable=False, default=1)
    total_time_minutes = db.Column(db.Integer, nullable=False, default=30)
    status = db.Column(db.String(20), nullable=False, default="draft")
    attempts_closed = db.Column(db.Boolean, nullable=False, default=False)
    class_level = db.Column(db.String(10), nullable=True)
    test_type = db.Column(db.String(20), nullable=True)
    subject = db.Column(db.String(30), nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    updated_at = db.Column(db.DateTime, default=db.func.now(), onupdate=db.func.now(), nullable=False)

    questions = db.relationship(
        "Question",
        back_populates="quiz",
        order_by="Question.question_order",
        cascade="all, delete-orphan",
    )
    attempts = db.relationship("QuizAttempt", back_populates="quiz", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Quiz {self.title} ({self.status})>"

    def to_dict(self, include_questions=False, include_answers=True):
        data = {
            "id": self.id,
            "title": self.title,
            "marks_per_question": self.marks_per_question,
            "total_time_minutes": self.total_time_minutes,
            "status": self.status,
            "attempts_closed": self.attempts_closed,
            "class_level": self.class_level,
            "test_type": self.test_type,
            "subject": self.subject,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_questions:
            data["questions"] = [q.to_dict(include_answer=include_answers) for q in self.questions]
        return data
