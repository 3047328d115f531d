from models import db

OPTION_LETTERS = ("A", "B", "C", "D")


class Question(db.Model):
    __tablename__ = "questions"
    __table_args__ = (
        db.UniqueConstraint("quiz_id", "question_order", name="uq_questions_quiz_order"),
    )

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False)
    question_text = db.Column(db.Text, nullable=False)
    option_a = db.Column(db.Text, nullable=False)
    option_b = db.Column(db.Text, nullable=False)
    option_c = db.Column(db.Text, nullable=False)
    option_d = db.Column(db.Text, nullable=False)
    correct_option = db.Column(db.String(1), nullable=True)
    question_order = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    quiz = db.relationship("Quiz", back_populates="questions")
    answers = db.relationship("QuizAttemptAnswer", back_populates="question", cascade="all, delete-orphan")

    def to_dict(self, include_answer=True):
        data = {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "question_text": self.question_text,
            "option_a": self.option_a,
            "option_b": self.option_b,
            "option_c": self.option_c,
            "option_d": self.option_d,
            "question_order": self.question_order,
        }
        if include_answer:
            data["correct_option"] = self.correct_option
        return data
