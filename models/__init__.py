from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()

# Import models
from models.quizzes import Quiz
from models.questions import Question
from models.quiz_attempts import QuizAttempt
from models.quiz_attempts_answers import QuizAttemptAnswer
from models.student_profiles import StudentProfile
from models.notifications import Notification, NotificationRead
