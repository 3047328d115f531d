from models import db


class StudentProfile(db.Model):
    __tablename__ = "student_profiles"

    id = db.Column(db.Integer, primary_key=True)
    phone_number = db.Column(db.String(20), nullable=False, unique=True)
    full_name = db.Column(db.String(100), nullable=True)
    address = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    attempts = db.relationship("QuizAttempt", back_populates="student_profile", passive_deletes=True)

    def __repr__(self):
        return f"<StudentProfile {self.phone_number}>"

    def to_dict(self, include_contact=True):
        data = {
            "id": self.id,
            "full_name": self.full_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_contact:
            data["phone_number"] = self.phone_number
            data["address"] = self.address
        return data
