from models import db


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    reads = db.relationship("NotificationRead", back_populates="notification", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class NotificationRead(db.Model):
    __tablename__ = "notification_reads"
    __table_args__ = (
        db.UniqueConstraint("notification_id", "student_profile_id", name="uq_notification_reads_pair"),
    )

    id = db.Column(db.Integer, primary_key=True)
    notification_id = db.Column(db.Integer, db.ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False)
    student_profile_id = db.Column(db.Integer, db.ForeignKey("student_profiles.id", ondelete="CASCADE"), nullable=False)
    read_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    notification = db.relationship("Notification", back_populates="reads")
