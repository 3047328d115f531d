import logging

import bleach
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from classes.exceptions import InvalidInput, NotFound, PersistenceFailure
from classes.student_manager import StudentManager
from classes.validators import require_text
from models import db
from models.notifications import Notification, NotificationRead
from utils.helpers import commit_or_fail

logger = logging.getLogger(__name__)

ALLOWED_TAGS = ["b", "i", "u", "strong", "em", "p", "br", "ul", "ol", "li", "a"]


def commit_receipts():
    """Commit new read receipts. False when the unique pair already exists."""
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return False
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Failed to store read receipts")
        raise PersistenceFailure("Failed to mark notifications as read") from e
    return True


def get_notification_or_404(notification_id):
    notification = db.session.get(Notification, notification_id)
    if not notification:
        raise NotFound("Notification not found")
    return notification


class NotificationManager:
    @staticmethod
    def create(data):
        title = require_text("Title", data.get("title"), max_length=255)
        message = require_text("Message", data.get("message"))

        # Sanitize admin supplied markup
        message = bleach.clean(message, tags=ALLOWED_TAGS, strip=True)
        if not message.strip():
            raise InvalidInput("Message is required")

        notification = Notification(title=title, message=message, is_active=True)
        db.session.add(notification)
        commit_or_fail("Failed to create notification")
        logger.info("Created notification %s", notification.id)
        return notification.to_dict()

    @staticmethod
    def list_all():
        read_counts = dict(
            db.session.query(NotificationRead.notification_id, func.count(NotificationRead.id))
            .group_by(NotificationRead.notification_id)
            .all()
        )
        notifications = Notification.query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
        return [{**n.to_dict(), "read_count": read_counts.get(n.id, 0)} for n in notifications]

    @staticmethod
    def set_active(notification_id, is_active):
        if not isinstance(is_active, bool):
            raise InvalidInput("is_active must be true or false")
        notification = get_notification_or_404(notification_id)
        notification.is_active = is_active
        commit_or_fail("Failed to change notification status")
        return notification.to_dict()

    @staticmethod
    def delete(notification_id):
        notification = get_notification_or_404(notification_id)
        db.session.delete(notification)
        commit_or_fail("Failed to delete notification")
        logger.info("Deleted notification %s", notification_id)

    @staticmethod
    def active_for_student(student_profile_id=None):
        """Active notifications newest first, flagged read/unread when a student is given."""
        notifications = (
            Notification.query
            .filter_by(is_active=True)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )

        read_ids = set()
        if student_profile_id is not None:
            StudentManager.get_profile(student_profile_id)
            read_ids = {
                row.notification_id
                for row in NotificationRead.query.filter_by(student_profile_id=student_profile_id).all()
            }

        items = [{**n.to_dict(), "is_read": n.id in read_ids} for n in notifications]
        return {
            "notifications": items,
            "unread_count": sum(1 for item in items if not item["is_read"]),
        }

    @staticmethod
    def mark_read(notification_id, student_profile_id):
        get_notification_or_404(notification_id)
        StudentManager.get_profile(student_profile_id)

        existing = NotificationRead.query.filter_by(
            notification_id=notification_id, student_profile_id=student_profile_id
        ).first()
        if existing:
            return False

        db.session.add(NotificationRead(notification_id=notification_id, student_profile_id=student_profile_id))
        return commit_receipts()

    @staticmethod
    def mark_all_read(student_profile_id):
        StudentManager.get_profile(student_profile_id)

        already_read = {
            row.notification_id
            for row in NotificationRead.query.filter_by(student_profile_id=student_profile_id).all()
        }
        unread = [
            n for n in Notification.query.filter_by(is_active=True).all()
            if n.id not in already_read
        ]
        unread_ids = [n.id for n in unread]
        db.session.add_all([
            NotificationRead(notification_id=notification_id, student_profile_id=student_profile_id)
            for notification_id in unread_ids
        ])
        if commit_receipts():
            return len(unread_ids)

        # A concurrent request stored some receipts first, fill in the rest one by one
        return sum(NotificationManager.mark_read(notification_id, student_profile_id) for notification_id in unread_ids)
