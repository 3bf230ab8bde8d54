# hris_api/services/notifications.py
from hris_api.extensions import db
from hris_api.models.notification import Notification
from hris_api.models.user import User

LEAVE_APPROVED = "leave_approved"
LEAVE_REJECTED = "leave_rejected"
SALARY_SLIP = "salary_slip"
PERFORMANCE_REVIEW = "performance_review"
GENERAL = "general"


def notify(user_id, type_, message) -> Notification:
    """Queue a notification on the current session; the caller commits."""
    n = Notification(user_id=user_id, type=type_, message=message)
    db.session.add(n)
    return n


def broadcast(type_, message) -> int:
    ids = [uid for (uid,) in db.session.query(User.id).filter(User.status_active.is_(True))]
    for uid in ids:
        notify(uid, type_, message)
    return len(ids)
