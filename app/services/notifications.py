# File: app/services/notifications.py
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ComplaintsError, NotFound
from app.db.session import backend_call
from app.models.notification import Notification, NotificationKind
from app.models.user import User, STAFF_ROLES
from app.services.notify_push import push_to_user

logger = logging.getLogger(__name__)


def _push_payload(n: Notification) -> dict:
    url = settings.frontend_base_url.rstrip("/")
    if n.reference_id:
        url = f"{url}/dashboard/complaints/{n.reference_id}"
    return {"title": n.title, "body": n.message, "url": url or "/"}


def create_notification(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    kind: NotificationKind,
    reference_id: Optional[int] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Notification:
    """Creates one unread notification for a single user.

    When ``background_tasks`` is given, a web push is queued for the
    recipient after the record is committed.
    """
    n = Notification(
        user_id=user_id,
        title=title,
        message=message,
        kind=kind,
        reference_id=reference_id,
        read=False,
        created_at=datetime.now(timezone.utc),
    )
    with backend_call(db, "Create notification"):
        db.add(n)
        db.commit()
        db.refresh(n)
    if background_tasks is not None:
        background_tasks.add_task(push_to_user, user_id, _push_payload(n))
    return n


def notify_officers_and_admins(
    db: Session,
    title: str,
    message: str,
    kind: NotificationKind,
    reference_id: Optional[int] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> int:
    """Fans a notification out to every municipal officer and admin.

    Each recipient gets an independent commit; a failure for one recipient
    is logged and the remaining recipients are still notified. Returns the
    number of notifications created.
    """
    with backend_call(db, "Load officers and admins"):
        recipients = (
            db.query(User.id)
            .filter(User.role.in_(STAFF_ROLES))
            .order_by(User.id.asc())
            .all()
        )
    created = 0
    for (user_id,) in recipients:
        try:
            create_notification(db, user_id, title, message, kind, reference_id, background_tasks)
            created += 1
        except ComplaintsError as e:
            logger.error(f"Notification to user {user_id} failed: {e.detail}", exc_info=True)
    return created


def list_for_user(db: Session, user_id: int) -> list[Notification]:
    with backend_call(db, "List notifications"):
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .all()
        )


def unread_count(db: Session, user_id: int) -> int:
    with backend_call(db, "Count unread notifications"):
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .count()
        )


def get_notification(db: Session, notification_id: int) -> Notification:
    with backend_call(db, "Load notification"):
        n = db.query(Notification).filter(Notification.id == notification_id).first()
    if not n:
        raise NotFound("Notification not found")
    return n


def mark_read(db: Session, notification_id: int) -> Notification:
    n = get_notification(db, notification_id)
    if n.read:
        return n
    with backend_call(db, "Mark notification read"):
        n.read = True
        n.read_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(n)
    return n


def mark_all_read(db: Session, user_id: int) -> int:
    """Flips every unread notification of one user; returns how many changed."""
    with backend_call(db, "Mark all notifications read"):
        changed = (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update(
                {Notification.read: True, Notification.read_at: datetime.now(timezone.utc)},
                synchronize_session=False,
            )
        )
        db.commit()
    return changed


def delete_notification(db: Session, notification_id: int) -> None:
    n = get_notification(db, notification_id)
    with backend_call(db, "Delete notification"):
        db.delete(n)
        db.commit()
