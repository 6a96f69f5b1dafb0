# File: app/services/feedback.py
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationFailure
from app.db.session import backend_call
from app.models.complaint import Complaint
from app.models.feedback import Feedback
from app.models.user import User

logger = logging.getLogger(__name__)


def submit_feedback(
    db: Session,
    author: User,
    complaint_id: Optional[int],
    rating: int,
    comment: Optional[str],
) -> Feedback:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationFailure("Rating must be an integer between 1 and 5")
    comment = (comment or "").strip()
    if not comment:
        raise ValidationFailure("Please provide feedback comments")

    now = datetime.now(timezone.utc)
    fb = Feedback(
        user_id=author.id,
        user_name=author.name,
        complaint_id=complaint_id,
        rating=rating,
        comment=comment,
        created_at=now,
    )
    with backend_call(db, "Submit feedback"):
        db.add(fb)
        db.commit()
        db.refresh(fb)

    if complaint_id:
        with backend_call(db, "Link feedback to complaint"):
            complaint = db.query(Complaint).filter(Complaint.id == complaint_id).first()
            if complaint:
                complaint.has_feedback = True
                complaint.feedback_id = fb.id
                complaint.feedback_rating = rating
                complaint.updated_at = now
                db.commit()
            else:
                logger.warning("Feedback %s references missing complaint %s", fb.id, complaint_id)
    return fb


def get_feedback(db: Session, feedback_id: int) -> Feedback:
    with backend_call(db, "Load feedback"):
        fb = db.query(Feedback).filter(Feedback.id == feedback_id).first()
    if not fb:
        raise NotFound("Feedback not found")
    return fb


def _list(db: Session, *filters, limit: Optional[int] = None) -> list[Feedback]:
    with backend_call(db, "List feedback"):
        q = db.query(Feedback).filter(*filters).order_by(Feedback.created_at.desc(), Feedback.id.desc())
        if limit:
            q = q.limit(limit)
        return q.all()


def list_feedback(db: Session, limit: Optional[int] = None) -> list[Feedback]:
    return _list(db, limit=limit)


def list_feedback_by_user(db: Session, user_id: int) -> list[Feedback]:
    return _list(db, Feedback.user_id == user_id)


def list_feedback_by_complaint(db: Session, complaint_id: int) -> list[Feedback]:
    return _list(db, Feedback.complaint_id == complaint_id)
