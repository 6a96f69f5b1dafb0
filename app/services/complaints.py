# File: app/services/complaints.py
"""Complaint lifecycle: submission, status transitions, comments, queries and stats."""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session, selectinload

from app.core.errors import ComplaintsError, NotFound, ValidationFailure
from app.db.session import backend_call
from app.models.complaint import (
    Comment,
    Complaint,
    ComplaintCategory,
    ComplaintImage,
    ComplaintStatus,
    STATUS_ORDER,
)
from app.models.notification import NotificationKind
from app.models.user import User, UserRole
from app.services import notifications
from app.services.storage import delete_image, make_object_key, upload_image

logger = logging.getLogger(__name__)

MAX_FILES = 10
MAX_BYTES = 5 * 1024 * 1024
ALLOWED = {"image/jpeg", "image/png", "image/webp", "image/gif"}


@dataclass
class Location:
    latitude: Optional[float]
    longitude: Optional[float]
    address: Optional[str]


@dataclass
class ImagePayload:
    filename: str
    content_type: str
    data: bytes


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_category(category) -> ComplaintCategory:
    if isinstance(category, ComplaintCategory):
        return category
    try:
        return ComplaintCategory(category)
    except ValueError:
        raise ValidationFailure(f"Unknown category: {category}")


def _parse_status(status) -> ComplaintStatus:
    if isinstance(status, ComplaintStatus):
        return status
    try:
        return ComplaintStatus(status)
    except ValueError:
        raise ValidationFailure("Invalid status")


def _validate_images(images: list[ImagePayload]) -> None:
    if len(images) > MAX_FILES:
        raise ValidationFailure(f"Max {MAX_FILES} images")
    for img in images:
        if img.content_type not in ALLOWED:
            raise ValidationFailure("Unsupported image type")
        if len(img.data) > MAX_BYTES:
            raise ValidationFailure("Image exceeds 5MB")


def submit_complaint(
    db: Session,
    title: Optional[str],
    description: Optional[str],
    category,
    location: Optional[Location],
    citizen: User,
    images: Optional[list[ImagePayload]] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Complaint:
    title = (title or "").strip()
    description = (description or "").strip()
    if not title:
        raise ValidationFailure("Title is required")
    if not description:
        raise ValidationFailure("Description is required")
    if category is None or category == "":
        raise ValidationFailure("Category is required")
    cat = _parse_category(category)
    if location is None or location.latitude is None or location.longitude is None:
        raise ValidationFailure("Location is required")
    address = (location.address or "").strip()
    if not address:
        raise ValidationFailure("Address is required")
    images = images or []
    _validate_images(images)

    # uploads are not transactional with the insert below
    stored = []
    for img in images:
        key = make_object_key("complaints", img.filename or "upload.jpg")
        url = upload_image(img.data, img.content_type, key)
        stored.append(
            ComplaintImage(url=url, object_key=key, content_type=img.content_type, size=len(img.data))
        )

    now = _now()
    obj = Complaint(
        title=title,
        description=description,
        category=cat,
        status=ComplaintStatus.pending,
        latitude=location.latitude,
        longitude=location.longitude,
        address=address,
        citizen_id=citizen.id,
        citizen_name=citizen.name,
        created_at=now,
        updated_at=now,
        images=stored,
        comments=[],
    )
    with backend_call(db, "Create complaint"):
        db.add(obj)
        db.commit()
        db.refresh(obj)
    logger.info("Complaint %s submitted by user %s", obj.id, citizen.id)

    notifications.notify_officers_and_admins(
        db,
        f"New complaint submitted: {obj.title}",
        f"A new complaint has been submitted by {citizen.name}",
        NotificationKind.complaint_new,
        obj.id,
        background_tasks,
    )
    return obj


def get_complaint(db: Session, complaint_id: int) -> Complaint:
    with backend_call(db, "Load complaint"):
        obj = (
            db.query(Complaint)
            .options(selectinload(Complaint.images), selectinload(Complaint.comments))
            .filter(Complaint.id == complaint_id)
            .first()
        )
    if not obj:
        raise NotFound("Complaint not found")
    return obj


def update_status(
    db: Session,
    complaint_id: int,
    status,
    officer_id: Optional[int] = None,
    officer_name: Optional[str] = None,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Complaint:
    """Moves a complaint forward through pending -> in_progress -> resolved.

    Setting the current status again changes nothing and notifies nobody.
    Moving backwards is rejected. Entering in_progress with an officer
    records the assignee; entering resolved stamps ``resolved_at``.
    """
    new_status = _parse_status(status)
    obj = get_complaint(db, complaint_id)
    if obj.status == new_status:
        return obj
    if STATUS_ORDER[new_status] < STATUS_ORDER[obj.status]:
        raise ValidationFailure(
            f"Cannot move complaint from {obj.status.value} back to {new_status.value}"
        )

    now = _now()
    newly_assigned = False
    with backend_call(db, "Update complaint status"):
        obj.status = new_status
        obj.updated_at = now
        if new_status == ComplaintStatus.in_progress and officer_id and officer_name:
            newly_assigned = obj.assigned_to_id != officer_id
            obj.assigned_to_id = officer_id
            obj.assigned_officer_name = officer_name
        elif new_status == ComplaintStatus.resolved:
            obj.resolved_at = now
        db.commit()
        db.refresh(obj)
    logger.info("Complaint %s moved to %s", obj.id, new_status.value)

    if new_status == ComplaintStatus.in_progress:
        handler = obj.assigned_officer_name or "a municipal officer"
        message = f'Your complaint "{obj.title}" is now being processed by {handler}'
    else:
        message = f'Your complaint "{obj.title}" has been resolved'
    if obj.citizen_id:
        notifications.create_notification(
            db,
            obj.citizen_id,
            f"Complaint status updated to {new_status.value.replace('_', ' ')}",
            message,
            NotificationKind.complaint_update,
            obj.id,
            background_tasks,
        )
    if newly_assigned:
        notifications.create_notification(
            db,
            officer_id,
            "Complaint assigned to you",
            f"You have been assigned to handle the complaint: {obj.title}",
            NotificationKind.complaint_assigned,
            obj.id,
            background_tasks,
        )
    return obj


def _comment_recipient(obj: Complaint, author: User) -> Optional[tuple[int, str, str]]:
    """Who hears about a new comment: the officer when the citizen writes, the citizen otherwise."""
    role = author.role
    if role == UserRole.citizen:
        if obj.assigned_to_id and obj.assigned_to_id != author.id:
            return (
                obj.assigned_to_id,
                "New comment on assigned complaint",
                f'{author.name} commented on the complaint: "{obj.title}"',
            )
        return None
    if role in (UserRole.municipal_officer, UserRole.admin):
        if obj.citizen_id and obj.citizen_id != author.id:
            return (
                obj.citizen_id,
                "New comment on your complaint",
                f'{author.name} commented on your complaint: "{obj.title}"',
            )
        return None
    raise ValidationFailure(f"Unknown role: {role}")


def add_comment(
    db: Session,
    complaint_id: int,
    text: Optional[str],
    author: User,
    background_tasks: Optional[BackgroundTasks] = None,
) -> Comment:
    obj = get_complaint(db, complaint_id)
    text = (text or "").strip()
    if not text:
        raise ValidationFailure("Empty comment")
    recipient = _comment_recipient(obj, author)

    now = _now()
    comment = Comment(
        complaint_id=obj.id,
        text=text,
        user_id=author.id,
        user_name=author.name,
        user_role=author.role,
        created_at=now,
    )
    with backend_call(db, "Add comment"):
        db.add(comment)
        obj.updated_at = now
        db.commit()
        db.refresh(comment)

    if recipient:
        user_id, title, message = recipient
        notifications.create_notification(
            db, user_id, title, message, NotificationKind.complaint_comment, obj.id, background_tasks
        )
    return comment


def delete_complaint(
    db: Session,
    complaint_id: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    obj = get_complaint(db, complaint_id)
    for url in obj.image_urls:
        try:
            delete_image(url)
        except ComplaintsError as e:
            # one stuck image should not keep the complaint alive
            logger.error(f"Error deleting image of complaint {obj.id}: {e.detail}", exc_info=True)

    citizen_id, title = obj.citizen_id, obj.title
    with backend_call(db, "Delete complaint"):
        db.delete(obj)
        db.commit()
    logger.info("Complaint %s deleted", complaint_id)

    if citizen_id:
        notifications.create_notification(
            db,
            citizen_id,
            "Complaint deleted",
            f'Your complaint "{title}" has been deleted',
            NotificationKind.complaint_deleted,
            None,
            background_tasks,
        )


def _list(db: Session, action: str, *filters, limit: Optional[int] = None) -> list[Complaint]:
    with backend_call(db, action):
        q = (
            db.query(Complaint)
            .options(selectinload(Complaint.images), selectinload(Complaint.comments))
            .filter(*filters)
            .order_by(Complaint.created_at.desc(), Complaint.id.desc())
        )
        if limit:
            q = q.limit(limit)
        return q.all()


def list_by_citizen(db: Session, citizen_id: int, limit: Optional[int] = None) -> list[Complaint]:
    return _list(db, "List citizen complaints", Complaint.citizen_id == citizen_id, limit=limit)


def list_by_officer(db: Session, officer_id: int, limit: Optional[int] = None) -> list[Complaint]:
    return _list(db, "List officer complaints", Complaint.assigned_to_id == officer_id, limit=limit)


def list_all(db: Session, limit: Optional[int] = None) -> list[Complaint]:
    return _list(db, "List complaints", limit=limit)


def list_by_status(db: Session, status, limit: Optional[int] = None) -> list[Complaint]:
    return _list(db, "List complaints by status", Complaint.status == _parse_status(status), limit=limit)


def list_by_category(db: Session, category, limit: Optional[int] = None) -> list[Complaint]:
    return _list(db, "List complaints by category", Complaint.category == _parse_category(category), limit=limit)


def list_complaints(
    db: Session,
    status=None,
    category=None,
    assigned_to: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[Complaint]:
    """Administrative listing; every filter given is applied together."""
    filters = []
    if status:
        filters.append(Complaint.status == _parse_status(status))
    if category:
        filters.append(Complaint.category == _parse_category(category))
    if assigned_to is not None:
        filters.append(Complaint.assigned_to_id == assigned_to)
    return _list(db, "List complaints", *filters, limit=limit)


def complaint_stats(db: Session) -> dict:
    """Counts by status and category plus mean resolution time in days.

    Resolved complaints missing either timestamp are left out of the mean.
    """
    with backend_call(db, "Load complaint stats"):
        rows = db.query(
            Complaint.status, Complaint.category, Complaint.created_at, Complaint.resolved_at
        ).all()

    by_status = {s.value: 0 for s in ComplaintStatus}
    by_category = {c.value: 0 for c in ComplaintCategory}
    total_days = 0.0
    timed = 0
    for status, category, created_at, resolved_at in rows:
        by_status[status.value] += 1
        if category is not None:
            by_category[category.value] += 1
        if status == ComplaintStatus.resolved and created_at and resolved_at:
            delta = _as_utc(resolved_at) - _as_utc(created_at)
            total_days += delta.total_seconds() / 86400
            timed += 1

    return {
        "total": len(rows),
        "pending": by_status["pending"],
        "in_progress": by_status["in_progress"],
        "resolved": by_status["resolved"],
        "by_category": by_category,
        "average_resolution_time": total_days / timed if timed else 0,
    }
