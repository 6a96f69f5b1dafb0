# File: app/routers/complaints.py
from fastapi import APIRouter, Depends, Query, HTTPException, UploadFile, File, Request, Form, BackgroundTasks
from sqlalchemy.orm import Session
from typing import List, Optional
from app.db.session import get_db
from app.core.ratelimit import limiter
from app.core.security import get_current_user, require_staff, require_admin
from app.models.complaint import Complaint
from app.models.user import User, UserRole, STAFF_ROLES
from app.schemas.complaint import (
    CommentIn,
    CommentOut,
    ComplaintOut,
    ComplaintStatsOut,
    ComplaintStatusPatch,
    comment_out,
    complaint_out,
)
from app.schemas.feedback import FeedbackOut
from app.services import complaints as svc
from app.services.complaints import ImagePayload, Location
from app.services.feedback import list_feedback_by_complaint

router = APIRouter(prefix="/complaints", tags=["complaints"])


def _ensure_can_view(obj: Complaint, user: User):
    if user.role == UserRole.citizen:
        if obj.citizen_id != user.id:
            raise HTTPException(status_code=403, detail="forbidden")
    elif user.role not in STAFF_ROLES:
        raise HTTPException(status_code=403, detail="forbidden")


@router.post("", response_model=ComplaintOut, status_code=201)
@limiter.limit("10/minute")
def create_complaint(
    request: Request,
    background_tasks: BackgroundTasks,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    address: Optional[str] = Form(None),
    files: List[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    images = [
        ImagePayload(
            filename=f.filename or "upload.jpg",
            content_type=f.content_type or "",
            data=f.file.read(),
        )
        for f in files or []
    ]
    obj = svc.submit_complaint(
        db,
        title=title,
        description=description,
        category=category,
        location=Location(latitude=latitude, longitude=longitude, address=address),
        citizen=user,
        images=images,
        background_tasks=background_tasks,
    )
    return complaint_out(obj)


@router.get("", response_model=List[ComplaintOut])
def list_complaints(
    status: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    assigned_to: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    items = svc.list_complaints(
        db, status=status, category=category, assigned_to=assigned_to, limit=limit
    )
    return [complaint_out(c) for c in items]


@router.get("/mine", response_model=List[ComplaintOut])
def my_complaints(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return [complaint_out(c) for c in svc.list_by_citizen(db, user.id, limit=limit)]


@router.get("/assigned", response_model=List[ComplaintOut])
def assigned_complaints(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(require_staff),
):
    return [complaint_out(c) for c in svc.list_by_officer(db, user.id, limit=limit)]


@router.get("/stats", response_model=ComplaintStatsOut)
def stats(db: Session = Depends(get_db), user: User = Depends(require_staff)):
    return svc.complaint_stats(db)


@router.get("/{complaint_id}", response_model=ComplaintOut)
def get_complaint(
    complaint_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    obj = svc.get_complaint(db, complaint_id)
    _ensure_can_view(obj, user)
    return complaint_out(obj)


@router.patch("/{complaint_id}/status", response_model=ComplaintOut)
def update_status(
    complaint_id: int,
    body: ComplaintStatusPatch,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff),
):
    officer = current_user
    if body.officer_id is not None and body.officer_id != current_user.id:
        if current_user.role != UserRole.admin:
            raise HTTPException(status_code=403, detail="Only admins can assign other officers")
        officer = db.query(User).filter(User.id == body.officer_id).first()
        if not officer or officer.role not in STAFF_ROLES or not officer.is_active:
            raise HTTPException(status_code=400, detail="Officer not found")

    obj = svc.update_status(
        db,
        complaint_id,
        body.status,
        officer_id=officer.id,
        officer_name=officer.name,
        background_tasks=background_tasks,
    )
    return complaint_out(obj)


@router.post("/{complaint_id}/comments", response_model=CommentOut, status_code=201)
def add_comment(
    complaint_id: int,
    payload: CommentIn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    obj = svc.get_complaint(db, complaint_id)
    _ensure_can_view(obj, user)
    comment = svc.add_comment(db, complaint_id, payload.text, user, background_tasks)
    return comment_out(comment)


@router.get("/{complaint_id}/feedback", response_model=List[FeedbackOut])
def complaint_feedback(
    complaint_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    obj = svc.get_complaint(db, complaint_id)
    _ensure_can_view(obj, user)
    return list_feedback_by_complaint(db, complaint_id)


@router.delete("/{complaint_id}", status_code=204)
def delete_complaint(
    complaint_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    svc.delete_complaint(db, complaint_id, background_tasks)
