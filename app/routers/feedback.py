# File: app/routers/feedback.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from app.db.session import get_db
from app.core.security import get_current_user, require_role
from app.models.user import User, UserRole, STAFF_ROLES
from app.schemas.feedback import FeedbackIn, FeedbackOut
from app.services import feedback as svc
from app.services.complaints import get_complaint

router = APIRouter(prefix="/feedback", tags=["feedback"])


@router.post("", response_model=FeedbackOut, status_code=201)
def submit(
    body: FeedbackIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_role(UserRole.citizen)),
):
    if body.complaint_id is not None:
        complaint = get_complaint(db, body.complaint_id)
        if complaint.citizen_id != user.id:
            raise HTTPException(status_code=403, detail="You can only rate your own complaints")
    return svc.submit_feedback(db, user, body.complaint_id, body.rating, body.comment)


@router.get("", response_model=List[FeedbackOut])
def list_feedback(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if user.role in STAFF_ROLES:
        return svc.list_feedback(db, limit=limit)
    return svc.list_feedback_by_user(db, user.id)


@router.get("/{feedback_id}", response_model=FeedbackOut)
def get_feedback(feedback_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    fb = svc.get_feedback(db, feedback_id)
    if user.role not in STAFF_ROLES and fb.user_id != user.id:
        raise HTTPException(status_code=403, detail="forbidden")
    return fb
