# File: app/routers/notifications.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.notification import NotificationOut, UnreadCountOut, notification_out
from app.services import notifications as svc

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _own(db: Session, notification_id: int, user: User):
    n = svc.get_notification(db, notification_id)
    if n.user_id != user.id:
        # other users' notifications are invisible
        raise HTTPException(status_code=404, detail="Notification not found")
    return n


@router.get("", response_model=List[NotificationOut])
def list_notifications(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return [notification_out(n) for n in svc.list_for_user(db, user.id)]


@router.get("/unread-count", response_model=UnreadCountOut)
def unread_count(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return {"unread": svc.unread_count(db, user.id)}


@router.post("/read-all")
def read_all(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return {"ok": True, "updated": svc.mark_all_read(db, user.id)}


@router.post("/{notification_id}/read", response_model=NotificationOut)
def read_one(notification_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    _own(db, notification_id, user)
    return notification_out(svc.mark_read(db, notification_id))


@router.delete("/{notification_id}")
def delete_notification(notification_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    _own(db, notification_id, user)
    svc.delete_notification(db, notification_id)
    return {"ok": True}
