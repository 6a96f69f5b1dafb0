from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class NotificationOut(BaseModel):
    id: int
    user_id: int
    title: str
    message: str
    kind: str
    reference_id: Optional[int] = None
    read: bool
    created_at: datetime
    read_at: Optional[datetime] = None


class UnreadCountOut(BaseModel):
    unread: int


def notification_out(n) -> NotificationOut:
    return NotificationOut(
        id=n.id,
        user_id=n.user_id,
        title=n.title,
        message=n.message,
        kind=n.kind.value,
        reference_id=n.reference_id,
        read=n.read,
        created_at=n.created_at,
        read_at=n.read_at,
    )
