from pydantic import BaseModel, Field
from typing import Optional, Literal, List
from datetime import datetime

Status = Literal["pending", "in_progress", "resolved"]
Category = Literal["road", "water", "garbage", "electricity", "sewage", "public_property", "other"]
Role = Literal["citizen", "municipal_officer", "admin"]


class LocationOut(BaseModel):
    latitude: float
    longitude: float
    address: str


class CommentIn(BaseModel):
    text: str = Field(min_length=1, max_length=4000)


class CommentOut(BaseModel):
    id: int
    text: str
    user_id: Optional[int] = None
    user_name: str
    user_role: Role
    created_at: datetime


class ComplaintOut(BaseModel):
    id: int
    title: str
    description: str
    category: Category
    status: Status
    location: LocationOut
    image_urls: List[str] = []

    citizen_id: Optional[int] = None
    citizen_name: Optional[str] = None
    assigned_to_id: Optional[int] = None
    assigned_officer_name: Optional[str] = None

    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None

    comments: List[CommentOut] = []

    has_feedback: bool = False
    feedback_id: Optional[int] = None
    feedback_rating: Optional[int] = None


class ComplaintStatsOut(BaseModel):
    total: int
    pending: int
    in_progress: int
    resolved: int
    by_category: dict[str, int]
    average_resolution_time: float


def comment_out(c) -> CommentOut:
    return CommentOut(
        id=c.id,
        text=c.text,
        user_id=c.user_id,
        user_name=c.user_name,
        user_role=c.user_role.value,
        created_at=c.created_at,
    )


def complaint_out(obj) -> ComplaintOut:
    return ComplaintOut(
        id=obj.id,
        title=obj.title,
        description=obj.description,
        category=obj.category.value,
        status=obj.status.value,  # Convert enum to string
        location=LocationOut(latitude=obj.latitude, longitude=obj.longitude, address=obj.address),
        image_urls=obj.image_urls,
        citizen_id=obj.citizen_id,
        citizen_name=obj.citizen_name,
        assigned_to_id=obj.assigned_to_id,
        assigned_officer_name=obj.assigned_officer_name,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
        resolved_at=obj.resolved_at,
        comments=[comment_out(c) for c in obj.comments],
        has_feedback=bool(obj.has_feedback),
        feedback_id=obj.feedback_id,
        feedback_rating=obj.feedback_rating,
    )


class ComplaintStatusPatch(BaseModel):
    status: Status
    # defaults to the acting user when moving to in_progress
    officer_id: Optional[int] = None
