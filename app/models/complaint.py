# File: app/models/complaint.py
from __future__ import annotations
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import String, Float, Enum, Integer, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base
from app.models.user import UserRole

class ComplaintStatus(PyEnum):
    pending = "pending"
    in_progress = "in_progress"
    resolved = "resolved"

# forward order of the lifecycle
STATUS_ORDER = {
    ComplaintStatus.pending: 0,
    ComplaintStatus.in_progress: 1,
    ComplaintStatus.resolved: 2,
}

class ComplaintCategory(PyEnum):
    road = "road"
    water = "water"
    garbage = "garbage"
    electricity = "electricity"
    sewage = "sewage"
    public_property = "public_property"
    other = "other"

class Complaint(Base):
    __tablename__ = "complaints"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(String(4000))
    category: Mapped[ComplaintCategory] = mapped_column(Enum(ComplaintCategory), index=True)
    status: Mapped[ComplaintStatus] = mapped_column(Enum(ComplaintStatus), default=ComplaintStatus.pending, index=True)

    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    address: Mapped[str] = mapped_column(String(300))

    citizen_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    citizen_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    assigned_to_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True)
    assigned_officer_name: Mapped[str | None] = mapped_column(String(120), nullable=True)

    has_feedback: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    feedback_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    feedback_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    images: Mapped[list["ComplaintImage"]] = relationship(
        back_populates="complaint",
        cascade="all, delete-orphan",
        order_by="ComplaintImage.id",
    )
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="complaint",
        cascade="all, delete-orphan",
        order_by=lambda: [Comment.created_at, Comment.id],
    )

    @property
    def image_urls(self) -> list[str]:
        return [i.url for i in self.images]

Index("ix_complaints_lat_lng", Complaint.latitude, Complaint.longitude)

class ComplaintImage(Base):
    __tablename__ = "complaint_images"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    complaint_id: Mapped[int] = mapped_column(ForeignKey("complaints.id", ondelete="CASCADE"), index=True)
    url: Mapped[str] = mapped_column(String)
    object_key: Mapped[str | None] = mapped_column(String(300), nullable=True)
    content_type: Mapped[str] = mapped_column(String(100))
    size: Mapped[int] = mapped_column(Integer)

    complaint: Mapped[Complaint] = relationship(back_populates="images")

class Comment(Base):
    __tablename__ = "complaint_comments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    complaint_id: Mapped[int] = mapped_column(ForeignKey("complaints.id", ondelete="CASCADE"), index=True, nullable=False)
    text: Mapped[str] = mapped_column(String(4000))
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    user_name: Mapped[str] = mapped_column(String(120))
    user_role: Mapped[UserRole] = mapped_column(Enum(UserRole))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    complaint: Mapped[Complaint] = relationship(back_populates="comments")
