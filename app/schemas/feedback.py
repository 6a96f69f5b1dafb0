from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class FeedbackIn(BaseModel):
    complaint_id: Optional[int] = None
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)


class FeedbackOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    user_name: str
    complaint_id: Optional[int] = None
    rating: int
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True
