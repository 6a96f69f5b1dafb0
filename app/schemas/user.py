#app\schemas\user.py
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: Literal["citizen", "municipal_officer", "admin"]
    phone: str | None = None
    address: str | None = None
    profile_image_url: str | None = None
    is_active: bool
    created_at: datetime | None = None

class ProfileUpdate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    phone: str | None = None
    address: str | None = None

class AdminUserUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=120)
    role: Literal["citizen", "municipal_officer", "admin"] | None = None
    is_active: bool | None = None

def user_out(u) -> UserOut:
    return UserOut(
        id=u.id,
        email=u.email,
        name=u.name,
        role=u.role.value,
        phone=u.phone,
        address=u.address,
        profile_image_url=u.profile_image_url,
        is_active=u.is_active,
        created_at=u.created_at,
    )
