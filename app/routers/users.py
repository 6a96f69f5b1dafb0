# File: app/routers/users.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime, timezone
from app.db.session import get_db, backend_call
from app.core.security import require_admin
from app.models.user import User, UserRole
from app.schemas.user import UserOut, AdminUserUpdate, user_out

router = APIRouter(prefix="/admin/users", tags=["admin-users"])

@router.get("", response_model=List[UserOut], dependencies=[Depends(require_admin)])
def list_users(role: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    q = db.query(User)
    if role:
        try:
            q = q.filter(User.role == UserRole(role))
        except ValueError:
            raise HTTPException(400, "Bad role")
    return [user_out(u) for u in q.order_by(User.id.desc())]

@router.put("/{user_id}", response_model=UserOut)
def update_user(user_id: int, body: AdminUserUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    u = db.get(User, user_id)
    if not u: raise HTTPException(404, "Not found")
    if u.id == admin.id and (body.is_active is False or (body.role and body.role != UserRole.admin.value)):
        raise HTTPException(400, "Admins cannot demote or disable themselves")
    with backend_call(db, "Update user"):
        if body.name is not None: u.name = body.name.strip()
        if body.is_active is not None: u.is_active = body.is_active
        if body.role is not None: u.role = UserRole(body.role)
        u.updated_at = datetime.now(timezone.utc)
        db.commit(); db.refresh(u)
    return user_out(u)
