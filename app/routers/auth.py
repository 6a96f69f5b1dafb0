# File: app/routers/auth.py

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.orm import Session
from datetime import datetime, timezone
from app.db.session import get_db, backend_call
from app.models.user import User, UserRole
from app.schemas.auth import RegisterIn, LoginIn, RefreshIn, TokenPair, PasswordChange, EmailChange
from app.schemas.user import UserOut, ProfileUpdate, user_out
from app.core.security import hash_password, verify_password, make_tokens, decode_token, get_current_user
from app.services.complaints import ALLOWED, MAX_BYTES
from app.services.storage import upload_image, make_object_key

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/register", response_model=TokenPair)
def register(body: RegisterIn, db: Session = Depends(get_db)):
    # Ensure unique email
    email = body.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=email,
        name=body.name.strip(),
        hashed_password=hash_password(body.password),
        role=UserRole.citizen,
        phone=body.phone,
        address=body.address,
        is_active=True,
    )
    with backend_call(db, "Register user"):
        db.add(user)
        db.commit()
        db.refresh(user)

    # Sign-in immediately
    return make_tokens(user.id)

@router.post("/login", response_model=TokenPair)
def login(body: LoginIn, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.lower()).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Your account has been deactivated. Please contact support.")
    return make_tokens(user.id)

@router.post("/refresh", response_model=TokenPair)
def refresh(body: RefreshIn, db: Session = Depends(get_db)):
    payload = decode_token(body.refresh_token, kind="refresh")
    sub = str(payload.get("sub") or "")
    user = db.query(User).filter(User.id == int(sub)).first() if sub.isdigit() else None
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found")
    return make_tokens(user.id)

@router.get("/me", response_model=UserOut)
def me(current: User = Depends(get_current_user)):
    return user_out(current)

@router.put("/profile", response_model=UserOut)
def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    with backend_call(db, "Update profile"):
        user.name = body.name.strip()
        user.phone = (body.phone or "").strip() or None
        user.address = (body.address or "").strip() or None
        user.updated_at = datetime.now(timezone.utc)
        db.commit(); db.refresh(user)
    return user_out(user)

@router.post("/profile/image", response_model=UserOut)
def upload_profile_image(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if file.content_type not in ALLOWED:
        raise HTTPException(status_code=400, detail="Unsupported image type")
    data = file.file.read()
    if len(data) > MAX_BYTES:
        raise HTTPException(status_code=400, detail="Image exceeds 5MB")
    key = make_object_key("profile_images", file.filename or "avatar.jpg")
    url = upload_image(data, file.content_type, key)
    with backend_call(db, "Save profile image"):
        user.profile_image_url = url
        user.updated_at = datetime.now(timezone.utc)
        db.commit(); db.refresh(user)
    return user_out(user)

def _check_current_password(user: User, password: str):
    if not user.hashed_password or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Current password is incorrect")

@router.put("/password")
def change_password(
    body: PasswordChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_current_password(user, body.current_password)
    with backend_call(db, "Change password"):
        user.hashed_password = hash_password(body.new_password)
        user.updated_at = datetime.now(timezone.utc)
        db.commit()
    return {"ok": True}

@router.put("/email", response_model=UserOut)
def change_email(
    body: EmailChange,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _check_current_password(user, body.current_password)
    email = body.new_email.lower()
    if email != user.email:
        if db.query(User).filter(User.email == email, User.id != user.id).first():
            raise HTTPException(status_code=400, detail="Email already registered")
        with backend_call(db, "Change email"):
            user.email = email
            user.updated_at = datetime.now(timezone.utc)
            db.commit(); db.refresh(user)
    return user_out(user)
