# File: create_admin.py
# Project: municipal-complaints-backend
# Auto-added for reference

import argparse
import getpass

from dotenv import load_dotenv

load_dotenv(override=True)

from app.core.security import hash_password  # noqa: E402
from app.db.session import SessionLocal, init_db  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Create tables and an admin or officer account.")
    parser.add_argument("email")
    parser.add_argument("name")
    parser.add_argument("--role", choices=[r.value for r in UserRole if r != UserRole.citizen], default="admin")
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if len(password) < 8:
        raise SystemExit("Password must be at least 8 characters")

    init_db()
    db = SessionLocal()
    try:
        email = args.email.lower()
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.role = UserRole(args.role)
            print(f"Updated {email} -> {args.role}")
        else:
            db.add(User(
                email=email,
                name=args.name,
                hashed_password=hash_password(password),
                role=UserRole(args.role),
                is_active=True,
            ))
            print(f"Created {args.role} {email}")
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    main()
