# File: app\db\base.py
# Project: municipal-complaints-backend
# Auto-added for reference

from sqlalchemy.orm import DeclarativeBase

class Base(DeclarativeBase):
    pass
