# File: app\db\session.py
# Project: municipal-complaints-backend
# Auto-added for reference

import logging
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from app.core.config import settings
from app.core.errors import BackendFailure

logger = logging.getLogger(__name__)

if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        pool_timeout=30
    )
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def backend_call(db: Session, action: str):
    """Rolls back and re-raises database errors as BackendFailure."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", action, e, exc_info=True)
        raise BackendFailure(f"{action} failed") from e

def init_db():
    # models must be imported so their tables register on Base.metadata
    from app.db.base import Base
    from app.models import complaint, feedback, notification, push, user  # noqa: F401
    Base.metadata.create_all(bind=engine)
