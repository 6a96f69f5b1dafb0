# File: app\main.py
# Project: municipal-complaints-backend
# Auto-added for reference

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from app.core.config import cors_origins_list, settings
from app.core.errors import ComplaintsError, complaints_error_handler
from app.core.ratelimit import limiter
from app.db.session import init_db
from app.routers import auth, complaints, feedback, notifications, push_subscriptions, users

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

app = FastAPI(title="Municipal Complaints API", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(ComplaintsError, complaints_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_list(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
def health():
    return {"ok": True}

app.include_router(auth.router)
app.include_router(complaints.router)
app.include_router(notifications.router)
app.include_router(feedback.router)
app.include_router(push_subscriptions.router)
app.include_router(users.router)
