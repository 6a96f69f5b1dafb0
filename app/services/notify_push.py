#app\services\notify_push.py
import json
import logging
from pywebpush import webpush, WebPushException
from app.core.config import settings

logger = logging.getLogger(__name__)

VAPID_CLAIMS = {"sub": settings.vapid_sub}

def push_enabled() -> bool:
    return bool(settings.vapid_private_key and settings.vapid_public_key)

def send_push(subscription: dict, payload: dict):
    if not push_enabled(): return
    try:
        webpush(
            subscription_info=subscription,
            data=json.dumps(payload),
            vapid_private_key=settings.vapid_private_key,
            vapid_claims=dict(VAPID_CLAIMS)
        )
    except WebPushException as e:
        logger.warning("push failed for %s: %s", subscription.get("endpoint"), e)

def push_to_user(user_id: int, payload: dict):
    """Delivers a payload to every browser the user subscribed. Runs as a background task."""
    if not push_enabled():
        return
    from app.db.session import SessionLocal
    from app.models.push import PushSubscription

    db = SessionLocal()
    try:
        subs = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).all()
        for s in subs:
            send_push(
                {"endpoint": s.endpoint, "keys": {"p256dh": s.p256dh, "auth": s.auth}},
                payload,
            )
    except Exception as e:
        logger.error(f"Error in background push delivery: {e}", exc_info=True)
    finally:
        db.close()
