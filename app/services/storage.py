#app\services\storage.py
import base64
import logging
import uuid

import requests
from app.core.config import settings
from app.core.errors import BackendFailure, NotFound

logger = logging.getLogger(__name__)

BUCKET = settings.supabase_bucket

def _configured() -> bool:
    return bool(settings.supabase_url and settings.supabase_service_role)

def _auth_headers() -> dict:
    return {"Authorization": f"Bearer {settings.supabase_service_role}"}

def public_url(path: str) -> str:
    return f"{settings.supabase_url}/storage/v1/object/public/{BUCKET}/{path}"

def upload_image(data: bytes, content_type: str, path: str) -> str:
    """Uploads to Supabase Storage via REST; returns public URL (bucket must be public)."""
    if not _configured():
        # No storage configured: keep the image inline as a data URL
        b64 = base64.b64encode(data).decode("utf-8")
        return f"data:{content_type};base64,{b64}"
    url = f"{settings.supabase_url}/storage/v1/object/{BUCKET}/{path}"
    try:
        r = requests.post(url, headers={
            **_auth_headers(),
            "Content-Type": content_type,
            "x-upsert": "true",
        }, data=data, timeout=30)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error("Image upload failed for %s: %s", path, e)
        raise BackendFailure("Image upload failed") from e
    return public_url(path)

def fetch_image(reference: str) -> bytes:
    if reference.startswith("data:"):
        return base64.b64decode(reference.split(",", 1)[1])
    try:
        r = requests.get(reference, timeout=30)
        if r.status_code == 404:
            raise NotFound("Image not found")
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error("Image fetch failed for %s: %s", reference, e)
        raise BackendFailure("Image fetch failed") from e
    return r.content

def delete_image(reference: str) -> None:
    """Removes a stored object given its public URL. Inline data URLs need no cleanup."""
    if reference.startswith("data:") or not _configured():
        return
    prefix = public_url("")
    if not reference.startswith(prefix):
        raise NotFound("Image is not stored in this bucket")
    path = reference[len(prefix):]
    url = f"{settings.supabase_url}/storage/v1/object/{BUCKET}/{path}"
    try:
        r = requests.delete(url, headers=_auth_headers(), timeout=30)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error("Image delete failed for %s: %s", path, e)
        raise BackendFailure("Image delete failed") from e

def make_object_key(folder: str, filename: str) -> str:
    ext = (filename.rsplit(".", 1)[-1] if "." in filename else "jpg").lower()
    return f"{folder}/{uuid.uuid4().hex}.{ext}"
