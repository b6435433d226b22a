"""Upload storage: files under the uploads root, organized by entity and year/month."""

from __future__ import annotations

import hashlib
import logging
import os
import uuid
from datetime import datetime, timezone

from gestion_proyectos.config import get_settings

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads"

IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


def uploads_root() -> str:
    return get_settings().uploads_dir


def ensure_uploads_dir() -> str:
    root = uploads_root()
    os.makedirs(root, exist_ok=True)
    return root


def sha256_hex(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def save_upload(content: bytes, entity: str, extension: str) -> str:
    """Write ``content`` under ``<entity>/YYYY/MM/`` and return the path relative to the root."""
    now = datetime.now(timezone.utc)
    relative_dir = os.path.join(entity, f"{now.year:04d}", f"{now.month:02d}")
    absolute_dir = os.path.join(ensure_uploads_dir(), relative_dir)
    os.makedirs(absolute_dir, exist_ok=True)
    filename = f"{uuid.uuid4().hex}{extension}"
    with open(os.path.join(absolute_dir, filename), "wb") as fh:
        fh.write(content)
    return os.path.join(relative_dir, filename).replace(os.sep, "/")


def absolute_path(stored_path: str) -> str:
    """Resolve a stored image path (relative to the uploads root, or legacy absolute)."""
    if os.path.isabs(stored_path):
        return stored_path
    return os.path.join(uploads_root(), stored_path)


def public_url(stored_path: str) -> str:
    """Relative URL under which the static mount serves ``stored_path``."""
    path = stored_path
    if os.path.isabs(path):
        path = os.path.relpath(path, uploads_root())
    return f"{PUBLIC_PREFIX}/{path.replace(os.sep, '/').lstrip('/')}"


def remove_file(stored_path: str | None) -> bool:
    """Delete a stored file. Returns False when it was missing; OSError propagates."""
    if not stored_path:
        return False
    path = absolute_path(stored_path)
    if not os.path.exists(path):
        return False
    os.remove(path)
    return True
