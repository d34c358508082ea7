"""Local file storage for uploaded documents.

Files are saved under ``settings.UPLOAD_DIR`` with a random name; the
original filename is only kept in the database.
"""

import logging
import os
import uuid

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from locumhub.config import settings

logger = logging.getLogger(__name__)


def save_file(contents: bytes, original_name: str, folder: str) -> str:
    """Write *contents* and return the path relative to the upload root."""
    upload_dir = os.path.join(settings.UPLOAD_DIR, "documents", folder)
    os.makedirs(upload_dir, exist_ok=True)

    # UUID-only filename (no original filename) to prevent path traversal
    ext = os.path.splitext(original_name or "")[1].lower()
    safe_name = f"{uuid.uuid4().hex}{ext}"
    with open(os.path.join(upload_dir, safe_name), "wb") as f:
        f.write(contents)
    return os.path.join("documents", folder, safe_name)


def absolute_path(relative_path: str) -> str:
    return os.path.join(settings.UPLOAD_DIR, relative_path)


def delete_file(relative_path: str) -> None:
    """Remove a stored file; a file that is already gone is not an error."""
    try:
        os.remove(absolute_path(relative_path))
    except FileNotFoundError:
        logger.warning("Stored file %s was already missing", relative_path)


# ── Removal tied to the session transaction ──────────────────────────

_PENDING_DELETES = "pending_file_deletes"


def delete_after_commit(db: AsyncSession, relative_path: str) -> None:
    """Queue a stored file for removal once *db* commits.

    A rollback drops the queue, so a row that survives keeps its file.
    """
    db.sync_session.info.setdefault(_PENDING_DELETES, []).append(relative_path)


@event.listens_for(Session, "after_commit")
def _remove_committed_files(session: Session) -> None:
    for path in session.info.pop(_PENDING_DELETES, []):
        delete_file(path)


@event.listens_for(Session, "after_soft_rollback")
def _discard_pending_deletes(session: Session, previous_transaction) -> None:
    if previous_transaction.parent is None:
        session.info.pop(_PENDING_DELETES, None)
