"""
Activity Service — append-only usage events for the admin dashboard.

Two entry points:

    record(...)    synchronous insert, raises on bad input; used by POST /api/logs
    dispatch(...)  fire-and-forget insert used after a primary state change
                   (progress update, item view). Runs on a small thread pool
                   with its own app context; failures are logged and dropped,
                   never retried and never surfaced to the caller.

With ``ACTIVITY_LOG_ASYNC = False`` (tests) dispatch runs inline, still
swallowing failures.
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from flask import current_app

from onboarding.core.exceptions import ValidationError
from onboarding.models import db
from onboarding.models.activity import ACTIONS, ActivityLog
from onboarding.models.checklist import ChecklistItem
from onboarding.utils.helpers import is_uuid

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "activity_dispatcher"


# ═══════════════════════════════════════════════════════════════
# Synchronous write
# ═══════════════════════════════════════════════════════════════
def record(user_id: str, action: str, item_id: str | None = None, metadata: dict | None = None) -> ActivityLog:
    """Validate and insert one activity row.

    Raises:
        ValidationError: unknown action, non-UUID or unknown item id, non-object metadata.
    """
    errors = {}
    if action not in ACTIONS:
        errors["action"] = f"Must be one of: {', '.join(ACTIONS)}"
    if item_id is not None and not is_uuid(item_id):
        errors["checklistItemId"] = "Must be a UUID"
    elif item_id is not None and db.session.get(ChecklistItem, item_id) is None:
        errors["checklistItemId"] = "Unknown checklist item"
    if metadata is not None and not isinstance(metadata, dict):
        errors["metadata"] = "Must be an object"
    if errors:
        raise ValidationError("Invalid activity log", details=errors)

    log = ActivityLog(
        user_id=user_id,
        action=action,
        checklist_item_id=item_id,
        extra=metadata,
    )
    db.session.add(log)
    db.session.commit()
    return log


# ═══════════════════════════════════════════════════════════════
# Fire-and-forget dispatch
# ═══════════════════════════════════════════════════════════════
class ActivityDispatcher:
    """Runs activity writes off the request thread."""

    def __init__(self, app=None):
        self._app = None
        self._executor = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        # drop the pool from any previous bind
        self.shutdown(wait=False)
        self._executor = None
        self._app = app
        if app.config.get("ACTIVITY_LOG_ASYNC", True):
            self._executor = ThreadPoolExecutor(
                max_workers=app.config.get("ACTIVITY_LOG_WORKERS", 2),
                thread_name_prefix="activity-log",
            )
        app.extensions[_EXTENSION_KEY] = self

    @property
    def is_async(self) -> bool:
        return self._executor is not None

    def submit(self, user_id, action, item_id=None, metadata=None):
        """Queue one write; returns the Future, or None when run inline."""
        if self._executor is None:
            self._write(user_id, action, item_id, metadata)
            return None
        return self._executor.submit(self._run_in_context, user_id, action, item_id, metadata)

    def shutdown(self, wait=True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    # ── Internal ──────────────────────────────────────────────────────────

    def _run_in_context(self, user_id, action, item_id, metadata):
        with self._app.app_context():
            try:
                self._write(user_id, action, item_id, metadata)
            finally:
                db.session.remove()

    @staticmethod
    def _write(user_id, action, item_id, metadata):
        # Best-effort: a logging failure must never break the caller
        try:
            record(user_id, action, item_id=item_id, metadata=metadata)
        except Exception:
            db.session.rollback()
            logger.exception(
                "Activity log write failed (user=%s action=%s item=%s)",
                user_id, action, item_id,
            )


def dispatch(user_id: str, action: str, item_id: str | None = None, metadata: dict | None = None):
    """Fire-and-forget activity write for the current application."""
    dispatcher = current_app.extensions.get(_EXTENSION_KEY)
    if dispatcher is None:
        logger.warning("Activity dispatcher not initialised; dropping '%s' event", action)
        return None
    return dispatcher.submit(user_id, action, item_id=item_id, metadata=metadata)
