"""Progress service — per-user status of each checklist item.

One row per (user, item), created lazily on the first status change; a
missing row means ``pending``. Writes are last-write-wins upserts: any
status may follow any other.

``resolved_at`` is set when the status becomes ``resolved`` and cleared for
every other status.
"""
import logging

from sqlalchemy.exc import IntegrityError

from onboarding.core.exceptions import NotFoundError, ValidationError
from onboarding.models import db
from onboarding.models.checklist import (
    DAYS,
    PROGRESS_STATUSES,
    STATUS_RESOLVED,
    ChecklistItem,
    UserProgress,
)
from onboarding.utils.helpers import ratio, utcnow

logger = logging.getLogger(__name__)


def _validate(status, notes):
    errors = {}
    if status not in PROGRESS_STATUSES:
        errors["status"] = f"Must be one of: {', '.join(PROGRESS_STATUSES)}"
    if notes is not None and not isinstance(notes, str):
        errors["notes"] = "Notes must be a string"
    if errors:
        raise ValidationError("Invalid progress update", details=errors)


def _apply(row, status, notes):
    row.status = status
    row.notes = notes
    # Keep the original resolution time when re-resolving
    if status == STATUS_RESOLVED:
        if row.resolved_at is None:
            row.resolved_at = utcnow()
    else:
        row.resolved_at = None


def set_status(user_id, item_id, status, notes=None):
    """Upsert the caller's progress row for *item_id*.

    Raises:
        ValidationError: unknown status or non-string notes.
        NotFoundError: the checklist item does not exist.
    """
    _validate(status, notes)
    if not item_id or db.session.get(ChecklistItem, item_id) is None:
        raise NotFoundError(resource="ChecklistItem", resource_id=item_id)

    row = UserProgress.query.filter_by(user_id=user_id, checklist_item_id=item_id).first()
    if row is None:
        row = UserProgress(user_id=user_id, checklist_item_id=item_id)
        _apply(row, status, notes)
        db.session.add(row)
        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent request inserted the same pair first; overwrite it
            db.session.rollback()
            logger.info("Progress insert race for user=%s item=%s, updating", user_id, item_id)
            row = UserProgress.query.filter_by(user_id=user_id, checklist_item_id=item_id).one()
            _apply(row, status, notes)
            db.session.commit()
    else:
        _apply(row, status, notes)
        db.session.commit()

    logger.debug("Progress user=%s item=%s → %s", user_id, item_id, status)
    return row


def get_progress_for_user(user_id):
    """All progress rows of a user, oldest first."""
    return (
        UserProgress.query.filter_by(user_id=user_id)
        .order_by(UserProgress.created_at, UserProgress.id)
        .all()
    )


def day_summary(user_id):
    """Per-day completion over active items.

    Returns ``{"days": [{day, total, resolved, rate}], "overall": {...}}``
    where ``rate`` is resolved / total rounded half-up to 2 decimals (0 when a day
    has no active items).
    """
    items = (
        db.session.query(ChecklistItem.id, ChecklistItem.day)
        .filter(ChecklistItem.is_active.is_(True))
        .all()
    )
    resolved_ids = {
        item_id
        for (item_id,) in db.session.query(UserProgress.checklist_item_id)
        .filter(UserProgress.user_id == user_id, UserProgress.status == STATUS_RESOLVED)
        .all()
    }

    days = []
    total_all = resolved_all = 0
    for day in DAYS:
        day_ids = [item_id for item_id, d in items if d == day]
        resolved = sum(1 for item_id in day_ids if item_id in resolved_ids)
        days.append({
            "day": day,
            "total": len(day_ids),
            "resolved": resolved,
            "rate": ratio(resolved, len(day_ids)),
        })
        total_all += len(day_ids)
        resolved_all += resolved

    return {
        "days": days,
        "overall": {
            "total": total_all,
            "resolved": resolved_all,
            "rate": ratio(resolved_all, total_all),
        },
    }
