"""Admin dashboard statistics.

Each metric is an independent read; under concurrent writes a refresh may
show a slightly inconsistent snapshot across metrics.
"""
import logging
from datetime import timedelta

from sqlalchemy import func

from onboarding.models import db
from onboarding.models.activity import ACTION_VIEW, ActivityLog
from onboarding.models.auth import User
from onboarding.models.checklist import (
    STATUS_RESOLVED,
    STATUS_UNRESOLVED,
    ChecklistItem,
    UserProgress,
)
from onboarding.utils.helpers import ratio, utcnow

logger = logging.getLogger(__name__)

ACTIVE_WINDOW_DAYS = 7
TOP_N = 5
UNKNOWN_ITEM_TITLE = "Unknown item"


def rank_counts(counts, limit=TOP_N):
    """Sort ``[(item_id, count)]`` by count desc then id, drop zeros, keep *limit*."""
    ranked = sorted(((i, c) for i, c in counts if i is not None and c > 0), key=lambda r: (-r[1], r[0]))
    return ranked[:limit]


def _total_users():
    return db.session.query(func.count(User.id)).scalar() or 0


def _active_users(now):
    since = now - timedelta(days=ACTIVE_WINDOW_DAYS)
    return (
        db.session.query(func.count(func.distinct(ActivityLog.user_id)))
        .filter(ActivityLog.created_at >= since)
        .scalar()
        or 0
    )


def _completion_rate():
    total = db.session.query(func.count(UserProgress.id)).scalar() or 0
    if not total:
        return 0
    resolved = (
        db.session.query(func.count(UserProgress.id))
        .filter(UserProgress.status == STATUS_RESOLVED)
        .scalar()
        or 0
    )
    return ratio(resolved, total)


def _unresolved_counts():
    return (
        db.session.query(UserProgress.checklist_item_id, func.count(UserProgress.id))
        .filter(UserProgress.status == STATUS_UNRESOLVED)
        .group_by(UserProgress.checklist_item_id)
        .all()
    )


def _view_counts():
    return (
        db.session.query(ActivityLog.checklist_item_id, func.count(ActivityLog.id))
        .filter(ActivityLog.action == ACTION_VIEW, ActivityLog.checklist_item_id.isnot(None))
        .group_by(ActivityLog.checklist_item_id)
        .all()
    )


def _titles(item_ids):
    """One batched lookup for every ranked id."""
    if not item_ids:
        return {}
    rows = (
        db.session.query(ChecklistItem.id, ChecklistItem.title)
        .filter(ChecklistItem.id.in_(item_ids))
        .all()
    )
    return dict(rows)


def compute_stats():
    """Dashboard payload: user counts, completion rate and the two top-5 lists."""
    now = utcnow()
    unresolved = rank_counts(_unresolved_counts())
    viewed = rank_counts(_view_counts())
    titles = _titles({i for i, _ in unresolved} | {i for i, _ in viewed})

    return {
        "totalUsers": _total_users(),
        "activeUsers": _active_users(now),
        "completionRate": _completion_rate(),
        "topUnresolvedItems": [
            {"checklistItemId": i, "title": titles.get(i, UNKNOWN_ITEM_TITLE), "count": c} for i, c in unresolved
        ],
        "mostViewedItems": [
            {"checklistItemId": i, "title": titles.get(i, UNKNOWN_ITEM_TITLE), "count": c} for i, c in viewed
        ],
    }
