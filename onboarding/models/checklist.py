"""
Checklist models — catalog items and per-user progress.

ChecklistItem rows are never hard-deleted: deactivation flips ``is_active``
so progress rows and activity logs that reference them stay valid.

UserProgress is unique per (user, item); a missing row means ``pending``.
"""

import uuid
from datetime import datetime, timezone

from onboarding.models import db

DAYS = (1, 2, 3)

STATUS_PENDING = "pending"
STATUS_RESOLVED = "resolved"
STATUS_UNRESOLVED = "unresolved"
PROGRESS_STATUSES = (STATUS_PENDING, STATUS_RESOLVED, STATUS_UNRESOLVED)


def _uuid():
    return str(uuid.uuid4())


def _now():
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════
# 1. CHECKLIST ITEMS
# ═══════════════════════════════════════════════════════════════
class ChecklistItem(db.Model):
    __tablename__ = "checklist_items"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    day = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    summary = db.Column(db.Text, nullable=False)
    steps = db.Column(db.JSON, nullable=False, default=list)
    notes = db.Column(db.Text)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    __table_args__ = (
        db.CheckConstraint("day IN (1, 2, 3)", name="ck_checklist_items_day"),
        db.CheckConstraint("order_index >= 0", name="ck_checklist_items_order_index"),
        db.Index("ix_checklist_items_day_order", "day", "order_index"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "day": self.day,
            "category": self.category,
            "title": self.title,
            "summary": self.summary,
            "steps": list(self.steps or []),
            "notes": self.notes,
            "order_index": self.order_index,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# ═══════════════════════════════════════════════════════════════
# 2. USER PROGRESS
# ═══════════════════════════════════════════════════════════════
class UserProgress(db.Model):
    __tablename__ = "user_progress"

    id = db.Column(db.String(36), primary_key=True, default=_uuid)
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    checklist_item_id = db.Column(
        db.String(36), db.ForeignKey("checklist_items.id", ondelete="CASCADE"), nullable=False
    )
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    notes = db.Column(db.Text)
    resolved_at = db.Column(db.DateTime(timezone=True))  # set iff status == resolved
    created_at = db.Column(db.DateTime(timezone=True), default=_now)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    __table_args__ = (
        db.UniqueConstraint("user_id", "checklist_item_id", name="uq_user_progress_user_item"),
        db.CheckConstraint(
            "status IN ('pending', 'resolved', 'unresolved')", name="ck_user_progress_status"
        ),
        db.Index("ix_user_progress_user_id", "user_id"),
        db.Index("ix_user_progress_status", "status"),
    )

    user = db.relationship("User", back_populates="progress")
    checklist_item = db.relationship("ChecklistItem")

    def to_dict(self):
        return {
            "id": self.id,
            "checklist_item_id": self.checklist_item_id,
            "status": self.status,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "notes": self.notes,
        }
