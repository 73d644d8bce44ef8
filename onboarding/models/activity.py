"""
Activity log model — append-only usage events for the admin dashboard.

Rows are only ever inserted. ``checklist_item_id`` is optional because
``contact_click`` and ``share_link`` can happen outside an item page.
"""

import uuid
from datetime import datetime, timezone

from onboarding.models import db

ACTION_VIEW = "view"
ACTION_RESOLVE = "resolve"
ACTION_UNRESOLVE = "unresolve"
ACTION_CONTACT_CLICK = "contact_click"
ACTION_SHARE_LINK = "share_link"
ACTIONS = (ACTION_VIEW, ACTION_RESOLVE, ACTION_UNRESOLVE, ACTION_CONTACT_CLICK, ACTION_SHARE_LINK)


class ActivityLog(db.Model):
    __tablename__ = "activity_logs"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    checklist_item_id = db.Column(
        db.String(36), db.ForeignKey("checklist_items.id", ondelete="SET NULL"), nullable=True
    )
    action = db.Column(db.String(30), nullable=False)
    # "metadata" is reserved on declarative models
    extra = db.Column("metadata", db.JSON)
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        db.CheckConstraint(
            "action IN ('view', 'resolve', 'unresolve', 'contact_click', 'share_link')",
            name="ck_activity_logs_action",
        ),
        db.Index("ix_activity_logs_created_at", "created_at"),
        db.Index("ix_activity_logs_action_item", "action", "checklist_item_id"),
    )

    user = db.relationship("User", back_populates="activity_logs")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "checklistItemId": self.checklist_item_id,
            "action": self.action,
            "metadata": self.extra,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
