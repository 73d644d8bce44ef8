"""
Auth model — the ``users`` table.

Users are created by local sign-up (email + password) or on their first
Microsoft Entra ID login (``entra_id`` set, no password hash).
"""

import uuid
from datetime import datetime, timezone

from onboarding.models import db

# ── Roles ────────────────────────────────────────────────────────────────────
ROLE_USER = "user"
ROLE_TRAINER = "trainer"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_TRAINER, ROLE_ADMIN)

# Roles allowed into the admin area (dashboard, content, user list)
PRIVILEGED_ROLES = frozenset({ROLE_ADMIN, ROLE_TRAINER})


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(256))  # NULL for Entra ID users
    entra_id = db.Column(db.String(255), unique=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_USER)
    department = db.Column(db.String(100))
    join_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        db.CheckConstraint("role IN ('user', 'trainer', 'admin')", name="ck_users_role"),
        db.Index("ix_users_created_at", "created_at"),
    )

    progress = db.relationship(
        "UserProgress", back_populates="user", lazy="dynamic", cascade="all, delete-orphan",
    )
    activity_logs = db.relationship(
        "ActivityLog", back_populates="user", lazy="dynamic", cascade="all, delete-orphan",
    )

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def to_dict(self):
        # entra_id and password_hash never leave the server
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "join_date": self.join_date.isoformat() if self.join_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
