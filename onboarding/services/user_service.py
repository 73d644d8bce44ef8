"""
User Service — sign-up, credential checks, external identities, admin user list.

Transaction policy: every mutating function commits; blueprints never touch
the session directly.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import case, func, or_

from onboarding.core.exceptions import (
    AuthenticationError,
    NotFoundError,
    ValidationError,
)
from onboarding.middleware.permission_required import CAP_USERS_MANAGE_ROLES, ensure_capability
from onboarding.models import db
from onboarding.models.auth import ROLE_ADMIN, ROLE_USER, ROLES, User
from onboarding.models.checklist import STATUS_RESOLVED, UserProgress
from onboarding.utils.crypto import hash_password, verify_password
from onboarding.utils.helpers import commit_or_conflict, ratio

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8


def _normalize_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Invalid sign-up data", details={"email": "Email is required"})
    try:
        valid = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError("Invalid sign-up data", details={"email": str(e)}) from e
    return valid.normalized.lower()


# ═══════════════════════════════════════════════════════════════
# Sign-up / Sign-in
# ═══════════════════════════════════════════════════════════════
def signup(name, email, password) -> User:
    """Create a local-credential user with role ``user``.

    Raises ValidationError on bad input and ConflictError when the email is
    already registered (no row is written in that case).
    """
    details = {}
    if not isinstance(name, str) or not name.strip():
        details["name"] = "Name is required"
    elif len(name.strip()) > NAME_MAX_LENGTH:
        details["name"] = f"Name must be at most {NAME_MAX_LENGTH} characters"
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        details["password"] = f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
    try:
        email = _normalize_email(email)
    except ValidationError as e:
        details.update(e.details)
    if details:
        raise ValidationError("Invalid sign-up data", details=details)

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=ROLE_USER,
    )
    db.session.add(user)
    commit_or_conflict("User", "email", email)
    logger.info("User signed up: %s", user.id)
    return user


def authenticate(email, password) -> User:
    """Check local credentials; raises AuthenticationError on any mismatch."""
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        raise AuthenticationError("Email and password are required")

    user = User.query.filter_by(email=email.strip().lower()).first()
    # Entra-only users have no password hash; verify_password returns False
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed sign-in for %s", email.strip().lower())
        raise AuthenticationError("Invalid email or password")
    return user


def get_user_by_id(user_id: str) -> User | None:
    """Find a user by ID."""
    return db.session.get(User, user_id)


# ═══════════════════════════════════════════════════════════════
# External identities (Entra ID)
# ═══════════════════════════════════════════════════════════════
def provision_external_user(entra_id: str, email: str | None, name: str | None) -> User:
    """Find the user behind an Entra ID object id, creating one on first login.

    An existing local account with the same email is linked instead of
    duplicated.
    """
    user = User.query.filter_by(entra_id=entra_id).first()
    if user:
        return user

    email = (email or "").strip().lower()
    if not email:
        raise AuthenticationError("Identity provider did not return an email")

    user = User.query.filter_by(email=email).first()
    if user:
        user.entra_id = entra_id
        logger.info("Linked Entra identity to existing user %s", user.id)
    else:
        user = User(
            name=(name or email.split("@")[0])[:NAME_MAX_LENGTH],
            email=email,
            entra_id=entra_id,
            role=ROLE_USER,
        )
        db.session.add(user)
        logger.info("Provisioned user from Entra ID: %s", email)
    commit_or_conflict("User", "entra_id", entra_id)
    return user


# ═══════════════════════════════════════════════════════════════
# Admin: user list and role management
# ═══════════════════════════════════════════════════════════════
def list_users(page: int = 1, limit: int = 20, search: str | None = None) -> dict:
    """Paginated user list, newest first, each with a progress rate.

    ``progressRate`` is resolved / total progress rows as a whole percentage;
    users without progress rows get 0.
    """
    q = User.query
    if search:
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern)))

    total = q.count()
    users = (
        q.order_by(User.created_at.desc(), User.id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    rates = {}
    if users:
        rows = (
            db.session.query(
                UserProgress.user_id,
                func.count(UserProgress.id),
                func.sum(case((UserProgress.status == STATUS_RESOLVED, 1), else_=0)),
            )
            .filter(UserProgress.user_id.in_([u.id for u in users]))
            .group_by(UserProgress.user_id)
            .all()
        )
        for user_id, total_rows, resolved in rows:
            rates[user_id] = ratio(resolved or 0, total_rows, places=0, scale=100)

    return {
        "users": [{**u.to_dict(), "progressRate": rates.get(u.id, 0)} for u in users],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    }


def update_user_role(actor: User, user_id: str, role: str) -> User:
    """Change a user's role. Only admins may do this; trainers get 403."""
    ensure_capability(actor, CAP_USERS_MANAGE_ROLES)

    if role not in ROLES:
        raise ValidationError(
            "Invalid role", details={"role": f"Must be one of: {', '.join(ROLES)}"}
        )
    if not user_id:
        raise ValidationError("User id is required", details={"id": "Required"})

    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError(resource="User", resource_id=user_id)

    old_role = user.role
    user.role = role
    db.session.commit()
    logger.info("Role of user %s changed %s → %s by %s", user.id, old_role, role, actor.id)
    return user


def create_admin(email: str, password: str, name: str | None = None) -> User:
    """Bootstrap an admin account, or promote an existing one (CLI only)."""
    existing = User.query.filter_by(email=_normalize_email(email)).first()
    if existing:
        existing.role = ROLE_ADMIN
        if password:
            existing.password_hash = hash_password(password)
        db.session.commit()
        logger.info("Promoted existing user %s to admin", existing.id)
        return existing

    user = signup(name or "Administrator", email, password)
    user.role = ROLE_ADMIN
    db.session.commit()
    return user
