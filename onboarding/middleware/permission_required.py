"""
Capability Decorators — role-based checks at each endpoint boundary.

Roles map to an explicit, enumerated set of capabilities. Endpoints name
the capability they need; nothing inspects role names directly.

Usage:
    @bp.route("/api/admin/items", methods=["POST"])
    @require_capability(CAP_CATALOG_MANAGE)
    def create_item():
        ...

    # Inside a service, for checks the gate cannot express:
    ensure_capability(actor, CAP_USERS_MANAGE_ROLES)
"""

import functools
import logging

from flask import g, request

from onboarding.core.exceptions import AuthenticationError, AuthorizationError
from onboarding.models.auth import ROLE_ADMIN, ROLE_TRAINER, ROLE_USER

logger = logging.getLogger(__name__)

# ── Capabilities ─────────────────────────────────────────────────────────────
CAP_CHECKLIST_READ = "checklist.read"
CAP_PROGRESS_WRITE = "progress.write"
CAP_ACTIVITY_WRITE = "activity.write"
CAP_PROGRESS_VIEW_ANY = "progress.view_any"
CAP_CATALOG_MANAGE = "catalog.manage"
CAP_STATS_VIEW = "stats.view"
CAP_USERS_VIEW = "users.view"
CAP_USERS_MANAGE_ROLES = "users.manage_roles"

_MEMBER = {CAP_CHECKLIST_READ, CAP_PROGRESS_WRITE, CAP_ACTIVITY_WRITE}
_TRAINER = _MEMBER | {CAP_PROGRESS_VIEW_ANY, CAP_CATALOG_MANAGE, CAP_STATS_VIEW, CAP_USERS_VIEW}

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    ROLE_USER: frozenset(_MEMBER),
    ROLE_TRAINER: frozenset(_TRAINER),
    ROLE_ADMIN: frozenset(_TRAINER | {CAP_USERS_MANAGE_ROLES}),
}


def has_capability(role: str | None, capability: str) -> bool:
    return capability in ROLE_CAPABILITIES.get(role or "", frozenset())


def current_user():
    """Return the authenticated user or raise AuthenticationError."""
    user = getattr(g, "current_user", None)
    if user is None:
        raise AuthenticationError()
    return user


def ensure_capability(user, capability: str) -> None:
    """Raise AuthorizationError unless *user* holds *capability*."""
    if not has_capability(getattr(user, "role", None), capability):
        logger.warning(
            "User %s denied: role '%s' lacks '%s'",
            getattr(user, "id", None), getattr(user, "role", None), capability,
        )
        raise AuthorizationError(required=[capability])


def require_capability(capability: str):
    """
    Decorator: require an authenticated user whose role grants *capability*.

    401 without a session, 403 when the role lacks the capability. Errors
    are raised so the app-level handlers render them.
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user = current_user()
            if not has_capability(user.role, capability):
                logger.warning(
                    "Access denied: role '%s' missing '%s' on %s %s",
                    user.role, capability, request.method, request.path,
                )
                raise AuthorizationError(required=[capability])
            return f(*args, **kwargs)
        return decorated
    return decorator
