"""
Access Control Gate — app-level before_request guard over every path.

Each request is put in one of three states from the identity resolved by
the JWT middleware:

    UNAUTHENTICATED          no valid session
    AUTHENTICATED_USER       session, role "user"
    AUTHENTICATED_PRIVILEGED session, role "admin" or "trainer"

and each path in one of three classes:

    PUBLIC   sign-in / sign-up pages, /api/auth/*, static, health, /403
    ADMIN    /admin* pages and /api/admin/*   → needs AUTHENTICATED_PRIVILEGED
    MEMBER   everything else                  → needs AUTHENTICATED_USER

Failures differ by what is missing. No session on a page redirects to the
sign-in page (with ``callbackUrl``); an insufficient role on a page
redirects to ``/403``. API paths get 401 / 403 JSON instead of redirects.

The gate only knows "privileged" vs "user"; admin-only mutations such as
role changes re-check the exact role in the service layer.
"""

import logging
from enum import Enum
from urllib.parse import quote

from flask import g, redirect, request

from onboarding.models.auth import PRIVILEGED_ROLES
from onboarding.utils.errors import E, api_error

logger = logging.getLogger(__name__)

SIGNIN_PATH = "/auth/signin"
FORBIDDEN_PATH = "/403"

PUBLIC_PREFIXES = (
    "/auth/",
    "/api/auth/",
    "/static/",
    "/api/health",
)
PUBLIC_PATHS = frozenset({"/auth", FORBIDDEN_PATH, "/favicon.ico", "/robots.txt"})

ADMIN_PREFIXES = ("/api/admin/",)
ADMIN_PAGE_ROOT = "/admin"


class AccessState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_USER = "authenticated_user"
    AUTHENTICATED_PRIVILEGED = "authenticated_privileged"


class PathClass(str, Enum):
    PUBLIC = "public"
    MEMBER = "member"
    ADMIN = "admin"


def classify_path(path: str) -> PathClass:
    """Return the access class for a request path."""
    if path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES):
        return PathClass.PUBLIC
    if path.startswith(ADMIN_PREFIXES):
        return PathClass.ADMIN
    if path == ADMIN_PAGE_ROOT or path.startswith(ADMIN_PAGE_ROOT + "/"):
        return PathClass.ADMIN
    return PathClass.MEMBER


def access_state(role: str | None) -> AccessState:
    """Map the resolved role (None when anonymous) to a gate state."""
    if role is None:
        return AccessState.UNAUTHENTICATED
    if role in PRIVILEGED_ROLES:
        return AccessState.AUTHENTICATED_PRIVILEGED
    return AccessState.AUTHENTICATED_USER


def _is_api(path: str) -> bool:
    return path.startswith("/api/")


def _signin_redirect():
    target = request.full_path if request.query_string else request.path
    return redirect(f"{SIGNIN_PATH}?callbackUrl={quote(target, safe='')}")


def evaluate(path: str, role: str | None):
    """Decide the outcome for *path* requested with *role*.

    Returns None when the request may proceed, otherwise a Flask response.
    Kept separate from the hook so the decision table is testable directly.
    """
    path_class = classify_path(path)
    if path_class is PathClass.PUBLIC:
        return None

    state = access_state(role)
    if state is AccessState.UNAUTHENTICATED:
        if _is_api(path):
            return api_error(E.UNAUTHENTICATED, "Authentication required")
        return _signin_redirect()

    if path_class is PathClass.ADMIN and state is not AccessState.AUTHENTICATED_PRIVILEGED:
        logger.warning("Access denied: role '%s' tried to reach admin path %s", role, path)
        if _is_api(path):
            return api_error(E.FORBIDDEN, "Insufficient permissions")
        return redirect(FORBIDDEN_PATH)

    return None


def init_access_gate(app):
    """Install the gate; must run after the JWT middleware hook."""

    @app.before_request
    def _access_gate():
        # CORS pre-flight carries no credentials
        if request.method == "OPTIONS":
            return None
        return evaluate(request.path, getattr(g, "current_user_role", None))

    logger.info("Access gate installed")
