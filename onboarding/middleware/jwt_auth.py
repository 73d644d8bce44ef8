"""
JWT Auth Middleware — identity resolution for every request.

Reads the session token from ``Authorization: Bearer <token>`` or, for
browser requests, from the HttpOnly session cookie. On success sets:

    g.current_user       → User row (role re-read from the database)
    g.current_user_role  → "user" | "trainer" | "admin"

Invalid, expired or orphaned tokens leave the request anonymous; the access
gate decides what an anonymous request may reach.
"""

import logging

import jwt as pyjwt
from flask import current_app, g, request

from onboarding.models import db
from onboarding.models.auth import User
from onboarding.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that never need identity
JWT_SKIP_PREFIXES = (
    "/static/",
    "/api/health",
)


def _token_from_request() -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(current_app.config["SESSION_TOKEN_COOKIE"]) or None


def resolve_identity() -> User | None:
    """Return the user behind the current request's token, if any."""
    token = _token_from_request()
    if not token:
        return None
    try:
        payload = decode_access_token(token)
    except pyjwt.ExpiredSignatureError:
        logger.debug("Expired session token on %s", request.path)
        return None
    except pyjwt.InvalidTokenError:
        logger.info("Invalid session token on %s", request.path)
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None
    # Deleted users keep valid-looking tokens until expiry
    return db.session.get(User, user_id)


def init_jwt_middleware(app):
    """Register JWT identity resolution as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_user = None
        g.current_user_role = None

        for prefix in JWT_SKIP_PREFIXES:
            if request.path.startswith(prefix):
                return

        user = resolve_identity()
        if user is not None:
            g.current_user = user
            g.current_user_role = user.role
