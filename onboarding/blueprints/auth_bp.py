"""
Auth Blueprint — local credentials and Entra ID sign-in.

Endpoints:
  POST /api/auth/signup           — Create a local user (role "user")
  POST /api/auth/signin           — Email + password → session cookie + token
  POST /api/auth/signout          — Clear the session cookie
  GET  /api/auth/session          — Current user or null
  GET  /api/auth/entra/login      — Redirect to Microsoft Entra ID
  GET  /api/auth/entra/callback   — OIDC callback → session cookie → redirect

Every path here is public; the access gate lets it through unconditionally.
"""

import logging

from flask import Blueprint, g, jsonify, redirect, request, session, url_for

from onboarding.blueprints import json_body, safe_callback_url
from onboarding.services import sso_service, user_service
from onboarding.services.jwt_service import clear_session, issue_session, set_session_cookie
from onboarding.utils.cache_policy import NO_STORE, with_cache_policy

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

SIGNIN_PAGE = "/auth/signin"
_STATE_KEY = "entra_state"
_CALLBACK_KEY = "entra_callback_url"


# ═══════════════════════════════════════════════════════════════
# Local credentials
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/signup", methods=["POST"])
def signup():
    """
    Create a local-credential account.

    Body: { "name": "...", "email": "...", "password": "..." }
    """
    data = json_body()
    user = user_service.signup(data.get("name"), data.get("email"), data.get("password"))
    return jsonify({"success": True, "user": user.to_dict()}), 201


@auth_bp.route("/signin", methods=["POST"])
def signin():
    """
    Authenticate with email + password.

    Body: { "email": "...", "password": "..." }
    Sets the HttpOnly session cookie and returns the same token for API clients.
    """
    data = json_body()
    user = user_service.authenticate(data.get("email"), data.get("password"))

    tokens = issue_session(user)
    response = jsonify({**tokens, "user": user.to_dict()})
    set_session_cookie(response, tokens["access_token"])
    logger.info("User %s signed in", user.id)
    return response


@auth_bp.route("/signout", methods=["POST"])
def signout():
    response = jsonify({"success": True})
    clear_session(response)
    return response


@auth_bp.route("/session", methods=["GET"])
@with_cache_policy(NO_STORE)
def current_session():
    """Current user profile, or ``{"user": null}`` when anonymous."""
    user = g.get("current_user")
    return jsonify({"user": user.to_dict() if user else None})


# ═══════════════════════════════════════════════════════════════
# Microsoft Entra ID (OIDC)
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/entra/login", methods=["GET"])
def entra_login():
    """Start the OIDC flow; ``?callbackUrl=`` is restored after sign-in."""
    try:
        authorize_url, state = sso_service.build_authorize_url(
            url_for("auth.entra_callback", _external=True)
        )
    except sso_service.SSOError as e:
        return jsonify({"error": e.message}), e.status_code

    session[_STATE_KEY] = state
    session[_CALLBACK_KEY] = safe_callback_url(request.args.get("callbackUrl"))
    return redirect(authorize_url)


@auth_bp.route("/entra/callback", methods=["GET"])
def entra_callback():
    """Finish the OIDC flow and land the user on their original page."""
    expected_state = session.pop(_STATE_KEY, None)
    callback_url = safe_callback_url(session.pop(_CALLBACK_KEY, "/"))

    if request.args.get("error"):
        logger.warning("Entra ID returned error: %s", request.args.get("error_description"))
        return redirect(f"{SIGNIN_PAGE}?error=sso_failed")
    if not expected_state or request.args.get("state") != expected_state:
        logger.warning("Entra ID callback with invalid state")
        return redirect(f"{SIGNIN_PAGE}?error=invalid_state")

    try:
        user = sso_service.handle_callback(
            request.args.get("code"),
            url_for("auth.entra_callback", _external=True),
        )
    except sso_service.SSOError as e:
        logger.warning("Entra ID sign-in failed: %s", e.message)
        return redirect(f"{SIGNIN_PAGE}?error=sso_failed")

    response = redirect(callback_url)
    set_session_cookie(response, issue_session(user)["access_token"])
    return response
