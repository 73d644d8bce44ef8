"""
SSO Service — Microsoft Entra ID (Azure AD) OpenID Connect sign-in.

Enabled only when ``AZURE_AD_CLIENT_ID`` is configured. Flow:

  1. build_authorize_url()  → (url, state); caller stores state in the Flask session
  2. IdP redirects back with ?code=&state=
  3. handle_callback(code)  → User (found by entra_id / email, or provisioned)

The caller then issues the normal session cookie via jwt_service.
"""

import logging
import secrets
from urllib.parse import urlencode

import httpx
import jwt as pyjwt
from flask import current_app

from onboarding.services import user_service

logger = logging.getLogger(__name__)

AUTHORITY = "https://login.microsoftonline.com"
DEFAULT_SCOPES = "openid email profile"


# ═══════════════════════════════════════════════════════════════
# Exceptions
# ═══════════════════════════════════════════════════════════════
class SSOError(Exception):
    """Base SSO error."""
    def __init__(self, message, status_code=400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SSONotConfigured(SSOError):
    def __init__(self, msg="Entra ID sign-in is not configured"):
        super().__init__(msg, 404)


class SSOProviderError(SSOError):
    def __init__(self, msg="Identity provider returned an error"):
        super().__init__(msg, 502)


# ═══════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════
def is_enabled() -> bool:
    cfg = current_app.config
    return bool(cfg.get("AZURE_AD_CLIENT_ID") and cfg.get("AZURE_AD_TENANT_ID"))


def _endpoint(kind: str) -> str:
    tenant = current_app.config["AZURE_AD_TENANT_ID"]
    return f"{AUTHORITY}/{tenant}/oauth2/v2.0/{kind}"


# ═══════════════════════════════════════════════════════════════
# OIDC Flow
# ═══════════════════════════════════════════════════════════════
def build_authorize_url(redirect_uri: str) -> tuple[str, str]:
    """
    Build the Entra ID authorization URL.
    Returns (authorize_url, state); state must be stored in session.
    """
    if not is_enabled():
        raise SSONotConfigured()

    state = secrets.token_urlsafe(32)
    params = {
        "client_id": current_app.config["AZURE_AD_CLIENT_ID"],
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "scope": DEFAULT_SCOPES,
        "state": state,
        "nonce": secrets.token_urlsafe(16),
        "response_mode": "query",
    }
    return f"{_endpoint('authorize')}?{urlencode(params)}", state


def exchange_code(code: str, redirect_uri: str) -> dict:
    """Exchange the authorization code for the IdP token response."""
    try:
        resp = httpx.post(
            _endpoint("token"),
            data={
                "grant_type": "authorization_code",
                "client_id": current_app.config["AZURE_AD_CLIENT_ID"],
                "client_secret": current_app.config.get("AZURE_AD_CLIENT_SECRET") or "",
                "code": code,
                "redirect_uri": redirect_uri,
                "scope": DEFAULT_SCOPES,
            },
            timeout=15,
        )
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Entra ID token exchange failed: %s", e)
        raise SSOProviderError(f"Token exchange failed: {e}") from e


def extract_user_info(id_token: str | None) -> dict:
    """Read the identity claims from an id_token.

    The token arrives directly from the token endpoint over TLS, so its
    signature is not re-verified here.
    """
    if not id_token:
        raise SSOProviderError("No id_token in token response")
    try:
        payload = pyjwt.decode(id_token, options={"verify_signature": False})
    except pyjwt.InvalidTokenError as e:
        logger.warning("id_token decode failed: %s", e)
        raise SSOProviderError("Malformed id_token") from e

    return {
        "entra_id": payload.get("oid") or payload.get("sub"),
        "email": payload.get("email") or payload.get("preferred_username") or payload.get("upn"),
        "name": payload.get("name")
        or f"{payload.get('given_name', '')} {payload.get('family_name', '')}".strip(),
    }


def handle_callback(code: str, redirect_uri: str):
    """Complete the sign-in and return the local User."""
    if not is_enabled():
        raise SSONotConfigured()
    if not code:
        raise SSOError("Missing authorization code")

    token_data = exchange_code(code, redirect_uri)
    info = extract_user_info(token_data.get("id_token"))
    if not info["entra_id"]:
        raise SSOProviderError("id_token has no subject")

    user = user_service.provision_external_user(info["entra_id"], info["email"], info["name"])
    logger.info("Entra ID sign-in for user %s", user.id)
    return user
