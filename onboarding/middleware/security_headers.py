"""
Security headers for every response.

The checklist pages load only their own script and stylesheet, so the CSP
is strict: no inline script, no third-party origins. The sign-in form may
post to the Entra ID authority when SSO is configured.

HSTS is only sent when the session cookie is marked Secure, i.e. when the
deployment is known to be served over HTTPS.
"""

from onboarding.services.sso_service import AUTHORITY

CSP_DIRECTIVES = {
    "default-src": ["'self'"],
    "script-src": ["'self'"],
    "style-src": ["'self'", "'unsafe-inline'"],
    "img-src": ["'self'", "data:"],
    "connect-src": ["'self'"],
    "frame-ancestors": ["'none'"],
    "base-uri": ["'self'"],
    "form-action": ["'self'"],
}

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=()",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"


def build_csp(sso_enabled: bool) -> str:
    directives = {k: list(v) for k, v in CSP_DIRECTIVES.items()}
    if sso_enabled:
        directives["form-action"].append(AUTHORITY)
    return "; ".join(f"{name} {' '.join(values)}" for name, values in directives.items())


def init_security_headers(app):
    """Register the after_request hook; the CSP is computed once from config."""
    headers = dict(STATIC_HEADERS)
    headers["Content-Security-Policy"] = build_csp(bool(app.config.get("AZURE_AD_CLIENT_ID")))
    if app.config.get("SESSION_COOKIE_SECURE"):
        headers["Strict-Transport-Security"] = HSTS_VALUE

    @app.after_request
    def _add_security_headers(response):
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        response.headers.pop("Server", None)
        return response
