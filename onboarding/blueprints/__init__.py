"""
Blueprint registry helpers shared by the API blueprints.
"""

from flask import current_app, request

from onboarding.core.exceptions import ValidationError


def json_body() -> dict:
    """Return the request's JSON object body or raise ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def page_args() -> tuple[int, int]:
    """Parse ``page`` / ``limit`` query params.

    Defaults come from USERS_PAGE_SIZE; ``limit`` is capped at
    USERS_MAX_PAGE_SIZE. Non-integers and values < 1 are rejected.
    """
    default_limit = current_app.config.get("USERS_PAGE_SIZE", 20)
    max_limit = current_app.config.get("USERS_MAX_PAGE_SIZE", 100)

    errors = {}
    values = {}
    for name, default in (("page", 1), ("limit", default_limit)):
        raw = request.args.get(name)
        if raw is None or raw == "":
            values[name] = default
            continue
        try:
            values[name] = int(raw)
        except (ValueError, TypeError):
            errors[name] = "Must be an integer"
            continue
        if values[name] < 1:
            errors[name] = "Must be >= 1"
    if errors:
        raise ValidationError("Invalid pagination parameters", details=errors)
    return values["page"], min(values["limit"], max_limit)


def safe_callback_url(url) -> str:
    """Only same-site relative paths are allowed as post-login targets."""
    if isinstance(url, str) and url.startswith("/") and not url.startswith("//"):
        return url
    return "/"
