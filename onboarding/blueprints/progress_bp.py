"""
Progress blueprint — the caller's checklist status.

    PUT /api/progress/<item_id>        upsert {status, notes?}
    GET /api/progress/me               caller's rows
    GET /api/progress/me/summary       per-day completion for the caller
    GET /api/progress/user/<user_id>   another user's rows (self or admin/trainer)

Resolve / unresolve transitions emit a best-effort activity log after the
write has committed.
"""

import logging

from flask import Blueprint, jsonify

from onboarding.blueprints import json_body
from onboarding.core.exceptions import AuthorizationError, NotFoundError
from onboarding.middleware.permission_required import (
    CAP_PROGRESS_VIEW_ANY,
    CAP_PROGRESS_WRITE,
    current_user,
    has_capability,
    require_capability,
)
from onboarding.models.activity import ACTION_RESOLVE, ACTION_UNRESOLVE
from onboarding.models.checklist import STATUS_RESOLVED, STATUS_UNRESOLVED
from onboarding.services import activity_service, progress_service, user_service
from onboarding.utils.cache_policy import USER_STATE, with_cache_policy

logger = logging.getLogger(__name__)

progress_bp = Blueprint("progress", __name__, url_prefix="/api/progress")

_STATUS_ACTIONS = {
    STATUS_RESOLVED: ACTION_RESOLVE,
    STATUS_UNRESOLVED: ACTION_UNRESOLVE,
}


@progress_bp.route("/<item_id>", methods=["PUT"])
@require_capability(CAP_PROGRESS_WRITE)
def update_progress(item_id):
    """
    Body: { "status": "pending" | "resolved" | "unresolved", "notes": "..." }
    """
    user = current_user()
    data = json_body()
    row = progress_service.set_status(user.id, item_id, data.get("status"), data.get("notes"))
    body = row.to_dict()

    action = _STATUS_ACTIONS.get(row.status)
    if action:
        activity_service.dispatch(user.id, action, item_id=item_id)
    return jsonify(body)


@progress_bp.route("/me", methods=["GET"])
@require_capability(CAP_PROGRESS_WRITE)
@with_cache_policy(USER_STATE)
def my_progress():
    rows = progress_service.get_progress_for_user(current_user().id)
    return jsonify([r.to_dict() for r in rows])


@progress_bp.route("/me/summary", methods=["GET"])
@require_capability(CAP_PROGRESS_WRITE)
@with_cache_policy(USER_STATE)
def my_summary():
    return jsonify(progress_service.day_summary(current_user().id))


@progress_bp.route("/user/<user_id>", methods=["GET"])
@with_cache_policy(USER_STATE)
def user_progress(user_id):
    """Progress of *user_id*; trainers and admins may read anyone's."""
    caller = current_user()
    if caller.id != user_id and not has_capability(caller.role, CAP_PROGRESS_VIEW_ANY):
        raise AuthorizationError(required=[CAP_PROGRESS_VIEW_ANY])
    if user_service.get_user_by_id(user_id) is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    rows = progress_service.get_progress_for_user(user_id)
    return jsonify([r.to_dict() for r in rows])
