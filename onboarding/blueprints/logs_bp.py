"""
Logs blueprint — client-reported activity events.

    POST /api/logs   { checklistItemId?, action, metadata? } → 201 stored log
"""

from flask import Blueprint, jsonify

from onboarding.blueprints import json_body
from onboarding.middleware.permission_required import (
    CAP_ACTIVITY_WRITE,
    current_user,
    require_capability,
)
from onboarding.services import activity_service

logs_bp = Blueprint("logs", __name__, url_prefix="/api/logs")


@logs_bp.route("", methods=["POST"])
@require_capability(CAP_ACTIVITY_WRITE)
def create_log():
    data = json_body()
    log = activity_service.record(
        current_user().id,
        data.get("action"),
        item_id=data.get("checklistItemId"),
        metadata=data.get("metadata"),
    )
    return jsonify(log.to_dict()), 201
