"""
Checklist blueprint — read-only catalog for signed-in users.

    GET /api/checklist-items?day=1|2|3   active items of a day, ordered
    GET /api/checklist-items/count       active item count and ids per day
    GET /api/checklist-items/<id>        one active item (records a "view")
"""

import logging

from flask import Blueprint, jsonify, request

from onboarding.middleware.permission_required import (
    CAP_CHECKLIST_READ,
    current_user,
    require_capability,
)
from onboarding.models.activity import ACTION_VIEW
from onboarding.services import activity_service, catalog_service
from onboarding.utils.cache_policy import CATALOG_READ, NO_STORE, with_cache_policy

logger = logging.getLogger(__name__)

checklist_bp = Blueprint("checklist", __name__, url_prefix="/api/checklist-items")


@checklist_bp.route("", methods=["GET"])
@require_capability(CAP_CHECKLIST_READ)
@with_cache_policy(CATALOG_READ)
def list_items():
    day = catalog_service.parse_day(request.args.get("day"))
    items = catalog_service.list_items(day=day, active_only=True)
    return jsonify({"items": [i.to_dict() for i in items]})


@checklist_bp.route("/count", methods=["GET"])
@require_capability(CAP_CHECKLIST_READ)
@with_cache_policy(CATALOG_READ)
def count_items():
    return jsonify(catalog_service.count_by_day())


@checklist_bp.route("/<item_id>", methods=["GET"])
@require_capability(CAP_CHECKLIST_READ)
@with_cache_policy(NO_STORE)
def get_item(item_id):
    item = catalog_service.get_item(item_id)
    body = item.to_dict()
    activity_service.dispatch(current_user().id, ACTION_VIEW, item_id=item.id)
    return jsonify(body)
