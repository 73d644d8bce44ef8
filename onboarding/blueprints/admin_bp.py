"""
Admin blueprint — checklist content, dashboard statistics and user roles.

Endpoints (admin / trainer unless noted):
    GET    /api/admin/items?day=&status=     list items (active + inactive)
    POST   /api/admin/items                  create item
    PUT    /api/admin/items                  update item (body carries "id")
    DELETE /api/admin/items?id=              soft-delete (deactivate)
    GET    /api/admin/stats                  dashboard statistics
    GET    /api/admin/users?page=&limit=&search=
    PUT    /api/admin/users                  change role { id, role } (admin only)

The access gate already keeps plain users out of /api/admin/*; each route
still declares its capability so trainers and admins are told apart.
"""

import logging

from flask import Blueprint, jsonify, request

from onboarding.blueprints import json_body, page_args
from onboarding.middleware.permission_required import (
    CAP_CATALOG_MANAGE,
    CAP_STATS_VIEW,
    CAP_USERS_VIEW,
    current_user,
    require_capability,
)
from onboarding.services import catalog_service, stats_service, user_service
from onboarding.utils.cache_policy import NO_STORE, with_cache_policy

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# ═══════════════════════════════════════════════════════════════════════════
#  CHECKLIST ITEMS
# ═══════════════════════════════════════════════════════════════════════════

@admin_bp.route("/items", methods=["GET"])
@require_capability(CAP_CATALOG_MANAGE)
@with_cache_policy(NO_STORE)
def list_items():
    day = request.args.get("day")
    items = catalog_service.list_items(
        day=catalog_service.parse_day(day) if day else None,
        active_only=False,
        status=request.args.get("status") or None,
    )
    return jsonify({"items": [i.to_dict() for i in items]})


@admin_bp.route("/items", methods=["POST"])
@require_capability(CAP_CATALOG_MANAGE)
def create_item():
    item = catalog_service.create_item(json_body())
    return jsonify(item.to_dict()), 201


@admin_bp.route("/items", methods=["PUT"])
@require_capability(CAP_CATALOG_MANAGE)
def update_item():
    data = json_body()
    fields = {k: v for k, v in data.items() if k != "id"}
    item = catalog_service.update_item(data.get("id"), fields)
    return jsonify(item.to_dict())


@admin_bp.route("/items", methods=["DELETE"])
@require_capability(CAP_CATALOG_MANAGE)
def delete_item():
    catalog_service.deactivate_item(request.args.get("id"))
    return jsonify({"success": True})


# ═══════════════════════════════════════════════════════════════════════════
#  DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════

@admin_bp.route("/stats", methods=["GET"])
@require_capability(CAP_STATS_VIEW)
@with_cache_policy(NO_STORE)
def stats():
    return jsonify(stats_service.compute_stats())


# ═══════════════════════════════════════════════════════════════════════════
#  USERS
# ═══════════════════════════════════════════════════════════════════════════

@admin_bp.route("/users", methods=["GET"])
@require_capability(CAP_USERS_VIEW)
@with_cache_policy(NO_STORE)
def list_users():
    page, limit = page_args()
    search = (request.args.get("search") or "").strip() or None
    return jsonify(user_service.list_users(page=page, limit=limit, search=search))


@admin_bp.route("/users", methods=["PUT"])
@require_capability(CAP_USERS_VIEW)
def update_user_role():
    """Body: { "id": "<user id>", "role": "user" | "trainer" | "admin" }"""
    data = json_body()
    user = user_service.update_user_role(current_user(), data.get("id"), data.get("role"))
    return jsonify(user.to_dict())
