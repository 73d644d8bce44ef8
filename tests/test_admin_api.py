"""
Admin API Tests (/api/admin/*).

Test blocks:
  1. Gate and capability checks per role
  2. Checklist item management
  3. Users and role changes
  4. Dashboard statistics
"""

import pytest

from onboarding.models import db
from onboarding.models.auth import User
from onboarding.models.checklist import ChecklistItem

NEW_ITEM = {
    "day": 2,
    "category": "email",
    "title": "Configure Outlook",
    "summary": "Add your mailbox",
    "steps": ["Open Outlook", "Sign in"],
    "orderIndex": 1,
}


# ═══════════════════════════════════════════════════════════════════════════
# Block 1: access
# ═══════════════════════════════════════════════════════════════════════════

class TestAdminAccess:

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/admin/items"),
        ("post", "/api/admin/items"),
        ("get", "/api/admin/stats"),
        ("get", "/api/admin/users"),
        ("put", "/api/admin/users"),
    ])
    def test_plain_user_forbidden(self, client, user, auth_headers, method, path):
        res = getattr(client, method)(path, json={}, headers=auth_headers(user))
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"

    def test_anonymous_unauthenticated(self, client):
        res = client.get("/api/admin/items")
        assert res.status_code == 401

    @pytest.mark.parametrize("who", ["trainer", "admin"])
    def test_privileged_roles_allowed(self, client, auth_headers, request, who):
        res = client.get("/api/admin/items", headers=auth_headers(request.getfixturevalue(who)))
        assert res.status_code == 200
        assert res.headers["Cache-Control"] == "no-store"


# ═══════════════════════════════════════════════════════════════════════════
# Block 2: items
# ═══════════════════════════════════════════════════════════════════════════

class TestAdminItems:

    def test_create_item(self, client, trainer, auth_headers):
        res = client.post("/api/admin/items", json=NEW_ITEM, headers=auth_headers(trainer))
        assert res.status_code == 201
        data = res.get_json()
        assert data["title"] == "Configure Outlook"
        assert data["is_active"] is True
        assert db.session.get(ChecklistItem, data["id"]) is not None

    def test_create_invalid_item(self, client, trainer, auth_headers):
        res = client.post("/api/admin/items", json=dict(NEW_ITEM, day=9), headers=auth_headers(trainer))
        assert res.status_code == 400
        assert "day" in res.get_json()["details"]
        assert ChecklistItem.query.count() == 0

    def test_list_includes_inactive(self, client, trainer, auth_headers, make_item):
        make_item(title="on")
        make_item(title="off", is_active=False)
        res = client.get("/api/admin/items", headers=auth_headers(trainer))
        assert {i["title"] for i in res.get_json()["items"]} == {"on", "off"}

    def test_list_filters(self, client, trainer, auth_headers, make_item):
        make_item(day=1, title="d1")
        make_item(day=3, title="d3", is_active=False)
        headers = auth_headers(trainer)
        res = client.get("/api/admin/items?day=3&status=inactive", headers=headers)
        assert [i["title"] for i in res.get_json()["items"]] == ["d3"]
        res = client.get("/api/admin/items?status=bogus", headers=headers)
        assert res.status_code == 400

    def test_update_item(self, client, trainer, auth_headers, make_item):
        item = make_item(title="Old")
        res = client.put("/api/admin/items", json={"id": item.id, "title": "New"}, headers=auth_headers(trainer))
        assert res.status_code == 200
        assert res.get_json()["title"] == "New"
        assert res.get_json()["summary"] == item.summary

    def test_update_unknown_item(self, client, trainer, auth_headers):
        res = client.put("/api/admin/items", json={"id": "ghost", "title": "x"}, headers=auth_headers(trainer))
        assert res.status_code == 404

    def test_delete_soft_and_idempotent(self, client, admin, auth_headers, make_item):
        item = make_item()
        headers = auth_headers(admin)
        for _ in range(2):
            res = client.delete(f"/api/admin/items?id={item.id}", headers=headers)
            assert res.status_code == 200
            assert res.get_json() == {"success": True}
        db.session.expire_all()
        assert db.session.get(ChecklistItem, item.id).is_active is False

    def test_delete_unknown_item(self, client, admin, auth_headers):
        res = client.delete("/api/admin/items?id=ghost", headers=auth_headers(admin))
        assert res.status_code == 404


# ═══════════════════════════════════════════════════════════════════════════
# Block 3: users
# ═══════════════════════════════════════════════════════════════════════════

class TestAdminUsers:

    def test_list_users_paginated(self, client, trainer, make_user, auth_headers):
        for _ in range(3):
            make_user()
        res = client.get("/api/admin/users?page=1&limit=2", headers=auth_headers(trainer))
        assert res.status_code == 200
        data = res.get_json()
        assert len(data["users"]) == 2
        assert data["pagination"]["total"] == 4
        assert all("password_hash" not in u for u in data["users"])

    @pytest.mark.parametrize("query", ["page=0", "limit=abc", "page=-2"])
    def test_list_users_bad_paging(self, client, trainer, auth_headers, query):
        res = client.get(f"/api/admin/users?{query}", headers=auth_headers(trainer))
        assert res.status_code == 400

    def test_limit_is_capped(self, client, app, trainer, auth_headers):
        res = client.get("/api/admin/users?limit=100000", headers=auth_headers(trainer))
        assert res.get_json()["pagination"]["limit"] == app.config["USERS_MAX_PAGE_SIZE"]

    def test_admin_changes_role(self, client, admin, user, auth_headers):
        res = client.put("/api/admin/users", json={"id": user.id, "role": "trainer"}, headers=auth_headers(admin))
        assert res.status_code == 200
        assert res.get_json()["role"] == "trainer"
        db.session.expire_all()
        assert db.session.get(User, user.id).role == "trainer"

    def test_trainer_cannot_change_role(self, client, trainer, user, auth_headers):
        res = client.put("/api/admin/users", json={"id": user.id, "role": "admin"}, headers=auth_headers(trainer))
        assert res.status_code == 403
        db.session.expire_all()
        assert db.session.get(User, user.id).role == "user"

    def test_invalid_role(self, client, admin, user, auth_headers):
        res = client.put("/api/admin/users", json={"id": user.id, "role": "owner"}, headers=auth_headers(admin))
        assert res.status_code == 400
        assert "role" in res.get_json()["details"]

    def test_unknown_user(self, client, admin, auth_headers):
        res = client.put("/api/admin/users", json={"id": "ghost", "role": "user"}, headers=auth_headers(admin))
        assert res.status_code == 404

    def test_promotion_takes_effect_on_next_request(self, client, admin, user, auth_headers):
        user_headers = auth_headers(user)
        assert client.get("/api/admin/items", headers=user_headers).status_code == 403
        client.put("/api/admin/users", json={"id": user.id, "role": "trainer"}, headers=auth_headers(admin))
        # same token, role re-read from the database
        assert client.get("/api/admin/items", headers=user_headers).status_code == 200


# ═══════════════════════════════════════════════════════════════════════════
# Block 4: stats
# ═══════════════════════════════════════════════════════════════════════════

class TestAdminStats:

    def test_stats_shape(self, client, trainer, auth_headers):
        res = client.get("/api/admin/stats", headers=auth_headers(trainer))
        assert res.status_code == 200
        data = res.get_json()
        assert set(data) == {
            "totalUsers", "activeUsers", "completionRate",
            "topUnresolvedItems", "mostViewedItems",
        }
        assert data["totalUsers"] == 1
        assert res.headers["Cache-Control"] == "no-store"
