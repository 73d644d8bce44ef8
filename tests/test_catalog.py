"""
Checklist Catalog Tests.

Test blocks:
  1. list_items filtering and ordering
  2. create_item validation
  3. update_item / deactivate_item
  4. Read API for signed-in users (/api/checklist-items)
  5. Seed command
"""

import pytest

from onboarding.core.exceptions import NotFoundError, ValidationError
from onboarding.models import db
from onboarding.models.activity import ActivityLog
from onboarding.models.checklist import ChecklistItem
from onboarding.services import catalog_service, seed_service

VALID_ITEM = {
    "day": 1,
    "category": "login",
    "title": "T",
    "summary": "S",
    "steps": ["a", "b"],
    "orderIndex": 0,
}


# ═══════════════════════════════════════════════════════════════════════════
# Block 1: list_items
# ═══════════════════════════════════════════════════════════════════════════

class TestListItems:

    @pytest.mark.parametrize("day", [1, 2, 3])
    def test_only_active_items_of_day_sorted_by_order(self, make_item, day):
        make_item(day=day, order_index=5, title="late")
        make_item(day=day, order_index=1, title="early")
        make_item(day=day, order_index=3, title="inactive", is_active=False)
        make_item(day=(day % 3) + 1, order_index=0, title="other day")

        items = catalog_service.list_items(day=day, active_only=True)

        assert [i.title for i in items] == ["early", "late"]
        assert all(i.day == day and i.is_active for i in items)
        assert [i.order_index for i in items] == sorted(i.order_index for i in items)

    def test_empty_day_returns_empty_list(self):
        assert catalog_service.list_items(day=2) == []

    def test_all_days_sorted_by_day_then_order(self, make_item):
        make_item(day=2, order_index=0, title="d2")
        make_item(day=1, order_index=9, title="d1-late")
        make_item(day=1, order_index=0, title="d1")
        items = catalog_service.list_items()
        assert [i.title for i in items] == ["d1", "d1-late", "d2"]

    def test_status_filter(self, make_item):
        make_item(title="on")
        make_item(title="off", is_active=False)
        assert [i.title for i in catalog_service.list_items(active_only=False)] == ["on", "off"]
        assert [i.title for i in catalog_service.list_items(status="inactive")] == ["off"]
        assert [i.title for i in catalog_service.list_items(status="active")] == ["on"]

    def test_unknown_status_filter_rejected(self):
        with pytest.raises(ValidationError):
            catalog_service.list_items(status="archived")

    def test_count_by_day(self, make_item):
        a = make_item(day=1)
        make_item(day=1, is_active=False)
        c = make_item(day=3)
        counts = {row["day"]: row for row in catalog_service.count_by_day()}
        assert counts[1]["count"] == 1 and counts[1]["itemIds"] == [a.id]
        assert counts[2]["count"] == 0
        assert counts[3]["itemIds"] == [c.id]


# ═══════════════════════════════════════════════════════════════════════════
# Block 2: create_item
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateItem:

    def test_create_returns_persisted_item(self):
        item = catalog_service.create_item(dict(VALID_ITEM))
        assert item.id
        assert item.steps == ["a", "b"]
        assert item.is_active is True
        assert db.session.get(ChecklistItem, item.id) is not None

    @pytest.mark.parametrize("field,value", [
        ("day", 0),
        ("day", 4),
        ("day", "1"),
        ("day", True),
        ("category", ""),
        ("category", "x" * 51),
        ("title", "   "),
        ("title", "x" * 201),
        ("summary", ""),
        ("steps", []),
        ("steps", ["ok", ""]),
        ("steps", "not a list"),
        ("orderIndex", -1),
        ("orderIndex", 1.5),
        ("isActive", "yes"),
    ])
    def test_invalid_field_rejected(self, field, value):
        data = dict(VALID_ITEM, **{field: value})
        with pytest.raises(ValidationError) as exc:
            catalog_service.create_item(data)
        assert field in exc.value.details
        assert ChecklistItem.query.count() == 0

    def test_missing_fields_reported(self):
        with pytest.raises(ValidationError) as exc:
            catalog_service.create_item({"day": 1})
        assert {"category", "title", "summary", "steps", "orderIndex"} <= set(exc.value.details)

    def test_boundary_lengths_accepted(self):
        item = catalog_service.create_item(dict(VALID_ITEM, category="c" * 50, title="t" * 200))
        assert len(item.title) == 200

    def test_inactive_on_create(self):
        item = catalog_service.create_item(dict(VALID_ITEM, isActive=False))
        assert item.is_active is False


# ═══════════════════════════════════════════════════════════════════════════
# Block 3: update / deactivate
# ═══════════════════════════════════════════════════════════════════════════

class TestUpdateAndDeactivate:

    def test_partial_update_only_touches_supplied_fields(self, make_item):
        item = make_item(title="Old", summary="Keep me")
        updated = catalog_service.update_item(item.id, {"title": "New"})
        assert updated.title == "New"
        assert updated.summary == "Keep me"

    def test_partial_update_validates_supplied_fields(self, make_item):
        item = make_item()
        with pytest.raises(ValidationError) as exc:
            catalog_service.update_item(item.id, {"day": 7})
        assert "day" in exc.value.details

    def test_update_missing_item(self):
        with pytest.raises(NotFoundError):
            catalog_service.update_item("00000000-0000-0000-0000-000000000000", {"title": "x"})

    def test_deactivate_is_idempotent(self, make_item):
        item = make_item()
        catalog_service.deactivate_item(item.id)
        again = catalog_service.deactivate_item(item.id)
        assert again.is_active is False
        assert db.session.get(ChecklistItem, item.id) is not None

    def test_deactivate_missing_item(self):
        with pytest.raises(NotFoundError):
            catalog_service.deactivate_item("missing")

    def test_get_item_hides_inactive(self, make_item):
        item = make_item(is_active=False)
        with pytest.raises(NotFoundError):
            catalog_service.get_item(item.id)
        assert catalog_service.get_item(item.id, active_only=False).id == item.id


# ═══════════════════════════════════════════════════════════════════════════
# Block 4: /api/checklist-items
# ═══════════════════════════════════════════════════════════════════════════

class TestChecklistApi:

    def test_list_day(self, client, user, auth_headers, make_item):
        make_item(day=2, order_index=2, title="b")
        make_item(day=2, order_index=1, title="a")
        res = client.get("/api/checklist-items?day=2", headers=auth_headers(user))
        assert res.status_code == 200
        assert [i["title"] for i in res.get_json()["items"]] == ["a", "b"]
        assert "max-age=60" in res.headers["Cache-Control"]

    @pytest.mark.parametrize("day", ["", "0", "4", "one"])
    def test_invalid_day(self, client, user, auth_headers, day):
        res = client.get(f"/api/checklist-items?day={day}", headers=auth_headers(user))
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_requires_session(self, client):
        res = client.get("/api/checklist-items?day=1")
        assert res.status_code == 401

    def test_count(self, client, user, auth_headers, make_item):
        make_item(day=1)
        res = client.get("/api/checklist-items/count", headers=auth_headers(user))
        assert res.status_code == 200
        assert res.get_json()[0] == {"day": 1, "count": 1, "itemIds": [ChecklistItem.query.first().id]}

    def test_detail_records_view(self, client, user, auth_headers, make_item):
        item = make_item()
        res = client.get(f"/api/checklist-items/{item.id}", headers=auth_headers(user))
        assert res.status_code == 200
        assert res.get_json()["id"] == item.id
        log = ActivityLog.query.one()
        assert (log.user_id, log.action, log.checklist_item_id) == (user.id, "view", item.id)

    def test_every_detail_request_reaches_the_server(self, client, user, auth_headers, make_item):
        item = make_item()
        for _ in range(2):
            res = client.get(f"/api/checklist-items/{item.id}", headers=auth_headers(user))
            assert res.headers["Cache-Control"] == "no-store"
        assert ActivityLog.query.count() == 2

    def test_detail_of_inactive_item_is_404(self, client, user, auth_headers, make_item):
        item = make_item(is_active=False)
        res = client.get(f"/api/checklist-items/{item.id}", headers=auth_headers(user))
        assert res.status_code == 404
        assert ActivityLog.query.count() == 0

    def test_client_config(self, client, user, auth_headers, app):
        res = client.get("/api/config", headers=auth_headers(user))
        assert res.get_json() == {
            "contactUrl": app.config["CONTACT_URL"],
            "contactLabel": app.config["CONTACT_LABEL"],
        }


# ═══════════════════════════════════════════════════════════════════════════
# Block 5: Seed
# ═══════════════════════════════════════════════════════════════════════════

class TestSeed:

    def test_seed_is_idempotent(self):
        first = seed_service.seed_default_items()
        db.session.commit()
        second = seed_service.seed_default_items()
        db.session.commit()
        assert first == len(seed_service.DEFAULT_ITEMS)
        assert second == 0
        assert {i.day for i in ChecklistItem.query.all()} == {1, 2, 3}

    def test_seed_cli(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["seed-checklist"])
        assert result.exit_code == 0
        assert "Seeded" in result.output
