"""
Activity Logger Tests.

Test blocks:
  1. record() validation
  2. POST /api/logs
  3. Fire-and-forget dispatch
"""

import uuid

import pytest

from onboarding.core.exceptions import ValidationError
from onboarding.models.activity import ACTIONS, ActivityLog
from onboarding.services import activity_service
from onboarding.services.activity_service import ActivityDispatcher


# ═══════════════════════════════════════════════════════════════════════════
# Block 1: record
# ═══════════════════════════════════════════════════════════════════════════

class TestRecord:

    @pytest.mark.parametrize("action", ACTIONS)
    def test_every_known_action_is_stored(self, user, action):
        log = activity_service.record(user.id, action)
        assert log.id
        assert log.action == action
        assert log.checklist_item_id is None

    def test_item_and_metadata_stored(self, user, make_item):
        item = make_item()
        log = activity_service.record(user.id, "share_link", item.id, {"channel": "teams"})
        assert log.to_dict()["checklistItemId"] == item.id
        assert log.to_dict()["metadata"] == {"channel": "teams"}

    def test_unknown_action(self, user):
        with pytest.raises(ValidationError) as exc:
            activity_service.record(user.id, "click")
        assert "action" in exc.value.details
        assert ActivityLog.query.count() == 0

    def test_non_uuid_item_id(self, user):
        with pytest.raises(ValidationError) as exc:
            activity_service.record(user.id, "view", "item123")
        assert "checklistItemId" in exc.value.details

    def test_unknown_item_id(self, user):
        with pytest.raises(ValidationError):
            activity_service.record(user.id, "view", str(uuid.uuid4()))

    def test_metadata_must_be_object(self, user):
        with pytest.raises(ValidationError) as exc:
            activity_service.record(user.id, "view", metadata=["a"])
        assert "metadata" in exc.value.details


# ═══════════════════════════════════════════════════════════════════════════
# Block 2: POST /api/logs
# ═══════════════════════════════════════════════════════════════════════════

class TestLogsApi:

    def test_create_log(self, client, user, auth_headers, make_item):
        item = make_item()
        res = client.post(
            "/api/logs",
            json={"checklistItemId": item.id, "action": "contact_click", "metadata": {"from": "detail"}},
            headers=auth_headers(user),
        )
        assert res.status_code == 201
        data = res.get_json()
        assert data["userId"] == user.id
        assert data["action"] == "contact_click"
        assert data["metadata"] == {"from": "detail"}
        assert data["createdAt"]

    @pytest.mark.parametrize("body", [
        {"action": "explode"},
        {"action": "view", "checklistItemId": "not-a-uuid"},
        {"action": "view", "metadata": "text"},
        {},
    ])
    def test_invalid_body(self, client, user, auth_headers, body):
        res = client.post("/api/logs", json=body, headers=auth_headers(user))
        assert res.status_code == 400
        assert ActivityLog.query.count() == 0

    def test_requires_session(self, client):
        res = client.post("/api/logs", json={"action": "view"})
        assert res.status_code == 401

    def test_non_json_body_rejected(self, client, user, auth_headers):
        res = client.post("/api/logs", data="action=view", headers=auth_headers(user),
                          content_type="application/x-www-form-urlencoded")
        assert res.status_code == 415


# ═══════════════════════════════════════════════════════════════════════════
# Block 3: dispatch
# ═══════════════════════════════════════════════════════════════════════════

class TestDispatch:

    def test_inline_dispatch_writes_row(self, app, user):
        assert app.extensions["activity_dispatcher"].is_async is False
        assert activity_service.dispatch(user.id, "view") is None
        assert ActivityLog.query.one().action == "view"

    def test_failures_are_swallowed_and_logged(self, user, monkeypatch, caplog):
        def boom(*args, **kwargs):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(activity_service, "record", boom)
        activity_service.dispatch(user.id, "view")
        assert "Activity log write failed" in caplog.text

    def test_invalid_event_is_dropped(self, user):
        activity_service.dispatch(user.id, "not-an-action")
        assert ActivityLog.query.count() == 0

    def test_async_dispatch_runs_off_thread(self, app, monkeypatch):
        seen = []
        monkeypatch.setattr(
            activity_service, "record",
            lambda user_id, action, item_id=None, metadata=None: seen.append((user_id, action)),
        )
        # init_app re-registers the extension; restore the inline one afterwards
        monkeypatch.setitem(app.extensions, "activity_dispatcher", app.extensions["activity_dispatcher"])
        monkeypatch.setitem(app.config, "ACTIVITY_LOG_ASYNC", True)

        dispatcher = ActivityDispatcher(app)
        assert dispatcher.is_async
        future = dispatcher.submit("u1", "view")
        future.result(timeout=5)
        dispatcher.shutdown()
        assert seen == [("u1", "view")]

    def test_rebinding_shuts_down_previous_pool(self, app, monkeypatch):
        monkeypatch.setitem(app.extensions, "activity_dispatcher", app.extensions["activity_dispatcher"])
        monkeypatch.setitem(app.config, "ACTIVITY_LOG_ASYNC", True)

        dispatcher = ActivityDispatcher(app)
        old = dispatcher._executor
        dispatcher.init_app(app)
        try:
            assert dispatcher._executor is not old
            with pytest.raises(RuntimeError):
                old.submit(lambda: None)
        finally:
            dispatcher.shutdown()

    def test_rebinding_to_inline_drops_pool(self, app, monkeypatch):
        monkeypatch.setitem(app.extensions, "activity_dispatcher", app.extensions["activity_dispatcher"])
        monkeypatch.setitem(app.config, "ACTIVITY_LOG_ASYNC", True)
        dispatcher = ActivityDispatcher(app)
        old = dispatcher._executor

        monkeypatch.setitem(app.config, "ACTIVITY_LOG_ASYNC", False)
        dispatcher.init_app(app)
        assert dispatcher.is_async is False
        with pytest.raises(RuntimeError):
            old.submit(lambda: None)

    def test_dispatch_without_dispatcher_is_noop(self):
        from flask import Flask

        bare = Flask(__name__)
        with bare.app_context():
            assert activity_service.dispatch("u1", "view") is None
