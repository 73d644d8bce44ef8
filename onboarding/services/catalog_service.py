"""Checklist catalog service — item listing, validation and admin CRUD.

Items are never hard-deleted; ``deactivate_item`` flips ``is_active`` so
progress rows and activity logs keep pointing at a real row.

Request bodies use camelCase (``orderIndex``, ``isActive``); snake_case
keys are accepted too so seed data and model dicts round-trip.
"""
import logging

from onboarding.core.exceptions import NotFoundError, ValidationError
from onboarding.models import db
from onboarding.models.checklist import DAYS, ChecklistItem

logger = logging.getLogger(__name__)

CATEGORY_MAX_LENGTH = 50
TITLE_MAX_LENGTH = 200

ITEM_STATUS_ACTIVE = "active"
ITEM_STATUS_INACTIVE = "inactive"

# request key → model attribute
_FIELD_ALIASES = {
    "day": "day",
    "category": "category",
    "title": "title",
    "summary": "summary",
    "steps": "steps",
    "notes": "notes",
    "orderIndex": "order_index",
    "order_index": "order_index",
    "isActive": "is_active",
    "is_active": "is_active",
}
_REQUIRED = ("day", "category", "title", "summary", "steps", "order_index")


# ── Validation ───────────────────────────────────────────────────────────


def parse_day(value, field="day"):
    """Coerce a query/body day value to 1, 2 or 3; raise ValidationError otherwise."""
    if isinstance(value, bool):
        raise ValidationError("Invalid day", details={field: "Day must be 1, 2 or 3"})
    try:
        day = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid day", details={field: "Day must be 1, 2 or 3"})
    if day not in DAYS or str(value).strip() != str(day):
        raise ValidationError("Invalid day", details={field: "Day must be 1, 2 or 3"})
    return day


def _non_empty_str(value, max_length=None):
    if not isinstance(value, str) or not value.strip():
        return "Must be a non-empty string"
    if max_length and len(value.strip()) > max_length:
        return f"Must be at most {max_length} characters"
    return None


def _validate_field(attr, value):
    """Return (clean_value, error_message)."""
    if attr == "day":
        if isinstance(value, bool) or not isinstance(value, int) or value not in DAYS:
            return None, "Day must be 1, 2 or 3"
        return value, None
    if attr == "category":
        err = _non_empty_str(value, CATEGORY_MAX_LENGTH)
        return (None, err) if err else (value.strip(), None)
    if attr == "title":
        err = _non_empty_str(value, TITLE_MAX_LENGTH)
        return (None, err) if err else (value.strip(), None)
    if attr == "summary":
        err = _non_empty_str(value)
        return (None, err) if err else (value.strip(), None)
    if attr == "steps":
        if not isinstance(value, list) or not value:
            return None, "Steps must be a non-empty list"
        if any(not isinstance(s, str) or not s.strip() for s in value):
            return None, "Every step must be a non-empty string"
        return [s.strip() for s in value], None
    if attr == "notes":
        if value is None:
            return None, None
        if not isinstance(value, str):
            return None, "Notes must be a string"
        return value.strip() or None, None
    if attr == "order_index":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            return None, "Order index must be an integer >= 0"
        return value, None
    if attr == "is_active":
        if not isinstance(value, bool):
            return None, "isActive must be a boolean"
        return value, None
    return None, "Unknown field"


def validate_item_fields(data, partial=False) -> dict:
    """Validate a create/update body and return model-attribute → value.

    With ``partial=True`` only supplied fields are checked and returned.
    Unknown keys are ignored.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    supplied = {}
    for key, attr in _FIELD_ALIASES.items():
        if key in data:
            supplied[attr] = (key, data[key])

    errors = {}
    if not partial:
        for attr in _REQUIRED:
            if attr not in supplied:
                key = next(k for k, a in _FIELD_ALIASES.items() if a == attr)
                errors[key] = "Required"

    clean = {}
    for attr, (key, value) in supplied.items():
        value, err = _validate_field(attr, value)
        if err:
            errors[key] = err
        else:
            clean[attr] = value

    if errors:
        raise ValidationError("Invalid checklist item", details=errors)
    if not partial:
        clean.setdefault("is_active", True)
    return clean


# ── Queries ──────────────────────────────────────────────────────────────


def list_items(day=None, active_only=True, status=None):
    """Items filtered by day and active flag, ordered by (day, order_index).

    ``status`` is the admin filter (``active`` / ``inactive``) and overrides
    ``active_only``.
    """
    q = ChecklistItem.query
    if day is not None:
        q = q.filter(ChecklistItem.day == day)
    if status == ITEM_STATUS_ACTIVE:
        q = q.filter(ChecklistItem.is_active.is_(True))
    elif status == ITEM_STATUS_INACTIVE:
        q = q.filter(ChecklistItem.is_active.is_(False))
    elif status is not None:
        raise ValidationError(
            "Invalid status filter", details={"status": "Must be 'active' or 'inactive'"}
        )
    elif active_only:
        q = q.filter(ChecklistItem.is_active.is_(True))
    return q.order_by(ChecklistItem.day, ChecklistItem.order_index, ChecklistItem.id).all()


def get_item(item_id, active_only=True):
    """Return one item; inactive items count as missing unless ``active_only=False``."""
    item = db.session.get(ChecklistItem, item_id) if item_id else None
    if not item or (active_only and not item.is_active):
        raise NotFoundError(resource="ChecklistItem", resource_id=item_id)
    return item


def count_by_day():
    """Active item count per day, with the ids, for the day progress cards."""
    rows = (
        db.session.query(ChecklistItem.day, ChecklistItem.id)
        .filter(ChecklistItem.is_active.is_(True))
        .order_by(ChecklistItem.day, ChecklistItem.order_index, ChecklistItem.id)
        .all()
    )
    by_day = {d: [] for d in DAYS}
    for day, item_id in rows:
        by_day[day].append(item_id)
    return [{"day": d, "count": len(ids), "itemIds": ids} for d, ids in by_day.items()]


# ── Mutations ────────────────────────────────────────────────────────────


def create_item(data):
    """Validate and persist a new checklist item."""
    fields = validate_item_fields(data)
    item = ChecklistItem(**fields)
    db.session.add(item)
    db.session.commit()
    logger.info("Checklist item created: %s (day %s)", item.id, item.day)
    return item


def update_item(item_id, data):
    """Apply a partial update; only supplied fields are validated."""
    if not item_id:
        raise ValidationError("Item id is required", details={"id": "Required"})
    fields = validate_item_fields(data, partial=True)
    item = db.session.get(ChecklistItem, item_id)
    if not item:
        raise NotFoundError(resource="ChecklistItem", resource_id=item_id)

    for attr, value in fields.items():
        setattr(item, attr, value)
    db.session.commit()
    logger.info("Checklist item updated: %s (%s)", item.id, ", ".join(sorted(fields)) or "no fields")
    return item


def deactivate_item(item_id):
    """Soft-delete an item. Calling it again on an inactive item is a no-op."""
    if not item_id:
        raise ValidationError("Item id is required", details={"id": "Required"})
    item = db.session.get(ChecklistItem, item_id)
    if not item:
        raise NotFoundError(resource="ChecklistItem", resource_id=item_id)
    if item.is_active:
        item.is_active = False
        db.session.commit()
        logger.info("Checklist item deactivated: %s", item.id)
    return item
