"""Shared helpers for services and blueprints.

utcnow:               timezone-aware "now" used for every timestamp column
isoformat:            None-safe datetime → ISO string for to_dict()
is_uuid:              format check for client-supplied ids
commit_or_conflict:   commit the session, mapping unique violations to ConflictError
ratio:                numerator / denominator rounded half-up (0 when empty)
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.exc import IntegrityError

from onboarding.core.exceptions import ConflictError
from onboarding.models import db

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value):
    return value.isoformat() if value else None


def is_uuid(value) -> bool:
    """True when *value* is a canonical UUID string."""
    if not isinstance(value, str):
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def commit_or_conflict(resource: str, field: str, value: str | None = None):
    """Commit the current session; a unique-constraint violation becomes ConflictError.

    Usage::

        db.session.add(user)
        commit_or_conflict("User", "email", email)
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit (%s.%s): %s", resource, field, exc.orig)
        raise ConflictError(resource, field, value) from exc


def ratio(numerator: int, denominator: int, places: int = 2, scale: int = 1):
    """``numerator * scale / denominator`` rounded half-up to *places* decimals.

    Exact .5 cases round away from zero (1 of 8 → 0.13, or 13 with
    ``scale=100, places=0``). Returns 0 when *denominator* is 0, and an int
    when ``places == 0``.
    """
    if not denominator:
        return 0
    exact = Decimal(numerator * scale) / Decimal(denominator)
    rounded = exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)
