"""Explicit HTTP cache policy for read endpoints.

Each endpoint declares its own policy instead of relying on a global
default; the policy becomes the ``Cache-Control`` header.

Usage
-----
    CATALOG_READ = CachePolicy(max_age=60)

    @bp.route("/api/checklist-items")
    @with_cache_policy(CATALOG_READ)
    def list_items():
        ...
"""

from __future__ import annotations

import functools
from dataclasses import dataclass

from flask import make_response


@dataclass(frozen=True)
class CachePolicy:
    """``max_age`` in seconds; 0 with ``no_store`` disables caching entirely."""

    max_age: int = 0
    private: bool = True
    must_revalidate: bool = False
    no_store: bool = False

    def header_value(self) -> str:
        if self.no_store:
            return "no-store"
        parts = ["private" if self.private else "public", f"max-age={self.max_age}"]
        if self.must_revalidate:
            parts.append("must-revalidate")
        return ", ".join(parts)


# Content changes rarely; progress and admin data must be fresh
CATALOG_READ = CachePolicy(max_age=60)
USER_STATE = CachePolicy(max_age=0, must_revalidate=True)
NO_STORE = CachePolicy(no_store=True)


def with_cache_policy(policy: CachePolicy):
    """Decorator: set ``Cache-Control`` on successful responses only."""
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            response = make_response(f(*args, **kwargs))
            if response.status_code < 400:
                response.headers["Cache-Control"] = policy.header_value()
            return response
        return decorated
    return decorator
