"""
Pages blueprint — HTML shells and client configuration.

Pages render server-side shells; data comes from the JSON API. Access is
decided by the access gate before any of these views run.

    /                    home (day progress cards)
    /day/<1-3>           checklist of a day
    /checklist/<id>      item detail
    /admin               dashboard          (admin / trainer)
    /admin/items         content management (admin / trainer)
    /admin/users         user list          (admin / trainer)
    /auth/signin         sign-in            (public)
    /auth/signup         sign-up            (public)
    /403                 forbidden          (public)
    /api/config          contact link for the help button
"""

from flask import Blueprint, abort, current_app, g, jsonify, render_template, request

from onboarding.blueprints import safe_callback_url
from onboarding.models.checklist import DAYS
from onboarding.services import sso_service
from onboarding.utils.cache_policy import CATALOG_READ, with_cache_policy

pages_bp = Blueprint("pages", __name__)


def _render(template, **context):
    return render_template(template, user=g.get("current_user"), **context)


@pages_bp.route("/")
def index():
    return _render("index.html", days=DAYS)


@pages_bp.route("/day/<int:day>")
def day_page(day):
    if day not in DAYS:
        abort(404)
    return _render("day.html", day=day)


@pages_bp.route("/checklist/<item_id>")
def checklist_page(item_id):
    return _render("checklist.html", item_id=item_id)


@pages_bp.route("/admin")
def admin_dashboard():
    return _render("admin.html", section="dashboard")


@pages_bp.route("/admin/items")
def admin_items():
    return _render("admin.html", section="items")


@pages_bp.route("/admin/users")
def admin_users():
    return _render("admin.html", section="users")


@pages_bp.route("/auth/signin")
def signin_page():
    return _render(
        "signin.html",
        callback_url=safe_callback_url(request.args.get("callbackUrl")),
        error=request.args.get("error"),
        entra_enabled=sso_service.is_enabled(),
    )


@pages_bp.route("/auth/signup")
def signup_page():
    return _render("signup.html")


@pages_bp.route("/403")
def forbidden_page():
    return _render("forbidden.html"), 403


@pages_bp.route("/api/config")
@with_cache_policy(CATALOG_READ)
def client_config():
    return jsonify({
        "contactUrl": current_app.config["CONTACT_URL"],
        "contactLabel": current_app.config["CONTACT_LABEL"],
    })
