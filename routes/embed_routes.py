# routes/embed_routes.py - public embed data API and the embeddable viewer page
from flask import Blueprint, current_app, jsonify, render_template, request, url_for

from services.access_gate import AccessGate
from services.errors import EmbedError

embed_bp = Blueprint("embed", __name__)


def _gate():
    return AccessGate(cors_mode=current_app.config.get("EMBED_CORS_MODE", "joined"))


@embed_bp.errorhandler(EmbedError)
def handle_embed_error(e):
    return jsonify(e.to_dict()), e.status_code


@embed_bp.route("/api/public/embed/<quiz_id>", methods=["GET"])
def quiz_data(quiz_id):
    """Serve quiz data to an embedding page if its origin is allowed."""
    origin = request.headers.get("Origin", "")
    decision = _gate().authorize(quiz_id, origin)

    response = jsonify({"quiz": decision.quiz})
    response.headers["Access-Control-Allow-Origin"] = decision.allow_origin
    response.headers["Access-Control-Allow-Methods"] = "GET"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    if not decision.unrestricted and current_app.config.get("EMBED_CORS_MODE") == "echo":
        response.headers["Vary"] = "Origin"
    return response


@embed_bp.route("/api/public/embed/<quiz_id>", methods=["POST"])
@embed_bp.route("/api/public/embed/<quiz_id>/domains", methods=["POST"])
def add_allowed_domain(quiz_id):
    """Restrict embedding of a quiz to an additional domain."""
    body = request.get_json(silent=True) or {}
    domain = body.get("domain") if isinstance(body, dict) else None
    _gate().register_allowed_domain(quiz_id, domain)
    return jsonify({"success": True})


@embed_bp.route("/embed/<quiz_id>", methods=["GET"])
def viewer(quiz_id):
    """Page loaded inside the third-party iframe; the widget fetches the data API."""
    return render_template(
        "embed/viewer.html",
        quiz_id=quiz_id,
        data_url=url_for("embed.quiz_data", quiz_id=quiz_id),
        advance_delay_ms=current_app.config.get("EMBED_ADVANCE_DELAY_MS", 1500),
        tick_interval_ms=current_app.config.get("EMBED_TICK_INTERVAL_MS", 1000),
    )
