# routes/share_routes.py - embed-code generator for quiz owners
from flask import Blueprint, abort, current_app, flash, render_template, request, url_for

from models import Quiz, db
from services.access_gate import AccessGate
from services.embed_code import build_embed_snippet
from services.errors import EmbedError

share_bp = Blueprint("share", __name__)


@share_bp.route("/quizzes/<quiz_id>/embed-code", methods=["GET", "POST"])
def embed_code(quiz_id):
    """Show the embed form; on POST optionally restrict to a domain and render the snippet."""
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        abort(404)

    snippet = None
    domain = ""
    if request.method == "POST":
        domain = request.form.get("domain", "").strip()
        if domain:
            gate = AccessGate(cors_mode=current_app.config.get("EMBED_CORS_MODE", "joined"))
            try:
                gate.register_allowed_domain(quiz_id, domain)
            except EmbedError as e:
                current_app.logger.error("Failed to save domain for quiz %s: %s", quiz_id, e.message)
                flash("Failed to save domain. Please try again.", "error")
                return render_template("share/embed_code.html", quiz=quiz, domain=domain, snippet=None), e.status_code
            # reload so the page lists the new domain
            db.session.refresh(quiz)

        snippet = build_embed_snippet(
            url_for("embed.viewer", quiz_id=quiz_id, _external=True),
            width=current_app.config.get("EMBED_FRAME_WIDTH", "100%"),
            height=current_app.config.get("EMBED_FRAME_HEIGHT", "600px"),
        )

    return render_template("share/embed_code.html", quiz=quiz, domain=domain, snippet=snippet)
