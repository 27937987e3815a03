# app.py - application factory for the embeddable quiz service
import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify, render_template, request
from flask_migrate import Migrate
from flask_wtf import CSRFProtect
from flask_wtf.csrf import generate_csrf
from sqlalchemy import inspect, text

from config import Config
from models import db

# Import blueprints
from routes.embed_routes import embed_bp
from routes.share_routes import share_bp

# Paths that third-party pages may frame or read cross-origin
EMBED_PATH_PREFIXES = ("/embed/", "/api/public/")


def _is_embed_path(path: str) -> bool:
    return path.startswith(EMBED_PATH_PREFIXES)


def create_app(test_config: dict | None = None):
    # Load environment variables from .env when running locally
    load_dotenv()
    app = Flask(__name__, static_folder="static", template_folder="templates",
                instance_path=Config.INSTANCE_PATH)
    app.config.from_object(Config)

    # Allow overriding config for testing
    if test_config:
        app.config.update(test_config)
        # Disable CSRF in tests to simplify form posting
        if app.config.get('TESTING'):
            app.config.setdefault('WTF_CSRF_ENABLED', False)

    # SQLite in-memory (used by tests) doesn't support certain pool options; prune them
    uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
    if uri.startswith('sqlite') and (':memory:' in uri):
        engine_opts = dict(app.config.get('SQLALCHEMY_ENGINE_OPTIONS', {}))
        # These options are for QueuePool and not meaningful for StaticPool used by memory SQLite
        for k in ('pool_timeout', 'pool_recycle'):
            engine_opts.pop(k, None)
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = engine_opts

    # Initialize extensions
    db.init_app(app)
    Migrate(app, db)
    csrf = CSRFProtect(app)
    # The public JSON API is called by scripts and embedding pages, not by our forms
    csrf.exempt(embed_bp)

    # Migration / schema safety:
    #  - For local SQLite: auto-create tables if missing.
    #  - For Postgres/other: if tables missing, attempt alembic upgrade once.
    with app.app_context():
        inspector = inspect(db.engine)
        uri = app.config['SQLALCHEMY_DATABASE_URI']
        has_quiz = inspector.has_table('quiz')

        if uri.startswith('sqlite'):
            if not has_quiz:
                db.create_all()
                app.logger.info("(Local) SQLite database initialized.")
        elif not has_quiz:
            try:
                from flask_migrate import upgrade
                app.logger.info("[migration-check] Detected missing tables; running alembic upgrade...")
                upgrade()
                if not inspect(db.engine).has_table('quiz'):
                    raise RuntimeError("Migration upgrade ran but required tables still missing.")
            except Exception as e:
                # Fail fast so 500 errors don't occur mid-request later
                raise RuntimeError(f"Database schema incomplete and automatic migration failed: {e}")

    # Register blueprints
    app.register_blueprint(embed_bp)
    app.register_blueprint(share_bp)

    # Inject csrf_token() helper for templates without FlaskForm
    @app.context_processor
    def inject_csrf_token():
        return dict(csrf_token=generate_csrf)

    # Error handlers
    @app.errorhandler(404)
    def not_found(e):
        if request.path.startswith("/api/"):
            return jsonify({"error": "Not found"}), 404
        return render_template("404.html"), 404

    @app.errorhandler(500)
    def internal_error(e):
        app.logger.exception("Unhandled server error")
        if request.path.startswith("/api/"):
            return jsonify({"error": "Internal server error"}), 500
        return render_template("500.html"), 500

    # Health check endpoint for uptime monitoring
    @app.route('/healthz', methods=['GET'])
    def healthz():
        status = {"status": "ok", "db": False}
        try:
            db.session.execute(text("SELECT 1"))
            status["db"] = True
        except Exception as e:
            app.logger.warning("healthz db ping failed: %s", str(e))
        # Set HEALTHZ_STRICT=1 to return 503 when db is unreachable
        strict = os.environ.get("HEALTHZ_STRICT", "0") == "1"
        code = 200 if (status["db"] or not strict) else 503
        return status, code

    # Basic security headers; embed surfaces must stay frameable from any site
    @app.after_request
    def set_security_headers(resp):
        resp.headers.setdefault('X-Content-Type-Options', 'nosniff')
        resp.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
        if _is_embed_path(request.path):
            resp.headers['Content-Security-Policy'] = "frame-ancestors *;"
            resp.headers.pop('X-Frame-Options', None)
        else:
            resp.headers.setdefault('X-Frame-Options', 'DENY')
            resp.headers.setdefault('Content-Security-Policy', "default-src 'self'; style-src 'self' 'unsafe-inline'; script-src 'self' 'unsafe-inline'; frame-ancestors 'none';")
        return resp

    # Respect X-Forwarded-Proto for HTTPS URLs behind a proxy
    @app.before_request
    def _detect_proxy_scheme():
        xf_proto = request.headers.get('X-Forwarded-Proto')
        if xf_proto:
            request.environ['wsgi.url_scheme'] = xf_proto

    # Basic logging configuration with LOG_LEVEL override
    log_level_name = os.getenv('LOG_LEVEL', 'INFO').upper()
    level = getattr(logging, log_level_name, logging.INFO)
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s %(message)s')
    app.logger.info("startup log_level=%s db_url_scheme=%s cors_mode=%s", log_level_name,
                    app.config['SQLALCHEMY_DATABASE_URI'].split(':')[0], app.config.get('EMBED_CORS_MODE'))

    return app

"""Application factory only module.

Production: `gunicorn wsgi:app` (see wsgi.py).
Local dev: `python wsgi.py` or `flask --app wsgi run`.
Tests: import create_app and instantiate explicitly; no server starts on import.
"""
