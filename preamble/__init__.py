# preamble/__init__.py
import atexit
import logging
import time

from flask import Flask, g, jsonify, request

from .auth import auth_bp, current_user, init_oauth
from .config import Settings
from .i18n import init_i18n
from .routes.api import api_bp
from .routes.errors import register_error_handlers
from .services.db import DocumentStore
from .services.generation import DocumentGenerator
from .services.github import GitHubClient

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------- Logging ----------
def configure_logging(level: str = "INFO", filename: str | None = None) -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # only add our handlers once, create_app may run several times (tests)
    if not any(getattr(h, "_preamble", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler._preamble = True
        root.addHandler(handler)

    if filename and not any(isinstance(h, logging.FileHandler) for h in root.handlers):
        fh = logging.FileHandler(filename, encoding="utf-8")
        fh.setFormatter(logging.Formatter(_LOG_FORMAT))
        fh._preamble = True
        root.addHandler(fh)


# ---------- create app ----------
def create_app(settings=None, store=None, generator=None, github_client_factory=None) -> Flask:
    """
    Build the Flask app.

    Collaborators (document store, generator, GitHub client factory) are
    built from ``settings`` unless passed in.
    """
    if settings is None:
        from project_paths import load_env

        load_env()
        settings = Settings()
    settings.validate()

    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    app = Flask(__name__)
    app.secret_key = settings.SECRET_KEY
    app.config.update(
        SESSION_COOKIE_NAME=settings.SESSION_COOKIE_NAME,
        SESSION_COOKIE_SAMESITE=settings.SESSION_COOKIE_SAMESITE,
        SESSION_COOKIE_SECURE=settings.SESSION_COOKIE_SECURE,
        MAX_CONTENT_LENGTH=settings.MAX_UPLOAD_MB * 1024 * 1024,
    )

    # ---- Collaborators, one per process ----
    if store is None:
        store = DocumentStore(settings.DATABASE_URL, settings.DATABASE_PASSWORD, maxconn=settings.DB_POOL_MAX)
        atexit.register(store.close)
    if generator is None:
        generator = DocumentGenerator(settings)
    if github_client_factory is None:
        def github_client_factory(token):
            return GitHubClient(token, base_url=settings.GITHUB_API_URL, timeout=settings.GITHUB_TIMEOUT)

    app.extensions["preamble_settings"] = settings
    app.extensions["document_store"] = store
    app.extensions["document_generator"] = generator
    app.extensions["github_client_factory"] = github_client_factory

    # ---- Request timing logging ----
    @app.before_request
    def _start_timer():
        g._t0 = time.time()

    @app.after_request
    def _log_time(response):
        t0 = getattr(g, "_t0", None)
        if t0 is not None:
            dt = (time.time() - t0) * 1000
            if dt > SLOW_REQUEST_MS:
                logger.warning("SLOW %s %s %.1f ms", request.method, request.path, dt)
        return response

    # ---- i18n / OAuth / Blueprints ----
    init_i18n(app, settings)
    init_oauth(app, settings)
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp, url_prefix="/api")
    register_error_handlers(app)

    @app.get("/")
    def index():
        return jsonify({
            "service": "preamble",
            "version": __version__,
            "authenticated": current_user() is not None,
        })

    logger.info("preamble %s ready (model=%s)", __version__, settings.LLM_MODEL)
    return app
