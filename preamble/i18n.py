# preamble/i18n.py
import os

from flask import current_app, request

from .extensions import babel

DEFAULT_LOCALES = ["en", "es"]


def _select_locale():
    supported = current_app.config.get("SUPPORTED_LOCALES", DEFAULT_LOCALES)
    # explicit ?lang= wins, then the locale cookie, then the browser
    lang = request.args.get("lang") or request.cookies.get("locale")
    if lang in supported:
        return lang
    return request.accept_languages.best_match(supported) or "en"


def init_i18n(app, settings=None):
    app.config["SUPPORTED_LOCALES"] = getattr(settings, "SUPPORTED_LOCALES", None) or DEFAULT_LOCALES
    app.config.setdefault("BABEL_DEFAULT_LOCALE", "en")
    app.config.setdefault(
        "BABEL_TRANSLATION_DIRECTORIES",
        os.path.join(os.path.dirname(__file__), "translations"),
    )
    babel.init_app(app, locale_selector=_select_locale)
