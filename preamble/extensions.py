"""
Process-wide Flask extension objects.

``oauth`` gets its ``github`` remote from ``auth.github.register_github``
when ``init_oauth`` runs; ``babel`` is bound by ``i18n.init_i18n`` with the
request locale selector. The GitHub REST client, document store and
generator are per-app and live in ``app.extensions`` instead.
"""
from authlib.integrations.flask_client import OAuth
from flask_babel import Babel

oauth = OAuth()
babel = Babel()

__all__ = ["babel", "oauth"]
