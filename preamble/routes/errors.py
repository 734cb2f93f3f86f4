import logging

from flask import jsonify
from flask_babel import gettext as _
from werkzeug.exceptions import RequestEntityTooLarge

from ..errors import PreambleError, UpstreamError

log = logging.getLogger(__name__)


def _payload(kind: str, message: str, status: int):
    resp = jsonify({"error": kind, "message": message})
    resp.status_code = status
    return resp


def register_error_handlers(app):
    @app.errorhandler(PreambleError)
    def handle_preamble_error(err: PreambleError):
        if isinstance(err, UpstreamError) or err.status_code >= 500:
            log.error("%s: %s", err.kind, err)
        else:
            log.info("%s: %s", err.kind, err)
        return _payload(err.kind, _(err.user_message, **err.params), err.status_code)

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(err):
        limit = app.config.get("MAX_CONTENT_LENGTH") or 0
        return _payload(
            "too_large",
            _("Upload too large (limit %(mb)s MB)", mb=limit // (1024 * 1024)),
            413,
        )
