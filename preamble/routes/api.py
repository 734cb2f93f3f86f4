# preamble/routes/api.py
import logging
from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from ..auth import current_access_token, current_user, login_required
from ..context import materialize_archive, materialize_github, parse_github_url
from ..errors import InvalidRequestError
from ..services.generation import DEFAULT_TONE, TONES
from ..services.github import resolve_token

log = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _ext(name):
    return current_app.extensions[name]


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidRequestError("body must be a JSON object")
    return payload


def _str_field(payload: dict, name: str) -> str:
    value = payload.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidRequestError(f"{name} must be a string")
    return value.strip()


def _tone(value) -> str:
    if value is not None and not isinstance(value, str):
        raise InvalidRequestError("tone must be a string")
    tone = (value or DEFAULT_TONE).strip().lower()
    if tone not in TONES:
        raise InvalidRequestError(f"unknown tone '{tone}', expected one of {', '.join(TONES)}")
    return tone


def _int_arg(name: str, default: int, lo: int, hi: int) -> int:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidRequestError(f"{name} must be an integer") from None
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

@api_bp.post("/generate/github")
def generate_from_github():
    payload = _json_body()
    url = _str_field(payload, "url")
    if not url:
        raise InvalidRequestError("url is required")
    tone = _tone(payload.get("tone"))
    owner, repo = parse_github_url(url)

    settings = _ext("preamble_settings")
    token = resolve_token(current_access_token(), settings.GITHUB_TOKEN)
    client = _ext("github_client_factory")(token)
    context = materialize_github(url, client)

    result = _ext("document_generator").generate_and_save(
        context,
        store=_ext("document_store"),
        user=current_user(),
        repo_name=f"{owner}/{repo}",
        tone=tone,
        metadata={"source": "github", "url": url, "context_chars": len(context)},
    )
    return jsonify(result.to_dict())


@api_bp.post("/generate/archive")
def generate_from_archive():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise InvalidRequestError("a ZIP file is required in the 'file' field")
    tone = _tone(request.form.get("tone"))

    data = upload.read()
    log.info("ZIP upload %s (%d bytes)", upload.filename, len(data))
    context = materialize_archive(data)

    result = _ext("document_generator").generate_and_save(
        context,
        store=_ext("document_store"),
        user=current_user(),
        repo_name=upload.filename,
        tone=tone,
        metadata={"source": "archive", "filename": upload.filename, "context_chars": len(context)},
    )
    return jsonify(result.to_dict())


# ---------------------------------------------------------------------------
# GitHub repo picker
# ---------------------------------------------------------------------------

@api_bp.get("/repos")
@login_required
def user_repos():
    page = _int_arg("page", 1, 1, 1000)
    per_page = _int_arg("per_page", 8, 1, 100)
    client = _ext("github_client_factory")(current_access_token())
    return jsonify(client.list_user_repos(page=page, per_page=per_page))


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

@api_bp.get("/history")
def history():
    user = current_user()
    if user is None:
        # anonymous history lives in the browser
        return jsonify([])
    return jsonify(_ext("document_store").list_documents(user["id"]))


@api_bp.get("/history/<doc_id>")
@login_required
def history_item(doc_id):
    return jsonify(_ext("document_store").get_document(current_user()["id"], doc_id))


@api_bp.put("/history/<doc_id>")
@login_required
def update_history_item(doc_id):
    payload = _json_body()
    content = payload.get("content")
    if not isinstance(content, str):
        raise InvalidRequestError("content must be a string")
    doc = _ext("document_store").update_document(current_user()["id"], doc_id, content)
    return jsonify(doc)


@api_bp.delete("/history/<doc_id>")
@login_required
def delete_history_item(doc_id):
    _ext("document_store").delete_document(current_user()["id"], doc_id)
    return jsonify({"deleted": doc_id})


@api_bp.get("/history/<doc_id>/download")
@login_required
def download_history_item(doc_id):
    doc = _ext("document_store").get_document(current_user()["id"], doc_id)
    buf = BytesIO((doc["content"] or "").encode("utf-8"))
    return send_file(
        buf,
        as_attachment=True,
        download_name="README.md",
        mimetype="text/markdown",
    )
