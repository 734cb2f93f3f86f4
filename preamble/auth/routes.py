import logging

from authlib.integrations.base_client.errors import OAuthError
from flask import Blueprint, jsonify, redirect, session, url_for

from ..extensions import oauth
from .github import register_github
from .tokens import create_session_from_token, current_user

log = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def init_oauth(app, settings):
    oauth.init_app(app)
    register_github(oauth, settings)


@auth_bp.get("/login")
def login():
    redirect_uri = url_for("auth.callback", _external=True)
    return oauth.github.authorize_redirect(redirect_uri)


@auth_bp.get("/auth/callback")
def callback():
    try:
        token = oauth.github.authorize_access_token()
        profile = oauth.github.get("user", token=token).json()
        emails = None
        if not profile.get("email"):
            emails = oauth.github.get("user/emails", token=token).json()
        create_session_from_token(token, profile, emails)
    except (OAuthError, ValueError) as e:
        log.warning("GitHub login failed: %s", e)
        session.clear()
        return redirect("/?login_error=1")
    log.info("Signed in GitHub user %s", session["user"].get("login"))
    return redirect("/")


@auth_bp.get("/logout")
def logout():
    session.clear()
    return redirect("/")


@auth_bp.get("/api/me")
def me():
    user = current_user()
    return jsonify({"authenticated": user is not None, "user": user})
