from typing import Optional

from flask import session


def _primary_email(emails) -> Optional[str]:
    if not isinstance(emails, list):
        return None
    for e in emails:
        if isinstance(e, dict) and e.get("primary") and e.get("verified"):
            return e.get("email")
    return None


def create_session_from_token(token: dict, profile: dict, emails=None):
    access_token = token.get("access_token")
    if not access_token:
        raise ValueError("Missing access token from GitHub")
    if not profile or profile.get("id") is None:
        raise ValueError("Missing GitHub profile")

    session["gh"] = {
        "access_token": access_token,
        "scope": token.get("scope", ""),
    }
    session["user"] = {
        "id": str(profile["id"]),
        "login": profile.get("login"),
        "name": profile.get("name") or profile.get("login"),
        "email": profile.get("email") or _primary_email(emails),
        "avatar_url": profile.get("avatar_url"),
    }
    session.permanent = True


def current_user() -> Optional[dict]:
    u = session.get("user")
    if isinstance(u, dict) and u.get("id"):
        return u
    return None


def current_access_token() -> Optional[str]:
    gh = session.get("gh")
    if isinstance(gh, dict):
        return gh.get("access_token") or None
    return None
