# preamble/services/github.py
import logging
from typing import Optional
from urllib.parse import quote

import requests

from ..errors import GitHubAPIError

log = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"


class GitHubClient:
    """Thin wrapper over the handful of GitHub REST endpoints we use."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API,
        timeout: float = 15,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "preamble",
        })
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        self.authenticated = bool(token)

    def _get(self, path: str, params: Optional[dict] = None):
        url = f"{self.base_url}{path}"
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise GitHubAPIError(None, f"Cannot reach GitHub: {e}") from e
        if r.status_code != 200:
            msg = r.reason or "request failed"
            if r.headers.get("content-type", "").startswith("application/json"):
                try:
                    msg = r.json().get("message") or msg
                except ValueError:
                    pass
            raise GitHubAPIError(r.status_code, msg)
        try:
            return r.json()
        except ValueError as e:
            raise GitHubAPIError(r.status_code, f"Invalid JSON from {path}: {e}") from e

    # ---- repositories ----

    def get_repo(self, owner: str, repo: str) -> dict:
        return self._get(f"/repos/{owner}/{repo}")

    def get_tree(self, owner: str, repo: str, tree_sha: str, recursive: bool = True) -> dict:
        params = {"recursive": "1"} if recursive else None
        return self._get(f"/repos/{owner}/{repo}/git/trees/{quote(tree_sha, safe='')}", params=params)

    def get_content(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> dict:
        params = {"ref": ref} if ref else None
        return self._get(f"/repos/{owner}/{repo}/contents/{quote(path)}", params=params)

    # ---- user ----

    def list_user_repos(self, page: int = 1, per_page: int = 8) -> list[dict]:
        """Repositories of the authenticated user, most recently updated first."""
        data = self._get(
            "/user/repos",
            params={
                "sort": "updated",
                "direction": "desc",
                "per_page": per_page,
                "page": page,
                "type": "all",
            },
        )
        return [
            {
                "id": r.get("id"),
                "name": r.get("name"),
                "full_name": r.get("full_name"),
                "private": r.get("private"),
                "html_url": r.get("html_url"),
                "description": r.get("description"),
                "language": r.get("language"),
                "updated_at": r.get("updated_at"),
            }
            for r in data
        ]


def resolve_token(session_token: Optional[str], fallback: Optional[str]) -> Optional[str]:
    """User session token first, then the static fallback token."""
    if session_token:
        log.info("GitHub auth: user session token")
        return session_token
    if fallback:
        log.info("GitHub auth: global token")
        return fallback
    log.warning("GitHub auth: no token, using unauthenticated requests")
    return None
