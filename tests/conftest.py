from __future__ import annotations

import base64
import io
import uuid
import zipfile
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from preamble import create_app
from preamble.config import Settings
from preamble.errors import DocumentNotFoundError, GitHubAPIError, StorageError
from preamble.services.generation import DocumentGenerator

TEST_ENV = {
    "SECRET_KEY": "test-secret",
    "LLM_API_KEY": "test-llm-key",
    "DATABASE_URL": "postgresql://preamble@localhost/preamble_test",
    "GITHUB_CLIENT_ID": "client-id",
    "GITHUB_CLIENT_SECRET": "client-secret",
    "SESSION_COOKIE_SECURE": "false",
    "APP_URL": "https://preamble.test",
}

TEST_USER = {
    "id": "4242",
    "login": "octocat",
    "name": "The Octocat",
    "email": "octocat@example.com",
    "avatar_url": "https://avatars.example.com/u/4242",
}


def make_zip(entries) -> bytes:
    """entries: list of (name, str | bytes); names ending in '/' become directories."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries:
            if name.endswith("/"):
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, data)
    return buf.getvalue()


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient; records every call."""

    def __init__(self, files=None, extra_tree=None, failing=(), default_branch="main", truncated=False, repos=None):
        self.files = dict(files or {})
        self.extra_tree = list(extra_tree or [])
        self.failing = set(failing)
        self.default_branch = default_branch
        self.truncated = truncated
        self.repos = list(repos or [])
        self.calls = []

    def get_repo(self, owner, repo):
        self.calls.append(("get_repo", owner, repo))
        return {"default_branch": self.default_branch, "full_name": f"{owner}/{repo}"}

    def get_tree(self, owner, repo, tree_sha, recursive=True):
        self.calls.append(("get_tree", owner, repo, tree_sha))
        tree = [{"path": p, "type": "blob"} for p in self.files]
        return {"sha": "abc123", "tree": tree + self.extra_tree, "truncated": self.truncated}

    def get_content(self, owner, repo, path, ref=None):
        self.calls.append(("get_content", path))
        if path in self.failing:
            raise GitHubAPIError(403, "rate limited")
        encoded = base64.b64encode(self.files[path].encode("utf-8")).decode("ascii")
        # GitHub wraps base64 at 60 chars
        wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
        return {"type": "file", "path": path, "encoding": "base64", "content": wrapped}

    def list_user_repos(self, page=1, per_page=8):
        self.calls.append(("list_user_repos", page, per_page))
        start = (page - 1) * per_page
        return self.repos[start:start + per_page]


class FakeCompletions:
    def __init__(self, reply="# Project\n\nA README.", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeLLMClient:
    def __init__(self, **kwargs):
        self.completions = FakeCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)


class FakeStore:
    """Owner-scoped in-memory replacement for DocumentStore."""

    def __init__(self, fail_on_save=False):
        self.fail_on_save = fail_on_save
        self.users = {}
        self.docs = {}

    def save_document(self, user, repo_name, content, metadata=None):
        if self.fail_on_save:
            raise StorageError("connection refused")
        u = self.users.setdefault(user["id"], {**user, "generation_count": 0})
        u["generation_count"] += 1
        doc = {
            "id": str(uuid.uuid4()),
            "user_id": user["id"],
            "repo_name": repo_name,
            "content": content,
            "metadata": metadata or {},
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self.docs[doc["id"]] = doc
        return dict(doc)

    def _owned(self, user_id, doc_id):
        doc = self.docs.get(doc_id)
        if doc is None or doc["user_id"] != user_id:
            raise DocumentNotFoundError(doc_id)
        return doc

    def list_documents(self, user_id):
        docs = [d for d in self.docs.values() if d["user_id"] == user_id]
        return sorted(docs, key=lambda d: d["created_at"], reverse=True)

    def get_document(self, user_id, doc_id):
        return dict(self._owned(user_id, doc_id))

    def update_document(self, user_id, doc_id, content):
        doc = self._owned(user_id, doc_id)
        doc["content"] = content
        doc["created_at"] = datetime.now(timezone.utc).isoformat()
        return dict(doc)

    def delete_document(self, user_id, doc_id):
        self._owned(user_id, doc_id)
        del self.docs[doc_id]


@pytest.fixture
def settings() -> Settings:
    return Settings(env=TEST_ENV)


@pytest.fixture
def llm_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def github() -> FakeGitHubClient:
    return FakeGitHubClient(files={
        "README.md": "# demo\n\nSmall demo project used in tests.\n",
        "src/index.ts": "export const answer = 42;\n\n\nexport function main() { return answer; }\n",
        "node_modules/lib/index.js": "module.exports = {};\n",
        "assets/logo.png": "not really a png",
    })


@pytest.fixture
def app(settings, store, llm_client, github):
    tokens = []

    def factory(token):
        tokens.append(token)
        return github

    generator = DocumentGenerator(settings, client=llm_client)
    app = create_app(settings, store=store, generator=generator, github_client_factory=factory)
    app.config.update(TESTING=True)
    app.extensions["test_github_tokens"] = tokens
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(app):
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["user"] = dict(TEST_USER)
        sess["gh"] = {"access_token": "gho_user_token", "scope": "repo"}
    return c
