import io

import pytest
from conftest import TEST_USER, make_zip

from preamble.errors import StorageError
from preamble.services.generation import ATTRIBUTION_MARKER


@pytest.mark.integration
def test_index_reports_anonymous(client) -> None:
    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.get_json()["authenticated"] is False


@pytest.mark.integration
def test_me_reports_session_user(auth_client) -> None:
    body = auth_client.get("/api/me").get_json()

    assert body["authenticated"] is True
    assert body["user"]["login"] == "octocat"


@pytest.mark.integration
def test_generate_from_github_anonymous_is_not_saved(client, app, store, llm_client, settings) -> None:
    settings.GITHUB_TOKEN = "ghp_global"

    resp = client.post("/api/generate/github", json={"url": "https://github.com/acme/demo/"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["saved_to_db"] is False
    assert body["document_id"] is None
    assert ATTRIBUTION_MARKER in body["content"]
    assert store.docs == {}
    assert app.extensions["test_github_tokens"] == ["ghp_global"]

    prompt = llm_client.completions.calls[0]["messages"][0]["content"]
    assert "File: src/index.ts" in prompt
    assert "node_modules" not in prompt
    assert "logo.png" not in prompt


@pytest.mark.integration
def test_generate_from_github_saves_for_signed_in_user(auth_client, app, store) -> None:
    resp = auth_client.post("/api/generate/github", json={"url": "https://github.com/acme/demo", "tone": "friendly"})

    body = resp.get_json()
    assert body["saved_to_db"] is True
    doc = store.docs[body["document_id"]]
    assert doc["repo_name"] == "acme/demo"
    assert doc["metadata"]["tone"] == "friendly"
    assert doc["metadata"]["source"] == "github"
    assert app.extensions["test_github_tokens"] == ["gho_user_token"]


@pytest.mark.integration
def test_generate_survives_storage_failure(auth_client, store) -> None:
    store.fail_on_save = True

    resp = auth_client.post("/api/generate/github", json={"url": "https://github.com/acme/demo"})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["saved_to_db"] is False
    assert body["content"]


@pytest.mark.integration
def test_invalid_url_is_400_without_network(client, github, llm_client) -> None:
    resp = client.post("/api/generate/github", json={"url": "https://notgithub.com/foo"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_url"
    assert github.calls == []
    assert llm_client.completions.calls == []


@pytest.mark.integration
def test_error_messages_follow_accept_language(client) -> None:
    resp = client.post(
        "/api/generate/github",
        json={"url": "https://notgithub.com/foo"},
        headers={"Accept-Language": "en-US,en;q=0.9"},
    )

    assert resp.get_json()["message"].startswith("Invalid GitHub URL structure")


@pytest.mark.integration
def test_error_messages_are_translated_to_spanish(client) -> None:
    resp = client.post(
        "/api/generate/github",
        json={"url": "https://notgithub.com/foo"},
        headers={"Accept-Language": "es-ES,es;q=0.9"},
    )

    assert resp.status_code == 400
    assert resp.get_json()["message"].startswith("Estructura de URL de GitHub inválida")
    assert "https://notgithub.com/foo" in resp.get_json()["message"]


@pytest.mark.integration
def test_lang_query_overrides_browser_locale(client) -> None:
    resp = client.get("/api/repos?lang=es", headers={"Accept-Language": "en"})

    assert resp.get_json()["message"] == "Primero debes iniciar sesión con GitHub."


@pytest.mark.integration
@pytest.mark.parametrize(
    "body",
    [
        {"url": 123},
        {"url": ["https://github.com/acme/demo"]},
        {"url": "https://github.com/acme/demo", "tone": 1},
        ["https://github.com/acme/demo"],
        "https://github.com/acme/demo",
    ],
)
def test_malformed_generate_body_is_400(client, github, body) -> None:
    resp = client.post("/api/generate/github", json=body)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_request"
    assert github.calls == []


@pytest.mark.integration
def test_unknown_tone_is_rejected(client) -> None:
    resp = client.post("/api/generate/github", json={"url": "https://github.com/acme/demo", "tone": "pirate"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_request"


@pytest.mark.integration
def test_empty_repository_is_422(client, github) -> None:
    github.files = {"logo.png": "x"}

    resp = client.post("/api/generate/github", json={"url": "https://github.com/acme/empty"})

    assert resp.status_code == 422
    assert resp.get_json()["error"] == "insufficient_content"


@pytest.mark.integration
def test_generate_from_archive(auth_client, store, llm_client) -> None:
    body = "export function a() { return 'a'; }\n" * 6
    data = make_zip([("src/a.ts", body), ("node_modules/b.ts", "x"), ("image.png", b"\x89PNG")])

    resp = auth_client.post(
        "/api/generate/archive",
        data={"file": (io.BytesIO(data), "project.zip"), "tone": "standard"},
        content_type="multipart/form-data",
    )

    assert resp.status_code == 200
    result = resp.get_json()
    assert result["saved_to_db"] is True
    assert store.docs[result["document_id"]]["repo_name"] == "project.zip"
    prompt = llm_client.completions.calls[0]["messages"][0]["content"]
    assert prompt.count("File: ") == 1
    assert "File: src/a.ts" in prompt


@pytest.mark.integration
def test_archive_without_file_is_400(client) -> None:
    resp = client.post("/api/generate/archive", data={}, content_type="multipart/form-data")

    assert resp.status_code == 400


@pytest.mark.integration
def test_archive_with_too_little_content_is_422(client, llm_client) -> None:
    data = make_zip([("tiny.py", "x=1\n")])

    resp = client.post(
        "/api/generate/archive",
        data={"file": (io.BytesIO(data), "tiny.zip")},
        content_type="multipart/form-data",
    )

    assert resp.status_code == 422
    assert llm_client.completions.calls == []


@pytest.mark.integration
def test_repos_requires_login(client) -> None:
    resp = client.get("/api/repos")

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthorized"


@pytest.mark.integration
def test_repos_lists_for_signed_in_user(auth_client, github) -> None:
    github.repos = [{"full_name": f"acme/r{i}"} for i in range(10)]

    resp = auth_client.get("/api/repos?page=2")

    assert [r["full_name"] for r in resp.get_json()] == ["acme/r8", "acme/r9"]
    assert ("list_user_repos", 2, 8) in github.calls


@pytest.mark.integration
def test_history_is_empty_for_anonymous(client) -> None:
    assert client.get("/api/history").get_json() == []


@pytest.mark.integration
def test_history_crud_roundtrip(auth_client, store) -> None:
    doc = store.save_document(TEST_USER, "acme/demo", "# v1")
    other = store.save_document({"id": "999", "name": "mallory"}, "evil/repo", "# theirs")

    listed = auth_client.get("/api/history").get_json()
    assert [d["id"] for d in listed] == [doc["id"]]

    resp = auth_client.put(f"/api/history/{doc['id']}", json={"content": "# v2"})
    assert resp.status_code == 200
    assert store.docs[doc["id"]]["content"] == "# v2"

    dl = auth_client.get(f"/api/history/{doc['id']}/download")
    assert dl.status_code == 200
    assert dl.data == b"# v2"
    assert "README.md" in dl.headers["Content-Disposition"]

    assert auth_client.get(f"/api/history/{other['id']}").status_code == 404
    assert auth_client.delete(f"/api/history/{other['id']}").status_code == 404

    assert auth_client.delete(f"/api/history/{doc['id']}").status_code == 200
    assert doc["id"] not in store.docs
    assert other["id"] in store.docs


@pytest.mark.integration
def test_update_requires_string_content(auth_client, store) -> None:
    doc = store.save_document(TEST_USER, "acme/demo", "# v1")

    resp = auth_client.put(f"/api/history/{doc['id']}", json={"content": 3})

    assert resp.status_code == 400


@pytest.mark.integration
def test_update_rejects_non_object_body(auth_client, store) -> None:
    doc = store.save_document(TEST_USER, "acme/demo", "# v1")

    resp = auth_client.put(f"/api/history/{doc['id']}", json=["# v2"])

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_request"
    assert store.docs[doc["id"]]["content"] == "# v1"


@pytest.mark.integration
def test_history_storage_outage_is_json_500(auth_client, store) -> None:
    def down(user_id):
        raise StorageError("No database connection available: server down")

    store.list_documents = down

    resp = auth_client.get("/api/history")

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "storage_error"
