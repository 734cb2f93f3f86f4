# preamble/errors.py
"""
Error taxonomy.

Every error carries a ``kind`` (used as the JSON ``error`` field), an HTTP
status and a user-facing message template (a gettext msgid with
``%(name)s`` placeholders filled from ``params``).
"""


class PreambleError(Exception):
    kind = "error"
    status_code = 500
    user_message = "Unexpected error: %(detail)s"

    def __init__(self, detail: str = "", **params):
        self.detail = detail
        self.params = {"detail": detail, **params}
        super().__init__(detail or self.user_message % self.params)


class ConfigError(PreambleError):
    kind = "config_error"
    user_message = "Missing configuration: %(detail)s"

    def __init__(self, missing):
        if isinstance(missing, str):
            missing = [missing]
        self.missing = list(missing)
        super().__init__(", ".join(self.missing))


# ---- input validation ----

class InvalidRepoUrlError(PreambleError):
    kind = "invalid_url"
    status_code = 400
    user_message = (
        "Invalid GitHub URL structure. Use the format: "
        "https://github.com/<owner>/<repo> (got %(detail)s)"
    )


class InvalidArchiveError(PreambleError):
    kind = "invalid_archive"
    status_code = 400
    user_message = "The uploaded file is not a readable ZIP archive: %(detail)s"


class InvalidRequestError(PreambleError):
    kind = "invalid_request"
    status_code = 400
    user_message = "Invalid request: %(detail)s"


# ---- content sufficiency ----

class InsufficientContentError(PreambleError):
    kind = "insufficient_content"
    status_code = 422
    user_message = (
        "Not enough readable code was found in the repository. "
        "Check that it is not empty and contains supported text files."
    )

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(f"context has {length} characters, need at least {minimum}")


# ---- upstream services ----

class UpstreamError(PreambleError):
    kind = "upstream_error"
    status_code = 502


class GitHubAPIError(UpstreamError):
    kind = "github_error"
    user_message = "GitHub API error: %(detail)s"

    def __init__(self, status: int | None, message: str):
        self.status = status
        super().__init__(f"{status} {message}" if status else message)


class RepositoryFetchError(UpstreamError):
    kind = "repository_error"
    user_message = "Error while processing the GitHub repository: %(detail)s"


class GenerationError(UpstreamError):
    kind = "generation_error"
    user_message = "AI generation failed: %(detail)s"


# ---- storage ----

class StorageError(PreambleError):
    kind = "storage_error"
    user_message = "Storage error: %(detail)s"


class DocumentNotFoundError(StorageError):
    kind = "not_found"
    status_code = 404
    user_message = "Document %(detail)s not found"


# ---- auth ----

class AuthRequiredError(PreambleError):
    kind = "unauthorized"
    status_code = 401
    user_message = "You need to sign in with GitHub first."
