# preamble/context/github_source.py
"""
Build a context string from a GitHub repository.

Steps: resolve the default branch, list the recursive tree, filter paths,
keep the first ``MAX_FILES`` survivors in listing order, then fetch, decode
and compact each file. Files that fail to load are skipped with a warning.
"""
import base64
import io
import logging
import re
from typing import Tuple

from ..errors import (
    InsufficientContentError,
    InvalidRepoUrlError,
    PreambleError,
    RepositoryFetchError,
)
from .budget import MIN_CONTEXT_CHARS, ensure_sufficient
from .filters import GITHUB_RULES, FilterRules, filter_paths

log = logging.getLogger(__name__)

MAX_FILES = 40
MAX_FILE_CHARS = 2_000
TRUNCATION_MARKER = "...[TRUNCATED]"
BLOCK_DELIMITER = "---"

_URL_RE = re.compile(
    r"^(?:https?://)?(?:[^/@]+@)?(?:www\.)?github\.com/([^/?#]+)/([^/?#]+)",
    re.IGNORECASE,
)


def parse_github_url(url: str) -> Tuple[str, str]:
    """Return (owner, repo) for a github.com/<owner>/<repo> URL."""
    cleaned = (url or "").strip()
    if cleaned.endswith("/"):
        cleaned = cleaned[:-1]
    m = _URL_RE.search(cleaned)
    if not m:
        log.error("Invalid GitHub URL: %s", url)
        raise InvalidRepoUrlError(url or "")
    owner, repo = m.group(1), m.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not repo:
        log.error("Invalid GitHub URL: %s", url)
        raise InvalidRepoUrlError(url)
    return owner, repo


def normalize_file_content(raw: str, limit: int = MAX_FILE_CHARS) -> Tuple[str, bool]:
    """
    Drop blank lines and cut to ``limit`` characters.

    The truncated flag looks at the raw length, so a file that only fits
    after blank lines are removed is still reported as truncated.
    """
    compact = "\n".join(line for line in raw.split("\n") if line.strip())
    return compact[:limit], len(raw) > limit


def decode_blob(encoded: str) -> str:
    return base64.b64decode(encoded).decode("utf-8", errors="replace")


def _file_block(path: str, text: str, truncated: bool) -> str:
    marker = TRUNCATION_MARKER if truncated else ""
    return f"File: {path}\nContent: \n{text}\n{marker}\n\n{BLOCK_DELIMITER}\n\n"


def list_candidate_paths(
    client,
    owner: str,
    repo: str,
    rules: FilterRules = GITHUB_RULES,
    max_files: int = MAX_FILES,
) -> list[str]:
    log.info("Fetching repository info for %s/%s", owner, repo)
    repo_info = client.get_repo(owner, repo)
    branch = repo_info.get("default_branch") or "main"
    log.info("Default branch: %s", branch)

    tree = client.get_tree(owner, repo, branch, recursive=True)
    if tree.get("truncated"):
        log.warning("Tree listing for %s/%s was truncated by GitHub", owner, repo)
    blobs = [item.get("path") for item in tree.get("tree", []) if item.get("type") == "blob"]
    log.info("Blobs in tree: %d", len(blobs))

    selected = filter_paths((p for p in blobs if p), rules)[:max_files]
    log.info("Files selected for processing: %d", len(selected))
    return selected


def materialize_github(url: str, client, max_files: int = MAX_FILES, max_file_chars: int = MAX_FILE_CHARS) -> str:
    """Return the context for ``url``, fetched through ``client`` (a GitHubClient)."""
    owner, repo = parse_github_url(url)
    log.info("Processing repository %s/%s", owner, repo)

    try:
        paths = list_candidate_paths(client, owner, repo, max_files=max_files)

        out = io.StringIO()
        out.write("File Tree:\n")
        out.write("\n".join(paths))
        out.write(f"\n\n{BLOCK_DELIMITER}\n\n")

        for path in paths:
            try:
                data = client.get_content(owner, repo, path)
            except PreambleError as e:
                log.warning("Skipping %s: %s", path, e)
                continue
            # directories come back as lists, submodules/symlinks without content
            if not isinstance(data, dict) or not isinstance(data.get("content"), str):
                continue
            try:
                raw = decode_blob(data["content"])
            except (ValueError, TypeError) as e:
                log.warning("Skipping %s: cannot decode content (%s)", path, e)
                continue
            text, truncated = normalize_file_content(raw, max_file_chars)
            out.write(_file_block(path, text, truncated))

        context = out.getvalue()
        log.info("Context size (chars): %d", len(context))
        return ensure_sufficient(context, MIN_CONTEXT_CHARS)
    except InsufficientContentError:
        log.error("Not enough content after filtering %s/%s", owner, repo)
        raise
    except PreambleError as e:
        log.error("Error processing GitHub repository %s/%s: %s", owner, repo, e)
        raise RepositoryFetchError(str(e)) from e
