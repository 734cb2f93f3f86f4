from .archive_source import materialize_archive
from .budget import MAX_CONTEXT_CHARS, MIN_CONTEXT_CHARS, budget_context
from .filters import ARCHIVE_RULES, GITHUB_RULES, FilterRules
from .github_source import materialize_github, parse_github_url

__all__ = [
    "ARCHIVE_RULES",
    "GITHUB_RULES",
    "MAX_CONTEXT_CHARS",
    "MIN_CONTEXT_CHARS",
    "FilterRules",
    "budget_context",
    "materialize_archive",
    "materialize_github",
    "parse_github_url",
]
