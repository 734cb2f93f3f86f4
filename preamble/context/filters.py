# preamble/context/filters.py
from dataclasses import dataclass
from typing import Iterable, List

# Shared tables. The archive rules extend these with a few entries that only
# show up in uploaded working copies (virtualenvs, build outputs, OS junk).
IGNORED_DIRS = frozenset({
    "node_modules", ".git", "dist", "build", ".next",
    ".vscode", ".idea", "vendor", "__pycache__",
})

IGNORED_FILES = frozenset({
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "bun.lockb",
})

ALLOWED_EXTENSIONS = frozenset({
    ".js", ".ts", ".jsx", ".tsx", ".py", ".rb", ".go", ".rs", ".php",
    ".c", ".cpp", ".h", ".hpp", ".java", ".kt", ".swift", ".m", ".mm",
    ".sql", ".sh", ".bash", ".zsh", ".json", ".md", ".css", ".html",
    ".yml", ".yaml", ".toml", ".env",
})

ARCHIVE_EXTRA_DIRS = frozenset({".cache", "venv", "env", "target", "out"})
ARCHIVE_EXTRA_FILES = frozenset({".DS_Store", "favicon.ico"})
ARCHIVE_EXTRA_EXTENSIONS = frozenset({".scss", ".less", ".config.js", ".config.ts"})


@dataclass(frozen=True)
class FilterRules:
    ignored_dirs: frozenset
    ignored_files: frozenset
    allowed_extensions: frozenset

    def includes(self, path: str) -> bool:
        """
        A path survives when none of its segments is an ignored directory,
        its filename is not an ignored file and it ends with an allowed
        extension.
        """
        if not path:
            return False
        parts = path.split("/")
        filename = parts[-1]
        if any(part in self.ignored_dirs for part in parts):
            return False
        if filename in self.ignored_files:
            return False
        return any(path.endswith(ext) for ext in self.allowed_extensions)


GITHUB_RULES = FilterRules(IGNORED_DIRS, IGNORED_FILES, ALLOWED_EXTENSIONS)

ARCHIVE_RULES = FilterRules(
    IGNORED_DIRS | ARCHIVE_EXTRA_DIRS,
    IGNORED_FILES | ARCHIVE_EXTRA_FILES,
    ALLOWED_EXTENSIONS | ARCHIVE_EXTRA_EXTENSIONS,
)


def filter_paths(paths: Iterable[str], rules: FilterRules) -> List[str]:
    # keeps listing order
    return [p for p in paths if rules.includes(p)]
