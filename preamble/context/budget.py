# preamble/context/budget.py
from ..errors import InsufficientContentError

# ~6k tokens; keeps requests under the completion API's per-minute token limits
MAX_CONTEXT_CHARS = 25_000
MIN_CONTEXT_CHARS = 100


def ensure_sufficient(context: str, minimum: int = MIN_CONTEXT_CHARS) -> str:
    if not context or len(context) < minimum:
        raise InsufficientContentError(len(context or ""), minimum)
    return context


def budget_context(
    context: str,
    limit: int = MAX_CONTEXT_CHARS,
    minimum: int = MIN_CONTEXT_CHARS,
) -> str:
    """
    Keep the first ``limit`` characters of an assembled context.

    The cut ignores file-block boundaries and may land mid-line. Raises
    InsufficientContentError when what is left is shorter than ``minimum``.
    """
    return ensure_sufficient((context or "")[:limit], minimum)
