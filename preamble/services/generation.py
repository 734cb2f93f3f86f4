# preamble/services/generation.py
import logging
from dataclasses import dataclass
from typing import Optional

import openai

from ..context.budget import budget_context
from ..errors import ConfigError, GenerationError

log = logging.getLogger(__name__)

TONES = {
    "standard": "Concise, professional and objective. The default industry standard.",
    "friendly": "Casual and enthusiastic, emojis are welcome. Suited to open source and community projects.",
    "formal": "Academic, detailed and strictly technical. Suited to enterprise or research software.",
}
DEFAULT_TONE = "standard"

ATTRIBUTION_MARKER = "Generated with Preamble"


def attribution_footer(app_url: str) -> str:
    return f"[![{ATTRIBUTION_MARKER}](https://img.shields.io/badge/README-Preamble-000000)]({app_url})"


PROMPT_TEMPLATE = """
You are an expert technical writer designated to create high-end documentation in a "Swiss Editorial" style.

**LANGUAGE DETECTION PROTOCOL:**
1.  **Analyze** the provided source code context (comments, variable names and string literals) to **detect the primary natural language** used by the developers (e.g., Spanish, English, French, Portuguese, etc.).
2.  **Generate** the README.md content **strictly in that detected language**.
3.  **Fallback:** If the language is ambiguous, mixed, or purely technical (no natural language comments), **default to English**.

**CONTENT GUIDELINES:**
-   **Title:** Catchy, minimal, and professional.
-   **Value Proposition:** concise and clear explanation of what the project does.
-   **Tech Stack:** List key technologies.
-   **Installation & Usage:** Step-by-step guides.
-   **Structure:** Brief overview of the project structure.

**STYLE RULES:**
-   Use **Pure Markdown**.
-   **Swiss Style:** Minimalist, clean, direct, and highly professional.
-   **Tone:** {tone}

**OUTPUT FORMAT:**
-   Return **ONLY** the raw Markdown content.
-   Do **NOT** wrap the output in code blocks (markdown).
-   Do **NOT** include conversational text ("Here is the readme...").
-   End the document with this exact line:
{footer}

CODE CONTEXT:
{context}
"""


def build_prompt(context: str, footer: str, tone: str = DEFAULT_TONE) -> str:
    return PROMPT_TEMPLATE.format(
        tone=TONES.get(tone, TONES[DEFAULT_TONE]),
        footer=footer,
        context=context,
    )


def ensure_attribution(text: str, footer: str) -> str:
    if ATTRIBUTION_MARKER in text:
        return text
    return text.rstrip() + "\n\n---\n\n" + footer + "\n"


@dataclass
class GenerationResult:
    content: str
    saved_to_db: bool = False
    document_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "saved_to_db": self.saved_to_db,
            "document_id": self.document_id,
        }


class DocumentGenerator:
    """Budget a context, ask the completion API for a README, add the footer."""

    def __init__(self, settings, client=None):
        self.settings = settings
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.settings.LLM_API_KEY:
                raise ConfigError("LLM_API_KEY")
            self._client = openai.OpenAI(
                api_key=self.settings.LLM_API_KEY,
                base_url=self.settings.LLM_BASE_URL,
                timeout=self.settings.LLM_TIMEOUT,
            )
        return self._client

    def generate(self, context: str, tone: str = DEFAULT_TONE) -> str:
        safe_context = budget_context(context)
        log.info("Budgeted context (chars): %d", len(safe_context))

        if not self.settings.LLM_API_KEY:
            raise ConfigError("LLM_API_KEY")

        footer = attribution_footer(self.settings.APP_URL)
        prompt = build_prompt(safe_context, footer, tone)

        log.info("Sending prompt to %s", self.settings.LLM_MODEL)
        try:
            completion = self.client.chat.completions.create(
                messages=[{"role": "user", "content": prompt}],
                model=self.settings.LLM_MODEL,
                temperature=self.settings.LLM_TEMPERATURE,
            )
        except openai.OpenAIError as e:
            log.error("Completion API call failed: %s", e)
            raise GenerationError(str(e) or type(e).__name__) from e

        choices = getattr(completion, "choices", None) or []
        text = choices[0].message.content if choices else None
        if not text or not text.strip():
            log.error("Completion API returned an empty answer")
            raise GenerationError("The AI returned an empty response.")

        log.info("Documentation generated (%d chars)", len(text))
        return ensure_attribution(text, footer)

    def generate_and_save(
        self,
        context: str,
        *,
        store=None,
        user: Optional[dict] = None,
        repo_name: Optional[str] = None,
        tone: str = DEFAULT_TONE,
        metadata: Optional[dict] = None,
    ) -> GenerationResult:
        """
        Generate, then save when a user and a repo name are known.

        Saving is best effort: a failure is logged and reported through
        ``saved_to_db`` but never replaces the generated content.
        """
        content = self.generate(context, tone)
        result = GenerationResult(content=content)

        if store is None or not user or not repo_name:
            return result

        meta = {"tone": tone, "model": self.settings.LLM_MODEL, **(metadata or {})}
        try:
            doc = store.save_document(user, repo_name, content, meta)
        except Exception as e:
            # never lose the generated README because the save failed
            log.error("Could not save document for %s: %s", user.get("id"), e)
            return result

        result.saved_to_db = True
        result.document_id = doc.get("id")
        log.info("Saved document %s for %s", result.document_id, user.get("id"))
        return result
