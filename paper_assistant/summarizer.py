"""Per-paper abstract summaries with a deterministic local fallback.

``Summarizer.summarize`` never raises for provider failures. It returns a
``SummaryResult`` saying whether the text came from the model or from the
fallback, so the caller can log it and carry on.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import SearchConfig, LLMConfig
from .llm_client import LLMClient, LLMError

logger = logging.getLogger(__name__)

SOURCE_MODEL = "model"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class SummaryResult:
    text: str
    source: str
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK


def fallback_summary(abstract: str, max_chars: int = 200,
                     placeholder: str = "Summary unavailable") -> str:
    """First ``max_chars`` characters of the abstract plus an ellipsis."""
    if not abstract:
        return placeholder
    return abstract[:max_chars] + "..."


class Summarizer:
    """Asks the LLM for a 2-3 sentence summary of an abstract."""

    def __init__(self, llm: LLMClient, llm_config: LLMConfig, search_config: SearchConfig):
        self.llm = llm
        self.prompt_template = llm_config.summary_prompt
        self.max_chars = search_config.fallback_chars
        self.placeholder = search_config.fallback_placeholder

    def _fallback(self, abstract: str, error: str) -> SummaryResult:
        return SummaryResult(
            text=fallback_summary(abstract, self.max_chars, self.placeholder),
            source=SOURCE_FALLBACK,
            error=error,
        )

    async def summarize(self, abstract: str, api_key: str) -> SummaryResult:
        if not abstract:
            return self._fallback(abstract, "empty abstract")

        messages = [{"role": "user", "content": self.prompt_template.format(abstract=abstract)}]
        try:
            text = await self.llm.complete(api_key, messages)
        except LLMError as e:
            return self._fallback(abstract, str(e))

        text = text.strip()
        if not text:
            return self._fallback(abstract, "empty summary")
        return SummaryResult(text=text, source=SOURCE_MODEL)
