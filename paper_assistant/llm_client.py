"""Chat-completion client for OpenAI-compatible providers (OpenRouter by default).

Every call is authenticated with the calling user's own API key.
"""

import logging
from typing import List, Dict

import httpx

from .config import LLMConfig

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """The chat-completion call failed or returned an unusable body."""


class LLMClient:
    """Sends a message list to ``<base_url>/chat/completions``."""

    def __init__(self, http_client: httpx.AsyncClient, config: LLMConfig):
        self._http = http_client
        self.config = config

    @property
    def endpoint(self) -> str:
        return self.config.base_url.rstrip("/") + "/chat/completions"

    async def complete(self, api_key: str, messages: List[Dict[str, str]]) -> str:
        """
        Return the generated text of the first choice.

        Raises:
            LLMError: On unsendable requests, transport errors, non-2xx responses
                or a malformed body
        """
        try:
            response = await self._http.post(
                self.endpoint,
                json={"model": self.config.model, "messages": messages},
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LLMError(f"LLM provider returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise LLMError(f"LLM request failed: {e}") from e
        except ValueError as e:
            # Raised while building the request, e.g. a key httpx cannot encode as a header
            raise LLMError(f"LLM request could not be built: {e}") from e

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError("LLM response had no message content") from e

        if not isinstance(content, str):
            raise LLMError("LLM response content was not text")
        return content
