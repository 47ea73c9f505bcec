"""Research assistant chat: one user message, one model reply."""

import logging
import time

from .database import User
from .errors import ConfigurationError, ChatFailed
from .llm_client import LLMClient, LLMError

logger = logging.getLogger(__name__)


class ChatService:
    """Forwards a message with a fixed system prompt. Nothing is stored."""

    def __init__(self, llm: LLMClient, system_prompt: str):
        self.llm = llm
        self.system_prompt = system_prompt

    async def reply(self, user: User, message: str) -> str:
        """
        Return the model's reply verbatim.

        Raises:
            ConfigurationError: If the user has no external API key
            ChatFailed: If the provider call fails
        """
        if not user.external_api_key:
            raise ConfigurationError()

        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": message},
        ]

        start_time = time.time()
        try:
            answer = await self.llm.complete(user.external_api_key, messages)
        except LLMError as e:
            logger.error(f"Chat error: {e}")
            raise ChatFailed() from e

        logger.info(
            "chat_completed",
            extra={
                "event": "chat_completed",
                "user_id": user.id,
                "duration_ms": int((time.time() - start_time) * 1000),
            }
        )
        return answer
