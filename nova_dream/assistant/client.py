"""
Assistant Client — chat completions over HTTP.

Sends the system prompt plus the conversation to an OpenAI-compatible
gateway and returns the reply text. The reply is free text that may embed
action directives; no other schema is expected of it.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel

from nova_dream.models.config import AssistantConfig

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    role: str       # "user" | "assistant" | "system"
    content: Union[str, List[Dict[str, Any]]]     # text, or multi-part (text + file url)


class AssistantError(Exception):
    """Raised when the language-model gateway fails."""

    def __init__(self, message: str, status_code: int = 500):
        self.status_code = status_code
        super().__init__(message)


class AssistantNotConfiguredError(AssistantError):
    def __init__(self):
        super().__init__("Assistant API key is not configured", status_code=503)


class AssistantClient:
    """Thin synchronous client for the chat-completions gateway."""

    def __init__(
        self,
        config: Optional[AssistantConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config or AssistantConfig()
        self._transport = transport

    def complete(
        self,
        system_prompt: Optional[str],
        messages: List[ChatMessage],
        max_tokens: Optional[int] = None,
    ) -> str:
        """Return the assistant's reply to a conversation."""
        if not self.config.api_key:
            raise AssistantNotConfiguredError()

        history = [m.model_dump() for m in messages]
        if system_prompt:
            history.insert(0, {"role": "system", "content": system_prompt})
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": history,
            "stream": False,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        try:
            with httpx.Client(
                timeout=self.config.timeout_seconds, transport=self._transport
            ) as client:
                response = client.post(self.config.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Assistant gateway unreachable: %s", e)
            raise AssistantError(f"Assistant service unreachable: {e}", status_code=502) from e

        if response.status_code == 429:
            raise AssistantError("Rate limit reached, try again in a moment", status_code=429)
        if response.status_code == 402:
            raise AssistantError("AI credits exhausted", status_code=402)
        if response.is_error:
            logger.error("Assistant gateway error %s: %s", response.status_code, response.text)
            raise AssistantError("Assistant service error", status_code=500)

        try:
            return response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Unexpected assistant payload: %s", response.text[:200])
            raise AssistantError("Unexpected assistant response", status_code=502) from e
