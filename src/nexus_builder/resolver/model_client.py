"""Chat-completions client and reply schema for the command-mapping model."""

from __future__ import annotations

import re
from typing import Protocol, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from nexus_builder.resolver.session import Message

DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class ModelUnavailableError(RuntimeError):
    """Raised when the model endpoint cannot be reached or rejects the request."""


class ModelReplyError(ValueError):
    """Raised when the model reply does not match the expected JSON shape."""


class ChatModelClient(Protocol):
    """Sends a rolling message list to a chat model and returns the reply text."""

    async def complete(self, messages: Sequence[Message]) -> str:
        """Return the assistant message content for ``messages``."""


class ModelReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    command: str = ""
    confidence: float = Field(ge=0.0, le=1.0)
    explanation: str = ""
    needs_clarification: bool = Field(default=False, alias="needsClarification")
    clarification_prompt: str | None = Field(default=None, alias="clarificationPrompt")

    @model_validator(mode="after")
    def _require_command_or_question(self) -> ModelReply:
        if not self.command.strip() and not self.needs_clarification:
            raise ValueError("reply has neither a command nor a clarification request")
        return self


def parse_model_reply(content: str) -> ModelReply:
    text = content.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        return ModelReply.model_validate_json(text)
    except ValidationError as exc:
        raise ModelReplyError(f"Malformed model reply: {exc.error_count()} validation error(s)") from exc


class OpenAIChatClient:
    """Minimal OpenAI-compatible chat-completions client over ``httpx``."""

    def __init__(
        self,
        *,
        api_key: str,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 200,
        temperature: float = 0.1,
        timeout_seconds: float = 8.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._endpoint = endpoint
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout_seconds = timeout_seconds
        self._http_client = http_client

    async def complete(self, messages: Sequence[Message]) -> str:
        payload = {
            "model": self._model,
            "messages": [{"role": message.role, "content": message.content} for message in messages],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }
        headers = {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self._endpoint, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                    response = await client.post(self._endpoint, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise ModelUnavailableError(f"Model request failed: {type(exc).__name__}: {exc}") from exc

        if response.status_code >= 400:
            raise ModelUnavailableError(f"Model endpoint returned HTTP {response.status_code}")

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ModelReplyError("Model response has no message content") from exc

        if not isinstance(content, str) or not content.strip():
            raise ModelReplyError("Model response has no message content")
        return content
