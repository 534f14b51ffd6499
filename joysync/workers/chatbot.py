from __future__ import annotations

import asyncio
import re
import time
from datetime import datetime
from typing import Any, List, Optional, Sequence, Union

from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError
from pydantic_ai.messages import (
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.litellm import LiteLLMProvider

from joysync.config import get_settings
from joysync.constants.default_system_prompt import DefaultSystemPrompt
from joysync.infra.logging_config import get_logger
from joysync.schemas.chatbot import ChatTurn

logger = get_logger("chatbot")

NOT_CONFIGURED = "API key is not configured. Please set LITELLM_API_KEY."
INVALID_KEY = "API key is invalid or missing. Please check your LITELLM_API_KEY."
QUOTA_EXCEEDED = "API quota exceeded. Please try again later."
RATE_LIMITED = "Rate limit exceeded. Please wait a moment before sending another message."
EMPTY_RESPONSE = "Empty response received from API"
GENERIC_FAILURE = "Unable to generate response. Please try again."

EMPTY_PROMPT = "Message cannot be empty"
PROMPT_TOO_LONG = "Message is too long. Please keep it under {limit} characters."
SPAM_PROMPT = "Please enter a meaningful message"

TITLE_MAX_LENGTH = 40
SUMMARY_TOPIC_LENGTH = 50

_REPEATED_CHARACTER = re.compile(r"(.)\1{20,}", re.DOTALL)

HistoryItem = Union[ChatTurn, dict]


class ChatbotError(Exception):
    """Generation failure carrying a message that can be shown to the user."""

    def __init__(self, message: str, *, not_configured: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.not_configured = not_configured


class InvalidPromptError(ChatbotError):
    """The prompt was rejected before anything was sent to the model."""


def current_date_and_time() -> str:
    """Return the current date and time. Use when the user asks for today's date or what day it is."""
    return f"The date and time is {datetime.now()}."


def validate_prompt(prompt: Optional[str], max_length: int = 4000) -> str:
    """Return the trimmed prompt or raise InvalidPromptError explaining why it was rejected."""
    text = (prompt or "").strip()
    if not text:
        raise InvalidPromptError(EMPTY_PROMPT)
    if len(text) > max_length:
        raise InvalidPromptError(PROMPT_TOO_LONG.format(limit=max_length))
    if _REPEATED_CHARACTER.search(text):
        raise InvalidPromptError(SPAM_PROMPT)
    return text


def _turn_fields(item: HistoryItem) -> tuple[str, str]:
    if isinstance(item, ChatTurn):
        return item.role, item.content
    return item.get("role", "user"), item.get("content") or ""


def _history_to_message_list(history: Sequence[HistoryItem]) -> List[Any]:
    """Convert {role, content} turns to pydantic_ai messages for message_history."""
    out: List[Any] = []
    for item in history:
        role, content = _turn_fields(item)
        content = content.strip()
        if not content:
            continue
        if role == "user":
            out.append(ModelRequest(parts=[UserPromptPart(content=content)]))
        elif role == "assistant":
            out.append(ModelResponse(parts=[TextPart(content=content)]))
        elif role == "system":
            out.append(ModelRequest(parts=[SystemPromptPart(content=content)]))
    return out


def _message_list_with_system_prompt(
    system_prompt: str, history: Sequence[HistoryItem]
) -> List[Any]:
    """System prompt first, then conversation history."""
    system_message = ModelRequest(parts=[SystemPromptPart(content=system_prompt)])
    return [system_message] + _history_to_message_list(history)


def _error_from_http(exc: ModelHTTPError) -> ChatbotError:
    if exc.status_code in (401, 403):
        return ChatbotError(INVALID_KEY)
    if exc.status_code == 429:
        body = str(exc.body or "").lower()
        return ChatbotError(QUOTA_EXCEEDED if "quota" in body else RATE_LIMITED)
    return ChatbotError(GENERIC_FAILURE)


class ChatbotRunner:
    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        system_prompt: Optional[str] = None,
        model: Optional[Model] = None,
        history_limit: int = 20,
        max_prompt_length: int = 4000,
        min_request_interval_ms: int = 800,
    ) -> None:
        if model is None and api_key:
            provider = LiteLLMProvider(api_key=api_key, api_base=api_base)
            model = OpenAIChatModel(model_name, provider=provider)
        logger.info(f"Initializing chatbot runner with model {model_name}")
        self._system_prompt = system_prompt or DefaultSystemPrompt.CONTENT
        self._agent = (
            Agent(model, tools=[current_date_and_time]) if model is not None else None
        )
        self._history_limit = history_limit
        self._max_prompt_length = max_prompt_length
        self._min_interval = min_request_interval_ms / 1000.0
        self._last_request_at: Optional[float] = None
        self._throttle_lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return self._agent is not None

    async def _throttle(self) -> None:
        async with self._throttle_lock:
            if self._last_request_at is not None:
                wait = self._min_interval - (time.monotonic() - self._last_request_at)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_request_at = time.monotonic()

    async def generate(
        self, prompt: str, history: Optional[Sequence[HistoryItem]] = None
    ) -> str:
        """
        Send prompt with the most recent history turns and return the reply text.

        Raises ChatbotError with a user-facing message on invalid input or
        any failure talking to the model.
        """
        if self._agent is None:
            raise ChatbotError(NOT_CONFIGURED, not_configured=True)
        text = validate_prompt(prompt, self._max_prompt_length)
        recent = list(history or [])[-self._history_limit :] if self._history_limit else []
        await self._throttle()

        message_history = _message_list_with_system_prompt(self._system_prompt, recent)
        try:
            result = await self._agent.run(text, message_history=message_history)
        except ModelHTTPError as exc:
            logger.warning("Chatbot model returned HTTP %s", exc.status_code)
            raise _error_from_http(exc) from exc
        except AgentRunError as exc:
            logger.warning("Chatbot run failed: %s", exc)
            raise ChatbotError(GENERIC_FAILURE) from exc

        reply = str(result.output or "").strip()
        if not reply:
            raise ChatbotError(EMPTY_RESPONSE)
        return reply


def generate_chat_title(first_user_message: str, user_messages: Sequence[str]) -> str:
    """Title for a chat: the first message for a new chat, a topic otherwise."""
    if len(user_messages) <= 1:
        if len(first_user_message) > TITLE_MAX_LENGTH:
            return first_user_message[:TITLE_MAX_LENGTH] + "..."
        return first_user_message
    topic = " ".join(user_messages[0].split(" ")[:3])
    return f"{topic} & more..."


def conversation_summary(turns: Sequence[HistoryItem]) -> str:
    if not turns:
        return "New conversation"
    topics = ", ".join(
        content[:SUMMARY_TOPIC_LENGTH]
        for role, content in map(_turn_fields, turns)
        if role == "user"
    )
    return f"Discussing: {topics}..."


def build_chatbot_runner_from_env() -> ChatbotRunner:
    settings = get_settings()
    logger.info(
        "Chatbot config: model=%s, api_key=%s, api_base=%s",
        settings.llm_model,
        "set" if settings.litellm_api_key else "not set",
        settings.litellm_api_base or "(default)",
    )
    if not settings.litellm_api_key:
        logger.warning(
            "LITELLM_API_KEY is not set; chatbot requests will fail until it is configured."
        )
    return ChatbotRunner(
        model_name=settings.llm_model,
        api_key=settings.litellm_api_key,
        api_base=settings.litellm_api_base,
        system_prompt=DefaultSystemPrompt.CONTENT,
        history_limit=settings.chatbot_history_limit,
        max_prompt_length=settings.chatbot_max_prompt_length,
        min_request_interval_ms=settings.chatbot_min_request_interval_ms,
    )
