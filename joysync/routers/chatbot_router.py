"""Chatbot API: generate a reply for a prompt and its history."""

from __future__ import annotations

from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException

from joysync.schemas.chatbot import ChatReply, ChatRequest, ChatTurn
from joysync.workers.chatbot import (
    ChatbotError,
    ChatbotRunner,
    InvalidPromptError,
    build_chatbot_runner_from_env,
    conversation_summary,
    generate_chat_title,
)

chatbot_router = APIRouter(prefix="/chatbot", tags=["Chatbot"])


@lru_cache(maxsize=1)
def get_chatbot_runner() -> ChatbotRunner:
    """Process-wide runner; request throttling is tracked on it."""
    return build_chatbot_runner_from_env()


@chatbot_router.post("/generate", response_model=ChatReply)
async def generate_reply(
    data: ChatRequest,
    runner: ChatbotRunner = Depends(get_chatbot_runner),
) -> ChatReply:
    try:
        reply = await runner.generate(data.prompt, data.history)
    except InvalidPromptError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    except ChatbotError as exc:
        status_code = 503 if exc.not_configured else 502
        raise HTTPException(status_code=status_code, detail=exc.message)

    prompt = data.prompt.strip()
    user_messages = [t.content for t in data.history if t.role == "user"] + [prompt]
    turns = list(data.history) + [
        ChatTurn(role="user", content=prompt),
        ChatTurn(role="assistant", content=reply),
    ]
    return ChatReply(
        reply=reply,
        title=generate_chat_title(user_messages[0], user_messages),
        summary=conversation_summary(turns),
    )
