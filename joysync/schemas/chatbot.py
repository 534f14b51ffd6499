"""Pydantic schemas for the chatbot endpoint."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ChatRole = Literal["user", "assistant", "system"]


class ChatTurn(BaseModel):
    """One prior turn of chatbot history."""

    role: ChatRole = "user"
    content: str = ""


class ChatRequest(BaseModel):
    prompt: str
    history: list[ChatTurn] = Field(default_factory=list)


class ChatReply(BaseModel):
    reply: str
    title: str
    summary: str
