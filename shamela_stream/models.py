# shamela_stream/models.py
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class ChatRequest(BaseModel):
    """Body of the chat stream endpoints."""

    model_config = ConfigDict(extra="forbid")

    question: str
    thread_id: str | None = None
    prompt_config: str | dict[str, Any] | None = None
    language_preference: str | None = None
    custom_system_prompt: str | None = None
    session_id: str | None = None
    enable_thinking: bool | None = None

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question cannot be empty")
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ConfirmFactCheckRequest(BaseModel):
    """Body of the fact-check confirmation endpoint, sent after OCR review."""

    model_config = ConfigDict(extra="forbid")

    reviewed_text: str
    image_url: str | None = None
    image_base64: str | None = None
    thread_id: str | None = None
    language_preference: str | None = None
    enable_thinking: bool | None = True

    @field_validator("reviewed_text")
    @classmethod
    def reviewed_text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Reviewed text cannot be empty")
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
