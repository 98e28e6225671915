# gz_stream/models.py
from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]
Phase = Literal["intake", "module", "validation", "document"]


class ChatMessage(BaseModel):
    """A single turn of the coaching conversation."""
    role: Role
    content: str = Field(min_length=1)
    timestamp: int | None = None


class ChatRequest(BaseModel):
    """
    Request body for the chat endpoint.

    Field names are snake_case in Python and camelCase on the wire.
    """
    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(min_length=1)
    workshop_id: uuid.UUID | None = Field(default=None, alias="workshopId")
    current_module: str | None = Field(default=None, alias="currentModule")
    phase: Phase = "module"
    include_coaching: bool = Field(default=True, alias="includeCoaching")
    previous_phase_data: dict[str, Any] | None = Field(
        default=None, alias="previousPhaseData"
    )

    def to_payload(self) -> dict[str, Any]:
        """JSON body as sent to the endpoint."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RateLimitInfo(BaseModel):
    """Rate limit state reported through response headers."""
    limit: int
    remaining: int
    reset: int


class ChatErrorResponse(BaseModel):
    """Error body returned by the chat endpoint."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    error: str = "Request failed"
    message: str | None = None
    status: int | None = None
    retry_after: float | None = Field(default=None, alias="retryAfter")
