from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from victry.core.fields import camel_name
from victry.types import ApplicationStatus, ChatMessage, LLMRequest, ModelResponse, TailoringSettings, ToolSchema


class CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=camel_name, populate_by_name=True)


class DuplicateResumeRequest(CamelRequest):
    title: str | None = None


class TailorResumeRequest(CamelRequest):
    resume_id: str = Field(min_length=1)
    job_description_id: str = Field(min_length=1)
    settings: TailoringSettings | None = None


class AnalyzeJobRequest(CamelRequest):
    job_description_id: str = Field(min_length=1)


class ApplicationStatusRequest(CamelRequest):
    status: ApplicationStatus
    notes: str | None = None
    application_date: str | None = None


class Pagination(CamelRequest):
    page: int
    limit: int
    total_pages: int
    has_more: bool


class ListResponse(CamelRequest):
    data: list[dict[str, Any]]
    count: int
    pagination: Pagination


class ResumeWriteResponse(CamelRequest):
    data: dict[str, Any]
    persistence_warnings: list[str] = Field(default_factory=list)


class ClaudeMessagesRequest(CamelRequest):
    """A single prompt or a full message history, forwarded to the model as one call."""

    prompt: str | None = None
    messages: list[ChatMessage] | None = None
    system: str | None = None
    model: str | None = None
    max_tokens: int = Field(1024, gt=0)
    temperature: float = Field(0.7, ge=0, le=1)
    top_p: float | None = Field(None, ge=0, le=1)
    top_k: int | None = Field(None, gt=0)
    stop_sequences: list[str] = Field(default_factory=list)
    tools: list[ToolSchema] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_prompt_or_messages(self) -> ClaudeMessagesRequest:
        if not self.prompt and not self.messages:
            raise ValueError("Either prompt or messages is required")
        return self

    def to_llm_request(self) -> LLMRequest:
        messages = self.messages or [ChatMessage(role="user", content=self.prompt or "")]
        return LLMRequest(
            messages=messages,
            system=self.system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
            top_k=self.top_k,
            stop_sequences=self.stop_sequences,
            tools=self.tools,
        )


class TokenUsage(CamelRequest):
    input_tokens: int | None = None
    output_tokens: int | None = None


class ClaudeMessagesResponse(CamelRequest):
    id: str | None = None
    type: str = "completion"
    role: str = "assistant"
    content: str
    model: str | None = None
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    tool_calls: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @classmethod
    def from_model_response(cls, response: ModelResponse, *, model: str | None) -> ClaudeMessagesResponse:
        return cls(
            id=response.id,
            content=response.content,
            model=response.model or model,
            stop_reason=response.stop_reason,
            stop_sequence=response.stop_sequence,
            usage=TokenUsage(input_tokens=response.input_tokens, output_tokens=response.output_tokens),
            tool_calls=response.tool_calls,
        )
