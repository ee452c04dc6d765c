from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Protocol

import anthropic
import openai

from victry.config import Settings
from victry.errors import (
    LLMAuthenticationError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
    LLMUnavailableError,
    LLMUpstreamError,
)
from victry.types import LLMRequest, ModelResponse

logger = logging.getLogger(__name__)

FENCED_JSON = re.compile(r"```json\n([\s\S]*?)\n```")


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int
    model: str


class CompletionProvider(Protocol):
    config: ProviderConfig

    def complete(self, request: LLMRequest) -> ModelResponse: ...


def translate_api_error(exc: Exception, *, provider: str) -> LLMError:
    """Map an SDK exception onto the LLM error taxonomy. Both SDKs share class names."""
    sdk = anthropic if provider == "anthropic" else openai
    if isinstance(exc, sdk.RateLimitError):
        return LLMRateLimitError(f"{provider} rate limit exceeded")
    if isinstance(exc, (sdk.AuthenticationError, sdk.PermissionDeniedError)):
        return LLMAuthenticationError(f"{provider} rejected the configured credentials")
    if isinstance(exc, sdk.APIConnectionError):
        # APITimeoutError is a subclass of APIConnectionError in both SDKs.
        return LLMUnavailableError(f"{provider} API is unreachable: {exc}")
    if isinstance(exc, sdk.APIStatusError):
        logger.error(
            "Upstream %s error status=%s request_id=%s message=%s",
            provider,
            exc.status_code,
            getattr(exc, "request_id", None),
            exc,
        )
        return LLMUpstreamError(f"{provider} API error ({exc.status_code})", upstream_status=exc.status_code)
    return LLMResponseError(f"{provider} returned an unreadable response: {exc}")


def _dump(response: Any) -> dict[str, Any]:
    raw = response.model_dump() if hasattr(response, "model_dump") else {}
    return raw if isinstance(raw, dict) else {"raw": raw}


class AnthropicProvider:
    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = None
        if config.api_key:
            self.client = anthropic.Anthropic(
                api_key=config.api_key,
                base_url=config.base_url or None,
                timeout=float(config.timeout_sec),
                max_retries=0,
            )

    def complete(self, request: LLMRequest) -> ModelResponse:
        if self.client is None:
            raise LLMUnavailableError("Anthropic API key is not configured")

        kwargs: dict[str, Any] = {
            "model": request.model or self.config.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [message.model_dump() for message in request.messages],
        }
        if request.system:
            kwargs["system"] = request.system
        if request.top_p is not None:
            kwargs["top_p"] = request.top_p
        if request.top_k is not None:
            kwargs["top_k"] = request.top_k
        if request.stop_sequences:
            kwargs["stop_sequences"] = request.stop_sequences
        if request.tools:
            kwargs["tools"] = [tool.model_dump() for tool in request.tools]

        try:
            response = self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise translate_api_error(exc, provider="anthropic") from exc

        text_parts: list[str] = []
        tool_calls: dict[str, dict[str, Any]] = {}
        for block in getattr(response, "content", None) or []:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                text_parts.append(block.text)
            elif block_type == "tool_use" and isinstance(block.input, dict):
                tool_calls[block.name] = block.input
        usage = getattr(response, "usage", None)
        return ModelResponse(
            content="".join(text_parts),
            tool_calls=tool_calls,
            id=getattr(response, "id", None),
            model=getattr(response, "model", None) or kwargs["model"],
            stop_reason=getattr(response, "stop_reason", None),
            stop_sequence=getattr(response, "stop_sequence", None),
            input_tokens=getattr(usage, "input_tokens", None),
            output_tokens=getattr(usage, "output_tokens", None),
            raw=_dump(response),
        )


class OpenAIProvider:
    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = None
        if config.api_key:
            self.client = openai.OpenAI(
                base_url=config.base_url,
                api_key=config.api_key,
                timeout=float(config.timeout_sec),
                max_retries=0,
            )

    def complete(self, request: LLMRequest) -> ModelResponse:
        if self.client is None:
            raise LLMUnavailableError("OpenAI API key is not configured")

        messages = [message.model_dump() for message in request.messages]
        if request.system:
            messages.insert(0, {"role": "system", "content": request.system})
        kwargs: dict[str, Any] = {
            "model": request.model or self.config.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": messages,
        }
        if request.top_p is not None:
            kwargs["top_p"] = request.top_p
        if request.stop_sequences:
            kwargs["stop"] = request.stop_sequences
        if request.top_k is not None:
            logger.debug("OpenAI chat completions have no top_k; ignoring top_k=%s", request.top_k)
        if request.tools:
            kwargs["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.input_schema,
                    },
                }
                for tool in request.tools
            ]

        try:
            response = self.client.chat.completions.create(**kwargs)
        except openai.APIError as exc:
            raise translate_api_error(exc, provider="openai") from exc

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None) or ""
        tool_calls: dict[str, dict[str, Any]] = {}
        for call in getattr(message, "tool_calls", None) or []:
            function = getattr(call, "function", None)
            if function is None:
                continue
            try:
                arguments = json.loads(function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning("Discarding tool call %s with malformed arguments", function.name)
                continue
            if isinstance(arguments, dict):
                tool_calls[function.name] = arguments
        usage = getattr(response, "usage", None)
        return ModelResponse(
            content=str(content),
            tool_calls=tool_calls,
            id=getattr(response, "id", None),
            model=getattr(response, "model", None) or kwargs["model"],
            stop_reason=getattr(choices[0], "finish_reason", None) if choices else None,
            input_tokens=getattr(usage, "prompt_tokens", None),
            output_tokens=getattr(usage, "completion_tokens", None),
            raw=_dump(response),
        )


def extract_structured(response: ModelResponse, tool_name: str) -> dict[str, Any]:
    """Return the named tool call's input, else the first ```json fenced block in the text."""
    payload = response.tool_calls.get(tool_name)
    if payload:
        return payload

    match = FENCED_JSON.search(response.content)
    if match:
        try:
            value = json.loads(match.group(1))
        except json.JSONDecodeError as exc:
            raise LLMResponseError("Failed to parse JSON from model response") from exc
        if isinstance(value, dict):
            return value
    raise LLMResponseError("Failed to extract structured data from model response")


def build_provider(settings: Settings) -> CompletionProvider:
    if settings.llm_provider == "openai":
        return OpenAIProvider(
            ProviderConfig(
                name="openai",
                base_url=settings.openai_base_url,
                api_key=settings.openai_api_key,
                timeout_sec=settings.openai_timeout_sec,
                model=settings.openai_model,
            )
        )
    return AnthropicProvider(
        ProviderConfig(
            name="anthropic",
            base_url=settings.anthropic_base_url,
            api_key=settings.anthropic_api_key,
            timeout_sec=settings.anthropic_timeout_sec,
            model=settings.anthropic_model,
        )
    )
