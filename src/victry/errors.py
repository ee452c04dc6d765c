from __future__ import annotations


class VictryError(Exception):
    """Base error; carries the HTTP status and a machine-readable code."""

    status_code = 500
    code = "unknown_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class AuthenticationRequiredError(VictryError):
    status_code = 401
    code = "auth_required"


class AccessDeniedError(VictryError):
    status_code = 403
    code = "access_denied"


class NotFoundError(VictryError):
    status_code = 404
    code = "not_found"


class ValidationFailedError(VictryError):
    status_code = 400
    code = "validation_error"


class LLMError(VictryError):
    status_code = 502
    code = "llm_error"


class LLMRateLimitError(LLMError):
    status_code = 429
    code = "llm_rate_limited"


class LLMAuthenticationError(LLMError):
    status_code = 502
    code = "llm_auth_failed"


class LLMUnavailableError(LLMError):
    status_code = 503
    code = "llm_unavailable"


class LLMUpstreamError(LLMError):
    code = "llm_upstream_error"

    def __init__(self, message: str, *, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class LLMResponseError(LLMError):
    code = "llm_malformed_output"
