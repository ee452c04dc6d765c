from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from victry.config import Settings, get_settings
from victry.errors import LLMResponseError
from victry.llm.prompts import (
    ANALYST_SYSTEM_PROMPT,
    TAILORING_SYSTEM_PROMPT,
    build_job_analysis_prompt,
    build_tailoring_prompt,
)
from victry.llm.providers import CompletionProvider, build_provider, extract_structured
from victry.llm.tools import JOB_ANALYSIS_TOOL, RESUME_TAILORING_TOOL
from victry.types import (
    ChatMessage,
    JobAnalysisPayload,
    LLMRequest,
    ModelResponse,
    TailoringPayload,
    TailoringSettings,
)

logger = logging.getLogger(__name__)


class LLMRouter:
    """Builds prompts, calls the configured provider once, and validates the structured reply."""

    def __init__(self, settings: Settings | None = None, provider: CompletionProvider | None = None):
        self.settings = settings or get_settings()
        self.provider = provider or build_provider(self.settings)

    def complete(self, request: LLMRequest) -> ModelResponse:
        """Forward a caller-built request unchanged; provider errors are already translated."""
        logger.info("Forwarding %d message(s) with %d tool(s)", len(request.messages), len(request.tools))
        return self.provider.complete(request)

    def analyze_job(self, *, job_description: str) -> JobAnalysisPayload:
        prompt = build_job_analysis_prompt(job_description)
        request = LLMRequest(
            messages=[ChatMessage(role="user", content=prompt)],
            system=ANALYST_SYSTEM_PROMPT,
            model=self.settings.llm_model,
            temperature=self.settings.analysis_temperature,
            max_tokens=self.settings.analysis_max_tokens,
            tools=[JOB_ANALYSIS_TOOL],
        )
        data = extract_structured(self.provider.complete(request), JOB_ANALYSIS_TOOL.name)
        try:
            return JobAnalysisPayload.model_validate(data)
        except ValidationError as exc:
            logger.warning("Invalid structured job analysis output: %s", exc)
            raise LLMResponseError("Job analysis response did not match the expected structure") from exc

    def tailor_resume(
        self,
        *,
        resume: dict[str, Any],
        job_description: str,
        analysis: dict[str, Any] | None,
        settings: TailoringSettings,
    ) -> TailoringPayload:
        prompt = build_tailoring_prompt(
            resume=resume,
            job_description=job_description,
            analysis=analysis,
            settings=settings,
        )
        request = LLMRequest(
            messages=[ChatMessage(role="user", content=prompt)],
            system=TAILORING_SYSTEM_PROMPT,
            model=self.settings.llm_model,
            temperature=self.settings.tailoring_temperature,
            max_tokens=self.settings.tailoring_max_tokens,
            tools=[RESUME_TAILORING_TOOL],
        )
        data = extract_structured(self.provider.complete(request), RESUME_TAILORING_TOOL.name)
        if not data.get("tailoredResume") or not data.get("tailoringNotes"):
            raise LLMResponseError("Invalid tailoring response structure")
        try:
            payload = TailoringPayload.model_validate(data)
        except ValidationError as exc:
            logger.warning("Invalid tailoring payload: %s", exc)
            raise LLMResponseError("Invalid tailoring response structure") from exc

        tailored = payload.tailored_resume
        if not tailored.get("personalInfo") or not tailored.get("professionalSummary"):
            raise LLMResponseError("Invalid tailored resume structure")
        return payload
