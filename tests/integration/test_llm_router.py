import json

import pytest

from victry.errors import LLMRateLimitError, LLMResponseError
from victry.llm.router import LLMRouter
from victry.types import ChatMessage, LLMRequest, ModelResponse, TailoringSettings

RESUME = {"title": "CV", "personalInfo": {"fullName": "Ada"}, "professionalSummary": {"content": "Engineer"}}
TAILORED = {
    "tailoredResume": {
        "title": "CV",
        "personalInfo": {"fullName": "Ada"},
        "professionalSummary": {"content": "Python engineer"},
    },
    "tailoringNotes": {"summary": "Sharpened", "keywordMatches": [{"keyword": "Python", "source": "added"}]},
}


def _tailor(router: LLMRouter, **settings):
    return router.tailor_resume(
        resume=RESUME,
        job_description="Python engineer wanted",
        analysis=None,
        settings=TailoringSettings(**settings),
    )


def test_tailoring_request_uses_tool_and_settings(llm, fake_provider, settings) -> None:
    fake_provider.queue(ModelResponse(content="", tool_calls={"resume_tailoring": TAILORED}))

    payload = _tailor(llm, intensity=80)

    assert payload.tailored_resume["professionalSummary"]["content"] == "Python engineer"
    assert payload.tailoring_notes.keyword_matches[0].keyword == "Python"
    request = fake_provider.requests[0]
    assert request.tools[0].name == "resume_tailoring"
    assert request.temperature == settings.tailoring_temperature == 0.2
    assert request.max_tokens == settings.tailoring_max_tokens == 4096
    assert request.model == settings.llm_model
    assert "Tailoring intensity: high (80/100)" in request.messages[0].content


def test_tailoring_accepts_fenced_json_fallback(llm, fake_provider) -> None:
    fake_provider.queue(ModelResponse(content=f"Done.\n```json\n{json.dumps(TAILORED)}\n```"))
    assert _tailor(llm).tailoring_notes.summary == "Sharpened"


@pytest.mark.parametrize(
    "reply",
    [
        {"tailoredResume": TAILORED["tailoredResume"]},
        {"tailoredResume": {"title": "CV"}, "tailoringNotes": {"summary": "x"}},
        {"tailoredResume": {"personalInfo": {"fullName": "Ada"}}, "tailoringNotes": {"summary": "x"}},
    ],
)
def test_tailoring_rejects_incomplete_replies(llm, fake_provider, reply) -> None:
    fake_provider.queue(ModelResponse(content="", tool_calls={"resume_tailoring": reply}))
    with pytest.raises(LLMResponseError):
        _tailor(llm)


def test_job_analysis_rejects_unstructured_reply(llm, fake_provider) -> None:
    fake_provider.queue(ModelResponse(content="I could not analyze this."))
    with pytest.raises(LLMResponseError):
        llm.analyze_job(job_description="Python engineer wanted")


def test_job_analysis_rejects_mistyped_reply(llm, fake_provider) -> None:
    fake_provider.queue(ModelResponse(content="", tool_calls={"job_analysis": {"hardSkills": "Python"}}))
    with pytest.raises(LLMResponseError):
        llm.analyze_job(job_description="Python engineer wanted")


def test_complete_forwards_the_request_unchanged(llm, fake_provider) -> None:
    fake_provider.queue(ModelResponse(content="pong", stop_reason="end_turn"))
    request = LLMRequest(
        messages=[ChatMessage(role="user", content="ping"), ChatMessage(role="assistant", content="pong?")],
        top_k=5,
        stop_sequences=["###"],
    )

    response = llm.complete(request)

    assert response.content == "pong"
    assert fake_provider.requests == [request]


def test_complete_propagates_provider_errors(llm, fake_provider) -> None:
    fake_provider.queue(LLMRateLimitError("anthropic rate limit exceeded"))
    with pytest.raises(LLMRateLimitError):
        llm.complete(LLMRequest(messages=[ChatMessage(role="user", content="ping")]))
