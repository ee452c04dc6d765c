from victry.errors import LLMRateLimitError
from victry.types import ModelResponse

JOB = {
    "title": "Senior Python Engineer",
    "company": "Initech",
    "location": "Remote",
    "content": "We need a Python engineer who designs APIs and mentors others.",
    "url": "https://jobs.example.com/42",
    "tags": ["python", "backend"],
    "salaryRange": {"min": 100000, "max": 140000, "currency": "USD"},
    "applicationDeadline": "2026-12-01T00:00:00Z",
}

ANALYSIS = {
    "hardSkills": [{"skill": "Python", "importance": "must_have"}, {"skill": "SQL", "importance": "critical"}],
    "softSkills": [{"skill": "Mentoring"}],
    "qualifications": {
        "experience": [{"description": "5+ years building services", "importance": "must_have"}],
        "education": [{"type": "BSc", "field": "Computer Science", "importance": "preferred"}],
        "certifications": [],
    },
    "keywords": [{"text": "Python", "frequency": 3, "context": "title"}, {"text": "APIs"}],
    "companyCulture": [{"trait": "Ownership"}, {"trait": None}],
    "experienceLevel": {"level": "senior"},
    "industry": "software",
    "remoteStatus": "remote",
}


def _create_job(client, headers, **overrides) -> dict:
    response = client.post("/api/job-descriptions", json={**JOB, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_read_job_description(client, alice_headers) -> None:
    job = _create_job(client, alice_headers)
    fetched = client.get(f"/api/job-descriptions/{job['id']}", headers=alice_headers).json()

    assert fetched["title"] == "Senior Python Engineer"
    assert fetched["userId"] == "user-alice"
    assert fetched["tags"] == ["python", "backend"]
    assert fetched["salaryRange"] == {"min": 100000, "max": 140000, "currency": "USD"}
    assert fetched["applicationDeadline"].startswith("2026-12-01T00:00:00")
    assert fetched["applicationStatus"] == "not_applied"
    assert fetched["hasApplied"] is False
    assert fetched["isActive"] is True
    assert fetched["analysis"] is None


def test_create_validates_required_fields_and_formats(client, alice_headers) -> None:
    missing = client.post("/api/job-descriptions", json={"title": "Dev", "company": "Acme"}, headers=alice_headers)
    bad_url = client.post("/api/job-descriptions", json={**JOB, "url": "jobs.example.com"}, headers=alice_headers)
    bad_date = client.post("/api/job-descriptions", json={**JOB, "applicationDeadline": "soon"}, headers=alice_headers)

    assert missing.status_code == 400
    assert missing.json()["error"] == "content is required"
    assert bad_url.status_code == 400
    assert bad_date.status_code == 400


def test_update_list_and_delete(client, alice_headers) -> None:
    job = _create_job(client, alice_headers)
    _create_job(client, alice_headers, title="Data Engineer", company="Globex", content="Pipelines all day")

    updated = client.patch(
        f"/api/job-descriptions/{job['id']}", json={"notes": "Referral from Sam", "isFavorite": True}, headers=alice_headers
    ).json()
    assert updated["notes"] == "Referral from Sam"
    assert updated["isFavorite"] is True
    assert updated["company"] == "Initech"

    listed = client.get(
        "/api/job-descriptions", params={"sortBy": "title", "sortOrder": "asc"}, headers=alice_headers
    ).json()
    assert [row["title"] for row in listed["data"]] == ["Data Engineer", "Senior Python Engineer"]
    assert listed["count"] == 2

    searched = client.get("/api/job-descriptions", params={"search": "globex"}, headers=alice_headers).json()
    assert [row["company"] for row in searched["data"]] == ["Globex"]

    assert client.delete(f"/api/job-descriptions/{job['id']}", headers=alice_headers).status_code == 204
    assert client.get(f"/api/job-descriptions/{job['id']}", headers=alice_headers).status_code == 404


def test_application_status_tracking(client, alice_headers) -> None:
    job = _create_job(client, alice_headers)

    applied = client.post(
        f"/api/job-descriptions/{job['id']}/status", json={"status": "applied", "notes": "Sent CV"}, headers=alice_headers
    ).json()
    assert applied["applicationStatus"] == "applied"
    assert applied["hasApplied"] is True
    assert applied["applicationDate"] is not None
    assert applied["notes"] == "Sent CV"

    dated = client.post(
        f"/api/job-descriptions/{job['id']}/status",
        json={"status": "interview_scheduled", "applicationDate": "2026-03-04T09:30:00Z"},
        headers=alice_headers,
    ).json()
    assert dated["applicationDate"].startswith("2026-03-04T09:30:00")
    assert dated["notes"] == "Sent CV"

    reset = client.post(
        f"/api/job-descriptions/{job['id']}/status", json={"status": "not_applied"}, headers=alice_headers
    ).json()
    assert reset["hasApplied"] is False
    assert reset["applicationDate"] is None
    assert reset["applicationStatus"] == "not_applied"

    invalid = client.post(
        f"/api/job-descriptions/{job['id']}/status", json={"status": "ghosted"}, headers=alice_headers
    )
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "validation_error"


def test_analyze_job_stores_and_replaces_analysis(client, alice_headers, fake_provider) -> None:
    job = _create_job(client, alice_headers)
    fake_provider.queue(ModelResponse(content="", tool_calls={"job_analysis": ANALYSIS}))
    fake_provider.queue(ModelResponse(content="", tool_calls={"job_analysis": {**ANALYSIS, "industry": "fintech"}}))

    first = client.post("/api/ai/analyze-job", json={"jobDescriptionId": job["id"]}, headers=alice_headers)
    assert first.status_code == 200, first.text
    analysis = first.json()["analysis"]

    assert analysis["jobDescriptionId"] == job["id"]
    assert [(req["type"], req["content"], req["importance"]) for req in analysis["requirements"]] == [
        ("hard_skill", "Python", "must_have"),
        ("hard_skill", "SQL", "nice_to_have"),
        ("soft_skill", "Mentoring", "nice_to_have"),
        ("experience", "5+ years building services", "must_have"),
        ("education", "BSc in Computer Science", "preferred"),
    ]
    assert all(req["id"] for req in analysis["requirements"])
    assert [(kw["text"], kw["frequency"]) for kw in analysis["keywords"]] == [("Python", 3), ("APIs", 1)]
    assert analysis["companyCulture"] == ["Ownership"]
    assert analysis["experienceLevel"] == "senior"
    assert analysis["remoteWork"] == "remote"

    request = fake_provider.requests[0]
    assert request.tools[0].name == "job_analysis"
    assert request.temperature == 0.3
    assert request.max_tokens == 2048
    assert JOB["content"] in request.messages[0].content

    second = client.post("/api/ai/analyze-job", json={"jobDescriptionId": job["id"]}, headers=alice_headers).json()
    assert second["analysis"]["id"] == analysis["id"]
    assert second["analysis"]["industry"] == "fintech"

    fetched = client.get(f"/api/job-descriptions/{job['id']}", headers=alice_headers).json()
    assert fetched["analysis"]["industry"] == "fintech"


def test_analyze_job_surfaces_provider_failures(client, alice_headers, fake_provider) -> None:
    job = _create_job(client, alice_headers)
    fake_provider.queue(LLMRateLimitError("anthropic rate limit exceeded"))

    limited = client.post("/api/ai/analyze-job", json={"jobDescriptionId": job["id"]}, headers=alice_headers)
    unavailable = client.post("/api/ai/analyze-job", json={"jobDescriptionId": job["id"]}, headers=alice_headers)
    missing = client.post("/api/ai/analyze-job", json={"jobDescriptionId": "nope"}, headers=alice_headers)

    assert limited.status_code == 429
    assert limited.json()["code"] == "llm_rate_limited"
    assert unavailable.status_code == 503
    assert missing.status_code == 404
    assert client.get(f"/api/job-descriptions/{job['id']}", headers=alice_headers).json()["analysis"] is None


def test_deleting_a_job_description_unlinks_resumes(client, alice_headers) -> None:
    job = _create_job(client, alice_headers)
    resume = client.post(
        "/api/resumes",
        json={"title": "Linked", "templateId": "modern", "jobDescriptionId": job["id"]},
        headers=alice_headers,
    ).json()["data"]
    assert resume["jobDescriptionId"] == job["id"]

    client.delete(f"/api/job-descriptions/{job['id']}", headers=alice_headers)

    assert client.get(f"/api/resumes/{resume['id']}", headers=alice_headers).json()["jobDescriptionId"] is None
