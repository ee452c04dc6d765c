import pytest
from sqlalchemy import func, select

from victry.db.models import JobDescription, Resume, WorkExperience
from victry.errors import AccessDeniedError

ALICE = "user-alice"
BOB = "user-bob"


def _create_resume(client, headers, **extra) -> dict:
    response = client.post("/api/resumes", json={"title": "Alice CV", "templateId": "modern", **extra}, headers=headers)
    assert response.status_code == 201
    return response.json()["data"]


def test_requests_without_a_session_are_rejected(client) -> None:
    response = client.get("/api/resumes")
    assert response.status_code == 401
    assert response.json()["code"] == "auth_required"

    bad = client.get("/api/resumes", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


def test_session_cookie_is_accepted(client, alice_headers) -> None:
    token = alice_headers["Authorization"].removeprefix("Bearer ")
    client.cookies.set("victry-session", token)
    response = client.get("/api/resumes")
    client.cookies.clear()
    assert response.status_code == 200


def test_other_users_resumes_are_invisible(client, alice_headers, bob_headers) -> None:
    resume = _create_resume(client, alice_headers)

    assert client.get(f"/api/resumes/{resume['id']}", headers=bob_headers).status_code == 404
    assert client.patch(f"/api/resumes/{resume['id']}", json={"title": "Mine"}, headers=bob_headers).status_code == 404
    assert client.delete(f"/api/resumes/{resume['id']}", headers=bob_headers).status_code == 404
    assert client.post(f"/api/resumes/{resume['id']}/duplicate", headers=bob_headers).status_code == 404
    assert client.get("/api/resumes", headers=bob_headers).json()["count"] == 0

    still_there = client.get(f"/api/resumes/{resume['id']}", headers=alice_headers)
    assert still_there.status_code == 200
    assert still_there.json()["title"] == "Alice CV"


def test_lineage_cannot_point_at_another_users_rows(client, alice_headers, bob_headers) -> None:
    resume = _create_resume(client, alice_headers)
    job = client.post(
        "/api/job-descriptions",
        json={"title": "SRE", "company": "Initech", "content": "Keep things running"},
        headers=alice_headers,
    ).json()

    copied = client.post(
        "/api/resumes",
        json={"title": "Bob CV", "templateId": "modern", "originalResumeId": resume["id"]},
        headers=bob_headers,
    )
    linked = client.post(
        "/api/resumes",
        json={"title": "Bob CV", "templateId": "modern", "jobDescriptionId": job["id"]},
        headers=bob_headers,
    )

    assert copied.status_code == 403
    assert copied.json()["code"] == "access_denied"
    assert linked.status_code == 403


def test_other_users_job_descriptions_are_invisible(client, alice_headers, bob_headers) -> None:
    job = client.post(
        "/api/job-descriptions",
        json={"title": "SRE", "company": "Initech", "content": "Keep things running"},
        headers=alice_headers,
    ).json()

    assert client.get(f"/api/job-descriptions/{job['id']}", headers=bob_headers).status_code == 404
    assert client.delete(f"/api/job-descriptions/{job['id']}", headers=bob_headers).status_code == 404
    assert client.get("/api/job-descriptions", headers=bob_headers).json()["data"] == []


def test_owner_sessions_filter_reads(owner_session) -> None:
    alice = owner_session(ALICE)
    alice.add_all(
        [
            Resume(user_id=ALICE, title="One", template_id="modern"),
            JobDescription(user_id=ALICE, title="Dev", company="Acme", content="Write code"),
        ]
    )
    alice.commit()

    bob = owner_session(BOB)
    assert bob.scalars(select(Resume)).all() == []
    assert bob.scalar(select(func.count()).select_from(Resume)) == 0
    assert bob.scalars(select(JobDescription)).all() == []
    assert len(alice.scalars(select(Resume)).all()) == 1


def test_owner_sessions_refuse_foreign_children(owner_session) -> None:
    alice = owner_session(ALICE)
    resume = Resume(user_id=ALICE, title="One", template_id="modern")
    alice.add(resume)
    alice.commit()
    resume_id = resume.id
    alice.close()

    bob = owner_session(BOB)
    bob.add(WorkExperience(resume_id=resume_id, company="Evil", position="Intruder", start_date="2020-01", current=True))
    with pytest.raises(AccessDeniedError):
        bob.commit()
    bob.rollback()

    bob.add(Resume(user_id=ALICE, title="Spoofed", template_id="modern"))
    with pytest.raises(AccessDeniedError):
        bob.commit()
    bob.rollback()
