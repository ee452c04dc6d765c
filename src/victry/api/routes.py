from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response, status

from victry.api.deps import (
    get_current_user_id,
    get_job_service,
    get_llm,
    get_resume_service,
    get_tailoring_service,
)
from victry.api.schemas import (
    AnalyzeJobRequest,
    ApplicationStatusRequest,
    ClaudeMessagesRequest,
    ClaudeMessagesResponse,
    DuplicateResumeRequest,
    ListResponse,
    ResumeWriteResponse,
    TailorResumeRequest,
)
from victry.core.job_descriptions import JobDescriptionService
from victry.core.resumes import ResumeService
from victry.core.tailoring import TailoringService
from victry.llm.router import LLMRouter

router = APIRouter(prefix="/api", tags=["api"])


@router.get("/resumes", response_model=ListResponse)
def list_resumes(
    page: int = Query(1),
    limit: int = Query(10),
    search: str | None = Query(None),
    sort_by: str = Query("updated_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    is_base_resume: bool | None = Query(None, alias="isBaseResume"),
    include_details: bool = Query(False, alias="includeDetails"),
    service: ResumeService = Depends(get_resume_service),
) -> ListResponse:
    result = service.list(
        page=page,
        limit=limit,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        is_base_resume=is_base_resume,
        include_details=include_details,
    )
    return ListResponse.model_validate(result)


@router.post("/resumes", response_model=ResumeWriteResponse, status_code=status.HTTP_201_CREATED)
def create_resume(
    payload: dict[str, Any] = Body(...),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeWriteResponse:
    tree, warnings = service.create(payload)
    return ResumeWriteResponse(data=tree, persistence_warnings=warnings)


@router.get("/resumes/{resume_id}")
def get_resume(resume_id: str, service: ResumeService = Depends(get_resume_service)) -> dict[str, Any]:
    return service.get(resume_id)


@router.patch("/resumes/{resume_id}", response_model=ResumeWriteResponse)
def update_resume(
    resume_id: str,
    payload: dict[str, Any] = Body(...),
    service: ResumeService = Depends(get_resume_service),
) -> ResumeWriteResponse:
    tree, warnings = service.update(resume_id, payload)
    return ResumeWriteResponse(data=tree, persistence_warnings=warnings)


@router.delete("/resumes/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume(resume_id: str, service: ResumeService = Depends(get_resume_service)) -> Response:
    service.delete(resume_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/resumes/{resume_id}/duplicate",
    response_model=ResumeWriteResponse,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_resume(
    resume_id: str,
    payload: DuplicateResumeRequest | None = None,
    service: ResumeService = Depends(get_resume_service),
) -> ResumeWriteResponse:
    tree = service.duplicate(resume_id, title=payload.title if payload else None)
    return ResumeWriteResponse(data=tree)


@router.delete("/resumes/{resume_id}/sections/{section}/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume_item(
    resume_id: str,
    section: str,
    item_id: str,
    service: ResumeService = Depends(get_resume_service),
) -> Response:
    service.delete_item(resume_id, section, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/ai/tailor-resume")
def tailor_resume(
    payload: TailorResumeRequest,
    service: TailoringService = Depends(get_tailoring_service),
) -> dict[str, Any]:
    return service.tailor(payload.resume_id, payload.job_description_id, payload.settings)


@router.get("/job-descriptions", response_model=ListResponse)
def list_job_descriptions(
    page: int = Query(1),
    limit: int = Query(50),
    search: str | None = Query(None),
    sort_by: str = Query("created_at", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    service: JobDescriptionService = Depends(get_job_service),
) -> ListResponse:
    result = service.list(page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order)
    return ListResponse.model_validate(result)


@router.post("/job-descriptions", status_code=status.HTTP_201_CREATED)
def create_job_description(
    payload: dict[str, Any] = Body(...),
    service: JobDescriptionService = Depends(get_job_service),
) -> dict[str, Any]:
    return service.create(payload)


@router.get("/job-descriptions/{job_id}")
def get_job_description(job_id: str, service: JobDescriptionService = Depends(get_job_service)) -> dict[str, Any]:
    return service.get(job_id)


@router.patch("/job-descriptions/{job_id}")
def update_job_description(
    job_id: str,
    payload: dict[str, Any] = Body(...),
    service: JobDescriptionService = Depends(get_job_service),
) -> dict[str, Any]:
    return service.update(job_id, payload)


@router.delete("/job-descriptions/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job_description(job_id: str, service: JobDescriptionService = Depends(get_job_service)) -> Response:
    service.delete(job_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/job-descriptions/{job_id}/status")
def set_application_status(
    job_id: str,
    payload: ApplicationStatusRequest,
    service: JobDescriptionService = Depends(get_job_service),
) -> dict[str, Any]:
    return service.set_application_status(
        job_id,
        payload.status,
        notes=payload.notes,
        application_date=payload.application_date,
    )


@router.post("/ai/analyze-job")
def analyze_job(
    payload: AnalyzeJobRequest,
    service: JobDescriptionService = Depends(get_job_service),
) -> dict[str, Any]:
    return {"analysis": service.analyze(payload.job_description_id)}


@router.post(
    "/ai/claude",
    response_model=ClaudeMessagesResponse,
    dependencies=[Depends(get_current_user_id)],
)
def claude_messages(payload: ClaudeMessagesRequest, llm: LLMRouter = Depends(get_llm)) -> ClaudeMessagesResponse:
    response = llm.complete(payload.to_llm_request())
    return ClaudeMessagesResponse.from_model_response(response, model=payload.model or llm.settings.llm_model)
