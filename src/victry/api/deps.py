from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from victry.config import Settings
from victry.core.job_descriptions import JobDescriptionService
from victry.core.resumes import ResumeService
from victry.core.tailoring import TailoringService
from victry.db.session import open_owner_session
from victry.errors import AuthenticationRequiredError
from victry.llm.router import LLMRouter

security = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_llm(request: Request) -> LLMRouter:
    return request.app.state.llm


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings_dep),
) -> str:
    """Caller id from the session token (Bearer header or session cookie)."""
    token = credentials.credentials if credentials else request.cookies.get(settings.session_cookie_name)
    if not token:
        raise AuthenticationRequiredError("Authentication required")
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise AuthenticationRequiredError("Invalid or expired session") from exc
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationRequiredError("Invalid session")
    return str(user_id)


def get_db(request: Request, user_id: str = Depends(get_current_user_id)) -> Generator[Session, None, None]:
    db = open_owner_session(request.app.state.session_factory, user_id)
    try:
        yield db
    finally:
        db.close()


def get_resume_service(
    db: Session = Depends(get_db), user_id: str = Depends(get_current_user_id)
) -> ResumeService:
    return ResumeService(db, user_id)


def get_job_service(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    llm: LLMRouter = Depends(get_llm),
) -> JobDescriptionService:
    return JobDescriptionService(db, user_id, llm)


def get_tailoring_service(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    llm: LLMRouter = Depends(get_llm),
) -> TailoringService:
    return TailoringService(db, user_id, llm)
