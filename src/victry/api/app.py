from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from victry.api.routes import router as api_router
from victry.config import Settings, get_settings
from victry.db.init import init_database
from victry.db.session import build_engine, build_session_factory
from victry.errors import VictryError
from victry.llm.router import LLMRouter
from victry.logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, llm: LLMRouter | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    engine = build_engine(settings)
    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.llm = llm or LLMRouter(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database(engine, settings)

    @app.exception_handler(VictryError)
    def _victry_error(request: Request, exc: VictryError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"error": exc.message, "code": exc.code}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = "; ".join(
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in exc.errors()
        )
        return JSONResponse({"error": messages, "code": "validation_error"}, status_code=400)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    return app
