from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from helpdesk.api.v1.router import api_router
from helpdesk.core.config import settings
from helpdesk.core.errors import (
    HelpdeskError,
    InactiveActorError,
    InvalidArgumentError,
    InvalidAssignmentError,
    NotFoundError,
    UniqueConstraintViolation,
)
from helpdesk.core.logging import configure_logging
from helpdesk.schemas.common import ErrorResponse


configure_logging()
logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[HelpdeskError], int] = {
    NotFoundError: 404,
    InactiveActorError: 403,
    InvalidAssignmentError: 422,
    InvalidArgumentError: 400,
    UniqueConstraintViolation: 409,
}

app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)

Instrumentator().instrument(app).expose(app)


@app.exception_handler(HelpdeskError)
async def helpdesk_error_handler(request: Request, exc: HelpdeskError) -> ORJSONResponse:
    status_code = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    logger.info("%s %s rejected with %s: %s", request.method, request.url.path, status_code, exc)
    return ORJSONResponse(status_code=status_code, content=ErrorResponse(detail=str(exc)).model_dump())


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
