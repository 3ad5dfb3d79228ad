"""FastAPI entrypoint for bank statement imports."""

from __future__ import annotations

import base64
import binascii
import logging
from functools import lru_cache

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend.factory import build_statement_import_service
from backend.services.statement_import.errors import StatementImportError
from backend.services.statement_import.importer import StatementImportService
from backend.services.statement_import.summary import format_import_failure, format_import_result
from shared import config as _config
from shared.models import ImportResult


logger = logging.getLogger(__name__)


class StatementImportPayload(BaseModel):
    """Bank statement upload sent by the bot or the dashboard."""

    chat_id: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    content_base64: str
    dry_run: bool = False
    lang: str = "es"


class StatementImportResponse(BaseModel):
    result: ImportResult
    message: str


@lru_cache(maxsize=1)
def get_statement_import_service() -> StatementImportService:
    """Create and cache the import service once per process."""

    return build_statement_import_service()


app = FastAPI(title="Bank Statement Import API")

ALLOW_ORIGINS = _config.cors_allow_origins()


@app.middleware("http")
async def log_http_requests(request: Request, call_next):
    """Log incoming requests, HTTP status codes and unexpected errors."""

    logger.info("http_request_received method=%s path=%s", request.method, request.url.path)
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(
            "http_request_failed method=%s path=%s",
            request.method,
            request.url.path,
        )
        raise

    logger.info(
        "http_response_sent method=%s path=%s status_code=%s",
        request.method,
        request.url.path,
        response.status_code,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Return a JSON 500 response for unhandled exceptions."""

    logger.exception(
        "unhandled_exception method=%s path=%s exception_type=%s message=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        str(exc),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""

    return {"status": "ok"}


@app.post("/imports/statement", response_model=StatementImportResponse)
def import_statement(payload: StatementImportPayload) -> StatementImportResponse:
    try:
        content = base64.b64decode(payload.content_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail="content_base64 is not valid base64") from exc

    service = get_statement_import_service()
    try:
        result = service.import_statement(
            content,
            payload.filename,
            chat_id=payload.chat_id,
            dry_run=payload.dry_run,
        )
    except StatementImportError as exc:
        logger.warning(
            "statement_import_rejected chat_id=%s filename=%s reason=%s",
            payload.chat_id,
            payload.filename,
            exc,
        )
        raise HTTPException(
            status_code=422,
            detail=format_import_failure(exc, payload.lang),
        ) from exc

    return StatementImportResponse(
        result=result,
        message=format_import_result(result, payload.lang),
    )
