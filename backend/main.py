"""FastAPI main application for the Heartline relationship engine."""
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api import relationships as relationships_api
from backend.app.config import CORS_ALLOW_ORIGINS_RAW, log_level, resolve_content_dir
from backend.app.core.error_handling import (
    DatePlanStateError,
    HeartlineError,
    UnknownSessionError,
    create_error_response,
    log_error_with_context,
)

logging.basicConfig(level=log_level())
logger = logging.getLogger(__name__)

# Local dev servers (API docs, simulator frontends) when no allowlist is configured
DEFAULT_CORS_ORIGINS = ("http://localhost", "http://127.0.0.1", "http://localhost:5173", "http://127.0.0.1:5173")


def _parse_cors_allowlist(raw: str) -> list[str]:
    origins = [o.strip() for o in raw.split(",") if o and o.strip()]
    return origins or list(DEFAULT_CORS_ORIGINS)


CORS_ALLOW_ORIGINS = _parse_cors_allowlist(CORS_ALLOW_ORIGINS_RAW)


def _validate_content() -> None:
    """Log content table health at startup. Never fails; missing content degrades to placeholders."""
    content_dir = resolve_content_dir()
    if not content_dir.is_dir():
        logger.warning("Content directory missing: %s (dialogue and dates will be empty)", content_dir)
        return
    problems = relationships_api.get_registry().content.problems()
    if problems:
        logger.warning("Content loaded with %d problem(s); first: %s", len(problems), problems[0])
    else:
        logger.info("Content directory: %s (ok)", content_dir)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _validate_content()
    logger.info("API startup complete (cors=%s)", ",".join(CORS_ALLOW_ORIGINS))
    yield


app = FastAPI(title="Heartline Relationship Engine API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# First matching path segment names the operation in error bodies
_OPERATION_SEGMENTS = ("dates", "story", "memories", "dialogue", "state")


def _operation_for(request: Request) -> str:
    segments = request.url.path.strip("/").split("/")
    return next((name for name in _OPERATION_SEGMENTS if name in segments), "api")


def _error_json(request: Request, http_status: int, error_code: str, message: str, **details: Any) -> JSONResponse:
    body = create_error_response(
        error_code=error_code,
        message=message,
        operation=_operation_for(request),
        details={**details, "status_code": http_status, "path": request.url.path},
    )
    return JSONResponse(status_code=http_status, content=body)


@app.exception_handler(UnknownSessionError)
async def unknown_session_handler(request: Request, exc: UnknownSessionError):
    return _error_json(request, status.HTTP_404_NOT_FOUND, exc.error_code, str(exc))


@app.exception_handler(DatePlanStateError)
async def date_plan_state_handler(request: Request, exc: DatePlanStateError):
    logger.info("Rejected date execution on %s: %s", request.url.path, exc)
    return _error_json(request, status.HTTP_409_CONFLICT, exc.error_code, str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Structured body for HTTPExceptions raised by the routers (404 lookups, 422 bad input)."""
    error_code = f"{_operation_for(request).upper()}_HTTP_{exc.status_code}"
    return _error_json(request, exc.status_code, error_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Last resort: log with session/character context and answer 500."""
    operation = _operation_for(request)
    path_params = getattr(request, "path_params", {}) or {}
    log_error_with_context(
        error=exc,
        operation=operation,
        character_id=path_params.get("character_id"),
        player_id=path_params.get("session_id"),
        extra_context={"method": request.method, "path": request.url.path},
    )
    if isinstance(exc, HeartlineError):
        error_code = exc.error_code
    else:
        error_code = f"{operation.upper()}_ERROR"
    message = str(exc) or f"An error occurred: {type(exc).__name__}"
    return _error_json(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code,
        message,
        exception_type=type(exc).__name__,
    )


app.include_router(relationships_api.router)


@app.get("/")
async def root():
    return {"message": "Heartline Relationship Engine API", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
