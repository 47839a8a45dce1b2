from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from restgate import __version__
from restgate.api.middleware import AccessLogMiddleware, CorsMiddleware, error_json
from restgate.api.models import FilesOut, HealthOut, StatusOut
from restgate.api.multipart import extract_files, extract_part
from restgate.cors.filter import CorsFilter
from restgate.errors import UploadTooLargeError
from restgate.extension.status import status_from_code

log = logging.getLogger("restgate.api")

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    """Configuration for the API service.

    Security notes:
    - An empty allow-list rejects every cross-origin request.

    """

    allowed_origins: str = ""
    max_upload_bytes: int = 25 * 1024 * 1024
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to ``default``."""

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


def _env_log_level(name: str, default: str) -> str:
    raw = os.environ.get(name, "").strip().upper()
    return raw if raw in _LOG_LEVELS else default


def load_config(*, allowed_origins: Optional[str] = None) -> ServiceConfig:
    """Build a ServiceConfig from the environment; arguments win over env vars."""

    if allowed_origins is None:
        allowed_origins = os.environ.get("RESTGATE_CORS_ALLOWED_ORIGINS", "")
    return ServiceConfig(
        allowed_origins=allowed_origins,
        max_upload_bytes=_env_int("RESTGATE_MAX_UPLOAD_BYTES", 25 * 1024 * 1024),
        log_level=_env_log_level("RESTGATE_LOG_LEVEL", "INFO"),
    )


def create_app(*, allowed_origins: Optional[str] = None) -> FastAPI:
    """Create the FastAPI app."""

    cfg = load_config(allowed_origins=allowed_origins)
    logging.getLogger("restgate").setLevel(cfg.log_level)

    cors = CorsFilter(cfg.allowed_origins)
    log.debug("cors_config", extra={"allowed_origins": sorted(cors.origins)})

    app = FastAPI(title="restgate", version=__version__)
    app.state.cfg = cfg

    # Added last = outermost.
    app.add_middleware(CorsMiddleware, cors_filter=cors)
    app.add_middleware(AccessLogMiddleware)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return error_json(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return error_json(422, "request validation failed", payload=jsonable_encoder(exc.errors()))

    @app.get("/health", response_model=HealthOut)
    def health() -> HealthOut:
        return HealthOut(ok=True, cors_allowed_origins=sorted(cors.origins))

    @app.get("/status/{code}", response_model=StatusOut)
    def status_lookup(code: int) -> StatusOut:
        """Resolve a status code through the registry (unknown codes resolve too)."""

        info = status_from_code(code)
        return StatusOut(code=info.code, reason_phrase=info.reason_phrase, family=info.family.value)

    @app.post("/files", response_model=FilesOut)
    async def upload_files(request: Request) -> FilesOut:
        """Accept a multipart form with ``file`` parts and an optional ``description``.

        Security notes:
        - Client filenames are only echoed back, never used as paths.
        - Total upload size is capped (413).

        """

        form = await request.form()
        try:
            description = await extract_part(form, "description")
            files = await extract_files(form, max_bytes=cfg.max_upload_bytes)
        except UploadTooLargeError as e:
            raise HTTPException(status_code=e.status_code, detail="upload_too_large") from e
        finally:
            await form.close()
        return FilesOut(description=description, files={k: len(v) for k, v in files.items()})

    return app
