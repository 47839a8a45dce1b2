from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import FrozenSet, MutableMapping, Optional

from starlette.datastructures import Headers
from starlette.responses import Response

from restgate.errors import OriginNotAllowedError
from restgate.extension.headers import (
    ACCESS_CONTROL_ALLOW_CREDENTIALS,
    ACCESS_CONTROL_ALLOW_HEADERS,
    ACCESS_CONTROL_ALLOW_METHODS,
    ACCESS_CONTROL_ALLOW_ORIGIN,
    ACCESS_CONTROL_REQUEST_HEADERS,
    ACCESS_CONTROL_REQUEST_METHOD,
    ORIGIN,
)

log = logging.getLogger("restgate.cors")

ALL_ALLOWED_ORIGINS = "*"


@dataclass(slots=True)
class CorsContext:
    """Per-request CORS state, created by the host and passed to both phases.

    ``rejected`` is written at most once, by the before-phase.
    """

    method: str
    headers: Headers
    rejected: bool = field(default=False)

    @property
    def origin(self) -> Optional[str]:
        value = self.headers.get(ORIGIN)
        if value is None or not value.strip():
            return None
        return value

    @property
    def is_preflight(self) -> bool:
        return self.method.upper() == "OPTIONS"


class CorsFilter:
    """
    Two-phase CORS admission filter.

    before(ctx), run ahead of routing:
    - no Origin: nothing to do
    - OPTIONS: validate, then return a 200 preflight response for the host to
      short-circuit with
    - anything else: validate and let the request through

    after(ctx, headers), run once a response exists:
    - adds Access-Control-Allow-Origin/Credentials unless there is no Origin,
      the request was a preflight, or the before-phase rejected it

    Validation is exact string match against the allow-list, or any origin
    when the allow-list holds "*". Failure marks the context rejected and
    raises OriginNotAllowedError (403).
    """

    def __init__(self, allowed_origins: str):
        self.allowed_origins = allowed_origins or ""
        self._entries: FrozenSet[str] = frozenset(
            e for e in re.split(r"[,\s]+", self.allowed_origins.strip()) if e
        )

    @staticmethod
    def from_env() -> "CorsFilter":
        """Create a filter from RESTGATE_CORS_ALLOWED_ORIGINS (default: none allowed)."""

        return CorsFilter(os.environ.get("RESTGATE_CORS_ALLOWED_ORIGINS", ""))

    @property
    def origins(self) -> FrozenSet[str]:
        return self._entries

    def is_allowed(self, origin: str) -> bool:
        return ALL_ALLOWED_ORIGINS in self._entries or origin in self._entries

    def before(self, ctx: CorsContext) -> Optional[Response]:
        origin = ctx.origin
        if origin is None:
            return None
        if ctx.is_preflight:
            return self._preflight(ctx, origin)
        self._check_origin(ctx, origin)
        return None

    def after(self, ctx: CorsContext, headers: MutableMapping[str, str]) -> None:
        origin = ctx.origin
        if origin is None or ctx.is_preflight or ctx.rejected:
            return
        headers[ACCESS_CONTROL_ALLOW_ORIGIN] = origin
        headers[ACCESS_CONTROL_ALLOW_CREDENTIALS] = "true"

    def _preflight(self, ctx: CorsContext, origin: str) -> Response:
        self._check_origin(ctx, origin)
        headers = {
            ACCESS_CONTROL_ALLOW_ORIGIN: origin,
            ACCESS_CONTROL_ALLOW_CREDENTIALS: "true",
        }
        methods = ctx.headers.get(ACCESS_CONTROL_REQUEST_METHOD)
        if methods is not None:
            headers[ACCESS_CONTROL_ALLOW_METHODS] = methods
        allow_headers = ctx.headers.get(ACCESS_CONTROL_REQUEST_HEADERS)
        if allow_headers is not None:
            headers[ACCESS_CONTROL_ALLOW_HEADERS] = allow_headers
        return Response(status_code=200, headers=headers)

    def _check_origin(self, ctx: CorsContext, origin: str) -> None:
        if self.is_allowed(origin):
            return
        ctx.rejected = True
        log.warning("cors_rejected", extra={"origin": origin, "method": ctx.method})
        raise OriginNotAllowedError(origin)
