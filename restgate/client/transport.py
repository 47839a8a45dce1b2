from __future__ import annotations

import os
import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode, urlsplit, urlunsplit
from urllib.request import Request as UrllibRequest
from urllib.request import urlopen

from restgate.client.request import Entity
from restgate.client.response import HttpResponse
from restgate.errors import TransportError
from restgate.extension.headers import ACCEPT, CONTENT_TYPE
from restgate.extension.media_types import MediaType

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# RFC 3986 sub-delims plus ":" and "@" stay literal inside a path segment.
_SEGMENT_SAFE = "/:@!$&'()*+,;=-._~"


@dataclass(frozen=True, slots=True)
class Invocation:
    """A fully-resolved call: method, absolute URL, headers and optional body."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    body: Optional[bytes] = None


class Transport(ABC):
    """
    Wire collaborator used by RestClient.

    Contract
    - execute() returns an HttpResponse for every status the server sends,
      including 4xx/5xx.
    - execute() raises TransportError (chained from the root cause) when no
      response could be obtained.
    - The returned response owns an open stream; the caller releases it.
    """

    def build_invocation(
        self,
        *,
        method: str,
        url: str,
        path_segments: Sequence[str] = (),
        query_params: Optional[Mapping[str, Sequence[Any]]] = None,
        headers: Optional[Mapping[str, Any]] = None,
        accept: Sequence[MediaType] = (),
        entity: Optional[Entity] = None,
    ) -> Invocation:
        method = method.upper()
        target = _append_query(_append_path(url, path_segments), query_params or {})

        out = {}
        if accept:
            out[ACCEPT] = ", ".join(str(mt) for mt in accept)
        body: Optional[bytes] = None
        if entity is not None and method in BODY_METHODS:
            body = entity.data
            out[CONTENT_TYPE] = str(entity.media_type)
        for key, value in (headers or {}).items():
            out[key] = str(value)
        return Invocation(method=method, url=target, headers=MappingProxyType(out), body=body)

    @abstractmethod
    def execute(self, invocation: Invocation) -> HttpResponse:
        raise NotImplementedError


class UrllibTransport(Transport):
    """Standard-library transport built on urllib.request.

    Security notes:
    - Uses the default SSL context (verification ON).
    - Does not follow a max-body policy; the entity reader buffers the body.
    """

    def __init__(self, *, timeout: float = 30.0, ssl_context: Optional[ssl.SSLContext] = None):
        self.timeout = float(timeout)
        self._ssl_context = ssl_context

    @staticmethod
    def from_env() -> "UrllibTransport":
        """Create a transport from RESTGATE_HTTP_TIMEOUT_SEC (default 30)."""

        raw = os.environ.get("RESTGATE_HTTP_TIMEOUT_SEC", "").strip()
        try:
            timeout = float(raw) if raw else 30.0
        except ValueError:
            timeout = 30.0
        if timeout <= 0:
            timeout = 30.0
        return UrllibTransport(timeout=timeout)

    def execute(self, invocation: Invocation) -> HttpResponse:
        try:
            req = UrllibRequest(
                url=invocation.url,
                data=invocation.body,
                headers=dict(invocation.headers),
                method=invocation.method,
            )
            kwargs = {}
            if req.type == "https":
                kwargs["context"] = self._ssl_context or ssl.create_default_context()
            resp = urlopen(req, timeout=self.timeout, **kwargs)
        except HTTPError as e:
            return HttpResponse(
                int(e.code),
                reason=str(e.reason) if e.reason else None,
                headers=list(e.headers.items()) if e.headers is not None else None,
                stream=e,
            )
        except (URLError, OSError, ValueError) as e:
            raise TransportError(f"{invocation.method} {invocation.url}: {e}") from e
        return HttpResponse(
            int(resp.status),
            reason=resp.reason or None,
            headers=list(resp.headers.items()),
            stream=resp,
        )


def is_timeout(error: BaseException) -> bool:
    """Return True if a timeout appears anywhere in the error chain.

    Follows ``__cause__``, ``__context__`` and ``URLError.reason``.
    """

    seen: Set[int] = set()
    stack = [error]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, TimeoutError):
            return True
        if isinstance(current, URLError) and isinstance(current.reason, BaseException):
            stack.append(current.reason)
        stack.append(current.__cause__)
        stack.append(current.__context__)
    return False


def _append_path(url: str, segments: Sequence[str]) -> str:
    if not segments:
        return url
    scheme, netloc, path, query, fragment = urlsplit(url)
    for segment in segments:
        piece = quote(str(segment).strip("/"), safe=_SEGMENT_SAFE)
        if not piece:
            continue
        path = path.rstrip("/") + "/" + piece
    return urlunsplit((scheme, netloc, path, query, fragment))


def _append_query(url: str, params: Mapping[str, Sequence[Any]]) -> str:
    if not params:
        return url
    pairs: List[Tuple[str, str]] = []
    for key, values in params.items():
        for value in values:
            pairs.append((key, str(value)))
    if not pairs:
        return url
    scheme, netloc, path, query, fragment = urlsplit(url)
    extra = urlencode(pairs)
    query = f"{query}&{extra}" if query else extra
    return urlunsplit((scheme, netloc, path, query, fragment))
