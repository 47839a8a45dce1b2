from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

import pydantic_core

from restgate.extension.media_types import (
    APPLICATION_FORM_URLENCODED,
    APPLICATION_JSON,
    APPLICATION_OCTET_STREAM,
    TEXT_PLAIN_UTF_8,
    MediaType,
)

ResponseHandler = Callable[[Any], None]
FailureHandler = Callable[[BaseException], None]


def _noop(_: Any) -> None:
    return None


@dataclass(frozen=True, slots=True)
class Entity:
    """A request body together with its media type."""

    data: bytes
    media_type: MediaType

    @staticmethod
    def json(obj: Any) -> "Entity":
        """Serialize ``obj`` (models, dataclasses, containers) as JSON."""

        return Entity(data=pydantic_core.to_json(obj), media_type=APPLICATION_JSON)

    @staticmethod
    def text(value: str, charset: str = "utf-8") -> "Entity":
        if charset == "utf-8":
            media_type = TEXT_PLAIN_UTF_8
        else:
            media_type = MediaType("text", "plain", {"charset": charset})
        return Entity(data=value.encode(charset), media_type=media_type)

    @staticmethod
    def binary(
        data: bytes, media_type: Union[str, MediaType] = APPLICATION_OCTET_STREAM
    ) -> "Entity":
        if isinstance(media_type, str):
            media_type = MediaType.value_of(media_type)
        return Entity(data=bytes(data), media_type=media_type)

    @staticmethod
    def form(fields: Mapping[str, Any]) -> "Entity":
        body = urlencode(dict(fields), doseq=True).encode("ascii")
        return Entity(data=body, media_type=APPLICATION_FORM_URLENCODED)


@dataclass(frozen=True, slots=True)
class Request:
    """
    Immutable description of one outbound HTTP call.

    Contract
    - Build through Request.builder(url); the builder can keep changing after
      build() without affecting requests already built.
    - All four handlers are always callable (no-op by default).
    - The same Request may be passed to any number of client calls.

    Handlers
    - on_success(response): status in [200, 299]
    - on_not_found(response): status 404, runs before on_unsuccessful
    - on_unsuccessful(response): any status outside [200, 299]
    - on_failure(error): transport failure or entity decode failure
    """

    url: str
    path_segments: Tuple[str, ...] = ()
    query_params: Mapping[str, Tuple[Any, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    headers: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    media_types: Tuple[MediaType, ...] = ()
    entity: Optional[Entity] = None
    on_success: ResponseHandler = _noop
    on_not_found: ResponseHandler = _noop
    on_unsuccessful: ResponseHandler = _noop
    on_failure: FailureHandler = _noop

    @staticmethod
    def builder(url: str) -> "RequestBuilder":
        return RequestBuilder(url)


class RequestBuilder:
    """Fluent accumulator for Request. Every setter returns the builder."""

    def __init__(self, url: str):
        self._url = url
        self._path_segments: List[str] = []
        self._query_params: Dict[str, Tuple[Any, ...]] = {}
        self._headers: Dict[str, Any] = {}
        self._media_types: List[MediaType] = []
        self._entity: Optional[Entity] = None
        self._on_success: ResponseHandler = _noop
        self._on_not_found: ResponseHandler = _noop
        self._on_unsuccessful: ResponseHandler = _noop
        self._on_failure: FailureHandler = _noop

    def path(self, segment: str) -> "RequestBuilder":
        self._path_segments.append(str(segment))
        return self

    def query_param(self, key: str, *values: Any) -> "RequestBuilder":
        """Set the values of one query parameter, replacing earlier ones."""

        self._query_params[key] = _dedupe(values)
        return self

    def query_params(self, params: Mapping[str, Any]) -> "RequestBuilder":
        """Merge several parameters; a scalar value counts as a single value."""

        for key, value in params.items():
            if isinstance(value, (list, tuple, set, frozenset)):
                self.query_param(key, *value)
            else:
                self.query_param(key, value)
        return self

    def header(self, key: str, value: Any) -> "RequestBuilder":
        self._headers[key] = value
        return self

    def headers(self, headers: Mapping[str, Any]) -> "RequestBuilder":
        self._headers.update(headers)
        return self

    def accepting(self, *media_types: Union[str, MediaType]) -> "RequestBuilder":
        for mt in media_types:
            parsed = mt if isinstance(mt, MediaType) else MediaType.value_of(mt)
            if parsed not in self._media_types:
                self._media_types.append(parsed)
        return self

    def entity(self, entity: Optional[Entity]) -> "RequestBuilder":
        self._entity = entity
        return self

    def on_success(self, handler: ResponseHandler) -> "RequestBuilder":
        self._on_success = handler
        return self

    def on_not_found(self, handler: ResponseHandler) -> "RequestBuilder":
        self._on_not_found = handler
        return self

    def on_unsuccessful(self, handler: ResponseHandler) -> "RequestBuilder":
        self._on_unsuccessful = handler
        return self

    def on_failure(self, handler: FailureHandler) -> "RequestBuilder":
        self._on_failure = handler
        return self

    def build(self) -> Request:
        """Snapshot the builder into an immutable Request.

        Raises
        - ValueError: if the target url is empty.
        """

        if not self._url:
            raise ValueError("request url must not be empty")
        return Request(
            url=self._url,
            path_segments=tuple(self._path_segments),
            query_params=MappingProxyType(dict(self._query_params)),
            headers=MappingProxyType(dict(self._headers)),
            media_types=tuple(self._media_types),
            entity=self._entity,
            on_success=self._on_success,
            on_not_found=self._on_not_found,
            on_unsuccessful=self._on_unsuccessful,
            on_failure=self._on_failure,
        )


def _dedupe(values: Iterable[Any]) -> Tuple[Any, ...]:
    out: List[Any] = []
    for v in values:
        if v not in out:
            out.append(v)
    return tuple(out)
