from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Type, TypeVar, Union

from restgate.client.entity import EntityReader
from restgate.client.request import Request
from restgate.client.response import HttpResponse, is_successful
from restgate.client.transport import Invocation, Transport, UrllibTransport, is_timeout
from restgate.errors import EntityDecodeError, NoResponseError, TransportError

log = logging.getLogger("restgate.client")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result of one invocation attempt: a response, or the error that prevented one."""

    response: Optional[HttpResponse] = None
    error: Optional[BaseException] = None

    @property
    def present(self) -> bool:
        return self.response is not None


class RestClient:
    """
    Outcome-dispatching HTTP client.

    Every call builds an invocation from a Request, executes it through the
    transport and routes the outcome to exactly one branch of the Request's
    handlers:

    - transport failure: on_failure(error); a timeout becomes a synthetic 408
      response, anything else leaves no response
    - 2xx: on_success(response)
    - 404: on_not_found(response), then on_unsuccessful(response)
    - other non-2xx: on_unsuccessful(response)

    Handler errors propagate unchanged and never reach on_failure.

    Raw methods (get/post/put/delete) return the response and leave it open for
    the caller. Entity methods (get_entity/...) decode the body, release the
    response before returning, and report decode failures through on_failure.

    The client keeps no per-call state and may be shared between threads.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        *,
        entity_reader: Optional[EntityReader] = None,
    ):
        self._transport = transport if transport is not None else UrllibTransport.from_env()
        self._reader = entity_reader if entity_reader is not None else EntityReader()

    # raw responses

    def get(self, request: Request) -> HttpResponse:
        return self._respond(self._invocation("GET", request), request)

    def post(self, request: Request) -> HttpResponse:
        return self._respond(self._invocation("POST", request), request)

    def put(self, request: Request) -> HttpResponse:
        return self._respond(self._invocation("PUT", request), request)

    def delete(self, request: Request) -> HttpResponse:
        return self._respond(self._invocation("DELETE", request), request)

    # typed entities

    def get_entity(self, request: Request, entity_type: Union[Type[T], Any]) -> Optional[T]:
        return self._entity(self._invocation("GET", request), request, entity_type)

    def post_entity(self, request: Request, entity_type: Union[Type[T], Any]) -> Optional[T]:
        return self._entity(self._invocation("POST", request), request, entity_type)

    def put_entity(self, request: Request, entity_type: Union[Type[T], Any]) -> Optional[T]:
        return self._entity(self._invocation("PUT", request), request, entity_type)

    def delete_entity(self, request: Request, entity_type: Union[Type[T], Any]) -> Optional[T]:
        return self._entity(self._invocation("DELETE", request), request, entity_type)

    def _invocation(self, method: str, request: Request) -> Invocation:
        return self._transport.build_invocation(
            method=method,
            url=request.url,
            path_segments=request.path_segments,
            query_params=request.query_params,
            headers=request.headers,
            accept=request.media_types,
            entity=request.entity,
        )

    def _respond(self, invocation: Invocation, request: Request) -> HttpResponse:
        outcome = self._invoke(invocation, request)
        if not outcome.present:
            raise NoResponseError(invocation.method, invocation.url) from outcome.error
        return outcome.response

    def _entity(
        self, invocation: Invocation, request: Request, entity_type: Union[Type[T], Any]
    ) -> Optional[T]:
        outcome = self._invoke(invocation, request)
        if not outcome.present:
            return None
        return self._read_entity(request, outcome.response, entity_type)

    def _invoke(self, invocation: Invocation, request: Request) -> Outcome:
        log.debug(
            "http_invocation",
            extra={"method": invocation.method, "url": invocation.url},
        )
        try:
            response = self._transport.execute(invocation)
        except Exception as e:
            timed_out = is_timeout(e)
            log.warning(
                "transport_failure",
                extra={
                    "method": invocation.method,
                    "url": invocation.url,
                    "timeout": timed_out,
                    "error": str(e),
                },
            )
            request.on_failure(e)
            if timed_out:
                return Outcome(response=HttpResponse.request_timeout(), error=e)
            return Outcome(error=e)

        try:
            self._dispatch(request, response)
        except BaseException:
            response.close()
            raise
        return Outcome(response=response)

    @staticmethod
    def _dispatch(request: Request, response: HttpResponse) -> None:
        if is_successful(response):
            request.on_success(response)
            return
        if response.status == 404:
            request.on_not_found(response)
        request.on_unsuccessful(response)

    def _read_entity(
        self, request: Request, response: HttpResponse, entity_type: Union[Type[T], Any]
    ) -> Optional[T]:
        with response:
            try:
                return self._reader.read(response, entity_type)
            except (EntityDecodeError, TransportError) as e:
                log.info(
                    "entity_decode_failure",
                    extra={"status": response.status, "error": str(e)},
                )
                request.on_failure(e)
                return None
