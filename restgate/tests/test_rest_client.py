from __future__ import annotations

import io
from typing import List, Optional

import pytest
from pydantic import BaseModel

from restgate.client.request import Entity, Request
from restgate.client.response import HttpResponse
from restgate.client.rest_client import RestClient
from restgate.client.transport import Invocation, Transport
from restgate.errors import EntityDecodeError, NoResponseError, TransportError


class Item(BaseModel):
    id: int
    name: str


class _CountingStream(io.BytesIO):
    def __init__(self, data: bytes):
        super().__init__(data)
        self.close_calls = 0

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class FakeTransport(Transport):
    """Answers every invocation with one canned status/body, or raises ``error``."""

    def __init__(
        self,
        *,
        status: int = 200,
        body: bytes = b"",
        headers: Optional[dict] = None,
        error: Optional[BaseException] = None,
    ):
        self.status = status
        self.body = body
        self.headers = headers or {"content-type": "application/json"}
        self.error = error
        self.invocations: List[Invocation] = []
        self.streams: List[_CountingStream] = []

    def execute(self, invocation: Invocation) -> HttpResponse:
        self.invocations.append(invocation)
        if self.error is not None:
            raise self.error
        stream = _CountingStream(self.body)
        self.streams.append(stream)
        return HttpResponse(self.status, headers=self.headers, stream=stream)


class Recorder:
    def __init__(self):
        self.events: List[str] = []
        self.failures: List[BaseException] = []

    def request(self, url: str = "http://api.test") -> Request:
        return (
            Request.builder(url)
            .on_success(lambda r: self.events.append("success"))
            .on_not_found(lambda r: self.events.append("not_found"))
            .on_unsuccessful(lambda r: self.events.append("unsuccessful"))
            .on_failure(self._failure)
            .build()
        )

    def _failure(self, e: BaseException) -> None:
        self.events.append("failure")
        self.failures.append(e)


def _timeout_error() -> TransportError:
    err = TransportError("GET http://api.test: timed out")
    err.__cause__ = TimeoutError("timed out")
    return err


def test_success_fires_only_on_success_and_returns_response():
    rec = Recorder()
    client = RestClient(FakeTransport(status=200, body=b"{}"))

    response = client.get(rec.request())

    assert response.status == 200
    assert rec.events == ["success"]
    response.close()


def test_not_found_fires_not_found_then_unsuccessful():
    rec = Recorder()
    client = RestClient(FakeTransport(status=404))

    response = client.get(rec.request())

    assert response.status == 404
    assert rec.events == ["not_found", "unsuccessful"]


def test_server_error_fires_only_unsuccessful():
    rec = Recorder()
    client = RestClient(FakeTransport(status=500))

    for call in (client.get, client.post, client.put, client.delete):
        rec.events.clear()
        assert call(rec.request()).status == 500
        assert rec.events == ["unsuccessful"]


def test_timeout_becomes_synthetic_408_with_one_failure_call():
    rec = Recorder()
    err = _timeout_error()
    client = RestClient(FakeTransport(error=err))

    response = client.get(rec.request())

    assert response.status == 408
    assert response.read() == b""
    assert rec.events == ["failure"]
    assert rec.failures == [err]


def test_transport_failure_raises_no_response_from_raw_methods():
    rec = Recorder()
    err = TransportError("connection refused")
    client = RestClient(FakeTransport(error=err))

    with pytest.raises(NoResponseError) as info:
        client.post(rec.request())

    assert info.value.__cause__ is err
    assert info.value.method == "POST"
    assert rec.events == ["failure"]


def test_transport_failure_gives_none_from_entity_methods_without_double_failure():
    rec = Recorder()
    client = RestClient(FakeTransport(error=TransportError("dns")))

    assert client.get_entity(rec.request(), Item) is None
    assert rec.events == ["failure"]


def test_timeout_on_entity_method_reports_decode_failure_on_empty_body():
    rec = Recorder()
    client = RestClient(FakeTransport(error=_timeout_error()))

    assert client.get_entity(rec.request(), Item) is None
    # transport failure first, then the empty 408 body fails to decode
    assert rec.events == ["failure", "failure"]
    assert isinstance(rec.failures[1], EntityDecodeError)


def test_entity_decoded_and_response_released_once():
    rec = Recorder()
    transport = FakeTransport(body=b'{"id": 1, "name": "one"}')
    client = RestClient(transport)

    item = client.get_entity(rec.request(), Item)

    assert item == Item(id=1, name="one")
    assert rec.events == ["success"]
    assert transport.streams[0].close_calls == 1


def test_parameterized_entity_shape():
    transport = FakeTransport(body=b'[{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]')
    client = RestClient(transport)

    items = client.put_entity(Recorder().request(), List[Item])

    assert [i.id for i in items] == [1, 2]


def test_decode_failure_after_success_calls_on_failure_and_releases_once():
    rec = Recorder()
    transport = FakeTransport(body=b"definitely not json")
    client = RestClient(transport)

    assert client.get_entity(rec.request(), Item) is None

    assert rec.events == ["success", "failure"]
    assert isinstance(rec.failures[0], EntityDecodeError)
    assert transport.streams[0].close_calls == 1


def test_entity_read_for_unsuccessful_status_still_decodes_body():
    rec = Recorder()
    client = RestClient(FakeTransport(status=404, body=b'{"detail": "missing"}'))

    body = client.delete_entity(rec.request(), dict)

    assert body == {"detail": "missing"}
    assert rec.events == ["not_found", "unsuccessful"]


def test_success_handler_error_propagates_without_on_failure():
    failures: List[BaseException] = []
    transport = FakeTransport(status=201)
    client = RestClient(transport)

    def boom(_):
        raise ValueError("handler bug")

    request = (
        Request.builder("http://api.test").on_success(boom).on_failure(failures.append).build()
    )

    with pytest.raises(ValueError, match="handler bug"):
        client.post_entity(request, dict)

    assert failures == []
    assert transport.streams[0].close_calls == 1


def test_unsuccessful_handler_error_propagates_without_on_failure():
    failures: List[BaseException] = []
    client = RestClient(FakeTransport(status=404))

    def boom(_):
        raise KeyError("nope")

    request = (
        Request.builder("http://api.test").on_not_found(boom).on_failure(failures.append).build()
    )

    with pytest.raises(KeyError):
        client.get(request)

    assert failures == []


def test_body_only_attached_for_post_and_put():
    transport = FakeTransport()
    client = RestClient(transport)
    request = Request.builder("http://api.test").entity(Entity.json({"a": 1})).build()

    client.get(request)
    client.delete(request)
    client.post(request)
    client.put(request)

    bodies = [(i.method, i.body) for i in transport.invocations]
    assert bodies[0] == ("GET", None)
    assert bodies[1] == ("DELETE", None)
    assert bodies[2][0] == "POST" and bodies[2][1] == b'{"a":1}'
    assert bodies[3][0] == "PUT" and bodies[3][1] == b'{"a":1}'
    assert "Content-Type" not in transport.invocations[0].headers
    assert transport.invocations[2].headers["Content-Type"] == "application/json"


def test_invocation_carries_path_query_accept_and_headers():
    transport = FakeTransport()
    client = RestClient(transport)
    request = (
        Request.builder("http://api.test/v1")
        .path("users")
        .path("a b")
        .query_param("tag", "x", "y")
        .accepting("application/json", "application/json")
        .header("X-Trace", "t-1")
        .build()
    )

    client.get(request)

    inv = transport.invocations[0]
    assert inv.url == "http://api.test/v1/users/a%20b?tag=x&tag=y"
    assert inv.headers["Accept"] == "application/json"
    assert inv.headers["X-Trace"] == "t-1"


def test_same_request_can_be_reused():
    rec = Recorder()
    client = RestClient(FakeTransport(status=200, body=b"{}"))
    request = rec.request()

    client.get(request).close()
    client.get(request).close()

    assert rec.events == ["success", "success"]


class Opaque:
    def __init__(self, a):
        self.a = a


def test_unsupported_entity_shape_goes_to_on_failure_and_releases():
    rec = Recorder()
    transport = FakeTransport(body=b'{"a": 1}')
    client = RestClient(transport)

    assert client.get_entity(rec.request(), Opaque) is None

    assert rec.events == ["success", "failure"]
    assert isinstance(rec.failures[0], EntityDecodeError)
    assert transport.streams[0].close_calls == 1
